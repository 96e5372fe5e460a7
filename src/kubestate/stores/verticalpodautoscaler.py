"""Metric families of ``autoscaling.k8s.io`` VerticalPodAutoscaler objects.

Every family carries the identifying labels ``namespace``,
``verticalpodautoscaler``, ``target_api_version``, ``target_kind`` and
``target_name`` first. A VPA without a target reference still reports its
families, with empty target labels, so objects missing the reference can be
counted and alerted on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, cast

from kubestate.assembly import wrap_family_func
from kubestate.generator import FamilyGenerator
from kubestate.labels import create_label_keys_values
from kubestate.listwatch import ResourceDescriptor
from kubestate.metric import Family, Metric, MetricType
from kubestate.models import VerticalPodAutoscaler
from kubestate.quantity import resources_to_metrics

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from kubestate.assembly import ExtractFunc
    from kubestate.generator import ResourceConfig
    from kubestate.models import (
        ContainerResourcePolicy,
        CrossVersionObjectReference,
        PodResourcePolicy,
        PodUpdatePolicy,
        RecommendedContainerResources,
        RecommendedPodResources,
        ResourceList,
    )

__all__ = [
    "DEFAULT_LABELS",
    "DESCRIPTOR",
    "RESOURCE",
    "UPDATE_MODES",
    "vpa_metric_families",
]

RESOURCE: Final[str] = "verticalpodautoscalers"

DESCRIPTOR: Final[ResourceDescriptor] = ResourceDescriptor(
    group="autoscaling.k8s.io",
    version="v1beta2",
    plural=RESOURCE,
    kind="VerticalPodAutoscaler",
    model=VerticalPodAutoscaler,
)

DEFAULT_LABELS: Final[tuple[str, ...]] = (
    "namespace",
    "verticalpodautoscaler",
    "target_api_version",
    "target_kind",
    "target_name",
)

UPDATE_MODES: Final[tuple[str, ...]] = ("Off", "Initial", "Recreate", "Auto")


def _default_label_values(vpa: VerticalPodAutoscaler) -> tuple[str, ...]:
    target = cast("CrossVersionObjectReference", vpa.spec.target_ref)
    return (
        vpa.metadata.namespace,
        vpa.metadata.name,
        target.api_version,
        target.kind,
        target.name,
    )


def _wrap(func: Callable[[VerticalPodAutoscaler], Family]) -> ExtractFunc:
    return wrap_family_func(
        VerticalPodAutoscaler,
        func,
        default_label_keys=DEFAULT_LABELS,
        default_label_values=_default_label_values,
        defaults=VerticalPodAutoscaler.with_defaults,
    )


# Extract functions run on objects passed through with_defaults, so optional
# substructures are always present.


def _update_mode(vpa: VerticalPodAutoscaler) -> Family:
    update_mode = cast("PodUpdatePolicy", vpa.spec.update_policy).update_mode
    if update_mode is None:
        return Family()
    return Family.of(
        Metric(("update_mode",), (mode,), 1.0 if update_mode == mode else 0.0) for mode in UPDATE_MODES
    )


def _container_resources(
    pick: Callable[[VerticalPodAutoscaler], Iterable[tuple[str, ResourceList]]],
) -> Callable[[VerticalPodAutoscaler], Family]:
    def extract(vpa: VerticalPodAutoscaler) -> Family:
        metrics: list[Metric] = []
        for container_name, resources in pick(vpa):
            metrics.extend(resources_to_metrics(container_name, resources))
        return Family.of(metrics)

    return extract


def _policies(vpa: VerticalPodAutoscaler) -> list[ContainerResourcePolicy]:
    policy = cast("PodResourcePolicy", vpa.spec.resource_policy)
    return cast("list[ContainerResourcePolicy]", policy.container_policies)


def _recommendations(vpa: VerticalPodAutoscaler) -> list[RecommendedContainerResources]:
    recommendation = cast("RecommendedPodResources", vpa.status.recommendation)
    return cast("list[RecommendedContainerResources]", recommendation.container_recommendations)


def vpa_metric_families(config: ResourceConfig) -> list[FamilyGenerator]:
    """Return the VerticalPodAutoscaler generators in declaration order.

    Parameters
    ----------
    config : ResourceConfig
        Annotation and label allow-lists of the resource.

    Returns
    -------
    list[FamilyGenerator]
        Nine generators: annotations, labels, update mode, the container
        policy bounds and the four container recommendations.
    """
    allow_annotations = config.annotations_allowlist
    allow_labels = config.labels_allowlist

    def annotations(vpa: VerticalPodAutoscaler) -> Family:
        keys, values = create_label_keys_values("annotation", vpa.metadata.annotations, allow_annotations)
        return Family.of([Metric(keys, values, 1.0)])

    def labels(vpa: VerticalPodAutoscaler) -> Family:
        keys, values = create_label_keys_values("label", vpa.metadata.labels, allow_labels)
        return Family.of([Metric(keys, values, 1.0)])

    return [
        FamilyGenerator(
            "kube_verticalpodautoscaler_annotations",
            "Kubernetes annotations converted to Prometheus labels.",
            MetricType.GAUGE,
            _wrap(annotations),
        ),
        FamilyGenerator(
            "kube_verticalpodautoscaler_labels",
            "Kubernetes labels converted to Prometheus labels.",
            MetricType.GAUGE,
            _wrap(labels),
        ),
        FamilyGenerator(
            "kube_verticalpodautoscaler_spec_updatepolicy_updatemode",
            "Update mode of the VerticalPodAutoscaler.",
            MetricType.GAUGE,
            _wrap(_update_mode),
        ),
        FamilyGenerator(
            "kube_verticalpodautoscaler_spec_resourcepolicy_container_policies_minallowed",
            "Minimum resources the VerticalPodAutoscaler can set for containers matching the name.",
            MetricType.GAUGE,
            _wrap(_container_resources(lambda vpa: ((p.container_name, p.min_allowed) for p in _policies(vpa)))),
        ),
        FamilyGenerator(
            "kube_verticalpodautoscaler_spec_resourcepolicy_container_policies_maxallowed",
            "Maximum resources the VerticalPodAutoscaler can set for containers matching the name.",
            MetricType.GAUGE,
            _wrap(_container_resources(lambda vpa: ((p.container_name, p.max_allowed) for p in _policies(vpa)))),
        ),
        FamilyGenerator(
            "kube_verticalpodautoscaler_status_recommendation_containerrecommendations_lowerbound",
            "Minimum resources the container can use before the VerticalPodAutoscaler updater evicts it.",
            MetricType.GAUGE,
            _wrap(
                _container_resources(
                    lambda vpa: ((r.container_name, r.lower_bound) for r in _recommendations(vpa))
                )
            ),
        ),
        FamilyGenerator(
            "kube_verticalpodautoscaler_status_recommendation_containerrecommendations_upperbound",
            "Maximum resources the container can use before the VerticalPodAutoscaler updater evicts it.",
            MetricType.GAUGE,
            _wrap(
                _container_resources(
                    lambda vpa: ((r.container_name, r.upper_bound) for r in _recommendations(vpa))
                )
            ),
        ),
        FamilyGenerator(
            "kube_verticalpodautoscaler_status_recommendation_containerrecommendations_target",
            "Target resources the VerticalPodAutoscaler recommends for the container.",
            MetricType.GAUGE,
            _wrap(
                _container_resources(
                    lambda vpa: ((r.container_name, r.target) for r in _recommendations(vpa))
                )
            ),
        ),
        FamilyGenerator(
            "kube_verticalpodautoscaler_status_recommendation_containerrecommendations_uncappedtarget",
            "Target resources the VerticalPodAutoscaler recommends for the container ignoring bounds.",
            MetricType.GAUGE,
            _wrap(
                _container_resources(
                    lambda vpa: ((r.container_name, r.uncapped_target) for r in _recommendations(vpa))
                )
            ),
        ),
    ]
