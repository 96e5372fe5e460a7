"""Typed models of the Kubernetes objects kubestate turns into metrics.

The custom objects API returns plain JSON-like mappings. The models below
decode them once, at the list/watch boundary, into frozen pydantic models
with snake_case attributes. Optional substructures stay ``None`` when the API
omits them; each nested shape has a ``with_defaults`` method that fills those
gaps with zero values right before metric extraction.

Examples
--------
>>> vpa = VerticalPodAutoscaler.model_validate(
...     {"metadata": {"name": "web", "namespace": "default"}, "spec": {}}
... )
>>> vpa.spec.target_ref is None
True
>>> vpa.with_defaults().spec.target_ref.kind
''
"""

from __future__ import annotations

from typing import Annotated, ClassVar

from kubernetes.utils import parse_quantity
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from kubestate.errors import MalformedObjectError

__all__ = [
    "ContainerResourcePolicy",
    "CrossVersionObjectReference",
    "ObjectMeta",
    "PodResourcePolicy",
    "PodUpdatePolicy",
    "RecommendedContainerResources",
    "RecommendedPodResources",
    "ResourceList",
    "ResourceModel",
    "VerticalPodAutoscaler",
    "VerticalPodAutoscalerSpec",
    "VerticalPodAutoscalerStatus",
    "decode_object",
]


def _check_quantities(value: dict[str, str | int | float]) -> dict[str, str | int | float]:
    for name, quantity in value.items():
        try:
            parse_quantity(quantity)
        except ValueError as exc:
            message = f"invalid quantity {quantity!r} for resource {name!r}"
            raise ValueError(message) from exc
    return value


ResourceList = Annotated[dict[str, str | int | float], AfterValidator(_check_quantities)]


class ResourceModel(BaseModel):
    """Base model for Kubernetes API payloads."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class ObjectMeta(ResourceModel):
    name: str = ""
    namespace: str = ""
    uid: str = ""
    resource_version: str = ""
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None


class CrossVersionObjectReference(ResourceModel):
    """Reference to the workload a VerticalPodAutoscaler scales."""

    api_version: str = ""
    kind: str = ""
    name: str = ""


class PodUpdatePolicy(ResourceModel):
    update_mode: str | None = None


class ContainerResourcePolicy(ResourceModel):
    container_name: str = ""
    mode: str | None = None
    min_allowed: ResourceList = Field(default_factory=dict)
    max_allowed: ResourceList = Field(default_factory=dict)


class PodResourcePolicy(ResourceModel):
    container_policies: list[ContainerResourcePolicy] | None = None

    def with_defaults(self) -> PodResourcePolicy:
        if self.container_policies is None:
            return self.model_copy(update={"container_policies": []})
        return self


class RecommendedContainerResources(ResourceModel):
    container_name: str = ""
    target: ResourceList = Field(default_factory=dict)
    lower_bound: ResourceList = Field(default_factory=dict)
    upper_bound: ResourceList = Field(default_factory=dict)
    uncapped_target: ResourceList = Field(default_factory=dict)


class RecommendedPodResources(ResourceModel):
    container_recommendations: list[RecommendedContainerResources] | None = None

    def with_defaults(self) -> RecommendedPodResources:
        if self.container_recommendations is None:
            return self.model_copy(update={"container_recommendations": []})
        return self


class VerticalPodAutoscalerSpec(ResourceModel):
    target_ref: CrossVersionObjectReference | None = None
    update_policy: PodUpdatePolicy | None = None
    resource_policy: PodResourcePolicy | None = None

    def with_defaults(self) -> VerticalPodAutoscalerSpec:
        """Return the spec with every unset substructure at its zero value."""
        return self.model_copy(
            update={
                "target_ref": self.target_ref or CrossVersionObjectReference(),
                "update_policy": self.update_policy or PodUpdatePolicy(),
                "resource_policy": (self.resource_policy or PodResourcePolicy()).with_defaults(),
            }
        )


class VerticalPodAutoscalerStatus(ResourceModel):
    recommendation: RecommendedPodResources | None = None

    def with_defaults(self) -> VerticalPodAutoscalerStatus:
        return self.model_copy(
            update={
                "recommendation": (self.recommendation or RecommendedPodResources()).with_defaults(),
            }
        )


class VerticalPodAutoscaler(ResourceModel):
    """``autoscaling.k8s.io`` VerticalPodAutoscaler object."""

    api_version: str = ""
    kind: str = ""
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: VerticalPodAutoscalerSpec = Field(default_factory=VerticalPodAutoscalerSpec)
    status: VerticalPodAutoscalerStatus = Field(default_factory=VerticalPodAutoscalerStatus)

    def with_defaults(self) -> VerticalPodAutoscaler:
        """Return the object with every unset optional substructure filled in."""
        return self.model_copy(
            update={
                "spec": self.spec.with_defaults(),
                "status": self.status.with_defaults(),
            }
        )


def decode_object[M: ResourceModel](model: type[M], payload: object) -> M:
    """Decode an API payload into ``model``.

    Parameters
    ----------
    model : type[M]
        Target model.
    payload : object
        Mapping returned by the API, or an instance of ``model``.

    Returns
    -------
    M
        The decoded object.

    Raises
    ------
    MalformedObjectError
        If ``payload`` does not validate against ``model``.
    """
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        message = f"cannot decode {model.__name__}: {exc.error_count()} validation error(s)"
        raise MalformedObjectError(
            message,
            cause=exc,
            context={"model": model.__name__, "errors": str(exc)},
        ) from exc
