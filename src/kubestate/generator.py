"""Metric family generators and the per-resource registry that runs them.

A :class:`FamilyGenerator` is an immutable rule producing one metric family
from one object. A :class:`GeneratorRegistry` holds the ordered generators of
one resource kind and invokes them in declaration order, isolating failures
so one broken generator never hides the output of its siblings.

Examples
--------
>>> from kubestate.metric import Family, Metric, MetricType
>>> gen = FamilyGenerator(
...     "kube_example_info", "Example.", MetricType.GAUGE, lambda obj: Family.of([Metric(value=1)])
... )
>>> registry = GeneratorRegistry("examples", [gen])
>>> [family.name for family in registry.invoke(object())]
['kube_example_info']
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kubestate.errors import (
    ConfigurationError,
    DuplicateGeneratorError,
    KubeStateError,
    MalformedObjectError,
)
from kubestate.labels import AllowList
from kubestate.logging import get_logger, with_fields
from kubestate.metric import Family, MetricType

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence

    from kubestate.assembly import ExtractFunc
    from kubestate.prometheus import CounterLike

__all__ = [
    "FamilyGenerator",
    "FamilyGeneratorFilter",
    "GeneratorFactory",
    "GeneratorRegistry",
    "ResourceConfig",
]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ResourceConfig:
    """Per-resource options handed to a store's generator factory."""

    annotations_allowlist: AllowList = field(default_factory=AllowList.none)
    labels_allowlist: AllowList = field(default_factory=AllowList.none)


type GeneratorFactory = Callable[[ResourceConfig], Sequence[FamilyGenerator]]


@dataclass(frozen=True, slots=True)
class FamilyGenerator:
    """Immutable rule producing one metric family from one object.

    Attributes
    ----------
    name : str
        Metric family name, unique within a registry.
    help_text : str
        Help text as declared.
    type : MetricType
        Exposition type.
    generate_func : ExtractFunc
        Extraction function, usually built with
        :func:`kubestate.assembly.wrap_family_func`.
    deprecated_version : str
        Release the family was deprecated in, empty when it is current.
    """

    name: str
    help_text: str
    type: MetricType
    generate_func: ExtractFunc = field(repr=False, compare=False)
    deprecated_version: str = ""

    @property
    def help(self) -> str:
        """Help text as emitted, with the deprecation notice when set."""
        if self.deprecated_version:
            return f"(Deprecated since {self.deprecated_version}) {self.help_text}"
        return self.help_text

    def empty_family(self) -> Family:
        """Return this generator's family without metrics."""
        return Family(name=self.name, help_text=self.help, type=self.type)

    def generate(self, obj: object) -> Family:
        """Run the extraction function and stamp this generator's metadata."""
        family = self.generate_func(obj)
        return Family(
            metrics=family.metrics,
            name=self.name,
            help_text=self.help,
            type=self.type,
        )


@dataclass(frozen=True, slots=True)
class FamilyGeneratorFilter:
    """Select metric families by name.

    Patterns are anchored regular expressions. When an allow-list is set only
    matching families pass and the deny-list is ignored; otherwise every
    family passes except those matching the deny-list.
    """

    allow: tuple[re.Pattern[str], ...] = ()
    deny: tuple[re.Pattern[str], ...] = ()

    @classmethod
    def from_patterns(
        cls,
        allow: Iterable[str] = (),
        deny: Iterable[str] = (),
    ) -> FamilyGeneratorFilter:
        """Compile ``allow`` and ``deny`` patterns.

        Raises
        ------
        ConfigurationError
            If a pattern is not a valid regular expression.
        """
        return cls(allow=_compile_all(allow, "allow"), deny=_compile_all(deny, "deny"))

    def test(self, generator: FamilyGenerator) -> bool:
        """Return whether ``generator`` passes the filter."""
        if self.allow:
            return any(pattern.fullmatch(generator.name) for pattern in self.allow)
        return not any(pattern.fullmatch(generator.name) for pattern in self.deny)


def _compile_all(patterns: Iterable[str], kind: str) -> tuple[re.Pattern[str], ...]:
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            message = f"Invalid metric {kind}list pattern {pattern!r}: {exc}"
            raise ConfigurationError(message, cause=exc, context={"pattern": pattern}) from exc
    return tuple(compiled)


class GeneratorRegistry:
    """Ordered metric family generators of one resource kind.

    Parameters
    ----------
    resource : str
        Resource kind the generators belong to (for example
        ``"verticalpodautoscalers"``).
    generators : Iterable[FamilyGenerator]
        Generators in declaration order.
    failures : CounterLike | None, optional
        Counter incremented with ``resource`` and ``generator`` labels each
        time a generator fails on an object.

    Raises
    ------
    DuplicateGeneratorError
        If two generators share a name.
    """

    __slots__ = ("_failures", "_generators", "_resource")

    def __init__(
        self,
        resource: str,
        generators: Iterable[FamilyGenerator],
        *,
        failures: CounterLike | None = None,
    ) -> None:
        ordered = tuple(generators)
        seen: set[str] = set()
        for generator in ordered:
            if generator.name in seen:
                raise DuplicateGeneratorError(generator.name, resource)
            seen.add(generator.name)
        self._resource = resource
        self._generators = ordered
        self._failures = failures

    @classmethod
    def build(
        cls,
        resource: str,
        factory: GeneratorFactory,
        config: ResourceConfig,
        *,
        family_filter: FamilyGeneratorFilter | None = None,
        failures: CounterLike | None = None,
    ) -> GeneratorRegistry:
        """Build the registry of ``resource`` from its store factory.

        Parameters
        ----------
        resource : str
            Resource kind.
        factory : GeneratorFactory
            Store function returning the declared generators for a config.
        config : ResourceConfig
            Allow-lists of the resource.
        family_filter : FamilyGeneratorFilter | None, optional
            Metric family filter; every family is kept when omitted.
        failures : CounterLike | None, optional
            Failure counter passed to the registry.

        Returns
        -------
        GeneratorRegistry
            Registry holding the accepted generators in declaration order.
        """
        generators = [
            generator
            for generator in factory(config)
            if family_filter is None or family_filter.test(generator)
        ]
        registry = cls(resource, generators, failures=failures)
        logger.debug(
            "Built generator registry",
            extra={
                "operation": "build_registry",
                "resource": resource,
                "families": len(generators),
            },
        )
        return registry

    @property
    def resource(self) -> str:
        return self._resource

    @property
    def generators(self) -> tuple[FamilyGenerator, ...]:
        return self._generators

    def names(self) -> list[str]:
        """Return generator names in declaration order."""
        return [generator.name for generator in self._generators]

    def __len__(self) -> int:
        return len(self._generators)

    def __iter__(self) -> Iterator[FamilyGenerator]:
        return iter(self._generators)

    def invoke(self, obj: object) -> list[Family]:
        """Return one family per generator for ``obj``, in declaration order.

        A generator that raises contributes an empty family; the failure is
        logged and counted and the remaining generators still run.
        """
        return [self._generate(generator, obj) for generator in self._generators]

    def _generate(self, generator: FamilyGenerator, obj: object) -> Family:
        try:
            return generator.generate(obj)
        except Exception as exc:  # noqa: BLE001 - failures are isolated per generator
            self._report_failure(generator, exc)
            return generator.empty_family()

    def _report_failure(self, generator: FamilyGenerator, exc: Exception) -> None:
        if self._failures is not None:
            self._failures.labels(resource=self._resource, generator=generator.name).inc()
        with with_fields(
            logger,
            operation="generate_family",
            status="error",
            resource=self._resource,
            generator=generator.name,
        ) as log:
            if isinstance(exc, MalformedObjectError):
                log.warning("Skipping malformed object: %s", exc.message, extra={"error": exc.to_dict()})
            elif isinstance(exc, KubeStateError):
                log.log(exc.log_level, "Metric family generation failed: %s", exc, extra={"error": exc.to_dict()})
            else:
                log.exception(
                    "Metric family generation failed: %s",
                    exc,
                    extra={"error_type": type(exc).__name__},
                )
