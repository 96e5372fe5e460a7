"""Runtime settings with typed configuration and fail-fast validation.

:class:`KubeStateSettings` reads ``KUBESTATE_*`` environment variables (or
keyword overrides) and validates them once at start-up. List settings accept
comma-separated strings; allow-list mappings accept the familiar flag syntax
``resource=[key1,key2],other=[*]`` as well as JSON.

Examples
--------
>>> from kubestate.settings import KubeStateSettings
>>> settings = KubeStateSettings(
...     metric_labels_allowlist="verticalpodautoscalers=[app.kubernetes.io/name]"
... )
>>> settings.resource_config("verticalpodautoscalers").labels_allowlist.keys
('app.kubernetes.io/name',)
"""

from __future__ import annotations

import json
import re
from typing import Annotated, Final, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from kubestate.errors import ConfigurationError
from kubestate.generator import FamilyGeneratorFilter, ResourceConfig
from kubestate.labels import AllowList
from kubestate.listwatch import ALL_NAMESPACES
from kubestate.logging import get_logger

__all__ = [
    "KubeStateSettings",
    "load_settings",
    "parse_allowlist_flag",
]

logger = get_logger(__name__)

_ALLOWLIST_ENTRY: Final[re.Pattern[str]] = re.compile(r"\s*([^=,\[\]\s]+)\s*=\s*\[([^\[\]]*)\]\s*(?:,|$)")


def parse_allowlist_flag(value: str) -> dict[str, list[str]]:
    """Parse ``resource=[key1,key2],other=[*]`` into a mapping.

    Raises
    ------
    ValueError
        If ``value`` does not follow the flag syntax.

    Examples
    --------
    >>> parse_allowlist_flag("pods=[app,team],verticalpodautoscalers=[*]")
    {'pods': ['app', 'team'], 'verticalpodautoscalers': ['*']}
    """
    parsed: dict[str, list[str]] = {}
    position = 0
    text = value.strip()
    while position < len(text):
        match = _ALLOWLIST_ENTRY.match(text, position)
        if match is None:
            message = f"invalid allowlist {value!r}: expected resource=[key,...] entries"
            raise ValueError(message)
        resource, keys = match.groups()
        parsed.setdefault(resource, []).extend(
            key.strip() for key in keys.split(",") if key.strip()
        )
        position = match.end()
    return parsed


def _split_list(value: object) -> object:
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            return json.loads(text)
        return [item.strip() for item in text.split(",")]
    return value


class KubeStateSettings(BaseSettings):
    """Configuration of the resources to expose and their cardinality limits.

    Attributes
    ----------
    resources : list[str]
        Resource kinds to generate metrics for.
    namespaces : list[str]
        Namespaces to list and watch; an empty string means all namespaces.
    metric_annotations_allowlist : dict[str, list[str]]
        Per resource, the annotation keys converted to labels (``*`` for all).
    metric_labels_allowlist : dict[str, list[str]]
        Per resource, the label keys converted to labels (``*`` for all).
    metric_allowlist : list[str]
        Regular expressions of metric families to keep.
    metric_denylist : list[str]
        Regular expressions of metric families to drop; ignored when an
        allow-list is set.
    request_timeout : float | None
        Client-side timeout of list and watch calls, in seconds.
    log_level : str
        Logging level name.
    log_format : Literal["json", "text"]
        Log output format.
    """

    model_config = SettingsConfigDict(
        env_prefix="KUBESTATE_",
        extra="forbid",
        frozen=True,
        case_sensitive=False,
    )

    resources: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["verticalpodautoscalers"],
        description="Resource kinds to generate metrics for",
    )
    namespaces: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [ALL_NAMESPACES],
        description="Namespaces to watch (empty string for all namespaces)",
    )
    metric_annotations_allowlist: Annotated[dict[str, list[str]], NoDecode] = Field(
        default_factory=dict,
        description="Annotation keys converted to labels, per resource",
    )
    metric_labels_allowlist: Annotated[dict[str, list[str]], NoDecode] = Field(
        default_factory=dict,
        description="Label keys converted to labels, per resource",
    )
    metric_allowlist: Annotated[list[str], NoDecode] = Field(
        default_factory=list, description="Metric family name patterns to keep"
    )
    metric_denylist: Annotated[list[str], NoDecode] = Field(
        default_factory=list, description="Metric family name patterns to drop"
    )
    request_timeout: float | None = Field(
        default=None, gt=0, description="Client-side timeout of API calls in seconds"
    )
    log_level: str = Field(default="INFO", description="Logging level name")
    log_format: Literal["json", "text"] = Field(default="json", description="Log format")

    def __init__(self, **overrides: object) -> None:
        """Initialise settings, converting validation failures to ConfigurationError."""
        try:
            super().__init__(**overrides)  # type: ignore[arg-type]
        except Exception as exc:
            msg = f"Configuration validation failed: {exc}"
            logger.exception(
                "Settings validation failed",
                extra={"operation": "load_settings", "error_type": type(exc).__name__},
            )
            raise ConfigurationError(msg, cause=exc, context={"validation_error": str(exc)}) from exc

    @field_validator("resources", "metric_allowlist", "metric_denylist", mode="before")
    @classmethod
    def _parse_list(cls, value: object) -> object:
        value = _split_list(value)
        if isinstance(value, list):
            return [item for item in value if not isinstance(item, str) or item]
        return value

    @field_validator("namespaces", mode="before")
    @classmethod
    def _parse_namespaces(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip().startswith("["):
            # Separators without a name ("default,") are dropped.
            value = [item.strip() for item in value.split(",") if item.strip()]
        else:
            value = _split_list(value)
        if not isinstance(value, list):
            return value
        if ALL_NAMESPACES in value and any(value):
            message = "namespaces cannot mix the all-namespaces entry with named namespaces"
            raise ValueError(message)
        return [item for item in value if item != ALL_NAMESPACES] or [ALL_NAMESPACES]

    @field_validator("metric_annotations_allowlist", "metric_labels_allowlist", mode="before")
    @classmethod
    def _parse_allowlist(cls, value: object) -> object:
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("{"):
                return json.loads(text)
            return parse_allowlist_flag(text)
        return value

    def resource_config(self, resource: str) -> ResourceConfig:
        """Return the allow-lists of ``resource``; unlisted resources allow nothing."""
        return ResourceConfig(
            annotations_allowlist=AllowList.parse(self.metric_annotations_allowlist.get(resource)),
            labels_allowlist=AllowList.parse(self.metric_labels_allowlist.get(resource)),
        )

    def family_filter(self) -> FamilyGeneratorFilter:
        """Compile the metric allow-list and deny-list.

        Raises
        ------
        ConfigurationError
            If a pattern is invalid.
        """
        return FamilyGeneratorFilter.from_patterns(self.metric_allowlist, self.metric_denylist)


def load_settings(**overrides: object) -> KubeStateSettings:
    """Load :class:`KubeStateSettings` with optional overrides."""
    return KubeStateSettings(**overrides)
