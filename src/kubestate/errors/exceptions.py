"""Typed exception hierarchy for kubestate.

All kubestate exceptions inherit from :class:`KubeStateError`, which carries
a stable :class:`~kubestate.errors.codes.ErrorCode`, a log level, an optional
cause and a context mapping that is rendered into structured log records.

Examples
--------
>>> from kubestate.errors import MalformedObjectError, ErrorCode
>>> try:
...     raise MalformedObjectError("expected VerticalPodAutoscaler, got dict")
... except MalformedObjectError as e:
...     assert e.code == ErrorCode.MALFORMED_OBJECT
...     assert e.to_dict()["code"] == "malformed-object"
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from kubestate.errors.codes import ErrorCode

__all__ = [
    "ConfigurationError",
    "DuplicateGeneratorError",
    "KubeStateError",
    "KubeStateErrorConfig",
    "MalformedObjectError",
    "ResourceVersionExpiredError",
    "UnknownResourceError",
]


@dataclass(slots=True)
class KubeStateErrorConfig:
    """Configuration options used when instantiating :class:`KubeStateError`."""

    code: ErrorCode = ErrorCode.RUNTIME_ERROR
    log_level: int = logging.ERROR
    cause: Exception | None = None
    context: Mapping[str, object] | None = None


class KubeStateError(Exception):
    """Base exception for all kubestate errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    config : KubeStateErrorConfig | None, optional
        Structured configuration for the error (code, log level, cause and
        context). Defaults to None.

    Attributes
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode
        Error code enum value.
    log_level : int
        Logging level used when the error is reported.
    context : dict[str, object]
        Additional context for error details.

    Examples
    --------
    >>> error = KubeStateError("boom")
    >>> str(error)
    'KubeStateError[runtime-error]: boom'
    """

    def __init__(self, message: str, *, config: KubeStateErrorConfig | None = None) -> None:
        resolved = config or KubeStateErrorConfig()
        super().__init__(message)
        self.message = message
        self.code = resolved.code
        self.log_level = resolved.log_level
        self.context = dict(resolved.context) if resolved.context else {}
        if resolved.cause is not None:
            self.__cause__ = resolved.cause

    def to_dict(self) -> dict[str, object]:
        """Render the error as a JSON-safe mapping for structured logs.

        Returns
        -------
        dict[str, object]
            Mapping with ``type``, ``code``, ``message`` and, when present,
            ``context`` and ``cause`` entries.
        """
        payload: dict[str, object] = {
            "type": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
        }
        if self.context:
            payload["context"] = {key: str(value) for key, value in self.context.items()}
        if self.__cause__ is not None:
            payload["cause"] = type(self.__cause__).__name__
        return payload

    def __str__(self) -> str:
        """Return formatted error string.

        Returns
        -------
        str
            Formatted error string (e.g.,
            ``"MalformedObjectError[malformed-object]: expected ..."``).
        """
        base = f"{self.__class__.__name__}[{self.code.value}]: {self.message}"
        if self.__cause__:
            base += f" (caused by: {type(self.__cause__).__name__})"
        return base


class MalformedObjectError(KubeStateError):
    """Object of an unexpected concrete variant or shape.

    Raised at the adapter boundary when a generator receives an object that is
    not the resource model it was declared for, and while decoding API
    payloads that fail model validation. Reported at WARNING level.
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            config=KubeStateErrorConfig(
                code=ErrorCode.MALFORMED_OBJECT,
                log_level=logging.WARNING,
                cause=cause,
                context=context,
            ),
        )


class ConfigurationError(KubeStateError):
    """Invalid settings, allow-lists or metric filters.

    Examples
    --------
    >>> raise ConfigurationError("invalid metric allowlist pattern")
    Traceback (most recent call last):
    ...
    kubestate.errors.exceptions.ConfigurationError: ConfigurationError[configuration-error]: invalid metric allowlist pattern
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            config=KubeStateErrorConfig(
                code=ErrorCode.CONFIGURATION_ERROR,
                cause=cause,
                context=context,
            ),
        )


class DuplicateGeneratorError(KubeStateError):
    """Two family generators in one registry share a name."""

    def __init__(self, name: str, resource: str) -> None:
        super().__init__(
            f"Duplicate metric family generator {name!r} for resource {resource!r}",
            config=KubeStateErrorConfig(
                code=ErrorCode.DUPLICATE_GENERATOR,
                context={"generator": name, "resource": resource},
            ),
        )


class UnknownResourceError(KubeStateError):
    """Configuration names a resource kind without a registered store."""

    def __init__(self, resource: str, available: tuple[str, ...] = ()) -> None:
        super().__init__(
            f"No store registered for resource {resource!r}",
            config=KubeStateErrorConfig(
                code=ErrorCode.UNKNOWN_RESOURCE,
                context={"resource": resource, "available": ",".join(available)},
            ),
        )


class ResourceVersionExpiredError(KubeStateError):
    """Watch cursor is stale; the consumer must re-list to resynchronize.

    Parameters
    ----------
    resource_version : str | None
        The cursor the watch was started from.
    cause : Exception | None, optional
        The API error reporting ``410 Gone``. Defaults to None.
    """

    def __init__(self, resource_version: str | None, cause: Exception | None = None) -> None:
        self.resource_version = resource_version
        super().__init__(
            f"Resource version {resource_version!r} is too old, re-list required",
            config=KubeStateErrorConfig(
                code=ErrorCode.RESOURCE_VERSION_EXPIRED,
                log_level=logging.INFO,
                cause=cause,
                context={"resource_version": resource_version or ""},
            ),
        )
