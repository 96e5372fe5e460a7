"""Stable error codes for kubestate exceptions.

Codes are frozen once released so log pipelines and dashboards that match on
them keep working across versions.

Examples
--------
>>> from kubestate.errors.codes import ErrorCode
>>> ErrorCode.MALFORMED_OBJECT == "malformed-object"
True
"""

from __future__ import annotations

from enum import StrEnum

__all__ = ["ErrorCode"]


class ErrorCode(StrEnum):
    """Stable error codes for kubestate exceptions.

    Error codes are organized by category:
    - Object decoding
    - Configuration and registry construction
    - List/watch access

    Attributes
    ----------
    MALFORMED_OBJECT
        An object of an unexpected shape or variant reached a generator.
    CONFIGURATION_ERROR
        Settings or filters failed validation.
    DUPLICATE_GENERATOR
        Two generators in one registry share a name.
    UNKNOWN_RESOURCE
        A resource kind has no registered store.
    RESOURCE_VERSION_EXPIRED
        A watch cursor is too old and the caller must re-list.
    RUNTIME_ERROR
        Generic runtime failure.
    """

    # Object decoding
    MALFORMED_OBJECT = "malformed-object"

    # Configuration & registry
    CONFIGURATION_ERROR = "configuration-error"
    DUPLICATE_GENERATOR = "duplicate-generator"
    UNKNOWN_RESOURCE = "unknown-resource"

    # List/watch
    RESOURCE_VERSION_EXPIRED = "resource-version-expired"

    RUNTIME_ERROR = "runtime-error"
