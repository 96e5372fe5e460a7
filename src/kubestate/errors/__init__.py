"""Exception hierarchy and stable error codes.

Examples
--------
>>> from kubestate.errors import KubeStateError, ErrorCode
>>> try:
...     raise KubeStateError("Operation failed")
... except KubeStateError as e:
...     assert e.code == ErrorCode.RUNTIME_ERROR
"""

from __future__ import annotations

from kubestate.errors.codes import ErrorCode
from kubestate.errors.exceptions import (
    ConfigurationError,
    DuplicateGeneratorError,
    KubeStateError,
    KubeStateErrorConfig,
    MalformedObjectError,
    ResourceVersionExpiredError,
    UnknownResourceError,
)

__all__ = [
    "ConfigurationError",
    "DuplicateGeneratorError",
    "ErrorCode",
    "KubeStateError",
    "KubeStateErrorConfig",
    "MalformedObjectError",
    "ResourceVersionExpiredError",
    "UnknownResourceError",
]
