############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# descriptors.py: Outbound request descriptors and target routing
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Outbound request descriptors.

A request travels through the pipeline as immutable values:

``UnsignedRequestDescriptor`` (from the translator)
    -> ``SignedRequestDescriptor`` (from ``RequestSigner`` only)
    -> ``BackendResponse`` (from the dispatcher)

The unsigned descriptor deliberately has no ``protocol`` or ``hostname``;
those exist only once the request is signed, and ``resolve_target`` is the
single place a network target is derived.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from bedrockgate.app.errors import SigningError

REGION_PLACEHOLDER = "{region}"


def _freeze(headers: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(headers or {}))


@dataclass(frozen=True)
class UnsignedRequestDescriptor:
    """A backend-dialect request that has not been authenticated yet."""

    method: str
    host: str  # candidate host; may contain "{region}"
    path: str
    body: Optional[bytes]
    model: str  # resolved backend model id
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "headers", _freeze(self.headers))

    def missing_fields(self) -> Tuple[str, ...]:
        """Names of required fields that are absent."""
        missing = []
        for name in ("method", "host", "path"):
            if not getattr(self, name):
                missing.append(name)
        if self.body is None:
            missing.append("body")
        return tuple(missing)


@dataclass(frozen=True)
class SignedRequestDescriptor:
    """An authenticated request bound to a concrete target.

    Constructed by ``RequestSigner.sign`` and never modified afterwards.
    """

    method: str
    protocol: str
    hostname: str
    path: str
    body: bytes
    model: str
    headers: Mapping[str, str]
    region: str
    signature: str
    signed_headers: Tuple[str, ...]
    signing_timestamp: str

    def __post_init__(self):
        object.__setattr__(self, "headers", _freeze(self.headers))

    @property
    def url(self) -> str:
        return f"{resolve_target(self)}{self.path}"


def resolve_target(descriptor: Any) -> str:
    """Return ``protocol://hostname`` for a signed descriptor.

    Raises:
        SigningError: if ``descriptor`` is not a ``SignedRequestDescriptor``.
    """
    if not isinstance(descriptor, SignedRequestDescriptor):
        raise SigningError("Must sign request before proxying")
    return f"{descriptor.protocol}://{descriptor.hostname}"


@dataclass(frozen=True)
class BackendResponse:
    """A backend response as received; ``body`` may be any JSON value or text."""

    status_code: int
    body: Any
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Lower-case header names so lookups don't depend on the transport
        object.__setattr__(
            self,
            "headers",
            MappingProxyType({k.lower(): v for k, v in (self.headers or {}).items()}),
        )

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300
