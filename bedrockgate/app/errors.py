############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# errors.py: Gateway error taxonomy and client error envelope
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Gateway error taxonomy.

Every failure the signed-dispatch pipeline can detect is raised as a
``GatewayError`` subclass. The application exception handler renders each
one into the uniform envelope::

    {"error": {"message": "...", "type": "...", "code": "...", ...}}
"""

from typing import Any, Dict, List, Optional, Sequence

from fastapi import status


class GatewayError(Exception):
    """Base class for errors surfaced to the client."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "server_error"
    code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code

    def to_envelope(self) -> Dict[str, Any]:
        """Render the client-facing error body."""
        error: Dict[str, Any] = {
            "message": self.message,
            "type": self.error_type,
            "code": self.code,
        }
        error.update(self.details)
        return {"error": error}

    def response_headers(self) -> Dict[str, str]:
        """Extra HTTP headers to send with the error response."""
        return {}


class InvalidRequest(GatewayError):
    """The inbound body is not a valid canonical chat request."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "invalid_request_error"
    code = "invalid_request"


class UnsupportedModel(GatewayError):
    """No alias rule maps the requested model to a backend model id."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "invalid_request_error"
    code = "unsupported_model"

    def __init__(self, requested_model: str, supported: Sequence[str] = ()):
        self.requested_model = requested_model
        self.supported: List[str] = list(supported)
        super().__init__(
            f"Can't map '{requested_model}' to a supported AWS model ID; make sure "
            "you are requesting a Mistral model supported by Amazon Bedrock",
            details={
                "requested_model": requested_model,
                "supported_models": self.supported,
            },
        )


class SigningError(GatewayError):
    """The outbound request could not be signed; it must not be dispatched."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = "proxy_signing_error"
    code = "signing_failed"


class QueueTimeout(GatewayError):
    """Admission wait exceeded its deadline."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_type = "proxy_queue_timeout"
    code = "queue_timeout"

    def __init__(self, key: str, waited: float):
        self.key = key
        self.waited = waited
        super().__init__(
            f"Timed out after {waited:.1f}s waiting for a free slot for '{key}'; "
            "the gateway is overloaded, try again later",
            details={"queue_key": key},
        )

    def response_headers(self) -> Dict[str, str]:
        return {"Retry-After": str(max(1, int(self.waited)))}


class TransportError(GatewayError):
    """Network or backend-level failure while dispatching."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_type = "upstream_error"
    code = "backend_error"

    def __init__(
        self,
        message: str,
        *,
        backend_status: Optional[int] = None,
        backend_detail: Any = None,
    ):
        self.backend_status = backend_status
        self.backend_detail = backend_detail
        details: Dict[str, Any] = {}
        if backend_status is not None:
            details["backend_status"] = backend_status
        if backend_detail is not None:
            details["backend_detail"] = backend_detail

        # Client errors reported by Bedrock (validation, access) keep their status
        client_status = None
        if backend_status is not None and 400 <= backend_status < 500:
            client_status = backend_status

        super().__init__(message, details=details, status_code=client_status)


class UnexpectedBackendShape(GatewayError):
    """The backend body could not be interpreted as a JSON object."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_type = "upstream_error"
    code = "unexpected_backend_shape"


class ClientDisconnected(GatewayError):
    """The client went away before a response was produced."""

    status_code = 499
    error_type = "client_closed_request"
    code = "client_disconnected"
