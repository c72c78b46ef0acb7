############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# request_signing.py: AWS Signature Version 4 request signing
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Sign outbound Bedrock requests with AWS SigV4.

``RequestSigner.sign`` is the only producer of ``SignedRequestDescriptor``.
The signed headers, body and path are exactly what the dispatcher sends;
nothing downstream may alter them without invalidating the signature.
"""

import re
from typing import Optional, Tuple

from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from bedrockgate.app.core.descriptors import (
    REGION_PLACEHOLDER,
    SignedRequestDescriptor,
    UnsignedRequestDescriptor,
)
from bedrockgate.app.errors import SigningError
from bedrockgate.app.logging_config import get_logger
from bedrockgate.app.security.credentials import AwsCredentials

logger = get_logger(__name__)

_AUTH_HEADER_RE = re.compile(
    r"^AWS4-HMAC-SHA256 Credential=(?P<credential>[^,]+), "
    r"SignedHeaders=(?P<signed_headers>[^,]+), "
    r"Signature=(?P<signature>[0-9a-f]+)$"
)


class RequestSigner:
    """Produce SigV4-signed descriptors for a credential context."""

    def __init__(
        self,
        service_name: str = "bedrock",
        protocol: str = "https",
        endpoint_host: Optional[str] = None,
    ):
        self._service_name = service_name
        self._protocol = protocol
        self._endpoint_host = endpoint_host

    def sign(
        self,
        unsigned: UnsignedRequestDescriptor,
        credentials: AwsCredentials,
    ) -> SignedRequestDescriptor:
        """
        Sign an outbound request.

        Args:
            unsigned: Backend-dialect request from the translator
            credentials: Credential context to sign with

        Returns:
            SignedRequestDescriptor bound to a concrete protocol and hostname

        Raises:
            SigningError: if the descriptor is incomplete or the credentials
                are unusable
        """
        if not isinstance(unsigned, UnsignedRequestDescriptor):
            raise SigningError("Only unsigned request descriptors can be signed")

        missing = unsigned.missing_fields()
        if missing:
            raise SigningError(
                f"Cannot sign request; missing descriptor fields: {', '.join(missing)}"
            )
        if credentials is None or not credentials.is_complete():
            raise SigningError("Credential context is missing key, secret or region")

        hostname = self._resolve_hostname(unsigned.host, credentials.region)

        headers = dict(unsigned.headers)
        headers["host"] = hostname
        request = AWSRequest(
            method=unsigned.method,
            url=f"{self._protocol}://{hostname}{unsigned.path}",
            data=unsigned.body,
            headers=headers,
        )

        try:
            SigV4Auth(
                Credentials(
                    credentials.access_key_id,
                    credentials.secret_access_key,
                    credentials.session_token,
                ),
                self._service_name,
                credentials.region,
            ).add_auth(request)
        except Exception as e:
            raise SigningError(f"SigV4 signing failed: {e}") from e

        signed_headers = {name: value for name, value in request.headers.items()}
        signature, signed_header_names = _parse_authorization(
            signed_headers.get("Authorization", "")
        )

        logger.debug(
            "request_signed",
            model=unsigned.model,
            hostname=hostname,
            region=credentials.region,
            key=credentials.key_prefix,
            headers=signed_headers,
        )

        return SignedRequestDescriptor(
            method=unsigned.method,
            protocol=self._protocol,
            hostname=hostname,
            path=unsigned.path,
            body=unsigned.body,
            model=unsigned.model,
            headers=signed_headers,
            region=credentials.region,
            signature=signature,
            signed_headers=signed_header_names,
            signing_timestamp=signed_headers.get("X-Amz-Date", ""),
        )

    def _resolve_hostname(self, candidate: str, region: str) -> str:
        if self._endpoint_host:
            return self._endpoint_host
        return candidate.replace(REGION_PLACEHOLDER, region)


def _parse_authorization(header: str) -> Tuple[str, Tuple[str, ...]]:
    """Split a SigV4 Authorization header into (signature, signed header names)."""
    match = _AUTH_HEADER_RE.match(header)
    if match is None:
        raise SigningError("Signer did not produce a SigV4 Authorization header")
    return match.group("signature"), tuple(match.group("signed_headers").split(";"))
