############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# credentials.py: AWS credential parsing and selection
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""AWS credential contexts for request signing."""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from bedrockgate.app.errors import SigningError

# Credential string format: ACCESS_KEY_ID:SECRET_ACCESS_KEY:REGION
CREDENTIAL_SEPARATOR = ":"


@dataclass(frozen=True)
class AwsCredentials:
    """One AWS identity and the region its requests are signed for."""

    access_key_id: str
    secret_access_key: str
    region: str
    session_token: Optional[str] = None

    @classmethod
    def parse(cls, raw: str) -> "AwsCredentials":
        """
        Parse ``ACCESS_KEY_ID:SECRET_ACCESS_KEY:REGION``.

        Raises:
            SigningError: if the string doesn't have exactly three parts
        """
        parts = [part.strip() for part in raw.strip().split(CREDENTIAL_SEPARATOR)]
        if len(parts) != 3 or not all(parts):
            raise SigningError(
                "AWS credential must be formatted ACCESS_KEY_ID:SECRET_ACCESS_KEY:REGION"
            )
        return cls(access_key_id=parts[0], secret_access_key=parts[1], region=parts[2])

    def is_complete(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key and self.region)

    @property
    def key_prefix(self) -> str:
        """Short identifier safe to log."""
        return f"{self.access_key_id[:8]}..."

    def __repr__(self) -> str:
        return f"AwsCredentials(key={self.key_prefix}, region={self.region})"


class CredentialPool:
    """Hands out configured credentials round-robin."""

    def __init__(self, credentials: Iterable[AwsCredentials] = ()):
        self._credentials: List[AwsCredentials] = list(credentials)
        self._next = 0

    @classmethod
    def from_strings(cls, raw_credentials: Iterable[str]) -> "CredentialPool":
        return cls(AwsCredentials.parse(raw) for raw in raw_credentials if raw.strip())

    def __len__(self) -> int:
        return len(self._credentials)

    def get(self) -> AwsCredentials:
        """
        Get the next credential.

        Raises:
            SigningError: if no credentials are configured
        """
        if not self._credentials:
            raise SigningError("No AWS credentials are configured for Bedrock")
        credentials = self._credentials[self._next % len(self._credentials)]
        self._next = (self._next + 1) % len(self._credentials)
        return credentials

    def regions(self) -> List[str]:
        """Distinct regions covered by the pool."""
        return sorted({c.region for c in self._credentials})
