############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# response_normalizer.py: Backend response repair and validation
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Turn a Bedrock response body into a canonical chat completion.

Backend fields are never rewritten. Missing canonical fields are back-filled:

- ``model`` comes from the client's original request, not the resolved
  Bedrock id (Bedrock does not always echo the model).
- ``id``, ``object``, ``created`` and ``choices`` get canonical defaults.
- choices carrying only Bedrock's ``stop_reason`` also get ``finish_reason``.
- ``usage`` is rebuilt from Bedrock's token-count headers when absent.
- ``proxy`` metadata already in the body is kept as-is; otherwise the
  pipeline's metadata is attached there.
"""

import time
import uuid
from typing import Any, Dict, Mapping, Optional

from bedrockgate.app.core.canonical_schemas import CanonicalChatRequest
from bedrockgate.app.core.descriptors import BackendResponse
from bedrockgate.app.errors import UnexpectedBackendShape
from bedrockgate.app.logging_config import get_logger

logger = get_logger(__name__)

INPUT_TOKENS_HEADER = "x-amzn-bedrock-input-token-count"
OUTPUT_TOKENS_HEADER = "x-amzn-bedrock-output-token-count"


class ResponseNormalizer:
    """Repair backend response bodies without rewriting backend fields."""

    @staticmethod
    def normalize(
        response: BackendResponse,
        original: CanonicalChatRequest,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Build the canonical response body.

        Raises:
            UnexpectedBackendShape: if the body is not a JSON object.
        """
        if not isinstance(response.body, Mapping):
            logger.warning(
                "unexpected_backend_shape",
                status=response.status_code,
                body_type=type(response.body).__name__,
            )
            raise UnexpectedBackendShape(
                "Expected the backend response body to be a JSON object"
            )

        body: Dict[str, Any] = dict(response.body)

        if not body.get("model") and original.model:
            body["model"] = original.model

        if not body.get("id"):
            body["id"] = original.request_id or f"chatcmpl-{uuid.uuid4().hex[:24]}"
        body.setdefault("object", "chat.completion")
        if body.get("created") is None:
            body["created"] = int(time.time())

        if body.get("choices") is None:
            body["choices"] = []
        elif isinstance(body["choices"], list):
            body["choices"] = [_with_finish_reason(c) for c in body["choices"]]

        if body.get("usage") is None:
            usage = _usage_from_headers(response.headers)
            if usage is not None:
                body["usage"] = usage

        if "proxy" not in body and metadata:
            body["proxy"] = metadata

        return body


def _with_finish_reason(choice: Any) -> Any:
    if isinstance(choice, Mapping) and "finish_reason" not in choice and "stop_reason" in choice:
        return {**choice, "finish_reason": choice["stop_reason"]}
    return choice


def _usage_from_headers(headers: Mapping[str, str]) -> Optional[Dict[str, int]]:
    try:
        prompt_tokens = int(headers[INPUT_TOKENS_HEADER])
        completion_tokens = int(headers[OUTPUT_TOKENS_HEADER])
    except (KeyError, ValueError):
        return None
    return {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
    }
