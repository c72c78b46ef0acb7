############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# bedrock_mistral_out.py: Canonical schema to Bedrock Mistral translator
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Canonical schema to Amazon Bedrock (Mistral chat) translator.

Bedrock's InvokeModel API for Mistral takes the model id in the URL path,
not the body, and only accepts a subset of the Mistral parameters:

    POST /model/{model_id}/invoke      (model id percent-encoded, ":" -> "%3A")
    {"messages": [...], "max_tokens": ..., "temperature": ..., "top_p": ...,
     "tools": [...], "tool_choice": ...}
"""

import json
from typing import Any, Dict, NamedTuple, Optional
from urllib.parse import quote

from bedrockgate.app.core.canonical_schemas import (
    CanonicalChatRequest,
    CanonicalMessage,
    CanonicalToolCall,
)
from bedrockgate.app.core.descriptors import (
    REGION_PLACEHOLDER,
    BackendResponse,
    UnsignedRequestDescriptor,
)
from bedrockgate.app.core.model_aliases import ModelAliasResolver
from bedrockgate.app.core.response_normalizer import ResponseNormalizer

BEDROCK_RUNTIME_HOST = f"bedrock-runtime.{REGION_PLACEHOLDER}.amazonaws.com"


class TranslatorCapability(NamedTuple):
    """The (input dialect, output dialect, backend) a translator serves."""
    input_dialect: str
    output_dialect: str
    service: str


class BedrockMistralOutTranslator:
    """Translate canonical requests to the Bedrock Mistral chat dialect."""

    CAPABILITY = TranslatorCapability("mistral-ai", "mistral-ai", "aws")

    def __init__(self, resolver: Optional[ModelAliasResolver] = None):
        self._resolver = resolver or ModelAliasResolver()

    @property
    def resolver(self) -> ModelAliasResolver:
        return self._resolver

    def translate_chat_request(
        self, canonical: CanonicalChatRequest
    ) -> UnsignedRequestDescriptor:
        """Build the unsigned Bedrock request for a canonical chat request.

        Model resolution runs last so the descriptor only ever carries a
        resolved Bedrock id.

        Raises:
            UnsupportedModel: if the requested model has no Bedrock mapping
        """
        payload: Dict[str, Any] = {
            "messages": [self._translate_message(msg) for msg in canonical.messages],
        }

        if canonical.max_tokens is not None:
            payload["max_tokens"] = canonical.max_tokens
        if canonical.temperature is not None:
            payload["temperature"] = canonical.temperature
        if canonical.top_p is not None:
            payload["top_p"] = canonical.top_p
        if canonical.tools:
            payload["tools"] = canonical.tools
        if canonical.tool_choice is not None:
            payload["tool_choice"] = canonical.tool_choice

        model_id = self._resolver.resolve(canonical.model)

        return UnsignedRequestDescriptor(
            method="POST",
            host=BEDROCK_RUNTIME_HOST,
            path=f"/model/{quote(model_id, safe='')}/invoke",
            headers={
                "content-type": "application/json",
                "accept": "application/json",
            },
            body=json.dumps(payload).encode("utf-8"),
            model=model_id,
        )

    def translate_chat_response(
        self,
        response: BackendResponse,
        original: CanonicalChatRequest,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Translate a Bedrock chat response to the canonical body."""
        return ResponseNormalizer.normalize(response, original, metadata)

    @staticmethod
    def _translate_message(msg: CanonicalMessage) -> Dict[str, Any]:
        """Translate canonical message to Bedrock Mistral format."""
        result: Dict[str, Any] = {"role": msg.role.value}

        # Bedrock's Mistral chat models take plain-text content only
        if isinstance(msg.content, list):
            result["content"] = msg.get_text_content()
        elif msg.content is not None:
            result["content"] = msg.content
        else:
            result["content"] = ""

        if msg.tool_calls:
            result["tool_calls"] = [
                BedrockMistralOutTranslator._translate_tool_call(tc)
                for tc in msg.tool_calls
            ]
        if msg.tool_call_id:
            result["tool_call_id"] = msg.tool_call_id
        if msg.name:
            result["name"] = msg.name

        return result

    @staticmethod
    def _translate_tool_call(tc: CanonicalToolCall) -> Dict[str, Any]:
        arguments = tc.function.arguments
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        call: Dict[str, Any] = {
            "function": {"name": tc.function.name, "arguments": arguments},
        }
        if tc.id:
            call["id"] = tc.id
        return call
