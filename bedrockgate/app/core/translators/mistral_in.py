############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# mistral_in.py: Mistral API format to canonical schema translator
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Mistral API format to canonical schema translator."""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from bedrockgate.app.core.canonical_schemas import (
    CanonicalChatRequest,
    CanonicalFunctionCall,
    CanonicalMessage,
    CanonicalToolCall,
    MessageRole,
)
from bedrockgate.app.errors import InvalidRequest


class MistralInTranslator:
    """Translate Mistral chat-completions requests to canonical format."""

    @staticmethod
    def translate_chat_request(
        data: Any,
        request_id: Optional[str] = None,
    ) -> CanonicalChatRequest:
        """Translate a Mistral chat completion request to canonical format.

        Args:
            data: Raw request body from the client
            request_id: Gateway-assigned request ID

        Returns:
            CanonicalChatRequest

        Raises:
            InvalidRequest: if the body is not a valid chat request
        """
        if not isinstance(data, dict):
            raise InvalidRequest("Request body must be a JSON object")

        model = data.get("model")
        if not isinstance(model, str) or not model.strip():
            raise InvalidRequest("'model' is required and must be a non-empty string")

        raw_messages = data.get("messages")
        if not isinstance(raw_messages, list) or not raw_messages:
            raise InvalidRequest("'messages' is required and must be a non-empty list")

        if data.get("stream"):
            raise InvalidRequest("Streaming is not supported on this endpoint")

        try:
            messages = [
                MistralInTranslator._translate_message(msg) for msg in raw_messages
            ]
            return CanonicalChatRequest(
                model=model,
                messages=messages,
                temperature=data.get("temperature"),
                top_p=data.get("top_p"),
                max_tokens=data.get("max_tokens"),
                stream=False,
                stop=data.get("stop"),
                random_seed=data.get("random_seed"),
                safe_prompt=data.get("safe_prompt", False),
                response_format=data.get("response_format"),
                tools=data.get("tools"),
                tool_choice=data.get("tool_choice"),
                request_id=request_id,
            )
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise InvalidRequest(
                f"Invalid request format: {location}: {first['msg']}"
            ) from e

    @staticmethod
    def _translate_message(msg: Any) -> CanonicalMessage:
        """Translate a single message to canonical format."""
        if not isinstance(msg, dict):
            raise InvalidRequest("Each message must be a JSON object")

        try:
            role = MessageRole(msg.get("role"))
        except ValueError:
            raise InvalidRequest(f"Unsupported message role: {msg.get('role')!r}")

        tool_calls = None
        if msg.get("tool_calls"):
            tool_calls = [
                MistralInTranslator._translate_tool_call(tc) for tc in msg["tool_calls"]
            ]

        content = msg.get("content")
        if isinstance(content, list):
            content = MistralInTranslator._translate_content_chunks(content)

        return CanonicalMessage(
            role=role,
            content=content,
            name=msg.get("name"),
            tool_calls=tool_calls,
            tool_call_id=msg.get("tool_call_id"),
        )

    @staticmethod
    def _translate_tool_call(tc: Any) -> CanonicalToolCall:
        if not isinstance(tc, dict) or not isinstance(tc.get("function", {}), dict):
            raise InvalidRequest("Each tool call must be a JSON object with a 'function' object")
        function = tc.get("function") or {}
        return CanonicalToolCall(
            id=tc.get("id"),
            type=tc.get("type", "function"),
            function=CanonicalFunctionCall(
                name=function.get("name", ""),
                arguments=function.get("arguments", ""),
            ),
        )

    @staticmethod
    def _translate_content_chunks(chunks: List[Any]) -> List[Dict[str, Any]]:
        """Normalize content chunks; bare strings become text chunks."""
        result: List[Dict[str, Any]] = []
        for chunk in chunks:
            if isinstance(chunk, str):
                result.append({"type": "text", "text": chunk})
            elif isinstance(chunk, dict):
                result.append(chunk)
        return result
