############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# canonical_schemas.py: Client-facing canonical request/response schemas
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Canonical request and model-listing schemas.

The canonical schema is the Mistral chat-completions shape presented to
clients. Requests are frozen once parsed so no pipeline stage can mutate the
client's original values; backend-specific payloads are always built as new
objects from them.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Message roles in a conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class CanonicalFunctionCall(BaseModel):
    """Function invocation inside an assistant tool call."""
    model_config = ConfigDict(frozen=True)

    name: str
    arguments: Union[str, Dict[str, Any]]


class CanonicalToolCall(BaseModel):
    """Tool call emitted by the assistant."""
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    type: str = "function"
    function: CanonicalFunctionCall


class CanonicalMessage(BaseModel):
    """Canonical message representation."""
    model_config = ConfigDict(frozen=True)

    role: MessageRole
    # str, or a list of content chunks ({"type": "text", "text": ...})
    content: Union[str, List[Dict[str, Any]], None] = None
    name: Optional[str] = None
    tool_calls: Optional[List[CanonicalToolCall]] = None
    tool_call_id: Optional[str] = None

    def get_text_content(self) -> str:
        """Extract text content from message."""
        if self.content is None:
            return ""
        if isinstance(self.content, str):
            return self.content
        return " ".join(
            block.get("text", "")
            for block in self.content
            if block.get("type") == "text"
        )


class CanonicalChatRequest(BaseModel):
    """Canonical Mistral chat completion request."""
    model_config = ConfigDict(frozen=True)

    # Required
    model: str = Field(min_length=1)
    messages: List[CanonicalMessage] = Field(min_length=1)

    # Optional parameters
    temperature: Optional[float] = Field(default=None, ge=0, le=1.5)
    top_p: Optional[float] = Field(default=None, ge=0, le=1)
    max_tokens: Optional[int] = Field(default=None, ge=1)
    stream: bool = False
    stop: Optional[Union[str, List[str]]] = None
    random_seed: Optional[int] = None
    safe_prompt: bool = False
    response_format: Optional[Dict[str, Any]] = None

    # Function calling
    tools: Optional[List[Dict[str, Any]]] = None
    tool_choice: Optional[Union[str, Dict[str, Any]]] = None

    # Gateway metadata (not sent to backend)
    request_id: Optional[str] = None

    def get_system_prompt(self) -> Optional[str]:
        """Extract system prompt from messages."""
        for msg in self.messages:
            if msg.role == MessageRole.SYSTEM:
                return msg.get_text_content()
        return None


# Model Information
class CanonicalModelInfo(BaseModel):
    """Model information for /v1/models listing."""
    id: str
    object: str = "model"
    created: int
    owned_by: str = "mistralai"
    aliases: Optional[List[str]] = None


class CanonicalModelList(BaseModel):
    """List of available models."""
    object: str = "list"
    data: List[CanonicalModelInfo]
