############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# test_translators.py: Unit tests for API translation layer
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Unit tests for API translators."""

import json

import pytest

from bedrockgate.app.core.canonical_schemas import (
    CanonicalChatRequest,
    MessageRole,
)
from bedrockgate.app.core.descriptors import UnsignedRequestDescriptor
from bedrockgate.app.core.translators import (
    BedrockMistralOutTranslator,
    MistralInTranslator,
    TranslatorCapability,
)
from bedrockgate.app.errors import InvalidRequest, UnsupportedModel


class TestMistralInTranslator:
    """Tests for Mistral to Canonical translation."""

    def test_basic_chat_request(self, sample_mistral_request):
        """Test basic chat request translation."""
        result = MistralInTranslator.translate_chat_request(sample_mistral_request)

        assert isinstance(result, CanonicalChatRequest)
        assert result.model == "mistral-small-latest"
        assert len(result.messages) == 2
        assert result.messages[0].role == MessageRole.SYSTEM
        assert result.messages[1].content == "Hello!"
        assert result.temperature == 0.7
        assert result.max_tokens == 100
        assert result.stream is False

    def test_request_id_attached(self, sample_mistral_request):
        """Test the gateway request id is carried on the canonical request."""
        result = MistralInTranslator.translate_chat_request(
            sample_mistral_request, request_id="chatcmpl-abc"
        )
        assert result.request_id == "chatcmpl-abc"

    def test_canonical_request_is_immutable(self, sample_mistral_request):
        """Test canonical requests cannot be modified after validation."""
        result = MistralInTranslator.translate_chat_request(sample_mistral_request)
        with pytest.raises(Exception):
            result.model = "other"

    def test_tool_calls_translated(self):
        """Test assistant tool calls and tool results are preserved."""
        data = {
            "model": "mistral-large-latest",
            "messages": [
                {"role": "user", "content": "Weather in Moscow, ID?"},
                {
                    "role": "assistant",
                    "content": "",
                    "tool_calls": [
                        {
                            "id": "call_1",
                            "function": {"name": "get_weather", "arguments": '{"city": "Moscow"}'},
                        }
                    ],
                },
                {"role": "tool", "content": "72F", "tool_call_id": "call_1", "name": "get_weather"},
            ],
            "tools": [{"type": "function", "function": {"name": "get_weather", "parameters": {}}}],
            "tool_choice": "auto",
        }

        result = MistralInTranslator.translate_chat_request(data)

        assert result.messages[1].tool_calls[0].function.name == "get_weather"
        assert result.messages[2].role == MessageRole.TOOL
        assert result.messages[2].tool_call_id == "call_1"
        assert result.tool_choice == "auto"

    def test_string_content_chunks(self):
        """Test bare strings inside a content list become text chunks."""
        data = {
            "model": "mistral-small",
            "messages": [{"role": "user", "content": ["Hello", {"type": "text", "text": "there"}]}],
        }

        result = MistralInTranslator.translate_chat_request(data)

        assert result.messages[0].get_text_content() == "Hello there"

    @pytest.mark.parametrize(
        "data",
        [
            [],
            "not an object",
            {"messages": [{"role": "user", "content": "Hi"}]},
            {"model": "", "messages": [{"role": "user", "content": "Hi"}]},
            {"model": "mistral-small"},
            {"model": "mistral-small", "messages": []},
            {"model": "mistral-small", "messages": ["Hi"]},
            {"model": "mistral-small", "messages": [{"role": "robot", "content": "Hi"}]},
        ],
    )
    def test_malformed_requests_rejected(self, data):
        """Test malformed bodies raise InvalidRequest."""
        with pytest.raises(InvalidRequest):
            MistralInTranslator.translate_chat_request(data)

    def test_out_of_range_parameter_rejected(self):
        """Test schema violations are reported as InvalidRequest."""
        data = {
            "model": "mistral-small",
            "messages": [{"role": "user", "content": "Hi"}],
            "temperature": 5,
        }
        with pytest.raises(InvalidRequest) as exc_info:
            MistralInTranslator.translate_chat_request(data)
        assert "temperature" in exc_info.value.message

    def test_streaming_rejected(self):
        """Test stream=true is refused."""
        data = {
            "model": "mistral-small",
            "messages": [{"role": "user", "content": "Hi"}],
            "stream": True,
        }
        with pytest.raises(InvalidRequest):
            MistralInTranslator.translate_chat_request(data)


class TestBedrockMistralOutTranslator:
    """Tests for Canonical to Bedrock translation."""

    def test_capability(self):
        """Test the translator declares the AWS Mistral route."""
        assert BedrockMistralOutTranslator.CAPABILITY == TranslatorCapability(
            "mistral-ai", "mistral-ai", "aws"
        )

    def test_descriptor_targets_resolved_model(self, canonical_request):
        """Test the descriptor path carries the resolved Bedrock id."""
        descriptor = BedrockMistralOutTranslator().translate_chat_request(canonical_request)

        assert isinstance(descriptor, UnsignedRequestDescriptor)
        assert descriptor.method == "POST"
        assert descriptor.model == "mistral.mistral-small-2402-v1:0"
        assert descriptor.path == "/model/mistral.mistral-small-2402-v1%3A0/invoke"
        assert descriptor.host == "bedrock-runtime.{region}.amazonaws.com"
        assert descriptor.headers["content-type"] == "application/json"
        assert descriptor.missing_fields() == ()

    def test_descriptor_has_no_network_target(self, canonical_request):
        """Test unsigned descriptors carry no protocol or hostname."""
        descriptor = BedrockMistralOutTranslator().translate_chat_request(canonical_request)

        assert not hasattr(descriptor, "protocol")
        assert not hasattr(descriptor, "hostname")

    def test_body_omits_model(self, canonical_request):
        """Test the model travels in the path, not the body."""
        descriptor = BedrockMistralOutTranslator().translate_chat_request(canonical_request)
        payload = json.loads(descriptor.body)

        assert "model" not in payload
        assert payload["messages"][0] == {
            "role": "system",
            "content": "You are a helpful assistant.",
        }
        assert payload["temperature"] == 0.7
        assert payload["max_tokens"] == 100
        assert "stream" not in payload

    def test_unset_parameters_omitted(self, make_canonical):
        """Test parameters the client didn't send are not forwarded."""
        descriptor = BedrockMistralOutTranslator().translate_chat_request(make_canonical())
        payload = json.loads(descriptor.body)

        assert set(payload) == {"messages"}

    def test_tools_forwarded(self, make_canonical):
        """Test tools and tool_choice reach the Bedrock body."""
        tools = [{"type": "function", "function": {"name": "f", "parameters": {}}}]
        descriptor = BedrockMistralOutTranslator().translate_chat_request(
            make_canonical(tools=tools, tool_choice="any")
        )
        payload = json.loads(descriptor.body)

        assert payload["tools"] == tools
        assert payload["tool_choice"] == "any"

    def test_tool_call_arguments_serialized(self):
        """Test dict tool-call arguments are sent as JSON strings."""
        canonical = CanonicalChatRequest(
            model="mistral-large",
            messages=[
                {"role": "user", "content": "Hi"},
                {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {"id": "c1", "function": {"name": "f", "arguments": {"x": 1}}}
                    ],
                },
            ],
        )

        descriptor = BedrockMistralOutTranslator().translate_chat_request(canonical)
        message = json.loads(descriptor.body)["messages"][1]

        assert message["content"] == ""
        assert message["tool_calls"][0] == {
            "id": "c1",
            "function": {"name": "f", "arguments": '{"x": 1}'},
        }

    def test_chunked_content_flattened(self):
        """Test list content is flattened to text for Bedrock."""
        canonical = CanonicalChatRequest(
            model="mistral-small",
            messages=[
                {
                    "role": "user",
                    "content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}],
                }
            ],
        )

        descriptor = BedrockMistralOutTranslator().translate_chat_request(canonical)

        assert json.loads(descriptor.body)["messages"][0]["content"] == "a b"

    def test_unsupported_model_raises(self, make_canonical):
        """Test resolution failures surface from the translator."""
        with pytest.raises(UnsupportedModel):
            BedrockMistralOutTranslator().translate_chat_request(make_canonical("gpt-4"))
