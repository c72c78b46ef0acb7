############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# test_settings.py: Unit tests for configuration and logging helpers
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Unit tests for Settings and log sanitizing."""

from bedrockgate.app.logging_config import REDACTED, sanitize_headers_for_log
from bedrockgate.app.services.pipeline import SignedDispatchPipeline
from bedrockgate.app.settings import Settings


class TestSettings:
    """Tests for environment parsing."""

    def test_defaults(self, monkeypatch):
        """Test defaults for the Bedrock route."""
        monkeypatch.delenv("AWS_CREDENTIALS", raising=False)
        settings = Settings()

        assert settings.route_prefix == "/proxy/aws/mistral"
        assert settings.aws_credentials == []
        assert settings.validate_native_model_ids is False
        assert settings.get_queue_capacity("anything") == settings.queue_max_concurrent

    def test_comma_separated_credentials(self, monkeypatch):
        """Test credentials may be given as a comma-separated list."""
        monkeypatch.setenv("AWS_CREDENTIALS", "A:S:us-east-1, B:S:us-west-2")

        settings = Settings()

        assert settings.aws_credentials == ["A:S:us-east-1", "B:S:us-west-2"]

    def test_json_credentials(self, monkeypatch):
        """Test credentials may be given as a JSON array."""
        monkeypatch.setenv("AWS_CREDENTIALS", '["A:S:us-east-1"]')

        assert Settings().aws_credentials == ["A:S:us-east-1"]

    def test_queue_overrides(self, monkeypatch):
        """Test per-model concurrency overrides in key=value form."""
        monkeypatch.setenv("QUEUE_MAX_CONCURRENT", "3")
        monkeypatch.setenv(
            "QUEUE_MAX_CONCURRENT_OVERRIDES", "mistral.mistral-large-2407-v1:0=1"
        )

        settings = Settings()

        assert settings.get_queue_capacity("mistral.mistral-large-2407-v1:0") == 1
        assert settings.get_queue_capacity("mistral.mistral-small-2402-v1:0") == 3

    def test_pipeline_from_settings(self, monkeypatch):
        """Test the pipeline is assembled from configuration."""
        monkeypatch.setenv("AWS_CREDENTIALS", "A:S:eu-central-1")
        monkeypatch.setenv("BEDROCK_ENDPOINT_HOST", "localhost:4566")

        pipeline = SignedDispatchPipeline.from_settings(Settings())

        assert len(pipeline.credentials) == 1
        assert pipeline.credentials.regions() == ["eu-central-1"]
        assert pipeline.route.service == "aws"


class TestHeaderSanitizing:
    """Tests for redacting credentials in logs."""

    def test_sensitive_headers_redacted(self):
        """Test signing headers never reach logs in clear text."""
        headers = {
            "Authorization": "AWS4-HMAC-SHA256 Credential=...",
            "X-Amz-Security-Token": "token",
            "X-Amz-Date": "20240101T000000Z",
            "content-type": "application/json",
        }

        sanitized = sanitize_headers_for_log(headers)

        assert sanitized["Authorization"] == REDACTED
        assert sanitized["X-Amz-Security-Token"] == REDACTED
        assert sanitized["X-Amz-Date"] == "20240101T000000Z"
        assert sanitized["content-type"] == "application/json"
