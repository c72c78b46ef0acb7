############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# pipeline.py: Signed-dispatch pipeline for Bedrock chat completions
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Signed-dispatch pipeline.

Stage order for one request:

    translate + resolve model      (before admission)
    -> acquire admission slot
    -> pick credentials -> sign
    -> dispatch
    -> normalize response
    -> release admission slot

Each stage hands an immutable value to the next. The slot is held by
``AdmissionQueue.slot`` so it is released exactly once on success, error or
cancellation, and only after the response has been normalized.
"""

import asyncio
import time
from typing import Any, Dict, Optional

from bedrockgate.app.core.canonical_schemas import CanonicalChatRequest
from bedrockgate.app.core.descriptors import BackendResponse
from bedrockgate.app.core.model_aliases import ModelAliasResolver
from bedrockgate.app.core.scheduler.queue import AdmissionQueue
from bedrockgate.app.core.translators import (
    BedrockMistralOutTranslator,
    TranslatorCapability,
)
from bedrockgate.app.errors import GatewayError, TransportError
from bedrockgate.app.logging_config import get_logger
from bedrockgate.app.metrics import BACKEND_LATENCY, QUEUE_WAIT, REQUEST_COUNT
from bedrockgate.app.security.credentials import CredentialPool
from bedrockgate.app.security.request_signing import RequestSigner
from bedrockgate.app.services.dispatcher import Dispatcher
from bedrockgate.app.settings import Settings, get_settings

logger = get_logger(__name__)

AWS_MISTRAL_ROUTE = TranslatorCapability("mistral-ai", "mistral-ai", "aws")

# Native ids outside the alias table share one admission queue
PASSTHROUGH_QUEUE_KEY = "mistral.*"


class SignedDispatchPipeline:
    """
    Handles chat completion requests for one configured route.

    Responsibilities:
    - Translate canonical requests to the backend dialect
    - Bound backend concurrency through the admission queue
    - Sign and dispatch requests
    - Normalize backend responses
    """

    def __init__(
        self,
        translator: BedrockMistralOutTranslator,
        queue: AdmissionQueue,
        signer: RequestSigner,
        dispatcher: Dispatcher,
        credentials: CredentialPool,
        route: TranslatorCapability = AWS_MISTRAL_ROUTE,
        queue_timeout: Optional[float] = None,
    ):
        if translator.CAPABILITY != route:
            raise ValueError(
                f"Translator {type(translator).__name__} serves {translator.CAPABILITY}, "
                f"not route {route}"
            )
        self.route = route
        self.translator = translator
        self.queue = queue
        self.signer = signer
        self.dispatcher = dispatcher
        self.credentials = credentials
        self._queue_timeout = queue_timeout

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SignedDispatchPipeline":
        """Build the pipeline for the AWS Mistral route from settings."""
        settings = settings or get_settings()
        return cls(
            translator=BedrockMistralOutTranslator(
                ModelAliasResolver(validate_native_ids=settings.validate_native_model_ids)
            ),
            queue=AdmissionQueue(capacity=settings.get_queue_capacity),
            signer=RequestSigner(
                service_name=settings.bedrock_service_name,
                protocol=settings.bedrock_protocol,
                endpoint_host=settings.bedrock_endpoint_host,
            ),
            dispatcher=Dispatcher(timeout=float(settings.backend_request_timeout)),
            credentials=CredentialPool.from_strings(settings.aws_credentials),
            queue_timeout=settings.queue_timeout,
        )

    async def chat_completion(self, request: CanonicalChatRequest) -> Dict[str, Any]:
        """
        Run one chat completion through the pipeline.

        Args:
            request: Canonical chat request from the client

        Returns:
            Canonical chat completion body

        Raises:
            GatewayError: any pipeline failure, already classified
        """
        start_time = time.monotonic()
        # Resolution failures surface here, before a slot is taken
        unsigned = self.translator.translate_chat_request(request)
        backend_model = unsigned.model
        key = self.queue_key(backend_model)

        try:
            async with self.queue.slot(key, self._queue_timeout) as ticket:
                queue_delay = ticket.get_queue_time_seconds()
                QUEUE_WAIT.labels(model=key).observe(queue_delay)

                credentials = self.credentials.get()
                signed = self.signer.sign(unsigned, credentials)

                dispatch_start = time.monotonic()
                response = await self.dispatcher.send(signed)
                BACKEND_LATENCY.labels(model=key).observe(time.monotonic() - dispatch_start)

                self._raise_for_status(response, backend_model)

                body = self.translator.translate_chat_response(
                    response,
                    request,
                    metadata={
                        "service": self.route.service,
                        "backend_model": backend_model,
                        "region": signed.region,
                        "queue_delay_ms": int(queue_delay * 1000),
                    },
                )
        except GatewayError as e:
            REQUEST_COUNT.labels(model=key, outcome=e.code).inc()
            raise
        except asyncio.CancelledError:
            REQUEST_COUNT.labels(model=key, outcome="cancelled").inc()
            raise

        REQUEST_COUNT.labels(model=key, outcome="success").inc()
        logger.info(
            "chat_completion_done",
            backend_model=backend_model,
            region=signed.region,
            queue_delay_ms=int(queue_delay * 1000),
            elapsed_ms=int((time.monotonic() - start_time) * 1000),
        )
        return body

    def queue_key(self, backend_model: str) -> str:
        """Admission queue (and metric label) for a resolved backend id."""
        if self.translator.resolver.is_known(backend_model):
            return backend_model
        return PASSTHROUGH_QUEUE_KEY

    @staticmethod
    def _raise_for_status(response: BackendResponse, model: str) -> None:
        """Convert a non-2xx backend response into a TransportError."""
        if response.is_success:
            return

        detail = response.body
        if isinstance(detail, dict):
            detail = detail.get("message") or detail.get("Message") or detail
        logger.warning(
            "backend_error_status",
            backend_model=model,
            status=response.status_code,
            error_type=response.headers.get("x-amzn-errortype"),
            detail=detail,
        )
        raise TransportError(
            f"Bedrock returned HTTP {response.status_code}",
            backend_status=response.status_code,
            backend_detail=detail,
        )

    async def close(self) -> None:
        await self.dispatcher.close()


# Global pipeline instance
_pipeline: Optional[SignedDispatchPipeline] = None


def get_pipeline() -> SignedDispatchPipeline:
    """Get the global pipeline instance."""
    global _pipeline
    if _pipeline is None:
        _pipeline = SignedDispatchPipeline.from_settings()
    return _pipeline


async def init_pipeline() -> SignedDispatchPipeline:
    """Initialize the global pipeline."""
    pipeline = get_pipeline()
    logger.info(
        "pipeline_initialized",
        route=list(pipeline.route),
        credentials=len(pipeline.credentials),
        regions=pipeline.credentials.regions(),
    )
    if not len(pipeline.credentials):
        logger.warning("no_aws_credentials_configured")
    return pipeline


async def shutdown_pipeline() -> None:
    """Shutdown the global pipeline."""
    global _pipeline
    if _pipeline:
        await _pipeline.close()
        _pipeline = None
