############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# v1_mistral.py: Mistral-compatible API endpoints (/v1/*)
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Mistral-compatible API endpoints served from Amazon Bedrock."""

import asyncio
import time
import uuid
from typing import Any, Awaitable, Dict, Optional, TypeVar

from fastapi import APIRouter, Depends, Request

from bedrockgate.app.core.canonical_schemas import CanonicalModelInfo, CanonicalModelList
from bedrockgate.app.core.translators import MistralInTranslator
from bedrockgate.app.errors import ClientDisconnected, InvalidRequest
from bedrockgate.app.logging_config import bind_request_context, get_logger
from bedrockgate.app.services.pipeline import SignedDispatchPipeline, get_pipeline
from bedrockgate.app.settings import get_settings

logger = get_logger(__name__)
router = APIRouter(prefix="/v1", tags=["mistral"])

T = TypeVar("T")


async def run_until_disconnected(
    request: Request,
    awaitable: Awaitable[T],
    poll_interval: Optional[float] = None,
) -> T:
    """
    Await ``awaitable`` while watching for the client to go away.

    If the client disconnects first the work is cancelled, which releases
    any admission slot it holds, and ClientDisconnected is raised.
    """
    if poll_interval is None:
        poll_interval = get_settings().disconnect_poll_interval

    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("client_disconnected")
                task.cancel()
                await asyncio.wait({task})
                if not task.cancelled():
                    # Finished before the cancel landed; drain the outcome
                    task.exception()
                raise ClientDisconnected("Client closed the connection before completion")
    finally:
        if not task.done():
            task.cancel()


@router.post("/chat/completions")
async def chat_completions(
    request: Request,
    pipeline: SignedDispatchPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """
    Mistral-compatible chat completions endpoint.

    The requested model may be a friendly alias (``mistral-small-latest``)
    or a native Bedrock id (``mistral.mistral-large-2407-v1:0``).
    """
    # Parse request body
    try:
        body = await request.json()
    except ValueError:
        raise InvalidRequest("Invalid JSON body")

    # Completion id; the X-Request-ID bound by the middleware stays as request_id
    completion_id = f"chatcmpl-{uuid.uuid4().hex[:24]}"
    bind_request_context(completion_id=completion_id)

    canonical = MistralInTranslator.translate_chat_request(body, request_id=completion_id)
    bind_request_context(model=canonical.model)
    logger.info(
        "chat_completion_request",
        model=canonical.model,
        messages=len(canonical.messages),
        tools=len(canonical.tools or []),
    )

    return await run_until_disconnected(request, pipeline.chat_completion(canonical))


@router.get("/models")
async def list_models(
    pipeline: SignedDispatchPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """List the Bedrock model ids this gateway can reach, with their aliases."""
    created = int(time.time())
    aliases = pipeline.translator.resolver.aliases_by_model()
    models = [
        CanonicalModelInfo(id=model_id, created=created, aliases=aliases.get(model_id))
        for model_id in pipeline.translator.resolver.supported_models()
    ]
    return CanonicalModelList(data=models).model_dump()
