############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# __init__.py: API endpoints package and router configuration
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""API endpoints for BedrockGate."""

from fastapi import APIRouter

from bedrockgate.app.api.health import router as health_router
from bedrockgate.app.api.v1_mistral import router as mistral_router
from bedrockgate.app.settings import get_settings

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(health_router)
api_router.include_router(mistral_router, prefix=get_settings().route_prefix)

__all__ = ["api_router"]
