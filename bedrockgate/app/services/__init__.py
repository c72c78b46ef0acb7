############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# __init__.py: Services package exports
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Services for BedrockGate."""

from bedrockgate.app.services.dispatcher import Dispatcher
from bedrockgate.app.services.pipeline import SignedDispatchPipeline

__all__ = ["Dispatcher", "SignedDispatchPipeline"]
