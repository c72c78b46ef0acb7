############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# __init__.py: Application package initialization
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""BedrockGate Application Package."""

from bedrockgate import __version__

__all__ = ["__version__"]
