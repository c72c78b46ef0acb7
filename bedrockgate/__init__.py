############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# __init__.py: Root package initialization and version definition
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""BedrockGate - signed Mistral gateway for Amazon Bedrock."""

__version__ = "0.3.0"
