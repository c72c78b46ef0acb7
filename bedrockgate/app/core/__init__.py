############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# __init__.py: Core application logic package
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Core signed-dispatch logic for BedrockGate."""
