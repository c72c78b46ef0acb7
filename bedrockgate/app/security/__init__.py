############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# __init__.py: Security utilities package exports
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Security utilities for BedrockGate."""

from bedrockgate.app.security.credentials import AwsCredentials, CredentialPool
from bedrockgate.app.security.request_signing import RequestSigner

__all__ = [
    "AwsCredentials",
    "CredentialPool",
    "RequestSigner",
]
