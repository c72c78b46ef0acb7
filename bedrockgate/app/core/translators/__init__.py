############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# __init__.py: API translation layer package exports
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""API translation layer for BedrockGate.

Provides translation between:
- Mistral chat-completions format (client-facing)
- Internal canonical format
- Amazon Bedrock Mistral InvokeModel format
"""

from bedrockgate.app.core.translators.mistral_in import MistralInTranslator
from bedrockgate.app.core.translators.bedrock_mistral_out import (
    BedrockMistralOutTranslator,
    TranslatorCapability,
)

__all__ = [
    "MistralInTranslator",
    "BedrockMistralOutTranslator",
    "TranslatorCapability",
]
