############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# __init__.py: Admission scheduling package exports
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Admission scheduling for BedrockGate.

Bounds how many requests per backend model are in flight at once, admitting
waiters in arrival order.
"""

from bedrockgate.app.core.scheduler.queue import AdmissionQueue, QueueTicket

__all__ = [
    "AdmissionQueue",
    "QueueTicket",
]
