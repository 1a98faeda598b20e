"""Upload pipeline for the File Opener agent.

Public API
----------
.. autoclass:: AgentClient
.. autoclass:: UploadController
.. autoclass:: UploadLifecycleSM
.. autoclass:: UploadProgressView
"""

from fileopener.upload.client import AgentClient
from fileopener.upload.controller import (
    IllegalTransitionError,
    UploadController,
    interpret_response,
    percent_of,
)
from fileopener.upload.fsm import UploadLifecycleSM, create_fsm
from fileopener.upload.progress import UploadProgressView
from fileopener.upload.schemas import AgentResponse

__all__ = [
    "AgentClient",
    "AgentResponse",
    "IllegalTransitionError",
    "UploadController",
    "UploadLifecycleSM",
    "UploadProgressView",
    "create_fsm",
    "interpret_response",
    "percent_of",
]
