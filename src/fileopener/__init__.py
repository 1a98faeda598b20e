"""File Opener client: send a local file to the agent and follow the upload."""

__version__ = "0.1.0"

from fileopener.config import UploadConfig
from fileopener.models import SelectedFile, UploadPhase, UploadState
from fileopener.selection import SelectionHolder

__all__ = [
    "SelectedFile",
    "SelectionHolder",
    "UploadConfig",
    "UploadPhase",
    "UploadState",
    "__version__",
]
