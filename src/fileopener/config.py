"""Configuration loading for the upload client."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path

import httpx

from fileopener.constants import (
    CHUNK_SIZE,
    DEFAULT_AGENT_URL,
    FILE_FIELD,
    HEALTH_PATH,
    OPEN_NOW_FIELD,
    OPEN_PATH,
    UPLOAD_PATH,
)

logger = logging.getLogger(__name__)

ENDPOINT_ENV_VAR = "FILEOPENER_ENDPOINT"
DEFAULT_CONFIG_PATH = Path("config/upload_config.json")

_URL_FIELDS = ("endpoint", "health_endpoint", "open_endpoint")
_NAME_FIELDS = ("file_field", "open_now_field")


def _check_url(name: str, value: object) -> None:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string, got {type(value).__name__}")
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL as e:
        raise ValueError(f"{name} is not a valid URL ({e}): {value!r}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError(f"{name} must be an absolute http(s) URL: {value!r}")


@dataclass(frozen=True)
class UploadConfig:
    """Where and how uploads are sent to the agent.

    ``connect_timeout`` of ``None`` means no timeout at all: a hung agent
    leaves the attempt in progress until the caller gives up.

    Every value is checked on construction; a wrong type or a malformed
    URL raises ``ValueError`` so that a bad config file fails before any
    request is built.
    """

    endpoint: str = DEFAULT_AGENT_URL + UPLOAD_PATH
    health_endpoint: str = DEFAULT_AGENT_URL + HEALTH_PATH
    open_endpoint: str = DEFAULT_AGENT_URL + OPEN_PATH
    file_field: str = FILE_FIELD
    open_now_field: str = OPEN_NOW_FIELD
    open_now: bool = True
    chunk_size: int = CHUNK_SIZE
    connect_timeout: float | None = None

    def __post_init__(self) -> None:
        for name in _URL_FIELDS:
            _check_url(name, getattr(self, name))
        for name in _NAME_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"{name} must be a non-empty string, got {value!r}")
        if not isinstance(self.open_now, bool):
            raise ValueError(f"open_now must be true or false, got {self.open_now!r}")
        # bool is an int subclass; reject it explicitly
        if not isinstance(self.chunk_size, int) or isinstance(self.chunk_size, bool):
            raise ValueError(f"chunk_size must be an integer, got {self.chunk_size!r}")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.connect_timeout is not None:
            if not isinstance(self.connect_timeout, (int, float)) or isinstance(
                self.connect_timeout, bool
            ):
                raise ValueError(
                    f"connect_timeout must be a number or null, got {self.connect_timeout!r}"
                )
            if self.connect_timeout <= 0:
                raise ValueError(f"connect_timeout must be positive, got {self.connect_timeout}")

    def to_dict(self) -> dict[str, object]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_upload_config(config_path: Path | None = None) -> UploadConfig:
    """Load upload configuration from JSON, falling back to defaults.

    Reads from ``config/upload_config.json`` when *config_path* is ``None``.
    A missing file is not an error. Unknown keys are ignored. The
    ``FILEOPENER_ENDPOINT`` environment variable overrides ``endpoint``.

    Args:
        config_path: Optional explicit path to upload_config.json.

    Returns:
        UploadConfig populated from file + environment overrides.

    Raises:
        json.JSONDecodeError: If the file exists but is not valid JSON.
        ValueError: If the document is not an object or holds a bad value.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            data = json.load(f)
        logger.debug("Loaded upload config from %s", config_path)
    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must hold a JSON object, got {type(data).__name__}")

    field_names = {f.name for f in fields(UploadConfig)}
    kwargs = {k: v for k, v in data.items() if k in field_names}
    ignored = sorted(set(data) - field_names)
    if ignored:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(ignored))

    endpoint = os.environ.get(ENDPOINT_ENV_VAR)
    if endpoint:
        kwargs["endpoint"] = endpoint

    return UploadConfig(**kwargs)
