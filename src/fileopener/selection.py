"""Holder for the single file the user has picked."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from fileopener.models import SelectedFile

logger = logging.getLogger(__name__)

SelectionListener = Callable[[SelectedFile | None], None]


class SelectionHolder:
    """Keeps at most one :class:`SelectedFile`.

    Every new selection replaces the previous one wholesale and is
    announced to subscribers, so an upload controller can drop the
    result of an earlier attempt. No file type or size checks are made.
    """

    def __init__(self) -> None:
        self._current: SelectedFile | None = None
        self._listeners: list[SelectionListener] = []

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def select(self, path: str | Path) -> SelectedFile:
        """Replace the held file with the one at *path*.

        Raises:
            FileNotFoundError: If *path* does not exist.
            IsADirectoryError: If *path* is a directory.
            PermissionError: If *path* cannot be read.
        """
        selected = SelectedFile.from_path(path)
        self._current = selected
        logger.info("Selected %s (%d bytes)", selected.name, selected.size_bytes)
        self._notify(selected)
        return selected

    def current(self) -> SelectedFile | None:
        return self._current

    def clear(self) -> None:
        """Drop the held file (component teardown)."""
        self._current = None
        self._notify(None)

    def _notify(self, selected: SelectedFile | None) -> None:
        for listener in list(self._listeners):
            listener(selected)
