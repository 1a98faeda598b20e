"""Tests for SelectionHolder: replacement, notification, teardown."""

from __future__ import annotations

from pathlib import Path

import pytest

from fileopener.selection import SelectionHolder


class TestSelectionHolder:

    def test_starts_empty(self):
        assert SelectionHolder().current() is None

    def test_select_returns_and_holds_file(self, sample_path: Path):
        holder = SelectionHolder()
        selected = holder.select(sample_path)
        assert holder.current() is selected
        assert selected.name == "hello.txt"

    def test_new_selection_replaces_previous(self, sample_path: Path, tmp_path: Path):
        other = tmp_path / "other.pdf"
        other.write_bytes(b"%PDF-1.4")
        holder = SelectionHolder()
        first = holder.select(sample_path)
        second = holder.select(other)
        assert holder.current() is second
        assert second is not first
        assert first.name == "hello.txt"

    def test_listeners_see_every_selection(self, sample_path: Path):
        seen = []
        holder = SelectionHolder()
        holder.subscribe(seen.append)
        holder.select(sample_path)
        holder.clear()
        assert [s.name if s else None for s in seen] == ["hello.txt", None]

    def test_unsubscribe(self, sample_path: Path):
        seen = []
        holder = SelectionHolder()
        unsubscribe = holder.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        holder.select(sample_path)
        assert seen == []

    def test_failed_pick_keeps_previous_file(self, sample_path: Path, tmp_path: Path):
        holder = SelectionHolder()
        kept = holder.select(sample_path)
        with pytest.raises(FileNotFoundError):
            holder.select(tmp_path / "missing.txt")
        assert holder.current() is kept

    def test_clear(self, sample_path: Path):
        holder = SelectionHolder()
        holder.select(sample_path)
        holder.clear()
        assert holder.current() is None

    def test_unreadable_pick_keeps_previous_file(self, sample_path: Path, tmp_path: Path, monkeypatch):
        holder = SelectionHolder()
        kept = holder.select(sample_path)
        locked = tmp_path / "locked.txt"
        locked.write_bytes(b"secret")
        monkeypatch.setattr("fileopener.models.os.access", lambda path, mode, **kw: False)
        with pytest.raises(PermissionError):
            holder.select(locked)
        assert holder.current() is kept
