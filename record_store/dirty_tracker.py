"""Tracks which keys changed locally since the last successful save."""

from __future__ import annotations


class DirtyTracker:
    """Per-key change versions plus a saved-once flag.

    Every local change bumps a counter and stamps the key with it. A save
    snapshot records those stamps; on success only keys whose stamp is
    unchanged are cleared, so edits made while the save was in flight stay
    dirty.
    """

    def __init__(self, saved: bool = False) -> None:
        self._saved = saved
        self._counter = 0
        self._versions: dict[str, int] = {}

    @property
    def is_dirty(self) -> bool:
        return not self._saved or bool(self._versions)

    @property
    def dirty_keys(self) -> set[str]:
        return set(self._versions)

    def touch(self, key: str) -> int:
        self._counter += 1
        self._versions[key] = self._counter
        return self._counter

    def snapshot(self) -> dict[str, int]:
        return dict(self._versions)

    def is_unchanged(self, key: str, version: int) -> bool:
        return self._versions.get(key) == version

    def commit(self, snapshot: dict[str, int]) -> None:
        """Clear the keys a successful save covered and mark the record saved."""
        for key, version in snapshot.items():
            if self._versions.get(key) == version:
                del self._versions[key]
        self._saved = True

    def reset(self, saved: bool = True) -> None:
        """Forget every local change (server state replaced local state)."""
        self._versions.clear()
        self._saved = saved
