"""SyncConfig: typed, JSON-persisted settings for the sync layer."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from . import conf


@dataclass
class SyncConfig:
    """Persistent configuration record.

    Stored at ``~/.flow/record_sync/config.json`` unless ``RECORD_SYNC_HOME``
    points elsewhere. Unknown keys in the file are ignored.
    """

    server_url: str = "https://api.parse.com/1"
    application_id: str = ""
    api_key: str = ""
    request_timeout: float = 10.0
    background_workers: int = 4
    # Saving a clean record succeeds without a network call.
    skip_clean_saves: bool = True
    source_file: str | None = None

    def to_dict(self) -> dict:
        d = asdict(self)
        d.pop("source_file", None)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> SyncConfig:
        known = {f.name for f in fields(cls)} - {"source_file"}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_json(cls, path: str | Path | None = None) -> SyncConfig:
        """Load config from a JSON file, or return defaults if missing."""
        p = Path(path or conf.CONFIG_FILE)
        if p.exists():
            cfg = cls.from_dict(json.loads(p.read_text(encoding="utf-8")))
        else:
            cfg = cls()
        cfg.source_file = str(p)
        return cfg

    def to_json(self, path: str | Path | None = None, indent: int = 2) -> None:
        """Write this config to a JSON file."""
        p = Path(path or self.source_file or conf.CONFIG_FILE)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(
            json.dumps(self.to_dict(), indent=indent, ensure_ascii=False),
            encoding="utf-8",
        )
        self.source_file = str(p)
