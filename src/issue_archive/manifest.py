from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def utc_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass(frozen=True)
class ManifestEntry:
    local_path: str
    fetched_at: str

    def to_dict(self) -> dict[str, str]:
        return {"localPath": self.local_path, "fetchedAt": self.fetched_at}


@dataclass
class AssetManifest:
    """Remote image URL -> cached local path.

    Keys are the exact URL strings found in issue HTML. Entries are only
    ever added or replaced, never dropped. Entries that cannot be read are
    kept verbatim in ``unreadable`` and written back on save.
    """

    entries: dict[str, ManifestEntry] = field(default_factory=dict)
    unreadable: dict[str, Any] = field(default_factory=dict)

    def get(self, url: str) -> ManifestEntry | None:
        return self.entries.get(url)

    def record(
        self, url: str, local_path: str, *, fetched_at: str | None = None
    ) -> ManifestEntry:
        entry = ManifestEntry(
            local_path=local_path,
            fetched_at=fetched_at or utc_iso(),
        )
        self.entries[url] = entry
        self.unreadable.pop(url, None)
        return entry

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, url: object) -> bool:
        return url in self.entries

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.unreadable)
        data.update((url, entry.to_dict()) for url, entry in self.entries.items())
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AssetManifest:
        entries: dict[str, ManifestEntry] = {}
        unreadable: dict[str, Any] = {}
        for url, raw in data.items():
            local_path = raw.get("localPath") if isinstance(raw, dict) else None
            if not isinstance(local_path, str) or not local_path:
                logger.warning("Keeping unreadable manifest entry for %s", url)
                unreadable[str(url)] = raw
                continue
            entries[str(url)] = ManifestEntry(
                local_path=local_path,
                fetched_at=str(raw.get("fetchedAt") or ""),
            )
        return cls(entries=entries, unreadable=unreadable)


def load_asset_manifest(path: Path) -> AssetManifest:
    if not path.exists():
        return AssetManifest()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid manifest JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a JSON object: {path}")
    return AssetManifest.from_dict(data)


def save_asset_manifest(manifest: AssetManifest, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
        newline="\n",
    )
