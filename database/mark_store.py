"""Schedule-mark stores – tiny key → string persistence for daily briefing marks."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Protocol

from supabase import Client, create_client

from config import get_settings

logger = logging.getLogger(__name__)

TABLE = "schedule_marks"


class MarkStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class SupabaseMarkStore:
    """Marks kept in the ``schedule_marks`` table (see migrations/)."""

    def __init__(self, client: Client):
        self._client = client

    def get(self, key: str) -> Optional[str]:
        result = self._client.table(TABLE).select("value").eq("key", key).limit(1).execute()
        return result.data[0]["value"] if result.data else None

    def set(self, key: str, value: str) -> None:
        self._client.table(TABLE).upsert({"key": key, "value": value}, on_conflict="key").execute()


class JsonFileMarkStore:
    """Marks kept in a small JSON file next to the process."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Corrupt mark file %s – starting fresh", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)


class InMemoryMarkStore:
    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


def get_mark_store() -> MarkStore:
    """Supabase when configured, otherwise the local JSON file."""
    settings = get_settings()
    if settings.supabase_url and settings.supabase_key:
        logger.info("Schedule marks → Supabase %s", settings.supabase_url)
        return SupabaseMarkStore(create_client(settings.supabase_url, settings.supabase_key))
    logger.info("Schedule marks → %s", settings.mark_store_path)
    return JsonFileMarkStore(settings.mark_store_path)
