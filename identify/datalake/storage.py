from __future__ import annotations

import json
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentificationRecord:
    record_id: str
    label: str
    file_name: str | None
    media_type: str | None
    created_at: datetime
    user_id: str
    model: str | None = None
    api_version: str | None = None

    @classmethod
    def create(
        cls,
        *,
        label: str,
        file_name: str | None,
        media_type: str | None,
        user_id: str,
        model: str | None = None,
        api_version: str | None = None,
        created_at: datetime | None = None,
    ) -> "IdentificationRecord":
        created = (created_at or datetime.now(tz=timezone.utc)).astimezone(timezone.utc)
        return cls(
            record_id=_build_record_id(user_id, created),
            label=label,
            file_name=file_name,
            media_type=media_type,
            created_at=created,
            user_id=user_id,
            model=model,
            api_version=api_version,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "label": self.label,
            "file_name": self.file_name,
            "media_type": self.media_type,
            "created_at": self.created_at.isoformat(),
            "user_id": self.user_id,
            "model": self.model,
            "api_version": self.api_version,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> Optional["IdentificationRecord"]:
        created_at = parse_timestamp(payload.get("created_at"))
        label = payload.get("label")
        user_id = payload.get("user_id")
        record_id = payload.get("record_id")
        if created_at is None or not isinstance(label, str) or not isinstance(user_id, str):
            return None
        if not isinstance(record_id, str) or not record_id:
            return None
        return cls(
            record_id=record_id,
            label=label,
            file_name=_optional_str(payload.get("file_name")),
            media_type=_optional_str(payload.get("media_type")),
            created_at=created_at,
            user_id=user_id,
            model=_optional_str(payload.get("model")),
            api_version=_optional_str(payload.get("api_version")),
        )


class RecordStore(Protocol):
    def save(self, record: IdentificationRecord) -> IdentificationRecord: ...

    def find_all(self, limit: int | None = None) -> List[IdentificationRecord]: ...

    def find_by_user(self, user_id: str, limit: int | None = None) -> List[IdentificationRecord]: ...


class FileSystemRecordStore:
    """Store identification results as JSON documents on the local filesystem."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def save(self, record: IdentificationRecord) -> IdentificationRecord:
        date_dir = self._root / record.created_at.strftime("%Y/%m/%d")
        date_dir.mkdir(parents=True, exist_ok=True)
        target = date_dir / f"{record.record_id}.json"
        if target.exists():
            raise FileExistsError(f"Identification record {record.record_id} already exists")
        target.write_text(json.dumps(record.to_dict(), indent=2), encoding="utf-8")
        return record

    def find_all(self, limit: int | None = None) -> List[IdentificationRecord]:
        """All records, newest first."""
        return _newest_first(self._iter_records(), limit)

    def find_by_user(self, user_id: str, limit: int | None = None) -> List[IdentificationRecord]:
        """Records owned by ``user_id``, newest first."""
        return _newest_first(
            (record for record in self._iter_records() if record.user_id == user_id),
            limit,
        )

    def _iter_records(self) -> Iterator[IdentificationRecord]:
        for path in self._root.rglob("*.json"):
            record = load_record(path)
            if record is not None:
                yield record


def load_record(json_path: Path) -> Optional[IdentificationRecord]:
    try:
        payload = json.loads(json_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Skipping unreadable identification record %s: %s", json_path, exc)
        return None
    if not isinstance(payload, dict):
        return None
    return IdentificationRecord.from_dict(payload)


def parse_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None

    if " " in text and "T" not in text:
        text = text.replace(" ", "T", 1)

    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


def _newest_first(
    records: Iterable[IdentificationRecord], limit: int | None
) -> List[IdentificationRecord]:
    ordered = sorted(records, key=lambda item: (item.created_at, item.record_id), reverse=True)
    if limit is not None:
        ordered = ordered[: max(0, limit)]
    return ordered


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    return None


def _build_record_id(user_id: Optional[str], created_at: datetime) -> str:
    label = str(user_id or "user").strip().lower()
    sanitized = re.sub(r"[^a-z0-9]+", "-", label)
    sanitized = sanitized.strip("-") or "user"
    if len(sanitized) > 48:
        sanitized = sanitized[:48].rstrip("-") or "user"
    timestamp_fragment = created_at.strftime("%Y%m%dT%H%M%S%fZ")
    suffix = uuid.uuid4().hex[:8]
    return f"{sanitized}_{timestamp_fragment}_{suffix}"


__all__ = [
    "FileSystemRecordStore",
    "IdentificationRecord",
    "RecordStore",
    "load_record",
    "parse_timestamp",
]
