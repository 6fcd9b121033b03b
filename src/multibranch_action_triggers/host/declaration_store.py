"""JSON-file persistence for job parameter declarations.

Declarations written by the reconciler are kept per job full name so that an
in-memory host survives restarts (best-effort).
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from multibranch_action_triggers.triggers.parameters import ParameterDefinition

logger = logging.getLogger(__name__)


class DeclarationEntry(BaseModel):
    name: str
    default_value: str = ""
    description: str = ""


class DeclarationRecord(BaseModel):
    job_full_name: str
    updated_at: str
    declarations: list[DeclarationEntry] = Field(default_factory=list)

    def to_definitions(self) -> list[ParameterDefinition]:
        return [
            ParameterDefinition(
                name=entry.name,
                default_value=entry.default_value,
                description=entry.description,
            )
            for entry in self.declarations
        ]


def _utc_iso_now() -> str:
    return datetime.now(tz=UTC).isoformat()


@dataclass
class DeclarationStore:
    path: Path

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def _load_unlocked(self) -> list[DeclarationRecord]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(
                "Declaration state file is not valid JSON; treating as empty",
                extra={"path": str(self.path)},
            )
            return []
        if not isinstance(raw, list):
            logger.warning(
                "Declaration state file has unexpected shape; treating as empty",
                extra={"path": str(self.path)},
            )
            return []
        return [DeclarationRecord.model_validate(item) for item in raw]

    def _save_unlocked(self, records: list[DeclarationRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.model_dump(mode="json") for r in records]
        self.path.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    def list(self) -> list[DeclarationRecord]:
        with self._lock:
            return self._load_unlocked()

    def get(self, job_full_name: str) -> list[ParameterDefinition] | None:
        with self._lock:
            for record in self._load_unlocked():
                if record.job_full_name == job_full_name:
                    return record.to_definitions()
            return None

    def save_declarations(
        self, job_full_name: str, declarations: list[ParameterDefinition]
    ) -> DeclarationRecord:
        record = DeclarationRecord(
            job_full_name=job_full_name,
            updated_at=_utc_iso_now(),
            declarations=[
                DeclarationEntry(
                    name=d.name, default_value=d.default_value, description=d.description
                )
                for d in declarations
            ],
        )
        with self._lock:
            records = self._load_unlocked()
            for idx, existing in enumerate(records):
                if existing.job_full_name == job_full_name:
                    records[idx] = record
                    break
            else:
                records.append(record)
            self._save_unlocked(records)
        return record

    def delete(self, job_full_name: str) -> bool:
        with self._lock:
            records = self._load_unlocked()
            kept = [r for r in records if r.job_full_name != job_full_name]
            if len(kept) == len(records):
                return False
            self._save_unlocked(kept)
            return True
