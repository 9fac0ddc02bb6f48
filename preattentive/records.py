"""
Session output.

Two files are written:
  • the data file      – one "subject, type, distractors, interval" line per
                         successful staircase, appended
  • the JSONL event log – one file per run, one JSON record per line
"""

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pygame


@dataclass(frozen=True)
class SessionRecord:
    subject_id: str
    trial_type: str
    distractor_count: int
    final_display_interval_ms: int

    def to_line(self) -> str:
        # Fields are not escaped: a comma inside subject_id shifts the columns.
        return (f"{self.subject_id}, {self.trial_type}, "
                f"{self.distractor_count:d}, {self.final_display_interval_ms:d}")


def append_session_record(path: str | Path, record: SessionRecord) -> Path:
    """Append one line to the data file, creating it if needed.  OSError propagates."""
    path = Path(path)
    with path.open("a", encoding="utf-8") as f:
        f.write(record.to_line() + "\n")
    return path


def _jsonable(obj):
    if hasattr(obj, "value"):
        return obj.value
    return list(obj)


class EventLog:
    """Append-only JSONL log with a header record describing the run."""

    def __init__(self, path: Path):
        self.path = path

    @classmethod
    def create(cls, log_dir: str | Path, config: dict, seed: int,
               prefix: str = "preattentive") -> "EventLog":
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log = cls(log_dir / f"{prefix}_{ts}.jsonl")
        header = {
            "record_type": "experiment_header",
            "timestamp": datetime.now().isoformat(),
            "seed": seed,
            "config": config,
            "pygame_version": pygame.version.ver,
        }
        log.path.write_text(json.dumps(header, default=_jsonable, ensure_ascii=False) + "\n",
                            encoding="utf-8")
        return log

    def log(self, record_type: str, **fields):
        record = {"record_type": record_type,
                  "timestamp": datetime.now().isoformat(),
                  **fields}
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=_jsonable, ensure_ascii=False) + "\n")
