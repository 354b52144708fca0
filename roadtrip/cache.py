"""
cache.py – file-backed memo of stage outputs, keyed by (subject, stage)
────────────────────────────────────────────────────────────────────
Layout under the configured root:

    points/<subject>.json     route/<subject>.json
    artifact/<subject>.png    summary/<subject>.json
    summary/all.summaries.json, summary/all.leaderboards.json

Reads never raise: an absent or unreadable entry comes back as a
`CacheMiss` so the pipeline simply recomputes.  Writes go to a temporary
file in the same directory and are published with `os.replace`, so a
reader never sees a truncated payload.

Public symbols
--------------
Stage, CacheMiss, CacheStore
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Literal, Type, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import CacheConfig

log = logging.getLogger("roadtrip.cache")

T = TypeVar("T")

SHARED_SUMMARIES = "all.summaries"
SHARED_LEADERBOARDS = "all.leaderboards"


class Stage(str, Enum):
    POINTS = "points"
    ROUTE = "route"
    ARTIFACT = "artifact"
    SUMMARY = "summary"

    @property
    def suffix(self) -> str:
        return ".png" if self is Stage.ARTIFACT else ".json"

    def and_downstream(self) -> List["Stage"]:
        return list(STAGE_ORDER[STAGE_ORDER.index(self):])


STAGE_ORDER = (Stage.POINTS, Stage.ROUTE, Stage.ARTIFACT, Stage.SUMMARY)


@dataclass(frozen=True)
class CacheMiss:
    """Absent or unreadable entry.  A normal outcome, not an error."""
    subject: str
    stage: Stage
    reason: Literal["absent", "unreadable"]
    detail: str = ""

    def __bool__(self) -> bool:
        return False


class CacheStore:
    def __init__(self, config: CacheConfig):
        self.root = Path(config.root)

    # ------------------------------------------------------------------ paths
    def path(self, subject: str, stage: Stage) -> Path:
        return self.root / stage.value / f"{subject}{stage.suffix}"

    def subjects(self, stage: Stage) -> List[str]:
        """Subject keys with an entry for `stage` (shared files excluded)."""
        folder = self.root / stage.value
        if not folder.is_dir():
            return []
        return sorted(
            p.stem for p in folder.glob(f"*{stage.suffix}") if "." not in p.stem
        )

    # ------------------------------------------------------------------ reads
    def exists(self, subject: str, stage: Stage) -> bool:
        return self.path(subject, stage).is_file()

    def get(self, subject: str, stage: Stage) -> Union[bytes, CacheMiss]:
        path = self.path(subject, stage)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return CacheMiss(subject, stage, "absent")
        except OSError as exc:
            log.warning("Cache read failed for %s/%s (%s) – treating as miss",
                        stage.value, subject, exc)
            return CacheMiss(subject, stage, "unreadable", str(exc))

    def get_model(
        self,
        subject: str,
        stage: Stage,
        schema: Union[Type[T], TypeAdapter],
    ) -> Union[T, CacheMiss]:
        """Read and validate a JSON entry; malformed payloads are misses."""
        raw = self.get(subject, stage)
        if isinstance(raw, CacheMiss):
            return raw
        try:
            if isinstance(schema, TypeAdapter):
                return schema.validate_json(raw)
            return schema.model_validate_json(raw)
        except (ValidationError, ValueError) as exc:
            log.warning("Malformed cache entry %s/%s – treating as miss",
                        stage.value, subject)
            return CacheMiss(subject, stage, "unreadable", str(exc))

    # ----------------------------------------------------------------- writes
    def put(self, subject: str, stage: Stage,
            payload: Union[bytes, str, BaseModel]) -> Path:
        """Atomically publish `payload`; durable once this returns."""
        if isinstance(payload, BaseModel):
            payload = payload.model_dump_json(indent=2)
        if isinstance(payload, str):
            payload = payload.encode("utf-8")

        path = self.path(subject, stage)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{subject}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        log.debug("Cached %s/%s (%d bytes)", stage.value, subject, len(payload))
        return path

    def invalidate(self, subject: str, from_stage: Stage) -> List[Stage]:
        """Delete `from_stage` and every later stage for `subject`."""
        removed = []
        for stage in from_stage.and_downstream():
            try:
                self.path(subject, stage).unlink()
            except FileNotFoundError:
                continue
            removed.append(stage)
        if removed:
            log.info("Invalidated %s: %s", subject, ", ".join(s.value for s in removed))
        return removed
