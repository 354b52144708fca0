"""
subjects.py – the brands we want to road-trip to, and their Overpass filters
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .overpass import AreaScope
from .util import slugify

logger = logging.getLogger("roadtrip.subjects")


class Subject(BaseModel):
    """One brand.  `filter` is an Overpass QL tag filter, e.g. `"brand"="Wingstop"`."""

    model_config = ConfigDict(frozen=True)

    name: str
    filter: str = ""
    # restrict to the lower 48 (drops Hawaii, Alaska, territories, …)
    sub_regions: bool = False

    @field_validator("*", mode="before")
    @classmethod
    def _strip_strings(cls, v):
        return v.strip() if isinstance(v, str) else v

    @property
    def key(self) -> str:
        return slugify(self.name)

    @property
    def scope(self) -> AreaScope:
        return AreaScope.CONTIGUOUS_US if self.sub_regions else AreaScope.NORTH_AMERICA


DEFAULT_SUBJECTS: Tuple[Subject, ...] = (
    Subject(name="Applebee's Neighborhood Bar & Grill", filter='"name"~"^Applebee\'s"'),
    Subject(name="Margaritaville", filter='"name"="Margaritaville"'),
    Subject(name="Waffle House", filter='"brand"="Waffle House"'),
    Subject(name="Wingstop", filter='"brand"="Wingstop"', sub_regions=True),
    Subject(name="Krispy Kreme", filter='"brand"="Krispy Kreme"'),
)


def load_subjects(path: Path | str) -> List[Subject]:
    """
    Parse a YAML list of `{name, filter, sub_regions}` mappings.

    Invalid entries are skipped with a warning; an empty result is an error.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(path)

    raw = yaml.safe_load(path.read_text()) or []
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a list of subjects")

    subjects: list[Subject] = []
    for entry in raw:
        try:
            subjects.append(Subject(**entry))
        except (TypeError, ValidationError) as err:
            logger.warning("Skipping invalid subject %r: %s", entry, err)

    if not subjects:
        raise ValueError(f"No valid subjects in {path}")

    keys = [s.key for s in subjects]
    dupes = sorted({k for k in keys if keys.count(k) > 1})
    if dupes:
        raise ValueError(f"Duplicate subject keys: {', '.join(dupes)}")

    logger.info("Loaded %d subjects", len(subjects))
    return subjects
