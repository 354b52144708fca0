"""
pipeline.py – points → route → artifact → summary, one subject at a time
────────────────────────────────────────────────────────────────────
A stage runs only when its own cache entry is missing *and* every stage
it depends on is cached.  Anything else is skipped quietly; all
resumption state lives in the cache, so a batch can be re-run as often
as needed and only the missing work gets done.

Unreadable entries count as missing: they are invalidated (with their
downstream stages) and recomputed.

Transport faults abort the current stage of the current subject only.
Every other exception is contained to its subject by `run_all`.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Union

from tqdm import tqdm

from .aggregate import RouteResolver, resolve_aggregate
from .cache import SHARED_LEADERBOARDS, SHARED_SUMMARIES, STAGE_ORDER, CacheMiss, CacheStore, Stage
from .config import PlannerConfig
from .models import LEADERBOARDS, SUMMARY_LIST, AggregateRoute, Point, PointSet, Summary
from .overpass import AreaScope
from .render import ArtifactRenderer
from .stats import build_leaderboards, summarize
from .subjects import Subject
from .util import TransportError

log = logging.getLogger("roadtrip.pipeline")

DEPENDS_ON: Dict[Stage, tuple] = {
    Stage.POINTS: (),
    Stage.ROUTE: (Stage.POINTS,),
    Stage.ARTIFACT: (Stage.POINTS, Stage.ROUTE),
    Stage.SUMMARY: (Stage.POINTS, Stage.ROUTE, Stage.ARTIFACT),
}

_SCHEMAS = {
    Stage.POINTS: PointSet,
    Stage.ROUTE: AggregateRoute,
    Stage.SUMMARY: Summary,
}


class PointSource(Protocol):
    def fetch(self, filter_expr: str, scope: AreaScope) -> List[Point]:
        ...


@dataclass
class SubjectResult:
    subject: str
    ran: List[Stage] = field(default_factory=list)
    cached: List[Stage] = field(default_factory=list)
    skipped: List[Stage] = field(default_factory=list)
    errors: Dict[Stage, str] = field(default_factory=dict)


@dataclass
class RunReport:
    results: Dict[str, SubjectResult] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ran(self) -> Dict[str, List[Stage]]:
        return {k: r.ran for k, r in self.results.items() if r.ran}


class PipelineController:
    def __init__(
        self,
        store: CacheStore,
        point_source: PointSource,
        resolver: RouteResolver,
        renderer: Optional[ArtifactRenderer],
        planner: PlannerConfig,
    ):
        self.store = store
        self.point_source = point_source
        self.resolver = resolver
        self.renderer = renderer
        self.planner = planner

    # ─────────────────────────── cache access ───────────────────────────
    def load(self, key: str, stage: Stage) -> Union[PointSet, AggregateRoute, Summary, bytes, CacheMiss]:
        """Cached value for a stage; unreadable entries are invalidated on the spot."""
        if stage is Stage.ARTIFACT:
            return self.store.get(key, stage)
        value = self.store.get_model(key, stage, _SCHEMAS[stage])
        if isinstance(value, CacheMiss) and value.reason == "unreadable":
            self.store.invalidate(key, stage)
        return value

    def _present(self, key: str, stage: Stage) -> bool:
        if stage is Stage.ARTIFACT:
            return self.store.exists(key, stage)
        return not isinstance(self.load(key, stage), CacheMiss)

    # ─────────────────────────── stage bodies ───────────────────────────
    # each returns True when it wrote its cache entry
    def _fetch_points(self, subject: Subject) -> bool:
        points = self.point_source.fetch(subject.filter, subject.scope)
        if not points:
            log.warning("%s: no locations found for %s", subject.key, subject.filter)
            return False
        self.store.put(subject.key, Stage.POINTS, PointSet(subject=subject.key, points=points))
        return True

    def _resolve_route(self, subject: Subject) -> bool:
        point_set = self.load(subject.key, Stage.POINTS)
        route = resolve_aggregate(
            subject.key,
            point_set.points,
            self.resolver,
            self.planner.backend_limit,
            random_state=self.planner.random_state,
            max_workers=self.planner.max_workers,
        )
        self.store.put(subject.key, Stage.ROUTE, route)
        return True

    def _render_artifact(self, subject: Subject) -> bool:
        if self.renderer is None:
            log.debug("%s: no renderer configured", subject.key)
            return False
        route = self.load(subject.key, Stage.ROUTE)
        if not route.ok:
            log.info("%s: route has no trips – nothing to draw", subject.key)
            return False
        point_set = self.load(subject.key, Stage.POINTS)
        self.store.put(subject.key, Stage.ARTIFACT, self.renderer.render(route, point_set.points))
        return True

    def _summarise(self, subject: Subject) -> bool:
        route = self.load(subject.key, Stage.ROUTE)
        if not route.ok:
            return False
        point_set = self.load(subject.key, Stage.POINTS)
        summary = summarize(
            route,
            point_set.points,
            name=subject.name,
            driving_hours_per_day=self.planner.driving_hours_per_day,
        )
        self.store.put(subject.key, Stage.SUMMARY, summary)
        return True

    # ─────────────────────────────── runs ───────────────────────────────
    def run_subject(self, subject: Subject) -> SubjectResult:
        result = SubjectResult(subject.key)
        if not subject.filter:
            log.debug("%s: no filter configured – skipping", subject.key)
            result.skipped.extend(STAGE_ORDER)
            return result

        bodies = {
            Stage.POINTS: self._fetch_points,
            Stage.ROUTE: self._resolve_route,
            Stage.ARTIFACT: self._render_artifact,
            Stage.SUMMARY: self._summarise,
        }
        for stage in STAGE_ORDER:
            if self._present(subject.key, stage):
                result.cached.append(stage)
                continue
            missing = [dep for dep in DEPENDS_ON[stage] if not self._present(subject.key, dep)]
            if missing:
                log.debug("%s: %s waits for %s", subject.key, stage.value,
                          ", ".join(m.value for m in missing))
                result.skipped.append(stage)
                continue
            try:
                wrote = bodies[stage](subject)
            except TransportError as exc:
                log.warning("%s: %s stage aborted – %s", subject.key, stage.value, exc)
                result.errors[stage] = str(exc)
                continue
            if wrote:
                log.info("%s: %s ✓", subject.key, stage.value)
                result.ran.append(stage)
            else:
                result.skipped.append(stage)
        return result

    def run_all(self, subjects: Sequence[Subject], max_workers: Optional[int] = None) -> RunReport:
        report = RunReport()

        def _one(subject: Subject) -> None:
            try:
                report.results[subject.key] = self.run_subject(subject)
            except Exception as exc:  # noqa: BLE001 – contained to this subject
                log.exception("%s: pipeline failed", subject.key)
                report.failed[subject.key] = f"{type(exc).__name__}: {exc}"

        if not max_workers or max_workers <= 1:
            for subject in tqdm(subjects, desc="Subjects"):
                _one(subject)
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                futures = [pool.submit(_one, s) for s in subjects]
                for fut in tqdm(as_completed(futures), total=len(futures), desc="Subjects"):
                    fut.result()

        self.write_shared(subjects)
        return report

    # ───────────────────────── cross-subject files ──────────────────────
    def collect_summaries(self, subjects: Sequence[Subject]) -> List[Summary]:
        """Cached summaries in catalog order (the leaderboard tie-break order)."""
        summaries = []
        for subject in subjects:
            value = self.load(subject.key, Stage.SUMMARY)
            if not isinstance(value, CacheMiss):
                summaries.append(value)
        return summaries

    def write_shared(self, subjects: Sequence[Subject]) -> List[Summary]:
        summaries = self.collect_summaries(subjects)
        boards = build_leaderboards(summaries, self.planner.leaderboard_size)
        self.store.put(SHARED_SUMMARIES, Stage.SUMMARY, SUMMARY_LIST.dump_json(summaries, indent=2))
        self.store.put(SHARED_LEADERBOARDS, Stage.SUMMARY, LEADERBOARDS.dump_json(boards, indent=2))
        log.info("Leaderboards written for %d subjects", len(summaries))
        return summaries

    def read_leaderboards(self):
        return self.store.get_model(SHARED_LEADERBOARDS, Stage.SUMMARY, LEADERBOARDS)

    # ─────────────────────────── maintenance ────────────────────────────
    def reset(self, key: str, from_stage: Stage = Stage.POINTS) -> List[Stage]:
        return self.store.invalidate(key, from_stage)

    def clear_failed_routes(self) -> List[str]:
        """Drop cached routes without a single trip so the next run retries them."""
        cleared = []
        for key in self.store.subjects(Stage.ROUTE):
            route = self.load(key, Stage.ROUTE)
            if isinstance(route, CacheMiss) or not route.ok:
                self.store.invalidate(key, Stage.ROUTE)
                cleared.append(key)
        if cleared:
            log.info("Cleared %d failed routes: %s", len(cleared), ", ".join(cleared))
        return cleared
