from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Sequence

from .cache import CacheMiss, CacheStore, Stage
from .config import RoadtripConfig, load_config
from .logging_config import configure
from .osrm import OSRMClient
from .overpass import OverpassClient
from .pipeline import PipelineController
from .render import MatplotlibRenderer
from .report import export_summaries
from .subjects import DEFAULT_SUBJECTS, Subject, load_subjects

log = logging.getLogger("roadtrip.cli")


def build_controller(config: RoadtripConfig) -> PipelineController:
    planner = config.planner
    return PipelineController(
        store=CacheStore(config.cache),
        point_source=OverpassClient(config.api),
        resolver=OSRMClient(config.api, planner.backend_limit),
        renderer=MatplotlibRenderer(planner.render_width, planner.render_height),
        planner=planner,
    )


def _subjects(config: RoadtripConfig, path: Optional[str]) -> List[Subject]:
    path = path or config.paths.subjects_file
    return load_subjects(path) if path else list(DEFAULT_SUBJECTS)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="roadtrip", description="Plan a road trip to every location of a brand")
    parser.add_argument("--config", help="YAML/JSON config file (default: $ROADTRIP_CONFIG)")
    parser.add_argument("--subjects", help="YAML list of subjects (default: built-in catalog)")
    parser.add_argument("--log-level", default=None, help="debug | info | warning | error")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Fetch, route, render and summarise whatever is missing")
    run.add_argument("--workers", type=int, default=None, help="Subjects processed in parallel")

    reset = sub.add_parser("reset", help="Invalidate a subject from a stage onwards")
    reset.add_argument("subject", help="Subject key (slug)")
    reset.add_argument("--from", dest="stage", default=Stage.POINTS.value,
                       choices=[s.value for s in Stage])

    sub.add_parser("clear-failed", help="Drop cached routes that have no trips")

    board = sub.add_parser("leaderboards", help="Print the cached leaderboards")
    board.add_argument("--metric", help="Only this metric")

    sub.add_parser("export", help="Write a CSV of all cached summaries")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parser().parse_args(argv)
    config = load_config(args.config)
    configure(args.log_level or config.logging.level.value, rich=config.logging.rich)

    issues = config.validate()
    if issues:
        for issue in issues:
            log.error(issue)
        return 2

    controller = build_controller(config)
    subjects = _subjects(config, args.subjects)
    command = args.command or "run"

    if command == "run":
        report = controller.run_all(subjects, max_workers=getattr(args, "workers", None))
        for key, error in report.failed.items():
            log.error("%s failed: %s", key, error)
        log.info("%d subjects processed, %d failed", len(report.results), len(report.failed))
        return 1 if report.failed else 0

    if command == "reset":
        removed = controller.reset(args.subject, Stage(args.stage))
        log.info("Removed %s", ", ".join(s.value for s in removed) or "nothing")
        return 0

    if command == "clear-failed":
        controller.clear_failed_routes()
        return 0

    if command == "leaderboards":
        boards = controller.read_leaderboards()
        if isinstance(boards, CacheMiss):
            log.error("No leaderboards cached yet – run the pipeline first")
            return 1
        for metric, entries in boards.items():
            if args.metric and metric != args.metric:
                continue
            print(metric)
            for rank, entry in enumerate(entries, start=1):
                print(f"  {rank:>2}. {entry.name:<40} {entry.value:>10.2f}")
        return 0

    if command == "export":
        export_summaries(controller.collect_summaries(subjects), config.paths.output_dir)
        return 0

    return 2
