"""Nightly scheduler that refreshes athlete patterns from session outcomes.

Reads the outcomes file, runs the pattern analyzer per athlete and writes
the patterns file the planner and prescriber read from.

Outcomes file layout::

    {"athletes": {"<athlete id>": {
        "startFitness": {"date": "2025-01-01", "ctl": 50, "atl": 50},
        "outcomes": [{"date": "2025-01-02", "category": "threshold",
                      "completed": true, "rpe": 7, "tss": 80}, ...]}}}

``startFitness`` is optional; when present it is used to fill in each
session's TSB.

Usage:
    python -m scheduler.nightly --once      # single run (for cron)
    python -m scheduler.nightly --daemon    # APScheduler loop
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from datetime import date
from pathlib import Path

from training_engine.analysis.pattern_analyzer import PatternAnalyzer, with_session_tsb
from training_engine.config import EngineDefaults
from training_engine.models.fitness import FitnessState
from training_engine.serialization import outcome_from_dict, pattern_to_dict
from training_engine.storage import InMemoryPlanStore

from scheduler.config import NIGHTLY_HOUR, NIGHTLY_MINUTE, OUTCOMES_PATH, PATTERNS_PATH

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def load_outcomes(path: Path) -> InMemoryPlanStore:
    """Seed an in-memory store with every athlete's outcomes from disk."""
    with open(path) as f:
        raw = json.load(f)

    store = InMemoryPlanStore()
    for athlete_id, entry in raw.get("athletes", {}).items():
        outcomes = [outcome_from_dict(o) for o in entry.get("outcomes", [])]
        start = entry.get("startFitness")
        if start is not None:
            fitness = FitnessState(
                date=date.fromisoformat(start["date"]),
                ctl=float(start["ctl"]),
                atl=float(start["atl"]),
            )
            outcomes = with_session_tsb(outcomes, fitness)
        store.add_outcomes(athlete_id, outcomes)
    return store


async def refresh_patterns(
    store: InMemoryPlanStore,
    analyzer: PatternAnalyzer,
    as_of: date,
) -> dict[str, dict]:
    """Analyze every athlete in the store and save the confident patterns.

    Returns:
        Mapping of athlete id → pattern dict, or ``{"insufficient": reason}``
        when there is not enough data.
    """
    since = date.fromordinal(as_of.toordinal() - analyzer.defaults.pattern_window_days)
    results: dict[str, dict] = {}
    for athlete_id in store.athlete_ids():
        outcomes = await store.get_session_outcomes(athlete_id, since)
        analysis = analyzer.analyze(outcomes, as_of)
        if not analysis.sufficient or analysis.pattern is None:
            logger.info("Skipping %s: %s", athlete_id, analysis.reason)
            results[athlete_id] = {"insufficient": analysis.reason}
            continue
        await store.save_athlete_patterns(athlete_id, analysis.pattern)
        results[athlete_id] = pattern_to_dict(analysis.pattern)
    return results


def nightly_job(
    outcomes_path: Path = OUTCOMES_PATH,
    patterns_path: Path = PATTERNS_PATH,
    as_of: date | None = None,
) -> None:
    """Execute one nightly cycle: load outcomes, analyze, write patterns."""
    logger.info("Starting nightly pattern refresh")

    try:
        store = load_outcomes(outcomes_path)
    except FileNotFoundError:
        logger.error("Outcomes file not found at %s", outcomes_path)
        return

    analyzer = PatternAnalyzer(EngineDefaults.from_env())
    results = asyncio.run(refresh_patterns(store, analyzer, as_of or date.today()))

    patterns_path.parent.mkdir(parents=True, exist_ok=True)
    with open(patterns_path, "w") as f:
        json.dump({"asOf": (as_of or date.today()).isoformat(), "athletes": results}, f, indent=2)

    refreshed = sum(1 for r in results.values() if "insufficient" not in r)
    logger.info(
        "Nightly refresh complete: %d of %d athletes updated", refreshed, len(results)
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Training engine nightly pattern refresh")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--once", action="store_true", help="Run once and exit")
    group.add_argument("--daemon", action="store_true", help="Run as APScheduler daemon")
    args = parser.parse_args()

    if args.once:
        nightly_job()
    else:
        from apscheduler.schedulers.blocking import BlockingScheduler

        scheduler = BlockingScheduler()
        scheduler.add_job(
            nightly_job,
            "cron",
            hour=NIGHTLY_HOUR,
            minute=NIGHTLY_MINUTE,
            id="nightly_job",
        )
        logger.info(
            "Scheduler started, nightly job at %02d:%02d",
            NIGHTLY_HOUR,
            NIGHTLY_MINUTE,
        )
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler stopped")


if __name__ == "__main__":
    main()
