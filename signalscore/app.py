import argparse
import json
from pathlib import Path

from .env import load_env

from . import __version__
from .config import get_database_path, load_config
from .database import get_session_factory, init_database
from .logger import get_logger
from .schema import SignalValidationError, validate_signal

from pipelines.backfill.full_rebuild import recalculate_all
from pipelines.dashboard.aggregator import get_dashboard_stats, get_high_scoring_entities
from pipelines.scoring.explainer import explain_entity
from pipelines.scoring.incremental import record_signal, update_entity_score
from storage.repositories.base import StorageError
from storage.repositories.scores import SqlScoreRepository


def _db_path(args: argparse.Namespace) -> Path:
    return Path(args.db) if args.db else get_database_path()


def _repository(args: argparse.Namespace) -> SqlScoreRepository:
    db_path = _db_path(args)
    if not db_path.exists():
        raise SystemExit(f"Database not found: {db_path} (run 'signalscore init-db' first)")
    return SqlScoreRepository(get_session_factory(db_path))


def _load_json(path_str: str):
    input_path = Path(path_str)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def cmd_init_db(args: argparse.Namespace) -> None:
    db_path = _db_path(args)
    init_database(db_path)
    print(f"Database ready: {db_path}")


def cmd_add_entity(args: argparse.Namespace) -> None:
    repository = _repository(args)
    entity_id = repository.add_entity(args.name, args.type)
    print(f"Entity: {entity_id}")


def cmd_ingest(args: argparse.Namespace) -> None:
    payload = _load_json(args.input)
    items = payload if isinstance(payload, list) else [payload]
    repository = _repository(args)
    config = load_config()

    for item in items:
        if not isinstance(item, dict):
            print("[invalid] Signal must be a JSON object")
            continue
        try:
            signal_id, score = record_signal(repository, item, config)
            print(f"[ok] signal {signal_id} -> entity {item['entity_id']} score {score:.2f}")
        except SignalValidationError as e:
            print(f"[invalid] {'; '.join(e.errors)}")
        except StorageError as e:
            print(f"[error] {e}")


def cmd_validate(args: argparse.Namespace) -> None:
    payload = _load_json(args.input)
    items = payload if isinstance(payload, list) else [payload]
    invalid = 0
    for i, item in enumerate(items):
        errors = validate_signal(item) if isinstance(item, dict) else ["Signal must be a JSON object"]
        if errors:
            invalid += 1
            print(f"Invalid (item {i}):")
            for e in errors:
                print(f" - {e}")
    if invalid:
        raise SystemExit(2)
    print("Valid")


def cmd_score(args: argparse.Namespace) -> None:
    repository = _repository(args)
    config = load_config()
    try:
        score = update_entity_score(repository, args.entity, config)
    except StorageError as e:
        print(f"[error] {e}")
        raise SystemExit(1)
    flag = " (needs review)" if config.needs_review(score) else ""
    print(f"Entity {args.entity}: {score:.2f}{flag}")


def cmd_explain(args: argparse.Namespace) -> None:
    repository = _repository(args)
    if repository.get_entity(args.entity) is None:
        print(f"[error] Entity {args.entity} not found")
        raise SystemExit(1)
    config = load_config()
    breakdown = explain_entity(repository, args.entity, config)

    if args.json:
        print(json.dumps(breakdown.to_dict(), indent=2))
        return

    print(f"Entity {args.entity}: {breakdown.total:.2f}")
    print(f"  Diversity bonus: x{breakdown.diversity_bonus:.2f} ({breakdown.unique_categories} categories)")
    print(f"  Recency bonus:   x{breakdown.recency_bonus:.2f}")
    print(f"  Raw total:       {breakdown.raw_total:.2f}")
    if not breakdown.contributions:
        print("  No signals.")
        return
    print("  Signals:")
    for c in breakdown.contributions:
        print(
            f"    #{c.signal_id} {c.signal_type} w={c.base_weight:g} "
            f"decay={c.decay_factor:.2f} -> {c.contribution:.2f}  {c.title}"
        )


def cmd_recalc(args: argparse.Namespace) -> None:
    repository = _repository(args)
    config = load_config()
    result = recalculate_all(
        repository, config, max_workers=args.workers, max_retries=args.retries
    )
    print(f"Updated: {result.updated_count}")
    if result.errors:
        print(f"Errors: {len(result.errors)}")
        for e in result.errors:
            print(f" - {e}")
    get_logger().log_metrics_summary()
    if result.errors:
        raise SystemExit(1)


def cmd_dashboard(args: argparse.Namespace) -> None:
    repository = _repository(args)
    config = load_config()
    stats = get_dashboard_stats(repository, config, top_n=args.top)
    if args.json:
        print(json.dumps(stats.to_dict(), indent=2))
        return
    print(f"Entities:          {stats.total_entities}")
    print(f"High score (>={config.review_threshold:g}): {stats.high_score_entities}")
    print(f"New signals today: {stats.new_signals_today}")
    print(f"New signals week:  {stats.new_signals_week}")
    print("Top signal types:")
    for category, count in stats.top_signal_types:
        print(f"  {category}: {count}")


def cmd_top(args: argparse.Namespace) -> None:
    repository = _repository(args)
    entities = get_high_scoring_entities(repository, limit=args.limit, min_score=args.min_score)
    if not entities:
        print("No entities above threshold.")
        return
    for e in entities:
        flag = "*" if e.needs_review else " "
        print(f"{flag} {e.current_score:6.2f}  #{e.id} {e.name} [{e.entity_type}] signals={e.signal_count}")


def main():
    # Load .env if present (SIGNALSCORE_DB_PATH, SIGNALSCORE_WEIGHTS_FILE, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="signalscore", description="Entity signal scoring CLI")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", help="Path to SQLite database (default: SIGNALSCORE_DB_PATH or data/signals.db)")

    subparsers = parser.add_subparsers(dest="command")
    ini = subparsers.add_parser("init-db", help="Create the database and tables")
    ini.set_defaults(func=cmd_init_db)

    ent = subparsers.add_parser("add-entity", help="Register a candidate entity")
    ent.add_argument("--name", required=True, help="Display name")
    ent.add_argument("--type", default="company", help="Entity type (default: company)")
    ent.set_defaults(func=cmd_add_entity)

    ing = subparsers.add_parser("ingest", help="Record signal JSON (object or list) and rescore affected entities")
    ing.add_argument("--input", required=True, help="Path to signal JSON input")
    ing.set_defaults(func=cmd_ingest)

    val = subparsers.add_parser("validate", help="Validate signal JSON without storing it")
    val.add_argument("--input", required=True, help="Path to signal JSON input")
    val.set_defaults(func=cmd_validate)

    sco = subparsers.add_parser("score", help="Recompute and persist one entity's score")
    sco.add_argument("--entity", type=int, required=True, help="Entity id")
    sco.set_defaults(func=cmd_score)

    exp = subparsers.add_parser("explain", help="Show the itemized score breakdown for an entity")
    exp.add_argument("--entity", type=int, required=True, help="Entity id")
    exp.add_argument("--json", action="store_true", help="Print JSON")
    exp.set_defaults(func=cmd_explain)

    rec = subparsers.add_parser("recalc", help="Recompute every entity's score (run after weight changes)")
    rec.add_argument("--workers", type=int, default=1, help="Parallel workers (default 1)")
    rec.add_argument("--retries", type=int, default=0, help="Retries per entity on store errors (default 0)")
    rec.set_defaults(func=cmd_recalc)

    das = subparsers.add_parser("dashboard", help="Summary statistics")
    das.add_argument("--top", type=int, default=5, help="Number of signal types to list (default 5)")
    das.add_argument("--json", action="store_true", help="Print JSON")
    das.set_defaults(func=cmd_dashboard)

    top = subparsers.add_parser("top", help="List high-scoring entities")
    top.add_argument("--limit", type=int, default=20, help="Max entities (default 20)")
    top.add_argument("--min-score", type=float, default=50.0, help="Minimum score (default 50)")
    top.set_defaults(func=cmd_top)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
