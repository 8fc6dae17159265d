#!/usr/bin/env python3
"""
Load entities and their signals from a JSON seed file into the database.

Seed format:
    {"entities": [{"name": "...", "entity_type": "company",
                   "signals": [{"signal_type": "grant_awarded",
                                "detected_at": "2024-05-01T00:00:00",
                                "confidence": 0.9, "title": "..."}]}]}

Usage:
    python scripts/load_signals.py --json data/seed.json --db data/signals.db --recalc
"""

import argparse
import json
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from signalscore.config import load_config
from signalscore.database import init_database, get_session_factory
from signalscore.schema import parse_timestamp, validate_signal
from pipelines.backfill.full_rebuild import recalculate_all
from storage.repositories.base import StorageError
from storage.repositories.scores import SqlScoreRepository


def _or_default(value, default=1.0):
    return default if value is None else value


def load(json_path: Path, db_path: Path, dry_run: bool = False, recalc: bool = False):
    """
    Load seed entities and signals.

    Args:
        json_path: Path to JSON seed file
        db_path: Path to SQLite database file
        dry_run: If True, don't write to database
        recalc: Run a full score rebuild after loading
    """
    print(f"Loading seed data from {json_path}...")
    with open(json_path) as f:
        data = json.load(f)

    entities = data.get("entities", [])
    print(f"Found {len(entities)} entities in seed file")

    if dry_run:
        print("\n[DRY RUN] Would load the following entities:")
        for i, entity in enumerate(entities[:5], 1):
            print(f"  {i}. {entity.get('name')} ({len(entity.get('signals', []))} signals)")
        if len(entities) > 5:
            print(f"  ... and {len(entities) - 5} more")
        return True

    print(f"\nInitializing database at {db_path}...")
    init_database(db_path)
    repository = SqlScoreRepository(get_session_factory(db_path))

    loaded_entities = 0
    loaded_signals = 0
    skipped = 0
    errors = 0

    for entity in entities:
        name = entity.get("name")
        if not name:
            print("⚠️  Skipping entity without a name")
            skipped += 1
            continue

        try:
            entity_id = repository.add_entity(name, entity.get("entity_type") or "company")
            loaded_entities += 1
        except StorageError as e:
            print(f"❌ Error loading entity {name}: {e}")
            errors += 1
            continue

        for signal in entity.get("signals", []):
            signal = {**signal, "entity_id": entity_id}
            problems = validate_signal(signal)
            if problems:
                print(f"⚠️  Skipping signal for {name}: {'; '.join(problems)}")
                skipped += 1
                continue
            try:
                repository.add_signal(
                    entity_id=entity_id,
                    signal_type=signal["signal_type"],
                    detected_at=parse_timestamp(signal["detected_at"]),
                    signal_weight=_or_default(signal.get("signal_weight")),
                    confidence=_or_default(signal.get("confidence")),
                    title=signal.get("title") or "",
                )
                loaded_signals += 1
            except StorageError as e:
                print(f"❌ Error loading signal for {name}: {e}")
                errors += 1

    print(f"\n✅ Load complete!")
    print(f"   Entities: {loaded_entities}")
    print(f"   Signals:  {loaded_signals}")
    print(f"   Skipped:  {skipped}")
    print(f"   Errors:   {errors}")

    if recalc:
        result = recalculate_all(repository, load_config())
        print(f"\nRecomputed {result.updated_count} scores ({len(result.errors)} errors)")
        errors += len(result.errors)

    return errors == 0


def main():
    parser = argparse.ArgumentParser(description="Load entities and signals from a JSON seed file")
    parser.add_argument("--json", type=Path, default=Path("data/seed.json"),
                       help="Path to JSON seed file")
    parser.add_argument("--db", type=Path, default=Path("data/signals.db"),
                       help="Path to SQLite database file")
    parser.add_argument("--dry-run", action="store_true",
                       help="Show what would be loaded without writing")
    parser.add_argument("--recalc", action="store_true",
                       help="Recompute every entity's score after loading")

    args = parser.parse_args()

    if not args.json.exists():
        print(f"❌ JSON file not found: {args.json}")
        sys.exit(1)

    success = load(args.json, args.db, dry_run=args.dry_run, recalc=args.recalc)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
