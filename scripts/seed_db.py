"""Seed script for the canna_log_entries table.

Creates a short grow diary for one owner so a local client has entries
to list without typing them in first.
"""

from __future__ import annotations

import argparse
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy import MetaData, Table, create_engine
from sqlalchemy.dialects.postgresql import insert as pg_insert

from cannalog.app.config import load_settings
from cannalog.app.domain.entrystore.gateway import ENTRIES_TABLE_NAME
from cannalog.app.domain.entrystore.models import CannaStage

DEFAULT_OWNER_ID = "seed-owner"


def build_seed_entries(owner_id: str, started_at: datetime) -> List[dict[str, object]]:
    """Return one entry per growth stage, a few weeks apart."""

    offsets = {
        CannaStage.SEED: 0,
        CannaStage.VEGETATIVE: 14,
        CannaStage.FLOWERING: 49,
        CannaStage.HARVEST: 105,
        CannaStage.CURING: 112,
    }
    return [
        {
            "entry_id": f"00000000-0000-0000-0000-00000000000{index + 1}",
            "owner_id": owner_id,
            "title": f"Day {days + 1}",
            "description": f"Seeded {stage.label.lower()} entry.",
            "stage": stage.value,
            "timestamp": started_at + timedelta(days=days),
            "images": [],
        }
        for index, (stage, days) in enumerate(offsets.items())
    ]


def seed_entries(owner_id: str = DEFAULT_OWNER_ID) -> int:
    settings = load_settings()
    engine = create_engine(settings.database_url, future=True)
    metadata_obj = MetaData()
    entries_table = Table(ENTRIES_TABLE_NAME, metadata_obj, autoload_with=engine)

    started_at = datetime.now(timezone.utc) - timedelta(days=120)
    records = build_seed_entries(owner_id, started_at)
    stmt = pg_insert(entries_table).values(records)
    update_cols = {
        col: stmt.excluded[col]
        for col in ["owner_id", "title", "description", "stage", "timestamp", "images"]
    }

    with engine.begin() as conn:
        conn.execute(
            stmt.on_conflict_do_update(
                index_elements=[entries_table.c.entry_id], set_=update_cols
            )
        )

    return len(records)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--owner-id", default=DEFAULT_OWNER_ID)
    args = parser.parse_args()
    inserted = seed_entries(args.owner_id)
    print(f"Seeded {inserted} entries for {args.owner_id}.")


if __name__ == "__main__":
    main()
