#!/usr/bin/env python3
"""Seed a loom database with wire-format records from a scenario file."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from loom.datatypes.registry import get_kind
from loom.errors import LoomError
from loom.storage.sqlite_records import SQLiteRecordStore


def _load_scenario(path: Path) -> list[tuple[str, dict[str, Any]]]:
    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        raise ValueError(f"empty scenario: {path}")

    if raw.startswith("["):
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError(f"scenario root must be list: {path}")
        rows = data
    else:
        rows = []
        for line in raw.splitlines():
            text = line.strip()
            if not text or text.startswith("#"):
                continue
            rows.append(json.loads(text))

    output: list[tuple[str, dict[str, Any]]] = []
    for idx, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            raise ValueError(f"scenario row #{idx} must be object")
        table = str(row.get("table") or "").strip()
        record = row.get("record")
        if not table:
            raise ValueError(f"scenario row #{idx} has no table")
        if not isinstance(record, dict):
            raise ValueError(f"scenario row #{idx} record must be object")
        output.append((table, record))
    if not output:
        raise ValueError(f"scenario has no records: {path}")
    return output


def _main() -> int:
    parser = argparse.ArgumentParser(description="Seed a loom database from a scenario file")
    parser.add_argument("--db", required=True, help="SQLite database file (created if missing)")
    parser.add_argument("--scenario", required=True, help="Path to scenario file (.json list or .jsonl)")
    args = parser.parse_args()

    scenario_path = Path(args.scenario).expanduser().resolve()
    try:
        rows = _load_scenario(scenario_path)
    except (OSError, ValueError) as exc:
        print(f"cannot read scenario: {exc}", file=sys.stderr)
        return 2

    print(f"scenario: {scenario_path}")
    store = SQLiteRecordStore(Path(args.db).expanduser())
    try:
        with store.transaction():
            for idx, (table, data) in enumerate(rows, start=1):
                kind = get_kind(table)
                store.insert(kind.model.from_wire(json.dumps(data)))
                print(f"[{idx}/{len(rows)}] table={kind.table_name} device={data.get('device_id', '-')}")
    except LoomError as exc:
        print(f"seed failed, nothing written: {exc}", file=sys.stderr)
        return 1
    finally:
        store.close()

    print("seed completed")
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
