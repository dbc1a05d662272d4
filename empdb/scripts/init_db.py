"""
Create the employee and queue schemas, optionally loading sample employees.

Seeded rows go through create_employee, so each one is also recorded on the
DB2LOG queue.

Usage:
  python -m empdb.scripts.init_db --seed seeds/employees.csv
"""
from __future__ import annotations

import argparse
import csv
import logging

from empdb.db import ensure_schema, get_data_source
from empdb.repository.employee_repo import row_to_employee
from empdb.services.config_svc import ensure_default_config
from empdb.services.employee_svc import create_employee


def seed_load(path: str, use_jta: bool = False) -> int:
    ds = get_data_source()
    n = 0
    with open(path, "r", encoding="utf-8", newline="") as f:
        for row in csv.DictReader(f):
            create_employee(row_to_employee(row), ds=ds, use_jta=use_jta)
            n += 1
    return n


def main():
    ap = argparse.ArgumentParser(description="Initialize the employee database")
    ap.add_argument("--seed", help="CSV file with EMP columns as header")
    ap.add_argument("--use-jta", action="store_true", help="seed through explicit transactions")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO)
    ensure_schema()
    ensure_default_config()
    out = {"message": "ok"}
    if args.seed:
        out["seeded"] = seed_load(args.seed, args.use_jta)
    print(out)


if __name__ == "__main__":
    main()
