"""Run one Oracle vs PostgreSQL schema comparison and write the XLSX to ./output.

Connection details come from the ORACLE_* / POSTGRES_* / RESULTS_* environment
variables (see ora_pg_compare/settings.py).

Usage:
  python3 scripts/run_comparison.py ORACLE_OWNER postgres_schema
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

from ora_pg_compare.compare_service import generate_comparison_report
from ora_pg_compare.errors import CompareError
from ora_pg_compare.log import setup_logging


def _project_root_from_script() -> Path:
    """Find repo root by walking up to the folder containing pyproject.toml."""
    here = Path(__file__).resolve()
    for p in [here.parent, *here.parents]:
        if (p / "pyproject.toml").exists():
            return p
    return here.parent.parent


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("oracle_schema")
    parser.add_argument("postgres_schema")
    parser.add_argument("--out-dir", type=Path, default=None)
    args = parser.parse_args()

    setup_logging()
    try:
        data = generate_comparison_report(args.oracle_schema, args.postgres_schema)
    except CompareError as exc:
        print(f"Comparison failed: {exc}", file=sys.stderr)
        return 1

    out_dir = args.out_dir or _project_root_from_script() / "output"
    out_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_path = out_dir / f"database_comparison_{args.oracle_schema}_{args.postgres_schema}_{ts}.xlsx"
    out_path.write_bytes(data)

    print(f"Bytes: {len(data)}")
    print(f"Output: {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
