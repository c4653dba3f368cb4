from __future__ import annotations

import argparse

from status_dashboard.app.ddl import render_table_ddl
from status_dashboard.app.settings import get_settings
from status_dashboard.app.tables import build_table_specs


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print SQL that creates the dashboard tables in a Supabase project."
    )
    parser.add_argument(
        "--table",
        choices=["drn", "ucm", "all"],
        default="all",
        help="Which table to print (default: all).",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    settings = get_settings()
    specs = build_table_specs(drn_table=settings.drn_table, ucm_table=settings.ucm_table)
    selected = specs.values() if args.table == "all" else [specs[args.table]]
    print("\n".join(render_table_ddl(spec) for spec in selected))


if __name__ == "__main__":
    main()
