#!/usr/bin/env python3
"""
Operator tooling for card positions.

Exit code:
  0 = command succeeded (for ``diagnose``: no issues found)
  1 = issues found or the command failed

Typical usage:
  board-order diagnose
  board-order stats todo
  board-order rebalance --all
  board-order repair --dry-run
  board-order repair --strategy fix_missing --column todo
  board-order migrate
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from board_order.core.settings import settings
from board_order.db.session import SessionLocal, create_tables
from board_order.scripts.migrate import run_upgrade_head
from board_order.services.diagnostics import PositionDiagnostics
from board_order.services.rebalancer import PositionRebalancer, RepairStrategy

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def say(msg: str) -> None:
    print(f"[board-order] {msg}")


def fail(msg: str) -> None:
    print(f"[board-order][FAIL] {msg}", file=sys.stderr)


# ---------- Commands ----------

def cmd_diagnose(session: Session, args: argparse.Namespace) -> int:
    report = PositionDiagnostics(session).run()
    if args.json:
        print(report.model_dump_json(indent=2))
        return 0 if report.healthy else 1

    say(f"position column type: {report.position_column_type}")
    for group in report.groups:
        say(
            f"{group.column_key}: {group.count} card(s), {group.null_positions} null, "
            f"{group.duplicate_cards} duplicated, {group.inversions} inverted, "
            f"{group.small_gaps} small gap(s)"
        )
    for issue in report.issues:
        where = f" in {issue.column_key}" if issue.column_key else ""
        say(f"[{issue.severity.upper()}] {issue.type}{where}: {issue.detail}")
    if report.healthy:
        say("no issues found")
        return 0
    return 1


def cmd_stats(session: Session, args: argparse.Namespace) -> int:
    stats = PositionRebalancer(session).get_gap_statistics(args.column)
    print(json.dumps({"column_key": args.column, **stats}, indent=2))
    return 0


def cmd_rebalance(session: Session, args: argparse.Namespace) -> int:
    rebalancer = PositionRebalancer(session)
    if args.all:
        results = rebalancer.rebalance_all()
        if not results:
            say("no column needs rebalancing")
        for column_key, count in results.items():
            say(f"rebalanced {column_key}: {count} card(s)")
        return 0
    if not args.column:
        fail("give a column key or --all")
        return 1
    count = rebalancer.rebalance_column(args.column)
    say(f"rebalanced {args.column}: {count} card(s)")
    return 0


def cmd_repair(session: Session, args: argparse.Namespace) -> int:
    results = PositionRebalancer(session).repair(
        dry_run=args.dry_run,
        strategy=RepairStrategy(args.strategy),
        column_key=args.column,
    )
    verb = "would repair" if args.dry_run else "repaired"
    if not results:
        say("nothing to repair")
    for column_key, count in results.items():
        say(f"{verb} {column_key}: {count} card(s)")
    return 0


def cmd_init_db(session: Session, args: argparse.Namespace) -> int:
    create_tables(session.get_bind())
    say("database initialized")
    return 0


def cmd_migrate(session: Session, args: argparse.Namespace) -> int:
    run_upgrade_head(args.url)
    say("database upgraded to head")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="board-order",
        description="Inspect and maintain card positions",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    diagnose = sub.add_parser("diagnose", help="Report ordering anomalies (read-only)")
    diagnose.add_argument("--json", action="store_true", help="Print the report as JSON")
    diagnose.set_defaults(handler=cmd_diagnose)

    stats = sub.add_parser("stats", help="Show gap statistics for a column")
    stats.add_argument("column")
    stats.set_defaults(handler=cmd_stats)

    rebalance = sub.add_parser("rebalance", help="Re-space a column")
    rebalance.add_argument("column", nargs="?")
    rebalance.add_argument(
        "--all",
        action="store_true",
        help="Rebalance every column with gaps below the minimum",
    )
    rebalance.set_defaults(handler=cmd_rebalance)

    repair = sub.add_parser("repair", help="Fix the columns diagnostics flags")
    repair.add_argument("--dry-run", action="store_true", help="Only list affected columns")
    repair.add_argument(
        "--strategy",
        choices=[strategy.value for strategy in RepairStrategy],
        default=RepairStrategy.REGENERATE.value,
        help="regenerate: rebalance flagged columns; fix_missing: only place cards without a position",
    )
    repair.add_argument("--column", default=None, help="Only repair this column")
    repair.set_defaults(handler=cmd_repair)

    init_db = sub.add_parser("init-db", help="Create missing tables")
    init_db.set_defaults(handler=cmd_init_db)

    migrate = sub.add_parser("migrate", help="Apply Alembic migrations up to head")
    migrate.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to effective settings URL)",
    )
    migrate.set_defaults(handler=cmd_migrate)
    return parser


def main(argv: Sequence[str] | None = None, session_factory: SessionFactory = SessionLocal) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    session = session_factory()
    try:
        return args.handler(session, args)
    except SQLAlchemyError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        fail(str(exc))
        return 1
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
