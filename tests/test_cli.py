# mypy: ignore-errors
# tests/test_cli.py
"""Tests for the operator command line."""

import json

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from board_order.scripts.positions import main


def run(session_factory, *argv):
    return main(list(argv), session_factory=session_factory)


def test_diagnose_healthy(session_factory, make_cards, capsys) -> None:
    """A clean board exits 0."""
    make_cards("todo", ["65535", "131070"])

    assert run(session_factory, "diagnose") == 0
    assert "no issues found" in capsys.readouterr().out


def test_diagnose_reports_issues(session_factory, make_cards, capsys) -> None:
    """Issues are listed and the exit code is 1."""
    make_cards("todo", ["1", "1.00001", None])

    assert run(session_factory, "diagnose") == 1
    out = capsys.readouterr().out
    assert "[LOW] small_gap in todo" in out
    assert "[LOW] null in todo" in out


def test_diagnose_json(session_factory, make_cards, capsys) -> None:
    """The JSON report mirrors the API schema."""
    make_cards("todo", ["65535"])

    assert run(session_factory, "diagnose", "--json") == 0
    report = json.loads(capsys.readouterr().out)
    assert report["healthy"] is True
    assert report["groups"][0]["count"] == 1


def test_stats(session_factory, make_cards, capsys) -> None:
    """Gap statistics are printed as JSON."""
    make_cards("todo", ["65535", "131070"])

    assert run(session_factory, "stats", "todo") == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["column_key"] == "todo"
    assert stats["min_gap"] == "65535.0000000000"


def test_rebalance_column(session_factory, make_cards, capsys) -> None:
    """A single column is rebalanced on request."""
    make_cards("todo", ["1", "2"])

    assert run(session_factory, "rebalance", "todo") == 0
    assert "rebalanced todo: 2 card(s)" in capsys.readouterr().out


def test_rebalance_all(session_factory, make_cards, capsys) -> None:
    """--all only reports crowded columns."""
    make_cards("crowded", ["1", "1.00001"])
    make_cards("roomy", ["1", "2"])

    assert run(session_factory, "rebalance", "--all") == 0
    out = capsys.readouterr().out
    assert "rebalanced crowded: 2 card(s)" in out
    assert "roomy" not in out


def test_rebalance_requires_a_target(session_factory, capsys) -> None:
    """Neither a column nor --all is an error."""
    assert run(session_factory, "rebalance") == 1
    assert "--all" in capsys.readouterr().err


def test_repair_dry_run_and_apply(session_factory, make_cards, capsys) -> None:
    """Repair lists, then fixes, columns with unplaced cards."""
    make_cards("todo", ["1", None])

    assert run(session_factory, "repair", "--dry-run") == 0
    assert "would repair todo: 2 card(s)" in capsys.readouterr().out

    assert run(session_factory, "repair") == 0
    assert "repaired todo: 2 card(s)" in capsys.readouterr().out

    assert run(session_factory, "repair") == 0
    assert "nothing to repair" in capsys.readouterr().out


def test_init_db_creates_tables(capsys) -> None:
    """init-db creates the schema on an empty database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    factory = sessionmaker(bind=engine)

    assert run(factory, "init-db") == 0
    assert "card" in inspect(engine).get_table_names()
    engine.dispose()


def test_unknown_command_exits() -> None:
    """argparse rejects unknown sub-commands."""
    with pytest.raises(SystemExit):
        main(["explode"])


def test_migrate_upgrades_to_head(tmp_path, capsys) -> None:
    """Alembic migrations build the same schema as the models."""
    url = f"sqlite:///{tmp_path / 'migrated.db'}"

    assert main(["migrate", "--url", url]) == 0
    assert "upgraded to head" in capsys.readouterr().out

    engine = create_engine(url)
    tables = inspect(engine).get_table_names()
    assert {"card", "alembic_version"} <= set(tables)
    engine.dispose()


def test_repair_fix_missing_for_one_column(session_factory, make_cards, capsys) -> None:
    """--strategy and --column narrow what repair touches."""
    make_cards("todo", ["1", None])
    make_cards("doing", [None])

    assert run(session_factory, "repair", "--strategy", "fix_missing", "--column", "todo") == 0
    out = capsys.readouterr().out
    assert "repaired todo: 1 card(s)" in out
    assert "doing" not in out

    assert run(session_factory, "repair", "--strategy", "fix_missing", "--dry-run") == 0
    assert "would repair doing: 1 card(s)" in capsys.readouterr().out


def test_repair_rejects_unknown_strategy(session_factory) -> None:
    """Only the known strategies are accepted."""
    with pytest.raises(SystemExit):
        run(session_factory, "repair", "--strategy", "shuffle")
