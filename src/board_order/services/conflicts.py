"""Classification of position uniqueness violations.

Every storage driver reports a violated unique constraint differently. This
module is the single place that knows those dialects: each
``ConflictClassifier`` recognizes one backend, and ``get_conflict_classifier``
picks the implementation from the SQLAlchemy dialect name.
"""

from __future__ import annotations

from typing import Final

from sqlalchemy.exc import IntegrityError

from board_order.models.card import POSITION_UNIQUE_CONSTRAINT

SQLITE_UNIQUE_MESSAGE: Final[str] = "UNIQUE constraint failed"
SQLITE_CONSTRAINT_UNIQUE: Final[int] = 2067
MYSQL_ER_DUP_ENTRY: Final[int] = 1062
POSTGRES_UNIQUE_VIOLATION: Final[str] = "23505"


class ConflictClassifier:
    """Decides whether a failed write collided on ``(column_key, position)``.

    The base implementation only matches the constraint name in the driver
    message, which every backend includes in some form.
    """

    dialect: str = "default"

    def __init__(self, constraint_name: str = POSITION_UNIQUE_CONSTRAINT) -> None:
        self.constraint_name = constraint_name

    def is_position_conflict(self, error: BaseException) -> bool:
        """Return True if ``error`` is a uniqueness violation on card positions."""
        if not isinstance(error, IntegrityError):
            return False
        original = error.orig if error.orig is not None else error
        return self._names_constraint(original) or self._is_unique_violation(original)

    def _names_constraint(self, original: BaseException) -> bool:
        return self.constraint_name in str(original)

    def _is_unique_violation(self, original: BaseException) -> bool:
        return False


class SQLiteConflictClassifier(ConflictClassifier):
    """sqlite3 only reports the violated columns in its message."""

    dialect = "sqlite"

    def _is_unique_violation(self, original: BaseException) -> bool:
        if getattr(original, "sqlite_errorcode", None) == SQLITE_CONSTRAINT_UNIQUE:
            return True
        return SQLITE_UNIQUE_MESSAGE in str(original)


class MySQLConflictClassifier(ConflictClassifier):
    """PyMySQL and mysqlclient put the server error code in ``args[0]``."""

    dialect = "mysql"

    def _is_unique_violation(self, original: BaseException) -> bool:
        args = getattr(original, "args", ())
        return bool(args) and args[0] == MYSQL_ER_DUP_ENTRY


class PostgresConflictClassifier(ConflictClassifier):
    """psycopg exposes the SQLSTATE as ``sqlstate``; psycopg2 as ``pgcode``."""

    dialect = "postgresql"

    def _is_unique_violation(self, original: BaseException) -> bool:
        code = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
        return code == POSTGRES_UNIQUE_VIOLATION


_CLASSIFIERS: dict[str, type[ConflictClassifier]] = {
    "sqlite": SQLiteConflictClassifier,
    "mysql": MySQLConflictClassifier,
    "mariadb": MySQLConflictClassifier,
    "postgresql": PostgresConflictClassifier,
}


def register_conflict_classifier(dialect: str, classifier: type[ConflictClassifier]) -> None:
    """Register the classifier used for a SQLAlchemy dialect name."""
    _CLASSIFIERS[dialect] = classifier


def get_conflict_classifier(
    dialect: str, constraint_name: str = POSITION_UNIQUE_CONSTRAINT
) -> ConflictClassifier:
    """Return the classifier for ``dialect``, falling back to constraint-name matching."""
    return _CLASSIFIERS.get(dialect, ConflictClassifier)(constraint_name)
