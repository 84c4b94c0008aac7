"""
Decision repository using INSERT ... ON CONFLICT upserts.

The statement is built with the dialect-specific insert construct so the
same code runs against PostgreSQL and SQLite.
"""

from typing import Any, Dict, Optional

from loguru import logger
from neopipe import Result, Ok, Err
from sqlalchemy import func, select

from fosdecisions.dbs.interfaces.decision_store import AbstractDecisionRepository
from fosdecisions.dbs.models import FosDecision, UPSERT_COLUMNS
from fosdecisions.dbs.postgres_db import PostgreSQLDatabase


def _dialect_insert(dialect: str):
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise ValueError(f"Upsert is not supported for database dialect: {dialect}")
    return insert


class PostgreSQLDecisionAdapter(AbstractDecisionRepository):
    """Writes flattened decisions into fos_decisions."""

    def __init__(self, database: PostgreSQLDatabase) -> None:
        self.database = database
        self._insert = _dialect_insert(database.dialect)

    def build_upsert(self, row: Dict[str, Any]):
        table = FosDecision.__table__
        values = {key: value for key, value in row.items() if key in table.c}
        statement = self._insert(table).values(**values)
        update_set = {column: statement.excluded[column] for column in UPSERT_COLUMNS}
        update_set["updated_at"] = func.now()
        return statement.on_conflict_do_update(
            index_elements=["decision_reference"],
            set_=update_set,
        )

    def upsert(self, row: Dict[str, Any]) -> Result[str, str]:
        """
        Insert or refresh one decision row.

        Returns:
            Result[str, str]: Ok with the decision reference or Err with the error message
        """
        reference = row.get("decision_reference")
        if not reference:
            return Err("Row has no decision_reference")
        try:
            with self.database.get_session() as session:
                session.execute(self.build_upsert(row))
            logger.debug(f"Upserted {reference}")
            return Ok(reference)
        except Exception as e:
            error_msg = f"Upsert failed for {reference}: {e}"
            logger.error(error_msg)
            return Err(error_msg)

    def get(self, decision_reference: str) -> Optional[Dict[str, Any]]:
        with self.database.get_session() as session:
            decision = session.get(FosDecision, decision_reference)
            return decision.model_dump() if decision else None

    def count(self) -> int:
        with self.database.get_session() as session:
            return session.execute(select(func.count()).select_from(FosDecision.__table__)).scalar_one()
