"""Storage layer: dataset layout, stage file stores and the decisions table"""

from fosdecisions.dbs.layout import DatasetLayout, INDEX_FILENAME
from fosdecisions.dbs.postgres_db import PostgreSQLDatabase

__all__ = ["DatasetLayout", "INDEX_FILENAME", "PostgreSQLDatabase"]
