"""Storage adapters for stage files and the relational sink"""

from fosdecisions.dbs.adapters.json_directory_store import JsonDirectoryStore
from fosdecisions.dbs.adapters.jsonl_index_store import DecisionIndexStore
from fosdecisions.dbs.adapters.postgres_decision_adapter import PostgreSQLDecisionAdapter

__all__ = [
    "JsonDirectoryStore",
    "DecisionIndexStore",
    "PostgreSQLDecisionAdapter",
]
