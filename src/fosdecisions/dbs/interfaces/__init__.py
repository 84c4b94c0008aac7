from fosdecisions.dbs.interfaces.document_store import AbstractDocumentStore
from fosdecisions.dbs.interfaces.decision_store import AbstractDecisionRepository

__all__ = ["AbstractDocumentStore", "AbstractDecisionRepository"]
