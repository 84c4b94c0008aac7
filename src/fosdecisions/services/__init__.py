"""Pipeline stage services"""

from fosdecisions.services.factory import ServiceFactoryABC
from fosdecisions.services.report import StageReport
from fosdecisions.services.discovery_service import DiscoveryService
from fosdecisions.services.parse_service import ParseService
from fosdecisions.services.enrich_service import EnrichService
from fosdecisions.services.vectorize_service import VectorizeService
from fosdecisions.services.ingest_service import IngestService
from fosdecisions.services.backfill_service import BackfillService
from fosdecisions.services.pipeline_service import PipelineService, parse_stages

__all__ = [
    "ServiceFactoryABC",
    "StageReport",
    "DiscoveryService",
    "ParseService",
    "EnrichService",
    "VectorizeService",
    "IngestService",
    "BackfillService",
    "PipelineService",
    "parse_stages",
]
