"""Stage selection and sequential execution of the pipeline."""

from typing import Dict, List, Optional, Type

from loguru import logger

from fosdecisions.dbs.layout import DatasetLayout
from fosdecisions.models.options import STAGES, PipelineOptions
from fosdecisions.services.discovery_service import DiscoveryService
from fosdecisions.services.enrich_service import EnrichService
from fosdecisions.services.factory import ServiceFactoryABC
from fosdecisions.services.ingest_service import IngestService
from fosdecisions.services.parse_service import ParseService
from fosdecisions.services.report import StageReport
from fosdecisions.services.vectorize_service import VectorizeService

STAGE_SERVICES: Dict[str, Type[ServiceFactoryABC]] = {
    "discover": DiscoveryService,
    "parse": ParseService,
    "enrich": EnrichService,
    "vectorize": VectorizeService,
    "ingest": IngestService,
}


def parse_stages(value: Optional[str]) -> List[str]:
    """
    Resolve a stage argument to stage names in canonical order.

    Accepts "all" (or nothing) or a comma-separated list of stage names.

    Raises:
        ValueError: If any name is not a known stage
    """
    if not value or value.strip().lower() == "all":
        return list(STAGES)
    requested = [name.strip().lower() for name in value.split(",") if name.strip()]
    unknown = [name for name in requested if name not in STAGES]
    if unknown or not requested:
        raise ValueError(f"Unknown stage(s): {', '.join(unknown) or value}. Use one of: {', '.join(STAGES)}, all")
    return [stage for stage in STAGES if stage in requested]


class PipelineService:
    """Runs the selected stages one after another."""

    def __init__(
        self,
        options: PipelineOptions,
        layout: Optional[DatasetLayout] = None,
        services: Optional[Dict[str, Type[ServiceFactoryABC]]] = None,
    ):
        self.options = options
        self.layout = layout or DatasetLayout.from_settings(index_path=options.index_path, pdf_dir=options.pdf_dir)
        self.services = services or STAGE_SERVICES

    def run_stage(self, stage: str, options: Optional[PipelineOptions] = None) -> StageReport:
        if stage not in self.services:
            raise ValueError(f"Unknown stage: {stage}")
        self.layout.ensure_dirs()
        service = self.services[stage].create_default(options or self.options, self.layout)
        return service.run()

    def run(self) -> List[StageReport]:
        reports = []
        for stage in STAGES:
            if stage in self.options.stages:
                logger.info(f"Starting stage: {stage}")
                reports.append(self.run_stage(stage))
        logger.info("Pipeline complete")
        return reports
