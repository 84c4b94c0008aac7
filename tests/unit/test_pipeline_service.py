import pytest

from fosdecisions.dbs import DatasetLayout
from fosdecisions.models import STAGES, PipelineOptions
from fosdecisions.services.pipeline_service import PipelineService, parse_stages
from fosdecisions.services.report import StageReport


@pytest.mark.parametrize("value", [None, "", "all", "ALL"])
def test_parse_stages_all(value):
    assert parse_stages(value) == STAGES


def test_parse_stages_canonical_order():
    assert parse_stages(" ingest , discover,parse ") == ["discover", "parse", "ingest"]


@pytest.mark.parametrize("value", ["bogus", "parse,scrape", ","])
def test_parse_stages_rejects_unknown(value):
    with pytest.raises(ValueError):
        parse_stages(value)


def make_fake_services(order):
    def fake_service(stage):
        class FakeService:
            @classmethod
            def create_default(cls, options=None, layout=None):
                return cls()

            def run(self):
                order.append(stage)
                return StageReport(stage=stage, processed=1)

        return FakeService

    return {stage: fake_service(stage) for stage in STAGES}


def test_pipeline_runs_selected_stages_in_order(tmp_path):
    order = []
    options = PipelineOptions(stages=["ingest", "parse"])
    pipeline = PipelineService(options, layout=DatasetLayout.at(tmp_path / "fos"), services=make_fake_services(order))

    reports = pipeline.run()

    assert order == ["parse", "ingest"]
    assert [r.stage for r in reports] == ["parse", "ingest"]
    assert (tmp_path / "fos" / "parsed").is_dir()


def test_run_stage_rejects_unknown_stage(tmp_path):
    pipeline = PipelineService(PipelineOptions(), layout=DatasetLayout.at(tmp_path / "fos"), services={})
    with pytest.raises(ValueError):
        pipeline.run_stage("publish")
