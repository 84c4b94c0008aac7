import json

import pytest

from fosdecisions.dbs import PostgreSQLDatabase
from fosdecisions.dbs.adapters import JsonDirectoryStore, PostgreSQLDecisionAdapter
from fosdecisions.models import PipelineOptions, VectorizedDecision
from fosdecisions.services.ingest_service import IngestService, flatten_decision
from fosdecisions.utils.settings.core import DatabaseSettings
from tests.conftest import make_enriched


def make_vectorized(**overrides) -> VectorizedDecision:
    embedding = overrides.pop("embedding", [0.5, 0.25])
    return VectorizedDecision.from_enriched(make_enriched(**overrides), embedding, "text-embedding-3-large")


@pytest.fixture
def database(tmp_path):
    db = PostgreSQLDatabase(DatabaseSettings(url=f"sqlite:///{tmp_path / 'fos.db'}"))
    db.create_tables()
    yield db
    db.close()


def test_flatten_decision_maps_columns():
    row = flatten_decision(make_vectorized(product_sector=None, ombudsman_name=None))

    assert row["decision_reference"] == "DRN1234567"
    assert row["decision_date"].isoformat() == "2024-03-12"
    assert row["product_sector"] == "Consumer credit"
    assert row["ombudsman_name"] == "Jane Smith"
    assert row["outcome"] == "upheld"
    assert row["complaint_text"] == "Mr A complains about his loan."
    assert row["firm_response_text"] is None
    assert json.loads(row["precedents"]) == ["DISP 3.6.4R"]
    assert json.loads(row["embedding"]) == [0.5, 0.25]
    assert row["embedding_dim"] == 2
    assert row["decision_summary"] == row["decision_logic"]


def test_flatten_decision_without_embedding():
    row = flatten_decision(make_vectorized(embedding=None))
    assert row["embedding"] is None
    assert row["embedding_dim"] is None


def test_ingest_upserts_one_row_per_reference(tmp_path, database):
    vectors = JsonDirectoryStore(tmp_path / "vectors")
    vectors.write("drn1234567", make_vectorized().to_json_dict())
    repository = PostgreSQLDecisionAdapter(database)
    service = IngestService(repository, vectors, PipelineOptions(), database=database)

    assert service.run().processed == 1

    vectors.write("drn1234567", make_vectorized(business_name="Acme Bank Renamed").to_json_dict())
    assert service.run().processed == 1

    assert repository.count() == 1
    row = repository.get("DRN1234567")
    assert row["business_name"] == "Acme Bank Renamed"
    assert row["embedding_dim"] == 2


def test_ingest_skips_records_without_reference(tmp_path, database, log_messages):
    vectors = JsonDirectoryStore(tmp_path / "vectors")
    vectors.write("anonymous", make_vectorized(decision_reference=None).to_json_dict())
    repository = PostgreSQLDecisionAdapter(database)

    report = IngestService(repository, vectors, PipelineOptions(), database=database).run()

    assert report.skipped == 1
    assert repository.count() == 0
    assert any("no decision reference" in message for message in log_messages)


def test_upsert_rejects_row_without_reference(database):
    result = PostgreSQLDecisionAdapter(database).upsert({"business_name": "Acme"})
    assert result.is_err()


def test_missing_database_url_fails_before_ingest(clean_env):
    with pytest.raises(ValueError, match="DATABASE_URL"):
        IngestService.create_default(PipelineOptions())


def test_unreadable_vectors_file_does_not_stop_the_batch(tmp_path, database, log_messages):
    vectors = JsonDirectoryStore(tmp_path / "vectors")
    vectors.write("drn1234567", make_vectorized().to_json_dict())
    (vectors.directory / "aaa.json").write_text('{"decision_reference": "DRN', encoding="utf-8")
    repository = PostgreSQLDecisionAdapter(database)

    report = IngestService(repository, vectors, PipelineOptions(), database=database).run()

    assert report.failed == 1
    assert report.processed == 1
    assert repository.count() == 1
    assert any("Unreadable vectors file aaa" in message for message in log_messages)
