import json
from datetime import datetime, timezone

from fosdecisions.core.enums import Outcome, SectionKey
from fosdecisions.dbs.adapters import DecisionIndexStore
from fosdecisions.models import DecisionInsights, DecisionRecord, ParsedDecision, PipelineOptions
from tests.conftest import make_parsed


def test_record_outcome_is_normalized():
    assert DecisionRecord(outcome="Partially upheld").outcome == Outcome.PARTIALLY_UPHELD
    assert DecisionRecord(outcome="not_upheld").outcome == Outcome.NOT_UPHELD
    assert DecisionRecord().outcome == Outcome.UNKNOWN


def test_record_json_round_trip(tmp_path):
    record = DecisionRecord(
        decision_reference="DRN1",
        outcome="Upheld",
        scraped_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )
    path = record.save_json(tmp_path / "record.json")

    assert path.read_text().endswith("\n")
    assert DecisionRecord.load_json(path).model_dump() == record.model_dump()


def test_parsed_sections_drop_unknown_keys():
    parsed = make_parsed(sections={"complaint": "c", "appendix": "x"})
    assert parsed.sections == {SectionKey.COMPLAINT: "c"}
    assert parsed.section(SectionKey.FINAL_DECISION) is None


def test_parsed_from_record_keeps_record_fields():
    record = DecisionRecord(decision_reference="DRN1", business_name="Acme")
    parsed = ParsedDecision.from_record(record, pdf_path="p.pdf", pdf_sha256="abc")
    assert parsed.business_name == "Acme"
    assert parsed.full_text == ""


def test_insights_coerce_nulls():
    insights = DecisionInsights.model_validate({
        "precedents_cited": None,
        "root_cause_tags": None,
        "decision_logic": None,
        "vulnerability_flags": None,
        "outcome": "not upheld",
    })
    assert insights.precedents_cited == []
    assert insights.decision_logic == ""
    assert insights.outcome == Outcome.NOT_UPHELD


def test_options_date_window():
    options = PipelineOptions(start_date="2020-01-01", end_date="2020-12-31")
    assert options.in_date_range("12 March 2020")
    assert not options.in_date_range("12 March 2019")
    assert not options.in_date_range("2021-01-01")
    assert options.in_date_range("sometime")
    assert PipelineOptions(end_date="  ").end_date is None


def test_index_store_skips_malformed_lines(tmp_path, log_messages):
    path = tmp_path / "decisions-index.jsonl"
    path.write_text(
        json.dumps({"decision_reference": "DRN1", "pdf_url": "a"}) + "\n"
        + "{not json\n"
        + json.dumps({"decision_reference": "DRN2", "page_count": "many"}) + "\n"
        + json.dumps({"decision_reference": "DRN3", "pdf_url": "a"}) + "\n"
    )
    store = DecisionIndexStore(path)

    assert [r.decision_reference for r in store.read()] == ["DRN1", "DRN3"]
    assert store.dedupe() == 1
    assert [r.decision_reference for r in store.read()] == ["DRN1"]
    assert any("Skipping invalid index row" in message for message in log_messages)


def test_index_store_append(tmp_path):
    store = DecisionIndexStore(tmp_path / "index.jsonl")
    store.write([DecisionRecord(decision_reference="DRN1")])
    store.write([DecisionRecord(decision_reference="DRN2")], append=True)
    assert [r.decision_reference for r in store.read()] == ["DRN1", "DRN2"]
    assert not DecisionIndexStore(tmp_path / "missing.jsonl").read()
