from fosdecisions.core.dedupe import dedupe_by_key, record_identity, record_url
from fosdecisions.core.strategies import run_first
from fosdecisions.models import DecisionRecord


def test_dedupe_keeps_first_and_drops_empty_keys():
    rows = [
        {"pdf_url": "a", "n": 1},
        {"pdf_url": None, "n": 2},
        {"pdf_url": "b", "n": 3},
        {"pdf_url": "a", "n": 4},
    ]
    result = dedupe_by_key(rows, record_url)
    assert [row["n"] for row in result] == [1, 3]


def test_dedupe_is_idempotent():
    rows = [{"pdf_url": "a"}, {"pdf_url": "b"}, {"pdf_url": "a"}]
    once = dedupe_by_key(rows, record_identity)
    assert dedupe_by_key(once, record_identity) == once


def test_record_identity_fallback_order():
    assert record_identity({"pdf_url": "p", "source_url": "s", "decision_reference": "r"}) == "p"
    assert record_identity({"source_url": "s", "decision_reference": "r"}) == "s"
    assert record_identity({"decision_reference": "r"}) == "r"
    assert record_identity({}) is None


def test_record_identity_on_models():
    record = DecisionRecord(decision_reference="DRN1", source_url="https://x.test/a")
    assert record_identity(record) == "https://x.test/a"
    assert record_url(DecisionRecord(decision_reference="DRN1")) is None


def test_run_first_skips_failing_strategies():
    calls = []

    def boom():
        raise RuntimeError("no element")

    strategies = [
        (lambda: False, lambda: calls.append("skipped")),
        (lambda: True, boom),
        (lambda: True, lambda: calls.append("second")),
        (lambda: True, lambda: calls.append("third")),
    ]
    assert run_first(strategies) is True
    assert calls == ["second"]


def test_run_first_returns_false_when_nothing_applies():
    assert run_first([(lambda: False, lambda: None)]) is False
