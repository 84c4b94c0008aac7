import hashlib
import json
from pathlib import Path

import httpx
import pymupdf
import pytest

from fosdecisions.dbs import DatasetLayout
from fosdecisions.dbs.adapters import DecisionIndexStore, JsonDirectoryStore
from fosdecisions.models import DecisionRecord, PipelineOptions
from fosdecisions.services.parse_service import (
    ParseService,
    extract_text_from_pdf,
    find_pdf_url_in_html,
    resolve_pdf_filename,
)
from fosdecisions.utils.clients.http_client import HttpFetcher

PDF_URL = "https://www.example.test/decisions/DRN1234567.pdf"
PDF_TEXT = "Ombudsman: Jane Smith\nMy findings\nThe bank acted unfairly.\nMy final decision\nI uphold it."


def md5_prefix(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()[:8]


@pytest.fixture
def layout(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    layout = DatasetLayout.at(tmp_path / "fos")
    layout.ensure_dirs()
    return layout


def make_service(layout, records, handler, **options):
    DecisionIndexStore(layout.index_path).write(records)
    sleeps = []
    client = httpx.Client(transport=httpx.MockTransport(handler))
    service = ParseService(
        index_store=DecisionIndexStore(layout.index_path),
        parsed_store=JsonDirectoryStore(layout.parsed_dir),
        pdf_dir=layout.pdf_dir,
        options=PipelineOptions(**options),
        fetcher=HttpFetcher(client=client, sleep=lambda seconds: None),
        text_extractor=lambda data: PDF_TEXT,
        sleep=sleeps.append,
    )
    return service, sleeps


def test_extract_text_from_real_pdf():
    doc = pymupdf.open()
    page = doc.new_page()
    page.insert_text((72, 72), "My final decision\nI uphold this complaint.")
    data = doc.tobytes()
    doc.close()

    assert "I uphold this complaint." in extract_text_from_pdf(data)


def test_extract_text_from_invalid_bytes():
    with pytest.raises(RuntimeError):
        extract_text_from_pdf(b"not a pdf")


def test_find_pdf_url_in_html():
    base = "https://www.example.test/decisions/view"
    assert find_pdf_url_in_html('<a href="/files/a.pdf">x</a>', base) == "https://www.example.test/files/a.pdf"
    assert find_pdf_url_in_html("<a href='docs/b.pdf?x=1'>", base) == "https://www.example.test/decisions/docs/b.pdf?x=1"
    assert find_pdf_url_in_html('<a href="https://cdn.test/c.pdf">', base) == "https://cdn.test/c.pdf"
    assert find_pdf_url_in_html("<p>no links</p>", base) is None


def test_resolve_pdf_filename_is_stable():
    record = DecisionRecord(decision_reference="DRN-1", pdf_url=PDF_URL)
    assert resolve_pdf_filename(record) == f"drn-1-{md5_prefix(PDF_URL)}.pdf"
    assert resolve_pdf_filename(record) == resolve_pdf_filename(record.model_copy())

    anonymous = DecisionRecord(pdf_url=PDF_URL)
    assert resolve_pdf_filename(anonymous) == f"decision-{md5_prefix(PDF_URL)}.pdf"


def test_network_failure_skips_record(layout, log_messages):
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    record = DecisionRecord(decision_reference="DRN1234567", pdf_url=PDF_URL)
    service, _ = make_service(layout, [record], handler)

    report = service.run()

    assert report.failed == 1
    assert report.processed == 0
    assert list(layout.parsed_dir.iterdir()) == []
    assert any("Download failed" in message for message in log_messages)


def test_download_parses_and_caches(layout):
    calls = []

    def handler(request):
        calls.append(str(request.url))
        return httpx.Response(200, content=b"%PDF-fake")

    record = DecisionRecord(decision_reference="DRN1234567", decision_date="12 March 2024", pdf_url=PDF_URL)
    service, sleeps = make_service(layout, [record], handler)

    report = service.run()

    assert report.processed == 1
    assert calls == [PDF_URL]
    assert sleeps == [0.5]

    filename = resolve_pdf_filename(record)
    assert (layout.pdf_dir / filename).read_bytes() == b"%PDF-fake"

    parsed = json.loads((layout.parsed_dir / "drn1234567.json").read_text())
    assert parsed["pdf_path"] == str(Path("fos") / "pdfs" / filename)
    assert parsed["pdf_sha256"] == hashlib.sha256(b"%PDF-fake").hexdigest()
    assert parsed["ombudsman_name"] == "Jane Smith"
    assert parsed["sections"]["final_decision"] == "I uphold it."
    assert parsed["sections"]["ombudsman_reasoning"] == "The bank acted unfairly."


def test_cached_pdf_is_not_downloaded(layout):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500)

    record = DecisionRecord(decision_reference="DRN1234567", pdf_url=PDF_URL)
    (layout.pdf_dir / resolve_pdf_filename(record)).write_bytes(b"cached bytes")
    service, sleeps = make_service(layout, [record], handler)

    service.run()

    assert calls == []
    assert sleeps == []
    parsed = json.loads((layout.parsed_dir / "drn1234567.json").read_text())
    assert parsed["pdf_sha256"] == hashlib.sha256(b"cached bytes").hexdigest()


def test_existing_output_is_skipped(layout):
    def handler(request):
        raise AssertionError("should not fetch")

    record = DecisionRecord(decision_reference="DRN1234567", pdf_url=PDF_URL)
    JsonDirectoryStore(layout.parsed_dir).write("drn1234567", {"decision_reference": "DRN1234567"})
    service, _ = make_service(layout, [record], handler)

    report = service.run()

    assert report.skipped == 1
    assert report.processed == 0


def test_pdf_url_resolved_from_source_page(layout):
    def handler(request):
        if str(request.url).endswith(".pdf"):
            return httpx.Response(200, content=b"%PDF-fake")
        return httpx.Response(200, text='<a href="/files/DRN55.pdf">Download</a>')

    record = DecisionRecord(decision_reference="DRN55", source_url="https://www.example.test/decisions/55")
    service, _ = make_service(layout, [record], handler)

    service.run()

    parsed = json.loads((layout.parsed_dir / "drn55.json").read_text())
    assert parsed["pdf_url"] == "https://www.example.test/files/DRN55.pdf"


def test_date_filter_and_limit(layout):
    def handler(request):
        return httpx.Response(200, content=b"%PDF-fake")

    records = [
        DecisionRecord(decision_reference="DRN1", decision_date="12 March 2010", pdf_url=PDF_URL + "?1"),
        DecisionRecord(decision_reference="DRN2", decision_date="12 March 2024", pdf_url=PDF_URL + "?2"),
        DecisionRecord(decision_reference="DRN3", decision_date="no date", pdf_url=PDF_URL + "?3"),
    ]
    service, _ = make_service(layout, records, handler, limit=1)

    report = service.run()

    assert report.processed == 1
    assert JsonDirectoryStore(layout.parsed_dir).keys() == ["drn2"]


def test_owned_http_client_is_closed_after_run(layout):
    DecisionIndexStore(layout.index_path).write([])
    service = ParseService.create_default(PipelineOptions(), layout)

    service.run()

    assert service.fetcher.client.is_closed


def test_injected_http_client_is_left_open(layout):
    def handler(request):
        return httpx.Response(200, content=b"%PDF-fake")

    record = DecisionRecord(decision_reference="DRN1234567", pdf_url=PDF_URL)
    service, _ = make_service(layout, [record], handler)

    service.run()

    assert not service.fetcher.client.is_closed


def test_reference_found_in_pdf_text_is_skipped_on_rerun(layout):
    def handler(request):
        return httpx.Response(200, content=b"%PDF-fake")

    record = DecisionRecord(pdf_url=PDF_URL)
    service, _ = make_service(layout, [record], handler, limit=1)
    service.text_extractor = lambda data: "Decision reference DRN9876543\n" + PDF_TEXT

    first = service.run()
    assert first.processed == 1
    assert JsonDirectoryStore(layout.parsed_dir).keys() == ["drn9876543"]

    second = service.run()
    assert second.skipped == 1
    assert second.processed == 0
