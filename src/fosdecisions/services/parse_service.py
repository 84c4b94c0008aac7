"""
Parse stage: resolve, download, hash and read each decision PDF.

For every index record inside the date window the PDF is fetched (or read
from the local cache), hashed with SHA-256, converted to plain text with
PyMuPDF and split into named sections. The result is written to
``parsed/<slug>.json``. A record that cannot be resolved, downloaded or
read is logged and skipped; the rest of the batch carries on.
"""

import re
import time
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urljoin, urlsplit

import pymupdf
from loguru import logger
from neopipe import Result, Ok, Err

from fosdecisions.core.text_extractor import (
    extract_decision_reference,
    extract_ombudsman_name,
    slugify,
    split_sections,
)
from fosdecisions.dbs.adapters.json_directory_store import JsonDirectoryStore
from fosdecisions.dbs.adapters.jsonl_index_store import DecisionIndexStore
from fosdecisions.dbs.layout import DatasetLayout
from fosdecisions.models.decision import DecisionRecord, ParsedDecision
from fosdecisions.models.options import PipelineOptions
from fosdecisions.services.factory import ServiceFactoryABC
from fosdecisions.services.report import StageReport
from fosdecisions.utils.clients.http_client import HttpFetcher
from fosdecisions.utils.file_utils import md5_hex, read_bytes_safe, relative_to_cwd, sha256_hex

PDF_HREF_RE = re.compile(r"""href=["']([^"']+\.pdf[^"']*)["']""", re.IGNORECASE)


def extract_text_from_pdf(data: bytes) -> str:
    """Plain text of every page, in page order.

    Raises:
        RuntimeError: If the bytes cannot be opened or read as a PDF
    """
    try:
        with pymupdf.open(stream=data, filetype="pdf") as doc:
            return "\n".join(page.get_text() for page in doc)
    except Exception as e:
        raise RuntimeError(f"PDF text extraction failed: {e}") from e


def find_pdf_url_in_html(html: str, base_url: str) -> Optional[str]:
    """First href containing ``.pdf``, resolved against ``base_url``."""
    match = PDF_HREF_RE.search(html or "")
    if not match:
        return None
    href = match.group(1)
    if href.startswith("http"):
        return href
    if href.startswith("/"):
        base = urlsplit(base_url)
        return f"{base.scheme}://{base.netloc}{href}"
    return urljoin(base_url, href)


def resolve_pdf_filename(record: DecisionRecord) -> str:
    """``<slug>-<md5[:8]>.pdf``, stable for a given record."""
    reference = slugify(record.decision_reference) if record.decision_reference else None
    base = reference or slugify(record.business_name or "decision") or "decision"
    fingerprint = md5_hex(record.pdf_url or record.source_url or base)[:8]
    return f"{base}-{fingerprint}.pdf"


def output_key(record: DecisionRecord, position: int) -> str:
    return slugify(
        record.decision_reference or record.pdf_url or record.source_url or f"decision-{position}"
    )


class ParseService(ServiceFactoryABC["ParseService"]):
    """Turns index records into parsed decision files."""

    def __init__(
        self,
        index_store: DecisionIndexStore,
        parsed_store: JsonDirectoryStore,
        pdf_dir: Path,
        options: PipelineOptions,
        fetcher: Optional[HttpFetcher] = None,
        text_extractor: Callable[[bytes], str] = extract_text_from_pdf,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.index_store = index_store
        self.parsed_store = parsed_store
        self.pdf_dir = Path(pdf_dir)
        self.options = options
        self.fetcher = fetcher or HttpFetcher()
        self.text_extractor = text_extractor
        self.sleep = sleep

    @classmethod
    def create_default(
        cls,
        options: Optional[PipelineOptions] = None,
        layout: Optional[DatasetLayout] = None,
    ) -> "ParseService":
        options = options or PipelineOptions()
        layout = layout or DatasetLayout.from_settings(index_path=options.index_path, pdf_dir=options.pdf_dir)
        return cls(
            index_store=DecisionIndexStore(layout.index_path),
            parsed_store=JsonDirectoryStore(layout.parsed_dir),
            pdf_dir=layout.pdf_dir,
            options=options,
        )

    def resolve_pdf_url(self, record: DecisionRecord) -> Optional[str]:
        if record.pdf_url:
            return record.pdf_url
        if not record.source_url:
            return None
        try:
            html = self.fetcher.fetch_text(record.source_url, retries=2, base_delay_ms=1200)
        except Exception as e:
            logger.debug(f"Could not fetch {record.source_url}: {e}")
            return None
        return find_pdf_url_in_html(html, record.source_url)

    def load_pdf(self, pdf_url: str, pdf_path: Path) -> bytes:
        """Cached bytes when present, otherwise download and cache."""
        cached = read_bytes_safe(pdf_path)
        if cached is not None:
            logger.debug(f"Using cached PDF {pdf_path}")
            return cached
        data = self.fetcher.download(pdf_url, retries=3, base_delay_ms=1200)
        pdf_path.parent.mkdir(parents=True, exist_ok=True)
        pdf_path.write_bytes(data)
        self.sleep(self.options.download_delay_ms / 1000)
        return data

    def parse_record(self, record: DecisionRecord) -> Result[ParsedDecision, str]:
        """
        Parse one index record.

        Returns:
            Result[ParsedDecision, str]: Ok with the parsed decision or Err with the skip reason
        """
        pdf_url = self.resolve_pdf_url(record)
        if not pdf_url:
            return Err(f"Skipping (no PDF): {record.source_url or record.decision_reference or 'unknown'}")

        record = record.model_copy(update={"pdf_url": pdf_url})
        pdf_path = self.pdf_dir / resolve_pdf_filename(record)

        try:
            data = self.load_pdf(pdf_url, pdf_path)
        except Exception as e:
            return Err(f"Download failed: {pdf_url} ({e})")

        try:
            text = self.text_extractor(data)
        except Exception as e:
            return Err(f"PDF parse failed: {pdf_path} ({e})")

        return Ok(ParsedDecision.from_record(
            record,
            decision_reference=record.decision_reference or extract_decision_reference(text),
            pdf_path=relative_to_cwd(pdf_path),
            pdf_sha256=sha256_hex(data),
            full_text=text,
            sections=split_sections(text),
            ombudsman_name=extract_ombudsman_name(text),
        ))

    def run(self) -> StageReport:
        report = StageReport(stage="parse")
        records = [r for r in self.index_store.read() if self.options.in_date_range(r.decision_date)]
        limit = self.options.limit
        logger.info(f"Parsing decisions (PDF download + text extraction): {len(records)} candidates")

        with self.fetcher:
            for position, record in enumerate(records):
                if not self.options.force and self.parsed_store.exists(output_key(record, position)):
                    report.skip()
                    continue

                if limit and report.processed >= limit:
                    break

                result = self.parse_record(record)
                if result.is_err():
                    logger.warning(result.unwrap_err())
                    report.record(result)
                    continue

                parsed = result.unwrap()
                final_key = slugify(parsed.decision_reference or Path(parsed.pdf_path).stem)
                # rows without a reference only learn their key from the PDF text
                if not self.options.force and self.parsed_store.exists(final_key):
                    report.skip()
                    continue

                self.parsed_store.write(final_key, parsed.to_json_dict())
                report.record(result)
                if report.processed % 10 == 0:
                    logger.info(f"Parsed {report.processed}{f'/{limit}' if limit else ''}")

        report.log_summary()
        return report
