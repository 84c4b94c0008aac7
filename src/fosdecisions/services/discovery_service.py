"""
Discovery stage: scrape the ombudsman decisions search UI.

A headless Chromium page is driven through: navigate, dismiss the cookie
banner, apply date/query filters, then repeatedly extract the visible
results and paginate until one of the stop conditions holds:

1. accumulated unique rows reach ``max_results``
2. two consecutive batches add no new unique rows
3. no pagination control can be advanced
4. ``max_pages`` pages have been paginated
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

from loguru import logger
from playwright.sync_api import Page, sync_playwright

from fosdecisions.core.dedupe import dedupe_by_key, record_identity, record_url
from fosdecisions.core.strategies import Strategy, run_first
from fosdecisions.core.text_extractor import extract_metadata_from_text, normalize_outcome
from fosdecisions.dbs.adapters.jsonl_index_store import DecisionIndexStore
from fosdecisions.dbs.layout import DatasetLayout
from fosdecisions.models.decision import DecisionRecord
from fosdecisions.models.options import PipelineOptions
from fosdecisions.services.factory import ServiceFactoryABC
from fosdecisions.services.report import StageReport
from fosdecisions.utils.clients.http_client import USER_AGENT
from fosdecisions.utils.settings.factory import settings_factory

PDF_LINK_SELECTOR = 'a[href*=".pdf"]'

COOKIE_BUTTON_NAMES = [
    re.compile(r"accept all|accept cookies|agree", re.IGNORECASE),
    re.compile(r"accept", re.IGNORECASE),
]

DATE_FROM_SELECTORS = [
    'input[type="date"][name*="from" i]',
    'input[type="date"][name*="start" i]',
    '#Form_SearchDecisions_DateFrom',
    'input[placeholder*="From" i]',
    'input[placeholder*="Start" i]',
    'input[name*="from" i]',
]

DATE_TO_SELECTORS = [
    'input[type="date"][name*="to" i]',
    'input[type="date"][name*="end" i]',
    '#Form_SearchDecisions_DateTo',
    'input[placeholder*="To" i]',
    'input[placeholder*="End" i]',
    'input[name*="to" i]',
]

QUERY_SELECTORS = [
    'input[type="search"]',
    'input[placeholder*="Search" i]',
    'input[name*="search" i]',
    'input[name*="query" i]',
]

APPLY_SELECTORS = [
    '#Form_SearchDecisions_action_doSearchDecisions',
    'input[type="submit"][value*="Search decisions" i]',
    'button[type="submit"]',
    'input[type="submit"][value*="Search" i]',
    'button:has-text("Apply")',
    'button:has-text("Search")',
]

NEXT_LINK_SELECTOR = 'a:has-text("Next")'

PAGINATION_SELECTORS = [
    'button:has-text("Load more")',
    'button:has-text("Show more")',
    'button:has-text("More")',
    'a:has-text("Next")',
    "button[aria-label*='next' i]",
]

# Runs in the page; returns one plain object per PDF link
EXTRACT_RESULTS_JS = r"""
() => {
  const OUTCOME_RE = /\b(partially upheld|not upheld|upheld|not settled|settled)\b/i;
  const REF_RE = /\b(DRN|DRS|DR)\s*[-]?\s*(\d+)\b/i;
  const normalizeSpace = (value) => (value || "").replace(/\s+/g, " ").trim();

  return Array.from(document.querySelectorAll('a[href*=".pdf"]')).map((link) => {
    const container = link.closest("li") || link.closest("article") || link.closest("div");
    const text = normalizeSpace(container?.textContent || link.textContent || "");

    const headingText = normalizeSpace(container?.querySelector("h3")?.textContent || "");
    const refMatch = headingText.match(REF_RE) || text.match(REF_RE);
    const decision_reference = refMatch ? `${refMatch[1].toUpperCase()}${refMatch[2]}` : null;

    const dateText = normalizeSpace(
      container?.querySelector(".search-result__info-main em, em, time")?.textContent || "",
    );

    let business_name = null;
    let outcome_raw = null;
    const mainInfo = container?.querySelector(".search-result__info-main");
    if (mainInfo) {
      const tokens = Array.from(mainInfo.childNodes)
        .map((node) => normalizeSpace(node.textContent))
        .filter((token) => token && token !== dateText);
      for (const token of tokens) {
        if (!outcome_raw && OUTCOME_RE.test(token)) {
          outcome_raw = token;
        } else if (!business_name && !OUTCOME_RE.test(token)) {
          business_name = token;
        }
      }
    }

    const product_sector = normalizeSpace(
      container?.querySelector(".tag-type, .search-result__tag")?.textContent || "",
    ) || null;

    const descText = normalizeSpace(container?.querySelector(".search-result__desc")?.textContent || "");
    const pageCountMatch = descText.match(/\((\d+)\s+pages?\)/i);

    return {
      decision_reference,
      decision_date: dateText || null,
      business_name,
      outcome_raw,
      product_sector,
      page_count: pageCountMatch ? Number.parseInt(pageCountMatch[1], 10) : null,
      snippet: descText || null,
      text,
      pdf_url: link.href,
      source_url: link.href,
      link_text: normalizeSpace(link.textContent) || null,
    };
  });
}
"""


def _has_match(page: Page, selector: str):
    return lambda: page.locator(selector).count() > 0


def _fill_first(page: Page, selector: str, value: str):
    return lambda: page.locator(selector).first.fill(value)


def _click_then_wait(page: Page, locator, wait_ms: int):
    def action():
        locator.first.click(timeout=2000)
        page.wait_for_timeout(wait_ms)
    return action


def merge_text_metadata(row: Dict[str, Any], scraped_at: datetime) -> DecisionRecord:
    """DOM fields win; gaps are filled from the container text."""
    meta = extract_metadata_from_text(row.get("text"))
    outcome_raw = row.get("outcome_raw") or meta.outcome_raw
    return DecisionRecord(
        decision_reference=row.get("decision_reference") or meta.decision_reference,
        decision_date=row.get("decision_date") or meta.decision_date,
        business_name=row.get("business_name") or meta.business_name,
        product_sector=row.get("product_sector") or meta.product_sector,
        outcome=normalize_outcome(outcome_raw),
        outcome_raw=outcome_raw,
        page_count=row.get("page_count"),
        snippet=row.get("snippet"),
        source_url=row.get("source_url"),
        pdf_url=row.get("pdf_url"),
        link_text=row.get("link_text"),
        raw_text=row.get("text"),
        scraped_at=scraped_at,
    )


class DiscoveryService(ServiceFactoryABC["DiscoveryService"]):
    """Crawls the search UI and writes the decisions index."""

    def __init__(self, index_store: DecisionIndexStore, options: PipelineOptions, search_url: str):
        self.index_store = index_store
        self.options = options
        self.search_url = search_url

    @classmethod
    def create_default(
        cls,
        options: Optional[PipelineOptions] = None,
        layout: Optional[DatasetLayout] = None,
    ) -> "DiscoveryService":
        options = options or PipelineOptions()
        layout = layout or DatasetLayout.from_settings(index_path=options.index_path, pdf_dir=options.pdf_dir)
        app_settings = settings_factory.create_app_settings()
        return cls(DecisionIndexStore(layout.index_path), options, app_settings.search_url)

    def dismiss_cookie_banner(self, page: Page) -> bool:
        strategies: List[Strategy] = []
        for name in COOKIE_BUTTON_NAMES:
            locator = page.get_by_role("button", name=name)
            strategies.append((lambda loc=locator: loc.count() > 0, _click_then_wait(page, locator, 500)))
        return run_first(strategies, label="Cookie banner")

    def apply_filters(self, page: Page) -> None:
        """Fill whichever filter inputs exist and submit; every step is best-effort."""
        fields = [
            (self.options.start_date, DATE_FROM_SELECTORS, "Date-from filter"),
            (self.options.end_date, DATE_TO_SELECTORS, "Date-to filter"),
            (self.options.query, QUERY_SELECTORS, "Query filter"),
        ]
        for value, selectors, label in fields:
            if not value:
                continue
            run_first(
                [(_has_match(page, selector), _fill_first(page, selector, value)) for selector in selectors],
                label=label,
            )

        run_first(
            [
                (_has_match(page, selector), _click_then_wait(page, page.locator(selector), 1000))
                for selector in APPLY_SELECTORS
            ],
            label="Apply filters",
        )

    def extract_batch(self, page: Page) -> List[Dict[str, Any]]:
        return page.evaluate(EXTRACT_RESULTS_JS) or []

    def paginate(self, page: Page) -> bool:
        """Advance to the next page of results; False when nothing advanced."""
        wait_ms = self.options.page_wait_ms
        next_link = page.locator(NEXT_LINK_SELECTOR)

        def next_href() -> Optional[str]:
            if not next_link.count():
                return None
            return next_link.first.get_attribute("href")

        def follow_next_link() -> None:
            href = next_href()
            target = href if href.startswith("http") else urljoin(page.url, href)
            page.goto(target, wait_until="networkidle", timeout=60000)
            page.wait_for_timeout(wait_ms)

        strategies: List[Strategy] = [(lambda: bool(next_href()), follow_next_link)]
        strategies.extend(
            (_has_match(page, selector), _click_then_wait(page, page.locator(selector), wait_ms))
            for selector in PAGINATION_SELECTORS
        )
        return run_first(strategies, label="Pagination")

    def crawl(self, page: Page) -> List[Dict[str, Any]]:
        """Drive an open page through the search UI and return unique raw rows."""
        logger.info(f"Discovering decisions from {self.search_url}")
        page.goto(self.search_url, wait_until="domcontentloaded", timeout=60000)
        page.wait_for_timeout(1000)
        self.dismiss_cookie_banner(page)
        self.apply_filters(page)
        try:
            page.wait_for_selector(PDF_LINK_SELECTOR, timeout=15000)
        except Exception as e:
            # results may still render after the timeout
            logger.debug(f"No PDF links yet: {e}")

        results: List[Dict[str, Any]] = []
        page_count = 0
        previous_count = 0
        stall_count = 0
        max_results = self.options.max_results
        max_pages = self.options.max_pages

        while True:
            page.wait_for_timeout(1000)
            results = dedupe_by_key(results + self.extract_batch(page), record_url)

            if max_results and len(results) >= max_results:
                break

            current_count = len(results)
            added = current_count - previous_count
            page_label = page_count + 1
            if added > 0 and (page_label == 1 or page_label % 5 == 0 or added >= 100):
                logger.info(f"Discovery page {page_label}: +{added} (total {current_count})")

            stall_count = stall_count + 1 if current_count == previous_count else 0
            if stall_count >= 2:
                break

            if not self.paginate(page):
                break

            page_count += 1
            previous_count = current_count
            if max_pages and page_count >= max_pages:
                break

        return results

    def finalize(self, rows: List[Dict[str, Any]]) -> List[DecisionRecord]:
        scraped_at = datetime.now(timezone.utc)
        records = [merge_text_metadata(row, scraped_at) for row in rows]
        return dedupe_by_key(records, record_identity)

    def discover(self) -> List[DecisionRecord]:
        """Launch Chromium, crawl, and return merged unique records."""
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(headless=self.options.headless)
            try:
                page = browser.new_page(user_agent=USER_AGENT)
                rows = self.crawl(page)
            finally:
                browser.close()
        return self.finalize(rows)

    def run(self) -> StageReport:
        records = self.discover()
        self.index_store.write(records, append=self.options.append)
        logger.info(f"Discovered {len(records)} decisions -> {self.index_store.path}")
        return StageReport(stage="discover", processed=len(records))
