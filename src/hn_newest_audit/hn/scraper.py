from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urljoin, urlparse

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from ..config import AppConfig
from ..models import MAX_ARTICLES, ArticleRecord, RunResult
from ..util.artifacts import ensure_output_dirs, screenshot_path, trace_path
from ..util.dates import parse_article_date
from ..validation import is_descending_by_date
from .auth import HackerNewsAuthenticator, LoginCredentials
from .selectors import SiteSelectors


logger = logging.getLogger(__name__)


class ScrapeError(RuntimeError):
    """
    A listing page could not be loaded or read. Consumes one retry attempt.
    """


class NavigationError(ScrapeError):
    pass


class ExtractionError(ScrapeError):
    pass


def launch_browser(p: Playwright, *, engine: str, headless: bool = True, slow_mo_ms: int = 0) -> Browser:
    browser_type = getattr(p, engine)
    slow_mo = int(slow_mo_ms or 0)
    try:
        return browser_type.launch(headless=headless, slow_mo=slow_mo)
    except Exception as e:
        msg = str(e)
        if engine != "chromium" or "Executable doesn't exist" not in msg:
            raise

        logger.warning(
            "Playwright Chromium executable missing; falling back to system browser channel. (%s)",
            msg,
        )
        # Try Chrome first, then Edge.
        try:
            return browser_type.launch(headless=headless, slow_mo=slow_mo, channel="chrome")
        except Exception:
            return browser_type.launch(headless=headless, slow_mo=slow_mo, channel="msedge")


class NewestArticlesScraper:
    """
    Walks the "newest" listing page by page (following the "More" link) until it has
    `retry.target_articles` records or hits the page ceiling, then checks the order.
    """

    def __init__(
        self,
        cfg: AppConfig,
        *,
        selectors: Optional[SiteSelectors] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cfg = cfg
        self.selectors = selectors or SiteSelectors()
        self._sleep = sleep

    def run(self) -> RunResult:
        run = self.cfg.run
        ensure_output_dirs(self.cfg.output.screenshots_dir, self.cfg.output.traces_dir)
        with sync_playwright() as p:
            browser = launch_browser(p, engine=run.browser, headless=run.headless, slow_mo_ms=run.slow_mo_ms)
            return self.scrape_with_browser(browser)

    def scrape_with_browser(self, browser: Browser) -> RunResult:
        """
        Run the whole audit on an already-launched browser. The browser is closed on return.
        """
        run = self.cfg.run
        context: Optional[BrowserContext] = None
        try:
            context = browser.new_context(**self._context_kwargs())
            if run.trace:
                context.tracing.start(screenshots=True, snapshots=True)

            if run.auth:
                auth = HackerNewsAuthenticator(
                    site=self.cfg.site,
                    creds=LoginCredentials(username=run.username, password=run.password),
                    engine=run.browser,
                    screenshots_dir=self.cfg.output.screenshots_dir,
                    timeouts=self.cfg.timeouts,
                    selectors=self.selectors,
                )
                outcome = auth.authenticate(context)
                if not outcome.succeeded:
                    logger.error("Aborting test due to login failure.")
                    return RunResult(
                        errors=[outcome.message or "Login failed."],
                        trace_path=self._stop_trace(context),
                    )

            page = context.new_page()
            articles, pages_scraped, errors = self._paginate(page)

            is_sorted = is_descending_by_date(articles)
            self._log_summary(articles, is_sorted)

            return RunResult(
                articles=articles,
                is_sorted=is_sorted,
                errors=errors,
                pages_scraped=pages_scraped,
                trace_path=self._stop_trace(context),
            )
        finally:
            if context is not None:
                try:
                    context.close()
                except Exception:
                    logger.debug("Failed to close browser context.", exc_info=True)
            browser.close()

    def _stop_trace(self, context: BrowserContext) -> Optional[str]:
        run = self.cfg.run
        if not run.trace:
            return None
        out = trace_path(self.cfg.output.traces_dir, engine=run.browser)
        out.parent.mkdir(parents=True, exist_ok=True)
        context.tracing.stop(path=str(out))
        logger.info("Trace saved to %s", out)
        return str(out)

    def _context_kwargs(self) -> dict:
        kwargs: dict = {}
        state = (self.cfg.run.storage_state_path or "").strip()
        if state:
            if Path(state).exists():
                kwargs["storage_state"] = state
            else:
                logger.warning("Storage state file not found (%s); starting with a fresh session.", state)
        return kwargs

    def _paginate(self, page: Page) -> tuple[list[ArticleRecord], int, list[str]]:
        run = self.cfg.run
        retry = self.cfg.retry
        target = min(retry.target_articles, MAX_ARTICLES)

        articles: list[ArticleRecord] = []
        errors: list[str] = []
        next_url: Optional[str] = self.cfg.site.newest_url
        current_page = 1
        retry_count = 0

        while len(articles) < target and next_url and current_page <= run.pages:
            # Records are only kept once the whole page succeeded, so a retry never duplicates rows.
            page_articles: list[ArticleRecord] = []
            try:
                logger.info("Scraping page %d: %s", current_page, next_url)
                page_articles, next_url = self._scrape_page(
                    page,
                    url=next_url,
                    page_number=current_page,
                    remaining=target - len(articles),
                )
            except Exception as e:
                logger.error("Error on page %d: %s", current_page, e)
                retry_count += 1
                if retry_count >= retry.max_attempts:
                    msg = f"Failed to load page {current_page} after {retry.max_attempts} attempts: {e}"
                    logger.error("%s", msg)
                    errors.append(msg)
                    break
                self._sleep(retry.backoff_seconds)
                continue

            articles.extend(page_articles)
            current_page += 1
            retry_count = 0

        return articles, current_page - 1, errors

    def _scrape_page(
        self,
        page: Page,
        *,
        url: str,
        page_number: int,
        remaining: int,
    ) -> tuple[list[ArticleRecord], Optional[str]]:
        run = self.cfg.run
        timeouts = self.cfg.timeouts
        sel = self.selectors

        page.goto(url, wait_until="domcontentloaded", timeout=timeouts.navigation_ms)
        if page.url != url:
            raise NavigationError(f"Expected {url}, landed on {page.url}")

        try:
            page.wait_for_load_state("networkidle", timeout=timeouts.network_idle_ms)
        except PlaywrightTimeoutError:
            logger.info("Continuing after networkidle timeout")

        host = (urlparse(page.url).netloc or "").lower()
        if host != self.cfg.site.host:
            raise NavigationError(f"Invalid URL: {page.url}")

        page.wait_for_selector(sel.article_row, timeout=timeouts.rows_ms)
        shot = screenshot_path(
            self.cfg.output.screenshots_dir,
            engine=run.browser,
            page_number=page_number,
            authenticated=run.auth,
        )
        page.screenshot(path=str(shot))

        rows = page.locator(sel.article_row)
        count = rows.count()
        if count <= 0:
            raise ExtractionError(f"No articles found on page {page_number}")

        records: list[ArticleRecord] = []
        for i in range(count):
            row = rows.nth(i)
            title = row.locator(sel.title_link).first.text_content() or ""
            age_link = row.locator(sel.subtext_row).locator(sel.age_link).first
            age_text = age_link.text_content() or ""
            raw_ts = age_link.get_attribute("title")

            records.append(
                ArticleRecord(
                    id=row.get_attribute("id") or "",
                    title=title,
                    age_text=age_text,
                    posted_at=parse_article_date(raw_ts, label=title.strip()),
                )
            )
            if len(records) >= remaining:
                break

        next_url: Optional[str] = None
        more = page.query_selector(sel.more_link)
        if more is not None and page_number < run.pages:
            href = more.get_attribute("href")
            if href:
                next_url = urljoin(self.cfg.site.base_url + "/", href)

        return records, next_url

    def _log_summary(self, articles: list[ArticleRecord], is_sorted: bool) -> None:
        target = min(self.cfg.retry.target_articles, MAX_ARTICLES)
        if len(articles) == target:
            logger.info("Articles are %s sorted from newest to oldest.", "correctly" if is_sorted else "not")
            for i, article in enumerate(articles, start=1):
                logger.info("%d. %s", i, article.title)
                logger.info("   Posted: %s", article.age_text)
        else:
            logger.info("Only found %d articles.", len(articles))
