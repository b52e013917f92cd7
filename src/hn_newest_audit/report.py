from __future__ import annotations

import base64
import html as _html
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Union

from playwright.sync_api import sync_playwright

from .config import RunConfig
from .hn.scraper import launch_browser
from .models import RunResult


logger = logging.getLogger(__name__)

REPORT_TITLE = "Hacker News Scraping Test Report"
NO_SCREENSHOTS_NOTICE = "No screenshots were captured during this test run"
NO_TRACES_NOTICE = "No trace files were generated during this test run"

_PASS_COLOR = "#27ae60"
_FAIL_COLOR = "#c0392b"

_STYLE = """
body { font-family: Helvetica, Arial, sans-serif; color: #333333; font-size: 12pt; margin: 0; }
h1 { font-size: 24pt; color: #1a365d; text-align: center; margin: 0 0 6pt 0; }
.generated { font-size: 10pt; color: #666666; text-align: center; margin-bottom: 24pt; }
h2 { font-size: 16pt; color: #2c3e50; text-decoration: underline; font-weight: normal; margin: 18pt 0 6pt 0; }
.kv .key { color: #333333; }
.kv .value { color: #666666; }
.status { font-size: 14pt; margin: 0 0 6pt 0; }
.errors li { color: #e74c3c; margin-bottom: 6pt; }
.notice { color: #666666; }
ol { margin: 0; padding-left: 20pt; }
li { margin-bottom: 3pt; }
img.shot { display: block; margin: 4pt 0 10pt 0; border: 1px solid #dddddd; }
.footer { font-size: 10pt; color: #666666; text-align: center; margin-top: 24pt; }
"""


def list_artifacts(directory: Union[str, Path], suffix: str) -> list[str]:
    d = Path(directory)
    if not d.is_dir():
        return []
    return sorted(p.name for p in d.iterdir() if p.is_file() and p.name.endswith(suffix))


def _esc(value: object) -> str:
    return _html.escape(str(value))


def _section(title: str) -> str:
    return f"<h2>{_esc(title)}</h2>"


def _key_value(key: str, value: object) -> str:
    return f'<div class="kv"><span class="key">{_esc(key)}: </span><span class="value">{_esc(value)}</span></div>'


def _enabled(flag: bool) -> str:
    return "Enabled" if flag else "Disabled"


def _image_tag(path: Path, *, width: int = 480) -> str:
    try:
        data = base64.b64encode(path.read_bytes()).decode("ascii")
    except OSError:
        logger.debug("Could not read screenshot for embedding (%s).", path, exc_info=True)
        return ""
    return f'<img class="shot" width="{width}" src="data:image/png;base64,{data}"/>'


def build_report_html(
    result: RunResult,
    run: RunConfig,
    *,
    screenshots: Sequence[str],
    traces: Sequence[str],
    generated_at: Optional[datetime] = None,
    screenshots_dir: Union[str, Path, None] = None,
    embed_screenshots: bool = False,
) -> str:
    generated = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    parts: list[str] = [
        "<!DOCTYPE html>",
        '<html><head><meta charset="utf-8"/>',
        f"<title>{_esc(REPORT_TITLE)}</title>",
        f"<style>{_STYLE}</style>",
        "</head><body>",
        f"<h1>{_esc(REPORT_TITLE)}</h1>",
        f'<div class="generated">Generated: {_esc(generated)}</div>',
    ]

    parts.append(_section("Test Configuration"))
    parts.append(_key_value("Browser", run.browser))
    parts.append(_key_value("Page Ceiling", run.pages))
    parts.append(_key_value("Authentication", _enabled(run.auth)))
    parts.append(_key_value("Tracing", _enabled(run.trace)))

    parts.append(_section("Test Results"))
    color = _PASS_COLOR if result.passed else _FAIL_COLOR
    status = "PASSED" if result.passed else "FAILED"
    parts.append(f'<div class="status" style="color: {color}">Overall Status: {status}</div>')
    parts.append(_key_value("Pages Scraped", result.pages_scraped))
    parts.append(_key_value("Total Articles Scraped", result.total_articles))
    parts.append(_key_value("Sorting Validation", "Passed" if result.is_sorted else "Failed"))

    if result.errors:
        parts.append(_section("Errors Encountered"))
        parts.append('<ol class="errors">')
        parts.extend(f"<li>{_esc(err)}</li>" for err in result.errors)
        parts.append("</ol>")

    parts.append(_section("Screenshots Captured"))
    if screenshots:
        parts.append("<ol>")
        for name in screenshots:
            item = _esc(name)
            if embed_screenshots and screenshots_dir is not None:
                item += _image_tag(Path(screenshots_dir) / name)
            parts.append(f"<li>{item}</li>")
        parts.append("</ol>")
    else:
        parts.append(f'<p class="notice">{_esc(NO_SCREENSHOTS_NOTICE)}</p>')

    parts.append(_section("Trace Files"))
    if traces:
        parts.append("<ol>")
        parts.extend(f"<li>{_esc(name)}</li>" for name in traces)
        parts.append("</ol>")
    else:
        parts.append(f'<p class="notice">{_esc(NO_TRACES_NOTICE)}</p>')

    parts.append('<div class="footer">End of Report</div>')
    parts.append("</body></html>")
    return "\n".join(parts)


def generate_pdf_report(
    result: RunResult,
    run: RunConfig,
    *,
    screenshots_dir: Union[str, Path],
    traces_dir: Union[str, Path],
    pdf_path: Union[str, Path],
    embed_screenshots: bool = False,
) -> Path:
    """
    Render the report as HTML and print it to PDF with headless Chromium.

    Printing to PDF is Chromium-only in Playwright, so this does not follow `run.browser`.
    """
    html = build_report_html(
        result,
        run,
        screenshots=list_artifacts(screenshots_dir, ".png"),
        traces=list_artifacts(traces_dir, ".zip"),
        screenshots_dir=screenshots_dir,
        embed_screenshots=embed_screenshots,
    )

    out = Path(pdf_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with sync_playwright() as p:
        browser = launch_browser(p, engine="chromium", headless=True)
        try:
            page = browser.new_page()
            page.set_content(html, wait_until="load")
            page.pdf(
                path=str(out),
                format="A4",
                print_background=True,
                margin={"top": "50px", "right": "50px", "bottom": "50px", "left": "50px"},
            )
        finally:
            browser.close()

    logger.info("PDF report generated successfully: %s", out)
    return out
