from __future__ import annotations

import argparse
import logging
import os
import time
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .config import BROWSER_ENGINES, load_config, with_run_overrides
from .hn.scraper import NewestArticlesScraper
from .logging_config import configure_logging
from .report import generate_pdf_report
from .util.artifacts import ensure_output_dirs


logger = logging.getLogger("hn_newest_audit")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hn-newest-audit",
        description="Scrape Hacker News /newest, check the articles are sorted newest-first, and write a PDF report.",
    )
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )
    p.add_argument(
        "--config",
        default="config.yaml",
        help="Optional YAML config (default: config.yaml). Ignored if the file does not exist.",
    )
    p.add_argument("--username", default=None, help="Hacker News username (or HN_USERNAME)")
    p.add_argument("--password", default=None, help="Hacker News password (or HN_PASSWORD)")
    p.add_argument("--browser", choices=BROWSER_ENGINES, default=None, help="Browser to use (default: chromium)")
    p.add_argument("--pages", type=int, default=None, help="Maximum number of listing pages to scrape (default: 10)")
    p.add_argument("--trace", action="store_true", default=None, help="Record a Playwright trace under traces/")
    p.add_argument("--auth", action="store_true", default=None, help="Log in before scraping")
    p.add_argument(
        "--headful",
        action="store_true",
        help="Run the browser headful. Needed to solve a reCAPTCHA by hand during --auth.",
    )
    p.add_argument("--slowmo-ms", type=int, default=None, help="Playwright slow motion in milliseconds (debug).")
    p.add_argument(
        "--storage-state",
        default=None,
        help="Playwright storage_state JSON (cookies) to seed the browser context with.",
    )
    p.add_argument("--report", default=None, help="PDF report path (default: TestReport.pdf)")
    p.add_argument(
        "--embed-screenshots",
        action="store_true",
        help="Embed the page screenshots in the PDF report instead of only listing them.",
    )
    p.add_argument("--no-report", action="store_true", help="Skip writing the PDF report.")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    # Default logging: can be overridden once config is loaded.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"), package_level=os.getenv("HN_LOG_LEVEL"))

    try:
        cfg = load_config(args.config)
        cfg = with_run_overrides(
            cfg,
            {
                "username": args.username,
                "password": args.password,
                "browser": args.browser,
                "pages": args.pages,
                "trace": args.trace,
                "auth": args.auth,
                "headless": False if args.headful else None,
                "slow_mo_ms": args.slowmo_ms,
                "storage_state_path": args.storage_state,
            },
            report_path=args.report,
        )
        configure_logging(
            level=cfg.logging.level,
            file_path=cfg.logging.file_path or None,
            package_level=cfg.logging.package_level or None,
        )

        run = cfg.run
        if run.auth and run.headless:
            logger.warning("Authentication in headless mode cannot get past a reCAPTCHA; use --headful if one appears.")

        logger.info(
            "Running test on %s with %d page(s), tracing: %s, auth: %s",
            run.browser,
            run.pages,
            run.trace,
            run.auth,
        )
        ensure_output_dirs(cfg.output.screenshots_dir, cfg.output.traces_dir)

        t0 = time.time()
        result = NewestArticlesScraper(cfg).run()
        logger.info(
            "Scrape complete (articles=%d pages=%d sorted=%s errors=%d seconds=%.2f)",
            result.total_articles,
            result.pages_scraped,
            result.is_sorted,
            len(result.errors),
            time.time() - t0,
        )

        if args.no_report:
            logger.info("Skipping PDF report (--no-report).")
        else:
            generate_pdf_report(
                result,
                run,
                screenshots_dir=cfg.output.screenshots_dir,
                traces_dir=cfg.output.traces_dir,
                pdf_path=cfg.output.report_path,
                embed_screenshots=args.embed_screenshots,
            )
    except Exception as e:
        logger.exception("Error during test: %s", e)
        return 1

    return 0
