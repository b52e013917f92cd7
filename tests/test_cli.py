from __future__ import annotations

from pathlib import Path

import pytest

from hn_newest_audit import cli
from hn_newest_audit.models import ArticleRecord, RunResult


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    for key in ("HN_BROWSER", "HN_PAGES", "HN_TRACE", "HN_AUTH", "HN_USERNAME", "HN_PASSWORD", "HN_HEADLESS", "LOG_FILE", "HN_LOG_LEVEL"):
        # set first so monkeypatch also removes anything load_dotenv() adds during the test
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


class _Recorder:
    def __init__(self) -> None:
        self.cfg = None
        self.report_calls: list[dict] = []


def _install_fakes(monkeypatch: pytest.MonkeyPatch, *, result=None, error: Exception | None = None) -> _Recorder:
    rec = _Recorder()

    class FakeScraper:
        def __init__(self, cfg) -> None:
            rec.cfg = cfg

        def run(self) -> RunResult:
            if error is not None:
                raise error
            return result if result is not None else RunResult()

    def fake_report(result, run, **kwargs):
        rec.report_calls.append({"result": result, "run": run, **kwargs})
        return Path(kwargs["pdf_path"])

    monkeypatch.setattr(cli, "NewestArticlesScraper", FakeScraper)
    monkeypatch.setattr(cli, "generate_pdf_report", fake_report)
    return rec


def test_flags_flow_into_run_config_and_report(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    result = RunResult(articles=[ArticleRecord(id="1", title="a")])
    rec = _install_fakes(monkeypatch, result=result)

    code = cli.main(
        [
            "--browser", "firefox",
            "--pages", "2",
            "--trace",
            "--auth",
            "--username", "pg",
            "--password", "hunter2",
            "--headful",
            "--report", "out/report.pdf",
        ]
    )

    assert code == 0
    run = rec.cfg.run
    assert (run.browser, run.pages, run.trace, run.auth, run.headless) == ("firefox", 2, True, True, False)
    assert (run.username, run.password) == ("pg", "hunter2")
    assert (tmp_path / "screenshots").is_dir()
    assert (tmp_path / "traces").is_dir()

    [call] = rec.report_calls
    assert call["result"] is result
    assert call["pdf_path"] == "out/report.pdf"
    assert call["screenshots_dir"] == "screenshots"
    assert call["traces_dir"] == "traces"


def test_defaults_when_no_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    rec = _install_fakes(monkeypatch)

    assert cli.main([]) == 0
    run = rec.cfg.run
    assert (run.browser, run.pages, run.trace, run.auth, run.headless) == ("chromium", 10, False, False, True)
    assert rec.report_calls[0]["pdf_path"] == "TestReport.pdf"


def test_no_report_flag_skips_pdf(monkeypatch: pytest.MonkeyPatch) -> None:
    rec = _install_fakes(monkeypatch)
    assert cli.main(["--no-report"]) == 0
    assert rec.report_calls == []


def test_uncaught_error_is_logged_and_skips_report(monkeypatch: pytest.MonkeyPatch) -> None:
    rec = _install_fakes(monkeypatch, error=RuntimeError("browser crashed"))
    assert cli.main([]) == 1
    assert rec.report_calls == []


def test_env_file_supplies_credentials(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    rec = _install_fakes(monkeypatch)
    env_file = tmp_path / "hn.env"
    env_file.write_text("HN_USERNAME=dang\nHN_PASSWORD=secret\n", encoding="utf-8")

    assert cli.main(["--env-file", str(env_file), "--auth"]) == 0
    assert rec.cfg.run.username == "dang"
    assert rec.cfg.run.password == "secret"


def test_invalid_browser_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["--browser", "safari"])
    assert exc.value.code == 2
