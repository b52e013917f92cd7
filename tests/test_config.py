from __future__ import annotations

from pathlib import Path

import pytest

from hn_newest_audit.config import load_config, with_run_overrides


_ENV_KEYS = (
    "HN_BASE_URL",
    "HN_BROWSER",
    "HN_PAGES",
    "HN_TRACE",
    "HN_AUTH",
    "HN_USERNAME",
    "HN_PASSWORD",
    "HN_HEADLESS",
    "HN_STORAGE_STATE",
    "SCREENSHOTS_DIR",
    "TRACES_DIR",
    "REPORT_PATH",
    "LOG_LEVEL",
    "LOG_FILE",
    "HN_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_defaults_without_yaml(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg.site.base_url == "https://news.ycombinator.com"
    assert cfg.site.newest_url == "https://news.ycombinator.com/newest"
    assert cfg.site.login_url == "https://news.ycombinator.com/login?goto=newest"
    assert cfg.site.host == "news.ycombinator.com"
    assert cfg.run.browser == "chromium"
    assert cfg.run.pages == 10
    assert cfg.run.trace is False and cfg.run.auth is False
    assert cfg.run.headless is True
    assert cfg.output.screenshots_dir == "screenshots"
    assert cfg.output.traces_dir == "traces"
    assert cfg.output.report_path == "TestReport.pdf"
    assert cfg.retry.max_attempts == 3
    assert cfg.retry.backoff_seconds == 3.0
    assert cfg.timeouts.challenge_ms == 5_000
    assert cfg.timeouts.verification_ms == 60_000


def test_env_values_are_used(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HN_PAGES", "3")
    monkeypatch.setenv("HN_AUTH", "yes")
    monkeypatch.setenv("HN_BROWSER", "firefox")
    monkeypatch.setenv("HN_USERNAME", "pg")

    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg.run.pages == 3
    assert cfg.run.auth is True
    assert cfg.run.browser == "firefox"
    assert cfg.run.username == "pg"


def test_yaml_overrides_env_and_expands_vars(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HN_PAGES", "3")
    monkeypatch.setenv("MY_SECRET", "s3cret")
    cfg_path = _write(
        tmp_path,
        "cfg.yaml",
        """
site:
  base_url: "https://hn.example.org/"
run:
  pages: 5
  password: "${MY_SECRET}"
retry:
  backoff_seconds: 0.5
""",
    )
    cfg = load_config(cfg_path)
    assert cfg.site.base_url == "https://hn.example.org"
    assert cfg.site.host == "hn.example.org"
    assert cfg.run.pages == 5
    assert cfg.run.password == "s3cret"
    assert cfg.retry.backoff_seconds == 0.5


def test_password_hidden_from_repr(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HN_PASSWORD", "hunter2")
    cfg = load_config(tmp_path / "missing.yaml")
    assert "hunter2" not in repr(cfg.run)


@pytest.mark.parametrize(
    "text",
    [
        'site:\n  base_url: "news.ycombinator.com"\n',
        'run:\n  browser: "safari"\n',
        "run:\n  pages: 0\n",
        "retry:\n  target_articles: 150\n",
    ],
)
def test_invalid_values_rejected(tmp_path: Path, text: str) -> None:
    with pytest.raises(Exception):
        load_config(_write(tmp_path, "cfg.yaml", text))


def test_cli_overrides_skip_unset_values(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.yaml")
    updated = with_run_overrides(
        cfg,
        {"browser": "webkit", "pages": 2, "trace": None, "headless": False, "username": None},
        report_path=str(tmp_path / "r.pdf"),
    )
    assert updated.run.browser == "webkit"
    assert updated.run.pages == 2
    assert updated.run.trace is False
    assert updated.run.headless is False
    assert updated.output.report_path == str(tmp_path / "r.pdf")
    # input config is unchanged
    assert cfg.run.browser == "chromium"


def test_cli_overrides_are_validated(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.yaml")
    with pytest.raises(Exception):
        with_run_overrides(cfg, {"pages": -1})


def test_package_log_level_from_env_and_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HN_LOG_LEVEL", "DEBUG")
    assert load_config(tmp_path / "missing.yaml").logging.package_level == "DEBUG"

    p = _write(tmp_path, "config.yaml", "logging:\n  package_level: WARNING\n")
    cfg = load_config(p)
    assert cfg.logging.package_level == "WARNING"
    assert cfg.logging.level == "INFO"
