from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, Union
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z0-9_]+)\}")

BrowserEngine = Literal["chromium", "firefox", "webkit"]
BROWSER_ENGINES: tuple[str, ...] = ("chromium", "firefox", "webkit")


def _expand_env_vars(value: object) -> object:
    if isinstance(value, str):
        def repl(match: re.Match[str]) -> str:
            var = match.group(1)
            return os.getenv(var, "")

        return _ENV_VAR_PATTERN.sub(repl, value)
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    return value


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return bool(default)
    return raw in {"1", "true", "t", "yes", "y", "on"}


def _deep_merge(base: object, override: object) -> object:
    if isinstance(base, dict) and isinstance(override, dict):
        out = dict(base)
        for k, v in override.items():
            if k in out:
                out[k] = _deep_merge(out[k], v)
            else:
                out[k] = v
        return out
    return override


def _default_config_from_env() -> dict:
    """
    Env-only defaults so a `.env` with HN_USERNAME/HN_PASSWORD is usually enough.

    YAML (if present) is merged on top; CLI flags are applied last by the caller.
    """
    return {
        "site": {
            "base_url": os.getenv("HN_BASE_URL", "https://news.ycombinator.com"),
        },
        "run": {
            "browser": os.getenv("HN_BROWSER", "chromium"),
            "pages": os.getenv("HN_PAGES", "10"),
            "trace": _env_bool("HN_TRACE", default=False),
            "auth": _env_bool("HN_AUTH", default=False),
            "username": os.getenv("HN_USERNAME", ""),
            "password": os.getenv("HN_PASSWORD", ""),
            "headless": _env_bool("HN_HEADLESS", default=True),
            "storage_state_path": os.getenv("HN_STORAGE_STATE", ""),
        },
        "output": {
            "screenshots_dir": os.getenv("SCREENSHOTS_DIR", "screenshots"),
            "traces_dir": os.getenv("TRACES_DIR", "traces"),
            "report_path": os.getenv("REPORT_PATH", "TestReport.pdf"),
        },
        "logging": {
            "level": os.getenv("LOG_LEVEL", "INFO"),
            "file_path": os.getenv("LOG_FILE", ""),
            "package_level": os.getenv("HN_LOG_LEVEL", ""),
        },
    }


class SiteConfig(BaseModel):
    """
    Where the listing lives. Hacker News by default; any mirror with the same markup works.
    """

    base_url: str = "https://news.ycombinator.com"
    newest_path: str = "newest"
    login_path: str = "login?goto=newest"

    @model_validator(mode="after")
    def _normalize(self) -> "SiteConfig":
        base_url = (self.base_url or "").strip().rstrip("/")
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("site.base_url must be a full URL like 'https://news.ycombinator.com'")
        self.base_url = base_url
        self.newest_path = (self.newest_path or "").lstrip("/")
        self.login_path = (self.login_path or "").lstrip("/")
        return self

    @property
    def host(self) -> str:
        return (urlparse(self.base_url).netloc or "").lower()

    @property
    def newest_url(self) -> str:
        return f"{self.base_url}/{self.newest_path}"

    @property
    def login_url(self) -> str:
        return f"{self.base_url}/{self.login_path}"


class RunConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    browser: BrowserEngine = "chromium"
    pages: int = Field(default=10, ge=1)
    trace: bool = False
    auth: bool = False
    username: str = ""
    password: str = Field(default="", repr=False)

    headless: bool = True
    slow_mo_ms: int = Field(default=0, ge=0)
    # Optional Playwright storage_state JSON (cookies) to seed the browser context.
    storage_state_path: str = ""


class OutputConfig(BaseModel):
    screenshots_dir: str = "screenshots"
    traces_dir: str = "traces"
    report_path: str = "TestReport.pdf"


class TimeoutConfig(BaseModel):
    navigation_ms: int = 30_000
    network_idle_ms: int = 10_000
    rows_ms: int = 10_000
    challenge_ms: int = 5_000
    verification_ms: int = 60_000


class RetryConfig(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    backoff_seconds: float = Field(default=3.0, ge=0)
    target_articles: int = Field(default=100, ge=1, le=100)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_path: str = ""
    # Level for the hn_newest_audit.* loggers only; empty follows `level`.
    package_level: str = ""


class AppConfig(BaseModel):
    site: SiteConfig = SiteConfig()
    run: RunConfig = RunConfig()
    output: OutputConfig = OutputConfig()
    timeouts: TimeoutConfig = TimeoutConfig()
    retry: RetryConfig = RetryConfig()
    logging: LoggingConfig = LoggingConfig()


def load_config(path: Union[str, Path, None] = None) -> AppConfig:
    raw: dict = {}
    if path:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            raw = _expand_env_vars(raw)  # supports ${ENV_VAR} in YAML

    merged = _deep_merge(_default_config_from_env(), raw)
    return AppConfig.model_validate(merged)


def with_run_overrides(cfg: AppConfig, overrides: Mapping[str, Any], *, report_path: Optional[str] = None) -> AppConfig:
    """
    Apply CLI overrides (None means "not given") and re-validate.
    """
    updates = {k: v for k, v in overrides.items() if v is not None}
    run = RunConfig.model_validate({**cfg.run.model_dump(), **updates})
    output = cfg.output
    if report_path:
        output = output.model_copy(update={"report_path": report_path})
    return cfg.model_copy(update={"run": run, "output": output})
