from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .util.dates import EPOCH


MAX_ARTICLES = 100


class ArticleRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str = Field(min_length=1)
    age_text: str = ""
    posted_at: datetime = EPOCH

    @field_validator("title", "age_text", mode="before")
    @classmethod
    def _strip(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class RunResult(BaseModel):
    articles: list[ArticleRecord] = Field(default_factory=list, max_length=MAX_ARTICLES)
    is_sorted: bool = True
    errors: list[str] = Field(default_factory=list)

    # Useful for the console summary and tests; not shown as a pass/fail criterion.
    pages_scraped: int = 0
    trace_path: Optional[str] = None

    @property
    def total_articles(self) -> int:
        return len(self.articles)

    @property
    def passed(self) -> bool:
        return self.is_sorted and not self.errors


class LoginState(str, Enum):
    START = "start"
    FORM_SUBMITTED = "form_submitted"
    CHALLENGE_PRESENTED = "challenge_presented"
    VERIFIED_MANUALLY = "verified_manually"
    CHALLENGE_TIMED_OUT = "challenge_timed_out"
    OUTCOME = "outcome"
    LOGGED_IN = "logged_in"
    LOGIN_FAILED = "login_failed"


class LoginFailure(str, Enum):
    MISSING_CREDENTIALS = "missing_credentials"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNVERIFIED_LOGIN = "unverified_login"
    CHALLENGE_TIMEOUT = "challenge_timeout"
    AUTHENTICATION_EXCEPTION = "authentication_exception"


class LoginOutcome(BaseModel):
    state: LoginState
    failure: Optional[LoginFailure] = None
    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.state == LoginState.LOGGED_IN
