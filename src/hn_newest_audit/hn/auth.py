from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from playwright.sync_api import BrowserContext, Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from ..config import SiteConfig, TimeoutConfig
from ..models import LoginFailure, LoginOutcome, LoginState
from ..util.artifacts import login_screenshot_path
from .selectors import SiteSelectors


logger = logging.getLogger(__name__)

_TERMINAL_STATES = {LoginState.LOGGED_IN, LoginState.LOGIN_FAILED}


@dataclass(frozen=True)
class LoginCredentials:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"LoginCredentials(username={self.username!r}, password='***')"


class HackerNewsAuthenticator:
    """
    Drives a single login attempt as an explicit state machine:

        START -> FORM_SUBMITTED -> CHALLENGE_PRESENTED -> VERIFIED_MANUALLY | CHALLENGE_TIMED_OUT
                               \\-> OUTCOME

    and ends in LOGGED_IN or LOGIN_FAILED. A reCAPTCHA challenge can only be solved by a human
    in a headful browser; we wait for the logout link to appear while they do it.
    """

    def __init__(
        self,
        *,
        site: SiteConfig,
        creds: LoginCredentials,
        engine: str,
        screenshots_dir: str,
        timeouts: Optional[TimeoutConfig] = None,
        selectors: Optional[SiteSelectors] = None,
    ) -> None:
        self.site = site
        self.creds = creds
        self.engine = engine
        self.screenshots_dir = screenshots_dir
        self.timeouts = timeouts or TimeoutConfig()
        self.selectors = selectors or SiteSelectors()

        self._page: Optional[Page] = None
        self._failure: Optional[LoginFailure] = None
        self._message: str = ""

    def login(self, context: BrowserContext) -> bool:
        return self.authenticate(context).succeeded

    def authenticate(self, context: BrowserContext) -> LoginOutcome:
        self._page = None
        self._failure = None
        self._message = ""

        handlers: dict[LoginState, Callable[[BrowserContext], LoginState]] = {
            LoginState.START: self._on_start,
            LoginState.FORM_SUBMITTED: self._on_form_submitted,
            LoginState.CHALLENGE_PRESENTED: self._on_challenge_presented,
            LoginState.CHALLENGE_TIMED_OUT: self._on_challenge_timed_out,
            LoginState.VERIFIED_MANUALLY: self._on_outcome,
            LoginState.OUTCOME: self._on_outcome,
        }

        state = LoginState.START
        try:
            while state not in _TERMINAL_STATES:
                logger.debug("Login state: %s", state.value)
                state = handlers[state](context)
        except Exception as e:
            logger.error("Login process failed: %s", e)
            self._screenshot("login-exception")
            state = self._fail(LoginFailure.AUTHENTICATION_EXCEPTION, f"Login process failed: {e}")
        finally:
            self._close_page()

        if state == LoginState.LOGGED_IN:
            return LoginOutcome(state=state, message="Login successful.")
        return LoginOutcome(state=state, failure=self._failure, message=self._message)

    # --- transitions -------------------------------------------------------------

    def _on_start(self, context: BrowserContext) -> LoginState:
        if not self.creds.username or not self.creds.password:
            return self._fail(
                LoginFailure.MISSING_CREDENTIALS,
                "Username and password must be provided (--username/--password or HN_USERNAME/HN_PASSWORD).",
            )

        page = context.new_page()
        self._page = page
        page.goto(self.site.login_url, timeout=self.timeouts.navigation_ms)

        page.locator(self.selectors.username_input).first.fill(self.creds.username)
        page.locator(self.selectors.password_input).first.fill(self.creds.password)
        page.locator(self.selectors.login_submit).first.click()
        return LoginState.FORM_SUBMITTED

    def _on_form_submitted(self, context: BrowserContext) -> LoginState:
        page = self._require_page()
        try:
            page.wait_for_selector(self.selectors.challenge_frame, timeout=self.timeouts.challenge_ms)
        except PlaywrightTimeoutError:
            return LoginState.OUTCOME

        logger.info("reCAPTCHA detected. Waiting for manual interaction...")
        self._screenshot("recaptcha")
        return LoginState.CHALLENGE_PRESENTED

    def _on_challenge_presented(self, context: BrowserContext) -> LoginState:
        page = self._require_page()
        try:
            page.wait_for_selector(self.selectors.logged_in_marker, timeout=self.timeouts.verification_ms)
        except PlaywrightTimeoutError:
            return LoginState.CHALLENGE_TIMED_OUT

        logger.info("Manual reCAPTCHA verification successful.")
        return LoginState.VERIFIED_MANUALLY

    def _on_challenge_timed_out(self, context: BrowserContext) -> LoginState:
        self._screenshot("recaptcha-timeout")
        return self._fail(LoginFailure.CHALLENGE_TIMEOUT, "Timeout waiting for reCAPTCHA verification.")

    def _on_outcome(self, context: BrowserContext) -> LoginState:
        page = self._require_page()
        if page.query_selector(self.selectors.bad_login_marker) is not None:
            return self._fail(LoginFailure.INVALID_CREDENTIALS, "Login failed: Bad login credentials.")

        if page.query_selector(self.selectors.logged_in_marker) is None:
            self._screenshot("login-error")
            return self._fail(LoginFailure.UNVERIFIED_LOGIN, "Login failed: Unable to verify successful login.")

        logger.info("Login successful.")
        self._screenshot("post-login")
        return LoginState.LOGGED_IN

    # --- helpers -----------------------------------------------------------------

    def _fail(self, failure: LoginFailure, message: str) -> LoginState:
        self._failure = failure
        self._message = message
        logger.error("%s", message)
        return LoginState.LOGIN_FAILED

    def _require_page(self) -> Page:
        if self._page is None:
            raise RuntimeError("login page is not open")
        return self._page

    def _screenshot(self, name: str) -> None:
        if self._page is None:
            return
        try:
            out = login_screenshot_path(self.screenshots_dir, name=name, engine=self.engine)
            Path(out).parent.mkdir(parents=True, exist_ok=True)
            self._page.screenshot(path=str(out))
        except Exception:
            logger.debug("Failed to save login screenshot (name=%s).", name, exc_info=True)

    def _close_page(self) -> None:
        if self._page is None:
            return
        try:
            self._page.close()
        except Exception:
            logger.debug("Failed to close login page.", exc_info=True)
        finally:
            self._page = None
