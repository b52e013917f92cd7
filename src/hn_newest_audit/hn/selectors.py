from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SiteSelectors:
    """
    Hacker News markup hooks. The site is table-based and rarely changes, but keep every
    selector here so a mirror or a markup change only touches one place.
    """

    # Listing
    article_row: str = "tr.athing"
    title_link: str = ".titleline > a"
    # The subtext row (score, age, comments) is the row right after each article row.
    subtext_row: str = ":scope + tr"
    age_link: str = ".age > a"
    more_link: str = "a.morelink"

    # Login (the page has both a login and a create-account form; the login form comes first)
    username_input: str = 'input[name="acct"]'
    password_input: str = 'input[name="pw"]'
    login_submit: str = 'input[type="submit"]'

    challenge_frame: str = 'iframe[title*="reCAPTCHA"]'
    bad_login_marker: str = 'body:has-text("Bad login.")'
    logged_in_marker: str = "a#logout"
