from .auth import HackerNewsAuthenticator, LoginCredentials
from .scraper import ExtractionError, NavigationError, NewestArticlesScraper, ScrapeError
from .selectors import SiteSelectors

__all__ = [
    "HackerNewsAuthenticator",
    "LoginCredentials",
    "NewestArticlesScraper",
    "ScrapeError",
    "NavigationError",
    "ExtractionError",
    "SiteSelectors",
]
