from .dates import EPOCH, parse_article_date
from .artifacts import ensure_output_dirs, login_screenshot_path, screenshot_path, trace_path

__all__ = [
    "EPOCH",
    "parse_article_date",
    "ensure_output_dirs",
    "login_screenshot_path",
    "screenshot_path",
    "trace_path",
]
