from __future__ import annotations

import time
from pathlib import Path
from typing import Optional, Union


def ensure_output_dirs(*dirs: Union[str, Path]) -> None:
    for d in dirs:
        Path(d).mkdir(parents=True, exist_ok=True)


def screenshot_path(screenshots_dir: Union[str, Path], *, engine: str, page_number: int, authenticated: bool) -> Path:
    # e.g. screenshots/screenshot-firefox-page3-auth.png
    suffix = "-auth" if authenticated else ""
    return Path(screenshots_dir) / f"screenshot-{engine}-page{page_number}{suffix}.png"


def login_screenshot_path(screenshots_dir: Union[str, Path], *, name: str, engine: str) -> Path:
    return Path(screenshots_dir) / f"{name}-{engine}.png"


def trace_path(traces_dir: Union[str, Path], *, engine: str, stamp_ms: Optional[int] = None) -> Path:
    stamp = int(time.time() * 1000) if stamp_ms is None else int(stamp_ms)
    return Path(traces_dir) / f"trace-{engine}-{stamp}.zip"
