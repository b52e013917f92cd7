from __future__ import annotations

import logging
from typing import Sequence

from .models import ArticleRecord


logger = logging.getLogger(__name__)


def is_descending_by_date(records: Sequence[ArticleRecord]) -> bool:
    """
    True when every record is at least as old as the one before it (newest first).

    Equal timestamps are allowed; the scan stops at the first record that is newer
    than its predecessor.
    """
    for i in range(1, len(records)):
        if records[i].posted_at > records[i - 1].posted_at:
            logger.warning(
                "Sorting violation found between articles %d and %d (%s is newer than %s).",
                i,
                i - 1,
                records[i].posted_at.isoformat(),
                records[i - 1].posted_at.isoformat(),
            )
            return False
    return True
