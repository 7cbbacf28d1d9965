"""
Incremental review harvesting.

Given a review list sorted newest first and the id of the newest review the
caller already has (the cursor), collect only the reviews above that id.

Pagination on Maps is "scroll and read again", and items may disappear from
the DOM while scrolling, so review ids are the only join key used here;
positions from different passes are never compared.
"""
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from reviewdelta.config.config import config_section
from reviewdelta.crawler.google_maps.errors import StallError
from reviewdelta.crawler.google_maps.extractor import extract_reviews
from reviewdelta.crawler.google_maps.scroll import ScrollDriver
from reviewdelta.crawler.google_maps.view import ReviewsView

SCROLL_CFG = config_section(
    "crawler.json", "providers", "google_maps", "reviews", "scroll")

MAX_PASSES = SCROLL_CFG.get("max_passes", 200)

logger = logging.getLogger(__name__)


class HarvestState(Enum):
    NO_CURSOR = "no_cursor"
    SEARCHING = "searching"
    FOUND = "found"
    EXHAUSTED = "exhausted"


class ObservedReviews:
    """Reviews seen so far across passes, deduplicated by id, in render order."""

    def __init__(self):
        self.reviews: List[Dict[str, Any]] = []
        self._positions: Dict[str, int] = {}

    def merge(self, batch: List[Dict[str, Any]]) -> int:
        """Append reviews not seen before; returns how many were new."""
        added = 0
        for review in batch:
            rid = review["review_id"]
            if rid in self._positions:
                continue
            self._positions[rid] = len(self.reviews)
            self.reviews.append(review)
            added += 1
        return added

    def position(self, review_id: str) -> Optional[int]:
        return self._positions.get(review_id)

    def __len__(self):
        return len(self.reviews)


def _result(reviews: List[Dict[str, Any]], fallback_cursor: Optional[str]) -> Dict[str, Any]:
    last_cursor = reviews[0]["review_id"] if reviews else fallback_cursor
    return {"reviews": reviews, "last_cursor": last_cursor}


def _harvest_everything(driver: ScrollDriver, view: ReviewsView) -> Dict[str, Any]:
    try:
        rounds = driver.load_all()
        logger.info("✅ Review list fully loaded after %s scroll rounds.", rounds)
    except StallError as e:
        logger.warning("⚠️ %s; extracting what is loaded so far.", e)

    observed = ObservedReviews()
    observed.merge(extract_reviews(view.read_html()))
    logger.info("📥 Harvest finished in state %s: %s reviews.",
                HarvestState.NO_CURSOR.name, len(observed))
    return _result(observed.reviews, None)


def harvest_reviews(
    view: ReviewsView,
    last_cursor: Optional[str] = None,
    max_passes: Optional[int] = None,
    stall_limit: Optional[int] = None,
    max_rounds: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Return ``{"reviews": [...], "last_cursor": ...}`` with every review newer
    than ``last_cursor``, newest first.

    Without a cursor the whole list is loaded and returned in one pass.

    With a cursor the list is scrolled one step at a time until the cursor id
    shows up; everything rendered above it is the delta. If the list runs out
    (or ``max_passes`` is used up) before the cursor appears, the cursor is
    assumed to be gone upstream and every review seen is returned.

    ``last_cursor`` in the result is the newest returned id, or the given
    cursor unchanged when nothing new was found.
    """
    driver = ScrollDriver(view, stall_limit=stall_limit, max_rounds=max_rounds)

    if not last_cursor:
        return _harvest_everything(driver, view)

    max_passes = MAX_PASSES if max_passes is None else max_passes
    state = HarvestState.SEARCHING
    observed = ObservedReviews()
    delta: List[Dict[str, Any]] = []

    for n in range(1, max_passes + 1):
        driver.load_next()
        batch = extract_reviews(view.read_html())
        added = observed.merge(batch)
        logger.debug("Extraction pass %s: %s on page, %s new, %s observed",
                     n, len(batch), added, len(observed))

        pos = observed.position(last_cursor)
        if pos is not None:
            state = HarvestState.FOUND
            delta = observed.reviews[:pos]
            break

        if driver.stalled:
            state = HarvestState.EXHAUSTED
            logger.warning(
                "⚠️ Cursor %s not found before the end of the list; "
                "returning all %s reviews seen.", last_cursor, len(observed))
            delta = observed.reviews
            break
    else:
        state = HarvestState.EXHAUSTED
        logger.warning(
            "⚠️ Cursor %s not found within %s passes (list still growing); "
            "returning all %s reviews seen.", last_cursor, max_passes, len(observed))
        delta = observed.reviews

    logger.info("📥 Harvest finished in state %s: %s new reviews.",
                state.name, len(delta))
    return _result(delta, last_cursor)
