import logging
from typing import Optional

from reviewdelta.config.config import config_section
from reviewdelta.crawler.google_maps.errors import StallError
from reviewdelta.crawler.google_maps.view import ReviewsView

SCROLL_CFG = config_section(
    "crawler.json", "providers", "google_maps", "reviews", "scroll")

STALL_LIMIT = SCROLL_CFG.get("stall_limit", 5)
MAX_ROUNDS = SCROLL_CFG.get("max_rounds", 120)

logger = logging.getLogger(__name__)


class ScrollDriver:
    """
    Moves the visible window of a virtualized review list.

    The list never says "that's all"; the end of content is inferred once
    ``stall_limit`` consecutive advances produced no growth.
    """

    def __init__(self, view: ReviewsView, stall_limit: Optional[int] = None,
                 max_rounds: Optional[int] = None):
        self.view = view
        self.stall_limit = STALL_LIMIT if stall_limit is None else stall_limit
        self.max_rounds = MAX_ROUNDS if max_rounds is None else max_rounds
        self.rounds = 0
        self.idle = 0

    @property
    def stalled(self) -> bool:
        return self.idle >= self.stall_limit

    def load_next(self) -> bool:
        """Advance exactly one increment. Returns True if the list grew."""
        self.view.advance()
        grew = self.view.content_grew()
        self.rounds += 1
        self.idle = 0 if grew else self.idle + 1
        logger.debug("Scroll round %s: grew=%s, idle=%s/%s",
                     self.rounds, grew, self.idle, self.stall_limit)
        return grew

    def load_all(self) -> int:
        """
        Keep scrolling until the list stops growing.

        Returns the number of rounds used. Raises StallError when the list is
        still growing after ``max_rounds`` advances.
        """
        for i in range(self.max_rounds):
            grew = self.load_next()
            logger.info("🔽 Scroll round %s: grew=%s", i + 1, grew)
            if self.stalled:
                logger.info(
                    "⏹ No further growth in scroll height or review count; stop scrolling.")
                return i + 1
        raise StallError(self.max_rounds)
