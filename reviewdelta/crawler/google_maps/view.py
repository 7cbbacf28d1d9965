from __future__ import annotations
import time
import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from selenium.webdriver.common.by import By
from selenium.common.exceptions import WebDriverException

from reviewdelta.config.config import config_section
from reviewdelta.crawler.google_maps.extractor import REVIEW_ITEM_SELECTOR

SCROLL_CFG = config_section(
    "crawler.json", "providers", "google_maps", "reviews", "scroll")

# collapsed review texts end with a "More" button
EXPAND_BUTTON_SELECTOR = (
    'button[jsaction*="review.expandReview"], '
    'button[aria-label="See more"]'
)

logger = logging.getLogger(__name__)


def click_safely(browser, elem):
    """Scroll the element into view and click it, falling back to a JS click."""
    browser.execute_script(
        'arguments[0].scrollIntoView({block:"center"});', elem
    )
    try:
        elem.click()
    except WebDriverException:
        browser.execute_script('arguments[0].click();', elem)


class ReviewsView(ABC):
    """
    A loaded page holding a scrollable review list.

    The harvest code only needs three things from it:
      - the markup currently rendered
      - a way to push the list further down
      - whether the last push made the list grow
    """

    @abstractmethod
    def read_html(self) -> str:
        ...

    @abstractmethod
    def advance(self) -> None:
        ...

    @abstractmethod
    def content_grew(self) -> bool:
        ...


class SeleniumReviewsView(ReviewsView):
    """
    ReviewsView over a live selenium browser.

    Scrolls the review panel when one was found, otherwise the window.
    Growth means either the scroll height or the number of review nodes
    changed since the previous advance.
    """

    def __init__(self, browser, container=None, pause: Optional[float] = None,
                 expand_pause: Optional[float] = None):
        self.browser = browser
        self.container = container
        self.pause = SCROLL_CFG.get(
            "pause_seconds", 0.8) if pause is None else pause
        self.expand_pause = SCROLL_CFG.get(
            "expand_pause_seconds", 0.3) if expand_pause is None else expand_pause
        self._last_snapshot: Optional[Tuple[int, int]] = None
        self._grew = False

    def read_html(self) -> str:
        self.expand_reviews()
        if self.container is not None:
            try:
                return self.container.get_attribute('outerHTML') or ''
            except WebDriverException as e:
                logger.warning(
                    "⚠️ Could not read review container, using page source (%s)", e)
        return self.browser.page_source

    def expand_reviews(self) -> int:
        """
        Click every still-collapsed "More" button so the full review text is
        in the DOM. Returns how many were clicked.
        """
        try:
            buttons = self.browser.find_elements(
                By.CSS_SELECTOR, EXPAND_BUTTON_SELECTOR)
        except WebDriverException as e:
            logger.warning("⚠️ Error while finding 'More' buttons: %s", e)
            return 0

        clicked = 0
        for btn in buttons:
            try:
                if (btn.get_attribute("aria-expanded") or "").lower() == "true":
                    continue
                click_safely(self.browser, btn)
                clicked += 1
                time.sleep(self.expand_pause)
            except WebDriverException as e:
                # the button may have been re-rendered away meanwhile
                logger.debug("Skipping 'More' button: %s", e)
        if clicked:
            logger.debug("Expanded %s reviews", clicked)
        return clicked

    def _snapshot(self) -> Tuple[int, int]:
        if self.container is not None:
            h = self.browser.execute_script(
                'return arguments[0].scrollHeight', self.container
            )
        else:
            h = self.browser.execute_script('return document.body.scrollHeight')
        try:
            count = len(self.browser.find_elements(
                By.CSS_SELECTOR, REVIEW_ITEM_SELECTOR))
        except WebDriverException as e:
            logger.warning("⚠️ Error while finding review nodes: %s", e)
            count = self._last_snapshot[1] if self._last_snapshot else 0
        return h, count

    def advance(self) -> None:
        if self._last_snapshot is None:
            self._last_snapshot = self._snapshot()

        if self.container is not None:
            self.browser.execute_script(
                'arguments[0].scrollTop = arguments[0].scrollHeight', self.container
            )
        else:
            self.browser.execute_script(
                'window.scrollTo(0, document.body.scrollHeight);'
            )
        # Maps gives no "done loading" signal; wait a fixed settle delay
        time.sleep(self.pause)

        snapshot = self._snapshot()
        self._grew = snapshot != self._last_snapshot
        logger.debug("Scroll snapshot: height=%s, reviews_loaded=%s",
                     snapshot[0], snapshot[1])
        if self.expand_reviews():
            # expanded text is not new reviews; measure again so it is not
            # mistaken for growth on the next advance
            snapshot = self._snapshot()
        self._last_snapshot = snapshot

    def content_grew(self) -> bool:
        return self._grew

    def select(self, css: str) -> bool:
        """Click the first element matching ``css``; False when none is present."""
        try:
            elem = self.browser.find_element(By.CSS_SELECTOR, css)
        except WebDriverException:
            return False
        click_safely(self.browser, elem)
        return True
