import time
import logging
from typing import Optional

from selenium.webdriver.common.by import By
from selenium.webdriver.support.wait import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import WebDriverException

from reviewdelta.config.config import config_section
from reviewdelta.crawler.google_maps.browser_utils import (
    create_en_browser,
    follow_share_link,
    with_english_ui,
)
from reviewdelta.crawler.google_maps.harvest import harvest_reviews
from reviewdelta.crawler.google_maps.schema import (
    HarvestSchema,
    PlaceSummarySchema,
    validate_harvest,
    validate_place_summary,
)
from reviewdelta.crawler.google_maps.summary import extract_place_summary
from reviewdelta.crawler.google_maps.view import SeleniumReviewsView, click_safely

REVIEWS_CFG = config_section("crawler.json", "providers", "google_maps", "reviews")

NAVIGATION_TIMEOUT_MS = REVIEWS_CFG.get("navigation_timeout_ms", 6000)
INITIAL_WAIT = REVIEWS_CFG.get("initial_wait_seconds", 2)
SORT_WAIT = REVIEWS_CFG.get("sort_wait_seconds", 5)
SELECTOR_WAIT = REVIEWS_CFG.get("selector_wait_seconds", 10)
CONTAINER_WAIT = REVIEWS_CFG.get("container_wait_seconds", 3)

logger = logging.getLogger(__name__)

# ==============================
# Constants / selectors
# ==============================

TABLIST_SELECTOR = '[role="tablist"]'
REVIEWS_TAB_FALLBACK = (
    'button[role="tab"][aria-label^="Reviews"], '
    'button[aria-label*="Reviews"]'
)
SORT_BUTTON_SELECTOR = (
    'button[aria-label="Sort reviews"], '
    'button[aria-label*="Sort reviews"]'
)
SORT_OPTION_SELECTOR = 'div[role="menuitemradio"]'
NEWEST_OPTION_FALLBACK = "div[role='menuitemradio'][data-index='1']"
REVIEW_BODY_SELECTOR = '.fontBodyMedium'

CONTAINER_SELECTORS = [
    # Primary scrollable reviews panel
    'div.m6QErb.DxyBCb.kA9KIf.dS8AEf.XiKgde',
    'div.m6QErb.Pf6ghf.XiKgde.KoSBEe.ecceSd.tLjsW',
    'div.m6QErb.XiKgde.tLjsW',
    'div.m6QErb[aria-label][jslog]',  # Fallback
]

# ==============================
# Page actions
# ==============================


def open_reviews_tab(browser) -> bool:
    """
    Switch the place panel to its Reviews tab.

    The Reviews tab is the second child of the tablist (Overview, Reviews,
    About). Requires the tablist to have at least two children; otherwise the
    aria-label selector is tried.
    """
    logger.debug("waitForSelector %s", TABLIST_SELECTOR)
    try:
        tablist = WebDriverWait(browser, SELECTOR_WAIT).until(
            EC.presence_of_element_located((By.CSS_SELECTOR, TABLIST_SELECTOR))
        )
        tabs = tablist.find_elements(By.XPATH, './*')
        if len(tabs) >= 2:
            click_safely(browser, tabs[1])
            time.sleep(1.0)
            return True
        logger.debug("Tablist has %s children; trying aria-label", len(tabs))
    except WebDriverException as e:
        logger.debug("Tablist not found (%s); trying aria-label", e)

    try:
        reviews_tab = WebDriverWait(browser, SELECTOR_WAIT).until(
            EC.element_to_be_clickable((By.CSS_SELECTOR, REVIEWS_TAB_FALLBACK))
        )
        click_safely(browser, reviews_tab)
        time.sleep(1.0)
        return True
    except WebDriverException as e:
        logger.warning(
            "⚠️ Reviews tab not found; maybe already on Reviews or selector needs update (%s)",
            e,
        )
        return False


def sort_reviews_newest(browser, view: SeleniumReviewsView) -> bool:
    """Click the Sort button and choose 'Newest' if available."""
    try:
        sort_btn = WebDriverWait(browser, SELECTOR_WAIT).until(
            EC.element_to_be_clickable((By.CSS_SELECTOR, SORT_BUTTON_SELECTOR))
        )
        click_safely(browser, sort_btn)
        time.sleep(0.8)

        WebDriverWait(browser, SELECTOR_WAIT).until(
            EC.presence_of_element_located(
                (By.CSS_SELECTOR, SORT_OPTION_SELECTOR))
        )
    except WebDriverException as e:
        logger.warning(
            "⚠️ Sort button or menu not found; proceeding without changing sort order. (%s)",
            e,
        )
        return False

    target = None
    for opt in browser.find_elements(By.CSS_SELECTOR, SORT_OPTION_SELECTOR):
        txt = (opt.text or "").strip().lower()
        if "newest" in txt:
            target = opt
            break

    if target is not None:
        click_safely(browser, target)
    elif not view.select(NEWEST_OPTION_FALLBACK):
        logger.warning(
            "⚠️ Could not find 'Newest' option in sort menu; using default order.")
        return False

    time.sleep(SORT_WAIT)
    logger.info("✅ Sorted reviews by newest.")
    return True


def find_review_container(browser):
    """Try several known selectors to locate the scrollable review container."""
    for css in CONTAINER_SELECTORS:
        try:
            container = WebDriverWait(browser, CONTAINER_WAIT).until(
                EC.presence_of_element_located((By.CSS_SELECTOR, css))
            )
            logger.info("✅ Review container found via: %s", css)
            return container
        except WebDriverException:
            continue

    logger.warning(
        "⚠️ Could not locate dedicated scroll container; will use window scrolling as fallback.")
    return None


def open_place(browser, place_url: str, navigation_timeout: Optional[int] = None):
    """
    Navigate to the place page (timeout in milliseconds) with an English UI.
    Share links are followed in the same browser first.
    """
    timeout_ms = navigation_timeout or NAVIGATION_TIMEOUT_MS
    browser.set_page_load_timeout(timeout_ms / 1000)

    url = with_english_ui(follow_share_link(browser, place_url))
    logger.info("🌐 Navigation start: %s", url)
    browser.get(url)
    time.sleep(INITIAL_WAIT)

    WebDriverWait(browser, SELECTOR_WAIT).until(
        EC.presence_of_element_located((By.CSS_SELECTOR, "body"))
    )
    logger.info("🌐 Navigation end: %s", browser.current_url)


# ==============================
# Public entry points
# ==============================


def get_local_place_reviews(
    place_url: str,
    navigation_timeout: Optional[int] = None,
    last_cursor: Optional[str] = None,
) -> HarvestSchema:
    """
    Fetch the reviews of a Google Maps place newer than ``last_cursor``.

    Returns the validated harvest (HarvestSchema); its plain dict form is
        {"reviews": [...], "last_cursor": "<newest review id>"}
    Pass ``last_cursor`` back on the next call to get only what is new.

    Raises StructuralValidationError when the scraped data does not match
    the expected structure.
    """
    browser = create_en_browser()
    try:
        open_place(browser, place_url, navigation_timeout)
        open_reviews_tab(browser)

        view = SeleniumReviewsView(browser)
        sort_reviews_newest(browser, view)

        logger.debug("waitForSelector %s", REVIEW_BODY_SELECTOR)
        try:
            WebDriverWait(browser, SELECTOR_WAIT).until(
                EC.presence_of_element_located(
                    (By.CSS_SELECTOR, REVIEW_BODY_SELECTOR))
            )
        except WebDriverException:
            logger.warning("⚠️ No review body rendered yet; the place may have no reviews.")

        # Sorting re-renders the panel, so the container is looked up after it
        view.container = find_review_container(browser)

        logger.info("⏬ Harvesting reviews (cursor=%s)...", last_cursor)
        result = harvest_reviews(view, last_cursor=last_cursor)
        return validate_harvest(result)
    finally:
        try:
            browser.quit()
        except WebDriverException:
            pass


def get_local_place_info(place_url: str, navigation_timeout: Optional[int] = None) -> PlaceSummarySchema:
    """
    Read the rating summary of a place: name, star histogram, average and
    total number of reviews.
    """
    browser = create_en_browser()
    try:
        open_place(browser, place_url, navigation_timeout)
        open_reviews_tab(browser)

        data = extract_place_summary(browser.page_source)
        logger.info("📊 Place summary: %s", data)
        return validate_place_summary(data)
    finally:
        try:
            browser.quit()
        except WebDriverException:
            pass
