import logging
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from selenium import webdriver
from selenium.webdriver.support.wait import WebDriverWait
from selenium.common.exceptions import WebDriverException

from reviewdelta.config.config import config_section

BROWSER_CFG = config_section("crawler.json", "selenium", "browser")
SHARE_LINK_WAIT = BROWSER_CFG.get("share_link_wait_seconds", 15)

SHORT_LINK_PREFIXES = (
    "https://maps.app.goo.gl", "http://maps.app.goo.gl",
    "https://goo.gl/maps", "http://goo.gl/maps",
)

logger = logging.getLogger(__name__)

# ========= Chrome with an English UI =========


def build_chrome_options(headless: Optional[bool] = None) -> webdriver.ChromeOptions:
    """
    Chrome options for scraping Maps: English UI and Accept-Language, so
    labels like "4 stars" and "Sort reviews" match the selectors.
    """
    if headless is None:
        headless = BROWSER_CFG.get("headless", True)

    options = webdriver.ChromeOptions()
    if headless:
        options.add_argument("--headless=new")
        options.add_argument("--no-sandbox")
        options.add_argument("--disable-gpu")
        options.add_argument("--disable-dev-shm-usage")
    options.add_argument(f"--window-size={BROWSER_CFG.get('window_size', '1280,900')}")
    options.add_argument("--lang=en-US")
    options.add_experimental_option(
        "prefs",
        {"intl.accept_languages": BROWSER_CFG.get("accept_language", "en-US,en;q=0.9")},
    )
    user_agent = BROWSER_CFG.get("user_agent", "")
    if user_agent:
        options.add_argument(f"--user-agent={user_agent}")
    return options


def create_en_browser(headless: Optional[bool] = None) -> webdriver.Chrome:
    """Start Chrome with English options and an Accept-Language header."""
    browser = webdriver.Chrome(options=build_chrome_options(headless))

    try:
        browser.execute_cdp_cmd("Network.enable", {})
        browser.execute_cdp_cmd("Network.setExtraHTTPHeaders", {
            "headers": {"Accept-Language": BROWSER_CFG.get("accept_language", "en-US,en;q=0.9")}
        })
    except WebDriverException as e:
        logger.debug("Could not set Accept-Language via CDP: %s", e)

    return browser


def with_english_ui(url: str) -> str:
    """Return ``url`` with hl=en&gl=US in its query, replacing other values."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True)
             if k not in ("hl", "gl")]
    query += [("hl", "en"), ("gl", "US")]
    return urlunsplit(parts._replace(query=urlencode(query)))


# ========= Share links =========

def is_share_link(url: str) -> bool:
    return url.startswith(SHORT_LINK_PREFIXES)


def follow_share_link(browser, url: str, timeout: Optional[float] = None) -> str:
    """
    Open a maps.app.goo.gl style link in ``browser`` and return the place URL
    it redirects to. Other URLs are returned untouched. When the redirect
    does not land on Maps in time the original URL is returned.
    """
    if not is_share_link(url):
        return url

    logger.info("🔗 Following share link: %s", url)
    try:
        browser.get(url)
        WebDriverWait(browser, SHARE_LINK_WAIT if timeout is None else timeout).until(
            lambda d: "/maps" in d.current_url and not is_share_link(d.current_url)
        )
        return browser.current_url
    except WebDriverException as e:
        logger.warning("⚠️ Could not expand share link %s (%s)", url, e)
        return url
