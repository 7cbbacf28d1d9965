"""Markup builders and a scripted ReviewsView for tests."""
from html import escape

from selenium.common.exceptions import ElementClickInterceptedException, NoSuchElementException
from selenium.webdriver.common.by import By

from reviewdelta.crawler.google_maps.extractor import REVIEW_ITEM_SELECTOR
from reviewdelta.crawler.google_maps.view import ReviewsView


def review_html(review_id, name="Alice", avatar="https://lh3.googleusercontent.com/a/avatar.png",
                rating_label="5 stars", date="2 days ago", comment="Great coffee",
                images=(), comment_html=None):
    """
    One review card shaped like the Maps markup (outer labelled card + inner item).
    `comment_html` replaces the escaped comment span with raw markup.
    """
    rid = escape(review_id, quote=True)
    contrib = "https://www.google.com/maps/contrib/1234"
    parts = []
    if avatar is not None:
        parts.append(
            f'<button class="WEBjve" data-review-id="{rid}" data-href="{contrib}" '
            f'aria-label="Photo of {escape(name or "")}"><img class="NBa7we" src="{avatar}"></button>'
        )
    if name is not None:
        parts.append(
            f'<div class="d4r55-wrap"><button class="al6Kxe" data-review-id="{rid}" '
            f'data-href="{contrib}"><div class="d4r55">{escape(name)}</div>'
            f'<div class="RfnDt">Local Guide · 12 reviews</div></button></div>'
        )
    stars = ""
    if rating_label is not None:
        stars = f'<span class="kvMYJc" role="img" aria-label="{rating_label}"></span>'
    parts.append(f'<div class="DU9Pgb">{stars}<span class="rsqaWe">{escape(date)}</span></div>')
    if comment_html is None and comment is not None:
        comment_html = f'<span class="wiI7pd">{escape(comment)}</span>'
    if comment_html is not None:
        parts.append(
            f'<div class="MyEned" id="{rid}" lang="en" tabindex="-1">{comment_html}</div>'
        )
        if images:
            imgs = "".join(
                f'<button class="Tya61d" data-photo-index="{i}"><img src="{src}"></button>'
                for i, src in enumerate(images)
            )
            parts.append(f'<div class="KtCyie">{imgs}</div>')
    parts.append(
        f'<button class="GBkF3d" data-review-id="{rid}" aria-label="Like">Like</button>')
    return (
        f'<div class="jftiEf fontBodyMedium" aria-label="{escape(name or "")}" data-review-id="{rid}">'
        f'<div class="jJc9Ad" data-review-id="{rid}">{"".join(parts)}</div></div>'
    )


def list_html(items):
    """Wrap review cards (strings or ids) in a scrollable panel page."""
    cards = [item if item.lstrip().startswith("<") else review_html(item) for item in items]
    return (
        '<html><body><div class="m6QErb DxyBCb kA9KIf dS8AEf XiKgde" tabindex="-1">'
        + "".join(cards)
        + '</div></body></html>'
    )


def ids(reviews):
    return [r["review_id"] for r in reviews]


class FakeReviewsView(ReviewsView):
    """
    Serves a fixed sequence of page snapshots.

    Each advance moves to the next snapshot; once the last one is reached,
    further advances report no growth.
    """

    def __init__(self, snapshots):
        self.snapshots = list(snapshots)
        self.index = 0
        self.advances = 0
        self._grew = False

    def read_html(self):
        return self.snapshots[self.index]

    def advance(self):
        self.advances += 1
        if self.index < len(self.snapshots) - 1:
            self.index += 1
            self._grew = True
        else:
            self._grew = False

    def content_grew(self):
        return self._grew


class EndlessReviewsView(ReviewsView):
    """A list that grows by ``page`` new reviews on every advance, forever."""

    def __init__(self, page=2, prefix="new"):
        self.page = page
        self.prefix = prefix
        self.loaded = page

    def read_html(self):
        return list_html([f"{self.prefix}{i}" for i in range(self.loaded)])

    def advance(self):
        self.loaded += self.page

    def content_grew(self):
        return True


def growing_view(review_ids, page=2):
    """Snapshots that append ``page`` reviews per scroll, like the real list."""
    snapshots = [list_html(review_ids[:n]) for n in range(page, len(review_ids) + page, page)]
    return FakeReviewsView(snapshots or [list_html([])])


# ---------- selenium stand-ins ----------

class FakeElement:
    """A WebElement with text, attributes and XPath './*' children."""

    def __init__(self, text="", attrs=None, children=(), covered=False):
        self.text = text
        self.attrs = dict(attrs or {})
        self.children = list(children)
        self.covered = covered
        self.clicks = 0

    def get_attribute(self, name):
        return self.attrs.get(name)

    def click(self):
        if self.covered:
            raise ElementClickInterceptedException("element is covered")
        self.clicks += 1

    def is_displayed(self):
        return True

    def is_enabled(self):
        return True

    def find_elements(self, by, selector):
        assert (by, selector) == (By.XPATH, "./*")
        return list(self.children)


class FakeBrowser:
    """
    Just enough of a selenium driver.

    ``elements`` maps CSS selectors to the elements they find. Review node
    counts and scroll heights are served in sequence; the last value repeats.
    ``redirects`` maps a URL to where navigating to it lands.
    """

    def __init__(self, elements=None, heights=(1,), counts=(0,), redirects=None,
                 page_source="<html><body>page</body></html>"):
        self.elements = {"body": [FakeElement()]}
        self.elements.update(elements or {})
        self.heights = list(heights)
        self.counts = list(counts)
        self.redirects = dict(redirects or {})
        self.page_source = page_source
        self.current_url = "about:blank"
        self.visited = []
        self.scripts = []
        self.page_load_timeout = None
        self.quit_calls = 0

    def execute_script(self, script, *args):
        self.scripts.append(script)
        if script == "arguments[0].click();":
            args[0].clicks += 1
        if script.startswith("return"):
            return self.heights.pop(0) if len(self.heights) > 1 else self.heights[0]
        return None

    def find_elements(self, by, selector):
        assert by == By.CSS_SELECTOR
        if selector == REVIEW_ITEM_SELECTOR:
            n = self.counts.pop(0) if len(self.counts) > 1 else self.counts[0]
            return [FakeElement()] * n
        return list(self.elements.get(selector, []))

    def find_element(self, by, selector):
        found = self.find_elements(by, selector)
        if not found:
            raise NoSuchElementException(selector)
        return found[0]

    def get(self, url):
        self.visited.append(url)
        self.current_url = self.redirects.get(url, url)

    def set_page_load_timeout(self, seconds):
        self.page_load_timeout = seconds

    def quit(self):
        self.quit_calls += 1
