import re
import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup as Soup

logger = logging.getLogger(__name__)

# ==============================
# Constants / selectors
# ==============================

# The outer review card carries an aria-label and the author buttons carry the
# id too; the unlabelled inner div is the one record per review.
REVIEW_ITEM_SELECTOR = ':not(button):not([aria-label])[data-review-id]'
USER_NAME_SELECTOR = 'button[data-review-id][data-href] div:first-child'
USER_AVATAR_SELECTOR = 'button[data-review-id] img'
STAR_SEL = 'span[role="img"][aria-label*=" star"]'
DATE_SELECTOR = f'{STAR_SEL} + span'
COMMENT_SELECTOR = 'div[lang][tabindex]:not([aria-label])'
IMAGE_SELECTOR = 'div[lang][tabindex] + div img'
# "More" / "See original" controls rendered inside the comment block
COMMENT_CONTROLS_SELECTOR = 'button'

RATING_RE = re.compile(r"^\s*(\d+)\s+stars?\b", re.IGNORECASE)


# ==============================
# Field helpers
# ==============================


def parse_rating(label: Optional[str]) -> int:
    """
    Turn an accessible label like "4 stars" into 4.
    Anything unparseable (missing label, localized text) becomes 0.
    """
    if not label:
        return 0
    m = RATING_RE.match(label)
    if not m:
        return 0
    return int(m.group(1))


def _text(el, selector: str, drop: Optional[str] = None) -> Optional[str]:
    """
    Text of the first match, as rendered: inline children are joined without
    extra separators. Descendants matching `drop` are removed first.
    """
    node = el.select_one(selector)
    if node is None:
        return None
    if drop:
        for ctl in node.select(drop):
            ctl.decompose()
    return "".join(node.strings).strip()


def _attr(el, selector: str, attr: str) -> Optional[str]:
    node = el.select_one(selector)
    if node is None:
        return None
    return node.get(attr)


def parse_review_item(el) -> Optional[Dict[str, Any]]:
    """Parse one review element into a dict, or None when it has no id."""
    rid = (el.get('data-review-id') or '').strip()
    if not rid:
        return None

    images = [
        img.get('src') for img in el.select(IMAGE_SELECTOR) if img.get('src')
    ]

    return {
        "review_id": rid,
        "user_name": _text(el, USER_NAME_SELECTOR),
        "user_avatar_url": _attr(el, USER_AVATAR_SELECTOR, 'src'),
        "rating": parse_rating(_attr(el, STAR_SEL, 'aria-label')),
        "date": _text(el, DATE_SELECTOR),
        "comment": _text(el, COMMENT_SELECTOR, drop=COMMENT_CONTROLS_SELECTOR),
        "images": images,
    }


# ==============================
# Extraction pass
# ==============================


def extract_reviews(html: str) -> List[Dict[str, Any]]:
    """
    Read every review currently materialized in the given markup.

    Order follows the document (newest first once the list is sorted by
    newest). Nothing is deduplicated here; the same review may show up again
    on the next pass.
    """
    soup = Soup(html or '', 'lxml')
    reviews = []
    for el in soup.select(REVIEW_ITEM_SELECTOR):
        review = parse_review_item(el)
        if review is None:
            logger.debug("Skipping review node without data-review-id value")
            continue
        reviews.append(review)
    return reviews
