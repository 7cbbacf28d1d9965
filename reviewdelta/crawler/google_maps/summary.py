import re
import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup as Soup

logger = logging.getLogger(__name__)

MAIN_SELECTOR = 'div[role="main"]'

HISTOGRAM_ROW_RE = re.compile(r"^\s*(\d+)\s+stars?\s*,\s*(.+)$", re.IGNORECASE)
INT_RE = re.compile(r"\d+")
FLOAT_RE = re.compile(r"\d+(?:\.\d+)?")
# "1,234" / "1.234" / "1 234" as used for grouping in different locales
GROUPING_RE = re.compile(r"(?<=\d)[,.\s](?=\d{3}(?!\d))")


def _children(el) -> list:
    if el is None:
        return []
    return el.find_all(True, recursive=False)


def _child(el, index: int):
    kids = _children(el)
    return kids[index] if len(kids) > index else None


def parse_int(text: Optional[str]) -> int:
    """First integer in ``text`` with grouping separators removed, else 0."""
    if not text:
        return 0
    m = INT_RE.search(GROUPING_RE.sub("", text))
    return int(m.group(0)) if m else 0


def parse_average(text: Optional[str]) -> float:
    """"4,6" or "4.6" -> 4.6; 0.0 when no number is found."""
    if not text:
        return 0.0
    m = FLOAT_RE.search(text.strip().replace(",", "."))
    return float(m.group(0)) if m else 0.0


def parse_histogram(labels: List[str]) -> Dict[str, int]:
    """
    Turn row labels like "5 stars, 1,024 reviews" into {"5": 1024}.
    Rows that don't look like that are skipped.
    """
    histogram: Dict[str, int] = {}
    for label in labels:
        m = HISTOGRAM_ROW_RE.match(label or "")
        if not m:
            logger.debug("Skipping rating row label %r", label)
            continue
        histogram[str(int(m.group(1)))] = parse_int(m.group(2))
    return histogram


def extract_place_summary(html: str) -> Dict[str, Any]:
    """
    Read the rating block shown on the Reviews tab of a place.

    Layout (element children only):
        div[role=main] > [1] > [1] > [0]   info block
            [0]  table, one <tr aria-label="N stars, M reviews"> per star
            [1]  [0] average, [2] total review count
    """
    soup = Soup(html or '', 'lxml')
    main = soup.select_one(MAIN_SELECTOR)
    if main is None:
        logger.warning("⚠️ Main place container not found; summary will be empty.")

    info = _child(_child(_child(main, 1), 1), 0)
    histogram_block = _child(info, 0)
    average_block = _child(info, 1)

    labels = []
    if histogram_block is not None:
        labels = [tr.get('aria-label') for tr in histogram_block.select('tr')
                  if tr.get('aria-label')]

    average_el = _child(average_block, 0)
    total_el = _child(average_block, 2)

    return {
        "place_name": main.get('aria-label') if main is not None else None,
        "rating": parse_histogram(labels),
        "average_rating": parse_average(average_el.get_text(strip=True) if average_el else None),
        "total_reviews": parse_int(total_el.get_text(strip=True) if total_el else None),
    }
