# reviewdelta/utils/io_utils.py
from __future__ import annotations
import csv
import json
from pathlib import Path
from typing import Any, Dict, List


# ------------------------------------------------------------
# JSON I/O
# ------------------------------------------------------------
def load_json(path: Path | str) -> Any:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"JSON not found: {p}")
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def dumps_json(obj: Any, indent: int = 2) -> str:
    # keep non-ASCII review text readable
    return json.dumps(obj, ensure_ascii=False, indent=indent)


def save_json(path: Path | str, obj: Any, indent: int = 2) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(dumps_json(obj, indent) + "\n", encoding="utf-8")


# ------------------------------------------------------------
# CSV I/O
# ------------------------------------------------------------
def flatten_row(row: Dict[str, Any], list_sep: str = "|") -> Dict[str, Any]:
    """
    One CSV-ready copy of a review dict: list values (image URLs) are
    joined with `list_sep`, None becomes an empty cell.
    """
    flat = {}
    for key, value in row.items():
        if isinstance(value, (list, tuple)):
            value = list_sep.join(str(v) for v in value)
        elif value is None:
            value = ""
        flat[key] = value
    return flat


def save_csv(path: Path | str, rows: List[Dict[str, Any]], list_sep: str = "|") -> None:
    """
    Save review dicts as CSV.
    The header is every key in order of first appearance, so rows that
    dropped optional fields still line up.
    """
    if not rows:
        raise ValueError("save_csv() received empty rows list.")

    flat_rows = [flatten_row(row, list_sep) for row in rows]
    headers: List[str] = []
    for row in flat_rows:
        headers.extend(k for k in row if k not in headers)

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=headers, restval="")
        writer.writeheader()
        writer.writerows(flat_rows)
