from typing import Any, Dict, List, Optional


class HarvestError(Exception):
    """Base class for errors raised while harvesting Google Maps data."""


class StructuralValidationError(HarvestError):
    """
    The assembled review delta or place summary does not match the expected
    structure. Almost always means the selectors are out of sync with the
    current Google Maps markup.

    ``issues`` keeps the raw validation diagnostics (pydantic ``errors()``).
    """

    def __init__(self, message: str, issues: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.issues = issues or []


class StallError(HarvestError):
    """Scrolling used its whole round budget without the list ever settling."""

    def __init__(self, rounds: int):
        super().__init__(
            f"review list kept growing after {rounds} scroll rounds")
        self.rounds = rounds
