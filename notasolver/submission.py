"""Parsing of submission documents shared by the HTTP API and the CLI.

A submission is a JSON object with a list of strokes (each a list of
``[x, y]`` pairs) and an optional selection region::

    {
        "region": {"x": 200, "y": 450, "width": 400, "height": 150},
        "strokes": [[[210.0, 470.5], [212.5, 471.0]], ...]
    }

A bare list is accepted as the stroke list of a submission without region.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from .config import DEFAULT_REGION
from .domain.geometry import Region, Stroke


def parse_region(raw: Any) -> Region:
    """Parse a region dict; raises ValueError."""
    if raw is None:
        raw = DEFAULT_REGION
    try:
        return Region.from_dict(raw)
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"invalid region: {e}") from None


def parse_submission(payload: Any, region: Optional[Region] = None) -> Tuple[Region, List[Stroke]]:
    """Return (region, strokes) from a submission document.

    Args:
        payload: Decoded JSON document.
        region: Region overriding the one in the document.

    Raises:
        ValueError: The document is not a valid submission.
    """
    if isinstance(payload, list):
        payload = {'strokes': payload}
    if not isinstance(payload, dict):
        raise ValueError("body must be a JSON object")
    if region is None:
        region = parse_region(payload.get('region'))

    raw_strokes = payload.get('strokes')
    if not isinstance(raw_strokes, list):
        raise ValueError("'strokes' must be a list of point lists")
    try:
        strokes = [Stroke.from_list(s) for s in raw_strokes]
    except (IndexError, KeyError, TypeError, ValueError) as e:
        raise ValueError(f"invalid stroke data: {e!r}") from None
    return region, strokes
