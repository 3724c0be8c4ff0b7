"""Extraction of stroke geometry enclosed by a selection region.

This module provides the StrokeRegionExtractor class, which cuts the
strokes drawn on the canvas down to the parts that lie inside the
rectangle the user selected. The result is the StrokeSet sent to OCR.

The extraction process:
    1. Rejects every stroke whose bounding box misses the region
    2. Tests each remaining point against the closed region rectangle
    3. Splits the stroke into maximal runs of inside points
    4. Drops runs shorter than two points (a lone sample is noise)

A stroke that leaves the region and comes back yields two separate
sub-paths; no sub-path ever spans an exit.

Example usage::

    from notasolver.analysis.region import StrokeRegionExtractor
    from notasolver.domain import Region, Stroke

    extractor = StrokeRegionExtractor()
    stroke_set = extractor.extract(strokes, Region(200, 450, 400, 150))
    for path in stroke_set:
        print(len(path))
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np

from ..domain.geometry import Point, Region, Stroke, StrokeSet

logger = logging.getLogger(__name__)

#: A sub-path must have at least this many points to be kept.
MIN_PATH_POINTS = 2


def inside_runs(mask: np.ndarray) -> List[Tuple[int, int]]:
    """Find maximal runs of True in a boolean mask.

    Args:
        mask: 1-D boolean array.

    Returns:
        List of (start, end) index pairs, end exclusive, in order.

    Example:
        >>> inside_runs(np.array([True, True, False, True]))
        [(0, 2), (3, 4)]
    """
    padded = np.concatenate(([False], np.asarray(mask, dtype=bool), [False]))
    edges = np.flatnonzero(padded[1:] != padded[:-1])
    return [(int(s), int(e)) for s, e in zip(edges[::2], edges[1::2])]


class StrokeRegionExtractor:
    """Extracts the sub-paths of strokes that fall inside a region.

    Stateless; one instance can be shared between threads.
    """

    def __init__(self, min_path_points: int = MIN_PATH_POINTS):
        self.min_path_points = max(MIN_PATH_POINTS, min_path_points)

    def extract(self, strokes: Sequence[Stroke], region: Region) -> StrokeSet:
        """Return the parts of ``strokes`` enclosed by ``region``.

        Args:
            strokes: Strokes in drawing order.
            region: Selection rectangle; boundary points count as inside.

        Returns:
            StrokeSet with every sub-path inside the region and at least
            two points long. Empty when nothing qualifies, never an error.
        """
        if region.is_empty or not strokes:
            return StrokeSet()

        candidates = [s for s in strokes if len(s) and s.bbox.intersects(region)]

        paths: List[Tuple[Point, ...]] = []
        for stroke in candidates:
            paths.extend(self._split_stroke(stroke, region))

        logger.debug("Extracted %d sub-paths from %d/%d strokes",
                     len(paths), len(candidates), len(strokes))
        return StrokeSet(tuple(paths))

    def _split_stroke(self, stroke: Stroke, region: Region) -> List[Tuple[Point, ...]]:
        mask = region.contains_array(stroke.to_array())
        return [
            stroke.points[start:end]
            for start, end in inside_runs(mask)
            if end - start >= self.min_path_points
        ]
