"""Pure analysis steps of the solve pipeline.

StrokeRegionExtractor:
    Cuts drawn strokes down to the sub-paths inside a selection region.
ResponseNormalizer:
    Validates a solver document and flattens it into display pods.

Both are synchronous and free of I/O.
"""

from .normalizer import ResponseNormalizer
from .region import StrokeRegionExtractor

__all__ = ['StrokeRegionExtractor', 'ResponseNormalizer']
