"""Preview rendering of extracted stroke sets.

Draws a StrokeSet onto a small PIL image so the selection sent to OCR can
be inspected. Each sub-path gets its own color; the image is fitted to the
stroke set's bounding box with a margin.
"""

from __future__ import annotations

import io

from PIL import Image, ImageDraw

from .domain.geometry import StrokeSet

DEFAULT_PREVIEW_SIZE = 224
PREVIEW_BACKGROUND = (26, 26, 46)
PREVIEW_MARGIN = 12

# Stroke colors for visualization
STROKE_COLORS = [
    (255, 80, 80), (80, 180, 255), (80, 220, 80), (255, 180, 40),
    (200, 100, 255), (255, 120, 200), (100, 220, 220), (180, 180, 80),
]


def render_stroke_set(stroke_set: StrokeSet, size: int = DEFAULT_PREVIEW_SIZE,
                      width: int = 3) -> Image.Image:
    """Render sub-paths scaled to fit a square canvas.

    Args:
        stroke_set: Paths to draw.
        size: Canvas edge length in pixels.
        width: Line width in pixels.

    Returns:
        RGB image; blank when the stroke set is empty.
    """
    img = Image.new('RGB', (size, size), PREVIEW_BACKGROUND)
    if not len(stroke_set):
        return img

    bbox = stroke_set.bbox
    extent = max(bbox.x_max - bbox.x_min, bbox.y_max - bbox.y_min, 1.0)
    scale = (size - 2 * PREVIEW_MARGIN) / extent

    draw = ImageDraw.Draw(img)
    for i, path in enumerate(stroke_set):
        pts = [(PREVIEW_MARGIN + (p.x - bbox.x_min) * scale,
                PREVIEW_MARGIN + (p.y - bbox.y_min) * scale) for p in path]
        draw.line(pts, fill=STROKE_COLORS[i % len(STROKE_COLORS)], width=width)
    return img


def render_stroke_set_png(stroke_set: StrokeSet, size: int = DEFAULT_PREVIEW_SIZE) -> io.BytesIO:
    """Render to an in-memory PNG buffer positioned at the start."""
    buf = io.BytesIO()
    render_stroke_set(stroke_set, size).save(buf, format='PNG')
    buf.seek(0)
    return buf
