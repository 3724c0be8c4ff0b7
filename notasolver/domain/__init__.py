"""Domain objects for equation solving.

This module provides the value objects and records used throughout the
package: stroke geometry captured from the drawing surface and the
equation requests that flow through the solve pipeline.

Geometry classes:
    Point: Immutable 2D point.
    Region: Axis-aligned selection rectangle with closed containment.
    Stroke: Immutable sequence of points for one pen gesture.
    StrokeSet: Sub-paths of strokes that fall inside a region.

Equation classes:
    EquationState: Lifecycle states of a request.
    EquationRequest: Immutable request record with transition methods.
    Pod: One displayable result section.
    ErrorInfo: Typed failure recorded on a request.

Example usage::

    from notasolver.domain import Point, Region, Stroke

    region = Region(0, 0, 100, 50)
    stroke = Stroke.from_tuples([(10, 10), (20, 15), (30, 20)])
    region.contains(stroke[0])  # True
"""

from .equation import EquationRequest, EquationState, ErrorInfo, Pod
from .geometry import Point, Region, Stroke, StrokeSet

__all__ = [
    'Point', 'Region', 'Stroke', 'StrokeSet',
    'EquationState', 'EquationRequest', 'Pod', 'ErrorInfo',
]
