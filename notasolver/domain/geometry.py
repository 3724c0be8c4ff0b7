"""Geometric value objects for handwritten strokes."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Point:
    """Immutable 2D point."""
    x: float
    y: float

    def to_tuple(self) -> Tuple[float, float]:
        """Convert to tuple for compatibility."""
        return (self.x, self.y)

    def to_list(self) -> List[float]:
        """Convert to list for JSON serialization."""
        return [float(self.x), float(self.y)]

    @classmethod
    def from_tuple(cls, t: Tuple[float, float]) -> Point:
        """Create from tuple."""
        return cls(float(t[0]), float(t[1]))

    @classmethod
    def from_list(cls, lst: Sequence[float]) -> Point:
        """Create from list."""
        return cls(float(lst[0]), float(lst[1]))


@dataclass(frozen=True)
class Region:
    """Axis-aligned selection rectangle given as origin plus size.

    Width and height may be negative when the rectangle was dragged
    "backwards"; the min/max properties always report the standardized
    bounds. Containment is a closed test, boundary points are inside.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x_min(self) -> float:
        return min(self.x, self.x + self.width)

    @property
    def x_max(self) -> float:
        return max(self.x, self.x + self.width)

    @property
    def y_min(self) -> float:
        return min(self.y, self.y + self.height)

    @property
    def y_max(self) -> float:
        return max(self.y, self.y + self.height)

    @property
    def is_empty(self) -> bool:
        """A rectangle with no area selects nothing."""
        return self.width == 0 or self.height == 0

    def contains(self, point: Point) -> bool:
        """Check if point is inside the region (boundary inclusive)."""
        return (self.x_min <= point.x <= self.x_max and
                self.y_min <= point.y <= self.y_max)

    def contains_array(self, xy: np.ndarray) -> np.ndarray:
        """Vectorized closed containment test.

        Args:
            xy: Array of shape (N, 2) holding x, y columns.

        Returns:
            Boolean array of shape (N,).
        """
        xy = np.asarray(xy, dtype=float).reshape(-1, 2)
        return ((xy[:, 0] >= self.x_min) & (xy[:, 0] <= self.x_max) &
                (xy[:, 1] >= self.y_min) & (xy[:, 1] <= self.y_max))

    def intersects(self, other: Region) -> bool:
        """Closed rectangle intersection (touching edges count)."""
        return (self.x_min <= other.x_max and other.x_min <= self.x_max and
                self.y_min <= other.y_max and other.y_min <= self.y_max)

    def to_dict(self) -> dict:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}

    @classmethod
    def from_dict(cls, d: dict) -> Region:
        """Create from a dict with x, y, width and height keys."""
        return cls(float(d['x']), float(d['y']), float(d['width']), float(d['height']))

    @classmethod
    def from_bounds(cls, x_min: float, y_min: float, x_max: float, y_max: float) -> Region:
        """Create from min/max corner coordinates."""
        return cls(x_min, y_min, x_max - x_min, y_max - y_min)

    @classmethod
    def from_points(cls, points: Sequence[Point]) -> Region:
        """Create the smallest region containing all points."""
        if not points:
            return cls(0, 0, 0, 0)
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        return cls.from_bounds(min(xs), min(ys), max(xs), max(ys))


@dataclass(frozen=True)
class Stroke:
    """One continuous pen gesture as an ordered sequence of points."""
    points: Tuple[Point, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept any sequence but store a tuple so the stroke stays immutable
        if not isinstance(self.points, tuple):
            object.__setattr__(self, 'points', tuple(self.points))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    def __getitem__(self, idx) -> Point:
        return self.points[idx]

    @property
    def bbox(self) -> Region:
        """Bounding box of stroke."""
        return Region.from_points(self.points)

    def to_array(self) -> np.ndarray:
        """Points as a float array of shape (N, 2)."""
        if not self.points:
            return np.empty((0, 2), dtype=float)
        return np.array([p.to_tuple() for p in self.points], dtype=float)

    def to_list(self) -> List[List[float]]:
        """Convert to nested list for JSON serialization."""
        return [p.to_list() for p in self.points]

    @classmethod
    def from_list(cls, lst: Sequence[Sequence[float]]) -> Stroke:
        """Create from nested list."""
        return cls(tuple(Point.from_list(p) for p in lst))

    @classmethod
    def from_tuples(cls, tuples: Sequence[Tuple[float, float]]) -> Stroke:
        """Create from list of tuples."""
        return cls(tuple(Point.from_tuple(t) for t in tuples))


@dataclass(frozen=True)
class StrokeSet:
    """Sub-paths of the input strokes that fall inside a region.

    Every path holds at least two points. Paths keep the order of the
    source strokes and, within a stroke, the order the pen entered the
    region.
    """
    paths: Tuple[Tuple[Point, ...], ...] = ()

    def __post_init__(self):
        paths = tuple(tuple(path) for path in self.paths)
        for path in paths:
            if len(path) < 2:
                raise ValueError("stroke set paths need at least two points")
        object.__setattr__(self, 'paths', paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self) -> Iterator[Tuple[Point, ...]]:
        return iter(self.paths)

    def __getitem__(self, idx) -> Tuple[Point, ...]:
        return self.paths[idx]

    @property
    def point_count(self) -> int:
        return sum(len(path) for path in self.paths)

    @property
    def bbox(self) -> Region:
        return Region.from_points([p for path in self.paths for p in path])

    def to_xy_arrays(self) -> Tuple[List[List[float]], List[List[float]]]:
        """Split each path into parallel x and y sample lists."""
        xs = [[p.x for p in path] for path in self.paths]
        ys = [[p.y for p in path] for path in self.paths]
        return xs, ys

    def to_list(self) -> List[List[List[float]]]:
        return [[p.to_list() for p in path] for path in self.paths]

    @classmethod
    def from_list(cls, lst: Sequence[Sequence[Sequence[float]]]) -> StrokeSet:
        return cls(tuple(tuple(Point.from_list(p) for p in path) for path in lst))
