"""
2D vector math for the continuous arena.

World coordinates grow right (x) and down (y); an angle of 0 points along +x and
positive angles turn clockwise on screen, which matches the host simulator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


def normalize_angle(angle: float) -> float:
    """Wrap an angle into (-pi, pi]."""
    while angle > math.pi:
        angle -= 2.0 * math.pi
    while angle <= -math.pi:
        angle += 2.0 * math.pi
    return angle


@dataclass(frozen=True)
class Point:
    """Immutable 2D vector / position."""

    x: float
    y: float

    @classmethod
    def from_polar(cls, radius: float, angle: float) -> "Point":
        return cls(radius * math.cos(angle), radius * math.sin(angle))

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, k: float) -> "Point":
        return Point(self.x * k, self.y * k)

    __rmul__ = __mul__

    def __neg__(self) -> "Point":
        return Point(-self.x, -self.y)

    def dot(self, other: "Point") -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: "Point") -> float:
        return self.x * other.y - self.y * other.x

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def length_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def distance_squared_to(self, other: "Point") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def unit(self) -> "Point":
        """Unit vector in the same direction; the zero vector stays zero."""
        length = self.length()
        if length == 0.0:
            return Point(0.0, 0.0)
        return Point(self.x / length, self.y / length)

    def rotate(self, angle: float) -> "Point":
        sin = math.sin(angle)
        cos = math.cos(angle)
        return Point(self.x * cos - self.y * sin, self.y * cos + self.x * sin)

    def project(self, other: "Point") -> float:
        """Signed length of this vector along ``other``."""
        return self.dot(other.unit())

    def is_clockwise_to(self, other: "Point") -> bool:
        """True if turning from this vector to ``other`` is a clockwise turn."""
        return self.cross(other) < 0

    def angle(self) -> float:
        return math.atan2(self.y, self.x)

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


ORIGIN = Point(0.0, 0.0)


def relative_angle(origin: Point, facing: float, target: Point) -> float:
    """
    Angle from a unit's facing direction to a target point.

    Args:
        origin: Position of the unit
        facing: Absolute facing angle of the unit
        target: Point to look at

    Returns:
        Angle in (-pi, pi]; positive means the target is to the unit's right
    """
    return normalize_angle((target - origin).angle() - facing)


def segment_distance(a: Point, b: Point, p: Point) -> float:
    """Shortest distance from ``p`` to the segment ``a``-``b``."""
    ab = b - a
    denom = ab.length_squared()
    if denom == 0.0:
        return p.distance_to(a)
    t = max(0.0, min(1.0, (p - a).dot(ab) / denom))
    return p.distance_to(a + ab * t)
