"""
Debug visualization sinks.

The tactics engine may draw what it is thinking (ranges, paths, targets) into
a DebugSink. Sinks are write-only: nothing the engine decides may depend on
whether a sink is attached, which is why NullDebugSink is the default.

Available sinks:
- NullDebugSink:      drops everything
- RecordingDebugSink: keeps the primitives in memory (tests, replays)
- PygameDebugSink:    renders onto a pygame Surface and can dump PNG frames
- GuardedDebugSink:   wraps any of the above and disables it on the first error
"""
import math
from collections import deque
from pathlib import Path
from typing import Any, Deque, List, Optional, Protocol, Tuple

import pygame

from engine.error_handler import handle_noncritical_error
from engine.utils.geometry import Point

Color = Tuple[int, int, int]

LIGHT_GRAY: Color = (200, 200, 200)
PINK: Color = (255, 175, 175)
RED: Color = (220, 60, 60)
BLUE: Color = (70, 110, 230)
ORANGE: Color = (255, 170, 40)
CYAN: Color = (60, 220, 220)
BLACK: Color = (10, 10, 10)
GREEN: Color = (80, 200, 90)


class DebugSink(Protocol):
    """Drawing primitives in world coordinates."""

    def begin_frame(self, tick_index: int) -> None: ...

    def end_frame(self) -> None: ...

    def focus(self, point: Point) -> None: ...

    def draw_line(self, a: Point, b: Point, color: Color) -> None: ...

    def draw_circle(self, center: Point, radius: float, color: Color) -> None: ...

    def fill_circle(self, center: Point, radius: float, color: Color) -> None: ...

    def draw_arc(self, center: Point, radius: float, start_angle: float, arc_angle: float, color: Color) -> None: ...

    def draw_rect(self, top_left: Point, bottom_right: Point, color: Color) -> None: ...

    def show_text(self, position: Point, text: str, color: Color) -> None: ...


class NullDebugSink:
    """Sink that draws nothing."""

    def begin_frame(self, tick_index: int) -> None:
        pass

    def end_frame(self) -> None:
        pass

    def focus(self, point: Point) -> None:
        pass

    def draw_line(self, a: Point, b: Point, color: Color) -> None:
        pass

    def draw_circle(self, center: Point, radius: float, color: Color) -> None:
        pass

    def fill_circle(self, center: Point, radius: float, color: Color) -> None:
        pass

    def draw_arc(self, center: Point, radius: float, start_angle: float, arc_angle: float, color: Color) -> None:
        pass

    def draw_rect(self, top_left: Point, bottom_right: Point, color: Color) -> None:
        pass

    def show_text(self, position: Point, text: str, color: Color) -> None:
        pass


class RecordingDebugSink:
    """Keeps every primitive as ``(name, args)`` for later inspection."""

    def __init__(self, max_primitives: int = 100_000):
        # Oldest primitives fall off once the limit is reached
        self.primitives: Deque[Tuple[str, Tuple[Any, ...]]] = deque(maxlen=max_primitives)
        self.frames: List[int] = []
        self.focus_points: List[Point] = []
        self.max_primitives = max_primitives

    def _record(self, name: str, *args: Any) -> None:
        self.primitives.append((name, args))

    def begin_frame(self, tick_index: int) -> None:
        self.frames.append(tick_index)

    def end_frame(self) -> None:
        pass

    def focus(self, point: Point) -> None:
        self.focus_points.append(point)

    def draw_line(self, a: Point, b: Point, color: Color) -> None:
        self._record("line", a, b, color)

    def draw_circle(self, center: Point, radius: float, color: Color) -> None:
        self._record("circle", center, radius, color)

    def fill_circle(self, center: Point, radius: float, color: Color) -> None:
        self._record("fill_circle", center, radius, color)

    def draw_arc(self, center: Point, radius: float, start_angle: float, arc_angle: float, color: Color) -> None:
        self._record("arc", center, radius, start_angle, arc_angle, color)

    def draw_rect(self, top_left: Point, bottom_right: Point, color: Color) -> None:
        self._record("rect", top_left, bottom_right, color)

    def show_text(self, position: Point, text: str, color: Color) -> None:
        self._record("text", position, text, color)

    def count(self, name: str) -> int:
        return sum(1 for primitive, _ in self.primitives if primitive == name)


class PygameDebugSink:
    """
    Renders debug primitives onto a pygame Surface.

    The view is a square window of ``view_size`` world units centered on the
    agent (set via ``focus``). When ``frame_dir`` is given, every finished
    frame is saved as ``tick_00042.png``.
    """

    def __init__(
        self,
        surface: pygame.Surface,
        view_size: float = 1600.0,
        frame_dir: Optional[Path] = None,
        background: Color = (245, 245, 240),
    ):
        self.surface = surface
        self.view_size = view_size
        self.frame_dir = frame_dir
        self.background = background
        self.focus_point = Point(view_size / 2, view_size / 2)
        self.tick_index = 0
        self._font: Optional[pygame.font.Font] = None

        if self.frame_dir is not None:
            self.frame_dir.mkdir(parents=True, exist_ok=True)

    @property
    def scale(self) -> float:
        width, height = self.surface.get_size()
        return min(width, height) / self.view_size

    def focus(self, point: Point) -> None:
        """Center the view on ``point`` (usually the agent)."""
        self.focus_point = point

    def to_screen(self, point: Point) -> Tuple[int, int]:
        width, height = self.surface.get_size()
        s = self.scale
        return (
            int(round(width / 2 + (point.x - self.focus_point.x) * s)),
            int(round(height / 2 + (point.y - self.focus_point.y) * s)),
        )

    def _radius(self, radius: float) -> int:
        return max(1, int(round(radius * self.scale)))

    def _get_font(self) -> pygame.font.Font:
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font = pygame.font.Font(None, 14)
        return self._font

    def begin_frame(self, tick_index: int) -> None:
        self.tick_index = tick_index
        self.surface.fill(self.background)

    def end_frame(self) -> None:
        if self.frame_dir is not None:
            pygame.image.save(self.surface, str(self.frame_dir / f"tick_{self.tick_index:05d}.png"))

    def draw_line(self, a: Point, b: Point, color: Color) -> None:
        pygame.draw.line(self.surface, color, self.to_screen(a), self.to_screen(b))

    def draw_circle(self, center: Point, radius: float, color: Color) -> None:
        pygame.draw.circle(self.surface, color, self.to_screen(center), self._radius(radius), width=1)

    def fill_circle(self, center: Point, radius: float, color: Color) -> None:
        pygame.draw.circle(self.surface, color, self.to_screen(center), self._radius(radius))

    def draw_arc(self, center: Point, radius: float, start_angle: float, arc_angle: float, color: Color) -> None:
        r = self._radius(radius)
        cx, cy = self.to_screen(center)
        rect = pygame.Rect(cx - r, cy - r, 2 * r, 2 * r)
        # pygame measures arcs counter-clockwise on screen; world angles turn clockwise.
        start = -(start_angle + arc_angle)
        stop = -start_angle
        if stop < start:
            stop += 2 * math.pi
        pygame.draw.arc(self.surface, color, rect, start, stop)

    def draw_rect(self, top_left: Point, bottom_right: Point, color: Color) -> None:
        x1, y1 = self.to_screen(top_left)
        x2, y2 = self.to_screen(bottom_right)
        pygame.draw.rect(self.surface, color, pygame.Rect(x1, y1, max(1, x2 - x1), max(1, y2 - y1)), width=1)

    def show_text(self, position: Point, text: str, color: Color) -> None:
        rendered = self._get_font().render(text, True, color)
        self.surface.blit(rendered, self.to_screen(position))


class GuardedDebugSink:
    """
    Wraps another sink so a drawing failure can never reach the caller.

    The first exception is logged and the wrapped sink is swapped for a
    NullDebugSink for the rest of the run.
    """

    def __init__(self, inner: DebugSink):
        self.inner: DebugSink = inner
        self.disabled = False

    def _call(self, name: str, *args: Any) -> None:
        if self.disabled:
            return
        try:
            getattr(self.inner, name)(*args)
        except Exception as e:
            handle_noncritical_error(e, f"debug_sink.{name}", recovery_action=self._disable)

    def _disable(self) -> None:
        self.inner = NullDebugSink()
        self.disabled = True

    def begin_frame(self, tick_index: int) -> None:
        self._call("begin_frame", tick_index)

    def end_frame(self) -> None:
        self._call("end_frame")

    def focus(self, point: Point) -> None:
        self._call("focus", point)

    def draw_line(self, a: Point, b: Point, color: Color) -> None:
        self._call("draw_line", a, b, color)

    def draw_circle(self, center: Point, radius: float, color: Color) -> None:
        self._call("draw_circle", center, radius, color)

    def fill_circle(self, center: Point, radius: float, color: Color) -> None:
        self._call("fill_circle", center, radius, color)

    def draw_arc(self, center: Point, radius: float, start_angle: float, arc_angle: float, color: Color) -> None:
        self._call("draw_arc", center, radius, start_angle, arc_angle, color)

    def draw_rect(self, top_left: Point, bottom_right: Point, color: Color) -> None:
        self._call("draw_rect", top_left, bottom_right, color)

    def show_text(self, position: Point, text: str, color: Color) -> None:
        self._call("show_text", position, text, color)
