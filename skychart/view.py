"""Pan/zoom state for a chart viewport.

Chart space is the unzoomed, unpanned coordinate system the projector works
in. Screen space is chart space scaled by ``zoom`` about the viewport centre
and then shifted by the pan offset:

    screen = (chart - center) * zoom + center + pan
"""
import math
from dataclasses import dataclass

from skychart.config import (
    DEFAULT_HEIGHT, DEFAULT_WIDTH, MAX_ZOOM, MIN_ZOOM, WHEEL_ZOOM_STEP,
)


def clamp_zoom(zoom: float) -> float:
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


@dataclass
class ViewTransform:
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    dragging: bool = False
    _drag_start_x: float = 0.0
    _drag_start_y: float = 0.0
    _drag_start_pan_x: float = 0.0
    _drag_start_pan_y: float = 0.0

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2.0, self.height / 2.0

    @property
    def zoom_percent(self) -> int:
        return round(self.zoom * 100)

    def resize(self, width: float, height: float) -> None:
        self.width, self.height = width, height

    def to_chart_space(self, screen_x: float, screen_y: float) -> tuple[float, float]:
        cx, cy = self.center
        return (
            (screen_x - self.pan_x - cx) / self.zoom + cx,
            (screen_y - self.pan_y - cy) / self.zoom + cy,
        )

    def to_screen_space(self, chart_x: float, chart_y: float) -> tuple[float, float]:
        cx, cy = self.center
        return (
            (chart_x - cx) * self.zoom + cx + self.pan_x,
            (chart_y - cy) * self.zoom + cy + self.pan_y,
        )

    def _zoom_about(self, new_zoom: float, screen_x: float, screen_y: float) -> bool:
        """Set zoom keeping the chart point under (screen_x, screen_y) fixed.

        Returns False without touching pan when the clamped zoom is unchanged.
        """
        new_zoom = clamp_zoom(new_zoom)
        if new_zoom == self.zoom:
            return False
        cx, cy = self.center
        ratio = new_zoom / self.zoom
        # Pointer offset measured from the scaling origin (viewport centre).
        px, py = screen_x - cx, screen_y - cy
        self.pan_x = px - (px - self.pan_x) * ratio
        self.pan_y = py - (py - self.pan_y) * ratio
        self.zoom = new_zoom
        return True

    def apply_wheel(self, delta_y: float, pointer_x: float, pointer_y: float) -> bool:
        """Wheel zoom anchored on the pointer. Returns True if the view changed."""
        factor = 1.0 / WHEEL_ZOOM_STEP if delta_y > 0 else WHEEL_ZOOM_STEP
        return self._zoom_about(self.zoom * factor, pointer_x, pointer_y)

    def zoom_by(self, factor: float) -> bool:
        """Zoom anchored on the viewport centre (zoom buttons)."""
        cx, cy = self.center
        return self._zoom_about(self.zoom * factor, cx, cy)

    def apply_pinch(self, prev_distance: float, distance: float,
                    mid_x: float, mid_y: float) -> bool:
        """Two-finger zoom by the ratio of finger spreads, anchored on their midpoint."""
        if not all(math.isfinite(d) and d > 0 for d in (prev_distance, distance)):
            return False
        return self._zoom_about(self.zoom * distance / prev_distance, mid_x, mid_y)

    def begin_drag(self, screen_x: float, screen_y: float) -> None:
        self.dragging = True
        self._drag_start_x, self._drag_start_y = screen_x, screen_y
        self._drag_start_pan_x, self._drag_start_pan_y = self.pan_x, self.pan_y

    def update_drag(self, screen_x: float, screen_y: float) -> bool:
        if not self.dragging:
            return False
        self.pan_x = self._drag_start_pan_x + (screen_x - self._drag_start_x)
        self.pan_y = self._drag_start_pan_y + (screen_y - self._drag_start_y)
        return True

    def end_drag(self) -> None:
        self.dragging = False

    def reset(self) -> None:
        self.zoom = 1.0
        self.pan_x = self.pan_y = 0.0
