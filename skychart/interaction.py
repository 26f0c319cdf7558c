"""Pointer interaction: hit-testing, hover/selection, drag and wheel routing.

The controller is the only thing that mutates the view transform or the
hover/selection state. It reads positions from the last rendered FrameIndex
and asks for a re-render through ``request_render`` when something visible
changes.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from skychart.config import BUTTON_ZOOM_STEP, HIT_RADIUS_PX
from skychart.scene import FrameIndex, ProjectedBody
from skychart.view import ViewTransform

logger = logging.getLogger(__name__)


class PointerMode(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass(frozen=True)
class BodyInfo:
    name: str
    altitude: float
    azimuth: float
    magnitude: float | None = None

    @classmethod
    def from_projected(cls, entry: ProjectedBody) -> "BodyInfo":
        return cls(entry.body.name, entry.altitude, entry.azimuth, entry.body.magnitude)

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "altitude": round(self.altitude, 2),
            "azimuth": round(self.azimuth, 2),
            "magnitude": self.magnitude,
        }


InfoCallback = Callable[[BodyInfo | None], None]


def find_object_at(
    frame: FrameIndex,
    chart_x: float,
    chart_y: float,
    threshold: float = HIT_RADIUS_PX,
) -> ProjectedBody | None:
    """Nearest body drawn in ``frame`` within ``threshold`` chart pixels.

    Ties go to the earlier body in draw order. NaN positions never match.
    """
    best, best_dist = None, threshold
    for entry in frame:
        d = math.hypot(entry.x - chart_x, entry.y - chart_y)
        if d <= best_dist and (best is None or d < best_dist):
            best, best_dist = entry, d
    return best


def _inside(rect: tuple[float, float, float, float], x: float, y: float) -> bool:
    rx, ry, rw, rh = rect
    return rx <= x <= rx + rw and ry <= y <= ry + rh


class InteractionController:
    def __init__(
        self,
        view: ViewTransform,
        request_render: Callable[[], None] | None = None,
        on_select: InfoCallback | None = None,
        on_hover: InfoCallback | None = None,
    ) -> None:
        self.view = view
        self.frame = FrameIndex()
        self.mode = PointerMode.IDLE
        self.hovered: str | None = None
        self.selected: str | None = None
        self._suppress_click = False
        self._request_render = request_render or (lambda: None)
        self._on_select = on_select
        self._on_hover = on_hover

    def set_frame(self, frame: FrameIndex) -> None:
        """Install the index from the frame just rendered."""
        self.frame = frame

    def info(self, name: str | None) -> BodyInfo | None:
        entry = self.frame.get(name)
        return BodyInfo.from_projected(entry) if entry else None

    def _pick(self, screen_x: float, screen_y: float) -> ProjectedBody | None:
        chart_x, chart_y = self.view.to_chart_space(screen_x, screen_y)
        return find_object_at(self.frame, chart_x, chart_y)

    # -- pointer events --

    def pointer_down(self, x: float, y: float) -> None:
        self.mode = PointerMode.DRAGGING
        self._suppress_click = True
        self.view.begin_drag(x, y)

    def pointer_move(self, x: float, y: float) -> bool:
        """Pan while dragging, hover-check otherwise. Returns True on re-render."""
        if self.mode is PointerMode.DRAGGING:
            self.view.update_drag(x, y)
            self._request_render()
            return True

        entry = self._pick(x, y)
        name = entry.body.name if entry else None
        if name == self.hovered:
            return False
        self.hovered = name
        if self._on_hover:
            self._on_hover(BodyInfo.from_projected(entry) if entry else None)
        self._request_render()
        return True

    def pointer_up(self) -> None:
        self.mode = PointerMode.IDLE
        self.view.end_drag()

    def pointer_leave(self) -> None:
        # No click follows a press that ends off the chart.
        self._suppress_click = False
        self.pointer_up()

    def click(self, x: float, y: float) -> bool:
        """Select the body under the pointer. Returns True on re-render.

        A click that ends a press (drag) is swallowed and clears the flag.
        """
        if self._suppress_click:
            self._suppress_click = False
            return False

        for name, rect in self.frame.controls.items():
            if _inside(rect, x, y):
                return self.press_control(name)

        entry = self._pick(x, y)
        self.selected = entry.body.name if entry else None
        info = BodyInfo.from_projected(entry) if entry else None
        if info is not None:
            logger.info("Selected %s (alt %.1f, az %.1f)", info.name, info.altitude, info.azimuth)
        if self._on_select:
            self._on_select(info)
        self._request_render()
        return True

    def wheel(self, delta_y: float, x: float, y: float) -> bool:
        changed = self.view.apply_wheel(delta_y, x, y)
        if changed:
            self._request_render()
        return changed

    def pinch(self, prev_distance: float, distance: float, x: float, y: float) -> bool:
        """Two-finger zoom about (x, y); a second finger ends any one-finger pan."""
        if self.mode is PointerMode.DRAGGING:
            self.mode = PointerMode.IDLE
            self.view.end_drag()
        changed = self.view.apply_pinch(prev_distance, distance, x, y)
        if changed:
            self._request_render()
        return changed

    # -- overlay buttons --

    def press_control(self, name: str) -> bool:
        if name == "zoom_in":
            changed = self.view.zoom_by(BUTTON_ZOOM_STEP)
        elif name == "zoom_out":
            changed = self.view.zoom_by(1.0 / BUTTON_ZOOM_STEP)
        elif name == "reset":
            self.view.reset()
            changed = True
        else:
            logger.warning("Unknown chart control %r", name)
            return False
        if changed:
            self._request_render()
        return changed
