"""One interactive sky chart: view, interaction state, display options.

Everything that used to be module-level state lives on a ``SkyChart`` so that
several charts can exist side by side and each can be driven in isolation.
"""
import logging
from dataclasses import fields
from datetime import datetime
from typing import Any, Iterable, Mapping

from skychart.canvas import SvgCanvas
from skychart.config import DEFAULT_HEIGHT, DEFAULT_WIDTH
from skychart.interaction import BodyInfo, InfoCallback, InteractionController
from skychart.observer import (
    InstantProvider, Location, LocationProvider, ObserverContext, events_near,
    resolve_observer,
)
from skychart.scene import FrameIndex, SceneOptions, render_scene
from skychart.view import ViewTransform

logger = logging.getLogger(__name__)

POINTER_EVENTS = (
    "pointerdown", "pointermove", "pointerup", "pointerleave", "click", "wheel", "pinch",
)


class SkyChart:
    def __init__(
        self,
        width: float = DEFAULT_WIDTH,
        height: float = DEFAULT_HEIGHT,
        location_provider: LocationProvider | None = None,
        instant_provider: InstantProvider | None = None,
        on_select: InfoCallback | None = None,
        on_hover: InfoCallback | None = None,
    ) -> None:
        self.view = ViewTransform(width, height)
        self.options = SceneOptions()
        self.location: Location | None = None
        self.instant: datetime | None = None
        self._location_provider = location_provider or (lambda: self.location)
        self._instant_provider = instant_provider or (lambda: self.instant)
        self.controller = InteractionController(
            self.view, request_render=self._invalidate,
            on_select=on_select, on_hover=on_hover,
        )
        self.needs_render = True

    def _invalidate(self) -> None:
        self.needs_render = True

    @property
    def observer(self) -> ObserverContext:
        return resolve_observer(self._location_provider, self._instant_provider)

    @property
    def frame(self) -> FrameIndex:
        return self.controller.frame

    def set_observer(self, latitude: float, longitude: float,
                     instant: datetime | None = None) -> None:
        self.location = Location(latitude, longitude)
        self.instant = instant
        logger.info("Observer set to %.4f, %.4f at %s", latitude, longitude, instant or "now")
        self._invalidate()

    def set_options(self, **toggles: Any) -> None:
        """Update display options by name; unknown names raise ValueError."""
        known = {f.name for f in fields(SceneOptions)}
        unknown = set(toggles) - known
        if unknown:
            raise ValueError(f"Unknown display option(s): {', '.join(sorted(unknown))}")
        for name, value in toggles.items():
            setattr(self.options, name, value)
        self._invalidate()

    def render(self, ctx) -> FrameIndex:
        frame = render_scene(ctx, self.observer, self.view, self.options, self.controller.hovered)
        self.controller.set_frame(frame)
        self.needs_render = False
        return frame

    def render_svg(self) -> str:
        canvas = SvgCanvas(self.view.width, self.view.height)
        self.render(canvas)
        return canvas.to_svg()

    def handle_event(self, event: Mapping[str, Any]) -> bool:
        """Route one pointer event. Returns True if a re-render is wanted.

        ``event`` carries ``type`` (one of POINTER_EVENTS), screen ``x``/``y``
        and, for wheel events, ``deltaY``. Pinch events carry the finger spread
        as ``distance`` and ``prevDistance``, with x/y at the fingers' midpoint.
        Raises ValueError for unknown event types.
        """
        kind = event.get("type")
        x = float(event.get("x", 0.0))
        y = float(event.get("y", 0.0))
        ctl = self.controller
        if kind == "pointerdown":
            ctl.pointer_down(x, y)
            return False
        if kind == "pointermove":
            return ctl.pointer_move(x, y)
        if kind == "pointerup":
            ctl.pointer_up()
            return False
        if kind == "pointerleave":
            ctl.pointer_leave()
            return False
        if kind == "click":
            return ctl.click(x, y)
        if kind == "wheel":
            return ctl.wheel(float(event.get("deltaY", 0.0)), x, y)
        if kind == "pinch":
            if "distance" not in event or "prevDistance" not in event:
                raise ValueError("Pinch events need distance and prevDistance")
            return ctl.pinch(float(event["prevDistance"]), float(event["distance"]), x, y)
        raise ValueError(f"Unknown pointer event type: {kind!r}")

    def selection(self) -> BodyInfo | None:
        return self.controller.info(self.controller.selected)

    def hover(self) -> BodyInfo | None:
        return self.controller.info(self.controller.hovered)

    def visible_events(self, events: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
        """Side-list entries near the chart's current instant."""
        return events_near(events, self.observer.instant)
