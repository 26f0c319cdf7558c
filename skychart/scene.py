"""Per-frame sky chart renderer.

Each frame:
    1. Clear to the background colour
    2. Push the pan/zoom transform (everything after is in chart space)
    3. Altitude rings, horizon, cardinal spokes and labels
    4. Constellation lines -> stars -> Sun, Moon and planets
    5. Pop the transform, draw screen-space overlays (readout, buttons, tooltip)

Chart-space positions of everything drawn are returned in a ``FrameIndex``,
which the hit-tester reads until the next frame replaces it.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Iterator

import numpy as np

from skychart.catalog import SOLAR_SYSTEM, CelestialBody, load_constellations, load_stars
from skychart.config import (
    ALTITUDE_RINGS, BACKGROUND_COLOR, CARDINAL_COLOR, CONSTELLATION_LINE_COLOR,
    CONSTELLATION_LINE_OPACITY, CONSTELLATION_NAME_COLOR, FONT_FAMILY,
    GLOW_MAGNITUDE, GRID_COLOR, GRID_OPACITY, HORIZON_COLOR, LABEL_COLOR,
    LIMITING_MAGNITUDE, NORTH_COLOR, OVERLAY_COLOR,
)
from skychart.coordinates import radec_to_altaz
from skychart.observer import ObserverContext
from skychart.projection import (
    chart_radius, horizon_point, project_many, stereographic_project,
)
from skychart.view import ViewTransform

logger = logging.getLogger(__name__)

CARDINALS = (
    (0, "N"), (45, "NE"), (90, "E"), (135, "SE"),
    (180, "S"), (225, "SW"), (270, "W"), (315, "NW"),
)

BUTTON_SIZE = 28
BUTTON_GAP = 6


@dataclass(frozen=True)
class ProjectedBody:
    body: CelestialBody
    x: float            # chart space
    y: float
    altitude: float
    azimuth: float


@dataclass
class FrameIndex:
    """Where everything ended up in the most recent frame.

    ``bodies`` keeps draw order (stars, then solar-system bodies); ``controls``
    holds screen-space (x, y, w, h) rectangles of the overlay buttons.
    """
    bodies: dict[str, ProjectedBody] = field(default_factory=dict)
    controls: dict[str, tuple[float, float, float, float]] = field(default_factory=dict)

    def add(self, entry: ProjectedBody) -> None:
        self.bodies[entry.body.name] = entry

    def get(self, name: str | None) -> ProjectedBody | None:
        if name is None:
            return None
        return self.bodies.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.bodies

    def __iter__(self) -> Iterator[ProjectedBody]:
        return iter(self.bodies.values())

    def __len__(self) -> int:
        return len(self.bodies)


@dataclass
class SceneOptions:
    show_stars: bool = True
    show_constellations: bool = True
    show_constellation_names: bool = True
    show_planets: bool = True
    show_grid: bool = True
    show_labels: bool = True
    limiting_magnitude: float = LIMITING_MAGNITUDE
    star_scale: float = 1.0


def mag_to_radius(mag: float, scale: float = 1.0) -> float:
    """Star magnitude -> disc radius. Brighter (lower mag) = bigger.

    Range: ~0.6px (mag 5.5) to ~3.7px (Sirius).
    """
    return max(0.6, 3.0 - mag * 0.45) * scale


def mag_to_opacity(mag: float) -> float:
    """Star magnitude -> opacity. Range: 0.5 (mag >= 7) to 1.0 (mag <= 2)."""
    return max(0.5, min(1.0, 1.0 - (mag - 2.0) * 0.1))


def _has_position(body: CelestialBody) -> bool:
    values = (body.right_ascension, body.declination, body.magnitude)
    return all(v is not None and math.isfinite(v) for v in values)


def _project_stars(
    stars: list[CelestialBody],
    observer: ObserverContext,
    width: float,
    height: float,
) -> dict[str, ProjectedBody]:
    """Transform + project all stars at once; only those above the horizon."""
    complete = [s for s in stars if _has_position(s)]
    if len(complete) < len(stars):
        logger.debug("Skipping %d stars with incomplete positions", len(stars) - len(complete))
    if not complete:
        return {}
    ra = np.array([s.right_ascension for s in complete])
    dec = np.array([s.declination for s in complete])
    alt, az = radec_to_altaz(ra, dec, observer.latitude, observer.longitude, observer.instant)
    x, y, visible = project_many(alt, az, width, height)
    return {
        s.name: ProjectedBody(s, float(x[i]), float(y[i]), float(alt[i]), float(az[i]))
        for i, s in enumerate(complete)
        if visible[i] and math.isfinite(x[i]) and math.isfinite(y[i])
    }


def _draw_grid(ctx, width: float, height: float) -> None:
    cx, cy = width / 2.0, height / 2.0
    radius = chart_radius(width, height)
    ctx.circle(cx, cy, radius, fill=HORIZON_COLOR, opacity=0.35)
    for alt in ALTITUDE_RINGS:
        r = radius * math.tan(math.radians(90.0 - alt) / 2.0)
        ctx.circle(cx, cy, r, stroke=GRID_COLOR, stroke_width=1.0, opacity=GRID_OPACITY, dash="4 4")
    for az in (0, 90, 180, 270):
        edge = horizon_point(az, width, height)
        ctx.line(cx, cy, edge.x, edge.y, GRID_COLOR, 1.0, GRID_OPACITY)
    ctx.circle(cx, cy, radius, stroke=CARDINAL_COLOR, stroke_width=1.5, opacity=0.6)
    for az, label in CARDINALS:
        pos = horizon_point(az, width, height, inset=14)
        color = NORTH_COLOR if label == "N" else CARDINAL_COLOR
        ctx.text(pos.x, pos.y + 5, label, color, 14, anchor="middle", weight="bold", family=FONT_FAMILY)


def _draw_constellations(ctx, stars: dict[str, ProjectedBody], observer: ObserverContext,
                         width: float, height: float, options: SceneOptions) -> None:
    for constellation in load_constellations():
        for a, b in constellation.lines:
            start, end = stars.get(a), stars.get(b)
            # both endpoints must be above the horizon
            if start is None or end is None:
                continue
            ctx.line(start.x, start.y, end.x, end.y, CONSTELLATION_LINE_COLOR,
                     1.0, CONSTELLATION_LINE_OPACITY)

        if not options.show_constellation_names:
            continue
        ra, dec = constellation.center
        alt, az = radec_to_altaz(ra, dec, observer.latitude, observer.longitude, observer.instant)
        pos = stereographic_project(alt, az, width, height)
        if pos is not None and alt > 0:
            ctx.text(pos.x, pos.y, constellation.name, CONSTELLATION_NAME_COLOR, 13,
                     anchor="middle", family=FONT_FAMILY)


def _draw_stars(ctx, stars: dict[str, ProjectedBody], frame: FrameIndex,
                options: SceneOptions) -> None:
    for entry in stars.values():
        star = entry.body
        if star.magnitude > options.limiting_magnitude:
            continue
        r = mag_to_radius(star.magnitude, options.star_scale)
        if star.magnitude < GLOW_MAGNITUDE:
            ctx.glow(entry.x, entry.y, r * 4, star.color, body=star.name)
        ctx.circle(entry.x, entry.y, r, fill=star.color,
                   opacity=mag_to_opacity(star.magnitude), body=star.name)
        if star.magnitude < GLOW_MAGNITUDE and options.show_labels:
            ctx.text(entry.x + r + 4, entry.y + 3, star.name, LABEL_COLOR, 11,
                     opacity=0.7, family=FONT_FAMILY, body=star.name)
        frame.add(entry)


def _draw_solar_system(ctx, observer: ObserverContext, width: float, height: float,
                       frame: FrameIndex, options: SceneOptions) -> None:
    for body in SOLAR_SYSTEM:
        radec = body.radec_at(observer.instant)
        if radec is None:
            continue
        alt, az = radec_to_altaz(radec[0], radec[1], observer.latitude,
                                 observer.longitude, observer.instant)
        pos = stereographic_project(alt, az, width, height)
        if pos is None or not (math.isfinite(pos.x) and math.isfinite(pos.y)):
            continue
        ctx.glow(pos.x, pos.y, body.size * 3, body.color, body=body.name)
        ctx.circle(pos.x, pos.y, body.size, fill=body.color, body=body.name)
        if options.show_labels:
            ctx.text(pos.x, pos.y + body.size + 12, f"{body.symbol} {body.name}", body.color, 11,
                     anchor="middle", family=FONT_FAMILY, body=body.name)
        frame.add(ProjectedBody(body, pos.x, pos.y, alt, az))


def _draw_tooltip(ctx, view: ViewTransform, entry: ProjectedBody) -> None:
    sx, sy = view.to_screen_space(entry.x, entry.y)
    lines = [
        entry.body.name,
        f"Alt {entry.altitude:.1f}°  Az {entry.azimuth:.1f}°",
    ]
    if entry.body.magnitude is not None:
        lines.append(f"Mag {entry.body.magnitude:.2f}")
    box_w = max(len(line) for line in lines) * 7 + 16
    box_h = len(lines) * 16 + 8
    # keep the box on screen
    x = min(sx + 12, view.width - box_w - 4)
    y = min(sy + 12, view.height - box_h - 4)
    ctx.fill_rect(x, y, box_w, box_h, "#000000", opacity=0.75, stroke=OVERLAY_COLOR, rx=4)
    for i, line in enumerate(lines):
        weight = "bold" if i == 0 else None
        ctx.text(x + 8, y + 18 + i * 16, line, LABEL_COLOR, 12, weight=weight, family=FONT_FAMILY)


def _draw_overlay(ctx, view: ViewTransform, observer: ObserverContext, frame: FrameIndex,
                  hovered: str | None) -> None:
    info = [
        f"{observer.latitude:.2f}°, {observer.longitude:.2f}°",
        observer.instant.strftime("%Y-%m-%d %H:%M %Z").strip(),
    ]
    for i, line in enumerate(info):
        ctx.text(15, 25 + i * 18, line, OVERLAY_COLOR, 12, opacity=0.8, family=FONT_FAMILY)

    # zoom readout and buttons, top right
    labels = (("zoom_in", "+"), ("zoom_out", "−"), ("reset", "⟲"))
    top = 12
    left = view.width - len(labels) * (BUTTON_SIZE + BUTTON_GAP) - 6
    ctx.text(left - 8, top + 19, f"{view.zoom_percent}%", OVERLAY_COLOR, 13,
             anchor="end", family=FONT_FAMILY)
    for i, (name, glyph) in enumerate(labels):
        x = left + i * (BUTTON_SIZE + BUTTON_GAP)
        ctx.fill_rect(x, top, BUTTON_SIZE, BUTTON_SIZE, "#141a33", opacity=0.85,
                      stroke=OVERLAY_COLOR, rx=4)
        ctx.text(x + BUTTON_SIZE / 2, top + 19, glyph, OVERLAY_COLOR, 16,
                 anchor="middle", family=FONT_FAMILY)
        frame.controls[name] = (x, top, BUTTON_SIZE, BUTTON_SIZE)

    ctx.text(view.width - 15, view.height - 15, "Drag to pan • Scroll to zoom",
             OVERLAY_COLOR, 12, anchor="end", opacity=0.5, family=FONT_FAMILY)

    entry = frame.get(hovered)
    if entry is not None:
        _draw_tooltip(ctx, view, entry)


def render_scene(
    ctx,
    observer: ObserverContext,
    view: ViewTransform,
    options: SceneOptions | None = None,
    hovered: str | None = None,
) -> FrameIndex:
    """Draw one frame onto ``ctx`` and return the new FrameIndex.

    With no drawing surface the frame is skipped and an empty index is
    returned, so nothing from an earlier frame stays hit-testable.
    """
    frame = FrameIndex()
    if ctx is None:
        logger.warning("No drawing surface available; skipping sky chart frame")
        return frame
    options = options or SceneOptions()
    width, height = view.width, view.height
    cx, cy = view.center

    ctx.fill_rect(0, 0, width, height, BACKGROUND_COLOR)

    ctx.save()
    ctx.translate(cx + view.pan_x, cy + view.pan_y)
    ctx.scale(view.zoom)
    ctx.translate(-cx, -cy)

    if options.show_grid:
        _draw_grid(ctx, width, height)

    stars: dict[str, ProjectedBody] = {}
    if options.show_stars or options.show_constellations:
        stars = _project_stars(load_stars(), observer, width, height)
    if options.show_constellations:
        _draw_constellations(ctx, stars, observer, width, height, options)
    if options.show_stars:
        _draw_stars(ctx, stars, frame, options)
    if options.show_planets:
        _draw_solar_system(ctx, observer, width, height, frame, options)

    ctx.restore()

    _draw_overlay(ctx, view, observer, frame, hovered)
    logger.debug("Rendered frame: %d bodies above the horizon", len(frame))
    return frame
