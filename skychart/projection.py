"""Stereographic projection of the visible hemisphere onto the chart.

Pipeline: (altitude, azimuth) -> Stereographic (x, y) in chart space.
Center = zenith (alt=90 deg), edge circle = horizon (alt=0 deg), north up,
azimuth increasing clockwise.
"""
import math
from typing import NamedTuple

import numpy as np
from numpy.typing import ArrayLike, NDArray


class Point(NamedTuple):
    x: float
    y: float


def chart_radius(width: float, height: float) -> float:
    """Radius of the horizon circle for a viewport."""
    return min(width, height) / 2.0


def stereographic_project(
    alt: float,
    az: float,
    width: float,
    height: float,
) -> Point | None:
    """Project one horizontal position. None when below the horizon.

    Math:
        r = R * tan((90 - alt) / 2)    # R = horizon radius
        x = w/2 + r * sin(az)
        y = h/2 - r * cos(az)

    Altitude exactly 0 is on the horizon circle and counts as visible.
    """
    if alt < 0:
        return None
    r = chart_radius(width, height) * math.tan(math.radians(90.0 - alt) / 2.0)
    az_rad = math.radians(az)
    return Point(width / 2.0 + r * math.sin(az_rad), height / 2.0 - r * math.cos(az_rad))


def project_many(
    alt: ArrayLike,
    az: ArrayLike,
    width: float,
    height: float,
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.bool_]]:
    """Bulk projection. Returns (x, y, visible); x/y are NaN where not visible."""
    alt = np.asarray(alt, dtype=float)
    az_rad = np.radians(np.asarray(az, dtype=float))
    visible = alt >= 0
    r = chart_radius(width, height) * np.tan(np.radians(90.0 - alt) / 2.0)
    x = np.where(visible, width / 2.0 + r * np.sin(az_rad), np.nan)
    y = np.where(visible, height / 2.0 - r * np.cos(az_rad), np.nan)
    return x, y, visible


def horizon_point(az: float, width: float, height: float, inset: float = 0.0) -> Point:
    """Point on (or ``inset`` px inside) the horizon circle at azimuth ``az``."""
    r = chart_radius(width, height) - inset
    az_rad = math.radians(az)
    return Point(width / 2.0 + r * math.sin(az_rad), height / 2.0 - r * math.cos(az_rad))
