"""Celestial body catalog: bright stars, constellation figures, solar system.

Stars and constellations are loaded from ``skychart/data/*.json`` and cached
after the first call. Solar-system bodies carry no fixed position; their
RA/Dec comes from the simplified orbital approximations below.
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from skychart.config import SPECTRAL_COLORS, STAR_DEFAULT_COLOR
from skychart.coordinates import days_since_j2000, normalize360

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).resolve().parent / "data"
_stars_cache: list[CelestialBody] | None = None
_constellations_cache: list[Constellation] | None = None

OBLIQUITY_DEG = 23.439


@dataclass(frozen=True)
class OrbitalElements:
    """Mean J2000 orbital elements, angles in degrees."""
    a: float        # semi-major axis (AU)
    e: float        # eccentricity
    i: float        # inclination
    L: float        # mean longitude at epoch
    w: float        # longitude of perihelion
    node: float     # longitude of ascending node
    n: float        # mean motion (deg/day)


@dataclass(frozen=True)
class CelestialBody:
    name: str
    right_ascension: float | None   # hours, 0-24 (None for solar-system bodies)
    declination: float | None       # degrees, -90 to +90
    magnitude: float | None
    color: str
    kind: str = "star"              # star | planet | sun | moon
    spectral: str | None = None
    symbol: str = ""
    size: float = 0.0
    elements: OrbitalElements | None = None

    @property
    def is_star(self) -> bool:
        return self.kind == "star"

    def radec_at(self, instant: datetime) -> tuple[float, float] | None:
        """RA (hours) and Dec (degrees) at ``instant``, or None if unknown."""
        if self.kind == "sun":
            return sun_radec(instant)
        if self.kind == "moon":
            return moon_radec(instant)
        if self.elements is not None:
            return planet_radec(self.elements, instant)
        if self.right_ascension is None or self.declination is None:
            return None
        return self.right_ascension, self.declination


@dataclass(frozen=True)
class Constellation:
    name: str
    abbr: str
    center: tuple[float, float]     # (RA hours, Dec degrees) of the name label
    lines: tuple[tuple[str, str], ...]


def star_color(spectral: str | None) -> str:
    """Spectral class letter -> display colour."""
    if not spectral:
        return STAR_DEFAULT_COLOR
    return SPECTRAL_COLORS.get(spectral[0].upper(), STAR_DEFAULT_COLOR)


def _optional_float(value) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def load_stars() -> list[CelestialBody]:
    """Load stars from data/stars.json. Cached after first call.

    Entries keep their file order (brightest first). Entries without a name
    are dropped; a missing or malformed position is kept as None and the
    renderer skips the star.
    Raises FileNotFoundError if data/stars.json does not exist.
    """
    global _stars_cache
    if _stars_cache is None:
        with open(_DATA_DIR / "stars.json") as f:
            raw = json.load(f)
        stars: list[CelestialBody] = []
        seen: set[str] = set()
        for s in raw:
            name = s.get("name")
            if not name or name in seen:
                logger.warning("Skipping catalog entry with missing or duplicate name: %r", s)
                continue
            seen.add(name)
            stars.append(CelestialBody(
                name=name,
                right_ascension=_optional_float(s.get("ra")),
                declination=_optional_float(s.get("dec")),
                magnitude=_optional_float(s.get("mag")),
                color=star_color(s.get("spectral")),
                spectral=s.get("spectral"),
            ))
        _stars_cache = stars
        logger.debug("Loaded %d stars", len(stars))
    return _stars_cache


def load_constellations() -> list[Constellation]:
    """Load constellation figures from data/constellations.json. Cached."""
    global _constellations_cache
    if _constellations_cache is None:
        with open(_DATA_DIR / "constellations.json") as f:
            raw = json.load(f)
        _constellations_cache = [
            Constellation(
                name=c["name"],
                abbr=c["abbr"],
                center=(float(c["center"][0]), float(c["center"][1])),
                lines=tuple((a, b) for a, b in c["lines"]),
            )
            for c in raw
        ]
    return _constellations_cache


def find_star(name: str) -> CelestialBody | None:
    for star in load_stars():
        if star.name == name:
            return star
    return None


# -- Solar system --

SUN = CelestialBody("Sun", None, None, -26.74, "#ffdd44", kind="sun", symbol="☉", size=8)
MOON = CelestialBody("Moon", None, None, -12.74, "#f5f5dc", kind="moon", symbol="☽", size=7)

PLANETS: tuple[CelestialBody, ...] = (
    CelestialBody("Mercury", None, None, -0.2, "#b5a191", kind="planet", symbol="☿", size=3,
                  elements=OrbitalElements(0.387, 0.206, 7.0, 252.251, 77.457, 48.331, 4.092)),
    CelestialBody("Venus", None, None, -4.1, "#ffe4b5", kind="planet", symbol="♀", size=5,
                  elements=OrbitalElements(0.723, 0.007, 3.4, 181.980, 131.563, 76.680, 1.602)),
    CelestialBody("Mars", None, None, 0.7, "#cd5c5c", kind="planet", symbol="♂", size=4,
                  elements=OrbitalElements(1.524, 0.093, 1.8, 355.433, 336.041, 49.558, 0.524)),
    CelestialBody("Jupiter", None, None, -2.2, "#d4a574", kind="planet", symbol="♃", size=8,
                  elements=OrbitalElements(5.203, 0.048, 1.3, 34.351, 14.331, 100.464, 0.083)),
    CelestialBody("Saturn", None, None, 0.5, "#f4d59e", kind="planet", symbol="♄", size=7,
                  elements=OrbitalElements(9.537, 0.054, 2.5, 50.077, 93.057, 113.665, 0.033)),
)

SOLAR_SYSTEM: tuple[CelestialBody, ...] = (SUN, MOON) + PLANETS


def ecliptic_to_radec(lon_deg: float, lat_deg: float) -> tuple[float, float]:
    """Ecliptic longitude/latitude (degrees) -> RA (hours), Dec (degrees)."""
    eps = math.radians(OBLIQUITY_DEG)
    lon = math.radians(lon_deg)
    lat = math.radians(lat_deg)
    sin_dec = math.sin(lat) * math.cos(eps) + math.cos(lat) * math.sin(eps) * math.sin(lon)
    dec = math.degrees(math.asin(max(-1.0, min(1.0, sin_dec))))
    y = math.sin(lon) * math.cos(eps) - math.tan(lat) * math.sin(eps)
    x = math.cos(lon)
    ra = normalize360(math.degrees(math.atan2(y, x))) / 15.0
    return ra, dec


def planet_radec(el: OrbitalElements, instant: datetime) -> tuple[float, float]:
    """Rough planet RA/Dec from mean elements.

    Mean longitude plus a two-term equation of centre, projected through the
    orbital inclination onto the ecliptic. Heliocentric, so parallax from the
    Earth's own orbit is ignored; good enough for a casual chart only.
    """
    d = days_since_j2000(instant)
    mean_lon = normalize360(el.L + el.n * d)
    mean_anom = math.radians(normalize360(mean_lon - el.w))
    center = (
        (2 * el.e - el.e ** 3 / 4) * math.sin(mean_anom)
        + 1.25 * el.e ** 2 * math.sin(2 * mean_anom)
    )
    true_lon = normalize360(mean_lon + math.degrees(center))
    ecl_lat = el.i * math.sin(math.radians(true_lon - el.node))
    return ecliptic_to_radec(true_lon, ecl_lat)


def sun_radec(instant: datetime) -> tuple[float, float]:
    d = days_since_j2000(instant)
    g = math.radians(normalize360(357.529 + 0.98560028 * d))
    q = normalize360(280.459 + 0.98564736 * d)
    lon = math.radians(q + 1.915 * math.sin(g) + 0.020 * math.sin(2 * g))
    eps = math.radians(23.439 - 0.00000036 * d)
    ra = math.degrees(math.atan2(math.cos(eps) * math.sin(lon), math.cos(lon)))
    dec = math.degrees(math.asin(math.sin(eps) * math.sin(lon)))
    return normalize360(ra) / 15.0, dec


def moon_radec(instant: datetime) -> tuple[float, float]:
    d = days_since_j2000(instant)
    mean_lon = normalize360(218.316 + 13.176396 * d)
    mean_anom = normalize360(134.963 + 13.064993 * d)
    arg_lat = normalize360(93.272 + 13.229350 * d)
    lon = mean_lon + 6.289 * math.sin(math.radians(mean_anom))
    lat = 5.128 * math.sin(math.radians(arg_lat))
    return ecliptic_to_radec(lon, lat)
