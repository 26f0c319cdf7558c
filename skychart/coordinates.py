"""Equatorial -> horizontal coordinate transform.

Pipeline: instant -> Julian Day -> Greenwich/local sidereal time -> hour angle
-> altitude/azimuth. The sidereal time is the linear GMST approximation; it is
meant for a "what's up tonight" chart, not for pointing a telescope.
``reference_altaz`` runs the same conversion through astropy's AltAz frame
for comparison.
"""
from datetime import datetime, timezone

import numpy as np
from numpy.typing import ArrayLike, NDArray
from astropy.coordinates import SkyCoord, EarthLocation, AltAz
from astropy.time import Time
import astropy.units as u

J2000_JD = 2451545.0
GMST_AT_J2000_DEG = 280.46061837
SIDEREAL_DEG_PER_DAY = 360.98564736629
GMST_T2_DEG = 0.000387933
SINGULAR_EPS = 1e-12


def normalize360(angle: ArrayLike):
    """Wrap degrees into [0, 360). Scalars in, float out; arrays in, array out."""
    wrapped = np.mod(angle, 360.0)
    # np.mod can round tiny negatives up to exactly 360.0
    wrapped = np.where(wrapped >= 360.0, 0.0, wrapped)
    return float(wrapped) if np.ndim(wrapped) == 0 else wrapped


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def julian_day(instant: datetime) -> float:
    """Julian Day (UTC) of ``instant``. Naive datetimes are taken as UTC."""
    return float(Time(_as_utc(instant), scale="utc").jd)


def days_since_j2000(instant: datetime) -> float:
    return julian_day(instant) - J2000_JD


def greenwich_sidereal_time(jd: float) -> float:
    """Greenwich Mean Sidereal Time in degrees [0, 360)."""
    d = jd - J2000_JD
    t = d / 36525.0
    return normalize360(GMST_AT_J2000_DEG + SIDEREAL_DEG_PER_DAY * d + GMST_T2_DEG * t * t)


def local_sidereal_time(jd: float, longitude: float) -> float:
    """Local Sidereal Time in degrees [0, 360). Longitude positive east."""
    return normalize360(greenwich_sidereal_time(jd) + longitude)


def equatorial_to_horizontal(
    ra_hours: ArrayLike,
    dec: ArrayLike,
    lat: float,
    lst_deg: float,
):
    """RA (hours) / Dec (degrees) -> (altitude, azimuth) in degrees.

    Azimuth is measured from north through east, in [0, 360). At the zenith
    and nadir (and for an observer on a pole) azimuth is undefined and 0 is
    returned. NaN inputs give NaN outputs.
    """
    ha = np.radians(normalize360(lst_deg - np.asarray(ra_hours, dtype=float) * 15.0))
    dec_rad = np.radians(np.asarray(dec, dtype=float))
    lat_rad = np.radians(lat)

    sin_alt = np.sin(dec_rad) * np.sin(lat_rad) + np.cos(dec_rad) * np.cos(lat_rad) * np.cos(ha)
    alt = np.arcsin(np.clip(sin_alt, -1.0, 1.0))

    denom = np.cos(alt) * np.cos(lat_rad)
    with np.errstate(divide="ignore", invalid="ignore"):
        cos_az = (np.sin(dec_rad) - np.sin(alt) * np.sin(lat_rad)) / denom
    az = np.degrees(np.arccos(np.clip(cos_az, -1.0, 1.0)))
    az = np.where(np.sin(ha) > 0, 360.0 - az, az)
    az = np.where(np.abs(denom) < SINGULAR_EPS, 0.0, az)
    az = normalize360(az)

    alt = np.degrees(alt)
    if np.ndim(alt) == 0:
        return float(alt), float(az)
    return alt, az


def radec_to_altaz(
    ra_hours: ArrayLike,
    dec: ArrayLike,
    lat: float,
    lon: float,
    instant: datetime,
):
    """Full transform for an observer at (lat, lon) and a point in time.

    Accepts scalars or numpy arrays for ``ra_hours`` / ``dec``. Call once
    with all catalog positions rather than per body.
    """
    lst = local_sidereal_time(julian_day(instant), lon)
    return equatorial_to_horizontal(ra_hours, dec, lat, lst)


def build_altaz_frame(lat: float, lon: float, instant: datetime) -> AltAz:
    """Build an astropy AltAz reference frame for a time and location."""
    location = EarthLocation(lat=lat * u.deg, lon=lon * u.deg)
    return AltAz(obstime=Time(_as_utc(instant)), location=location)


def reference_altaz(
    ra_hours: ArrayLike,
    dec: ArrayLike,
    lat: float,
    lon: float,
    instant: datetime,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Altitude/azimuth through astropy (precession, nutation, aberration).

    Slow compared to ``radec_to_altaz``; used to check how far the simplified
    transform drifts, not for rendering.
    """
    frame = build_altaz_frame(lat, lon, instant)
    ra_deg = np.atleast_1d(np.asarray(ra_hours, dtype=float)) * 15.0
    coords = SkyCoord(ra=ra_deg * u.deg, dec=np.atleast_1d(dec) * u.deg, frame="icrs")
    altaz = coords.transform_to(frame)
    return altaz.alt.deg, altaz.az.deg
