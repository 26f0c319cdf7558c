#!/usr/bin/env python3
"""Gate: horizontal transform + stereographic projection.

Run directly (python scripts/test_projection.py) or through pytest.
"""
import math
from datetime import datetime, timezone

import numpy as np
import pytest
from astropy.utils import iers

from skychart.catalog import find_star, load_stars
from skychart.coordinates import (
    greenwich_sidereal_time, julian_day, local_sidereal_time, normalize360,
    radec_to_altaz, reference_altaz,
)
from skychart.projection import project_many, stereographic_project

J2000 = datetime(2000, 1, 1, 12, 0, tzinfo=timezone.utc)
TRINIDAD = (10.25, -61.63)


def test_julian_day_and_sidereal_time_at_epoch() -> None:
    jd = julian_day(J2000)
    assert jd == pytest.approx(2451545.0, abs=1e-6), f"JD wrong: {jd}"
    # naive datetimes are UTC
    assert julian_day(datetime(2000, 1, 1, 12, 0)) == pytest.approx(jd)
    gmst = greenwich_sidereal_time(jd)
    assert gmst == pytest.approx(280.46061837, abs=1e-6)
    lst = local_sidereal_time(jd, -61.63)
    assert lst == pytest.approx(280.46061837 - 61.63, abs=1e-6)
    assert 0 <= local_sidereal_time(jd, 100.0) < 360


def test_normalize360() -> None:
    assert normalize360(-30.0) == pytest.approx(330.0)
    assert normalize360(720.0) == 0.0
    assert normalize360(-1e-15) == 0.0, "tiny negatives must not wrap to 360"
    wrapped = normalize360(np.array([-90.0, 450.0]))
    assert np.allclose(wrapped, [270.0, 90.0])


def test_polaris_altitude_matches_latitude() -> None:
    polaris = find_star("Polaris")
    assert polaris is not None, "Polaris missing from catalog"
    lat, lon = TRINIDAD
    alt, az = radec_to_altaz(polaris.right_ascension, polaris.declination, lat, lon, J2000)
    print(f"Polaris: alt={alt:.2f} deg, az={az:.1f} deg")
    assert abs(alt - lat) < 3.0, f"Polaris alt wrong: {alt}"
    assert az < 5 or az > 355, f"Polaris should be due north, az={az}"


def test_vectorized_matches_scalar() -> None:
    stars = load_stars()[:20]
    ra = np.array([s.right_ascension for s in stars])
    dec = np.array([s.declination for s in stars])
    alt, az = radec_to_altaz(ra, dec, *TRINIDAD, J2000)
    for i, s in enumerate(stars):
        a, z = radec_to_altaz(s.right_ascension, s.declination, *TRINIDAD, J2000)
        assert alt[i] == pytest.approx(a) and az[i] == pytest.approx(z), s.name
    assert np.all((az >= 0) & (az < 360))
    assert np.all((alt >= -90) & (alt <= 90))


def test_object_at_zenith_projects_to_center() -> None:
    lat, lon = 42.0, 15.0
    lst = local_sidereal_time(julian_day(J2000), lon)
    alt, az = radec_to_altaz(lst / 15.0, lat, lat, lon, J2000)
    assert alt == pytest.approx(90.0, abs=1e-5), f"not at zenith: {alt}"
    assert math.isfinite(az) and 0 <= az < 360
    pos = stereographic_project(alt, az, 800, 600)
    assert pos is not None
    assert pos.x == pytest.approx(400, abs=1e-3) and pos.y == pytest.approx(300, abs=1e-3)


@pytest.mark.parametrize("az", [0.0, 45.0, 133.0, 270.0, 359.9])
def test_zenith_is_center_for_any_azimuth(az: float) -> None:
    pos = stereographic_project(90.0, az, 640, 480)
    assert pos == pytest.approx((320.0, 240.0))


def test_pole_observer_uses_azimuth_fallback() -> None:
    alt, az = radec_to_altaz(3.0, 45.0, 90.0, 0.0, J2000)
    assert alt == pytest.approx(45.0, abs=1e-6)
    assert az == 0.0, f"singular azimuth should fall back to 0, got {az}"


def test_nan_observer_does_not_raise() -> None:
    alt, az = radec_to_altaz(5.0, 10.0, float("nan"), -61.63, J2000)
    assert math.isnan(alt)
    pos = stereographic_project(alt, az, 800, 800)
    assert pos is None or math.isnan(pos.x), "NaN must not turn into a real position"


def test_below_horizon_is_none_and_horizon_on_edge() -> None:
    assert stereographic_project(-0.001, 120.0, 800, 800) is None
    assert stereographic_project(-45.0, 0.0, 800, 800) is None
    edge = stereographic_project(0.0, 90.0, 800, 600)
    assert edge is not None, "altitude 0 is the visible boundary"
    assert edge.x == pytest.approx(400 + 300) and edge.y == pytest.approx(300)
    north = stereographic_project(0.0, 0.0, 800, 800)
    assert north.y == pytest.approx(0.0) and north.x == pytest.approx(400.0), "north is up"
    east = stereographic_project(30.0, 90.0, 800, 800)
    assert east.x > 400, "azimuth increases clockwise"


def test_project_many_masks_hidden_points() -> None:
    alt = np.array([90.0, -10.0, 0.0, 45.0])
    az = np.array([0.0, 90.0, 180.0, 270.0])
    x, y, visible = project_many(alt, az, 800, 800)
    assert visible.tolist() == [True, False, True, True]
    assert np.isnan(x[1]) and np.isnan(y[1])
    single = stereographic_project(45.0, 270.0, 800, 800)
    assert (x[3], y[3]) == pytest.approx(single)


def test_simplified_transform_close_to_astropy() -> None:
    iers.conf.auto_download = False
    instant = datetime(2020, 3, 15, 2, 0, tzinfo=timezone.utc)
    lat, lon = 42.3601, -71.0589
    stars = [find_star(n) for n in ("Sirius", "Betelgeuse", "Capella", "Polaris", "Regulus")]
    ra = np.array([s.right_ascension for s in stars])
    dec = np.array([s.declination for s in stars])
    alt, _ = radec_to_altaz(ra, dec, lat, lon, instant)
    ref_alt, _ = reference_altaz(ra, dec, lat, lon, instant)
    for s, a, r in zip(stars, alt, ref_alt):
        print(f"{s.name}: simplified {a:.2f} vs astropy {r:.2f}")
        assert abs(a - r) < 1.5, f"{s.name} drifted: {a} vs {r}"


def main() -> None:
    raise SystemExit(pytest.main([__file__, "-q", "-s"]))


if __name__ == "__main__":
    main()
