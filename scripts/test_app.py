#!/usr/bin/env python3
"""Gate: Flask routes, chart context and the nearby-events side list."""
import json
from datetime import datetime, timedelta, timezone

import pytest

import app as webapp
from skychart.chart import SkyChart
from skychart.observer import events_near


@pytest.fixture
def client():
    webapp.chart.view.reset()
    webapp.chart.set_options(show_planets=True, show_stars=True)
    webapp.chart.controller.selected = None
    webapp.chart.controller.hovered = None
    webapp.chart.controller._suppress_click = False
    with webapp.app.test_client() as c:
        yield c
    webapp.chart.view.reset()


def test_index_page(client) -> None:
    res = client.get("/")
    assert res.status_code == 200
    body = res.get_data(as_text=True)
    assert "<svg" in body and "Nearby events" in body


def test_chart_svg(client) -> None:
    res = client.get("/chart.svg")
    assert res.status_code == 200
    assert res.mimetype == "image/svg+xml"
    assert res.get_data(as_text=True).startswith("<svg")


def test_pointer_event_validation(client) -> None:
    assert client.post("/chart/events", data="not json").status_code == 400
    assert client.post("/chart/events", json={"type": "doubletap"}).status_code == 400
    assert client.post("/chart/events", json={"type": "click", "x": "left"}).status_code == 400


def test_wheel_event_zooms(client) -> None:
    res = client.post("/chart/events", json={"type": "wheel", "x": 400, "y": 400, "deltaY": -120})
    assert res.status_code == 200
    state = res.get_json()
    assert state["render"] is True
    assert state["zoom"] == pytest.approx(1.1)


def test_pinch_event_zooms(client) -> None:
    res = client.post("/chart/events", json={"type": "pinch", "x": 300, "y": 500,
                                             "prevDistance": 100, "distance": 130})
    assert res.status_code == 200
    state = res.get_json()
    assert state["render"] is True
    assert state["zoom"] == pytest.approx(1.3)
    res = client.post("/chart/events", json={"type": "pinch", "x": 300, "y": 500, "distance": 90})
    assert res.status_code == 400


def test_page_posts_events_in_order_and_handles_touch(client) -> None:
    body = client.get("/").get_data(as_text=True)
    assert "queue.then" in body
    for listener in ("touchstart", "touchmove", "touchend"):
        assert f"'{listener}'" in body


def _clickable_entry():
    """First rendered body clear of the overlay buttons."""
    for entry in webapp.chart.frame:
        x, y = webapp.chart.view.to_screen_space(entry.x, entry.y)
        if y > 60:
            return entry
    raise AssertionError("no body rendered below the button row")


def test_click_on_rendered_body_selects_it(client) -> None:
    client.get("/chart.svg")
    entry = _clickable_entry()
    x, y = webapp.chart.view.to_screen_space(entry.x, entry.y)
    res = client.post("/chart/events", json={"type": "click", "x": x, "y": y})
    selected = res.get_json()["selected"]
    assert selected is not None
    assert set(selected) == {"name", "altitude", "azimuth", "magnitude"}


def test_drag_then_click_does_not_select(client) -> None:
    client.get("/chart.svg")
    entry = _clickable_entry()
    x, y = webapp.chart.view.to_screen_space(entry.x, entry.y)
    for kind in ("pointerdown", "pointerup", "click"):
        res = client.post("/chart/events", json={"type": kind, "x": x, "y": y})
        assert res.status_code == 200
    assert res.get_json()["selected"] is None


def test_options(client) -> None:
    res = client.post("/chart/options", json={"show_planets": False, "unknown": True})
    assert res.status_code == 200
    assert webapp.chart.options.show_planets is False
    svg = client.get("/chart.svg").get_data(as_text=True)
    assert 'data-body="Sun"' not in svg and 'data-body="Moon"' not in svg
    assert client.post("/chart/options", json={"limiting_magnitude": "faint"}).status_code == 400
    for bad in ("nan", "inf", "-Infinity"):
        res = client.post("/chart/options", json={"limiting_magnitude": bad})
        assert res.status_code == 400, bad
    assert webapp.chart.options.limiting_magnitude == 5.5
    assert client.post("/chart/options", data="x").status_code == 400


def test_observer_form_validation(client) -> None:
    res = client.post("/chart/observer", data={"lat": "95", "lon": "0"})
    assert res.status_code == 400 and "Latitude" in res.get_data(as_text=True)
    res = client.post("/chart/observer", data={"lat": "10", "lon": "west"})
    assert res.status_code == 400
    res = client.post("/chart/observer", data={"lat": "10", "lon": "0", "date": "2024-01-01"})
    assert res.status_code == 400
    res = client.post("/chart/observer", data={"lat": "10", "lon": "0", "date": "2024-13-01", "time": "21:00"})
    assert res.status_code == 400


def test_observer_update(client) -> None:
    res = client.post("/chart/observer",
                      data={"lat": "42.36", "lon": "-71.06", "date": "2024-01-10", "time": "03:00"})
    assert res.status_code == 200
    observer = webapp.chart.observer
    assert (observer.latitude, observer.longitude) == (42.36, -71.06)
    assert observer.instant == datetime(2024, 1, 10, 3, 0, tzinfo=timezone.utc)
    assert "42.36" in res.get_data(as_text=True)
    webapp.chart.set_observer(webapp.app.config["LATITUDE"], webapp.app.config["LONGITUDE"])


def test_reset_and_downloads(client) -> None:
    webapp.chart.view.zoom_by(2.0)
    res = client.post("/chart/reset")
    assert res.get_json()["zoom"] == 1.0
    res = client.get("/download/svg")
    assert "attachment" in res.headers["Content-Disposition"]
    res = client.get("/download/png")
    assert res.status_code in (200, 500)


def test_events_near_filters_window_limit_and_order() -> None:
    now = datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
    events = [
        {"title": "far past", "datetime": (now - timedelta(hours=30)).isoformat()},
        {"title": "a", "datetime": (now + timedelta(hours=20)).isoformat()},
        {"title": "no date"},
        {"title": "b", "datetime": now - timedelta(hours=2)},
        {"title": "garbled", "datetime": "next tuesday"},
        {"title": "c", "datetime": "2024-05-01T13:00:00Z"},
        {"title": "d", "datetime": datetime(2024, 5, 2, 11, 0)},
        {"title": "e", "datetime": (now + timedelta(hours=1)).isoformat()},
        {"title": "f", "datetime": (now + timedelta(hours=2)).isoformat()},
        {"title": "far future", "datetime": (now + timedelta(days=3)).isoformat()},
    ]
    nearby = events_near(events, now)
    assert [e["title"] for e in nearby] == ["a", "b", "c", "d", "e"]


def test_chart_rejects_unknown_input() -> None:
    chart = SkyChart()
    with pytest.raises(ValueError):
        chart.handle_event({"type": "pinch"})
    with pytest.raises(ValueError):
        chart.set_options(show_galaxies=True)


def test_events_file_config(tmp_path, client) -> None:
    now = datetime.now(timezone.utc)
    path = tmp_path / "events.json"
    path.write_text(json.dumps([{"title": "Lunar occultation", "datetime": now.isoformat()}]))
    webapp.app.config["EVENTS_FILE"] = str(path)
    try:
        body = client.get("/").get_data(as_text=True)
    finally:
        webapp.app.config["EVENTS_FILE"] = None
    assert "Lunar occultation" in body


def main() -> None:
    raise SystemExit(pytest.main([__file__, "-q"]))


if __name__ == "__main__":
    main()
