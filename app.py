"""Flask web application serving the interactive sky chart.

Routes:
    GET  /                -- Page with inline chart SVG and nearby events
    GET  /chart.svg       -- Current chart as SVG
    POST /chart/events    -- Pointer, wheel or pinch event (JSON), returns render flag + hover/selection
    POST /chart/options   -- Display toggles (JSON)
    POST /chart/observer  -- Observer location and time (form)
    POST /chart/reset     -- Reset pan/zoom
    GET  /download/svg    -- SVG file download
    GET  /download/png    -- PNG via CairoSVG (graceful fallback)

Configuration comes from ``SKYCHART_*`` environment variables, e.g.
``SKYCHART_LATITUDE=42.36 SKYCHART_EVENTS_FILE=events.json``.
"""
import json
import math
import threading
from datetime import datetime, timezone

from flask import Flask, Response, jsonify, render_template, request

from skychart.chart import POINTER_EVENTS, SkyChart
from skychart.config import DEFAULT_HEIGHT, DEFAULT_LATITUDE, DEFAULT_LONGITUDE, DEFAULT_WIDTH

app = Flask(__name__)
app.config.update(
    LATITUDE=DEFAULT_LATITUDE,
    LONGITUDE=DEFAULT_LONGITUDE,
    WIDTH=DEFAULT_WIDTH,
    HEIGHT=DEFAULT_HEIGHT,
    EVENTS_FILE=None,
)
app.config.from_prefixed_env("SKYCHART")

chart = SkyChart(width=app.config["WIDTH"], height=app.config["HEIGHT"])
chart.set_observer(float(app.config["LATITUDE"]), float(app.config["LONGITUDE"]))
# One chart per process; the dev server is threaded.
chart_lock = threading.Lock()

OPTION_NAMES = (
    "show_stars", "show_constellations", "show_constellation_names",
    "show_planets", "show_grid", "show_labels",
)


def _load_events() -> list[dict]:
    """Event list from the configured JSON file, or an empty list."""
    path = app.config.get("EVENTS_FILE")
    if not path:
        return []
    try:
        with open(path) as f:
            events = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        app.logger.warning("Could not read events file %s: %s", path, e)
        return []
    return [e for e in events if isinstance(e, dict)]


def _parse_observer_form() -> tuple[float, float, datetime | None] | str:
    """Parse and validate observer form data. Returns tuple on success, error string on failure.

    Validates:
        - lat: float, -90 to 90
        - lon: float, -180 to 180
        - date + time (UTC): parseable as datetime; both empty means "now"
    """
    try:
        lat = float(request.form.get("lat", ""))
        if not -90 <= lat <= 90:
            return "Latitude must be between -90 and 90."
    except ValueError:
        return "Invalid latitude. Enter a number like 10.25."

    try:
        lon = float(request.form.get("lon", ""))
        if not -180 <= lon <= 180:
            return "Longitude must be between -180 and 180."
    except ValueError:
        return "Invalid longitude. Enter a number like -61.63."

    date_str = request.form.get("date", "").strip()
    time_str = request.form.get("time", "").strip()
    if not date_str and not time_str:
        return (lat, lon, None)
    if not date_str or not time_str:
        return "Enter both date and time, or leave both empty for now."
    try:
        instant = datetime.strptime(f"{date_str} {time_str}", "%Y-%m-%d %H:%M")
    except ValueError:
        return "Invalid date or time format."
    return (lat, lon, instant.replace(tzinfo=timezone.utc))


def _state() -> dict:
    selected = chart.selection()
    hovered = chart.hover()
    return {
        "render": chart.needs_render,
        "zoom": chart.view.zoom,
        "selected": selected.as_dict() if selected else None,
        "hovered": hovered.as_dict() if hovered else None,
    }


def _current_svg() -> str:
    with chart_lock:
        return chart.render_svg()


@app.route("/")
def index() -> str:
    """Render the chart page."""
    with chart_lock:
        svg = chart.render_svg()
        observer = chart.observer
        events = chart.visible_events(_load_events())
    return render_template("index.html", svg=svg, observer=observer, events=events,
                           options=chart.options, option_names=OPTION_NAMES, error=None)


@app.route("/chart.svg")
def chart_svg() -> Response:
    return Response(_current_svg(), mimetype="image/svg+xml")


@app.route("/chart/events", methods=["POST"])
def pointer_event() -> Response | tuple[Response, int]:
    """Apply one pointer event to the chart."""
    event = request.get_json(silent=True)
    if not isinstance(event, dict) or event.get("type") not in POINTER_EVENTS:
        return jsonify(error=f"Expected JSON with type in {', '.join(POINTER_EVENTS)}"), 400
    try:
        with chart_lock:
            rerender = chart.handle_event(event)
            # hit-testing needs a fresh index once the view has moved
            if chart.needs_render:
                chart.render_svg()
            state = _state()
            state["render"] = rerender
    except (TypeError, ValueError) as e:
        return jsonify(error=str(e)), 400
    return jsonify(state)


@app.route("/chart/options", methods=["POST"])
def update_options() -> Response | tuple[Response, int]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify(error="Expected a JSON object of display options"), 400
    toggles = {k: bool(v) for k, v in payload.items() if k in OPTION_NAMES}
    if "limiting_magnitude" in payload:
        try:
            toggles["limiting_magnitude"] = float(payload["limiting_magnitude"])
        except (TypeError, ValueError):
            return jsonify(error="limiting_magnitude must be a number"), 400
        if not math.isfinite(toggles["limiting_magnitude"]):
            return jsonify(error="limiting_magnitude must be a finite number"), 400
    with chart_lock:
        chart.set_options(**toggles)
        state = _state()
    return jsonify(state)


@app.route("/chart/observer", methods=["POST"])
def update_observer() -> Response:
    result = _parse_observer_form()
    if isinstance(result, str):
        return Response(result, status=400, mimetype="text/plain")
    lat, lon, instant = result
    with chart_lock:
        chart.set_observer(lat, lon, instant)
    return Response(_current_svg(), mimetype="image/svg+xml")


@app.route("/chart/reset", methods=["POST"])
def reset_view() -> Response:
    with chart_lock:
        chart.controller.press_control("reset")
        state = _state()
    return jsonify(state)


@app.route("/download/svg")
def download_svg() -> Response:
    """Download the current chart as an SVG file."""
    return Response(_current_svg(), mimetype="image/svg+xml",
                    headers={"Content-Disposition": "attachment; filename=skychart.svg"})


@app.route("/download/png")
def download_png() -> Response:
    """Download the current chart as a PNG file via CairoSVG."""
    svg = _current_svg()
    try:
        import cairosvg
        png_bytes = cairosvg.svg2png(bytestring=svg.encode("utf-8"),
                                      output_width=int(chart.view.width) * 2,
                                      output_height=int(chart.view.height) * 2)
    except ImportError:
        return Response("PNG export requires cairosvg. Install: pip install cairosvg",
                        status=500, mimetype="text/plain")
    return Response(png_bytes, mimetype="image/png",
                    headers={"Content-Disposition": "attachment; filename=skychart.png"})


if __name__ == "__main__":
    app.run(debug=True, port=5000)
