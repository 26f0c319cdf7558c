"""SVG drawing surface with a canvas-style 2-D context API.

The renderer draws through ``save``/``translate``/``scale``/``restore`` and
primitive calls; each ``save`` opens an SVG group whose transform is the list
of translate/scale calls made before the matching ``restore``.
"""
from dataclasses import dataclass, field
from xml.sax.saxutils import escape, quoteattr


@dataclass
class _Group:
    transforms: list[str] = field(default_factory=list)
    children: list[str] = field(default_factory=list)


def _attrs(**kwargs) -> str:
    """Render keyword attributes, skipping None. ``stroke_width`` -> ``stroke-width``."""
    parts = []
    for key, value in kwargs.items():
        if value is None:
            continue
        name = key.rstrip("_").replace("_", "-")
        if isinstance(value, float):
            value = f"{value:.2f}"
        parts.append(f"{name}={quoteattr(str(value))}")
    return " ".join(parts)


class SvgCanvas:
    def __init__(self, width: float, height: float) -> None:
        self.width = width
        self.height = height
        self._defs: list[str] = []
        self._stack: list[_Group] = [_Group()]
        self._gradient_count = 0

    # -- state --

    def save(self) -> None:
        self._stack.append(_Group())

    def restore(self) -> None:
        if len(self._stack) == 1:
            return
        group = self._stack.pop()
        transform = " ".join(group.transforms)
        head = f'<g transform="{transform}">' if transform else "<g>"
        self._emit("\n".join([head, *group.children, "</g>"]))

    def translate(self, x: float, y: float) -> None:
        self._stack[-1].transforms.append(f"translate({x:.2f} {y:.2f})")

    def scale(self, factor: float) -> None:
        self._stack[-1].transforms.append(f"scale({factor:.4f})")

    def _emit(self, element: str) -> None:
        self._stack[-1].children.append(element)

    # -- primitives --

    def fill_rect(self, x: float, y: float, w: float, h: float, fill: str,
                  opacity: float | None = None, stroke: str | None = None,
                  rx: float | None = None) -> None:
        self._emit(f"<rect {_attrs(x=x, y=y, width=w, height=h, rx=rx, fill=fill, stroke=stroke, opacity=opacity)}/>")

    def circle(self, cx: float, cy: float, r: float, fill: str = "none",
               stroke: str | None = None, stroke_width: float | None = None,
               opacity: float | None = None, dash: str | None = None,
               body: str | None = None) -> None:
        self._emit(
            f"<circle {_attrs(cx=cx, cy=cy, r=r, fill=fill, stroke=stroke, stroke_width=stroke_width, stroke_dasharray=dash, opacity=opacity, data_body=body)}/>"
        )

    def line(self, x1: float, y1: float, x2: float, y2: float, stroke: str,
             width: float = 1.0, opacity: float | None = None,
             dash: str | None = None) -> None:
        self._emit(
            f"<line {_attrs(x1=x1, y1=y1, x2=x2, y2=y2, stroke=stroke, stroke_width=width, stroke_dasharray=dash, opacity=opacity)}/>"
        )

    def text(self, x: float, y: float, content: str, fill: str, size: float = 12,
             anchor: str = "start", weight: str | None = None,
             opacity: float | None = None, family: str | None = None,
             body: str | None = None) -> None:
        self._emit(
            f"<text {_attrs(x=x, y=y, fill=fill, font_size=size, font_family=family, font_weight=weight, text_anchor=anchor, opacity=opacity, data_body=body)}>"
            f"{escape(content)}</text>"
        )

    def glow(self, cx: float, cy: float, r: float, color: str,
             body: str | None = None) -> None:
        """Soft radial glow: ``color`` at the centre fading to transparent."""
        self._gradient_count += 1
        grad_id = f"glow-{self._gradient_count}"
        self._defs.append(
            f'<radialGradient id="{grad_id}">'
            f'<stop offset="0" stop-color="{color}" stop-opacity="1"/>'
            f'<stop offset="0.3" stop-color="{color}" stop-opacity="0.5"/>'
            f'<stop offset="1" stop-color="{color}" stop-opacity="0"/>'
            f"</radialGradient>"
        )
        self.circle(cx, cy, r, fill=f"url(#{grad_id})", body=body)

    # -- output --

    def to_svg(self) -> str:
        while len(self._stack) > 1:
            self.restore()
        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" '
            f'viewBox="0 0 {self.width:g} {self.height:g}" '
            f'width="{self.width:g}" height="{self.height:g}">'
        ]
        if self._defs:
            parts.append("<defs>")
            parts.extend(self._defs)
            parts.append("</defs>")
        parts.extend(self._stack[0].children)
        parts.append("</svg>")
        return "\n".join(parts)
