"""SVG rendering of a fetched timetable schema.

:func:`render` turns a :class:`~skolschema.models.Schema` into an
:class:`SvgDocument` -- a flat list of positioned, styled ``rect``, ``text``
and ``line`` elements -- following the styling rules of the Skola24 web
viewer:

* Boxes are painted first, then texts, then lines (later is on top), each in
  the order received.
* ``Footer``, ``ClockFrameStart`` and ``ClockFrameEnd`` boxes have no
  border; ``Lesson`` boxes get a pointer cursor and are keyboard focusable.
* Texts of ``ClockAxisBox`` and ``HeadingDay`` type are centred
  horizontally on their parent box with a width estimate that ignores
  glyph metrics (every character counts as half the font size). Labels in
  wide fonts will sit slightly off centre.
* Line colours are written as received; box and text colours must be
  ``#RRGGBB`` and any malformed one aborts the whole render.

The document is serialised by a Jinja2 template (``templates/timetable.svg.j2``)
with XML autoescaping, so element text and attribute values are always
escaped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from skolschema.models import BoxElement, Dimensions, LineElement, Schema, TextElement
from skolschema.render.color import Rgb

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``render/templates/``)."""

FONT_FAMILY = "Open Sans"

_BORDERLESS_TYPES = frozenset({"Footer", "ClockFrameStart", "ClockFrameEnd"})
_CENTRED_TEXT_TYPES = frozenset({"ClockAxisBox", "HeadingDay"})
_LESSON_TYPE = "Lesson"


@dataclass
class SvgElement:
    """One SVG primitive: tag name, ordered attributes, optional text content."""

    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    text: Optional[str] = None


@dataclass
class SvgDocument:
    """A rendered timetable, ready to be serialised."""

    width: int
    height: int
    elements: list[SvgElement] = field(default_factory=list)

    @property
    def attributes(self) -> dict[str, str]:
        return {
            "width": str(self.width),
            "height": str(self.height),
            "shape-rendering": "crispEdges",
            "viewBox": f"0 0 {self.width} {self.height}",
        }

    def add(self, element: SvgElement) -> None:
        self.elements.append(element)

    def to_string(self) -> str:
        """Serialise the document as SVG markup."""
        template = _create_jinja_env().get_template("timetable.svg.j2")
        return template.render(document=self)

    def save(self, path: str | Path) -> Path:
        """Write the document to *path* as UTF-8 and return the path."""
        output_path = Path(path)
        output_path.write_text(self.to_string(), encoding="utf-8")
        return output_path


def render(schema: Schema, dimensions: Optional[Dimensions] = None) -> SvgDocument:
    """Render *schema* onto a canvas of *dimensions* (default 800x600).

    Raises:
        ColorParseError: If any box or text colour is not ``#RRGGBB``.
    """
    dimensions = dimensions or Dimensions()
    document = SvgDocument(width=dimensions.width, height=dimensions.height)

    for box in schema.box_list:
        document.add(_box_element(box))

    styled_texts = 0
    for text in schema.text_list:
        if text.bold or text.italic:
            styled_texts += 1
        document.add(_text_element(text, schema.box_list))
    if styled_texts:
        logger.warning("Unimplemented: bold/italic styling ignored on %d text(s)", styled_texts)

    for line in schema.line_list:
        document.add(_line_element(line))

    return document


# --- Boxes ---


def box_style(box: BoxElement) -> str:
    """Return the inline CSS of a box.

    The service's ``b_color`` is used as the fill and ``f_color`` as the
    stroke, the reverse of what the names suggest. Do not swap them: the
    viewer renders it this way and existing output depends on it.
    """
    stroke_width = 0 if box.type in _BORDERLESS_TYPES else 1
    cursor = " cursor: pointer;" if box.type == _LESSON_TYPE else ""
    stroke = Rgb.parse(box.f_color)
    fill = Rgb.parse(box.b_color)
    return f"fill: {fill}; stroke: {stroke}; stroke-width: {stroke_width};{cursor}"


def _box_element(box: BoxElement) -> SvgElement:
    attributes = {
        "x": str(box.x),
        "y": str(box.y),
        "width": str(box.width),
        "height": str(box.height),
        "box-id": str(box.id),
        "shape-rendering": "crispEdges",
        "box-type": box.type,
        "style": box_style(box),
    }
    if box.type == _LESSON_TYPE:
        attributes["focusable"] = "true"
        attributes["tabindex"] = "0"
    return SvgElement("rect", attributes)


# --- Texts ---


def _format_number(value: float) -> str:
    """Format a number without a trailing ``.0`` for integral values."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def text_style(text: TextElement) -> str:
    """Return the inline CSS of a text element."""
    color = Rgb.parse(text.f_color)
    return (
        f"fill: {color}; font-size: {_format_number(text.fontsize)}px; "
        f"font-family: {FONT_FAMILY}; pointer-events: none;"
    )


def text_x(text: TextElement, boxes: list[BoxElement]) -> int:
    """Horizontal position of a text element.

    Centred texts use the first box whose ``id`` equals the text's
    ``parent_id``; without one, or for other types, the text's own ``x``.
    """
    if text.type not in _CENTRED_TEXT_TYPES:
        return text.x
    for box in boxes:
        if box.id == text.parent_id:
            return box.x + box.width // 2 - (len(text.text) * int(text.fontsize)) // 4
    return text.x


def _text_element(text: TextElement, boxes: list[BoxElement]) -> SvgElement:
    attributes = {
        "x": str(text_x(text, boxes)),
        "y": str(text.y + int(text.fontsize)),
        "text-id": str(text.id),
        "style": text_style(text),
    }
    return SvgElement("text", attributes, text=text.text)


# --- Lines ---


def _line_element(line: LineElement) -> SvgElement:
    attributes = {
        "x1": str(line.p1x),
        "y1": str(line.p1y),
        "x2": str(line.p2x),
        "y2": str(line.p2y),
        "stroke": line.color,
    }
    return SvgElement("line", attributes)


def _create_jinja_env() -> Environment:
    """Create the Jinja2 environment for the SVG template.

    Autoescape is enabled for ``.svg.j2`` templates; block trimming and
    lstrip keep the output one element per line.
    """
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(enabled_extensions=("svg.j2",)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
