"""Vector rendering of timetable schemas.

Modules:
    color: ``#RRGGBB`` parsing into :class:`Rgb`.
    svg: :func:`render` and the :class:`SvgDocument` it produces.
"""

from skolschema.render.color import Rgb
from skolschema.render.svg import SvgDocument, SvgElement, render

__all__ = ["Rgb", "SvgDocument", "SvgElement", "render"]
