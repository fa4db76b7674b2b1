"""Parsing of ``#RRGGBB`` colours."""

from __future__ import annotations

import re
from typing import NamedTuple

from skolschema.exceptions import ColorParseError

_HEX_COLOR_RE = re.compile(r"#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})")


class Rgb(NamedTuple):
    """An RGB triple; ``str()`` gives the CSS form ``rgb(r, g, b)``."""

    r: int
    g: int
    b: int

    @classmethod
    def parse(cls, hex_code: str) -> Rgb:
        """Parse a 7-character ``#RRGGBB`` string.

        Raises:
            ColorParseError: On any other length, a missing ``#``, or a
                non-hex digit.
        """
        match = _HEX_COLOR_RE.fullmatch(hex_code)
        if match is None:
            raise ColorParseError(f"Invalid colour '{hex_code}': expected #RRGGBB")
        return cls(*(int(channel, 16) for channel in match.groups()))

    def __str__(self) -> str:
        return f"rgb({self.r}, {self.g}, {self.b})"
