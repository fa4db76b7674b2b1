"""Canonical Pydantic models shared across all skolschema modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Envelope models** -- the wrapper every Skola24 API response arrives in:
    :class:`Envelope`, :class:`FailurePayload`, and :class:`ValidationError`.

**Domain records** -- the typed payloads carried by an envelope:
    :class:`Schema` with its :class:`BoxElement`, :class:`TextElement`,
    :class:`LineElement` and :class:`LessonInfo` lists, plus the directory
    records :class:`School`, :class:`SchoolClass`, :class:`SchoolList`,
    :class:`DomainInfo` and :class:`ClassList`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`CacheConfig`, and :class:`GlobalConfig`.

Wire names are camelCase; every domain model derives from :class:`ApiModel`,
which maps them onto snake_case attributes and accepts either spelling when a
model is built by hand (as the tests do).
"""

from __future__ import annotations

import re
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from skolschema.exceptions import DimensionParseError

DataT = TypeVar("DataT")


class ApiModel(BaseModel):
    """Base for models decoded from Skola24 JSON (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Envelope ---


class Envelope(ApiModel, Generic[DataT]):
    """The outer wrapper common to every API response.

    ``error``, ``exception``, ``validation`` and ``session_expires`` are opaque
    side-channel values: the only behaviour required of them is a null check
    on ``error`` and passing all of them through unchanged when the envelope
    is unwrapped (see :func:`skolschema.envelope.unwrap`).

    A non-null ``error`` marks the envelope as malformed at the root; such an
    envelope is never unwrapped into a typed payload.
    """

    error: Any = None
    data: DataT
    exception: Any = None
    validation: list[Any] = Field(default_factory=list)
    session_expires: Any = None
    need_session_refresh: bool = False


class ValidationError(ApiModel):
    """A single validation message from a failed API call.

    ``id == 1`` on the schools listing means the domain does not exist.
    """

    id: int
    description: str = ""


class FailurePayload(ApiModel):
    """The failure shape of an envelope's ``data`` field."""

    errors: Any = None
    validation_errors: list[ValidationError]


# --- Timetable schema ---


class BoxElement(ApiModel):
    """An axis-aligned rectangle of the rendered timetable.

    ``type`` is free-form; recognised values include ``Lesson``, ``Footer``,
    ``ClockFrameStart``, ``ClockFrameEnd``, ``ClockAxisBox`` and
    ``HeadingDay``. ``lesson_guids`` is only present on ``Lesson`` boxes.

    Note that the service names its colours backwards: ``b_color`` is the
    fill and ``f_color`` is the stroke (see :mod:`skolschema.render.svg`).
    """

    x: int
    y: int
    width: int
    height: int
    b_color: str
    f_color: str
    id: int
    parent_id: Optional[int] = None
    type: str
    lesson_guids: Optional[list[str]] = None


def empty_box() -> BoxElement:
    """Return the zero-valued box used before enrichment attaches a real one."""
    return BoxElement(
        x=0, y=0, width=0, height=0, b_color="", f_color="", id=0, type=""
    )


class TextElement(ApiModel):
    """A text label. ``bold`` and ``italic`` are never set by the service."""

    x: int
    y: int
    f_color: str
    fontsize: float
    text: str
    bold: bool = False
    italic: bool = False
    id: int
    parent_id: int
    type: str


class LineElement(ApiModel):
    """A straight line between two points."""

    p1x: int
    p1y: int
    p2x: int
    p2y: int
    color: str
    id: int
    parent_id: int
    type: str


class LessonInfo(ApiModel):
    """Scheduling metadata for one lesson.

    ``time_start`` and ``time_end`` are ``HH:MM:SS`` strings. ``block`` stays
    the zero box until :func:`skolschema.lessons.enrich` attaches the
    ``Lesson`` box that references this lesson's ``guid_id``.
    """

    guid_id: str
    texts: list[str] = Field(default_factory=list)
    time_start: str
    time_end: str
    day_of_week_number: int
    block_name: str = ""
    block: BoxElement = Field(default_factory=empty_box)


class Schema(ApiModel):
    """A rendered timetable as emitted by ``/render/timetable``.

    Z-order for rendering is boxes, then texts, then lines.
    """

    text_list: list[TextElement]
    box_list: list[BoxElement]
    line_list: list[LineElement]
    lesson_info: list[LessonInfo] = Field(default_factory=list)

    @field_validator("lesson_info", mode="before")
    @classmethod
    def _null_lesson_info(cls, value: Any) -> Any:
        return [] if value is None else value


# --- Directory records ---


class School(ApiModel):
    """A school (``unit``) within a Skola24 domain."""

    unit_guid: str
    unit_id: str


class SchoolList(ApiModel):
    host_name: str = ""
    units: list[School]


class DomainInfo(ApiModel):
    """Success payload of the viewer-units listing."""

    get_timetable_viewer_units_response: SchoolList = Field(
        alias="getTimetableViewerUnitsResponse"
    )


class SchoolClass(ApiModel):
    """A class (``group``) within a school."""

    group_guid: str
    group_name: str


class ClassList(ApiModel):
    """Success payload of the selection listing, filtered to classes."""

    classes: list[SchoolClass]


# --- Dimensions ---


_DIMENSIONS_RE = re.compile(r"([0-9]+)x([0-9]+)")


class Dimensions(BaseModel):
    """Canvas size of a rendered timetable, in pixels."""

    width: int = Field(default=800, gt=0)
    height: int = Field(default=600, gt=0)

    @classmethod
    def parse(cls, value: str) -> Dimensions:
        """Parse a ``<width>x<height>`` string such as ``"800x600"``.

        Raises:
            DimensionParseError: If *value* is not two positive integers
                separated by ``x``.
        """
        match = _DIMENSIONS_RE.fullmatch(value)
        if match is None:
            raise DimensionParseError(f"Invalid dimensions specified: '{value}'")
        width, height = int(match.group(1)), int(match.group(2))
        if width <= 0 or height <= 0:
            raise DimensionParseError(f"Invalid dimensions specified: '{value}'")
        return cls(width=width, height=height)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every call against the service."""

    base_url: str = Field(
        default="https://web.skola24.se/api", description="Service base URL"
    )
    scope: str = Field(
        default="8a22163c-8662-4535-9050-bc5e1923df48",
        description="Value of the X-Scope header",
    )
    timeout: int = Field(default=30, description="Request timeout in seconds")


class CacheConfig(BaseModel):
    """Response cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable response caching")


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/skolschema/config.json``.

    Loaded and saved by :func:`~skolschema.config.load_global_config` and
    :func:`~skolschema.config.save_global_config`. See
    :func:`~skolschema.config.resolve_config` for the precedence chain.
    """

    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
