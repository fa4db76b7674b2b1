"""Domain queries against the Skola24 timetable service.

:class:`TimetableService` resolves schools, classes and rendered timetables.
Each query derives its own cache key:

* schools -- ``<UTC date YYYYMMDD><domain>``
* classes -- ``<UTC date YYYYMMDD><domain><unit guid>``
* schema  -- ``<host><unit guid><selection><week><day of week>``

The school and class directories change at most daily, so their keys rotate
with the UTC date. Timetable schemas are addressed by explicit week and day
and stay cached until the cache is cleared.

Every listing is unwrapped through :func:`skolschema.envelope.parse_response`
before it is scanned; scans keep the order received from the service.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional

from skolschema.client.fetcher import CachedFetcher
from skolschema.envelope import parse_response
from skolschema.exceptions import ApiError
from skolschema.lessons import MatchPolicy, enrich
from skolschema.models import (
    ClassList,
    Dimensions,
    DomainInfo,
    LessonInfo,
    Schema,
    School,
    SchoolClass,
)

SCHOOLS_PATH = "/services/skola24/get/timetable/viewer/units"
CLASSES_PATH = "/get/timetable/selection"
SCHEMA_PATH = "/render/timetable"

DOMAIN_NOT_FOUND_ID = 1
"""Validation error id the schools listing reports for an unknown domain."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def schools_cache_key(domain: str, now: datetime) -> str:
    return now.strftime("%Y%m%d") + domain


def classes_cache_key(domain: str, unit_guid: str, now: datetime) -> str:
    return now.strftime("%Y%m%d") + domain + unit_guid


def schema_cache_key(
    host: str, unit_guid: str, selection: str, week: int, day_of_week: int
) -> str:
    return host + unit_guid + selection + str(week) + str(day_of_week)


class TimetableService:
    """Typed queries over a :class:`~skolschema.client.fetcher.CachedFetcher`.

    Args:
        fetcher: The cache-aware fetcher used for every call.
        clock: Returns the current time. Used for date-rotated cache keys
            (converted to UTC) and for the ``year`` of schema requests
            (local time).
    """

    def __init__(
        self,
        fetcher: CachedFetcher,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._fetcher = fetcher
        self._clock = clock

    def _utc_today(self) -> datetime:
        return self._clock().astimezone(timezone.utc)

    # ------------------------------------------------------------------ #
    # Directory listings
    # ------------------------------------------------------------------ #

    async def get_schools(self, domain: str, should_cache: bool = True) -> list[School]:
        """List the schools of *domain* in upstream order.

        Raises:
            ApiError: If the service rejects the domain (``id == 1`` means
                it does not exist; see :meth:`domain_exists`).
        """
        body = {"getTimetableViewerUnitsRequest": {"hostName": domain}}
        raw = await self._fetcher.fetch(
            schools_cache_key(domain, self._utc_today()),
            body,
            SCHOOLS_PATH,
            use_post=True,
            should_cache=should_cache,
        )
        envelope = parse_response(raw, DomainInfo)
        return envelope.data.get_timetable_viewer_units_response.units

    async def get_classes(
        self, domain: str, unit_guid: str, should_cache: bool = True
    ) -> list[SchoolClass]:
        """List the classes of a school in upstream order."""
        body = {
            "hostName": domain,
            "unitGuid": unit_guid,
            "filters": {"class": True},
        }
        raw = await self._fetcher.fetch(
            classes_cache_key(domain, unit_guid, self._utc_today()),
            body,
            CLASSES_PATH,
            use_post=False,
            should_cache=should_cache,
        )
        envelope = parse_response(raw, ClassList)
        return envelope.data.classes

    # ------------------------------------------------------------------ #
    # Timetables
    # ------------------------------------------------------------------ #

    async def get_schema(
        self,
        host: str,
        unit_guid: str,
        selection: str,
        day_of_week: int,
        week: int,
        dimensions: Optional[Dimensions] = None,
        should_cache: bool = True,
    ) -> Schema:
        """Fetch the rendered timetable of one selection (class guid).

        Args:
            host: The Skola24 domain.
            unit_guid: The school's guid.
            selection: The class guid.
            day_of_week: ``1`` (Monday) to ``7``; ``0`` selects the whole week.
            week: ISO week number.
            dimensions: Canvas size the service lays the schema out for.
                Defaults to 800x600.
            should_cache: Read and write the cache for this call.
        """
        dimensions = dimensions or Dimensions()
        body: dict[str, Any] = {
            "host": host,
            "unitGuid": unit_guid,
            "scheduleDay": day_of_week,
            "blackAndWhite": False,
            "width": dimensions.width,
            "height": dimensions.height,
            "selectionType": 0,
            "selection": selection,
            "showHeader": False,
            "periodText": "",
            "week": week,
            "year": self._clock().astimezone().year,
            "privateSelectionMode": False,
            "customerKey": "",
        }
        raw = await self._fetcher.fetch(
            schema_cache_key(host, unit_guid, selection, week, day_of_week),
            body,
            SCHEMA_PATH,
            use_post=False,
            should_cache=should_cache,
        )
        return parse_response(raw, Schema).data

    async def get_lesson_info(
        self,
        host: str,
        unit_guid: str,
        selection: str,
        day_of_week: int,
        week: int,
        should_cache: bool = True,
        policy: MatchPolicy = MatchPolicy.LAST,
    ) -> list[LessonInfo]:
        """Fetch a schema and return its lessons with their boxes attached."""
        schema = await self.get_schema(
            host, unit_guid, selection, day_of_week, week, should_cache=should_cache
        )
        return enrich(schema, policy)

    # ------------------------------------------------------------------ #
    # Name resolution
    # ------------------------------------------------------------------ #

    async def get_school_guid(self, domain: str, name: str, should_cache: bool = True) -> str:
        """Return the guid of the school whose unit id is *name*, or ``""``."""
        for school in await self.get_schools(domain, should_cache):
            if school.unit_id == name:
                return school.unit_guid
        return ""

    async def get_class_guid(
        self, domain: str, unit_guid: str, name: str, should_cache: bool = True
    ) -> str:
        """Return the guid of the class named *name*, or ``""``."""
        for school_class in await self.get_classes(domain, unit_guid, should_cache):
            if school_class.group_name == name:
                return school_class.group_guid
        return ""

    # ------------------------------------------------------------------ #
    # Existence checks
    # ------------------------------------------------------------------ #

    async def domain_exists(self, domain: str, should_cache: bool = True) -> bool:
        """Check whether *domain* is a known Skola24 host.

        Only a failure carrying exactly one validation error with id ``1``
        means "no such domain". Every other failure is re-raised.
        """
        try:
            await self.get_schools(domain, should_cache)
        except ApiError as exc:
            errors = exc.validation_errors
            if len(errors) == 1 and errors[0].id == DOMAIN_NOT_FOUND_ID:
                return False
            raise
        return True

    async def school_exists(self, domain: str, school: str, should_cache: bool = True) -> bool:
        return any(s.unit_id == school for s in await self.get_schools(domain, should_cache))

    async def class_exists(
        self, domain: str, school: str, class_name: str, should_cache: bool = True
    ) -> bool:
        unit_guid = await self.get_school_guid(domain, school, should_cache)
        classes = await self.get_classes(domain, unit_guid, should_cache)
        return any(c.group_name == class_name for c in classes)
