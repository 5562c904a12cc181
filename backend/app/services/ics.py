"""iCalendar (RFC 5545) import and export for calendar events.

Only the VEVENT properties the tracker stores are read; everything else in a
calendar file, including sub-components such as VALARM, is ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Iterable, Mapping

from icalendar import Calendar, Event
from icalendar.parser import Contentlines

from ..config import local_zone
from ..errors import ParseError
from ..persistence import Persistence
from ..resources import CALENDAR_EVENTS
from ..schemas import CalendarEventCreate

logger = logging.getLogger(__name__)

PRODID = "-//Life Tracker//Calendar//EN"
UID_DOMAIN = "life-tracker.app"
DEFAULT_SOURCE = "ics"

TOP_LEVEL = ("VCALENDAR", "VEVENT")


@dataclass
class CalendarEventDraft:
    title: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    all_day: bool = False
    description: str | None = None
    location: str | None = None
    external_id: str | None = None
    category: str | None = None

    @property
    def complete(self) -> bool:
        return bool(self.title) and self.start_date is not None

    def as_values(self, source_calendar: str) -> dict[str, Any]:
        end_date = self.end_date
        if end_date is not None and self.start_date is not None and end_date < self.start_date:
            logger.debug("ics event %r ends before it starts; end dropped", self.title)
            end_date = None
        event = CalendarEventCreate(
            title=self.title,
            start_date=self.start_date,
            end_date=end_date,
            all_day=self.all_day,
            description=self.description,
            location=self.location,
            external_id=self.external_id,
            category=self.category,
            source_calendar=source_calendar,
        )
        return event.model_dump()


def _text(component: Any, name: str) -> str | None:
    value = component.get(name)
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None:
        return None
    # CATEGORIES decodes to a category list rather than text
    categories = getattr(value, "cats", None)
    if categories is not None:
        return ",".join(str(c) for c in categories)
    return str(value)


def _moment(component: Any, name: str) -> tuple[datetime, bool] | None:
    """Return ``(moment, all_day)`` for a DTSTART/DTEND property, or ``None``.

    Dates become midnight of that day. Times keep their wall-clock digits with
    seconds and any zone dropped, so the result is a naive local time.
    """
    value = getattr(component.get(name), "dt", None)
    if isinstance(value, datetime):
        return value.replace(tzinfo=None, second=0, microsecond=0), False
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day), True
    return None


def _draft(component: Any) -> CalendarEventDraft:
    draft = CalendarEventDraft(
        title=_text(component, "SUMMARY"),
        description=_text(component, "DESCRIPTION"),
        location=_text(component, "LOCATION"),
        external_id=_text(component, "UID"),
        category=_text(component, "CATEGORIES"),
    )
    start = _moment(component, "DTSTART")
    if start is not None:
        draft.start_date, draft.all_day = start
    end = _moment(component, "DTEND")
    if end is not None:
        draft.end_date = end[0]
    for prop, reason in component.errors:
        logger.debug("ics %s unreadable (%s); field dropped", prop or "line", reason)
    return draft


def _check_blocks(text: str) -> None:
    depth = 0
    for line in Contentlines.from_ical(text):
        marker = line.upper()
        if marker.startswith("BEGIN:"):
            depth += 1
        elif marker.startswith("END:"):
            depth -= 1
        if depth < 0:
            raise ParseError(f"unexpected {line.strip()}")
    if depth:
        raise ParseError("unterminated component")


def parse_ics(text: str) -> list[CalendarEventDraft]:
    if not text or not text.strip():
        raise ParseError("empty calendar data")
    try:
        _check_blocks(text)
        components = Calendar.from_ical(text.strip(), multiple=True)
    except ValueError as exc:
        raise ParseError(str(exc)) from exc
    if not components or any(c.name not in TOP_LEVEL for c in components):
        raise ParseError("no VCALENDAR or VEVENT block found")

    events: list[CalendarEventDraft] = []
    for component in components:
        for vevent in component.walk("VEVENT"):
            if any(sub.name == "VEVENT" for sub in vevent.subcomponents):
                raise ParseError("nested BEGIN:VEVENT")
            draft = _draft(vevent)
            if draft.complete:
                events.append(draft)
            else:
                logger.debug("ics event %r has no title or start; dropped", draft.title)
    return events


def _utc(moment: datetime, zone: tzinfo) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=zone)
    return moment.astimezone(timezone.utc)


def generate_ics(events: Iterable[Mapping[str, Any]], zone: tzinfo | None = None) -> str:
    zone = zone or local_zone()
    calendar = Calendar()
    calendar.add("version", "2.0")
    calendar.add("prodid", PRODID)
    calendar.add("calscale", "GREGORIAN")
    calendar.add("method", "PUBLISH")
    for event in events:
        all_day = bool(event.get("all_day"))
        item = Event()
        item.add("uid", event.get("external_id") or f"life-tracker-{event['id']}@{UID_DOMAIN}")
        for name, key in (("dtstart", "start_date"), ("dtend", "end_date")):
            moment = event.get(key)
            if moment is None:
                continue
            item.add(name, moment.date() if all_day else _utc(moment, zone))
        item.add("summary", event.get("title") or "")
        for name, key in (("description", "description"), ("location", "location"), ("categories", "category")):
            if event.get(key):
                item.add(name, event[key])
        calendar.add_component(item)
    return calendar.to_ical().decode("utf-8")


def import_ics(persistence: Persistence, user_id: str, text: str, source_calendar: str | None = None) -> int:
    drafts = parse_ics(text)
    source = source_calendar or DEFAULT_SOURCE
    created = persistence.create_entries(
        CALENDAR_EVENTS, user_id, [draft.as_values(source) for draft in drafts]
    )
    logger.info("ics import user=%s source=%s imported=%d", user_id, source, len(created))
    return len(created)


def export_ics(persistence: Persistence, user_id: str) -> str:
    events = sorted(persistence.list_entries(CALENDAR_EVENTS, user_id), key=lambda e: e["start_date"])
    return generate_ics(events)
