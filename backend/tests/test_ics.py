from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.errors import ParseError
from app.persistence import InMemoryPersistence
from app.resources import CALENDAR_EVENTS
from app.services.ics import generate_ics, import_ics, parse_ics
from app.store import InMemoryStore

GYM = "BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\nSUMMARY:Gym\r\nDTSTART:20240315T100000\r\nEND:VEVENT\r\nEND:VCALENDAR"


def wrap(*events: str) -> str:
    body = "".join(f"BEGIN:VEVENT\n{event}\nEND:VEVENT\n" for event in events)
    return f"BEGIN:VCALENDAR\nVERSION:2.0\n{body}END:VCALENDAR\n"


def test_parse_single_timed_event() -> None:
    events = parse_ics(GYM)
    assert len(events) == 1
    event = events[0]
    assert event.title == "Gym"
    assert event.start_date == datetime(2024, 3, 15, 10, 0)
    assert event.all_day is False
    assert event.end_date is None


def test_parse_all_fields() -> None:
    text = wrap(
        "\n".join(
            [
                "UID:abc-123@example.com",
                "SUMMARY:Team sync\\, weekly",
                "DESCRIPTION:Line one\\nLine two",
                "LOCATION:Room 4\\; floor 2",
                "CATEGORIES:work",
                "DTSTART;TZID=Europe/Prague:20240401T093000",
                "DTEND;TZID=Europe/Prague:20240401T103000",
            ]
        )
    )
    (event,) = parse_ics(text)
    assert event.external_id == "abc-123@example.com"
    assert event.title == "Team sync, weekly"
    assert event.description == "Line one\nLine two"
    assert event.location == "Room 4; floor 2"
    assert event.category == "work"
    assert event.start_date == datetime(2024, 4, 1, 9, 30)
    assert event.end_date == datetime(2024, 4, 1, 10, 30)


def test_all_day_by_length_or_value_param() -> None:
    bare, flagged = parse_ics(
        wrap("SUMMARY:Birthday\nDTSTART:20240315", "SUMMARY:Trip\nDTSTART;VALUE=DATE:20240320\nDTEND;VALUE=DATE:20240322")
    )
    assert bare.all_day is True
    assert bare.start_date == datetime(2024, 3, 15)
    assert flagged.all_day is True
    assert flagged.start_date == datetime(2024, 3, 20)
    assert flagged.end_date == datetime(2024, 3, 22)


def test_seconds_and_utc_marker_are_ignored() -> None:
    (event,) = parse_ics(wrap("SUMMARY:Run\nDTSTART:20240315T101559Z\nDTEND:20240315T111500Z"))
    assert event.start_date == datetime(2024, 3, 15, 10, 15)
    assert event.end_date == datetime(2024, 3, 15, 11, 15)
    assert event.all_day is False


def test_alarm_text_does_not_leak_into_event() -> None:
    text = wrap(
        "SUMMARY:Workout\nDTSTART:20240315T070000\nDESCRIPTION:Leg day\n"
        "BEGIN:VALARM\nACTION:DISPLAY\nDESCRIPTION:This is an event reminder\nTRIGGER:-P0DT0H10M0S\nEND:VALARM"
    )
    (event,) = parse_ics(text)
    assert event.title == "Workout"
    assert event.description == "Leg day"


def test_folded_lines_are_unfolded() -> None:
    text = (
        "BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\n"
        "SUMMARY:Quarterly planning with the\r\n  whole team\r\n"
        "DESCRIPTION:Agenda: budget\\, hiring \r\n\tand roadmap\r\n"
        "DTSTART:20240402T090000\r\nEND:VEVENT\r\nEND:VCALENDAR\r\n"
    )
    (event,) = parse_ics(text)
    assert event.title == "Quarterly planning with the whole team"
    assert event.description == "Agenda: budget, hiring and roadmap"


def test_long_text_survives_export_and_import() -> None:
    title = " ".join(["Regional championship weigh-in, rules meeting and bracket draw"] * 2)
    text = generate_ics(
        [{"id": uuid4(), "title": title, "start_date": datetime(2024, 6, 1, 8, 0), "all_day": False}],
        zone=timezone.utc,
    )
    assert all(len(line.encode("utf-8")) <= 75 for line in text.split("\r\n"))
    assert parse_ics(text)[0].title == title


def test_incomplete_events_are_dropped() -> None:
    events = parse_ics(
        wrap(
            "SUMMARY:No start",
            "DTSTART:20240315T100000",
            "SUMMARY:Bad start\nDTSTART:notadate",
            "SUMMARY:Kept\nDTSTART:20240316T080000",
        )
    )
    assert [e.title for e in events] == ["Kept"]


def test_empty_calendar_yields_no_events() -> None:
    assert parse_ics("BEGIN:VCALENDAR\nVERSION:2.0\nEND:VCALENDAR") == []


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   \n  ",
        "hello world",
        "BEGIN:VCALENDAR\nBEGIN:VEVENT\nSUMMARY:A\nBEGIN:VEVENT\nSUMMARY:B\nEND:VEVENT\nEND:VCALENDAR",
        "BEGIN:VCALENDAR\nBEGIN:VEVENT\nSUMMARY:A\nDTSTART:20240315T100000\nEND:VCALENDAR",
        "BEGIN:VCALENDAR\nEND:VEVENT\nEND:VCALENDAR",
        "BEGIN:VTODO\nSUMMARY:Laundry\nEND:VTODO",
    ],
)
def test_malformed_input_raises_parse_error(text: str) -> None:
    with pytest.raises(ParseError) as exc:
        parse_ics(text)
    assert exc.value.message == "failed to parse ICS data"


def test_text_escaping_is_symmetric() -> None:
    raw = "a,b;c\\d\nnext"
    text = generate_ics(
        [{"id": uuid4(), "title": "Notes", "description": raw, "start_date": datetime(2024, 3, 15, 10, 0)}],
        zone=timezone.utc,
    )
    assert "DESCRIPTION:a\\,b\\;c\\\\d\\nnext\r\n" in text
    assert parse_ics(text)[0].description == raw


def test_generate_calendar_layout() -> None:
    event_id = uuid4()
    text = generate_ics(
        [
            {
                "id": event_id,
                "title": "Gym",
                "start_date": datetime(2024, 3, 15, 10, 0),
                "end_date": None,
                "all_day": False,
            }
        ],
        zone=timezone.utc,
    )
    lines = text.split("\r\n")
    assert lines[:5] == [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Life Tracker//Calendar//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    assert f"UID:life-tracker-{event_id}@life-tracker.app" in lines
    assert "DTSTART:20240315T100000Z" in lines
    assert "SUMMARY:Gym" in lines
    assert not any(line.startswith(("DTEND", "DESCRIPTION", "LOCATION", "CATEGORIES")) for line in lines)
    assert text.endswith("END:VEVENT\r\nEND:VCALENDAR\r\n")
    assert "\n" not in text.replace("\r\n", "")


def test_generate_converts_local_time_to_utc() -> None:
    plus_two = timezone(timedelta(hours=2))
    text = generate_ics(
        [
            {
                "id": uuid4(),
                "external_id": "keep-me",
                "title": "Call",
                "start_date": datetime(2024, 3, 15, 10, 0),
                "end_date": datetime(2024, 3, 15, 11, 0),
                "all_day": False,
            }
        ],
        zone=plus_two,
    )
    assert "UID:keep-me" in text
    assert "DTSTART:20240315T080000Z" in text
    assert "DTEND:20240315T090000Z" in text


def test_generate_all_day_keeps_the_date() -> None:
    text = generate_ics(
        [
            {
                "id": uuid4(),
                "title": "Holiday",
                "start_date": datetime(2024, 12, 24),
                "end_date": datetime(2024, 12, 26),
                "all_day": True,
            }
        ],
        zone=timezone(timedelta(hours=-10)),
    )
    assert "DTSTART;VALUE=DATE:20241224" in text
    assert "DTEND;VALUE=DATE:20241226" in text


def test_round_trip_preserves_event_fields() -> None:
    source = wrap(
        "UID:one\nSUMMARY:Sparring\nDTSTART:20240310T180000Z\nDTEND:20240310T193000Z\n"
        "LOCATION:Main gym\nDESCRIPTION:Bring gloves\\nand wraps\nCATEGORIES:training",
        "UID:two\nSUMMARY:Rest day\nDTSTART;VALUE=DATE:20240311",
    )
    first = parse_ics(source)
    rows = [{"id": uuid4(), **vars(draft)} for draft in first]
    second = parse_ics(generate_ics(rows, zone=timezone.utc))
    assert second == first


def test_import_is_atomic_and_tags_source() -> None:
    persistence = InMemoryPersistence(InMemoryStore())
    user = "ics-user"

    assert import_ics(persistence, user, GYM) == 1
    assert import_ics(persistence, user, wrap("SUMMARY:Work\nDTSTART:20240318T090000"), "work") == 1
    with pytest.raises(ParseError):
        import_ics(persistence, user, wrap("SUMMARY:Lost\nDTSTART:20240319T090000") + "BEGIN:VEVENT\nSUMMARY:open")

    stored = persistence.list_entries(CALENDAR_EVENTS, user)
    assert sorted((e["title"], e["source_calendar"]) for e in stored) == [("Gym", "ics"), ("Work", "work")]
    assert all(e["color"] == "#D4AF37" for e in stored)
