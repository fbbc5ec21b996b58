"""
Evolution Data Server calendar store.

Event ids handed out by this store are "<calendar uid>::<event uid>" so a
single id is enough to find the event again.
"""

import logging
import uuid
from datetime import datetime
from datetime import timezone
from typing import Optional

import gi

gi.require_version("EDataServer", "1.2")
gi.require_version("ECal", "2.0")
gi.require_version("ICalGLib", "3.0")
from gi.repository import ECal
from gi.repository import EDataServer
from gi.repository import GLib
from gi.repository import ICalGLib

from liturgical_time.models import CalendarEvent
from liturgical_time.models import CalendarInfo
from liturgical_time.models import CalendarStoreError
from liturgical_time.models import EventDetails
from liturgical_time.models import EventNotFoundError

logger = logging.getLogger(__name__)

ID_SEPARATOR = "::"

# E_CAL_CLIENT_ERROR_OBJECT_NOT_FOUND = 1  (from e-cal-client-error-quark)
_EDS_NOT_FOUND_CODE = 1
_EDS_CLIENT_ERROR_DOMAIN = "e-cal-client-error-quark"


def is_not_found_error(e: Exception) -> bool:
    """Return True when EDS reports that a calendar object does not exist."""
    if isinstance(e, GLib.Error):
        domain = e.domain or ""
        if e.code == _EDS_NOT_FOUND_CODE and _EDS_CLIENT_ERROR_DOMAIN in domain:
            return True
    return "object not found" in str(e).lower()


def split_event_id(event_id: str) -> tuple[str, str]:
    calendar_uid, sep, event_uid = event_id.partition(ID_SEPARATOR)
    if not sep or not calendar_uid or not event_uid:
        raise EventNotFoundError(f"Malformed event id: {event_id!r}")
    return calendar_uid, event_uid


def _ical_escape(text: str) -> str:
    return (
        text.replace("\\", "\\\\").replace(";", "\\;").replace(",", "\\,").replace("\n", "\\n")
    )


def _ical_time(value: datetime) -> str:
    # Floating local time: the meeting's wall-clock time in the parish.
    return value.strftime("%Y%m%dT%H%M%S")


def build_vevent(event_uid: str, details: EventDetails) -> ICalGLib.Component:
    """Build a VEVENT component for the given details."""
    lines = [
        "BEGIN:VEVENT",
        f"UID:{event_uid}",
        f"DTSTAMP:{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}",
        f"DTSTART:{_ical_time(details.start)}",
        f"DTEND:{_ical_time(details.end)}",
        f"SUMMARY:{_ical_escape(details.title)}",
    ]
    if details.location:
        lines.append(f"LOCATION:{_ical_escape(details.location)}")
    if details.notes:
        lines.append(f"DESCRIPTION:{_ical_escape(details.notes)}")
    lines.append("END:VEVENT")
    return ICalGLib.Component.new_from_string("\r\n".join(lines) + "\r\n")


def _query_time(value: datetime) -> str:
    # EDS compares time ranges in UTC; naive values are local wall-clock time.
    return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _to_datetime(t: ICalGLib.Time) -> datetime:
    # Meetings are kept in the local wall clock, so zoned times are converted.
    if t.is_utc():
        return datetime.fromtimestamp(t.as_timet())
    if t.is_date():
        return datetime(t.get_year(), t.get_month(), t.get_day())
    zone = t.get_timezone()
    if zone is not None:
        return datetime.fromtimestamp(t.as_timet_with_zone(zone))
    return datetime(t.get_year(), t.get_month(), t.get_day(), t.get_hour(), t.get_minute())


def _parse_component(obj) -> ICalGLib.Component:
    """Handle both string and native Component objects from EDS API."""
    comp = ICalGLib.Component.new_from_string(obj) if isinstance(obj, str) else obj
    if comp.isa() == ICalGLib.ComponentKind.VCALENDAR_COMPONENT:
        comp = comp.get_first_component(ICalGLib.ComponentKind.VEVENT_COMPONENT)
    return comp


def component_to_event(
    comp: ICalGLib.Component, calendar_uid: str, calendar_title: str | None = None
) -> Optional[CalendarEvent]:
    """Convert a VEVENT into a CalendarEvent; None when it has no usable start."""
    dtstart = comp.get_dtstart()
    if dtstart is None or dtstart.is_null_time():
        return None
    start = _to_datetime(dtstart)
    dtend = comp.get_dtend()
    end = _to_datetime(dtend) if dtend is not None and not dtend.is_null_time() else start
    return CalendarEvent(
        id=f"{calendar_uid}{ID_SEPARATOR}{comp.get_uid()}",
        calendar_id=calendar_uid,
        title=comp.get_summary() or "",
        start=start,
        end=end,
        location=comp.get_location() or None,
        notes=comp.get_description() or None,
        calendar_title=calendar_title,
    )


class EDSCalendarStore:
    """Calendar store backed by Evolution Data Server."""

    def __init__(self, registry: EDataServer.SourceRegistry | None = None, timeout: int = 10):
        self.registry = registry
        self.timeout = timeout
        self._clients: dict[str, ECal.Client] = {}

    def _registry(self) -> EDataServer.SourceRegistry:
        if self.registry is None:
            try:
                self.registry = EDataServer.SourceRegistry.new_sync(None)
            except GLib.Error as e:
                raise CalendarStoreError(f"EDS registry unreachable: {e.message}") from e
        return self.registry

    def _client(self, calendar_uid: str) -> ECal.Client:
        """Connect to the specified calendar in EDS, reusing open clients."""
        client = self._clients.get(calendar_uid)
        if client is not None:
            return client

        source = self._registry().ref_source(calendar_uid)
        if not source:
            raise CalendarStoreError(f"Calendar with UID '{calendar_uid}' not found in EDS")
        try:
            client = ECal.Client.connect_sync(
                source, ECal.ClientSourceType.EVENTS, self.timeout, None
            )
        except GLib.Error as e:
            raise CalendarStoreError(
                f"Failed to connect to calendar {calendar_uid}: {e.message}"
            ) from e
        self._clients[calendar_uid] = client
        return client

    def _get_component(self, calendar_uid: str, event_uid: str) -> Optional[ICalGLib.Component]:
        try:
            success, icalcomp = self._client(calendar_uid).get_object_sync(event_uid, None, None)
        except GLib.Error as e:
            if is_not_found_error(e):
                return None
            raise CalendarStoreError(f"Failed to fetch event {event_uid}: {e.message}") from e
        if not success or not icalcomp:
            return None
        return _parse_component(icalcomp)

    # ------------------------------------------------------------------ #
    # Calendar store interface                                             #
    # ------------------------------------------------------------------ #

    def permission_status(self) -> str:
        """EDS has no permission prompt: reachable means granted."""
        try:
            self._registry()
        except CalendarStoreError as e:
            logger.warning(f"Calendar access unavailable: {e}")
            return "denied"
        return "granted"

    def list_calendars(self) -> list[CalendarInfo]:
        sources = self._registry().list_sources(EDataServer.SOURCE_EXTENSION_CALENDAR)
        return [
            CalendarInfo(id=source.get_uid(), title=source.get_display_name() or "")
            for source in sources
        ]

    def create_calendar(self, title: str) -> str:
        """Create a local (on-this-computer) calendar and return its UID."""
        registry = self._registry()
        try:
            source = EDataServer.Source.new(None, None)
            source.set_parent("local-stub")
            source.set_display_name(title)
            extension = source.get_extension(EDataServer.SOURCE_EXTENSION_CALENDAR)
            extension.set_backend_name("local")
            registry.commit_source_sync(source, None)
        except GLib.Error as e:
            raise CalendarStoreError(f"Failed to create calendar {title!r}: {e.message}") from e
        logger.debug(f"Created EDS calendar {title!r}: {source.get_uid()}")
        return source.get_uid()

    def create_event(self, calendar_id: str, details: EventDetails) -> str:
        client = self._client(calendar_id)
        component = build_vevent(str(uuid.uuid4()), details)
        try:
            success, out_uid = client.create_object_sync(
                component, ECal.OperationFlags.NONE, None
            )
        except GLib.Error as e:
            raise CalendarStoreError(f"Failed to create event: {e.message}") from e
        if not success:
            raise CalendarStoreError("Failed to create event")
        return f"{calendar_id}{ID_SEPARATOR}{out_uid or component.get_uid()}"

    def update_event(self, event_id: str, details: EventDetails):
        """Rewrite an existing event; raises EventNotFoundError if it is gone."""
        calendar_uid, event_uid = split_event_id(event_id)
        if self._get_component(calendar_uid, event_uid) is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        try:
            success = self._client(calendar_uid).modify_object_sync(
                build_vevent(event_uid, details),
                ECal.ObjModType.THIS,
                ECal.OperationFlags.NONE,
                None,
            )
        except GLib.Error as e:
            if is_not_found_error(e):
                raise EventNotFoundError(f"Event {event_id} not found") from e
            raise CalendarStoreError(f"Failed to modify event {event_id}: {e.message}") from e
        if not success:
            raise CalendarStoreError(f"Failed to modify event {event_id}")

    def delete_event(self, event_id: str):
        """Remove an event; an event that is already gone is not an error."""
        calendar_uid, event_uid = split_event_id(event_id)
        try:
            self._client(calendar_uid).remove_object_sync(
                event_uid,
                None,  # rid (recurrence-id)
                ECal.ObjModType.THIS,
                ECal.OperationFlags.NONE,
                None,  # cancellable
            )
        except GLib.Error as e:
            if is_not_found_error(e):
                logger.debug(f"Event {event_id} already removed")
                return
            raise CalendarStoreError(f"Failed to remove event {event_id}: {e.message}") from e

    def list_events(
        self, calendar_ids: list[str], start: datetime, end: datetime
    ) -> list[CalendarEvent]:
        titles = {info.id: info.title for info in self.list_calendars()}
        sexp = (
            f'(occur-in-time-range? (make-time "{_query_time(start)}") '
            f'(make-time "{_query_time(end)}"))'
        )
        events = []
        for calendar_uid in calendar_ids:
            try:
                _, objects = self._client(calendar_uid).get_object_list_sync(sexp, None)
            except GLib.Error as e:
                raise CalendarStoreError(
                    f"Failed to fetch events from {calendar_uid}: {e.message}"
                ) from e
            for obj in objects:
                comp = _parse_component(obj)
                if comp is None:
                    continue
                # Detached recurrence instances share the master's UID.
                if comp.get_first_property(ICalGLib.PropertyKind.RECURRENCEID_PROPERTY):
                    continue
                event = component_to_event(comp, calendar_uid, titles.get(calendar_uid))
                if event is not None:
                    events.append(event)
        return events

    def get_event(self, event_id: str) -> Optional[CalendarEvent]:
        try:
            calendar_uid, event_uid = split_event_id(event_id)
        except EventNotFoundError:
            return None
        if calendar_uid not in self._clients and not self._registry().ref_source(calendar_uid):
            logger.debug(f"Calendar {calendar_uid} no longer exists")
            return None
        comp = self._get_component(calendar_uid, event_uid)
        if comp is None:
            return None
        return component_to_event(comp, calendar_uid)
