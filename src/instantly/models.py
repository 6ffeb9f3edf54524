"""
Request and response shapes for the Instantly API.

Each dataclass mirrors one wire shape (snake_case keys). ``from_wire``
builds an instance from decoded JSON, ``to_wire`` produces the JSON-ready
mapping. The only logic here is value conversion: dates, times of day,
weekday keys, timezones and RFC 3339 timestamps.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Mapping, Optional, Union

from .exceptions import DecodeError

WIRE_DATE_FMT = "%Y-%m-%d"
ANALYTICS_DATE_FMT = "%m-%d-%Y"
WIRE_TIME_FMT = "%H:%M"

# Fractional seconds of any length; fromisoformat before 3.11 wants 3 or 6 digits
_FRACTION_RE = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


class Weekday(IntEnum):
    """Day keys as the platform numbers them (Sunday first)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def from_date(cls, day: dt.date) -> Weekday:
        # date.weekday() is Monday=0
        return cls((day.weekday() + 1) % 7)


class LeadStatus(str, Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    UNSUBSCRIBED = "Unsubscribed"
    INTERESTED = "Interested"
    MEETING_BOOKED = "Meeting Booked"
    MEETING_COMPLETED = "Meeting Completed"
    CLOSED = "Closed"
    OUT_OF_OFFICE = "Out of Office"
    NOT_INTERESTED = "Not Interested"
    WRONG_PERSON = "Wrong Person"


# ----------------------------------------------------------------------
# Value conversion
# ----------------------------------------------------------------------
def format_date(value: dt.date, fmt: str = WIRE_DATE_FMT) -> str:
    return value.strftime(fmt)


def format_time_of_day(value: Union[dt.time, dt.datetime]) -> str:
    return value.strftime(WIRE_TIME_FMT)


def weekday_key(day: Union[Weekday, int]) -> str:
    return str(int(Weekday(day)))


def timezone_name(tz: Union[dt.tzinfo, str]) -> str:
    """IANA name for ``tz``; accepts a ``zoneinfo.ZoneInfo`` or a plain name."""
    if isinstance(tz, str):
        return tz
    key = getattr(tz, "key", None)
    if key:
        return key
    name = tz.tzname(None)
    if not name:
        raise ValueError(f"cannot determine a timezone name for {tz!r}")
    return name


def parse_timestamp(value: Optional[str]) -> Optional[dt.datetime]:
    """Parse an RFC 3339 timestamp (``Z`` suffix allowed)."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise DecodeError(f"expected a timestamp string, got {value!r}")
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    text = _FRACTION_RE.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1)
    try:
        return dt.datetime.fromisoformat(text)
    except ValueError as e:
        raise DecodeError(f"failed to parse timestamp {value!r}: {e}") from e


# ----------------------------------------------------------------------
# Campaigns
# ----------------------------------------------------------------------
@dataclass
class Campaign:
    id: str
    name: str

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Campaign:
        data = _as_mapping(data, "Campaign")
        return cls(id=data.get("id", ""), name=data.get("name", ""))


@dataclass
class CampaignSummary:
    campaign_id: str = ""
    campaign_name: str = ""
    total_leads: int = 0
    contacted: int = 0
    leads_who_read: int = 0
    leads_who_replied: int = 0
    bounced: int = 0
    unsubscribed: int = 0
    completed: int = 0

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> CampaignSummary:
        data = _as_mapping(data, "CampaignSummary")
        return cls(
            campaign_id=data.get("campaign_id", ""),
            campaign_name=data.get("campaign_name", ""),
            total_leads=_as_int(data.get("total_leads")),
            contacted=_as_int(data.get("contacted")),
            leads_who_read=_as_int(data.get("leads_who_read")),
            leads_who_replied=_as_int(data.get("leads_who_replied")),
            # These two arrive as strings
            bounced=_as_int(data.get("bounced")),
            unsubscribed=_as_int(data.get("unsubscribed")),
            completed=_as_int(data.get("completed")),
        )


@dataclass
class CampaignCount:
    campaign_id: str = ""
    campaign_name: str = ""
    total_emails_sent: int = 0
    emails_read: int = 0
    new_leads_contacted: int = 0
    leads_replied: int = 0
    leads_read: int = 0

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> CampaignCount:
        data = _as_mapping(data, "CampaignCount")
        return cls(
            campaign_id=data.get("campaign_id", ""),
            campaign_name=data.get("campaign_name", ""),
            total_emails_sent=_as_int(data.get("total_emails_sent")),
            emails_read=_as_int(data.get("emails_read")),
            new_leads_contacted=_as_int(data.get("new_leads_contacted")),
            leads_replied=_as_int(data.get("leads_replied")),
            leads_read=_as_int(data.get("leads_read")),
        )


@dataclass
class Timing:
    start: dt.time
    end: dt.time

    def to_wire(self) -> Dict[str, str]:
        return {"from": format_time_of_day(self.start), "to": format_time_of_day(self.end)}


@dataclass
class CampaignSchedule:
    """One sending window: which days, in which timezone, between which times."""

    name: str
    days: Mapping[Union[Weekday, int], bool]
    timezone: Union[dt.tzinfo, str]
    timing: Timing

    def to_wire(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "days": {weekday_key(day): bool(on) for day, on in self.days.items()},
            "timezone": timezone_name(self.timezone),
            "timing": self.timing.to_wire(),
        }


def schedule_payload(
    campaign_id: str,
    start_date: dt.date,
    schedules: List[CampaignSchedule],
    end_date: Optional[dt.date] = None,
) -> Dict[str, Any]:
    """Body for ``campaign/set/schedules``; ``end_date`` is omitted when unset."""
    payload: Dict[str, Any] = {
        "campaign_id": campaign_id,
        "start_date": format_date(start_date),
    }
    if end_date is not None:
        payload["end_date"] = format_date(end_date)
    payload["schedules"] = [s.to_wire() for s in schedules]
    return payload


# ----------------------------------------------------------------------
# Leads
# ----------------------------------------------------------------------
@dataclass
class Lead:
    email: str
    first_name: str = ""
    last_name: str = ""
    company_name: str = ""
    personalization: str = ""
    phone: str = ""
    website: str = ""
    custom_variables: Dict[str, str] = field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"email": self.email}
        for key in (
            "first_name",
            "last_name",
            "company_name",
            "personalization",
            "phone",
            "website",
        ):
            value = getattr(self, key)
            if value:
                out[key] = value
        if self.custom_variables:
            out["custom_variables"] = dict(self.custom_variables)
        return out


@dataclass
class LeadDetails:
    id: str = ""
    timestamp_created: Optional[dt.datetime] = None
    campaign: str = ""
    status: int = 0
    contact: str = ""
    email_opened: bool = False
    email_replied: bool = False
    lead_data: Dict[str, Any] = field(default_factory=dict)
    campaign_name: str = ""

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> LeadDetails:
        data = _as_mapping(data, "LeadDetails")
        return cls(
            id=data.get("id", ""),
            timestamp_created=parse_timestamp(data.get("timestamp_created")),
            campaign=data.get("campaign", ""),
            status=_as_int(data.get("status")),
            contact=data.get("contact", ""),
            email_opened=bool(data.get("email_opened", False)),
            email_replied=bool(data.get("email_replied", False)),
            lead_data=dict(_as_mapping(data.get("lead_data"), "lead_data", optional=True)),
            campaign_name=data.get("campaign_name", ""),
        )


@dataclass
class AddLeadsResult:
    status: str = ""
    total_sent: int = 0
    leads_uploaded: int = 0
    already_in_campaign: int = 0
    invalid_email_count: int = 0
    duplicate_email_count: int = 0
    remaining_in_plan: int = 0

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> AddLeadsResult:
        data = _as_mapping(data, "AddLeadsResult")
        return cls(
            status=data.get("status", ""),
            total_sent=_as_int(data.get("total_sent")),
            leads_uploaded=_as_int(data.get("leads_uploaded")),
            already_in_campaign=_as_int(data.get("already_in_campaign")),
            invalid_email_count=_as_int(data.get("invalid_email_count")),
            duplicate_email_count=_as_int(data.get("duplicate_email_count")),
            remaining_in_plan=_as_int(data.get("remaining_in_plan")),
        )


# ----------------------------------------------------------------------
# Blocklist
# ----------------------------------------------------------------------
@dataclass
class BlocklistResult:
    status: str = ""
    entries_added: int = 0
    already_in_blocklist: int = 0
    blocklist_id: str = ""

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> BlocklistResult:
        data = _as_mapping(data, "BlocklistResult")
        return cls(
            status=data.get("status", ""),
            entries_added=_as_int(data.get("entries_added")),
            already_in_blocklist=_as_int(data.get("already_in_blocklist")),
            blocklist_id=data.get("blocklist_id", ""),
        )


# ----------------------------------------------------------------------
# Accounts
# ----------------------------------------------------------------------
@dataclass
class WarmupAdvanced:
    warm_ctd: bool = False
    open_rate: int = 0
    weekday_only: bool = False
    important_rate: int = 0
    read_emulation: bool = False
    spam_save_rate: int = 0
    random_range_min: int = 0
    random_range_max: int = 0

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> WarmupAdvanced:
        data = _as_mapping(data, "WarmupAdvanced")
        return cls(
            warm_ctd=bool(data.get("warm_ctd", False)),
            open_rate=_as_int(data.get("open_rate")),
            weekday_only=bool(data.get("weekday_only", False)),
            important_rate=_as_int(data.get("important_rate")),
            read_emulation=bool(data.get("read_emulation", False)),
            spam_save_rate=_as_int(data.get("spam_save_rate")),
            random_range_min=_as_int(data.get("random_range_min")),
            random_range_max=_as_int(data.get("random_range_max")),
        )


@dataclass
class Warmup:
    limit: int = 0
    advanced: WarmupAdvanced = field(default_factory=WarmupAdvanced)
    increment: int = 0
    reply_rate: int = 0

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Warmup:
        data = _as_mapping(data, "Warmup")
        return cls(
            limit=_as_int(data.get("limit")),
            advanced=WarmupAdvanced.from_wire(_as_mapping(data.get("advanced"), "advanced", optional=True)),
            increment=_as_int(data.get("increment")),
            reply_rate=_as_int(data.get("reply_rate")),
        )


@dataclass
class AccountPayload:
    first_name: str = ""
    last_name: str = ""
    warmup: Warmup = field(default_factory=Warmup)
    imap_host: str = ""
    imap_port: int = 0
    smtp_host: str = ""
    smtp_port: int = 0
    daily_limit: int = 0
    sending_gap: int = 0

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> AccountPayload:
        data = _as_mapping(data, "AccountPayload")
        name = _as_mapping(data.get("name"), "name", optional=True)
        return cls(
            first_name=name.get("first", ""),
            last_name=name.get("last", ""),
            warmup=Warmup.from_wire(_as_mapping(data.get("warmup"), "warmup", optional=True)),
            imap_host=data.get("imap_host", ""),
            imap_port=_as_int(data.get("imap_port")),
            smtp_host=data.get("smtp_host", ""),
            smtp_port=_as_int(data.get("smtp_port")),
            daily_limit=_as_int(data.get("daily_limit")),
            sending_gap=_as_int(data.get("sending_gap")),
        )


@dataclass
class Account:
    email: str
    timestamp_created: Optional[dt.datetime] = None
    timestamp_updated: Optional[dt.datetime] = None
    payload: Optional[AccountPayload] = None

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Account:
        data = _as_mapping(data, "Account")
        payload = data.get("payload")
        return cls(
            email=data.get("email", ""),
            timestamp_created=parse_timestamp(data.get("timestamp_created")),
            timestamp_updated=parse_timestamp(data.get("timestamp_updated")),
            payload=AccountPayload.from_wire(payload) if payload is not None else None,
        )


@dataclass
class AccountVitals:
    domain: str = ""
    mx: bool = False
    spf: bool = False
    dkim: bool = False
    dmarc: bool = False

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> AccountVitals:
        data = _as_mapping(data, "AccountVitals")
        return cls(
            domain=data.get("domain", ""),
            mx=bool(data.get("mx", False)),
            spf=bool(data.get("spf", False)),
            dkim=bool(data.get("dkim", False)),
            dmarc=bool(data.get("dmarc", False)),
        )

    @property
    def healthy(self) -> bool:
        return self.mx and self.spf and self.dkim and self.dmarc


def _as_int(value: Any) -> int:
    """Counts arrive as ints or numeric strings depending on the endpoint."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"expected an integer, got {value!r}") from e


def _as_mapping(value: Any, what: str, *, optional: bool = False) -> Mapping[str, Any]:
    if value is None and optional:
        return {}
    if not isinstance(value, Mapping):
        raise DecodeError(f"expected a JSON object for {what}, got {type(value).__name__}")
    return value
