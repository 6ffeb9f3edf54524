from __future__ import annotations

import datetime as dt
import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .config import ClientConfig
from .exceptions import DecodeError, LeadNotFoundError, MultipleLeadsError, StatusError
from .models import (
    ANALYTICS_DATE_FMT,
    Account,
    AccountVitals,
    AddLeadsResult,
    BlocklistResult,
    Campaign,
    CampaignCount,
    CampaignSchedule,
    CampaignSummary,
    Lead,
    LeadDetails,
    LeadStatus,
    format_date,
    schedule_payload,
)
from .transport import Transport

_logger = logging.getLogger(__name__)

SUCCESS = "success"


class InstantlyClient:
    """Instantly REST API client: one method per endpoint."""

    def __init__(
        self,
        api_key: str,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[Transport] = None,
    ) -> None:
        self.transport = transport or Transport(api_key, config)
        self.config = self.transport.config

    # --------------------------- Workspace ----------------------------

    def authenticate(self) -> str:
        """Return the workspace name the API key belongs to."""
        raw = self.transport.read("authenticate")
        try:
            data = json.loads(raw)
        except ValueError:
            return raw.decode("utf-8", errors="replace").strip()
        if isinstance(data, dict):
            _check_status(data, "authenticate")
            return str(data.get("workspace_name", ""))
        return str(data)

    # --------------------------- Campaigns ----------------------------

    def list_campaigns(self) -> List[Campaign]:
        data = self._read_list("campaign/list", action="list campaigns")
        return [Campaign.from_wire(item) for item in data]

    def get_campaign_name(self, campaign_id: str) -> str:
        data = self._read_object(
            "campaign/get/name",
            [("campaign_id", campaign_id)],
            action="get campaign name",
        )
        return data.get("campaign_name", "")

    def set_campaign_name(self, campaign_id: str, name: str) -> None:
        self._write_status(
            "campaign/set/name",
            {"campaign_id": campaign_id, "name": name},
            action="set campaign name",
        )

    def get_campaign_accounts(self, campaign_id: str) -> List[str]:
        data = self._read_list(
            "campaign/get/accounts",
            [("campaign_id", campaign_id)],
            action="get campaign accounts",
        )
        return [str(email) for email in data]

    def set_campaign_accounts(self, campaign_id: str, account_emails: Iterable[str]) -> None:
        self._write_status(
            "campaign/set/accounts",
            {"campaign_id": campaign_id, "account_list": list(account_emails)},
            action="set campaign accounts",
        )

    def add_sending_account(self, campaign_id: str, email: str) -> None:
        self._write_status(
            "campaign/add/account",
            {"campaign_id": campaign_id, "email": email},
            action="add sending account",
        )

    def remove_sending_account(self, campaign_id: str, email: str) -> None:
        self._write_status(
            "campaign/remove/account",
            {"campaign_id": campaign_id, "email": email},
            action="remove sending account",
        )

    def set_campaign_schedule(
        self,
        campaign_id: str,
        start_date: dt.date,
        schedules: List[CampaignSchedule],
        end_date: Optional[dt.date] = None,
    ) -> None:
        payload = schedule_payload(campaign_id, start_date, schedules, end_date)
        self._write_status("campaign/set/schedules", payload, action="set campaign schedule")

    def launch_campaign(self, campaign_id: str) -> None:
        self._write_status("campaign/launch", {"campaign_id": campaign_id}, action="launch campaign")

    def pause_campaign(self, campaign_id: str) -> None:
        self._write_status("campaign/pause", {"campaign_id": campaign_id}, action="pause campaign")

    def get_campaign_summary(self, campaign_id: str) -> CampaignSummary:
        data = self._read_object(
            "campaign/summary",
            [("campaign_id", campaign_id)],
            action="get campaign summary",
        )
        return CampaignSummary.from_wire(data)

    def get_campaign_count(
        self,
        campaign_id: str,
        start_date: dt.date,
        end_date: Optional[dt.date] = None,
    ) -> CampaignCount:
        params = [
            ("campaign_id", campaign_id),
            ("start_date", format_date(start_date, ANALYTICS_DATE_FMT)),
        ]
        if end_date is not None:
            params.append(("end_date", format_date(end_date, ANALYTICS_DATE_FMT)))

        data = self._read_object("analytics/campaign/count", params, action="get campaign count")
        return CampaignCount.from_wire(data)

    # --------------------------- Leads --------------------------------

    def add_leads_to_campaign(self, campaign_id: str, leads: Iterable[Lead]) -> AddLeadsResult:
        data = self._write(
            "lead/add",
            {"campaign_id": campaign_id, "leads": [lead.to_wire() for lead in leads]},
            action="add leads to campaign",
        )
        result = AddLeadsResult.from_wire(data)
        _logger.debug(
            "Uploaded %d/%d leads to campaign %s",
            result.leads_uploaded,
            result.total_sent,
            campaign_id,
        )
        return result

    def get_lead_from_campaign(self, campaign_id: str, email: str) -> LeadDetails:
        """Look up one lead by email; exactly one match is expected."""
        data = self._read_list(
            "lead/get",
            [("campaign_id", campaign_id), ("email", email)],
            action="get lead from campaign",
        )
        if not data:
            raise LeadNotFoundError(campaign_id, email, 0)
        if len(data) > 1:
            raise MultipleLeadsError(campaign_id, email, len(data))
        return LeadDetails.from_wire(data[0])

    def delete_leads_from_campaign(
        self,
        campaign_id: str,
        emails: Iterable[str],
        delete_all_from_company: bool = False,
    ) -> None:
        self._write_status(
            "lead/delete",
            {
                "campaign_id": campaign_id,
                "delete_all_from_company": delete_all_from_company,
                "delete_list": list(emails),
            },
            action="delete leads from campaign",
        )

    def update_lead_status(
        self, campaign_id: str, email: str, status: Union[LeadStatus, str]
    ) -> None:
        new_status = status.value if isinstance(status, LeadStatus) else str(status)
        self._write_status(
            "lead/update/status",
            {"campaign_id": campaign_id, "email": email, "new_status": new_status},
            action="update lead status",
        )

    def update_lead_variables(
        self, campaign_id: str, email: str, variables: Mapping[str, Any]
    ) -> None:
        """Merge ``variables`` into the lead's existing custom variables."""
        self._write_status(
            "lead/data/update",
            {"campaign_id": campaign_id, "email": email, "variables": dict(variables)},
            action="update lead variables",
        )

    def set_lead_variables(
        self, campaign_id: str, email: str, variables: Mapping[str, Any]
    ) -> None:
        """Replace the lead's custom variables with ``variables``."""
        self._write_status(
            "lead/data/set",
            {"campaign_id": campaign_id, "email": email, "variables": dict(variables)},
            action="set lead variables",
        )

    def delete_lead_variables(
        self, campaign_id: str, email: str, variables: Iterable[str]
    ) -> None:
        self._write_status(
            "lead/data/delete",
            {"campaign_id": campaign_id, "email": email, "variables": list(variables)},
            action="delete lead variables",
        )

    # --------------------------- Blocklist ----------------------------

    def add_entries_to_blocklist(self, entries: Iterable[str]) -> int:
        """Add emails or domains to the blocklist; returns how many were new."""
        data = self._write_status(
            "blocklist/add",
            {"entries": list(entries)},
            action="add entries to blocklist",
        )
        return BlocklistResult.from_wire(data).entries_added

    # --------------------------- Accounts -----------------------------

    def list_accounts(self, limit: int = 100, skip: int = 0) -> List[Account]:
        data = self._read_object(
            "account/list",
            [("limit", limit), ("skip", skip)],
            action="list accounts",
        )
        _check_status(data, "list accounts", required=True)
        return [Account.from_wire(item) for item in _as_list(data.get("accounts"), "accounts")]

    def check_account_vitals(
        self, accounts: Iterable[str]
    ) -> Tuple[List[AccountVitals], List[AccountVitals]]:
        """Run DNS checks; returns ``(success_list, failure_list)``."""
        data = self._write_status(
            "account/test/vitals",
            {"accounts": list(accounts)},
            action="check account vitals",
        )
        success = [
            AccountVitals.from_wire(v) for v in _as_list(data.get("success_list"), "success_list")
        ]
        failure = [
            AccountVitals.from_wire(v) for v in _as_list(data.get("failure_list"), "failure_list")
        ]
        return success, failure

    def enable_warmup(self, email: str) -> None:
        self._write_status("account/warmup/enable", {"email": email}, action="enable warmup")

    def pause_warmup(self, email: str) -> None:
        self._write_status("account/warmup/pause", {"email": email}, action="pause warmup")

    # --------------------------- Internal helpers --------------------

    def _read_object(
        self,
        path: str,
        params: Optional[List[Tuple[str, Any]]] = None,
        *,
        action: str,
    ) -> Dict[str, Any]:
        data = _decode(self.transport.read(path, params), action)
        if not isinstance(data, dict):
            raise DecodeError(f"failed to {action}: expected a JSON object")
        _check_status(data, action)
        return data

    def _read_list(
        self,
        path: str,
        params: Optional[List[Tuple[str, Any]]] = None,
        *,
        action: str,
    ) -> List[Any]:
        data = _decode(self.transport.read(path, params), action)
        if isinstance(data, dict) and "status" in data:
            # Failures come back as an object carrying a status string
            _check_status(data, action)
        if not isinstance(data, list):
            raise DecodeError(f"failed to {action}: expected a JSON array")
        return data

    def _write(self, path: str, body: Mapping[str, Any], *, action: str) -> Dict[str, Any]:
        data = _decode(self.transport.write(path, body), action)
        if not isinstance(data, dict):
            raise DecodeError(f"failed to {action}: expected a JSON object")
        _check_status(data, action)
        return data

    def _write_status(self, path: str, body: Mapping[str, Any], *, action: str) -> Dict[str, Any]:
        """Write whose response must carry status "success"."""
        data = self._write(path, body, action=action)
        _check_status(data, action, required=True)
        _logger.debug("%s: ok", action)
        return data


def _decode(raw: bytes, action: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise DecodeError(f"failed to decode response to {action}: {e}") from e


def _check_status(data: Mapping[str, Any], action: str, *, required: bool = False) -> None:
    """Raise StatusError unless ``status`` is absent (and optional) or ``"success"``."""
    if "status" not in data and not required:
        return
    status = data.get("status")
    if status != SUCCESS:
        raise StatusError(action, status)


def _as_list(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(f"expected a JSON array for {what}, got {type(value).__name__}")
    return value
