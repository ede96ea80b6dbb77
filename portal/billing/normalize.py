"""
Billing Payload Normalization Module

The billing provider (and older portal clients) send the same project in
several shapes: snake_case or camelCase keys, fixed price as a boolean flag or
a decimal string, due dates as ISO strings or unix timestamps. Everything that
crosses the billing boundary goes through this module so the rest of the
portal only ever sees RemoteProject / RemoteClient.
"""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Fields a RemoteProject contributes to the cached project view
VIEW_FIELDS = ("progress", "due_date", "budget", "fixed_price", "visible")

_CLIENT_VIS_STATES = {0: "active", 1: "deleted", 2: "archived"}


class RemoteProject(BaseModel):
    id: str
    title: str = "Untitled Project"
    description: str = ""
    status: str = "active"
    complete: bool = False
    active: bool = True
    visible: bool = True
    progress: Optional[int] = None
    due_date: Optional[str] = None
    budget: Optional[int] = None
    fixed_price: Optional[int] = None
    is_fixed_price: bool = False
    client_id: Optional[str] = None
    created_at: Optional[str] = None

    def view_fields(self) -> Dict[str, Any]:
        """The cacheable subset, omitting fields the provider did not send."""
        fields = {
            "due_date": self.due_date,
            "budget": self.budget,
            "fixed_price": self.fixed_price,
            "visible": self.visible,
        }
        if self.progress is not None:
            fields["progress"] = self.progress
        return fields


class RemoteClient(BaseModel):
    id: str
    email: str = ""
    organization: str = ""
    phone_number: str = ""
    status: str = "active"


def _pick(raw: Dict[str, Any], *keys: str) -> Any:
    """First non-None value among the given key spellings."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def normalize_date(value: Any) -> Optional[str]:
    """Return an ISO date (YYYY-MM-DD) from an ISO string or a unix timestamp."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"not a date: {value!r}")
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e11 else value  # milliseconds
        return datetime.fromtimestamp(seconds, tz=timezone.utc).date().isoformat()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    # Accept full timestamps such as "2025-01-01T00:00:00Z"
    return date.fromisoformat(text[:10]).isoformat()


def to_minor_units(value: Any) -> Optional[int]:
    """Convert a major-unit amount ("1500.00", 1500, 1500.5) to cents."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        raise ValueError(f"not an amount: {value!r}")
    return int((amount * 100).to_integral_value())


def from_minor_units(value: Optional[int]) -> Optional[str]:
    if value is None:
        return None
    return f"{Decimal(value) / 100:.2f}"


def _as_int(value: Any) -> Optional[int]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(Decimal(str(value)))
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}")


def derive_status(complete: bool, active: bool) -> str:
    if complete:
        return "completed"
    return "active" if active else "inactive"


def normalize_project(raw: Dict[str, Any]) -> RemoteProject:
    """
    Build the canonical RemoteProject from any provider or legacy payload.

    Raises:
        ValueError: if the payload has no id or carries an unparseable
            date or amount.
    """
    remote_id = _pick(raw, "id", "freshbooksId", "freshbooks_id")
    if remote_id is None:
        raise ValueError("project payload has no id")

    complete = _as_bool(_pick(raw, "complete"), False)
    active = _as_bool(_pick(raw, "active"), True)

    # fixed_price is either a boolean flag or a decimal amount
    raw_fixed = _pick(raw, "fixed_price", "fixedPrice")
    if isinstance(raw_fixed, bool):
        is_fixed_price, fixed_price = raw_fixed, None
    else:
        fixed_price = to_minor_units(raw_fixed)
        is_fixed_price = fixed_price is not None
    if _pick(raw, "project_type", "projectType") == "fixed_price":
        is_fixed_price = True

    progress = _as_int(_pick(raw, "progress"))
    if progress is not None:
        progress = max(0, min(100, progress))

    status = _pick(raw, "status")
    if not isinstance(status, str) or not status:
        status = derive_status(complete, active)

    client_id = _pick(raw, "client_id", "clientId")
    created_at = _pick(raw, "created_at", "createdAt")

    return RemoteProject(
        id=str(remote_id),
        title=_pick(raw, "title") or "Untitled Project",
        description=_pick(raw, "description") or "",
        status=status,
        complete=complete,
        active=active,
        visible=not _as_bool(_pick(raw, "internal"), False) and _as_bool(_pick(raw, "visible"), True),
        progress=progress,
        due_date=normalize_date(_pick(raw, "due_date", "dueDate")),
        budget=_as_int(_pick(raw, "budget")),
        fixed_price=fixed_price,
        is_fixed_price=is_fixed_price,
        client_id=str(client_id) if client_id is not None else None,
        created_at=str(created_at) if created_at is not None else None,
    )


def normalize_client(raw: Dict[str, Any]) -> RemoteClient:
    remote_id = _pick(raw, "id", "userid")
    if remote_id is None:
        raise ValueError("client payload has no id")
    vis_state = _pick(raw, "vis_state", "visState")
    if isinstance(vis_state, int):
        status = _CLIENT_VIS_STATES.get(vis_state, "active")
    else:
        status = vis_state or "active"
    return RemoteClient(
        id=str(remote_id),
        email=_pick(raw, "email") or "",
        organization=_pick(raw, "organization") or "",
        phone_number=_pick(raw, "phone_number", "phoneNumber", "phone", "bus_phone") or "",
        status=status,
    )


def to_remote_payload(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Translate canonical update fields into the provider's project body."""
    payload: Dict[str, Any] = {}
    for key in ("title", "description", "due_date", "budget", "complete"):
        if key in fields and fields[key] is not None:
            payload[key] = fields[key]
    if fields.get("fixed_price") is not None:
        payload["fixed_price"] = from_minor_units(fields["fixed_price"])
    if fields.get("visible") is not None:
        payload["internal"] = not fields["visible"]
    if fields.get("client_id") is not None:
        payload["client_id"] = fields["client_id"]
    return {"project": payload}
