import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, ValidationError

from student_planner.models.schemas import OFFICIAL_HOLIDAY_TYPE, Holiday
from student_planner.utils.config import CONFIG

logger = logging.getLogger(__name__)


class HolidaySourceError(Exception):
    """Upstream holiday fetch failed (transport, status, or payload)."""


# -----------------------------
# Upstream (Calendarific) shapes
# -----------------------------
class _UpstreamDate(BaseModel):
    iso: str


class _UpstreamHoliday(BaseModel):
    name: str
    date: _UpstreamDate
    type: List[str] = []
    description: Optional[str] = None


def _holiday_ids(entries: List[_UpstreamHoliday]) -> List[str]:
    # id is the name; a name seen twice in the batch gets its date appended,
    # and a repeat of the same name + date also gets a running number (#2, #3, ...)
    seen: Dict[str, int] = {}
    for e in entries:
        seen[e.name] = seen.get(e.name, 0) + 1
    ids: List[str] = []
    repeats: Dict[str, int] = {}
    for e in entries:
        hid = e.name if seen[e.name] == 1 else f"{e.name} ({e.date.iso[:10]})"
        repeats[hid] = repeats.get(hid, 0) + 1
        ids.append(hid if repeats[hid] == 1 else f"{hid} #{repeats[hid]}")
    return ids


def normalize_holidays(payload: Any) -> List[Holiday]:
    """
    Map a Calendarific payload onto official Holiday records.
    Raises HolidaySourceError if the envelope is not {"response": {"holidays": [...]}}.
    Entries that don't parse are skipped.
    """
    try:
        raw = payload["response"]["holidays"]
    except (KeyError, TypeError) as e:
        raise HolidaySourceError(f"Malformed holiday payload: missing {e}") from e
    if not isinstance(raw, list):
        raise HolidaySourceError("Malformed holiday payload: 'holidays' is not a list")

    entries: List[_UpstreamHoliday] = []
    for item in raw:
        try:
            entries.append(_UpstreamHoliday.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed holiday entry %r: %s", item, e)

    out: List[Holiday] = []
    for entry, hid in zip(entries, _holiday_ids(entries)):
        try:
            out.append(Holiday(
                id=hid,
                name=entry.name,
                date=entry.date.iso[:10],   # iso may carry a time + offset
                type=(entry.type[0] if entry.type and entry.type[0] else OFFICIAL_HOLIDAY_TYPE),
                description=entry.description or "",
                is_official=True,
            ))
        except ValidationError as e:
            logger.warning("Skipping holiday %r with bad date %r: %s", entry.name, entry.date.iso, e)
    return out


class HolidaySource:
    """Official holidays for a year from Calendarific."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 base_url: Optional[str] = None,
                 country: Optional[str] = None,
                 timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        cfg = CONFIG["holidays"]
        self.api_key = api_key if api_key is not None else cfg["api_key"]
        self.base_url = (base_url or cfg["base_url"]).rstrip("/")
        self.country = country or cfg["country"]
        self.timeout = timeout if timeout is not None else cfg["timeout"]
        self.http = session or requests.Session()

    def request_holidays(self, year: int) -> List[Holiday]:
        """Raises HolidaySourceError on any failure."""
        params = {"api_key": self.api_key, "country": self.country, "year": int(year)}
        try:
            response = self.http.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.HTTPError as e:
            raise HolidaySourceError(f"Calendarific API error: {e.response.status_code}") from e
        except (requests.exceptions.RequestException, ValueError) as e:
            raise HolidaySourceError(f"Calendarific request failed: {e}") from e
        return normalize_holidays(payload)

    def fetch_holidays(self, year: int) -> List[Holiday]:
        """Never raises: failures are logged and read as 'no official holidays'."""
        try:
            return self.request_holidays(year)
        except HolidaySourceError as e:
            logger.error("Error fetching holidays for %s: %s", year, e)
            return []


class PlannerApiClient:
    """Reads official holidays from this service's own /api/holidays endpoint."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        cfg = CONFIG["holidays"]
        self.base_url = (base_url or cfg["api_url"]).rstrip("/")
        self.timeout = timeout if timeout is not None else cfg["timeout"]
        self.http = session or requests.Session()

    def fetch_holidays(self, year: int) -> List[Holiday]:
        try:
            response = self.http.get(f"{self.base_url}/api/holidays",
                                     params={"year": int(year)}, timeout=self.timeout)
            response.raise_for_status()
            items = response.json().get("holidays") or []
            return [Holiday.model_validate(h) for h in items]
        except (requests.exceptions.RequestException, ValueError, AttributeError) as e:
            # ValueError also covers pydantic's ValidationError
            logger.error("Failed to fetch holidays for %s: %s", year, e)
            return []
