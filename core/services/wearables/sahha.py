"""Sahha insights API client.

Fetches trend and comparison insights for a Sahha profile and normalises
them into an ``InsightBundle``. The client owns its account-token cache;
callers construct one instance and pass it to whatever needs it.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any

import httpx

from core.services.insights.models import (
    Comparison,
    ComparisonPoint,
    InsightBundle,
    Trend,
    TrendPoint,
)

logger = logging.getLogger(__name__)

SANDBOX_API_BASE = "https://sandbox-api.sahha.ai"
PRODUCTION_API_BASE = "https://api.sahha.ai"
ACCOUNT_TOKEN_PATH = "/api/v1/oauth/account/token"
PROFILE_REGISTER_PATH = "/api/v1/oauth/profile/register"
TREND_PATH = "/api/v1/profile/insight/trend/{profile_id}"
COMPARISON_PATH = "/api/v1/profile/insight/comparison/{profile_id}"
SCORE_PATH = "/api/v1/profile/score/{profile_id}"

DEFAULT_TOKEN_TTL_SECONDS = 3300
DEFAULT_SCORE_TYPES = ("wellbeing", "activity", "readiness", "mental_wellbeing")
POUNDS_TO_KG = 0.453592
INCHES_TO_CM = 2.54


class SahhaAPIError(Exception):
    """Raised when the Sahha API rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# ── Ingest: provider JSON → internal dataclasses ─────────────────────────

def _pick(raw: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present (non-None) value among alternative spellings of a key."""
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return default


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into a UTC-aware datetime; None if unparsable."""
    if isinstance(value, datetime):
        parsed = value
    elif not value:
        return None
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_trend_point(raw: dict[str, Any]) -> TrendPoint:
    return TrendPoint(
        start_time=parse_timestamp(_pick(raw, "start_date_time", "StartDateTime", "startDateTime")),
        end_time=parse_timestamp(_pick(raw, "end_date_time", "EndDateTime", "endDateTime")),
        value=_as_float(_pick(raw, "value", "Value")),
        percent_change_from_previous=_as_float(
            _pick(raw, "percent_change_from_previous", "PercentChangeFromPrevious", "percentChangeFromPrevious")
        ),
    )


def _parse_trend(raw: dict[str, Any]) -> Trend:
    points = _pick(raw, "data", "Data", default=[])
    return Trend(
        category=_as_str(_pick(raw, "category", "Category")),
        name=_as_str(_pick(raw, "name", "Name")),
        state=_as_str(_pick(raw, "state", "State")),
        is_higher_better=_as_bool(_pick(raw, "is_higher_better", "IsHigherBetter", "isHigherBetter")),
        value_range=_as_float(_pick(raw, "value_range", "ValueRange", "valueRange")),
        unit=_as_str(_pick(raw, "unit", "Unit")),
        window_start=parse_timestamp(_pick(raw, "trend_start_time", "TrendStartTime", "trendStartTime")),
        window_end=parse_timestamp(_pick(raw, "trend_end_time", "TrendEndTime", "trendEndTime")),
        points=tuple(_parse_trend_point(p) for p in points if isinstance(p, dict)) if isinstance(points, list) else (),
    )


def _parse_comparison_point(raw: dict[str, Any]) -> ComparisonPoint:
    return ComparisonPoint(
        type=_as_str(_pick(raw, "type", "Type")),
        value=_as_str(_pick(raw, "value", "Value")),
    )


def _parse_comparison(raw: dict[str, Any]) -> Comparison:
    points = _pick(raw, "data", "Data", default=[])
    properties = _pick(raw, "properties", "Properties", default={})
    return Comparison(
        category=_as_str(_pick(raw, "category", "Category")),
        name=_as_str(_pick(raw, "name", "Name")),
        value=_as_str(_pick(raw, "value", "Value")),
        unit=_as_str(_pick(raw, "unit", "Unit")),
        is_higher_better=_as_bool(_pick(raw, "is_higher_better", "IsHigherBetter", "isHigherBetter")),
        window_start=parse_timestamp(_pick(raw, "start_date_time", "StartDateTime", "startDateTime")),
        window_end=parse_timestamp(_pick(raw, "end_date_time", "EndDateTime", "endDateTime")),
        percentile=_as_optional_float(_pick(raw, "percentile", "Percentile")),
        difference=_as_str(_pick(raw, "difference", "Difference")),
        percentage_difference=_as_str(_pick(raw, "percentage_difference", "PercentageDifference", "percentageDifference")),
        state=_as_str(_pick(raw, "state", "State")),
        properties=properties if isinstance(properties, dict) else {},
        points=tuple(_parse_comparison_point(p) for p in points if isinstance(p, dict)) if isinstance(points, list) else (),
    )


def _unwrap_list(payload: Any) -> list[dict[str, Any]]:
    """Sahha wraps some list responses in {"data": [...]}."""
    if isinstance(payload, dict):
        payload = _pick(payload, "data", "Data", default=[])
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


def parse_trends(payload: Any) -> tuple[Trend, ...]:
    return tuple(_parse_trend(raw) for raw in _unwrap_list(payload))


def parse_comparisons(payload: Any) -> tuple[Comparison, ...]:
    return tuple(_parse_comparison(raw) for raw in _unwrap_list(payload))


def parse_insight_bundle(raw: Any) -> InsightBundle:
    """Normalise a stored or provider bundle in any supported casing."""
    if not isinstance(raw, dict):
        return InsightBundle()
    return InsightBundle(
        trends=parse_trends(_pick(raw, "trends", "Trends", default=[])),
        comparisons=parse_comparisons(_pick(raw, "comparisons", "Comparisons", default=[])),
    )


def _iso(value: datetime | None) -> str:
    return value.isoformat().replace("+00:00", "Z") if value else ""


def bundle_to_dict(bundle: InsightBundle) -> dict[str, Any]:
    """Serialise a bundle in camelCase; ``parse_insight_bundle`` reads it back."""
    return {
        "trends": [
            {
                "category": t.category,
                "name": t.name,
                "state": t.state,
                "isHigherBetter": t.is_higher_better,
                "valueRange": t.value_range,
                "unit": t.unit,
                "trendStartTime": _iso(t.window_start),
                "trendEndTime": _iso(t.window_end),
                "data": [
                    {
                        "startDateTime": _iso(p.start_time),
                        "endDateTime": _iso(p.end_time),
                        "value": p.value,
                        "percentChangeFromPrevious": p.percent_change_from_previous,
                    }
                    for p in t.points
                ],
            }
            for t in bundle.trends
        ],
        "comparisons": [
            {
                "category": c.category,
                "name": c.name,
                "value": c.value,
                "unit": c.unit,
                "isHigherBetter": c.is_higher_better,
                "startDateTime": _iso(c.window_start),
                "endDateTime": _iso(c.window_end),
                "percentile": c.percentile,
                "difference": c.difference,
                "percentageDifference": c.percentage_difference,
                "state": c.state,
                "properties": dict(c.properties),
                "data": [{"type": p.type, "value": p.value} for p in c.points],
            }
            for c in bundle.comparisons
        ],
    }


def _expand_bound(value: str | date | None, end_of_day: bool) -> str | None:
    """Date-only bounds cover the whole day."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _iso(value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc))
    if isinstance(value, date):
        value = value.isoformat()
    if "T" in value:
        return value
    return f"{value}T23:59:59Z" if end_of_day else f"{value}T00:00:00Z"


class SahhaClient:
    """Sahha REST API client with a cached account token."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = SANDBOX_API_BASE,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url.rstrip("/")
        self.account_token: str | None = None
        self.expires_at = 0.0
        self._token_lock = threading.Lock()
        self.client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings) -> "SahhaClient":
        base_url = settings.sahha_api_base_url
        if settings.sahha_environment == "production" and base_url == SANDBOX_API_BASE:
            base_url = PRODUCTION_API_BASE
        return cls(
            client_id=settings.sahha_client_id,
            client_secret=settings.sahha_client_secret,
            base_url=base_url,
            timeout=settings.provider_timeout_seconds,
        )

    # -- auth --

    def _token_valid(self) -> bool:
        return bool(self.account_token) and time.time() < self.expires_at

    def get_account_token(self) -> str:
        """Return the cached account token, requesting a new one when expired.

        Concurrent callers share a single token request.
        """
        with self._token_lock:
            if self._token_valid():
                return self.account_token  # type: ignore[return-value]
            return self._fetch_account_token()

    def _fetch_account_token(self) -> str:
        try:
            resp = self.client.post(
                f"{self.base_url}{ACCOUNT_TOKEN_PATH}",
                json={"clientId": self.client_id, "clientSecret": self.client_secret},
            )
        except httpx.HTTPError as exc:
            raise SahhaAPIError(f"Failed to authenticate with Sahha API: {exc}") from exc

        if resp.status_code != 200:
            raise SahhaAPIError(
                f"Failed to authenticate with Sahha API: {resp.text} (Status: {resp.status_code})",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise SahhaAPIError("Failed to authenticate with Sahha API: response is not JSON", 200) from exc
        token = data.get("accountToken") if isinstance(data, dict) else None
        if not token:
            raise SahhaAPIError("Failed to authenticate with Sahha API: no accountToken in response", 200)

        expires_in = data.get("expires_in") or data.get("expiresIn") or DEFAULT_TOKEN_TTL_SECONDS
        self.account_token = token
        self.expires_at = time.time() + float(expires_in)
        logger.info("sahha_account_token_refreshed", extra={"expires_in": expires_in})
        return token

    def _request(self, method: str, path: str, **kwargs) -> Any:
        token = self.get_account_token()
        headers = {"Authorization": f"account {token}"}
        try:
            resp = self.client.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise SahhaAPIError(f"Sahha request failed: {exc}") from exc
        if resp.status_code == 401:
            # Token revoked before its advertised expiry.
            self.account_token = None
        if resp.status_code not in (200, 201):
            raise SahhaAPIError(
                f"Sahha {method} {path} returned {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise SahhaAPIError(
                f"Sahha {method} {path} returned a non-JSON body",
                status_code=resp.status_code,
            ) from exc

    # -- insights --

    @staticmethod
    def _insight_params(start=None, end=None, category: str | None = None, name: str | None = None) -> dict[str, str]:
        params = {
            "startDateTime": _expand_bound(start, end_of_day=False),
            "endDateTime": _expand_bound(end, end_of_day=True),
            "category": category,
            "name": name,
        }
        return {k: v for k, v in params.items() if v}

    def get_trends(self, profile_id: str, start=None, end=None, category: str | None = None, name: str | None = None) -> tuple[Trend, ...]:
        payload = self._request(
            "GET",
            TREND_PATH.format(profile_id=profile_id),
            params=self._insight_params(start, end, category, name),
        )
        return parse_trends(payload)

    def get_comparisons(self, profile_id: str, start=None, end=None, category: str | None = None, name: str | None = None) -> tuple[Comparison, ...]:
        payload = self._request(
            "GET",
            COMPARISON_PATH.format(profile_id=profile_id),
            params=self._insight_params(start, end, category, name),
        )
        return parse_comparisons(payload)

    def sync_insights(self, profile_id: str, start=None, end=None, category: str | None = None) -> InsightBundle:
        """Fetch trends and comparisons; a failed half is logged and left empty.

        Authentication failures still propagate since neither half can succeed.
        """
        self.get_account_token()

        trends: tuple[Trend, ...] = ()
        comparisons: tuple[Comparison, ...] = ()
        try:
            trends = self.get_trends(profile_id, start, end, category)
        except SahhaAPIError as exc:
            logger.warning("Failed to fetch Sahha trends for %s: %s", profile_id, exc)
        try:
            comparisons = self.get_comparisons(profile_id, start, end, category)
        except SahhaAPIError as exc:
            logger.warning("Failed to fetch Sahha comparisons for %s: %s", profile_id, exc)
        return InsightBundle(trends=trends, comparisons=comparisons)

    # -- profiles & scores --

    def create_profile(
        self,
        external_id: str,
        age: int | None = None,
        sex_at_birth: str | None = None,
        weight_lb: float | None = None,
        height_in: float | None = None,
    ) -> dict[str, Any]:
        """Register a Sahha profile; only supplied demographics are sent."""
        demographic: dict[str, Any] = {}
        if age:
            demographic["age"] = age
        if sex_at_birth:
            demographic["sex_at_birth"] = sex_at_birth.lower()
        if weight_lb:
            demographic["weight_kg"] = round(weight_lb * POUNDS_TO_KG, 2)
        if height_in:
            demographic["height_cm"] = round(height_in * INCHES_TO_CM, 2)

        body: dict[str, Any] = {"externalId": external_id}
        if demographic:
            body["demographic"] = demographic
        return self._request("POST", PROFILE_REGISTER_PATH, json=body)

    def get_scores(
        self,
        profile_id: str,
        types: tuple[str, ...] | list[str] = DEFAULT_SCORE_TYPES,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Sahha health scores; defaults to the last seven days."""
        end = end or datetime.now(timezone.utc)
        start = start or end - timedelta(days=7)
        payload = self._request(
            "GET",
            SCORE_PATH.format(profile_id=profile_id),
            params={
                "types": ",".join(types),
                "startDateTime": _expand_bound(start, end_of_day=False),
                "endDateTime": _expand_bound(end, end_of_day=True),
            },
        )
        return _unwrap_list(payload)

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()
