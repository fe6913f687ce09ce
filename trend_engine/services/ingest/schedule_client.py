"""
Schedule collaborator: scoreboard client for today's games.

Reads an ESPN-style scoreboard endpoint per sport and date:

    {base_url}/{sport path}/scoreboard?dates=YYYYMMDD

Dates are ISO keys in Central Time (see trend_engine.utils.timezone). Events
are validated into ScheduledGame at this boundary; malformed events are
skipped and logged.

A failed fetch is never reported as an empty schedule. Transport errors,
HTTP errors, an open circuit breaker or an unreadable body all raise
ProviderUnavailableError, and a multi-sport fetch fails as a whole.

Requests run on httpx.AsyncClient, so cancelling a fetch aborts the request
in flight; a cancelled request does not count against the circuit breaker.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx
from pybreaker import CircuitBreaker
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from trend_engine.core.exceptions import ProviderUnavailableError
from trend_engine.core.metrics import ingest_rejected_total
from trend_engine.models.schedule import ScheduledGame
from trend_engine.models.trends import Sport
from trend_engine.services.ingest.circuit_breaker import CircuitBreakerError, schedule_api_breaker
from trend_engine.services.ingest.validator import IngestValidator
from trend_engine.services.trends.sport_config import get_profile
from trend_engine.utils.timezone import scoreboard_date_param

logger = logging.getLogger(__name__)

PROVIDER_NAME = "schedule"
DEFAULT_BASE_URL = "https://site.api.espn.com/apis/site/v2/sports"


def _parse_event_date(date_str: Optional[str]) -> Optional[datetime]:
    """
    Parse a scoreboard date ("2026-10-19T17:00Z") as an aware UTC datetime.

    Returns None when the value is missing or unreadable.
    """
    if not date_str:
        return None
    try:
        parsed = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_team(competitor: Dict[str, Any]) -> Dict[str, Any]:
    team = competitor.get("team") or {}
    records = competitor.get("records") or []
    return {
        "id": team.get("id"),
        "name": team.get("displayName") or team.get("name"),
        "abbreviation": team.get("abbreviation"),
        "record": records[0].get("summary") if records else None,
    }


def _parse_odds(competition: Dict[str, Any]) -> Dict[str, Optional[float]]:
    odds = (competition.get("odds") or [{}])[0]
    spread = odds.get("spread")
    total = odds.get("overUnder")
    return {
        "spread": float(spread) if isinstance(spread, (int, float)) else None,
        "total": float(total) if isinstance(total, (int, float)) else None,
    }


def parse_event(event: Dict[str, Any], sport: Sport) -> Dict[str, Any]:
    """
    Flatten one scoreboard event into a ScheduledGame payload.

    Competitors are read from the first competition, falling back to the
    event itself for flattened payloads.
    """
    competition = (event.get("competitions") or [{}])[0]
    competitors = competition.get("competitors") or event.get("competitors") or []

    home = away = None
    for competitor in competitors:
        if competitor.get("homeAway") == "home":
            home = _parse_team(competitor)
        else:
            away = _parse_team(competitor)

    status = (event.get("status") or {}).get("type") or {}
    payload = {
        "id": event.get("id"),
        "sport": sport.value,
        "start_time": _parse_event_date(event.get("date")),
        "home": home,
        "away": away,
        "status": status.get("state", "pre"),
    }
    payload.update(_parse_odds(competition))
    return payload


def _read_event(event: Any, sport: Sport) -> Optional[Dict[str, Any]]:
    """parse_event, or None (counted as a rejected game) for an event of the wrong shape."""
    try:
        return parse_event(event, sport)
    except (AttributeError, TypeError, KeyError, IndexError, ValueError) as e:
        ingest_rejected_total.labels(record_type="game").inc()
        logger.error(f"Skipping unreadable {sport.value} event: {e!r}")
        return None


class ScheduleClient:
    """
    Scoreboard client.

    Usage:
        client = ScheduleClient()
        games = await client.fetch_games("NFL", "2026-10-19")
        games = await client.fetch_schedule(["NFL", "NBA"], "2026-10-19")
        await client.close()
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        breaker: CircuitBreaker = schedule_api_breaker,
        attempts: int = 3,
        retry_wait=None,
        validator: Optional[IngestValidator] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Scoreboard API root
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
            breaker: Circuit breaker guarding the provider
            attempts: Attempts per request before giving up
            retry_wait: tenacity wait strategy (exponential by default)
            validator: Ingest validator for scoreboard events
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.breaker = breaker
        self.attempts = attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)
        self.validator = validator or IngestValidator()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings=None, **kwargs) -> "ScheduleClient":
        if settings is None:
            from trend_engine.core.config import settings
        return cls(
            base_url=settings.SCHEDULE_API_BASE_URL,
            timeout=settings.SCHEDULE_API_TIMEOUT,
            **kwargs,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def scoreboard_url(self, sport: Sport, date_key: str) -> str:
        path = get_profile(sport).schedule_path
        return f"{self.base_url}/{path}/scoreboard?dates={scoreboard_date_param(date_key)}"

    async def _get_json(self, url: str) -> Dict[str, Any]:
        client = await self._get_client()
        with self.breaker.calling():
            response = await client.get(url)
            response.raise_for_status()
            return response.json()

    async def _fetch_json(self, url: str) -> Dict[str, Any]:
        """GET a scoreboard through the breaker, retrying transient HTTP errors."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type(httpx.HTTPError),
            reraise=True,
        )
        try:
            return await retrying(self._get_json, url)
        except CircuitBreakerError as e:
            raise ProviderUnavailableError(PROVIDER_NAME, f"circuit breaker open for {url}") from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(PROVIDER_NAME, f"request to {url} failed: {e}") from e
        except ValueError as e:
            raise ProviderUnavailableError(PROVIDER_NAME, f"unreadable response from {url}: {e}") from e

    async def fetch_games(self, sport: Sport | str, date_key: str) -> List[ScheduledGame]:
        """
        Get one sport's games for a day.

        Args:
            sport: Concrete sport
            date_key: ISO YYYY-MM-DD date in Central Time

        Returns:
            Validated games (possibly empty on a day without games)

        Raises:
            ProviderUnavailableError: if the scoreboard could not be read
        """
        sport = Sport(sport.upper()) if isinstance(sport, str) else sport
        data = await self._fetch_json(self.scoreboard_url(sport, date_key))
        events = data.get("events") if isinstance(data, dict) else None
        if not isinstance(events, list):
            raise ProviderUnavailableError(PROVIDER_NAME, f"scoreboard for {sport.value} has no events list")

        payloads = []
        for event in events:
            payload = _read_event(event, sport)
            if payload is not None:
                payloads.append(payload)
        games = self.validator.ingest_games(payloads)
        logger.info(f"Fetched {len(games)} {sport.value} games for {date_key}")
        return games

    async def fetch_schedule(self, sports: Iterable[Sport | str], date_key: str) -> List[ScheduledGame]:
        """
        Get every requested sport's games for a day, one request per sport
        in parallel.

        Raises:
            ProviderUnavailableError: if any sport could not be read; the
                                      other requests are cancelled and no
                                      partial schedule is returned
        """
        tasks = [asyncio.ensure_future(self.fetch_games(sport, date_key)) for sport in sports]
        try:
            per_sport = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return [game for games in per_sport for game in games]
