# football_api.py
#
# Thin client for the RapidAPI "free-api-live-football-data" service.
# - team roster (football-get-list-player)
# - team details (football-get-team-by-id)
# Responses are validated with pydantic before anything downstream touches them.

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import requests  # type: ignore[import]
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config import (  # type: ignore[import]
    HTTP_TIMEOUT_SECONDS,
    IMPORT_MAX_RETRIES,
    IMPORT_RETRY_DELAY_SECONDS,
    RAPIDAPI_BASE_URL,
    RAPIDAPI_HOST,
    RAPIDAPI_KEY,
)

logger = logging.getLogger(__name__)


class FootballApiError(RuntimeError):
    """Raised when an endpoint keeps failing or returns garbage."""


# ---------------------------------------------------------------------------
# Response DTOs
# ---------------------------------------------------------------------------


class MemberRole(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: Optional[str] = None


class SquadMember(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[int] = None
    name: str
    age: Optional[int] = None
    ccode: Optional[str] = None
    cname: Optional[str] = None
    role: Optional[MemberRole] = None
    exclude_from_ranking: bool = Field(default=False, alias="excludeFromRanking")
    position_ids_desc: Optional[str] = Field(default=None, alias="positionIdsDesc")
    image: Optional[str] = None
    img: Optional[str] = None
    photo: Optional[str] = None

    @property
    def is_coach(self) -> bool:
        return self.role is not None and self.role.key == "coach"

    @property
    def image_url(self) -> Optional[str]:
        return self.image or self.img or self.photo


class SquadGroup(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    members: List[SquadMember] = Field(default_factory=list)


class SquadList(BaseModel):
    model_config = ConfigDict(extra="ignore")

    squad: List[SquadGroup]


class SquadPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    squad_list: SquadList = Field(alias="list")


class SquadResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str
    message: Optional[str] = None
    response: SquadPayload


class TeamDetail(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    team_name: Optional[str] = None
    league: Optional[str] = None
    competition: Optional[str] = None
    country: Optional[str] = None
    nation: Optional[str] = None
    founded: Optional[Union[int, str]] = None
    venue: Optional[str] = None
    stadium: Optional[str] = None
    logo: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        return self.name or self.team_name

    @property
    def league_name(self) -> Optional[str]:
        return self.league or self.competition

    @property
    def country_name(self) -> Optional[str]:
        return self.country or self.nation


class TeamResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str
    message: Optional[str] = None
    response: TeamDetail


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

ResponseT = TypeVar("ResponseT", bound=BaseModel)


def _headers(api_key: Optional[str] = None) -> Dict[str, str]:
    return {
        "X-RapidAPI-Key": api_key if api_key is not None else RAPIDAPI_KEY,
        "X-RapidAPI-Host": RAPIDAPI_HOST,
    }


def _parse(data: Any, model: Type[ResponseT]) -> ResponseT:
    if not isinstance(data, dict) or data.get("status") != "success":
        message = data.get("message") if isinstance(data, dict) else None
        raise FootballApiError(f"Invalid API response: {message or 'Unknown error'}")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise FootballApiError(f"Invalid API response: {e.error_count()} validation error(s)") from e


def _get_with_retries(
    endpoint: str,
    team_id: str,
    model: Type[ResponseT],
    what: str,
    api_key: Optional[str],
    max_retries: int,
    retry_delay: float,
) -> ResponseT:
    """
    GET <endpoint>?teamid=<team_id>, retrying on any failure.

    Up to `max_retries` attempts with a fixed `retry_delay` between them.
    The last error is wrapped in FootballApiError.
    """
    url = f"{RAPIDAPI_BASE_URL}/{endpoint}"
    last_error: Optional[Exception] = None

    for attempt in range(1, max_retries + 1):
        logger.info(
            "[FootballAPI] %s attempt %d/%d for team %s", endpoint, attempt, max_retries, team_id
        )
        try:
            resp = requests.get(
                url,
                params={"teamid": team_id},
                headers=_headers(api_key),
                timeout=HTTP_TIMEOUT_SECONDS,
            )
            if not resp.ok:
                raise FootballApiError(f"API request failed with status: {resp.status_code}")
            return _parse(resp.json(), model)
        except (requests.RequestException, ValueError, FootballApiError) as e:
            last_error = e
            logger.warning("[FootballAPI] Attempt %d failed: %s", attempt, e)
            if attempt < max_retries:
                time.sleep(retry_delay)

    raise FootballApiError(
        f"Failed to fetch {what} data after {max_retries} attempts: {last_error}"
    )


def fetch_team_squad(
    team_id: str,
    api_key: Optional[str] = None,
    max_retries: int = IMPORT_MAX_RETRIES,
    retry_delay: float = IMPORT_RETRY_DELAY_SECONDS,
) -> List[SquadGroup]:
    """Roster groups (coach, defenders, ...) for a team."""
    parsed = _get_with_retries(
        "football-get-list-player", team_id, SquadResponse, "player",
        api_key, max_retries, retry_delay,
    )
    groups = parsed.response.squad_list.squad
    logger.info("[FootballAPI] Team %s: %d squad groups", team_id, len(groups))
    return groups


def fetch_team(
    team_id: str,
    api_key: Optional[str] = None,
    max_retries: int = IMPORT_MAX_RETRIES,
    retry_delay: float = IMPORT_RETRY_DELAY_SECONDS,
) -> TeamDetail:
    """Name, league and country of a team."""
    parsed = _get_with_retries(
        "football-get-team-by-id", team_id, TeamResponse, "team",
        api_key, max_retries, retry_delay,
    )
    return parsed.response
