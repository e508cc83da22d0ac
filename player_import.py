# player_import.py
#
# Import teams and their rosters from the sports-data API.
# - import_team: store a team (name, league, country) by its API id
# - import_team_players: insert a team's roster into the players table
# - resolves the team name from the teams table when not given
# - skips the import if the club already has players (unless forced)
# - drops coaches / excluded members and de-duplicates by name
# - maps nationality codes to country names and regions

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

import player_db  # type: ignore[import]
from config import SEASON_YEAR  # type: ignore[import]
from football_api import SquadMember, fetch_team, fetch_team_squad  # type: ignore[import]
from models import Player  # type: ignore[import]

logger = logging.getLogger(__name__)

NATIONALITY_BY_CODE: Dict[str, str] = {
    "ENG": "England", "ESP": "Spain", "FRA": "France", "GER": "Germany",
    "ITA": "Italy", "BRA": "Brazil", "ARG": "Argentina", "POR": "Portugal",
    "NED": "Netherlands", "BEL": "Belgium", "CRO": "Croatia", "POL": "Poland",
    "URU": "Uruguay", "COL": "Colombia", "CZE": "Czechia", "WAL": "Wales",
    "SCO": "Scotland", "IRE": "Ireland", "NOR": "Norway", "SWE": "Sweden",
    "DEN": "Denmark", "AUT": "Austria", "SUI": "Switzerland", "SER": "Serbia",
    "TUR": "Turkey", "UKR": "Ukraine", "RUS": "Russia", "MEX": "Mexico",
    "USA": "United States", "CAN": "Canada", "JPN": "Japan", "KOR": "South Korea",
    "AUS": "Australia", "NZL": "New Zealand", "RSA": "South Africa",
    "NGA": "Nigeria", "GHA": "Ghana", "CMR": "Cameroon", "SEN": "Senegal",
    "MAR": "Morocco", "EGY": "Egypt", "ALG": "Algeria", "TUN": "Tunisia",
    "CIV": "Ivory Coast", "MLI": "Mali", "BFA": "Burkina Faso", "GUI": "Guinea",
    "LIB": "Liberia", "SLE": "Sierra Leone", "TOG": "Togo", "BEN": "Benin",
    "GAB": "Gabon", "CGO": "Congo", "ANG": "Angola", "ZAM": "Zambia",
    "ZIM": "Zimbabwe", "BOT": "Botswana", "NAM": "Namibia", "SWZ": "Eswatini",
}

REGIONS: Dict[str, List[str]] = {
    "Europe": [
        "England", "Spain", "France", "Germany", "Italy", "Portugal", "Netherlands",
        "Belgium", "Croatia", "Poland", "Czechia", "Wales", "Scotland", "Ireland",
        "Norway", "Sweden", "Denmark", "Austria", "Switzerland", "Serbia", "Turkey",
        "Ukraine", "Russia",
    ],
    "South America": ["Brazil", "Argentina", "Uruguay", "Colombia"],
    "North America": ["United States", "Canada", "Mexico"],
    "Africa": [
        "Nigeria", "Ghana", "Cameroon", "Senegal", "Morocco", "Egypt", "Algeria",
        "Tunisia", "Ivory Coast", "Mali", "Burkina Faso", "Guinea", "Liberia",
        "Sierra Leone", "Togo", "Benin", "Gabon", "Congo", "Angola", "Zambia",
        "Zimbabwe", "Botswana", "Namibia", "Eswatini", "South Africa",
    ],
    "Asia": ["Japan", "South Korea"],
    "Oceania": ["Australia", "New Zealand"],
}


def nationality_for(member: SquadMember) -> str:
    return NATIONALITY_BY_CODE.get(member.ccode or "") or member.cname or "Unknown"


def region_for(nationality: str) -> str:
    for region, countries in REGIONS.items():
        if nationality in countries:
            return region
    return "Unknown"


def positions_for(member: SquadMember) -> List[str]:
    if not member.position_ids_desc:
        return ["Unknown"]
    return [p.strip() for p in member.position_ids_desc.split(",")]


def member_to_player(member: SquadMember, club: str) -> Player:
    nationality = nationality_for(member)
    return Player(
        id=uuid.uuid4().hex,
        name=member.name,
        positions=positions_for(member),
        age=member.age or 0,
        club=club,
        nationality=nationality,
        region=region_for(nationality),
        image_url=member.image_url,
    )


def import_team_players(
    team_id: Any,
    season: int = SEASON_YEAR,
    team_name: Optional[str] = None,
    force_reimport: bool = False,
) -> Dict[str, Any]:
    """
    Pull a team's roster and insert the new players.

    Returns a summary dict (message, totalPlayersFound, playersInserted,
    duplicatesSkipped, teamId, teamName, forceReimport). Raises ValueError
    for a missing team id or a team that was never imported, and
    FootballApiError when the API keeps failing.
    """
    if not team_id:
        raise ValueError("Team ID is required")

    logger.info(
        "[Import] Team %s (%s), season %s, force_reimport=%s",
        team_id, team_name, season, force_reimport,
    )

    club = team_name or player_db.get_team_name(str(team_id))
    if not club:
        raise ValueError(
            f"Team with ID {team_id} not found in database. Please import teams first."
        )

    existing = player_db.count_club_players(club)
    if existing > 0 and not force_reimport:
        logger.info("[Import] %s already has %d players; skipping", club, existing)
        return {
            "message": f"Players already exist for {club}. Use force_reimport=true to overwrite.",
            "totalPlayersFound": existing,
            "playersInserted": 0,
            "duplicatesSkipped": 0,
            "teamId": team_id,
            "teamName": club,
            "forceReimport": False,
            "skipped": True,
        }

    # The club's players are only deleted once the new roster is in hand.
    groups = fetch_team_squad(str(team_id))

    if force_reimport:
        removed = player_db.delete_club_players(club)
        logger.info("[Import] Force reimport: deleted %d players for %s", removed, club)

    seen = player_db.player_names_lower()
    total_found = 0
    duplicates = 0
    new_players: List[Player] = []

    for group in groups:
        for member in group.members:
            if member.is_coach or member.exclude_from_ranking:
                logger.debug("[Import] Skipping non-player %s", member.name)
                continue

            total_found += 1
            key = member.name.lower()
            if key in seen:
                duplicates += 1
                logger.debug("[Import] Skipping duplicate %s", member.name)
                continue

            seen.add(key)
            new_players.append(member_to_player(member, club))

    inserted = player_db.upsert_players(new_players)

    logger.info(
        "[Import] %s: found %d, inserted %d, skipped %d duplicates",
        club, total_found, inserted, duplicates,
    )

    message = f"Successfully imported {inserted} players for {club}"
    if duplicates > 0:
        message += f" ({duplicates} duplicates skipped)"

    return {
        "message": message,
        "totalPlayersFound": total_found,
        "playersInserted": inserted,
        "duplicatesSkipped": duplicates,
        "teamId": team_id,
        "teamName": club,
        "forceReimport": force_reimport,
    }


def import_team(team_id: Any, team_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Look a team up by its API id and store it, so its roster can be
    imported afterwards. `team_name` overrides the name the API returns.
    """
    if not team_id:
        raise ValueError("Team ID is required")

    team_id = str(team_id)
    existed = player_db.get_team_name(team_id) is not None
    detail = fetch_team(team_id)

    name = team_name or detail.display_name or f"Team {team_id}"
    player_db.add_team(name, team_id, league=detail.league_name, country=detail.country_name)
    logger.info("[Import] Team %s stored as %s (new=%s)", team_id, name, not existed)

    if existed:
        message = f"Updated team {name}"
    else:
        message = f"Successfully imported team {name}"
    return {
        "message": message,
        "inserted": not existed,
        "teamId": team_id,
        "teamName": name,
        "league": detail.league_name,
        "country": detail.country_name,
    }
