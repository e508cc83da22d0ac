# player_db.py
#
# sqlite storage for SquadIQ: players, teams, shortlists, depth charts,
# saved squad configurations, My Rating weights and scouting reports.

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from config import DB_PATH as _CONFIG_DB_PATH  # type: ignore[import]
from models import (  # type: ignore[import]
    Player,
    PositionSlot,
    ScoutingReport,
    Shortlist,
    SquadConfiguration,
)

# Overridable at runtime (tests point this at a temp file).
DB_PATH: Path = Path(_CONFIG_DB_PATH)


def _get_conn() -> sqlite3.Connection:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def init_db() -> None:
    conn = _get_conn()
    cur = conn.cursor()

    # Every player we know about: the club's own squad and external targets.
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS players (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            age INTEGER NOT NULL DEFAULT 0,
            club TEXT NOT NULL DEFAULT '',
            nationality TEXT NOT NULL DEFAULT 'Unknown',
            positions TEXT NOT NULL,
            transferroom_rating REAL,
            xtv_score REAL,
            future_rating REAL,
            contract_expiry TEXT,
            is_private_player INTEGER NOT NULL DEFAULT 0,
            region TEXT,
            eu_gbe_status TEXT,
            image_url TEXT
        )
        """
    )

    # Teams known to the sports-data provider.
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS teams (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            external_api_id TEXT UNIQUE,
            league TEXT,
            country TEXT
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS shortlists (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            is_scouting_assignment_list INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS shortlist_players (
            shortlist_id TEXT NOT NULL,
            player_id TEXT NOT NULL,
            added_at TEXT NOT NULL,
            PRIMARY KEY (shortlist_id, player_id),
            FOREIGN KEY(shortlist_id) REFERENCES shortlists(id) ON DELETE CASCADE
        )
        """
    )

    # Depth charts per (club, formation, squad type); alternates stored as JSON.
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS position_slots (
            club TEXT NOT NULL,
            formation TEXT NOT NULL,
            squad_type TEXT NOT NULL,
            position TEXT NOT NULL,
            active_player_id TEXT NOT NULL,
            alternate_player_ids TEXT NOT NULL DEFAULT '[]',
            PRIMARY KEY (club, formation, squad_type, position)
        )
        """
    )

    # Named pitch line-ups; position_assignments is a JSON {slot: player_id}.
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS squad_configurations (
            id TEXT PRIMARY KEY,
            club TEXT NOT NULL,
            name TEXT NOT NULL,
            formation TEXT NOT NULL,
            squad_type TEXT NOT NULL,
            position_assignments TEXT NOT NULL DEFAULT '{}',
            description TEXT NOT NULL DEFAULT '',
            is_default INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS rating_weights (
            club TEXT PRIMARY KEY,
            weights TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )

    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS scouting_reports (
            id TEXT PRIMARY KEY,
            player_id TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'draft',
            summary TEXT NOT NULL DEFAULT '',
            created_at TEXT NOT NULL
        )
        """
    )

    conn.commit()
    conn.close()


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------


def _row_to_player(row: sqlite3.Row) -> Player:
    expiry = row["contract_expiry"]
    return Player(
        id=row["id"],
        name=row["name"],
        positions=json.loads(row["positions"]),
        age=row["age"],
        club=row["club"],
        nationality=row["nationality"],
        transferroom_rating=row["transferroom_rating"],
        xtv_score=row["xtv_score"],
        future_rating=row["future_rating"],
        contract_expiry=date.fromisoformat(expiry) if expiry else None,
        is_private_player=bool(row["is_private_player"]),
        region=row["region"],
        eu_gbe_status=row["eu_gbe_status"],
        image_url=row["image_url"],
    )


def upsert_player(p: Player) -> None:
    upsert_players([p])


def upsert_players(players: Iterable[Player]) -> int:
    conn = _get_conn()
    cur = conn.cursor()
    count = 0
    for p in players:
        cur.execute(
            """
            INSERT INTO players (
                id, name, age, club, nationality, positions,
                transferroom_rating, xtv_score, future_rating, contract_expiry,
                is_private_player, region, eu_gbe_status, image_url
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                age=excluded.age,
                club=excluded.club,
                nationality=excluded.nationality,
                positions=excluded.positions,
                transferroom_rating=excluded.transferroom_rating,
                xtv_score=excluded.xtv_score,
                future_rating=excluded.future_rating,
                contract_expiry=excluded.contract_expiry,
                is_private_player=excluded.is_private_player,
                region=excluded.region,
                eu_gbe_status=excluded.eu_gbe_status,
                image_url=excluded.image_url
            """,
            (
                p.id,
                p.name,
                p.age,
                p.club,
                p.nationality,
                json.dumps(list(p.positions)),
                p.transferroom_rating,
                p.xtv_score,
                p.future_rating,
                p.contract_expiry.isoformat() if p.contract_expiry else None,
                int(p.is_private_player),
                p.region,
                p.eu_gbe_status,
                p.image_url,
            ),
        )
        count += 1
    conn.commit()
    conn.close()
    return count


def list_players() -> List[Player]:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("SELECT * FROM players ORDER BY name")
    rows = cur.fetchall()
    conn.close()
    return [_row_to_player(r) for r in rows]


def get_player(player_id: str) -> Optional[Player]:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("SELECT * FROM players WHERE id = ?", (player_id,))
    row = cur.fetchone()
    conn.close()
    return _row_to_player(row) if row else None


def delete_player(player_id: str) -> bool:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("DELETE FROM players WHERE id = ?", (player_id,))
    deleted = cur.rowcount > 0
    conn.commit()
    conn.close()
    return deleted


def count_club_players(club: str) -> int:
    """Rows whose club column equals `club` exactly (import uses this)."""
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("SELECT COUNT(*) AS n FROM players WHERE club = ?", (club,))
    n = cur.fetchone()["n"]
    conn.close()
    return int(n)


def delete_club_players(club: str) -> int:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("DELETE FROM players WHERE club = ?", (club,))
    n = cur.rowcount
    conn.commit()
    conn.close()
    return n


def player_names_lower() -> set[str]:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("SELECT name FROM players")
    rows = cur.fetchall()
    conn.close()
    return {r["name"].lower() for r in rows}


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------


def add_team(
    name: str,
    external_api_id: str,
    league: Optional[str] = None,
    country: Optional[str] = None,
) -> int:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO teams (name, external_api_id, league, country) VALUES (?, ?, ?, ?)
        ON CONFLICT(external_api_id) DO UPDATE SET
            name=excluded.name,
            league=COALESCE(excluded.league, teams.league),
            country=COALESCE(excluded.country, teams.country)
        """,
        (name, str(external_api_id), league, country),
    )
    conn.commit()
    cur.execute("SELECT id FROM teams WHERE external_api_id = ?", (str(external_api_id),))
    team_id = cur.fetchone()["id"]
    conn.close()
    return int(team_id)


def list_teams() -> List[Dict[str, Any]]:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("SELECT id, name, external_api_id, league, country FROM teams ORDER BY name")
    rows = cur.fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_team_name(external_api_id: str) -> Optional[str]:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        "SELECT name FROM teams WHERE external_api_id = ?", (str(external_api_id),)
    )
    row = cur.fetchone()
    conn.close()
    return row["name"] if row else None


# ---------------------------------------------------------------------------
# Shortlists
# ---------------------------------------------------------------------------


def create_shortlist(
    name: str, description: str = "", is_scouting_assignment_list: bool = False
) -> Shortlist:
    shortlist_id = uuid.uuid4().hex
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO shortlists (id, name, description, is_scouting_assignment_list, created_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (shortlist_id, name, description, int(is_scouting_assignment_list), _now()),
    )
    conn.commit()
    conn.close()
    return Shortlist(shortlist_id, name, description, [], is_scouting_assignment_list)


def _shortlist_player_ids(cur: sqlite3.Cursor, shortlist_id: str) -> List[str]:
    cur.execute(
        "SELECT player_id FROM shortlist_players WHERE shortlist_id = ? ORDER BY added_at, player_id",
        (shortlist_id,),
    )
    return [r["player_id"] for r in cur.fetchall()]


def list_shortlists() -> List[Shortlist]:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("SELECT * FROM shortlists ORDER BY created_at, name")
    rows = cur.fetchall()
    result = [
        Shortlist(
            id=r["id"],
            name=r["name"],
            description=r["description"],
            player_ids=_shortlist_player_ids(cur, r["id"]),
            is_scouting_assignment_list=bool(r["is_scouting_assignment_list"]),
        )
        for r in rows
    ]
    conn.close()
    return result


def get_shortlist(shortlist_id: str) -> Optional[Shortlist]:
    for s in list_shortlists():
        if s.id == shortlist_id:
            return s
    return None


def add_to_shortlist(shortlist_id: str, player_id: str) -> None:
    if get_shortlist(shortlist_id) is None:
        raise KeyError(f"Unknown shortlist: {shortlist_id}")
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT OR IGNORE INTO shortlist_players (shortlist_id, player_id, added_at)
        VALUES (?, ?, ?)
        """,
        (shortlist_id, player_id, _now()),
    )
    conn.commit()
    conn.close()


def remove_from_shortlist(shortlist_id: str, player_id: str) -> bool:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        "DELETE FROM shortlist_players WHERE shortlist_id = ? AND player_id = ?",
        (shortlist_id, player_id),
    )
    removed = cur.rowcount > 0
    conn.commit()
    conn.close()
    return removed


# ---------------------------------------------------------------------------
# Depth charts
# ---------------------------------------------------------------------------


def load_position_slots(club: str, formation: str, squad_type: str) -> List[PositionSlot]:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT position, active_player_id, alternate_player_ids FROM position_slots
        WHERE club = ? AND formation = ? AND squad_type = ?
        ORDER BY position
        """,
        (club, formation, squad_type),
    )
    rows = cur.fetchall()
    conn.close()
    return [
        PositionSlot(r["position"], r["active_player_id"], json.loads(r["alternate_player_ids"]))
        for r in rows
    ]


def save_position_slots(
    club: str, formation: str, squad_type: str, slots: List[PositionSlot]
) -> None:
    """
    Replace the stored depth chart for (club, formation, squad_type).
    """
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        "DELETE FROM position_slots WHERE club = ? AND formation = ? AND squad_type = ?",
        (club, formation, squad_type),
    )
    for s in slots:
        cur.execute(
            """
            INSERT INTO position_slots
                (club, formation, squad_type, position, active_player_id, alternate_player_ids)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (club, formation, squad_type, s.position, s.active_player_id, json.dumps(s.alternate_player_ids)),
        )
    conn.commit()
    conn.close()


# ---------------------------------------------------------------------------
# Saved squad configurations
# ---------------------------------------------------------------------------


def _row_to_configuration(row: sqlite3.Row) -> SquadConfiguration:
    return SquadConfiguration(
        id=row["id"],
        club=row["club"],
        name=row["name"],
        formation=row["formation"],
        squad_type=row["squad_type"],
        position_assignments=json.loads(row["position_assignments"]),
        description=row["description"],
        is_default=bool(row["is_default"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def save_squad_configuration(
    club: str,
    name: str,
    formation: str,
    squad_type: str,
    position_assignments: Dict[str, str],
    description: str = "",
    is_default: bool = False,
) -> SquadConfiguration:
    now = _now()
    config = SquadConfiguration(
        id=uuid.uuid4().hex,
        club=club,
        name=name,
        formation=formation,
        squad_type=squad_type,
        position_assignments=dict(position_assignments),
        description=description,
        is_default=is_default,
        created_at=now,
        updated_at=now,
    )
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO squad_configurations (
            id, club, name, formation, squad_type, position_assignments,
            description, is_default, created_at, updated_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            config.id,
            club,
            name,
            formation,
            squad_type,
            json.dumps(config.position_assignments),
            description,
            int(is_default),
            now,
            now,
        ),
    )
    conn.commit()
    conn.close()
    return config


def list_squad_configurations(club: str) -> List[SquadConfiguration]:
    """The club's saved configurations, newest first."""
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        "SELECT * FROM squad_configurations WHERE club = ? ORDER BY created_at DESC, name",
        (club,),
    )
    rows = cur.fetchall()
    conn.close()
    return [_row_to_configuration(r) for r in rows]


def get_squad_configuration(config_id: str) -> Optional[SquadConfiguration]:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("SELECT * FROM squad_configurations WHERE id = ?", (config_id,))
    row = cur.fetchone()
    conn.close()
    return _row_to_configuration(row) if row else None


_CONFIGURATION_FIELDS = (
    "name", "formation", "squad_type", "position_assignments", "description", "is_default",
)


def update_squad_configuration(config_id: str, **changes: Any) -> SquadConfiguration:
    """
    Update some fields of a saved configuration. None values are left alone.
    Raises KeyError for an unknown id or field.
    """
    config = get_squad_configuration(config_id)
    if config is None:
        raise KeyError(f"Unknown squad configuration: {config_id}")

    for key, value in changes.items():
        if key not in _CONFIGURATION_FIELDS:
            raise KeyError(f"Unknown squad configuration field: {key}")
        if value is not None:
            setattr(config, key, value)
    config.updated_at = _now()

    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        UPDATE squad_configurations SET
            name = ?, formation = ?, squad_type = ?, position_assignments = ?,
            description = ?, is_default = ?, updated_at = ?
        WHERE id = ?
        """,
        (
            config.name,
            config.formation,
            config.squad_type,
            json.dumps(config.position_assignments),
            config.description,
            int(config.is_default),
            config.updated_at,
            config_id,
        ),
    )
    conn.commit()
    conn.close()
    return config


def delete_squad_configuration(config_id: str) -> bool:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("DELETE FROM squad_configurations WHERE id = ?", (config_id,))
    deleted = cur.rowcount > 0
    conn.commit()
    conn.close()
    return deleted


# ---------------------------------------------------------------------------
# My Rating weights
# ---------------------------------------------------------------------------


def load_rating_weights(club: str) -> Optional[Dict[str, Any]]:
    """
    Return the club's stored weights, or None if the club never saved any;
    callers fall back to the defaults.
    """
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("SELECT weights FROM rating_weights WHERE club = ?", (club,))
    row = cur.fetchone()
    conn.close()
    return json.loads(row["weights"]) if row else None


def save_rating_weights(club: str, weights: Dict[str, Any]) -> None:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO rating_weights (club, weights, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT(club) DO UPDATE SET
            weights=excluded.weights,
            updated_at=excluded.updated_at
        """,
        (club, json.dumps(weights), _now()),
    )
    conn.commit()
    conn.close()


def delete_rating_weights(club: str) -> None:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("DELETE FROM rating_weights WHERE club = ?", (club,))
    conn.commit()
    conn.close()


# ---------------------------------------------------------------------------
# Scouting reports
# ---------------------------------------------------------------------------


def add_scouting_report(player_id: str, summary: str = "", status: str = "draft") -> ScoutingReport:
    report = ScoutingReport(
        id=uuid.uuid4().hex,
        player_id=player_id,
        status=status,
        summary=summary,
        created_at=_now(),
    )
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO scouting_reports (id, player_id, status, summary, created_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (report.id, report.player_id, report.status, report.summary, report.created_at),
    )
    conn.commit()
    conn.close()
    return report


def list_scouting_reports() -> List[ScoutingReport]:
    conn = _get_conn()
    cur = conn.cursor()
    cur.execute("SELECT * FROM scouting_reports ORDER BY created_at DESC")
    rows = cur.fetchall()
    conn.close()
    return [
        ScoutingReport(r["id"], r["player_id"], r["status"], r["summary"], r["created_at"])
        for r in rows
    ]
