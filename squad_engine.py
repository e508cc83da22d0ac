# squad_engine.py
#
# Core squad logic for SquadIQ.
# - Ranks players for a formation slot
# - Auto-fills first-team / shadow squad slots
# - Reports position depth and contract / age risk
# - Analyses the squad by position bucket and suggests recruitment targets
#
# Used both by the CLI entrypoint AND the FastAPI app (via run_squad_for_club).

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from config import (  # type: ignore[import]
    AGE_WARNING_OVER,
    CLUB_KEYWORD,
    CONTRACT_HIGH_RISK_DAYS,
    CONTRACT_WARNING_DAYS,
    DEFAULT_COMPETITION,
    DEFAULT_FORMATION,
    RECOMMENDATION_LIMIT,
    RECOMMENDED_MIN_RATING,
    RECRUITMENT_AGE_RISK_FROM,
    RECRUITMENT_CONTRACT_MONTHS,
)
from models import Player, Shortlist, SlotAssignment  # type: ignore[import]
from positions import (  # type: ignore[import]
    FORMATIONS,
    POSITION_BUCKETS,
    PositionBucket,
    bucket_for_slot,
    formation_slots,
    get_bucket,
    in_bucket,
    is_eligible,
    slot_label,
    squad_category,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants / helpers
# ---------------------------------------------------------------------------

FIRST_TEAM = "first-team"
SHADOW = "shadow"
SQUAD_TYPES = {FIRST_TEAM, SHADOW}

PRIORITY_ORDER = {"Critical": 0, "High": 1, "Medium": 2, "Low": 3, "Strong": 4}


def player_rating(p: Player) -> float:
    """Ranking score: the better of TransferRoom rating and XTV, never below 0."""
    return max(p.transferroom_rating or 0.0, p.xtv_score or 0.0, 0.0)


def is_club_player(p: Player, club_keyword: str = CLUB_KEYWORD) -> bool:
    """True for any row belonging to the club (first team, academy, loans)."""
    return club_keyword.lower() in (p.club or "").lower()


def is_external_player(p: Player, club_keyword: str = CLUB_KEYWORD) -> bool:
    return not is_club_player(p, club_keyword)


def _today(today: Optional[date]) -> date:
    return today if today is not None else date.today()


def player_to_dict(p: Optional[Player], today: Optional[date] = None) -> Dict[str, Any]:
    """
    Convert a Player dataclass into a JSON-serializable dict suitable for the API.

    Includes the derived rating and warning flags so clients don't have to
    recompute them.
    """
    if p is None:
        return {}

    return {
        "id": p.id,
        "name": p.name,
        "age": p.age,
        "club": p.club,
        "nationality": p.nationality,
        "positions": list(p.positions),
        "category": squad_category(p),
        "rating": player_rating(p),
        "transferroom_rating": p.transferroom_rating,
        "xtv_score": p.xtv_score,
        "future_rating": p.future_rating,
        "contract_expiry": p.contract_expiry.isoformat() if p.contract_expiry else None,
        "is_private_player": bool(p.is_private_player),
        "eu_gbe_status": p.eu_gbe_status,
        "is_external": is_external_player(p),
        "warning": has_warning(p, today),
        "contract_risk": contract_risk_level(p, today),
    }


# ---------------------------------------------------------------------------
# 1) Ranking & auto-assignment
# ---------------------------------------------------------------------------


def rank_players(players: Iterable[Player], slot_code: str) -> List[Player]:
    """
    Eligible players for a slot, best first.

    sorted() is stable, so equally rated players keep their input order.
    """
    eligible = [p for p in players if is_eligible(p, slot_code)]
    return sorted(eligible, key=player_rating, reverse=True)


def auto_assign(
    players: Sequence[Player],
    slots: Sequence[str],
    squad_type: str = FIRST_TEAM,
    assignments: Optional[Dict[str, str]] = None,
    first_team_ids: Optional[Iterable[str]] = None,
) -> List[SlotAssignment]:
    """
    Fill formation slots from a player pool.

    - explicit assignments (slot -> player id) win and claim their player;
      an id named by several slots is honoured only for the first of them
      in formation order, later slots fall back to the automatic pick
    - first-team: greedy, in formation order; a claimed player can't be reused
    - shadow: first-team players are removed from the pool, explicit ids
      included, then each slot takes its best eligible player (slots may
      share a player)
    """
    if squad_type not in SQUAD_TYPES:
        raise ValueError(f"Unknown squad type: {squad_type}")

    assignments = assignments or {}

    pool: List[Player] = list(players)
    if squad_type == SHADOW:
        excluded = set(first_team_ids or ())
        pool = [p for p in pool if p.id not in excluded]
    by_id = {p.id: p for p in pool}

    explicit: Dict[str, str] = {}
    claimed: Set[str] = set()
    for slot in slots:
        pid = assignments.get(slot)
        if pid in by_id and pid not in claimed:
            explicit[slot] = pid
            claimed.add(pid)

    result: List[SlotAssignment] = []
    for slot in slots:
        if slot in explicit:
            chosen = by_id[explicit[slot]]
            result.append(SlotAssignment(slot, chosen, rank_players(pool, slot)))
            continue

        if squad_type == FIRST_TEAM:
            candidates = rank_players(
                (p for p in pool if p.id not in claimed), slot
            )
            best = candidates[0] if candidates else None
            if best is not None:
                claimed.add(best.id)
            result.append(SlotAssignment(slot, best, candidates))
        else:
            candidates = rank_players(pool, slot)
            result.append(
                SlotAssignment(slot, candidates[0] if candidates else None, candidates)
            )

    return result


def assigned_player_ids(assignments: Iterable[SlotAssignment]) -> Set[str]:
    return {a.player.id for a in assignments if a.player is not None}


def first_team_player_ids(
    squad: Sequence[Player],
    formation: Optional[str],
    assignments: Optional[Dict[str, str]] = None,
) -> Set[str]:
    """Players the first team would field; the shadow squad may not use them."""
    filled = auto_assign(squad, formation_slots(formation), FIRST_TEAM, assignments)
    return assigned_player_ids(filled)


def available_for_slot(
    slot_code: str,
    players: Sequence[Player],
    current: Sequence[SlotAssignment],
    squad_type: str = FIRST_TEAM,
    first_team_ids: Optional[Iterable[str]] = None,
) -> List[Player]:
    """
    Every eligible player the slot could switch to.

    Players active in *other* slots are hidden; the slot's own player stays
    so it still shows up in its own picker. Shadow squads also hide the
    first team.
    """
    taken = {
        a.player.id for a in current if a.player is not None and a.slot != slot_code
    }
    if squad_type == SHADOW:
        taken |= set(first_team_ids or ())
    return rank_players((p for p in players if p.id not in taken), slot_code)


# ---------------------------------------------------------------------------
# 2) Position depth & risk
# ---------------------------------------------------------------------------


@dataclass
class PositionDepth:
    slot: str
    label: str
    count: int
    color: str
    warnings: int
    league_average: Optional[float] = None
    club_average: Optional[float] = None
    players: List[Player] = field(default_factory=list)


def depth_color(count: int) -> str:
    """Traffic light: red for 0-1 players, amber for 2, green for 3+."""
    if count >= 3:
        return "green"
    if count == 2:
        return "amber"
    return "red"


def has_contract_risk(p: Player, today: Optional[date] = None) -> bool:
    """Contract runs out (or already has) within the warning window."""
    if p.contract_expiry is None:
        return False
    return (p.contract_expiry - _today(today)).days <= CONTRACT_WARNING_DAYS


def has_age_risk(p: Player) -> bool:
    return p.age > AGE_WARNING_OVER


def has_warning(p: Player, today: Optional[date] = None) -> bool:
    return has_contract_risk(p, today) or has_age_risk(p)


def contract_risk_level(p: Player, today: Optional[date] = None) -> str:
    """Badge level for the pitch: none / low / medium / high."""
    if p.contract_expiry is None:
        return "none"
    days_left = (p.contract_expiry - _today(today)).days
    if days_left < CONTRACT_HIGH_RISK_DAYS:
        return "high"
    if days_left < CONTRACT_WARNING_DAYS:
        return "medium"
    return "low"


def position_depth(
    slot_code: str,
    players: Sequence[Player],
    league_table: Any = None,
    competition: Optional[str] = None,
    today: Optional[date] = None,
    club_keyword: str = CLUB_KEYWORD,
) -> PositionDepth:
    """
    Depth summary for one slot: eligible headcount, traffic light, number of
    players flagged for contract or age risk, and the league / club average
    rating for the position when a league table is supplied.
    """
    # Local import keeps pandas out of the pure ranking path.
    from league_ratings import club_average, league_average  # type: ignore[import]

    eligible = rank_players(players, slot_code)
    warnings = sum(1 for p in eligible if has_warning(p, today))

    league_avg = None
    club_avg = None
    if league_table is not None:
        league_avg = league_average(league_table, slot_code, competition)
        club_avg = club_average(league_table, slot_code, club_keyword, competition)

    return PositionDepth(
        slot=slot_code,
        label=slot_label(slot_code),
        count=len(eligible),
        color=depth_color(len(eligible)),
        warnings=warnings,
        league_average=league_avg,
        club_average=club_avg,
        players=eligible,
    )


# ---------------------------------------------------------------------------
# 3) Recruitment analysis
# ---------------------------------------------------------------------------


@dataclass
class PositionAnalysis:
    name: str
    display_name: str
    required_positions: List[str]
    current: int
    needed: int
    average_rating: int
    top_rating: int
    priority: str
    recommendation: str
    strength_description: str
    recruitment_suggestion: str
    contract_risks: int
    age_risks: int
    players: List[Player] = field(default_factory=list)


def _recruitment_contract_risk(p: Player, today: date) -> bool:
    # Months are counted as 30-day blocks; expired contracts count as risks.
    if p.contract_expiry is None:
        return False
    months_left = (p.contract_expiry - today).days // 30
    return months_left <= RECRUITMENT_CONTRACT_MONTHS


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def _classify(
    bucket: PositionBucket,
    current: int,
    average: float,
    top: float,
    contract_risks: int,
    age_risks: int,
):
    """Decision table -> (priority, recommendation, strength, suggestion)."""
    needed = bucket.needed
    if current == 0:
        return (
            "Critical",
            f"URGENT: No players available for {bucket.display_name}",
            "Critical gap",
            "Immediate recruitment required - consider multiple targets",
        )
    if current < needed / 2:
        return (
            "Critical",
            f"Severely understaffed - need {needed - current} more players",
            "Major weakness",
            "Priority recruitment target - focus on proven quality",
        )
    if current < needed:
        if average < 65:
            return (
                "High",
                f"Need {needed - current} more players and quality improvement",
                "Below average quality",
                "Target higher-rated players to improve squad depth and quality",
            )
        return (
            "Medium",
            f"Need {needed - current} more players for adequate depth",
            "Adequate quality, limited depth",
            "Add depth with promising young players or experienced squad players",
        )
    if average >= 75 and top >= 80:
        return (
            "Strong",
            f"Excellent depth and quality in {bucket.display_name}",
            "Squad strength",
            "Consider selling surplus players or focus on youth development",
        )
    if contract_risks > current / 2 or age_risks > current / 2:
        return (
            "Medium",
            "Good numbers but contract/age concerns need attention",
            "Risk management needed",
            "Plan for contract renewals or identify younger replacements",
        )
    return (
        "Low",
        "Adequate depth and quality",
        "Satisfactory",
        "Monitor for opportunities to upgrade quality",
    )


def analyze_bucket(
    bucket: PositionBucket, squad: Sequence[Player], today: Optional[date] = None
) -> PositionAnalysis:
    day = _today(today)
    members = [p for p in squad if in_bucket(p, bucket)]
    ratings = [player_rating(p) for p in members]

    current = len(members)
    average = sum(ratings) / len(ratings) if ratings else 0.0
    top = max(ratings) if ratings else 0.0
    contract_risks = sum(1 for p in members if _recruitment_contract_risk(p, day))
    age_risks = sum(1 for p in members if p.age >= RECRUITMENT_AGE_RISK_FROM)

    priority, recommendation, strength, suggestion = _classify(
        bucket, current, average, top, contract_risks, age_risks
    )

    return PositionAnalysis(
        name=bucket.name,
        display_name=bucket.display_name,
        required_positions=sorted(bucket.required_positions),
        current=current,
        needed=bucket.needed,
        average_rating=_round_half_up(average),
        top_rating=_round_half_up(top),
        priority=priority,
        recommendation=recommendation,
        strength_description=strength,
        recruitment_suggestion=suggestion,
        contract_risks=contract_risks,
        age_risks=age_risks,
        players=sorted(members, key=player_rating, reverse=True),
    )


def analyze_squad(
    squad: Sequence[Player], today: Optional[date] = None
) -> List[PositionAnalysis]:
    """One PositionAnalysis per bucket, in bucket order (GK, CB, FB, CM, W, ST)."""
    return [analyze_bucket(b, squad, today) for b in POSITION_BUCKETS]


def sort_by_priority(analyses: Iterable[PositionAnalysis]) -> List[PositionAnalysis]:
    return sorted(analyses, key=lambda a: PRIORITY_ORDER[a.priority])


def recruitment_candidates(
    bucket_name: str,
    squad: Sequence[Player],
    pool: Sequence[Player],
    limit: int = RECOMMENDATION_LIMIT,
) -> List[Player]:
    """Best players in the wider pool who fit the bucket and aren't in the squad."""
    bucket = get_bucket(bucket_name)
    squad_ids = {p.id for p in squad}
    eligible = [p for p in pool if in_bucket(p, bucket) and p.id not in squad_ids]
    eligible.sort(key=player_rating, reverse=True)
    return eligible[:limit]


def shortlisted_for_slot(
    slot_code: str,
    shortlists: Iterable[Shortlist],
    pool: Sequence[Player],
    excluded_ids: Iterable[str] = (),
) -> List[Player]:
    """Shortlisted players who fit the slot's bucket and aren't already placed."""
    bucket = bucket_for_slot(slot_code)
    if bucket is None:
        return []
    listed: Set[str] = set()
    for s in shortlists:
        listed.update(s.player_ids)
    excluded = set(excluded_ids)
    found = [
        p for p in pool
        if p.id in listed and p.id not in excluded and in_bucket(p, bucket)
    ]
    return sorted(found, key=player_rating, reverse=True)


def recommended_for_slot(
    slot_code: str,
    squad: Sequence[Player],
    pool: Sequence[Player],
    excluded_ids: Iterable[str] = (),
    min_rating: float = RECOMMENDED_MIN_RATING,
    limit: int = RECOMMENDATION_LIMIT,
) -> List[Player]:
    """External targets for a slot: outside the squad and rated at least min_rating."""
    bucket = bucket_for_slot(slot_code)
    if bucket is None:
        return []
    skip = set(excluded_ids) | {p.id for p in squad}
    found = [
        p for p in pool
        if p.id not in skip
        and in_bucket(p, bucket)
        and (p.transferroom_rating or 0.0) >= min_rating
    ]
    found.sort(key=player_rating, reverse=True)
    return found[:limit]


# ---------------------------------------------------------------------------
# Public API: run_squad_for_club(...)
# ---------------------------------------------------------------------------


def _analysis_to_dict(a: PositionAnalysis, today: Optional[date] = None) -> Dict[str, Any]:
    return {
        "name": a.name,
        "display_name": a.display_name,
        "required_positions": a.required_positions,
        "current": a.current,
        "needed": a.needed,
        "average_rating": a.average_rating,
        "top_rating": a.top_rating,
        "priority": a.priority,
        "recommendation": a.recommendation,
        "strength_description": a.strength_description,
        "recruitment_suggestion": a.recruitment_suggestion,
        "contract_risks": a.contract_risks,
        "age_risks": a.age_risks,
        "players": [player_to_dict(p, today) for p in a.players],
    }


def _depth_to_dict(d: PositionDepth) -> Dict[str, Any]:
    return {
        "slot": d.slot,
        "label": d.label,
        "count": d.count,
        "color": d.color,
        "warnings": d.warnings,
        "league_average": d.league_average,
        "club_average": d.club_average,
    }


def build_squad_state(
    squad: Sequence[Player],
    pool: Sequence[Player],
    squad_type: str = FIRST_TEAM,
    formation: Optional[str] = None,
    assignments: Optional[Dict[str, str]] = None,
    first_team_ids: Optional[Iterable[str]] = None,
    league_table: Any = None,
    competition: Optional[str] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Pure version of run_squad_for_club(): everything is passed in.

    Returns a JSON-serializable dictionary describing:
      - pitch: list of {"slot", "label", "player", "alternatives", "depth"}
      - analysis: bucket analyses sorted by priority
      - total_rating: sum of the ratings of the players on the pitch
    """
    slots = formation_slots(formation)
    first_team_ids = list(first_team_ids or [])
    filled = auto_assign(squad, slots, squad_type, assignments, first_team_ids)

    pitch = []
    for a in filled:
        depth = position_depth(a.slot, squad, league_table, competition, today)
        alternatives = available_for_slot(a.slot, squad, filled, squad_type, first_team_ids)
        pitch.append(
            {
                "slot": a.slot,
                "label": slot_label(a.slot),
                "player": player_to_dict(a.player, today) if a.player is not None else None,
                "alternatives": [player_to_dict(p, today) for p in alternatives],
                "depth": _depth_to_dict(depth),
            }
        )

    analyses = sort_by_priority(analyze_squad(squad, today))
    total = sum(player_rating(a.player) for a in filled if a.player is not None)

    return {
        "squad_type": squad_type,
        "formation": formation if formation in FORMATIONS else DEFAULT_FORMATION,
        "pitch": pitch,
        "analysis": [_analysis_to_dict(a, today) for a in analyses],
        "empty_slots": [a.slot for a in filled if a.player is None],
        "total_rating": round(total, 1),
        "squad_size": len(squad),
        "pool_size": len(pool),
    }


def run_squad_for_club(
    squad_type: str = FIRST_TEAM,
    formation: Optional[str] = None,
    competition: Optional[str] = DEFAULT_COMPETITION,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Core function used by the FastAPI app and the CLI.

    Loads the club's players, stored depth charts and the league average
    table, then delegates to build_squad_state().
    """
    import player_db  # type: ignore[import]
    from config import CLUB_NAME  # type: ignore[import]
    from league_ratings import load_league_table  # type: ignore[import]

    formation = formation or DEFAULT_FORMATION
    pool = player_db.list_players()
    squad = [p for p in pool if is_club_player(p)]

    first_team_slots = player_db.load_position_slots(CLUB_NAME, formation, FIRST_TEAM)
    first_team_assignments = {s.position: s.active_player_id for s in first_team_slots}

    if squad_type == SHADOW:
        first_team_ids = first_team_player_ids(squad, formation, first_team_assignments)
        stored = player_db.load_position_slots(CLUB_NAME, formation, SHADOW)
        assignments = {s.position: s.active_player_id for s in stored}
    else:
        first_team_ids = set()
        assignments = first_team_assignments

    logger.info(
        "[Squad] %s %s: %d squad players, %d in pool",
        CLUB_NAME, squad_type, len(squad), len(pool),
    )

    state = build_squad_state(
        squad,
        pool,
        squad_type=squad_type,
        formation=formation,
        assignments=assignments,
        first_team_ids=first_team_ids,
        league_table=load_league_table(),
        competition=competition,
        today=today,
    )
    state["club"] = CLUB_NAME
    return state


# ---------------------------------------------------------------------------
# CLI entrypoint (still handy while developing)
# ---------------------------------------------------------------------------


def print_squad_report(state: Dict[str, Any]) -> None:
    """Pretty-print the same info that run_squad_for_club returns."""
    print(
        f"\n========= SQUADIQ: {state['squad_type'].upper()} "
        f"({state['formation']}) [{state.get('club', '')}] ========="
    )
    for s in state["pitch"]:
        p = s.get("player")
        depth = s["depth"]
        if not p:
            print(f"{s['slot']:5} -> [EMPTY]  depth {depth['count']} ({depth['color']})")
        else:
            flag = "  !" if p.get("warning") else ""
            print(
                f"{s['slot']:5} -> {p.get('name','UNKNOWN'):<24} "
                f"AGE {p.get('age', 0):>2}  "
                f"RATING {p.get('rating', 0.0):5.1f}  "
                f"depth {depth['count']} ({depth['color']}){flag}"
            )
    print(f"\nTOTAL PITCH RATING: {state['total_rating']:.1f}\n")

    print("============ RECRUITMENT PRIORITIES ============")
    for a in state["analysis"]:
        print(
            f"{a['priority']:<8} {a['display_name']:<18} "
            f"{a['current']}/{a['needed']}  avg {a['average_rating']:>3} "
            f"top {a['top_rating']:>3}  - {a['recommendation']}"
        )
    print("\n============================================================\n")


if __name__ == "__main__":
    import argparse
    import json

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")

    parser = argparse.ArgumentParser(
        description="SquadIQ: auto-fill the squad and list recruitment priorities."
    )
    parser.add_argument(
        "--squad",
        "-s",
        default=FIRST_TEAM,
        choices=sorted(SQUAD_TYPES),
        help=f"Squad type (default: {FIRST_TEAM})",
    )
    parser.add_argument(
        "--formation",
        "-f",
        default=DEFAULT_FORMATION,
        help=f"Formation (default: {DEFAULT_FORMATION})",
    )
    parser.add_argument(
        "--json-out",
        help="If set, write the squad state as JSON to this file instead of pretty-printing.",
    )

    args = parser.parse_args()
    state = run_squad_for_club(args.squad, args.formation)

    if args.json_out:
        with open(args.json_out, "w") as f:
            json.dump(state, f, indent=2)
        print(f"Wrote squad state to {args.json_out}")
    else:
        print_squad_report(state)
