# positions.py
#
# Formation slots and which player positions may fill them.
# - slot code -> accepted position codes
# - formation layouts (slot order is the auto-fill order)
# - the six coarse recruitment buckets with their target headcounts
#
# Shared by squad_engine, depth_chart and the FastAPI app.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from config import DEFAULT_FORMATION  # type: ignore[import]
from models import Player  # type: ignore[import]

# ---------------------------------------------------------------------------
# Slot -> eligible positions
# ---------------------------------------------------------------------------

_CB = frozenset({"CB"})
_DM = frozenset({"CM", "CDM"})
_CM = frozenset({"CM", "CAM"})
_ST = frozenset({"F", "FW", "ST", "CF"})

SLOT_ELIGIBILITY: Dict[str, FrozenSet[str]] = {
    "GK": frozenset({"GK"}),
    "LB": frozenset({"LB", "LWB"}),
    "CB": _CB,
    "CB1": _CB,
    "CB2": _CB,
    "CB3": _CB,
    "RB": frozenset({"RB", "RWB"}),
    "CDM": _DM,
    "CDM1": _DM,
    "CDM2": _DM,
    "CM1": _CM,
    "CM2": _CM,
    "CM3": _CM,
    "CAM": frozenset({"CAM", "CM"}),
    "LM": frozenset({"LM", "W", "LW"}),
    "RM": frozenset({"RM", "W", "RW"}),
    "LWB": frozenset({"LWB", "LB"}),
    "RWB": frozenset({"RWB", "RB"}),
    "LW": frozenset({"W", "LW", "LM"}),
    "RW": frozenset({"W", "RW", "RM"}),
    "ST": _ST,
    "ST1": _ST,
    "ST2": _ST,
}

SLOT_LABELS: Dict[str, str] = {
    "GK": "Goalkeeper",
    "LB": "Left Back",
    "CB": "Centre Back",
    "CB1": "Centre Back",
    "CB2": "Centre Back",
    "CB3": "Centre Back",
    "RB": "Right Back",
    "CDM": "Defensive Mid",
    "CDM1": "Defensive Mid",
    "CDM2": "Defensive Mid",
    "CM1": "Central Mid",
    "CM2": "Central Mid",
    "CM3": "Central Mid",
    "CAM": "Attacking Mid",
    "LM": "Left Mid",
    "RM": "Right Mid",
    "LWB": "Left Wing Back",
    "RWB": "Right Wing Back",
    "LW": "Left Wing",
    "RW": "Right Wing",
    "ST": "Striker",
    "ST1": "Striker",
    "ST2": "Striker",
}


def _norm_slot(slot_code: Optional[str]) -> str:
    return (slot_code or "").strip().upper()


def eligible_positions(slot_code: str) -> FrozenSet[str]:
    """
    Return the player position codes that can fill `slot_code`.

    Unknown slots map to an empty set, which simply leaves the slot's
    player pool empty.
    """
    return SLOT_ELIGIBILITY.get(_norm_slot(slot_code), frozenset())


def is_eligible(player: Player, slot_code: str) -> bool:
    """Return True if any of the player's listed positions fits the slot."""
    allowed = eligible_positions(slot_code)
    return any(pos.upper() in allowed for pos in player.positions)


def slot_label(slot_code: str) -> str:
    return SLOT_LABELS.get(_norm_slot(slot_code), slot_code)


# ---------------------------------------------------------------------------
# Formations
# ---------------------------------------------------------------------------

# Slot order matters: auto-fill walks slots in this order.
FORMATIONS: Dict[str, List[str]] = {
    "4-3-3": ["GK", "LB", "CB1", "CB2", "RB", "CDM", "CM1", "CM2", "LW", "ST", "RW"],
    "4-2-3-1": ["GK", "LB", "CB1", "CB2", "RB", "CDM1", "CDM2", "LW", "CAM", "RW", "ST"],
    "3-5-2": ["GK", "CB1", "CB2", "CB3", "LWB", "CM1", "CM2", "CM3", "RWB", "ST1", "ST2"],
    "4-4-2": ["GK", "LB", "CB1", "CB2", "RB", "LM", "CM1", "CM2", "RM", "ST1", "ST2"],
}


def formation_slots(formation: Optional[str]) -> List[str]:
    """Slots for a formation, falling back to 4-3-3 for unknown names."""
    return list(FORMATIONS.get(formation or "", FORMATIONS[DEFAULT_FORMATION]))


# ---------------------------------------------------------------------------
# Recruitment buckets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PositionBucket:
    name: str
    display_name: str
    required_positions: FrozenSet[str]
    needed: int


POSITION_BUCKETS: Tuple[PositionBucket, ...] = (
    PositionBucket("GK", "Goalkeeper", frozenset({"GK"}), 2),
    PositionBucket("CB", "Centre Back", frozenset({"CB"}), 4),
    PositionBucket("FB", "Full Back", frozenset({"LB", "RB", "LWB", "RWB"}), 4),
    PositionBucket("CM", "Central Midfield", frozenset({"CM", "CDM", "CAM"}), 6),
    PositionBucket("W", "Winger", frozenset({"LW", "RW", "LM", "RM", "W"}), 4),
    PositionBucket("ST", "Striker", frozenset({"ST", "CF", "F", "FW"}), 3),
)

_BUCKETS_BY_NAME: Dict[str, PositionBucket] = {b.name: b for b in POSITION_BUCKETS}


def get_bucket(name: str) -> PositionBucket:
    """Look up a recruitment bucket by name (GK, CB, FB, CM, W, ST)."""
    key = _norm_slot(name)
    if key not in _BUCKETS_BY_NAME:
        raise KeyError(f"Unknown position bucket: {name}")
    return _BUCKETS_BY_NAME[key]


def bucket_for_slot(slot_code: str) -> Optional[PositionBucket]:
    """
    Map a formation slot (or raw position) to its coarse bucket.

    Slots outside the six buckets return None.
    """
    code = _norm_slot(slot_code)
    if code == "GK":
        name = "GK"
    elif code in {"CB", "CB1", "CB2", "CB3"}:
        name = "CB"
    elif code in {"LB", "RB", "LWB", "RWB"}:
        name = "FB"
    elif code in {"CDM", "CDM1", "CDM2", "CM", "CM1", "CM2", "CM3", "CAM"}:
        name = "CM"
    elif code in {"LW", "RW", "LM", "RM", "W"}:
        name = "W"
    elif code in {"ST", "ST1", "ST2", "CF", "F", "FW"}:
        name = "ST"
    else:
        return None
    return _BUCKETS_BY_NAME[name]


def in_bucket(player: Player, bucket: PositionBucket) -> bool:
    return any(pos.upper() in bucket.required_positions for pos in player.positions)


# ---------------------------------------------------------------------------
# Squad list categories
# ---------------------------------------------------------------------------

SQUAD_CATEGORIES = ("Goalkeepers", "Defenders", "Midfielders", "Forwards")


def squad_category(player: Player) -> str:
    """Category for the squad list view, based on the *first* listed position."""
    main = player.positions[0].upper() if player.positions else ""
    if main == "GK":
        return "Goalkeepers"
    if main in {"CB", "LB", "RB", "LWB", "RWB"}:
        return "Defenders"
    if main in {"CM", "CDM", "CAM", "LM", "RM"}:
        return "Midfielders"
    if main in {"W", "LW", "RW", "F", "FW", "ST", "CF"}:
        return "Forwards"
    # Unknown primary positions are listed with the midfielders.
    return "Midfielders"
