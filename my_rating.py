# my_rating.py
#
# "My Rating": a per-position, user-weighted composite of a player's ratings.
# - default category / attribute weights for the nine position keys
# - weight validation and reset-to-default
# - compute_my_rating() and the club-level club_rating() wrapper

from __future__ import annotations

import copy
import math
from typing import Any, Dict, List, Optional, Tuple

from models import Player  # type: ignore[import]

POSITION_KEYS = ("GK", "CB", "RB", "LB", "DM", "CM", "AM", "W", "F")

# Weights look like:
#   { "GK": [ {"id", "label", "weight", "tooltip", "attributes": [{"id", "label", "weight"}, ...]}, ... ], ... }
Category = Dict[str, Any]
PositionWeights = Dict[str, List[Category]]


def _cat(
    cat_id: str,
    label: str,
    weight: int,
    tooltip: str,
    attributes: List[Tuple[str, str, int]],
) -> Category:
    return {
        "id": cat_id,
        "label": label,
        "weight": weight,
        "tooltip": tooltip,
        "attributes": [
            {"id": a_id, "label": a_label, "weight": a_weight}
            for a_id, a_label, a_weight in attributes
        ],
    }


_GK = [
    _cat("shot_stopping", "Shot Stopping", 85, "Core ability to prevent goals from shots", [
        ("save_pct", "Save %", 35),
        ("psxg_diff", "PSxG +/-", 35),
        ("reflexes_rating", "Reflexes Rating", 30),
    ]),
    _cat("distribution", "Distribution", 65, "Passing and distribution quality", [
        ("pass_completion", "Pass Completion %", 30),
        ("long_pass_pct", "Long Pass Accuracy", 35),
        ("goal_kicks", "Goal Kick Distance", 35),
    ]),
    _cat("commanding", "Commanding Area", 60, "Control of the penalty area and set-piece situations", [
        ("crosses_claimed", "Crosses Claimed %", 40),
        ("sweeper_actions", "Sweeper Actions /90", 30),
        ("aerial_ability", "Aerial Ability Rating", 30),
    ]),
]

_CB = [
    _cat("defending", "Defending", 85, "Core defensive metrics", [
        ("tackles_90", "Tackles /90", 25),
        ("interceptions_90", "Interceptions /90", 25),
        ("blocks_90", "Blocks /90", 20),
        ("clearances_90", "Clearances /90", 15),
        ("positioning_rating", "Positioning Rating", 15),
    ]),
    _cat("aerial", "Aerial", 75, "Aerial dominance and heading ability", [
        ("aerial_win_pct", "Aerial Win %", 50),
        ("headed_goals", "Headed Goals", 20),
        ("aerial_duels_90", "Aerial Duels /90", 30),
    ]),
    _cat("progression", "Progression", 60, "Ball-playing ability from the back", [
        ("prog_passes_90", "Prog. Passes /90", 35),
        ("prog_carries_90", "Prog. Carries /90", 30),
        ("pass_completion", "Pass Completion %", 35),
    ]),
    _cat("pressing", "Pressing", 50, "Defensive pressing intensity", [
        ("pressures_90", "Pressures /90", 50),
        ("tackles_won_90", "Tackles Won /90", 50),
    ]),
]

_FULLBACK = [
    _cat("defending", "Defending", 65, "Defensive contribution from wide areas", [
        ("tackles_90", "Tackles /90", 30),
        ("interceptions_90", "Interceptions /90", 30),
        ("blocks_90", "Blocks /90", 20),
        ("positioning_rating", "Positioning Rating", 20),
    ]),
    _cat("creativity", "Creativity", 70, "Chance creation from wide positions", [
        ("assists_90", "Assists /90", 30),
        ("xa_90", "xA /90", 25),
        ("crosses_90", "Crosses /90", 25),
        ("key_passes_90", "Key Passes /90", 20),
    ]),
    _cat("progression", "Progression", 75, "Ball carrying and advancing play", [
        ("prog_carries_90", "Prog. Carries /90", 35),
        ("prog_passes_90", "Prog. Passes /90", 30),
        ("carry_distance_90", "Carry Distance /90", 35),
    ]),
    _cat("pressing", "Pressing", 60, "Work rate and pressing contribution", [
        ("pressures_90", "Pressures /90", 40),
        ("tackles_won_90", "Tackles Won /90", 30),
        ("work_rate_rating", "Work Rate Rating", 30),
    ]),
]

_DM = [
    _cat("defending", "Defending", 80, "Defensive shielding and ball-winning", [
        ("tackles_90", "Tackles /90", 25),
        ("interceptions_90", "Interceptions /90", 30),
        ("blocks_90", "Blocks /90", 20),
        ("positioning_rating", "Positioning Rating", 25),
    ]),
    _cat("pressing", "Pressing", 75, "Pressing intensity and ball recovery", [
        ("pressures_90", "Pressures /90", 35),
        ("tackles_won_90", "Tackles Won /90", 30),
        ("work_rate_rating", "Work Rate Rating", 35),
    ]),
    _cat("progression", "Progression", 65, "Ability to progress the ball from deep", [
        ("prog_passes_90", "Prog. Passes /90", 40),
        ("prog_carries_90", "Prog. Carries /90", 30),
        ("pass_completion", "Pass Completion %", 30),
    ]),
    _cat("aerial", "Aerial", 55, "Aerial presence in midfield", [
        ("aerial_win_pct", "Aerial Win %", 50),
        ("aerial_duels_90", "Aerial Duels /90", 50),
    ]),
]

_CM = [
    _cat("goalscoring", "Goalscoring", 35, "Measures goal threat from this position", [
        ("goals_90", "Goals /90", 40),
        ("xg_90", "xG /90", 35),
        ("finishing_rating", "Finishing Rating", 25),
    ]),
    _cat("creativity", "Creativity", 70, "Ability to create chances and assist teammates", [
        ("assists_90", "Assists /90", 30),
        ("xa_90", "xA /90", 25),
        ("key_passes_90", "Key Passes /90", 25),
        ("vision_rating", "Vision Rating", 20),
    ]),
    _cat("progression", "Progression", 80, "Ability to move the ball up the pitch effectively", [
        ("prog_carries_90", "Prog. Carries /90", 30),
        ("prog_passes_90", "Prog. Passes /90", 30),
        ("dribbling_rating", "Dribbling Rating", 25),
        ("carry_distance_90", "Carry Distance /90", 15),
    ]),
    _cat("pressing", "Pressing", 70, "Intensity and effectiveness of pressing actions", [
        ("pressures_90", "Pressures /90", 35),
        ("tackles_won_90", "Tackles Won /90", 25),
        ("interceptions_90", "Interceptions /90", 20),
        ("work_rate_rating", "Work Rate Rating", 20),
    ]),
    _cat("defending", "Defending", 60, "Defensive contribution and positioning", [
        ("tackles_90", "Tackles /90", 30),
        ("def_interceptions_90", "Interceptions /90", 25),
        ("blocks_90", "Blocks /90", 20),
        ("positioning_rating", "Positioning Rating", 25),
    ]),
    _cat("aerial", "Aerial", 50, "Aerial presence and effectiveness in duels", [
        ("aerial_win_pct", "Aerial Win %", 45),
        ("headed_goals", "Headed Goals", 25),
        ("aerial_duels_90", "Aerial Duels /90", 30),
    ]),
]

_AM = [
    _cat("creativity", "Creativity", 85, "Chance creation and final third playmaking", [
        ("assists_90", "Assists /90", 25),
        ("xa_90", "xA /90", 25),
        ("key_passes_90", "Key Passes /90", 30),
        ("vision_rating", "Vision Rating", 20),
    ]),
    _cat("goalscoring", "Goalscoring", 65, "Goal threat from attacking midfield", [
        ("goals_90", "Goals /90", 40),
        ("xg_90", "xG /90", 35),
        ("finishing_rating", "Finishing Rating", 25),
    ]),
    _cat("progression", "Progression", 70, "Dribbling and carrying ability", [
        ("prog_carries_90", "Prog. Carries /90", 35),
        ("dribbling_rating", "Dribbling Rating", 35),
        ("carry_distance_90", "Carry Distance /90", 30),
    ]),
    _cat("pressing", "Pressing", 50, "Pressing from high positions", [
        ("pressures_90", "Pressures /90", 50),
        ("work_rate_rating", "Work Rate Rating", 50),
    ]),
]

_WINGER = [
    _cat("goalscoring", "Goalscoring", 70, "Goal threat from wide positions", [
        ("goals_90", "Goals /90", 40),
        ("xg_90", "xG /90", 35),
        ("finishing_rating", "Finishing Rating", 25),
    ]),
    _cat("creativity", "Creativity", 75, "Crossing, assists and chance creation", [
        ("assists_90", "Assists /90", 25),
        ("xa_90", "xA /90", 25),
        ("crosses_90", "Crosses /90", 25),
        ("key_passes_90", "Key Passes /90", 25),
    ]),
    _cat("progression", "Progression", 80, "Dribbling and carrying down the flank", [
        ("prog_carries_90", "Prog. Carries /90", 30),
        ("dribbling_rating", "Dribbling Rating", 35),
        ("carry_distance_90", "Carry Distance /90", 35),
    ]),
    _cat("pressing", "Pressing", 55, "Defensive work rate from wide areas", [
        ("pressures_90", "Pressures /90", 50),
        ("work_rate_rating", "Work Rate Rating", 50),
    ]),
]

_FORWARD = [
    _cat("goalscoring", "Goalscoring", 90, "Primary goal-scoring ability", [
        ("goals_90", "Goals /90", 35),
        ("xg_90", "xG /90", 30),
        ("finishing_rating", "Finishing Rating", 20),
        ("shot_accuracy", "Shot Accuracy %", 15),
    ]),
    _cat("creativity", "Creativity", 50, "Link-up play and chance creation", [
        ("assists_90", "Assists /90", 35),
        ("xa_90", "xA /90", 30),
        ("key_passes_90", "Key Passes /90", 35),
    ]),
    _cat("aerial", "Aerial", 60, "Aerial threat and hold-up play", [
        ("aerial_win_pct", "Aerial Win %", 40),
        ("headed_goals", "Headed Goals", 35),
        ("aerial_duels_90", "Aerial Duels /90", 25),
    ]),
    _cat("pressing", "Pressing", 55, "Pressing from the front", [
        ("pressures_90", "Pressures /90", 50),
        ("work_rate_rating", "Work Rate Rating", 50),
    ]),
    _cat("progression", "Progression", 45, "Dribbling and movement in the final third", [
        ("prog_carries_90", "Prog. Carries /90", 40),
        ("dribbling_rating", "Dribbling Rating", 60),
    ]),
]

DEFAULT_POSITION_WEIGHTS: PositionWeights = {
    "GK": _GK,
    "CB": _CB,
    "RB": _FULLBACK,
    "LB": _FULLBACK,
    "DM": _DM,
    "CM": _CM,
    "AM": _AM,
    "W": _WINGER,
    "F": _FORWARD,
}


def default_position_weights() -> PositionWeights:
    """Fresh, independent copy of the defaults (RB and LB don't share lists)."""
    return {key: copy.deepcopy(cats) for key, cats in DEFAULT_POSITION_WEIGHTS.items()}


def _check_range(value: Any, where: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{where}: weight must be a number")
    if value < 0 or value > 100:
        raise ValueError(f"{where}: weight {value} outside 0-100")


def validate_weights(weights: PositionWeights) -> PositionWeights:
    """
    Check every category and attribute weight is within 0-100.

    Unknown position keys are rejected too. Returns the weights unchanged so
    callers can chain it.
    """
    for key, categories in weights.items():
        if key not in POSITION_KEYS:
            raise ValueError(f"Unknown position key: {key}")
        for cat in categories:
            cat_id = cat.get("id", "?")
            _check_range(cat.get("weight"), f"{key}.{cat_id}")
            for attr in cat.get("attributes", []):
                _check_range(attr.get("weight"), f"{key}.{cat_id}.{attr.get('id', '?')}")
    return weights


def position_key(position: Optional[str]) -> str:
    """Map a raw position code (e.g. "CDM", "LW", "SS") to a weights key."""
    if not position:
        return "CM"
    pos = position.upper()

    if "GK" in pos:
        return "GK"
    if pos in ("CB", "DC"):
        return "CB"
    if pos in ("RB", "RWB"):
        return "RB"
    if pos in ("LB", "LWB"):
        return "LB"
    if pos in ("CDM", "DM"):
        return "DM"
    if pos == "CM":
        return "CM"
    if pos in ("CAM", "AM"):
        return "AM"
    if pos in ("LW", "RW", "LM", "RM"):
        return "W"
    if pos in ("ST", "CF", "SS"):
        return "F"

    # broader fallbacks for composite codes
    if "W" in pos or "LM" in pos or "RM" in pos:
        return "W"
    if "AM" in pos:
        return "AM"
    if "DM" in pos:
        return "DM"
    if "M" in pos:
        return "CM"
    if "CB" in pos or "D" in pos:
        return "CB"
    if "ST" in pos or "CF" in pos or "F" in pos:
        return "F"
    return "CM"


def _round1(value: float) -> float:
    # half-up to one decimal
    return math.floor(value * 10 + 0.5) / 10


def compute_my_rating(player: Player, categories: List[Category]) -> Optional[float]:
    """
    Weighted composite rating for one player under one position's weights.

    Returns None when the player has neither a current nor a future rating,
    or when every category weight is zero.
    """
    if not player.transferroom_rating and not player.future_rating:
        return None

    base = player.transferroom_rating or 0.0
    potential = player.future_rating or base

    if sum(c.get("weight", 0) for c in categories) == 0:
        return None

    weighted = 0.0
    used = 0.0
    for cat in categories:
        weight = cat.get("weight", 0)
        if weight == 0:
            continue
        attrs = cat.get("attributes") or []
        if attrs:
            attr_factor = sum(a.get("weight", 0) for a in attrs) / len(attrs) / 100
        else:
            attr_factor = 0.5

        if cat.get("id") == "potential":
            age_bonus = max(0.0, (28 - player.age) * 0.5) if player.age else 0.0
            score = potential * attr_factor + age_bonus
        else:
            score = base * attr_factor

        weighted += score * weight
        used += weight

    result = weighted / used if used > 0 else 0.0
    return min(100.0, max(0.0, _round1(result)))


def club_rating(player: Player, all_weights: Optional[PositionWeights]) -> Optional[float]:
    """My Rating using the club's weights for the player's first position."""
    if not all_weights:
        return player.transferroom_rating
    key = position_key(player.positions[0] if player.positions else None)
    categories = all_weights.get(key)
    if not categories:
        return player.transferroom_rating
    return compute_my_rating(player, categories)
