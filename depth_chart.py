# depth_chart.py
#
# Per-slot depth charts: one active player plus ordered alternates.
# Every function takes a list of PositionSlot and returns a *new* list;
# the input is never mutated. The active player is never an alternate.

from __future__ import annotations

from typing import Dict, List, Optional

from models import PositionSlot  # type: ignore[import]


def _copy(slots: List[PositionSlot]) -> List[PositionSlot]:
    return [
        PositionSlot(s.position, s.active_player_id, list(s.alternate_player_ids))
        for s in slots
    ]


def _find(slots: List[PositionSlot], position: str) -> Optional[PositionSlot]:
    for s in slots:
        if s.position == position:
            return s
    return None


def set_active_player(
    slots: List[PositionSlot], position: str, player_id: str
) -> List[PositionSlot]:
    """Make `player_id` the active player; the previous one becomes first alternate."""
    out = _copy(slots)
    slot = _find(out, position)
    if slot is None:
        out.append(PositionSlot(position, player_id, []))
        return out
    if slot.active_player_id == player_id:
        return out

    alternates = [pid for pid in slot.alternate_player_ids if pid != player_id]
    alternates.insert(0, slot.active_player_id)
    slot.active_player_id = player_id
    slot.alternate_player_ids = alternates
    return out


def add_player_to_position(
    slots: List[PositionSlot], position: str, player_id: str
) -> List[PositionSlot]:
    """Append an alternate (or create the slot with `player_id` active)."""
    out = _copy(slots)
    slot = _find(out, position)
    if slot is None:
        out.append(PositionSlot(position, player_id, []))
        return out
    if player_id == slot.active_player_id or player_id in slot.alternate_player_ids:
        return out
    slot.alternate_player_ids.append(player_id)
    return out


def remove_player_from_position(
    slots: List[PositionSlot], position: str, player_id: str
) -> List[PositionSlot]:
    """
    Remove a player from a slot.

    Removing the active player promotes the first alternate; with no
    alternates left the slot disappears.
    """
    out = _copy(slots)
    slot = _find(out, position)
    if slot is None:
        return out

    if slot.active_player_id == player_id:
        if not slot.alternate_player_ids:
            return [s for s in out if s.position != position]
        slot.active_player_id = slot.alternate_player_ids.pop(0)
        return out

    slot.alternate_player_ids = [
        pid for pid in slot.alternate_player_ids if pid != player_id
    ]
    return out


def reorder_player(
    slots: List[PositionSlot], position: str, player_id: str, direction: str
) -> List[PositionSlot]:
    """
    Move a player one step "up" or "down" within [active, *alternates].

    Whoever ends up first is the active player. Moves past either end are
    no-ops.
    """
    if direction not in ("up", "down"):
        raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")

    out = _copy(slots)
    slot = _find(out, position)
    if slot is None:
        return out

    order = players_for_position(out, position)
    if player_id not in order:
        return out

    i = order.index(player_id)
    j = i - 1 if direction == "up" else i + 1
    if j < 0 or j >= len(order):
        return out

    order[i], order[j] = order[j], order[i]
    slot.active_player_id = order[0]
    slot.alternate_player_ids = order[1:]
    return out


def load_from_assignments(assignments: Dict[str, str]) -> List[PositionSlot]:
    """Build slots from a plain {slot: player_id} mapping (no alternates)."""
    return [PositionSlot(pos, pid, []) for pos, pid in assignments.items() if pid]


def active_assignments(slots: List[PositionSlot]) -> Dict[str, str]:
    return {s.position: s.active_player_id for s in slots}


def players_for_position(slots: List[PositionSlot], position: str) -> List[str]:
    slot = _find(slots, position)
    if slot is None:
        return []
    return [slot.active_player_id] + list(slot.alternate_player_ids)


def player_count(slots: List[PositionSlot], position: str) -> int:
    return len(players_for_position(slots, position))
