# search.py
#
# Keyword search over players and scouting reports (used by /search and
# as the context for the chat assistant).

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from config import SEARCH_DEFAULT_LIMIT  # type: ignore[import]
from models import Player, ScoutingReport  # type: ignore[import]

logger = logging.getLogger(__name__)


def relevance(text: str, query: str) -> float:
    """
    Keyword relevance in [0, 1].

    The whole query appearing in `text` is worth 1.0; each individual term
    adds 0.3. Case-insensitive.
    """
    text_lower = text.lower()
    query_lower = query.lower()
    terms = [t for t in query_lower.split(" ") if t]

    score = 0.0
    if query_lower in text_lower:
        score += 1.0
    for term in terms:
        if term in text_lower:
            score += 0.3
    return min(score, 1.0)


def _player_text(p: Player) -> str:
    positions = ", ".join(p.positions) or "Unknown"
    parts = [
        p.name or "",
        p.club or "Unknown Club",
        positions,
        p.nationality or "Unknown",
        f"age {p.age}" if p.age else "",
        "young prospect under 20" if p.age and p.age < 20 else "",
        "prospect" if p.age and p.age < 23 else "",
    ]
    return " ".join(parts)


def _player_result(p: Player, score: float) -> Dict[str, Any]:
    positions = ", ".join(p.positions) or "Unknown"
    nationality = p.nationality or "Unknown"
    return {
        "type": "player",
        "id": p.id,
        "player_id": p.id,
        "title": p.name or "Unknown Player",
        "subtitle": f"{positions} • {nationality}",
        "description": f"{p.club or 'Unknown Club'} • Age {p.age or 'Unknown'}",
        "confidence": score,
        "relevanceScore": score,
        "metadata": {
            "club": p.club,
            "age": p.age,
            "positions": list(p.positions),
            "nationality": p.nationality,
            "transferroom_rating": p.transferroom_rating,
            "isPrivatePlayer": p.is_private_player,
        },
    }


def _report_result(
    r: ScoutingReport, player: Optional[Player], score: float
) -> Dict[str, Any]:
    name = player.name if player else f"Player {r.player_id}"
    if player:
        first_pos = player.positions[0] if player.positions else "Unknown"
        info = f"{first_pos} • {player.nationality or 'Unknown'}"
    else:
        info = "Unknown"
    return {
        "type": "report",
        "id": r.id,
        "report_id": r.id,
        "title": f"Report: {name}",
        "subtitle": f"{(r.status or 'draft').capitalize()} Report",
        "description": info,
        "confidence": score,
        "relevanceScore": score,
        "metadata": {
            "player_id": r.player_id,
            "status": r.status,
            "summary": r.summary,
            "created_at": r.created_at,
        },
    }


def search(
    query: str,
    limit: int = SEARCH_DEFAULT_LIMIT,
    players: Optional[Sequence[Player]] = None,
    reports: Optional[Sequence[ScoutingReport]] = None,
) -> List[Dict[str, Any]]:
    """
    Keyword search over players and scouting reports.

    Pass `players` / `reports` explicitly, or leave them as None to read
    from the database. Results with zero relevance are dropped.
    """
    if not query or not query.strip():
        raise ValueError("Search query is required")

    if players is None or reports is None:
        import player_db  # type: ignore[import]

        if players is None:
            players = player_db.list_players()
        if reports is None:
            reports = player_db.list_scouting_reports()

    results: List[Dict[str, Any]] = []

    for p in players:
        score = relevance(_player_text(p), query)
        if score > 0:
            results.append(_player_result(p, score))

    by_id = {p.id: p for p in players}
    for r in reports:
        player = by_id.get(r.player_id)
        text = " ".join(
            [
                player.name if player else f"Player {r.player_id}",
                player.club if player else "",
                r.status or "",
                "report",
            ]
        )
        score = relevance(text, query)
        if score > 0:
            results.append(_report_result(r, player, score))

    results.sort(key=lambda x: x["relevanceScore"], reverse=True)
    logger.info("[Search] %r -> %d hits (limit %d)", query, len(results), limit)
    return results[:limit]
