# app.py
#
# FastAPI wrapper around the SquadIQ engine.
# Exposes:
#   GET  /health
#   GET  /players, /players/{player_id}, /players/{player_id}/my-rating
#   GET  /squads/{squad_type}/pitch
#   GET  /squads/depth/{slot}
#   GET  /squads/recommendations, /squads/recommendations/{bucket}/candidates
#   GET/PUT /squads/{squad_type}/slots (+ POST .../slots/{position}/{action})
#   GET/POST /shortlists (+ POST/DELETE /shortlists/{id}/players/{player_id})
#   GET/POST /squad-configurations (+ PUT/DELETE /squad-configurations/{id},
#            POST /squad-configurations/{id}/load)
#   GET/PUT /my-rating/weights, POST /my-rating/weights/reset
#   GET/POST /reports
#   GET /teams
#   POST /search, /chat, /imports/teams, /imports/players
#
# Start with:
#   uvicorn app:app --reload

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from fastapi import FastAPI, HTTPException  # type: ignore[import]
from fastapi.middleware.cors import CORSMiddleware  # type: ignore[import]
from pydantic import BaseModel  # type: ignore[import]

import depth_chart  # type: ignore[import]
import player_db  # type: ignore[import]
from chat import ChatGenerationError, chat_generate  # type: ignore[import]
from config import (  # type: ignore[import]
    CLUB_NAME,
    DEFAULT_COMPETITION,
    DEFAULT_FORMATION,
    SEARCH_DEFAULT_LIMIT,
    SEASON_YEAR,
)
from football_api import FootballApiError  # type: ignore[import]
from league_ratings import load_league_table  # type: ignore[import]
from models import PositionSlot, SquadConfiguration  # type: ignore[import]
from my_rating import (  # type: ignore[import]
    club_rating,
    default_position_weights,
    position_key,
    validate_weights,
)
from player_import import import_team, import_team_players  # type: ignore[import]
from positions import FORMATIONS  # type: ignore[import]
from search import search  # type: ignore[import]
from squad_engine import (  # type: ignore[import]
    FIRST_TEAM,
    SHADOW,
    analyze_squad,
    assigned_player_ids,
    auto_assign,
    first_team_player_ids,
    is_club_player,
    player_to_dict,
    position_depth,
    recommended_for_slot,
    recruitment_candidates,
    run_squad_for_club,
    shortlisted_for_slot,
    sort_by_priority,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic view models
# ---------------------------------------------------------------------------

class SquadType(str, Enum):
    first_team = FIRST_TEAM
    shadow = SHADOW


class SlotAction(str, Enum):
    add = "add"
    remove = "remove"
    activate = "activate"
    reorder = "reorder"


class PlayerView(BaseModel):
    id: str
    name: str
    age: int
    club: str
    nationality: str
    positions: List[str]
    category: str                 # Goalkeepers / Defenders / Midfielders / Forwards
    rating: float                 # max(transferroom, xtv, 0)
    transferroom_rating: Optional[float] = None
    xtv_score: Optional[float] = None
    future_rating: Optional[float] = None
    contract_expiry: Optional[str] = None
    is_private_player: bool = False
    eu_gbe_status: Optional[str] = None
    is_external: bool
    warning: bool
    contract_risk: str            # none / low / medium / high


class DepthView(BaseModel):
    slot: str
    label: str
    count: int
    color: str                    # red / amber / green
    warnings: int
    league_average: Optional[float] = None
    club_average: Optional[float] = None


class PitchSlotView(BaseModel):
    slot: str
    label: str
    player: Optional[PlayerView] = None
    alternatives: List[PlayerView]
    depth: DepthView


class PositionAnalysisView(BaseModel):
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
    players: List[PlayerView]


class PitchView(BaseModel):
    club: str
    squad_type: SquadType
    formation: str
    total_rating: float
    empty_slots: List[str]
    pitch: List[PitchSlotView]
    analysis: List[PositionAnalysisView]


class DepthDetailView(BaseModel):
    depth: DepthView
    players: List[PlayerView]
    shortlisted: List[PlayerView]
    recommended: List[PlayerView]


class PositionSlotView(BaseModel):
    position: str
    active_player_id: str
    alternate_player_ids: List[str] = []


class SlotsUpdateRequest(BaseModel):
    slots: List[PositionSlotView]


class SlotActionRequest(BaseModel):
    player_id: str
    direction: Optional[str] = None   # "up" / "down", reorder only


class ShortlistView(BaseModel):
    id: str
    name: str
    description: str
    player_ids: List[str]
    is_scouting_assignment_list: bool


class CreateShortlistRequest(BaseModel):
    name: str
    description: str = ""
    is_scouting_assignment_list: bool = False


class AttributeWeightView(BaseModel):
    id: str
    label: str
    weight: float


class CategoryWeightView(BaseModel):
    id: str
    label: str
    weight: float
    tooltip: Optional[str] = None
    attributes: List[AttributeWeightView] = []


class MyRatingView(BaseModel):
    player_id: str
    position_key: str
    my_rating: Optional[float] = None


class SearchRequest(BaseModel):
    query: str
    limit: int = SEARCH_DEFAULT_LIMIT


class SearchResponse(BaseModel):
    results: List[Dict[str, Any]]
    query: str
    totalResults: int


class ChatRequest(BaseModel):
    query: str
    searchResults: Optional[List[Dict[str, Any]]] = None


class ChatResponse(BaseModel):
    response: str
    query: str
    searchResults: List[Dict[str, Any]]


class ImportPlayersRequest(BaseModel):
    team_id: Optional[Union[int, str]] = None
    season: int = SEASON_YEAR
    team_name: Optional[str] = None
    force_reimport: bool = False


class ImportTeamRequest(BaseModel):
    team_id: Optional[Union[int, str]] = None
    team_name: Optional[str] = None


class TeamView(BaseModel):
    id: int
    name: str
    external_api_id: Optional[str] = None
    league: Optional[str] = None
    country: Optional[str] = None


class SquadConfigurationView(BaseModel):
    id: str
    club: str
    name: str
    formation: str
    squad_type: SquadType
    position_assignments: Dict[str, str]   # slot -> player id
    description: str = ""
    is_default: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SaveSquadConfigurationRequest(BaseModel):
    name: str
    formation: str = DEFAULT_FORMATION
    squad_type: SquadType = SquadType.first_team
    position_assignments: Dict[str, str] = {}
    description: str = ""
    is_default: bool = False


class UpdateSquadConfigurationRequest(BaseModel):
    name: Optional[str] = None
    formation: Optional[str] = None
    squad_type: Optional[SquadType] = None
    position_assignments: Optional[Dict[str, str]] = None
    description: Optional[str] = None
    is_default: Optional[bool] = None


class ReportView(BaseModel):
    id: str
    player_id: str
    status: str
    summary: str
    created_at: Optional[str] = None


class CreateReportRequest(BaseModel):
    player_id: str
    summary: str = ""
    status: str = "draft"          # draft / submitted


# ---------------------------------------------------------------------------
# Helper functions to map engine state -> API models
# ---------------------------------------------------------------------------

def _mk_player_view(p: dict) -> PlayerView:
    return PlayerView.model_validate(p)


def _mk_pitch_view(state: dict) -> PitchView:
    pitch = []
    for s in state.get("pitch", []):
        p = s.get("player")
        pitch.append(
            PitchSlotView(
                slot=s["slot"],
                label=s["label"],
                player=_mk_player_view(p) if p else None,
                alternatives=[_mk_player_view(a) for a in s.get("alternatives", [])],
                depth=DepthView.model_validate(s["depth"]),
            )
        )

    return PitchView(
        club=state.get("club", CLUB_NAME),
        squad_type=SquadType(state["squad_type"]),
        formation=state["formation"],
        total_rating=float(state.get("total_rating", 0.0)),
        empty_slots=state.get("empty_slots", []),
        pitch=pitch,
        analysis=[PositionAnalysisView.model_validate(a) for a in state.get("analysis", [])],
    )


def _mk_shortlist_view(s) -> ShortlistView:
    return ShortlistView(
        id=s.id,
        name=s.name,
        description=s.description,
        player_ids=list(s.player_ids),
        is_scouting_assignment_list=s.is_scouting_assignment_list,
    )


def _mk_slot_views(slots: List[PositionSlot]) -> List[PositionSlotView]:
    return [
        PositionSlotView(
            position=s.position,
            active_player_id=s.active_player_id,
            alternate_player_ids=list(s.alternate_player_ids),
        )
        for s in slots
    ]


def _mk_configuration_view(c: SquadConfiguration) -> SquadConfigurationView:
    return SquadConfigurationView(
        id=c.id,
        club=c.club,
        name=c.name,
        formation=c.formation,
        squad_type=SquadType(c.squad_type),
        position_assignments=dict(c.position_assignments),
        description=c.description,
        is_default=c.is_default,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


def _check_assignment_slots(formation: str, assignments: Dict[str, str]) -> None:
    unknown = sorted(set(assignments) - set(FORMATIONS[formation]))
    if unknown:
        raise HTTPException(
            status_code=400,
            detail=f"Slots not in {formation}: {', '.join(unknown)}",
        )


def _check_formation(formation: str) -> str:
    if formation not in FORMATIONS:
        raise HTTPException(status_code=400, detail=f"Unknown formation: {formation}")
    return formation


def _club_pool():
    """(pool, squad): every known player, and the club's own players."""
    pool = player_db.list_players()
    squad = [p for p in pool if is_club_player(p)]
    return pool, squad


def _placed_player_ids(formation: str) -> set:
    """Ids already placed on either pitch for a formation."""
    ids = set()
    for squad_type in (FIRST_TEAM, SHADOW):
        for s in player_db.load_position_slots(CLUB_NAME, formation, squad_type):
            ids.add(s.active_player_id)
            ids.update(s.alternate_player_ids)
    return ids


def _club_weights() -> Dict[str, Any]:
    return player_db.load_rating_weights(CLUB_NAME) or default_position_weights()


def _first_team_ids(formation: str) -> set:
    _, squad = _club_pool()
    stored = player_db.load_position_slots(CLUB_NAME, formation, FIRST_TEAM)
    return first_team_player_ids(squad, formation, depth_chart.active_assignments(stored))


def _check_slot_rules(
    squad_type: SquadType,
    formation: str,
    slots: List[PositionSlot],
    player_ids: Optional[set] = None,
) -> None:
    """
    400 when a first-team player is active in two slots, or when the shadow
    squad names a first-team player. Only `player_ids` are checked when given.
    """
    def checked(pid: str) -> bool:
        return player_ids is None or pid in player_ids

    if squad_type == SquadType.shadow:
        blocked = _first_team_ids(formation)
        for s in slots:
            for pid in [s.active_player_id, *s.alternate_player_ids]:
                if checked(pid) and pid in blocked:
                    raise HTTPException(
                        status_code=400,
                        detail=f"{s.position}: {pid} is in the first team",
                    )
        return

    active_in: Dict[str, str] = {}
    for s in slots:
        pid = s.active_player_id
        if checked(pid) and pid in active_in:
            raise HTTPException(
                status_code=400,
                detail=f"{s.position}: {pid} is already active in {active_in[pid]}",
            )
        active_in[pid] = s.position


# ---------------------------------------------------------------------------
# FastAPI app + routes
# ---------------------------------------------------------------------------

app = FastAPI(title="SquadIQ API")

# Optional: allow local dev frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _on_startup():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
    # Ensure the database / tables exist.
    player_db.init_db()


@app.get("/health")
def health():
    return {"status": "ok", "club": CLUB_NAME, "season": SEASON_YEAR}


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------

@app.get("/players", response_model=List[PlayerView])
def list_players(club_only: bool = False, position: Optional[str] = None):
    """
    All players, optionally only the club's own and/or one position code.
    """
    players = player_db.list_players()
    if club_only:
        players = [p for p in players if is_club_player(p)]
    if position:
        code = position.upper()
        players = [p for p in players if code in (x.upper() for x in p.positions)]
    return [_mk_player_view(player_to_dict(p)) for p in players]


@app.get("/players/{player_id}", response_model=PlayerView)
def get_player(player_id: str):
    p = player_db.get_player(player_id)
    if p is None:
        raise HTTPException(status_code=404, detail="Unknown player")
    return _mk_player_view(player_to_dict(p))


@app.get("/players/{player_id}/my-rating", response_model=MyRatingView)
def get_my_rating(player_id: str):
    p = player_db.get_player(player_id)
    if p is None:
        raise HTTPException(status_code=404, detail="Unknown player")
    key = position_key(p.positions[0] if p.positions else None)
    return MyRatingView(
        player_id=p.id,
        position_key=key,
        my_rating=club_rating(p, _club_weights()),
    )


# ---------------------------------------------------------------------------
# Squads
# ---------------------------------------------------------------------------

@app.get("/squads/recommendations", response_model=List[PositionAnalysisView])
def get_recommendations():
    """
    Recruitment analysis per position bucket, most urgent first.
    """
    _, squad = _club_pool()
    analyses = sort_by_priority(analyze_squad(squad))
    return [
        PositionAnalysisView(
            name=a.name,
            display_name=a.display_name,
            required_positions=a.required_positions,
            current=a.current,
            needed=a.needed,
            average_rating=a.average_rating,
            top_rating=a.top_rating,
            priority=a.priority,
            recommendation=a.recommendation,
            strength_description=a.strength_description,
            recruitment_suggestion=a.recruitment_suggestion,
            contract_risks=a.contract_risks,
            age_risks=a.age_risks,
            players=[_mk_player_view(player_to_dict(p)) for p in a.players],
        )
        for a in analyses
    ]


@app.get(
    "/squads/recommendations/{bucket}/candidates",
    response_model=List[PlayerView],
)
def get_recruitment_candidates(bucket: str, limit: int = 10):
    pool, squad = _club_pool()
    try:
        found = recruitment_candidates(bucket, squad, pool, limit=limit)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown position bucket: {bucket}")
    return [_mk_player_view(player_to_dict(p)) for p in found]


@app.get("/squads/depth/{slot}", response_model=DepthDetailView)
def get_slot_depth(
    slot: str,
    formation: str = DEFAULT_FORMATION,
    competition: Optional[str] = DEFAULT_COMPETITION,
):
    """
    Depth sidebar for one slot: eligible squad players plus shortlisted and
    recommended external options.
    """
    _check_formation(formation)
    pool, squad = _club_pool()
    depth = position_depth(slot, squad, load_league_table(), competition)
    placed = _placed_player_ids(formation)

    return DepthDetailView(
        depth=DepthView(
            slot=depth.slot,
            label=depth.label,
            count=depth.count,
            color=depth.color,
            warnings=depth.warnings,
            league_average=depth.league_average,
            club_average=depth.club_average,
        ),
        players=[_mk_player_view(player_to_dict(p)) for p in depth.players],
        shortlisted=[
            _mk_player_view(player_to_dict(p))
            for p in shortlisted_for_slot(slot, player_db.list_shortlists(), pool, placed)
        ],
        recommended=[
            _mk_player_view(player_to_dict(p))
            for p in recommended_for_slot(slot, squad, pool, placed)
        ],
    )


@app.get("/squads/{squad_type}/pitch", response_model=PitchView)
def get_pitch(
    squad_type: SquadType,
    formation: str = DEFAULT_FORMATION,
    competition: Optional[str] = DEFAULT_COMPETITION,
):
    """
    Auto-filled pitch for the first team or the shadow squad.
    """
    _check_formation(formation)
    state = run_squad_for_club(squad_type.value, formation, competition)
    return _mk_pitch_view(state)


@app.get("/squads/{squad_type}/slots", response_model=List[PositionSlotView])
def get_slots(squad_type: SquadType, formation: str = DEFAULT_FORMATION):
    """
    Stored depth chart. When nothing has been saved yet the current
    auto-assignment is returned (without alternates).
    """
    _check_formation(formation)
    slots = player_db.load_position_slots(CLUB_NAME, formation, squad_type.value)
    if slots:
        return _mk_slot_views(slots)

    _, squad = _club_pool()
    first_team = auto_assign(squad, FORMATIONS[formation], FIRST_TEAM)
    if squad_type == SquadType.first_team:
        filled = first_team
    else:
        filled = auto_assign(
            squad, FORMATIONS[formation], SHADOW,
            first_team_ids=assigned_player_ids(first_team),
        )
    assignments = {a.slot: a.player.id for a in filled if a.player is not None}
    return _mk_slot_views(depth_chart.load_from_assignments(assignments))


@app.put("/squads/{squad_type}/slots", response_model=List[PositionSlotView])
def put_slots(
    squad_type: SquadType,
    body: SlotsUpdateRequest,
    formation: str = DEFAULT_FORMATION,
):
    _check_formation(formation)
    slots = []
    for s in body.slots:
        if s.active_player_id in s.alternate_player_ids:
            raise HTTPException(
                status_code=400,
                detail=f"{s.position}: active player is also listed as an alternate",
            )
        if len(set(s.alternate_player_ids)) != len(s.alternate_player_ids):
            raise HTTPException(
                status_code=400, detail=f"{s.position}: duplicate alternates"
            )
        slots.append(PositionSlot(s.position, s.active_player_id, list(s.alternate_player_ids)))

    _check_slot_rules(squad_type, formation, slots)
    player_db.save_position_slots(CLUB_NAME, formation, squad_type.value, slots)
    return _mk_slot_views(slots)


@app.post(
    "/squads/{squad_type}/slots/{position}/{action}",
    response_model=List[PositionSlotView],
)
def slot_action(
    squad_type: SquadType,
    position: str,
    action: SlotAction,
    body: SlotActionRequest,
    formation: str = DEFAULT_FORMATION,
):
    """
    Edit one slot of the stored depth chart and save the result.
    """
    _check_formation(formation)
    slots = player_db.load_position_slots(CLUB_NAME, formation, squad_type.value)

    try:
        if action == SlotAction.add:
            slots = depth_chart.add_player_to_position(slots, position, body.player_id)
        elif action == SlotAction.remove:
            slots = depth_chart.remove_player_from_position(slots, position, body.player_id)
        elif action == SlotAction.activate:
            slots = depth_chart.set_active_player(slots, position, body.player_id)
        else:
            slots = depth_chart.reorder_player(
                slots, position, body.player_id, body.direction or ""
            )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if action != SlotAction.remove:
        touched = {body.player_id}
        touched.update(s.active_player_id for s in slots if s.position == position)
        _check_slot_rules(squad_type, formation, slots, touched)

    player_db.save_position_slots(CLUB_NAME, formation, squad_type.value, slots)
    return _mk_slot_views(slots)


# ---------------------------------------------------------------------------
# Saved squad configurations
# ---------------------------------------------------------------------------

@app.get("/squad-configurations", response_model=List[SquadConfigurationView])
def list_squad_configurations():
    return [_mk_configuration_view(c) for c in player_db.list_squad_configurations(CLUB_NAME)]


@app.post("/squad-configurations", response_model=SquadConfigurationView)
def create_squad_configuration(body: SaveSquadConfigurationRequest):
    if not body.name.strip():
        raise HTTPException(status_code=400, detail="Configuration name is required")
    _check_formation(body.formation)
    _check_assignment_slots(body.formation, body.position_assignments)

    c = player_db.save_squad_configuration(
        CLUB_NAME,
        body.name.strip(),
        body.formation,
        body.squad_type.value,
        body.position_assignments,
        description=body.description,
        is_default=body.is_default,
    )
    return _mk_configuration_view(c)


@app.put("/squad-configurations/{config_id}", response_model=SquadConfigurationView)
def update_squad_configuration(config_id: str, body: UpdateSquadConfigurationRequest):
    current = player_db.get_squad_configuration(config_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Unknown squad configuration")

    if body.name is not None and not body.name.strip():
        raise HTTPException(status_code=400, detail="Configuration name is required")
    formation = body.formation or current.formation
    _check_formation(formation)
    assignments = (
        body.position_assignments
        if body.position_assignments is not None
        else current.position_assignments
    )
    _check_assignment_slots(formation, assignments)

    c = player_db.update_squad_configuration(
        config_id,
        name=body.name.strip() if body.name is not None else None,
        formation=body.formation,
        squad_type=body.squad_type.value if body.squad_type is not None else None,
        position_assignments=body.position_assignments,
        description=body.description,
        is_default=body.is_default,
    )
    return _mk_configuration_view(c)


@app.delete("/squad-configurations/{config_id}")
def delete_squad_configuration(config_id: str):
    if not player_db.delete_squad_configuration(config_id):
        raise HTTPException(status_code=404, detail="Unknown squad configuration")
    return {"deleted": True, "id": config_id}


@app.post(
    "/squad-configurations/{config_id}/load",
    response_model=List[PositionSlotView],
)
def load_squad_configuration(config_id: str):
    """
    Replace the stored depth chart for the configuration's formation and
    squad type with its assignments (active players only).
    """
    c = player_db.get_squad_configuration(config_id)
    if c is None:
        raise HTTPException(status_code=404, detail="Unknown squad configuration")

    squad_type = SquadType(c.squad_type)
    slots = depth_chart.load_from_assignments(c.position_assignments)
    _check_slot_rules(squad_type, c.formation, slots)
    player_db.save_position_slots(CLUB_NAME, c.formation, squad_type.value, slots)
    return _mk_slot_views(slots)


# ---------------------------------------------------------------------------
# Shortlists
# ---------------------------------------------------------------------------

@app.get("/shortlists", response_model=List[ShortlistView])
def list_shortlists():
    return [_mk_shortlist_view(s) for s in player_db.list_shortlists()]


@app.post("/shortlists", response_model=ShortlistView)
def create_shortlist(body: CreateShortlistRequest):
    if not body.name.strip():
        raise HTTPException(status_code=400, detail="Shortlist name is required")
    s = player_db.create_shortlist(
        body.name.strip(), body.description, body.is_scouting_assignment_list
    )
    return _mk_shortlist_view(s)


@app.post("/shortlists/{shortlist_id}/players/{player_id}", response_model=ShortlistView)
def add_shortlist_player(shortlist_id: str, player_id: str):
    if player_db.get_player(player_id) is None:
        raise HTTPException(status_code=404, detail="Unknown player")
    try:
        player_db.add_to_shortlist(shortlist_id, player_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Unknown shortlist")
    return _mk_shortlist_view(player_db.get_shortlist(shortlist_id))


@app.delete("/shortlists/{shortlist_id}/players/{player_id}", response_model=ShortlistView)
def remove_shortlist_player(shortlist_id: str, player_id: str):
    s = player_db.get_shortlist(shortlist_id)
    if s is None:
        raise HTTPException(status_code=404, detail="Unknown shortlist")
    player_db.remove_from_shortlist(shortlist_id, player_id)
    return _mk_shortlist_view(player_db.get_shortlist(shortlist_id))


# ---------------------------------------------------------------------------
# My Rating weights
# ---------------------------------------------------------------------------

@app.get("/my-rating/weights", response_model=Dict[str, List[CategoryWeightView]])
def get_weights():
    return _club_weights()


@app.put("/my-rating/weights", response_model=Dict[str, List[CategoryWeightView]])
def put_weights(body: Dict[str, List[CategoryWeightView]]):
    weights = {key: [c.model_dump() for c in cats] for key, cats in body.items()}
    try:
        validate_weights(weights)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # Partial updates keep the stored values for positions not sent.
    merged = _club_weights()
    merged.update(weights)
    player_db.save_rating_weights(CLUB_NAME, merged)
    return merged


@app.post("/my-rating/weights/reset", response_model=Dict[str, List[CategoryWeightView]])
def reset_weights():
    player_db.delete_rating_weights(CLUB_NAME)
    return default_position_weights()


# ---------------------------------------------------------------------------
# Scouting reports / teams
# ---------------------------------------------------------------------------

@app.get("/reports", response_model=List[ReportView])
def list_reports(player_id: Optional[str] = None):
    reports = player_db.list_scouting_reports()
    if player_id:
        reports = [r for r in reports if r.player_id == player_id]
    return [ReportView(**vars(r)) for r in reports]


@app.post("/reports", response_model=ReportView)
def create_report(body: CreateReportRequest):
    if player_db.get_player(body.player_id) is None:
        raise HTTPException(status_code=404, detail="Unknown player")
    if body.status not in ("draft", "submitted"):
        raise HTTPException(status_code=400, detail=f"Unknown report status: {body.status}")
    r = player_db.add_scouting_report(body.player_id, body.summary, body.status)
    return ReportView(**vars(r))


@app.get("/teams", response_model=List[TeamView])
def list_teams():
    return [TeamView(**t) for t in player_db.list_teams()]


# ---------------------------------------------------------------------------
# Search / chat / import
# ---------------------------------------------------------------------------

@app.post("/search", response_model=SearchResponse)
def post_search(body: SearchRequest):
    try:
        results = search(body.query, body.limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SearchResponse(results=results, query=body.query, totalResults=len(results))


@app.post("/chat", response_model=ChatResponse)
def post_chat(body: ChatRequest):
    """
    Scout assistant: search first (unless results are supplied), then ask
    the LLM to comment on the hits.
    """
    if not body.query.strip():
        raise HTTPException(status_code=400, detail="Query is required")

    results = body.searchResults
    if results is None:
        results = search(body.query)

    try:
        text = chat_generate(body.query, results)
    except ChatGenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ChatResponse(response=text, query=body.query, searchResults=results)


@app.post("/imports/players")
def post_import_players(body: ImportPlayersRequest):
    try:
        return import_team_players(
            body.team_id,
            season=body.season,
            team_name=body.team_name,
            force_reimport=body.force_reimport,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FootballApiError as e:
        raise HTTPException(status_code=502, detail=str(e))


@app.post("/imports/teams")
def post_import_team(body: ImportTeamRequest):
    try:
        return import_team(body.team_id, team_name=body.team_name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FootballApiError as e:
        raise HTTPException(status_code=502, detail=str(e))
