# models.py

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

@dataclass
class Player:
    id: str
    name: str
    positions: List[str]              # GK, CB, LB, CM, W, ST ...
    age: int = 0
    club: str = ""
    nationality: str = "Unknown"
    transferroom_rating: Optional[float] = None
    xtv_score: Optional[float] = None   # external transfer-value score
    future_rating: Optional[float] = None
    contract_expiry: Optional[date] = None
    is_private_player: bool = False
    region: Optional[str] = None
    eu_gbe_status: Optional[str] = None  # pass / fail / pending, passed through
    image_url: Optional[str] = None

@dataclass
class PositionSlot:
    position: str                     # formation slot code, e.g. CB1
    active_player_id: str
    alternate_player_ids: List[str] = field(default_factory=list)

@dataclass
class SlotAssignment:
    slot: str
    player: Optional[Player]
    candidates: List[Player] = field(default_factory=list)

@dataclass
class Shortlist:
    id: str
    name: str
    description: str = ""
    player_ids: List[str] = field(default_factory=list)
    is_scouting_assignment_list: bool = False

@dataclass
class ScoutingReport:
    id: str
    player_id: str
    status: str = "draft"             # draft, submitted
    summary: str = ""
    created_at: Optional[str] = None

@dataclass
class SquadConfiguration:
    id: str
    club: str
    name: str
    formation: str
    squad_type: str                   # first-team / shadow
    position_assignments: Dict[str, str] = field(default_factory=dict)  # slot -> player id
    description: str = ""
    is_default: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
