# config.py
from pathlib import Path
from typing import Dict, Any
import os

# ====== Club / season config ======
SEASON_YEAR: int = 2024
CLUB_NAME: str = os.environ.get("SQUADIQ_CLUB_NAME", "Chelsea FC")

# Substring used to decide whether a player row belongs to the club
# ("Chelsea FC", "Chelsea U21", "Chelsea F.C." all match).
CLUB_KEYWORD: str = os.environ.get("SQUADIQ_CLUB_KEYWORD", "chelsea")

DEFAULT_FORMATION: str = "4-3-3"
DEFAULT_COMPETITION: str = "Premier League"

DATA_ROOT = Path(os.environ.get("SQUADIQ_DATA_ROOT", "data"))

# Storage for players, shortlists, depth charts and rating weights.
DB_PATH = Path(os.environ.get("SQUADIQ_DB_PATH", "data/squadiq.db"))


# ====== Depth / risk thresholds ======
CONTRACT_WARNING_DAYS: int = 365
CONTRACT_HIGH_RISK_DAYS: int = 180
AGE_WARNING_OVER: int = 32

# Recruitment analysis uses its own, looser risk definitions.
RECRUITMENT_CONTRACT_MONTHS: int = 12
RECRUITMENT_AGE_RISK_FROM: int = 30
RECOMMENDATION_LIMIT: int = 10
RECOMMENDED_MIN_RATING: float = 70.0


# ====== Sports-data import (RapidAPI) ======
RAPIDAPI_KEY: str = os.environ.get("RAPIDAPI_KEY", "")
RAPIDAPI_HOST: str = "free-api-live-football-data.p.rapidapi.com"
RAPIDAPI_BASE_URL: str = f"https://{RAPIDAPI_HOST}"

IMPORT_MAX_RETRIES: int = 3
IMPORT_RETRY_DELAY_SECONDS: float = 2.0
HTTP_TIMEOUT_SECONDS: int = 15


# ====== League average ratings table ======
LEAGUE_RATINGS_FILE: str = "squad_average_ratings.csv"
LEAGUE_RATINGS_URL: str = os.environ.get("SQUADIQ_LEAGUE_RATINGS_URL", "")


# ====== Chat assistant (Gemini) ======
GEMINI_API_KEY: str = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL: str = os.environ.get("SQUADIQ_GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_URL: str = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)
CHAT_GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.7,
    "maxOutputTokens": 1000,
}

SEARCH_DEFAULT_LIMIT: int = 10
