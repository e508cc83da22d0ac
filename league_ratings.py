# league_ratings.py
#
# League average ratings per position, one row per club and competition.
# Downloaded once into DATA_ROOT, then read with pandas and cached.

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd  # type: ignore[import]
import requests  # type: ignore[import]

from config import (  # type: ignore[import]
    DATA_ROOT,
    HTTP_TIMEOUT_SECONDS,
    LEAGUE_RATINGS_FILE,
    LEAGUE_RATINGS_URL,
)
from positions import bucket_for_slot  # type: ignore[import]

logger = logging.getLogger(__name__)

USER_AGENT_HEADER = {
    "User-Agent": "Mozilla/5.0"
}

# Columns of the squad average starter-rating table, one row per club.
TABLE_COLUMNS = [
    "Squad",
    "competition",
    "average_starter_rating",
    "KeeperRating",
    "DefenderRating",
    "CentreBackRating",
    "LeftBackRating",
    "RightBackRating",
    "MidfielderRating",
    "CentreMidfielderRating",
    "AttackerRating",
    "ForwardRating",
    "WingerRating",
]

# Full backs are split by side; every other bucket has a single column.
_SIDE_COLUMNS: Dict[str, str] = {
    "LB": "LeftBackRating",
    "LWB": "LeftBackRating",
    "RB": "RightBackRating",
    "RWB": "RightBackRating",
}

_BUCKET_COLUMNS: Dict[str, str] = {
    "GK": "KeeperRating",
    "CB": "CentreBackRating",
    "FB": "DefenderRating",
    "CM": "CentreMidfielderRating",
    "W": "WingerRating",
    "ST": "ForwardRating",
}

# In-memory cache: { resolved file path : DataFrame }
_TABLE_CACHE: Dict[str, pd.DataFrame] = {}


def rating_column_for_slot(slot_code: str) -> Optional[str]:
    """Return the league table column that rates a formation slot, if any."""
    code = (slot_code or "").strip().upper()
    if code in _SIDE_COLUMNS:
        return _SIDE_COLUMNS[code]
    bucket = bucket_for_slot(code)
    if bucket is None:
        return None
    return _BUCKET_COLUMNS.get(bucket.name)


def download_league_table(outfile: Path, url: Optional[str] = None) -> bool:
    """
    Download the league average CSV to `outfile`.

    Returns False (without raising) when no download URL is configured so a
    fresh checkout still starts with an empty table.
    """
    url = url or LEAGUE_RATINGS_URL
    if not url:
        logger.warning("[LeagueRatings] No SQUADIQ_LEAGUE_RATINGS_URL configured; skipping download")
        return False

    logger.info("[LeagueRatings] Downloading league averages from %s", url)
    resp = requests.get(url, headers=USER_AGENT_HEADER, timeout=HTTP_TIMEOUT_SECONDS)
    resp.raise_for_status()

    outfile.parent.mkdir(parents=True, exist_ok=True)
    with open(outfile, "wb") as f:
        f.write(resp.content)

    logger.info("[LeagueRatings] Saved -> %s", outfile)
    return True


def load_league_table(path: Optional[Path] = None) -> pd.DataFrame:
    """
    Load (and cache) the squad average rating table.

    Missing files are fetched once via download_league_table(). When there
    is no URL or the download fails, an empty frame with the expected
    columns is cached in its place until clear_cache().
    """
    if path is None:
        path = Path(DATA_ROOT) / LEAGUE_RATINGS_FILE
    key = str(Path(path).resolve())

    if key in _TABLE_CACHE:
        return _TABLE_CACHE[key]

    if not Path(path).exists():
        logger.info("[LeagueRatings] %s not found; attempting download", path)
        try:
            downloaded = download_league_table(Path(path))
        except requests.RequestException as e:
            logger.warning("[LeagueRatings] Download failed: %s", e)
            downloaded = False
        if not downloaded:
            empty = pd.DataFrame(columns=TABLE_COLUMNS)
            _TABLE_CACHE[key] = empty
            return empty

    df = pd.read_csv(path)
    if "Squad" not in df.columns and "squad" in df.columns:
        df = df.rename(columns={"squad": "Squad"})

    logger.info("[LeagueRatings] Loaded %d rows from %s", len(df), Path(path).name)
    _TABLE_CACHE[key] = df
    return df


def clear_cache() -> None:
    _TABLE_CACHE.clear()


def _competition_rows(table: pd.DataFrame, competition: Optional[str]) -> pd.DataFrame:
    if competition and "competition" in table.columns:
        return table[table["competition"] == competition]
    return table


def _mean(series: pd.Series) -> Optional[float]:
    values = pd.to_numeric(series, errors="coerce").dropna()
    if values.empty:
        return None
    return round(float(values.mean()), 1)


def league_average(
    table: pd.DataFrame, slot_code: str, competition: Optional[str] = None
) -> Optional[float]:
    """Average rating for the slot's column across every squad in a competition."""
    column = rating_column_for_slot(slot_code)
    if column is None or table is None or column not in table.columns:
        return None
    return _mean(_competition_rows(table, competition)[column])


def club_average(
    table: pd.DataFrame,
    slot_code: str,
    club_keyword: str,
    competition: Optional[str] = None,
) -> Optional[float]:
    """The club's own rating for the slot's column (substring match on Squad)."""
    column = rating_column_for_slot(slot_code)
    if column is None or table is None or column not in table.columns:
        return None
    rows = _competition_rows(table, competition)
    if "Squad" not in rows.columns:
        return None
    mask = rows["Squad"].astype(str).str.lower().str.contains(club_keyword.lower(), regex=False)
    return _mean(rows[mask][column])
