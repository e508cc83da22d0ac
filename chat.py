# chat.py
#
# Scout assistant: turns search results into a Gemini prompt and returns
# the generated answer.

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import requests  # type: ignore[import]

from config import (  # type: ignore[import]
    CHAT_GENERATION_CONFIG,
    GEMINI_API_KEY,
    GEMINI_MODEL,
    GEMINI_URL,
    HTTP_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class ChatGenerationError(RuntimeError):
    """Raised when the scout assistant can't produce an answer."""


PROMPT_TEMPLATE = """You are an expert football scout assistant. You help analyze players and provide scouting insights based on search results from a football database.

When a user asks about players, you should:
1. Analyze the provided search results
2. Highlight key players that match the criteria
3. Provide tactical insights and recommendations
4. Explain what makes each player special
5. Consider their age, position, club, and potential
6. Be enthusiastic and knowledgeable about football

The user's query: "{query}"

Here are the search results from the database:
{results}

Provide a comprehensive analysis of these results in relation to the user's query. Be specific about each player and explain why they might be of interest."""


def build_prompt(query: str, search_results: List[Dict[str, Any]]) -> str:
    return PROMPT_TEMPLATE.format(
        query=query,
        results=json.dumps(search_results, indent=2, default=str),
    )


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    return "Unknown error"


def chat_generate(
    query: str,
    search_results: Optional[List[Dict[str, Any]]] = None,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
) -> str:
    """
    Ask Gemini to comment on a set of search results.

    Returns the generated text. Raises ChatGenerationError for a missing
    query or key, a non-2xx response or an unexpected response shape.
    """
    if not query:
        raise ChatGenerationError("Query is required")

    key = api_key if api_key is not None else GEMINI_API_KEY
    if not key:
        raise ChatGenerationError("Gemini API key not configured")

    url = GEMINI_URL.format(model=model or GEMINI_MODEL)
    payload = {
        "contents": [{"parts": [{"text": build_prompt(query, search_results or [])}]}],
        "generationConfig": dict(CHAT_GENERATION_CONFIG),
    }

    logger.info("[Chat] Generating answer for %r (%d results)", query, len(search_results or []))
    try:
        resp = requests.post(
            url,
            params={"key": key},
            json=payload,
            timeout=HTTP_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise ChatGenerationError(f"Gemini API request failed: {e}") from e

    if not resp.ok:
        message = _error_message(resp)
        logger.error("[Chat] Gemini API error %s: %s", resp.status_code, message)
        raise ChatGenerationError(f"Gemini API error: {message}")

    try:
        data = resp.json()
    except ValueError as e:
        raise ChatGenerationError("Gemini API returned a non-JSON response") from e
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise ChatGenerationError("Gemini API returned no candidates") from e
