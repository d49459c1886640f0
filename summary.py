from __future__ import annotations

import logging
import os

import requests

from feeds import Item, normalize_text

logger = logging.getLogger(__name__)

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_SUMMARY_MODEL = os.getenv("CLAUDE_MODEL", "claude-3-opus-20240229")
SUMMARY_MAX_TOKENS = 150
SUMMARY_TIMEOUT_SECONDS = 60


def summary_source_text(item: Item) -> str:
    if item.text:
        return item.text
    return f"{item.title}\n{item.link}"


def build_summary_prompt(text: str) -> str:
    return f"Please summarize this Hacker News post concisely:\n\n{text.strip()}"


def summarize(
    text: str,
    api_key: str,
    model: str = DEFAULT_SUMMARY_MODEL,
    timeout_seconds: int = SUMMARY_TIMEOUT_SECONDS,
    session: requests.Session | None = None,
) -> tuple[str, str]:
    if not api_key:
        return "", "CLAUDE_API_KEY is not set."
    if not text.strip():
        return "", "Nothing to summarize for this story."

    payload = {
        "model": model,
        "max_tokens": SUMMARY_MAX_TOKENS,
        "messages": [{"role": "user", "content": build_summary_prompt(text)}],
    }
    headers = {
        "x-api-key": api_key,
        "anthropic-version": ANTHROPIC_VERSION,
        "content-type": "application/json",
    }
    http = session or requests
    try:
        response = http.post(
            ANTHROPIC_MESSAGES_URL,
            json=payload,
            headers=headers,
            timeout=timeout_seconds,
        )
        response.raise_for_status()
        result = response.json()
    except requests.RequestException as exc:
        logger.warning("Summary request failed: %s", exc)
        return "", f"Summary request failed ({normalize_text(str(exc))[:160]})."
    except ValueError:
        return "", "Summary response was not JSON."

    blocks = result.get("content", []) if isinstance(result, dict) else []
    pieces = [
        block.get("text", "")
        for block in blocks
        if isinstance(block, dict) and block.get("type") == "text"
    ]
    summary = "\n".join(piece.strip() for piece in pieces if piece.strip())
    if not summary:
        return "", "Summary response was empty."
    return summary, ""
