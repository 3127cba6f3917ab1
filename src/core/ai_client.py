"""
AI completion client setup with lazy initialization.
"""

import logging

from openai import OpenAI

from core.config import AI_API_KEY, AI_API_KEY_FILE, AI_BASE_URL, AI_MODEL

logger = logging.getLogger(__name__)

_ai_client: OpenAI | None = None


def load_api_key() -> str | None:
    """API key from the environment, else from the local key file."""
    if AI_API_KEY:
        return AI_API_KEY
    if AI_API_KEY_FILE.exists():
        key = AI_API_KEY_FILE.read_text(encoding="utf-8").strip()
        return key or None
    return None


def get_ai_client() -> OpenAI | None:
    """Get or create the completion client; None when no key is configured."""
    global _ai_client
    if _ai_client is None:
        api_key = load_api_key()
        if not api_key:
            logger.warning("No AI API key configured; natural-language parsing disabled")
            return None
        _ai_client = OpenAI(api_key=api_key, base_url=AI_BASE_URL)
    return _ai_client


def complete(prompt: str) -> str:
    """Send a single-turn prompt and return the model's text answer."""
    client = get_ai_client()
    if client is None:
        raise RuntimeError("AI service not configured")

    response = client.chat.completions.create(
        model=AI_MODEL,
        messages=[{"role": "user", "content": prompt}],
        temperature=0,
    )
    if not response.choices:
        return ""
    return response.choices[0].message.content or ""
