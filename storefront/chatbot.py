# storefront/chatbot.py
import json
from typing import Dict, List

import requests

from . import config
from .errors import ServiceUnavailable, UpstreamError, ValidationError
from .logger import get_logger

_logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a friendly and helpful assistant for a grocery store called GreenGrocer "
    "that specializes in fresh produce. "
    "Answer questions about products, wholesale programs, delivery options, pricing, "
    "returns, and other store policies. "
    "Keep responses concise and friendly. If you don't know the answer, suggest "
    "contacting customer service."
)


def build_messages(question: str, history: List[Dict[str, str]]) -> List[Dict[str, str]]:
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    messages.extend(history or [])
    messages.append({"role": "user", "content": question})
    return messages


def ask(question: str, history: List[Dict[str, str]]) -> str:
    """Forward the question and prior turns to the chat completion API."""
    question = (question or "").strip()
    if not question:
        raise ValidationError(
            "Question is required",
            [{"loc": ["body", "question"], "msg": "Question is required", "type": "missing"}],
        )
    if not config.OPENAI_API_KEY:
        raise ServiceUnavailable("Chatbot not configured (OPENAI_API_KEY).")

    headers = {
        "Authorization": f"Bearer {config.OPENAI_API_KEY}",
        "Content-Type": "application/json",
    }
    body = {
        "model": config.OPENAI_MODEL,
        "messages": build_messages(question, history),
        "max_tokens": config.CHATBOT_MAX_TOKENS,
    }
    try:
        r = requests.post(
            f"{config.OPENAI_BASE_URL}/chat/completions",
            headers=headers,
            data=json.dumps(body),
            timeout=config.CHATBOT_TIMEOUT,
        )
    except requests.RequestException as e:
        _logger.error(f"Chatbot request failed: {e!r}")
        raise UpstreamError("Error processing chatbot request")
    if r.status_code != 200:
        _logger.error(f"Chatbot upstream error {r.status_code}: {r.text[:500]}")
        raise UpstreamError("Error processing chatbot request")

    try:
        return r.json()["choices"][0]["message"]["content"] or ""
    except (ValueError, KeyError, IndexError, TypeError):
        _logger.error(f"Unexpected chatbot payload: {r.text[:500]}")
        raise UpstreamError("Error processing chatbot request")
