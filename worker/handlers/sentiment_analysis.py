"""
sentiment_analysis: label a piece of text positive / negative / neutral.
"""
from __future__ import annotations

from typing import Any, Dict

from worker.handlers.payload import require_mapping, require_text
from worker.sentiment import analyze_sentiment


async def handle(payload: Dict[str, Any]) -> Dict[str, Any]:
    payload = require_mapping(payload)
    text = require_text(payload, "text")
    return analyze_sentiment(text)
