"""
Lexicon-based review sentiment scoring.

Fast, deterministic and offline: used directly by the sentiment_analysis job
and as the sentiment signal for review_processing.
"""
from __future__ import annotations

import re
from typing import Dict, List

POSITIVE_WORDS = {
    "amazing", "awesome", "best", "clean", "comfortable", "delicious", "excellent",
    "fantastic", "fast", "friendly", "fresh", "glad", "good", "great", "happy",
    "helpful", "impressed", "kind", "love", "loved", "lovely", "nice", "perfect",
    "pleasant", "polite", "professional", "quick", "recommend", "recommended",
    "reliable", "satisfied", "superb", "tasty", "thank", "thanks", "welcoming",
    "wonderful", "worth",
}

NEGATIVE_WORDS = {
    "awful", "bad", "broken", "cold", "complaint", "dirty", "disappointed",
    "disappointing", "disgusting", "expensive", "horrible", "late", "mediocre",
    "never", "overpriced", "poor", "refund", "rude", "slow", "terrible",
    "unhelpful", "unprofessional", "unfriendly", "upset", "waste", "worst",
    "wrong",
}

NEGATIONS = {"not", "no", "hardly", "barely", "without"}

INTENSIFIERS = {"very": 1.5, "really": 1.5, "extremely": 2.0, "so": 1.3, "super": 1.5, "absolutely": 1.8}

# Scores inside (-NEUTRAL_BAND, NEUTRAL_BAND) are labelled neutral.
NEUTRAL_BAND = 0.1

_TOKEN_RE = re.compile(r"[a-z]+(?:'[a-z]+)?")


def _tokens(text: str) -> List[str]:
    return _TOKEN_RE.findall((text or "").lower())


def _is_negation(token: str) -> bool:
    return token in NEGATIONS or token.endswith("n't")


def label_for_score(score: float) -> str:
    if score >= NEUTRAL_BAND:
        return "positive"
    if score <= -NEUTRAL_BAND:
        return "negative"
    return "neutral"


def analyze_sentiment(text: str) -> Dict:
    """
    Score text in [-1, 1] and label it positive / negative / neutral.

    A negation within the two preceding tokens flips a term's polarity
    ("not good" counts as negative); an intensifier directly before a term
    scales its weight.
    """
    tokens = _tokens(text)
    positive_hits: List[str] = []
    negative_hits: List[str] = []
    pos_weight = 0.0
    neg_weight = 0.0

    for idx, token in enumerate(tokens):
        if token in POSITIVE_WORDS:
            polarity = 1
        elif token in NEGATIVE_WORDS:
            polarity = -1
        else:
            continue

        window = tokens[max(0, idx - 2):idx]
        if any(_is_negation(t) for t in window):
            polarity = -polarity

        weight = INTENSIFIERS.get(tokens[idx - 1], 1.0) if idx > 0 else 1.0
        if polarity > 0:
            pos_weight += weight
            positive_hits.append(token)
        else:
            neg_weight += weight
            negative_hits.append(token)

    total = pos_weight + neg_weight
    score = 0.0 if total == 0 else (pos_weight - neg_weight) / total
    score = round(score, 3)

    return {
        "sentiment": label_for_score(score),
        "score": score,
        "positive_terms": list(dict.fromkeys(positive_hits)),
        "negative_terms": list(dict.fromkeys(negative_hits)),
    }


__all__ = ["analyze_sentiment", "label_for_score", "NEUTRAL_BAND"]
