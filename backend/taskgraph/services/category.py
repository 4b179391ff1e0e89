"""Keyword-based task category detection."""
from __future__ import annotations

from typing import Dict, List

from taskgraph.schemas.task import Category

# Checked in insertion order; the first category with a hit wins.
CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "work": ["work", "job", "project", "deadline", "meeting", "presentation", "client", "report", "email"],
    "learning": ["learn", "study", "course", "read", "book", "education", "skill", "practice", "knowledge"],
    "health": ["health", "exercise", "workout", "diet", "nutrition", "medical", "doctor", "fitness", "wellbeing"],
}

DEFAULT_CATEGORY: Category = "other"


def detect_category(text: str | None) -> Category:
    lowered = (text or "").lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return category  # type: ignore[return-value]
    return DEFAULT_CATEGORY
