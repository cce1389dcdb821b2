"""Classify free-text activity feed entries into typed actions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence


class ActionKind(str, Enum):
    WORK_START = "work_start"
    BREAK_START = "break_start"
    STOP = "stop"
    JOIN = "join"
    UNRECOGNIZED = "unrecognized"


@dataclass(slots=True, frozen=True)
class FeedAction:
    kind: ActionKind
    duration_minutes: Optional[int] = None


UNRECOGNIZED = FeedAction(ActionKind.UNRECOGNIZED)


@dataclass(slots=True, frozen=True)
class ActionRule:
    """One matching rule; the first capture group, if any, is the duration.

    ``keyword`` narrows the rule to text that also mentions that word anywhere.
    """

    pattern: re.Pattern[str]
    kind: ActionKind
    keyword: Optional[str] = None

    def match(self, text: str) -> Optional[FeedAction]:
        found = self.pattern.search(text)
        if not found:
            return None
        if self.keyword and self.keyword not in text.lower():
            return None
        duration = int(found.group(1)) if found.groups() and found.group(1) else None
        return FeedAction(self.kind, duration)


_TIMER_START = r"started.*?(\d+)\s*min"

# Ordered from most to least specific; the first match wins.
DEFAULT_RULES: tuple[ActionRule, ...] = (
    ActionRule(re.compile(_TIMER_START + r".*?work", re.IGNORECASE), ActionKind.WORK_START),
    ActionRule(re.compile(_TIMER_START + r".*?break", re.IGNORECASE), ActionKind.BREAK_START),
    ActionRule(re.compile(_TIMER_START, re.IGNORECASE), ActionKind.BREAK_START, keyword="break"),
    ActionRule(re.compile(_TIMER_START, re.IGNORECASE), ActionKind.WORK_START),
    ActionRule(re.compile(r"\b(?:stopped|skipped)\b", re.IGNORECASE), ActionKind.STOP),
    ActionRule(re.compile(r"joined", re.IGNORECASE), ActionKind.JOIN),
)


def classify_action(text: str, rules: Sequence[ActionRule] = DEFAULT_RULES) -> FeedAction:
    """Return the first rule outcome matching ``text``, or ``UNRECOGNIZED``."""
    if not text:
        return UNRECOGNIZED
    normalized = re.sub(r"\s{2,}", " ", text).strip()
    for rule in rules:
        action = rule.match(normalized)
        if action is not None:
            return action
    return UNRECOGNIZED
