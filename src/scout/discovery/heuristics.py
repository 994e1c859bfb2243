"""Heuristic change detection over free-text round input.

Combines the additional context and the latest answers into one string and
looks for explicit refresh tokens or a noun/verb pair within a bounded
character window, in either order. Pure functions; no I/O.
"""

import re
from collections.abc import Iterable
from functools import lru_cache

from scout.discovery.models import ChangeSignals, DiscoveryAnswer

DEFAULT_WINDOW = 42

STACK_REFRESH_TOKEN = re.compile(r"(?:^|\s)(?:/refresh-stack|#refresh-stack)\b", re.IGNORECASE)
CONTEXT_REFRESH_TOKEN = re.compile(
    r"(?:^|\s)(?:/refresh-context|#refresh-context|/refresh-discovery|#refresh-discovery)\b",
    re.IGNORECASE,
)

STACK_NOUNS = r"stack|framework|language|runtime|database|db|orm"
STACK_VERBS = (
    r"change|changed|switch|switched|migrate|migrated|migration|replace|replaced"
    r"|rewrite|refactor|move|moved"
)
SCOPE_NOUNS = (
    r"scope|requirements?|constraints?|deadline|timeline|security|compliance"
    r"|architecture|infra(?:structure)?|database|api"
)
SCOPE_VERBS = r"change|changed|switch|switched|replace|replaced|new|different|pivot"


@lru_cache(maxsize=32)
def pairing_pattern(nouns: str, verbs: str, window: int) -> re.Pattern[str]:
    """Compile a bidirectional noun/verb proximity pattern.

    Args:
        nouns: Regex alternation of nouns
        verbs: Regex alternation of verbs
        window: Max characters between the two words

    Returns:
        Case-insensitive pattern matching noun...verb or verb...noun
    """
    gap = rf".{{0,{window}}}"
    return re.compile(
        rf"\b(?:{nouns})\b{gap}\b(?:{verbs})\b|\b(?:{verbs})\b{gap}\b(?:{nouns})\b",
        re.IGNORECASE | re.DOTALL,
    )


def combine_context(additional_context: str, answers: Iterable[DiscoveryAnswer | str]) -> str:
    """Join non-blank context and answer texts with newlines.

    Returns an empty string when every entry is blank.
    """
    texts = [additional_context]
    for answer in answers:
        texts.append(answer.answer if isinstance(answer, DiscoveryAnswer) else answer)
    return "\n".join(text.strip() for text in texts if text and text.strip())


def stack_change_signal(combined: str, window: int = DEFAULT_WINDOW) -> bool:
    """True if the text asks for a stack refresh or mentions a stack change."""
    if not combined:
        return False
    return bool(
        STACK_REFRESH_TOKEN.search(combined)
        or pairing_pattern(STACK_NOUNS, STACK_VERBS, window).search(combined)
    )


def context_change_signal(combined: str, window: int = DEFAULT_WINDOW) -> bool:
    """True if the text asks for a full refresh or mentions a scope change."""
    if not combined:
        return False
    return bool(
        CONTEXT_REFRESH_TOKEN.search(combined)
        or pairing_pattern(SCOPE_NOUNS, SCOPE_VERBS, window).search(combined)
    )


def detect_changes(
    additional_context: str,
    answers: Iterable[DiscoveryAnswer | str],
    window: int = DEFAULT_WINDOW,
) -> ChangeSignals:
    """Run both detectors over the combined round input.

    Args:
        additional_context: Free-text context supplied with the round
        answers: Latest answers (objects or raw strings)
        window: Noun/verb proximity window in characters

    Returns:
        ChangeSignals with independent stack and context flags
    """
    combined = combine_context(additional_context, answers)
    return ChangeSignals(
        stack_changed=stack_change_signal(combined, window),
        context_changed=context_change_signal(combined, window),
    )
