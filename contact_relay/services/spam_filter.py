"""Heuristic spam detection for contact form content.

Checks run in order and the first match wins; there is no scoring.
"""
import re

KEYWORD_PATTERNS = (
    re.compile(r"\b(?:viagra|cialis|casino|poker|lottery|winner|congratulations)\b", re.IGNORECASE),
    re.compile(r"\b(?:click here|free money|make money fast|work from home)\b", re.IGNORECASE),
)
URL_PATTERN = re.compile(r"https?://\S+", re.IGNORECASE)
REPEATED_CHAR_PATTERN = re.compile(r"(.)\1{10,}", re.IGNORECASE)
NON_ASCII_RUN_PATTERN = re.compile(r"[^\x00-\x7F]{20,}")

MAX_URLS = 3


def _has_spam_keyword(content: str) -> bool:
    return any(pattern.search(content) for pattern in KEYWORD_PATTERNS)


def _has_too_many_urls(content: str) -> bool:
    return len(URL_PATTERN.findall(content)) >= MAX_URLS


def _has_repeated_characters(content: str) -> bool:
    return REPEATED_CHAR_PATTERN.search(content) is not None


def _has_non_ascii_run(content: str) -> bool:
    return NON_ASCII_RUN_PATTERN.search(content) is not None


SPAM_CHECKS = (
    _has_spam_keyword,
    _has_too_many_urls,
    _has_repeated_characters,
    _has_non_ascii_run,
)


def is_spam(content: str) -> bool:
    """Return True if any heuristic matches ``content``."""
    return any(check(content) for check in SPAM_CHECKS)
