# Implements the static login-page heuristic over raw response HTML.

from __future__ import annotations

import logging
import re

from login_finder.indicators import CAPTCHA_TOKENS, DEFAULT_INDICATORS, LoginIndicators

log = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 6

# <form ...> ... <input ... type="password" ...> ... </form>, shortest span.
_FORM_WITH_PASSWORD = re.compile(
    r"<form[^>]*>[\s\S]*?<input[^>]*type=[\"']password[\"'][^>]*>[\s\S]*?</form>"
)


def passes_gate(body_lower: str) -> bool:
    """A candidate needs both a form and a password input."""
    return "<form" in body_lower and 'type="password"' in body_lower


def calculate_score(body: str | None, indicators: LoginIndicators = DEFAULT_INDICATORS) -> int:
    """
    Score a response body. Returns 0 when the form/password gate fails.

    score = 2 * form attribute hits
          + 3 if at least two input types appear as type="..."
          + 2 * button text hits
          + 1 * keyword hits
          - 3 if more than two exclusion keywords appear
          + 3 if a form encloses a password input
          + 1 if a captcha token appears

    Matching is plain substring search on the lower-cased body, so broken
    HTML is handled the same as well-formed HTML.
    """
    if not body:
        return 0
    body_lower = body.lower()
    if not passes_gate(body_lower):
        return 0

    score = 0
    score += 2 * sum(1 for attr in indicators.form_attributes if attr in body_lower)

    input_types = sum(
        1 for name in indicators.input_types if f'type="{name}"' in body_lower
    )
    if input_types >= 2:
        score += 3

    score += 2 * sum(1 for text in indicators.button_texts if text in body_lower)
    score += sum(1 for word in indicators.keywords if word in body_lower)

    # Registration and password-recovery pages share most login features.
    excluded = sum(1 for word in indicators.exclusions if word in body_lower)
    if excluded > 2:
        score -= 3

    if _FORM_WITH_PASSWORD.search(body_lower):
        score += 3

    if any(token in body_lower for token in CAPTCHA_TOKENS):
        score += 1

    return score


def is_login_page(
    body: str | None,
    indicators: LoginIndicators = DEFAULT_INDICATORS,
    threshold: int = DEFAULT_THRESHOLD,
) -> bool:
    """True when the body scores at or above ``threshold``."""
    score = calculate_score(body, indicators)
    log.debug("Login page detection score: %d", score)
    return score >= threshold
