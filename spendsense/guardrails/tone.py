"""
Tone guardrail.

Scans the user-facing text of a recommendation (title, description,
rationale, educational content) case-insensitively and fails when:
  - any prohibited shaming or prescriptive phrase appears;
  - the word "must" appears more than twice;
  - none of the empowering terms appear.
"""

from __future__ import annotations

import re

from spendsense.models.recommendation import GuardrailResult, Recommendation

TONE_CHECK = "Tone Validation"

PROHIBITED_PHRASES: tuple[str, ...] = (
    "overspending",
    "bad with money",
    "poor financial decisions",
    "irresponsible",
    "wasteful",
    "foolish",
    "stupid",
    "dumb decision",
    "you should have",
    "you need to",
    "you must",
    "financial mistake",
    "bad habit",
    "poor choice",
)

EMPOWERING_TERMS: tuple[str, ...] = (
    "opportunity",
    "can help",
    "consider",
    "might benefit",
    "could improve",
    "option",
    "strategy",
    "approach",
)

MAX_MUST_COUNT = 2
_MUST_RE = re.compile(r"\bmust\b")


def check_tone_text(text: str) -> GuardrailResult:
    """Run the tone rules over an arbitrary block of text."""
    lowered = text.lower()
    issues: list[str] = []

    found = [p for p in PROHIBITED_PHRASES if p in lowered]
    if found:
        issues.append(f"Contains shaming language: {', '.join(found)}")

    if len(_MUST_RE.findall(lowered)) > MAX_MUST_COUNT:
        issues.append("Contains overly prescriptive language")

    if not any(term in lowered for term in EMPOWERING_TERMS):
        issues.append("Lacks empowering, supportive language")

    passed = not issues
    return GuardrailResult(
        name=TONE_CHECK,
        passed=passed,
        reason=(
            "Content uses appropriate, empowering tone"
            if passed else f"Tone issues: {'; '.join(issues)}"
        ),
    )


def check_tone(recommendation: Recommendation) -> GuardrailResult:
    text = " ".join((
        recommendation.title,
        recommendation.description,
        recommendation.rationale,
        recommendation.educational_content,
    ))
    return check_tone_text(text)
