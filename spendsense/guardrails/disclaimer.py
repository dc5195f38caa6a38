"""Disclaimer guardrail: every released recommendation carries the standard disclaimer."""

from __future__ import annotations

from spendsense.models.recommendation import GuardrailResult, Recommendation

DISCLAIMER_CHECK = "Disclaimer Check"

STANDARD_DISCLAIMER = (
    "This is educational content, not financial advice. "
    "Consult a licensed advisor for personalized guidance."
)


def ensure_disclaimer(recommendation: Recommendation) -> Recommendation:
    """Inject the standard disclaimer when none is present (mutates in place)."""
    if not recommendation.disclaimer:
        recommendation.disclaimer = STANDARD_DISCLAIMER
    return recommendation


def check_disclaimer(recommendation: Recommendation) -> GuardrailResult:
    if not recommendation.disclaimer:
        return GuardrailResult(
            name=DISCLAIMER_CHECK, passed=False, reason="Missing required disclaimer"
        )
    if recommendation.disclaimer != STANDARD_DISCLAIMER:
        return GuardrailResult(
            name=DISCLAIMER_CHECK,
            passed=False,
            reason="Disclaimer does not match standard template",
        )
    return GuardrailResult(
        name=DISCLAIMER_CHECK, passed=True, reason="Standard disclaimer present"
    )
