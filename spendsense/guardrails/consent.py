"""Consent guardrail: nothing is released for a user without active consent."""

from __future__ import annotations

from spendsense.models.recommendation import GuardrailResult
from spendsense.models.user import User

CONSENT_CHECK = "Consent Check"


def check_consent(user: User) -> GuardrailResult:
    active = user.consent_status.active
    return GuardrailResult(
        name=CONSENT_CHECK,
        passed=active,
        reason=(
            "User has active consent"
            if active else "User consent required before processing"
        ),
    )
