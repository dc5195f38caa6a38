"""
Guardrail pipeline.

Order:
  1. Consent      - failure short-circuits; no other check runs.
  2. Eligibility
  3. Tone
  4. Disclaimer   - injects the standard disclaimer first, then verifies it.
  5. Offer filter - strips excluded products (not a reported check).

Overall pass is the AND of the reported results. The recommendation's
``decision_trace.guardrails_passed`` is *replaced* with this run's results,
so running the pipeline twice gives the same trace, disclaimer and outcome.
Persisting or discarding a failed recommendation is the caller's decision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from spendsense.guardrails.consent import check_consent
from spendsense.guardrails.disclaimer import check_disclaimer, ensure_disclaimer
from spendsense.guardrails.eligibility import check_eligibility, filter_excluded_offers
from spendsense.guardrails.tone import check_tone
from spendsense.models.recommendation import GuardrailResult, Recommendation
from spendsense.models.signal import SignalResult
from spendsense.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class GuardrailOutcome:
    """Result of running the guardrail pipeline on one recommendation.

    Attributes:
        passed: True only when every reported check passed.
        results: Reported checks in evaluation order.
        recommendation: The (possibly mutated) recommendation.
    """

    passed: bool
    recommendation: Recommendation
    results: list[GuardrailResult] = field(default_factory=list)

    @property
    def failures(self) -> list[GuardrailResult]:
        return [r for r in self.results if not r.passed]


def apply_guardrails(
    recommendation: Recommendation,
    user: User,
    signals: SignalResult,
) -> GuardrailOutcome:
    """Validate and sanitize one recommendation.

    Args:
        recommendation: Candidate recommendation; mutated in place.
        user: Owner of the recommendation.
        signals: Signals the recommendation was built from.

    Returns:
        ``GuardrailOutcome``.
    """
    consent = check_consent(user)
    if not consent.passed:
        recommendation.decision_trace.guardrails_passed = [consent]
        logger.info(
            "Guardrails blocked %s: no consent for user %s",
            recommendation.recommendation_id, user.user_id,
        )
        return GuardrailOutcome(passed=False, recommendation=recommendation, results=[consent])

    results = [
        consent,
        check_eligibility(recommendation, signals),
        check_tone(recommendation),
    ]
    ensure_disclaimer(recommendation)
    results.append(check_disclaimer(recommendation))

    kept = filter_excluded_offers(recommendation.partner_offers)
    removed = len(recommendation.partner_offers) - len(kept)
    if removed:
        logger.warning(
            "Removed %d excluded offer(s) from %s",
            removed, recommendation.recommendation_id,
        )
        recommendation.partner_offers = kept

    recommendation.decision_trace.guardrails_passed = list(results)
    outcome = GuardrailOutcome(
        passed=all(r.passed for r in results),
        recommendation=recommendation,
        results=results,
    )
    if not outcome.passed:
        logger.info(
            "Guardrails failed %s: %s",
            recommendation.recommendation_id,
            "; ".join(f"{r.name}: {r.reason}" for r in outcome.failures),
        )
    return outcome
