"""
Recommendation, partner offer, and decision-trace models.

``Recommendation`` and its ``DecisionTrace`` are NOT frozen: the guardrail
pipeline filters offers, injects the disclaimer, and replaces the trace's
guardrail results, and operators move ``status`` through its lifecycle.
Everything else here is frozen.

Status lifecycle (enforced by ``Recommendation.transition_to``)::

    pending ──► approved
       │   ├──► rejected
       │   └──► flagged ──► approved | rejected
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spendsense.taxonomy.offer_taxonomy import (
    STATUS_TRANSITIONS,
    OfferType,
    OperatorActionType,
    RecommendationStatus,
)
from spendsense.taxonomy.persona_taxonomy import PersonaType


class InvalidStatusTransition(ValueError):
    """Raised when a recommendation is moved to a status its lifecycle forbids."""


class EligibilityStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    eligible: bool
    reasons: list[str] = Field(default_factory=list)


class PartnerOffer(BaseModel):
    """A partner product attached to a recommendation."""

    model_config = ConfigDict(frozen=True)

    offer_id: str
    name: str
    description: str
    type: OfferType
    eligibility: EligibilityStatus
    eligibility_criteria: list[str] = Field(default_factory=list)
    cta_text: str
    cta_url: Optional[str] = None


class GuardrailResult(BaseModel):
    """Outcome of one named guardrail check."""

    model_config = ConfigDict(frozen=True)

    name: str
    passed: bool
    reason: Optional[str] = None


class DecisionTrace(BaseModel):
    """Audit record of how a recommendation was produced.

    Attributes:
        timestamp: When the recommendation was generated (UTC).
        persona_matched: Persona whose template produced it.
        signals_used: Names of the signal categories consulted (not values).
        template_applied: Template id.
        guardrails_passed: Results of the most recent guardrail run.
        ai_prompt_used: Prompt sent to the content generator.
        confidence: Static engine confidence score.
        latency_ms: Wall time spent generating this recommendation.
    """

    model_config = ConfigDict(frozen=False)

    timestamp: datetime
    persona_matched: PersonaType
    signals_used: list[str] = Field(default_factory=list)
    template_applied: str
    guardrails_passed: list[GuardrailResult] = Field(default_factory=list)
    ai_prompt_used: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0)
    latency_ms: Optional[float] = None


class Recommendation(BaseModel):
    """A persona-targeted recommendation for one user."""

    # Not frozen - guardrails and operator review mutate it in place
    model_config = ConfigDict(frozen=False, validate_assignment=True)

    recommendation_id: str
    user_id: str
    persona_type: PersonaType
    category: str
    title: str
    description: str
    rationale: str
    educational_content: str
    action_items: list[str] = Field(default_factory=list)
    partner_offers: list[PartnerOffer] = Field(default_factory=list)
    disclaimer: str = ""
    created_at: datetime
    status: RecommendationStatus = RecommendationStatus.PENDING
    decision_trace: DecisionTrace

    def transition_to(self, new_status: RecommendationStatus | str) -> None:
        """Move this recommendation to ``new_status``.

        Args:
            new_status: Target status.

        Raises:
            InvalidStatusTransition: If the lifecycle forbids the move.
            ValueError: If ``new_status`` is not a known status.
        """
        target = RecommendationStatus(new_status)
        allowed = STATUS_TRANSITIONS[self.status]
        if target not in allowed:
            raise InvalidStatusTransition(
                f"Cannot move recommendation {self.recommendation_id} "
                f"from '{self.status}' to '{target}'."
            )
        self.status = target


class OperatorAction(BaseModel):
    """Audit row written whenever an operator reviews a recommendation."""

    model_config = ConfigDict(frozen=True)

    action_id: Optional[int] = None
    operator_id: str
    action: OperatorActionType
    recommendation_id: str
    reason: Optional[str] = None
    created_at: datetime

    @field_validator("operator_id")
    @classmethod
    def validate_operator_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("operator_id must not be empty.")
        return v
