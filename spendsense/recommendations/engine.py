"""
Recommendation engine.

Selection:
  1. Up to ``target_count`` eligible templates for the primary persona,
     ordered by template priority.
  2. If fewer than ``target_count`` were produced, backfill with the single
     top eligible template of each secondary persona, in persona priority
     order, until the target is reached or templates run out.

Each selected template is rendered into a ``Recommendation`` with a
``DecisionTrace``. Educational prose comes from a ``ContentGenerator``,
which never raises; whatever string it returns is used as-is. A failure
while rendering one template is logged and that template is skipped.

The standard disclaimer is attached here and re-verified by the guardrail
pipeline.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence
from uuid import uuid4

from spendsense.guardrails.disclaimer import STANDARD_DISCLAIMER
from spendsense.models.persona import PersonaAssignment
from spendsense.models.recommendation import DecisionTrace, Recommendation
from spendsense.models.signal import SignalResult
from spendsense.models.user import User
from spendsense.recommendations.content import ContentGenerator, StaticContentGenerator
from spendsense.recommendations.partners import match_partner_offers
from spendsense.recommendations.templates import (
    ALL_TEMPLATES,
    RecommendationTemplate,
    templates_for,
)
from spendsense.taxonomy.persona_taxonomy import PersonaType
from spendsense.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_TARGET_COUNT = 5
DEFAULT_CONFIDENCE = 0.85


def build_prompt(title: str, rationale: str) -> str:
    """Build the content-generation prompt for one recommendation."""
    return (
        "Create brief, empowering financial education content for someone who "
        f"needs help with: {title}.\n"
        "\n"
        f"Context: {rationale}\n"
        "\n"
        "Focus on:\n"
        "- Clear, jargon-free language\n"
        "- Actionable, practical advice\n"
        "- Supportive, non-judgmental tone\n"
        "- 2-3 paragraphs maximum\n"
        "\n"
        "Avoid:\n"
        "- Shaming language\n"
        "- Complex financial jargon\n"
        "- Product pitches"
    )


def signals_used(signals: SignalResult) -> list[str]:
    """Names of the signal categories that carry data for this user."""
    used: list[str] = []
    if signals.credit.cards:
        used.append("credit_utilization")
    if signals.income.has_payroll_pattern:
        used.append("income_patterns")
    if signals.subscription.total_recurring_count > 0:
        used.append("subscriptions")
    if signals.savings.current_savings_balance > 0:
        used.append("savings_balance")
    return used


def _eligible(
    persona_type: PersonaType,
    user: User,
    signals: SignalResult,
    templates: Sequence[RecommendationTemplate],
) -> list[RecommendationTemplate]:
    eligible: list[RecommendationTemplate] = []
    for template in templates_for(persona_type, tuple(templates)):
        try:
            if template.is_eligible(user, signals):
                eligible.append(template)
        except Exception as exc:
            logger.error(
                "Eligibility check failed for template %s (user=%s): %s",
                template.template_id, user.user_id, exc,
            )
    return eligible


async def render_recommendation(
    user: User,
    signals: SignalResult,
    persona_type: PersonaType,
    template: RecommendationTemplate,
    content_generator: ContentGenerator,
    confidence: float = DEFAULT_CONFIDENCE,
) -> Recommendation:
    """Render one template into a pending ``Recommendation``.

    Raises:
        Exception: Whatever the template's renderers raise; the caller
            decides whether to skip.
    """
    started = time.perf_counter()

    rationale = template.render_rationale(user, signals)
    action_items = template.render_action_items(user, signals)
    prompt = build_prompt(template.title, rationale)
    content = await content_generator.generate(prompt)

    if template.match_offers is not None:
        offers = template.match_offers(user, signals)
    else:
        offers = match_partner_offers(user, signals, persona_type)

    now = utcnow()
    trace = DecisionTrace(
        timestamp=now,
        persona_matched=persona_type,
        signals_used=signals_used(signals),
        template_applied=template.template_id,
        ai_prompt_used=prompt,
        confidence=confidence,
        latency_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return Recommendation(
        recommendation_id=f"rec_{uuid4().hex[:16]}",
        user_id=user.user_id,
        persona_type=persona_type,
        category=template.category,
        title=template.title,
        description=template.description,
        rationale=rationale,
        educational_content=content,
        action_items=action_items,
        partner_offers=offers,
        disclaimer=STANDARD_DISCLAIMER,
        created_at=now,
        decision_trace=trace,
    )


async def generate_recommendations(
    user: User,
    signals: SignalResult,
    personas: Sequence[PersonaAssignment],
    target_count: int = DEFAULT_TARGET_COUNT,
    content_generator: Optional[ContentGenerator] = None,
    templates: Sequence[RecommendationTemplate] = ALL_TEMPLATES,
    confidence: float = DEFAULT_CONFIDENCE,
) -> list[Recommendation]:
    """Generate persona-targeted recommendations for one user.

    Args:
        user: The user.
        signals: Signals the personas were assigned from.
        personas: The user's persona assignments (any order).
        target_count: Maximum number of recommendations to return.
        content_generator: Source of educational prose. Defaults to
            ``StaticContentGenerator``.
        templates: Template library to select from.
        confidence: Static confidence recorded in each decision trace.

    Returns:
        Up to ``target_count`` pending recommendations; empty when the user
        has no personas.

    Raises:
        ValueError: If ``target_count < 1``.
    """
    if target_count < 1:
        raise ValueError(f"target_count must be >= 1, got {target_count}.")
    if not personas:
        logger.warning("No personas assigned for user %s; nothing to recommend.", user.user_id)
        return []

    generator = content_generator or StaticContentGenerator()
    ordered = sorted(personas, key=lambda p: p.priority)
    primary, secondary = ordered[0], ordered[1:]

    plan: list[tuple[PersonaType, RecommendationTemplate]] = [
        (primary.persona_type, t)
        for t in _eligible(primary.persona_type, user, signals, templates)
    ]

    recommendations: list[Recommendation] = []

    async def _attempt(persona_type: PersonaType, template: RecommendationTemplate) -> None:
        try:
            rec = await render_recommendation(
                user, signals, persona_type, template, generator, confidence
            )
        except Exception as exc:
            logger.error(
                "Failed to render template %s for user %s: %s",
                template.template_id, user.user_id, exc,
            )
            return
        recommendations.append(rec)

    for persona_type, template in plan:
        if len(recommendations) >= target_count:
            break
        await _attempt(persona_type, template)

    for persona in secondary:
        if len(recommendations) >= target_count:
            break
        top = _eligible(persona.persona_type, user, signals, templates)[:1]
        for template in top:
            await _attempt(persona.persona_type, template)

    logger.info(
        "Generated %d recommendation(s) for %s (primary=%s)",
        len(recommendations), user.user_id, primary.persona_type.value,
    )
    return recommendations
