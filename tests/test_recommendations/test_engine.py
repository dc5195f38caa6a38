"""
Tests for template selection and recommendation rendering.

Async engine calls are driven with ``asyncio.run``; content comes from
``StaticContentGenerator`` unless a test needs something else.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from conftest import (
    make_card,
    make_credit,
    make_signals,
    make_subscriptions,
    make_user,
    steady_income,
)
from spendsense.guardrails.disclaimer import STANDARD_DISCLAIMER
from spendsense.models.persona import PersonaAssignment
from spendsense.models.signal import SavingsSignals, SignalResult
from spendsense.personas import assign_personas
from spendsense.recommendations import generate_recommendations
from spendsense.recommendations.content import StaticContentGenerator
from spendsense.recommendations.engine import build_prompt, signals_used
from spendsense.recommendations.templates import (
    ALL_TEMPLATES,
    RecommendationTemplate,
    templates_for,
)
from spendsense.taxonomy.offer_taxonomy import RecommendationStatus
from spendsense.taxonomy.persona_taxonomy import PersonaType

_NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _high_util_signals() -> SignalResult:
    """80% utilization, minimum-only payments, $80/month interest."""
    return make_signals(credit=make_credit(make_card(0.8, min_only=True, interest=80.0)))


def _personas(signals: SignalResult) -> list[PersonaAssignment]:
    return assign_personas(signals.user_id, signals, assigned_at=_NOW)


def _generate(signals: SignalResult, personas=None, **kwargs):
    return asyncio.run(generate_recommendations(
        make_user(),
        signals,
        _personas(signals) if personas is None else personas,
        **kwargs,
    ))


class _RecordingGenerator:
    def __init__(self) -> None:
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return "Consider small steps; they can help."


def _boom(user, signals):
    raise RuntimeError("renderer exploded")


# ── Template library ──────────────────────────────────────────────────────────

class TestTemplateLibrary:
    def test_at_least_two_per_persona(self):
        for persona in PersonaType:
            assert len(templates_for(persona)) >= 2, persona

    def test_unique_ids(self):
        ids = [t.template_id for t in ALL_TEMPLATES]
        assert len(ids) == len(set(ids))

    def test_ordered_by_priority(self):
        hu = templates_for(PersonaType.HIGH_UTILIZATION)
        assert [t.template_id for t in hu] == ["hu_1", "hu_2", "hu_3"]


# ── Engine ────────────────────────────────────────────────────────────────────

class TestGenerateRecommendations:
    def test_primary_persona_templates(self):
        recs = _generate(_high_util_signals())
        assert [r.decision_trace.template_applied for r in recs] == ["hu_1", "hu_2"]
        assert all(r.persona_type is PersonaType.HIGH_UTILIZATION for r in recs)

    def test_rendered_fields(self):
        rec = _generate(_high_util_signals())[0]
        assert rec.user_id == "u001"
        assert rec.title == "Reduce Credit Card Utilization"
        assert "80% utilization" in rec.rationale
        assert rec.action_items[0] == "Pay down $2,500.00 to reach 30% utilization"
        assert rec.status is RecommendationStatus.PENDING
        assert rec.disclaimer == STANDARD_DISCLAIMER
        assert rec.recommendation_id.startswith("rec_")

    def test_decision_trace(self):
        rec = _generate(_high_util_signals(), confidence=0.9)[0]
        trace = rec.decision_trace
        assert trace.persona_matched is PersonaType.HIGH_UTILIZATION
        assert trace.template_applied == "hu_1"
        assert trace.confidence == 0.9
        assert "credit_utilization" in trace.signals_used
        assert "income_patterns" in trace.signals_used
        assert rec.title in trace.ai_prompt_used
        assert trace.guardrails_passed == []
        assert trace.latency_ms is not None

    def test_target_count_caps_output(self):
        recs = _generate(_high_util_signals(), target_count=1)
        assert len(recs) == 1

    def test_invalid_target_count(self):
        with pytest.raises(ValueError, match="target_count"):
            _generate(_high_util_signals(), target_count=0)

    def test_no_personas(self):
        assert _generate(make_signals(), personas=[]) == []

    def test_backfills_from_secondary_persona(self):
        signals = make_signals(
            window="30d",
            credit=make_credit(make_card(0.8, min_only=True, interest=80.0)),
            subscription=make_subscriptions(3, 90.0, 20.0),
        )
        recs = _generate(signals)
        assert [r.decision_trace.template_applied for r in recs] == ["hu_1", "hu_2", "sh_1"]
        assert recs[2].persona_type is PersonaType.SUBSCRIPTION_HEAVY

    def test_secondary_contributes_only_its_top_template(self):
        signals = make_signals(
            window="30d",
            credit=make_credit(make_card(0.8, min_only=True, interest=80.0)),
            subscription=make_subscriptions(3, 90.0, 20.0),
        )
        recs = _generate(signals, target_count=10)
        sh = [r for r in recs if r.persona_type is PersonaType.SUBSCRIPTION_HEAVY]
        assert len(sh) == 1

    def test_failing_template_is_skipped(self):
        broken = RecommendationTemplate(
            template_id="hu_broken",
            persona_type=PersonaType.HIGH_UTILIZATION,
            category="Credit Management",
            title="Broken",
            description="Always fails to render.",
            priority=0,
            is_eligible=lambda u, s: True,
            render_rationale=_boom,
            render_action_items=lambda u, s: [],
        )
        recs = _generate(_high_util_signals(), templates=(broken,) + ALL_TEMPLATES)
        assert [r.decision_trace.template_applied for r in recs] == ["hu_1", "hu_2"]

    def test_uses_content_generator(self):
        generator = _RecordingGenerator()
        recs = _generate(_high_util_signals(), content_generator=generator)
        assert len(generator.prompts) == len(recs)
        assert all(r.educational_content == "Consider small steps; they can help." for r in recs)

    def test_default_generator_is_static(self):
        rec = _generate(_high_util_signals())[0]
        assert rec.educational_content == StaticContentGenerator().text

    def test_recommendation_ids_unique(self):
        recs = _generate(_high_util_signals())
        assert len({r.recommendation_id for r in recs}) == len(recs)


class TestPromptAndSignals:
    def test_prompt_mentions_title_and_context(self):
        prompt = build_prompt("Audit Your Subscriptions", "You have 4 subscriptions.")
        assert "Audit Your Subscriptions" in prompt
        assert "You have 4 subscriptions." in prompt
        assert "Shaming language" in prompt

    def test_signals_used_lists_present_categories(self):
        signals = make_signals(
            credit=make_credit(make_card(0.2)),
            savings=SavingsSignals(current_savings_balance=100.0),
            subscription=make_subscriptions(1, 10.0, 1.0),
        )
        assert signals_used(signals) == [
            "credit_utilization", "income_patterns", "subscriptions", "savings_balance",
        ]

    def test_signals_used_empty(self):
        signals = make_signals(income=steady_income().model_copy(
            update={"has_payroll_pattern": False}
        ))
        assert signals_used(signals) == []
