"""
Education article matching.

Scoring (persona mode, when the user has at least one persona):
  - Persona-targeted article whose personas overlap the user's: 0.5 base.
  - Universal article (empty ``recommended_for``): 0.3 base.
  - Any other article: 0 (excluded).
  - ``required_signals`` is a hard gate; each satisfied condition adds
    weight (+0.2 per utilization bound, +0.15 subscriptions, +0.15 savings,
    +0.2 variable income, +0.2 income cap). Capped at 1.0.

Signal mode (signals but no personas): 0.7 when the article's requirements
are met, 0.5 for articles without requirements, 0 otherwise.

Without signals only universal beginner categories (emergency fund,
budgeting) are returned, at 0.5.

Results are sorted by score descending, then ``article_id``.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from spendsense.education.articles import ARTICLES
from spendsense.models.education import (
    ArticleCategory,
    ArticleRecommendation,
    EducationArticle,
    RequiredSignals,
)
from spendsense.models.persona import PersonaAssignment
from spendsense.models.signal import SignalResult
from spendsense.models.user import User
from spendsense.taxonomy.persona_taxonomy import PersonaType

logger = logging.getLogger(__name__)

PERSONA_MATCH_SCORE = 0.5
UNIVERSAL_SCORE = 0.3
SIGNAL_MODE_MATCH_SCORE = 0.7
SIGNAL_MODE_BASE_SCORE = 0.5
NO_SIGNALS_SCORE = 0.5
NO_SIGNALS_LIMIT = 4

UTILIZATION_BOUND_WEIGHT = 0.2
SUBSCRIPTIONS_WEIGHT = 0.15
SAVINGS_WEIGHT = 0.15
VARIABLE_INCOME_WEIGHT = 0.2
INCOME_CAP_WEIGHT = 0.2

VARIABLE_INCOME_VARIABILITY = 0.25

_SAFE_CATEGORIES = frozenset({ArticleCategory.EMERGENCY_FUND, ArticleCategory.BUDGETING})
_DEFAULT_REASON = "Recommended based on your financial profile"


def has_variable_income(signals: SignalResult) -> bool:
    income = signals.income
    return (
        not income.has_payroll_pattern
        or income.payment_variability > VARIABLE_INCOME_VARIABILITY
        or income.has_income_gap
    )


def signal_bonus(required: RequiredSignals, signals: SignalResult) -> Optional[float]:
    """Score contribution of ``required``, or ``None`` when any gate fails."""
    utilization = signals.credit.average_utilization
    bonus = 0.0

    if required.min_credit_utilization is not None:
        if utilization < required.min_credit_utilization:
            return None
        bonus += UTILIZATION_BOUND_WEIGHT
    if required.max_credit_utilization is not None:
        if utilization > required.max_credit_utilization:
            return None
        bonus += UTILIZATION_BOUND_WEIGHT
    if required.has_subscriptions:
        if signals.subscription.total_recurring_count <= 0:
            return None
        bonus += SUBSCRIPTIONS_WEIGHT
    if required.has_savings:
        if signals.savings.current_savings_balance <= 0:
            return None
        bonus += SAVINGS_WEIGHT
    if required.has_variable_income:
        if not has_variable_income(signals):
            return None
        bonus += VARIABLE_INCOME_WEIGHT
    if required.max_income is not None:
        if signals.income.estimated_annual_income > required.max_income:
            return None
        bonus += INCOME_CAP_WEIGHT
    return bonus


def relevance_score(
    article: EducationArticle,
    persona_types: Sequence[PersonaType],
    signals: SignalResult,
) -> float:
    if article.is_universal:
        score = UNIVERSAL_SCORE
    elif any(p in persona_types for p in article.recommended_for):
        score = PERSONA_MATCH_SCORE
    else:
        return 0.0

    if article.required_signals is not None:
        bonus = signal_bonus(article.required_signals, signals)
        if bonus is None:
            return 0.0
        score += bonus
    return round(min(score, 1.0), 2)


def signal_relevance_score(article: EducationArticle, signals: SignalResult) -> float:
    if article.required_signals is None:
        return SIGNAL_MODE_BASE_SCORE
    if signal_bonus(article.required_signals, signals) is None:
        return 0.0
    return SIGNAL_MODE_MATCH_SCORE


# ── Reasons ──────────────────────────────────────────────────────────────────

_PERSONA_REASONS: dict[tuple[PersonaType, ArticleCategory], str] = {
    (PersonaType.HIGH_UTILIZATION, ArticleCategory.DEBT_PAYOFF):
        "Your credit utilization could benefit from a structured payoff plan",
    (PersonaType.HIGH_UTILIZATION, ArticleCategory.CREDIT_MANAGEMENT):
        "Learn strategies to improve your credit score",
    (PersonaType.SAVINGS_BUILDER, ArticleCategory.INVESTING):
        "You're building savings, time to make that money grow",
    (PersonaType.SAVINGS_BUILDER, ArticleCategory.EMERGENCY_FUND):
        "Build a stronger financial foundation",
    (PersonaType.VARIABLE_INCOME_BUDGETER, ArticleCategory.BUDGETING):
        "Master budgeting strategies designed for variable income",
    (PersonaType.VARIABLE_INCOME_BUDGETER, ArticleCategory.EMERGENCY_FUND):
        "Variable income makes emergency funds even more critical",
    (PersonaType.LOW_INCOME_STABILIZER, ArticleCategory.EMERGENCY_FUND):
        "Build financial stability on any budget",
    (PersonaType.LOW_INCOME_STABILIZER, ArticleCategory.BUDGETING):
        "A simple plan for essentials can make each month calmer",
}


def persona_reason(
    article: EducationArticle,
    primary: PersonaType,
    signals: SignalResult,
) -> str:
    if primary is PersonaType.SUBSCRIPTION_HEAVY and article.category is ArticleCategory.SUBSCRIPTIONS:
        count = signals.subscription.total_recurring_count
        return f"You have {count} recurring subscriptions, find hidden savings"
    reason = _PERSONA_REASONS.get((primary, article.category))
    if reason:
        return reason
    if signals.credit.average_utilization > 0.7 and article.category is ArticleCategory.DEBT_PAYOFF:
        return "High credit utilization detected"
    if signals.savings.current_savings_balance > 5000 and article.category is ArticleCategory.INVESTING:
        return "Your savings are ready for the next level"
    return _DEFAULT_REASON


def signal_reason(article: EducationArticle, signals: SignalResult) -> str:
    category = article.category
    if category is ArticleCategory.EMERGENCY_FUND:
        months = signals.savings.emergency_fund_coverage
        if months < 3:
            return f"You have {months:.1f} months of emergency savings, build your safety net"
        return "Strengthen your financial foundation"
    if category in (ArticleCategory.DEBT_PAYOFF, ArticleCategory.CREDIT_MANAGEMENT):
        utilization = signals.credit.average_utilization
        if utilization > 0.3:
            return (
                f"Your credit utilization is {utilization * 100:.0f}%, "
                "reducing it can improve your score"
            )
        return "Learn credit management best practices"
    if category is ArticleCategory.SUBSCRIPTIONS:
        count = signals.subscription.total_recurring_count
        if count >= 5:
            return f"You have {count} recurring subscriptions, find potential savings"
        return "Manage your recurring expenses effectively"
    if category is ArticleCategory.BUDGETING:
        if not signals.income.has_payroll_pattern:
            return "Variable income calls for flexible budgeting strategies"
        return "Master your monthly budget"
    if category is ArticleCategory.INVESTING:
        if signals.savings.current_savings_balance > 5000:
            return "Your savings are ready to start growing"
        return "Learn the basics of investing"
    return _DEFAULT_REASON


# ── Public API ───────────────────────────────────────────────────────────────

def match_articles(
    user: User,
    signals: Optional[SignalResult],
    personas: Sequence[PersonaAssignment],
    articles: Sequence[EducationArticle] = ARTICLES,
) -> list[ArticleRecommendation]:
    """Score every catalog article for ``user``.

    Args:
        user: The reader.
        signals: The user's signal result, or ``None`` when none exists yet.
        personas: The user's persona assignments (any order).
        articles: Catalog to match against.

    Returns:
        Non-zero matches sorted by relevance descending, then article id.
    """
    if signals is None:
        safe = [a for a in articles if a.category in _SAFE_CATEGORIES][:NO_SIGNALS_LIMIT]
        return [
            ArticleRecommendation(
                article=a,
                relevance_score=NO_SIGNALS_SCORE,
                reason="Essential financial literacy for everyone",
            )
            for a in safe
        ]

    ordered = sorted(personas, key=lambda p: p.priority)
    persona_types = [p.persona_type for p in ordered]

    matches: list[ArticleRecommendation] = []
    for article in articles:
        if ordered:
            score = relevance_score(article, persona_types, signals)
            reason = persona_reason(article, persona_types[0], signals)
        else:
            score = signal_relevance_score(article, signals)
            reason = signal_reason(article, signals)
        if score > 0:
            matches.append(
                ArticleRecommendation(article=article, relevance_score=score, reason=reason)
            )

    matches.sort(key=lambda m: (-m.relevance_score, m.article.article_id))
    logger.debug("Matched %d articles for user %s", len(matches), user.user_id)
    return matches


def top_articles(
    user: User,
    signals: Optional[SignalResult],
    personas: Sequence[PersonaAssignment],
    count: int = 6,
) -> list[ArticleRecommendation]:
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}.")
    return match_articles(user, signals, personas)[:count]
