"""
Education article catalog models.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from spendsense.taxonomy.persona_taxonomy import PersonaType


class ArticleCategory(StrEnum):
    CREDIT_MANAGEMENT = "credit_management"
    DEBT_PAYOFF = "debt_payoff"
    BUDGETING = "budgeting"
    SAVING = "saving"
    INVESTING = "investing"
    INCOME = "income"
    SUBSCRIPTIONS = "subscriptions"
    EMERGENCY_FUND = "emergency_fund"


class ArticleDifficulty(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class RequiredSignals(BaseModel):
    """Hard gates an article places on the reader's signals.

    Every condition that is set must hold, otherwise the article scores 0.
    """

    model_config = ConfigDict(frozen=True)

    min_credit_utilization: Optional[float] = None
    max_credit_utilization: Optional[float] = None
    has_subscriptions: bool = False
    has_savings: bool = False
    has_variable_income: bool = False
    max_income: Optional[float] = None

    @model_validator(mode="after")
    def validate_utilization_bounds(self) -> "RequiredSignals":
        lo, hi = self.min_credit_utilization, self.max_credit_utilization
        if lo is not None and hi is not None and lo > hi:
            raise ValueError(
                f"min_credit_utilization ({lo}) must be <= max_credit_utilization ({hi})."
            )
        return self


class EducationArticle(BaseModel):
    """One article in the education catalog.

    An empty ``recommended_for`` marks the article as universal.
    """

    model_config = ConfigDict(frozen=True)

    article_id: str
    title: str
    subtitle: str
    category: ArticleCategory
    difficulty: ArticleDifficulty = ArticleDifficulty.BEGINNER
    read_time_minutes: int = Field(ge=1)
    recommended_for: tuple[PersonaType, ...] = ()
    required_signals: Optional[RequiredSignals] = None
    summary: str
    key_takeaways: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    @property
    def is_universal(self) -> bool:
        return not self.recommended_for


class ArticleRecommendation(BaseModel):
    """An article matched to a user, with its relevance and a reason."""

    model_config = ConfigDict(frozen=True)

    article: EducationArticle
    relevance_score: float = Field(ge=0.0, le=1.0)
    reason: str
