"""
Education article catalog.

Articles are static, so the catalog is a module-level tuple rather than a
table. ``recommended_for`` lists the personas an article targets (empty =
universal) and ``required_signals`` holds hard gates checked by
``spendsense.education.matching``.
"""

from __future__ import annotations

from typing import Optional

from spendsense.models.education import (
    ArticleCategory,
    ArticleDifficulty,
    EducationArticle,
    RequiredSignals,
)
from spendsense.taxonomy.persona_taxonomy import PersonaType

ARTICLES: tuple[EducationArticle, ...] = (
    EducationArticle(
        article_id="debt-payoff-strategies",
        title="Debt Payoff Strategies That Actually Work",
        subtitle="Avalanche vs. snowball: choose your path to financial freedom",
        category=ArticleCategory.DEBT_PAYOFF,
        difficulty=ArticleDifficulty.BEGINNER,
        read_time_minutes=8,
        recommended_for=(PersonaType.HIGH_UTILIZATION,),
        required_signals=RequiredSignals(min_credit_utilization=0.3),
        summary=(
            "Proven strategies to pay down debt faster. Compare the avalanche "
            "and snowball methods and see which approach fits your situation."
        ),
        key_takeaways=(
            "Avalanche saves the most interest by targeting the highest rate first",
            "Snowball builds momentum by clearing the smallest balances first",
            "Consistency matters more than picking the perfect method",
            "Pause new card spending while paying balances down",
        ),
        tags=("debt", "credit cards", "strategy", "payoff"),
    ),
    EducationArticle(
        article_id="credit-score-improvement",
        title="How to Boost Your Credit Score",
        subtitle="Simple strategies to improve your creditworthiness",
        category=ArticleCategory.CREDIT_MANAGEMENT,
        difficulty=ArticleDifficulty.BEGINNER,
        read_time_minutes=7,
        recommended_for=(PersonaType.HIGH_UTILIZATION,),
        required_signals=RequiredSignals(min_credit_utilization=0.3),
        summary=(
            "Your credit score affects loan rates and rental applications. "
            "Learn which factors matter most and practical steps to improve it."
        ),
        key_takeaways=(
            "Payment history and utilization are the two largest factors",
            "Keeping utilization below 30% helps, below 10% is better",
            "Autopay for at least the minimum protects your payment history",
            "Check your credit reports once a year for errors",
        ),
        tags=("credit score", "credit utilization", "payment history"),
    ),
    EducationArticle(
        article_id="emergency-fund-basics",
        title="Building an Emergency Fund That Works",
        subtitle="Protect yourself from financial surprises",
        category=ArticleCategory.EMERGENCY_FUND,
        difficulty=ArticleDifficulty.BEGINNER,
        read_time_minutes=6,
        recommended_for=(
            PersonaType.SAVINGS_BUILDER,
            PersonaType.LOW_INCOME_STABILIZER,
            PersonaType.VARIABLE_INCOME_BUDGETER,
        ),
        summary=(
            "An emergency fund is your financial safety net. Learn how much you "
            "need, where to keep it, and how to build it on a tight budget."
        ),
        key_takeaways=(
            "Start with $500-1,000, then build toward 3-6 months of expenses",
            "Keep the fund in an accessible high-yield savings account",
            "Automate transfers so saving happens without effort",
            "Replenish the fund after using it",
        ),
        tags=("emergency fund", "savings", "financial security"),
    ),
    EducationArticle(
        article_id="subscription-audit-guide",
        title="The Subscription Audit: Find Your Hidden Money",
        subtitle="Cut unused recurring expenses without losing what you love",
        category=ArticleCategory.SUBSCRIPTIONS,
        difficulty=ArticleDifficulty.BEGINNER,
        read_time_minutes=5,
        recommended_for=(PersonaType.SUBSCRIPTION_HEAVY,),
        required_signals=RequiredSignals(has_subscriptions=True),
        summary=(
            "Subscriptions can quietly drain a budget. Audit your recurring "
            "charges and keep only the ones you value."
        ),
        key_takeaways=(
            "Review three months of statements to find every recurring charge",
            "Sort subscriptions into essential, valuable, and rarely used",
            "Revisit the list every 6-12 months",
        ),
        tags=("subscriptions", "budgeting", "cost cutting"),
    ),
    EducationArticle(
        article_id="variable-income-budgeting",
        title="Budgeting with Variable Income",
        subtitle="Manage your money when paychecks are not consistent",
        category=ArticleCategory.BUDGETING,
        difficulty=ArticleDifficulty.INTERMEDIATE,
        read_time_minutes=9,
        recommended_for=(PersonaType.VARIABLE_INCOME_BUDGETER,),
        required_signals=RequiredSignals(has_variable_income=True),
        summary=(
            "Freelancers, gig workers, and commission earners face unique "
            "budgeting challenges. Learn strategies for fluctuating income."
        ),
        key_takeaways=(
            "Budget from your baseline month, not your average month",
            "Fund essentials first and wants last",
            "Use a holding account to smooth irregular deposits",
            "Set aside a share of every payment for taxes",
        ),
        tags=("variable income", "freelancing", "budgeting", "self-employed"),
    ),
    EducationArticle(
        article_id="investing-for-beginners",
        title="Investing for Beginners: Start Growing Your Wealth",
        subtitle="Simple strategies to make your money work for you",
        category=ArticleCategory.INVESTING,
        difficulty=ArticleDifficulty.BEGINNER,
        read_time_minutes=10,
        recommended_for=(PersonaType.SAVINGS_BUILDER,),
        required_signals=RequiredSignals(has_savings=True, max_credit_utilization=0.3),
        summary=(
            "Ready to grow savings beyond a basic account? Learn the fundamentals "
            "of index funds and retirement accounts."
        ),
        key_takeaways=(
            "Invest after building an emergency fund and clearing high-interest debt",
            "Index funds offer diversification with low fees",
            "Regular contributions beat trying to time the market",
        ),
        tags=("investing", "retirement", "index funds", "wealth building"),
    ),
    EducationArticle(
        article_id="budgeting-on-a-tight-income",
        title="Budgeting on a Tight Income",
        subtitle="Small steps that build stability",
        category=ArticleCategory.BUDGETING,
        difficulty=ArticleDifficulty.BEGINNER,
        read_time_minutes=6,
        recommended_for=(PersonaType.LOW_INCOME_STABILIZER,),
        required_signals=RequiredSignals(max_income=30_000.0),
        summary=(
            "When every dollar counts, a simple plan for essentials and a small "
            "buffer can make month-to-month life calmer."
        ),
        key_takeaways=(
            "Cover housing, food, utilities, and transport first",
            "A $250 starter buffer absorbs many small surprises",
            "Check for assistance programs you may qualify for",
        ),
        tags=("budgeting", "essentials", "low income"),
    ),
    EducationArticle(
        article_id="budgeting-basics",
        title="Budgeting Basics",
        subtitle="Know where your money goes",
        category=ArticleCategory.BUDGETING,
        difficulty=ArticleDifficulty.BEGINNER,
        read_time_minutes=4,
        summary=(
            "A budget is a plan, not a restriction. Track a month of spending "
            "and give every dollar a job."
        ),
        key_takeaways=(
            "Track one full month before setting targets",
            "Pay yourself first with an automatic transfer",
        ),
        tags=("budgeting", "basics"),
    ),
)

_BY_ID: dict[str, EducationArticle] = {a.article_id: a for a in ARTICLES}


def get_article(article_id: str) -> Optional[EducationArticle]:
    return _BY_ID.get(article_id)


def articles_by_category(category: ArticleCategory | str) -> list[EducationArticle]:
    target = ArticleCategory(category)
    return [a for a in ARTICLES if a.category == target]
