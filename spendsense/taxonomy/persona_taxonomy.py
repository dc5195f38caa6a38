"""
Persona taxonomy.

Five behavioral personas, each with a fixed priority (1 = most urgent).
When a user matches several personas, the lowest priority number is the
*primary* persona and drives recommendation selection.

Usage example::

    from spendsense.taxonomy.persona_taxonomy import PersonaType, PERSONA_PRIORITY

    PERSONA_PRIORITY[PersonaType.HIGH_UTILIZATION]  # -> 1

This module has NO imports from any other ``spendsense`` package.
"""

from enum import StrEnum


class PersonaType(StrEnum):
    """Behavioral persona a user can be assigned."""

    HIGH_UTILIZATION = "HIGH_UTILIZATION"
    """Carrying high card balances, paying minimums, or overdue."""

    VARIABLE_INCOME_BUDGETER = "VARIABLE_INCOME_BUDGETER"
    """Irregular paychecks or long gaps between income deposits."""

    SUBSCRIPTION_HEAVY = "SUBSCRIPTION_HEAVY"
    """Several recurring merchants taking a notable share of spend."""

    SAVINGS_BUILDER = "SAVINGS_BUILDER"
    """Growing savings while keeping card utilization low."""

    LOW_INCOME_STABILIZER = "LOW_INCOME_STABILIZER"
    """Limited income; focus on stability and micro-budgeting."""


PERSONA_PRIORITY: dict[PersonaType, int] = {
    PersonaType.HIGH_UTILIZATION: 1,
    PersonaType.VARIABLE_INCOME_BUDGETER: 2,
    PersonaType.SUBSCRIPTION_HEAVY: 3,
    PersonaType.SAVINGS_BUILDER: 4,
    PersonaType.LOW_INCOME_STABILIZER: 5,
}

PERSONA_NAMES: dict[PersonaType, str] = {
    PersonaType.HIGH_UTILIZATION: "High Utilization",
    PersonaType.VARIABLE_INCOME_BUDGETER: "Variable Income Budgeter",
    PersonaType.SUBSCRIPTION_HEAVY: "Subscription-Heavy",
    PersonaType.SAVINGS_BUILDER: "Savings Builder",
    PersonaType.LOW_INCOME_STABILIZER: "Low Income Stabilizer",
}

PERSONA_DESCRIPTIONS: dict[PersonaType, str] = {
    PersonaType.HIGH_UTILIZATION: (
        "Users with high credit card utilization or interest charges who could "
        "benefit from debt management strategies."
    ),
    PersonaType.VARIABLE_INCOME_BUDGETER: (
        "Users with irregular income patterns who need flexible budgeting approaches."
    ),
    PersonaType.SUBSCRIPTION_HEAVY: (
        "Users with multiple recurring subscriptions that may benefit from an audit."
    ),
    PersonaType.SAVINGS_BUILDER: (
        "Users actively building savings who could optimize their savings strategy."
    ),
    PersonaType.LOW_INCOME_STABILIZER: (
        "Users with limited income who benefit from micro-budgeting and "
        "building a small emergency fund."
    ),
}

PERSONA_FOCUS: dict[PersonaType, tuple[str, ...]] = {
    PersonaType.HIGH_UTILIZATION: (
        "Reduce credit utilization",
        "Payment planning",
        "Autopay setup",
        "Interest reduction",
    ),
    PersonaType.VARIABLE_INCOME_BUDGETER: (
        "Percent-based budgets",
        "Emergency fund building",
        "Income smoothing",
    ),
    PersonaType.SUBSCRIPTION_HEAVY: (
        "Subscription audit",
        "Cancellation strategies",
        "Bill alerts",
    ),
    PersonaType.SAVINGS_BUILDER: (
        "Goal setting",
        "Automation",
        "APY optimization",
    ),
    PersonaType.LOW_INCOME_STABILIZER: (
        "Micro-budgeting",
        "Essential expense prioritization",
        "Small emergency fund",
    ),
}
