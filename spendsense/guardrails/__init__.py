"""
Guardrails applied to every recommendation before release.

Modules:
  consent      - active-consent check.
  eligibility  - excluded products, income and balance gates, offer filter.
  tone         - prohibited phrases, prescriptive language, empowering terms.
  disclaimer   - standard disclaimer injection and verification.
  pipeline     - ``apply_guardrails()`` and ``GuardrailOutcome``.
"""

from spendsense.guardrails.pipeline import GuardrailOutcome, apply_guardrails

__all__ = ["GuardrailOutcome", "apply_guardrails"]
