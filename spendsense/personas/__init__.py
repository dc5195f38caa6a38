"""
Rule-based persona classification.

Modules:
  criteria    - ordered ``PersonaCriterion`` rule table and thresholds.
  assignment  - ``assign_personas()`` and ``primary_persona()``.
"""

from spendsense.personas.assignment import assign_personas, primary_persona

__all__ = ["assign_personas", "primary_persona"]
