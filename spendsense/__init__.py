"""
SpendSense: behavioral signals, personas and guarded recommendations.

Core entry points:
  spendsense.signals.detect_signals
  spendsense.personas.assign_personas
  spendsense.recommendations.generate_recommendations  (async)
  spendsense.guardrails.apply_guardrails
"""

__version__ = "0.1.0"
