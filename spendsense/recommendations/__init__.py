"""
Recommendation generation.

Modules:
  templates  - ``RecommendationTemplate`` rule table (>= 2 per persona).
  partners   - partner offer catalog matching.
  content    - ``ContentGenerator`` protocol, httpx chat-completions client,
               static fallback.
  engine     - ``generate_recommendations()`` (async).
"""

from spendsense.recommendations.engine import generate_recommendations

__all__ = ["generate_recommendations"]
