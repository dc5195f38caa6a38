"""
Education article catalog and matcher.

Modules:
  articles  - static article catalog and lookups.
  matching  - ``match_articles()`` / ``top_articles()`` relevance scoring.
"""

from spendsense.education.matching import match_articles, top_articles

__all__ = ["match_articles", "top_articles"]
