"""
Closed vocabularies used across SpendSense.

Modules:
  persona_taxonomy  - ``PersonaType`` plus priority, display names, focus areas.
  offer_taxonomy    - ``OfferType``, ``RecommendationStatus``, operator actions.
"""
