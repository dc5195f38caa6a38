"""
Pydantic domain models.

Modules:
  account         - raw inputs: Account, Transaction, Liability.
  user            - User, ConsentStatus, Consent.
  signal          - SignalResult and its four signal blocks.
  persona         - PersonaAssignment.
  recommendation  - Recommendation, PartnerOffer, DecisionTrace, OperatorAction.
  education       - EducationArticle, ArticleRecommendation.
  meta            - RunMetadata (pipeline audit log).
"""
