"""
Storage contract consumed by the pipeline, and its SQLite implementation.

The core (signals, personas, recommendations, guardrails) never touches
storage. Pipeline stages and the CLI talk to a ``Storage``; ``SQLiteStorage``
is the implementation backed by the repository classes.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from typing import Optional, Protocol

from spendsense.db.repositories.financial_repo import FinancialRepository
from spendsense.db.repositories.persona_repo import PersonaRepository
from spendsense.db.repositories.recommendation_repo import RecommendationRepository
from spendsense.db.repositories.signal_repo import SignalRepository
from spendsense.db.repositories.user_repo import UserRepository
from spendsense.models.account import Account, Liability, Transaction
from spendsense.models.persona import PersonaAssignment
from spendsense.models.recommendation import Recommendation
from spendsense.models.signal import SignalResult
from spendsense.models.user import Consent, User
from spendsense.taxonomy.offer_taxonomy import RecommendationStatus

logger = logging.getLogger(__name__)


class Storage(Protocol):
    """Persistence operations the pipeline depends on."""

    def list_users(self) -> list[User]: ...

    def get_user(self, user_id: str) -> Optional[User]: ...

    def get_accounts(self, user_id: str) -> list[Account]: ...

    def get_transactions(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]: ...

    def get_liabilities(self, user_id: str) -> list[Liability]: ...

    def get_signals(self, user_id: str, window: str) -> Optional[SignalResult]: ...

    def save_signals(self, result: SignalResult) -> None: ...

    def get_personas(self, user_id: str) -> list[PersonaAssignment]: ...

    def append_personas(self, assignments: list[PersonaAssignment]) -> None: ...

    def get_recommendations(self, user_id: str) -> list[Recommendation]: ...

    def append_recommendation(self, recommendation: Recommendation) -> None: ...

    def update_recommendation_status(
        self, recommendation_id: str, status: RecommendationStatus
    ) -> Recommendation: ...

    def get_consent(self, user_id: str) -> Optional[Consent]: ...

    def save_consent(self, consent: Consent) -> None: ...


class SQLiteStorage:
    """``Storage`` over an open SQLite connection.

    The connection's transaction is owned by the caller (normally the
    ``get_connection()`` context manager, which commits on exit).
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.users = UserRepository(conn)
        self.financial = FinancialRepository(conn)
        self.signals = SignalRepository(conn)
        self.personas = PersonaRepository(conn)
        self.recommendations = RecommendationRepository(conn)

    def list_users(self) -> list[User]:
        return self.users.list_users()

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get_user(user_id)

    def get_accounts(self, user_id: str) -> list[Account]:
        return self.financial.get_accounts(user_id)

    def get_transactions(
        self,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        return self.financial.get_transactions(user_id, start_date, end_date)

    def get_liabilities(self, user_id: str) -> list[Liability]:
        return self.financial.get_liabilities(user_id)

    def get_signals(self, user_id: str, window: str) -> Optional[SignalResult]:
        return self.signals.get(user_id, window)

    def save_signals(self, result: SignalResult) -> None:
        self.signals.save(result)

    def get_personas(self, user_id: str) -> list[PersonaAssignment]:
        return self.personas.get_for_user(user_id)

    def append_personas(self, assignments: list[PersonaAssignment]) -> None:
        self.personas.append(assignments)

    def get_recommendations(self, user_id: str) -> list[Recommendation]:
        return self.recommendations.get_for_user(user_id)

    def append_recommendation(self, recommendation: Recommendation) -> None:
        self.recommendations.insert(recommendation)

    def update_recommendation_status(
        self, recommendation_id: str, status: RecommendationStatus
    ) -> Recommendation:
        """Move a stored recommendation to ``status``.

        Raises:
            KeyError: If the recommendation does not exist.
            InvalidStatusTransition: If the lifecycle forbids the move.
        """
        rec = self.recommendations.get(recommendation_id)
        if rec is None:
            raise KeyError(f"Recommendation '{recommendation_id}' not found.")
        rec.transition_to(status)
        self.recommendations.update(rec)
        logger.info("Recommendation %s -> %s", recommendation_id, rec.status)
        return rec

    def get_consent(self, user_id: str) -> Optional[Consent]:
        return self.users.get_consent(user_id)

    def save_consent(self, consent: Consent) -> None:
        self.users.save_consent(consent)
