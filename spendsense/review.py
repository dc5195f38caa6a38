"""
Operator actions: consent management and recommendation review.

Every review writes an ``OperatorAction`` audit row in the same transaction
as the status change, so the two never disagree.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from spendsense.db.repositories.recommendation_repo import RecommendationRepository
from spendsense.db.storage import SQLiteStorage
from spendsense.models.recommendation import OperatorAction, Recommendation
from spendsense.models.user import Consent
from spendsense.taxonomy.offer_taxonomy import ACTION_TARGET_STATUS, OperatorActionType
from spendsense.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def set_consent(
    conn: sqlite3.Connection,
    user_id: str,
    active: bool,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Consent:
    """Grant or revoke consent for ``user_id``.

    Granting keeps the original ``granted_at`` when consent was already
    active. Revoking keeps ``granted_at`` and stamps ``revoked_at``.

    Raises:
        KeyError: If the user does not exist.
    """
    storage = SQLiteStorage(conn)
    if storage.get_user(user_id) is None:
        raise KeyError(f"User '{user_id}' not found.")

    previous = storage.get_consent(user_id)
    now = utcnow()
    if active:
        granted_at = previous.granted_at if previous and previous.active else now
        consent = Consent(
            user_id=user_id,
            active=True,
            granted_at=granted_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    else:
        consent = Consent(
            user_id=user_id,
            active=False,
            granted_at=previous.granted_at if previous else None,
            revoked_at=now,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    storage.save_consent(consent)
    logger.info("Consent %s for user %s", "granted" if active else "revoked", user_id)
    return consent


def review_recommendation(
    conn: sqlite3.Connection,
    recommendation_id: str,
    action: OperatorActionType | str,
    operator_id: str,
    reason: Optional[str] = None,
) -> Recommendation:
    """Apply an operator review action and record it.

    Raises:
        KeyError: If the recommendation does not exist.
        InvalidStatusTransition: If the action is not allowed from the
            recommendation's current status.
    """
    action = OperatorActionType(action)
    record = OperatorAction(
        operator_id=operator_id,
        action=action,
        recommendation_id=recommendation_id,
        reason=reason,
        created_at=utcnow(),
    )
    rec = SQLiteStorage(conn).update_recommendation_status(
        recommendation_id, ACTION_TARGET_STATUS[action]
    )
    RecommendationRepository(conn).insert_action(record)
    logger.info(
        "Operator %s %s recommendation %s", operator_id, action.value, recommendation_id
    )
    return rec
