"""
Operator-facing system metrics.

Counts are read straight from SQLite; nothing is cached.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from spendsense.db.repositories.persona_repo import PersonaRepository
from spendsense.db.repositories.recommendation_repo import RecommendationRepository
from spendsense.db.repositories.user_repo import UserRepository
from spendsense.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class SystemMetrics(BaseModel):
    """Snapshot of pipeline coverage.

    Attributes:
        total_users: Users in the database.
        users_with_consent: Users whose consent is active.
        users_with_persona: Users with at least one persona assignment.
        coverage_percentage: ``users_with_persona / total_users * 100``.
        total_recommendations: Stored recommendations (any status).
        average_recommendations_per_user: Over users with a persona.
        recommendations_by_status: Count per status (every status present).
        last_updated: When the snapshot was taken (UTC).
    """

    model_config = ConfigDict(frozen=True)

    total_users: int
    users_with_consent: int
    users_with_persona: int
    coverage_percentage: float
    total_recommendations: int
    average_recommendations_per_user: float
    recommendations_by_status: dict[str, int]
    last_updated: datetime


def compute_metrics(conn: sqlite3.Connection) -> SystemMetrics:
    users = UserRepository(conn)
    recs = RecommendationRepository(conn)

    total_users = users.count_users()
    with_persona = PersonaRepository(conn).count_users_with_persona()
    by_status = recs.count_by_status()
    total_recs = sum(by_status.values())

    metrics = SystemMetrics(
        total_users=total_users,
        users_with_consent=users.count_with_consent(),
        users_with_persona=with_persona,
        coverage_percentage=round(with_persona / total_users * 100, 1) if total_users else 0.0,
        total_recommendations=total_recs,
        average_recommendations_per_user=(
            round(total_recs / with_persona, 2) if with_persona else 0.0
        ),
        recommendations_by_status=by_status,
        last_updated=utcnow(),
    )
    logger.debug("Computed metrics: %s", metrics)
    return metrics
