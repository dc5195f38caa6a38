"""
Abstract base class for all pipeline stages.

Every stage follows the same contract:
  1. Receive ``AppConfig`` at construction.
  2. ``run(**kwargs)`` is the sole public API.
  3. ``run()`` creates a ``RunMetadata`` record, calls ``_execute()``,
     and persists the run record with its final status.
  4. ``_execute()`` is the stage-specific implementation.

Stages never swallow exceptions from ``_execute()``: the failure is
recorded on the run record and re-raised.

Usage::

    class MyStage(PipelineStage):
        stage_name = "import_data"

        def _execute(self, run: RunMetadata, **kwargs) -> int:
            return 42

    run = MyStage(config=app_config).run()
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from uuid import uuid4

from spendsense.config import AppConfig
from spendsense.models.meta import RunMetadata
from spendsense.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Abstract base for all pipeline stages.

    Attributes:
        stage_name: A valid ``RunMetadata.pipeline_stage`` value.
        config: The application configuration for this run.
        db_path: SQLite database path (defaults to ``config.database.db_path``).
    """

    stage_name: str

    def __init__(self, config: AppConfig, db_path: str | None = None) -> None:
        self.config = config
        self.db_path = db_path or config.database.db_path

    def run(self, **kwargs) -> RunMetadata:
        """Execute this stage and return the finalized run record.

        Raises:
            Exception: Re-raises any exception from ``_execute()`` after
                recording ``status='failed'``.
        """
        run = RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            config_snapshot=self.config.model_dump(mode="json"),
            started_at=utcnow(),
        )
        logger.info("Stage [%s] starting | run_slug=%s", self.stage_name, run.run_slug)

        try:
            rows = self._execute(run=run, **kwargs)
        except Exception as exc:
            run.status = "failed"
            run.error_message = str(exc)
            run.finished_at = utcnow()
            logger.error(
                "Stage [%s] FAILED: %s | run_slug=%s",
                self.stage_name, exc, run.run_slug,
            )
            self._persist_run(run)
            raise

        run.status = "success"
        run.rows_processed = rows
        run.finished_at = utcnow()
        logger.info(
            "Stage [%s] completed | rows=%d | run_slug=%s",
            self.stage_name, rows, run.run_slug,
        )
        self._persist_run(run)
        return run

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Stage-specific work; returns the number of records processed."""
        ...

    def _connect(self):
        from spendsense.db.connection import get_connection

        db = self.config.database
        return get_connection(self.db_path, db.wal_mode, db.busy_timeout_ms)

    def _persist_run(self, run: RunMetadata) -> None:
        """Write or update ``run`` in ``run_metadata``.

        A persistence failure is logged, not raised, so it never masks the
        stage's own outcome.
        """
        try:
            from spendsense.db.repositories.run_repo import RunMetadataRepository

            with self._connect() as conn:
                repo = RunMetadataRepository(conn)
                if run.run_id is None:
                    run.run_id = repo.insert_run(run)
                else:
                    repo.update_run(run)
        except Exception as exc:
            logger.error(
                "Failed to persist RunMetadata for run_slug=%s: %s", run.run_slug, exc
            )
