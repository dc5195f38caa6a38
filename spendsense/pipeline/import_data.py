"""
ImportDataStage - load a JSON dataset into SQLite.

Reads ``config.data.dataset_file`` (or an explicit ``path``), validates it
and upserts every record. With ``dry_run=True`` the file is validated but
nothing is written. Returns the total number of records in the dataset.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from spendsense.models.meta import RunMetadata
from spendsense.pipeline.base import PipelineStage

logger = logging.getLogger(__name__)


class ImportDataStage(PipelineStage):
    """Validate and upsert a raw dataset file."""

    stage_name = "import_data"

    def _execute(
        self,
        run: RunMetadata,
        path: Optional[Path] = None,
        dry_run: bool = False,
        **kwargs,
    ) -> int:
        from spendsense.db.schema import apply_schema
        from spendsense.ingestion.dataset_loader import import_dataset, load_dataset

        source = Path(path) if path else Path(self.config.data.dataset_file)
        dataset = load_dataset(source)
        total = sum(dataset.counts().values())

        if dry_run:
            logger.info("Dry run: %d records validated, nothing written.", total)
            return total

        with self._connect() as conn:
            apply_schema(conn)
            import_dataset(conn, dataset)
        return total
