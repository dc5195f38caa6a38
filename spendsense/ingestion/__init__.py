"""
Dataset ingestion.

Modules:
  dataset_loader  - JSON dataset validation and upsert into SQLite.
"""
