"""
Reporting: operator metrics and file exports.

Modules:
  metrics  - ``SystemMetrics`` snapshot from SQLite.
  export   - signals to Parquet, recommendations to CSV/JSON.
"""
