"""
SQLite persistence.

Modules:
  connection    - ``get_connection()`` context manager.
  schema        - DDL and ``apply_schema()``.
  repositories  - one repository class per table group.
  storage       - ``Storage`` protocol and ``SQLiteStorage``.
"""
