"""
Batch pipeline stages.

Modules:
  base             - ``PipelineStage`` ABC with run-metadata audit.
  import_data      - ``ImportDataStage``.
  process_users    - ``ProcessUsersStage`` (signals → personas → guarded recommendations).
  assign_personas  - ``AssignPersonasStage``.
"""
