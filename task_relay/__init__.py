"""task-relay: DAG task orchestration driven by record-created events."""

__version__ = "0.1.0"
