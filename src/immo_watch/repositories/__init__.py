from .postgres import PostgresSnapshotStore

__all__ = ["PostgresSnapshotStore"]
