"""Enumerations used throughout the DDL bridge."""

from enum import StrEnum


class ChangeMarker(StrEnum):
    """Change tag attached to a schema node by the diff producer."""

    NONE = "none"
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"

    @property
    def compmod_flag(self) -> str:
        """Key of the `compMod` flag that carries this marker."""
        mapping = {
            ChangeMarker.ADDED: "created",
            ChangeMarker.DELETED: "deleted",
            ChangeMarker.MODIFIED: "modified",
        }
        return mapping[self]


class SchemaCategory(StrEnum):
    """Top-level categories of a change-set schema tree."""

    CONTAINERS = "containers"
    ENTITIES = "entities"
    VIEWS = "views"


class BucketCategory(StrEnum):
    """Change category a rendered statement bucket originates from."""

    CONTAINER_ADDED = "container-added"
    CONTAINER_DELETED = "container-deleted"
    CONTAINER_MODIFIED = "container-modified"
    COLLECTION_ADDED = "collection-added"
    COLLECTION_DELETED = "collection-deleted"
    COLLECTION_MODIFIED = "collection-modified"
    COLUMN_ADDED = "column-added"
    COLUMN_DELETED = "column-deleted"
    COLUMN_MODIFIED = "column-modified"
    VIEW_ADDED = "view-added"
    VIEW_DELETED = "view-deleted"
    VIEW_MODIFIED = "view-modified"


class Language(StrEnum):
    """Interpreter language of a remote execution context."""

    SCALA = "scala"
    SQL = "sql"
    PYTHON = "python"


class CommandStatus(StrEnum):
    """Status reported by the command status endpoint."""

    QUEUED = "Queued"
    RUNNING = "Running"
    CANCELLING = "Cancelling"
    FINISHED = "Finished"
    CANCELLED = "Cancelled"
    ERROR = "Error"


class ResultType(StrEnum):
    """Result type of a finished command."""

    TEXT = "text"
    TABLE = "table"
    ERROR = "error"


class ClusterState(StrEnum):
    """Databricks cluster lifecycle state."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    RESTARTING = "RESTARTING"
    RESIZING = "RESIZING"
    TERMINATING = "TERMINATING"
    TERMINATED = "TERMINATED"
    ERROR = "ERROR"
    UNKNOWN = "UNKNOWN"
