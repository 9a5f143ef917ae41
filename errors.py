# errors.py


class TaskStoreError(Exception):
    """Base class for every failure the task store reports to its callers."""

    kind = "task_store_error"
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.detail}


class ValidationError(TaskStoreError):
    kind = "validation_error"
    status_code = 400


class NotFoundError(TaskStoreError):
    kind = "not_found"
    status_code = 404


class StorageError(TaskStoreError):
    """The collection could not be written (or serialized) to disk."""

    kind = "storage_error"
    status_code = 500
