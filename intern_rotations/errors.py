"""Domain errors raised by the scheduling services."""


class SchedulerError(Exception):
    """Base class for all scheduling errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulerError):
    """Malformed input, out-of-range values, or an overlapping manual assignment."""

    status_code = 400


class NotFoundError(SchedulerError):
    """An intern, unit or rotation id does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class InconsistentStateError(SchedulerError):
    """The stored data cannot support the requested operation (e.g. empty unit catalog)."""

    status_code = 409
