class LifecycleError(Exception):
    """Base class for every failure a lifecycle operation can report.

    Each subclass maps to the HTTP status the API answers with, so views can
    turn any of them into an ``{"error": ...}`` response.
    """
    status_code = 400
    default_message = 'Operation failed'

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidTransition(LifecycleError):
    status_code = 409
    default_message = 'Status change not allowed'

    def __init__(self, message=None, current=None, target=None, **details):
        if message is None and current is not None:
            message = f"Cannot move from '{current}' to '{target}'"
        super().__init__(message, current=current, target=target, **details)
        self.current = current
        self.target = target


class NotFound(LifecycleError):
    status_code = 404
    default_message = 'Not found or not authorized'


class NoAssignedProfessional(LifecycleError):
    status_code = 409
    default_message = 'No professional is assigned to this project'


class DuplicateReview(LifecycleError):
    status_code = 409
    default_message = 'A review was already submitted for this project'


class DuplicateApplication(LifecycleError):
    status_code = 409
    default_message = 'You have already applied to this project'


class InvalidInput(LifecycleError):
    status_code = 400
    default_message = 'Invalid input'


class OperationInProgress(LifecycleError):
    status_code = 409
    default_message = 'This operation is already being submitted'


class StoreUnavailable(LifecycleError):
    status_code = 503
    default_message = 'The data store is unavailable, please retry'


class UniqueViolation(StoreUnavailable):
    status_code = 409
    default_message = 'Row conflicts with an existing one'
