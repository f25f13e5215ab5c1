"""Service-layer exceptions.

Learn: Services raise these; routers translate them into HTTP status
codes. Caller mistakes (NotFound, InvalidCamera, InvalidTransition)
are never retried. StoreFailure means the database call failed and the
transaction was rolled back — nothing was broadcast.
"""


class NotFoundError(Exception):
    """Base class for "entity does not exist"."""


class EventNotFoundError(NotFoundError):
    """Raised when an event id or join code does not exist."""


class CameraNotFoundError(NotFoundError):
    """Raised when a camera id does not exist."""


class ChatMessageNotFoundError(NotFoundError):
    """Raised when a chat message id does not exist."""


class SimulcastTargetNotFoundError(NotFoundError):
    """Raised when a simulcast target id does not exist."""


class InvalidCameraError(Exception):
    """Raised when a camera is missing or belongs to a different event."""


class InvalidTransitionError(Exception):
    """Raised when an event lifecycle transition is not allowed."""


class StoreFailureError(Exception):
    """Raised when a persistence call fails. Side effects were not applied."""


class PermissionDeniedError(Exception):
    """Raised when the caller does not own the resource."""
