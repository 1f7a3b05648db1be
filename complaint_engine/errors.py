"""Error taxonomy shared by the store, lifecycle rules and classifier."""


class ComplaintError(Exception):
    """Base class for errors raised by the complaint engine."""


class NotFound(ComplaintError):
    """A complaint (or notification) id is not present."""

    def __init__(self, item_id: str, kind: str = "Complaint"):
        self.item_id = item_id
        super().__init__(f"{kind} not found: {item_id}")


class InvalidInput(ComplaintError):
    """Input was rejected before any state was mutated."""


class InvalidTransition(InvalidInput):
    """Requested status change is not allowed by the lifecycle rules."""


class DuplicateFeedback(InvalidInput):
    """Feedback was already submitted for this complaint."""


class PermissionDenied(ComplaintError):
    """The acting role may not perform the operation."""


class ClassifierUnavailable(ComplaintError):
    """Remote classification failed. Never leaves the classifier module."""


__all__ = [
    "ComplaintError",
    "NotFound",
    "InvalidInput",
    "InvalidTransition",
    "DuplicateFeedback",
    "PermissionDenied",
    "ClassifierUnavailable",
]
