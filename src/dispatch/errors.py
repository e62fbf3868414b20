"""Errors raised by the order lifecycle, assignment and settlement components.

Input validation uses Protean's ``ValidationError`` and missing records use
Protean's ``ObjectNotFoundError``; everything here is a rule or concurrency
violation detected before (or, for ``CompensationFailure``, after) a write.
"""


class DispatchError(Exception):
    """Base class for dispatch domain errors."""

    def __init__(self, message: str, **context) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": self.message, **self.context}


class InvalidTransition(DispatchError):
    """The requested status change is not an edge of the order state machine."""


class TerminalStateViolation(DispatchError):
    """The order has progressed past the point where the action is allowed."""


class OrderNoLongerAvailable(DispatchError):
    """The order was claimed, moved or released by someone else."""


class AlreadySettled(DispatchError):
    """The shop payment has already been paid."""


class CompensationFailure(DispatchError):
    """A multi-record write failed halfway and its rollback failed too.

    The order is left claimed with no assignment record and needs an operator.
    """

    def __init__(self, message: str, cause: BaseException, compensation_error: BaseException, **context) -> None:
        super().__init__(message, **context)
        self.cause = cause
        self.compensation_error = compensation_error

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "cause": repr(self.cause),
            "compensation_error": repr(self.compensation_error),
        }
