"""
Exceptions raised by the kernel and engines.

Validation failures are ``ValueError`` subclasses so callers that only care
about "bad input" can catch them uniformly. Policy denials carry no detail
about which rule failed.
"""


class InvalidRequestError(ValueError):
    """Malformed or impossible request, rejected before any decision logic."""


class ParentBlockError(InvalidRequestError):
    """A child (or someone on their behalf) tried to block the child's own parent."""

    def __init__(self, message: str = "A child cannot block their own parent"):
        super().__init__(message)


class InvalidTransitionError(InvalidRequestError):
    """Connection status change not allowed from the current status."""


class PermissionDeniedError(Exception):
    """
    Generic denial.

    The message is fixed so that a blocked party cannot tell a block apart
    from a missing relationship or an unknown identity.
    """

    message = "Permission denied"

    def __init__(self) -> None:
        super().__init__(self.message)
