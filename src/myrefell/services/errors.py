"""Exceptions raised by the service layer.

Rule violations are plain ``ValueError``s carrying a player-facing message.
The two classes below let the API tell a missing record or a permission
failure apart from a rule violation.
"""


class NotFoundError(LookupError):
    """A referenced record does not exist."""


class ForbiddenError(PermissionError):
    """The acting player may not perform this action."""
