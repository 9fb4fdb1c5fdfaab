"""Account error taxonomy.

Services raise these; routers map them to HTTP responses. Token verification
never raises: a missing digest simply does not authenticate.
"""


class AccountError(Exception):
    """Base class for account errors."""

    pass


class ValidationError(AccountError):
    """A field failed a rule before persisting. Nothing was written.

    Attributes:
        field: Attribute name that failed (e.g. "email").
        rule: Rule that failed (e.g. "uniqueness", "too_short").
    """

    def __init__(self, field: str, rule: str, message: str | None = None):
        self.field = field
        self.rule = rule
        self.message = message or f"{field} is invalid ({rule})"
        super().__init__(self.message)


class NotFoundError(AccountError):
    """Lookup miss."""

    pass


class PersistenceError(AccountError):
    """The store rejected a write. Earlier steps of a multi-step chain are not undone."""

    pass
