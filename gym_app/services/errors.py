"""Errors raised by the membership services.

Each error carries the HTTP status the API answers with. They are deterministic
faults in the request or the stored data, so callers surface them as-is and
never retry.
"""


class MembershipError(RuntimeError):
    """Base class for membership faults."""

    status_code = 400


class InvalidDuration(MembershipError):
    """Raised when a package duration is negative or not a whole number of months."""

    status_code = 400


class EmptyHistoryAmbiguity(MembershipError):
    """Raised when an explicit start date is combined with an existing period history."""

    status_code = 409


class MalformedPeriod(MembershipError):
    """Raised when a stored period ends before it starts."""

    status_code = 422


class EnrollmentConflict(MembershipError):
    """Raised when a phone number already belongs to a member buying a regular package."""

    status_code = 409

    def __init__(self, message, member_id=None):
        super().__init__(message)
        self.member_id = member_id


class PersistenceFailure(MembershipError):
    """Raised when the database rejects an atomic write."""

    status_code = 500


class ProductUnavailable(MembershipError):
    """Raised when the package needed for a sale does not exist or is inactive."""

    status_code = 404
