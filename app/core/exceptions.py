"""
Identity errors surfaced to the request boundary.

Services raise these; app.main converts them to a status code plus a
machine-readable ``kind``. Storage error text goes to the log only.
"""


class IdentityError(Exception):
    status_code = 500
    kind = "identity_error"
    default_message = "Identity lookup failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidIdentifier(IdentityError):
    status_code = 400
    kind = "invalid_identifier"
    default_message = "User id must be a UUID"


class ProfileNotFound(IdentityError):
    status_code = 404
    kind = "profile_not_found"
    default_message = "Profile not found"


class StorageUnavailable(IdentityError):
    status_code = 503
    kind = "storage_unavailable"
    default_message = "Storage unavailable"
