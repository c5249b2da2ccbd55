"""
CYOA Stats — Error taxonomy.

Every request-level failure is an ``IngestError`` carrying the HTTP status
and a human-readable reason; the app-level handler in ``main.py`` renders
it as plain text. ``ConfigurationError`` is a deployment defect and is
never turned into a 4xx.
"""


class ConfigurationError(RuntimeError):
    """Server is misconfigured (e.g. the hashing pepper is missing)."""


class IngestError(Exception):
    status_code = 400
    reason = "Bad Request"

    def __init__(self, reason: str | None = None):
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)


class MissingVisitorIdentity(IngestError):
    reason = "Unable to determine user IP"


class MissingField(IngestError):
    reason = "Bad Request: Missing projectId or data"


class PayloadTooLarge(IngestError):
    status_code = 413
    reason = "Payload too large"


class MalformedJSON(IngestError):
    reason = "Invalid JSON format"


class MissingPayloadFields(IngestError):
    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required fields: {', '.join(self.missing)}")


class Unauthorized(IngestError):
    status_code = 401
    reason = "Unauthorized"


class StoreFailure(IngestError):
    """Opaque upstream store error — rendered verbatim as a 500."""
    status_code = 500
    reason = "Store failure"


class RegistrationRejected(IngestError):
    reason = "Email address not accepted"
