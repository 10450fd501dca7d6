"""
Domain exceptions for the CRM lead service.

Lookup misses and malformed stored data never raise; they degrade to
fallback display values. Everything here is scoped to the request that
triggered it.
"""


class LawCrmError(Exception):
    """Base exception for the CRM lead service"""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class LeadQueryError(LawCrmError):
    """One of the two lead queries failed"""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source} leads query failed: {message}")


class NotFoundError(LawCrmError):
    """Resource not found"""

    def __init__(self, resource: str = "Resource", resource_id: str | int | None = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class AssignmentValidationError(LawCrmError):
    """Handler assignment rejected before touching the database"""


class StaleResponseError(LawCrmError):
    """A newer request for the same view superseded this one"""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Result for '{key}' was superseded by a newer request")


class MailboxApiError(LawCrmError):
    """Mail backend returned an error envelope or non-2xx status"""

    def __init__(self, message: str, status_code: int):
        self.status_code = status_code
        super().__init__(message)
