"""
exceptions.py — Domain errors raised by ARHub services

Routers translate these into HTTP responses; the handler for ARHubError
in main.py is the fallback for anything a router does not catch.

Business Rules:
- BriefingDataUnavailable means the due computation could not read its
  inputs. It must surface as a failure, never as an empty due list.
- NotFound errors map to 404, InvalidTierConfiguration to 400.

Called by: services/*, routers/*, main.py
Depends on: nothing
"""


class ARHubError(Exception):
    """Base class for ARHub domain errors."""

    status_code = 500


class BriefingDataUnavailable(ARHubError):
    """Analysts, tiers or briefings could not be loaded from the store."""

    status_code = 500

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class AnalystNotFound(ARHubError):
    status_code = 404


class ConversationNotFound(ARHubError):
    status_code = 404


class InvalidTierConfiguration(ARHubError, ValueError):
    """Submitted influence tiers failed validation."""

    status_code = 400
