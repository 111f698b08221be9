# =============================================================================
# core/errors.py - Pipeline errors
# =============================================================================


class ADHuntXError(Exception):
    """Base error for the analyzer"""


class NoValidUsersError(ADHuntXError):
    """Raised when an import yields zero usable user records"""

    USER_MESSAGE = "Failed to parse CSV. Ensure format is correct, re-check the file and try again."

    def __init__(self, message: str = "No valid users found in CSV."):
        super().__init__(message)
