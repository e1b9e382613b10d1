class FitbitWeightError(Exception):
    """Base class for every error the backup can fail with."""


class ConfigError(FitbitWeightError):
    """Raised when a required credential is missing."""


class TokenCacheError(FitbitWeightError):
    """Raised when the cached OAuth token cannot be used."""


class ExpiredTokenError(TokenCacheError):
    pass


class InvalidTokenError(TokenCacheError):
    pass


class AuthorizationError(FitbitWeightError):
    """Raised when no access token could be obtained."""


class ApiError(FitbitWeightError):
    """Raised for a failed or undecodable Fitbit API reply."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code
