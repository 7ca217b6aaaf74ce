class AuthError(Exception):
    """Raised when an access token cannot be obtained from Itera."""
