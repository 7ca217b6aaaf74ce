from itera_worker.auth.exceptions import AuthError
from itera_worker.auth.jwt_checker import is_token_expired
from itera_worker.auth.token_cache import TokenCache

__all__ = ["AuthError", "TokenCache", "is_token_expired"]
