from classboard.utils.security import hash_password, create_access_token, decode_token
from classboard.utils.rate_limit import rate_limit, limiter, close_rate_limiter, get_client_identifier

__all__ = [
    "hash_password", "create_access_token", "decode_token",
    "rate_limit", "limiter", "close_rate_limiter", "get_client_identifier",
]
