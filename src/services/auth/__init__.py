from src.services.auth.denylist import TokenDenylist
from src.services.auth.security import TokenCodec, hash_password, verify_password
from src.services.auth.service import AuthService

__all__ = ["AuthService", "TokenCodec", "TokenDenylist", "hash_password", "verify_password"]
