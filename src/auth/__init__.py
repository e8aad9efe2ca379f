"""Auth module -- identity provider flow, access/state tokens, domain policy."""

from src.auth.identity import IdentityProvider
from src.auth.tokens import AuthToken, issue_token, verify_token

__all__ = ["AuthToken", "IdentityProvider", "issue_token", "verify_token"]
