"""Bearer PAT authentication."""

from kwilt_mcp.auth.pat import (
    PatOwner,
    authenticate_pat,
    get_bearer_token,
    hash_token,
    require_pat_owner,
)

__all__ = [
    "PatOwner",
    "authenticate_pat",
    "get_bearer_token",
    "hash_token",
    "require_pat_owner",
]
