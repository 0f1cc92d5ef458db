"""OAuth token handling for gws-tools.

Tokens are read from the environment or from a JSON token file; expired
tokens are refreshed with google-auth. Obtaining the initial token
(browser consent) is done outside this package.
"""

from gws_tools.auth.credentials import CredentialManager
from gws_tools.auth.models import (
    OAuthToken,
    StoredToken,
    TokenMetadata,
    TokenStatus,
)
from gws_tools.auth.token_storage import TokenStorage

__all__ = [
    "CredentialManager",
    "TokenStorage",
    "OAuthToken",
    "StoredToken",
    "TokenMetadata",
    "TokenStatus",
]
