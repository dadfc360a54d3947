"""Tokensmith - OAuth2 credential issuance and validation engine.

Turns authenticated grant requests into signed JWT access tokens and rotating
refresh tokens, with PKCE, signing key rotation and encrypted key storage.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
