"""
Token authentication backend.

Kept apart from any view definitions so that DRF can import it while
initialising settings without circular imports.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    """DRF token authentication using the ``Token`` keyword.

    Exists to provide a stable import path for the project's configuration.
    """

    keyword = 'Token'
