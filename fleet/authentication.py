"""
Token authentication backend.

Bearer JWTs (SimpleJWT) are the primary credential.  This subclass of
DRF's ``TokenAuthentication`` keeps long-lived ``Token`` keys working
for devices such as ward tablets, and gives the settings a stable
import path.
"""
from __future__ import annotations

from rest_framework import authentication


class TokenAuthentication(authentication.TokenAuthentication):
    keyword = 'Token'
