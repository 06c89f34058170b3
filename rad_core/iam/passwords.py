# rad_core/iam/passwords.py
from __future__ import annotations

from django.contrib.auth.hashers import check_password, make_password

# Hashed on a lookup miss so unknown emails cost as much as wrong passwords.
_TIMING_DUMMY = "timing-parity-dummy-password"


class CredentialVerifier:
    """
    Password checks through Django's configured hashers (bcrypt in deployed
    settings). `verify_user` hides which half of email/password was wrong.
    """

    @staticmethod
    def verify(plaintext: str, stored_hash: str | None) -> bool:
        if not plaintext or not stored_hash:
            return False
        return check_password(plaintext, stored_hash)

    @staticmethod
    def verify_user(user, plaintext: str) -> bool:
        if user is None:
            make_password(_TIMING_DUMMY)
            return False
        return CredentialVerifier.verify(plaintext, user.password)
