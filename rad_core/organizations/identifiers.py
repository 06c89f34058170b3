# rad_core/organizations/identifiers.py
from __future__ import annotations

import secrets
import string

from rad_core.organizations.models import Organization

IDENTIFIER_LENGTH = 4
MAX_ATTEMPTS = 100


def random_identifier(length: int = IDENTIFIER_LENGTH) -> str:
    return "".join(secrets.choice(string.ascii_uppercase) for _ in range(length))


def identifier_taken(identifier: str) -> bool:
    return Organization.objects.filter(identifier=identifier).exists()


def generate_identifier(*, length: int = IDENTIFIER_LENGTH) -> str:
    """
    Random upper-case code not used by any organization (active or not).

    Raises RuntimeError when the space looks exhausted; at 26**4 codes that
    only happens if something is badly wrong with the table.
    """
    for _ in range(MAX_ATTEMPTS):
        candidate = random_identifier(length)
        if not identifier_taken(candidate):
            return candidate
    raise RuntimeError("Could not generate a unique organization identifier.")
