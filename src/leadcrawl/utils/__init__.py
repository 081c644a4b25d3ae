"""
Utilities Package.

Provides bot challenge detection and the string heuristics (phone numbers,
person names) used by the extraction engine.
"""

from .challenge_handler import (
    CHALLENGE_MARKERS,
    ChallengeWaitResult,
    find_challenge_markers,
    is_challenge_page,
    needs_challenge_bypass,
    wait_for_challenge_async,
)
from .phone import normalize_phone, is_fake_phone
from .names import NAME_BLACKLIST, normalize_name, is_valid_person_name
from .first_names import FIRST_NAMES

__all__ = [
    # Challenge handling
    "CHALLENGE_MARKERS",
    "ChallengeWaitResult",
    "find_challenge_markers",
    "is_challenge_page",
    "needs_challenge_bypass",
    "wait_for_challenge_async",
    # Phones
    "normalize_phone",
    "is_fake_phone",
    # Names
    "NAME_BLACKLIST",
    "FIRST_NAMES",
    "normalize_name",
    "is_valid_person_name",
]
