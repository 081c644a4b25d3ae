"""Person-name heuristics used by team extraction."""

import re

from leadcrawl.utils.first_names import FIRST_NAMES

# Words that should never appear in a person's name
NAME_BLACKLIST = frozenset({
    "home", "business", "service", "services", "company", "inc", "llc", "corp", "the", "and", "for",
    "our", "your", "with", "from", "that", "this", "have", "been", "was", "are", "were", "being",
    "colorado", "california", "texas", "florida", "new", "york", "chicago", "los", "angeles",
    "property", "properties", "real", "estate", "construction", "plumbing", "heating", "cooling",
    "electric", "electrical", "roofing", "painting", "cleaning", "maintenance", "repair", "repairs",
    "give", "giving", "providing", "offers", "offer", "plugin", "website", "contact", "about",
    "concerns", "concern", "regarding", "information", "details", "more", "learn", "read",
    "click", "here", "page", "site", "web", "online", "today", "now", "call", "email",
    "north", "south", "east", "west", "central", "metro", "area", "region", "county", "city",
})

_NAME_TOKEN = re.compile(r"^[a-zA-Z][a-zA-Z'\-]+$")


def _capitalize(token: str) -> str:
    return token[:1].upper() + token[1:].lower()


def normalize_name(name: str) -> str:
    """Title-case a name, e.g. ``"joe mcdonald"`` -> ``"Joe McDonald"``.

    Tokens of two characters or fewer are treated as initials and uppercased.
    """
    parts = []
    for part in name.split():
        if len(part) <= 2:
            parts.append(part.upper())
        elif "'" in part:
            before, _, after = part.partition("'")
            parts.append(f"{_capitalize(before)}'{_capitalize(after)}")
        elif part.lower().startswith("mc") and len(part) > 3:
            parts.append("Mc" + _capitalize(part[2:]))
        elif part.lower().startswith("mac") and len(part) > 4:
            parts.append("Mac" + _capitalize(part[3:]))
        else:
            parts.append(_capitalize(part))
    return " ".join(parts)


def is_valid_person_name(name: str) -> bool:
    """Check whether a string looks like a real person's name.

    Accepts 2-4 tokens whose first token is a known first name, with no
    blacklisted token, letter-like tokens and a last token of 2+ characters.
    """
    parts = name.split()
    if not 2 <= len(parts) <= 4:
        return False

    if parts[0].lower() not in FIRST_NAMES:
        return False

    if any(part.lower() in NAME_BLACKLIST for part in parts):
        return False

    # Initials like "J." are allowed
    if any(len(part) > 2 and not _NAME_TOKEN.match(part) for part in parts):
        return False

    return len(parts[-1]) >= 2
