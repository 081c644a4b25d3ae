"""Regular expressions shared by the extractors."""

import re

# Contact details
EMAIL = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE = re.compile(r"(?:\+1[-.\s]?)?\(?[2-9]\d{2}\)?[-.\s]?\d{3}[-.\s]?\d{4}")

# Social profiles
LINKEDIN = re.compile(r"https?://(?:www\.)?linkedin\.com/(?:company|in)/[a-zA-Z0-9_-]+/?", re.IGNORECASE)
FACEBOOK = re.compile(r"https?://(?:www\.)?facebook\.com/[a-zA-Z0-9._-]+/?", re.IGNORECASE)
INSTAGRAM = re.compile(r"https?://(?:www\.)?instagram\.com/[a-zA-Z0-9._-]+/?", re.IGNORECASE)
TWITTER = re.compile(r"https?://(?:www\.)?(?:twitter\.com|x\.com)/[a-zA-Z0-9_]+/?", re.IGNORECASE)

CONTACT_PAGE = re.compile(r"/(?:contact(?:-us)?|get-in-touch|reach-us)/?$", re.IGNORECASE)

# Founding and history
FOUNDED_YEAR = re.compile(r"(?:founded|established|since|est\.?)\s*(?:in\s*)?(\d{4})", re.IGNORECASE)
YEARS_IN_BUSINESS = re.compile(r"(\d+)\+?\s*years?\s*(?:in\s*business|of\s*experience|serving)", re.IGNORECASE)
ANNIVERSARY = re.compile(r"celebrating\s+(\d+)\s*years?", re.IGNORECASE)
FAMILY_OWNED = re.compile(r"family[- ]owned\s+(?:since\s+)?(\d{4})?", re.IGNORECASE)
YEAR = re.compile(r"\b(20\d{2}|19\d{2})\b")

# Headcount phrasings, most reliable first
HEADCOUNT_DIRECT = re.compile(
    r"(\d{1,5})\+?\s*(?:employees?|staff(?:\s+members?)?|team\s+members?|professionals?|technicians?|workers?|specialists?)",
    re.IGNORECASE,
)
HEADCOUNT_TEAM_OF = re.compile(
    r"(?:team|staff|workforce|crew)\s+of\s+(?:over\s+|more\s+than\s+|approximately\s+|about\s+|around\s+)?(\d{1,5})\+?",
    re.IGNORECASE,
)
HEADCOUNT_EMPLOYS = re.compile(
    r"(?:we\s+)?employ(?:s|ing)?\s+(?:over\s+|more\s+than\s+|approximately\s+|about\s+|around\s+)?(\d{1,5})\+?",
    re.IGNORECASE,
)
HEADCOUNT_OVER = re.compile(
    r"(?:over|more\s+than|approximately|about|around|nearly)\s+(\d{1,5})\+?\s*(?:employees?|staff|team\s+members?|professionals?)",
    re.IGNORECASE,
)
HEADCOUNT_PERSON_TEAM = re.compile(
    r"(\d{1,5})\s*-?\s*(?:person|member|man|woman)\s+(?:team|staff|crew|operation)",
    re.IGNORECASE,
)
HEADCOUNT_RANGE = re.compile(
    r"(\d{1,5})\s*[-–to]+\s*(\d{1,5})\s*(?:employees?|staff|team\s+members?|professionals?)",
    re.IGNORECASE,
)

# Ownership changes
ACQUIRED = re.compile(r"acquired\s+by\s+([^,.]+)", re.IGNORECASE)
SOLD_TO = re.compile(r"sold\s+to\s+([^,.]+)", re.IGNORECASE)
MERGER = re.compile(r"merger\s+with\s+([^,.]+)", re.IGNORECASE)
NEW_OWNERSHIP = re.compile(r"(?:under\s+)?new\s+(?:ownership|management)", re.IGNORECASE)
REBRANDED = re.compile(r"(?:formerly\s+known\s+as|rebranded\s+(?:from|to))\s+([^,.]+)", re.IGNORECASE)

# People. Case sensitive: names must be capitalized.
TEAM_MEMBER_WITH_TITLE = re.compile(
    r"([A-Z][a-z]{1,15}(?:\s+[A-Z]\.?)?\s+[A-Z][a-z]{1,20})[\s,\-–|:]+(?:is\s+(?:the|our)\s+)?"
    r"(CEO|Owner|President|Founder|Co-Founder|Director|Manager|Chief\s+[A-Z][a-z]+\s+Officer|"
    r"Vice\s+President|VP\s+of\s+[A-Z][a-z]+|General\s+Manager|Partner|Principal|Broker|Agent)"
)
# A name alone on its line or inside its own tag; case-insensitive to catch "Joe kremer"
STANDALONE_NAME = re.compile(
    r"(?:^|>)[ \t]*([A-Za-z]{2,15}(?:[ \t]+[A-Z]\.?)?[ \t]+[A-Za-z]{2,20})[ \t]*(?=\n|<|$)",
    re.IGNORECASE | re.MULTILINE,
)
TEAM_PAGE_URL = re.compile(r"\b(about|team|staff|people|leadership|our-team|meet|who-we-are|management)\b")

NEW_HIRE = re.compile(
    r"(?:welcome|joins?(?:\s+(?:us|our|the)\s+team)?|new\s+(?:team\s+)?member|recently\s+hired)\s+([^.!?]+)",
    re.IGNORECASE,
)
