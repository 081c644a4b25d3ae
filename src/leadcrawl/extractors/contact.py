"""Email and phone harvesting."""

import logging
from typing import Iterable, List

from leadcrawl.constants import MAX_EMAILS, MAX_PHONES
from leadcrawl.extractors import patterns
from leadcrawl.utils.phone import is_fake_phone, normalize_phone

logger = logging.getLogger(__name__)

# Template and placeholder domains
PLACEHOLDER_EMAIL_DOMAINS = ("example.com", "domain.com", "email.com")

# Retina image names such as logo@2x.png look like addresses
IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg")


def extract_emails(text: str) -> List[str]:
    """
    Harvest email addresses from page text.

    Args:
        text: Visible page text

    Returns:
        Up to MAX_EMAILS unique addresses, in order of appearance
    """
    emails: List[str] = []
    for match in patterns.EMAIL.findall(text):
        lowered = match.lower()
        if any(domain in lowered for domain in PLACEHOLDER_EMAIL_DOMAINS):
            continue
        if lowered.endswith(IMAGE_SUFFIXES):
            continue
        if match not in emails:
            emails.append(match)
        if len(emails) >= MAX_EMAILS:
            break

    if emails:
        logger.debug(f"[extract:emails] Found {len(emails)}: {', '.join(emails[:3])}")
    return emails


def extract_phones(text: str, known_phones: Iterable[str] = ()) -> List[str]:
    """
    Harvest US phone numbers from page text.

    Numbers are normalized to 10 digits. The business's own known numbers
    and fake/test numbers are dropped.

    Args:
        text: Visible page text
        known_phones: Numbers already on file for the business, any format

    Returns:
        Up to MAX_PHONES unique 10-digit numbers
    """
    known = {normalize_phone(p) for p in known_phones}

    phones: List[str] = []
    for match in patterns.PHONE.findall(text):
        phone = normalize_phone(match)
        if len(phone) != 10 or phone in known or phone in phones:
            continue
        if is_fake_phone(phone):
            continue
        phones.append(phone)
        if len(phones) >= MAX_PHONES:
            break

    if phones:
        logger.debug(f"[extract:phones] Found {len(phones)}: {', '.join(phones[:3])}")
    return phones
