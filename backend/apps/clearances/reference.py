"""
Reference number generation for clearance requests.

Default scheme: PREFIX-YYYYMMDD-TOKEN, where the date is the UTC creation
date and TOKEN is 8 random characters from A-Z0-9. The token only avoids
collisions; it is not a security boundary.

The sequential scheme PREFIX-YYYY-NNNNN needs a sequence coordinated by the
caller and is kept for reading numbers issued under it.
"""

import re
import secrets
import string
from datetime import timezone as dt_timezone

from django.utils import timezone

ALPHABET = string.ascii_uppercase + string.digits
TOKEN_LENGTH = 8
DEFAULT_PREFIX = "CLR"
SEQUENTIAL_PREFIX = "BRG"

REFERENCE_PATTERN = re.compile(r"^[A-Z]+-\d{8}-[A-Z0-9]{8}$")
SEQUENTIAL_PATTERN = re.compile(r"^(?P<prefix>[A-Z]+)-(?P<year>\d{4})-(?P<seq>\d{5,})$")


def random_token(length=TOKEN_LENGTH):
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def generate_reference_number(prefix=DEFAULT_PREFIX, now=None, token_factory=None):
    """
    Build a new reference number.

    Args:
        prefix: Upper-case scheme prefix
        now: Aware datetime of creation (defaults to timezone.now())
        token_factory: Zero-argument callable returning the token

    Returns:
        str: e.g. 'CLR-20240115-7Q2KX9ZD'
    """
    now = now or timezone.now()
    day = now.astimezone(dt_timezone.utc).strftime("%Y%m%d")
    token = (token_factory or random_token)()
    return f"{prefix}-{day}-{token}"


def is_valid_reference(value):
    return bool(value) and REFERENCE_PATTERN.match(value) is not None


def format_sequential_reference(sequence, prefix=SEQUENTIAL_PREFIX, year=None):
    if sequence < 1:
        raise ValueError("Sequence must be positive")
    year = year or timezone.now().astimezone(dt_timezone.utc).year
    return f"{prefix}-{year}-{sequence:05d}"


def extract_year(reference_number):
    """Year component of a sequential reference, or None if malformed."""
    match = SEQUENTIAL_PATTERN.match(reference_number or "")
    return int(match.group("year")) if match else None


def extract_sequence(reference_number):
    """Sequence component of a sequential reference, or None if malformed."""
    match = SEQUENTIAL_PATTERN.match(reference_number or "")
    return int(match.group("seq")) if match else None
