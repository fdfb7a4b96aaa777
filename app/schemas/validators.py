"""Custom validators and types."""

import re
from typing import Annotated

from pydantic import AfterValidator, Field

# International format: + country code, then 7-14 more digits
PHONE_PATTERN = re.compile(r"^\+[1-9][0-9]{7,14}$")


def validate_phone_number(value: str) -> str:
    """
    Validate and normalize a phone number in international format.

    Accepts formats:
    - +85512345678
    - +855 12 345 678
    - +855-12-345-678
    - +855 (12) 345678

    Returns normalized format: +85512345678
    """
    # Remove spaces, dashes, parentheses
    normalized = re.sub(r"[\s\-\(\)]", "", value)

    if not PHONE_PATTERN.match(normalized):
        raise ValueError(
            "Invalid phone number. Use international format: +<country code><number> "
            "(e.g., +855 12 345 678)"
        )

    return normalized


# Annotated type for phone number validation
PhoneNumber = Annotated[
    str,
    Field(min_length=8, max_length=25),
    AfterValidator(validate_phone_number),
]
