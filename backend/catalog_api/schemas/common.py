"""Shared field types for request schemas."""

from typing import Annotated

from pydantic import AfterValidator, StringConstraints


def _reject_blank(value: str) -> str:
    if not value.strip():
        msg = "must not be blank"
        raise ValueError(msg)
    return value


# Required text field: present, not null, and not whitespace-only
NonBlank = Annotated[
    str,
    StringConstraints(max_length=255),
    AfterValidator(_reject_blank),
]

LongText = Annotated[
    str,
    StringConstraints(max_length=2000),
    AfterValidator(_reject_blank),
]
