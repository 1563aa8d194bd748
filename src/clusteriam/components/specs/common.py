"""Common validators and helpers shared across specifications."""

import re
from typing import Optional

from pydantic.functional_validators import AfterValidator
from typing_extensions import Annotated


def is_enabled(value: Optional[bool]) -> bool:
    """True only when a tri-state flag is explicitly enabled."""
    return value is not None and value


def is_disabled(value: Optional[bool]) -> bool:
    """True only when a tri-state flag is explicitly disabled."""
    return value is not None and not value


def is_set_and_non_empty(value: Optional[str]) -> bool:
    return value is not None and value != ""


def _dns_label(v: str) -> str:
    """Validate DNS-1123 label format."""
    if not v:
        raise ValueError("Cannot be empty")
    if not re.fullmatch(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?", v):
        raise ValueError("Must be DNS-1123 compliant: lowercase alphanumeric + '-', no leading/trailing '-'")
    if len(v) > 63:
        raise ValueError("Must be 63 characters or less")
    return v


def _arn(v: str) -> str:
    """Validate that a non-empty identifier looks like an ARN."""
    if v and not v.startswith("arn:"):
        raise ValueError(f"Must be an ARN (arn:partition:service:...): {v}")
    return v


DNSLabel = Annotated[str, AfterValidator(_dns_label)]
ARN = Annotated[str, AfterValidator(_arn)]
