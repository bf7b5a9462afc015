# SPDX-License-Identifier: Apache-2.0

"""
Shared validation result type for domain checks.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .errors import ValidationError


@dataclass
class ValidationResult:
    """Result of a domain validation."""
    is_valid: bool
    errors: List[str]
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str], warnings: Optional[List[str]] = None) -> "ValidationResult":
        return cls(is_valid=len(errors) == 0, errors=errors, warnings=warnings or [])


def raise_for_errors(result: ValidationResult, message: str) -> None:
    """Raise ValidationError carrying every collected error."""
    if not result.is_valid:
        raise ValidationError(
            f"{message}: {'; '.join(result.errors)}",
            errors=result.errors
        )
