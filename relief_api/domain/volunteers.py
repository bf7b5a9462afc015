# SPDX-License-Identifier: Apache-2.0

"""
Volunteer registration domain logic.
"""

from typing import List, Optional

from .validation import ValidationResult


COMMON_SKILLS = [
    "Medical Aid",
    "First Aid",
    "Rescue Operations",
    "Logistics",
    "Transportation",
    "Communication",
    "Food Distribution",
    "Shelter Management",
    "Child Care",
    "Counseling",
]

MAX_SKILL_LENGTH = 100


def normalize_skills(skills: Optional[List[str]]) -> List[str]:
    """
    Trim skills and drop blanks and case-insensitive duplicates.

    The first spelling of a skill wins and input order is kept.
    """
    seen = set()
    normalized = []
    for skill in skills or []:
        if not isinstance(skill, str):
            continue
        cleaned = " ".join(skill.split())
        if not cleaned or cleaned.lower() in seen:
            continue
        seen.add(cleaned.lower())
        normalized.append(cleaned)
    return normalized


def validate_registration(
    skills: List[str],
    location: Optional[str],
    availability: Optional[str]
) -> ValidationResult:
    """
    Validate a volunteer registration.

    Args:
        skills: Normalized skills
        location: Base location
        availability: Availability notes

    Returns:
        ValidationResult with validation status and errors
    """
    errors = []
    warnings = []

    if not skills:
        errors.append("At least one skill is required")

    for skill in skills:
        if len(skill) > MAX_SKILL_LENGTH:
            errors.append(f"Skill '{skill[:20]}...' cannot exceed {MAX_SKILL_LENGTH} characters")

    if location is not None and len(location) > 300:
        errors.append("Location cannot exceed 300 characters")

    if availability is not None and len(availability) > 300:
        errors.append("Availability cannot exceed 300 characters")

    if not location or not location.strip():
        warnings.append("No location given")

    return ValidationResult.from_errors(errors, warnings)
