# SPDX-License-Identifier: Apache-2.0

"""
Shared plumbing for the relief managers.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from ..domain.authorization import check_admin, require
from ..domain.errors import NotFoundError, ValidationError
from ..models.base import BaseEntity
from ..models.entities import UserContext
from .repository import Repository

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=BaseEntity)
S = TypeVar('S', bound=Enum)


class BaseManager:
    """Repository access, entity loading and role checks used by every manager."""

    def __init__(self, repository: Repository):
        self.repository = repository

    def _load(self, collection: str, model: Type[E], entity_id: str, label: str,
              repository: Optional[Repository] = None) -> E:
        """Load an entity or raise NotFoundError."""
        document = (repository or self.repository).get(collection, entity_id)
        if document is None:
            raise NotFoundError(label, entity_id)
        return model.from_document(document)

    @staticmethod
    def _build(model: Type[E], **data: Any) -> E:
        """Build an entity, reporting field errors as a domain ValidationError."""
        try:
            return model(**data)
        except PydanticValidationError as e:
            errors = []
            for error in e.errors():
                field = '.'.join(str(loc) for loc in error.get('loc', ()))
                errors.append(f"{field}: {error.get('msg')}" if field else error.get('msg'))
            raise ValidationError(f"Invalid {model.__name__}: {'; '.join(errors)}", errors=errors)

    @staticmethod
    def _status(enum_type: Type[S], value: Any, label: str) -> S:
        """Parse a status value from the persisted vocabulary."""
        try:
            return enum_type(value)
        except ValueError:
            allowed = ', '.join(member.value for member in enum_type)
            raise ValidationError(
                f"Invalid {label}: {value}",
                errors=[f"{label} must be one of: {allowed}"]
            )

    @staticmethod
    def _require_admin(user_context: UserContext, action: str) -> None:
        result = check_admin(user_context)
        if not result.allowed:
            logger.warning(
                f"Denied {action}",
                extra={'user_id': getattr(user_context, 'user_id', None), 'action': action}
            )
        require(result)

    @staticmethod
    def _optional_text(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @staticmethod
    def _span_attributes(user_context: Optional[UserContext], **attributes: Any) -> Dict[str, Any]:
        values = {key: str(value) for key, value in attributes.items() if value is not None}
        if user_context is not None:
            values['user.id'] = user_context.user_id
            values['user.role'] = str(user_context.role)
        return values
