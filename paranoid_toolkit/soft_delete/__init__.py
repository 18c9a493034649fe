"""
Soft Delete Module - logical deletion for SQLAlchemy models.

Provides mixins, named scopes and validation helpers that replace row
removal with a ``deleted_at`` timestamp while keeping destroyed rows
reachable through explicit query entry points.
"""

from .exceptions import HardDeleteError, ParanoidError, RecordInvalid
from .mixins import (
    DestroyableMixin,
    ParanoidMixin,
    prevent_hard_delete,
    register_soft_delete_listeners,
)
from .scopes import ScopeChain, ScopeFragment, Visibility, named_scope
from .validation import validates_uniqueness

__all__ = [
    # Mixins
    "DestroyableMixin",
    "ParanoidMixin",
    "register_soft_delete_listeners",
    "prevent_hard_delete",
    # Scopes
    "named_scope",
    "ScopeChain",
    "ScopeFragment",
    "Visibility",
    # Validation
    "validates_uniqueness",
    # Exceptions
    "ParanoidError",
    "RecordInvalid",
    "HardDeleteError",
]
