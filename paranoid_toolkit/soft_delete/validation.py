"""
Record validation for the save path.

Uniqueness checks look at the whole table. Soft-deleted rows keep their
values, so a live record cannot reuse a value held by a destroyed one.
"""

import logging
from typing import Any, Dict, Iterable, List

from sqlalchemy import and_, func, inspect, not_, select
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

Errors = Dict[str, List[str]]


def add_error(errors: Errors, field: str, message: str) -> None:
    """Append a message to the error list of a field."""
    errors.setdefault(field, []).append(message)


def validates_uniqueness(
    record: Any, session: Session, fields: Iterable[str]
) -> Errors:
    """
    Check that each field value is not used by another row of the table.

    Args:
        record: Record being saved
        session: SQLAlchemy session
        fields: Names of the columns that must be unique

    Returns:
        Mapping of field name to error messages, empty when valid
    """
    errors: Errors = {}
    model = type(record)
    mapper = inspect(model)
    identity = inspect(record).identity

    for field in fields:
        value = getattr(record, field)
        if value is None:
            continue

        # Deliberately unscoped: destroyed rows still hold their value
        stmt = select(func.count()).select_from(model).where(
            getattr(model, field) == value
        )
        if identity is not None:
            own_row = and_(
                *(
                    column == ident
                    for column, ident in zip(mapper.primary_key, identity)
                )
            )
            stmt = stmt.where(not_(own_row))

        with session.no_autoflush:
            taken = session.execute(stmt).scalar_one()

        if taken:
            logger.debug(f"{model.__name__}.{field}={value!r} is already taken")
            add_error(errors, field, "has already been taken")

    return errors
