"""
SQLAlchemy mixins for soft delete functionality.

``DestroyableMixin`` gives any model the destroy/save API and dependent
cascades. ``ParanoidMixin`` turns destroy into an update of ``deleted_at``
and adds query entry points that control whether destroyed rows are seen.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type

from sqlalchemy import DateTime, event, inspect
from sqlalchemy.ext.hybrid import hybrid_method
from sqlalchemy.orm import Mapped, Session, mapped_column
from sqlalchemy.orm.attributes import set_committed_value

from ..config import get_config
from .exceptions import HardDeleteError, RecordInvalid
from .scopes import ScopeChain
from .validation import Errors, validates_uniqueness

logger = logging.getLogger(__name__)

DEPENDENT_KEY = "dependent"
DEPENDENT_DESTROY = "destroy"

# Loader strategies whose collections are never held in memory
UNDETACHABLE_LOADERS = ("dynamic", "write_only")


def _dependent_relationships(model: Any) -> Iterator[Any]:
    for relationship in inspect(model).relationships:
        if relationship.info.get(DEPENDENT_KEY) == DEPENDENT_DESTROY:
            yield relationship


def _entity_id(record: Any) -> str:
    identity = inspect(record).identity
    if not identity:
        return "unsaved"
    return ",".join(str(value) for value in identity)


def _now() -> datetime:
    now = datetime.now(timezone.utc)
    if not get_config().timezone_aware:
        return now.replace(tzinfo=None)
    return now


class DestroyableMixin:
    """
    Mixin giving a model validation on save, destroy and dependent cascades.

    Dependents are declared on relationships:

        androids = relationship(
            "Android", info={"dependent": "destroy"}
        )

    Destroyed children keep their foreign key when the owner row is
    removed. ``lazy="dynamic"`` and ``lazy="write_only"`` collections
    cannot be detached and need ``passive_deletes=True`` for that.

    Destroy runs inside a SAVEPOINT: if any step fails, the cascade and the
    record's own changes are rolled back together.

    Usage:
        class Person(Base, DestroyableMixin):
            __tablename__ = "people"
            id = Column(Integer, primary_key=True)
    """

    # Columns checked by validates_uniqueness on every save
    __unique_fields__ = ()  # type: Tuple[str, ...]

    @classmethod
    def scoped(cls) -> ScopeChain:
        """Return an empty scope chain for this model."""
        return ScopeChain(cls)

    @classmethod
    def find(cls, session: Session, *criteria: Any, **filter_by: Any) -> List[Any]:
        return cls.scoped().find(session, *criteria, **filter_by)

    @classmethod
    def first(cls, session: Session, *criteria: Any, **filter_by: Any) -> Any:
        return cls.scoped().first(session, *criteria, **filter_by)

    @classmethod
    def count(cls, session: Session, *criteria: Any, **filter_by: Any) -> int:
        return cls.scoped().count(session, *criteria, **filter_by)

    @classmethod
    def destroy_all(
        cls, session: Session, *criteria: Any, **filter_by: Any
    ) -> List[Any]:
        return cls.scoped().destroy_all(session, *criteria, **filter_by)

    @classmethod
    def delete_all(cls, session: Session, *criteria: Any, **filter_by: Any) -> int:
        return cls.scoped().delete_all(session, *criteria, **filter_by)

    @classmethod
    def create(cls, session: Session, **attrs: Any) -> Any:
        """
        Build a record and save it.

        Raises:
            RecordInvalid: If validation fails
        """
        record = cls(**attrs)
        return record.save(session)

    def validate(self, session: Session) -> Errors:
        """Return validation errors; override to add rules."""
        return validates_uniqueness(self, session, self.__unique_fields__)

    def save(self, session: Session) -> Any:
        """
        Validate, add to the session and flush.

        Raises:
            RecordInvalid: If validation fails
        """
        errors = self.validate(session)
        if errors:
            raise RecordInvalid(
                self.__class__.__name__, errors, entity_id=_entity_id(self)
            )

        session.add(self)
        session.flush()
        return self

    def destroy_dependents(self, session: Session) -> List[Any]:
        """
        Destroy records of relationships marked ``dependent="destroy"``.

        Children are destroyed in collection order.

        Returns:
            The destroyed children
        """
        if not get_config().cascade_destroy_enabled:
            return []

        destroyed: List[Any] = []
        for relationship in _dependent_relationships(self.__class__):
            related = getattr(self, relationship.key)
            if related is None:
                continue

            items = list(related) if relationship.uselist else [related]
            for item in items:
                destroyed.append(item.destroy(session))

            if items:
                logger.debug(
                    f"Destroyed {len(items)} {relationship.key} of "
                    f"{self.__class__.__name__} {_entity_id(self)}"
                )

        return destroyed

    @hybrid_method
    def destroy(self, session: Session) -> Any:
        """Destroy this record after its dependents."""
        return self._destroy(session)

    # Class-level form: Model.destroy(session, ident)
    @destroy.expression
    def destroy(cls, session: Session, ident: Any) -> Any:
        """
        Destroy the live record with the given primary key.

        Raises:
            sqlalchemy.exc.NoResultFound: No live record has that key
        """
        record = cls.scoped().get(session, ident)
        return record.destroy(session)

    def _destroy(self, session: Session) -> Any:
        entity_id = _entity_id(self)
        with session.begin_nested():
            self.destroy_dependents(session)
            self._detach_dependents()
            session.delete(self)
            session.flush()
        logger.debug(f"Removed {self.__class__.__name__} {entity_id}")
        return self

    def _detach_dependents(self) -> None:
        # Keeps the unit of work from nulling foreign keys of destroyed children
        if not get_config().cascade_destroy_enabled:
            return

        for relationship in _dependent_relationships(self.__class__):
            if relationship.lazy in UNDETACHABLE_LOADERS:
                continue
            set_committed_value(
                self, relationship.key, [] if relationship.uselist else None
            )


class ParanoidMixin(DestroyableMixin):
    """
    Mixin turning destroy into a logical deletion.

    Provides:
    - A nullable ``deleted_at`` timestamp (None means live)
    - destroy() that stamps ``deleted_at`` instead of removing the row
    - restore() that clears it again
    - Query entry points that see live rows, all rows or destroyed rows

    Usage:
        class Android(Base, ParanoidMixin):
            __tablename__ = "androids"
            __unique_fields__ = ("name",)

            id = Column(Integer, primary_key=True)
            name = Column(String(100))
    """

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    @property
    def is_destroyed(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def live(cls) -> ScopeChain:
        return cls.scoped().live()

    @classmethod
    def with_destroyed(cls) -> ScopeChain:
        return cls.scoped().with_destroyed()

    @classmethod
    def only_destroyed(cls) -> ScopeChain:
        return cls.scoped().only_destroyed()

    @classmethod
    def find_with_destroyed(
        cls, session: Session, *criteria: Any, **filter_by: Any
    ) -> List[Any]:
        return cls.scoped().find_with_destroyed(session, *criteria, **filter_by)

    @classmethod
    def find_only_destroyed(
        cls, session: Session, *criteria: Any, **filter_by: Any
    ) -> List[Any]:
        return cls.scoped().find_only_destroyed(session, *criteria, **filter_by)

    @classmethod
    def count_with_destroyed(
        cls, session: Session, *criteria: Any, **filter_by: Any
    ) -> int:
        return cls.scoped().count_with_destroyed(session, *criteria, **filter_by)

    @classmethod
    def count_only_destroyed(
        cls, session: Session, *criteria: Any, **filter_by: Any
    ) -> int:
        return cls.scoped().count_only_destroyed(session, *criteria, **filter_by)

    def _destroy(self, session: Session) -> Any:
        entity_id = _entity_id(self)
        if self.deleted_at is not None:
            logger.warning(
                f"{self.__class__.__name__} {entity_id} is already destroyed"
            )
            return self

        with session.begin_nested():
            self.destroy_dependents(session)
            self.deleted_at = _now()
            self._persist(session)

        logger.debug(
            f"Destroyed {self.__class__.__name__} {entity_id} "
            f"at {self.deleted_at.isoformat()}"
        )
        return self

    def restore(self, session: Session) -> Any:
        """
        Clear ``deleted_at`` and persist, making the record live again.

        Args:
            session: SQLAlchemy session

        Returns:
            The restored record
        """
        entity_id = _entity_id(self)
        if self.deleted_at is None:
            logger.warning(f"{self.__class__.__name__} {entity_id} is not destroyed")
            return self

        with session.begin_nested():
            self.deleted_at = None
            self._persist(session)

        logger.debug(f"Restored {self.__class__.__name__} {entity_id}")
        return self

    def _persist(self, session: Session) -> None:
        if get_config().validate_on_destroy:
            self.save(session)
        else:
            session.add(self)
            session.flush()

    def to_dict(self, include_deleted_fields: bool = True) -> Dict[str, Any]:
        """
        Convert model to dictionary representation.

        Args:
            include_deleted_fields: Whether to include ``deleted_at``

        Returns:
            Dictionary representation of the model
        """
        result: Dict[str, Any] = {}

        table = getattr(self, "__table__", None)
        if table is None:
            return result

        for column in table.columns:
            value = getattr(self, column.key, None)
            if isinstance(value, datetime):
                value = value.isoformat()
            result[column.key] = value

        if not include_deleted_fields:
            result.pop("deleted_at", None)

        return result


def prevent_hard_delete(mapper: Any, connection: Any, target: Any) -> None:
    """
    Refuse ``session.delete()`` on paranoid records.

    This function should be connected to SQLAlchemy's before_delete event.
    Bulk ``delete_all`` does not emit this event and stays available.
    """
    if isinstance(target, ParanoidMixin):
        raise HardDeleteError(target.__class__.__name__, _entity_id(target))


def register_soft_delete_listeners(base_class: Type[Any]) -> None:
    """
    Register SQLAlchemy event listeners for soft delete functionality.

    Args:
        base_class: The declarative base class
    """
    for mapper in base_class.registry.mappers:
        if issubclass(mapper.class_, ParanoidMixin) and not event.contains(
            mapper.class_, "before_delete", prevent_hard_delete
        ):
            event.listen(mapper.class_, "before_delete", prevent_hard_delete)
