"""
Named scopes and deleted-row visibility for paranoid models.

A scope chain accumulates filter and ordering fragments declared on a model
and decides its own deleted-row predicate when it is evaluated. Nothing is
registered globally on the session, so the order in which scopes and
visibility selectors are chained never changes the result.

Usage:
    class Android(Base, ParanoidMixin):
        __tablename__ = "androids"

        ordered = named_scope(order_by=lambda cls: cls.name.desc())
        r2d2 = named_scope(name="R2D2")

    Android.r2d2.ordered.find_only_destroyed(session)
    Android.only_destroyed().ordered.r2d2.all(session)
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import ColumnElement, Select, delete, func, inspect, select
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

Clause = Any
ClauseFactory = Callable[[Any], Any]


class Visibility(str, Enum):
    """Which rows a query sees with respect to the deletion marker."""

    LIVE = "live"
    WITH_DESTROYED = "with_destroyed"
    ONLY_DESTROYED = "only_destroyed"

    def criterion(self, deleted_at: Any) -> Optional[ColumnElement[bool]]:
        """
        Build the predicate for a deletion marker column.

        Args:
            deleted_at: The ``deleted_at`` column or mapped attribute, or None
                for models without a deletion marker

        Returns:
            A WHERE clause, or None when every row is visible
        """
        if deleted_at is None or self is Visibility.WITH_DESTROYED:
            return None
        if self is Visibility.LIVE:
            return deleted_at.is_(None)
        return deleted_at.is_not(None)


def _as_tuple(value: Any) -> Tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


@dataclass(frozen=True)
class ScopeFragment:
    """A reusable piece of a query: filters plus an optional ordering."""

    name: Optional[str] = None
    where: Optional[ClauseFactory] = None
    order_by: Optional[ClauseFactory] = None
    filter_by: Dict[str, Any] = field(default_factory=dict)

    def criteria(self, model: Any) -> List[Clause]:
        clauses = list(_as_tuple(self.where(model) if self.where else None))
        for key, value in self.filter_by.items():
            clauses.append(getattr(model, key) == value)
        return clauses

    def ordering(self, model: Any) -> Optional[Tuple[Clause, ...]]:
        if self.order_by is None:
            return None
        return _as_tuple(self.order_by(model))


class named_scope:
    """
    Declare a chainable query fragment on a model class.

    Args:
        where: Callable receiving the model class and returning one clause
            or a sequence of clauses
        order_by: Callable receiving the model class and returning the
            ordering clause(s)
        **filter_by: Column equality conditions
    """

    def __init__(
        self,
        where: Optional[ClauseFactory] = None,
        order_by: Optional[ClauseFactory] = None,
        **filter_by: Any,
    ):
        self.fragment = ScopeFragment(
            where=where, order_by=order_by, filter_by=dict(filter_by)
        )

    def __set_name__(self, owner: Any, name: str) -> None:
        self.fragment = replace(self.fragment, name=name)

    def __get__(self, instance: Any, owner: Any) -> "ScopeChain":
        return ScopeChain(owner, (self.fragment,))


def _lookup_named_scope(model: Any, name: str) -> Optional[named_scope]:
    for klass in model.__mro__:
        candidate = klass.__dict__.get(name)
        if isinstance(candidate, named_scope):
            return candidate
    return None


class ScopeChain:
    """
    Immutable query builder for one model.

    Every chaining call returns a new chain. Filters from all fragments are
    combined with AND; the most recently added ordering wins. Visibility is
    unset until a selector is applied: reads then default to live rows and
    ``delete_all`` to every row.
    """

    def __init__(
        self,
        model: Any,
        fragments: Sequence[ScopeFragment] = (),
        visibility: Optional[Visibility] = None,
    ):
        self.model = model
        self.fragments: Tuple[ScopeFragment, ...] = tuple(fragments)
        self.visibility = visibility

    def __getattr__(self, name: str) -> "ScopeChain":
        if name.startswith("_"):
            raise AttributeError(name)
        scope = _lookup_named_scope(self.model, name)
        if scope is None:
            raise AttributeError(
                f"{self.model.__name__} has no named scope {name!r}"
            )
        return self._extend(scope.fragment)

    def __repr__(self) -> str:
        names = [fragment.name or "<where>" for fragment in self.fragments]
        return (
            f"<ScopeChain {self.model.__name__} scopes={names} "
            f"visibility={self.visibility.value if self.visibility else None}>"
        )

    def _extend(self, fragment: ScopeFragment) -> "ScopeChain":
        return ScopeChain(self.model, self.fragments + (fragment,), self.visibility)

    def _with_visibility(self, visibility: Visibility) -> "ScopeChain":
        return ScopeChain(self.model, self.fragments, visibility)

    # Chaining

    def where(self, *criteria: Clause, **filter_by: Any) -> "ScopeChain":
        """Add ad-hoc filters to the chain."""
        return self._extend(
            ScopeFragment(
                where=(lambda model: criteria) if criteria else None,
                filter_by=dict(filter_by),
            )
        )

    def order_by(self, *clauses: Clause) -> "ScopeChain":
        """Replace the ordering of the chain."""
        return self._extend(ScopeFragment(order_by=lambda model: clauses))

    def live(self) -> "ScopeChain":
        return self._with_visibility(Visibility.LIVE)

    def with_destroyed(self) -> "ScopeChain":
        return self._with_visibility(Visibility.WITH_DESTROYED)

    def only_destroyed(self) -> "ScopeChain":
        return self._with_visibility(Visibility.ONLY_DESTROYED)

    # Statement building

    def criteria(
        self,
        *criteria: Clause,
        default: Visibility = Visibility.LIVE,
        **filter_by: Any,
    ) -> List[Clause]:
        """
        Collect every WHERE clause of the chain.

        Args:
            *criteria: Extra clauses for this call only
            default: Visibility used when no selector was applied
            **filter_by: Extra equality conditions for this call only

        Returns:
            List of clauses to combine with AND
        """
        clauses: List[Clause] = []
        visibility = self.visibility or default
        marker = visibility.criterion(getattr(self.model, "deleted_at", None))
        if marker is not None:
            clauses.append(marker)

        for fragment in self.fragments:
            clauses.extend(fragment.criteria(self.model))

        clauses.extend(criteria)
        for key, value in filter_by.items():
            clauses.append(getattr(self.model, key) == value)
        return clauses

    def ordering(self) -> Optional[Tuple[Clause, ...]]:
        """Return the last ordering declared in the chain, if any."""
        ordering = None
        for fragment in self.fragments:
            fragment_order = fragment.ordering(self.model)
            if fragment_order is not None:
                ordering = fragment_order
        return ordering

    def statement(self, *criteria: Clause, **filter_by: Any) -> Select[Any]:
        """Build the SELECT for this chain."""
        stmt = select(self.model).where(*self.criteria(*criteria, **filter_by))
        ordering = self.ordering()
        if ordering:
            stmt = stmt.order_by(*ordering)
        return stmt

    # Terminal calls

    def all(self, session: Session, *criteria: Clause, **filter_by: Any) -> List[Any]:
        """Return every matching record."""
        return list(session.scalars(self.statement(*criteria, **filter_by)))

    def first(self, session: Session, *criteria: Clause, **filter_by: Any) -> Any:
        """Return the first matching record, or None."""
        stmt = self.statement(*criteria, **filter_by).limit(1)
        return session.scalars(stmt).first()

    def count(self, session: Session, *criteria: Clause, **filter_by: Any) -> int:
        """Count matching records."""
        stmt = (
            select(func.count())
            .select_from(self.model)
            .where(*self.criteria(*criteria, **filter_by))
        )
        return session.execute(stmt).scalar_one()

    def get(self, session: Session, ident: Any) -> Any:
        """
        Load one record by primary key.

        Args:
            session: SQLAlchemy session
            ident: Key value, or a tuple in column order for composite keys

        Raises:
            ValueError: ident does not cover every primary key column
            sqlalchemy.exc.NoResultFound: No visible record has that key
        """
        primary_key = inspect(self.model).primary_key
        values = ident if isinstance(ident, tuple) else (ident,)
        if len(values) != len(primary_key):
            raise ValueError(
                f"{self.model.__name__} primary key has {len(primary_key)} "
                f"column(s), got {len(values)} value(s)"
            )

        stmt = self.statement(
            *(column == value for column, value in zip(primary_key, values))
        )
        return session.execute(stmt).scalar_one()

    def find(self, session: Session, *criteria: Clause, **filter_by: Any) -> List[Any]:
        return self.all(session, *criteria, **filter_by)

    def find_with_destroyed(
        self, session: Session, *criteria: Clause, **filter_by: Any
    ) -> List[Any]:
        return self.with_destroyed().all(session, *criteria, **filter_by)

    def find_only_destroyed(
        self, session: Session, *criteria: Clause, **filter_by: Any
    ) -> List[Any]:
        return self.only_destroyed().all(session, *criteria, **filter_by)

    def count_with_destroyed(
        self, session: Session, *criteria: Clause, **filter_by: Any
    ) -> int:
        return self.with_destroyed().count(session, *criteria, **filter_by)

    def count_only_destroyed(
        self, session: Session, *criteria: Clause, **filter_by: Any
    ) -> int:
        return self.only_destroyed().count(session, *criteria, **filter_by)

    def destroy_all(
        self, session: Session, *criteria: Clause, **filter_by: Any
    ) -> List[Any]:
        """
        Destroy every matching record one by one.

        Records are resolved through the chain's visibility (live rows by
        default), so cascades and validation run for each of them.

        Returns:
            The destroyed records
        """
        records = self.all(session, *criteria, **filter_by)
        logger.debug(f"Destroying {len(records)} {self.model.__name__} record(s)")
        return [record.destroy(session) for record in records]

    def delete_all(self, session: Session, *criteria: Clause, **filter_by: Any) -> int:
        """
        Physically remove matching rows with a single DELETE statement.

        No per-row logic and no cascade run. Unless a visibility selector
        was applied, destroyed rows are removed as well.

        Returns:
            Number of rows removed
        """
        clauses = self.criteria(
            *criteria, default=Visibility.WITH_DESTROYED, **filter_by
        )
        result = session.execute(
            delete(self.model).where(*clauses),
            execution_options={"synchronize_session": "fetch"},
        )
        logger.info(f"Hard deleted {result.rowcount} {self.model.__name__} row(s)")
        return result.rowcount
