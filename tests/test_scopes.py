"""
Tests for named scopes and visibility selectors.

Scopes and selectors must combine the same way whatever order they are
chained in.
"""

import pytest

from paranoid_toolkit.soft_delete import ScopeChain, Visibility

from .models import Android, Part, Person


@pytest.fixture
def destroyed_pair(db_session, r2d2, c3p0):
    """Destroy both androids."""
    r2d2.destroy(db_session)
    c3p0.destroy(db_session)
    return r2d2, c3p0


def by_id(records):
    return sorted(records, key=lambda record: record.id)


class TestVisibility:
    """Test the deletion marker predicates."""

    def test_live_criterion(self):
        clause = Visibility.LIVE.criterion(Android.deleted_at)
        assert str(clause) == "androids.deleted_at IS NULL"

    def test_only_destroyed_criterion(self):
        clause = Visibility.ONLY_DESTROYED.criterion(Android.deleted_at)
        assert str(clause) == "androids.deleted_at IS NOT NULL"

    def test_with_destroyed_has_no_criterion(self):
        assert Visibility.WITH_DESTROYED.criterion(Android.deleted_at) is None

    def test_model_without_marker(self):
        """Test models without deleted_at see every row."""
        assert Visibility.LIVE.criterion(None) is None
        assert Person.scoped().criteria() == []


class TestNamedScopes:
    """Test named scopes combined with find_only_destroyed."""

    def test_single_scope(self, db_session, destroyed_pair):
        r2d2, c3p0 = destroyed_pair
        assert Android.r2d2.find_only_destroyed(db_session) == [r2d2]

    def test_filter_and_order(self, db_session, destroyed_pair):
        r2d2, c3p0 = destroyed_pair
        assert Android.c3p0.ordered.find_only_destroyed(db_session) == [c3p0]

    def test_ordering_scope(self, db_session, destroyed_pair):
        r2d2, c3p0 = destroyed_pair
        assert Android.ordered.find_only_destroyed(db_session) == [r2d2, c3p0]

    def test_conflicting_scopes_yield_nothing(self, db_session, destroyed_pair):
        assert Android.r2d2.c3p0.find_only_destroyed(db_session) == []

    def test_no_scope(self, db_session, destroyed_pair):
        r2d2, c3p0 = destroyed_pair
        assert by_id(Android.find_only_destroyed(db_session)) == [r2d2, c3p0]

    def test_where_scope(self, db_session, destroyed_pair):
        orphan = Android.create(db_session, name="BB8")
        orphan.destroy(db_session)

        assert Android.unowned.find_only_destroyed(db_session) == [orphan]
        assert Android.unowned.r2d2.find_only_destroyed(db_session) == []


class TestComposition:
    """Test that chaining order does not matter."""

    def test_scopes_commute(self, db_session, destroyed_pair):
        assert Android.r2d2.ordered.find_only_destroyed(
            db_session
        ) == Android.ordered.r2d2.find_only_destroyed(db_session)

    def test_selector_before_or_after_scopes(self, db_session, destroyed_pair):
        r2d2, c3p0 = destroyed_pair

        before = Android.only_destroyed().c3p0.ordered.all(db_session)
        after = Android.c3p0.ordered.only_destroyed().all(db_session)

        assert before == after == [c3p0]

    def test_scopes_respect_default_visibility(self, db_session, r2d2, c3p0):
        """Test named scopes only see live rows unless told otherwise."""
        r2d2.destroy(db_session)

        assert Android.r2d2.find(db_session) == []
        assert Android.r2d2.count(db_session) == 0
        assert Android.r2d2.find_with_destroyed(db_session) == [r2d2]
        assert Android.r2d2.count_with_destroyed(db_session) == 1
        assert Android.ordered.find(db_session) == [c3p0]

    def test_last_ordering_wins(self, db_session, r2d2, c3p0):
        assert Android.ordered.alphabetical.find(db_session) == [c3p0, r2d2]
        assert Android.alphabetical.ordered.find(db_session) == [r2d2, c3p0]

    def test_filter_only_scope_keeps_ordering(self, db_session, r2d2, c3p0):
        """Test a scope without ordering does not reset an earlier one."""
        chain = Android.alphabetical.unowned
        assert chain.ordering() is not None
        assert chain.find(db_session) == []

    def test_ad_hoc_where(self, db_session, luke, r2d2, c3p0):
        chain = Android.ordered.where(Android.owner_id == luke.id)
        assert chain.find(db_session) == [r2d2, c3p0]
        assert chain.where(name="C3P0").find(db_session) == [c3p0]

    def test_order_by(self, db_session, r2d2, c3p0):
        chain = Android.alphabetical.order_by(Android.id)
        assert chain.find(db_session) == [r2d2, c3p0]

    def test_last_selector_wins(self, db_session, destroyed_pair):
        chain = Android.only_destroyed().live()
        assert chain.visibility is Visibility.LIVE
        assert chain.find(db_session) == []

    def test_chains_are_immutable(self):
        base = Android.r2d2
        extended = base.ordered.only_destroyed()

        assert len(base.fragments) == 1
        assert base.visibility is None
        assert len(extended.fragments) == 2
        assert extended.visibility is Visibility.ONLY_DESTROYED


class TestChainTerminals:
    """Test the evaluation calls of a scope chain."""

    def test_first(self, db_session, r2d2, c3p0):
        assert Android.ordered.first(db_session) is r2d2
        assert Android.alphabetical.first(db_session) is c3p0

    def test_get(self, db_session, r2d2):
        assert Android.scoped().get(db_session, r2d2.id) is r2d2

    def test_get_composite_key(self, db_session):
        Part.create(db_session, serial="X-1", revision=1)
        second = Part.create(db_session, serial="X-1", revision=2)

        assert Part.scoped().get(db_session, ("X-1", 2)) is second

    def test_get_requires_every_key_column(self, db_session):
        Part.create(db_session, serial="X-1", revision=1)

        with pytest.raises(ValueError) as exc:
            Part.scoped().get(db_session, "X-1")

        assert "2 column(s)" in str(exc.value)

    def test_destroy_by_composite_key(self, db_session):
        first = Part.create(db_session, serial="X-1", revision=1)
        Part.create(db_session, serial="X-1", revision=2)

        assert Part.destroy(db_session, ("X-1", 1)) is first
        assert Part.count(db_session) == 1
        assert Part.count_only_destroyed(db_session) == 1

    def test_destroy_all_through_scope(self, db_session, r2d2, c3p0):
        destroyed = Android.r2d2.destroy_all(db_session)

        assert destroyed == [r2d2]
        assert Android.find(db_session) == [c3p0]

    def test_delete_all_through_scope(self, db_session, r2d2, c3p0):
        r2d2.destroy(db_session)

        assert Android.r2d2.delete_all(db_session) == 1
        assert Android.count_with_destroyed(db_session) == 1

    def test_count_only_destroyed(self, db_session, destroyed_pair):
        assert Android.ordered.count_only_destroyed(db_session) == 2
        assert Android.r2d2.count_only_destroyed(db_session) == 1


class TestChainAttributes:
    """Test attribute access on a scope chain."""

    def test_unknown_scope(self):
        with pytest.raises(AttributeError) as exc:
            Android.r2d2.missing_scope

        assert "missing_scope" in str(exc.value)

    def test_scope_access_on_instance(self, r2d2):
        assert isinstance(r2d2.ordered, ScopeChain)

    def test_repr(self):
        text = repr(Android.r2d2.ordered.only_destroyed())
        assert "r2d2" in text
        assert "ordered" in text
        assert "only_destroyed" in text
