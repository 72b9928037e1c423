"""
Tests for the soft delete service layer.
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
import pytz
from sqlalchemy import Column, Integer, String, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from paranoia_toolkit.config import ParanoiaConfig
from paranoia_toolkit.soft_delete import (
    SoftDeleteError,
    SoftDeleteMixin,
    SoftDeleteService,
    VisibilityReport,
)

Base = declarative_base()


class Cylon(Base, SoftDeleteMixin):
    """Sample entity with soft delete capability."""

    __tablename__ = "cylons"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True)
    name = Column(String(100))


class Raider(Base, SoftDeleteMixin):
    """Second sample entity."""

    __tablename__ = "raiders"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True)
    name = Column(String(100))


def destroy_at(entity, moment):
    with patch(
        "paranoia_toolkit.soft_delete.mixins.current_time", return_value=moment
    ):
        entity.destroy()


@pytest.fixture
def engine():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(engine):
    """Create an in-memory SQLite database session for testing."""
    Session = sessionmaker(bind=engine)
    session = Session()

    yield session

    session.close()


@pytest.fixture
def service(db_session):
    return SoftDeleteService(session=db_session)


@pytest.fixture
def cylons(db_session):
    entities = [Cylon(name="Six"), Cylon(name="Eight"), Cylon(name="Leoben")]
    db_session.add_all(entities)
    db_session.commit()
    return entities


class TestDestroyRestore:
    """Test delegation to the mixin."""

    def test_destroy_and_restore(self, service, db_session, cylons):
        six = cylons[0]

        service.destroy(six)
        db_session.commit()
        assert Cylon.count(db_session) == 2

        service.restore(six)
        db_session.commit()
        assert Cylon.count(db_session) == 3

    def test_entity_from_other_session(self, service, engine):
        Session = sessionmaker(bind=engine)
        other = Session()
        try:
            stranger = Cylon(name="Cavil")
            other.add(stranger)
            other.commit()

            with pytest.raises(SoftDeleteError) as exc:
                service.destroy(stranger)

            assert "does not belong" in str(exc.value)
        finally:
            other.close()


class TestRestoreById:
    """Test restoring by primary key."""

    def test_restore_by_id(self, service, db_session, cylons):
        eight = cylons[1]
        eight.destroy()
        db_session.commit()

        restored = service.restore_by_id(Cylon, eight.id)
        db_session.commit()

        assert restored is eight
        assert restored.is_destroyed is False
        assert Cylon.find_by_id(db_session, eight.id) is eight

    def test_restore_by_id_active_record(self, service, db_session, cylons):
        with pytest.raises(SoftDeleteError) as exc:
            service.restore_by_id(Cylon, cylons[0].id)

        assert "not found" in str(exc.value)

    def test_restore_by_id_missing(self, service, cylons):
        with pytest.raises(SoftDeleteError):
            service.restore_by_id(Cylon, 999)


class TestListDestroyed:
    """Test listing destroyed records."""

    def test_newest_first(self, service, db_session, cylons):
        six, eight, _ = cylons
        destroy_at(six, datetime(2024, 3, 1, tzinfo=pytz.utc))
        destroy_at(eight, datetime(2024, 3, 5, tzinfo=pytz.utc))
        db_session.commit()

        result = service.list_destroyed(Cylon)

        assert [c.name for c in result] == ["Eight", "Six"]

    def test_date_filters_and_pagination(self, service, db_session, cylons):
        six, eight, leoben = cylons
        destroy_at(six, datetime(2024, 3, 1, tzinfo=pytz.utc))
        destroy_at(eight, datetime(2024, 3, 5, tzinfo=pytz.utc))
        destroy_at(leoben, datetime(2024, 3, 9, tzinfo=pytz.utc))
        db_session.commit()

        after = service.list_destroyed(
            Cylon, destroyed_after=datetime(2024, 3, 4, tzinfo=pytz.utc)
        )
        before = service.list_destroyed(
            Cylon, destroyed_before=datetime(2024, 3, 4, tzinfo=pytz.utc)
        )
        page = service.list_destroyed(Cylon, limit=1, offset=1)

        assert [c.name for c in after] == ["Leoben", "Eight"]
        assert [c.name for c in before] == ["Six"]
        assert [c.name for c in page] == ["Eight"]

    def test_active_records_are_excluded(self, service, cylons):
        assert service.list_destroyed(Cylon) == []


class TestPurge:
    """Test purging long-destroyed records."""

    def test_purge_uses_configured_retention(self, db_session, cylons):
        service = SoftDeleteService(
            session=db_session, config=ParanoiaConfig(purge_after_days=30)
        )
        six, eight, _ = cylons
        destroy_at(six, datetime.now(pytz.utc) - timedelta(days=45))
        eight.destroy()
        db_session.commit()

        purged = service.purge_destroyed(Cylon)
        db_session.commit()

        assert purged == 1
        assert Cylon.count_with_destroyed(db_session) == 2
        assert [c.name for c in Cylon.find_only_destroyed(db_session)] == ["Eight"]

    def test_purge_with_explicit_retention(self, service, db_session, cylons):
        six, eight, _ = cylons
        destroy_at(six, datetime.now(pytz.utc) - timedelta(days=10))
        destroy_at(eight, datetime.now(pytz.utc) - timedelta(days=3))
        db_session.commit()

        assert service.purge_destroyed(Cylon, older_than_days=5) == 1
        assert service.purge_destroyed(Cylon, older_than_days=0) == 1
        db_session.commit()
        assert Cylon.count_with_destroyed(db_session) == 1

    def test_purge_never_touches_active_rows(self, service, db_session, cylons):
        assert service.purge_destroyed(Cylon, older_than_days=0) == 0
        assert Cylon.count(db_session) == 3

    def test_negative_retention(self, service):
        with pytest.raises(ValueError):
            service.purge_destroyed(Cylon, older_than_days=-1)


class TestVisibilityReport:
    """Test reporting."""

    def test_report_counts(self, service, db_session, cylons):
        cylons[0].destroy()
        raider = Raider(name="Scar")
        db_session.add(raider)
        db_session.commit()

        report = service.visibility_report([Cylon, Raider])

        assert isinstance(report, VisibilityReport)
        assert report.by_type["Cylon"].active == 2
        assert report.by_type["Cylon"].destroyed == 1
        assert report.by_type["Cylon"].total == 3
        assert report.by_type["Raider"].active == 1
        assert report.total_active == 3
        assert report.total_destroyed == 1
        assert report.generated_at is not None

    def test_count_visibility_empty(self, service):
        counts = service.count_visibility(Raider)

        assert counts.entity_type == "Raider"
        assert counts.total == 0
