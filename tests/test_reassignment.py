"""Tests for manual rotation edits, conflicts and reassignment candidates."""
from datetime import date

import pytest

from intern_rotations.errors import NotFoundError, ValidationError
from intern_rotations.models import ActivityLog, Rotation
from intern_rotations.reassignment import (
    check_conflicts, create_manual_rotation, delete_rotation, reassign_rotation,
    reassignment_candidates, update_rotation,
)
from intern_rotations.units import create_unit


@pytest.fixture
def abc(db):
    units = [
        create_unit(db, "Unit A", 14, workload="Medium"),
        create_unit(db, "Unit B", 10, workload="High"),
        create_unit(db, "Unit C", 7, workload="Low"),
    ]
    db.commit()
    return units


@pytest.fixture
def in_a(db, abc, make_intern):
    intern = make_intern(initial_unit_id=abc[0].id)
    rotation = db.query(Rotation).filter(Rotation.intern_id == intern.id).one()
    return intern, rotation


class TestCheckConflicts:
    def test_closed_interval_overlap(self, db, in_a):
        intern, rotation = in_a
        assert [r.id for r in check_conflicts(db, intern.id, "2026-01-14", "2026-01-20")] == [rotation.id]
        assert check_conflicts(db, intern.id, "2026-01-15", "2026-01-20") == []

    def test_excluded_rotation_is_ignored(self, db, in_a):
        intern, rotation = in_a
        assert check_conflicts(db, intern.id, "2026-01-05", "2026-01-06", exclude_rotation_id=rotation.id) == []

    def test_reversed_range_rejected(self, db, in_a):
        intern, _ = in_a
        with pytest.raises(ValidationError):
            check_conflicts(db, intern.id, "2026-01-10", "2026-01-01")

    def test_invalid_date_rejected(self, db, in_a):
        intern, _ = in_a
        with pytest.raises(ValidationError):
            check_conflicts(db, intern.id, "soon", "2026-01-01")


class TestManualRotation:
    def test_end_defaults_to_unit_duration(self, db, abc, in_a):
        intern, _ = in_a
        rotation = create_manual_rotation(db, intern.id, abc[1].id, "2026-01-15")
        assert rotation.end_date == date(2026, 1, 24)
        assert rotation.is_manual_assignment

    def test_overlap_rejected_unless_allowed(self, db, abc, in_a):
        intern, _ = in_a
        with pytest.raises(ValidationError):
            create_manual_rotation(db, intern.id, abc[1].id, "2026-01-10")
        rotation = create_manual_rotation(db, intern.id, abc[1].id, "2026-01-10", allow_overlap=True)
        assert rotation.id is not None

    def test_unknown_unit(self, db, in_a):
        intern, _ = in_a
        with pytest.raises(NotFoundError):
            create_manual_rotation(db, intern.id, 999, "2026-02-01")


class TestReassign:
    def test_end_recomputed_from_new_unit(self, db, abc, in_a):
        intern, rotation = in_a
        reassign_rotation(db, rotation.id, abc[1].id)
        assert rotation.unit_id == abc[1].id
        assert rotation.start_date == date(2026, 1, 1)
        assert rotation.end_date == date(2026, 1, 10)
        assert rotation.is_manual_assignment

    def test_new_start_date(self, db, abc, in_a):
        _, rotation = in_a
        reassign_rotation(db, rotation.id, abc[2].id, start_date="2026-01-03")
        assert (rotation.start_date, rotation.end_date) == (date(2026, 1, 3), date(2026, 1, 9))

    def test_previous_unit_becomes_selectable_again(self, db, abc, in_a):
        intern, rotation = in_a
        today = date(2026, 1, 3)
        assert [u.id for u in reassignment_candidates(db, intern.id, today)] == [abc[1].id, abc[2].id]
        reassign_rotation(db, rotation.id, abc[1].id)
        assert [u.id for u in reassignment_candidates(db, intern.id, today)] == [abc[0].id, abc[2].id]

    def test_completed_units_stay_excluded(self, db, abc, in_a):
        intern, _ = in_a
        create_manual_rotation(db, intern.id, abc[1].id, "2026-01-15")
        assert [u.id for u in reassignment_candidates(db, intern.id, date(2026, 1, 20))] == [abc[2].id]

    def test_logs_reassignment(self, db, abc, in_a):
        _, rotation = in_a
        reassign_rotation(db, rotation.id, abc[1].id)
        db.flush()
        log = db.query(ActivityLog).filter(ActivityLog.activity_type == "reassignment").one()
        assert "Unit A" in log.details and "Unit B" in log.details


class TestUpdateDelete:
    def test_update_dates(self, db, in_a):
        _, rotation = in_a
        update_rotation(db, rotation.id, end_date="2026-01-20")
        assert rotation.end_date == date(2026, 1, 20)

    def test_update_rejects_end_before_start(self, db, in_a):
        _, rotation = in_a
        with pytest.raises(ValidationError):
            update_rotation(db, rotation.id, end_date="2025-12-01")

    def test_delete(self, db, in_a):
        intern, rotation = in_a
        delete_rotation(db, rotation.id)
        assert db.query(Rotation).filter(Rotation.intern_id == intern.id).count() == 0
        with pytest.raises(NotFoundError):
            delete_rotation(db, rotation.id)
