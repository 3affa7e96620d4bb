"""
Group and slot assignment tests.
"""
from decimal import Decimal

import pytest

from conftest import assign, make_group, make_member, make_payment
from models import Group, GroupMember
from schemas.group import GroupCreate, GroupUpdate
from services import group_service
from services.exceptions import ConflictError, InvalidAssignmentError, NotFoundError


class TestGroupCrud:
    """Creating, editing and deleting groups."""

    def test_end_month_is_derived(self, db):
        group = group_service.create_group(db, GroupCreate(
            name="Kasmoni Januari",
            monthly_amount=Decimal("250.00"),
            max_members=6,
            duration=6,
            start_month="2025-01",
        ))
        assert group.end_month == "2025-06"

    def test_end_month_crosses_year(self, db):
        group = group_service.create_group(db, GroupCreate(
            name="Late start", monthly_amount=Decimal("100.00"), duration=4, start_month="2025-11",
        ))
        assert group.end_month == "2026-02"
        assert group.max_members == 12

    def test_update_recomputes_end_month(self, db):
        group = make_group(db, duration=6, start_month="2025-01")
        updated = group_service.update_group(db, group.id, GroupUpdate(duration=12))
        assert updated.end_month == "2025-12"
        assert updated.name == "Kasmoni A"

    def test_update_missing_group(self, db):
        with pytest.raises(NotFoundError):
            group_service.update_group(db, 99, GroupUpdate(name="Nope"))

    def test_delete_empty_group(self, db):
        group = make_group(db)
        group_service.delete_group(db, group.id)
        assert db.query(Group).count() == 0

    def test_delete_group_with_slots_conflicts(self, db):
        group = make_group(db)
        assign(db, group, make_member(db), "2025-01")
        with pytest.raises(ConflictError):
            group_service.delete_group(db, group.id)
        assert db.query(Group).count() == 1

    def test_delete_group_with_payments_conflicts(self, db):
        group = make_group(db)
        member = make_member(db)
        slot = assign(db, group, member, "2025-01")
        make_payment(db, group, member, "2025-01")
        db.delete(slot)
        db.commit()
        with pytest.raises(ConflictError):
            group_service.delete_group(db, group.id)

    def test_get_group_loads_slots(self, db):
        group = make_group(db)
        assign(db, group, make_member(db, "Alice", "Kromo"), "2025-02")
        loaded = group_service.get_group(db, group.id)
        assert [s.member.first_name for s in loaded.slots] == ["Alice"]


class TestSlotAssignment:
    """Assigning payout months to members."""

    def test_assigns_free_month(self, db):
        group = make_group(db)
        member = make_member(db)
        slot = group_service.add_member_to_group(db, group.id, member.id, "2025-03")
        assert slot.id is not None
        assert db.query(GroupMember).count() == 1

    def test_member_may_hold_several_months(self, db):
        group = make_group(db)
        member = make_member(db)
        group_service.add_member_to_group(db, group.id, member.id, "2025-03")
        group_service.add_member_to_group(db, group.id, member.id, "2025-04")
        assert db.query(GroupMember).filter(GroupMember.member_id == member.id).count() == 2

    def test_month_taken_by_someone_else(self, db):
        group = make_group(db)
        assign(db, group, make_member(db, "Alice", "Kromo"), "2025-03")
        bram = make_member(db, "Bram", "Pinas")
        with pytest.raises(InvalidAssignmentError) as exc_info:
            group_service.add_member_to_group(db, group.id, bram.id, "2025-03")
        assert exc_info.value.message == "This month is already assigned to Alice Kromo"

    def test_same_member_same_month(self, db):
        group = make_group(db)
        alice = make_member(db, "Alice", "Kromo")
        assign(db, group, alice, "2025-03")
        with pytest.raises(InvalidAssignmentError) as exc_info:
            group_service.add_member_to_group(db, group.id, alice.id, "2025-03")
        assert exc_info.value.message == "Member is already assigned to this month in this group"

    def test_full_group(self, db):
        group = make_group(db, duration=6, max_members=1)
        assign(db, group, make_member(db, "Alice", "Kromo"), "2025-01")
        bram = make_member(db, "Bram", "Pinas")
        with pytest.raises(InvalidAssignmentError) as exc_info:
            group_service.add_member_to_group(db, group.id, bram.id, "2025-02")
        assert exc_info.value.message == "Group is already full (all months are assigned)"

    def test_unknown_member(self, db):
        group = make_group(db)
        with pytest.raises(NotFoundError):
            group_service.add_member_to_group(db, group.id, 404, "2025-02")

    def test_remove_single_month(self, db):
        group = make_group(db)
        member = make_member(db)
        assign(db, group, member, "2025-01")
        assign(db, group, member, "2025-02")
        removed = group_service.remove_member_from_group(db, group.id, member.id, "2025-02")
        assert removed == 1
        assert [s.receive_month for s in db.query(GroupMember).all()] == ["2025-01"]

    def test_remove_all_months(self, db):
        group = make_group(db)
        member = make_member(db)
        assign(db, group, member, "2025-01")
        assign(db, group, member, "2025-02")
        assert group_service.remove_member_from_group(db, group.id, member.id) == 2

    def test_remove_unassigned_member(self, db):
        group = make_group(db)
        member = make_member(db)
        with pytest.raises(NotFoundError):
            group_service.remove_member_from_group(db, group.id, member.id)
