from datetime import timedelta

import pytest

from app.application.ports.user_repo import Role
from app.exceptions import Conflict, Forbidden, SomeSerialsNotFound, TempCodeConflict, ValidationFailure

from conftest import ADMIN_PHONE, WARDEN_PHONE


def test_placeholder_mode_creates_temp_codes(registry, admin, machines, users):
    result = registry.pre_register_warden(admin.id, "Walter Warden", "98765 43210", "district-1",
                                          hostel_id="hostel-9", count=2)

    assert result.warden.role == Role.WARDEN
    assert result.warden.phone == WARDEN_PHONE
    assert result.assigned_serials == []
    assert len(result.assigned_temp_codes) == 2
    assert result.assigned_temp_codes[0].startswith("TMP-3210-")
    assert result.assigned_temp_codes[0].endswith("-1")
    assert result.assigned_temp_codes[1].endswith("-2")
    for m in machines.rows.values():
        assert m.assigned_warden_id == result.warden.id
        assert m.registration_uploaded_by == admin.id
        assert m.serial_number is None
        assert m.hostel_id == "hostel-9"


def test_placeholder_batch_is_one_transaction(registry, admin, tx):
    registry.pre_register_warden(admin.id, "Walter Warden", WARDEN_PHONE, "district-1", count=3)
    assert tx.commits == 1


def test_placeholder_collision_rolls_back(registry, admin, machines, tx, clock):
    registry.pre_register_warden(admin.id, "Walter Warden", WARDEN_PHONE, "district-1", count=1)
    # same phone suffix and same millisecond -> identical first code
    with pytest.raises(TempCodeConflict):
        registry.pre_register_warden(admin.id, "Walter Warden", WARDEN_PHONE, "district-1", count=1)
    assert tx.rollbacks == 1


@pytest.mark.parametrize("count", [None, 0, 21])
def test_placeholder_count_bounds(registry, admin, count):
    with pytest.raises(ValidationFailure):
        registry.pre_register_warden(admin.id, "Walter Warden", WARDEN_PHONE, "district-1", count=count)


def test_known_serial_mode_dedupes_and_assigns(registry, admin, machines, clock):
    a = machines.add("TMP-0000-000001-1", clock.now(), serial_number="A")
    b = machines.add("TMP-0000-000001-2", clock.now(), serial_number="B")

    result = registry.pre_register_warden(admin.id, "Walter Warden", WARDEN_PHONE, "district-1",
                                          hostel_id="h-2", serials=["A", "A", "B"])

    assert machines.last_serial_lookup == ["A", "B"]
    assert result.assigned_serials == ["A", "B"]
    assert sorted(result.assigned_temp_codes) == sorted([a.temp_machine_code, b.temp_machine_code])
    for m in (machines.rows[a.id], machines.rows[b.id]):
        assert m.assigned_warden_id == result.warden.id
        assert m.hostel_id == "h-2"


def test_known_serial_mode_keeps_hostel_when_none_given(registry, admin, machines, clock):
    m = machines.add("TMP-0000-000001-1", clock.now(), serial_number="SER-7", hostel_id="hostel-7")
    registry.pre_register_warden(admin.id, "Walter Warden", WARDEN_PHONE, "district-1", serials=["SER-7"])
    assert machines.rows[m.id].hostel_id == "hostel-7"


def test_serials_take_precedence_over_count(registry, admin, machines, clock):
    machines.add("TMP-0000-000001-1", clock.now(), serial_number="SER-1")
    result = registry.pre_register_warden(admin.id, "Walter Warden", WARDEN_PHONE, "district-1",
                                          serials=["SER-1"], count=5)
    assert result.assigned_serials == ["SER-1"]
    assert len(machines.rows) == 1


def test_known_serial_mode_reports_missing(registry, admin, machines, clock):
    machines.add("TMP-0000-000001-1", clock.now(), serial_number="A")
    with pytest.raises(SomeSerialsNotFound) as exc:
        registry.pre_register_warden(admin.id, "Walter Warden", WARDEN_PHONE, "district-1",
                                     serials=["A", "C", "D", "C"])
    assert exc.value.missing_serials == ["C", "D"]
    assert exc.value.extra == {"missingSerials": ["C", "D"]}
    assert machines.rows[next(iter(machines.rows))].assigned_warden_id is None


def test_requires_active_admin(registry, warden, users):
    with pytest.raises(Forbidden):
        registry.pre_register_warden(warden.id, "X Y", "8888888888", "district-1", count=1)
    retired = users.add(Role.ADMIN, "Old Admin", "7777777777", is_active=False)
    with pytest.raises(Forbidden):
        registry.pre_register_warden(retired.id, "X Y", "8888888888", "district-1", count=1)
    with pytest.raises(Forbidden):
        registry.pre_register_warden("nobody", "X Y", "8888888888", "district-1", count=1)


def test_upsert_reassigns_existing_role_with_audit(registry, admin, users, audit):
    manager = users.add(Role.SERVICE_MANAGER, "Manny", "8888888888")
    result = registry.pre_register_warden(admin.id, "Manny Warden", "8888888888", "district-2", count=1)

    assert result.warden.id == manager.id
    assert result.warden.role == Role.WARDEN
    assert result.warden.full_name == "Manny Warden"
    assert result.warden.district_id == "district-2"
    role_change = next(e for e in audit.entries if e["action"] == "ROLE_CHANGED")
    assert role_change["details"]["changed_by"] == admin.id


def test_admin_phone_is_not_turned_into_a_warden(registry, admin, users, tx):
    with pytest.raises(Conflict):
        registry.pre_register_warden(admin.id, "Asha Admin", ADMIN_PHONE, "district-1", count=2)
    assert users.get_by_id(admin.id).role == Role.ADMIN
    assert tx.rollbacks == 1


def test_upsert_reactivates_warden(registry, admin, users):
    users.add(Role.WARDEN, "Sleepy", WARDEN_PHONE, is_active=False)
    result = registry.pre_register_warden(admin.id, "Walter Warden", WARDEN_PHONE, "district-1", count=1)
    assert result.warden.is_active is True


def test_list_assigned_machines_newest_first(registry, warden, machines, clock):
    older = machines.add("TMP-3210-000001-1", clock.now(), assigned_warden_id=warden.id)
    newer = machines.add("TMP-3210-000002-1", clock.now() + timedelta(minutes=1), assigned_warden_id=warden.id)
    machines.add("TMP-1111-000001-1", clock.now(), assigned_warden_id="someone-else")

    listed = registry.list_assigned_machines(warden)
    assert [m.id for m in listed] == [newer.id, older.id]


def test_list_assigned_machines_requires_warden(registry, admin):
    with pytest.raises(Forbidden):
        registry.list_assigned_machines(admin)
    with pytest.raises(Forbidden):
        registry.list_assigned_machines(None)
