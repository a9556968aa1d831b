import pytest

from app.application.ports.user_repo import Role
from app.exceptions import AdminAlreadyExists, Conflict, Forbidden, NotFound, TeamMemberExists, ValidationFailure

from conftest import ADMIN_PHONE, WARDEN_PHONE


def test_bootstrap_creates_admin_once(directory, users):
    admin, created = directory.bootstrap_admin("Asha Admin", "99999-99999")
    assert created is True
    assert admin.role == Role.ADMIN
    assert admin.phone == ADMIN_PHONE

    again, created = directory.bootstrap_admin("Asha Admin", ADMIN_PHONE)
    assert created is False
    assert again.id == admin.id
    assert len(users.users) == 1


def test_bootstrap_only_creates_the_first_admin(directory, admin, users):
    with pytest.raises(AdminAlreadyExists):
        directory.bootstrap_admin("Mallory", "5555555555")
    assert users.get_by_phone("5555555555") is None

    again, created = directory.bootstrap_admin("Asha Admin", ADMIN_PHONE)
    assert created is False
    assert again.id == admin.id


def test_bootstrap_refuses_phone_of_other_role(directory, warden):
    with pytest.raises(Conflict):
        directory.bootstrap_admin("Someone", WARDEN_PHONE)


def test_bootstrap_validates_input(directory):
    with pytest.raises(ValidationFailure):
        directory.bootstrap_admin("A", ADMIN_PHONE)
    with pytest.raises(ValidationFailure):
        directory.bootstrap_admin("Asha", "12345")


def test_register_team_member_creates_and_updates(directory, users):
    user = directory.register_team_member(Role.SERVICE_MANAGER, "Manny", "8888888888", "7777777777", "123412341234")
    assert user.role == Role.SERVICE_MANAGER
    assert user.phone_secondary == "7777777777"

    updated = directory.register_team_member("SERVICE_MANAGER", "Manny M", "888-888-8888", "7777777777",
                                             "123412341234", district_id="d-1")
    assert updated.id == user.id
    assert updated.role == Role.SERVICE_MANAGER
    assert updated.district_id == "d-1"
    assert updated.full_name == "Manny M"
    assert len(users.users) == 1


def test_register_team_member_never_changes_role(directory, warden, users, audit):
    with pytest.raises(TeamMemberExists):
        directory.register_team_member(Role.SERVICE_MANAGER, "Walter", WARDEN_PHONE, "7777777777", "123412341234")
    assert users.get_by_id(warden.id).role == Role.WARDEN
    assert "ROLE_CHANGED" not in audit.actions()

    manager = directory.register_team_member(Role.SERVICE_MANAGER, "Manny", "8888888888", "7777777777",
                                             "123412341234")
    with pytest.raises(TeamMemberExists):
        directory.register_team_member(Role.SERVICE_SUPERVISOR, "Manny", "8888888888", "7777777777",
                                       "123412341234")
    assert users.get_by_id(manager.id).role == Role.SERVICE_MANAGER


def test_register_team_member_does_not_reactivate(directory, users):
    retired = users.add(Role.SERVICE_SUPERVISOR, "Sam", "8888888888", is_active=False)
    with pytest.raises(TeamMemberExists):
        directory.register_team_member(Role.SERVICE_SUPERVISOR, "Sam", "8888888888", "7777777777",
                                       "123412341234")
    assert users.get_by_id(retired.id).is_active is False


def test_register_team_member_never_demotes_admin(directory, admin):
    with pytest.raises(Conflict):
        directory.register_team_member(Role.SERVICE_MANAGER, "Asha", ADMIN_PHONE, "7777777777", "123412341234")


def test_register_team_member_rejects_other_roles(directory):
    with pytest.raises(ValidationFailure):
        directory.register_team_member(Role.ADMIN, "Eve", "8888888888", "7777777777", "123412341234")
    with pytest.raises(ValidationFailure):
        directory.register_team_member(Role.SERVICE_MANAGER, "Eve", "8888888888", "7777777777", "1234")


def test_change_role_requires_active_admin(directory, warden, users):
    other = users.add(Role.SERVICE_MANAGER, "Manny", "8888888888")
    with pytest.raises(Forbidden):
        directory.change_role(warden.id, other.id, Role.WARDEN)


def test_change_role_audited(directory, admin, warden, audit):
    user = directory.change_role(admin.id, warden.id, Role.MONITORING_OFFICIAL)
    assert user.role == Role.MONITORING_OFFICIAL
    assert audit.entries[-1]["action"] == "ROLE_CHANGED"
    assert audit.entries[-1]["details"]["changed_by"] == admin.id


def test_change_role_unknown_user(directory, admin):
    with pytest.raises(NotFound):
        directory.change_role(admin.id, "missing", Role.WARDEN)


def test_admin_cannot_demote_self(directory, admin):
    with pytest.raises(Conflict):
        directory.change_role(admin.id, admin.id, Role.WARDEN)
