"""Unit tests for AdminService against the in-memory Supabase fake."""

import csv
import io
import json
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from app.core.errors import InvalidProfileChange
from app.modules.admin.schemas import NewUserRequest, UserUpdateRequest
from app.modules.admin import service as admin_service
from app.modules.admin.service import EXPORT_HEADERS, AdminService
from tests.fakes import FakeSupabase, api_error


@pytest.fixture
def service(fake_supabase: FakeSupabase) -> AdminService:
    return AdminService(fake_supabase)


@pytest.fixture
def actor(context_for, admin):
    return context_for(admin)


def new_user(**overrides) -> NewUserRequest:
    data = {"email": "new@example.com", "password": "secret123", "full_name": "New Person", "role": "moderator"}
    data.update(overrides)
    return NewUserRequest(**data)


class TestAdminStatus:
    def test_rpc_true_wins(self, service: AdminService, fake_supabase, context_for, member) -> None:
        fake_supabase.rpc_handlers["is_admin"] = lambda params: True
        assert service.is_admin(context_for(member).profile, fake_supabase) is True

    def test_falls_back_to_profile_when_rpc_fails(self, service: AdminService, fake_supabase, actor) -> None:
        assert service.is_admin(actor.profile, fake_supabase) is True

    def test_suspended_admin_is_not_admin(self, service: AdminService, fake_supabase, context_for) -> None:
        until = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()
        user = fake_supabase.seed_user("sus@example.com", role="admin", status="suspended", suspended_until=until)
        assert service.is_admin(context_for(user).profile) is False

    def test_resolved_once_per_context(self, service: AdminService, fake_supabase, actor) -> None:
        fake_supabase.rpc_handlers["is_admin"] = lambda params: True
        service.resolve_admin_status(actor, fake_supabase)
        service.resolve_admin_status(actor, fake_supabase)
        assert fake_supabase.calls.count(("rpc", "is_admin")) == 1
        assert actor.is_admin is True


class TestReads:
    def test_list_users_paginates_newest_first(self, service: AdminService, fake_supabase, admin) -> None:
        for i in range(5):
            fake_supabase.add_profile(f"u-{i}", f"user{i}@example.com", created_at=f"2024-01-0{i + 1}T00:00:00+00:00")

        users, count = service.list_users(page=1, limit=2)
        assert count == 6
        assert users[0].email == "admin@example.com"
        assert users[1].email == "user4@example.com"

        users, _ = service.list_users(page=3, limit=2)
        assert [u.email for u in users] == ["user1@example.com", "user0@example.com"]

    def test_search_includes_every_status(self, service: AdminService, fake_supabase) -> None:
        fake_supabase.add_profile("u-1", "banned@example.com", full_name="Banned Bob", status="banned")
        assert [u.email for u in service.search_users("bob")] == ["banned@example.com"]

    def test_statistics(self, service: AdminService, fake_supabase) -> None:
        fake_supabase.rpc_handlers["get_user_statistics"] = lambda params: [
            {"date": "2024-05-01", "new_users": 3, "active_users": 10, "suspended_users": 1, "banned_users": 0},
        ]
        stats = service.get_user_statistics()
        assert stats[0].new_users == 3
        assert stats[0].date.isoformat() == "2024-05-01"

    def test_overview(self, service: AdminService, fake_supabase, actor, member) -> None:
        fake_supabase.rpc_handlers["get_user_statistics"] = lambda params: []
        service.log_admin_action(actor, "noop")
        overview = service.get_overview()

        assert overview["total_users"] == 2
        assert len(overview["admin_logs"]) == 1
        assert overview["user_stats"] == []

    def test_admin_logs_newest_first(self, service: AdminService, fake_supabase, actor) -> None:
        fake_supabase.tables["admin_logs"] = [
            {"id": "1", "admin_id": actor.user_id, "action": "first", "created_at": "2024-01-01T00:00:00+00:00"},
            {"id": "2", "admin_id": actor.user_id, "action": "second", "created_at": "2024-02-01T00:00:00+00:00"},
        ]
        logs, count = service.get_admin_logs()
        assert count == 2
        assert [log.action for log in logs] == ["second", "first"]


class TestExport:
    def test_csv_export_quotes_every_field(self, service: AdminService, member) -> None:
        content = service.export_users("csv")
        lines = content.split("\n")

        assert lines[0] == ",".join(f'"{h}"' for h in EXPORT_HEADERS)
        row = next(csv.reader(io.StringIO(lines[1])))
        assert row[1] == "member@example.com"
        assert row[2] == "Mia Member"
        assert lines[1].startswith('"')

    def test_json_export(self, service: AdminService, member) -> None:
        data = json.loads(service.export_users("json"))
        assert data[0]["email"] == "member@example.com"

    def test_export_pages_past_row_cap(self, service: AdminService, fake_supabase, monkeypatch) -> None:
        for i in range(5):
            fake_supabase.add_profile(f"u-{i}", f"user{i}@example.com", created_at=f"2024-01-0{i + 1}T00:00:00+00:00")
        fake_supabase.max_rows = 2
        monkeypatch.setattr(admin_service, "EXPORT_PAGE_SIZE", 3)

        data = json.loads(service.export_users("json"))
        assert [row["email"] for row in data] == [f"user{i}@example.com" for i in range(4, -1, -1)]

    def test_unknown_format_rejected(self, service: AdminService) -> None:
        with pytest.raises(HTTPException) as exc_info:
            service.export_users("xml")
        assert exc_info.value.status_code == 400


class TestCreateUser:
    def test_creates_auth_user_profile_and_log(self, service: AdminService, fake_supabase, actor) -> None:
        profile = service.create_user(actor, new_user())

        assert profile.email == "new@example.com"
        assert profile.role == "moderator"
        assert profile.created_by == actor.user_id
        auth_user = fake_supabase.auth.users[profile.user_id]
        assert auth_user.user_metadata == {"full_name": "New Person"}
        log = fake_supabase.logs("create_user")[0]
        assert log["target_user_id"] == profile.user_id
        assert log["details"]["role"] == "moderator"
        assert log["ip_address"] == "127.0.0.1"

    def test_existing_profile_email_conflicts(self, service: AdminService, actor, member) -> None:
        with pytest.raises(HTTPException) as exc_info:
            service.create_user(actor, new_user(email=member.email))
        assert exc_info.value.status_code == 409

    def test_existing_auth_email_conflicts(self, service: AdminService, fake_supabase, actor) -> None:
        fake_supabase.seed_user("ghost@example.com", with_profile=False)
        with pytest.raises(HTTPException) as exc_info:
            service.create_user(actor, new_user(email="ghost@example.com"))
        assert exc_info.value.status_code == 409

    def test_profile_failure_rolls_back_auth_user(self, service: AdminService, fake_supabase, actor) -> None:
        users_before = set(fake_supabase.auth.users)
        fake_supabase.table_errors[("profiles", "upsert")] = api_error("23502", "null value")
        with pytest.raises(HTTPException) as exc_info:
            service.create_user(actor, new_user())

        assert exc_info.value.status_code == 500
        assert set(fake_supabase.auth.users) == users_before
        assert len(fake_supabase.auth.deleted) == 1

    def test_requires_service_role(self, fake_supabase, actor) -> None:
        service = AdminService(fake_supabase, service_role=False)
        with pytest.raises(HTTPException) as exc_info:
            service.create_user(actor, new_user())
        assert exc_info.value.status_code == 500
        assert "Service role" in exc_info.value.detail


class TestUpdateUser:
    def test_sanitizes_and_logs(self, service: AdminService, fake_supabase, actor, member) -> None:
        profile = service.update_user(actor, member.id, {"full_name": "Renamed", "email": "hijack@example.com"})

        assert profile.full_name == "Renamed"
        assert profile.email == "member@example.com"
        assert profile.updated_by == actor.user_id
        details = fake_supabase.logs("update_user_profile")[0]["details"]
        assert details["updated_fields"] == ["full_name"]
        assert details["changes"] == {"full_name": "Renamed"}
        assert details["target_email"] == "member@example.com"

    def test_nothing_to_update(self, service: AdminService, actor, member) -> None:
        with pytest.raises(HTTPException) as exc_info:
            service.update_user(actor, member.id, {"email": "x@example.com"})
        assert exc_info.value.status_code == 400

    def test_cannot_change_own_role(self, service: AdminService, actor) -> None:
        with pytest.raises(HTTPException) as exc_info:
            service.update_user(actor, actor.user_id, {"role": "user"})
        assert exc_info.value.status_code == 400

    def test_reactivation_clears_suspension(self, service: AdminService, fake_supabase, actor) -> None:
        until = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()
        user = fake_supabase.seed_user("sus@example.com", status="suspended",
                                       suspended_until=until, suspension_reason="spam")
        profile = service.update_user(actor, user.id, {"status": "active"})
        assert profile.status == "active"
        assert profile.suspended_until is None
        assert profile.suspension_reason is None

    def test_invalid_transition(self, service: AdminService, fake_supabase, actor) -> None:
        user = fake_supabase.seed_user("banned@example.com", status="banned")
        with pytest.raises(InvalidProfileChange):
            service.update_user(actor, user.id, {"status": "active"})


class TestRoleAndStatus:
    def test_update_role_logs_previous_role(self, service: AdminService, fake_supabase, actor, member) -> None:
        profile = service.update_user_role(actor, member.id, "moderator")
        assert profile.role == "moderator"
        details = fake_supabase.logs("update_user_role")[0]["details"]
        assert details == {"new_role": "moderator", "previous_role": "user"}

    def test_suspend_requires_future_end(self, service: AdminService, actor, member) -> None:
        with pytest.raises(HTTPException) as exc_info:
            service.suspend_user(actor, member.id, datetime.now(timezone.utc) - timedelta(hours=1), "spam")
        assert exc_info.value.status_code == 400

    def test_suspend_and_unsuspend(self, service: AdminService, fake_supabase, actor, member) -> None:
        until = datetime.now(timezone.utc) + timedelta(days=7)
        assert service.suspend_user(actor, member.id, until, "spam").status == "suspended"
        assert fake_supabase.logs("suspend_user")[0]["details"]["reason"] == "spam"
        assert service.unsuspend_user(actor, member.id).status == "active"
        assert len(fake_supabase.logs("unsuspend_user")) == 1

    def test_naive_suspend_end_treated_as_utc(self, service: AdminService, actor, member) -> None:
        until = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(days=1)
        assert service.suspend_user(actor, member.id, until, "spam").suspended_until.tzinfo is not None

    def test_cannot_suspend_self(self, service: AdminService, actor) -> None:
        with pytest.raises(HTTPException):
            service.suspend_user(actor, actor.user_id, datetime.now(timezone.utc) + timedelta(days=1), "x")

    def test_ban(self, service: AdminService, fake_supabase, actor, member) -> None:
        assert service.ban_user(actor, member.id, "abuse").status == "banned"
        assert fake_supabase.logs("ban_user")[0]["details"] == {"reason": "abuse"}

    def test_cannot_ban_moderator(self, service: AdminService, actor, moderator) -> None:
        with pytest.raises(InvalidProfileChange):
            service.ban_user(actor, moderator.id, "abuse")


class TestDelete:
    def test_delete_user_logs_first(self, service: AdminService, fake_supabase, actor, member) -> None:
        service.delete_user(actor, member.id)

        assert member.id not in fake_supabase.auth.users
        details = fake_supabase.logs("delete_user")[0]["details"]
        assert details["target_email"] == "member@example.com"

    def test_cannot_delete_self(self, service: AdminService, actor) -> None:
        with pytest.raises(HTTPException) as exc_info:
            service.delete_user(actor, actor.user_id)
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "You cannot delete your own account."

    def test_unknown_user(self, service: AdminService, actor) -> None:
        with pytest.raises(HTTPException) as exc_info:
            service.delete_user(actor, "nobody")
        assert exc_info.value.status_code == 404

    def test_cannot_delete_admin(self, service: AdminService, fake_supabase, actor) -> None:
        other = fake_supabase.seed_user("admin2@example.com", role="admin")
        with pytest.raises(HTTPException) as exc_info:
            service.delete_user(actor, other.id)
        assert exc_info.value.status_code == 400
        assert "Change role first" in exc_info.value.detail

    def test_auth_failure_is_500(self, service: AdminService, fake_supabase, actor) -> None:
        fake_supabase.add_profile("orphan-profile", "orphan@example.com")
        with pytest.raises(HTTPException) as exc_info:
            service.delete_user(actor, "orphan-profile")
        assert exc_info.value.status_code == 500

    def test_delete_profile_only(self, service: AdminService, fake_supabase, actor, member) -> None:
        service.delete_user_profile(actor, member.id)

        assert fake_supabase.profile(member.id) is None
        assert member.id in fake_supabase.auth.users
        details = fake_supabase.logs("delete_user_profile")[0]["details"]
        assert details["deletion_type"] == "profile_delete"


class TestAuditLog:
    def test_log_failure_is_swallowed(self, service: AdminService, fake_supabase, actor) -> None:
        fake_supabase.table_errors["admin_logs"] = api_error("42501")
        service.log_admin_action(actor, "anything", None, {"k": "v"})
        assert fake_supabase.tables["admin_logs"] == []


class TestUpdateRequest:
    def test_unknown_fields_reach_the_service(self) -> None:
        body = UserUpdateRequest(full_name="Renamed", login_count=5)
        assert body.model_dump(exclude_unset=True) == {"full_name": "Renamed", "login_count": 5}
