"""Tests for the dashboard controller and the console shell."""

import asyncio

import pytest

from grievance_console.console.dashboard import AdminOnly, DetailMode, NotFound, NotSignedIn, Tab
from grievance_console.console.shell import ConsoleRegistry, viewer_id_for
from grievance_console.grievance.schemas import Assignment, NewRequest, User
from tests.fake_api import ADMIN, CUSTOMER, NOW, USERS


def _content(dashboard) -> dict:
    return dashboard.render(now=NOW).model_dump(mode="json", by_alias=True)["content"]


class TestShell:
    def test_viewer_scope(self) -> None:
        assert viewer_id_for(User.model_validate(USERS[1])) == 3
        assert viewer_id_for(User.model_validate(USERS[0])) is None
        assert viewer_id_for(User.model_validate(USERS[2])) is None

    @pytest.mark.asyncio
    async def test_signed_out_console_shows_auth(self, registry) -> None:
        _, shell = registry.create()
        view = await shell.render()
        assert view.screen == "auth"
        with pytest.raises(NotSignedIn):
            await shell.ensure_dashboard()

    @pytest.mark.asyncio
    async def test_dashboard_is_rebuilt_for_a_new_viewer(self, registry) -> None:
        _, shell = registry.create()
        await shell.login(**CUSTOMER)
        customer = await shell.ensure_dashboard()
        assert await shell.ensure_dashboard() is customer
        shell.logout()
        assert (await shell.render()).screen == "auth"
        await shell.login(**ADMIN)
        admin = await shell.ensure_dashboard()
        assert admin is not customer
        assert admin.is_admin
        assert len(admin.requests.requests) == 5

    @pytest.mark.asyncio
    async def test_sessions_survive_in_files(self, grievance_client, tmp_path) -> None:
        console_id, shell = ConsoleRegistry(grievance_client, tmp_path).create()
        await shell.login(**CUSTOMER)
        revived = ConsoleRegistry(grievance_client, tmp_path).get(console_id)
        assert revived is not None
        assert revived.user.user_id == 3
        assert (await revived.render()).screen == "dashboard"

    @pytest.mark.asyncio
    async def test_unknown_or_malformed_ids(self, registry) -> None:
        assert registry.get(None) is None
        assert registry.get("../../etc/passwd") is None
        assert registry.get("0" * 32) is None
        console_id, shell = registry.get_or_create("nope")
        assert registry.get(console_id) is shell

    @pytest.mark.asyncio
    async def test_registry_keeps_at_most_max_consoles(self, grievance_client) -> None:
        registry = ConsoleRegistry(grievance_client, max_consoles=3)
        first, _ = registry.create()
        second, _ = registry.create()
        for _ in range(100):
            registry.get_or_create(None)
        assert len(registry) == 3
        assert registry.get(first) is None
        assert registry.get(second) is None

    @pytest.mark.asyncio
    async def test_recently_used_console_outlives_newer_ones(self, grievance_client) -> None:
        registry = ConsoleRegistry(grievance_client, max_consoles=2)
        kept, shell = registry.create()
        dropped, _ = registry.create()
        assert registry.get(kept) is shell
        registry.create()
        assert registry.get(kept) is shell
        assert registry.get(dropped) is None

    @pytest.mark.asyncio
    async def test_idle_consoles_expire(self, grievance_client) -> None:
        now = [0.0]
        registry = ConsoleRegistry(grievance_client, idle_timeout=60, clock=lambda: now[0])
        idle, _ = registry.create()
        busy, shell = registry.create()
        now[0] = 45
        assert registry.get(busy) is shell
        now[0] = 90
        assert registry.get(idle) is None
        assert registry.get(busy) is shell
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_expired_console_comes_back_from_its_file(self, grievance_client, tmp_path) -> None:
        now = [0.0]
        registry = ConsoleRegistry(grievance_client, tmp_path, idle_timeout=60, clock=lambda: now[0])
        console_id, shell = registry.create()
        await shell.login(**CUSTOMER)
        now[0] = 120
        revived = registry.get(console_id)
        assert revived is not None and revived is not shell
        assert revived.user.user_id == 3

    @pytest.mark.asyncio
    async def test_discard(self, registry) -> None:
        console_id, _ = registry.create()
        registry.discard(console_id)
        registry.discard(console_id)
        assert registry.get(console_id) is None
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_concurrent_renders_build_one_dashboard(self, registry, server) -> None:
        _, shell = registry.create()
        await shell.login(**CUSTOMER)
        first, second = await asyncio.gather(shell.ensure_dashboard(), shell.ensure_dashboard())
        assert first is second
        assert len(server.calls_to("/request-fetch/fetch")) == 1
        assert len(server.calls_to("/mails")) == 1


class TestNavigation:
    @pytest.mark.asyncio
    async def test_customer_dashboard(self, customer_dashboard) -> None:
        content = _content(customer_dashboard)
        assert content["kind"] == "dashboard"
        assert [c["title"] for c in content["stats"]] == ["My Requests", "Pending", "In Progress", "Resolved"]
        assert set(content["stats"][0]) == {"title", "value", "color", "icon"}
        pending, active = content["lists"]
        assert pending["title"] == "Recent Pending Requests"
        assert [r["requestId"] for r in pending["rows"]] == [101]
        assert [r["requestId"] for r in active["rows"]] == [102]

    @pytest.mark.asyncio
    async def test_sidebar_navigation(self, admin_dashboard) -> None:
        admin_dashboard.toggle_sidebar()
        admin_dashboard.navigate(Tab.PENDING)
        view = admin_dashboard.render(now=NOW)
        assert view.screen == "pending"
        assert not view.sidebar.is_open
        assert [r.request_id for r in view.content.rows] == [101, 104]
        assert [i.id for i in view.sidebar.items if i.active] == ["pending"]

    @pytest.mark.asyncio
    async def test_request_list_titles(self, admin_dashboard, customer_dashboard) -> None:
        admin_dashboard.navigate(Tab.ALL_REQUESTS)
        customer_dashboard.navigate(Tab.MY_REQUESTS)
        assert _content(admin_dashboard)["title"] == "All Requests"
        assert _content(customer_dashboard)["title"] == "My Requests"

    @pytest.mark.asyncio
    async def test_detail_needs_a_selection(self, admin_dashboard) -> None:
        with pytest.raises(NotFound):
            admin_dashboard.navigate(Tab.REQUEST_DETAIL)
        with pytest.raises(NotFound):
            admin_dashboard.open_request(999)

    @pytest.mark.asyncio
    async def test_open_request_shows_detail_and_messages(self, admin_dashboard) -> None:
        admin_dashboard.open_request(101)
        content = _content(admin_dashboard)
        assert content["detail"]["requestId"] == 101
        assert content["detail"]["actions"] == ["assign", "update-status"]
        assert [r["mailId"] for r in content["messages"]["rows"]] == [201, 203]

    @pytest.mark.asyncio
    async def test_admin_only_sub_states(self, admin_dashboard, customer_dashboard) -> None:
        customer_dashboard.open_request(101)
        with pytest.raises(AdminOnly):
            customer_dashboard.show_detail(DetailMode.STATUS_UPDATE)
        assert _content(customer_dashboard)["detail"]["actions"] == []

        admin_dashboard.open_request(105)
        admin_dashboard.show_detail(DetailMode.ASSIGN_FORM)
        form = _content(admin_dashboard)
        assert form["kind"] == "assign-form"
        assert form["assignedTo"] == 5
        assert form["dev"] == {"targetDate": "2024-11-10", "remark": "Scripted"}
        assert [o["value"] for o in form["userOptions"]] == [0, 1, 5]

        admin_dashboard.show_detail(DetailMode.STATUS_UPDATE)
        assert _content(admin_dashboard)["selectedStatusId"] == 7
        admin_dashboard.show_detail(DetailMode.PLAIN)
        assert "detail" in _content(admin_dashboard)

    @pytest.mark.asyncio
    async def test_users_tab_is_for_admins(self, admin_dashboard, customer_dashboard) -> None:
        admin_dashboard.navigate(Tab.USERS)
        customer_dashboard.navigate(Tab.USERS)
        assert len(_content(admin_dashboard)["rows"]) == 4
        assert _content(customer_dashboard) == {"kind": "placeholder", "title": "Users"}


class TestMutations:
    @pytest.mark.asyncio
    async def test_status_update_returns_to_dashboard(self, admin_dashboard) -> None:
        admin_dashboard.open_request(101)
        admin_dashboard.show_detail(DetailMode.STATUS_UPDATE)
        assert await admin_dashboard.submit_status(2, "Working on it")
        assert admin_dashboard.active_tab is Tab.DASHBOARD
        assert admin_dashboard.selected_request is None
        assert admin_dashboard.detail_mode is DetailMode.PLAIN
        assert admin_dashboard.requests.get(101).status_name == "Active"

    @pytest.mark.asyncio
    async def test_failed_status_update_keeps_the_screen(self, admin_dashboard, server) -> None:
        admin_dashboard.open_request(101)
        admin_dashboard.show_detail(DetailMode.STATUS_UPDATE)
        server.fail("/request/status")
        assert not await admin_dashboard.submit_status(2)
        assert admin_dashboard.active_tab is Tab.REQUEST_DETAIL
        assert admin_dashboard.detail_mode is DetailMode.STATUS_UPDATE

    @pytest.mark.asyncio
    async def test_assignment_returns_to_dashboard(self, admin_dashboard) -> None:
        admin_dashboard.open_request(102)
        admin_dashboard.show_detail(DetailMode.ASSIGN_FORM)
        assert await admin_dashboard.submit_assignment(Assignment(assigned_to=5))
        assert admin_dashboard.active_tab is Tab.DASHBOARD
        assert admin_dashboard.requests.get(102).assigned_to == 5

    @pytest.mark.asyncio
    async def test_customer_cannot_update_status(self, customer_dashboard) -> None:
        customer_dashboard.open_request(101)
        with pytest.raises(AdminOnly):
            await customer_dashboard.submit_status(2)

    @pytest.mark.asyncio
    async def test_create_records_a_notice_once(self, customer_dashboard, server) -> None:
        customer_dashboard.navigate(Tab.CREATE_REQUEST)
        form = _content(customer_dashboard)
        assert form["priorityId"] == 1
        assert form["requestType"] == "New Development"

        ok = await customer_dashboard.submit_create(
            NewRequest(subject="Slow reports", message="Minutes to load", request_type="System Bug", priority_id=2)
        )
        assert ok
        assert server.calls_to("/request/save")[0][2]["userId"] == 3
        view = customer_dashboard.render(now=NOW)
        assert view.screen == "my-requests"
        assert view.notice.level == "success"
        assert view.notice.message == "Request saved successfully!"
        assert customer_dashboard.render(now=NOW).notice is None

    @pytest.mark.asyncio
    async def test_failed_create_records_the_server_message(self, customer_dashboard, server) -> None:
        customer_dashboard.navigate(Tab.CREATE_REQUEST)
        server.fail("/request/save", status_code=400, body={"success": False, "message": "Subject too long"})
        ok = await customer_dashboard.submit_create(
            NewRequest(subject="x", message="y", request_type="System Bug", priority_id=1)
        )
        assert not ok
        view = customer_dashboard.render(now=NOW)
        assert view.screen == "create-request"
        assert view.notice.message == "Subject too long"

    @pytest.mark.asyncio
    async def test_unreachable_server_on_create(self, customer_dashboard, server) -> None:
        server.disconnect("/request/save")
        await customer_dashboard.submit_create(
            NewRequest(subject="x", message="y", request_type="System Bug", priority_id=1)
        )
        assert customer_dashboard.render(now=NOW).notice.message == "Error saving request"


class TestMessages:
    @pytest.mark.asyncio
    async def test_overlay_is_orthogonal_to_the_tab(self, customer_dashboard) -> None:
        customer_dashboard.navigate(Tab.MY_REQUESTS)
        customer_dashboard.open_messages()
        view = customer_dashboard.render(now=NOW)
        assert view.screen == "messages"
        assert view.sidebar.items[1].active
        customer_dashboard.close_messages()
        assert customer_dashboard.render(now=NOW).screen == "my-requests"

    @pytest.mark.asyncio
    async def test_select_and_reply(self, customer_dashboard) -> None:
        customer_dashboard.open_messages()
        customer_dashboard.select_mail(203)
        form = customer_dashboard.start_compose("replyAll", 203)
        assert form.to_addresses == "support@example.com, admin@example.com"
        content = _content(customer_dashboard)
        assert content["mail"]["mailId"] == 203
        assert [t["mailId"] for t in content["mail"]["thread"]] == [201]
        assert content["compose"]["title"] == "Reply All"

        draft = customer_dashboard.build_draft("Thank you")
        assert await customer_dashboard.send_mail(draft)
        assert customer_dashboard.compose is None
        assert customer_dashboard.mails.get_all_mails()[-1].parent_mail_id == 203

    @pytest.mark.asyncio
    async def test_compose_needs_an_existing_mail(self, customer_dashboard) -> None:
        with pytest.raises(NotFound):
            customer_dashboard.start_compose("reply", 999)
        with pytest.raises(NotFound):
            customer_dashboard.select_mail(999)

    @pytest.mark.asyncio
    async def test_compose_for_the_selected_request(self, admin_dashboard) -> None:
        admin_dashboard.open_request(104)
        form = admin_dashboard.start_compose("compose")
        assert form.request_id == 104
        assert form.to_addresses == "support@example.com"

    @pytest.mark.asyncio
    async def test_mail_actions(self, admin_dashboard, server) -> None:
        admin_dashboard.select_mail(202)
        assert await admin_dashboard.toggle_star(202)
        assert admin_dashboard.mails.get(202).is_starred
        assert await admin_dashboard.archive_mail(202)
        assert await admin_dashboard.delete_mail(202)
        assert admin_dashboard.selected_mail_id is None
        server.fail("/mail/201/star")
        assert not await admin_dashboard.toggle_star(201)
