import uuid

import pytest

from inventory_desk.__main__ import build_parser
from inventory_desk.dashboard import (
    DEFAULT_COLUMNS,
    DashboardClient,
    DashboardError,
    events_url,
    render_table,
)

PASSWORD = "Passw0rd123"


@pytest.fixture
def dash(client):
    return DashboardClient(client)


def test_login_and_crud(dash, make_staff):
    user, _ = make_staff()
    me = dash.login(user["staffId"], PASSWORD)
    assert me["id"] == user["id"]
    assert dash.headers == {"Authorization": f"Bearer {dash.token}"}

    created = dash.create("tasks", {"title": "Label spare batteries"})
    assert dash.get("tasks", created["id"])["title"] == "Label spare batteries"

    updated = dash.update("tasks", created["id"], {"status": "completed"})
    assert updated["status"] == "completed"

    page = dash.list("tasks", status="completed", page=1, pageSize=10)
    assert [t["id"] for t in page["items"]] == [created["id"]]

    assert dash.delete("tasks", created["id"]) == {"message": "Task deleted successfully"}
    assert dash.list("tasks")["total"] == 0


def test_errors_carry_code(dash, make_staff):
    with pytest.raises(DashboardError) as exc:
        dash.login("ghost", "whatever")
    assert exc.value.status_code == 401
    assert exc.value.code == "INVALID_CREDENTIALS"

    user, _ = make_staff()
    dash.login(user["staffId"], PASSWORD)
    with pytest.raises(DashboardError) as exc:
        dash.users()
    assert exc.value.status_code == 403
    assert exc.value.code == "FORBIDDEN"

    with pytest.raises(DashboardError) as exc:
        dash.get("inventory", 999999)
    assert exc.value.code == "NOT_FOUND"


def test_admin_views(dash):
    dash.login("admin", "admin123")
    users = dash.users()
    assert any(u["staffId"] == "admin" for u in users)
    stats = dash.inventory_stats()
    assert "totalInventory" in stats
    assert dash.overview()["totalUsers"] >= 1
    assert dash.login_stats()["todayLogins"] >= 1


def test_unknown_resource(dash):
    with pytest.raises(ValueError):
        dash.list("widgets")


def test_events_url():
    assert events_url("http://localhost:8000", "abc") == "ws://localhost:8000/ws/events?token=abc"
    assert events_url("https://desk.example.com/", "abc") == "wss://desk.example.com/ws/events?token=abc"


def test_render_table():
    rows = [
        {"id": 1, "staffId": "admin", "name": "Administrator", "role": "admin", "isActive": True},
        {"id": 12, "staffId": f"s-{uuid.uuid4().hex[:4]}", "name": None, "role": "staff", "isActive": False},
    ]
    out = render_table(rows, DEFAULT_COLUMNS["users"]).splitlines()
    assert out[0].split() == ["id", "staffId", "name", "role", "isActive", "lastLogin"]
    assert set(out[1].replace(" ", "")) == {"-"}
    assert out[2].split() == ["1", "admin", "Administrator", "admin", "yes"]
    assert out[3].split()[-1] == "no"


def test_render_empty_table():
    out = render_table([], ["id", "title"])
    assert out.splitlines()[-1] == "(no rows)"


def test_cli_parser():
    args = build_parser().parse_args(
        ["dashboard", "--staff-id", "admin", "--password", "x", "--resource", "tasks", "--follow"]
    )
    assert args.resource == "tasks"
    assert args.follow is True
    assert args.page_size == 50

    with pytest.raises(SystemExit):
        build_parser().parse_args(["dashboard", "--staff-id", "a", "--password", "x", "--resource", "widgets"])

    args = build_parser().parse_args(["dashboard", "--staff-id", "a", "--password", "x", "--resource", "reports"])
    assert args.resource == "reports"
