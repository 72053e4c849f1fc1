from datetime import datetime, timezone

PASSWORD = "Passw0rd123"


def _h(token: str):
    return {"Authorization": f"Bearer {token}"}


def _report(**overrides):
    data = {
        "title": "UPS battery swap",
        "jobDescription": "Replaced 4 cells on the 10kva unit",
        "location": "Server Room 2",
        "reportDate": datetime.now(timezone.utc).date().isoformat(),
        "reportTime": "14:30",
        "toolsUsed": "Multimeter, insulated spanners",
    }
    data.update(overrides)
    return data


def test_create_and_list_own_reports(client, make_staff):
    user, token = make_staff()
    _, other_token = make_staff("other")

    r = client.post("/api/reports", json=_report(), headers=_h(token))
    assert r.status_code == 201
    report = r.json()
    assert report["userId"] == user["id"]
    assert report["status"] == "Pending"
    assert report["reportTime"] == "14:30"

    mine = client.get("/api/reports", headers=_h(token)).json()
    assert [x["id"] for x in mine["items"]] == [report["id"]]
    assert client.get("/api/reports", headers=_h(other_token)).json()["total"] == 0

    r = client.get(f"/api/reports/{report['id']}", headers=_h(other_token))
    assert r.status_code == 403


def test_update_and_delete_report(client, make_staff):
    _, token = make_staff()
    h = _h(token)
    report = client.post("/api/reports", json=_report(), headers=h).json()

    r = client.put(f"/api/reports/{report['id']}", json={"status": "In Progress", "remarks": "Awaiting parts"}, headers=h)
    assert r.status_code == 200
    assert r.json()["status"] == "In Progress"
    assert r.json()["title"] == "UPS battery swap"

    r = client.put(f"/api/reports/{report['id']}", json={"title": None}, headers=h)
    assert r.status_code == 400

    r = client.delete(f"/api/reports/{report['id']}", headers=h)
    assert r.json() == {"message": "Report deleted successfully"}
    assert client.get(f"/api/reports/{report['id']}", headers=h).status_code == 404


def test_summary_and_monthly(client, admin_token, make_staff):
    user, token = make_staff()
    h = _h(token)
    for status in ["Pending", "In Progress", "Completed", "Completed"]:
        client.post("/api/reports", json=_report(status=status), headers=h)

    r = client.get("/api/reports/summary", headers=h)
    assert r.json() == {"total": 4, "completed": 2, "inProgress": 1}

    month = datetime.now(timezone.utc).strftime("%Y-%m")
    assert client.get("/api/reports/monthly", headers=h).json() == [{"month": month, "count": 4}]

    admin_view = client.get(f"/api/reports/summary?userId={user['id']}", headers=_h(admin_token))
    assert admin_view.json()["total"] == 4

    _, other_token = make_staff("other")
    r = client.get(f"/api/reports/summary?userId={user['id']}", headers=_h(other_token))
    assert r.status_code == 403


def test_admin_manages_reports(client, admin_token, make_staff):
    user, token = make_staff()
    report = client.post("/api/reports", json=_report(), headers=_h(token)).json()

    r = client.get(f"/api/admin/reports?userId={user['id']}", headers=_h(admin_token))
    assert r.status_code == 200
    assert [x["id"] for x in r.json()["items"]] == [report["id"]]

    with client.websocket_connect(f"/ws/events?token={admin_token}") as ws:
        assert ws.receive_json()["event"] == "connected"

        r = client.put(
            f"/api/admin/reports/{report['id']}/status",
            json={"status": "Completed"},
            headers=_h(admin_token),
        )
        assert r.status_code == 200
        assert r.json()["status"] == "Completed"

        event = ws.receive_json()
        assert event["event"] == "report:updated"
        assert event["data"]["status"] == "Completed"

        r = client.delete(f"/api/admin/reports/{report['id']}", headers=_h(admin_token))
        assert r.status_code == 200
        assert ws.receive_json()["data"] == {"id": report["id"], "userId": user["id"]}

    r = client.put(f"/api/admin/reports/{report['id']}/status", json={"status": "Done"}, headers=_h(admin_token))
    assert r.status_code == 400


def test_admin_report_routes_need_admin(client, make_staff):
    _, token = make_staff()
    for path in ["/api/admin/reports", "/api/admin/dashboard", "/api/admin/login-stats"]:
        r = client.get(path, headers=_h(token))
        assert r.status_code == 403


def test_dashboard_overview(client, admin_token, make_staff):
    before = client.get("/api/admin/dashboard", headers=_h(admin_token)).json()

    _, token = make_staff()
    client.post("/api/reports", json=_report(), headers=_h(token))

    r = client.get("/api/admin/dashboard", headers=_h(admin_token))
    assert r.status_code == 200
    after = r.json()
    assert after["reports"] == before["reports"] + 1
    assert after["totalUsers"] == before["totalUsers"] + 1
    # make_staff logs the new account in once
    assert after["todayLogins"] == before["todayLogins"] + 1
    assert after["inventory"] == before["inventory"]
    assert after["generatedAt"]


def test_login_stats(client, admin_token, make_staff):
    before = client.get("/api/admin/login-stats", headers=_h(admin_token)).json()

    user, _ = make_staff()
    client.post("/api/auth/login", json={"staffId": user["staffId"], "password": "wrong-password"})
    client.post("/api/auth/login", json={"staffId": "ghost-account", "password": "whatever"})

    r = client.get("/api/admin/login-stats", headers=_h(admin_token))
    assert r.status_code == 200
    after = r.json()
    assert after["todayLogins"] == before["todayLogins"] + 1
    assert after["todayFailedLogins"] == before["todayFailedLogins"] + 2

    by_type = {b["value"]: b["count"] for b in after["todayLoginsByType"]}
    assert by_type["staff"] >= 1
    assert by_type["admin"] >= 1

    today = datetime.now(timezone.utc).date().isoformat()
    assert after["weeklyLogins"][-1]["date"] == today
    assert after["weeklyLogins"][-1]["count"] == after["todayLogins"]
