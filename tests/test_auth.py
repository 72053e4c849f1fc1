import uuid
from datetime import datetime, timedelta, timezone

from sqlmodel import select

from inventory_desk.models import LoginLog, User, as_utc, utcnow
from inventory_desk.security import validate_token

PASSWORD = "Passw0rd123"


def _staff_id():
    return f"auth-{uuid.uuid4().hex[:8]}"


def _h(token: str):
    return {"Authorization": f"Bearer {token}"}


def test_admin_login(client):
    r = client.post("/api/auth/login", json={"staffId": "admin", "password": "admin123"})
    assert r.status_code == 200
    data = r.json()
    assert data["tokenType"] == "bearer"
    assert data["user"]["staffId"] == "admin"
    assert data["user"]["role"] == "admin"
    assert "passwordHash" not in data["user"]

    claims = validate_token(data["token"])
    assert claims.user_id == data["user"]["id"]
    assert claims.role.value == "admin"


def test_login_accepts_snake_case_staff_id(client):
    r = client.post("/api/auth/login", json={"staff_id": "admin", "password": "admin123"})
    assert r.status_code == 200


def test_login_failures_look_the_same(client):
    wrong_password = client.post("/api/auth/login", json={"staffId": "admin", "password": "nope"})
    unknown_user = client.post("/api/auth/login", json={"staffId": "ghost", "password": "nope"})

    assert wrong_password.status_code == 401
    assert unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json() == {
        "detail": {"code": "INVALID_CREDENTIALS", "message": "Invalid staff ID or password"}
    }


def test_login_missing_fields(client):
    r = client.post("/api/auth/login", json={"staffId": "admin"})
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_register_and_login(client):
    staff_id = _staff_id()
    r = client.post(
        "/api/auth/register",
        json={"staffId": staff_id, "password": PASSWORD, "name": "Ama Owusu"},
    )
    assert r.status_code == 201
    user = r.json()
    assert user["staffId"] == staff_id
    assert user["role"] == "staff"
    assert user["isActive"] is True

    r2 = client.post("/api/auth/login", json={"staffId": staff_id, "password": PASSWORD})
    assert r2.status_code == 200
    assert r2.json()["user"]["id"] == user["id"]
    assert r2.json()["user"]["lastLogin"] is not None


def test_register_cannot_pick_admin_role(client):
    r = client.post(
        "/api/auth/register",
        json={"staffId": _staff_id(), "password": PASSWORD, "role": "admin"},
    )
    assert r.status_code == 201
    assert r.json()["role"] == "staff"


def test_register_duplicate_staff_id(client):
    staff_id = _staff_id()
    r1 = client.post("/api/auth/register", json={"staffId": staff_id, "password": PASSWORD})
    assert r1.status_code == 201

    r2 = client.post("/api/auth/register", json={"staffId": staff_id, "password": PASSWORD})
    assert r2.status_code == 409
    assert r2.json() == {
        "detail": {"code": "STAFF_ID_EXISTS", "message": "Staff ID already exists"}
    }


def test_register_weak_password(client):
    r = client.post("/api/auth/register", json={"staffId": _staff_id(), "password": "short"})
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "WEAK_PASSWORD"


def test_oauth2_form_login(client):
    r = client.post("/api/auth/token", data={"username": "admin", "password": "admin123"})
    assert r.status_code == 200
    data = r.json()
    assert data["token_type"] == "bearer"

    me = client.get("/api/auth/me", headers=_h(data["access_token"]))
    assert me.status_code == 200
    assert me.json()["staffId"] == "admin"


def test_update_profile(client, make_staff):
    user, token = make_staff()
    r = client.put(
        "/api/auth/me",
        json={"name": "Kofi Boateng", "phone": "0244000000"},
        headers=_h(token),
    )
    assert r.status_code == 200
    assert r.json()["name"] == "Kofi Boateng"
    assert r.json()["phone"] == "0244000000"
    assert r.json()["role"] == "staff"


def test_change_password(client, make_staff):
    user, token = make_staff()

    bad = client.post(
        "/api/auth/me/password",
        json={"currentPassword": "Wrong1234", "newPassword": "NewPassw0rd"},
        headers=_h(token),
    )
    assert bad.status_code == 401

    ok = client.post(
        "/api/auth/me/password",
        json={"currentPassword": PASSWORD, "newPassword": "NewPassw0rd"},
        headers=_h(token),
    )
    assert ok.status_code == 200

    old = client.post("/api/auth/login", json={"staffId": user["staffId"], "password": PASSWORD})
    assert old.status_code == 401
    new = client.post("/api/auth/login", json={"staffId": user["staffId"], "password": "NewPassw0rd"})
    assert new.status_code == 200


def test_password_reset_flow(client, make_staff):
    user, _ = make_staff()

    r = client.post("/api/auth/request-reset", json={"staffId": user["staffId"]})
    assert r.status_code == 200
    reset_token = r.json()["resetToken"]

    bad = client.post(
        "/api/auth/reset-password",
        json={"staffId": user["staffId"], "token": "not-the-token", "newPassword": "Reset1234"},
    )
    assert bad.status_code == 400
    assert bad.json()["detail"]["code"] == "INVALID_RESET_TOKEN"

    ok = client.post(
        "/api/auth/reset-password",
        json={"staffId": user["staffId"], "token": reset_token, "newPassword": "Reset1234"},
    )
    assert ok.status_code == 200

    # one-time use
    again = client.post(
        "/api/auth/reset-password",
        json={"staffId": user["staffId"], "token": reset_token, "newPassword": "Again1234"},
    )
    assert again.status_code == 400

    login = client.post("/api/auth/login", json={"staffId": user["staffId"], "password": "Reset1234"})
    assert login.status_code == 200


def test_request_reset_unknown_staff_id(client):
    r = client.post("/api/auth/request-reset", json={"staffId": "ghost"})
    assert r.status_code == 200
    assert r.json() == {"message": "If the staff ID exists, a reset token has been issued"}


def test_disabled_account_cannot_log_in(client, admin_token, make_staff):
    user, token = make_staff()

    r = client.delete(f"/api/admin/users/{user['id']}", headers=_h(admin_token))
    assert r.status_code == 200
    assert r.json() == {"message": "User disabled successfully"}

    login = client.post("/api/auth/login", json={"staffId": user["staffId"], "password": PASSWORD})
    assert login.status_code == 401
    assert login.json()["detail"]["code"] == "INVALID_CREDENTIALS"

    # tokens issued before the account was disabled stop working too
    me = client.get("/api/auth/me", headers=_h(token))
    assert me.status_code == 401
    assert me.json()["detail"]["code"] == "INVALID_TOKEN"


def test_timestamps_are_utc():
    now = utcnow()
    assert now.tzinfo is timezone.utc
    assert as_utc(datetime(2025, 1, 1, 12, 0)) == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert as_utc(now) is now


def test_stale_reset_token_from_database(client, session, make_staff):
    user, _ = make_staff()
    reset_token = client.post("/api/auth/request-reset", json={"staffId": user["staffId"]}).json()["resetToken"]

    row = session.get(User, user["id"])
    # SQLite hands the expiry back without tzinfo
    assert as_utc(row.reset_token_expiry) > utcnow()
    row.reset_token_expiry = utcnow() - timedelta(minutes=1)
    session.add(row)
    session.commit()

    r = client.post(
        "/api/auth/reset-password",
        json={"staffId": user["staffId"], "token": reset_token, "newPassword": "Reset1234"},
    )
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "INVALID_RESET_TOKEN"


def test_login_attempts_are_audited(client, session, make_staff):
    user, _ = make_staff()
    client.post(
        "/api/auth/login",
        json={"staffId": user["staffId"], "password": "wrong-password"},
        headers={"User-Agent": "desk-tests"},
    )

    logs = session.exec(
        select(LoginLog).where(LoginLog.staff_id == user["staffId"]).order_by(LoginLog.id)
    ).all()
    assert [log.success for log in logs] == [True, False]
    assert logs[1].user_id == user["id"]
    assert logs[1].login_type == "staff"
    assert logs[1].user_agent == "desk-tests"
    assert logs[1].ip_address == "testclient"

    client.post("/api/auth/login", json={"staffId": "nobody-here", "password": "whatever"})
    ghost = session.exec(select(LoginLog).where(LoginLog.staff_id == "nobody-here")).all()
    assert ghost[-1].user_id is None
    assert ghost[-1].login_type == "unknown"
