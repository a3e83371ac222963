from ryd.auth.security import create_access_token, decode_session_token, hash_password, verify_password
from ryd.models.user import User, UserAuditLog


def test_signup_creates_pending_volunteer(client, db_session):
    response = client.post(
        "/api/auth/signup",
        json={"name": "  Abeba   Tesfaye ", "email": "Abeba@Example.com", "password": "Secret123!"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["status"] == "PENDING"
    assert body["user"]["role"] == "VOLUNTEER"
    assert body["user"]["email"] == "abeba@example.com"

    user = db_session.query(User).filter_by(email="abeba@example.com").one()
    assert user.first_name == "Abeba"
    assert user.last_name == "Tesfaye"
    assert user.hashed_password != "Secret123!"
    assert verify_password("Secret123!", user.hashed_password)
    audit = db_session.query(UserAuditLog).filter_by(target_user_id=user.id).one()
    assert audit.action == "USER_CREATED"


def test_signup_rejects_duplicate_email(client, make_user):
    make_user(email="taken@example.com")

    response = client.post(
        "/api/auth/signup",
        json={"name": "Someone Else", "email": "TAKEN@example.com", "password": "Secret123!"},
    )

    assert response.status_code == 409
    assert response.json() == {"error": "User with this email already exists"}


def test_signup_validation_errors_are_400(client):
    response = client.post("/api/auth/signup", json={"name": "A", "email": "nope", "password": "short"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid data"
    fields = {item["field"] for item in body["details"]}
    assert {"name", "email", "password"} <= fields


def test_login_issues_token_and_cookie(client, db_session, make_user):
    user = make_user("STAFF", email="login@example.com", password="Secret123!")

    response = client.post("/api/auth/login", json={"email": "LOGIN@example.com", "password": "Secret123!"})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["redirect"] == "/dashboard"
    claims = decode_session_token(body["access_token"])
    assert claims.id == user.id
    assert claims.role == "STAFF"
    assert "ryd_session" in response.cookies

    db_session.refresh(user)
    assert user.last_login_at is not None


def test_pending_account_can_sign_in_and_is_pointed_at_pending_page(client, make_user):
    make_user("VOLUNTEER", "PENDING", email="waiting@example.com", password="Secret123!")

    response = client.post("/api/auth/login", json={"email": "waiting@example.com", "password": "Secret123!"})

    assert response.status_code == 200
    assert response.json()["redirect"] == "/pending-approval"


def test_login_with_wrong_password(client, make_user):
    make_user(email="wrong@example.com", password="Secret123!")

    response = client.post("/api/auth/login", json={"email": "wrong@example.com", "password": "nottheone"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_login_for_unknown_email(client):
    response = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "Secret123!"})

    assert response.status_code == 401


def test_cookie_session_authenticates_follow_up_requests(client, make_user):
    make_user("VOLUNTEER", email="cookie@example.com", password="Secret123!")
    login = client.post("/api/auth/login", json={"email": "cookie@example.com", "password": "Secret123!"})
    assert login.status_code == 200

    response = client.get("/api/auth/whoami")

    assert response.status_code == 200
    assert response.json()["user"] == "cookie@example.com"


def test_whoami_lists_capabilities(client, authorize, staff_user):
    authorize(staff_user)

    response = client.get("/api/auth/whoami")

    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "STAFF"
    assert "CREATE_TASKS" in body["capabilities"]
    assert "MANAGE_USERS" not in body["capabilities"]


def test_whoami_requires_session(client):
    response = client.get("/api/auth/whoami")

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


def test_refresh_picks_up_status_from_database(client, authorize, db_session, pending_user):
    authorize(pending_user)
    pending_user.status = "ACTIVE"
    db_session.commit()

    response = client.post("/api/auth/refresh")

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["status"] == "ACTIVE"
    assert body["redirect"] == "/dashboard"
    assert decode_session_token(body["access_token"]).status == "ACTIVE"


def test_logout_clears_cookie(client):
    response = client.post("/api/auth/logout")

    assert response.status_code == 204
    assert "ryd_session" in response.headers.get("set-cookie", "")


def test_token_for_deleted_account_is_rejected(client):
    client.headers["Authorization"] = "Bearer " + create_access_token(
        user_id=999, role="VOLUNTEER", status="ACTIVE", email="gone@example.com"
    )

    response = client.get("/api/auth/whoami")

    assert response.status_code == 401
    assert response.json() == {"error": "User not found"}


def test_expired_token_is_rejected(client, volunteer_user):
    client.headers["Authorization"] = "Bearer " + create_access_token(
        user_id=volunteer_user.id,
        role=volunteer_user.role,
        status=volunteer_user.status,
        email=volunteer_user.email,
        expires_minutes=-5,
    )

    response = client.get("/api/auth/whoami")

    assert response.status_code == 401


def test_password_hashes_are_salted():
    first = hash_password("Secret123!")
    second = hash_password("Secret123!")

    assert first != second
    assert verify_password("Secret123!", first)
    assert not verify_password("Secret123!", None)
    assert not verify_password("Secret123!", "not-a-bcrypt-hash")
