from ryd.auth.security import create_access_token


def test_profile_returns_current_account(client, authorize, volunteer_user):
    authorize(volunteer_user)

    response = client.get("/api/user/profile")

    assert response.status_code == 200
    assert response.json()["email"] == "volunteer@example.com"


def test_profile_update_changes_profile_fields_only(client, authorize, volunteer_user):
    authorize(volunteer_user)

    response = client.patch(
        "/api/user/profile",
        json={
            "phone": " +251 911 000 000 ",
            "skills": ["First aid", "Translation"],
            "availability": "WEEKENDS",
            "role": "SUPER_ADMIN",
            "status": "ACTIVE",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["phone"] == "+251 911 000 000"
    assert body["skills"] == ["First aid", "Translation"]
    assert body["availability"] == "WEEKENDS"
    assert body["role"] == "VOLUNTEER"


def test_pending_account_can_fill_in_profile(client, authorize, pending_user):
    authorize(pending_user)

    response = client.patch("/api/user/profile", json={"bio": "Youth choir lead"})

    assert response.status_code == 200
    assert response.json()["bio"] == "Youth choir lead"


def test_status_reports_change_since_token_was_issued(client, authorize, pending_user, db_session):
    authorize(pending_user)
    pending_user.status = "ACTIVE"
    db_session.commit()

    response = client.get("/api/user/status")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ACTIVE"
    assert body["has_status_changed"] is True
    assert body["redirect"] == "/dashboard"


def test_status_unchanged(client, authorize, volunteer_user):
    authorize(volunteer_user)

    response = client.get("/api/user/status")

    assert response.json()["has_status_changed"] is False


def test_invalid_availability_is_rejected(client, authorize, volunteer_user):
    authorize(volunteer_user)

    response = client.patch("/api/user/profile", json={"availability": "ALWAYS"})

    assert response.status_code == 400


def test_token_with_bad_signature_is_rejected(client, volunteer_user):
    token = create_access_token(
        user_id=volunteer_user.id,
        role="VOLUNTEER",
        status="ACTIVE",
        email=volunteer_user.email,
    )
    client.headers["Authorization"] = f"Bearer {token[:-4]}abcd"

    response = client.get("/api/user/profile")

    assert response.status_code == 401


def test_suspended_account_cannot_use_profile_with_old_token(client, authorize, volunteer_user, db_session):
    authorize(volunteer_user)
    volunteer_user.status = "SUSPENDED"
    db_session.commit()

    read = client.get("/api/user/profile")
    update = client.patch("/api/user/profile", json={"bio": "Still here"})

    assert read.status_code == 403
    assert update.status_code == 403
    db_session.refresh(volunteer_user)
    assert volunteer_user.bio is None
