def test_update_profile_fields(client, client_headers):
    response = client.put(
        "/profile/update",
        json={"name": "Jane D.", "phone": "+1 (555) 010-0000", "address": "1 Main St"},
        headers=client_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Jane D."
    assert data["address"] == "1 Main St"


def test_change_password_validations(client, client_headers):
    mismatch = client.put(
        "/profile/password",
        json={"current_password": "client-pass", "new_password": "abcdef", "confirm_password": "abcdeg"},
        headers=client_headers,
    )
    too_short = client.put(
        "/profile/password",
        json={"current_password": "client-pass", "new_password": "abc", "confirm_password": "abc"},
        headers=client_headers,
    )
    wrong_current = client.put(
        "/profile/password",
        json={"current_password": "wrong", "new_password": "abcdef", "confirm_password": "abcdef"},
        headers=client_headers,
    )

    assert mismatch.status_code == 400
    assert mismatch.json()["message"] == "New passwords do not match."
    assert too_short.status_code == 400
    assert wrong_current.status_code == 400
    assert wrong_current.json()["message"] == "Incorrect current password."


def test_change_password_allows_new_login(client, client_user, client_headers, login_as):
    response = client.put(
        "/profile/password",
        json={"current_password": "client-pass", "new_password": "brand-new", "confirm_password": "brand-new"},
        headers=client_headers,
    )
    assert response.status_code == 200

    assert login_as(client_user.email, "brand-new")
    old = client.post("/auth/login", json={"email": client_user.email, "password": "client-pass"})
    assert old.status_code == 401


def test_profile_photo_upload(client, client_headers, monkeypatch):
    from clientdesk.routers import profile

    monkeypatch.setattr(
        profile,
        "upload_profile_photo",
        lambda data, user_id, filename, content_type=None: f"https://cdn.example.com/{user_id}/{filename}",
    )

    response = client.post(
        "/profile/photo",
        files={"file": ("me.png", b"\x89PNG", "image/png")},
        headers=client_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["photo_url"].endswith("/me.png")


def test_profile_photo_rejects_non_images(client, client_headers):
    response = client.post(
        "/profile/photo",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=client_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Only image files are allowed."
