"""
Auth flow: register -> login -> access control -> logout.
"""


def _session_uid(client):
    with client.session_transaction() as sess:
        return sess.get("uid")


def _register(client, username, password, follow=True, **extra):
    return client.post("/register", data={"username": username, "password": password, **extra},
                       follow_redirects=follow)


def _login(client, username, password, follow=True):
    return client.post("/login", data={"username": username, "password": password},
                       follow_redirects=follow)


def _logout(client, follow=True):
    return client.get("/logout", follow_redirects=follow)


def test_register_and_login_then_block_admin_access(client):
    """A freshly registered user can log in but not reach admin pages."""
    r = _register(client, "alice", "Secret123", email="alice@example.com")
    assert r.status_code == 200
    assert "registration successful" in r.get_data(as_text=True).lower()

    r = _login(client, "alice", "Secret123", follow=False)
    assert r.status_code == 302
    assert _session_uid(client), "Expected session to contain user id after login"

    r = client.get("/admin/vehicles", follow_redirects=False)
    assert r.status_code in (302, 403)


def test_register_duplicate_username_fails(client):
    _register(client, "bob", "Secret123")
    r = _register(client, "bob", "Other1234")
    body = r.get_data(as_text=True).lower()
    assert "already exists" in body


def test_register_weak_password_fails(client):
    r = _register(client, "weakling", "password")
    assert "at least 6 characters" in r.get_data(as_text=True).lower()
    r = _login(client, "weakling", "password")
    assert not _session_uid(client)


def test_login_wrong_password(client):
    _register(client, "carl", "Secret123")
    r = _login(client, "carl", "wrongpw")
    assert r.status_code == 200
    assert not _session_uid(client)
    assert "invalid credentials" in r.get_data(as_text=True).lower()


def test_admin_login_can_access_admin_pages(client, admin):
    r = _login(client, "admin", "Admin123", follow=False)
    assert r.status_code == 302
    r = client.get("/", follow_redirects=False)
    assert r.headers["Location"].endswith("/admin")
    assert client.get("/admin/vehicles").status_code == 200


def test_logout_revokes_access(client, admin):
    _login(client, "admin", "Admin123")
    assert _session_uid(client)

    r = _logout(client)
    assert r.status_code == 200
    assert not _session_uid(client)

    r = client.get("/admin/vehicles", follow_redirects=False)
    assert r.status_code == 302
    assert "/login" in r.headers["Location"]
