import pytest
from argon2.exceptions import HashingError
from fastapi.testclient import TestClient

from hashchanges.app import create_app
from hashchanges.auth.session import SessionStore
from hashchanges.models import User
from hashchanges.services import accounts

from conftest import register_via_http

COOKIE = "connect.sid"
PROTECTED = ["/dashboard", "/editprofile", "/profile/alice"]


def _login(client, username="alice", password="s3cret!"):
    return client.post("/login", data={"username": username, "password": password}, follow_redirects=False)


def _firstname_cell(html: str) -> str:
    start = html.index('<dd class="firstname">') + len('<dd class="firstname">')
    return html[start:html.index("</dd>", start)]


def test_index_redirects_anonymous_to_login(client):
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_index_redirects_user_to_dashboard(client):
    register_via_http(client)
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"


@pytest.mark.parametrize("path", ["/login", "/register"])
def test_forms_are_served(client, path):
    r = client.get(path)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert f'action="{path}"' in r.text


@pytest.mark.parametrize("path", PROTECTED)
def test_protected_pages_redirect_to_login(client, path):
    r = client.get(path, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_protected_edit_post_redirects_to_login(client, session_factory):
    r = client.post("/editprofile", data={"firstname": "x"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"
    db = session_factory()
    try:
        assert db.query(User).count() == 0
    finally:
        db.close()


def test_register_establishes_session(client, app):
    r = register_via_http(client)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    set_cookie = r.headers["set-cookie"]
    assert set_cookie.startswith(f"{COOKIE}=")
    assert "httponly" in set_cookie.lower()
    assert "secure" not in set_cookie.lower().replace("samesite", "")
    assert len(app.state.session_store) == 1

    r = client.get("/dashboard")
    assert r.status_code == 200
    assert "Welcome, alice" in r.text


def test_register_duplicate_shows_generic_message(client, session_factory):
    register_via_http(client)
    client.cookies.clear()

    r = register_via_http(client, email="someone.else@example.org")
    assert r.status_code == 400
    assert "Username or email is already registered." in r.text
    assert "UNIQUE" not in r.text
    assert COOKIE not in r.headers.get("set-cookie", "")

    db = session_factory()
    try:
        assert db.query(User).filter(User.username == "alice").count() == 1
    finally:
        db.close()


def test_register_missing_fields(client):
    r = client.post("/register", data={"username": "alice", "email": ""}, follow_redirects=False)
    assert r.status_code == 400
    assert "Username, email and password are required." in r.text
    # The form keeps what was typed
    assert 'value="alice"' in r.text


def test_register_hashing_failure_renders_form(client, app, monkeypatch):
    def boom(plain, *, hasher=None):
        raise HashingError("out of memory")

    monkeypatch.setattr(accounts, "hash_password", boom)
    r = register_via_http(client)
    assert r.status_code == 503
    assert "Service unavailable, please try again later." in r.text
    assert 'action="/register"' in r.text
    assert "out of memory" not in r.text
    assert "set-cookie" not in r.headers
    assert len(app.state.session_store) == 0


def test_register_accepts_json(client):
    r = client.post(
        "/register",
        json={"username": "alice", "email": "alice@example.org", "password": "s3cret!"},
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"


def test_login_success(client):
    register_via_http(client)
    client.cookies.clear()

    r = _login(client)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    assert client.get("/dashboard").status_code == 200


def test_login_wrong_password_never_sets_session(client, app):
    register_via_http(client)
    client.cookies.clear()
    sessions_before = len(app.state.session_store)

    r = _login(client, password="wrong")
    assert r.status_code == 401
    assert "Invalid password!" in r.text
    assert "set-cookie" not in r.headers
    assert len(app.state.session_store) == sessions_before

    r = client.get("/dashboard", follow_redirects=False)
    assert r.headers["location"] == "/login"


def test_login_unknown_user(client):
    r = _login(client, username="ghost")
    assert r.status_code == 401
    assert "User not found!" in r.text
    assert "set-cookie" not in r.headers


@pytest.mark.parametrize("path", ["/login", "/register"])
def test_logged_in_user_is_sent_to_dashboard(client, path):
    register_via_http(client)
    r = client.get(path, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"


def test_logged_in_user_cannot_register_again(client, session_factory):
    register_via_http(client)
    r = register_via_http(client, username="bob")
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    db = session_factory()
    try:
        assert db.query(User).count() == 1
    finally:
        db.close()


def test_logout(client, app):
    register_via_http(client)
    r = client.post("/logout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"
    assert len(app.state.session_store) == 0

    r = client.get("/dashboard", follow_redirects=False)
    assert r.headers["location"] == "/login"


def test_forged_cookie_is_ignored(client):
    client.cookies.set(COOKIE, "forged.value")
    r = client.get("/dashboard", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_sessions_do_not_survive_a_restart(settings, engine, client):
    register_via_http(client)
    cookie = client.cookies.get(COOKIE)

    restarted = create_app(settings, engine=engine, session_store=SessionStore())
    with TestClient(restarted) as other:
        other.cookies.set(COOKIE, cookie)
        r = other.get("/dashboard", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_edit_then_view_profile(client):
    register_via_http(client)
    r = client.post("/editprofile", data={"firstname": "Alice", "lastname": "Liddell", "bio": "Curious"})
    assert r.status_code == 200
    assert "Profile updated successfully" in r.text

    r = client.get("/editprofile")
    assert 'value="Alice"' in r.text
    assert "Curious</textarea>" in r.text

    r = client.get("/profile/alice")
    assert r.status_code == 200
    assert _firstname_cell(r.text) == "Alice"
    assert '<dd class="lastname">Liddell</dd>' in r.text
    assert '<dd class="bio">Curious</dd>' in r.text


def test_edit_is_a_full_overwrite(client, session_factory):
    register_via_http(client)
    client.post("/editprofile", data={"firstname": "Alice", "lastname": "Liddell", "bio": "Curious"})
    r = client.post("/editprofile", json={"firstname": "Jo", "lastname": "", "bio": None})
    assert r.status_code == 200

    db = session_factory()
    try:
        user = db.query(User).filter(User.username == "alice").one()
        assert (user.firstname, user.lastname, user.bio) == ("Jo", "", None)
    finally:
        db.close()

    r = client.get("/profile/alice")
    assert _firstname_cell(r.text) == "Jo"
    assert '<dd class="lastname"></dd>' in r.text
    assert '<dd class="bio"></dd>' in r.text


def test_missing_form_fields_are_cleared(client, session_factory):
    register_via_http(client)
    client.post("/editprofile", data={"firstname": "Alice", "lastname": "Liddell", "bio": "Curious"})
    client.post("/editprofile", data={"firstname": "Jo", "lastname": ""})

    db = session_factory()
    try:
        user = db.query(User).filter(User.username == "alice").one()
        assert (user.firstname, user.lastname, user.bio) == ("Jo", "", None)
    finally:
        db.close()


def test_profile_firstname_is_sanitized(client):
    register_via_http(client)
    client.post(
        "/editprofile",
        data={
            "firstname": '<script>alert(1)</script><img src=x onerror=alert(2)>Jo<body onhashchange="go()" onload="x">',
            "lastname": "<b>bold</b>",
            "bio": "<script>bio()</script>",
        },
    )

    # Another logged-in user looks at alice's profile
    client.cookies.clear()
    register_via_http(client, username="bob")
    r = client.get("/profile/alice")
    assert r.status_code == 200

    cell = _firstname_cell(r.text)
    assert cell == 'Jo<body onhashchange="go()">'
    assert "onerror" not in r.text
    assert "onload" not in r.text
    assert "<script>" not in r.text
    # Not sanitized, only escaped by the template
    assert "&lt;b&gt;bold&lt;/b&gt;" in r.text
    assert "&lt;script&gt;bio()&lt;/script&gt;" in r.text


def test_profile_not_found(client):
    register_via_http(client)
    r = client.get("/profile/ghost")
    assert r.status_code == 404
    assert "User not found!" in r.text


def test_edit_when_account_vanished(client, session_factory):
    register_via_http(client)
    db = session_factory()
    try:
        db.query(User).filter(User.username == "alice").delete()
        db.commit()
    finally:
        db.close()

    r = client.get("/editprofile")
    assert r.status_code == 404
    assert "User not found!" in r.text

    r = client.post("/editprofile", data={"firstname": "x"})
    assert r.status_code == 404
    assert "User not found!" in r.text
    assert "Profile updated successfully" not in r.text


def test_static_assets_are_served(client):
    r = client.get("/static/style.css")
    assert r.status_code == 200
