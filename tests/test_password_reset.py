from fliq.core.security import create_access_token, create_reset_token
from fliq.models.email_log import EmailLog
from fliq.models.user import User

from conftest import PASSWORD, signup

NEW_PASSWORD = "fresh-pass-22"


def mailed_token(db, email):
    mail = db.query(EmailLog).filter(EmailLog.to_email == email).one()
    assert mail.subject == "Reset your fliQ password"
    assert "/auth/update-password?token=" in mail.body
    return mail.body.split("token=", 1)[1].split()[0]


def login(client, email, password):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


def test_reset_with_mailed_link(client, db):
    signup(client, "ife@fliq.test", "client", "Ife")
    r = client.post("/api/v1/auth/forgot-password", json={"email": "IFE@fliq.test"})
    assert r.status_code == 200
    token = mailed_token(db, "ife@fliq.test")

    reset = client.post("/api/v1/auth/reset-password", json={
        "token": token, "newPassword": NEW_PASSWORD, "confirmPassword": NEW_PASSWORD,
    })
    assert reset.status_code == 200
    assert login(client, "ife@fliq.test", NEW_PASSWORD).status_code == 200
    assert login(client, "ife@fliq.test", PASSWORD).status_code == 401

    # the link stops working once the password changed
    again = client.post("/api/v1/auth/reset-password", json={"token": token, "newPassword": "third-pass-33"})
    assert again.status_code == 400


def test_unknown_address_gets_same_answer(client, db):
    r = client.post("/api/v1/auth/forgot-password", json={"email": "nobody@fliq.test"})
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert db.query(EmailLog).count() == 0


def test_expired_link_refused(client, db):
    signup(client, "ife@fliq.test", "client", "Ife")
    user = db.query(User).filter(User.email == "ife@fliq.test").one()
    token = create_reset_token(user.id, user.password_hash[-16:], expires_minutes=-1)
    r = client.post("/api/v1/auth/reset-password", json={"token": token, "newPassword": NEW_PASSWORD})
    assert r.status_code == 400
    assert login(client, "ife@fliq.test", PASSWORD).status_code == 200


def test_access_token_is_not_a_reset_link(client, db):
    signup(client, "ife@fliq.test", "client", "Ife")
    user = db.query(User).filter(User.email == "ife@fliq.test").one()
    r = client.post("/api/v1/auth/reset-password", json={
        "token": create_access_token(user.id), "newPassword": NEW_PASSWORD,
    })
    assert r.status_code == 400


def test_reset_token_is_not_an_access_token(client, db):
    signup(client, "ife@fliq.test", "client", "Ife")
    client.post("/api/v1/auth/forgot-password", json={"email": "ife@fliq.test"})
    token = mailed_token(db, "ife@fliq.test")
    assert client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401


def test_new_password_rules_apply(client, db):
    signup(client, "ife@fliq.test", "client", "Ife")
    client.post("/api/v1/auth/forgot-password", json={"email": "ife@fliq.test"})
    token = mailed_token(db, "ife@fliq.test")
    short = client.post("/api/v1/auth/reset-password", json={"token": token, "newPassword": "short"})
    assert short.status_code == 400
    mismatch = client.post("/api/v1/auth/reset-password", json={
        "token": token, "newPassword": NEW_PASSWORD, "confirmPassword": NEW_PASSWORD + "x",
    })
    assert mismatch.status_code == 400
    assert login(client, "ife@fliq.test", PASSWORD).status_code == 200
