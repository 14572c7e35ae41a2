from fliq.models.email_log import EmailLog

from conftest import PASSWORD, auth, next_week, onboard, signup


def book(client, token, provider, service=None, **overrides):
    body = {
        "providerId": provider, "serviceId": service, "date": next_week(), "startTime": "10:00",
        "duration": "3", "durationUnit": "hours", "location": "Ikoyi, Lagos", "paymentMethod": "wallet",
    }
    body.update(overrides)
    return client.post("/api/v1/bookings", headers=auth(token) if token else {}, json=body)


def test_health_ok(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_signup_login_and_me(client):
    token = signup(client, "bola@fliq.test", "client", "Bola")
    me = client.get("/api/v1/auth/me", headers=auth(token))
    assert me.status_code == 200
    assert me.json()["email"] == "bola@fliq.test"
    assert me.json()["role"] == "client"

    login = client.post("/api/v1/auth/login", json={"email": "BOLA@fliq.test", "password": PASSWORD})
    assert login.status_code == 200
    bad = client.post("/api/v1/auth/login", json={"email": "bola@fliq.test", "password": "wrong-pass"})
    assert bad.status_code == 401


def test_repeated_signup_returns_same_account(client):
    signup(client, "bola@fliq.test", "client", "Bola")
    again = signup(client, "bola@fliq.test", "client", "Bola")
    me = client.get("/api/v1/auth/me", headers=auth(again)).json()
    assert me["email"] == "bola@fliq.test"

    clash = client.post("/api/v1/auth/signup", json={
        "email": "bola@fliq.test", "password": "another-pass", "name": "Bola", "role": "client",
    })
    assert clash.status_code == 409


def test_signup_validation(client):
    short = client.post("/api/v1/auth/signup", json={"email": "a@fliq.test", "password": "short", "name": "A"})
    assert short.status_code == 400
    admin = client.post("/api/v1/auth/signup", json={
        "email": "a@fliq.test", "password": PASSWORD, "name": "A", "role": "admin",
    })
    assert admin.status_code == 400
    mismatch = client.post("/api/v1/auth/signup", json={
        "email": "a@fliq.test", "password": PASSWORD, "confirmPassword": PASSWORD + "x", "name": "A",
    })
    assert mismatch.status_code == 400


def test_refresh_and_change_password(client):
    r = client.post("/api/v1/auth/signup", json={
        "email": "c@fliq.test", "password": PASSWORD, "name": "C", "role": "client",
    })
    tokens = r.json()
    refreshed = client.post("/api/v1/auth/refresh", params={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    wrong_type = client.post("/api/v1/auth/refresh", params={"refresh_token": tokens["access_token"]})
    assert wrong_type.status_code == 401

    changed = client.post("/api/v1/auth/change-password", headers=auth(tokens["access_token"]), json={
        "oldPassword": PASSWORD, "newPassword": "brand-new-pass", "confirmPassword": "brand-new-pass",
    })
    assert changed.status_code == 200
    login = client.post("/api/v1/auth/login", json={"email": "c@fliq.test", "password": "brand-new-pass"})
    assert login.status_code == 200


def test_protected_routes_need_token(client):
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers=auth("not-a-jwt")).status_code == 401


def test_full_booking_lifecycle(client, client_token, admin_token, verified_provider):
    created = book(client, client_token, verified_provider["provider"], verified_provider["service"])
    assert created.status_code == 200, created.text
    booking = created.json()
    assert booking["status"] == "REQUESTED"
    assert (booking["estimatedAmount"], booking["platformFee"], booking["providerPayout"]) == (15750, 750, 15000)

    provider_auth = auth(verified_provider["token"])
    incoming = client.get("/api/v1/provider/bookings", headers=provider_auth).json()["items"]
    assert [b["id"] for b in incoming] == [booking["id"]]

    for action, status in (("accept", "ACCEPTED"), ("start", "IN_SERVICE"), ("complete", "COMPLETED")):
        r = client.post(f"/api/v1/provider/bookings/{booking['id']}/{action}", headers=provider_auth, json={})
        assert r.status_code == 200, r.text
        assert r.json()["status"] == status
    assert r.json()["finalAmount"] == 15750

    again = client.post(f"/api/v1/provider/bookings/{booking['id']}/complete", headers=provider_auth, json={})
    assert again.status_code == 409

    stats = client.get("/api/v1/admin/stats", headers=auth(admin_token)).json()
    assert stats["totalRevenue"] == 15750
    assert stats["totalBookings"] == 1
    assert stats["totalProviders"] == 1

    mine = client.get("/api/v1/bookings", headers=auth(client_token)).json()["items"]
    assert mine[0]["status"] == "COMPLETED"


def test_booking_errors(client, client_token, verified_provider):
    provider, service = verified_provider["provider"], verified_provider["service"]

    assert book(client, None, provider, service).status_code == 401
    assert book(client, verified_provider["token"], provider, service).status_code == 403

    missing_location = book(client, client_token, provider, service, location="")
    assert missing_location.status_code == 400
    assert "location is required" in missing_location.json()["detail"]

    too_short = book(client, client_token, provider, service, duration="1")
    assert too_short.status_code == 400
    assert "minimum booking is 2 hours" in too_short.json()["detail"]

    assert book(client, client_token, "missing", None).status_code == 404
    assert book(client, client_token, provider, "missing").status_code == 404


def test_unverified_provider_cannot_be_booked(client, client_token, provider_token):
    profile = onboard(client, provider_token)
    r = book(client, client_token, profile["id"])
    assert r.status_code == 400
    assert "provider is not verified" in r.json()["detail"]


def test_client_cancels_requested_booking(client, client_token, verified_provider):
    booking = book(client, client_token, verified_provider["provider"], verified_provider["service"]).json()

    stale = client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=auth(client_token),
                        json={"expectedVersion": booking["version"] + 1})
    assert stale.status_code == 409

    r = client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=auth(client_token),
                    json={"reason": "plans changed", "expectedVersion": booking["version"]})
    assert r.status_code == 200
    assert r.json()["status"] == "CANCELLED"
    assert r.json()["version"] == booking["version"] + 1

    again = client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=auth(client_token), json={})
    assert again.status_code == 409


def test_other_clients_cannot_see_booking(client, client_token, verified_provider):
    booking = book(client, client_token, verified_provider["provider"], verified_provider["service"]).json()
    other = signup(client, "other@fliq.test", "client", "Other")
    assert client.get(f"/api/v1/bookings/{booking['id']}", headers=auth(other)).status_code == 403
    assert client.get(f"/api/v1/bookings/{booking['id']}", headers=auth(client_token)).status_code == 200


def test_quote(client, verified_provider):
    r = client.post("/api/v1/public/quote", json={
        "providerId": verified_provider["provider"], "serviceId": verified_provider["service"],
        "duration": "2", "durationUnit": "days",
    })
    assert r.status_code == 200
    assert r.json() == {"baseAmount": 80000, "platformFee": 4000, "totalAmount": 84000,
                        "durationUnits": ["hours", "days"], "minBookingHours": 2}

    fallback = client.post("/api/v1/public/quote", json={
        "providerId": verified_provider["provider"], "duration": "3", "durationUnit": "hours",
    }).json()
    assert fallback["totalAmount"] == 15750
    assert fallback["durationUnits"] == ["hours"]

    blank = client.post("/api/v1/public/quote", json={
        "providerId": verified_provider["provider"], "duration": "", "durationUnit": "hours",
    }).json()
    assert blank["totalAmount"] == 0


def test_public_listing_shows_verified_providers_only(client, verified_provider):
    pending = signup(client, "new@fliq.test", "provider", "Newcomer")
    onboard(client, pending)

    items = client.get("/api/v1/public/providers").json()["items"]
    assert [p["id"] for p in items] == [verified_provider["provider"]]
    assert items[0]["services"][0]["title"] == "Event security"

    assert client.get("/api/v1/public/providers", params={"category": "companion"}).json()["items"] == []
    assert client.get("/api/v1/public/cities").json()["items"] == ["Lagos"]
    assert "bodyguard" in client.get("/api/v1/public/categories").json()["items"]


def test_verification_review_api(client, provider_token, admin_token, client_token):
    profile = onboard(client, provider_token)
    queue = client.get("/api/v1/admin/verifications", headers=auth(admin_token)).json()["items"]
    assert [p["id"] for p in queue] == [profile["id"]]
    assert queue[0]["verification"]["status"] == "pending"

    url = f"/api/v1/admin/verifications/{profile['id']}"
    assert client.post(f"{url}/approve").status_code == 401
    assert client.post(f"{url}/approve", headers=auth(client_token)).status_code == 403
    assert client.post("/api/v1/admin/verifications/missing/approve", headers=auth(admin_token)).status_code == 404

    no_reason = client.post(f"{url}/reject", headers=auth(admin_token), json={"reason": ""})
    assert no_reason.status_code == 400

    rejected = client.post(f"{url}/reject", headers=auth(admin_token), json={"reason": "ID is unreadable"})
    assert rejected.status_code == 200
    assert rejected.json()["verification"] == {
        "status": "rejected",
        "reviewedAt": rejected.json()["verification"]["reviewedAt"],
        "reviewedBy": rejected.json()["verification"]["reviewedBy"],
        "reason": "ID is unreadable",
    }

    stale = client.post(f"{url}/approve", headers=auth(admin_token),
                        json={"expectedVersion": profile["version"]})
    assert stale.status_code == 409

    # New documents put the provider back in the queue.
    resubmitted = onboard(client, provider_token, documents=["/media/verification_documents/x/id-2.pdf"])
    assert resubmitted["verification"]["status"] == "pending"
    approved = client.post(f"{url}/approve", headers=auth(admin_token),
                           json={"expectedVersion": resubmitted["version"]})
    assert approved.status_code == 200
    assert approved.json()["verified"] is True

    activity = client.get("/api/v1/admin/activity", headers=auth(admin_token),
                          params={"entityType": "provider", "entityId": profile["id"]}).json()["items"]
    actions = {a["action"] for a in activity}
    assert {"verification_rejected", "verification_approved", "verification_submitted"} <= actions


def test_services_management(client, provider_token):
    onboard(client, provider_token)
    headers = auth(provider_token)

    unpriced = client.post("/api/v1/provider/services", headers=headers,
                           json={"services": [{"title": "Escort"}]})
    assert unpriced.status_code == 400
    assert client.post("/api/v1/provider/services", headers=headers, json={"services": []}).status_code == 400

    draft = client.post("/api/v1/provider/services", headers=headers,
                        json={"services": [{"title": "Escort", "active": False}]}).json()["items"][0]
    toggled = client.post(f"/api/v1/provider/services/{draft['id']}/toggle", headers=headers)
    assert toggled.status_code == 400

    priced = client.patch(f"/api/v1/provider/services/{draft['id']}", headers=headers,
                          json={"price_week": 150000, "extras": [{"name": "Driver", "price": 20000}]})
    assert priced.status_code == 200
    assert priced.json()["durationUnits"] == ["weeks"]

    toggled = client.post(f"/api/v1/provider/services/{draft['id']}/toggle", headers=headers)
    assert toggled.status_code == 200
    assert toggled.json()["active"] is True

    listed = client.get("/api/v1/provider/services", headers=headers).json()["items"]
    assert listed[0]["extras"] == [{"name": "Driver", "price": 20000}]


def test_provider_routes_need_onboarding(client, provider_token, client_token):
    assert client.get("/api/v1/provider/me", headers=auth(provider_token)).status_code == 404
    assert client.get("/api/v1/provider/me", headers=auth(client_token)).status_code == 403
    bad = client.post("/api/v1/provider/onboarding", headers=auth(provider_token),
                      json={"category": "chef", "basePrice": 100})
    assert bad.status_code == 400


def test_disputes(client, client_token, admin_token, verified_provider):
    booking = book(client, client_token, verified_provider["provider"], verified_provider["service"]).json()
    url = f"/api/v1/bookings/{booking['id']}/disputes"

    assert client.post(url, headers=auth(client_token), json={"reason": " "}).status_code == 400
    opened = client.post(url, headers=auth(client_token), json={"reason": "Guard never arrived"})
    assert opened.status_code == 200
    dispute = opened.json()
    assert dispute["status"] == "OPEN"

    assert client.get("/api/v1/admin/stats", headers=auth(admin_token)).json()["pendingDisputes"] == 1
    resolve = f"/api/v1/admin/disputes/{dispute['id']}/resolve"
    r = client.post(resolve, headers=auth(admin_token), json={"note": "Refunded"})
    assert r.status_code == 200
    assert r.json()["status"] == "RESOLVED"
    assert client.post(resolve, headers=auth(admin_token), json={}).status_code == 409


def test_admin_deactivates_user(client, client_token, admin_token):
    users = client.get("/api/v1/admin/users", headers=auth(admin_token), params={"role": "client"}).json()
    assert users["total"] == 1
    user_id = users["items"][0]["id"]

    r = client.patch(f"/api/v1/admin/users/{user_id}", headers=auth(admin_token), params={"isActive": False})
    assert r.status_code == 200
    assert client.get("/api/v1/auth/me", headers=auth(client_token)).status_code == 401
    assert client.get("/api/v1/admin/users", headers=auth(client_token)).status_code == 401


def test_admin_routes_forbidden_for_clients(client, client_token):
    assert client.get("/api/v1/admin/stats", headers=auth(client_token)).status_code == 403


def test_numeric_duration_accepted(client, client_token, verified_provider):
    quote = client.post("/api/v1/public/quote", json={
        "providerId": verified_provider["provider"], "serviceId": verified_provider["service"],
        "duration": 3, "durationUnit": "hours",
    })
    assert quote.status_code == 200, quote.text
    assert (quote.json()["baseAmount"], quote.json()["platformFee"], quote.json()["totalAmount"]) == (15000, 750, 15750)

    created = book(client, client_token, verified_provider["provider"], verified_provider["service"],
                   duration=2, durationUnit="days")
    assert created.status_code == 200, created.text
    assert created.json()["duration"] == 2
    assert created.json()["estimatedAmount"] == 84000

    zero = book(client, client_token, verified_provider["provider"], verified_provider["service"], duration=0)
    assert zero.status_code == 400
    assert "duration must be a positive whole number" in zero.json()["detail"]


def test_provider_is_mailed_about_new_request(client, db, client_token, verified_provider):
    booking = book(client, client_token, verified_provider["provider"], verified_provider["service"]).json()
    mail = db.query(EmailLog).filter(EmailLog.related_entity_id == booking["id"]).one()
    assert mail.to_email == "tunde@fliq.test"
    assert "Your payout: NGN 15,000" in mail.body
