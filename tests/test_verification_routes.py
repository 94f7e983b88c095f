from facepet.routers.verification import MISSING_FIELDS_MESSAGE
from facepet.services.verification_store import ACCOUNT_VERIFICATION, CODE_NOT_FOUND_MESSAGE


def test_send_verification_issues_and_mails_code(client, store, mailer):
    resp = client.post("/api/v1/send-verification", params={"email": "a@example.com"})

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Verification code sent"}
    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == "a@example.com"
    assert store.get("a@example.com").code == mailer.sent[0]["code"]


def test_send_verification_is_rate_limited(client, limiter, mailer):
    for _ in range(5):
        assert client.post("/api/v1/send-verification", params={"email": "a@example.com"}).status_code == 200

    resp = client.post("/api/v1/send-verification", params={"email": "a@example.com"})
    assert resp.status_code == 429
    body = resp.json()
    assert body["success"] is False
    assert body["resetTime"] == limiter.status()["entries"][0]["reset_time"]
    assert body["error"].startswith("Too many requests")
    assert len(mailer.sent) == 5


def test_failed_delivery_discards_code(client, store, mailer):
    mailer.fail = True
    resp = client.post("/api/v1/send-verification", params={"email": "a@example.com"})

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Failed to send verification code"}
    assert store.get("a@example.com") is None


def test_send_verification_rejects_bad_email(client):
    resp = client.post("/api/v1/send-verification", params={"email": "not-an-email"})
    assert resp.status_code == 422


def test_verify_otp_succeeds_once(client, store):
    store.code_factory = lambda: "482913"
    store.issue("a@example.com")

    resp = client.post("/api/v1/verify-otp", json={"email": "a@example.com", "code": "482913"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "verified": True, "message": "Email verified successfully"}

    again = client.post("/api/v1/verify-otp", json={"email": "a@example.com", "code": "482913"})
    assert again.status_code == 400
    assert again.json() == {"success": False, "error": CODE_NOT_FOUND_MESSAGE}


def test_verify_otp_wrong_code(client, store):
    store.code_factory = lambda: "482913"
    store.issue("a@example.com")

    resp = client.post("/api/v1/verify-otp", json={"email": "a@example.com", "code": "111111"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid verification code"
    assert store.get("a@example.com") is not None


def test_verify_otp_after_expiry(client, store, clock):
    store.code_factory = lambda: "482913"
    store.issue("a@example.com")
    clock.advance(minutes=11)

    resp = client.post("/api/v1/verify-otp", json={"email": "a@example.com", "code": "482913"})
    assert resp.status_code == 400
    assert resp.json()["error"] == CODE_NOT_FOUND_MESSAGE


def test_verify_otp_missing_fields(client):
    resp = client.post("/api/v1/verify-otp", json={"email": "a@example.com"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": MISSING_FIELDS_MESSAGE}

    resp = client.post("/api/v1/verify-otp", json={"code": "482913"})
    assert resp.status_code == 400


def test_verify_otp_at_exact_expiry(client, store, clock):
    store.code_factory = lambda: "482913"
    store.issue("a@example.com")
    clock.advance(minutes=10)

    resp = client.post("/api/v1/verify-otp", json={"email": "a@example.com", "code": "482913"})
    assert resp.status_code == 200


def test_public_otp_does_not_consume_account_code(client, store):
    store.code_factory = lambda: "482913"
    store.issue("a@example.com", purpose=ACCOUNT_VERIFICATION)

    resp = client.post("/api/v1/verify-otp", json={"email": "a@example.com", "code": "482913"})
    assert resp.status_code == 400
    assert store.get("a@example.com", purpose=ACCOUNT_VERIFICATION) is not None
