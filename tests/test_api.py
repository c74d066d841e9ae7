"""
End-to-end checks through the HTTP layer.
"""
from datetime import timedelta

import httpx
import pytest
from sqlalchemy import func, select

from uniconnect.controllers.otp_controller import issue_otp
from uniconnect.core.clock import utcnow
from uniconnect.core.config import Settings
from uniconnect.main import create_app
from uniconnect.models.student_otp import StudentOtp

from conftest import student_payload


async def _register(client, **overrides) -> int:
    r = await client.post("/api/students", json=student_payload(**overrides))
    assert r.status_code == 201, r.text
    return r.json()["id"]


async def _set_status(client, admin_headers, student_id, status, **extra):
    r = await client.patch(f"/api/students/{student_id}", json={"status": status, **extra}, headers=admin_headers)
    assert r.status_code == 200, r.text
    return r.json()


# ─── Registration ────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_register_then_duplicate_email_conflicts(client):
    await _register(client)

    r = await client.post("/api/students", json=student_payload(email=" SARA@uni.edu ", fullName="Second Sara"))
    assert r.status_code == 409
    assert "already registered" in r.json()["detail"]


@pytest.mark.asyncio
async def test_register_missing_fields_is_400(client):
    payload = student_payload()
    del payload["bio"]

    r = await client.post("/api/students", json=payload)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_register_rejects_unknown_track(client):
    r = await client.post("/api/students", json=student_payload(track="Quantum Basket Weaving"))
    assert r.status_code == 400


# ─── Listing ─────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_register_rejects_unknown_avatar_seed(client):
    r = await client.post("/api/students", json=student_payload(avatar="robot-9"))
    assert r.status_code == 400

    r = await client.post("/api/students", json=student_payload(avatar="young-male-6"))
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_public_listing_hides_email_and_non_approved(client, admin_headers):
    approved_id = await _register(client, email="a@uni.edu")
    await _register(client, email="b@uni.edu")
    await _set_status(client, admin_headers, approved_id, "approved")

    r = await client.get("/api/students")
    assert r.status_code == 200
    body = r.json()
    assert [s["id"] for s in body] == [approved_id]
    assert "email" not in body[0]
    assert body[0]["fullName"] == "Sara Ahmed"
    assert body[0]["telegram"] == "sara"
    assert body[0]["avatarUrl"].startswith("https://api.dicebear.com/")


@pytest.mark.asyncio
async def test_public_listing_ignores_status_without_admin_key(client, admin_headers):
    pending_id = await _register(client)

    r = await client.get("/api/students", params={"status": "pending"})
    assert r.json() == []

    r = await client.get("/api/students", params={"status": "pending"}, headers=admin_headers)
    assert [s["id"] for s in r.json()] == [pending_id]
    assert "email" not in r.json()[0]


@pytest.mark.asyncio
async def test_public_listing_puts_featured_first(client, admin_headers):
    a = await _register(client, email="a@uni.edu", fullName="Alice")
    b = await _register(client, email="b@uni.edu", fullName="Bilal")
    c = await _register(client, email="c@uni.edu", fullName="Chen")
    await _set_status(client, admin_headers, a, "approved", featured=True)
    await _set_status(client, admin_headers, b, "approved")
    await _set_status(client, admin_headers, c, "approved", featured=True)

    ids = [s["id"] for s in (await client.get("/api/students")).json()]

    assert set(ids[:2]) == {a, c}
    assert ids[2] == b


@pytest.mark.asyncio
async def test_public_listing_filters_by_track_and_query(client, admin_headers):
    a = await _register(client, email="a@uni.edu", skills=["PyTorch"])
    b = await _register(client, email="b@uni.edu", track="Mobile Development", skills=["Flutter"])
    for sid in (a, b):
        await _set_status(client, admin_headers, sid, "approved")

    r = await client.get("/api/students", params={"track": "Mobile Development"})
    assert [s["id"] for s in r.json()] == [b]

    r = await client.get("/api/students", params={"q": "pytorch"})
    assert [s["id"] for s in r.json()] == [a]


@pytest.mark.asyncio
async def test_admin_listing_includes_email_and_every_status(client, admin_headers):
    await _register(client, email="a@uni.edu")
    hidden = await _register(client, email="b@uni.edu")
    await _set_status(client, admin_headers, hidden, "hidden")

    r = await client.get("/api/admin/students", headers=admin_headers)
    assert r.status_code == 200
    assert {s["email"] for s in r.json()} == {"a@uni.edu", "b@uni.edu"}

    r = await client.get("/api/admin/students", params={"status": "hidden"}, headers=admin_headers)
    assert [s["id"] for s in r.json()] == [hidden]


@pytest.mark.asyncio
async def test_admin_export_and_stats(client, admin_headers):
    await _register(client, email="a@uni.edu")

    r = await client.get("/api/admin/students/export", headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=students_export_" in r.headers["content-disposition"]
    assert '"a@uni.edu"' in r.text

    r = await client.get("/api/admin/students/stats", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["overall"]["pending"] == 1


# ─── Single student / admin writes ───────────────────────────────────────────
@pytest.mark.asyncio
async def test_get_single_student(client):
    sid = await _register(client)

    r = await client.get(f"/api/students/{sid}")
    assert r.status_code == 200
    assert r.json()["email"] == "sara@uni.edu"
    assert r.json()["status"] == "pending"

    assert (await client.get("/api/students/9999")).status_code == 404
    assert (await client.get("/api/students/not-a-number")).status_code == 400


@pytest.mark.asyncio
async def test_admin_patch_rejects_unknown_status(client, admin_headers):
    sid = await _register(client)

    r = await client.patch(f"/api/students/{sid}", json={"status": "archived"}, headers=admin_headers)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_admin_patch_never_sets_created_at(client, admin_headers):
    sid = await _register(client)
    before = (await client.get(f"/api/students/{sid}")).json()

    r = await client.patch(
        f"/api/students/{sid}",
        json={"bio": "Updated by admin", "createdAt": "2000-01-01T00:00:00"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["bio"] == "Updated by admin"
    assert r.json()["createdAt"] == before["createdAt"]


@pytest.mark.asyncio
async def test_admin_delete(client, admin_headers):
    sid = await _register(client)

    r = await client.delete(f"/api/students/{sid}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"success": True}

    assert (await client.delete(f"/api/students/{sid}", headers=admin_headers)).status_code == 404


# ─── Admin key ───────────────────────────────────────────────────────────────
@pytest.mark.asyncio
@pytest.mark.parametrize("headers", [{}, {"x-admin-key": "wrong"}])
async def test_admin_routes_require_the_key(client, headers):
    sid = await _register(client)

    assert (await client.get("/api/admin/students", headers=headers)).status_code == 401
    assert (await client.patch(f"/api/students/{sid}", json={"status": "approved"}, headers=headers)).status_code == 401
    assert (await client.delete(f"/api/students/{sid}", headers=headers)).status_code == 401
    assert (await client.get("/api/admin/settings", headers=headers)).status_code == 401


@pytest.mark.asyncio
async def test_admin_routes_fail_closed_without_server_secret(settings, database, admin_headers):
    app = create_app(Settings(**{**settings.model_dump(), "ADMIN_SECRET_KEY": None}, _env_file=None))
    app.state.database = database

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        r = await c.get("/api/admin/students", headers=admin_headers)

    assert r.status_code == 500
    assert "not configured" in r.json()["detail"]


# ─── OTP self-service edit ───────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_otp_send_for_unknown_email_is_404(client, sent_emails):
    r = await client.post("/api/otp/send", json={"email": "ghost@uni.edu"})
    assert r.status_code == 404
    assert sent_emails == []


@pytest.mark.asyncio
async def test_full_self_service_edit_flow(client, sent_emails):
    sid = await _register(client)

    r = await client.post("/api/otp/send", json={"email": "Sara@uni.edu"})
    assert r.status_code == 200
    assert len(sent_emails) == 1
    assert sent_emails[0]["to_email"] == "sara@uni.edu"
    code = sent_emails[0]["code"]

    r = await client.post("/api/otp/verify", json={"email": "sara@uni.edu", "code": code})
    assert r.status_code == 200
    assert r.json() == {"verified": True, "studentId": sid}

    r = await client.patch(
        f"/api/students/{sid}/edit",
        json={
            "email": "sara@uni.edu",
            "code": code,
            "bio": "Now also doing NLP",
            "telegram": "https://t.me/sara_nlp",
            "status": "approved",
            "featured": True,
            "createdAt": "2000-01-01T00:00:00",
        },
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["student"]["bio"] == "Now also doing NLP"
    assert body["student"]["telegram"] == "sara_nlp"
    assert body["student"]["status"] == "pending"
    assert body["student"]["featured"] is False
    assert body["student"]["createdAt"] != "2000-01-01T00:00:00"


@pytest.mark.asyncio
async def test_verify_twice_fails_the_second_time(client, sent_emails):
    await _register(client)
    await client.post("/api/otp/send", json={"email": "sara@uni.edu"})
    code = sent_emails[0]["code"]

    assert (await client.post("/api/otp/verify", json={"email": "sara@uni.edu", "code": code})).status_code == 200

    r = await client.post("/api/otp/verify", json={"email": "sara@uni.edu", "code": code})
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid or expired verification code"


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["", "12", "123456789", "abcdef"])
async def test_verify_rejects_malformed_codes_uniformly(client, db_session, code):
    await _register(client)
    # issued two hours ago, so any verify call should clear it
    await issue_otp(db_session, "sara@uni.edu", now=utcnow() - timedelta(hours=2))

    r = await client.post("/api/otp/verify", json={"email": "sara@uni.edu", "code": code})
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid or expired verification code"

    remaining = (await db_session.execute(select(func.count(StudentOtp.id)))).scalar_one()
    assert remaining == 0


@pytest.mark.asyncio
async def test_edit_without_verification_is_401(client, sent_emails):
    sid = await _register(client)
    await client.post("/api/otp/send", json={"email": "sara@uni.edu"})
    code = sent_emails[0]["code"]

    r = await client.patch(f"/api/students/{sid}/edit", json={"email": "sara@uni.edu", "code": code, "bio": "x"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_edit_without_credentials_is_400(client):
    sid = await _register(client)

    r = await client.patch(f"/api/students/{sid}/edit", json={"bio": "x"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_edit_after_admin_changed_email_is_403(client, admin_headers, sent_emails):
    sid = await _register(client)
    await client.post("/api/otp/send", json={"email": "sara@uni.edu"})
    code = sent_emails[0]["code"]
    await client.post("/api/otp/verify", json={"email": "sara@uni.edu", "code": code})

    r = await client.patch(f"/api/students/{sid}", json={"email": "sara.new@uni.edu"}, headers=admin_headers)
    assert r.status_code == 200

    r = await client.patch(f"/api/students/{sid}/edit", json={"email": "sara@uni.edu", "code": code, "bio": "x"})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_email_failure_keeps_the_code(client, monkeypatch):
    from uniconnect.controllers import otp_controller
    from uniconnect.core.email_service import EmailDispatchError

    sent: list[str] = []

    async def failing_send(settings, **kwargs):
        sent.append(kwargs["code"])
        raise EmailDispatchError("Sendinblue error 502: bad gateway")

    monkeypatch.setattr(otp_controller, "send_otp_email", failing_send)
    await _register(client)

    r = await client.post("/api/otp/send", json={"email": "sara@uni.edu"})
    assert r.status_code == 500
    assert r.json()["detail"].startswith("Failed to send verification email")

    # the stored challenge still works
    r = await client.post("/api/otp/verify", json={"email": "sara@uni.edu", "code": sent[0]})
    assert r.status_code == 200


# ─── Settings ────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_public_settings_defaults(client):
    r = await client.get("/api/settings")
    assert r.status_code == 200
    body = r.json()
    assert body["maintenanceMode"] is False
    assert body["siteName"] == "UniConnect"
    assert body["featuredLabel"] == "مبرمج المنصة"
    assert "updatedAt" not in body


@pytest.mark.asyncio
async def test_admin_settings_patch_roundtrip(client, admin_headers):
    first = (await client.get("/api/admin/settings", headers=admin_headers)).json()

    r = await client.patch(
        "/api/admin/settings",
        json={"maintenanceMode": True, "maintenanceMessage": "Back at 6pm", "_id": "zzz", "updatedAt": "2000-01-01"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == first["id"]
    assert body["maintenanceMode"] is True
    assert body["updatedAt"] != "2000-01-01"

    public = (await client.get("/api/settings")).json()
    assert public["maintenanceMode"] is True
    assert public["maintenanceMessage"] == "Back at 6pm"


@pytest.mark.asyncio
async def test_health(client):
    assert (await client.get("/health")).json() == {"status": "healthy"}
