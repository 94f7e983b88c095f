import uuid
from datetime import timedelta

import pytest
from fastapi_users.password import PasswordHelper

from facepet.core.config import settings
from facepet.models import Breed, Coupon, Gender, Owner, Pet, PetIdPool, User, UserRole
from facepet.services.verification_store import (
    ACCOUNT_VERIFICATION,
    CODE_MISMATCH_MESSAGE,
    CODE_NOT_FOUND_MESSAGE,
    PASSWORD_CHANGE,
)
from facepet.utils.clock import utcnow

password_helper = PasswordHelper()


def pet_payload(**overrides):
    payload = {
        "pet_name": "Rex",
        "image_url": "https://img/rex.png",
        "breed_id": 1,
        "gender_id": 1,
        "owner_full_name": "Dana Levi",
        "owner_phone_number": "0501234567",
        "owner_email_address": "dana@example.com",
        "owner_home_address": "1 Herzl St, Tel Aviv",
        "vet_name": "Dr. Cohen",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
async def owner(add_rows, user_factory):
    user = user_factory(email="dana@example.com")
    await add_rows(user, Breed(id=1, en="Labrador", he="לברדור"), Gender(id=1, en="Male", he="זכר"))
    return user


async def load(session_factory, model, key):
    async with session_factory() as session:
        return await session.get(model, key)


# Pets

async def test_register_pet_marks_pool_id_used(api, act_as, owner, add_rows, session_factory):
    pet_id = uuid.uuid4()
    await add_rows(PetIdPool(id=pet_id, is_used=False))
    act_as(owner)

    resp = await api.post(f"/api/v1/pets/{pet_id}", json=pet_payload())
    assert resp.status_code == 201
    assert resp.json() == {"success": True, "pet": {"id": str(pet_id)}}

    assert (await load(session_factory, PetIdPool, pet_id)).is_used
    pet = await load(session_factory, Pet, pet_id)
    assert pet.user_id == owner.id
    assert pet.vet_id is not None

    mine = await api.get("/api/v1/pets/")
    assert [p["name"] for p in mine.json()] == ["Rex"]


async def test_register_pet_rejects_used_or_unknown_id(api, act_as, owner, add_rows):
    used_id = uuid.uuid4()
    await add_rows(PetIdPool(id=used_id, is_used=True))
    act_as(owner)

    for pet_id in (used_id, uuid.uuid4()):
        resp = await api.post(f"/api/v1/pets/{pet_id}", json=pet_payload())
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Pet ID is either already used or does not exist."


async def test_availability_follows_the_pool(api, add_rows):
    free_id = uuid.uuid4()
    await add_rows(PetIdPool(id=free_id, is_used=False))

    assert (await api.get(f"/api/v1/pets/{free_id}/availability")).json() == {"success": True}
    taken = await api.get(f"/api/v1/pets/{uuid.uuid4()}/availability")
    assert taken.json()["success"] is False


async def test_only_the_owner_may_change_a_pet(api, act_as, owner, add_rows, user_factory, session_factory):
    pet_id = uuid.uuid4()
    await add_rows(PetIdPool(id=pet_id, is_used=False))
    act_as(owner)
    assert (await api.post(f"/api/v1/pets/{pet_id}", json=pet_payload())).status_code == 201

    stranger = user_factory(email="stranger@example.com")
    await add_rows(stranger)
    act_as(stranger)

    assert (await api.put(f"/api/v1/pets/{pet_id}", json=pet_payload(pet_name="Stolen"))).status_code == 404
    assert (await api.delete(f"/api/v1/pets/{pet_id}")).status_code == 404
    assert (await load(session_factory, Pet, pet_id)).name == "Rex"


async def test_update_pet_by_owner(api, act_as, owner, add_rows, session_factory):
    pet_id = uuid.uuid4()
    await add_rows(PetIdPool(id=pet_id, is_used=False))
    act_as(owner)
    await api.post(f"/api/v1/pets/{pet_id}", json=pet_payload())

    resp = await api.put(f"/api/v1/pets/{pet_id}", json=pet_payload(pet_name="Rexy", owner_full_name="Dana L."))
    assert resp.status_code == 200

    pet = await load(session_factory, Pet, pet_id)
    assert pet.name == "Rexy"
    assert (await load(session_factory, Owner, pet.owner_id)).full_name == "Dana L."


async def test_delete_pet_releases_pool_id(api, act_as, owner, add_rows, session_factory):
    pet_id = uuid.uuid4()
    await add_rows(PetIdPool(id=pet_id, is_used=False))
    act_as(owner)
    await api.post(f"/api/v1/pets/{pet_id}", json=pet_payload())
    owner_id = (await load(session_factory, Pet, pet_id)).owner_id

    resp = await api.delete(f"/api/v1/pets/{pet_id}")
    assert resp.status_code == 200

    assert await load(session_factory, Pet, pet_id) is None
    assert await load(session_factory, Owner, owner_id) is None
    assert not (await load(session_factory, PetIdPool, pet_id)).is_used

    # The released id can be registered again
    assert (await api.post(f"/api/v1/pets/{pet_id}", json=pet_payload())).status_code == 201


# Account verification

@pytest.fixture
async def unverified(add_rows, user_factory):
    user = user_factory(email="new@example.com", is_verified=False)
    await add_rows(user)
    return user


async def test_verify_code_verifies_and_logs_in(api, store, mailer, unverified, session_factory):
    store.code_factory = lambda: "482913"
    store.issue(unverified.email, purpose=ACCOUNT_VERIFICATION)

    resp = await api.post("/api/v1/auth/verify-code", json={"email": unverified.email, "code": "482913"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["access_token"]
    assert body["token_type"] == "bearer"

    user = await load(session_factory, User, unverified.id)
    assert user.is_verified
    assert user.email_verified_at is not None
    assert mailer.sent[-1] == {"to": unverified.email, "notice": "welcome"}


async def test_verify_code_ignores_public_otp_codes(api, store, unverified, session_factory):
    store.code_factory = lambda: "482913"
    store.issue(unverified.email)

    resp = await api.post("/api/v1/auth/verify-code", json={"email": unverified.email, "code": "482913"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == CODE_NOT_FOUND_MESSAGE
    assert not (await load(session_factory, User, unverified.id)).is_verified


async def test_verify_code_gives_no_token_to_verified_accounts(api, store, add_rows, user_factory):
    user = user_factory(email="done@example.com", is_verified=True)
    await add_rows(user)
    store.code_factory = lambda: "482913"
    store.issue(user.email, purpose=ACCOUNT_VERIFICATION)

    resp = await api.post("/api/v1/auth/verify-code", json={"email": user.email, "code": "482913"})
    assert resp.status_code == 400
    assert "access_token" not in resp.json()
    assert resp.json()["detail"] == "Email is already verified."


async def test_verify_code_drops_code_after_repeated_guesses(api, store, unverified):
    store.code_factory = lambda: "482913"
    store.issue(unverified.email, purpose=ACCOUNT_VERIFICATION)

    for _ in range(settings.MAX_CODE_ATTEMPTS):
        resp = await api.post("/api/v1/auth/verify-code", json={"email": unverified.email, "code": "000000"})
        assert resp.json()["detail"] == CODE_MISMATCH_MESSAGE

    resp = await api.post("/api/v1/auth/verify-code", json={"email": unverified.email, "code": "482913"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == CODE_NOT_FOUND_MESSAGE


async def test_resend_verification_issues_account_code(api, store, mailer, unverified):
    resp = await api.post("/api/v1/auth/resend-verification", json={"email": unverified.email})
    assert resp.status_code == 200

    record = store.get(unverified.email, purpose=ACCOUNT_VERIFICATION)
    assert record.code == mailer.sent[-1]["code"]
    assert store.get(unverified.email) is None


# Password change

@pytest.fixture
async def member(add_rows, user_factory):
    user = user_factory(email="member@example.com", hashed_password=password_helper.hash("old-password-1"))
    await add_rows(user)
    return user


async def test_password_change_is_applied_after_code(api, act_as, store, mailer, member, session_factory):
    act_as(member)
    resp = await api.post(
        "/api/v1/auth/password/change-request",
        json={"current_password": "old-password-1", "new_password": "new-password-2"},
    )
    assert resp.status_code == 200

    pending = store.get(member.email, purpose=PASSWORD_CHANGE)
    assert password_helper.verify_and_update("new-password-2", pending.payload)[0]
    code = mailer.sent[-1]["code"]

    resp = await api.post("/api/v1/auth/password/change-confirm", json={"code": code})
    assert resp.status_code == 200

    user = await load(session_factory, User, member.id)
    assert password_helper.verify_and_update("new-password-2", user.hashed_password)[0]
    assert mailer.sent[-1] == {"to": member.email, "notice": "password_changed"}


async def test_password_change_rejects_wrong_current_password(api, act_as, store, member):
    act_as(member)
    resp = await api.post(
        "/api/v1/auth/password/change-request",
        json={"current_password": "guess", "new_password": "new-password-2"},
    )
    assert resp.status_code == 400
    assert store.get(member.email, purpose=PASSWORD_CHANGE) is None


async def test_password_change_wrong_code_keeps_old_password(api, act_as, store, member, session_factory):
    act_as(member)
    store.code_factory = lambda: "482913"
    await api.post(
        "/api/v1/auth/password/change-request",
        json={"current_password": "old-password-1", "new_password": "new-password-2"},
    )

    resp = await api.post("/api/v1/auth/password/change-confirm", json={"code": "000000"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == CODE_MISMATCH_MESSAGE

    user = await load(session_factory, User, member.id)
    assert password_helper.verify_and_update("old-password-1", user.hashed_password)[0]


# Password reset

async def test_forgot_and_reset_password(api, mailer, member, session_factory):
    resp = await api.post("/api/v1/auth/forgot-password", json={"email": "MEMBER@example.com"})
    assert resp.status_code == 200

    token = (await load(session_factory, User, member.id)).reset_password_token
    assert token
    assert mailer.sent[-1] == {"to": member.email, "reset_token": token}

    resp = await api.post("/api/v1/auth/reset-password", json={"token": token, "new_password": "brand-new-pass"})
    assert resp.status_code == 200

    user = await load(session_factory, User, member.id)
    assert user.reset_password_token is None
    assert password_helper.verify_and_update("brand-new-pass", user.hashed_password)[0]

    again = await api.post("/api/v1/auth/reset-password", json={"token": token, "new_password": "another-pass"})
    assert again.status_code == 400


async def test_forgot_password_for_unknown_email_is_silent(api, mailer):
    resp = await api.post("/api/v1/auth/forgot-password", json={"email": "ghost@example.com"})
    assert resp.status_code == 200
    assert mailer.sent == []


async def test_expired_reset_token_is_rejected(api, member, session_factory):
    async with session_factory() as session:
        user = await session.get(User, member.id)
        user.reset_password_token = "expired-token"
        user.reset_password_token_expires = utcnow() - timedelta(minutes=1)
        await session.commit()

    resp = await api.post("/api/v1/auth/reset-password", json={"token": "expired-token", "new_password": "brand-new-pass"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid or expired reset token."


# Admin CRUD

@pytest.fixture
async def admin(add_rows, user_factory, act_as):
    user = user_factory(UserRole.ADMIN, email="admin@example.com")
    await add_rows(user)
    return act_as(user)


def coupon_payload(**overrides):
    now = utcnow()
    payload = {
        "name": "Free grooming",
        "points": 50,
        "valid_from": (now - timedelta(days=1)).isoformat(),
        "valid_to": (now + timedelta(days=1)).isoformat(),
    }
    payload.update(overrides)
    return payload


async def test_admin_coupon_lifecycle(api, admin, session_factory):
    resp = await api.post("/api/v1/admin/coupons/", json=coupon_payload())
    assert resp.status_code == 201
    coupon_id = resp.json()["id"]

    active = await api.get("/api/v1/coupons/active")
    assert [c["id"] for c in active.json()] == [coupon_id]

    resp = await api.put(f"/api/v1/admin/coupons/{coupon_id}", json={"is_active": False})
    assert resp.status_code == 200
    assert (await api.get("/api/v1/coupons/active")).json() == []

    resp = await api.delete(f"/api/v1/admin/coupons/{coupon_id}")
    assert resp.status_code == 200
    assert await load(session_factory, Coupon, uuid.UUID(coupon_id)) is None


async def test_coupon_update_rejects_null_name(api, admin, session_factory):
    coupon_id = (await api.post("/api/v1/admin/coupons/", json=coupon_payload())).json()["id"]

    resp = await api.put(f"/api/v1/admin/coupons/{coupon_id}", json={"name": None})
    assert resp.status_code == 422
    assert (await load(session_factory, Coupon, uuid.UUID(coupon_id))).name == "Free grooming"


async def test_coupon_update_compares_against_stored_dates(api, admin):
    coupon_id = (
        await api.post(
            "/api/v1/admin/coupons/",
            json=coupon_payload(valid_from="2030-01-01T00:00:00Z", valid_to="2030-02-01T00:00:00Z"),
        )
    ).json()["id"]

    resp = await api.put(f"/api/v1/admin/coupons/{coupon_id}", json={"valid_to": "2030-03-01T00:00:00+02:00"})
    assert resp.status_code == 200

    resp = await api.put(f"/api/v1/admin/coupons/{coupon_id}", json={"valid_to": "2029-12-31T00:00:00"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "valid_to must not be before valid_from"


async def test_business_update_rejects_null_and_keeps_row(api, admin):
    resp = await api.post("/api/v1/admin/businesses/", json={"name": "Paws Clinic", "tags": ["vet"]})
    assert resp.status_code == 201
    business_id = resp.json()["id"]

    assert (await api.put(f"/api/v1/admin/businesses/{business_id}", json={"tags": None})).status_code == 422

    resp = await api.put(f"/api/v1/admin/businesses/{business_id}", json={"rating": 4.5})
    assert resp.status_code == 200
    assert resp.json()["tags"] == ["vet"]


async def test_ad_update_compares_against_stored_dates(api, admin):
    resp = await api.post(
        "/api/v1/admin/ads/",
        json={
            "title": "Spring sale",
            "type": "image",
            "content": "https://img/ad.png",
            "start_date": "2030-01-01T00:00:00Z",
            "end_date": "2030-01-10T00:00:00Z",
        },
    )
    assert resp.status_code == 201
    ad_id = resp.json()["id"]

    assert (await api.put(f"/api/v1/admin/ads/{ad_id}", json={"end_date": "2030-01-20T00:00:00+03:00"})).status_code == 200
    assert (await api.put(f"/api/v1/admin/ads/{ad_id}", json={"end_date": "2029-12-01T00:00:00"})).status_code == 400
    assert (await api.put(f"/api/v1/admin/ads/{ad_id}", json={"title": None})).status_code == 422


async def test_non_admin_cannot_manage_coupons(api, act_as, member):
    act_as(member)
    assert (await api.post("/api/v1/admin/coupons/", json=coupon_payload())).status_code == 403
