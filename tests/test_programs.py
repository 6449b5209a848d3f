import pytest

from sevadaan.core.permissions import Role
from sevadaan.models.enums import NGOStatus

PROGRAM = {
    "title": "Winter blanket drive",
    "description": "Collect and distribute blankets across Pune shelters.",
    "category": "relief",
    "max_participants": 1,
}


async def _active_program(client, admin, auth_headers, **overrides):
    created = await client.post("/api/v1/programs/", json={**PROGRAM, **overrides}, headers=auth_headers(admin))
    program_id = created.json()["data"]["id"]
    await client.post(f"/api/v1/programs/{program_id}/status", json={"status": "active"}, headers=auth_headers(admin))
    return program_id


@pytest.mark.asyncio
async def test_draft_programs_are_private(client, db_session, make_user, make_ngo, auth_headers):
    admin = await make_user(Role.NGO_ADMIN)
    ngo = await make_ngo(admin=admin)

    created = await client.post("/api/v1/programs/", json=PROGRAM, headers=auth_headers(admin))
    assert created.status_code == 201
    program_id = created.json()["data"]["id"]
    assert created.json()["data"]["status"] == "draft"

    await db_session.refresh(ngo)
    assert ngo.total_programs == 1

    hidden = await client.get(f"/api/v1/programs/{program_id}")
    assert hidden.status_code == 404

    own = await client.get(f"/api/v1/programs/{program_id}", headers=auth_headers(admin))
    assert own.status_code == 200

    activated = await client.post(
        f"/api/v1/programs/{program_id}/status", json={"status": "active"}, headers=auth_headers(admin)
    )
    assert activated.json()["data"]["status"] == "active"

    listed = await client.get(f"/api/v1/programs/?ngo_id={ngo.id}")
    assert [p["id"] for p in listed.json()["data"]] == [program_id]


@pytest.mark.asyncio
async def test_invalid_status_transition(client, make_user, make_ngo, auth_headers):
    admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=admin)
    program_id = await _active_program(client, admin, auth_headers)

    await client.post(f"/api/v1/programs/{program_id}/status", json={"status": "completed"}, headers=auth_headers(admin))
    res = await client.post(
        f"/api/v1/programs/{program_id}/status", json={"status": "active"}, headers=auth_headers(admin)
    )
    assert res.status_code == 409

    # only draft or cancelled programs can be deleted
    deleted = await client.delete(f"/api/v1/programs/{program_id}", headers=auth_headers(admin))
    assert deleted.status_code == 409


@pytest.mark.asyncio
async def test_other_ngo_cannot_edit_program(client, make_user, make_ngo, auth_headers):
    admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=admin)
    intruder = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=intruder, name="Other Trust")

    program_id = await _active_program(client, admin, auth_headers)
    res = await client.put(
        f"/api/v1/programs/{program_id}", json={"title": "Taken over"}, headers=auth_headers(intruder)
    )
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_volunteer_lifecycle_and_certificate(client, db_session, make_user, make_ngo, auth_headers):
    admin = await make_user(Role.NGO_ADMIN)
    ngo = await make_ngo(admin=admin)
    volunteer = await make_user(Role.VOLUNTEER, name="Kiran Patel")
    program_id = await _active_program(client, admin, auth_headers)

    applied = await client.post(
        "/api/v1/volunteers/apply",
        json={"ngo_id": str(ngo.id), "program_id": program_id, "skills": ["driving"]},
        headers=auth_headers(volunteer),
    )
    assert applied.status_code == 201
    application_id = applied.json()["data"]["id"]

    duplicate = await client.post(
        "/api/v1/volunteers/apply",
        json={"ngo_id": str(ngo.id), "program_id": program_id},
        headers=auth_headers(volunteer),
    )
    assert duplicate.status_code == 409

    approved = await client.post(
        f"/api/v1/volunteers/{application_id}/review", json={"approve": True}, headers=auth_headers(admin)
    )
    assert approved.status_code == 200
    assert approved.json()["data"]["status"] == "approved"

    await db_session.refresh(ngo)
    assert ngo.total_volunteers == 1

    # the single slot is now taken
    late = await make_user(Role.VOLUNTEER)
    full = await client.post(
        "/api/v1/volunteers/apply",
        json={"ngo_id": str(ngo.id), "program_id": program_id},
        headers=auth_headers(late),
    )
    assert full.status_code == 409

    hours = await client.post(
        f"/api/v1/volunteers/{application_id}/hours", json={"hours": 6}, headers=auth_headers(volunteer)
    )
    assert hours.json()["data"]["hours_logged"] == 6

    completed = await client.post(f"/api/v1/volunteers/{application_id}/complete", headers=auth_headers(admin))
    assert completed.json()["data"]["status"] == "completed"

    issued = await client.post(
        "/api/v1/certificates/",
        json={
            "recipient_id": str(volunteer.id),
            "recipient_name": "Kiran Patel",
            "certificate_type": "volunteer",
            "title": "Winter blanket drive volunteer",
        },
        headers=auth_headers(admin),
    )
    assert issued.status_code == 201
    certificate_id = issued.json()["data"]["certificate_id"]

    verified = await client.get(f"/api/v1/certificates/verify/{certificate_id.lower()}")
    assert verified.status_code == 200
    result = verified.json()["data"]
    assert result["valid"] is True
    assert result["recipient_name"] == "Kiran Patel"
    assert result["ngo_name"] == ngo.name
    assert result["verification_count"] == 1

    mine = await client.get("/api/v1/certificates/mine", headers=auth_headers(volunteer))
    assert [c["certificate_id"] for c in mine.json()["data"]] == [certificate_id]

    certificate_pk = issued.json()["data"]["id"]
    revoked = await client.post(
        f"/api/v1/certificates/{certificate_pk}/revoke", json={"reason": "Issued in error"}, headers=auth_headers(admin)
    )
    assert revoked.json()["data"]["status"] == "revoked"

    again = await client.get(f"/api/v1/certificates/verify/{certificate_id}")
    assert again.json()["data"]["valid"] is False
    assert again.json()["data"]["revoked_reason"] == "Issued in error"
    assert again.json()["data"]["verification_count"] == 2


@pytest.mark.asyncio
async def test_unverified_ngo_refuses_volunteers(client, make_user, make_ngo, auth_headers):
    ngo = await make_ngo(status=NGOStatus.Pending)
    volunteer = await make_user(Role.VOLUNTEER)

    res = await client.post("/api/v1/volunteers/apply", json={"ngo_id": str(ngo.id)}, headers=auth_headers(volunteer))
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_unknown_certificate(client):
    res = await client.get("/api/v1/certificates/verify/CERT-NOPE")
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_grant_lifecycle(client, make_user, make_ngo, auth_headers):
    admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=admin)
    super_admin = await make_user(Role.SUPER_ADMIN)

    created = await client.post(
        "/api/v1/grants/",
        json={"title": "School kits", "description": "Stationery for 200 children", "requested_amount": 100000},
        headers=auth_headers(admin),
    )
    assert created.status_code == 201
    grant_id = created.json()["data"]["id"]

    submitted = await client.post(f"/api/v1/grants/{grant_id}/submit", headers=auth_headers(admin))
    assert submitted.json()["data"]["status"] == "submitted"

    # NGO admins cannot approve their own grants
    self_approval = await client.post(
        f"/api/v1/grants/{grant_id}/decision", json={"approve": True}, headers=auth_headers(admin)
    )
    assert self_approval.status_code == 403

    reviewing = await client.post(f"/api/v1/grants/{grant_id}/review", headers=auth_headers(super_admin))
    assert reviewing.json()["data"]["status"] == "under_review"

    too_much = await client.post(
        f"/api/v1/grants/{grant_id}/decision",
        json={"approve": True, "approved_amount": 200000},
        headers=auth_headers(super_admin),
    )
    assert too_much.status_code == 400

    approved = await client.post(
        f"/api/v1/grants/{grant_id}/decision",
        json={"approve": True, "approved_amount": 80000},
        headers=auth_headers(super_admin),
    )
    assert approved.json()["data"]["status"] == "approved"

    partial = await client.post(
        f"/api/v1/grants/{grant_id}/disburse", json={"amount": 30000}, headers=auth_headers(super_admin)
    )
    assert partial.json()["data"]["status"] == "disbursed"

    over = await client.post(
        f"/api/v1/grants/{grant_id}/disburse", json={"amount": 60000}, headers=auth_headers(super_admin)
    )
    assert over.status_code == 400

    final = await client.post(
        f"/api/v1/grants/{grant_id}/disburse", json={"amount": 50000}, headers=auth_headers(super_admin)
    )
    assert final.json()["data"]["status"] == "completed"
    assert final.json()["data"]["disbursed_amount"] == 80000

    other_admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=other_admin, name="Other Trust")
    hidden = await client.get(f"/api/v1/grants/{grant_id}", headers=auth_headers(other_admin))
    assert hidden.status_code == 404
