import uuid

import pytest

from sevadaan.core.permissions import Role
from sevadaan.models.program import Program

PROGRAM = {
    "title": "Community health camp",
    "description": "Free screening and first-aid training for residents of Hadapsar.",
    "category": "health",
    "max_participants": 2,
}

APPLICATION = {
    "registration_type": "beneficiary",
    "application_data": {
        "motivation": "My parents need a diabetes check-up",
        "availability": {"days": ["saturday"], "time_slots": ["morning"]},
    },
}


async def _active_program(client, admin, auth_headers, **overrides):
    created = await client.post("/api/v1/programs/", json={**PROGRAM, **overrides}, headers=auth_headers(admin))
    program_id = created.json()["data"]["id"]
    await client.post(f"/api/v1/programs/{program_id}/status", json={"status": "active"}, headers=auth_headers(admin))
    return program_id


async def _register(client, program_id, citizen, auth_headers, payload=APPLICATION):
    return await client.post(
        f"/api/v1/programs/{program_id}/registrations", json=payload, headers=auth_headers(citizen)
    )


@pytest.mark.asyncio
async def test_citizen_registration_lifecycle(client, db_session, make_user, make_ngo, auth_headers):
    admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=admin)
    citizen = await make_user(Role.CITIZEN)
    program_id = await _active_program(client, admin, auth_headers)
    base = f"/api/v1/programs/{program_id}/registrations"

    created = await _register(client, program_id, citizen, auth_headers)
    assert created.status_code == 201
    registration = created.json()["data"]
    assert registration["status"] == "pending"
    assert registration["registration_type"] == "beneficiary"
    assert registration["application_data"]["availability"]["days"] == ["saturday"]

    duplicate = await _register(client, program_id, citizen, auth_headers)
    assert duplicate.status_code == 409

    early_feedback = await client.post(
        f"{base}/{registration['id']}/feedback", json={"rating": 5}, headers=auth_headers(citizen)
    )
    assert early_feedback.status_code == 409

    approved = await client.post(
        f"{base}/{registration['id']}/status", json={"status": "approved"}, headers=auth_headers(admin)
    )
    assert approved.status_code == 200
    assert approved.json()["data"]["approved_by"] == str(admin.id)
    assert approved.json()["data"]["approved_at"] is not None

    program = await db_session.get(Program, uuid.UUID(program_id), populate_existing=True)
    assert program.participants_count == 1

    completed = await client.post(
        f"{base}/{registration['id']}/status", json={"status": "completed"}, headers=auth_headers(admin)
    )
    assert completed.json()["data"]["status"] == "completed"
    assert completed.json()["data"]["completed_at"] is not None

    # completed registrations stay on record
    cancelled = await client.post(f"{base}/{registration['id']}/cancel", headers=auth_headers(citizen))
    assert cancelled.status_code == 409

    feedback = await client.post(
        f"{base}/{registration['id']}/feedback",
        json={"rating": 4, "comment": "Well organised"},
        headers=auth_headers(citizen),
    )
    assert feedback.status_code == 200
    assert feedback.json()["data"]["feedback_rating"] == 4

    out_of_range = await client.post(
        f"{base}/{registration['id']}/feedback", json={"rating": 6}, headers=auth_headers(citizen)
    )
    assert out_of_range.status_code == 400


@pytest.mark.asyncio
async def test_registration_requires_active_program(client, make_user, make_ngo, auth_headers):
    admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=admin)
    citizen = await make_user(Role.CITIZEN)

    draft = await client.post("/api/v1/programs/", json=PROGRAM, headers=auth_headers(admin))
    res = await _register(client, draft.json()["data"]["id"], citizen, auth_headers)
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_donors_cannot_register(client, make_user, make_ngo, auth_headers):
    admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=admin)
    donor = await make_user(Role.DONOR)
    program_id = await _active_program(client, admin, auth_headers)

    res = await _register(client, program_id, donor, auth_headers)
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_cancel_releases_place(client, db_session, make_user, make_ngo, auth_headers):
    admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=admin)
    first = await make_user(Role.CITIZEN)
    second = await make_user(Role.CITIZEN)
    program_id = await _active_program(client, admin, auth_headers, max_participants=1)
    base = f"/api/v1/programs/{program_id}/registrations"

    one = (await _register(client, program_id, first, auth_headers)).json()["data"]["id"]
    two = (await _register(client, program_id, second, auth_headers)).json()["data"]["id"]

    await client.post(f"{base}/{one}/status", json={"status": "approved"}, headers=auth_headers(admin))
    full = await client.post(f"{base}/{two}/status", json={"status": "approved"}, headers=auth_headers(admin))
    assert full.status_code == 409

    # only the registrant can cancel
    stolen = await client.post(f"{base}/{one}/cancel", headers=auth_headers(second))
    assert stolen.status_code == 403

    cancelled = await client.post(f"{base}/{one}/cancel", headers=auth_headers(first))
    assert cancelled.json()["data"]["status"] == "cancelled"

    program = await db_session.get(Program, uuid.UUID(program_id), populate_existing=True)
    assert program.participants_count == 0

    approved = await client.post(f"{base}/{two}/status", json={"status": "approved"}, headers=auth_headers(admin))
    assert approved.status_code == 200


@pytest.mark.asyncio
async def test_registration_visibility(client, make_user, make_ngo, auth_headers):
    admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=admin)
    other_admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=other_admin, name="Other Trust")
    citizen = await make_user(Role.CITIZEN)
    neighbour = await make_user(Role.CITIZEN)
    super_admin = await make_user(Role.SUPER_ADMIN)
    program_id = await _active_program(client, admin, auth_headers)
    base = f"/api/v1/programs/{program_id}/registrations"

    mine = (await _register(client, program_id, citizen, auth_headers)).json()["data"]["id"]
    await _register(client, program_id, neighbour, auth_headers)

    own_list = await client.get(base, headers=auth_headers(citizen))
    assert [r["id"] for r in own_list.json()["data"]] == [mine]

    staff_list = await client.get(base, headers=auth_headers(admin))
    assert len(staff_list.json()["data"]) == 2

    assert (await client.get(f"{base}/{mine}", headers=auth_headers(citizen))).status_code == 200
    assert (await client.get(f"{base}/{mine}", headers=auth_headers(admin))).status_code == 200
    assert (await client.get(f"{base}/{mine}", headers=auth_headers(super_admin))).status_code == 200
    assert (await client.get(f"{base}/{mine}", headers=auth_headers(neighbour))).status_code == 403
    assert (await client.get(f"{base}/{mine}", headers=auth_headers(other_admin))).status_code == 403

    decision = await client.post(
        f"{base}/{mine}/status", json={"status": "approved"}, headers=auth_headers(other_admin)
    )
    assert decision.status_code == 403

    # staff cannot cancel through the status endpoint
    invalid = await client.post(f"{base}/{mine}/status", json={"status": "cancelled"}, headers=auth_headers(admin))
    assert invalid.status_code == 400


@pytest.mark.asyncio
async def test_registration_stats(client, make_user, make_ngo, auth_headers):
    admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=admin)
    other_admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=other_admin, name="Other Trust")
    program_id = await _active_program(client, admin, auth_headers, max_participants=None)
    base = f"/api/v1/programs/{program_id}/registrations"

    ids = []
    for registration_type in ("beneficiary", "participant", "participant"):
        citizen = await make_user(Role.CITIZEN)
        res = await _register(client, program_id, citizen, auth_headers, {"registration_type": registration_type})
        ids.append((res.json()["data"]["id"], citizen))

    await client.post(f"{base}/{ids[0][0]}/status", json={"status": "approved"}, headers=auth_headers(admin))
    await client.post(f"{base}/{ids[0][0]}/status", json={"status": "completed"}, headers=auth_headers(admin))
    await client.post(f"{base}/{ids[0][0]}/feedback", json={"rating": 5}, headers=auth_headers(ids[0][1]))
    await client.post(f"{base}/{ids[1][0]}/status", json={"status": "rejected"}, headers=auth_headers(admin))

    res = await client.get(f"{base}/stats", headers=auth_headers(admin))
    assert res.status_code == 200
    stats = res.json()["data"]
    assert stats["total"] == 3
    assert stats["byStatus"] == {"pending": 1, "approved": 0, "rejected": 1, "completed": 1, "cancelled": 0}
    assert stats["byType"] == {"volunteer": 0, "beneficiary": 1, "participant": 2}
    assert stats["averageRating"] == 5.0

    hidden = await client.get(f"{base}/stats", headers=auth_headers(other_admin))
    assert hidden.status_code == 403
