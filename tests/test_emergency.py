import uuid

import pytest
from sqlmodel import select

from sevadaan.core.errors import BadRequestError, InvalidTransitionError
from sevadaan.core.permissions import Role
from sevadaan.models.emergency import EmergencyRequest
from sevadaan.models.enums import (
    EmergencyStatus,
    EmergencyType,
    NGOStatus,
    NotificationType,
    UrgencyLevel,
    VerificationStatus,
)
from sevadaan.models.notification import Notification

EMERGENCY_PAYLOAD = {
    "name": "Ravi Kumar",
    "phone": "9876543210",
    "emergency_type": "medical",
    "urgency_level": "critical",
    "description": "Elderly neighbour needs urgent medical attention.",
    "address": "12 MG Road",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411001",
    "help_needed": ["ambulance"],
}


async def _notifications(db_session, user_id):
    result = await db_session.execute(select(Notification).where(Notification.user_id == user_id))
    return result.scalars().all()


def _request(**overrides) -> EmergencyRequest:
    values = {
        "name": "Ravi Kumar",
        "phone": "9876543210",
        "emergency_type": EmergencyType.Food,
        "description": "Family without food for two days.",
        "address": "12 MG Road",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
    }
    values.update(overrides)
    return EmergencyRequest(**values)


# ------------------------------------------------------------------
# State machine
# ------------------------------------------------------------------
def test_priority_follows_urgency():
    request = _request(urgency_level=UrgencyLevel.Critical)
    request.refresh_priority()
    assert request.priority == 100


def test_assign_then_resolve_then_close():
    request = _request()
    ngo_id, admin_id = uuid.uuid4(), uuid.uuid4()

    request.assign_to_ngo(ngo_id, admin_id)
    assert request.status == EmergencyStatus.InProgress
    assert request.assigned_to_ngo == ngo_id
    assert request.assigned_at is not None

    request.mark_resolved({"description": "Food kit delivered"})
    assert request.status == EmergencyStatus.Resolved
    assert request.resolved_at is not None

    request.close()
    assert request.status == EmergencyStatus.Closed
    assert request.is_active is False


def test_cannot_assign_twice():
    request = _request()
    request.assign_to_ngo(uuid.uuid4(), uuid.uuid4())
    with pytest.raises(InvalidTransitionError):
        request.assign_to_ngo(uuid.uuid4(), uuid.uuid4())


def test_cannot_resolve_pending_request():
    with pytest.raises(InvalidTransitionError):
        _request().mark_resolved({"description": "done"})


def test_reject_requires_notes_and_blocks_assignment():
    request = _request()
    with pytest.raises(BadRequestError):
        request.reject(uuid.uuid4(), "  ")

    request.reject(uuid.uuid4(), "Duplicate report")
    assert request.status == EmergencyStatus.Rejected
    assert request.verification_status == VerificationStatus.Rejected
    assert request.is_active is False

    with pytest.raises(InvalidTransitionError):
        request.assign_to_ngo(uuid.uuid4(), uuid.uuid4())


def test_verification_is_independent_of_status():
    request = _request()
    request.verify(uuid.uuid4(), "Called the requester")
    assert request.verification_status == VerificationStatus.Verified
    assert request.status == EmergencyStatus.Pending

    with pytest.raises(InvalidTransitionError):
        request.verify(uuid.uuid4())


# ------------------------------------------------------------------
# API flow
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_anonymous_request_assign_and_resolve(client, db_session, make_user, make_ngo, auth_headers):
    super_admin = await make_user(Role.SUPER_ADMIN)
    ngo_admin = await make_user(Role.NGO_ADMIN)
    ngo = await make_ngo(admin=ngo_admin)

    created = await client.post("/api/v1/emergency/", json=EMERGENCY_PAYLOAD)
    assert created.status_code == 201
    summary = created.json()["data"]
    # anonymous callers never get contact details back
    assert "phone" not in summary
    request_id = summary["id"]

    assigned = await client.post(
        f"/api/v1/emergency/{request_id}/assign",
        json={"ngo_id": str(ngo.id)},
        headers=auth_headers(super_admin),
    )
    assert assigned.status_code == 200
    assert assigned.json()["data"]["status"] == "in_progress"
    assert assigned.json()["data"]["priority"] == 100

    notifications = await _notifications(db_session, ngo_admin.id)
    assert [n.type for n in notifications] == [NotificationType.Emergency]

    listed = await client.get("/api/v1/emergency/", headers=auth_headers(ngo_admin))
    assert [item["id"] for item in listed.json()["data"]] == [request_id]

    resolved = await client.post(
        f"/api/v1/emergency/{request_id}/resolve",
        json={"description": "Patient taken to hospital", "volunteers_involved": 2},
        headers=auth_headers(ngo_admin),
    )
    assert resolved.status_code == 200
    assert resolved.json()["data"]["status"] == "resolved"
    assert resolved.json()["data"]["resolution"]["volunteers_involved"] == 2


@pytest.mark.asyncio
async def test_assign_to_unverified_ngo_is_forbidden(client, make_user, make_ngo, auth_headers):
    super_admin = await make_user(Role.SUPER_ADMIN)
    ngo = await make_ngo(status=NGOStatus.Pending)

    created = await client.post("/api/v1/emergency/", json=EMERGENCY_PAYLOAD)
    res = await client.post(
        f"/api/v1/emergency/{created.json()['data']['id']}/assign",
        json={"ngo_id": str(ngo.id)},
        headers=auth_headers(super_admin),
    )
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_other_ngo_cannot_resolve(client, make_user, make_ngo, auth_headers):
    super_admin = await make_user(Role.SUPER_ADMIN)
    assigned_admin = await make_user(Role.NGO_ADMIN)
    other_admin = await make_user(Role.NGO_ADMIN)
    ngo = await make_ngo(admin=assigned_admin)
    await make_ngo(admin=other_admin, name="Other Trust")

    created = await client.post("/api/v1/emergency/", json=EMERGENCY_PAYLOAD)
    request_id = created.json()["data"]["id"]
    await client.post(
        f"/api/v1/emergency/{request_id}/assign",
        json={"ngo_id": str(ngo.id)},
        headers=auth_headers(super_admin),
    )

    res = await client.post(
        f"/api/v1/emergency/{request_id}/resolve",
        json={"description": "Not ours to close"},
        headers=auth_headers(other_admin),
    )
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_resolving_pending_request_conflicts(client, make_user, auth_headers):
    super_admin = await make_user(Role.SUPER_ADMIN)
    created = await client.post("/api/v1/emergency/", json=EMERGENCY_PAYLOAD)

    res = await client.post(
        f"/api/v1/emergency/{created.json()['data']['id']}/resolve",
        json={"description": "Too early"},
        headers=auth_headers(super_admin),
    )
    assert res.status_code == 409


@pytest.mark.asyncio
async def test_citizen_cannot_assign(client, make_user, make_ngo, auth_headers):
    citizen = await make_user(Role.CITIZEN)
    ngo = await make_ngo()
    created = await client.post("/api/v1/emergency/", json=EMERGENCY_PAYLOAD, headers=auth_headers(citizen))

    res = await client.post(
        f"/api/v1/emergency/{created.json()['data']['id']}/assign",
        json={"ngo_id": str(ngo.id)},
        headers=auth_headers(citizen),
    )
    assert res.status_code == 403

