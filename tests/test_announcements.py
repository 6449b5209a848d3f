import uuid
from datetime import datetime, timedelta

import pytest
from sqlmodel import select

from sevadaan.core.errors import InvalidTransitionError
from sevadaan.core.permissions import Role
from sevadaan.models.announcement import Announcement
from sevadaan.models.common import utcnow
from sevadaan.models.enums import ApprovalStatus, NotificationType
from sevadaan.models.notification import Notification
from sevadaan.schemas.announcement import AnnouncementCreate
from sevadaan.schemas.certificate import CertificateIssue


def _announcement(**overrides) -> Announcement:
    values = {"ngo_id": uuid.uuid4(), "title": "Blood donation camp", "content": "Sunday 9am", "created_by": uuid.uuid4()}
    values.update(overrides)
    return Announcement(**values)


def test_approval_requires_pending_state():
    announcement = _announcement()
    with pytest.raises(InvalidTransitionError):
        announcement.approve(uuid.uuid4())

    announcement.submit_for_approval()
    announcement.approve(uuid.uuid4(), "Looks good")
    assert announcement.approval_status == ApprovalStatus.Approved
    assert announcement.is_active is True
    assert announcement.published_at is not None


def test_rejected_announcement_can_be_resubmitted():
    announcement = _announcement()
    announcement.submit_for_approval()
    announcement.reject(uuid.uuid4(), "Add a venue")
    assert announcement.is_active is False

    announcement.submit_for_approval()
    assert announcement.approval_status == ApprovalStatus.PendingApproval


def test_visibility_by_audience_and_expiry():
    now = utcnow()
    announcement = _announcement(target_audience=["DONOR"])
    announcement.submit_for_approval()
    announcement.approve(uuid.uuid4())

    assert announcement.is_visible_to("DONOR", now)
    assert not announcement.is_visible_to("PUBLIC", now)

    announcement.expiry_date = now - timedelta(minutes=1)
    assert not announcement.is_visible_to("DONOR", now)


@pytest.mark.asyncio
async def test_manager_draft_admin_approval_flow(client, db_session, make_user, make_ngo, auth_headers):
    ngo_admin = await make_user(Role.NGO_ADMIN)
    ngo = await make_ngo(admin=ngo_admin)
    manager = await make_user(Role.NGO_MANAGER, ngo_id=ngo.id)

    created = await client.post(
        "/api/v1/announcements/",
        json={"title": "Blood donation camp", "content": "Sunday 9am at the community hall"},
        headers=auth_headers(manager),
    )
    assert created.status_code == 201
    announcement_id = created.json()["data"]["id"]
    assert created.json()["data"]["approval_status"] == "draft"

    # Drafts are not public
    public = await client.get(f"/api/v1/announcements/ngo/{ngo.id}")
    assert public.json()["data"] == []

    submitted = await client.post(f"/api/v1/announcements/{announcement_id}/submit", headers=auth_headers(manager))
    assert submitted.json()["data"]["approval_status"] == "pending_approval"

    # Managers hold no approve permission
    denied = await client.post(
        f"/api/v1/announcements/{announcement_id}/approval",
        json={"approve": True},
        headers=auth_headers(manager),
    )
    assert denied.status_code == 403

    pending = await client.get("/api/v1/announcements/pending", headers=auth_headers(ngo_admin))
    assert [item["id"] for item in pending.json()["data"]] == [announcement_id]

    approved = await client.post(
        f"/api/v1/announcements/{announcement_id}/approval",
        json={"approve": True, "comments": "Go ahead"},
        headers=auth_headers(ngo_admin),
    )
    assert approved.status_code == 200
    assert approved.json()["data"]["approval_status"] == "approved"
    assert approved.json()["data"]["is_active"] is True

    public = await client.get(f"/api/v1/announcements/ngo/{ngo.id}")
    assert [item["id"] for item in public.json()["data"]] == [announcement_id]

    result = await db_session.execute(select(Notification).where(Notification.user_id == manager.id))
    assert [n.type for n in result.scalars().all()] == [NotificationType.Announcement]

    # Approved announcements are no longer editable
    edit = await client.put(
        f"/api/v1/announcements/{announcement_id}",
        json={"title": "Changed title"},
        headers=auth_headers(manager),
    )
    assert edit.status_code == 409


@pytest.mark.asyncio
async def test_targeted_announcement_hidden_from_public(client, make_user, make_ngo, auth_headers):
    ngo_admin = await make_user(Role.NGO_ADMIN)
    ngo = await make_ngo(admin=ngo_admin)
    donor = await make_user(Role.DONOR)

    created = await client.post(
        "/api/v1/announcements/",
        json={"title": "Donor meetup", "content": "Thank you evening", "target_audience": ["DONOR"]},
        headers=auth_headers(ngo_admin),
    )
    announcement_id = created.json()["data"]["id"]
    await client.post(f"/api/v1/announcements/{announcement_id}/submit", headers=auth_headers(ngo_admin))
    await client.post(
        f"/api/v1/announcements/{announcement_id}/approval",
        json={"approve": True},
        headers=auth_headers(ngo_admin),
    )

    anonymous = await client.get(f"/api/v1/announcements/ngo/{ngo.id}")
    assert anonymous.json()["data"] == []

    as_donor = await client.get(f"/api/v1/announcements/ngo/{ngo.id}", headers=auth_headers(donor))
    assert [item["id"] for item in as_donor.json()["data"]] == [announcement_id]


@pytest.mark.asyncio
async def test_unknown_audience_rejected(client, make_user, make_ngo, auth_headers):
    ngo_admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=ngo_admin)

    res = await client.post(
        "/api/v1/announcements/",
        json={"title": "Hello", "content": "World", "target_audience": ["aliens"]},
        headers=auth_headers(ngo_admin),
    )
    assert res.status_code == 400


def test_offset_timestamps_are_stored_as_naive_utc():
    payload = AnnouncementCreate(
        title="Blood donation camp",
        content="Sunday 9am",
        published_at="2030-01-01T10:00:00+05:30",
        expiry_date="2030-02-01T00:00:00Z",
    )
    assert payload.published_at == datetime(2030, 1, 1, 4, 30)
    assert payload.expiry_date == datetime(2030, 2, 1)

    issue = CertificateIssue(
        recipient_name="Kiran Patel", certificate_type="volunteer", title="Volunteer", expires_at="2031-06-30T18:30:00Z"
    )
    assert issue.expires_at == datetime(2031, 6, 30, 18, 30)


def test_approving_announcement_built_from_browser_timestamps():
    payload = AnnouncementCreate(title="Blood donation camp", content="Sunday 9am", published_at="2030-01-01T00:00:00Z")
    announcement = Announcement(**payload.model_dump(), ngo_id=uuid.uuid4(), created_by=uuid.uuid4())
    announcement.submit_for_approval()

    announcement.approve(uuid.uuid4())
    # a future publish date is pulled forward to the approval time
    assert announcement.published_at == announcement.approved_at


@pytest.mark.asyncio
async def test_zulu_timestamps_round_trip_through_the_api(client, make_user, make_ngo, auth_headers):
    ngo_admin = await make_user(Role.NGO_ADMIN)
    await make_ngo(admin=ngo_admin)

    created = await client.post(
        "/api/v1/announcements/",
        json={
            "title": "Blood donation camp",
            "content": "Sunday 9am",
            "published_at": "2020-01-01T10:00:00+05:30",
            "expiry_date": "2099-12-31T18:30:00Z",
        },
        headers=auth_headers(ngo_admin),
    )
    assert created.status_code == 201
    assert created.json()["data"]["published_at"] == "2020-01-01T04:30:00"
    assert created.json()["data"]["expiry_date"] == "2099-12-31T18:30:00"

    announcement_id = created.json()["data"]["id"]
    await client.post(f"/api/v1/announcements/{announcement_id}/submit", headers=auth_headers(ngo_admin))
    approved = await client.post(
        f"/api/v1/announcements/{announcement_id}/approval",
        json={"approve": True},
        headers=auth_headers(ngo_admin),
    )
    assert approved.status_code == 200
    assert approved.json()["data"]["published_at"] == "2020-01-01T04:30:00"
