from datetime import timedelta

import pytest

from codehire.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from codehire.models.project import Project, ProjectStatus
from codehire.models.skill import Skill
from codehire.services.lifecycle import ProjectLifecycle, is_biddable
from codehire.utils.clock import as_utc


@pytest.fixture
def lifecycle(db, clock):
    return ProjectLifecycle(db, clock)


async def test_create_draft_is_unpaid_and_not_biddable(lifecycle, users, clock):
    project_id = await lifecycle.create_draft(users.hirer.id, "Landing Page", "Build a marketing site")
    project = await lifecycle.get(project_id)

    assert project.status == ProjectStatus.DRAFT
    assert project.paid is False
    assert project.bidding_end_time is None
    assert not is_biddable(project, clock())


async def test_create_draft_stores_required_skills(lifecycle, users, db):
    python, react = Skill(name="Python", category="Backend"), Skill(name="React", category="Frontend")
    db.add_all([python, react])
    await db.commit()

    project_id = await lifecycle.create_draft(
        users.hirer.id, "Dashboard", "Admin UI", required_skills=[react.id, python.id]
    )
    project = await lifecycle.get(project_id)
    assert project.required_skill_ids == sorted([python.id, react.id])


@pytest.mark.parametrize(
    "title, description, budget",
    [
        ("", "Build a marketing site", None),
        ("Landing Page", "   ", None),
        ("Landing Page", "Build a marketing site", -10),
        ("Landing Page", "Build a marketing site", "lots"),
    ],
)
async def test_create_draft_rejects_bad_input(lifecycle, users, title, description, budget):
    with pytest.raises(ValidationError):
        await lifecycle.create_draft(users.hirer.id, title, description, budget=budget)


async def test_create_draft_rejects_unknown_skills(lifecycle, users):
    with pytest.raises(ValidationError) as excinfo:
        await lifecycle.create_draft(users.hirer.id, "Landing Page", "Site", required_skills=[999])
    assert excinfo.value.details["skill_ids"] == [999]


async def test_confirm_payment_opens_seven_day_window(lifecycle, users, clock):
    project_id = await lifecycle.create_draft(users.hirer.id, "Landing Page", "Build a marketing site")

    project = await lifecycle.confirm_payment(project_id)

    assert project.status == ProjectStatus.ACTIVE
    assert project.paid is True
    assert as_utc(project.bidding_end_time) == clock() + timedelta(days=7)
    assert is_biddable(project, clock())


async def test_confirm_payment_twice_keeps_the_first_window(lifecycle, users, clock):
    project_id = await lifecycle.create_draft(users.hirer.id, "Landing Page", "Build a marketing site")
    first = await lifecycle.confirm_payment(project_id)
    first_end = as_utc(first.bidding_end_time)

    clock.advance(days=2)
    second = await lifecycle.confirm_payment(project_id)

    assert second.status == ProjectStatus.ACTIVE
    assert as_utc(second.bidding_end_time) == first_end


async def test_confirm_payment_activates_legacy_open_project(lifecycle, users, db, clock):
    legacy = Project(
        owner_id=users.hirer.id,
        title="Legacy",
        description="Created before payments",
        status=ProjectStatus.OPEN,
        paid=False,
        created_at=clock(),
    )
    db.add(legacy)
    await db.commit()
    assert is_biddable(legacy, clock())

    project = await lifecycle.confirm_payment(legacy.id)
    assert project.status == ProjectStatus.ACTIVE
    assert project.bidding_end_time is not None


async def test_confirm_payment_refuses_cancelled_project(lifecycle, users):
    project_id = await lifecycle.create_draft(users.hirer.id, "Landing Page", "Build a marketing site")
    await lifecycle.cancel(project_id, users.hirer.id)

    with pytest.raises(InvalidStateError):
        await lifecycle.confirm_payment(project_id)
    assert (await lifecycle.get(project_id)).bidding_end_time is None


async def test_confirm_payment_unknown_project(lifecycle):
    with pytest.raises(NotFoundError):
        await lifecycle.confirm_payment(4242)


async def test_window_closes_without_status_change(lifecycle, users, clock):
    project_id = await lifecycle.create_draft(users.hirer.id, "Landing Page", "Build a marketing site")
    project = await lifecycle.confirm_payment(project_id)
    end = as_utc(project.bidding_end_time)

    assert is_biddable(project, end - timedelta(seconds=1))
    assert not is_biddable(project, end)
    assert project.status == ProjectStatus.ACTIVE


async def test_list_biddable_skips_drafts_and_expired(lifecycle, users, clock):
    draft_id = await lifecycle.create_draft(users.hirer.id, "Draft", "Not paid")
    old_id = await lifecycle.create_draft(users.hirer.id, "Old", "Paid long ago")
    await lifecycle.confirm_payment(old_id)
    clock.advance(days=8)
    fresh_id = await lifecycle.create_draft(users.hirer.id, "Fresh", "Paid today")
    await lifecycle.confirm_payment(fresh_id)

    listed = [p.id for p in await lifecycle.list_biddable(clock())]
    assert listed == [fresh_id]
    assert draft_id not in listed


async def test_close_expired_persists_closed(lifecycle, users, clock):
    project_id = await lifecycle.create_draft(users.hirer.id, "Landing Page", "Build a marketing site")
    await lifecycle.confirm_payment(project_id)

    assert await lifecycle.close_expired(clock()) == 0
    clock.advance(days=7)
    assert await lifecycle.close_expired(clock()) == 1

    project = await lifecycle.get(project_id)
    assert project.status == ProjectStatus.CLOSED
    assert as_utc(project.bidding_end_time) == clock()


async def test_cancel_is_owner_only_and_final(lifecycle, users):
    project_id = await lifecycle.create_draft(users.hirer.id, "Landing Page", "Build a marketing site")

    with pytest.raises(AuthorizationError):
        await lifecycle.cancel(project_id, users.other_hirer.id)

    project = await lifecycle.cancel(project_id, users.hirer.id)
    assert project.status == ProjectStatus.CANCELLED

    with pytest.raises(InvalidStateError):
        await lifecycle.cancel(project_id, users.hirer.id)


async def test_complete_requires_work_in_progress(lifecycle, users):
    project_id = await lifecycle.create_draft(users.hirer.id, "Landing Page", "Build a marketing site")
    await lifecycle.confirm_payment(project_id)

    with pytest.raises(InvalidStateError):
        await lifecycle.complete(project_id, users.hirer.id)

    assert await lifecycle.begin_work(project_id)
    await lifecycle.db.commit()

    project = await lifecycle.complete(project_id, users.hirer.id)
    assert project.status == ProjectStatus.COMPLETED
