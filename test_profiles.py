from types import SimpleNamespace

import pytest

from codehire.errors import AuthorizationError, NotFoundError, ValidationError
from codehire.models.skill import Skill
from codehire.services.profiles import ProfileService
from conftest import auth_headers


@pytest.fixture
async def skills(session_factory):
    python = Skill(name="Python", category="Backend")
    react = Skill(name="React", category="Frontend")
    figma = Skill(name="Figma", category="Design")
    async with session_factory() as session:
        session.add_all([python, react, figma])
        await session.commit()
    return SimpleNamespace(python=python, react=react, figma=figma)


@pytest.fixture
def profiles(db, clock):
    return ProfileService(db, clock)


async def _skill_names(profiles, user_id):
    rows = (await profiles.skills([user_id]))[user_id]
    return [(skill.name, user_skill.level.value) for user_skill, skill in rows]


# ── Profile edits ──

async def test_coder_sets_rate_location_and_skills(profiles, users, skills):
    user = await profiles.update_profile(
        users.alice.id,
        {
            "hourly_rate": 80,
            "location": "  Lisbon ",
            "skills": [{"skill_id": skills.python.id, "level": "expert"}, skills.react.id],
        },
    )

    assert user.hourly_rate == 80
    assert user.location == "Lisbon"
    assert await _skill_names(profiles, users.alice.id) == [("Python", "expert"), ("React", "intermediate")]


async def test_skills_are_replaced_only_when_sent(profiles, users, skills):
    await profiles.update_profile(users.alice.id, {"skills": [skills.python.id, skills.react.id]})
    await profiles.update_profile(
        users.alice.id, {"skills": [{"skill_id": skills.react.id, "level": "advanced"}]}
    )
    assert await _skill_names(profiles, users.alice.id) == [("React", "advanced")]

    await profiles.update_profile(users.alice.id, {"bio": "Frontend first"})
    assert await _skill_names(profiles, users.alice.id) == [("React", "advanced")]

    await profiles.update_profile(users.alice.id, {"skills": [], "hourly_rate": None})
    assert await _skill_names(profiles, users.alice.id) == []
    assert (await profiles.get(users.alice.id)).hourly_rate is None


@pytest.mark.parametrize(
    "changes",
    [
        {"full_name": "   "},
        {"hourly_rate": -5},
        {"hourly_rate": "lots"},
        {"skills": [9999]},
        {"skills": [{"skill_id": 1, "level": "guru"}]},
        {"avatar_url": "ftp://files.codehire.io/me.png"},
    ],
)
async def test_invalid_profile_changes_leave_profile_untouched(profiles, users, skills, changes):
    with pytest.raises(ValidationError):
        await profiles.update_profile(users.alice.id, dict(changes, bio="should not stick"))

    user = await profiles.get(users.alice.id)
    assert user.full_name == "Alice Builder"
    assert user.bio is None
    assert await _skill_names(profiles, users.alice.id) == []


async def test_unknown_user(profiles):
    with pytest.raises(NotFoundError):
        await profiles.get(4242)


# ── Coder search ──

async def test_list_coders_filters_by_skill_and_text(profiles, users, skills):
    await profiles.update_profile(
        users.alice.id, {"location": "Lisbon", "skills": [skills.python.id, skills.react.id]}
    )
    await profiles.update_profile(users.bob.id, {"bio": "UI/UX enthusiast", "skills": [skills.figma.id]})

    async def ids(**filters):
        return [coder.id for coder in await profiles.list_coders(**filters)]

    assert await ids() == [users.alice.id, users.bob.id]
    assert await ids(skill="python") == [users.alice.id]
    assert await ids(skill="  FIGMA ") == [users.bob.id]
    assert await ids(skill="Rust") == []
    assert await ids(query="lisbon") == [users.alice.id]
    assert await ids(query="ui/ux") == [users.bob.id]
    assert await ids(skill="react", query="ui/ux") == []


# ── Portfolio ──

async def test_portfolio_is_newest_first(profiles, users, clock):
    first = await profiles.add_portfolio_item(
        users.alice.id, "Shop rewrite", description="Django to FastAPI", project_url="https://shop.example.com"
    )
    clock.advance(hours=1)
    second = await profiles.add_portfolio_item(users.alice.id, "Design system", image_url="https://cdn.example.com/ds.png")

    assert [item.id for item in await profiles.portfolio(users.alice.id)] == [second.id, first.id]
    assert first.project_url == "https://shop.example.com"
    assert await profiles.portfolio(users.bob.id) == []


@pytest.mark.parametrize(
    "title, url",
    [("  ", None), ("Shop rewrite", "javascript:alert(1)")],
)
async def test_portfolio_item_validation(profiles, users, title, url):
    with pytest.raises(ValidationError):
        await profiles.add_portfolio_item(users.alice.id, title, project_url=url)


async def test_only_owner_deletes_portfolio_item(profiles, users):
    item = await profiles.add_portfolio_item(users.alice.id, "Shop rewrite")

    with pytest.raises(AuthorizationError):
        await profiles.delete_portfolio_item(item.id, users.bob.id)

    await profiles.delete_portfolio_item(item.id, users.alice.id)
    assert await profiles.portfolio(users.alice.id) == []

    with pytest.raises(NotFoundError):
        await profiles.delete_portfolio_item(item.id, users.alice.id)


# ── HTTP ──

async def test_profile_api(client, users, skills):
    response = await client.put(
        "/users/me",
        json={
            "hourly_rate": 95,
            "location": "Porto",
            "skills": [{"skill_id": skills.python.id, "level": "expert"}],
        },
        headers=auth_headers(users.alice),
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["hourly_rate"] == 95
    assert body["skills"] == [
        {"skill_id": skills.python.id, "name": "Python", "category": "Backend", "level": "expert"}
    ]

    bad = await client.put("/users/me", json={"skills": [{"skill_id": 9999}]}, headers=auth_headers(users.alice))
    assert bad.status_code == 422
    assert bad.json()["code"] == "validation_error"

    created = await client.post(
        "/users/me/portfolio",
        json={"title": "Shop rewrite", "project_url": "https://shop.example.com"},
        headers=auth_headers(users.alice),
    )
    assert created.status_code == 201, created.text
    item_id = created.json()["id"]

    profile = (await client.get(f"/users/{users.alice.id}")).json()
    assert profile["location"] == "Porto"
    assert [s["name"] for s in profile["skills"]] == ["Python"]
    assert [p["title"] for p in profile["portfolio"]] == ["Shop rewrite"]

    forbidden = await client.delete(f"/users/me/portfolio/{item_id}", headers=auth_headers(users.bob))
    assert forbidden.status_code == 403
    deleted = await client.delete(f"/users/me/portfolio/{item_id}", headers=auth_headers(users.alice))
    assert deleted.status_code == 204

    assert (await client.get("/users/4242")).status_code == 404


async def test_browse_coders_api(client, users, skills):
    response = await client.put(
        "/users/me", json={"skills": [{"skill_id": skills.react.id}]}, headers=auth_headers(users.bob)
    )
    assert response.status_code == 200, response.text

    everyone = (await client.get("/coders")).json()
    assert [c["id"] for c in everyone] == [users.alice.id, users.bob.id]

    react = (await client.get("/coders", params={"skill": "react"})).json()
    assert [c["id"] for c in react] == [users.bob.id]
    assert react[0]["skills"][0]["name"] == "React"
    assert react[0]["skills"][0]["level"] == "intermediate"
