import asyncio

from codehire import models  # noqa: F401
from codehire.database import Base, async_session, engine
from codehire.models.skill import Skill
from codehire.models.user import User, UserRole
from codehire.services.lifecycle import ProjectLifecycle
from codehire.services.profiles import ProfileService
from codehire.services.teams import TeamService


async def async_main():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        # Skill catalogue
        skills = [
            Skill(name="Python", category="Backend"),
            Skill(name="FastAPI", category="Backend"),
            Skill(name="React", category="Frontend"),
            Skill(name="TypeScript", category="Frontend"),
            Skill(name="Figma", category="Design"),
            Skill(name="PostgreSQL", category="Data"),
        ]
        session.add_all(skills)

        # Create users
        hirer = User(email="hana@example.com", full_name="Hana Hirer", role=UserRole.HIRER, bio="Runs a small agency.")
        alice = User(email="alice@example.com", full_name="Alice Builder", role=UserRole.CODER, bio="I love building scalable backends.")
        bob = User(email="bob@example.com", full_name="Bob Designer", role=UserRole.CODER, bio="UI/UX enthusiast.")
        charlie = User(email="charlie@example.com", full_name="Charlie Frontend", role=UserRole.CODER, bio="React all day.")
        session.add_all([hirer, alice, bob, charlie])
        await session.commit()

        # Coder profiles
        profiles = ProfileService(session)
        await profiles.update_profile(alice.id, {
            "hourly_rate": 90, "location": "Lisbon",
            "skills": [{"skill_id": skills[0].id, "level": "expert"}, skills[1].id, skills[5].id],
        })
        await profiles.update_profile(bob.id, {"hourly_rate": 70, "skills": [{"skill_id": skills[4].id, "level": "advanced"}]})
        await profiles.update_profile(charlie.id, {"hourly_rate": 65, "skills": [skills[2].id, skills[3].id]})
        await profiles.add_portfolio_item(alice.id, "Order API", description="FastAPI service handling 2k orders a day.")

        # Alice's team with Bob in it
        teams = TeamService(session)
        team = await teams.create_team(alice.id, "The Mavericks", description="Full-stack crew for hire")
        await teams.add_member(team.id, alice.id, bob.id)

        # One draft, one paid project open for bids
        lifecycle = ProjectLifecycle(session)
        await lifecycle.create_draft(
            hirer.id,
            "Internal Dashboard",
            "Admin dashboard for order tracking.",
            required_skills=[skills[2].id, skills[3].id],
            budget=800,
        )
        project_id = await lifecycle.create_draft(
            hirer.id,
            "Landing Page",
            "Build a marketing site.",
            required_skills=[skills[2].id, skills[4].id],
            budget=500,
        )
        await lifecycle.confirm_payment(project_id)

    print("Database seeded with a hirer, three coders, a team and an active project.")


asyncio.run(async_main())
