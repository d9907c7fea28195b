import pytest

from groupgo.db import USERS


@pytest.mark.asyncio
async def test_save_user(db, users):
    await users.save_user("user_org", "Olivia", "Organizer", "org@example.com")

    assert (await db.get(USERS, "user_org")).data == {
        "uid": "user_org",
        "firstName": "Olivia",
        "lastName": "Organizer",
        "email": "org@example.com",
        "displayName": "Olivia Organizer",
    }


@pytest.mark.asyncio
async def test_merge_user_keeps_names(db, users):
    await users.save_user("user_org", "Olivia", "Organizer", "org@example.com")

    await users.merge_user("user_org", "olivia@example.com")

    record = (await users.get_user("user_org")).unwrap()
    assert record.email == "olivia@example.com"
    assert record.first_name == "Olivia"
    assert record.display_name == "Olivia Organizer"


@pytest.mark.asyncio
async def test_merge_user_creates_missing_record(users):
    await users.merge_user("user_new", "new@example.com", " Newbie ")

    record = (await users.get_user("user_new")).unwrap()
    assert record.display_name == "Newbie"
    assert record.first_name == ""


@pytest.mark.asyncio
async def test_get_missing_user(users):
    assert (await users.get_user("ghost")).value is None


@pytest.mark.asyncio
async def test_get_user_names(db, users, next_value):
    await users.save_user("user_org", "Olivia", "Organizer", "org@example.com")
    await db.set(USERS, "user_quiet", {"uid": "user_quiet", "email": "quiet@example.com"})

    async with users.get_user_names(["user_org", "user_quiet", "user_org", "user_unknown"]) as live:
        names = await next_value(live)
        assert names == {"user_org": "Olivia Organizer", "user_quiet": "quiet@example.com"}

        await users.merge_user("user_quiet", "quiet@example.com", "Quinn")
        assert (await next_value(live))["user_quiet"] == "Quinn"


@pytest.mark.asyncio
async def test_get_user_names_empty(users, next_value):
    live = users.get_user_names(["", ""])

    assert await next_value(live) == {}
