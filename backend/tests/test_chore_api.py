from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from homebase.api import chores as chores_api
from homebase.core.config import get_settings
from homebase.models.chore import Chore


async def signup_with_household(
    client: AsyncClient, username: str, household_name: str
) -> tuple[int, dict[str, str]]:
    signup_res = await client.post(
        "/auth/signup",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": "testpass123",
        },
    )
    assert signup_res.status_code == 201
    user_id = signup_res.json()["user"]["id"]
    headers = {"Authorization": f"Bearer {signup_res.json()['token']['accessToken']}"}
    create_res = await client.post(
        "/household/create", json={"householdName": household_name}, headers=headers
    )
    assert create_res.status_code == 201
    return user_id, headers


@pytest.mark.asyncio
async def test_weekly_chore_expands_into_children(client: AsyncClient) -> None:
    user_id, headers = await signup_with_household(client, "alice", "Alice Home")

    response = await client.post(
        "/chore",
        json={"name": "Trash", "dueDate": "2025-01-01", "cycle": 7, "repeatCount": 3},
        headers=headers,
    )

    assert response.status_code == 201
    parent = response.json()
    assert parent["dueDate"].startswith("2025-01-01")
    assert parent["repeatCount"] == 3
    assert parent["cycle"] == 7
    assert parent["parentChoreId"] is None
    assert parent["createdBy"] == {"id": user_id, "username": "alice"}
    children = parent["childChores"]
    assert [child["dueDate"][:10] for child in children] == [
        "2025-01-08",
        "2025-01-15",
        "2025-01-22",
    ]
    assert all(child["repeatCount"] == 0 for child in children)
    assert all(child["parentChoreId"] == parent["id"] for child in children)

    listing = await client.get("/chore", headers=headers)
    assert listing.json()["count"] == 4
    assert sorted(chore["dueDate"][:10] for chore in listing.json()["chores"]) == [
        "2025-01-01",
        "2025-01-08",
        "2025-01-15",
        "2025-01-22",
    ]


@pytest.mark.asyncio
async def test_cycle_zero_never_spawns_children(client: AsyncClient) -> None:
    _, headers = await signup_with_household(client, "bob", "Bob Home")

    response = await client.post(
        "/chore",
        json={"name": "Once", "dueDate": "2025-03-01", "cycle": 0, "repeatCount": 12},
        headers=headers,
    )

    assert response.status_code == 201
    assert response.json()["childChores"] == []
    listing = await client.get("/chore", headers=headers)
    assert listing.json()["count"] == 1


@pytest.mark.asyncio
async def test_monthly_chore_clamps_to_month_end(client: AsyncClient) -> None:
    _, headers = await signup_with_household(client, "carol", "Carol Home")

    response = await client.post(
        "/chore",
        json={"name": "Rent check", "dueDate": "2025-01-31T18:00:00", "cycle": -30, "repeatCount": 2},
        headers=headers,
    )

    assert response.status_code == 201
    assert [child["dueDate"] for child in response.json()["childChores"]] == [
        "2025-02-28T18:00:00",
        "2025-03-31T18:00:00",
    ]


@pytest.mark.asyncio
async def test_timezone_aware_due_date_stored_as_utc(client: AsyncClient) -> None:
    _, headers = await signup_with_household(client, "tz", "Zone Home")

    response = await client.post(
        "/chore",
        json={"name": "Call", "dueDate": "2025-06-01T10:00:00+02:00"},
        headers=headers,
    )

    assert response.status_code == 201
    assert response.json()["dueDate"] == "2025-06-01T08:00:00"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"cycle": -7, "repeatCount": 2},
        {"cycle": -400},
        {"repeatCount": 366, "cycle": 1},
        {"priority": 0},
        {"priority": 6},
        {"dueDate": "next tuesday"},
        {"name": ""},
        {"name": "   "},
    ],
)
async def test_invalid_chore_payloads_are_400(client: AsyncClient, overrides: dict) -> None:
    _, headers = await signup_with_household(client, "dave", "Dave Home")
    payload = {"name": "Sweep", "dueDate": "2025-01-01", **overrides}

    response = await client.post("/chore", json=payload, headers=headers)

    assert response.status_code == 400
    assert "message" in response.json()
    listing = await client.get("/chore", headers=headers)
    assert listing.json()["count"] == 0


@pytest.mark.asyncio
async def test_chore_list_sorted_by_priority_then_due_date(client: AsyncClient) -> None:
    _, headers = await signup_with_household(client, "erin", "Erin Home")
    for name, priority, due in (
        ("Low late", 5, "2025-01-10"),
        ("High late", 1, "2025-01-09"),
        ("High early", 1, "2025-01-02"),
        ("Mid", 3, "2025-01-01"),
    ):
        await client.post(
            "/chore",
            json={"name": name, "priority": priority, "dueDate": due},
            headers=headers,
        )

    listing = await client.get("/chore", headers=headers)
    assert [chore["name"] for chore in listing.json()["chores"]] == [
        "High early",
        "High late",
        "Mid",
        "Low late",
    ]

    page = await client.get("/chore", params={"skip": 1, "limit": 2}, headers=headers)
    assert [chore["name"] for chore in page.json()["chores"]] == ["High late", "Mid"]
    assert page.json()["count"] == 4

    too_big = await client.get("/chore", params={"limit": 101}, headers=headers)
    assert too_big.status_code == 400


@pytest.mark.asyncio
async def test_done_toggle_records_doer(client: AsyncClient) -> None:
    user_id, headers = await signup_with_household(client, "fay", "Fay Home")
    chore = (
        await client.post("/chore", json={"name": "Dust", "dueDate": "2025-01-01"}, headers=headers)
    ).json()

    done = await client.put("/chore/done", json={"choreId": chore["id"], "done": True}, headers=headers)
    assert done.status_code == 200
    assert done.json()["chore"]["done"] is True
    assert done.json()["chore"]["doneBy"] == {"id": user_id, "username": "fay"}

    done_list = await client.get("/chore", params={"done": "true"}, headers=headers)
    assert [row["id"] for row in done_list.json()["chores"]] == [chore["id"]]

    undone = await client.put(
        "/chore/done", json={"choreId": chore["id"], "done": False}, headers=headers
    )
    assert undone.json()["chore"]["done"] is False
    assert undone.json()["chore"]["doneBy"] is None

    open_list = await client.get("/chore", params={"done": "false"}, headers=headers)
    assert open_list.json()["count"] == 1


@pytest.mark.asyncio
async def test_update_chore_partial(client: AsyncClient) -> None:
    _, headers = await signup_with_household(client, "gus", "Gus Home")
    chore = (
        await client.post(
            "/chore",
            json={"name": "Mop", "description": "Kitchen", "dueDate": "2025-01-01", "priority": 2},
            headers=headers,
        )
    ).json()

    response = await client.put(
        f"/chore/{chore['id']}", json={"priority": 4, "dueDate": "2025-02-02"}, headers=headers
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["priority"] == 4
    assert updated["dueDate"].startswith("2025-02-02")
    assert updated["name"] == "Mop"
    assert updated["description"] == "Kitchen"


@pytest.mark.asyncio
async def test_cross_household_access_is_forbidden(client: AsyncClient) -> None:
    _, owner_headers = await signup_with_household(client, "hana", "Hana Home")
    _, other_headers = await signup_with_household(client, "ivan", "Ivan Home")
    chore = (
        await client.post("/chore", json={"name": "Private", "dueDate": "2025-01-01"}, headers=owner_headers)
    ).json()

    update = await client.put(f"/chore/{chore['id']}", json={"name": "Stolen"}, headers=other_headers)
    assert update.status_code == 403
    toggle = await client.put("/chore/done", json={"choreId": chore["id"]}, headers=other_headers)
    assert toggle.status_code == 403
    delete = await client.delete(f"/chore/{chore['id']}", headers=other_headers)
    assert delete.status_code == 403

    other_list = await client.get("/chore", headers=other_headers)
    assert other_list.json()["count"] == 0

    listing = await client.get("/chore", headers=owner_headers)
    (row,) = listing.json()["chores"]
    assert row["name"] == "Private"
    assert row["done"] is False


@pytest.mark.asyncio
async def test_missing_chore_is_404(client: AsyncClient) -> None:
    _, headers = await signup_with_household(client, "jack", "Jack Home")
    response = await client.put("/chore/9999", json={"name": "Ghost"}, headers=headers)
    assert response.status_code == 404
    assert response.json() == {"message": "Chore with ID '9999' was not found."}


@pytest.mark.asyncio
async def test_deleting_parent_removes_occurrences(client: AsyncClient) -> None:
    _, headers = await signup_with_household(client, "kim", "Kim Home")
    series = (
        await client.post(
            "/chore",
            json={"name": "Water plants", "dueDate": "2025-01-01", "cycle": 2, "repeatCount": 4},
            headers=headers,
        )
    ).json()
    single = (
        await client.post("/chore", json={"name": "Standalone", "dueDate": "2025-01-01"}, headers=headers)
    ).json()

    child_id = series["childChores"][0]["id"]
    child_delete = await client.delete(f"/chore/{child_id}", headers=headers)
    assert child_delete.status_code == 200
    assert (await client.get("/chore", headers=headers)).json()["count"] == 5

    response = await client.delete(f"/chore/{series['id']}", headers=headers)
    assert response.status_code == 200

    remaining = (await client.get("/chore", headers=headers)).json()
    assert [row["id"] for row in remaining["chores"]] == [single["id"]]


@pytest.mark.asyncio
async def test_failed_occurrence_insert_leaves_no_rows(
    client: AsyncClient,
    session_maker: async_sessionmaker[AsyncSession],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _, headers = await signup_with_household(client, "liam", "Liam Home")

    def second_occurrence_undated(base, recurrence, repeat_count, max_count=365):
        return [base + timedelta(days=7), None]

    monkeypatch.setattr(chores_api, "occurrence_dates", second_occurrence_undated)

    response = await client.post(
        "/chore",
        json={"name": "Trash", "dueDate": "2025-01-01", "cycle": 7, "repeatCount": 2},
        headers=headers,
    )

    assert response.status_code == 500
    async with session_maker() as session:
        result = await session.execute(select(func.count()).select_from(Chore))
        assert result.scalar_one() == 0
    assert (await client.get("/chore", headers=headers)).json()["count"] == 0


@pytest.mark.asyncio
async def test_repeat_limit_follows_settings(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    _, headers = await signup_with_household(client, "maya", "Maya Home")
    monkeypatch.setattr(get_settings(), "max_repeat_count", 400)

    response = await client.post(
        "/chore",
        json={"name": "Water plants", "dueDate": "2025-01-01", "cycle": 1, "repeatCount": 400},
        headers=headers,
    )
    assert response.status_code == 201
    assert len(response.json()["childChores"]) == 400

    monkeypatch.setattr(get_settings(), "max_repeat_count", 2)
    response = await client.post(
        "/chore",
        json={"name": "Feed cat", "dueDate": "2025-01-01", "cycle": 1, "repeatCount": 3},
        headers=headers,
    )
    assert response.status_code == 400
    assert "repeatCount" in response.json()["message"]
