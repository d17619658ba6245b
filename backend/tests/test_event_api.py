import pytest
from httpx import AsyncClient
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from homebase.api import events as events_api
from homebase.models.event import Event, EventAttendee


async def signup(client: AsyncClient, username: str) -> tuple[int, dict[str, str]]:
    response = await client.post(
        "/auth/signup",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": "testpass123",
        },
    )
    assert response.status_code == 201
    data = response.json()
    return data["user"]["id"], {"Authorization": f"Bearer {data['token']['accessToken']}"}


async def shared_household(client: AsyncClient) -> tuple[tuple[int, dict], tuple[int, dict]]:
    owner_id, owner_headers = await signup(client, "owner")
    created = await client.post(
        "/household/create", json={"householdName": "Event Home"}, headers=owner_headers
    )
    join_code = created.json()["household"]["joinCode"]
    member_id, member_headers = await signup(client, "member")
    joined = await client.post(
        "/household/join", json={"joinCode": join_code}, headers=member_headers
    )
    assert joined.status_code == 200
    return (owner_id, owner_headers), (member_id, member_headers)


@pytest.mark.asyncio
async def test_recurring_event_copies_attendees(client: AsyncClient) -> None:
    (owner_id, owner_headers), (member_id, _) = await shared_household(client)

    response = await client.post(
        "/event",
        json={
            "name": "Family dinner",
            "location": "Grandma's",
            "date": "2025-01-05T19:00:00",
            "attendees": [owner_id, member_id, owner_id],
            "cycle": 7,
            "repeatCount": 2,
        },
        headers=owner_headers,
    )

    assert response.status_code == 201
    event = response.json()
    assert event["location"] == "Grandma's"
    assert [attendee["id"] for attendee in event["attendees"]] == [owner_id, member_id]
    assert [child["date"] for child in event["childEvents"]] == [
        "2025-01-12T19:00:00",
        "2025-01-19T19:00:00",
    ]
    for child in event["childEvents"]:
        assert child["parentEventId"] == event["id"]
        assert child["repeatCount"] == 0
        assert {attendee["id"] for attendee in child["attendees"]} == {owner_id, member_id}

    listing = await client.get("/event", headers=owner_headers)
    assert listing.json()["count"] == 3
    assert [row["date"][:10] for row in listing.json()["events"]] == [
        "2025-01-05",
        "2025-01-12",
        "2025-01-19",
    ]


@pytest.mark.asyncio
async def test_attendees_must_belong_to_household(client: AsyncClient) -> None:
    (_, owner_headers), _ = await shared_household(client)
    outsider_id, _ = await signup(client, "outsider")

    response = await client.post(
        "/event",
        json={"name": "Secret", "date": "2025-01-05", "attendees": [outsider_id]},
        headers=owner_headers,
    )

    assert response.status_code == 400
    assert str(outsider_id) in response.json()["message"]
    listing = await client.get("/event", headers=owner_headers)
    assert listing.json()["count"] == 0


@pytest.mark.asyncio
async def test_invalid_event_cycle_rejected(client: AsyncClient) -> None:
    (_, owner_headers), _ = await shared_household(client)
    response = await client.post(
        "/event",
        json={"name": "Odd", "date": "2025-01-05", "cycle": -12, "repeatCount": 3},
        headers=owner_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_filter_by_day_and_attendance(client: AsyncClient) -> None:
    (owner_id, owner_headers), (member_id, member_headers) = await shared_household(client)
    await client.post(
        "/event",
        json={"name": "Morning run", "date": "2025-02-01T07:00:00", "attendees": [member_id]},
        headers=owner_headers,
    )
    await client.post(
        "/event",
        json={"name": "Late movie", "date": "2025-02-01T23:30:00", "attendees": [owner_id]},
        headers=owner_headers,
    )
    await client.post(
        "/event",
        json={"name": "Brunch", "date": "2025-02-02T11:00:00", "attendees": [owner_id, member_id]},
        headers=owner_headers,
    )

    on_day = await client.get("/event", params={"date": "2025-02-01"}, headers=owner_headers)
    assert [row["name"] for row in on_day.json()["events"]] == ["Morning run", "Late movie"]

    mine = await client.get("/event", params={"attending": "true"}, headers=member_headers)
    assert [row["name"] for row in mine.json()["events"]] == ["Morning run", "Brunch"]

    not_mine = await client.get("/event", params={"attending": "false"}, headers=member_headers)
    assert [row["name"] for row in not_mine.json()["events"]] == ["Late movie"]


@pytest.mark.asyncio
async def test_attend_toggle_and_update(client: AsyncClient) -> None:
    (owner_id, owner_headers), (member_id, member_headers) = await shared_household(client)
    event = (
        await client.post(
            "/event",
            json={"name": "Game night", "date": "2025-03-01T20:00:00", "attendees": [owner_id]},
            headers=owner_headers,
        )
    ).json()

    joined = await client.put(
        "/event/attend", json={"eventId": event["id"], "attending": True}, headers=member_headers
    )
    assert joined.status_code == 200
    assert {row["id"] for row in joined.json()["attendees"]} == {owner_id, member_id}

    repeated = await client.put(
        "/event/attend", json={"eventId": event["id"], "attending": True}, headers=member_headers
    )
    assert repeated.status_code == 200
    assert len(repeated.json()["attendees"]) == 2

    left = await client.put(
        "/event/attend", json={"eventId": event["id"], "attending": False}, headers=owner_headers
    )
    assert [row["id"] for row in left.json()["attendees"]] == [member_id]

    updated = await client.put(
        f"/event/{event['id']}",
        json={"name": "Board games", "location": "  ", "attendees": [owner_id]},
        headers=member_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Board games"
    assert updated.json()["location"] is None
    assert [row["id"] for row in updated.json()["attendees"]] == [owner_id]


@pytest.mark.asyncio
async def test_delete_event_series(client: AsyncClient) -> None:
    (_, owner_headers), _ = await shared_household(client)
    series = (
        await client.post(
            "/event",
            json={"name": "Standup", "date": "2025-01-06T09:00:00", "cycle": 1, "repeatCount": 4},
            headers=owner_headers,
        )
    ).json()

    response = await client.delete(f"/event/{series['id']}", headers=owner_headers)

    assert response.status_code == 200
    listing = await client.get("/event", headers=owner_headers)
    assert listing.json()["count"] == 0


@pytest.mark.asyncio
async def test_events_are_household_scoped(client: AsyncClient) -> None:
    (_, owner_headers), _ = await shared_household(client)
    _, stranger_headers = await signup(client, "stranger")
    await client.post(
        "/household/create", json={"householdName": "Other Home"}, headers=stranger_headers
    )
    event = (
        await client.post("/event", json={"name": "Ours", "date": "2025-01-01"}, headers=owner_headers)
    ).json()

    attend = await client.put("/event/attend", json={"eventId": event["id"]}, headers=stranger_headers)
    assert attend.status_code == 403
    delete = await client.delete(f"/event/{event['id']}", headers=stranger_headers)
    assert delete.status_code == 403
    missing = await client.delete("/event/424242", headers=owner_headers)
    assert missing.status_code == 404

    listing = await client.get("/event", headers=owner_headers)
    assert listing.json()["count"] == 1


@pytest.mark.asyncio
async def test_failed_attendance_insert_rolls_back_whole_series(
    client: AsyncClient,
    session_maker: async_sessionmaker[AsyncSession],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    (_, owner_headers), (member_id, _) = await shared_household(client)

    async def duplicated_attendee(session, ctx, attendee_ids):
        return [member_id, member_id]

    monkeypatch.setattr(events_api, "_validated_attendees", duplicated_attendee)

    response = await client.post(
        "/event",
        json={
            "name": "Book club",
            "date": "2025-01-05T18:00:00",
            "attendees": [member_id],
            "cycle": -30,
            "repeatCount": 3,
        },
        headers=owner_headers,
    )

    assert response.status_code == 500
    async with session_maker() as session:
        events = await session.execute(select(func.count()).select_from(Event))
        attendees = await session.execute(select(func.count()).select_from(EventAttendee))
        assert events.scalar_one() == 0
        assert attendees.scalar_one() == 0
