"""
User endpoint tests — covers listing users, fetching a user with nested
activity, updating and deleting, and the not-found responses.
"""
import pytest
from httpx import AsyncClient


async def _register(client: AsyncClient, username: str, email: str, password: str = "password1234") -> dict:
    resp = await client.post("/api/users", json={
        "username": username,
        "email": email,
        "password": password,
    })
    assert resp.status_code == 200
    return resp.json()


# ---------------------------------------------------------------------------
# List users
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_users_empty(async_client: AsyncClient):
    """Listing users with no data returns an empty list."""
    resp = await async_client.get("/api/users")
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_list_users(async_client: AsyncClient):
    """All registered users appear in the list, in id order, without passwords."""
    for i in range(3):
        await _register(async_client, f"listuser{i}", f"listuser{i}@example.com")

    resp = await async_client.get("/api/users")
    assert resp.status_code == 200
    users = resp.json()
    assert [u["username"] for u in users] == ["listuser0", "listuser1", "listuser2"]
    for user in users:
        assert set(user) == {"id", "username", "email"}


# ---------------------------------------------------------------------------
# Get user detail
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_user_detail_with_activity(async_client: AsyncClient, activity: dict):
    """Detail view nests posts, comments with post title, and voted post titles."""
    resp = await async_client.get(f"/api/users/{activity['user_id']}")
    assert resp.status_code == 200
    detail = resp.json()

    assert detail["username"] == "Lernantino"
    assert "password" not in detail

    assert len(detail["posts"]) == 1
    post = detail["posts"][0]
    assert set(post) == {"id", "title", "post_url", "created_at"}
    assert post["id"] == activity["own_post_id"]
    assert post["title"] == "Handlebars Docs"

    assert len(detail["comments"]) == 1
    comment = detail["comments"][0]
    assert set(comment) == {"id", "comment_text", "created_at", "post"}
    assert comment["comment_text"] == "Nice reference!"
    assert comment["post"] == {"title": "Sequelize Docs"}

    assert detail["voted_posts"] == [
        {"title": "Handlebars Docs"},
        {"title": "Sequelize Docs"},
    ]


@pytest.mark.asyncio
async def test_get_user_detail_no_activity(async_client: AsyncClient):
    """A fresh user has empty activity collections."""
    user = await _register(async_client, "quiet", "quiet@example.com")

    resp = await async_client.get(f"/api/users/{user['id']}")
    assert resp.status_code == 200
    detail = resp.json()
    assert detail["posts"] == []
    assert detail["comments"] == []
    assert detail["voted_posts"] == []


@pytest.mark.asyncio
async def test_get_user_detail_only_own_activity(async_client: AsyncClient, activity: dict):
    """The other user's detail does not leak Lernantino's comments or votes."""
    resp = await async_client.get(f"/api/users/{activity['other_user_id']}")
    detail = resp.json()
    assert [p["title"] for p in detail["posts"]] == ["Sequelize Docs"]
    assert detail["comments"] == []
    assert detail["voted_posts"] == []


@pytest.mark.asyncio
async def test_user_not_found(async_client: AsyncClient):
    """Fetching a non-existent user ID returns 404 with a message."""
    resp = await async_client.get("/api/users/99999")
    assert resp.status_code == 404
    assert resp.json() == {"message": "No user found with this id"}


# ---------------------------------------------------------------------------
# Update user
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_user_partial(async_client: AsyncClient):
    """Only the fields sent are changed."""
    user = await _register(async_client, "before", "before@example.com")

    resp = await async_client.put(f"/api/users/{user['id']}", json={"username": "after"})
    assert resp.status_code == 200
    assert resp.json() == {"id": user["id"], "username": "after", "email": "before@example.com"}


@pytest.mark.asyncio
async def test_update_password_is_rehashed(async_client: AsyncClient):
    """A changed password goes through the row hook: new password logs in, old does not."""
    user = await _register(async_client, "rotator", "rotator@example.com", "oldpass1")

    resp = await async_client.put(f"/api/users/{user['id']}", json={"password": "newpass1"})
    assert resp.status_code == 200
    assert "password" not in resp.json()

    old = await async_client.post("/api/users/login", json={
        "email": "rotator@example.com", "password": "oldpass1",
    })
    assert old.status_code == 400
    new = await async_client.post("/api/users/login", json={
        "email": "rotator@example.com", "password": "newpass1",
    })
    assert new.status_code == 200


@pytest.mark.asyncio
async def test_update_user_not_found(async_client: AsyncClient):
    resp = await async_client.put("/api/users/99999", json={"username": "ghost"})
    assert resp.status_code == 404
    assert resp.json() == {"message": "No user found with this id"}


@pytest.mark.asyncio
async def test_update_user_invalid_body(async_client: AsyncClient):
    """A too-short password is rejected before touching the database."""
    user = await _register(async_client, "strict", "strict@example.com")
    resp = await async_client.put(f"/api/users/{user['id']}", json={"password": "abc"})
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Delete user
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_user(async_client: AsyncClient):
    user = await _register(async_client, "doomed", "doomed@example.com")

    resp = await async_client.delete(f"/api/users/{user['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"deleted": 1}

    follow_up = await async_client.get(f"/api/users/{user['id']}")
    assert follow_up.status_code == 404


@pytest.mark.asyncio
async def test_delete_user_not_found(async_client: AsyncClient):
    resp = await async_client.delete("/api/users/99999")
    assert resp.status_code == 404
    assert resp.json() == {"message": "No user found with this id"}


@pytest.mark.asyncio
async def test_delete_user_twice(async_client: AsyncClient):
    """The second delete of the same id is a 404, not a 500."""
    user = await _register(async_client, "twice", "twice@example.com")
    assert (await async_client.delete(f"/api/users/{user['id']}")).status_code == 200
    assert (await async_client.delete(f"/api/users/{user['id']}")).status_code == 404


# ---------------------------------------------------------------------------
# Ids outside the column range
# ---------------------------------------------------------------------------

HUGE_ID = 2**63


@pytest.mark.asyncio
async def test_get_user_huge_id_not_found(async_client: AsyncClient):
    """An id no INTEGER column can hold is a 404, not a driver error."""
    resp = await async_client.get(f"/api/users/{HUGE_ID}")
    assert resp.status_code == 404
    assert resp.json() == {"message": "No user found with this id"}


@pytest.mark.asyncio
async def test_update_user_huge_id_not_found(async_client: AsyncClient):
    resp = await async_client.put(f"/api/users/{HUGE_ID}", json={"username": "ghost"})
    assert resp.status_code == 404
    assert resp.json() == {"message": "No user found with this id"}


@pytest.mark.asyncio
async def test_delete_user_huge_id_not_found(async_client: AsyncClient):
    resp = await async_client.delete(f"/api/users/{HUGE_ID}")
    assert resp.status_code == 404
    assert resp.json() == {"message": "No user found with this id"}


@pytest.mark.asyncio
async def test_get_user_non_positive_id_not_found(async_client: AsyncClient):
    for user_id in (0, -1, 2**31):
        resp = await async_client.get(f"/api/users/{user_id}")
        assert resp.status_code == 404
