"""
Comment endpoint tests: adding, listing and deleting comments on an
article, plus the ownership and existence checks around them.
"""
import pytest
from httpx import AsyncClient

from helpers import auth, create_article, register


async def _comment(client: AsyncClient, token: str, slug: str, body: str) -> dict:
    resp = await client.post(
        f"/api/articles/{slug}/comments",
        headers=auth(token),
        json={"comment": {"body": body}},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["comment"]


# ---------------------------------------------------------------------------
# Add
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_add_comment(async_client: AsyncClient):
    owner = await register(async_client, "owner")
    commenter = await register(async_client, "commenter")
    article = await create_article(async_client, owner, "Open Thread")

    comment = await _comment(async_client, commenter, article["slug"], "Thank you so much!")
    assert isinstance(comment["id"], int)
    assert comment["body"] == "Thank you so much!"
    assert comment["createdAt"]
    assert comment["updatedAt"]
    assert comment["author"] == {
        "username": "commenter", "bio": None, "image": None, "following": False,
    }


@pytest.mark.asyncio
async def test_add_comment_requires_token(async_client: AsyncClient):
    owner = await register(async_client, "owner")
    article = await create_article(async_client, owner, "No Anons")
    resp = await async_client.post(
        f"/api/articles/{article['slug']}/comments", json={"comment": {"body": "hi"}}
    )
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_add_comment_empty_body(async_client: AsyncClient):
    owner = await register(async_client, "owner")
    article = await create_article(async_client, owner, "Say Something")
    resp = await async_client.post(
        f"/api/articles/{article['slug']}/comments",
        headers=auth(owner),
        json={"comment": {"body": ""}},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_add_comment_unknown_article(async_client: AsyncClient):
    token = await register(async_client, "lost")
    resp = await async_client.post(
        "/api/articles/missing/comments",
        headers=auth(token),
        json={"comment": {"body": "hello?"}},
    )
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_comments_in_creation_order(async_client: AsyncClient):
    owner = await register(async_client, "owner")
    article = await create_article(async_client, owner, "Chatty")
    for body in ("one", "two", "three"):
        await _comment(async_client, owner, article["slug"], body)

    resp = await async_client.get(f"/api/articles/{article['slug']}/comments")
    assert resp.status_code == 200
    assert [c["body"] for c in resp.json()["comments"]] == ["one", "two", "three"]


@pytest.mark.asyncio
async def test_list_comments_following_flag(async_client: AsyncClient):
    owner = await register(async_client, "owner")
    reader = await register(async_client, "reader")
    article = await create_article(async_client, owner, "Followers")
    await _comment(async_client, owner, article["slug"], "author speaking")
    await async_client.post("/api/profiles/owner/follow", headers=auth(reader))

    resp = await async_client.get(
        f"/api/articles/{article['slug']}/comments", headers=auth(reader)
    )
    assert resp.json()["comments"][0]["author"]["following"] is True


@pytest.mark.asyncio
async def test_list_comments_unknown_article(async_client: AsyncClient):
    resp = await async_client.get("/api/articles/missing/comments")
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_own_comment(async_client: AsyncClient):
    owner = await register(async_client, "owner")
    article = await create_article(async_client, owner, "Erasable")
    comment = await _comment(async_client, owner, article["slug"], "oops")

    resp = await async_client.delete(
        f"/api/articles/{article['slug']}/comments/{comment['id']}", headers=auth(owner)
    )
    assert resp.status_code == 204

    listing = await async_client.get(f"/api/articles/{article['slug']}/comments")
    assert listing.json() == {"comments": []}


@pytest.mark.asyncio
async def test_delete_comment_by_non_author(async_client: AsyncClient):
    """Even the article's author may not delete someone else's comment."""
    owner = await register(async_client, "owner")
    commenter = await register(async_client, "commenter")
    article = await create_article(async_client, owner, "Moderated")
    comment = await _comment(async_client, commenter, article["slug"], "mine")

    resp = await async_client.delete(
        f"/api/articles/{article['slug']}/comments/{comment['id']}", headers=auth(owner)
    )
    assert resp.status_code == 403

    listing = await async_client.get(f"/api/articles/{article['slug']}/comments")
    assert len(listing.json()["comments"]) == 1


@pytest.mark.asyncio
async def test_delete_missing_comment(async_client: AsyncClient):
    owner = await register(async_client, "owner")
    article = await create_article(async_client, owner, "Empty Thread")
    resp = await async_client.delete(
        f"/api/articles/{article['slug']}/comments/12345", headers=auth(owner)
    )
    assert resp.status_code == 404
    assert resp.json() == {"errors": {"body": ["comment not found"]}}


@pytest.mark.asyncio
async def test_delete_comment_requires_token(async_client: AsyncClient):
    owner = await register(async_client, "owner")
    article = await create_article(async_client, owner, "Guarded Thread")
    comment = await _comment(async_client, owner, article["slug"], "stay")

    resp = await async_client.delete(
        f"/api/articles/{article['slug']}/comments/{comment['id']}"
    )
    assert resp.status_code == 401
