"""HTTP helpers shared by the endpoint tests."""
from httpx import AsyncClient


async def register(client: AsyncClient, username: str, password: str = "secret-pass") -> str:
    """Register *username* (email derived from it) and return the issued token."""
    resp = await client.post("/api/users", json={"user": {
        "username": username,
        "email": f"{username}@example.com",
        "password": password,
    }})
    assert resp.status_code == 201, resp.text
    return resp.json()["user"]["token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Token {token}"}


async def create_article(
    client: AsyncClient,
    token: str,
    title: str,
    tags: list[str] | None = None,
) -> dict:
    resp = await client.post("/api/articles", headers=auth(token), json={"article": {
        "title": title,
        "description": f"About {title}",
        "body": f"Body of {title}",
        "tagList": tags or [],
    }})
    assert resp.status_code == 201, resp.text
    return resp.json()["article"]
