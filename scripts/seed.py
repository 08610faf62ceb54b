"""Database seeder for local development and manual API testing."""
import asyncio
import argparse
import random
import time

from app.config import settings
from app.database import engine, async_session, Base
from app.schemas import ArticleCreate, RegisterUser
from app.services import build_services

TAGS = ["python", "fastapi", "postgresql", "docker", "kubernetes",
        "react", "typescript", "aws", "devops", "testing", "performance",
        "security", "microservices", "graphql", "rest-api"]

PASSWORD = "password123"


async def seed(small: bool = False):
    num_users = 5 if small else 25
    num_articles = 20 if small else 500
    max_comments = 2 if small else 5

    print(f"Seeding: {num_users} users, {num_articles} articles")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    services = build_services(settings)

    async with async_session() as session:
        # Users; the id is the token subject.
        user_ids = {}
        for i in range(num_users):
            username = f"user_{i:04d}"
            user = await services.users.register(session, RegisterUser(
                username=username,
                email=f"{username}@example.com",
                password=PASSWORD,
            ))
            user_ids[username] = int(services.tokens.verify(user["token"]))
        print(f"  Created {len(user_ids)} users (password: {PASSWORD})")

        # Follows
        usernames = list(user_ids)
        follows = 0
        for username, user_id in user_ids.items():
            others = [u for u in usernames if u != username]
            for target in random.sample(others, k=min(len(others), random.randint(1, 5))):
                await services.users.follow(session, user_id, target)
                follows += 1
        print(f"  Created {follows} follows")

        # Articles, favorites and comments
        slugs = []
        for i in range(num_articles):
            topic = random.choice(TAGS)
            article = await services.articles.create_article(
                session,
                random.choice(list(user_ids.values())),
                ArticleCreate(
                    title=f"How to optimize {topic} applications",
                    description=f"A guide to optimizing {topic} applications for production.",
                    body=f"This is the full body of article {i}. " * 20,
                    tag_list=random.sample(TAGS, k=random.randint(1, 4)),
                ),
            )
            slugs.append(article["slug"])
        print(f"  Created {len(slugs)} articles")

        favorites = comments = 0
        for slug in slugs:
            for user_id in random.sample(list(user_ids.values()), k=random.randint(0, num_users)):
                await services.articles.favorite(session, user_id, slug)
                favorites += 1
            for _ in range(random.randint(0, max_comments)):
                await services.comments.add_comment(
                    session,
                    random.choice(list(user_ids.values())),
                    slug,
                    "Great article! Very helpful for understanding the topic.",
                )
                comments += 1
        print(f"  Created {favorites} favorites, {comments} comments")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the Conduit database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (20 articles)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
