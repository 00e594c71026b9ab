"""Load demo users, follows, articles and comments for local development."""
import argparse
import asyncio
import time

from sqlalchemy import select

from app.database import Base, dispose_engine, engine, session_scope
from app.models import User
from app.schemas import ArticleCreate, CommentCreate, UserRegister
from app.services import article_service, comment_service, profile_service, user_service

USERS = [
    ("germione", "germione@prisma.com"),
    ("naboo", "naboo@prisma.com"),
    ("jango", "jango@prisma.com"),
]

ARTICLES = [
    ("germione", "How to eat a fish", "Fishes are tasty", "Start with the tail.", ["animal", "eat", "fish"]),
    ("germione", "How to train your dragon", "Ever wonder how?", "Very carefully.", ["animal", "dragons"]),
    ("naboo", "Coding with hooks", "A primer", "Hooks are functions.", ["react", "javascript"]),
]

PASSWORD = "passeword"


async def seed(reset: bool = False) -> None:
    start = time.perf_counter()

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with session_scope() as session:
        ids: dict[str, int] = {}
        for username, email in USERS:
            await user_service.register(
                session, UserRegister(email=email, username=username, password=PASSWORD)
            )
        await session.flush()
        for user in (await session.execute(select(User))).scalars():
            ids[user.username] = user.id
        print(f"  Created {len(ids)} users (password: {PASSWORD!r})")

        await profile_service.follow(session, "naboo", ids["germione"])
        await profile_service.follow(session, "germione", ids["jango"])
        print("  germione follows naboo, jango follows germione")

        slugs = []
        for author, title, description, body, tags in ARTICLES:
            article = await article_service.create_article(
                session,
                ids[author],
                ArticleCreate(title=title, description=description, body=body, tagList=tags),
            )
            slugs.append(article["slug"])
        print(f"  Created {len(slugs)} articles")

        await article_service.favorite(session, slugs[0], ids["naboo"])
        await comment_service.add_comment(
            session, slugs[0], ids["naboo"], CommentCreate(body="Delicious!")
        )

    await dispose_engine()
    print(f"Seeding complete in {time.perf_counter() - start:.2f}s")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the Conduit database with demo data")
    parser.add_argument("--reset", action="store_true", help="drop all tables first")
    args = parser.parse_args()
    asyncio.run(seed(reset=args.reset))


if __name__ == "__main__":
    main()
