"""Database seeder: demo users, posts, comments and votes."""
import asyncio
import argparse
import random
import time

from technews.database import engine, async_session, Base
from technews.models import User, Post, Comment, Vote

USERS = [
    ("Lernantino", "lernantino@gmail.com"),
    ("alesmonde0", "nwestnedge0@cbc.ca"),
    ("jwilloughway1", "rmebes1@sogou.com"),
    ("iboddam2", "cstoneman2@last.fm"),
    ("dstanmer3", "ihellier3@goo.ne.jp"),
    ("djiri4", "gmidgley4@weather.com"),
]

SITES = ["nasa.gov", "europa.eu", "mozilla.org", "python.org", "sqlalchemy.org", "redis.io"]


async def seed(posts_per_user: int = 2, password: str = "password1234"):
    print(f"Seeding: {len(USERS)} users, {len(USERS) * posts_per_user} posts")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        # The password row hook hashes each value on assignment.
        users = [User(username=name, email=email, password=password) for name, email in USERS]
        session.add_all(users)
        await session.flush()
        print(f"  Created {len(users)} users")

        posts = []
        for user in users:
            for i in range(posts_per_user):
                site = random.choice(SITES)
                posts.append(Post(
                    title=f"{user.username} on {site} #{i + 1}",
                    post_url=f"https://{site}/{user.username.lower()}/{i + 1}",
                    user_id=user.id,
                ))
        session.add_all(posts)
        await session.flush()
        print(f"  Created {len(posts)} posts")

        comments = 0
        votes = 0
        for user in users:
            for post in random.sample(posts, k=min(3, len(posts))):
                session.add(Comment(
                    comment_text=f"{user.username} found this useful.",
                    user_id=user.id,
                    post_id=post.id,
                ))
                comments += 1
            for post in random.sample(posts, k=min(4, len(posts))):
                session.add(Vote(user_id=user.id, post_id=post.id))
                votes += 1
        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Comments: {comments}")
    print(f"  Votes: {votes}")


def main():
    parser = argparse.ArgumentParser(description="Seed the tech news database")
    parser.add_argument("--posts-per-user", type=int, default=2, help="Posts created for each user")
    args = parser.parse_args()
    asyncio.run(seed(posts_per_user=args.posts_per_user))


if __name__ == "__main__":
    main()
