"""Database seeder: users, blogs, posts, comments, likes and a few bans."""
import argparse
import asyncio
import random
import time
from datetime import datetime, timedelta, timezone

from app.database import Base, async_session, engine
from app.models import Blog, Comment, LikeStatus, Post, SubjectKind, User
from app.services.ban_registry import BanRegistry
from app.services.like_ledger import LikeLedger

TOPICS = ["python", "fastapi", "postgresql", "docker", "testing", "security",
          "asyncio", "sqlalchemy", "pydantic", "devops"]


async def seed(small: bool = False):
    num_users = 10 if small else 50
    num_blogs = 5 if small else 40
    posts_per_blog = 4 if small else 25
    comments_per_post = 2 if small else 5

    print(f"Seeding: {num_users} users, {num_blogs} blogs, {num_blogs * posts_per_blog} posts")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        now = datetime.now(timezone.utc)

        users = []
        for i in range(num_users):
            user = User(
                login=f"user{i:04d}",
                email=f"user{i:04d}@example.com",
                is_banned=False,
                created_at=now - timedelta(days=random.randint(30, 365)),
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users")

        blogs = []
        for i in range(num_blogs):
            blog = Blog(
                name=f"blog {i}",
                description=f"Notes about {random.choice(TOPICS)}",
                website_url=f"https://blog{i}.example.com",
                owner_id=random.choice(users).id,
                is_banned=False,
                created_at=now - timedelta(days=random.randint(0, 30)),
            )
            session.add(blog)
            blogs.append(blog)
        await session.flush()
        print(f"  Created {len(blogs)} blogs")

        post_ledger = LikeLedger(session, SubjectKind.POST)
        comment_ledger = LikeLedger(session, SubjectKind.COMMENT)
        total_comments = 0
        total_likes = 0
        for blog in blogs:
            for j in range(posts_per_blog):
                post = Post(
                    title=f"On {random.choice(TOPICS)} #{j}",
                    short_description="A short walkthrough",
                    content="Post body. " * 30,
                    blog_id=blog.id,
                    created_at=now - timedelta(hours=random.randint(0, 500)),
                )
                session.add(post)
                await session.flush()

                for voter in random.sample(users, k=random.randint(0, min(8, len(users)))):
                    status = LikeStatus.LIKE if random.random() > 0.3 else LikeStatus.DISLIKE
                    await post_ledger.set_status(post.id, voter.id, voter.login, status)
                    total_likes += 1

                for _ in range(random.randint(0, comments_per_post)):
                    author = random.choice(users)
                    comment = Comment(
                        content=f"Thanks, this helped me with {random.choice(TOPICS)} a lot.",
                        post_id=post.id,
                        user_id=author.id,
                        created_at=now,
                    )
                    session.add(comment)
                    await session.flush()
                    total_comments += 1
                    voter = random.choice(users)
                    await comment_ledger.set_status(comment.id, voter.id, voter.login, LikeStatus.LIKE)
                    total_likes += 1

        registry = BanRegistry(session)
        await registry.ban_user(users[-1].id, "Seeded global ban for moderation demo")
        await registry.ban_user_for_blog(blogs[0].id, users[-2].id, "Seeded blog ban for moderation demo")
        await registry.ban_blog(blogs[-1].id)

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Comments: {total_comments}")
    print(f"  Likes/dislikes: {total_likes}")
    print("  Bans: 1 global user, 1 blog-scoped user, 1 blog")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
