from sqlmodel import select
from app.core.config import settings
from app.core.security import get_password_hash
from app.db.session import Database
from app.models.comment import Comment
from app.models.post import Post, PostStatus
from app.models.user import User, Role
from app.services.post import slugify, compute_reading_time

SEED_PASSWORD = "Inkwell#2024"

def seed():
    db = Database(settings)
    print("Creating database and tables...")
    db.create_db_and_tables()

    with db.session() as session:
        # Check if users already exist to avoid duplicates
        existing_users = session.exec(select(User)).all()
        if existing_users:
            print(f"Database already contains {len(existing_users)} users. Skipping seed.")
            return

        print("Seeding users...")
        users = {
            role: User(
                name=f"{role.value.title()} User",
                email=f"{role.value}@inkwell.io",
                password_hash=get_password_hash(SEED_PASSWORD),
                role=role,
            )
            for role in Role
        }
        for user in users.values():
            session.add(user)
        session.commit()

        print("Seeding posts...")
        drafts = [
            (users[Role.EDITOR], "Writing in the Open", PostStatus.PUBLISHED,
             "Publishing drafts early keeps a blog honest. Readers see the work take shape."),
            (users[Role.EDITOR], "Notes on Slow Reading", PostStatus.PUBLISHED,
             "Some texts reward a second pass. This post collects a few of them."),
            (users[Role.READER], "My First Post", PostStatus.DRAFT,
             "Still figuring out what to write about."),
        ]
        posts = []
        for author, title, status, content in drafts:
            post = Post(
                author_id=author.id,
                title=title,
                slug=slugify(title),
                content=content,
                excerpt=content.split(".")[0],
                status=status,
                tags=["welcome"],
                reading_time=compute_reading_time(content),
            )
            if status == PostStatus.PUBLISHED:
                post.published_at = post.created_at
            session.add(post)
            posts.append(post)
        session.commit()

        print("Seeding comments...")
        first = posts[0]
        root = Comment(post_id=first.id, author_id=users[Role.READER].id, content="Great read, thanks!")
        session.add(root)
        session.commit()
        session.add(Comment(post_id=first.id, author_id=users[Role.EDITOR].id,
                            parent_id=root.id, content="Glad you liked it."))
        session.commit()

        print(f"Successfully seeded {len(users)} users and {len(posts)} posts! Password: {SEED_PASSWORD}")

if __name__ == "__main__":
    seed()
