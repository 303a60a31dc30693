from datetime import datetime, timedelta, timezone

from sqlmodel import select

from app.core.timeutils import as_utc, utcnow
from app.models.audit import AuditLog
from app.models.comment import Comment
from app.models.post import Post
from app.models.user import User, PasswordHistory
from app.models.wellness import WellnessEntry, Mood


def test_utcnow_is_aware():
    now = utcnow()
    assert now.utcoffset() == timedelta(0)


def test_as_utc():
    naive = datetime(2024, 5, 1, 10, 30)
    assert as_utc(naive) == datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)
    aware = datetime(2024, 5, 1, 10, 30, tzinfo=timezone(timedelta(hours=2)))
    assert as_utc(aware) is aware
    assert as_utc(None) is None


def test_model_defaults_are_aware():
    rows = [
        User(name="Ada", email="ada@inkwell.io", password_hash="x"),
        PasswordHistory(user_id=1, password_hash="x"),
        Post(author_id=1, title="T", slug="t", content="body"),
        Comment(post_id=1, author_id=1, content="hi"),
        WellnessEntry(user_id=1, mood=Mood.OKAY, stress=5),
        AuditLog(action="CREATE_POST", resource="post"),
    ]
    for row in rows:
        assert row.created_at.utcoffset() == timedelta(0), type(row).__name__


def test_every_table_accepts_new_rows(client, db):
    before = utcnow()
    with db.session() as session:
        user = User(name="Ada", email="ada@inkwell.io", password_hash="x")
        session.add(user)
        session.commit()
        session.refresh(user)
        post = Post(author_id=user.id, title="T", slug="t", content="body", published_at=utcnow())
        session.add(post)
        session.add(PasswordHistory(user_id=user.id, password_hash="x"))
        session.add(WellnessEntry(user_id=user.id, mood=Mood.GOOD, stress=2))
        session.add(AuditLog(action="CREATE_POST", resource="post"))
        session.commit()
        session.refresh(post)
        session.add(Comment(post_id=post.id, author_id=user.id, content="hi", deleted_at=utcnow()))
        session.commit()

        stored = session.exec(select(Comment)).one()
    assert before <= as_utc(stored.created_at) <= utcnow()
    assert as_utc(stored.deleted_at) >= before


def test_timestamps_survive_updates(client, reader, auth_headers, create_post, create_comment):
    headers = auth_headers(reader)
    post = create_post(reader)
    published = client.patch(f"/api/v1/posts/{post['id']}", json={"status": "published"}, headers=headers)
    assert published.status_code == 200
    assert published.json()["post"]["published_at"] is not None

    comment = create_comment(reader, post["id"])
    assert client.patch(f"/api/v1/comments/{comment['id']}", json={"content": "edited"}, headers=headers).status_code == 200
    assert client.delete(f"/api/v1/comments/{comment['id']}", headers=headers).status_code == 200
    assert client.post("/api/v1/wellness/", json={"mood": "good", "stress": 3}, headers=headers).status_code == 201


def test_search_accepts_dates_with_and_without_offset(client, reader, auth_headers, create_post):
    create_post(reader, title="Dated entry", status="published")
    headers = auth_headers(reader)
    for date_from in ("2000-01-01T00:00:00", "2000-01-01T00:00:00+02:00"):
        response = client.get(
            "/api/v1/search/", params={"query": "dated", "type": "posts", "dateFrom": date_from}, headers=headers
        )
        assert response.status_code == 200
        assert len(response.json()["posts"]) == 1
