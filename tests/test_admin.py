import pytest
from sqlmodel import select

from app.models.audit import AuditLog


@pytest.mark.parametrize("path", ["/api/v1/admin/users", "/api/v1/admin/stats"])
def test_non_admins_are_forbidden(client, reader, editor, auth_headers, path):
    assert client.get(path, headers=auth_headers(reader)).status_code == 403
    assert client.get(path, headers=auth_headers(editor)).status_code == 403


def test_list_users_with_search(client, admin, reader, editor, auth_headers):
    headers = auth_headers(admin)
    body = client.get("/api/v1/admin/users", headers=headers).json()
    assert body["total"] == 3
    assert body["pages"] == 1
    assert all("password_hash" not in user for user in body["users"])

    found = client.get("/api/v1/admin/users", params={"search": "editor"}, headers=headers).json()
    assert [user["id"] for user in found["users"]] == [editor.id]


def test_list_users_pagination(client, admin, make_user, auth_headers):
    for _ in range(4):
        make_user()
    body = client.get("/api/v1/admin/users", params={"page": 2, "limit": 2}, headers=auth_headers(admin)).json()
    assert len(body["users"]) == 2
    assert body["total"] == 5
    assert body["pages"] == 3


def test_get_user(client, admin, reader, auth_headers):
    response = client.get(f"/api/v1/admin/users/{reader.id}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["user"]["email"] == reader.email
    assert client.get("/api/v1/admin/users/999", headers=auth_headers(admin)).status_code == 404


def test_change_role(client, admin, reader, auth_headers):
    response = client.patch(f"/api/v1/admin/users/{reader.id}", json={"role": "editor"}, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "editor"

    # /me reads the stored role, not the one in the credential
    me = client.get("/api/v1/users/me", headers=auth_headers(reader)).json()
    assert me["user"]["role"] == "editor"


def test_unknown_role_is_rejected(client, admin, reader, auth_headers):
    response = client.patch(f"/api/v1/admin/users/{reader.id}", json={"role": "owner"}, headers=auth_headers(admin))
    assert response.status_code == 400


def test_admin_cannot_delete_themselves(client, admin, auth_headers):
    response = client.delete(f"/api/v1/admin/users/{admin.id}", headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["detail"] == "You cannot delete your own account"


def test_delete_missing_user(client, admin, auth_headers):
    assert client.delete("/api/v1/admin/users/999", headers=auth_headers(admin)).status_code == 404


def test_stats(client, admin, reader, auth_headers, create_post, create_comment):
    post = create_post(reader)
    create_comment(reader, post["id"])
    gone = create_comment(reader, post["id"])
    client.delete(f"/api/v1/comments/{gone['id']}", headers=auth_headers(reader))

    stats = client.get("/api/v1/admin/stats", headers=auth_headers(admin)).json()
    assert stats == {"users": 2, "posts": 1, "comments": 1}


def test_user_changes_are_audited(client, db, admin, reader, auth_headers):
    client.patch(f"/api/v1/admin/users/{reader.id}", json={"name": "Renamed"}, headers=auth_headers(admin))
    client.delete(f"/api/v1/admin/users/{reader.id}", headers=auth_headers(admin))
    with db.session() as session:
        entries = session.exec(select(AuditLog).order_by(AuditLog.id)).all()
    assert [(e.action, e.actor_id, e.resource_id) for e in entries] == [
        ("UPDATE_USER", admin.id, reader.id),
        ("DELETE_USER", admin.id, reader.id),
    ]
