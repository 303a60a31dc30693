from sqlmodel import select

from app.models.audit import AuditLog


def checkin(client, headers, **fields):
    payload = {"mood": "good", "stress": 4}
    payload.update(fields)
    return client.post("/api/v1/wellness/", json=payload, headers=headers)


def test_create_checkin(client, reader, auth_headers):
    response = checkin(client, auth_headers(reader), notes="slept well")
    assert response.status_code == 201
    entry = response.json()["entry"]
    assert entry["user_id"] == reader.id
    assert entry["mood"] == "good"
    assert entry["notes"] == "slept well"


def test_checkin_validation(client, reader, auth_headers):
    headers = auth_headers(reader)
    assert checkin(client, headers, stress=0).status_code == 400
    assert checkin(client, headers, stress=11).status_code == 400
    assert checkin(client, headers, mood="ecstatic").status_code == 400
    assert checkin(client, headers, notes="x" * 2001).status_code == 400


def test_checkins_are_private(client, reader, admin, auth_headers):
    checkin(client, auth_headers(reader), mood="low")
    checkin(client, auth_headers(admin), mood="excellent")

    mine = client.get("/api/v1/wellness/", headers=auth_headers(reader)).json()
    assert [entry["mood"] for entry in mine["entries"]] == ["low"]

    # admins only see their own as well
    theirs = client.get("/api/v1/wellness/", headers=auth_headers(admin)).json()
    assert [entry["mood"] for entry in theirs["entries"]] == ["excellent"]


def test_checkins_newest_first_and_paged(client, reader, auth_headers):
    headers = auth_headers(reader)
    for stress in range(1, 11):
        checkin(client, headers, stress=stress)
    checkin(client, headers, stress=10, mood="difficult")

    first_page = client.get("/api/v1/wellness/", headers=headers).json()
    assert len(first_page["entries"]) == 10
    assert first_page["entries"][0]["mood"] == "difficult"
    assert first_page["pagination"]["total"] == 11
    assert first_page["pagination"]["totalPages"] == 2

    second_page = client.get("/api/v1/wellness/", params={"page": 2}, headers=headers).json()
    assert [entry["stress"] for entry in second_page["entries"]] == [1]


def test_wellness_requires_authentication(client):
    assert client.get("/api/v1/wellness/").status_code == 401


def test_audit_entry_leaves_out_notes(client, db, reader, auth_headers):
    checkin(client, auth_headers(reader), notes="private")
    with db.session() as session:
        entry = session.exec(select(AuditLog)).one()
    assert entry.action == "CREATE_WELLNESS"
    assert entry.details == {}
