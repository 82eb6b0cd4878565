from app.models.enums import Role


def _register(client, email, role, first="Pat"):
    resp = client.post("/auth/register", json={
        "firstName": first,
        "lastName": "Lee",
        "email": email,
        "password": "secret123",
        "role": int(role),
    })
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return {"Authorization": f"Bearer {body['token']}"}, body["user"]


def test_printer_jam_scenario(client):
    student_h, _ = _register(client, "s1@school.example", Role.STUDENT)
    student2_h, _ = _register(client, "s2@school.example", Role.STUDENT)
    coord_h, coord = _register(client, "it@school.example", Role.IT_COORDINATOR)

    resp = client.post("/tickets/", headers=student_h, json={
        "title": "Printer jam",
        "description": "Paper stuck in tray 2",
        "priority": 1,
        "category": 1,
    })
    assert resp.status_code == 201
    ticket_id = resp.json()["ticketId"]
    assert isinstance(ticket_id, int) and ticket_id > 0

    ticket = client.get(f"/tickets/{ticket_id}", headers=student_h).json()
    assert ticket["status"] == 1

    coord_list = client.get("/tickets/", headers=coord_h).json()
    assert ticket_id in [t["id"] for t in coord_list["tickets"]]

    other_list = client.get("/tickets/", headers=student2_h).json()
    assert other_list == {"tickets": [], "count": 0}

    resp = client.patch(f"/tickets/{ticket_id}", headers=coord_h, json={"status": 2, "assignedTo": coord["id"]})
    assert resp.status_code == 200
    assert resp.json()["status"] == 2
    assert resp.json()["assigned_to"] == coord["id"]
    assert resp.json()["assignee_name"] == "Pat Lee"

    client.patch(f"/tickets/{ticket_id}", headers=coord_h, json={"status": 4})
    resp = client.patch(f"/tickets/{ticket_id}", headers=coord_h, json={"status": 1})
    assert resp.status_code == 409
    assert "CLOSED" in resp.json()["message"]


def test_login_and_profile(client):
    _register(client, "t@school.example", Role.TEACHER, first="Tess")

    resp = client.post("/auth/login", json={"email": "t@school.example", "password": "secret123"})
    assert resp.status_code == 200
    headers = {"Authorization": f"Bearer {resp.json()['token']}"}

    profile = client.get("/auth/profile", headers=headers).json()["user"]
    assert profile["first_name"] == "Tess"
    assert profile["role"] == 2
    assert client.get("/auth/verify", headers=headers).json()["valid"] is True


def test_login_rejects_bad_password(client):
    _register(client, "t@school.example", Role.TEACHER)

    resp = client.post("/auth/login", json={"email": "t@school.example", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid credentials"}

    resp = client.post("/auth/login", json={"email": "ghost@school.example", "password": "secret123"})
    assert resp.status_code == 401


def test_duplicate_registration(client):
    _register(client, "dup@school.example", Role.STUDENT)
    resp = client.post("/auth/register", json={
        "firstName": "A", "lastName": "B", "email": "dup@school.example",
        "password": "secret123", "role": 1,
    })
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "email"


def test_registration_validation_errors(client):
    resp = client.post("/auth/register", json={
        "firstName": "", "lastName": "B", "email": "not-an-email", "password": "123", "role": 7,
    })
    assert resp.status_code == 400
    fields = {e["field"] for e in resp.json()["errors"]}
    assert {"firstName", "email", "password", "role"} <= fields


def test_missing_or_bad_token(client):
    resp = client.get("/tickets/")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"

    resp = client.get("/tickets/", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_create_validation_errors(client, student, auth_headers):
    resp = client.post("/tickets/", headers=auth_headers(student), json={
        "title": "", "description": "ok", "priority": 5, "category": 1,
    })
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation failed"
    assert {e["field"] for e in body["errors"]} == {"title", "priority"}


def test_coordinator_cannot_create(client, coordinator, auth_headers):
    resp = client.post("/tickets/", headers=auth_headers(coordinator), json={
        "title": "x", "description": "y", "priority": 1, "category": 1,
    })
    assert resp.status_code == 403


def test_student_cannot_patch(client, student, auth_headers):
    h = auth_headers(student)
    ticket_id = client.post("/tickets/", headers=h, json={
        "title": "x", "description": "y", "priority": 1, "category": 1,
    }).json()["ticketId"]

    resp = client.patch(f"/tickets/{ticket_id}", headers=h, json={"priority": 4})
    assert resp.status_code == 403


def test_empty_patch(client, student, coordinator, auth_headers):
    ticket_id = client.post("/tickets/", headers=auth_headers(student), json={
        "title": "x", "description": "y", "priority": 1, "category": 1,
    }).json()["ticketId"]

    resp = client.patch(f"/tickets/{ticket_id}", headers=auth_headers(coordinator), json={})
    assert resp.status_code == 400
    assert resp.json()["message"] == "No valid fields to update"


def test_updates_flow_and_delete(client, student, other_student, coordinator, auth_headers):
    sh, oh, ch = auth_headers(student), auth_headers(other_student), auth_headers(coordinator)
    ticket_id = client.post("/tickets/", headers=sh, json={
        "title": "Laptop will not boot", "description": "Black screen", "priority": 3, "category": 1,
    }).json()["ticketId"]

    resp = client.post("/updates/", headers=ch, json={"ticketId": ticket_id, "message": "Bring it to room 4"})
    assert resp.status_code == 201
    resp = client.post("/updates/", headers=sh, json={"ticketId": ticket_id, "message": "Will do"})
    assert resp.status_code == 201

    assert client.post("/updates/", headers=oh, json={"ticketId": ticket_id, "message": "hi"}).status_code == 404
    assert client.get(f"/updates/ticket/{ticket_id}", headers=oh).status_code == 404

    listing = client.get(f"/updates/ticket/{ticket_id}", headers=sh).json()
    assert listing["count"] == 2
    assert [u["message"] for u in listing["updates"]] == ["Bring it to room 4", "Will do"]

    assert client.delete(f"/tickets/{ticket_id}", headers=oh).status_code == 403
    assert client.delete(f"/tickets/{ticket_id}", headers=ch).status_code == 403

    resp = client.delete(f"/tickets/{ticket_id}", headers=sh)
    assert resp.status_code == 200
    assert resp.json()["updatesRemoved"] == 2
    assert client.get(f"/tickets/{ticket_id}", headers=sh).status_code == 404
    assert client.delete(f"/tickets/{ticket_id}", headers=sh).status_code == 404


def test_directory_endpoints_are_coordinator_only(client, student, teacher, coordinator, auth_headers):
    assert client.get("/users/", headers=auth_headers(student)).status_code == 403
    assert client.get("/users/stats/overview", headers=auth_headers(teacher)).status_code == 403
    assert client.get("/tickets/stats/overview", headers=auth_headers(student)).status_code == 403

    ch = auth_headers(coordinator)
    assert client.get("/users/", headers=ch).json()["count"] == 3
    assert client.get("/users/stats/overview", headers=ch).json() == {
        "total_users": 3, "students": 1, "teachers": 1, "it_coordinators": 1,
    }
    teachers = client.get("/users/role/2", headers=ch).json()
    assert [u["id"] for u in teachers["users"]] == [teacher.id]
    assert client.get("/users/role/9", headers=ch).status_code == 400
    assert client.get("/tickets/stats/overview", headers=ch).json()["total_tickets"] == 0


def test_ai_classify_without_configuration(client, student, auth_headers):
    resp = client.post("/ai/classify", headers=auth_headers(student), json={"text": "network is down campus wide"})
    assert resp.status_code == 200
    assert resp.json()["category"] == "Network"
    assert resp.json()["priority"] == 4

    resp = client.post("/ai/summarize", headers=auth_headers(student), json={"text": "Mouse broken."})
    assert resp.json() == {"summary": "Mouse broken."}


def test_health(client):
    assert client.get("/health").json()["ok"] is True
