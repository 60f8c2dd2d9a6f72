def seed_catalog(client, max_workload=10):
    responses = [
        client.post(
            "/api/subjects",
            json={
                "id": "s1",
                "name": "Data Structures",
                "code": "CS201",
                "department": "Computer",
                "year": "SE",
                "theoryHours": 2,
                "practicalHours": 2,
                "type": "CORE",
            },
        ),
        client.post(
            "/api/divisions",
            json={
                "id": "d1",
                "department": "Computer",
                "year": "SE",
                "name": "A",
                "batches": [{"id": "b1", "name": "B1", "studentCount": 20}],
            },
        ),
        client.post(
            "/api/faculty",
            json={"id": "f1", "name": "Prof AB", "initials": "AB", "maxWorkload": max_workload, "subjects": ["s1"]},
        ),
        client.post("/api/rooms", json={"id": "r1", "roomNumber": "101", "category": "CLASSROOM"}),
        client.post("/api/rooms", json={"id": "lab1", "roomNumber": "L1", "category": "LAB"}),
    ]
    for response in responses:
        assert response.status_code == 201, response.text


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_ready_reports_schema_and_counts(client):
    seed_catalog(client)

    response = client.get("/api/health/ready")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"]["missing_tables"] == []
    assert body["scheduling"]["counts"] == {"allocations": 0, "entries": 0}


def test_catalog_round_trip_uses_camel_case(client):
    seed_catalog(client)

    subjects = client.get("/api/subjects").json()
    divisions = client.get("/api/divisions").json()
    faculty = client.get("/api/faculty").json()
    rooms = client.get("/api/rooms").json()

    assert subjects[0]["theoryHours"] == 2
    assert subjects[0]["type"] == "CORE"
    assert divisions[0]["batches"][0]["studentCount"] == 20
    assert faculty[0]["subjects"] == ["s1"]
    assert faculty[0]["currentWorkload"] == 0
    assert [room["id"] for room in rooms] == ["r1", "lab1"]


def test_duplicate_catalog_ids_conflict(client):
    seed_catalog(client)

    response = client.post("/api/rooms", json={"id": "r1", "roomNumber": "999", "category": "CLASSROOM"})

    assert response.status_code == 409


def test_invalid_catalog_payload_is_rejected(client):
    response = client.post(
        "/api/subjects",
        json={"name": "Bad", "code": "X", "department": "Computer", "year": "XX", "type": "CORE"},
    )
    assert response.status_code == 422

    response = client.post(
        "/api/subjects",
        json={"name": "Bad", "code": "X", "department": "Computer", "year": "SE", "type": "CORE", "electives": ["A"]},
    )
    assert response.status_code == 422


def test_allocation_reserves_and_releases_faculty_workload(client):
    seed_catalog(client, max_workload=3)

    created = client.post(
        "/api/allocations/",
        json={"id": "a1", "subjectId": "s1", "facultyId": "f1", "divisionId": "d1", "type": "THEORY", "hours": 2},
    )
    assert created.status_code == 201
    assert created.json()["batchId"] is None
    assert client.get("/api/faculty").json()[0]["currentWorkload"] == 2

    refused = client.post(
        "/api/allocations/",
        json={
            "id": "a2",
            "subjectId": "s1",
            "facultyId": "f1",
            "divisionId": "d1",
            "batchId": "b1",
            "type": "PRACTICAL",
            "hours": 2,
        },
    )
    assert refused.status_code == 409
    assert refused.json()["details"]["max"] == 3
    assert [item["id"] for item in client.get("/api/allocations/").json()] == ["a1"]

    deleted = client.delete("/api/allocations/a1")
    assert deleted.status_code == 204
    assert client.get("/api/faculty").json()[0]["currentWorkload"] == 0


def test_allocation_hours_must_match_subject(client):
    seed_catalog(client)

    response = client.post(
        "/api/allocations/",
        json={"subjectId": "s1", "facultyId": "f1", "divisionId": "d1", "type": "THEORY", "hours": 5},
    )

    assert response.status_code == 400
    assert response.json()["details"] == {"expected": 2, "received": 5}


def test_allocation_for_unknown_division_is_404(client):
    seed_catalog(client)

    response = client.post(
        "/api/allocations/",
        json={"subjectId": "s1", "facultyId": "f1", "divisionId": "zz", "type": "THEORY", "hours": 2},
    )

    assert response.status_code == 404
    assert response.json()["details"] == {"resource": "Division", "id": "zz"}
