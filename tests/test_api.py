from __future__ import annotations

from datetime import date

AUTH = {"Authorization": "Bearer staff-token"}


def create_applicant(client, **overrides) -> dict:
    body = {"studentName": "Choi Yuna", "phone": "010-5555-1234", "parentName": "Choi Parent"}
    body.update(overrides)
    response = client.post("/applicants", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def create_slot(client, time: str = "10:00", capacity: int = 1) -> dict:
    response = client.post(
        "/slots",
        json={"date": "2025-03-10", "time": time, "capacity": capacity},
        headers=AUTH,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "healthy"}


def test_signup_normalizes_phone(client) -> None:
    applicant = create_applicant(client, phone="+82 10-5555-1234")

    assert applicant["phone"] == "01055551234"
    assert applicant["status"] == "waiting"


def test_signup_validation_error_shape(client) -> None:
    response = client.post("/applicants", json={"studentName": "X", "phone": "12"})

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_staff_endpoints_require_token(client) -> None:
    assert client.get("/applicants/pipeline").status_code == 401
    assert (
        client.get("/applicants/pipeline", headers={"Authorization": "Bearer nope"}).status_code
        == 401
    )


def test_book_slot_flow_and_conflict_codes(client) -> None:
    first = create_applicant(client)
    second = create_applicant(client, phone="010-5555-9999", studentName="Han Dain")
    slot = create_slot(client, capacity=1)

    booked = client.post(f"/slots/{slot['id']}/book", json={"publicId": first["publicId"]})
    full = client.post(f"/slots/{slot['id']}/book", json={"publicId": second["publicId"]})
    missing = client.post("/slots/9999/book", json={"publicId": second["publicId"]})

    assert booked.status_code == 200
    assert booked.json()["reservation"]["slotId"] == slot["id"]
    assert full.status_code == 409
    assert full.json()["error"] == "slot_full"
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"

    slots = client.get("/slots", params={"date": "2025-03-10"}).json()
    assert slots[0]["occupied"] == 1
    assert slots[0]["remaining"] == 0


def test_booking_requires_the_signup_public_id(client) -> None:
    applicant = create_applicant(client)
    held = create_slot(client, time="10:00")
    other = create_slot(client, time="11:00")
    client.post(f"/slots/{held['id']}/book", json={"publicId": applicant["publicId"]})

    by_row_id = client.post(f"/slots/{other['id']}/book", json={"publicId": str(applicant["id"])})
    unknown = client.post(
        f"/slots/{other['id']}/book", json={"publicId": "00000000-0000-0000-0000-000000000000"}
    )
    legacy = client.post(f"/slots/{other['id']}/book", json={"applicantId": applicant["id"]})

    assert by_row_id.status_code == 404
    assert by_row_id.json()["error"] == "not_found"
    assert unknown.status_code == 404
    assert legacy.status_code == 400

    slots = client.get("/slots", params={"date": "2025-03-10"}).json()
    assert [(s["id"], s["occupied"]) for s in slots] == [(held["id"], 1), (other["id"], 0)]


def test_signup_requires_phone(client) -> None:
    for phone in ("", "   "):
        response = client.post("/applicants", json={"studentName": "Kim Minjun", "phone": phone})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


def test_closed_slot_returns_410(client) -> None:
    applicant = create_applicant(client)
    slot = create_slot(client, capacity=3)

    toggled = client.post(f"/slots/{slot['id']}/open", json={"isOpen": False}, headers=AUTH)
    response = client.post(f"/slots/{slot['id']}/book", json={"publicId": applicant["publicId"]})

    assert toggled.json()["isOpen"] is False
    assert response.status_code == 410
    assert response.json()["error"] == "slot_closed"


def test_release_endpoint_is_idempotent(client) -> None:
    applicant = create_applicant(client)
    slot = create_slot(client)
    client.post(f"/slots/{slot['id']}/book", json={"publicId": applicant["publicId"]})

    first = client.delete(f"/applicants/{applicant['id']}/reservation", headers=AUTH)
    second = client.delete(f"/applicants/{applicant['id']}/reservation", headers=AUTH)

    assert first.json() == {"released": True}
    assert second.json() == {"released": False}


def test_checklist_put_and_pipeline(client) -> None:
    applicant = create_applicant(client)
    slot = create_slot(client)
    client.post(f"/slots/{slot['id']}/book", json={"publicId": applicant["publicId"]})

    # No webhook is configured: dispatch fails after the response, the write stands
    response = client.put(
        f"/applicants/{applicant['id']}/checklist/consultation_confirmed",
        json={"checked": True},
        headers=AUTH,
    )
    body = response.json()

    assert response.status_code == 200
    assert body["previousStage"] == "reserved"
    assert body["stage"] == "reserved_confirmed"
    assert body["triggeredEffects"][0]["kind"] == "calendar_event"
    assert body["triggeredEffects"][0]["state"] == "scheduled"

    pipeline = client.get("/applicants/pipeline", headers=AUTH).json()
    assert [(e["applicant"]["id"], e["stage"], e["progress"]) for e in pipeline] == [
        (applicant["id"], "reserved_confirmed", 40)
    ]
    assert pipeline[0]["reservation"]["time"] == "10:00"
    assert pipeline[0]["checklist"] == {"consultation_confirmed": True}


def test_docs_submitted_twice_returns_same_student(client) -> None:
    applicant = create_applicant(client)
    url = f"/applicants/{applicant['id']}/checklist/docs_submitted"

    first = client.put(url, json={"checked": True}, headers=AUTH).json()
    second = client.put(url, json={"checked": True}, headers=AUTH).json()

    assert first["stage"] == "enrolled"
    assert first["enrollment"]["alreadyFinalized"] is False
    assert second["enrollment"] == {
        "studentId": first["enrollment"]["studentId"],
        "alreadyFinalized": True,
    }
    assert client.get("/applicants/pipeline", headers=AUTH).json() == []

    students = client.get("/students", headers=AUTH).json()
    assert [s["id"] for s in students] == [first["enrollment"]["studentId"]]
    assert students[0]["className"] == "unassigned"


def test_unknown_checklist_step_is_400(client) -> None:
    applicant = create_applicant(client)

    response = client.put(
        f"/applicants/{applicant['id']}/checklist/not_a_step", json={"checked": True}, headers=AUTH
    )

    assert response.status_code == 400


def test_status_transition_endpoint(client) -> None:
    applicant = create_applicant(client)
    slot = create_slot(client)
    client.post(f"/slots/{slot['id']}/book", json={"publicId": applicant["publicId"]})
    url = f"/applicants/{applicant['id']}/status"

    done = client.post(url, json={"status": "consult_done"}, headers=AUTH)
    skip = client.post(url, json={"status": "enrolled"}, headers=AUTH)
    rejected = client.post(url, json={"status": "rejected"}, headers=AUTH)

    assert done.json()["status"] == "consult_done"
    assert skip.status_code == 409
    assert skip.json()["error"] == "invalid_transition"
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["archivedAt"] is not None

    slots = client.get("/slots", params={"date": "2025-03-10"}).json()
    assert slots[0]["occupied"] == 0


def test_student_review_endpoints(client) -> None:
    applicant = create_applicant(client)
    finalize = client.put(
        f"/applicants/{applicant['id']}/checklist/docs_submitted", json={"checked": True}, headers=AUTH
    ).json()
    student_id = finalize["enrollment"]["studentId"]

    opened = client.post(
        f"/students/{student_id}/reviews",
        json={"kind": "leave", "reason": "Surgery"},
        headers=AUTH,
    )
    premature = client.post(f"/students/{student_id}/reviews/confirm", json={}, headers=AUTH)
    confirmed = client.post(
        f"/students/{student_id}/reviews/confirm",
        json={"effectiveDate": date(2025, 6, 1).isoformat()},
        headers=AUTH,
    )
    back = client.post(f"/students/{student_id}/return", headers=AUTH)

    assert opened.json()["status"] == "on-leave-review"
    assert premature.status_code == 400
    assert confirmed.json()["status"] == "on-leave"
    assert confirmed.json()["reviews"][0]["openedBy"] == "staff1"
    assert back.json()["status"] == "active"


def test_slot_admin_endpoints(client) -> None:
    slot = create_slot(client, capacity=2)

    duplicate = client.post(
        "/slots", json={"date": "2025-03-10", "time": "10:00", "capacity": 1}, headers=AUTH
    )
    patched = client.patch(f"/slots/{slot['id']}", json={"capacity": 4}, headers=AUTH)
    deleted = client.delete(f"/slots/{slot['id']}", headers=AUTH)
    month = client.post("/slots/init-month", json={"year": 2025, "month": 2}, headers=AUTH)
    month_again = client.post("/slots/init-month", json={"year": 2025, "month": 2}, headers=AUTH)

    assert duplicate.status_code == 409
    assert patched.json()["capacity"] == 4
    assert deleted.status_code == 200
    assert month.json()["initialized"] is False
    assert month.json()["created"] > 0
    assert month_again.json() == {"initialized": True, "created": 0}


def test_checklist_catalogue(client) -> None:
    phases = client.get("/checklist/steps").json()

    assert [p["id"] for p in phases] == [
        "reservation",
        "decision",
        "documents",
        "preparation",
        "transport",
        "pre_admission",
        "post_admission",
    ]
