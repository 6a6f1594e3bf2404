import uuid

API = "/api"


def event_payload(creator_id, **overrides):
    payload = {
        "title": "Reunião de equipe RTI",
        "description": "Revisão dos estudantes do nível 2",
        "startDate": "2025-03-10T09:00:00",
        "endDate": "2025-03-10T10:00:00",
        "type": "meeting",
        "creatorId": creator_id
    }
    payload.update(overrides)
    return payload


def participant_ids(event):
    return sorted(p["userId"] for p in event["participants"])


def test_create_event_without_participants(client, make_user):
    creator = make_user()

    response = client.post(f"{API}/calendar", json=event_payload(creator))

    assert response.status_code == 201
    event = response.json()
    assert event["title"] == "Reunião de equipe RTI"
    assert event["status"] == "scheduled"
    assert event["allDay"] is False
    assert event["participants"] == []
    assert event["creator"]["id"] == creator
    assert event["school"] is None


def test_create_event_returns_exactly_the_participants_sent(client, make_user):
    creator = make_user()
    guests = [make_user(name="Bruno"), make_user(name="Clara")]

    response = client.post(f"{API}/calendar", json=event_payload(creator, participantIds=guests))

    assert response.status_code == 201
    event = response.json()
    assert participant_ids(event) == sorted(guests)
    assert {p["status"] for p in event["participants"]} == {"pending"}
    assert all(p["user"]["email"] for p in event["participants"])


def test_create_event_with_school_references(client, make_user, school_refs):
    response = client.post(
        f"{API}/calendar",
        json=event_payload(make_user(), type="lesson", **school_refs)
    )

    assert response.status_code == 201
    event = response.json()
    assert event["school"]["name"] == "EMEF Monteiro Lobato"
    assert event["class"]["grade"] == "2º ano"
    assert event["lessonPlan"]["title"] == "Leitura compartilhada"


def test_create_event_with_unknown_creator(client):
    response = client.post(f"{API}/calendar", json=event_payload(str(uuid.uuid4())))

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "NOT_FOUND"
    assert body["success"] is False
    assert body["path"] == "/api/calendar"


def test_create_event_with_unknown_participant_writes_nothing(client, make_user):
    creator = make_user()

    response = client.post(
        f"{API}/calendar",
        json=event_payload(creator, participantIds=[make_user(), str(uuid.uuid4())])
    )

    assert response.status_code == 404
    assert client.get(f"{API}/calendar").json() == []


def test_create_event_rejects_invalid_type_and_end_before_start(client, make_user):
    creator = make_user()

    response = client.post(f"{API}/calendar", json=event_payload(creator, type="party"))
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION"
    assert any(e["field"] == "type" for e in response.json()["message"])

    response = client.post(
        f"{API}/calendar",
        json=event_payload(creator, endDate="2025-03-09T10:00:00")
    )
    assert response.status_code == 400


def test_create_event_rejects_unknown_fields(client, make_user):
    response = client.post(f"{API}/calendar", json=event_payload(make_user(), priority="high"))

    assert response.status_code == 400
    assert response.json()["message"][0]["field"] == "priority"


def test_get_unknown_event(client):
    response = client.get(f"{API}/calendar/{uuid.uuid4()}")

    assert response.status_code == 404
    assert "não encontrado" in response.json()["message"]


def test_update_applies_only_sent_fields(client, make_user):
    event = client.post(f"{API}/calendar", json=event_payload(make_user(), location="Sala 3")).json()

    response = client.patch(
        f"{API}/calendar/{event['id']}",
        json={"title": "Reunião remarcada", "location": None}
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["title"] == "Reunião remarcada"
    assert updated["location"] is None
    assert updated["description"] == event["description"]
    assert updated["startDate"] == event["startDate"]


def test_update_rejects_null_on_required_field(client, make_user):
    event = client.post(f"{API}/calendar", json=event_payload(make_user())).json()

    response = client.patch(f"{API}/calendar/{event['id']}", json={"title": None})

    assert response.status_code == 400
    assert response.json()["message"][0]["field"] == "title"


def test_update_rejects_end_before_stored_start(client, make_user):
    event = client.post(f"{API}/calendar", json=event_payload(make_user())).json()

    response = client.patch(f"{API}/calendar/{event['id']}", json={"endDate": "2025-03-01T08:00:00"})

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION"


def test_update_replaces_participant_set(client, make_user):
    first, second, third = make_user(), make_user(), make_user()
    event = client.post(
        f"{API}/calendar",
        json=event_payload(make_user(), participantIds=[first, second])
    ).json()

    response = client.patch(f"{API}/calendar/{event['id']}", json={"participantIds": [second, third]})

    assert response.status_code == 200
    assert participant_ids(response.json()) == sorted([second, third])


def test_update_with_empty_participant_list_removes_everyone(client, make_user):
    event = client.post(
        f"{API}/calendar",
        json=event_payload(make_user(), participantIds=[make_user(), make_user()])
    ).json()

    response = client.patch(f"{API}/calendar/{event['id']}", json={"participantIds": []})

    assert response.status_code == 200
    assert response.json()["participants"] == []
    assert client.get(f"{API}/calendar/{event['id']}").json()["participants"] == []


def test_update_without_participant_ids_keeps_participants(client, make_user):
    guest = make_user()
    event = client.post(
        f"{API}/calendar",
        json=event_payload(make_user(), participantIds=[guest])
    ).json()

    response = client.patch(f"{API}/calendar/{event['id']}", json={"status": "cancelled"})

    assert response.json()["status"] == "cancelled"
    assert participant_ids(response.json()) == [guest]


def test_update_unknown_event(client):
    response = client.patch(f"{API}/calendar/{uuid.uuid4()}", json={"title": "Nada"})

    assert response.status_code == 404


def test_remove_event_and_its_participants(client, make_user):
    event = client.post(
        f"{API}/calendar",
        json=event_payload(make_user(), participantIds=[make_user()])
    ).json()

    response = client.delete(f"{API}/calendar/{event['id']}")

    assert response.status_code == 200
    assert client.get(f"{API}/calendar/{event['id']}").status_code == 404
    assert client.delete(f"{API}/calendar/{event['id']}").status_code == 404


def test_find_by_date_range(client, make_user):
    creator = make_user()
    created = {}
    for title, start, end in [
        ("começa dentro", "2025-05-10T09:00:00", "2025-05-25T10:00:00"),
        ("termina dentro", "2025-04-25T09:00:00", "2025-05-05T10:00:00"),
        ("abrange o intervalo", "2025-04-01T09:00:00", "2025-06-30T10:00:00"),
        ("antes", "2025-03-01T09:00:00", "2025-03-02T10:00:00"),
        ("depois", "2025-07-01T09:00:00", None),
    ]:
        payload = event_payload(creator, title=title, startDate=start, endDate=end)
        created[title] = client.post(f"{API}/calendar", json=payload).json()["id"]

    response = client.get(
        f"{API}/calendar/date-range",
        params={"startDate": "2025-05-01T00:00:00", "endDate": "2025-05-31T23:59:59"}
    )

    assert response.status_code == 200
    titles = {event["title"] for event in response.json()}
    assert titles == {"começa dentro", "termina dentro", "abrange o intervalo"}


def test_find_by_date_range_requires_ordered_bounds(client):
    response = client.get(
        f"{API}/calendar/date-range",
        params={"startDate": "2025-06-01T00:00:00", "endDate": "2025-05-01T00:00:00"}
    )
    assert response.status_code == 400

    response = client.get(f"{API}/calendar/date-range", params={"startDate": "2025-06-01T00:00:00"})
    assert response.status_code == 400
    assert response.json()["message"][0]["field"] == "endDate"


def test_find_by_user_merges_created_and_participating(client, make_user):
    user, other = make_user(), make_user()
    own = client.post(f"{API}/calendar", json=event_payload(user, title="Próprio")).json()
    invited = client.post(
        f"{API}/calendar",
        json=event_payload(other, title="Convite", participantIds=[user])
    ).json()
    both = client.post(
        f"{API}/calendar",
        json=event_payload(user, title="Próprio com convite", participantIds=[user])
    ).json()
    client.post(f"{API}/calendar", json=event_payload(other, title="Alheio"))

    response = client.get(f"{API}/calendar/user/{user}")

    ids = [event["id"] for event in response.json()]
    assert sorted(ids) == sorted([own["id"], invited["id"], both["id"]])
    assert len(ids) == len(set(ids))


def test_update_participant_status(client, make_user):
    guest = make_user()
    event = client.post(
        f"{API}/calendar",
        json=event_payload(make_user(), participantIds=[guest])
    ).json()

    response = client.patch(
        f"{API}/calendar/{event['id']}/participants/{guest}/status",
        json={"status": "accepted"}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "accepted"
    assert response.json()["event"]["id"] == event["id"]

    response = client.patch(
        f"{API}/calendar/{event['id']}/participants/{make_user()}/status",
        json={"status": "accepted"}
    )
    assert response.status_code == 404

    response = client.patch(
        f"{API}/calendar/{event['id']}/participants/{guest}/status",
        json={"status": "maybe"}
    )
    assert response.status_code == 400


def test_dates_with_offset_come_back_in_utc(client, make_user):
    payload = event_payload(
        make_user(),
        startDate="2025-05-01T02:00:00+03:00",
        endDate="2025-05-01T04:00:00+03:00"
    )

    created = client.post(f"{API}/calendar", json=payload)

    assert created.status_code == 201
    assert created.json()["startDate"] == "2025-04-30T23:00:00+00:00"

    event = client.get(f"{API}/calendar/{created.json()['id']}").json()
    assert event["startDate"] == "2025-04-30T23:00:00+00:00"
    assert event["endDate"] == "2025-05-01T01:00:00+00:00"
    assert event["createdAt"].endswith("+00:00")


def test_find_by_date_range_includes_the_bounds(client, make_user):
    creator = make_user()
    for title, start, end in [
        ("no início", "2025-05-01T00:00:00Z", None),
        ("termina no fim", "2025-05-20T09:00:00Z", "2025-05-31T23:59:59Z"),
        ("um segundo antes", "2025-04-30T23:59:59Z", None),
    ]:
        payload = event_payload(creator, title=title, startDate=start, endDate=end)
        assert client.post(f"{API}/calendar", json=payload).status_code == 201

    response = client.get(
        f"{API}/calendar/date-range",
        params={"startDate": "2025-05-01T00:00:00Z", "endDate": "2025-05-31T23:59:59Z"}
    )

    assert response.status_code == 200
    assert [event["title"] for event in response.json()] == ["no início", "termina no fim"]
