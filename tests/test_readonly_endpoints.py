# tests/test_readonly_endpoints.py
from datetime import datetime, timedelta, timezone

import pytest

from tourapi.models.collaboration import (
    Discussion, DiscussionMessage, DiscussionQuestion, DiscussionTeam, DiscussionTeamNote, Note,
)

UTC = timezone.utc
ENDED = {"error": "This tour has ended and is now read-only"}


@pytest.fixture
def ended_tour(make_tour):
    end = datetime(2024, 1, 10, tzinfo=UTC)
    return make_tour(end_date=end, start_date=end - timedelta(days=4))


@pytest.fixture
def live_tour(make_tour):
    return make_tour()


def test_note_on_ended_tour_is_rejected(client, db, ended_tour, make_activity, traveler, auth_headers):
    activity = make_activity(ended_tour)
    r = client.post(
        f"/api/v1/activities/{activity.id}/notes",
        json={"content": "tarde"},
        headers=auth_headers(traveler),
    )
    assert r.status_code == 403
    assert r.json() == ENDED
    assert db.query(Note).count() == 0


def test_note_lifecycle_on_live_tour(client, db, live_tour, make_activity, traveler, auth_headers):
    activity = make_activity(live_tour)
    headers = auth_headers(traveler)

    r = client.post(f"/api/v1/activities/{activity.id}/notes",
                    json={"content": "apunte", "tags": ["planta"]}, headers=headers)
    assert r.status_code == 201, r.text
    note_id = r.json()["id"]

    r = client.put(f"/api/v1/notes/{note_id}", json={"content": "apunte corregido"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["content"] == "apunte corregido"
    assert r.json()["tags"] == ["planta"]

    r = client.delete(f"/api/v1/notes/{note_id}", headers=headers)
    assert r.status_code == 200
    assert db.query(Note).count() == 0


def test_note_of_another_user_is_hidden(client, live_tour, make_activity, traveler, make_user, auth_headers):
    activity = make_activity(live_tour)
    r = client.post(f"/api/v1/activities/{activity.id}/notes", json={"content": "mía"},
                    headers=auth_headers(traveler))
    other = make_user()
    r = client.put(f"/api/v1/notes/{r.json()['id']}", json={"content": "ajena"}, headers=auth_headers(other))
    assert r.status_code == 404
    assert r.json() == {"error": "Note not found or access denied"}


def test_note_on_unknown_activity(client, traveler, auth_headers):
    r = client.post("/api/v1/activities/999/notes", json={"content": "x"}, headers=auth_headers(traveler))
    assert r.status_code == 404
    assert r.json() == {"error": "Activity not found"}


def test_existing_note_becomes_read_only(client, db, ended_tour, make_activity, traveler, auth_headers):
    activity = make_activity(ended_tour)
    note = Note(user_id=traveler.id, activity_id=activity.id, content="antes del fin")
    db.add(note)
    db.commit()

    headers = auth_headers(traveler)
    assert client.put(f"/api/v1/notes/{note.id}", json={"content": "x"}, headers=headers).json() == ENDED
    assert client.delete(f"/api/v1/notes/{note.id}", headers=headers).status_code == 403
    db.expire_all()
    assert db.get(Note, note.id).content == "antes del fin"


def test_discussion_surface_is_read_only_after_tour(
    client, db, ended_tour, make_activity, traveler, guide, auth_headers
):
    discussion_activity = make_activity(ended_tour, type="Discussion")
    discussion = Discussion(tour_id=ended_tour.id, created_by=traveler.id, title="Día 1")
    db.add(discussion)
    db.flush()
    message = DiscussionMessage(discussion_id=discussion.id, user_id=traveler.id, content="hola")
    team = DiscussionTeam(discussion_activity_id=discussion_activity.id, name="Azul")
    question = DiscussionQuestion(discussion_activity_id=discussion_activity.id, question_text="?", order_index=0)
    db.add_all([message, team, question])
    db.flush()
    team_note = DiscussionTeamNote(team_id=team.id, content="n", created_by=traveler.id)
    db.add(team_note)
    db.commit()

    user, staff = auth_headers(traveler), auth_headers(guide)
    calls = [
        ("put", f"/api/v1/discussions/{discussion.id}", {"title": "x"}, user),
        ("delete", f"/api/v1/discussions/{discussion.id}", None, user),
        ("post", f"/api/v1/discussions/{discussion.id}/messages", {"content": "x"}, user),
        ("put", f"/api/v1/messages/{message.id}", {"content": "x"}, user),
        ("delete", f"/api/v1/messages/{message.id}", None, user),
        ("post", f"/api/v1/messages/{message.id}/reactions", {"reaction": "👍"}, user),
        ("delete", f"/api/v1/messages/{message.id}/reactions/👍", None, user),
        ("post", f"/api/v1/discussion-activities/{discussion_activity.id}/teams", {"name": "Rojo"}, staff),
        ("put", f"/api/v1/teams/{team.id}", {"name": "Verde"}, staff),
        ("delete", f"/api/v1/teams/{team.id}", None, staff),
        ("post", f"/api/v1/teams/{team.id}/notes", {"content": "x"}, user),
        ("put", f"/api/v1/team-notes/{team_note.id}", {"content": "x"}, user),
        ("delete", f"/api/v1/team-notes/{team_note.id}", None, user),
        ("put", f"/api/v1/discussion-questions/{question.id}", {"question_text": "x"}, staff),
        ("delete", f"/api/v1/discussion-questions/{question.id}", None, staff),
        ("post", f"/api/v1/activities/{discussion_activity.id}/questions", {"question_text": "x"}, user),
    ]
    for method, url, body, headers in calls:
        kwargs = {"headers": headers}
        if body is not None:
            kwargs["json"] = body
        r = client.request(method.upper(), url, **kwargs)
        assert r.status_code == 403, (method, url, r.text)
        assert r.json() == ENDED, (method, url)

    db.expire_all()
    assert db.query(DiscussionMessage).count() == 1
    assert db.query(DiscussionTeam).count() == 1
    assert db.get(DiscussionTeam, team.id).name == "Azul"


def test_message_and_reaction_on_live_tour(client, db, live_tour, traveler, auth_headers):
    discussion = Discussion(tour_id=live_tour.id, created_by=traveler.id, title="General")
    db.add(discussion)
    db.commit()
    headers = auth_headers(traveler)

    r = client.post(f"/api/v1/discussions/{discussion.id}/messages", json={"content": "hola"}, headers=headers)
    assert r.status_code == 201, r.text
    message_id = r.json()["id"]

    r = client.put(f"/api/v1/messages/{message_id}", json={"content": "hola a todos"}, headers=headers)
    assert r.json()["is_edited"] is True

    assert client.post(f"/api/v1/messages/{message_id}/reactions",
                       json={"reaction": "like"}, headers=headers).status_code == 201
    again = client.post(f"/api/v1/messages/{message_id}/reactions", json={"reaction": "like"}, headers=headers)
    assert again.status_code == 409
    assert client.delete(f"/api/v1/messages/{message_id}/reactions/like", headers=headers).status_code == 200


def test_team_on_non_discussion_activity(client, live_tour, make_activity, guide, auth_headers):
    activity = make_activity(live_tour, type="Hotel")
    r = client.post(f"/api/v1/discussion-activities/{activity.id}/teams", json={"name": "A"},
                    headers=auth_headers(guide))
    assert r.status_code == 400


def test_new_threads_are_rejected_after_tour(client, db, ended_tour, make_activity, traveler, auth_headers):
    activity = make_activity(ended_tour)
    headers = auth_headers(traveler)

    r = client.post(f"/api/v1/tours/{ended_tour.id}/discussions", json={"title": "Cierre"}, headers=headers)
    assert r.status_code == 403
    assert r.json() == ENDED

    r = client.post(f"/api/v1/activities/{activity.id}/messages", json={"content": "tarde"}, headers=headers)
    assert r.status_code == 403
    assert r.json() == ENDED

    assert db.query(Discussion).count() == 0
    assert db.query(DiscussionMessage).count() == 0


def test_new_threads_on_unknown_parents(client, traveler, auth_headers):
    headers = auth_headers(traveler)
    r = client.post("/api/v1/tours/999/discussions", json={"title": "x"}, headers=headers)
    assert r.status_code == 404
    assert r.json() == {"error": "Tour not found"}
    r = client.post("/api/v1/activities/999/messages", json={"content": "x"}, headers=headers)
    assert r.status_code == 404
    assert r.json() == {"error": "Activity not found"}


def test_create_discussion_on_live_tour(client, live_tour, make_tour, make_activity, traveler, auth_headers):
    headers = auth_headers(traveler)
    activity = make_activity(live_tour)

    r = client.post(f"/api/v1/tours/{live_tour.id}/discussions",
                    json={"title": "Logística", "activity_id": activity.id}, headers=headers)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["tour_id"] == live_tour.id
    assert body["activity_id"] == activity.id
    assert body["created_by"] == str(traveler.id)
    assert body["description"] is None
    assert body["is_locked"] is False

    foreign = make_activity(make_tour())
    r = client.post(f"/api/v1/tours/{live_tour.id}/discussions",
                    json={"title": "x", "activity_id": foreign.id}, headers=headers)
    assert r.status_code == 400


def test_activity_messages_share_one_discussion(
    client, db, live_tour, make_activity, traveler, guide, auth_headers
):
    activity = make_activity(live_tour, title="Visita a planta")

    first = client.post(f"/api/v1/activities/{activity.id}/messages",
                        json={"content": "¿A qué hora salimos?"}, headers=auth_headers(traveler))
    assert first.status_code == 201, first.text
    second = client.post(f"/api/v1/activities/{activity.id}/messages",
                         json={"content": "A las 8"}, headers=auth_headers(guide))
    assert second.status_code == 201, second.text

    assert first.json()["discussion_id"] == second.json()["discussion_id"]
    discussion = db.query(Discussion).one()
    assert discussion.activity_id == activity.id
    assert discussion.tour_id == live_tour.id
    assert discussion.created_by == traveler.id
    assert discussion.title == "Visita a planta Discussion"
    assert discussion.description == "Discussion for activity: Visita a planta"
    assert db.query(DiscussionMessage).count() == 2
