# tests/test_tour_access.py
from datetime import datetime, timedelta, timezone

import pytest

from tourapi.core.errors import InvalidTransition, NotFound, TourEnded
from tourapi.models.collaboration import (
    ActivityQuestion, Discussion, DiscussionMessage, DiscussionQuestion, DiscussionTeam,
    DiscussionTeamNote, Note,
)
from tourapi.services.tour_access import (
    EntityKind, access_ends_at, advance_tour_status, assert_mutable, is_read_only,
    post_tour_access_open, resolve_tour, tour_access_summary, tour_end_date,
)

UTC = timezone.utc
END = datetime(2024, 1, 10, tzinfo=UTC)


@pytest.fixture
def ended_tour(make_tour):
    return make_tour(end_date=END, start_date=END - timedelta(days=5))


@pytest.fixture
def entities(db, ended_tour, make_activity, traveler):
    """Una entidad de cada tipo colgando del mismo tour."""
    activity = make_activity(ended_tour)
    discussion_activity = make_activity(ended_tour, type="Discussion", title="Discusión diaria")

    question = ActivityQuestion(activity_id=activity.id, user_id=traveler.id, question_text="¿Por qué?")
    db.add(question)
    db.flush()
    note = Note(user_id=traveler.id, activity_id=activity.id, question_id=question.id, content="nota")
    discussion = Discussion(tour_id=ended_tour.id, created_by=traveler.id, title="General")
    db.add_all([note, discussion])
    db.flush()
    message = DiscussionMessage(discussion_id=discussion.id, user_id=traveler.id, content="hola")
    team = DiscussionTeam(discussion_activity_id=discussion_activity.id, name="Equipo A")
    dq = DiscussionQuestion(discussion_activity_id=discussion_activity.id, question_text="¿Qué vimos?", order_index=0)
    db.add_all([message, team, dq])
    db.flush()
    team_note = DiscussionTeamNote(team_id=team.id, question_id=dq.id, content="resumen", created_by=traveler.id)
    db.add(team_note)
    db.commit()

    return {
        EntityKind.TOUR: ended_tour.id,
        EntityKind.ACTIVITY: activity.id,
        EntityKind.NOTE: note.id,
        EntityKind.DISCUSSION: discussion.id,
        EntityKind.MESSAGE: message.id,
        EntityKind.ACTIVITY_QUESTION: question.id,
        EntityKind.TEAM: team.id,
        EntityKind.TEAM_NOTE: team_note.id,
        EntityKind.DISCUSSION_QUESTION: dq.id,
    }


def test_every_kind_resolves_to_its_tour(db, entities, ended_tour):
    for kind, entity_id in entities.items():
        tour_id, end_date = resolve_tour(db, kind, entity_id)
        assert tour_id == ended_tour.id, kind
        assert end_date == END, kind


def test_tour_end_date_is_utc_aware(db, entities):
    end = tour_end_date(db, EntityKind.NOTE, entities[EntityKind.NOTE])
    assert end.tzinfo is not None
    assert end == END


@pytest.mark.parametrize("kind", list(EntityKind))
def test_missing_entity_is_not_found(db, kind):
    with pytest.raises(NotFound):
        assert_mutable(db, kind, 999_999)


def test_missing_entity_message_names_the_kind(db):
    with pytest.raises(NotFound) as exc:
        assert_mutable(db, EntityKind.TEAM_NOTE, 42)
    assert exc.value.detail == "Team note not found"


def test_mutation_allowed_exactly_at_end_date(db, entities):
    for kind, entity_id in entities.items():
        assert_mutable(db, kind, entity_id, now=END)


def test_mutation_rejected_one_second_after_end(db, entities):
    after = END + timedelta(seconds=1)
    for kind, entity_id in entities.items():
        with pytest.raises(TourEnded) as exc:
            assert_mutable(db, kind, entity_id, now=after)
        assert exc.value.status_code == 403
        assert exc.value.detail == "This tour has ended and is now read-only"


def test_naive_now_is_treated_as_utc(db, entities):
    with pytest.raises(TourEnded):
        assert_mutable(db, EntityKind.ACTIVITY, entities[EntityKind.ACTIVITY], now=datetime(2024, 1, 11))


def test_is_read_only_boundary():
    assert not is_read_only(END, now=END)
    assert is_read_only(END, now=END + timedelta(microseconds=1))
    assert not is_read_only(END, now=END - timedelta(days=1))


# -------------------- ventana post-tour -------------------- #

def test_post_tour_access_window(db, make_tour):
    tour = make_tour(end_date=END, start_date=END - timedelta(days=3), post_tour_access_days=7)
    assert access_ends_at(tour) == END + timedelta(days=7)
    assert post_tour_access_open(db, tour.id, now=END + timedelta(days=7))
    assert not post_tour_access_open(db, tour.id, now=END + timedelta(days=7, seconds=1))


def test_post_tour_access_defaults_to_thirty_days(db, make_tour):
    tour = make_tour(end_date=END, start_date=END - timedelta(days=3), post_tour_access_days=None)
    assert access_ends_at(tour) == END + timedelta(days=30)


def test_post_tour_access_unknown_tour_is_closed(db):
    assert post_tour_access_open(db, 12345) is False


def test_access_summary(db, make_tour):
    tour = make_tour(end_date=END, start_date=END - timedelta(days=3), post_tour_access_days=30)
    summary = tour_access_summary(db, tour.id, now=END + timedelta(days=1))
    assert summary["tour_id"] == tour.id
    assert summary["read_only"] is True
    assert summary["post_tour_access"] is True
    assert summary["access_ends_at"] == END + timedelta(days=30)


# -------------------- estados del tour -------------------- #

def test_tour_status_advances_one_step_at_a_time(db, make_tour):
    tour = make_tour()
    assert advance_tour_status(db, tour.id, "Pending").status == "Pending"
    assert advance_tour_status(db, tour.id, "Completed").status == "Completed"


@pytest.mark.parametrize("start,target", [
    ("Draft", "Completed"),
    ("Pending", "Draft"),
    ("Completed", "Pending"),
    ("Draft", "Draft"),
    ("Draft", "Cancelled"),
])
def test_tour_status_rejects_skips_and_reversals(db, make_tour, start, target):
    tour = make_tour(status=start)
    with pytest.raises(InvalidTransition):
        advance_tour_status(db, tour.id, target)


def test_tour_status_unknown_tour(db):
    with pytest.raises(NotFound):
        advance_tour_status(db, 999, "Pending")
