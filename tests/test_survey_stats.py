# tests/test_survey_stats.py
from datetime import datetime, timedelta, timezone
from io import BytesIO

import pytest
from openpyxl import load_workbook

from tourapi.core.errors import SurveyNotFound
from tourapi.models.survey import QuestionResponse, SurveyQuestionOption, SurveyResponse
from tourapi.schemas.surveys import AnswerIn, SubmitIn
from tourapi.services.survey_responses import submit_response
from tourapi.services.survey_stats import (
    aggregated_responses, compute_stats, option_counts, rating_summary, yes_no_counts,
)

UTC = timezone.utc
T0 = datetime(2024, 5, 1, 9, 0, tzinfo=UTC)


def _respond(db, survey, answers, *, complete=True, minutes=10, user=None, name="Invitado", at=T0):
    """Inserta una respuesta con sus filas; answers = {question_id: {columna: valor}}."""
    resp = SurveyResponse(
        survey_id=survey.id,
        started_at=at,
        submitted_at=at + timedelta(minutes=minutes) if complete else None,
        is_complete=complete,
    )
    if user is None:
        resp.is_anonymous = True
        resp.respondent_email = f"{name.lower()}@example.com"
        resp.respondent_name = name
    else:
        resp.user_id = user.id
    db.add(resp)
    db.flush()
    for offset, (qid, values) in enumerate(answers.items()):
        db.add(QuestionResponse(
            response_id=resp.id, question_id=qid, created_at=at + timedelta(seconds=offset), **values
        ))
    db.commit()
    return resp


# -------------------- cálculos puros -------------------- #

def test_rating_summary():
    average, distribution = rating_summary({3: 2, 4: 1, 5: 1})
    assert average == pytest.approx(3.75)
    assert distribution == {3: 2, 4: 1, 5: 1}


def test_rating_summary_empty():
    assert rating_summary({}) == (None, {})


def test_yes_no_counts_are_literal():
    assert yes_no_counts(["Yes", "No", "yes", "Y", "No", None]) == (1, 2)


def test_option_percentage_over_answered_responses():
    options = [SurveyQuestionOption(id=1, option_text="A", order_index=0),
               SurveyQuestionOption(id=2, option_text="B", order_index=1)]
    selections = [[1]] * 4 + [[2]] * 6 + [None, []]
    total, counts = option_counts(options, selections)
    assert total == 10
    assert counts[1].count == 4
    assert counts[1].percentage == pytest.approx(40.0)
    assert counts[2].percentage == pytest.approx(60.0)


# -------------------- compute_stats -------------------- #

def test_stats_without_responses(db, make_survey):
    survey = make_survey([("RATING", "Valora", None), ("CHECKBOX", "Elige", ["A", "B"])])
    stats = compute_stats(db, survey.id)

    assert stats.total_responses == 0
    assert stats.completed_responses == 0
    assert stats.partial_responses == 0
    assert stats.completion_rate == 0
    assert stats.average_completion_time is None
    rating, choice = stats.question_stats
    assert rating.average_rating is None
    assert rating.rating_distribution == {}
    assert choice.option_counts[survey.questions[1].options[0].id].percentage == 0


def test_rating_stats(db, make_survey):
    survey = make_survey([("RATING", "Valora la visita", None)])
    qid = survey.questions[0].id
    for value in (3, 3, 4, 5):
        _respond(db, survey, {qid: {"rating_response": value}})
    # las respuestas parciales no cuentan en las estadísticas por pregunta
    _respond(db, survey, {qid: {"rating_response": 1}}, complete=False)

    stats = compute_stats(db, survey.id)
    q = stats.question_stats[0]
    assert q.average_rating == pytest.approx(3.75)
    assert q.rating_distribution == {3: 2, 4: 1, 5: 1}
    assert q.response_count == 4
    assert stats.total_responses == 5
    assert stats.completed_responses == 4
    assert stats.partial_responses == 1
    assert stats.completion_rate == pytest.approx(0.8)


def test_multiple_choice_percentages(db, make_survey):
    survey = make_survey([("MULTIPLE_CHOICE", "Favorita", ["Planta", "Museo"])])
    question = survey.questions[0]
    planta, museo = (o.id for o in question.options)
    for i in range(10):
        _respond(db, survey, {question.id: {"selected_option_ids": [planta if i < 4 else museo]}})

    q = compute_stats(db, survey.id).question_stats[0]
    assert q.response_count == 10
    assert q.option_counts[planta].count == 4
    assert q.option_counts[planta].percentage == pytest.approx(40.0)
    assert q.option_counts[museo].text == "Museo"


def test_yes_no_and_text_stats(db, make_survey):
    survey = make_survey([("YES_NO", "¿Repetirías?", None), ("TEXT", "Comentario", None)])
    q_yes, q_text = (q.id for q in survey.questions)
    for i, (answer, comment) in enumerate([("Yes", "uno"), ("No", "dos"), ("yes", "tres"),
                                           ("Yes", "cuatro"), ("Yes", "cinco"), ("No", "seis")]):
        _respond(db, survey, {q_yes: {"text_response": answer}, q_text: {"text_response": comment}},
                 at=T0 + timedelta(hours=i))

    yes_no, text = compute_stats(db, survey.id).question_stats
    assert (yes_no.yes_count, yes_no.no_count) == (3, 2)
    assert yes_no.response_count == 6
    assert text.response_count == 6
    assert text.sample_responses == ["seis", "cinco", "cuatro", "tres", "dos"]


def test_blank_text_answers_are_not_counted(db, make_survey, make_user, caller_for):
    survey = make_survey([("TEXT", "Comentario", None), ("YES_NO", "¿Repetirías?", None)])
    q_text, q_yes = (q.id for q in survey.questions)
    answers = [("Excelente", "Yes")] + [("", "  ")] * 5
    for i, (comment, again) in enumerate(answers):
        user = make_user(first_name=f"Viajero{i}")
        submit_response(db, survey.id, caller_for(user), SubmitIn(responses=[
            AnswerIn(question_id=q_text, text_response=comment),
            AnswerIn(question_id=q_yes, text_response=again),
        ]), now=T0 + timedelta(hours=i))

    text, yes_no = compute_stats(db, survey.id).question_stats
    assert text.response_count == 1
    assert text.sample_responses == ["Excelente"]
    assert yes_no.response_count == 1
    assert (yes_no.yes_count, yes_no.no_count) == (1, 0)
    assert db.query(QuestionResponse).count() == 2


def test_number_and_date_report_counts(db, make_survey):
    survey = make_survey([("NUMBER", "¿Cuántos?", None), ("DATE", "¿Cuándo?", None)])
    q_num, q_date = (q.id for q in survey.questions)
    _respond(db, survey, {q_num: {"number_response": 3}, q_date: {"date_response": T0.date()}})
    _respond(db, survey, {q_num: {"number_response": 7}})

    number, day = compute_stats(db, survey.id).question_stats
    assert number.response_count == 2
    assert day.response_count == 1
    assert number.average_rating is None


def test_average_completion_time(db, make_survey):
    survey = make_survey([("TEXT", "Comentario", None)])
    _respond(db, survey, {}, minutes=10)
    _respond(db, survey, {}, minutes=20)
    _respond(db, survey, {}, complete=False)
    assert compute_stats(db, survey.id).average_completion_time == pytest.approx(15.0)


def test_survey_without_questions(db, make_survey):
    survey = make_survey([])
    assert compute_stats(db, survey.id).question_stats == []
    assert aggregated_responses(db, survey.id) == {}


def test_unknown_survey_stats(db):
    with pytest.raises(SurveyNotFound):
        compute_stats(db, 404)
    with pytest.raises(SurveyNotFound):
        aggregated_responses(db, 404)


# -------------------- aggregated_responses -------------------- #

def test_aggregated_responses(db, make_survey, traveler):
    survey = make_survey([("RATING", "Valora", None), ("CHECKBOX", "Elige", ["A", "B", "C"])])
    q_rating, q_multi = survey.questions
    a, b, c = (o.id for o in q_multi.options)
    _respond(db, survey, {q_rating.id: {"rating_response": 5}, q_multi.id: {"selected_option_ids": [a, c]}},
             user=traveler, at=T0)
    _respond(db, survey, {q_rating.id: {"rating_response": 3}, q_multi.id: {"selected_option_ids": [a]}},
             name="Pablo", at=T0 + timedelta(hours=1))
    _respond(db, survey, {q_rating.id: {"rating_response": 1}}, complete=False)

    result = aggregated_responses(db, survey.id)
    rating = result[q_rating.id]
    assert rating.response_count == 2
    assert rating.stats == {"average": pytest.approx(4.0), "distribution": {3: 1, 5: 1}}
    assert [(r.user_name, r.answer) for r in rating.responses] == [("Lucía Gómez", 5), ("Pablo", 3)]

    multi = result[q_multi.id]
    assert [o.option_text for o in multi.options] == ["A", "B", "C"]
    assert multi.responses[0].answer == ["A", "C"]
    counts = multi.stats["option_counts"]
    assert counts[a]["count"] == 2
    assert counts[a]["percentage"] == pytest.approx(100.0)
    assert counts[b]["count"] == 0


# -------------------- HTTP -------------------- #

def test_stats_endpoint_requires_staff(client, db, make_survey, traveler, guide, auth_headers):
    survey = make_survey([("RATING", "Valora", None)])
    _respond(db, survey, {survey.questions[0].id: {"rating_response": 4}})

    assert client.get(f"/api/v1/surveys/{survey.id}/stats", headers=auth_headers(traveler)).status_code == 403

    r = client.get(f"/api/v1/surveys/{survey.id}/stats", headers=auth_headers(guide))
    assert r.status_code == 200
    body = r.json()
    assert body["total_responses"] == 1
    assert body["question_stats"][0]["average_rating"] == 4.0
    assert body["question_stats"][0]["rating_distribution"] == {"4": 1}


def test_aggregated_endpoint(client, db, make_survey, admin, auth_headers):
    survey = make_survey([("YES_NO", "¿Volverías?", None)])
    qid = survey.questions[0].id
    _respond(db, survey, {qid: {"text_response": "Yes"}})

    r = client.get(f"/api/v1/surveys/{survey.id}/aggregated-responses", headers=auth_headers(admin))
    assert r.status_code == 200
    entry = r.json()[str(qid)]
    assert entry["stats"] == {"yes_count": 1, "no_count": 0}
    assert entry["responses"][0]["user_name"] == "Invitado"


def test_export_endpoint_returns_workbook(client, db, make_survey, guide, auth_headers):
    survey = make_survey([("TEXT", "Comentario", None)])
    _respond(db, survey, {survey.questions[0].id: {"text_response": "ok"}})

    r = client.get(f"/api/v1/surveys/{survey.id}/responses/export", headers=auth_headers(guide))
    assert r.status_code == 200
    assert r.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert r.content[:2] == b"PK"

    wb = load_workbook(BytesIO(r.content))
    assert wb.sheetnames == ["Resumen", "Preguntas", "Respuestas"]
    rows = list(wb["Respuestas"].iter_rows(min_row=2, values_only=True))
    assert [row[3] for row in rows] == ["ok"]
