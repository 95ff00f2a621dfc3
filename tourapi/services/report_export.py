# tourapi/services/report_export.py
from __future__ import annotations

from datetime import datetime
from io import BytesIO

from openpyxl import Workbook
from sqlalchemy.orm import Session

from tourapi.services.survey_stats import aggregated_responses, compute_stats
from tourapi.utils.time import as_utc

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _cell(value):
    # Excel no soporta zonas horarias: se exporta en UTC naive
    if isinstance(value, datetime):
        return as_utc(value).replace(tzinfo=None)
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return value


def survey_workbook(db: Session, survey_id: int) -> bytes:
    stats = compute_stats(db, survey_id)
    aggregated = aggregated_responses(db, survey_id)

    wb = Workbook()
    ws_res = wb.active; ws_res.title = "Resumen"
    ws_res.append(["total_responses", "completed_responses", "partial_responses",
                   "completion_rate", "average_completion_minutes"])
    ws_res.append([stats.total_responses, stats.completed_responses, stats.partial_responses,
                   stats.completion_rate, stats.average_completion_time])

    ws_q = wb.create_sheet("Preguntas")
    ws_q.append(["question_id", "question_text", "question_type", "response_count",
                 "average_rating", "yes_count", "no_count"])
    for q in stats.question_stats:
        ws_q.append([q.question_id, q.question_text, q.question_type, q.response_count,
                     q.average_rating, q.yes_count, q.no_count])

    ws_r = wb.create_sheet("Respuestas")
    ws_r.append(["question_id", "question_text", "respondent", "answer", "submitted_at"])
    for question in aggregated.values():
        for r in question.responses:
            ws_r.append([question.question_id, question.question_text, r.user_name,
                         _cell(r.answer), _cell(r.submitted_at)])

    buf = BytesIO(); wb.save(buf)
    return buf.getvalue()
