# tourapi/services/tour_access.py
"""
Acceso de solo lectura post-tour.

Cada tipo de entidad llega a su tour por una cadena de JOINs distinta; no hay
una tabla genérica "entidad -> tour". El resolvedor es único y se elige la
consulta por EntityKind. El predicado se evalúa en cada mutación (sin caché):
el tour pasa a solo lectura solo con que el reloj cruce end_date.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import DateTime, Integer, text
from sqlalchemy.orm import Session

from tourapi.core.config import settings
from tourapi.core.errors import InvalidTransition, NotFound, TourEnded
from tourapi.models.tour import TOUR_STATUSES, Tour
from tourapi.utils.time import as_utc, now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Resolver:
    label: str
    sql: str


class EntityKind(str, enum.Enum):
    TOUR = "tour"
    ACTIVITY = "activity"
    NOTE = "note"
    DISCUSSION = "discussion"
    MESSAGE = "message"
    ACTIVITY_QUESTION = "activity_question"
    TEAM = "team"
    TEAM_NOTE = "team_note"
    DISCUSSION_QUESTION = "discussion_question"


_RESOLVERS: dict[EntityKind, _Resolver] = {
    EntityKind.TOUR: _Resolver("Tour", """
        SELECT t.id AS tour_id, t.end_date
        FROM tours t
        WHERE t.id = :entity_id
    """),
    EntityKind.ACTIVITY: _Resolver("Activity", """
        SELECT t.id AS tour_id, t.end_date
        FROM activities a
        JOIN tours t ON a.tour_id = t.id
        WHERE a.id = :entity_id
    """),
    EntityKind.NOTE: _Resolver("Note", """
        SELECT t.id AS tour_id, t.end_date
        FROM notes n
        JOIN activities a ON n.activity_id = a.id
        JOIN tours t ON a.tour_id = t.id
        WHERE n.id = :entity_id
    """),
    EntityKind.DISCUSSION: _Resolver("Discussion", """
        SELECT t.id AS tour_id, t.end_date
        FROM discussions d
        JOIN tours t ON d.tour_id = t.id
        WHERE d.id = :entity_id
    """),
    EntityKind.MESSAGE: _Resolver("Message", """
        SELECT t.id AS tour_id, t.end_date
        FROM discussion_messages dm
        JOIN discussions d ON dm.discussion_id = d.id
        JOIN tours t ON d.tour_id = t.id
        WHERE dm.id = :entity_id
    """),
    EntityKind.ACTIVITY_QUESTION: _Resolver("Question", """
        SELECT t.id AS tour_id, t.end_date
        FROM activity_questions aq
        JOIN activities a ON aq.activity_id = a.id
        JOIN tours t ON a.tour_id = t.id
        WHERE aq.id = :entity_id
    """),
    EntityKind.TEAM: _Resolver("Team", """
        SELECT t.id AS tour_id, t.end_date
        FROM discussion_teams dt
        JOIN activities a ON dt.discussion_activity_id = a.id
        JOIN tours t ON a.tour_id = t.id
        WHERE dt.id = :entity_id
    """),
    EntityKind.TEAM_NOTE: _Resolver("Team note", """
        SELECT t.id AS tour_id, t.end_date
        FROM discussion_team_notes dtn
        JOIN discussion_teams dt ON dtn.team_id = dt.id
        JOIN activities a ON dt.discussion_activity_id = a.id
        JOIN tours t ON a.tour_id = t.id
        WHERE dtn.id = :entity_id
    """),
    EntityKind.DISCUSSION_QUESTION: _Resolver("Discussion question", """
        SELECT t.id AS tour_id, t.end_date
        FROM discussion_questions dq
        JOIN activities a ON dq.discussion_activity_id = a.id
        JOIN tours t ON a.tour_id = t.id
        WHERE dq.id = :entity_id
    """),
}


def resolve_tour(db: Session, kind: EntityKind, entity_id: int) -> tuple[int, datetime]:
    """Devuelve (tour_id, end_date en UTC) o lanza NotFound."""
    resolver = _RESOLVERS[EntityKind(kind)]
    stmt = text(resolver.sql).columns(tour_id=Integer, end_date=DateTime(timezone=True))
    row = db.execute(stmt, {"entity_id": entity_id}).first()
    if row is None:
        raise NotFound(f"{resolver.label} not found")
    return row.tour_id, as_utc(row.end_date)


def tour_end_date(db: Session, kind: EntityKind, entity_id: int) -> datetime:
    return resolve_tour(db, kind, entity_id)[1]


def is_read_only(end_date: datetime, now: datetime | None = None) -> bool:
    now = as_utc(now) if now is not None else now_utc()
    return now > as_utc(end_date)


def assert_mutable(db: Session, kind: EntityKind, entity_id: int, now: datetime | None = None) -> None:
    """
    Lanza NotFound si la entidad (o su tour) no existe y TourEnded si el
    tour ya terminó. Sin efectos secundarios en el caso válido.
    """
    tour_id, end_date = resolve_tour(db, kind, entity_id)
    if is_read_only(end_date, now):
        logger.info(
            "Mutación bloqueada: %s %s (tour %s terminó %s)",
            EntityKind(kind).value, entity_id, tour_id, end_date.isoformat(),
        )
        raise TourEnded()


# -------------------- ventana de acceso post-tour -------------------- #

def access_ends_at(tour: Tour) -> datetime:
    days = tour.post_tour_access_days
    if days is None:
        days = settings.DEFAULT_POST_TOUR_ACCESS_DAYS
    return as_utc(tour.end_date) + timedelta(days=days)


def post_tour_access_open(db: Session, tour_id: int, now: datetime | None = None) -> bool:
    """True mientras now <= end_date + post_tour_access_days. Tour inexistente => False."""
    tour = db.get(Tour, tour_id)
    if tour is None:
        return False
    now = as_utc(now) if now is not None else now_utc()
    return now <= access_ends_at(tour)


def tour_access_summary(db: Session, tour_id: int, now: datetime | None = None) -> dict:
    tour = db.get(Tour, tour_id)
    if tour is None:
        raise NotFound("Tour not found")
    now = as_utc(now) if now is not None else now_utc()
    ends = access_ends_at(tour)
    return {
        "tour_id": tour.id,
        "read_only": is_read_only(tour.end_date, now),
        "post_tour_access": now <= ends,
        "access_ends_at": ends,
    }


# -------------------- estado del tour -------------------- #

def advance_tour_status(db: Session, tour_id: int, target: str) -> Tour:
    """Draft -> Pending -> Completed, de a un paso y sin retroceso."""
    tour = db.get(Tour, tour_id)
    if tour is None:
        raise NotFound("Tour not found")
    if target not in TOUR_STATUSES:
        raise InvalidTransition(f"Unknown tour status '{target}'")

    current = TOUR_STATUSES.index(tour.status)
    wanted = TOUR_STATUSES.index(target)
    if wanted != current + 1:
        raise InvalidTransition(f"Cannot move tour from {tour.status} to {target}")

    tour.status = target
    db.commit()
    db.refresh(tour)
    return tour
