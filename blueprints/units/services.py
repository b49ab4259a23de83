# blueprints/units/services.py
from __future__ import annotations
import logging

from sqlalchemy import func, or_

from errors import AppError, Conflict, NotFound
from extensions import db
from models import Enrollment, Unit

from .schemas import UnitIn, UnitUpdate

log = logging.getLogger(__name__)


def _search_filter(term: str):
    like = f"%{term.strip()}%"
    return or_(Unit.unit_code.ilike(like), Unit.title.ilike(like), Unit.description.ilike(like))


def list_query(*, search: str | None = None, credits: int | None = None,
               min_credits: int | None = None, max_credits: int | None = None):
    q = Unit.query
    if search:
        q = q.filter(_search_filter(search))
    if credits is not None:
        q = q.filter(Unit.credits == credits)
    if min_credits is not None:
        q = q.filter(Unit.credits >= min_credits)
    if max_credits is not None:
        q = q.filter(Unit.credits <= max_credits)
    return q.order_by(Unit.unit_code.asc(), Unit.id.asc())


def search(term: str, limit: int = 20) -> list[Unit]:
    return (Unit.query.filter(_search_filter(term))
            .order_by(Unit.unit_code.asc(), Unit.title.asc())
            .limit(limit).all())


def get_unit(unit_id: int) -> Unit:
    unit = db.session.get(Unit, unit_id)
    if not unit:
        raise NotFound("Unit not found")
    return unit


def enrollment_count(unit_id: int) -> int:
    return db.session.query(func.count(Enrollment.id)).filter(Enrollment.unit_id == unit_id).scalar() or 0


def enrollment_counts() -> list[tuple[Unit, int]]:
    rows = (db.session.query(Unit, func.count(Enrollment.id))
            .outerjoin(Enrollment, Enrollment.unit_id == Unit.id)
            .group_by(Unit.id)
            .order_by(Unit.unit_code.asc())
            .all())
    return [(u, int(n)) for u, n in rows]


def _code_taken(code: str, exclude_id: int | None = None) -> bool:
    q = Unit.query.filter(Unit.unit_code == code)
    if exclude_id is not None:
        q = q.filter(Unit.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def create_unit(data: UnitIn) -> Unit:
    if _code_taken(data.unit_code):
        raise Conflict("Unit code already exists")
    unit = Unit(**data.model_dump())
    db.session.add(unit)
    db.session.commit()
    log.info("unit created id=%s code=%s", unit.id, unit.unit_code)
    return unit


def update_unit(unit_id: int, data: UnitUpdate) -> Unit:
    unit = get_unit(unit_id)
    changes = data.model_dump(exclude_unset=True)
    code = changes.get("unit_code")
    if code and code != unit.unit_code and _code_taken(code, exclude_id=unit.id):
        raise Conflict("Unit code already exists")
    for field, value in changes.items():
        if value is None and field != "description":
            continue
        setattr(unit, field, value)
    db.session.commit()
    return unit


def delete_unit(unit_id: int) -> None:
    unit = get_unit(unit_id)
    if enrollment_count(unit.id) > 0:
        raise AppError("Cannot delete unit with existing enrollments.")
    db.session.delete(unit)
    db.session.commit()
    log.info("unit deleted id=%s", unit_id)
