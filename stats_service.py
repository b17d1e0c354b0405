from datetime import date, datetime, timedelta
from typing import Dict, List

from sqlalchemy import distinct, func, select

from models import db, Account, Brief, Offer, ActivityEvent, EVENT_TYPES, EVENT_USER_LOGIN
from utils import utcnow

MAX_DAYS = 90
RECENT_EVENTS = 50


def clamp_days(days) -> int:
    try:
        days = int(days)
    except (TypeError, ValueError):
        return 7
    return max(1, min(MAX_DAYS, days))


def _day_keys(start: date, days: int) -> List[str]:
    return [(start + timedelta(days=i)).isoformat() for i in range(days)]


def _as_key(value) -> str:
    # SQLite returns 'YYYY-MM-DD', Postgres returns a date
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)[:10]


def _per_day(model, since: datetime, keys: List[str]) -> List[Dict]:
    day = func.date(model.created_at)
    rows = db.session.execute(
        select(day, func.count(model.id))
        .where(model.created_at >= since)
        .group_by(day)
    ).all()
    counts = {_as_key(d): int(c) for d, c in rows}
    return [{"date": k, "count": counts.get(k, 0)} for k in keys]


def _events_per_day(since: datetime, keys: List[str]) -> List[Dict]:
    day = func.date(ActivityEvent.created_at)
    rows = db.session.execute(
        select(day, ActivityEvent.event_type, func.count(ActivityEvent.id))
        .where(ActivityEvent.created_at >= since)
        .group_by(day, ActivityEvent.event_type)
    ).all()

    series = {k: {"date": k, **{t: 0 for t in EVENT_TYPES}} for k in keys}
    for d, event_type, c in rows:
        bucket = series.get(_as_key(d))
        if bucket is not None:
            bucket[event_type] = bucket.get(event_type, 0) + int(c)
    return [series[k] for k in keys]


def _count(model) -> int:
    return int(db.session.execute(select(func.count(model.id))).scalar() or 0)


def collect_stats(days=7) -> Dict:
    days = clamp_days(days)
    today = utcnow().date()
    start = today - timedelta(days=days - 1)
    since = datetime.combine(start, datetime.min.time())
    keys = _day_keys(start, days)

    active_users = db.session.execute(
        select(func.count(distinct(ActivityEvent.user_id)))
        .where(ActivityEvent.event_type == EVENT_USER_LOGIN)
        .where(ActivityEvent.user_id.is_not(None))
        .where(ActivityEvent.created_at >= since)
    ).scalar()

    recent = (
        ActivityEvent.query
        .order_by(ActivityEvent.created_at.desc(), ActivityEvent.id.desc())
        .limit(RECENT_EVENTS)
        .all()
    )

    return {
        "days": days,
        "totals": {
            "users": _count(Account),
            "projects": _count(Brief),
            "offers": _count(Offer),
        },
        "activeUsers": int(active_users or 0),
        "series": {
            "usersPerDay": _per_day(Account, since, keys),
            "projectsPerDay": _per_day(Brief, since, keys),
            "offersPerDay": _per_day(Offer, since, keys),
            "eventsPerDay": _events_per_day(since, keys),
        },
        "recentEvents": [e.to_dict() for e in recent],
    }
