from whackamole import db
from whackamole.models import HighScore
from flask import current_app


def load_high_score(key: str) -> int:
    """Return the stored high score for ``key``, or 0 when none exists.

    Storage errors degrade to 0 so a broken database never blocks play.
    """
    try:
        row = HighScore.query.filter_by(key=key).first()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning(f"[high-score] load failed key={key}: {exc}")
        return 0
    return int(row.value) if row else 0


def high_score_entry(key: str) -> dict:
    """Stored row for ``key`` as a dict; an unsaved key reads as 0."""
    try:
        row = HighScore.query.filter_by(key=key).first()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning(f"[high-score] load failed key={key}: {exc}")
        row = None
    if row is None:
        row = HighScore(key=key, value=0)
    return row.to_dict()


def record_high_score(key: str, value: int) -> int:
    """Store ``value`` under ``key`` unless a higher value is already stored.

    Returns the value held after the call.
    """
    row = HighScore.query.filter_by(key=key).first()
    if row is None:
        row = HighScore(key=key, value=0)
    if value <= (row.value or 0):
        return int(row.value or 0)
    row.value = int(value)
    row.touch()
    try:
        db.session.add(row)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    current_app.logger.info(f"[high-score] key={key} value={row.value}")
    return row.value


def clear_high_score(key: str) -> None:
    HighScore.query.filter_by(key=key).delete()
    db.session.commit()
