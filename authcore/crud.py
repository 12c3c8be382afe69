# authcore/crud.py
"""User store backed by SQLAlchemy.

Functions here never commit on their own except :func:`save`; the auth
service decides where a unit of work ends. The OTP and credential updates are
single conditional UPDATE statements so that a read-check-write on one user
row cannot interleave with another writer.
"""
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from . import models


class EmailTaken(Exception):
    """The unique index on ``users.email`` rejected a write."""


def get_user(db: Session, user_id: int):
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def email_taken(db: Session, email: str, exclude_id=None) -> bool:
    query = db.query(models.User.id).filter(models.User.email == email)
    if exclude_id is not None:
        query = query.filter(models.User.id != exclude_id)
    return query.first() is not None


def create_user(db: Session, *, name, email, password, location=None, phone=None, otp=None):
    db_user = models.User(
        name=name,
        email=email,
        password=password,
        location=location,
        phone=phone,
        verified=False,
        otp=otp,
        otp_issued_at=datetime.now(timezone.utc) if otp is not None else None,
    )
    db.add(db_user)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise EmailTaken(email) from e
    return db_user


def set_otp(db: Session, user_id: int, otp: int) -> bool:
    """Replace whatever code the user had outstanding."""
    count = (
        db.query(models.User)
        .filter(models.User.id == user_id)
        .update(
            {models.User.otp: otp, models.User.otp_issued_at: datetime.now(timezone.utc)},
            synchronize_session=False,
        )
    )
    return count == 1


def consume_otp(db: Session, email: str, otp: int, not_before=None, **changes) -> bool:
    """Clear a matching pending code and apply ``changes`` in the same statement.

    Returns ``False`` when no user holds that (email, code) pair, including
    when another request consumed it first.
    """
    query = db.query(models.User).filter(
        models.User.email == email,
        models.User.otp == otp,
        models.User.otp.isnot(None),
    )
    if not_before is not None:
        query = query.filter(models.User.otp_issued_at >= not_before)
    values = {"otp": None, "otp_issued_at": None}
    values.update(changes)
    return query.update(values, synchronize_session=False) == 1


def swap_password(db: Session, user_id: int, old_password: str, new_password: str) -> bool:
    """Store ``new_password`` only if the stored digest is still ``old_password``."""
    count = (
        db.query(models.User)
        .filter(models.User.id == user_id, models.User.password == old_password)
        .update({models.User.password: new_password}, synchronize_session=False)
    )
    return count == 1


def save(db: Session, user: models.User) -> models.User:
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise EmailTaken(user.email) from e
    db.refresh(user)
    return user
