# flask_app/models/base.py

from datetime import datetime, timezone

from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

db = SQLAlchemy()


def _utcnow():
    return datetime.now(timezone.utc)


class BaseModel(db.Model):
    """Abstract base carrying timestamps and the safe_* persistence helpers."""

    __abstract__ = True

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    @classmethod
    def safe_create(cls, **kwargs):
        """
        Create and commit a new instance.

        Returns:
            tuple: (instance, None) on success, (None, error message) on failure.
        """
        try:
            instance = cls(**kwargs)
            db.session.add(instance)
            db.session.commit()
            return instance, None
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Database error creating {cls.__name__}: {str(e)}")
            return None, str(e)

    def safe_update(self, **kwargs):
        """
        Apply attribute updates and commit.

        Returns:
            tuple: (True, None) on success, (False, error message) on failure.
        """
        try:
            for key, value in kwargs.items():
                if hasattr(self, key):
                    setattr(self, key, value)
            db.session.commit()
            return True, None
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Database error updating {type(self).__name__} {self.id}: {str(e)}")
            return False, str(e)

    def safe_delete(self):
        """Delete and commit, returning (success, error message)."""
        try:
            db.session.delete(self)
            db.session.commit()
            return True, None
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Database error deleting {type(self).__name__} {self.id}: {str(e)}")
            return False, str(e)

    @staticmethod
    def _isoformat(value):
        return value.isoformat() if value else None
