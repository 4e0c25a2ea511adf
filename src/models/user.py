"""
User database model.

Users own an optional profile photo, stored as a URL in ``photo_url``.
The URL points at an object held by the storage service.
"""

from datetime import datetime
from flask_login import UserMixin
from src.database import db

USER_ROLES = ('ADMIN', 'EXECUTIVE', 'READER', 'WRITER')


class User(db.Model, UserMixin):
    """User model for authentication and profile management."""

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    name = db.Column(db.String(100), nullable=True)
    role = db.Column(db.String(20), nullable=False, default='READER')
    status = db.Column(db.String(20), nullable=False, default='ACTIVE')
    photo_url = db.Column(db.String(1000), nullable=True)  # Profile photo reference, NULL when cleared
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_admin(self):
        return self.role == 'ADMIN'

    @property
    def display_name(self):
        return self.name or self.email

    def __repr__(self):
        return f"User('{self.email}', '{self.role}')"

    def to_dict(self):
        """Convert model to dictionary representation."""
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'photo_url': self.photo_url,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
