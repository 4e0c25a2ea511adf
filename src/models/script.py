"""
Script and ScriptFile database models.

A Script owns an optional cover image (``cover_image_url``) and a version
history of uploaded documents (``ScriptFile`` rows). For every
(script, file_type) pair exactly one ScriptFile has ``is_latest`` set.
"""

from datetime import datetime
from src.database import db

SCRIPT_FILE_TYPES = (
    'SCREENPLAY',
    'PITCHDECK',
    'TREATMENT',
    'ONELINE_ORDER',
    'STORYBOARD',
    'TEAM_PROFILE',
)


class Script(db.Model):
    """Submitted script with its cover image reference."""

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(300), nullable=False)
    writers = db.Column(db.String(500), nullable=True)
    logline = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(30), nullable=False, default='SUBMITTED')
    cover_image_url = db.Column(db.String(1000), nullable=True)  # NULL when cleared
    submitted_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships (dependent rows go away with the script)
    submitter = db.relationship('User', backref=db.backref('scripts', lazy=True))
    files = db.relationship('ScriptFile', back_populates='script', cascade='all, delete-orphan',
                            order_by='ScriptFile.version')
    assignments = db.relationship('Assignment', back_populates='script', cascade='all, delete-orphan')
    feedback = db.relationship('Feedback', back_populates='script', cascade='all, delete-orphan')
    activities = db.relationship('Activity', back_populates='script', cascade='all, delete-orphan')
    meetings = db.relationship('Meeting', back_populates='script', cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Script {self.id} '{self.title}'>"

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'writers': self.writers,
            'status': self.status,
            'cover_image_url': self.cover_image_url,
            'submitted_by': self.submitted_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'files': [f.to_dict() for f in self.files],
        }


class ScriptFile(db.Model):
    """One uploaded version of a script document."""

    __tablename__ = 'script_file'
    __table_args__ = (
        db.UniqueConstraint('script_id', 'file_type', 'version', name='uq_script_file_version'),
    )

    id = db.Column(db.Integer, primary_key=True)
    script_id = db.Column(db.Integer, db.ForeignKey('script.id', ondelete='CASCADE'), nullable=False, index=True)
    file_type = db.Column(db.String(30), nullable=False)  # One of SCRIPT_FILE_TYPES
    file_name = db.Column(db.String(500), nullable=False)
    file_url = db.Column(db.String(1000), nullable=False)
    file_size = db.Column(db.Integer, nullable=False)
    version = db.Column(db.Integer, nullable=False, default=1)
    is_latest = db.Column(db.Boolean, nullable=False, default=True)
    uploaded_by = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    script = db.relationship('Script', back_populates='files')
    uploader = db.relationship('User')

    def __repr__(self):
        return f'<ScriptFile {self.id} {self.file_type} v{self.version} latest={self.is_latest}>'

    def to_dict(self):
        return {
            'id': self.id,
            'script_id': self.script_id,
            'file_type': self.file_type,
            'file_name': self.file_name,
            'file_url': self.file_url,
            'file_size': self.file_size,
            'version': self.version,
            'is_latest': self.is_latest,
            'uploaded_by': self.uploaded_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
