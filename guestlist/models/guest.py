from datetime import datetime
from guestlist import db


class Guest(db.Model):
    """Invited guest and their RSVP state."""
    __tablename__ = 'guests'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, index=True)
    email = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(40), nullable=True)
    is_attending = db.Column(db.Boolean, nullable=True)  # None until the guest answers
    has_responded = db.Column(db.Boolean, default=False, nullable=False)
    message = db.Column(db.Text, nullable=True)
    credential = db.Column(db.String(128), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    attendance = db.relationship('Attendance', backref='guest', uselist=False)

    def __repr__(self):
        return f'<Guest {self.name}>'

    @property
    def is_checked_in(self):
        return self.attendance is not None

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'is_attending': self.is_attending,
            'has_responded': self.has_responded,
            'message': self.message,
            'credential': self.credential,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
