from .db import db, utcnow
from ..utils.constants import Audience


class Broadcast(db.Model):
    __tablename__ = "broadcasts"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    target = db.Column(db.String(16), nullable=False, default=Audience.ALL)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_event(self):
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "target": self.target,
            "timestamp": self.created_at.isoformat(),
        }
