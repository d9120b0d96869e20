from whackamole import db
import time


class HighScore(db.Model):
    __tablename__ = 'high_score'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(64), unique=True, nullable=False, index=True)
    value = db.Column(db.Integer, default=0, nullable=False)
    updated_at = db.Column(db.Float, nullable=True)

    def touch(self):
        self.updated_at = time.time()

    def to_dict(self):
        return {
            'key': self.key,
            'value': self.value,
            'updated_at': self.updated_at,
        }
