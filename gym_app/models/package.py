from datetime import datetime
from gym_app import db
from gym_app.services.periods import DAY_PASS_NAME, is_day_pass_duration


class MembershipPackage(db.Model):
    """Product sold to members. duration_months == 0 is the Day Pass."""
    __tablename__ = 'membership_packages'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    duration_months = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Integer, nullable=False)  # currency minor units
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint('duration_months >= 0', name='non_negative_duration'),
    )

    # Relationships
    transactions = db.relationship('Transaction', backref='package', lazy='dynamic')

    @property
    def is_day_pass(self):
        return self.name == DAY_PASS_NAME or is_day_pass_duration(self.duration_months)

    def __repr__(self):
        return f'<MembershipPackage {self.name} ({self.duration_months}m)>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'duration_months': self.duration_months,
            'price': self.price,
            'description': self.description,
            'is_active': self.is_active,
            'is_day_pass': self.is_day_pass,
        }
