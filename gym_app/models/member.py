from datetime import datetime
from gym_app import db


class Member(db.Model):
    """Gym member.

    start_date, end_date and membership_type mirror the member's most recent
    membership period. The ledger in membership_periods is authoritative; these
    columns are only rewritten by ledger.resync_member_cache().
    """
    __tablename__ = 'members'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=True, index=True)  # soft-unique, see enrollment intents
    email = db.Column(db.String(120), nullable=True)
    membership_type = db.Column(db.String(100), nullable=True)
    start_date = db.Column(db.DateTime, nullable=True)
    end_date = db.Column(db.DateTime, nullable=True, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    periods = db.relationship('MembershipPeriod', backref='member', lazy='dynamic',
                              cascade='all, delete-orphan')
    transactions = db.relationship('Transaction', backref='member', lazy='dynamic')

    def __repr__(self):
        return f'<Member {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'email': self.email,
            'membership_type': self.membership_type,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'is_active': self.is_active,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
