from datetime import datetime
from gym_app import db


class MembershipPeriod(db.Model):
    """One contiguous span of access entitlement. Append-only."""
    __tablename__ = 'membership_periods'

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='CASCADE'),
                          nullable=False, index=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False, index=True)
    package_name = db.Column(db.String(100), nullable=False)
    duration = db.Column(db.Integer, nullable=False)  # months, 0 = Day Pass
    status = db.Column(db.String(20), default='active', nullable=False)  # expiry is computed, never stored
    transaction_id = db.Column(db.Integer, db.ForeignKey('transactions.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint('end_date >= start_date', name='period_end_after_start'),
    )

    transaction = db.relationship('Transaction', backref=db.backref('periods', lazy='dynamic'))

    def __repr__(self):
        return f'<MembershipPeriod member={self.member_id} {self.start_date} -> {self.end_date}>'

    def to_dict(self):
        return {
            'id': self.id,
            'member_id': self.member_id,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'package_name': self.package_name,
            'duration': self.duration,
            'transaction_id': self.transaction_id,
            'transaction': {
                'id': self.transaction.id,
                'amount': self.transaction.amount,
                'transaction_date': self.transaction.transaction_date.isoformat(),
                'payment_method': self.transaction.payment_method.name
                if self.transaction.payment_method else None,
            } if self.transaction else None,
        }
