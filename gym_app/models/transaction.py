from datetime import datetime
from gym_app import db


class Transaction(db.Model):
    """Payment record. Written once, never updated.

    package_name and package_duration snapshot the package at the time of sale.
    member_id is cleared (not cascaded) when the member is deleted.
    """
    __tablename__ = 'transactions'

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='SET NULL'),
                          nullable=True, index=True)
    package_id = db.Column(db.Integer, db.ForeignKey('membership_packages.id'), nullable=False)
    payment_method_id = db.Column(db.Integer, db.ForeignKey('payment_methods.id'), nullable=False)
    amount = db.Column(db.Integer, nullable=False)
    package_name = db.Column(db.String(100), nullable=False)
    package_duration = db.Column(db.Integer, nullable=False)
    transaction_date = db.Column(db.DateTime, default=datetime.now, nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<Transaction {self.id} {self.package_name} {self.amount}>'

    def to_dict(self):
        return {
            'id': self.id,
            'member_id': self.member_id,
            'member_name': self.member.name if self.member else None,
            'package_id': self.package_id,
            'payment_method_id': self.payment_method_id,
            'payment_method': self.payment_method.name if self.payment_method else None,
            'amount': self.amount,
            'package_name': self.package_name,
            'package_duration': self.package_duration,
            'transaction_date': self.transaction_date.isoformat() if self.transaction_date else None,
            'notes': self.notes,
        }
