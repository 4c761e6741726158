from gym_app import db


class PaymentMethod(db.Model):
    """How a transaction was paid (cash, transfer, ...)."""
    __tablename__ = 'payment_methods'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    transactions = db.relationship('Transaction', backref='payment_method', lazy='dynamic')

    def __repr__(self):
        return f'<PaymentMethod {self.name}>'

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'is_active': self.is_active}
