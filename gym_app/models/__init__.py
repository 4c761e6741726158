# Import all models here so they're registered with SQLAlchemy
from gym_app.models.member import Member
from gym_app.models.package import MembershipPackage
from gym_app.models.payment_method import PaymentMethod
from gym_app.models.transaction import Transaction
from gym_app.models.period import MembershipPeriod

__all__ = ['Member', 'MembershipPackage', 'PaymentMethod', 'Transaction', 'MembershipPeriod']
