"""Idempotent seed data: payment methods, packages and optional demo members."""
from datetime import datetime

from gym_app import db
from gym_app.models import Member, MembershipPackage, PaymentMethod
from gym_app.services.periods import DAY_PASS_NAME


DEFAULT_PAYMENT_METHODS = [
    'Cash',
    'Transfer Bank',
    'E-Wallet (OVO/DANA/GoPay)',
    'Debit Card',
    'Credit Card',
]

DEFAULT_PACKAGES = [
    # (name, duration_months, price, description)
    (DAY_PASS_NAME, 0, 25000, 'Single day gym access - expires at end of day'),
    ('Bulanan', 1, 150000, 'Monthly membership'),
    ('3 Bulan', 3, 400000, 'Quarterly membership'),
    ('6 Bulan', 6, 750000, 'Semi-annual membership'),
    ('Tahunan', 12, 1400000, 'Annual membership - best value'),
]

SAMPLE_MEMBERS = [
    # (name, phone, email, package name)
    ('John Doe (Day Pass)', '081234567890', 'john.daypass@example.com', DAY_PASS_NAME),
    ('Jane Smith (Monthly)', '081234567891', 'jane.monthly@example.com', 'Bulanan'),
]


def seed_defaults(with_sample_members=False, now=None):
    """Add default rows that don't exist yet. Returns counts of rows added."""
    added = {'payment_methods': 0, 'packages': 0, 'members': 0}

    for name in DEFAULT_PAYMENT_METHODS:
        if not PaymentMethod.query.filter_by(name=name).first():
            db.session.add(PaymentMethod(name=name, is_active=True))
            added['payment_methods'] += 1

    for name, duration, price, description in DEFAULT_PACKAGES:
        if not MembershipPackage.query.filter_by(name=name).first():
            db.session.add(MembershipPackage(
                name=name,
                duration_months=duration,
                price=price,
                description=description,
                is_active=True,
            ))
            added['packages'] += 1

    db.session.commit()

    if with_sample_members and Member.query.count() == 0:
        from gym_app.services.memberships import enroll_member_with_payment

        now = now or datetime.now()
        cash = PaymentMethod.query.filter_by(name='Cash').first()
        for name, phone, email, package_name in SAMPLE_MEMBERS:
            package = MembershipPackage.query.filter_by(name=package_name).first()
            enroll_member_with_payment(
                name=name,
                package=package,
                payment_method_id=cash.id,
                amount=package.price,
                start_date=now,
                reference=now,
                phone=phone,
                email=email,
                notes='Sample member',
            )
            added['members'] += 1

    return added
