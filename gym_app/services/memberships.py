"""
Membership write paths: enrollment, renewal, Day Pass sales, deletion.

Each public function opens one `atomically()` block, so a sale never ends up
with a transaction but no period (or the reverse). Callers pass the reference
instant explicitly.

Enrollment with payment first resolves what the request means:
- NewMember: nobody has this phone number, create a member
- ExtendExistingMemberByPhone: the phone is known and a Day Pass is being
  bought, so the pass is queued on that member
- ConflictRequiresDisambiguation: the phone is known and a regular package is
  being bought; the admin has to renew the existing member instead
"""

from dataclasses import dataclass
from datetime import datetime

from flask import current_app

from gym_app import db
from gym_app.models import Member, MembershipPackage
from gym_app.services.errors import EnrollmentConflict, ProductUnavailable
from gym_app.services.ledger import (
    atomically,
    detach_transactions,
    find_active_product_by_name,
    find_periods_by_member,
    insert_period,
    record_purchase,
)
from gym_app.services.periods import (
    DAY_PASS_NAME,
    compute_new_period,
    is_day_pass_duration,
    validate_duration,
)


@dataclass(frozen=True)
class NewMember:
    pass


@dataclass(frozen=True)
class ExtendExistingMemberByPhone:
    member_id: int


@dataclass(frozen=True)
class ConflictRequiresDisambiguation:
    member_id: int


def find_member_by_phone(phone: str):
    if not phone:
        return None
    return Member.query.filter_by(phone=phone).order_by(Member.created_at.desc()).first()


def resolve_enrollment_intent(phone: str, duration_months: int):
    """Decide once whether a paid enrollment creates, extends or conflicts."""
    existing = find_member_by_phone(phone)
    if existing is None:
        return NewMember()
    if is_day_pass_duration(duration_months):
        return ExtendExistingMemberByPhone(existing.id)
    return ConflictRequiresDisambiguation(existing.id)


def enroll_member(name: str, package_name: str, duration_months: int, start_date: datetime,
                  phone: str = None, email: str = None, notes: str = None):
    """Create a member and their first period, without a payment."""
    duration_months = validate_duration(duration_months)

    with atomically():
        member = Member(
            name=name,
            phone=phone or None,
            email=email or None,
            membership_type=package_name,
            notes=notes or None,
        )
        db.session.add(member)
        start, end = compute_new_period(duration_months, [], start_date, start_override=start_date)
        period = insert_period(member, package_name, duration_months, start, end)

    current_app.logger.info(f"Enrolled member {member.id} ({member.name}) on {package_name}")
    return member, period


def enroll_member_with_payment(name: str, package: MembershipPackage, payment_method_id: int,
                               amount: int, start_date: datetime, reference: datetime,
                               phone: str = None, email: str = None, notes: str = None) -> dict:
    """
    Enroll a member and record the sale.

    Returns:
        dict with 'member', 'transaction', 'period', 'is_existing_member'

    Raises:
        EnrollmentConflict: phone already belongs to a member and a regular
            package is being bought
    """
    intent = resolve_enrollment_intent(phone, package.duration_months)

    if isinstance(intent, ConflictRequiresDisambiguation):
        raise EnrollmentConflict(
            'A member with this phone number already exists. Renew their membership '
            'from the Members page or use a different phone number.',
            member_id=intent.member_id,
        )

    with atomically():
        if isinstance(intent, ExtendExistingMemberByPhone):
            member = db.session.get(Member, intent.member_id)
            if member.name != name:
                member.name = f'{member.name} / {name}'
            if notes:
                member.notes = notes
            transaction, period = record_purchase(
                member, package, payment_method_id, amount, reference,
                notes=notes or f'Additional membership - {package.name}',
            )
        else:
            member = Member(
                name=name,
                phone=phone or None,
                email=email or None,
                membership_type=package.name,
                notes=notes or None,
            )
            transaction, period = record_purchase(
                member, package, payment_method_id, amount, reference,
                notes=notes or f'Initial membership - {package.name}',
                start_override=start_date,
            )

    is_existing = isinstance(intent, ExtendExistingMemberByPhone)
    current_app.logger.info(
        f"Paid enrollment for member {member.id} ({package.name}), existing={is_existing}"
    )
    return {
        'member': member,
        'transaction': transaction,
        'period': period,
        'is_existing_member': is_existing,
    }


def renew_membership(member: Member, package: MembershipPackage, payment_method_id: int,
                     amount: int, reference: datetime, notes: str = None) -> dict:
    """Sell another period, queued after whatever the member still has."""
    previous_end = member.end_date

    with atomically():
        transaction, period = record_purchase(
            member, package, payment_method_id, amount, reference,
            notes=notes or f'Membership renewal - {package.name}',
        )

    current_app.logger.info(f"Renewed member {member.id} with {package.name}")
    return {
        'member': member,
        'transaction': transaction,
        'period': period,
        'previous_end_date': previous_end,
    }


def get_day_pass_package() -> MembershipPackage:
    package = find_active_product_by_name(DAY_PASS_NAME)
    if package is None or not is_day_pass_duration(package.duration_months):
        raise ProductUnavailable('Day Pass package not found')
    return package


def purchase_day_pass(member: Member, payment_method_id: int, reference: datetime,
                      notes: str = None):
    """Sell one Day Pass at the Day Pass package price."""
    package = get_day_pass_package()
    with atomically():
        transaction, period = record_purchase(
            member, package, payment_method_id, package.price, reference,
            notes=notes or 'Day Pass',
        )
    return transaction, period


def record_sale(member: Member, package: MembershipPackage, payment_method_id: int,
                amount: int, transaction_date: datetime, notes: str = None):
    """Record a sale made at `transaction_date` and its ledger period."""
    with atomically():
        transaction, period = record_purchase(
            member, package, payment_method_id, amount, transaction_date,
            notes=notes, transaction_date=transaction_date,
        )
    return transaction, period


def delete_member(member: Member) -> None:
    """Delete a member and their periods; their transactions are kept."""
    member_id = member.id
    with atomically():
        detached = detach_transactions(member)
        db.session.delete(member)
    current_app.logger.info(f"Deleted member {member_id}, kept {detached} transactions")


def member_periods(member: Member) -> list:
    return find_periods_by_member(member.id)
