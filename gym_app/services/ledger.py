"""
Membership period ledger - database access for the period services.

Every write path runs inside `atomically()`: the transaction record, the
period and the member cache update commit together or not at all.
"""

from contextlib import contextmanager
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from gym_app import db
from gym_app.models import Member, MembershipPackage, MembershipPeriod, Transaction
from gym_app.services.errors import MembershipError, PersistenceFailure
from gym_app.services.periods import bounds_from_start, compute_new_period, validate_periods


def find_periods_by_member(member_id: int) -> list:
    """All periods a member has ever held, oldest first."""
    return MembershipPeriod.query.filter_by(member_id=member_id).order_by(
        MembershipPeriod.start_date, MembershipPeriod.id
    ).all()


def find_active_product_by_name(name: str):
    """Active package with this exact name, or None."""
    return MembershipPackage.query.filter_by(name=name, is_active=True).first()


@contextmanager
def atomically():
    """Commit everything written in the block, or roll all of it back."""
    try:
        yield db.session
        db.session.commit()
    except MembershipError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Atomic write failed: {e}")
        raise PersistenceFailure('Failed to save membership changes') from e
    except Exception:
        db.session.rollback()
        raise


def resync_member_cache(member: Member) -> Member:
    """Copy the latest period onto the member's cached start/end/type columns."""
    db.session.flush()
    latest = member.periods.order_by(
        MembershipPeriod.end_date.desc(), MembershipPeriod.id.desc()
    ).first()

    if latest is None:
        member.start_date = None
        member.end_date = None
        member.membership_type = None
        return member

    member.start_date = latest.start_date
    member.end_date = latest.end_date
    member.membership_type = latest.package_name
    return member


def record_purchase(
    member: Member,
    package: MembershipPackage,
    payment_method_id: int,
    amount: int,
    reference: datetime,
    notes: str = None,
    start_override: datetime = None,
    transaction_date: datetime = None,
):
    """
    Sell a package to a member: transaction, ledger period and cache resync.

    Must run inside `atomically()`.

    Args:
        member: Buyer (may be pending insert)
        package: Package being sold
        payment_method_id: PaymentMethod.id
        amount: Price actually paid
        reference: Instant the new period is anchored on
        notes: Transaction notes
        start_override: Explicit first-enrollment start (empty history only)
        transaction_date: When the payment happened, defaults to reference

    Returns:
        tuple: (Transaction, MembershipPeriod)
    """
    db.session.add(member)
    db.session.flush()

    history = find_periods_by_member(member.id)
    start, end = compute_new_period(package.duration_months, history, reference, start_override)

    transaction = Transaction(
        member_id=member.id,
        package_id=package.id,
        payment_method_id=payment_method_id,
        amount=amount,
        package_name=package.name,
        package_duration=package.duration_months,
        transaction_date=transaction_date or reference,
        notes=notes,
    )
    db.session.add(transaction)
    db.session.flush()

    member.is_active = True
    period = insert_period(member, package.name, package.duration_months, start, end, transaction)
    return transaction, period


def insert_period(member: Member, package_name: str, duration_months: int,
                  start: datetime, end: datetime, transaction: Transaction = None):
    """Append a period with already computed bounds. Must run inside `atomically()`."""
    db.session.add(member)
    db.session.flush()

    period = MembershipPeriod(
        member_id=member.id,
        start_date=start,
        end_date=end,
        package_name=package_name,
        duration=duration_months,
        status='active',
        transaction_id=transaction.id if transaction is not None else None,
    )
    validate_periods([period])
    db.session.add(period)
    resync_member_cache(member)

    current_app.logger.info(
        f"Inserted period '{package_name}' for member {member.id}: {start.isoformat()} -> {end.isoformat()}"
    )
    return period


def insert_administrative_period(member: Member, package_name: str, duration_months: int,
                                 start: datetime):
    """Period set by hand from the member edit form: explicit start, no payment."""
    start, end = bounds_from_start(duration_months, start)
    return insert_period(member, package_name, duration_months, start, end)


def detach_transactions(member: Member) -> int:
    """Unlink a member's transactions so they survive the member's deletion."""
    return Transaction.query.filter_by(member_id=member.id).update(
        {'member_id': None}, synchronize_session='fetch'
    )
