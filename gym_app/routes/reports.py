"""
Financial reports and dashboard counters.

Revenue figures come from transactions. Dashboard member counts use the
cached end_date on members, which the ledger keeps in sync.
"""

from datetime import date, datetime, timedelta
from flask import Blueprint, request, jsonify
from sqlalchemy import func

from gym_app import db
from gym_app.models import Member, MembershipPackage, PaymentMethod, Transaction
from gym_app.routes.auth import admin_required
from gym_app.routes.helpers import parse_datetime
from gym_app.services.continuity import EXPIRING_SOON_DAYS

reports_bp = Blueprint('reports', __name__, url_prefix='/api/reports')
dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/api/dashboard')


def month_bounds(year: int, month: int):
    """First instant and last instant of a calendar month."""
    start = datetime(year, month, 1)
    if month == 12:
        next_month = datetime(year + 1, 1, 1)
    else:
        next_month = datetime(year, month + 1, 1)
    return start, next_month - timedelta(microseconds=1)


@reports_bp.route('/monthly')
@admin_required
def monthly_report():
    """Revenue, sales per package and payment method, and new members for a month."""
    today = date.today()
    year = request.args.get('year', today.year, type=int)
    month = request.args.get('month', today.month, type=int)
    if not 1 <= month <= 12:
        return jsonify({'error': 'month must be between 1 and 12'}), 400

    start, end = month_bounds(year, month)
    in_month = Transaction.transaction_date.between(start, end)

    total_revenue, total_transactions = db.session.query(
        func.coalesce(func.sum(Transaction.amount), 0), func.count(Transaction.id)
    ).filter(in_month).one()

    by_package = db.session.query(
        Transaction.package_name,
        Transaction.package_duration,
        func.sum(Transaction.amount).label('revenue'),
        func.count(Transaction.id).label('count'),
    ).filter(in_month).group_by(
        Transaction.package_name, Transaction.package_duration
    ).order_by(func.sum(Transaction.amount).desc()).all()

    by_payment_method = db.session.query(
        PaymentMethod.name,
        func.sum(Transaction.amount).label('revenue'),
        func.count(Transaction.id).label('count'),
    ).join(PaymentMethod, Transaction.payment_method_id == PaymentMethod.id).filter(
        in_month
    ).group_by(PaymentMethod.name).order_by(func.sum(Transaction.amount).desc()).all()

    new_members = Member.query.filter(Member.created_at.between(start, end)).count()

    return jsonify({
        'period': f'{year}-{month:02d}',
        'total_revenue': total_revenue,
        'total_transactions': total_transactions,
        'new_members': new_members,
        'revenue_by_package': [
            {'package_name': row.package_name, 'duration': row.package_duration,
             'revenue': row.revenue or 0, 'count': row.count}
            for row in by_package
        ],
        'revenue_by_payment_method': [
            {'payment_method': row.name, 'revenue': row.revenue or 0, 'count': row.count}
            for row in by_payment_method
        ],
    })


@reports_bp.route('/revenue')
@admin_required
def revenue_report():
    """Daily revenue between start_date and end_date (inclusive)."""
    start = parse_datetime(request.args.get('start_date'), 'start_date')
    end = parse_datetime(request.args.get('end_date'), 'end_date')
    if end.time() == datetime.min.time():
        end = end + timedelta(days=1) - timedelta(microseconds=1)

    in_range = Transaction.transaction_date.between(start, end)
    day = func.date(Transaction.transaction_date)

    daily = db.session.query(
        day.label('day'),
        func.sum(Transaction.amount).label('revenue'),
        func.count(Transaction.id).label('count'),
    ).filter(in_range).group_by(day).order_by(day).all()

    total_revenue, total_transactions = db.session.query(
        func.coalesce(func.sum(Transaction.amount), 0), func.count(Transaction.id)
    ).filter(in_range).one()

    return jsonify({
        'period': {'start_date': start.isoformat(), 'end_date': end.isoformat()},
        'total_revenue': total_revenue,
        'total_transactions': total_transactions,
        'revenue_data': [
            {'date': str(row.day), 'revenue': row.revenue or 0, 'count': row.count}
            for row in daily
        ],
    })


@reports_bp.route('/packages')
@admin_required
def package_report():
    """Best-selling packages by revenue, optionally within a date range."""
    start = parse_datetime(request.args.get('start_date'), 'start_date', required=False)
    end = parse_datetime(request.args.get('end_date'), 'end_date', required=False)
    limit = request.args.get('limit', 10, type=int)

    query = db.session.query(
        Transaction.package_id,
        Transaction.package_name,
        Transaction.package_duration,
        func.sum(Transaction.amount).label('revenue'),
        func.count(Transaction.id).label('sold'),
    )
    if start and end:
        query = query.filter(Transaction.transaction_date.between(start, end))

    rows = query.group_by(
        Transaction.package_id, Transaction.package_name, Transaction.package_duration
    ).order_by(func.sum(Transaction.amount).desc()).limit(limit).all()

    packages = []
    for row in rows:
        package = db.session.get(MembershipPackage, row.package_id)
        revenue = row.revenue or 0
        packages.append({
            'package_id': row.package_id,
            'package_name': row.package_name,
            'duration': row.package_duration,
            'current_price': package.price if package else 0,
            'total_revenue': revenue,
            'total_sold': row.sold,
            'average_price': revenue / row.sold if row.sold else 0,
        })

    return jsonify({
        'period': {'start_date': start.isoformat(), 'end_date': end.isoformat()}
        if start and end else 'all-time',
        'packages': packages,
    })


@dashboard_bp.route('/stats')
@admin_required
def dashboard_stats():
    """Member counts by status."""
    now = datetime.now()
    soon = now + timedelta(days=EXPIRING_SOON_DAYS)
    active_members = Member.query.filter(Member.is_active.is_(True))

    total = active_members.count()
    not_expired = active_members.filter(Member.end_date > now).count()
    expired = active_members.filter(Member.end_date < now).count()
    expiring_soon = active_members.filter(Member.end_date >= now, Member.end_date <= soon).count()

    return jsonify({
        'total_members': total,
        'active_members': not_expired - expiring_soon,
        'expired_members': expired,
        'expiring_soon': expiring_soon,
    })
