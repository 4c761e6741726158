"""
Member routes - enrollment, renewal, Day Pass sales, history.

All dates in requests are ISO strings; every handler takes "now" once and
passes it down to the period services.
"""

import math
from datetime import datetime, timedelta
from flask import Blueprint, request, jsonify, current_app
from sqlalchemy import or_

from gym_app.models import Member, MembershipPackage, PaymentMethod
from gym_app.routes.auth import admin_required
from gym_app.routes.helpers import iso, json_body, parse_datetime, parse_int
from gym_app.services.continuity import EXPIRING_SOON_DAYS, period_status, resolve_continuity
from gym_app.services.engagement import analyze_engagement
from gym_app.services.errors import EnrollmentConflict
from gym_app.services.ledger import atomically, insert_administrative_period
from gym_app.services import memberships

members_bp = Blueprint('members', __name__, url_prefix='/api/members')


def member_with_status(member, now):
    """Member dict plus status and days remaining from the ledger."""
    periods = memberships.member_periods(member)
    data = member.to_dict()
    data.update(resolve_continuity(periods, member.membership_type, now))
    return data


def load_sale_references(data):
    """Fetch the package and payment method named in a sale request."""
    package_id = parse_int(data.get('package_id'), 'package_id')
    payment_method_id = parse_int(data.get('payment_method_id'), 'payment_method_id')
    package = MembershipPackage.query.get_or_404(package_id, description='Package not found')
    PaymentMethod.query.get_or_404(payment_method_id, description='Payment method not found')
    return package, payment_method_id


@members_bp.route('', methods=['GET'])
@admin_required
def list_members():
    """
    Paginated member list.

    Query params:
        page, limit: Pagination (defaults 1, 10)
        search: Matches name, phone, email, or member id when numeric
        status: expired, expiring_soon or active (on the cached end date)
    """
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', 10, type=int)
    search = request.args.get('search', '').strip()
    status = request.args.get('status', '').strip()

    now = datetime.now()
    soon = now + timedelta(days=EXPIRING_SOON_DAYS)

    query = Member.query.filter(Member.is_active.is_(True))

    if search:
        conditions = [
            Member.name.contains(search),
            Member.phone.contains(search),
            Member.email.contains(search),
        ]
        if search.isdigit():
            conditions.append(Member.id == int(search))
        query = query.filter(or_(*conditions))

    if status == 'expired':
        query = query.filter(or_(Member.end_date.is_(None), Member.end_date < now))
    elif status == 'expiring_soon':
        query = query.filter(Member.end_date >= now, Member.end_date <= soon)
    elif status == 'active':
        query = query.filter(Member.end_date > soon)

    pagination = query.order_by(Member.created_at.desc(), Member.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )

    return jsonify({
        'members': [member_with_status(m, now) for m in pagination.items],
        'pagination': {
            'current_page': page,
            'total_pages': pagination.pages,
            'total_members': pagination.total,
            'limit': limit,
            'has_next_page': pagination.has_next,
            'has_previous_page': pagination.has_prev,
        }
    })


@members_bp.route('', methods=['POST'])
@admin_required
def create_member():
    """Create a member and their first period, without a payment."""
    data = json_body()
    name = (data.get('name') or '').strip()
    membership_type = (data.get('membership_type') or '').strip()
    if not name or not membership_type:
        return jsonify({'error': 'Required fields missing: name, membership_type'}), 400

    start_date = parse_datetime(data.get('start_date'), 'start_date')
    duration_months = parse_int(data.get('duration_months'), 'duration_months')

    member, period = memberships.enroll_member(
        name=name,
        package_name=membership_type,
        duration_months=duration_months,
        start_date=start_date,
        phone=str(data.get('phone') or '').strip() or None,
        email=(data.get('email') or '').strip() or None,
        notes=data.get('notes'),
    )

    return jsonify({
        'message': 'Member created successfully',
        'id': member.id,
        'membership_period': period.to_dict(),
    }), 201


@members_bp.route('/with-transaction', methods=['POST'])
@admin_required
def create_member_with_transaction():
    """Enroll a member and record the payment in one step."""
    data = json_body()
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Required member fields missing: name'}), 400

    package, payment_method_id = load_sale_references(data)
    amount = parse_int(data.get('amount'), 'amount', required=False)
    start_date = parse_datetime(data.get('start_date'), 'start_date', required=False)
    phone = str(data.get('phone') or '').strip() or None

    try:
        result = memberships.enroll_member_with_payment(
            name=name,
            package=package,
            payment_method_id=payment_method_id,
            amount=amount if amount is not None else package.price,
            start_date=start_date,
            reference=datetime.now(),
            phone=phone,
            email=(data.get('email') or '').strip() or None,
            notes=data.get('notes'),
        )
    except EnrollmentConflict as e:
        current_app.logger.info(f"Enrollment conflict on phone {phone}: member {e.member_id}")
        return jsonify({
            'error': 'Phone number already exists',
            'message': str(e),
            'action': 'redirect_to_members',
            'search_query': phone,
            'member_id': e.member_id,
        }), 409

    if result['is_existing_member']:
        message = 'Day Pass added to existing member successfully'
    else:
        message = 'Member created with transaction successfully'

    return jsonify({
        'message': message,
        'member': result['member'].to_dict(),
        'transaction': result['transaction'].to_dict(),
        'membership_period': result['period'].to_dict(),
        'is_existing_member': result['is_existing_member'],
    }), 201


@members_bp.route('/<int:member_id>', methods=['GET'])
@admin_required
def get_member(member_id):
    """Single member with current status."""
    member = Member.query.get_or_404(member_id, description='Member not found')
    return jsonify(member_with_status(member, datetime.now()))


@members_bp.route('/<int:member_id>', methods=['PUT'])
@admin_required
def update_member(member_id):
    """
    Update a member's profile.

    If start_date and duration_months are given, an administrative period
    (no payment) is added to the ledger; the cached dates follow the ledger.
    """
    member = Member.query.get_or_404(member_id, description='Member not found')
    data = json_body()

    start_date = parse_datetime(data.get('start_date'), 'start_date', required=False)
    duration_months = parse_int(data.get('duration_months'), 'duration_months', required=False)

    name = (data.get('name') or '').strip()
    if 'name' in data and not name:
        return jsonify({'error': 'Name cannot be empty'}), 400

    with atomically():
        if name:
            member.name = name
        if 'phone' in data:
            member.phone = str(data.get('phone') or '').strip() or None
        if 'email' in data:
            member.email = (data.get('email') or '').strip() or None
        if 'notes' in data:
            member.notes = data.get('notes') or None
        if 'is_active' in data:
            member.is_active = bool(data['is_active'])

        if start_date is not None and duration_months is not None:
            label = (data.get('membership_type') or '').strip() or member.membership_type or 'Manual'
            insert_administrative_period(member, label, duration_months, start_date)

    current_app.logger.info(f"Updated member {member.id}")
    return jsonify({'message': 'Member updated successfully', 'member': member.to_dict()})


@members_bp.route('/<int:member_id>', methods=['DELETE'])
@admin_required
def delete_member(member_id):
    """Delete a member and their periods. Transactions are kept."""
    member = Member.query.get_or_404(member_id, description='Member not found')
    memberships.delete_member(member)
    return jsonify({'message': 'Member deleted successfully'})


@members_bp.route('/<int:member_id>/history')
@admin_required
def member_history(member_id):
    """All periods (newest first) with engagement analytics."""
    member = Member.query.get_or_404(member_id, description='Member not found')
    now = datetime.now()

    periods = memberships.member_periods(member)
    analytics = analyze_engagement(periods)

    periods_with_status = []
    for period in sorted(periods, key=lambda p: p.start_date, reverse=True):
        item = period.to_dict()
        item['status'] = period_status(period, now)
        periods_with_status.append(item)

    for gap in analytics['gaps']:
        gap['start_date'] = iso(gap['start_date'])
        gap['end_date'] = iso(gap['end_date'])

    return jsonify({
        'member': {
            'id': member.id,
            'name': member.name,
            'phone': member.phone,
            'email': member.email,
            'created_at': iso(member.created_at),
        },
        'periods': periods_with_status,
        'analytics': analytics,
        'continuity': resolve_continuity(periods, member.membership_type, now),
        'summary': {
            'member_since': iso(member.created_at),
            'total_periods': analytics['total_periods'],
            'total_days_as_member': analytics['total_days'],
            'total_spent': analytics['total_spent'],
            'loyalty_score': analytics['loyalty_score'],
            'membership_type': analytics['membership_type'],
        }
    })


@members_bp.route('/search', methods=['POST'])
@admin_required
def search_members():
    """Find members by member number, exact phone, or partial name."""
    data = json_body()
    name = (data.get('name') or '').strip()
    phone = str(data.get('phone') or '').strip()
    member_number = data.get('member_number')

    if not name and not phone and not member_number:
        return jsonify({'error': 'Search term required (name, phone, or member number)'}), 400

    query = Member.query.filter(Member.is_active.is_(True))
    if member_number:
        query = query.filter(Member.id == parse_int(member_number, 'member_number'))
    elif phone:
        query = query.filter(Member.phone == phone)
    else:
        query = query.filter(Member.name.contains(name))

    now = datetime.now()
    members = [member_with_status(m, now) for m in query.order_by(Member.created_at.desc()).all()]

    return jsonify({
        'members': members,
        'count': len(members),
        'duplicates': len(members) > 1,
    })


@members_bp.route('/<int:member_id>/renew', methods=['POST'])
@admin_required
def renew_member(member_id):
    """Renew a membership, queued after any time the member still has."""
    member = Member.query.get_or_404(member_id, description='Member not found')
    data = json_body()
    package, payment_method_id = load_sale_references(data)

    custom_price = parse_int(data.get('custom_price'), 'custom_price', required=False)
    amount = parse_int(data.get('amount'), 'amount', required=False)
    if custom_price is not None:
        final_amount = custom_price
    elif amount is not None:
        final_amount = amount
    else:
        final_amount = package.price

    result = memberships.renew_membership(
        member, package, payment_method_id, final_amount, datetime.now(), notes=data.get('notes')
    )

    period = result['period']
    previous_end = result['previous_end_date']
    extension_days = None
    if previous_end is not None:
        extension_days = math.ceil((period.end_date - previous_end) / timedelta(days=1))

    return jsonify({
        'message': 'Membership renewed successfully',
        'transaction': result['transaction'].to_dict(),
        'member': member.to_dict(),
        'renewal_details': {
            'previous_end_date': iso(previous_end),
            'new_start_date': iso(period.start_date),
            'new_end_date': iso(period.end_date),
            'extension_days': extension_days,
        }
    })


@members_bp.route('/<int:member_id>/day-pass', methods=['POST'])
@admin_required
def buy_day_pass(member_id):
    """Sell a Day Pass, queued after the member's latest period."""
    member = Member.query.get_or_404(member_id, description='Member not found')
    data = json_body()
    payment_method_id = parse_int(data.get('payment_method_id'), 'payment_method_id')
    PaymentMethod.query.get_or_404(payment_method_id, description='Payment method not found')

    transaction, period = memberships.purchase_day_pass(
        member, payment_method_id, datetime.now(), notes=data.get('notes')
    )

    return jsonify({
        'message': 'Day Pass purchased successfully',
        'transaction': transaction.to_dict(),
        'membership_period': period.to_dict(),
        'member': member.to_dict(),
    }), 201
