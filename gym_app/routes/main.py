from datetime import datetime
from flask import Blueprint, jsonify

from gym_app.models import Member, PaymentMethod
from gym_app.routes.helpers import json_body, parse_int
from gym_app.services.continuity import STATUS_EXPIRED, period_status, resolve_continuity
from gym_app.services import memberships

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    """API landing - name and health pointer."""
    return {'app': 'Gym Membership API', 'health': '/health'}


@main_bp.route('/health')
def health():
    """Health check endpoint for the load balancer."""
    return {'status': 'healthy', 'app': 'Gym Membership API'}


# ============== FRONT DESK CHECK-IN ==============

def find_checkin_candidates(data):
    """Members matching a check-in request, by member number, phone or name."""
    member_number = data.get('member_number')
    phone = str(data.get('phone') or '').strip()
    name = (data.get('name') or '').strip()

    if member_number:
        member = Member.query.get(parse_int(member_number, 'member_number'))
        return [member] if member else []
    if phone.isdigit():
        return Member.query.filter_by(phone=phone, is_active=True).all()
    if name:
        return Member.query.filter(
            Member.name.contains(name), Member.is_active.is_(True)
        ).order_by(Member.name).all()
    return None


@main_bp.route('/api/checkin', methods=['POST'])
def checkin():
    """
    Front desk check-in.

    Looks a member up, reports whether they may enter, and optionally sells
    a Day Pass on the spot (create_day_pass + payment_method_id).
    """
    data = json_body()
    candidates = find_checkin_candidates(data)
    if candidates is None:
        return jsonify({'error': 'Member number, phone or name is required'}), 400

    if not candidates:
        return jsonify({
            'error': 'Member not found',
            'message': 'Please register as a new member',
            'can_enter': False,
        }), 404

    if len(candidates) > 1:
        now = datetime.now()
        return jsonify({
            'message': 'Multiple members found, please choose one',
            'duplicate_members': [
                {
                    'id': m.id,
                    'name': m.name,
                    'phone': m.phone,
                    **resolve_continuity(memberships.member_periods(m), m.membership_type, now),
                }
                for m in candidates
            ],
        }), 300

    member = candidates[0]
    if not member.is_active:
        return jsonify({'error': 'Member account is inactive', 'can_enter': False}), 403

    now = datetime.now()
    new_period = None
    if data.get('create_day_pass'):
        payment_method_id = parse_int(data.get('payment_method_id'), 'payment_method_id')
        PaymentMethod.query.get_or_404(payment_method_id, description='Payment method not found')
        _, new_period = memberships.purchase_day_pass(
            member, payment_method_id, now, notes='Day Pass - check-in'
        )

    periods = memberships.member_periods(member)
    continuity = resolve_continuity(periods, member.membership_type, now)

    if continuity['status'] == STATUS_EXPIRED:
        return jsonify({
            'error': 'Membership expired',
            'message': 'Membership has expired. Buy a Day Pass or renew to enter.',
            'member': {'id': member.id, 'name': member.name, **continuity},
            'can_enter': False,
            'can_buy_day_pass': True,
        }), 403

    active_periods = [p for p in periods if period_status(p, now) != STATUS_EXPIRED]

    return jsonify({
        'message': f'Welcome, {member.name}!',
        'member': {
            'id': member.id,
            'name': member.name,
            'phone': member.phone,
            'membership_type': member.membership_type,
            'end_date': member.end_date.isoformat() if member.end_date else None,
            'active_periods': len(active_periods),
            **continuity,
        },
        'can_enter': True,
        'day_pass_created': new_period is not None,
        'new_period': new_period.to_dict() if new_period else None,
    })
