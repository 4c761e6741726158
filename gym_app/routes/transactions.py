"""
Transaction and payment method routes.
"""

from datetime import datetime
from flask import Blueprint, request, jsonify

from gym_app.models import Member, MembershipPackage, PaymentMethod, Transaction
from gym_app.routes.auth import admin_required
from gym_app.routes.helpers import json_body, parse_datetime, parse_int
from gym_app.services import memberships

transactions_bp = Blueprint('transactions', __name__, url_prefix='/api/transactions')
payment_methods_bp = Blueprint('payment_methods', __name__, url_prefix='/api/payment-methods')


@payment_methods_bp.route('', methods=['GET'])
@admin_required
def list_payment_methods():
    """Active payment methods, alphabetical."""
    methods = PaymentMethod.query.filter_by(is_active=True).order_by(PaymentMethod.name).all()
    return jsonify([m.to_dict() for m in methods])


@transactions_bp.route('', methods=['GET'])
@admin_required
def list_transactions():
    """
    Paginated transactions, newest first.

    Query params:
        page, limit: Pagination (defaults 1, 50)
        member_id: Only this member's transactions
    """
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', 50, type=int)
    member_id = request.args.get('member_id', type=int)

    query = Transaction.query
    if member_id:
        query = query.filter_by(member_id=member_id)

    pagination = query.order_by(Transaction.transaction_date.desc(), Transaction.id.desc()).paginate(
        page=page, per_page=limit, error_out=False
    )

    return jsonify({
        'transactions': [t.to_dict() for t in pagination.items],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': pagination.total,
            'pages': pagination.pages,
        }
    })


@transactions_bp.route('', methods=['POST'])
@admin_required
def create_transaction():
    """Record a sale for an existing member and add its membership period."""
    data = json_body()
    member_id = parse_int(data.get('member_id'), 'member_id')
    package_id = parse_int(data.get('package_id'), 'package_id')
    payment_method_id = parse_int(data.get('payment_method_id'), 'payment_method_id')
    amount = parse_int(data.get('amount'), 'amount')
    transaction_date = parse_datetime(data.get('transaction_date'), 'transaction_date', required=False)

    package = MembershipPackage.query.get_or_404(package_id, description='Package not found')
    member = Member.query.get_or_404(member_id, description='Member not found')
    PaymentMethod.query.get_or_404(payment_method_id, description='Payment method not found')

    transaction, period = memberships.record_sale(
        member, package, payment_method_id, amount,
        transaction_date or datetime.now(),
        notes=data.get('notes'),
    )

    return jsonify({
        'message': 'Transaction recorded successfully',
        'transaction': transaction.to_dict(),
        'membership_period': period.to_dict(),
    }), 201
