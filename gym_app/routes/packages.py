"""
Membership package routes.

The Day Pass package is protected: it cannot be deleted, and only its price,
description and active flag may change.
"""

from flask import Blueprint, jsonify, current_app
from sqlalchemy import or_

from gym_app import db
from gym_app.models import MembershipPackage, Transaction
from gym_app.routes.auth import admin_required
from gym_app.routes.helpers import json_body, parse_int
from gym_app.services.ledger import atomically
from gym_app.services.periods import DAY_PASS_NAME, is_day_pass_duration, validate_duration

packages_bp = Blueprint('packages', __name__, url_prefix='/api/packages')


def active_day_pass_exists(exclude_id=None):
    query = MembershipPackage.query.filter(
        MembershipPackage.is_active.is_(True),
        or_(MembershipPackage.duration_months == 0, MembershipPackage.name == DAY_PASS_NAME),
    )
    if exclude_id is not None:
        query = query.filter(MembershipPackage.id != exclude_id)
    return query.first() is not None


@packages_bp.route('', methods=['GET'])
@admin_required
def list_packages():
    """Active packages, shortest first."""
    packages = MembershipPackage.query.filter_by(is_active=True).order_by(
        MembershipPackage.duration_months, MembershipPackage.name
    ).all()
    return jsonify([p.to_dict() for p in packages])


@packages_bp.route('', methods=['POST'])
@admin_required
def create_package():
    """Create a package. A Day Pass (0 months) may only be created once."""
    data = json_body()
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Required fields: name, duration_months, price'}), 400

    duration_months = validate_duration(parse_int(data.get('duration_months'), 'duration_months'))
    price = parse_int(data.get('price'), 'price')

    if is_day_pass_duration(duration_months) or name == DAY_PASS_NAME:
        if name != DAY_PASS_NAME or not is_day_pass_duration(duration_months):
            return jsonify({
                'error': f"A 0-month package must be named '{DAY_PASS_NAME}' and vice versa"
            }), 400
        if active_day_pass_exists():
            return jsonify({'error': 'An active Day Pass package already exists'}), 409

    package = MembershipPackage(
        name=name,
        duration_months=duration_months,
        price=price,
        description=(data.get('description') or '').strip() or None,
        is_active=True,
    )
    with atomically():
        db.session.add(package)

    current_app.logger.info(f"Created package {package.name} ({package.duration_months} months)")
    return jsonify({'message': 'Package created successfully', 'package': package.to_dict()}), 201


@packages_bp.route('/<int:package_id>', methods=['PUT'])
@admin_required
def update_package(package_id):
    """Update a package."""
    package = MembershipPackage.query.get_or_404(package_id, description='Package not found')
    data = json_body()
    price = parse_int(data.get('price'), 'price')

    if package.is_day_pass:
        name = (data.get('name') or '').strip()
        if name and name != package.name:
            return jsonify({
                'error': 'Day Pass name cannot be changed',
                'message': 'You can only update price, description and active status.',
            }), 403
        duration = parse_int(data.get('duration_months'), 'duration_months', required=False)
        if duration is not None and duration != package.duration_months:
            return jsonify({
                'error': 'Day Pass duration cannot be changed',
                'message': 'You can only update price, description and active status.',
            }), 403
        if data.get('is_active') and not package.is_active and active_day_pass_exists(package.id):
            return jsonify({'error': 'An active Day Pass package already exists'}), 409

        with atomically():
            package.price = price
            package.description = (data.get('description') or '').strip() or package.description
            if 'is_active' in data:
                package.is_active = bool(data['is_active'])

        return jsonify({'message': 'Day Pass package updated successfully', 'package': package.to_dict()})

    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({'error': 'Required fields: name, duration_months, price'}), 400
    duration_months = validate_duration(parse_int(data.get('duration_months'), 'duration_months'))
    if is_day_pass_duration(duration_months) or name == DAY_PASS_NAME:
        return jsonify({'error': 'A regular package cannot be turned into a Day Pass'}), 400

    with atomically():
        package.name = name
        package.duration_months = duration_months
        package.price = price
        package.description = (data.get('description') or '').strip() or None
        package.is_active = bool(data.get('is_active', True))

    current_app.logger.info(f"Updated package {package.id}")
    return jsonify({'message': 'Package updated successfully', 'package': package.to_dict()})


@packages_bp.route('/<int:package_id>', methods=['DELETE'])
@admin_required
def delete_package(package_id):
    """Delete a package, or deactivate it when it has been sold before."""
    package = MembershipPackage.query.get_or_404(package_id, description='Package not found')

    if package.is_day_pass:
        return jsonify({
            'error': 'Day Pass package cannot be deleted',
            'message': 'Day Pass is required for single-day visits. You can only modify its price or description.',
            'action': 'edit_package_instead',
        }), 403

    if Transaction.query.filter_by(package_id=package.id).count() > 0:
        with atomically():
            package.is_active = False
        return jsonify({'message': 'Package deactivated (cannot delete as it has transaction history)'})

    with atomically():
        db.session.delete(package)
    current_app.logger.info(f"Deleted package {package_id}")
    return jsonify({'message': 'Package deleted successfully'})
