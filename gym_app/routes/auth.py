"""
Admin authentication - one shared username/password from the app config.
"""

import secrets
from functools import wraps
from flask import Blueprint, request, session, current_app, jsonify

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def admin_required(f):
    """Decorator to require admin authentication."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not session.get('admin_authenticated'):
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


@auth_bp.route('/login', methods=['POST'])
def login():
    """Admin login."""
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password') or ''

    if not username or not password:
        return jsonify({'error': 'Username and password required'}), 400

    valid_username = secrets.compare_digest(username, current_app.config['ADMIN_USERNAME'])
    valid_password = secrets.compare_digest(password, current_app.config['ADMIN_PASSWORD'])
    if not (valid_username and valid_password):
        current_app.logger.warning(f"Failed admin login for '{username}'")
        return jsonify({'error': 'Invalid credentials'}), 401

    session['admin_authenticated'] = True
    session['admin_username'] = username
    session.permanent = True
    return jsonify({'message': 'Login successful', 'user': {'username': username}})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Log out admin."""
    session.pop('admin_authenticated', None)
    session.pop('admin_username', None)
    return jsonify({'message': 'Logged out successfully'})
