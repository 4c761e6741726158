import os
from datetime import timedelta
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

# Load environment variables (override=True ensures .env values take precedence)
load_dotenv(override=True)

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()


def create_app(test_config=None):
    """Application factory pattern."""
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///gym.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Admin sessions last one working day
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=1)
    app.config['SESSION_COOKIE_SECURE'] = os.environ.get('SESSION_COOKIE_SECURE') == '1'
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

    # Single shared admin login
    app.config['ADMIN_USERNAME'] = os.environ.get('ADMIN_USERNAME', 'admin')
    app.config['ADMIN_PASSWORD'] = os.environ.get('ADMIN_PASSWORD', 'admin123')

    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO')

    if test_config:
        app.config.update(test_config)

    # Fix for postgres:// vs postgresql:// (some providers use older postgres:// format)
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('postgres://'):
        app.config['SQLALCHEMY_DATABASE_URI'] = app.config['SQLALCHEMY_DATABASE_URI'].replace(
            'postgres://', 'postgresql://', 1
        )

    app.logger.setLevel(app.config['LOG_LEVEL'].upper())

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)

    # Register blueprints
    from gym_app.routes.main import main_bp
    from gym_app.routes.auth import auth_bp
    from gym_app.routes.members import members_bp
    from gym_app.routes.packages import packages_bp
    from gym_app.routes.transactions import transactions_bp, payment_methods_bp
    from gym_app.routes.reports import reports_bp, dashboard_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(members_bp)
    app.register_blueprint(packages_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(payment_methods_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(dashboard_bp)

    # Import models so they're known to Flask-Migrate
    from gym_app import models

    register_error_handlers(app)
    register_commands(app)

    return app


def register_error_handlers(app):
    """Render every error as JSON."""
    from gym_app.routes.helpers import BadRequest
    from gym_app.services.errors import MembershipError

    @app.errorhandler(MembershipError)
    def handle_membership_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{type(error).__name__}: {error}")
        else:
            app.logger.warning(f"{type(error).__name__}: {error}")
        return jsonify({'error': str(error)}), error.status_code

    @app.errorhandler(BadRequest)
    def handle_bad_request(error):
        return jsonify({'error': str(error)}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception(f"Unhandled error: {error}")
        return jsonify({'error': 'Internal server error'}), 500


def register_commands(app):
    """Register flask CLI commands."""
    import click

    @app.cli.command('init-db')
    @click.option('--sample', is_flag=True, help='Also create demo members.')
    def init_db_command(sample):
        """Create tables and seed payment methods and packages."""
        from gym_app.seed import seed_defaults

        db.create_all()
        result = seed_defaults(with_sample_members=sample)
        click.echo(
            f"Seeded: {result['payment_methods']} payment methods, "
            f"{result['packages']} packages, {result['members']} members"
        )
