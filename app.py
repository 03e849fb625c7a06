import logging

import click
from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy import inspect
from werkzeug.exceptions import HTTPException

from config import Config
from routes import health_bp, auth_bp, admin_bp, reservations_bp

from models import db
from models.user import User, Role
from security.rbac import ADMIN_ROLE
from services.errors import DomainError
from services.post_processing import jobs
from utils.seed import seed_roles, seed_demo_schedule
from utils.auth_context import load_current_user

logger = logging.getLogger(__name__)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(reservations_bp)

    # Database init (accounts + scheduling binds)
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Background workers for appointment sheets
    jobs.init_app(app)

    # Seed default roles at startup (safe & idempotent)
    with app.app_context():
        if app.config.get("CREATE_TABLES_ON_STARTUP"):
            db.create_all()
        # before the first `flask db upgrade` there is nothing to seed
        if inspect(db.engine).has_table("roles"):
            seed_roles()

    @app.before_request
    def _load_user():
        load_current_user()

    register_error_handlers(app)

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app


def register_error_handlers(app):
    @app.errorhandler(DomainError)
    def _domain_error(exc: DomainError):
        if exc.status_code >= 500:
            logger.error("Domain error: %s", exc.message)
        return jsonify(error=exc.message), exc.status_code

    @app.errorhandler(Exception)
    def _unhandled(exc):
        if isinstance(exc, HTTPException):
            return jsonify(error=exc.description), exc.code
        db.session.rollback()
        logger.exception("Unhandled exception: %s", exc)
        return jsonify(error="Internal server error"), 500

#-------------------------

def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            print("User not found")
            return

        admin_role = Role.query.filter_by(name=ADMIN_ROLE).first()
        if not admin_role:
            admin_role = Role(name=ADMIN_ROLE)
            db.session.add(admin_role)
            db.session.commit()

        if admin_role not in user.roles:
            user.roles.append(admin_role)
            db.session.commit()

        print(f"{user.email} promoted to ADMIN")

    @app.cli.command("seed-demo")
    @click.option("--days", default=3, show_default=True, help="Days of slots to create.")
    @click.option("--capacity", default=2, show_default=True, help="Capacity per slot.")
    def seed_demo(days, capacity):
        """Insert demo barbers and hourly slots."""
        created = seed_demo_schedule(days=days, capacity=capacity)
        print(f"{created} slots created")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
