from flask import Flask, jsonify
from .config import Config
from .extensions import db, login_manager, migrate


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    from .routes import auth_bp, users_bp
    from .routes.listings import listings_bp
    from .routes.transactions import transactions_bp
    from .routes.revenue import revenue_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(listings_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(revenue_bp)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"ok": False, "error": "Unauthorized"}), 401

    # Register error handlers
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({"ok": False, "error": "Not found"}), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({"ok": False, "error": "Internal server error"}), 500

    with app.app_context():
        from . import models  # noqa: F401  register tables
        db.create_all()

    return app
