import os

from flask import Flask, jsonify
from gymcore.extensions import db, login_manager
from config import Config


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///'):
        os.makedirs(os.path.join(os.path.dirname(app.root_path), 'instance'), exist_ok=True)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    # User loader for Flask-Login
    from gymcore.models import Member

    @login_manager.user_loader
    def load_user(user_id):
        return Member.active().filter_by(id=int(user_id)).first()

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Authentication required'}), 401

    # Register blueprints
    from gymcore.routes import register_error_handlers
    from gymcore.routes.auth import auth_bp
    from gymcore.routes.members import members_bp
    from gymcore.routes.memberships import memberships_bp
    from gymcore.routes.sessions import sessions_bp
    from gymcore.routes.journals import journals_bp
    from gymcore.routes.notifications import notifications_bp
    from gymcore.routes.stats import stats_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(members_bp)
    app.register_blueprint(memberships_bp)
    app.register_blueprint(sessions_bp)
    app.register_blueprint(journals_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(stats_bp)
    register_error_handlers(app)

    with app.app_context():
        db.create_all()
        app.logger.info("Database tables ready")

    return app
