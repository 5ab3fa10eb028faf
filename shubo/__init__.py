from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from shubo.config import Config

db = SQLAlchemy()
migrate = Migrate()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Register blueprints
    from shubo.routes.main import bp as main_bp
    from shubo.routes.batches import bp as batches_bp
    from shubo.routes.tanks import bp as tanks_bp
    from shubo.routes.imports import bp as imports_bp
    from shubo.routes.settings import bp as settings_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(batches_bp, url_prefix="/batches")
    app.register_blueprint(tanks_bp, url_prefix="/tanks")
    app.register_blueprint(imports_bp, url_prefix="/imports")
    app.register_blueprint(settings_bp, url_prefix="/settings")

    # Application state, change notifications and the record writer
    from shubo.services.state import AppState
    from shubo.services.notify import RemoteChangeNotifier, WATCHED_TABLES
    from shubo.services import scheduler as scheduler_service
    from shubo.services.daily_records import init_writer

    state = AppState(app)
    notifier = RemoteChangeNotifier()
    for table in WATCHED_TABLES:
        notifier.on_remote_change(table, lambda table: state.invalidate())

    app.extensions["shubo_state"] = state
    app.extensions["shubo_notifier"] = notifier

    scheduler_service.init_app(app)
    init_writer(app)

    @app.before_request
    def _refresh_state():
        state.ensure_loaded()

    return app
