# Overview: Flask extension instances for database and migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()


def is_backend_configured() -> bool:
    """True when a database backend is configured (DATA_BACKEND=database)."""
    from flask import current_app
    return current_app.config.get("DATA_BACKEND", "database") == "database"
