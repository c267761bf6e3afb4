# Overview: Flask extension instances for database, migrations and error tracking.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .error_tracker import ErrorTracker

db = SQLAlchemy()
migrate = Migrate()
error_tracker = ErrorTracker()
