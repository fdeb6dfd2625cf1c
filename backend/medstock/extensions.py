# Overview: Flask extension instances for the database and schema migrations.
# Bound to an application by create_app(); no engine exists until then.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()
