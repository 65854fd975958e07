# Overview: Flask extension instances for database, migrations, entity stores, and messaging.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .stores import EntityStores
from .messaging import Messaging

db = SQLAlchemy()
migrate = Migrate()
stores = EntityStores()
messaging = Messaging()
