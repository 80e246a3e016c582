# app/routers/__init__.py

# Esto expone los módulos para que "from app.routers import users" funcione
from . import organization
from . import users
from . import hierarchy
