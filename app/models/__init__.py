# app/models/__init__.py

# 1. Base de datos (Origen de la clase declarativa)
from app.database import Base

# 2. Organizaciones (tenants)
from .organization import Organization

# 3. Usuarios y Roles
from .users import User, UserRole, Role

# 4. Jerarquía organizacional (empleado -> jefe)
from .hierarchy import HierarchyEdge
