import enum
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

class Role(str, enum.Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"
    HR = "hr"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

class User(Base):
    __tablename__ = "users"
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    title = Column(String, nullable=True)
    department = Column(String, nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    organization = relationship("Organization", back_populates="users")
    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")

    @property
    def role_names(self):
        """Nombres de los roles activos (sin duplicados, en orden de asignación)."""
        names = []
        for grant in self.roles:
            if grant.is_active and grant.role not in names:
                names.append(grant.role)
        return names

    @property
    def admin_organization_ids(self):
        """Organizaciones que este usuario administra (grants 'admin' activos)."""
        return [
            grant.organization_id for grant in self.roles
            if grant.is_active and grant.role == Role.ADMIN.value and grant.organization_id is not None
        ]

    @property
    def is_super_admin(self):
        return Role.SUPER_ADMIN.value in self.role_names


class UserRole(Base):
    """
    Asignación de un rol a un usuario.
    El rol es texto libre: además de los roles conocidos se permiten roles personalizados.
    organization_id solo aplica para 'admin' (organización administrada).
    """
    __tablename__ = "user_roles"
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String, nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True)
    is_active = Column(Boolean, default=True)
    granted_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="roles")
