# app/models/hierarchy.py
from sqlalchemy import Column, Integer, Boolean, ForeignKey, DateTime, Index, text
from sqlalchemy.sql import func
from app.database import Base

# Predicado del índice parcial; el upsert debe usar exactamente el mismo
ACTIVE_EDGE_WHERE = text("is_active = true")

class HierarchyEdge(Base):
    """
    Relación empleado -> jefe dentro de una organización.
    Nunca se borra: se desactiva (is_active=False) y se marca end_date.
    manager_id NULL = raíz de la jerarquía.
    """
    __tablename__ = "organizational_hierarchy"
    __table_args__ = (
        # Máximo UNA relación activa por empleado y organización
        Index(
            "uq_hierarchy_active_employee",
            "organization_id", "employee_id",
            unique=True,
            sqlite_where=ACTIVE_EDGE_WHERE,
            postgresql_where=ACTIVE_EDGE_WHERE,
        ),
        {'extend_existing': True},
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Profundidad en caché, solo informativa (no se recalcula para los descendientes)
    level = Column(Integer, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    effective_date = Column(DateTime(timezone=True), server_default=func.now())
    end_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
