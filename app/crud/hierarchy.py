# app/crud/hierarchy.py
"""
Relaciones empleado -> jefe (tabla organizational_hierarchy).

Todas las operaciones trabajan sobre las relaciones ACTIVAS de una organización.
Las vistas HierarchyNode se construyen en cada llamada y nunca se guardan.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, and_, or_, literal_column, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from app.config import settings
from app.events import event_bus, HierarchyChanged
from app.exceptions import (
    FeedbackHRException, SelfManagementError, CrossTenantReferenceError,
    HierarchyCycleError, DuplicateActiveEdgeError,
)
from app.models import HierarchyEdge, User, UserRole
from app.models.hierarchy import ACTIVE_EDGE_WHERE
from app.schemas.hierarchy import HierarchyNode, BulkHierarchyResult, RelationshipItem

logger = logging.getLogger(__name__)


# -----------------------------
# Helpers
# -----------------------------
def _to_node(user: User, edge: Optional[HierarchyEdge] = None, manager_name: Optional[str] = None) -> HierarchyNode:
    return HierarchyNode(
        id=edge.id if edge else None,
        employee_id=user.id,
        employee_name=user.name,
        employee_email=user.email,
        title=user.title,
        department=user.department,
        manager_id=edge.manager_id if edge else None,
        manager_name=manager_name,
        level=edge.level if edge else None,
    )


def _count_descendants(node: HierarchyNode) -> int:
    """Post-orden: cada nodo guarda el total de descendientes (hojas = 0)."""
    total = 0
    for child in node.children:
        total += 1 + _count_descendants(child)
    node.employee_count = total
    return total


def _manager_chain_cte(employee_id: int, depth_limit: int):
    """
    CTE recursivo: una fila por ancestro (ancestor_id, depth).
    depth=1 es el jefe directo. Se corta en depth_limit aunque existan ciclos.
    """
    chain = (
        select(
            HierarchyEdge.manager_id.label("ancestor_id"),
            literal_column("1").label("depth"),
        )
        .where(
            HierarchyEdge.employee_id == employee_id,
            HierarchyEdge.is_active == True,
            HierarchyEdge.manager_id.isnot(None),
        )
        .cte("manager_chain", recursive=True)
    )

    parent = aliased(HierarchyEdge)
    return chain.union_all(
        select(parent.manager_id, chain.c.depth + 1)
        .select_from(parent)
        .join(chain, parent.employee_id == chain.c.ancestor_id)
        .where(
            parent.is_active == True,
            parent.manager_id.isnot(None),
            chain.c.depth < depth_limit,
        )
    )


def active_manager_map(db: Session, organization_id: int) -> Dict[int, Optional[int]]:
    """employee_id -> manager_id de todas las relaciones activas de la organización."""
    rows = (
        db.query(HierarchyEdge.employee_id, HierarchyEdge.manager_id)
        .filter(
            HierarchyEdge.organization_id == organization_id,
            HierarchyEdge.is_active == True,
        )
        .all()
    )
    return {employee_id: manager_id for employee_id, manager_id in rows}


def get_edge(db: Session, edge_id: int) -> Optional[HierarchyEdge]:
    return db.query(HierarchyEdge).filter(HierarchyEdge.id == edge_id).first()


def user_belongs_to_organization(db: Session, user_id: int, organization_id: int) -> bool:
    return db.query(User.id).filter(
        User.id == user_id,
        User.organization_id == organization_id,
    ).first() is not None


def _check_relationship(db: Session, organization_id: int, employee_id: int, manager_id: Optional[int]) -> int:
    """
    Valida una relación propuesta y devuelve el nivel (profundidad) del empleado.
    Lanza SelfManagementError, CrossTenantReferenceError o HierarchyCycleError.
    """
    if manager_id is not None and manager_id == employee_id:
        raise SelfManagementError(f"El empleado {employee_id} no puede ser su propio jefe")

    if not user_belongs_to_organization(db, employee_id, organization_id):
        raise CrossTenantReferenceError(
            f"El empleado {employee_id} no pertenece a la organización {organization_id}"
        )

    if manager_id is None:
        return 0

    if not user_belongs_to_organization(db, manager_id, organization_id):
        raise CrossTenantReferenceError(
            f"El jefe {manager_id} no pertenece a la organización {organization_id}"
        )

    # Subir desde el nuevo jefe: si aparece el empleado, habría un ciclo
    manager_of = active_manager_map(db, organization_id)
    depth = 1
    current = manager_id
    visited = set()
    while current is not None and current not in visited:
        if current == employee_id:
            raise HierarchyCycleError(
                f"Asignar a {manager_id} como jefe de {employee_id} crearía un ciclo en la jerarquía"
            )
        visited.add(current)
        current = manager_of.get(current)
        if current is not None:
            depth += 1
    return depth


def _insert_for(db: Session):
    # INSERT ... ON CONFLICT existe en ambos dialectos con la misma API
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


# -----------------------------
# 1. Consultas
# -----------------------------
def get_direct_reports(db: Session, manager_id: int) -> List[HierarchyNode]:
    logger.debug(f"Consultando reportes directos de manager_id={manager_id}")
    rows = (
        db.query(HierarchyEdge, User)
        .join(User, HierarchyEdge.employee_id == User.id)
        .filter(
            HierarchyEdge.manager_id == manager_id,
            HierarchyEdge.is_active == True,
        )
        .order_by(User.name)
        .all()
    )
    return [_to_node(user, edge) for edge, user in rows]


def get_manager_chain(db: Session, employee_id: int) -> List[HierarchyNode]:
    """
    Cadena de mando de un empleado, de la raíz al jefe directo.
    Lista vacía si el empleado no tiene jefe.
    """
    logger.debug(f"Consultando cadena de mando de employee_id={employee_id}")
    depth_limit = settings.hierarchy_chain_depth_limit
    chain = _manager_chain_cte(employee_id, depth_limit)

    own_edge = aliased(HierarchyEdge)
    boss = aliased(User)
    rows = db.execute(
        select(chain.c.depth, User, own_edge, boss.name)
        .select_from(chain)
        .join(User, User.id == chain.c.ancestor_id)
        .outerjoin(own_edge, and_(own_edge.employee_id == User.id, own_edge.is_active == True))
        .outerjoin(boss, boss.id == own_edge.manager_id)
        .order_by(chain.c.depth.desc())
    ).all()

    # Truncada solo si el ancestro más alto todavía tiene jefe
    top_edge = rows[0][2] if rows else None
    if len(rows) >= depth_limit and top_edge is not None and top_edge.manager_id is not None:
        logger.warning(
            f"Cadena de mando de employee_id={employee_id} alcanzó el límite de {depth_limit} niveles "
            "(posible ciclo o cadena truncada)"
        )

    return [_to_node(user, edge, manager_name) for _, user, edge, manager_name in rows]


def get_hierarchy_tree(db: Session, organization_id: int) -> List[HierarchyNode]:
    """
    Bosque completo de la organización: una raíz por cada empleado sin jefe
    (o cuyo jefe no tiene relación activa propia).
    """
    logger.debug(f"Construyendo árbol de organization_id={organization_id}")
    rows = (
        db.query(HierarchyEdge, User)
        .join(User, HierarchyEdge.employee_id == User.id)
        .filter(
            HierarchyEdge.organization_id == organization_id,
            HierarchyEdge.is_active == True,
        )
        .order_by(User.name)
        .all()
    )

    # Primera pasada: un nodo por empleado
    nodes = {user.id: _to_node(user, edge) for edge, user in rows}

    # Segunda pasada: colgar cada nodo de su jefe
    roots = []
    for edge, user in rows:
        node = nodes[user.id]
        parent = nodes.get(edge.manager_id) if edge.manager_id is not None else None
        if parent is not None:
            parent.children.append(node)
        else:
            roots.append(node)

    for root in roots:
        _count_descendants(root)
    return roots


def search_employees(
    db: Session,
    organization_id: int,
    query: str,
    role: Optional[str] = None,
    exclude_ids: Sequence[int] = (),
) -> List[HierarchyNode]:
    logger.debug(f"Buscando empleados en organization_id={organization_id} q='{query}' role={role}")
    active_edge = aliased(HierarchyEdge)
    q = (
        db.query(User, active_edge)
        .outerjoin(active_edge, and_(
            active_edge.employee_id == User.id,
            active_edge.organization_id == organization_id,
            active_edge.is_active == True,
        ))
        .filter(
            User.organization_id == organization_id,
            User.is_active == True,
            or_(
                User.name.icontains(query, autoescape=True),
                User.email.icontains(query, autoescape=True),
            ),
        )
    )
    if role:
        q = q.filter(User.roles.any(and_(UserRole.role == role, UserRole.is_active == True)))
    if exclude_ids:
        q = q.filter(User.id.notin_(list(exclude_ids)))

    rows = q.order_by(User.name).limit(settings.hierarchy_search_limit).all()
    return [_to_node(user, edge) for user, edge in rows]


# -----------------------------
# 2. Escritura
# -----------------------------
def create_hierarchy(db: Session, organization_id: int, employee_id: int, manager_id: Optional[int]) -> HierarchyEdge:
    logger.debug(
        f"Creando relación organization_id={organization_id} employee_id={employee_id} manager_id={manager_id}"
    )
    level = _check_relationship(db, organization_id, employee_id, manager_id)

    edge = HierarchyEdge(
        organization_id=organization_id,
        employee_id=employee_id,
        manager_id=manager_id,
        level=level,
        is_active=True,
        effective_date=func.now(),
    )
    db.add(edge)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateActiveEdgeError(
            f"El empleado {employee_id} ya tiene un jefe activo en la organización {organization_id}"
        )
    db.refresh(edge)

    event_bus.publish(HierarchyChanged(organization_id, employee_id, "created"))
    return edge


def update_hierarchy(db: Session, edge_id: int, manager_id: Optional[int]) -> Optional[HierarchyEdge]:
    """Cambia el jefe de una relación existente. None si no existe."""
    logger.debug(f"Actualizando relación id={edge_id} manager_id={manager_id}")
    edge = get_edge(db, edge_id)
    if not edge:
        return None

    edge.level = _check_relationship(db, edge.organization_id, edge.employee_id, manager_id)
    edge.manager_id = manager_id
    db.commit()
    db.refresh(edge)

    event_bus.publish(HierarchyChanged(edge.organization_id, edge.employee_id, "updated"))
    return edge


def delete_hierarchy(db: Session, edge_id: int) -> Optional[HierarchyEdge]:
    """
    Borrado lógico (Soft Delete): is_active=False y end_date=NOW().
    Repetirlo sobre una relación ya inactiva no cambia nada.
    """
    logger.debug(f"Desactivando relación id={edge_id}")
    edge = get_edge(db, edge_id)
    if not edge:
        return None

    if edge.is_active:
        edge.is_active = False
        edge.end_date = func.now()
        db.commit()
        db.refresh(edge)
        event_bus.publish(HierarchyChanged(edge.organization_id, edge.employee_id, "deleted"))
    return edge


def bulk_update_hierarchy(
    db: Session,
    organization_id: int,
    relationships: Sequence[RelationshipItem],
) -> BulkHierarchyResult:
    """
    Crea o actualiza cada relación por separado (éxito parcial).
    Cada elemento es un upsert atómico sobre el índice único de relaciones activas,
    así dos cargas simultáneas no pueden dejar dos jefes activos para un empleado.
    """
    logger.debug(f"Carga masiva organization_id={organization_id} count={len(relationships)}")
    result = BulkHierarchyResult()
    insert = _insert_for(db)
    table = HierarchyEdge.__table__

    for rel in relationships:
        try:
            level = _check_relationship(db, organization_id, rel.employee_id, rel.manager_id)

            # created_at solo se escribe en el INSERT: si vuelve con nuestra marca, la fila es nueva
            stamp = datetime.now(timezone.utc)
            stmt = insert(table).values(
                organization_id=organization_id,
                employee_id=rel.employee_id,
                manager_id=rel.manager_id,
                level=level,
                is_active=True,
                created_at=stamp,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.c.organization_id, table.c.employee_id],
                index_where=ACTIVE_EDGE_WHERE,
                set_={
                    "manager_id": stmt.excluded.manager_id,
                    "level": stmt.excluded.level,
                    "updated_at": func.now(),
                },
            ).returning((table.c.created_at == stamp).label("inserted"))
            inserted = bool(db.execute(stmt).scalar_one())
            db.commit()
        except (FeedbackHRException, SQLAlchemyError) as exc:
            db.rollback()
            message = exc.message if isinstance(exc, FeedbackHRException) else str(exc)
            logger.warning(f"Carga masiva: employee_id={rel.employee_id} falló: {message}")
            result.errors.append(f"No se pudo procesar {rel.employee_id}: {message}")
            continue

        if inserted:
            result.created += 1
            event_bus.publish(HierarchyChanged(organization_id, rel.employee_id, "created"))
        else:
            result.updated += 1
            event_bus.publish(HierarchyChanged(organization_id, rel.employee_id, "updated"))

    return result


def clear_hierarchy(db: Session, organization_id: int) -> int:
    """Desactiva todas las relaciones activas de la organización. Devuelve cuántas."""
    logger.debug(f"Desactivando toda la jerarquía de organization_id={organization_id}")
    count = (
        db.query(HierarchyEdge)
        .filter(
            HierarchyEdge.organization_id == organization_id,
            HierarchyEdge.is_active == True,
        )
        .update(
            {HierarchyEdge.is_active: False, HierarchyEdge.end_date: func.now()},
            synchronize_session=False,
        )
    )
    db.commit()
    if count:
        event_bus.publish(HierarchyChanged(organization_id, None, "cleared"))
    return count
