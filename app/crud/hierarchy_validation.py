# app/crud/hierarchy_validation.py
import logging
from collections import Counter
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, aliased

from app.config import settings
from app.crud.hierarchy import active_manager_map
from app.models import HierarchyEdge, User
from app.schemas.hierarchy import HierarchyStats, HierarchyValidation

logger = logging.getLogger(__name__)


def _depth(employee_id: int, manager_of: Dict[int, Optional[int]], limit: int) -> int:
    """Relaciones entre el empleado y su raíz, con tope en limit."""
    depth = 0
    current = employee_id
    while manager_of.get(current) is not None and depth < limit:
        current = manager_of[current]
        depth += 1
    return depth


def find_cycles(manager_of: Dict[int, Optional[int]]) -> List[List[int]]:
    """Ciclos en el grafo empleado -> jefe (cada empleado tiene a lo sumo un jefe)."""
    state = {}
    cycles = []
    for start in manager_of:
        path = []
        position = {}
        node = start
        while node is not None and node in manager_of and node not in state:
            position[node] = len(path)
            path.append(node)
            state[node] = "visiting"
            node = manager_of[node]

        if node is not None and state.get(node) == "visiting":
            cycles.append(path[position[node]:])

        for visited in path:
            state[visited] = "done"
    return cycles


def get_hierarchy_stats(db: Session, organization_id: int) -> HierarchyStats:
    logger.debug(f"Calculando estadísticas de organization_id={organization_id}")
    manager_of = active_manager_map(db, organization_id)
    user_ids = [
        user_id for (user_id,) in db.query(User.id).filter(
            User.organization_id == organization_id,
            User.is_active == True,
        )
    ]

    # Reportes directos por jefe
    span = Counter(manager_id for manager_id in manager_of.values() if manager_id is not None)
    total_relationships = sum(span.values())
    total_managers = len(span)

    in_hierarchy = set(manager_of) | set(span)
    limit = settings.hierarchy_chain_depth_limit

    return HierarchyStats(
        total_employees=len(user_ids),
        total_managers=total_managers,
        total_relationships=total_relationships,
        max_depth=max((_depth(emp, manager_of, limit) for emp in manager_of), default=0),
        average_span_of_control=round(total_relationships / total_managers, 1) if total_managers else 0.0,
        orphaned_employees=sum(1 for user_id in user_ids if user_id not in in_hierarchy),
    )


def validate_hierarchy(db: Session, organization_id: int) -> HierarchyValidation:
    """
    Revisión de salud de la jerarquía.
    Empleados fuera de la jerarquía y profundidad excesiva son solo advertencias.
    Ciclos y jefes de otra organización (datos escritos por fuera de la app) son errores.
    """
    logger.debug(f"Validando jerarquía de organization_id={organization_id}")
    stats = get_hierarchy_stats(db, organization_id)

    errors = []
    warnings = []

    if stats.orphaned_employees > 0:
        warnings.append(f"{stats.orphaned_employees} empleados no están en la jerarquía")

    if stats.max_depth > settings.hierarchy_depth_warning:
        warnings.append(f"La jerarquía tiene {stats.max_depth} niveles, considera aplanarla")

    for cycle in find_cycles(active_manager_map(db, organization_id)):
        errors.append(f"Ciclo en la cadena de mando: {' -> '.join(str(emp) for emp in cycle)}")

    manager = aliased(User)
    foreign_managers = (
        db.query(HierarchyEdge.employee_id, HierarchyEdge.manager_id)
        .join(manager, manager.id == HierarchyEdge.manager_id)
        .filter(
            HierarchyEdge.organization_id == organization_id,
            HierarchyEdge.is_active == True,
            manager.organization_id != organization_id,
        )
        .all()
    )
    for employee_id, manager_id in foreign_managers:
        errors.append(f"El jefe {manager_id} de {employee_id} pertenece a otra organización")

    return HierarchyValidation(is_valid=not errors, errors=errors, warnings=warnings)
