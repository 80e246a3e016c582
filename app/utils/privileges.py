# app/utils/privileges.py
"""
Validación centralizada de privilegios para evitar escalamiento.

REGLA: nadie puede asignar un rol de nivel igual o superior al suyo.
Orden por defecto (de menor a mayor): employee < manager < admin < super_admin
"""
from typing import Dict, Iterable, List, Optional
from pydantic import BaseModel, Field

from app.config import settings
from app.exceptions import PrivilegeEscalationError, AdminRoleRequirementError


class GrantorContext(BaseModel):
    """Quién está otorgando el rol (el usuario autenticado)."""
    id: int
    roles: List[str] = Field(default_factory=list)
    is_super_admin: bool = False
    admin_organization_ids: List[int] = Field(default_factory=list)


class RoleHierarchy:
    """
    Orden total de roles conocidos. Los roles que no aparecen aquí
    (roles personalizados) no tienen nivel y siempre se permiten.
    """

    def __init__(self, levels: Dict[str, int], default_role: str = "employee"):
        if default_role not in levels:
            raise ValueError(f"El rol por defecto '{default_role}' no está en la jerarquía")
        self.levels = dict(levels)
        self.default_role = default_role

    @property
    def default_level(self) -> int:
        return self.levels[self.default_role]

    def level_of(self, role: str) -> Optional[int]:
        return self.levels.get(role)

    def highest_level(self, roles: Iterable[str]) -> int:
        # Sin roles (o solo desconocidos) = nivel del rol por defecto
        known = [self.levels.get(role, self.default_level) for role in roles or []]
        return max(known) if known else self.default_level

    def label(self, level: int) -> str:
        for name, value in self.levels.items():
            if value == level:
                return name.upper()
        return str(level)


DEFAULT_ROLE_HIERARCHY = RoleHierarchy(settings.role_levels)


def validate_role_assignment(
    requested_roles: List[str],
    grantor: Optional[GrantorContext],
    role_hierarchy: RoleHierarchy = DEFAULT_ROLE_HIERARCHY,
) -> None:
    """Lanza PrivilegeEscalationError si algún rol pedido es >= al nivel del otorgante."""
    if grantor is None:
        raise PrivilegeEscalationError("SEGURIDAD: se requiere el contexto del otorgante para asignar roles")

    grantor_level = role_hierarchy.highest_level(grantor.roles)

    for requested_role in requested_roles:
        requested_level = role_hierarchy.level_of(requested_role)
        if requested_level is None:
            continue

        if requested_level >= grantor_level:
            raise PrivilegeEscalationError(
                f"Escalamiento de privilegios denegado: no puedes asignar el rol '{requested_role}'. "
                f"Tu rol más alto: {role_hierarchy.label(grantor_level)} (nivel {grantor_level}), "
                f"rol solicitado: {role_hierarchy.label(requested_level)} (nivel {requested_level})"
            )


def validate_admin_organizations(
    requested_org_ids: List[int],
    grantor: Optional[GrantorContext],
) -> None:
    """Solo se puede dar admin sobre organizaciones que el otorgante administra."""
    if grantor is None:
        raise PrivilegeEscalationError("SEGURIDAD: se requiere el contexto del otorgante para asignar organizaciones")

    if grantor.is_super_admin:
        return

    unauthorized = [org_id for org_id in requested_org_ids if org_id not in grantor.admin_organization_ids]
    if unauthorized:
        raise PrivilegeEscalationError(
            "Escalamiento de privilegios denegado: solo puedes dar acceso admin a organizaciones que administras. "
            f"Organizaciones no autorizadas: {', '.join(str(org_id) for org_id in unauthorized)}"
        )


def validate_admin_role_requirements(
    roles: List[str],
    organization_ids: Optional[List[int]],
) -> None:
    if "admin" in roles and not organization_ids:
        raise AdminRoleRequirementError("El rol admin requiere al menos una organización asignada")


def validate_target_user(
    target_roles: List[str],
    target_admin_organization_ids: List[int],
    grantor: Optional[GrantorContext],
    role_hierarchy: RoleHierarchy = DEFAULT_ROLE_HIERARCHY,
) -> None:
    """
    Reemplazar los roles de alguien también le quita los actuales:
    solo se permite sobre usuarios de nivel inferior al del otorgante y
    sin grants admin en organizaciones que el otorgante no administra.
    """
    if grantor is None:
        raise PrivilegeEscalationError("SEGURIDAD: se requiere el contexto del otorgante para modificar roles")

    grantor_level = role_hierarchy.highest_level(grantor.roles)
    target_level = role_hierarchy.highest_level(target_roles)
    if target_level >= grantor_level:
        raise PrivilegeEscalationError(
            "Escalamiento de privilegios denegado: no puedes modificar los roles de este usuario. "
            f"Tu rol más alto: {role_hierarchy.label(grantor_level)} (nivel {grantor_level}), "
            f"rol del usuario: {role_hierarchy.label(target_level)} (nivel {target_level})"
        )

    if grantor.is_super_admin:
        return

    foreign = [org_id for org_id in target_admin_organization_ids if org_id not in grantor.admin_organization_ids]
    if foreign:
        raise PrivilegeEscalationError(
            "Escalamiento de privilegios denegado: el usuario administra organizaciones que tú no administras. "
            f"Organizaciones no autorizadas: {', '.join(str(org_id) for org_id in foreign)}"
        )
