from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

# Importaciones de tu proyecto
from app.database import get_db
from app.models import User, Role
from app.schemas.users import UserRead, RoleAssignment
from app.crud import users as crud_users
from app.security import get_current_user, get_grantor_context, require_roles, validate_org_access
from app.utils.privileges import (
    validate_role_assignment, validate_admin_organizations, validate_admin_role_requirements,
    validate_target_user,
)

router = APIRouter()

# --- 1. LEER USUARIO ACTUAL (ME) ---
@router.get("/me", response_model=UserRead)
def read_user_me(current_user: User = Depends(get_current_user)):
    return current_user

# --- 2. LEER USUARIOS DE UNA ORGANIZACIÓN ---
@router.get("/", response_model=List[UserRead])
def read_users(
    organization_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    # Por defecto, la organización del usuario autenticado
    org_id = organization_id if organization_id is not None else current_user.organization_id
    validate_org_access(current_user, org_id)
    return crud_users.get_users_by_organization(db, org_id, skip=skip, limit=limit)

# --- 3. LEER POR ID ---
@router.get("/{user_id}", response_model=UserRead)
def read_user_by_id(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="Usuario no encontrado")
    validate_org_access(current_user, user.organization_id)
    return user

# --- 4. ASIGNAR ROLES ---
@router.put("/{user_id}/roles", response_model=UserRead)
def assign_user_roles(
    user_id: int,
    assignment: RoleAssignment,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(Role.ADMIN.value, Role.SUPER_ADMIN.value))
):
    """
    Reemplaza los roles del usuario.
    Nadie puede otorgar un rol igual o superior al suyo ni admin sobre
    organizaciones que no administra. Tampoco puede tocar a un usuario de su mismo nivel o superior.
    """
    # 1. Buscar usuario
    user_db = db.query(User).filter(User.id == user_id).first()
    if not user_db:
        raise HTTPException(status_code=404, detail="Usuario no encontrado")

    # 2. El usuario debe estar en una organización que el otorgante administra
    managed = set(current_user.admin_organization_ids) | {current_user.organization_id}
    if not current_user.is_super_admin and user_db.organization_id not in managed:
        raise HTTPException(status_code=403, detail="No tienes permisos sobre la organización de este usuario")

    # 3. Reglas de privilegios (lanzan excepción, el handler global responde 400/403)
    grantor = get_grantor_context(current_user)
    validate_target_user(user_db.role_names, user_db.admin_organization_ids, grantor)
    validate_admin_role_requirements(assignment.roles, assignment.admin_organization_ids)
    validate_role_assignment(assignment.roles, grantor)
    if Role.ADMIN.value in assignment.roles:
        validate_admin_organizations(assignment.admin_organization_ids, grantor)

    # 4. Guardar
    return crud_users.replace_user_roles(
        db, user_db, assignment.roles, assignment.admin_organization_ids
    )
