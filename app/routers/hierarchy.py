from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.models import User, Role
from app.schemas.hierarchy import (
    HierarchyCreate, HierarchyUpdate, HierarchyRead, HierarchyNode,
    BulkHierarchyRequest, BulkHierarchyResult, HierarchyStats,
    HierarchyValidation, ClearHierarchyResult,
)
from app.crud import hierarchy as crud_hierarchy
from app.crud.hierarchy_validation import get_hierarchy_stats, validate_hierarchy
from app.security import (
    get_current_user, require_roles, validate_org_access, validate_user_in_caller_org,
)

router = APIRouter()

# Escritura: solo RH y administradores
hierarchy_editor = require_roles(Role.HR.value, Role.ADMIN.value, Role.SUPER_ADMIN.value)


# --- 1. CONSULTAS ---
@router.get("/tree/{organization_id}", response_model=List[HierarchyNode])
def read_hierarchy_tree(
    organization_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    validate_org_access(current_user, organization_id)
    return crud_hierarchy.get_hierarchy_tree(db, organization_id)

@router.get("/direct-reports/{manager_id}", response_model=List[HierarchyNode])
def read_direct_reports(
    manager_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    validate_user_in_caller_org(db, manager_id, current_user)
    return crud_hierarchy.get_direct_reports(db, manager_id)

@router.get("/manager-chain/{employee_id}", response_model=List[HierarchyNode])
def read_manager_chain(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    validate_user_in_caller_org(db, employee_id, current_user)
    return crud_hierarchy.get_manager_chain(db, employee_id)

@router.get("/stats/{organization_id}", response_model=HierarchyStats)
def read_hierarchy_stats(
    organization_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    validate_org_access(current_user, organization_id)
    return get_hierarchy_stats(db, organization_id)

@router.get("/validate/{organization_id}", response_model=HierarchyValidation)
def read_hierarchy_validation(
    organization_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    validate_org_access(current_user, organization_id)
    return validate_hierarchy(db, organization_id)

@router.get("/search-employees", response_model=List[HierarchyNode])
def search_employees(
    organization_id: int,
    q: str = "",
    role: Optional[str] = None,
    exclude: Optional[str] = Query(None, description="IDs separados por coma"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    validate_org_access(current_user, organization_id)

    exclude_ids = []
    if exclude:
        try:
            exclude_ids = [int(value) for value in exclude.split(",") if value.strip()]
        except ValueError:
            raise HTTPException(status_code=400, detail="El parámetro exclude debe ser una lista de IDs")

    return crud_hierarchy.search_employees(db, organization_id, q, role, exclude_ids)


# --- 2. ESCRITURA ---
@router.post("/", response_model=HierarchyRead, status_code=status.HTTP_201_CREATED)
def create_hierarchy(
    hierarchy_in: HierarchyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(hierarchy_editor),
):
    validate_org_access(current_user, hierarchy_in.organization_id)
    return crud_hierarchy.create_hierarchy(
        db, hierarchy_in.organization_id, hierarchy_in.employee_id, hierarchy_in.manager_id
    )

@router.post("/bulk", response_model=BulkHierarchyResult)
def bulk_update_hierarchy(
    bulk_in: BulkHierarchyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(hierarchy_editor),
):
    validate_org_access(current_user, bulk_in.organization_id)
    return crud_hierarchy.bulk_update_hierarchy(db, bulk_in.organization_id, bulk_in.relationships)

@router.put("/{edge_id}", response_model=HierarchyRead)
def update_hierarchy(
    edge_id: int,
    hierarchy_in: HierarchyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(hierarchy_editor),
):
    edge = crud_hierarchy.get_edge(db, edge_id)
    if not edge:
        raise HTTPException(status_code=404, detail="Relación no encontrada")
    validate_org_access(current_user, edge.organization_id)

    return crud_hierarchy.update_hierarchy(db, edge_id, hierarchy_in.manager_id)

@router.delete("/clear/{organization_id}", response_model=ClearHierarchyResult)
def clear_hierarchy(
    organization_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(hierarchy_editor),
):
    validate_org_access(current_user, organization_id)
    deactivated = crud_hierarchy.clear_hierarchy(db, organization_id)
    return {"organization_id": organization_id, "deactivated": deactivated}

@router.delete("/{edge_id}", response_model=HierarchyRead)
def delete_hierarchy(
    edge_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(hierarchy_editor),
):
    """
    Borrado lógico (Soft Delete). Repetirlo no es error:
    devuelve la relación ya desactivada.
    """
    edge = crud_hierarchy.get_edge(db, edge_id)
    if not edge:
        raise HTTPException(status_code=404, detail="Relación no encontrada")
    validate_org_access(current_user, edge.organization_id)

    return crud_hierarchy.delete_hierarchy(db, edge_id)
