from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

# --- Parte 1: Relaciones (filas de organizational_hierarchy) ---

class HierarchyCreate(BaseModel):
    organization_id: int
    employee_id: int
    manager_id: Optional[int] = None

class HierarchyUpdate(BaseModel):
    manager_id: Optional[int] = None

class HierarchyRead(BaseModel):
    id: int
    organization_id: int
    employee_id: int
    manager_id: Optional[int] = None
    level: Optional[int] = None
    is_active: bool
    effective_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    class Config:
        from_attributes = True

# --- Parte 2: Vistas derivadas (nunca se guardan) ---

class HierarchyNode(BaseModel):
    id: Optional[int] = None  # id de la relación, si existe
    employee_id: int
    employee_name: str
    employee_email: str
    title: Optional[str] = None
    department: Optional[str] = None
    manager_id: Optional[int] = None
    manager_name: Optional[str] = None
    level: Optional[int] = None
    children: List["HierarchyNode"] = Field(default_factory=list)
    # Total de descendientes (directos + indirectos); solo en el árbol
    employee_count: Optional[int] = None

HierarchyNode.model_rebuild()

# --- Parte 3: Carga masiva ---

class RelationshipItem(BaseModel):
    employee_id: int
    manager_id: Optional[int] = None

class BulkHierarchyRequest(BaseModel):
    organization_id: int
    relationships: List[RelationshipItem]

class BulkHierarchyResult(BaseModel):
    created: int = 0
    updated: int = 0
    errors: List[str] = Field(default_factory=list)

# --- Parte 4: Estadísticas y validación ---

class HierarchyStats(BaseModel):
    total_employees: int = 0
    total_managers: int = 0
    total_relationships: int = 0
    max_depth: int = 0
    average_span_of_control: float = 0.0
    orphaned_employees: int = 0

class HierarchyValidation(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

class ClearHierarchyResult(BaseModel):
    organization_id: int
    deactivated: int
