from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional

# --- DEFINICIÓN DE CLASES (Sin self-imports) ---

class UserBase(BaseModel):
    name: str
    email: EmailStr
    title: Optional[str] = None
    department: Optional[str] = None
    is_active: bool = True

class UserRead(UserBase):
    id: int
    organization_id: int
    # Se leen de las propiedades del modelo User
    role_names: List[str] = Field(default_factory=list)
    admin_organization_ids: List[int] = Field(default_factory=list)

    class Config:
        from_attributes = True

class RoleAssignment(BaseModel):
    roles: List[str]
    # Obligatorio si se pide 'admin': organizaciones que administrará
    admin_organization_ids: Optional[List[int]] = None
