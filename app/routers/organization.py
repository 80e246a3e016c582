from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from app.database import get_db
from app.models import Organization, User, Role
from app.schemas.organization import OrganizationRead, OrganizationCreate
from app.security import get_current_user, require_roles

router = APIRouter()

@router.get("/", response_model=List[OrganizationRead])
def get_organizations(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    # Super admin ve todas; el resto solo la suya
    if current_user.is_super_admin:
        return db.query(Organization).order_by(Organization.name).all()
    return db.query(Organization).filter(Organization.id == current_user.organization_id).all()

@router.post("/", response_model=OrganizationRead, status_code=201)
def create_organization(
    org_in: OrganizationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(Role.SUPER_ADMIN.value))
):
    if db.query(Organization).filter(Organization.slug == org_in.slug).first():
        raise HTTPException(status_code=400, detail="Ya existe una organización con ese slug")

    org = Organization(**org_in.model_dump())
    db.add(org)
    db.commit()
    db.refresh(org)
    return org
