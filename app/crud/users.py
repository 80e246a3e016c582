from typing import List, Optional
from sqlalchemy.orm import Session
from app.models import User, UserRole, Role

def get_active_user(db: Session, user_id: int):
    """Busca un usuario activo por su id."""
    return db.query(User).filter(User.id == user_id, User.is_active == True).first()

def get_users_by_organization(db: Session, organization_id: int, skip: int = 0, limit: int = 100):
    return (
        db.query(User)
        .filter(User.organization_id == organization_id)
        .order_by(User.name)
        .offset(skip)
        .limit(limit)
        .all()
    )

def replace_user_roles(db: Session, user: User, roles: List[str], admin_organization_ids: Optional[List[int]] = None):
    """
    Desactiva los roles actuales y registra los nuevos.
    'admin' genera un registro por cada organización administrada.
    """
    for grant in user.roles:
        grant.is_active = False

    for role in dict.fromkeys(roles):
        if role == Role.ADMIN.value:
            for org_id in dict.fromkeys(admin_organization_ids or []):
                db.add(UserRole(user_id=user.id, role=role, organization_id=org_id))
        else:
            db.add(UserRole(user_id=user.id, role=role, organization_id=user.organization_id))

    db.commit()
    db.refresh(user)
    return user
