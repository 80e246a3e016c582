from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.models import User
from app.crud.users import get_active_user
from app.crud.hierarchy import user_belongs_to_organization
from app.utils.privileges import GrantorContext

# Configuración JWT
SECRET_KEY = settings.secret_key
ALGORITHM = settings.jwt_algorithm
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes

bearer_scheme = HTTPBearer()

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

def create_user_token(user: User) -> str:
    # "sub" debe ser string en JWT
    return create_access_token({"sub": str(user.id), "org": user.organization_id})

async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Credenciales no válidas",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
        subject: str = payload.get("sub")
        if subject is None:
            raise credentials_exception
        user_id = int(subject)
    except (JWTError, ValueError):
        raise credentials_exception

    user = get_active_user(db, user_id)
    if user is None:
        raise credentials_exception

    return user

def require_roles(*allowed_roles: str):
    """Dependencia: el usuario debe tener al menos uno de los roles indicados."""
    def checker(current_user: User = Depends(get_current_user)):
        if not set(current_user.role_names) & set(allowed_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requiere uno de los roles: {', '.join(allowed_roles)}",
            )
        return current_user
    return checker

def get_grantor_context(current_user: User) -> GrantorContext:
    return GrantorContext(
        id=current_user.id,
        roles=current_user.role_names,
        is_super_admin=current_user.is_super_admin,
        admin_organization_ids=current_user.admin_organization_ids,
    )

def validate_org_access(current_user: User, organization_id: int) -> None:
    """Super admin entra a cualquier organización; el resto solo a la suya."""
    if current_user.is_super_admin:
        return
    if current_user.organization_id != organization_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acceso denegado: no puedes consultar la jerarquía de otra organización",
        )

def validate_user_in_caller_org(db: Session, user_id: int, current_user: User) -> None:
    if current_user.is_super_admin:
        return
    if not user_belongs_to_organization(db, user_id, current_user.organization_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Acceso denegado: el usuario no pertenece a tu organización",
        )
