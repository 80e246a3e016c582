import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import engine
from app.exceptions import FeedbackHRException
from app.models import Base
from app.routers import hierarchy, users, organization

# 0. LOGGING
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# 1. CREACIÓN AUTOMÁTICA DE TABLAS
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Feedback HR",
    description="Jerarquía organizacional y administración de roles multi-organización",
    version="1.0.0"
)

# 2. CONFIGURACIÓN DE CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 3. REGISTRO DE ROUTERS (BACKEND API)
app.include_router(organization.router, prefix="/api/organizations", tags=["🏢 Organizaciones"])
app.include_router(users.router, prefix="/api/users", tags=["👤 Usuarios"])
app.include_router(hierarchy.router, prefix="/api/hierarchy", tags=["🌳 Jerarquía"])

@app.get("/")
async def root():
    return {"name": "Feedback HR", "version": "1.0.0", "status": "running"}

# --- 4. MANEJO DE ERRORES ---
@app.exception_handler(FeedbackHRException)
async def domain_exception_handler(request: Request, exc: FeedbackHRException):
    # Errores de dominio (privilegios, ciclos, etc.) -> JSON con su código HTTP
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )

@app.exception_handler(404)
async def not_found_exception_handler(request: Request, exc):
    detail = getattr(exc, "detail", None) or "Recurso no encontrado"
    return JSONResponse(status_code=404, content={"detail": detail})
