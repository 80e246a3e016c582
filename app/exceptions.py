# app/exceptions.py
"""Excepciones de dominio de Feedback HR"""


class FeedbackHRException(Exception):
    """Base de todas las excepciones de la aplicación"""

    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(FeedbackHRException):
    def __init__(self, message: str):
        super().__init__(message, "VALIDATION_ERROR", 400)


class ForbiddenError(FeedbackHRException):
    def __init__(self, message: str):
        super().__init__(message, "FORBIDDEN", 403)


class ConflictError(FeedbackHRException):
    def __init__(self, message: str):
        super().__init__(message, "CONFLICT", 409)


# --- Privilegios ---

class PrivilegeEscalationError(ForbiddenError):
    """El otorgante intenta conceder más de lo que tiene"""


class AdminRoleRequirementError(ValidationError):
    """El rol admin requiere al menos una organización"""


# --- Jerarquía ---

class SelfManagementError(ValidationError):
    """Un empleado no puede ser su propio jefe"""


class CrossTenantReferenceError(ValidationError):
    """Empleado o jefe fuera de la organización"""


class HierarchyCycleError(ConflictError):
    """La relación crearía un ciclo en la cadena de mando"""


class DuplicateActiveEdgeError(ConflictError):
    """El empleado ya tiene un jefe activo"""
