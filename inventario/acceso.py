# inventario/acceso.py
import logging
from functools import wraps
from typing import Callable, Iterable, Union

from flask import redirect, request

from .config import PAGINA_LOGIN, ROLES_PERMISOS, Rol
from .sesion import identidad_actual

logger = logging.getLogger(__name__)

MENSAJE_ACCESO_DENEGADO = "Acceso denegado"


# --- CONTROL DE ACCESO BASADO EN ROLES (RBAC) ---
def tiene_permiso(rol: str, permiso: str) -> bool:
    return permiso in ROLES_PERMISOS.get(rol, set())


def _denegar(usuario, motivo: str):
    logger.warning("Acceso denegado a %s %s para %s (%s): %s",
                   request.method, request.path, usuario.correo, usuario.tipo_usuario, motivo)
    return MENSAJE_ACCESO_DENEGADO, 403, {"Content-Type": "text/plain; charset=utf-8"}


def requiere_sesion(func: Callable) -> Callable:
    """Redirige al login si no hay sesión; si la hay, pasa la identidad como primer argumento."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        usuario = identidad_actual()
        if usuario is None:
            return redirect(PAGINA_LOGIN)
        return func(usuario, *args, **kwargs)
    return wrapper


def requiere_rol(roles: Union[Rol, Iterable[Rol]]) -> Callable:
    permitidos = {roles} if isinstance(roles, str) else set(roles)

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            usuario = identidad_actual()
            if usuario is None:
                return redirect(PAGINA_LOGIN)
            if usuario.tipo_usuario not in permitidos:
                return _denegar(usuario, "rol no permitido")
            return func(usuario, *args, **kwargs)
        return wrapper
    return decorator


def requiere_permiso(permiso: str) -> Callable:
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            usuario = identidad_actual()
            if usuario is None:
                return redirect(PAGINA_LOGIN)
            if not tiene_permiso(usuario.tipo_usuario, permiso):
                return _denegar(usuario, f"sin el permiso '{permiso}'")
            return func(usuario, *args, **kwargs)
        return wrapper
    return decorator
