# inventario/modules/bitacora.py
from flask import Blueprint, jsonify, request

from ..acceso import requiere_permiso
from ..database import obtener_db
from ..errors import ErrorValidacion
from ..sesion import Identidad

bp = Blueprint("bitacora", __name__)

TAMANO_PAGINA = 15
TAMANO_PAGINA_MAXIMO = 100


def _entero_positivo(nombre: str, default: int) -> int:
    valor = request.args.get(nombre)
    if valor is None:
        return default
    try:
        numero = int(valor)
    except ValueError:
        raise ErrorValidacion(f"'{nombre}' debe ser un número entero")
    if numero < 1:
        raise ErrorValidacion(f"'{nombre}' debe ser mayor que cero")
    return numero


@bp.route("/api/log-sistema", methods=["GET"])
@requiere_permiso("ver_bitacora")
def log_sistema(usuario: Identidad):
    """Log de actividad del sistema con paginación, lo más reciente primero."""
    page = _entero_positivo("page", 1)
    page_size = min(_entero_positivo("page_size", TAMANO_PAGINA), TAMANO_PAGINA_MAXIMO)
    registros, total_pages = obtener_db().get_log_sistema_paginated(page, page_size)
    return jsonify({"registros": registros, "page": page, "total_pages": total_pages})
