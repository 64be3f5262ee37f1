# inventario/modules/gestion_instrumentos.py
import logging
from typing import Dict, List

from flask import Blueprint, jsonify, request

from ..acceso import requiere_permiso, requiere_rol, requiere_sesion, tiene_permiso
from ..config import (CAMPOS_INSTRUMENTO, CAMPOS_SOLO_ADMIN, ESTADO_POR_DEFECTO,
                      ESTADOS_MANTENIMIENTO, Rol)
from ..database import DatabaseManager, obtener_db
from ..errors import ErrorValidacion, NoEncontrado, PermisoDenegado
from ..sesion import Identidad
from ..validators import datos_peticion, es_vacio, texto_o_vacio, validar_escalares

logger = logging.getLogger(__name__)

bp = Blueprint("instrumentos", __name__, url_prefix="/api/instrumentos")


def normalizar_instrumento(instr: Dict) -> Dict:
    """Rellena los campos ausentes con valores por defecto para el front end."""
    return {
        "id": instr.get("id") or 0,
        "nombre": instr.get("nombre") or "",
        "categoria": instr.get("categoria") or "",
        "estado": instr.get("estado") or ESTADO_POR_DEFECTO,
        "ubicacion": instr.get("ubicacion") or "",
        "descripcion": instr.get("descripcion") or "",
        "marca": instr.get("marca") or "",
        "modelo": instr.get("modelo") or "",
    }


def listar_instrumentos(db: DatabaseManager) -> List[Dict]:
    return db.get_all_instrumentos()


def buscar_instrumentos(db: DatabaseManager, texto: str) -> List[Dict]:
    resultados = db.buscar_instrumentos(texto or "")
    logger.debug("Búsqueda '%s': %d instrumentos", texto, len(resultados))
    return [normalizar_instrumento(instr) for instr in resultados]


def crear_instrumento(db: DatabaseManager, usuario: Identidad, datos: Dict) -> int:
    if not tiene_permiso(usuario.tipo_usuario, "crear_instrumento"):
        raise PermisoDenegado("Solo administradores pueden crear instrumentos")
    if es_vacio(datos.get("nombre")):
        raise ErrorValidacion("El nombre del instrumento es requerido")
    validar_escalares(datos, CAMPOS_INSTRUMENTO)

    nuevo = {campo: datos.get(campo) for campo in CAMPOS_INSTRUMENTO}
    for opcional in ("descripcion", "marca", "modelo"):
        nuevo[opcional] = texto_o_vacio(nuevo[opcional])

    instrumento_id = db.insert_instrumento(nuevo)
    db.registrar_movimiento_sistema("Registro Instrumento", f"Instrumento '{nuevo['nombre']}' (ID {instrumento_id}) creado", usuario.correo)
    logger.info("Instrumento %s creado por %s", instrumento_id, usuario.correo)
    return instrumento_id


def actualizar_instrumento(db: DatabaseManager, usuario: Identidad, instrumento_id: int, datos: Dict) -> int:
    """
    Aplica las reglas por rol y guarda los campos recibidos.
    - Quien no tiene 'poner_en_mantenimiento' no puede pasar el estado a mantenimiento.
    - Quien no tiene 'editar_marca_modelo' puede enviar marca/modelo, pero no se guardan.
    Devuelve el número de filas afectadas.
    """
    validar_escalares(datos, CAMPOS_INSTRUMENTO)
    rol = usuario.tipo_usuario
    estado = datos.get("estado")
    if isinstance(estado, str) and estado in ESTADOS_MANTENIMIENTO and not tiene_permiso(rol, "poner_en_mantenimiento"):
        raise PermisoDenegado("Los asistentes no pueden poner instrumentos en mantenimiento")

    campos = {campo: datos[campo] for campo in CAMPOS_INSTRUMENTO if campo in datos}
    if not tiene_permiso(rol, "editar_marca_modelo"):
        for campo in CAMPOS_SOLO_ADMIN:
            campos.pop(campo, None)
    if "nombre" in campos and es_vacio(campos["nombre"]):
        raise ErrorValidacion("El nombre del instrumento es requerido")
    for campo in ("descripcion", "marca", "modelo"):
        if campo in campos:
            campos[campo] = texto_o_vacio(campos[campo])

    filas = db.update_instrumento(instrumento_id, campos)
    if filas == 0:
        raise NoEncontrado("Instrumento no encontrado")

    db.registrar_movimiento_sistema("Edición Instrumento", f"Instrumento ID {instrumento_id}: {', '.join(campos) or 'sin cambios'}", usuario.correo)
    logger.info("Instrumento %s actualizado por %s (%s)", instrumento_id, usuario.correo, rol)
    return filas


def eliminar_instrumento(db: DatabaseManager, usuario: Identidad, instrumento_id: int):
    if db.delete_instrumento(instrumento_id) == 0:
        raise NoEncontrado("Instrumento no encontrado")
    db.registrar_movimiento_sistema("Eliminación Instrumento", f"Instrumento ID {instrumento_id} eliminado", usuario.correo)
    logger.info("Instrumento %s eliminado por %s", instrumento_id, usuario.correo)


# --- Rutas ---
@bp.route("", methods=["GET"])
@requiere_permiso("ver_inventario")
def listar(usuario: Identidad):
    return jsonify(listar_instrumentos(obtener_db()))


@bp.route("/buscar", methods=["GET"])
@requiere_permiso("ver_inventario")
def buscar(usuario: Identidad):
    return jsonify(buscar_instrumentos(obtener_db(), request.args.get("q", "")))


@bp.route("", methods=["POST"])
@requiere_sesion
def crear(usuario: Identidad):
    instrumento_id = crear_instrumento(obtener_db(), usuario, datos_peticion())
    return jsonify({"success": True, "id": instrumento_id})


@bp.route("/<int:instrumento_id>", methods=["PUT"])
@requiere_permiso("editar_instrumento")
def actualizar(usuario: Identidad, instrumento_id: int):
    filas = actualizar_instrumento(obtener_db(), usuario, instrumento_id, datos_peticion())
    return jsonify({
        "success": True,
        "message": "Instrumento actualizado correctamente",
        "affectedRows": filas
    })


@bp.route("/<int:instrumento_id>", methods=["DELETE"])
@requiere_rol(Rol.ADMIN)
def eliminar(usuario: Identidad, instrumento_id: int):
    eliminar_instrumento(obtener_db(), usuario, instrumento_id)
    return jsonify({"success": True})
