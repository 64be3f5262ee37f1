# inventario/errors.py
from typing import Optional


class ErrorInventario(Exception):
    """Error de dominio con el código HTTP con el que se responde."""
    codigo_http = 400
    mensaje_por_defecto = "Solicitud inválida"

    def __init__(self, mensaje: Optional[str] = None):
        self.mensaje = mensaje or self.mensaje_por_defecto
        super().__init__(self.mensaje)

    def to_dict(self) -> dict:
        return {"error": self.mensaje}


class ErrorValidacion(ErrorInventario):
    mensaje_por_defecto = "Todos los campos son requeridos"


class CodigoInvalido(ErrorInventario):
    mensaje_por_defecto = "Código de acceso inválido"


class CredencialesInvalidas(ErrorInventario):
    codigo_http = 401
    mensaje_por_defecto = "Correo o contraseña incorrectos"


class CorreoDuplicado(ErrorInventario):
    mensaje_por_defecto = "El correo ya está registrado"


class PermisoDenegado(ErrorInventario):
    codigo_http = 403
    mensaje_por_defecto = "Acceso denegado"


class AutoEliminacionProhibida(ErrorInventario):
    mensaje_por_defecto = "No puedes eliminar tu propio usuario"


class CambioRolPropioProhibido(ErrorInventario):
    mensaje_por_defecto = "No puedes cambiar tu propio rol"


class NoEncontrado(ErrorInventario):
    codigo_http = 404
    mensaje_por_defecto = "Registro no encontrado"


class ErrorBaseDatos(ErrorInventario):
    codigo_http = 500
    mensaje_por_defecto = "Error en la base de datos"

    def __init__(self, mensaje: Optional[str] = None, detalles: Optional[str] = None):
        super().__init__(mensaje)
        self.detalles = detalles

    def to_dict(self) -> dict:
        datos = super().to_dict()
        if self.detalles:
            datos["details"] = self.detalles
        return datos


class ErrorIntegridad(ErrorBaseDatos):
    """Violación de una restricción (UNIQUE, NOT NULL)."""
