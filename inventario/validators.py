# inventario/validators.py
from typing import Any, Dict, Iterable

from flask import request

from .errors import ErrorValidacion


def es_vacio(valor: Any) -> bool:
    """None, cadenas vacías o con solo espacios."""
    if valor is None:
        return True
    return isinstance(valor, str) and not valor.strip()


def validar_requeridos(datos: Dict, campos: Iterable[str], mensaje: str = None):
    campos = tuple(campos)
    faltantes = [campo for campo in campos if es_vacio(datos.get(campo))]
    if faltantes:
        raise ErrorValidacion(mensaje)
    # Un JSON puede traer números, listas u objetos donde se espera texto
    no_texto = [campo for campo in campos if not isinstance(datos.get(campo), str)]
    if no_texto:
        raise ErrorValidacion(f"El campo '{no_texto[0]}' debe ser texto")


def validar_escalares(datos: Dict, campos: Iterable[str]):
    """Rechaza listas u objetos JSON en columnas que guardan un solo valor."""
    for campo in campos:
        if not isinstance(datos.get(campo), (str, int, float, type(None))):
            raise ErrorValidacion(f"El campo '{campo}' debe ser texto")


def texto_o_vacio(valor: Any) -> str:
    return "" if valor is None else str(valor)


def formatear_celda(valor: Any):
    """Valor de una celda de Excel listo para guardarse como texto (None si está vacía)."""
    if valor is None:
        return None
    if isinstance(valor, float) and valor.is_integer():
        valor = int(valor)
    texto = str(valor).strip()
    return texto or None


def datos_peticion() -> Dict:
    """Cuerpo de la petición como diccionario, sea JSON o formulario."""
    datos = request.get_json(silent=True)
    if datos is None:
        return request.form.to_dict()
    if not isinstance(datos, dict):
        raise ErrorValidacion("El cuerpo debe ser un objeto JSON")
    return datos
