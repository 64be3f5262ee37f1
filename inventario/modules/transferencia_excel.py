# inventario/modules/transferencia_excel.py
import logging
import os
import tempfile
import zipfile
from io import BytesIO
from typing import Dict, List

from flask import Blueprint, jsonify, redirect, request, send_file
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from ..acceso import requiere_permiso
from ..database import DatabaseManager, obtener_db
from ..errors import ErrorBaseDatos, ErrorValidacion
from ..sesion import Identidad
from ..validators import formatear_celda

logger = logging.getLogger(__name__)

bp = Blueprint("excel", __name__)

NOMBRE_HOJA = "Instrumentos"
NOMBRE_ARCHIVO = "instrumentos.xlsx"
MIMETYPE_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Encabezado de exportación -> columna de la tabla
COLUMNAS_EXPORTACION = [
    ("ID", "id"), ("Nombre", "nombre"), ("Categoria", "categoria"), ("Estado", "estado"),
    ("Ubicacion", "ubicacion"), ("Descripcion", "descripcion"), ("Marca", "marca"), ("Modelo", "modelo"),
]
# La importación solo reconoce estos encabezados (coincidencia exacta)
COLUMNAS_IMPORTACION = {"Nombre": "nombre", "Categoria": "categoria", "Estado": "estado", "Ubicacion": "ubicacion"}


# --- Exportación ---
def generar_libro_instrumentos(instrumentos: List[Dict]) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = NOMBRE_HOJA

    header_fill = PatternFill(start_color="4F81BD", end_color="4F81BD", fill_type="solid")
    header_font = Font(color="FFFFFF", bold=True)
    border = Border(left=Side(style='thin'), right=Side(style='thin'), top=Side(style='thin'), bottom=Side(style='thin'))

    for col_num, (encabezado, _columna) in enumerate(COLUMNAS_EXPORTACION, 1):
        celda = ws.cell(row=1, column=col_num, value=encabezado)
        celda.fill = header_fill
        celda.font = header_font
        celda.alignment = Alignment(horizontal='center')
        celda.border = border
        ws.column_dimensions[get_column_letter(col_num)].width = 10 if col_num == 1 else 25

    for instrumento in instrumentos:
        ws.append([instrumento.get(columna) for _encabezado, columna in COLUMNAS_EXPORTACION])

    return wb


def exportar_instrumentos(db: DatabaseManager) -> BytesIO:
    """Genera el Excel en un archivo temporal y lo devuelve en memoria; el temporal se borra siempre."""
    wb = generar_libro_instrumentos(db.get_all_instrumentos())
    with tempfile.NamedTemporaryFile(delete=False, suffix=".xlsx") as tmp:
        ruta_temporal = tmp.name
    try:
        wb.save(ruta_temporal)
        with open(ruta_temporal, "rb") as archivo:
            return BytesIO(archivo.read())
    finally:
        os.remove(ruta_temporal)


# --- Importación ---
def leer_filas_excel(archivo) -> List[Dict]:
    """Lee la primera hoja y devuelve una lista de filas {columna: valor} con los encabezados reconocidos."""
    try:
        wb = load_workbook(archivo, read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, OSError, KeyError, ValueError) as e:
        raise ErrorValidacion("El archivo no es un Excel válido") from e

    try:
        ws = wb.worksheets[0]
        filas = ws.iter_rows(values_only=True)
        encabezados = next(filas, None)
        if not encabezados:
            return []
        mapa = [COLUMNAS_IMPORTACION.get(str(celda).strip()) if celda is not None else None for celda in encabezados]

        resultado = []
        for fila in filas:
            if fila is None or all(celda in (None, "") for celda in fila):
                continue
            datos = {columna: None for columna in COLUMNAS_IMPORTACION.values()}
            for indice, celda in enumerate(fila):
                columna = mapa[indice] if indice < len(mapa) else None
                if columna:
                    datos[columna] = formatear_celda(celda)
            resultado.append(datos)
        return resultado
    finally:
        wb.close()


def importar_instrumentos(db: DatabaseManager, usuario: Identidad, archivo) -> Dict:
    """
    Inserta una fila por instrumento. Un error en una fila no detiene las demás;
    cada fallo queda en el informe con su número de fila de Excel.
    """
    insertados, errores = 0, []
    for numero_fila, datos in enumerate(leer_filas_excel(archivo), 2):
        try:
            db.insert_instrumento(datos)
            insertados += 1
        except ErrorBaseDatos as e:
            logger.warning("Fila %d no importada: %s", numero_fila, e.detalles or e.mensaje)
            errores.append({"fila": numero_fila, "error": e.detalles or e.mensaje})

    db.registrar_movimiento_sistema("Carga Excel", f"{insertados} instrumentos importados, {len(errores)} errores", usuario.correo)
    logger.info("Importación de %s: %d insertados, %d errores", usuario.correo, insertados, len(errores))
    return {"success": not errores, "insertados": insertados, "errores": errores}


def _prefiere_json() -> bool:
    aceptados = request.accept_mimetypes
    return aceptados.accept_json and not aceptados.accept_html


# --- Rutas ---
@bp.route("/descargar-instrumentos", methods=["GET"])
@requiere_permiso("transferir_excel")
def descargar(usuario: Identidad):
    contenido = exportar_instrumentos(obtener_db())
    logger.info("Exportación de instrumentos descargada por %s", usuario.correo)
    return send_file(contenido, as_attachment=True, download_name=NOMBRE_ARCHIVO, mimetype=MIMETYPE_XLSX)


@bp.route("/cargar-instrumentos", methods=["POST"])
@requiere_permiso("transferir_excel")
def cargar(usuario: Identidad):
    # La sesión ya se verificó en el decorador antes de leer el archivo
    archivo = request.files.get("excelFile")
    if archivo is None or not archivo.filename:
        raise ErrorValidacion("No se recibió ningún archivo")
    if not archivo.filename.lower().endswith(".xlsx"):
        raise ErrorValidacion("Suba un archivo .xlsx")

    informe = importar_instrumentos(obtener_db(), usuario, archivo.stream)
    if _prefiere_json():
        return jsonify(informe)
    return redirect("/")
