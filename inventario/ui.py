# inventario/ui.py
from typing import Dict

from colorama import Fore, Style, Back, init
from flask import render_template

from .config import PAGINA_LOGIN, PAGINA_REGISTRO
from .errors import ErrorBaseDatos, ErrorInventario

init(autoreset=True)

# --- Páginas HTML de error ---
def pagina_error(mensaje: str, titulo: str, enlace: str, texto_enlace: str, codigo: int = 400):
    html = render_template("error.html", mensaje=mensaje, titulo=titulo, enlace=enlace, texto_enlace=texto_enlace)
    return html, codigo

def _mensaje_visible(error: ErrorInventario, generico: str) -> str:
    # Los detalles de la base de datos no se muestran en páginas
    return generico if isinstance(error, ErrorBaseDatos) else error.mensaje

def pagina_error_registro(error: ErrorInventario):
    mensaje = _mensaje_visible(error, "Error al registrar usuario")
    return pagina_error(mensaje, "Error", PAGINA_REGISTRO, "Volver", error.codigo_http)

def pagina_error_login(error: ErrorInventario):
    mensaje = _mensaje_visible(error, "Error en la base de datos")
    return pagina_error(mensaje, "Error en Login", PAGINA_LOGIN, "Volver al Login", error.codigo_http)

# --- Consola ---
def mostrar_encabezado(titulo: str, ancho: int = 80):
    print(Fore.WHITE + Style.BRIGHT + "═" * ancho)
    print(Back.WHITE + Style.DIM + Fore.BLACK + " Inventario de Instrumentos ".center(ancho, ' ') + Style.RESET_ALL)
    print(Fore.WHITE + Style.BRIGHT + "═" * ancho + Style.RESET_ALL)
    print("\n" + Fore.CYAN + Style.BRIGHT + f" {titulo.upper()} ".center(ancho, ' ') + Style.RESET_ALL)
    print(Fore.CYAN + "─" * ancho + Style.RESET_ALL)

def mostrar_panel_info(titulo: str, info_dict: Dict):
    print(Fore.CYAN + f"--- {titulo} ---" + Style.RESET_ALL)
    for clave, valor in info_dict.items():
        print(f"  {clave.ljust(25)}: {valor}")
    print(Fore.CYAN + "-" * (len(titulo) + 8) + Style.RESET_ALL)
