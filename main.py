# main.py
from colorama import Fore
from dotenv import load_dotenv

from inventario.aplicacion import create_app
from inventario.ui import mostrar_encabezado, mostrar_panel_info

def main():
    """
    Función principal que prepara la aplicación y arranca el servidor de desarrollo.
    """
    load_dotenv()
    app = create_app()

    mostrar_encabezado("Servidor de Inventario")
    mostrar_panel_info("Configuración", {
        "Dirección": f"http://{app.config['HOST']}:{app.config['PORT']}",
        "Base de datos": app.config["DATABASE"],
        "Cookie segura": "Sí" if app.config["SESSION_COOKIE_SECURE"] else "No",
    })
    app.run(host=app.config["HOST"], port=app.config["PORT"], debug=False)

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print(Fore.RED + "\n\nServidor detenido por el usuario.")
