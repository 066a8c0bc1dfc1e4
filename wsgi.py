# ==============================================================================
# WSGI Entry Point - Para Gunicorn en producción
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT --worker-class gthread --threads 8
#
# Los streams SSE mantienen la conexión abierta: usar workers con hilos.
# El canal de cambios vive en memoria, así que debe haber un solo proceso.
#
# ESTRUCTURA DEL PROYECTO:
#   repo_root/           <- Directorio de trabajo
#   ├── wsgi.py          <- Este archivo
#   ├── pyproject.toml
#   └── discobar/        <- Paquete Python
#       ├── main.py
#       ├── services/
#       ├── repositories/
#       └── routes/
# ==============================================================================

from discobar.main import create_app

app = create_app()

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000, threaded=True)
