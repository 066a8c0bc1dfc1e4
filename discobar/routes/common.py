"""Utilidades compartidas por los blueprints."""

from flask import current_app, jsonify, request


def get_services():
    """Contenedor de la app actual (repositorios + servicios)."""
    return current_app.extensions['discobar']


def json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def ok(status=200, **payload):
    body = {'ok': True}
    body.update(payload)
    return jsonify(body), status
