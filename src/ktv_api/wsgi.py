"""WSGI entry point: ``gunicorn ktv_api.wsgi:app``."""

from ktv_api.app import create_app

app = create_app()
