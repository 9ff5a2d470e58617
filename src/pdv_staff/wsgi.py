"""WSGI entry point (`flask --app pdv_staff.wsgi run`)."""

from pdv_staff.app import create_app

app = create_app()
