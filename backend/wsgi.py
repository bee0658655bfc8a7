# backend/wsgi.py
from recap import create_app

app = create_app()
