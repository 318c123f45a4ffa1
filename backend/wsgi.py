# backend/wsgi.py
from sijuk import create_app

app = create_app()
