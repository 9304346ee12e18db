# Serverless entry point: the platform serves the WSGI `app` at /api/sync.
from portfolio_sync.config.settings import load_settings
from portfolio_sync.web.app import create_app

app = create_app(load_settings())
