"""FastAPI routers, one per resource, mounted under /api by ``main.py``."""
