"""
FastAPI routers grouped by domain (auth, users, service categories).

Each module exposes an APIRouter included by the application factory in
app.py. Routers translate wire input into service calls; typed failures are
turned into HTTP responses by the exception handlers registered in app.py.
"""
