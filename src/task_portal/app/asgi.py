"""ASGI entry point: `uvicorn task_portal.app.asgi:app`."""
from task_portal.app.main import create_app

app = create_app()
