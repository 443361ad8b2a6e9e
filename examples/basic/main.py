"""Basic example demonstrating fastapi-verb-routing.

This minimal application uses create_app() to discover and register
every verb file under the routes/ directory.

Run with:
    uvicorn main:app --reload

Available endpoints:
    GET    /health
    GET    /departments
    POST   /departments
    GET    /departments/:id
    DELETE /departments/:id
    GET    /departments/:departmentId/employees
    POST   /departments/:departmentId/employees
    GET    /departments/:departmentId/employees/:id
"""

import logging
from pathlib import Path

from fastapi_verb_routing import create_app

logging.basicConfig(level=logging.INFO)

app = create_app(Path(__file__).parent / "routes", title="Basic Example")
