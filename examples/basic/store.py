"""In-memory storage shared by the example routes.

Importable from verb files when the example runs from this directory.
"""

from fastapi_verb_routing import ApiError

departments: dict[int, dict] = {1: {"id": 1, "name": "Engineering"}}
employees: dict[int, dict] = {1: {"id": 1, "departmentId": 1, "name": "Ada"}}


def get_department(department_id: int) -> dict:
    department = departments.get(department_id)
    if department is None:
        raise ApiError(404, f"Department {department_id} not found")
    return department


def next_id(table: dict[int, dict]) -> int:
    return max(table, default=0) + 1
