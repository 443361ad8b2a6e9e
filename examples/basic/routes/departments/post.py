import store

body_schema = {"name": str}
strict = True


async def handler(data):
    """Create a department."""
    department_id = store.next_id(store.departments)
    department = {"id": department_id, "name": data.body["name"]}
    store.departments[department_id] = department
    return department
