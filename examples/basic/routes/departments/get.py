import store

query_schema = {"name": (str | None, None)}


async def handler(data):
    """List departments, optionally filtered by name."""
    name = data.query["name"]
    return [d for d in store.departments.values() if name is None or d["name"] == name]
