"""Health check endpoint."""


async def handler(data):
    return {"status": "healthy"}
