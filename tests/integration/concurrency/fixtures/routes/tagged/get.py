import asyncio


async def before(req):
    req.state.tag = req.query_params["tag"]


async def handler(data):
    await asyncio.sleep(0.01)
    return {"tag": data.req.state.tag, "query": data.query["tag"]}
