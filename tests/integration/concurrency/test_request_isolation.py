"""Concurrent requests must not observe each other's data."""

import asyncio


async def test_parameters_are_isolated(client):
    # Later requests finish first
    ids = list(range(30))
    responses = await asyncio.gather(
        *(client.get(f"/jobs/{i}", params={"delay": (30 - i) / 1000}) for i in ids)
    )

    assert [r.status_code for r in responses] == [200] * len(ids)
    assert [r.json()["id"] for r in responses] == ids


async def test_request_state_is_isolated(client):
    tags = [f"tag-{i}" for i in range(20)]
    responses = await asyncio.gather(*(client.get("/tagged", params={"tag": t}) for t in tags))

    assert [r.json() for r in responses] == [{"tag": t, "query": t} for t in tags]


async def test_failures_do_not_affect_other_requests(client):
    responses = await asyncio.gather(
        *(client.put(f"/jobs/{i}", json={"status": f"done-{i}"}) for i in range(10))
    )

    for i, response in enumerate(responses):
        if i % 2:
            assert response.status_code == 409
            assert response.json() == {"message": f"Job {i} is locked"}
        else:
            assert response.status_code == 200
            assert response.json() == {"id": i, "status": f"done-{i}"}


async def test_validation_failures_are_per_request(client):
    good, bad = await asyncio.gather(
        client.get("/jobs/1"),
        client.get("/jobs/x"),
    )

    assert good.json() == {"id": 1}
    assert bad.status_code == 400
    assert bad.json()["errors"][0].startswith("params.id: ")
