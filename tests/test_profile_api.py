import httpx


async def test_profile_missing_then_saved(client: httpx.AsyncClient):
    resp = await client.get("/v1/profile")
    assert resp.status_code == 404

    resp = await client.put(
        "/v1/profile",
        json={
            "height": 168,
            "body_type": "petite",
            "aesthetics": ["classic", "minimalist", "classic"],
            "color_preferences": "navy, camel , ,white",
            "location": "  ",
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == "test-user"
    assert data["aesthetics"] == ["classic", "minimalist"]
    assert data["color_preferences"] == ["navy", "camel", "white"]
    assert data["location"] is None

    resp = await client.put("/v1/profile", json={"height": 170, "body_type": "tall"})
    assert resp.status_code == 200
    data = (await client.get("/v1/profile")).json()
    assert data["height"] == 170
    assert data["body_type"] == "tall"
    assert data["aesthetics"] == []


async def test_profile_rejects_unknown_values(client: httpx.AsyncClient):
    resp = await client.put("/v1/profile", json={"body_type": "hourglass"})
    assert resp.status_code == 422
    resp = await client.put("/v1/profile", json={"height": -4})
    assert resp.status_code == 422
