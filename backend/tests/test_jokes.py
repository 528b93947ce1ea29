import pytest


async def _add(client, headers, text="Why did the scarecrow win an award?", category="Farm", **extra):
    response = await client.post("/api/jokes", json={"text": text, "category": category, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_add_joke(client, auth_headers):
    data = await _add(client, auth_headers(), funnyRate=4, source="Grandpa")

    assert data["category"] == "Farm"
    assert data["funnyRate"] == 4
    assert data["used"] is False
    assert data["userId"] == "user-1"
    assert data["source"] == "Grandpa"
    assert data["ratingCount"] == 0
    assert "dateAdded" in data

@pytest.mark.asyncio
async def test_add_joke_requires_token(client):
    response = await client.post("/api/jokes", json={"text": "t", "category": "c"})

    assert response.status_code == 401
    assert response.json()["error"] == "HTTP Error"

@pytest.mark.asyncio
async def test_add_joke_rejects_invalid_token(client):
    response = await client.post(
        "/api/jokes",
        json={"text": "t", "category": "c"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401

@pytest.mark.asyncio
async def test_add_joke_validation_errors(client, auth_headers):
    response = await client.post("/api/jokes", json={"text": "t", "category": "  "}, headers=auth_headers())
    assert response.status_code == 400
    assert response.json()["kind"] == "category"

    response = await client.post(
        "/api/jokes", json={"text": "t", "category": "c", "funnyRate": 9}, headers=auth_headers()
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "validation"

@pytest.mark.asyncio
async def test_list_public_jokes_without_token(client, auth_headers):
    for i in range(3):
        await _add(client, auth_headers(), text=f"Joke {i}")

    response = await client.get("/api/jokes")

    assert response.status_code == 200
    data = response.json()
    assert [j["text"] for j in data["jokes"]] == ["Joke 2", "Joke 1", "Joke 0"]
    assert data["hasMore"] is False
    assert data["nextCursor"] is None

@pytest.mark.asyncio
async def test_list_user_scope_without_token_is_empty(client, auth_headers):
    await _add(client, auth_headers())

    response = await client.get("/api/jokes", params={"scope": "user", "usageStatus": "used"})

    assert response.json() == {"jokes": [], "nextCursor": None, "hasMore": False}

@pytest.mark.asyncio
async def test_list_filters_and_pagination(client, auth_headers):
    for i in range(12):
        await _add(client, auth_headers(), text=f"Work joke {i}", category="Work", funnyRate=3)
    await _add(client, auth_headers("user-2"), text="Someone else's", category="Work", funnyRate=3)

    first = (await client.get(
        "/api/jokes",
        params={"scope": "user", "categories": ["Work", "Food"], "funnyRate": 3},
        headers=auth_headers(),
    )).json()
    assert len(first["jokes"]) == 10
    assert first["hasMore"] is True

    second = (await client.get(
        "/api/jokes",
        params={"scope": "user", "categories": ["Work"], "funnyRate": 3, "cursor": first["nextCursor"]},
        headers=auth_headers(),
    )).json()
    assert len(second["jokes"]) == 2
    assert {j["userId"] for j in first["jokes"] + second["jokes"]} == {"user-1"}

@pytest.mark.asyncio
async def test_list_rejects_bad_filters(client):
    assert (await client.get("/api/jokes", params={"funnyRate": 8})).status_code == 400
    assert (await client.get("/api/jokes", params={"cursor": "nonsense"})).status_code == 400
    assert (await client.get("/api/jokes", params={"usageStatus": "sometimes"})).status_code == 422

@pytest.mark.asyncio
async def test_get_joke(client, auth_headers):
    joke = await _add(client, auth_headers())

    response = await client.get(f"/api/jokes/{joke['id']}", headers=auth_headers("user-2"))
    assert response.status_code == 200
    assert response.json()["text"] == joke["text"]

    response = await client.get("/api/jokes/missing", headers=auth_headers())
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_patch_joke(client, auth_headers):
    joke = await _add(client, auth_headers())

    response = await client.patch(
        f"/api/jokes/{joke['id']}",
        json={"used": True, "explanation": "It's about being outstanding in a field."},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["used"] is True
    assert data["explanation"].startswith("It's about")
    assert data["text"] == joke["text"]

@pytest.mark.asyncio
async def test_patch_other_users_joke_forbidden(client, auth_headers):
    joke = await _add(client, auth_headers())

    response = await client.patch(f"/api/jokes/{joke['id']}", json={"used": True}, headers=auth_headers("user-2"))

    assert response.status_code == 403
    assert response.json()["kind"] == "permission"

@pytest.mark.asyncio
async def test_toggle_rate_and_recategorize(client, auth_headers):
    joke = await _add(client, auth_headers())
    url = f"/api/jokes/{joke['id']}"

    assert (await client.post(f"{url}/toggle-used", headers=auth_headers())).json()["used"] is True
    assert (await client.put(f"{url}/funny-rate", json={"funnyRate": 5}, headers=auth_headers())).json()["funnyRate"] == 5
    assert (await client.put(f"{url}/category", json={"category": "Awards"}, headers=auth_headers())).json()["category"] == "Awards"

    categories = (await client.get("/api/categories", headers=auth_headers())).json()
    assert [c["name"] for c in categories] == ["Awards", "Farm"]

@pytest.mark.asyncio
async def test_delete_joke(client, auth_headers):
    joke = await _add(client, auth_headers())
    await client.put(f"/api/jokes/{joke['id']}/ratings/me", json={"ratingValue": 5}, headers=auth_headers("user-2"))

    assert (await client.delete(f"/api/jokes/{joke['id']}", headers=auth_headers("user-2"))).status_code == 403

    response = await client.delete(f"/api/jokes/{joke['id']}", headers=auth_headers())
    assert response.status_code == 204

    assert (await client.get(f"/api/jokes/{joke['id']}", headers=auth_headers())).status_code == 404
    ratings = (await client.get(f"/api/jokes/{joke['id']}/ratings", headers=auth_headers())).json()
    assert ratings["ratings"] == []

@pytest.mark.asyncio
async def test_import_jokes(client, auth_headers):
    response = await client.post(
        "/api/jokes/import",
        json=[
            {"text": "Why did the chicken...", "category": "Animals", "funnyRate": 3},
            {"text": "", "category": "Animals"},
        ],
        headers=auth_headers(),
    )

    assert response.status_code == 200
    assert response.json() == {"imported": 1, "skipped": 1}
    categories = (await client.get("/api/categories", headers=auth_headers())).json()
    assert [c["name"] for c in categories] == ["Animals"]

@pytest.mark.asyncio
async def test_import_csv(client, auth_headers):
    content = 'text,category,funnyrate\n"Well, well, well",Puns,2\nNo category here,,\n'

    response = await client.post(
        "/api/jokes/import-csv",
        content=content.encode("utf-8"),
        headers={**auth_headers(), "Content-Type": "text/csv"},
    )

    assert response.status_code == 200
    assert response.json() == {"imported": 1, "skipped": 1}
    jokes = (await client.get("/api/jokes")).json()["jokes"]
    assert jokes[0]["text"] == "Well, well, well"

@pytest.mark.asyncio
async def test_import_csv_missing_columns(client, auth_headers):
    response = await client.post(
        "/api/jokes/import-csv",
        content=b"joke\nsomething\n",
        headers={**auth_headers(), "Content-Type": "text/csv"},
    )

    assert response.status_code == 400

@pytest.mark.asyncio
async def test_five_star_jokes(client, auth_headers):
    loved = await _add(client, auth_headers(), text="Loved it")
    liked = await _add(client, auth_headers(), text="Liked it")
    await client.put(f"/api/jokes/{loved['id']}/ratings/me", json={"ratingValue": 5}, headers=auth_headers("fan"))
    await client.put(f"/api/jokes/{liked['id']}/ratings/me", json={"ratingValue": 4}, headers=auth_headers("fan"))

    response = await client.get("/api/jokes/five-star", headers=auth_headers("fan"))

    assert response.json() == {"jokes": ["Loved it"]}
