async def test_search_by_name_is_case_insensitive(client, register):
    alice = await register("uid-1", "Alice")
    await register("uid-2", "malice")
    await register("uid-3", "bob")

    response = await client.get("/api/search", params={"term": "ALI", "type": "name"}, headers=alice["headers"])

    assert response.status_code == 200
    assert [user["username"] for user in response.json()] == ["Alice", "malice"]


async def test_search_matches_display_name(client, register):
    alice = await register("uid-1", "alice")
    await client.put(f"/api/users/{alice['id']}", json={"display_name": "Wonderland"}, headers=alice["headers"])

    response = await client.get("/api/search", params={"term": "wonder", "type": "name"}, headers=alice["headers"])

    assert [user["id"] for user in response.json()] == [alice["id"]]


async def test_search_treats_wildcards_literally(client, register):
    alice = await register("uid-1", "alice")
    await register("uid-2", "bob")

    response = await client.get("/api/search", params={"term": "%", "type": "name"}, headers=alice["headers"])

    assert response.json() == []


async def test_search_returns_at_most_twenty_users(client, register):
    viewer = await register("viewer", "viewer")
    for i in range(25):
        await register(f"uid-{i}", f"creator{i:02d}")

    response = await client.get("/api/search", params={"term": "creator", "type": "name"}, headers=viewer["headers"])

    assert len(response.json()) == 20


async def test_hashtag_search_finds_nothing_while_hashtags_are_unset(client, register):
    alice = await register("uid-1", "alice")

    response = await client.get("/api/search", params={"term": "alice", "type": "hashtag"}, headers=alice["headers"])

    assert response.status_code == 200
    assert response.json() == []


async def test_search_validation(client, register):
    alice = await register("uid-1", "alice")

    response = await client.get("/api/search", params={"type": "name"}, headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid search term"

    response = await client.get("/api/search", params={"term": "  ", "type": "name"}, headers=alice["headers"])
    assert response.status_code == 400

    response = await client.get("/api/search", params={"term": "alice", "type": "video"}, headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid search type"

    response = await client.get("/api/search", params={"term": "alice"}, headers=alice["headers"])
    assert response.status_code == 400


async def test_search_requires_session(client):
    response = await client.get("/api/search", params={"term": "alice", "type": "name"})
    assert response.status_code == 401
