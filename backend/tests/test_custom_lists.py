"""
PokéCompanion Backend: Custom Lists API Tests
==============================================

What:  /api/lists CRUD, membership routes and the ownership checks
       (404 for missing lists, 403 for other users' lists).
"""

import pytest


async def _create_list(client, user, name="Team Rocket targets"):
    response = await client.post("/api/lists", json={"name": name}, headers=user["headers"])
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestListCrud:

    @pytest.mark.asyncio
    async def test_create_and_fetch(self, test_client, register_user):
        ash = await register_user("ash")

        created = await _create_list(test_client, ash, "  Kanto starters ")
        assert created["name"] == "Kanto starters"
        assert created["userId"] == ash["id"]

        listing = await test_client.get("/api/lists", headers=ash["headers"])
        assert [item["id"] for item in listing.json()["data"]] == [created["id"]]

        detail = await test_client.get(f"/api/lists/{created['id']}", headers=ash["headers"])
        assert detail.status_code == 200
        assert detail.json()["data"]["pokemons"] == []

    @pytest.mark.asyncio
    async def test_rename(self, test_client, register_user):
        ash = await register_user("ash")
        created = await _create_list(test_client, ash)

        response = await test_client.put(
            f"/api/lists/{created['id']}", json={"name": "Water types"}, headers=ash["headers"]
        )

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Water types"

    @pytest.mark.asyncio
    async def test_blank_name_returns_422(self, test_client, register_user):
        ash = await register_user("ash")

        response = await test_client.post("/api/lists", json={"name": "   "}, headers=ash["headers"])

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_removes_list_and_entries(self, test_client, register_user):
        ash = await register_user("ash")
        created = await _create_list(test_client, ash)
        await test_client.post(
            f"/api/lists/{created['id']}/pokemon", json={"pokemonId": 7}, headers=ash["headers"]
        )

        response = await test_client.delete(f"/api/lists/{created['id']}", headers=ash["headers"])

        assert response.status_code == 200
        detail = await test_client.get(f"/api/lists/{created['id']}", headers=ash["headers"])
        assert detail.status_code == 404


class TestListMembership:

    @pytest.mark.asyncio
    async def test_add_and_remove_pokemon(self, test_client, register_user):
        ash = await register_user("ash")
        created = await _create_list(test_client, ash)
        base = f"/api/lists/{created['id']}/pokemon"

        for pokemon_id in (9, 6, 3):
            response = await test_client.post(base, json={"pokemonId": pokemon_id}, headers=ash["headers"])
            assert response.status_code == 201

        detail = await test_client.get(f"/api/lists/{created['id']}", headers=ash["headers"])
        assert [p["pokemonId"] for p in detail.json()["data"]["pokemons"]] == [3, 6, 9]

        removed = await test_client.delete(f"{base}/6", headers=ash["headers"])
        assert removed.status_code == 200
        detail = await test_client.get(f"/api/lists/{created['id']}", headers=ash["headers"])
        assert [p["pokemonId"] for p in detail.json()["data"]["pokemons"]] == [3, 9]

    @pytest.mark.asyncio
    async def test_duplicate_pokemon_returns_409(self, test_client, register_user):
        ash = await register_user("ash")
        created = await _create_list(test_client, ash)
        base = f"/api/lists/{created['id']}/pokemon"
        await test_client.post(base, json={"pokemonId": 25}, headers=ash["headers"])

        response = await test_client.post(base, json={"pokemonId": 25}, headers=ash["headers"])

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_remove_missing_pokemon_returns_404(self, test_client, register_user):
        ash = await register_user("ash")
        created = await _create_list(test_client, ash)

        response = await test_client.delete(
            f"/api/lists/{created['id']}/pokemon/150", headers=ash["headers"]
        )

        assert response.status_code == 404


class TestListOwnership:

    @pytest.mark.asyncio
    async def test_missing_list_returns_404(self, test_client, register_user):
        ash = await register_user("ash")

        response = await test_client.get("/api/lists/9999", headers=ash["headers"])

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_other_users_list_is_forbidden(self, test_client, register_user):
        ash = await register_user("ash")
        gary = await register_user("gary")
        created = await _create_list(test_client, ash)
        list_url = f"/api/lists/{created['id']}"

        responses = [
            await test_client.get(list_url, headers=gary["headers"]),
            await test_client.put(list_url, json={"name": "Mine now"}, headers=gary["headers"]),
            await test_client.post(f"{list_url}/pokemon", json={"pokemonId": 1}, headers=gary["headers"]),
            await test_client.delete(list_url, headers=gary["headers"]),
        ]

        assert [r.status_code for r in responses] == [403, 403, 403, 403]
        still_there = await test_client.get(list_url, headers=ash["headers"])
        assert still_there.json()["data"]["name"] == "Team Rocket targets"
