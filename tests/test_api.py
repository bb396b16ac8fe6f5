"""
Tests for the HTTP API.
"""

import asyncio
import json

from dealflow import models


class TestInfoEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_root_lists_endpoints(self, client):
        body = client.get("/").json()

        assert body["endpoints"]["preview"] == "/match/preview"


class TestPreview:
    def test_scores_pair(self, client, base_seeker, base_provider):
        response = client.post(
            "/match/preview",
            json={"seeker": base_seeker.model_dump(), "provider": base_provider.model_dump()},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["score"] == 82
        assert [item["key"] for item in body["breakdown"]] == [
            "sector", "stage", "traction", "check_size", "geography", "thesis",
        ]
        assert "sector alignment" in body["explanation"]
        assert body["status"] is None

    def test_custom_weights(self, client, base_seeker, base_provider):
        seeker = base_seeker.model_dump()
        seeker["funding_target"] = 30_000_000
        weights = {"sector": 0, "stage": 0, "traction": 0, "checkSize": 1, "geography": 0, "thesis": 0}

        response = client.post(
            "/match/preview",
            json={"seeker": seeker, "provider": base_provider.model_dump(), "weights": weights},
        )

        assert response.json()["score"] == 39

    def test_non_finite_amounts_score_as_unknown(self, client, base_seeker, base_provider):
        seeker = base_seeker.model_dump()
        seeker.update(revenue=float("nan"), revenue_growth=float("nan"), customers=float("inf"))
        provider = base_provider.model_dump()
        provider["check_size_max"] = float("nan")
        body = json.dumps({"seeker": seeker, "provider": provider})

        response = client.post(
            "/match/preview", content=body, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 200
        breakdown = {item["key"]: item for item in response.json()["breakdown"]}
        assert breakdown["traction"]["reason"] == "No traction data shared"
        assert breakdown["check_size"]["score"] == 100

    def test_unparseable_target_scores_as_missing(self, client, base_seeker, base_provider):
        seeker = base_seeker.model_dump()
        seeker["funding_target"] = "lots"

        response = client.post(
            "/match/preview", json={"seeker": seeker, "provider": base_provider.model_dump()}
        )

        assert response.status_code == 200
        assert response.json()["breakdown"][3]["reason"] == "Missing check size information"

    def test_missing_provider_rejected(self, client, base_seeker):
        response = client.post("/match/preview", json={"seeker": base_seeker.model_dump()})

        assert response.status_code == 422


class TestEntitiesAndMatches:
    def test_create_and_generate(self, client, base_seeker, base_provider):
        seeker = client.post("/seekers", json=base_seeker.model_dump(exclude={"id"}))
        provider = client.post("/providers", json=base_provider.model_dump(exclude={"id"}))
        assert seeker.status_code == 201
        assert provider.status_code == 201
        seeker_id = seeker.json()["id"]
        provider_id = provider.json()["id"]

        generated = client.post(f"/seekers/{seeker_id}/matches")

        assert generated.status_code == 200
        body = generated.json()
        assert body["generated"] == 1
        assert body["matches"][0]["provider_id"] == provider_id
        assert body["message"] == f"Generated 1 matches for seeker {seeker_id}"

        detail = client.get(f"/matches/{seeker_id}/{provider_id}")
        assert detail.status_code == 200
        assert detail.json()["score"] == 82
        assert detail.json()["status"] == "suggested"

        listed = client.get(f"/seekers/{seeker_id}/matches").json()
        assert [m["provider_id"] for m in listed] == [provider_id]
        assert client.get(f"/providers/{provider_id}/matches").json()[0]["seeker_id"] == seeker_id

    def test_list_matches_filters_by_score(self, client, seeded_ids):
        client.post(f"/seekers/{seeded_ids['seeker']}/matches")

        all_matches = client.get("/matches").json()
        strong_only = client.get("/matches", params={"min_score": 60}).json()

        assert [m["score"] for m in all_matches] == [82, 47]
        assert [m["provider_id"] for m in strong_only] == [seeded_ids["strong"]]

    def test_generate_for_provider(self, client, seeded_ids):
        response = client.post(f"/providers/{seeded_ids['weak']}/matches")

        assert response.status_code == 200
        assert response.json()["matches"][0]["score"] == 47

    def test_run_matching(self, client, seeded_ids):
        body = client.post("/matching/run").json()

        assert body["status"] == "success"
        assert body["seekers_processed"] == 1
        assert body["providers_considered"] == 2
        assert body["generated"] == 2

    def test_unknown_seeker(self, client, seeded_ids):
        response = client.post("/seekers/9999/matches")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_unknown_pair(self, client, seeded_ids):
        response = client.get(f"/matches/{seeded_ids['seeker']}/9999")

        assert response.status_code == 404

    def test_create_requires_name(self, client):
        assert client.post("/seekers", json={"sector": "AI"}).status_code == 422


class TestWeights:
    def test_defaults(self, client, seeded_ids):
        body = client.get("/settings/weights").json()

        assert body["checkSize"] == 15
        assert body["sector"] == 25

    def test_update(self, client, seeded_ids):
        weights = {"sector": 30, "stage": 20, "traction": 20, "checkSize": 10, "geography": 10, "thesis": 10}

        put = client.put("/settings/weights", json=weights)
        got = client.get("/settings/weights")

        assert put.status_code == 200
        assert got.json() == weights

    def test_negative_weight_rejected(self, client, seeded_ids):
        response = client.put("/settings/weights", json={"sector": -1})

        assert response.status_code == 422

    def test_invalid_stored_weights(self, client, session_factory, seeded_ids):
        async def store(session):
            session.add(models.MatchingWeightsConfig(weights_json={"sector": -1}, is_active=True))
            await session.commit()

        asyncio.run(_with_session(session_factory, store))

        response = client.get("/settings/weights")

        assert response.status_code == 500
        assert response.json()["error"] == "matching_error"


async def _with_session(session_factory, action):
    async with session_factory() as session:
        await action(session)
