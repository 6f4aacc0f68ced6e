"""Tests for API endpoints."""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from api.main import app, limiter
from api.session import get_ledger, get_registry
from conftest import StackedShoe


@pytest_asyncio.fixture
async def client():
    """Create test client with a clean ledger and rate limit window."""
    limiter.reset()
    get_ledger().reset()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def open_table(client, game, players=("Dealer", "Alice", "Bob"), dealer_index=0):
    response = await client.post(
        "/api/session",
        json={"game": game, "players": list(players), "dealer_index": dealer_index},
    )
    assert response.status_code == 200
    data = response.json()
    return {"X-Session-ID": data["session_id"]}, {p["name"]: p["id"] for p in data["players"]}


def stack_shoe(headers, cards):
    session = get_registry().get(headers["X-Session-ID"])
    session.table.shoe = StackedShoe(cards)


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestSessions:
    @pytest.mark.asyncio
    async def test_create_session(self, client):
        response = await client.post(
            "/api/session",
            json={"game": "blackjack", "players": ["Ann", " Ben "], "dealer_index": 1},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["game"] == "blackjack"
        assert len(data["session_id"]) > 36
        assert [(p["name"], p["is_dealer"]) for p in data["players"]] == [
            ("Ann", False),
            ("Ben", True),
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"players": ["Solo"], "dealer_index": 0},
            {"players": ["Ann", "Ann"], "dealer_index": 0},
            {"players": ["Ann", "  "], "dealer_index": 0},
            {"players": ["Ann", "Ben"], "dealer_index": 2},
            {"game": "poker", "players": ["Ann", "Ben"], "dealer_index": 0},
        ],
    )
    async def test_invalid_roster(self, client, body):
        response = await client.post("/api/session", json=body)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_session(self, client):
        response = await client.get(
            "/api/blackjack/state", headers={"X-Session-ID": "invalid-session"}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_session_header(self, client):
        response = await client.get("/api/blackjack/state")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_session_bound_to_its_game(self, client):
        headers, _ = await open_table(client, "roulette")
        response = await client.get("/api/blackjack/state", headers=headers)
        assert response.status_code == 404


class TestBlackjack:
    @pytest.mark.asyncio
    async def test_full_round(self, client):
        headers, ids = await open_table(client, "blackjack", players=("Dealer", "Alice"))
        stack_shoe(headers, ["10S", "10H", "7C", "9H"])

        response = await client.post(
            "/api/blackjack/bet", json={"player_id": ids["Alice"], "amount": 10}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["players"][1]["current_bet"] == 10

        response = await client.post("/api/blackjack/deal", headers=headers)
        data = response.json()
        assert data["phase"] == "PLAYER_TURN"
        assert data["current_player_id"] == ids["Alice"]
        assert data["can_hit"] and data["can_double"] and not data["can_split"]
        # Hole card stays hidden
        assert len(data["dealer_hand"]["cards"]) == 1
        assert data["dealer_hand"]["value"] is None
        assert not data["hole_card_revealed"]
        assert "CARD_DEALT" in [e["type"] for e in data["events"]]

        response = await client.post(
            "/api/blackjack/action", json={"action": "stand"}, headers=headers
        )
        data = response.json()
        assert data["phase"] == "DEALER_TURN"
        assert data["dealer_hand"]["value"] == 17
        assert data["dealer_should_hit"] is False

        response = await client.post("/api/blackjack/dealer/play", headers=headers)
        data = response.json()
        assert data["phase"] == "RESOLUTION"
        assert data["last_results"] == [
            {"player_id": ids["Alice"], "hand_index": 0, "outcome": "win", "amount": 10.0}
        ]

        response = await client.get("/api/ledger", headers=headers)
        ledger = response.json()
        assert ledger["debts"] == [
            {"debtor": ids["Dealer"], "creditor": ids["Alice"], "amount": 10.0}
        ]
        assert ledger["balances"] == {ids["Dealer"]: -10.0, ids["Alice"]: 10.0}

        response = await client.post("/api/blackjack/next-round", headers=headers)
        data = response.json()
        assert data["phase"] == "BETTING"
        assert data["last_results"] == []

    @pytest.mark.asyncio
    async def test_insurance_prompt(self, client):
        headers, ids = await open_table(client, "blackjack", players=("Dealer", "Alice"))
        stack_shoe(headers, ["AS", "10H", "KH", "9H"])
        await client.post(
            "/api/blackjack/bet", json={"player_id": ids["Alice"], "amount": 10}, headers=headers
        )

        data = (await client.post("/api/blackjack/deal", headers=headers)).json()
        assert data["phase"] == "INSURANCE"

        response = await client.post(
            "/api/blackjack/insurance", json={"accept": True}, headers=headers
        )
        data = response.json()
        assert data["phase"] == "RESOLUTION"
        assert data["hole_card_revealed"]
        assert data["dealer_hand"]["is_blackjack"]

    @pytest.mark.asyncio
    async def test_action_in_wrong_phase(self, client):
        headers, _ = await open_table(client, "blackjack")
        response = await client.post(
            "/api/blackjack/action", json={"action": "hit"}, headers=headers
        )
        assert response.status_code == 400
        assert "BETTING" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_deal_without_bets(self, client):
        headers, _ = await open_table(client, "blackjack")
        response = await client.post("/api/blackjack/deal", headers=headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_bet_amount(self, client):
        headers, ids = await open_table(client, "blackjack")
        response = await client.post(
            "/api/blackjack/bet", json={"player_id": ids["Alice"], "amount": -5}, headers=headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_dealer_cannot_bet(self, client):
        headers, ids = await open_table(client, "blackjack")
        response = await client.post(
            "/api/blackjack/bet", json={"player_id": ids["Dealer"], "amount": 5}, headers=headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_action(self, client):
        headers, _ = await open_table(client, "blackjack")
        response = await client.post(
            "/api/blackjack/action", json={"action": "surrender"}, headers=headers
        )
        assert response.status_code == 422


class TestOtherGames:
    @pytest.mark.asyncio
    async def test_baccarat_coup(self, client):
        headers, ids = await open_table(client, "baccarat")
        stack_shoe(headers, ["5S", "6C", "2H", "2D"])

        response = await client.post(
            "/api/baccarat/bet",
            json={"player_id": ids["Alice"], "bet_type": "BANKER", "amount": 20},
            headers=headers,
        )
        assert response.json()["bets"] == {ids["Alice"]: {"BANKER": 20.0}}

        data = (await client.post("/api/baccarat/deal", headers=headers)).json()
        assert data["phase"] == "RESOLUTION"
        assert data["winner"] == "BANKER"
        assert (data["player_score"], data["banker_score"]) == (7, 8)
        assert data["settlements"] == [{"player_id": ids["Alice"], "net": 19.0}]

        response = await client.post("/api/baccarat/deal", headers=headers)
        assert response.status_code == 400

        data = (await client.post("/api/baccarat/next-round", headers=headers)).json()
        assert data["phase"] == "BETTING"
        assert data["player_hand"] == []

    @pytest.mark.asyncio
    async def test_roulette_spin(self, client):
        headers, ids = await open_table(client, "roulette")
        await client.post(
            "/api/roulette/bet",
            json={"player_id": ids["Alice"], "amount": 5, "color": "RED"},
            headers=headers,
        )

        response = await client.post("/api/roulette/resolve", headers=headers)
        assert response.status_code == 400

        data = (await client.post("/api/roulette/spin", headers=headers)).json()
        assert data["phase"] == "SPINNING"
        assert data["result"] in ("RED", "BLACK")
        assert data["winnings"] == {}

        data = (await client.post("/api/roulette/resolve", headers=headers)).json()
        assert data["phase"] == "PAYOUT"
        expected = 5.0 if data["result"] == "RED" else -5.0
        assert data["winnings"] == {ids["Alice"]: expected}
        assert data["history"] == [data["result"]]

        response = await client.post("/api/roulette/resolve", headers=headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_pulse_play(self, client):
        headers, ids = await open_table(client, "pulse", players=("House", "Alice"))
        response = await client.post("/api/pulse/play", headers=headers)
        assert response.status_code == 400

        await client.post(
            "/api/pulse/bet", json={"player_id": ids["Alice"], "amount": 3}, headers=headers
        )
        data = (await client.post("/api/pulse/play", headers=headers)).json()
        assert data["phase"] == "RESULT"
        assert data["outcome"] in ("PLAYER", "HOUSE")

        ledger = (await client.get("/api/ledger", headers=headers)).json()
        assert len(ledger["debts"]) == 1
        assert ledger["debts"][0]["amount"] == 3.0


class TestLedger:
    @pytest.mark.asyncio
    async def test_ledger_without_session(self, client):
        get_ledger().record_transfer("a", "b", 4)
        data = (await client.get("/api/ledger")).json()
        assert data == {"debts": [{"debtor": "a", "creditor": "b", "amount": 4.0}], "balances": {}}

    @pytest.mark.asyncio
    async def test_reset_ledger(self, client):
        get_ledger().record_transfer("a", "b", 4)
        response = await client.delete("/api/ledger")
        assert response.status_code == 200
        assert (await client.get("/api/ledger")).json()["debts"] == []


@pytest.mark.asyncio
async def test_close_session(client):
    headers, _ = await open_table(client, "pulse", players=("House", "Alice"))
    response = await client.delete("/api/session", headers=headers)
    assert response.status_code == 200
    response = await client.get("/api/pulse/state", headers=headers)
    assert response.status_code == 404
