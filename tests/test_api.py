"""
Tests for the REST API.

The app runs with in-memory storage, a fixed clock and a scripted generator.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeGenerator, FailingStorage, FixedClock, sick_health
from hearth.core.models import default_context
from hearth.servers.api import create_app
from hearth.servers.auth import HeaderAuthProvider

AUTH = {"X-User-Id": "user-1", "X-User-Name": "Asha", "X-User-Email": "asha@example.com"}


@pytest.fixture
def api_storage() -> FailingStorage:
    return FailingStorage()


@pytest.fixture
def api_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def api_clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def client(settings, api_storage, api_generator, api_clock):
    """Provide a TestClient with the app lifespan running."""
    app = create_app(settings=settings, storage=api_storage, generator=api_generator, clock=api_clock)
    with TestClient(app) as test_client:
        yield test_client


class TestSystem:
    """Tests for system endpoints."""

    def test_health(self, client):
        """Test the health check."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["storage"] is True

    def test_root(self, client):
        """Test the API info endpoint."""
        assert client.get("/").json()["name"] == "Hearth API"


class TestContextEndpoint:
    """Tests for GET/POST /context."""

    def test_default_on_absence(self, client):
        """Test that an unknown user gets the default document."""
        response = client.get("/context", params={"userId": "nobody"})

        assert response.status_code == 200
        assert response.json() == default_context()

    def test_missing_user_id(self, client):
        """Test 400 without userId."""
        for response in (client.get("/context"), client.post("/context", json={})):
            assert response.status_code == 400
            assert response.json()["details"] == "User ID is required"

    def test_post_then_get(self, client):
        """Test that a POSTed update is visible to the next GET."""
        posted = client.post("/context", params={"userId": "u1"}, json={"finance": {"totalBalance": 10000}})
        fetched = client.get("/context", params={"userId": "u1"})

        assert posted.status_code == 200
        assert posted.json() == fetched.json()
        assert fetched.json()["finance"]["totalBalance"] == 10000
        assert fetched.json()["preferences"]["events"]["budgetRange"]["max"] == 2000

    def test_array_replacement(self, client):
        """Test that arrays in an update replace the stored ones."""
        client.post("/context", params={"userId": "u1"}, json={"health": {"symptoms": ["cough", "fever"]}})
        response = client.post("/context", params={"userId": "u1"}, json={"health": {"symptoms": ["headache"]}})

        assert response.json()["health"]["symptoms"] == ["headache"]

    def test_update_must_be_object(self, client):
        """Test that a non-object body is rejected."""
        response = client.post("/context", params={"userId": "u1"}, json=[1, 2])

        assert response.status_code == 400
        assert client.get("/context", params={"userId": "u1"}).json() == default_context()

    @pytest.mark.parametrize("section", ["health", "finance", "preferences", "botInteractions"])
    def test_null_section_rejected(self, client, section):
        """Test that a section set to null is a 400 and leaves the store usable."""
        response = client.post("/context", params={"userId": "u1"}, json={section: None})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request", "details": f"{section} must be a JSON object"}
        assert client.get("/context", params={"userId": "u1"}).json() == default_context()

        follow_up = client.post("/context", params={"userId": "u1"}, json={"food": {"allergies": ["peanut"]}})
        assert follow_up.status_code == 200

    def test_scalar_section_rejected(self, client):
        """Test that replacing a section with a scalar is rejected."""
        response = client.post("/context", params={"userId": "u1"}, json={"health": "fine"})

        assert response.status_code == 400

    @pytest.mark.parametrize("balance", ["4000", True, [4000]])
    def test_non_numeric_balance_rejected(self, client, balance):
        """Test that totalBalance must be a number."""
        response = client.post("/context", params={"userId": "u1"}, json={"finance": {"totalBalance": balance}})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request", "details": "finance.totalBalance must be a number"}
        assert client.get("/context", params={"userId": "u1"}).json()["finance"]["totalBalance"] == 0

    def test_null_balance_accepted(self, client):
        """Test that a null balance counts as zero for the events budget."""
        response = client.post("/context", params={"userId": "u1"}, json={"finance": {"totalBalance": None}})

        assert response.status_code == 200
        assert response.json()["preferences"]["events"]["budgetRange"]["max"] == 0

    def test_idempotent_get(self, client):
        """Test that repeated GETs return the same document."""
        client.post("/context", params={"userId": "u1"}, json={"food": {"allergies": ["peanut"]}})

        first = client.get("/context", params={"userId": "u1"}).json()
        second = client.get("/context", params={"userId": "u1"}).json()
        assert first == second

    def test_health_expiry_on_get(self, client, api_clock):
        """Test that an illness disappears once it expires."""
        client.post("/context", params={"userId": "u1"}, json={"health": sick_health()})
        assert client.get("/context", params={"userId": "u1"}).json()["health"]["currentCondition"] == "sick"

        api_clock.advance(days=7, seconds=1)

        health = client.get("/context", params={"userId": "u1"}).json()["health"]
        assert health["activeIllness"] is None
        assert health["currentCondition"] == "healthy"

    def test_store_failure_on_get(self, client, api_storage):
        """Test 500 with a machine-readable body when the store is down."""
        api_storage.fail_reads = True
        response = client.get("/context", params={"userId": "u1"})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to fetch user context"

    def test_store_failure_on_post(self, client, api_storage):
        """Test 500 on a failed write."""
        api_storage.fail_writes = True
        response = client.post("/context", params={"userId": "u1"}, json={"finance": {"totalBalance": 1}})

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to update user context"


class TestEventsEndpoints:
    """Tests for /events endpoints."""

    def test_check_budget(self, client):
        """Test the affordability check for the authenticated user."""
        client.post("/context", params={"userId": "user-1"}, json={"finance": {"totalBalance": 5000}})

        response = client.post("/events/check-budget", headers=AUTH, json={"eventCost": 1000})

        assert response.status_code == 200
        body = response.json()
        assert body["canAfford"] is True
        assert body["eventBudget"] == 1000
        assert body["budgetPercentage"] == 20.0

    def test_check_budget_requires_cost(self, client):
        """Test validation of the request body."""
        response = client.post("/events/check-budget", headers=AUTH, json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_attended(self, client):
        """Test recording an attended event."""
        client.post("/context", params={"userId": "user-1"}, json={"finance": {"totalBalance": 1000}})

        response = client.post("/events/attended", headers=AUTH, json={"name": "Concert", "cost": 400, "venue": "YMCA"})

        assert response.json() == {"success": True, "newBalance": 600}
        history = client.get("/context", params={"userId": "user-1"}).json()["eventsHistory"]
        assert history["attended"][0]["venue"] == "YMCA"

    def test_attended_negative_cost(self, client):
        """Test that a negative cost is a 400 and does not raise the balance."""
        client.post("/context", params={"userId": "user-1"}, json={"finance": {"totalBalance": 1000}})

        response = client.post("/events/attended", headers=AUTH, json={"name": "Refund", "cost": -500})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
        context = client.get("/context", params={"userId": "user-1"}).json()
        assert context["finance"]["totalBalance"] == 1000
        assert context["eventsHistory"]["attended"] == []

    def test_recommendations(self, client):
        """Test filters from query parameters and context defaults."""
        response = client.get(
            "/events/recommendations",
            headers=AUTH,
            params={"interests": "comedy, music", "maxPrice": 500},
        )

        body = response.json()
        assert body["filters"] == {"interests": ["comedy", "music"], "maxPrice": 500, "location": "Chennai"}

    def test_requires_auth(self, client, api_storage):
        """Test 401 without a session, before any store access."""
        api_storage.fail_reads = True

        response = client.post("/events/check-budget", json={"eventCost": 1})

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"


class TestBotEndpoints:
    """Tests for /bots endpoints."""

    def test_health_bot(self, client):
        """Test a health turn end to end."""
        response = client.post(
            "/bots/health",
            headers=AUTH,
            json={"message": "I have a fever", "chatHistory": [{"role": "user", "parts": [{"text": "hi"}]}]},
        )

        assert response.status_code == 200
        assert response.json()["healthContext"]["activeIllness"] == "reported_symptoms"
        context = client.get("/context", params={"userId": "user-1"}).json()
        assert context["health"]["currentCondition"] == "sick"

    def test_health_bot_generation_failure(self, client, api_generator):
        """Test 500 with the bot's error label."""
        api_generator.fail("quota exceeded")

        response = client.post("/bots/health", headers=AUTH, json={"message": "hello"})

        assert response.status_code == 500
        assert response.json() == {"error": "Error sending message", "details": "quota exceeded"}

    def test_finance_bot(self, client):
        """Test a finance turn end to end."""
        response = client.post("/bots/finance", headers=AUTH, json={"userMessage": "My salary is 20000"})

        assert response.status_code == 200
        assert response.json()["financialContext"]["currentBalance"] == 20000

    def test_finance_bot_requires_message(self, client):
        """Test 400 for a missing userMessage."""
        response = client.post("/bots/finance", headers=AUTH, json={})

        assert response.status_code == 400
        assert response.json()["details"] == "Valid user message is required"

    def test_events_bot(self, client):
        """Test an events turn end to end."""
        response = client.post("/bots/events", headers=AUTH, json={"message": "Weekend plans?"})

        assert response.status_code == 200
        assert response.json()["contextUsed"]["location"] == "Chennai"

    def test_recipes_bot(self, client):
        """Test a recipes turn end to end."""
        response = client.post("/bots/recipes", headers=AUTH, json={"message": "Best dosa?"})

        assert response.status_code == 200
        assert response.json()["foodContext"]["healthStatus"] == "healthy"

    def test_weather_bot_fallback(self, client, api_generator):
        """Test that the weather bot answers 200 even when generation fails."""
        api_generator.fail()

        response = client.post(
            "/bots/weather",
            headers=AUTH,
            json={"weatherData": {"current": {"temperature2m": 12}}, "longitude": 80.2, "latitude": 13.0},
        )

        assert response.status_code == 200
        assert response.json()["message"][0]["Cloth Name"] == "Thermal Winter Jacket"

    def test_weather_bot_missing_data(self, client):
        """Test 400 for missing coordinates."""
        response = client.post("/bots/weather", headers=AUTH, json={"weatherData": {"current": {}}})
        assert response.status_code == 400

    def test_products_bot(self, client, api_generator):
        """Test a products request with a single image part."""
        client.post("/context", params={"userId": "user-1"}, json={"finance": {"totalBalance": 8000}})
        api_generator.queue('[{"name": "Cane Chair", "price": "₹2,400", "budgetCategory": "mid-range"}]')
        image = {"inlineData": {"mimeType": "image/png", "data": "aGVhcnRo"}}

        response = client.post("/bots/products", headers=AUTH, json={"prompt": "Balcony ideas", "imageParts": image})

        assert response.status_code == 200
        body = response.json()
        assert body["products"][0]["name"] == "Cane Chair"
        assert body["recommendations"]["budgetSummary"]["budgetAdvice"].startswith("💰")
        assert api_generator.requests[0].attachments == [image]
        preferences = client.get("/context", params={"userId": "user-1"}).json()["preferences"]
        assert preferences["productInterests"] == ["mid-range"]

    def test_products_bot_requires_prompt(self, client):
        """Test 400 without a prompt."""
        response = client.post("/bots/products", headers=AUTH, json={"imageParts": []})

        assert response.status_code == 400
        assert response.json()["details"] == "Valid product prompt is required"

    def test_products_bot_generation_failure(self, client, api_generator):
        """Test 500 with the products error label."""
        api_generator.fail("quota exceeded")

        response = client.post("/bots/products", headers=AUTH, json={"prompt": "Ideas"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to analyze product image", "details": "quota exceeded"}

    def test_health_card_bot_fallback(self, client, api_generator):
        """Test that the health card answers 200 even when generation fails."""
        api_generator.fail()

        response = client.post(
            "/bots/health-card",
            headers=AUTH,
            json={"weatherData": {"current": {"temperature2m": 36}}, "longitude": 80.2, "latitude": 13.0},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"]["MedicineList"][0]["Medicine Name"] == "Oral Rehydration Salts (ORS)"
        assert body["note"] == "Using fallback health recommendations due to AI service issue"

    def test_health_card_bot_missing_data(self, client):
        """Test 400 for a missing weather snapshot."""
        response = client.post("/bots/health-card", headers=AUTH, json={"longitude": 80.2, "latitude": 13.0})
        assert response.status_code == 400

    def test_bots_require_auth(self, client):
        """Test 401 for every bot without a session."""
        paths = (
            "/bots/health",
            "/bots/finance",
            "/bots/events",
            "/bots/recipes",
            "/bots/weather",
            "/bots/products",
            "/bots/health-card",
        )
        for path in paths:
            assert client.post(path, json={"message": "hi"}).status_code == 401


class TestBearerToken:
    """Tests for the optional API token."""

    @pytest.fixture
    def token_client(self, settings, api_storage, api_generator, api_clock):
        app = create_app(
            settings=settings,
            storage=api_storage,
            generator=api_generator,
            clock=api_clock,
            auth=HeaderAuthProvider(api_token="s3cret"),
        )
        with TestClient(app) as test_client:
            yield test_client

    def test_missing_token(self, token_client):
        """Test that identity headers alone are not enough."""
        response = token_client.post("/bots/events", headers=AUTH, json={"message": "hi"})
        assert response.status_code == 401

    def test_wrong_token(self, token_client):
        """Test a wrong bearer token."""
        headers = {**AUTH, "Authorization": "Bearer nope"}
        assert token_client.post("/bots/events", headers=headers, json={"message": "hi"}).status_code == 401

    def test_valid_token(self, token_client):
        """Test a correct bearer token."""
        headers = {**AUTH, "Authorization": "Bearer s3cret"}
        assert token_client.post("/bots/events", headers=headers, json={"message": "hi"}).status_code == 200

    def test_context_is_open(self, token_client):
        """Test that /context does not need the token."""
        assert token_client.get("/context", params={"userId": "u1"}).status_code == 200


class TestUnhandledErrors:
    """Tests for the catch-all error handler."""

    @pytest.fixture
    def lenient_client(self, settings, api_storage, api_generator, api_clock):
        app = create_app(settings=settings, storage=api_storage, generator=api_generator, clock=api_clock)
        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client

    def test_unexpected_error_is_json(self, lenient_client, api_generator):
        """Test that an unexpected exception still gets the error body shape."""
        api_generator.error = RuntimeError("generator crashed")

        response = lenient_client.post("/bots/events", headers=AUTH, json={"message": "hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error", "details": "generator crashed"}

    def test_service_recovers(self, lenient_client, api_generator):
        """Test that the next request after a crash is served normally."""
        api_generator.error = RuntimeError("generator crashed")
        lenient_client.post("/bots/events", headers=AUTH, json={"message": "hi"})
        api_generator.error = None

        assert lenient_client.post("/bots/events", headers=AUTH, json={"message": "hi"}).status_code == 200
