from fastapi.testclient import TestClient
from app.main import app

client = TestClient(app)


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert "error" in data
    assert "code" in data
    assert data["code"] == "HTTP_ERROR"


def test_validation_error_structure():
    # Temporary route with a typed body
    from pydantic import BaseModel

    class Item(BaseModel):
        name: str
        price: int

    @app.post("/test-validation")
    def create_item(item: Item):
        return item

    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "details" in data
    assert len(data["details"]) > 0


def test_custom_exception():
    from app.core.exceptions import ResourceNotFoundError

    @app.get("/test-custom-error")
    def trigger_custom_error():
        raise ResourceNotFoundError(message="Transaction not found")

    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "NOT_FOUND"
    assert data["error"] == "Transaction not found"


def test_reseller_rejection_carries_response_code():
    from app.core.exceptions import ResellerAPIError

    @app.get("/test-reseller-error")
    def trigger_reseller_error():
        raise ResellerAPIError("-10030", "The reseller balance is insufficient for this purchase.")

    response = client.get("/test-reseller-error")
    assert response.status_code == 502
    data = response.json()
    assert data["code"] == "RESELLER_REJECTED"
    assert data["details"] == {"response_code": "-10030"}


def test_persistence_error_hides_internal_message():
    from app.core.exceptions import PersistenceError

    @app.get("/test-persistence-error")
    def trigger_persistence_error():
        raise PersistenceError("UNIQUE constraint failed: transactions.transaction_id")

    response = client.get("/test-persistence-error")
    assert response.status_code == 500
    data = response.json()
    assert "UNIQUE" not in data["error"]
