import pytest


def test_create_recommendation(client, db_session):
    from app.models.recommendation import Recommendation, RecommendationStatus

    resp = client.post("/api/recommendations", json={
        "name": "  Nimal  ",
        "email": " Nimal@Example.COM ",
        "message": "Please add more Tamil medium past papers.",
    })
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["message"] == "Thank you for your recommendation!"
    assert body["data"]["name"] == "Nimal"
    assert body["data"]["email"] == "nimal@example.com"
    assert body["data"]["status"] == "pending"

    row = db_session.query(Recommendation).one()
    assert row.status == RecommendationStatus.PENDING


@pytest.mark.parametrize("payload", [
    {"name": "   ", "email": "a@b.co", "message": "A long enough message"},
    {"name": "Kamal", "email": "not-an-email", "message": "A long enough message"},
    {"name": "Kamal", "email": "a@b.co", "message": "too short"},
    {"name": "Kamal", "email": "a@b.co", "message": "x" * 2001},
    {"name": "K" * 101, "email": "a@b.co", "message": "A long enough message"},
])
def test_invalid_recommendation(client, payload):
    resp = client.post("/api/recommendations", json=payload)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid parameters"
