import pytest

from rnaforce.api import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_parse_structure_endpoint(client):
    response = client.post("/parse_structure", json={"sequence": "GGGGAAAACCCC", "structure": "((((....))))"})
    assert response.status_code == 200
    data = response.get_json()
    assert len(data["nodes"]) == 12
    pairs = sorted((e["source"], e["target"]) for e in data["edges"] if e["type"] == "pair")
    assert pairs == [(0, 11), (1, 10), (2, 9), (3, 8)]


def test_parse_structure_without_structure_is_unpaired(client):
    response = client.post("/parse_structure", json={"sequence": "ACGU"})
    assert response.status_code == 200
    assert all(e["type"] == "backbone" for e in response.get_json()["edges"])


@pytest.mark.parametrize("payload", [None, {}, {"sequence": 5}, {"sequence": "AC", "structure": ["("]}])
def test_parse_structure_bad_payload(client, payload):
    response = client.post("/parse_structure", json=payload)
    assert response.status_code == 400
    assert "error" in response.get_json()


def test_layout_endpoint(client):
    response = client.post("/layout", json={
        "sequence": "GGGGAAAAAAACCCCUUUUUUU",
        "structure": "((((...[[[[))))...]]]]",
        "params": {"pairDist": 30, "charge": -200},
        "pinned": {"0": [100, 300]},
        "max_ticks": 100,
    })
    assert response.status_code == 200
    data = response.get_json()
    assert data["params"]["pair_distance"] == 30
    assert data["params"]["charge_strength"] == -200
    assert (data["nodes"][0]["x"], data["nodes"][0]["y"]) == (100, 300)
    assert data["log"]


def test_layout_endpoint_rejects_bad_params(client):
    response = client.post("/layout", json={"sequence": "GGGAAACCC", "params": {"node_style": "square"}})
    assert response.status_code == 400
    assert "node style" in response.get_json()["error"]


def test_layout_endpoint_rejects_bad_pins(client):
    response = client.post("/layout", json={"sequence": "GGGAAACCC", "pinned": {"a": [1, 2]}})
    assert response.status_code == 400


def test_presets_endpoint(client):
    response = client.get("/presets")
    assert response.status_code == 200
    assert set(response.get_json()) == {"hairpin", "trna", "pseudoknot"}


def test_api_client_round_trip(client, monkeypatch):
    from rnaforce import api_client

    class Response:
        def __init__(self, flask_response):
            self._response = flask_response

        def raise_for_status(self):
            assert self._response.status_code < 400

        def json(self):
            return self._response.get_json()

    def fake_post(url, json=None, timeout=None):
        return Response(client.post(url.replace(api_client.url, "/"), json=json))

    monkeypatch.setattr(api_client.requests, "post", fake_post)
    parsed = api_client.request_parse()
    assert len(parsed["nodes"]) == 22
    laid_out = api_client.request_layout()
    assert laid_out["params"]["pair_distance"] == 30


def test_layout_endpoint_rejects_too_long_sequence(client):
    from rnaforce.layout import MAX_LAYOUT_LENGTH

    response = client.post("/layout", json={"sequence": "A" * (MAX_LAYOUT_LENGTH + 1)})
    assert response.status_code == 400
    assert "at most" in response.get_json()["error"]
