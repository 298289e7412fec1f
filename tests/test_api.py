import itertools
from types import SimpleNamespace

import pytest

from backend.app import create_app
from database.entry_store import SecretBackedEntryStore

DEMO_SECRET = "JBSWY3DPEHPK3PXP"
RFC_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


def make_client(auth_config, store):
    app = create_app(config=auth_config, store=store)
    app.config['TESTING'] = True
    return app.test_client()


@pytest.fixture
def client(auth_config, store):
    return make_client(auth_config, store)


@pytest.fixture
def frozen_time(monkeypatch):
    monkeypatch.setattr("time.time", lambda: 59.0)


def test_index(client):
    response = client.get('/')
    assert response.status_code == 200
    assert "GET /api/entries" in response.get_json()["endpoints"]


def test_create_entry(client):
    response = client.post('/api/entries', json={"name": "github", "secret": DEMO_SECRET})
    assert response.status_code == 201
    assert response.get_json() == {"id": 1, "name": "github", "digits": 6, "period": 30, "warnings": []}


@pytest.mark.parametrize(
    "body, message",
    [
        ({"name": "github"}, "Name and secret are required"),
        ({"name": "", "secret": DEMO_SECRET}, "Name and secret cannot be empty"),
        ({"name": "a", "secret": DEMO_SECRET, "digits": "8"}, "'digits' must be an integer"),
        ({"name": "a", "secret": DEMO_SECRET, "digits": 9}, "Digits must be between 6 and 8"),
        ({"name": "a", "secret": DEMO_SECRET, "period": 0}, "Period cannot be 0"),
        ({"name": "a", "secret": "bad!"}, "Secret contains invalid characters"),
    ],
)
def test_create_entry_rejected(client, store, body, message):
    response = client.post('/api/entries', json=body)
    assert response.status_code == 400
    assert response.get_json()["error"] == message
    assert store.entries == []


def test_create_without_json_body(client):
    response = client.post('/api/entries', data="name=a")
    assert response.status_code == 400


@pytest.mark.parametrize("body", [["name", "secret"], "github", 42])
def test_create_with_non_object_body(client, store, body):
    response = client.post('/api/entries', json=body)
    assert response.status_code == 400
    assert response.get_json()["error"] == "Request body must be a JSON object"
    assert store.entries == []


def test_edit_with_non_object_body(client, store):
    store.add("github", DEMO_SECRET)
    response = client.patch('/api/entries/github', json=[{"name": "x"}])
    assert response.status_code == 400
    assert store.entries[0].name == "github"


def test_create_reports_store_warning(auth_config, backed_store, fake_storage):
    fake_storage.fail_store = True
    client = make_client(auth_config, backed_store)
    for name in ("a", "b"):
        response = client.post('/api/entries', json={"name": name, "secret": DEMO_SECRET})
        assert response.status_code == 201
        assert response.get_json()["warnings"] == [f"Secret storage store failed for '{name}'"]


def test_edit_reports_store_warning(auth_config, backed_store, fake_storage):
    backed_store.add("a", DEMO_SECRET)
    fake_storage.fail_store = True
    response = make_client(auth_config, backed_store).patch('/api/entries/a', json={"name": "b"})
    assert response.status_code == 200
    assert response.get_json()["warnings"] == ["Secret storage store failed for 'b'"]


def test_list_entries(client, store, frozen_time):
    store.add("rfc", RFC_SECRET, 8)
    response = client.get('/api/entries')
    assert response.status_code == 200
    assert response.get_json() == [
        {"id": 1, "name": "rfc", "digits": 8, "period": 30, "number": 1, "code": "94287082", "remaining": 1},
    ]


def test_entry_info(client, store, frozen_time):
    store.add("rfc", RFC_SECRET, 8)
    data = client.get('/api/entries/rfc').get_json()
    assert data["secret"] == RFC_SECRET
    assert data["code"] == "94287082"


def test_entry_code(client, store, frozen_time):
    store.add("rfc", RFC_SECRET, 8)
    response = client.get('/api/entries/1/code')
    assert response.status_code == 200
    assert response.get_json() == {"id": 1, "code": "94287082", "remaining": 1}


def test_entry_code_reads_the_clock_once(client, store, monkeypatch):
    store.add("rfc", RFC_SECRET, 8)
    # the second reading would fall in the next 30s window
    readings = itertools.chain([59.0], itertools.repeat(60.0))
    monkeypatch.setattr("backend.routes.time", SimpleNamespace(time=lambda: next(readings)))
    assert client.get('/api/entries/rfc/code').get_json() == {"id": 1, "code": "94287082", "remaining": 1}


def test_entry_code_resolves_token_once(client, store, monkeypatch):
    store.add("rfc", RFC_SECRET, 8)
    calls = []
    resolve = store.resolve
    monkeypatch.setattr(store, "resolve", lambda token: calls.append(token) or resolve(token))
    assert client.get('/api/entries/rfc/code').status_code == 200
    assert calls == ["rfc"]


def test_unknown_entry_is_404(client):
    response = client.get('/api/entries/nope/code')
    assert response.status_code == 404
    assert response.get_json()["error"] == "Entry not found: nope"


def test_edit_entry(client, store):
    store.add("github", DEMO_SECRET)
    response = client.patch('/api/entries/github', json={"name": "work", "period": 60})
    assert response.status_code == 200
    assert response.get_json() == {"id": 1, "name": "work", "digits": 6, "period": 60, "warnings": []}


def test_edit_invalid(client, store):
    store.add("github", DEMO_SECRET)
    response = client.patch('/api/entries/1', json={"digits": 5})
    assert response.status_code == 400


def test_delete_entry(client, store):
    store.add("a", DEMO_SECRET)
    store.add("b", DEMO_SECRET)
    response = client.delete('/api/entries/a')
    assert response.status_code == 200
    assert response.get_json() == {
        "removed": True,
        "entry": {"id": 1, "name": "a", "digits": 6, "period": 30},
        "warnings": [],
    }
    assert [e.name for e in store.entries] == ["b"]


def test_delete_reports_backend_warnings(auth_config, backed_store, fake_storage):
    backed_store.add("a", DEMO_SECRET)
    fake_storage.fail_delete = True
    response = make_client(auth_config, backed_store).delete('/api/entries/a')
    assert response.status_code == 200
    assert response.get_json()["warnings"] == ["Secret storage delete failed for 'a'"]


def test_failed_secret_storage_is_503(auth_config, backed_store, fake_storage, db_path):
    backed_store.add("a", DEMO_SECRET)
    fake_storage.up = False
    client = make_client(auth_config, SecretBackedEntryStore.open(db_path, fake_storage))

    response = client.get('/api/entries')
    assert response.status_code == 503
    assert response.get_json()["error"] == "Secret storage failed for: a"

    # removal is still allowed
    assert client.delete('/api/entries/a').status_code == 200


def test_unavailable_secret_is_409(auth_config, backed_store, db_path):
    backed_store.add("a", DEMO_SECRET)
    client = make_client(auth_config, SecretBackedEntryStore.open(db_path))
    response = client.get('/api/entries/a/code')
    assert response.status_code == 409
