import asyncio
import json

import httpx
import pytest

from config import Settings
from database import RestDatastore, SqliteDatastore, create_datastore
from database_schema import DB_PATH
from exceptions import DatastoreError
from setup_db import parse_args

from conftest import SUPABASE_URL

RECORD = {
    "animal_id": "A1",
    "user_id": "U1",
    "animal_type": "dog",
    "predicted_breed": "Labrador",
    "confidence_score": 0.87,
    "image_url": "https://images.example.com/rex.jpg",
    "verification_status": "pending",
}


def log_row(record_id, breeds):
    return {
        "animal_record_id": record_id,
        "image_url": RECORD["image_url"],
        "predicted_breeds": breeds,
        "model_version": "resnet-50-v1.0",
        "processing_time_ms": 12,
    }


def test_sqlite_upsert_overwrites_same_pair(db_path, fetch_rows):
    datastore = SqliteDatastore(db_path)

    first = asyncio.run(datastore.upsert_animal_record(RECORD))
    second = asyncio.run(datastore.upsert_animal_record(dict(RECORD, predicted_breed="Beagle", confidence_score=0.4)))

    assert first["id"] == second["id"]
    rows = fetch_rows("animal_records")
    assert len(rows) == 1
    assert rows[0]["predicted_breed"] == "Beagle"
    assert rows[0]["confidence_score"] == 0.4
    assert rows[0]["verification_status"] == "pending"


def test_sqlite_upsert_distinct_pairs(db_path, fetch_rows):
    datastore = SqliteDatastore(db_path)

    a = asyncio.run(datastore.upsert_animal_record(RECORD))
    b = asyncio.run(datastore.upsert_animal_record(dict(RECORD, user_id="U2")))

    assert a["id"] != b["id"]
    assert len(fetch_rows("animal_records")) == 2


def test_sqlite_prediction_log_is_append_only(db_path, fetch_rows):
    datastore = SqliteDatastore(db_path)
    record = asyncio.run(datastore.upsert_animal_record(RECORD))
    breeds = [{"breed": "Labrador", "confidence": 0.87}]

    asyncio.run(datastore.insert_prediction_log(log_row(record["id"], breeds)))
    asyncio.run(datastore.insert_prediction_log(log_row(record["id"], breeds)))

    rows = fetch_rows("breed_predictions")
    assert len(rows) == 2
    assert json.loads(rows[0]["predicted_breeds"]) == breeds
    assert rows[0]["animal_record_id"] == record["id"]


def test_sqlite_log_without_required_column_raises(db_path):
    datastore = SqliteDatastore(db_path)
    with pytest.raises(DatastoreError):
        asyncio.run(datastore.insert_prediction_log(dict(log_row("rec", []), model_version=None)))


def make_rest_datastore(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RestDatastore(client, SUPABASE_URL + "/", "service-role-key")


def test_rest_upsert_request_shape():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json=[dict(RECORD, id="rec-1")])

    record = asyncio.run(make_rest_datastore(handler).upsert_animal_record(RECORD))

    assert record["id"] == "rec-1"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/rest/v1/animal_records"
    assert request.url.params["on_conflict"] == "animal_id,user_id"
    assert request.headers["Prefer"] == "resolution=merge-duplicates,return=representation"
    assert request.headers["apikey"] == "service-role-key"
    assert request.headers["Authorization"] == "Bearer service-role-key"
    assert json.loads(request.content) == RECORD


def test_rest_upsert_error_message():
    def handler(request):
        return httpx.Response(409, json={"message": "duplicate key value violates unique constraint"})

    with pytest.raises(DatastoreError, match="duplicate key value"):
        asyncio.run(make_rest_datastore(handler).upsert_animal_record(RECORD))


def test_rest_upsert_non_json_body_is_datastore_error():
    def handler(request):
        return httpx.Response(201, content=b"created")

    with pytest.raises(DatastoreError, match="Invalid upsert response"):
        asyncio.run(make_rest_datastore(handler).upsert_animal_record(RECORD))


def test_rest_upsert_row_without_id_is_datastore_error():
    def handler(request):
        return httpx.Response(201, json=[RECORD])

    with pytest.raises(DatastoreError, match="record id"):
        asyncio.run(make_rest_datastore(handler).upsert_animal_record(RECORD))


def test_rest_network_error_is_datastore_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DatastoreError):
        asyncio.run(make_rest_datastore(handler).upsert_animal_record(RECORD))


def test_rest_insert_prediction_log():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201)

    row = log_row("rec-1", [{"breed": "Labrador", "confidence": 0.87}])
    asyncio.run(make_rest_datastore(handler).insert_prediction_log(row))

    assert seen[0].url.path == "/rest/v1/breed_predictions"
    assert seen[0].headers["Prefer"] == "return=minimal"
    assert json.loads(seen[0].content) == row


def test_create_datastore_selects_backend(settings, http_client):
    assert isinstance(create_datastore(settings, http_client), SqliteDatastore)

    rest_settings = settings.model_copy(update={"DATASTORE_BACKEND": "rest"})
    assert isinstance(create_datastore(rest_settings, http_client), RestDatastore)

    missing = rest_settings.model_copy(update={"SUPABASE_URL": None})
    with pytest.raises(ValueError):
        create_datastore(missing, http_client)


def test_default_sqlite_path_matches_setup_script(monkeypatch):
    monkeypatch.delenv("SQLITE_PATH", raising=False)
    settings = Settings(CLASSIFIER_API_KEY="key", _env_file=None)
    assert settings.SQLITE_PATH == str(DB_PATH)
    assert parse_args([]).db_path == str(DB_PATH)
