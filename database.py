import json
import logging
import sqlite3
import uuid
from pathlib import Path
from typing import Any, Dict, Union

import httpx

from database_schema import create_database
from exceptions import DatastoreError

logger = logging.getLogger(__name__)

ANIMAL_RECORDS_TABLE = "animal_records"
PREDICTIONS_TABLE = "breed_predictions"
CONFLICT_KEY = ("animal_id", "user_id")

class RestDatastore:
    """Relational datastore reached through its PostgREST interface."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, service_key: str):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key

    def _headers(self, prefer: str) -> Dict[str, str]:
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": "application/json",
            "Prefer": prefer
        }

    def _table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    async def _post(self, table: str, row: Dict[str, Any], prefer: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.post(
                self._table_url(table),
                json=row,
                headers=self._headers(prefer),
                **kwargs
            )
        except httpx.HTTPError as e:
            raise DatastoreError(f"Datastore request failed: {str(e)}") from e

        if not response.is_success:
            raise DatastoreError(_error_message(response))
        return response

    async def upsert_animal_record(self, row: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._post(
            ANIMAL_RECORDS_TABLE,
            row,
            prefer="resolution=merge-duplicates,return=representation",
            params={"on_conflict": ",".join(CONFLICT_KEY)}
        )
        try:
            data = response.json()
        except ValueError as e:
            raise DatastoreError(f"Invalid upsert response: {str(e)}") from e

        if isinstance(data, list):
            if not data:
                raise DatastoreError("Upsert returned no rows")
            data = data[0]
        if not isinstance(data, dict) or data.get("id") is None:
            raise DatastoreError("Upsert response did not include the record id")
        return data

    async def insert_prediction_log(self, row: Dict[str, Any]) -> None:
        await self._post(PREDICTIONS_TABLE, row, prefer="return=minimal")

def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"{response.status_code} {response.reason_phrase}: {response.text}"
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return str(body)

class SqliteDatastore:
    """Local SQLite datastore with the same upsert/insert semantics."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = db_path
        create_database(db_path)

    def get_db_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    async def upsert_animal_record(self, row: Dict[str, Any]) -> Dict[str, Any]:
        try:
            conn = self.get_db_connection()
            try:
                cursor = conn.cursor()
                cursor.execute('''
                    INSERT INTO animal_records (
                        id, animal_id, user_id, animal_type, predicted_breed,
                        confidence_score, image_url, verification_status
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(animal_id, user_id) DO UPDATE SET
                        animal_type = excluded.animal_type,
                        predicted_breed = excluded.predicted_breed,
                        confidence_score = excluded.confidence_score,
                        image_url = excluded.image_url,
                        verification_status = excluded.verification_status,
                        updated_at = CURRENT_TIMESTAMP
                ''', (
                    str(uuid.uuid4()),
                    row["animal_id"],
                    row["user_id"],
                    row["animal_type"],
                    row["predicted_breed"],
                    row["confidence_score"],
                    row["image_url"],
                    row["verification_status"]
                ))
                cursor.execute('''
                    SELECT * FROM animal_records
                    WHERE animal_id = ? AND user_id = ?
                ''', (row["animal_id"], row["user_id"]))
                record = dict(cursor.fetchone())
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DatastoreError(str(e)) from e

        return record

    async def insert_prediction_log(self, row: Dict[str, Any]) -> None:
        try:
            conn = self.get_db_connection()
            try:
                conn.execute('''
                    INSERT INTO breed_predictions (
                        animal_record_id, image_url, predicted_breeds,
                        model_version, processing_time_ms
                    )
                    VALUES (?, ?, ?, ?, ?)
                ''', (
                    row["animal_record_id"],
                    row["image_url"],
                    json.dumps(row["predicted_breeds"]),
                    row["model_version"],
                    row["processing_time_ms"]
                ))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DatastoreError(str(e)) from e

def create_datastore(settings, client: httpx.AsyncClient):
    if settings.DATASTORE_BACKEND == "sqlite":
        logger.info(f"Using SQLite datastore at {settings.SQLITE_PATH}")
        return SqliteDatastore(settings.SQLITE_PATH)

    if settings.DATASTORE_BACKEND != "rest":
        raise ValueError(f"Unknown datastore backend: {settings.DATASTORE_BACKEND}")

    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required for the rest datastore")

    return RestDatastore(client, settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
