"""MongoDB helpers and storage adapters.

Centralizes creation of Mongo clients and the two storage interfaces the
services depend on:

- `DataCollection`: get_all / get_by_id / create / update / delete over one
  entity collection (`MongoCollection`).
- `BlobStore`: upload / delete of binary files (`GridFSBlobStore`).

Documents are addressed by a string `id` field; Mongo's `_id` never leaves
this module. Driver failures are re-raised as `AppError(DATABASE)`.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Mapping, Protocol
import uuid

import certifi
import gridfs
from gridfs.errors import NoFile
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from portal_unk.config import Settings
from portal_unk.errors import AppError, ErrorKind

log = logging.getLogger(__name__)

GRIDFS_SCHEME = "gridfs://"


def get_client(settings: Settings) -> MongoClient[dict[str, Any]]:
    """Return a configured PyMongo MongoClient for the configured URI.

    Args:
        settings: Runtime settings (URI and TLS flag).

    Returns:
        Configured MongoClient instance.
    """
    options: dict[str, Any] = {
        "serverSelectionTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "connectTimeoutMS": 30000,
    }
    if settings.mongo_tls:
        options.update(tls=True, tlsCAFile=certifi.where())
    return MongoClient(settings.mongo_uri, **options)


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient."""
    return client[db_name]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DataCollection(Protocol):
    """CRUD interface over one entity collection."""

    def get_all(self) -> list[dict[str, Any]]: ...

    def get_by_id(self, record_id: str) -> dict[str, Any] | None: ...

    def create(self, payload: Mapping[str, Any]) -> dict[str, Any]: ...

    def update(self, record_id: str, payload: Mapping[str, Any]) -> dict[str, Any]: ...

    def delete(self, record_id: str) -> dict[str, bool]: ...


class BlobStore(Protocol):
    """Binary file storage addressed by URL."""

    def upload(self, bucket: str, path: str, data: bytes) -> dict[str, str]: ...

    def delete(self, url: str) -> dict[str, bool]: ...


class MongoCollection:
    """`DataCollection` backed by a PyMongo collection.

    Args:
        collection: Target collection.
        sort_field: Field used to order `get_all` (newest first).
    """

    def __init__(self, collection: Collection[dict[str, Any]], sort_field: str = "created_at") -> None:
        self.collection = collection
        self.sort_field = sort_field

    @property
    def name(self) -> str:
        return self.collection.name

    def get_all(self) -> list[dict[str, Any]]:
        try:
            cursor = self.collection.find({}, {"_id": False}).sort(self.sort_field, -1)
            return list(cursor)
        except PyMongoError as e:
            raise AppError(f"Falha ao listar {self.name}.", ErrorKind.DATABASE, e) from e

    def get_by_id(self, record_id: str) -> dict[str, Any] | None:
        try:
            return self.collection.find_one({"id": record_id}, {"_id": False})
        except PyMongoError as e:
            raise AppError(f"Falha ao buscar {self.name} {record_id}.", ErrorKind.DATABASE, e) from e

    def create(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        doc = dict(payload)
        doc.setdefault("id", uuid.uuid4().hex)
        doc.setdefault("created_at", _now())
        doc["updated_at"] = doc["created_at"]
        try:
            self.collection.insert_one(doc)
        except PyMongoError as e:
            raise AppError(f"Falha ao criar registro em {self.name}.", ErrorKind.DATABASE, e) from e
        doc.pop("_id", None)
        log.info("Created %s %s", self.name, doc["id"])
        return doc

    def update(self, record_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        changes = {k: v for k, v in payload.items() if k not in ("id", "_id")}
        changes["updated_at"] = _now()
        try:
            updated = self.collection.find_one_and_update(
                {"id": record_id},
                {"$set": changes},
                projection={"_id": False},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise AppError(f"Falha ao atualizar {self.name} {record_id}.", ErrorKind.DATABASE, e) from e
        if updated is None:
            raise AppError(f"{self.name} {record_id} não encontrado.", ErrorKind.NOT_FOUND)
        log.info("Updated %s %s (%d fields)", self.name, record_id, len(changes))
        return updated

    def delete(self, record_id: str) -> dict[str, bool]:
        try:
            result = self.collection.delete_one({"id": record_id})
        except PyMongoError as e:
            raise AppError(f"Falha ao remover {self.name} {record_id}.", ErrorKind.DATABASE, e) from e
        return {"success": result.deleted_count > 0}


class GridFSBlobStore:
    """`BlobStore` backed by GridFS buckets in the same database.

    URLs have the form ``gridfs://<bucket>/<file id>``.
    """

    def __init__(self, db: Database[dict[str, Any]]) -> None:
        self.db = db

    def upload(self, bucket: str, path: str, data: bytes) -> dict[str, str]:
        try:
            file_id = gridfs.GridFSBucket(self.db, bucket_name=bucket).upload_from_stream(path, data)
        except PyMongoError as e:
            raise AppError(f"Falha ao enviar arquivo {path}.", ErrorKind.DATABASE, e) from e
        url = f"{GRIDFS_SCHEME}{bucket}/{file_id}"
        log.info("Uploaded %s (%d bytes) to %s", path, len(data), url)
        return {"path": path, "url": url}

    def delete(self, url: str) -> dict[str, bool]:
        if not url.startswith(GRIDFS_SCHEME):
            return {"success": False}
        bucket, _, raw_id = url[len(GRIDFS_SCHEME):].partition("/")
        try:
            gridfs.GridFSBucket(self.db, bucket_name=bucket).delete(ObjectId(raw_id))
        except (InvalidId, NoFile):
            return {"success": False}
        except PyMongoError as e:
            raise AppError(f"Falha ao remover arquivo {url}.", ErrorKind.DATABASE, e) from e
        return {"success": True}
