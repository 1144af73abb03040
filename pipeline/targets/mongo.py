"""
Destino MongoDB implementado con pymongo.

- register_schema: create_collection(validator=...) o collMod si ya existe
- insert_documents: insert_many(ordered=True); BulkWriteError con writeErrors →
  BatchWriteError(index); un error solo de write concern se propaga tal cual
- drop_collection: Database.drop_collection
"""

from pymongo.errors import BulkWriteError

from .base import BaseTarget, BatchWriteError


class MongoTarget(BaseTarget):
    """Destino sobre una pymongo.database.Database."""

    def __init__(self, database):
        super().__init__(database)

    def register_schema(self, collection, validator):
        if collection in self.database.list_collection_names():
            self.database.command("collMod", collection, validator=validator)
        else:
            self.database.create_collection(collection, validator=validator)

    def insert_documents(self, collection, documents):
        if not documents:
            return 0

        try:
            result = self.database[collection].insert_many(documents, ordered=True)
        except BulkWriteError as e:
            write_errors = e.details.get("writeErrors") or []
            # Sin writeErrors (solo write concern) no hay registro al que atribuirlo
            if not write_errors:
                raise
            first = write_errors[0]
            raise BatchWriteError(first["index"], first.get("errmsg", e)) from e

        return len(result.inserted_ids)

    def drop_collection(self, collection):
        self.database.drop_collection(collection)
