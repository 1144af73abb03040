"""
Carga de artefactos de staging en colecciones MongoDB.

Por cada entrada {artefacto: modelo} del mapping generado:
1. Lee SCHEMAS_DIR/<Modelo>.json y registra su validador en el destino
2. Lee STAGING_DIR/<tabla>.json con bson.json_util (conserva tipos)
3. Construye cada documento aplicando defaults del schema a los campos
   ausentes ($$NOW → datetime UTC del momento de escritura). Los NULL del
   origen se conservan tal cual
4. Inserta en la colección <Modelo> por lotes de batch_size

IMPORTANTE: La carga NO es idempotente. Re-ejecutar sobre una colección ya
cargada duplica documentos (usar reset_target.py antes de re-cargar).

Política de errores por registro (LOAD_ERROR_POLICY):
- abort: LoadError en el primer registro fallido (tabla + row_index)
- skip: se registra en load_failures y se continúa
Errores que no son de un registro (schema ausente, artefacto ilegible,
conexión) siempre abortan.
"""

import datetime
import json
from pathlib import Path

from bson import json_util

from .errors import LoadError
from .models import FieldDescriptor
from .naming import schema_file_name, table_from_artifact
from .targets.base import BatchWriteError
from .type_mapper import resolve_default


class Loader:
    """
    Escribe los artefactos de staging en el destino.

    Attributes:
        target (BaseTarget): Destino documental
        staging_dir (Path): Directorio de artefactos
        schemas_dir (Path): Directorio de schemas generados
        load_error_policy (str): 'abort' o 'skip'
        batch_size (int): Documentos por insert
        load_failures (list): Registros fallidos con policy 'skip'
    """

    def __init__(
        self,
        target,
        staging_dir,
        schemas_dir,
        load_error_policy="abort",
        batch_size=2000,
    ):
        self.target = target
        self.staging_dir = Path(staging_dir)
        self.schemas_dir = Path(schemas_dir)
        self.load_error_policy = load_error_policy
        self.batch_size = max(1, int(batch_size))
        self.load_failures = []

    def load_all(self, mapping: dict) -> dict:
        """
        Carga todos los artefactos del mapping.

        Args:
            mapping: {artefacto: modelo} retornado por generate_schemas()

        Returns:
            dict: {colección: documentos insertados}

        Raises:
            LoadError: Según la política configurada
        """
        self.load_failures = []
        loaded = {}

        for artifact, model_name in mapping.items():
            loaded[model_name] = self.load_artifact(artifact, model_name)

        total = sum(loaded.values())
        print(f"✅ {total:,} documentos cargados en {len(loaded)} colecciones")
        if self.load_failures:
            print(f"   ⚠️  {len(self.load_failures)} registros omitidos por error")
        return loaded

    def load_artifact(self, artifact: str, model_name: str) -> int:
        """
        Carga un artefacto en la colección de su modelo.

        Returns:
            int: Documentos insertados
        """
        table = table_from_artifact(artifact)
        schema = self.read_schema(table, model_name)
        collection = schema.get("collection", model_name)
        rows = self.read_artifact(table, artifact)

        try:
            self.target.register_schema(collection, schema["validator"])
        except Exception as e:
            raise LoadError(
                f"No se pudo registrar el schema de '{collection}'",
                context={"table": table, "collection": collection},
                original_exception=e,
            )

        fields = {
            name: FieldDescriptor.from_dict(data)
            for name, data in schema.get("fields", {}).items()
        }

        inserted = 0
        pending = []
        for row_index, row in enumerate(rows):
            try:
                document = self.build_document(row, fields)
            except ValueError as e:
                self._handle_failure(table, collection, row_index, e)
                continue

            pending.append((row_index, document))
            if len(pending) >= self.batch_size:
                inserted += self._flush(table, collection, pending)
                pending = []

        inserted += self._flush(table, collection, pending)
        print(f"   📥 {table} → {collection}: {inserted:,}/{len(rows):,} documentos")
        return inserted

    def read_schema(self, table: str, model_name: str) -> dict:
        """Lee SCHEMAS_DIR/<Modelo>.json."""
        path = self.schemas_dir / schema_file_name(model_name)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise LoadError(
                f"No se pudo leer el schema '{path.name}'",
                context={"table": table, "collection": model_name},
                original_exception=e,
            )

    def read_artifact(self, table: str, artifact: str) -> list:
        """Lee y deserializa un artefacto de staging."""
        path = self.staging_dir / artifact
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json_util.loads(f.read())
        except (OSError, ValueError) as e:
            raise LoadError(
                f"No se pudo leer el artefacto '{artifact}'",
                context={"table": table},
                original_exception=e,
            )

    @staticmethod
    def build_document(row: dict, fields: dict, now=None) -> dict:
        """
        Construye el documento a insertar desde un registro.

        - Solo los campos ausentes del registro toman el default del campo;
          un NULL explícito del origen se conserva
        - Un campo requerido que sigue sin valor es un error del registro

        Args:
            row: Registro deserializado del artefacto
            fields: {campo: FieldDescriptor}
            now: Momento de escritura (por defecto, ahora en UTC)

        Raises:
            ValueError: Si falta un campo requerido
        """
        if now is None:
            now = datetime.datetime.now(datetime.timezone.utc)

        document = dict(row)
        for name, descriptor in fields.items():
            if name not in document and descriptor.default is not None:
                document[name] = resolve_default(descriptor, now)

            if descriptor.required and document.get(name) is None:
                raise ValueError(f"Campo requerido '{name}' sin valor")

        return document

    def _flush(self, table, collection, pending) -> int:
        """Inserta los documentos pendientes; aplica la política por registro."""
        inserted = 0
        while pending:
            try:
                inserted += self.target.insert_documents(
                    collection, [document for _, document in pending]
                )
                break
            except BatchWriteError as e:
                inserted += e.index
                row_index = pending[e.index][0]
                self._handle_failure(table, collection, row_index, e)
                pending = pending[e.index + 1 :]
            except Exception as e:
                raise LoadError(
                    f"Falló la escritura en '{collection}'",
                    context={
                        "table": table,
                        "collection": collection,
                        "batch_start": pending[0][0],
                        "batch_size": len(pending),
                    },
                    original_exception=e,
                )
        return inserted

    def _handle_failure(self, table, collection, row_index, error):
        """Aborta o registra el fallo de un registro según la política."""
        context = {"table": table, "collection": collection, "row_index": row_index}

        if self.load_error_policy != "skip":
            raise LoadError(
                f"Falló el registro {row_index} de '{table}'",
                context=context,
                original_exception=error,
            )

        self.load_failures.append(dict(context, error=str(error)))
        print(f"   ⚠️  {table}[{row_index}]: {error}")
