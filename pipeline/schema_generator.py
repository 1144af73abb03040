"""
Generación de schemas MongoDB a partir de las tablas extraídas.

Por cada artefacto STAGING_DIR/<tabla>.json se genera
SCHEMAS_DIR/<Modelo>.json con:

    {
        "model": "Orderitems",
        "collection": "Orderitems",
        "source_table": "order_items",
        "fields": {
            "qty": {"type": "int", "required": true, "default": "1"}
        },
        "validator": {
            "$jsonSchema": {
                "bsonType": "object",
                "required": ["qty"],
                "properties": {"qty": {"bsonType": ["int", "long"]}}
            }
        }
    }

'validator' se registra tal cual con create_collection(validator=...).

DECISIONES DE DISEÑO:
- Precondición leída del DIRECTORIO (no de memoria): sin artefactos →
  EmptyStagingError y no se escribe ni elimina nada
- Colisiones de nombre de modelo → NameCollisionError antes de escribir
- Columnas: snapshot del staging si existe; si no, se re-describe la
  tabla (posible drift entre extracción y generación, aceptado)
- Tipo sin mapeo: según UNMAPPED_TYPE_POLICY ('abort' | 'skip')
"""

import json
from pathlib import Path

from .errors import EmptyStagingError, NameCollisionError, UnmappedTypeError
from .models import ARTIFACT_EXTENSION
from .naming import find_collisions, normalize_model_name, schema_file_name, table_from_artifact
from .type_mapper import json_schema_property, map_column


class SchemaGenerator:
    """
    Genera un schema por artefacto de staging.

    Attributes:
        introspector (SchemaIntrospector): Para describir tablas sin snapshot
        staging_dir (Path): Directorio de artefactos (entrada)
        schemas_dir (Path): Directorio de schemas (salida)
        column_snapshot (dict): {tabla: [ColumnDefinition]} tomado en staging
        unmapped_type_policy (str): 'abort' o 'skip'
        model_mapping (dict): {artefacto: modelo}, se reconstruye en cada ejecución
        skipped_tables (dict): {tabla: UnmappedTypeError} con policy 'skip'
    """

    def __init__(
        self,
        introspector,
        staging_dir,
        schemas_dir,
        column_snapshot=None,
        unmapped_type_policy="abort",
    ):
        self.introspector = introspector
        self.staging_dir = Path(staging_dir)
        self.schemas_dir = Path(schemas_dir)
        self.column_snapshot = column_snapshot or {}
        self.unmapped_type_policy = unmapped_type_policy
        self.model_mapping = {}
        self.skipped_tables = {}

    def staged_artifacts(self) -> list:
        """Nombres de artefactos presentes en staging, ordenados."""
        if not self.staging_dir.is_dir():
            return []
        return sorted(
            path.name
            for path in self.staging_dir.glob(f"*{ARTIFACT_EXTENSION}")
            if path.is_file()
        )

    def generate_schemas(self) -> dict:
        """
        Genera los schemas de todos los artefactos de staging.

        Returns:
            dict: {artefacto: modelo} (ej: {'users.json': 'Users'})

        Raises:
            EmptyStagingError: Si staging no tiene artefactos
            NameCollisionError: Si dos tablas producen el mismo modelo
            UnmappedTypeError: Tipo sin mapeo con policy 'abort'
        """
        artifacts = self.staged_artifacts()
        if not artifacts:
            raise EmptyStagingError(
                f"No hay artefactos en '{self.staging_dir}': ejecutar stage() primero",
                context={"staging_dir": str(self.staging_dir)},
            )

        tables = [table_from_artifact(name) for name in artifacts]
        collisions = find_collisions(tables)
        if collisions:
            detail = "; ".join(
                f"{model} ← {', '.join(sources)}" for model, sources in collisions.items()
            )
            raise NameCollisionError(
                f"Tablas distintas producen el mismo modelo: {detail}",
                context={"collisions": collisions},
            )

        self.model_mapping = {}
        self.skipped_tables = {}
        self.clear_schemas_dir()

        for artifact, table in zip(artifacts, tables):
            model_name = normalize_model_name(table)

            try:
                definition = self.build_definition(table, model_name)
            except UnmappedTypeError as e:
                if self.unmapped_type_policy != "skip":
                    raise
                self.skipped_tables[table] = e
                print(f"   ⚠️  {table}: omitida ({e.message})")
                continue

            self.write_definition(model_name, definition)
            self.model_mapping[artifact] = model_name
            print(f"   📐 {artifact} → {schema_file_name(model_name)}")

        print(f"✅ {len(self.model_mapping)} schemas generados en '{self.schemas_dir}'")
        return dict(self.model_mapping)

    def clear_schemas_dir(self):
        """Elimina schemas generados previamente; crea el directorio si no existe."""
        if not self.schemas_dir.exists():
            self.schemas_dir.mkdir(parents=True)
            return

        for path in self.schemas_dir.iterdir():
            if path.is_file():
                path.unlink()

    def columns_for(self, table: str) -> list:
        """Columnas de la tabla: snapshot del staging o consulta al origen."""
        if table in self.column_snapshot:
            return self.column_snapshot[table]
        return self.introspector.describe_table(table)

    def build_definition(self, table: str, model_name: str) -> dict:
        """
        Construye la definición de schema de una tabla.

        Raises:
            UnmappedTypeError: Con tabla y columna en el contexto
        """
        fields = {}
        properties = {}
        required = []

        for column in self.columns_for(table):
            try:
                descriptor = map_column(column.raw_type, column.nullable, column.default)
            except UnmappedTypeError as e:
                e.context.update({"table": table, "column": column.name})
                raise

            fields[column.name] = descriptor.to_dict()
            properties[column.name] = json_schema_property(descriptor)
            if descriptor.required:
                required.append(column.name)

        json_schema = {"bsonType": "object", "properties": properties}
        if required:
            json_schema["required"] = required

        return {
            "model": model_name,
            "collection": model_name,
            "source_table": table,
            "fields": fields,
            "validator": {"$jsonSchema": json_schema},
        }

    def write_definition(self, model_name: str, definition: dict) -> Path:
        """Escribe SCHEMAS_DIR/<Modelo>.json."""
        path = self.schemas_dir / schema_file_name(model_name)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(definition, f, indent=2, ensure_ascii=False)
            f.write("\n")
        return path
