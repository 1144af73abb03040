"""
Tests de generación de schemas (pipeline/schema_generator.py).

Verifica que:
- Sin artefactos en staging → EmptyStagingError sin escribir nada
- Se genera un schema por artefacto con el nombre de modelo normalizado
- Las colisiones de nombre se rechazan antes de escribir
- UNMAPPED_TYPE_POLICY 'abort' y 'skip' se comportan según lo documentado
- El snapshot del staging tiene prioridad sobre re-describir la tabla
"""

import sys
import os
import json
import tempfile
from pathlib import Path

# === RESOLUCIÓN DE PATH ===
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pipeline.errors import EmptyStagingError, NameCollisionError, UnmappedTypeError
from pipeline.introspector import SchemaIntrospector
from pipeline.models import ColumnDefinition, NOW_EXPRESSION
from pipeline.schema_generator import SchemaGenerator
from pipeline.stager import Stager
from tests.helpers import FakeSource, column, run_test_functions


def _stage(source, staging, tables=None):
    """Ejecuta el staging real sobre el origen en memoria."""
    Stager(source, staging).stage_all(tables or tuple(sorted(source.tables)))


def _read(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def test_empty_staging_fails_without_writing():
    """Generar sin artefactos lanza EmptyStagingError y no toca SCHEMAS_DIR."""
    print("\n=== TEST 1: Staging vacío ===")

    with tempfile.TemporaryDirectory() as tmp:
        staging = Path(tmp) / "data-files"
        schemas = Path(tmp) / "mongo-models"
        staging.mkdir()
        schemas.mkdir()
        (schemas / "Previous.json").write_text("{}", encoding="utf-8")

        generator = SchemaGenerator(SchemaIntrospector(FakeSource()), staging, schemas)
        try:
            generator.generate_schemas()
            assert False, "Debería lanzar EmptyStagingError"
        except EmptyStagingError:
            pass

        assert [p.name for p in schemas.iterdir()] == ["Previous.json"]
        print("   ✅ EmptyStagingError, schemas previos intactos")


def test_missing_staging_dir():
    """Un directorio de staging inexistente equivale a staging vacío."""
    print("\n=== TEST 2: Staging inexistente ===")

    with tempfile.TemporaryDirectory() as tmp:
        schemas = Path(tmp) / "mongo-models"
        generator = SchemaGenerator(
            SchemaIntrospector(FakeSource()), Path(tmp) / "missing", schemas
        )
        try:
            generator.generate_schemas()
            assert False, "Debería lanzar EmptyStagingError"
        except EmptyStagingError:
            pass
        assert not schemas.exists()
        print("   ✅ EmptyStagingError")


def test_one_schema_per_artifact():
    """Un schema por artefacto; mapping artefacto → modelo."""
    print("\n=== TEST 3: Un schema por artefacto ===")

    source = FakeSource()
    with tempfile.TemporaryDirectory() as tmp:
        staging = Path(tmp) / "data-files"
        schemas = Path(tmp) / "mongo-models"
        _stage(source, staging)

        mapping = SchemaGenerator(SchemaIntrospector(source), staging, schemas).generate_schemas()

        assert mapping == {"order_items.json": "Orderitems", "users.json": "Users"}
        assert sorted(p.name for p in schemas.iterdir()) == ["Orderitems.json", "Users.json"]
        print(f"   ✅ {mapping}")


def test_schema_definition_contents():
    """El schema contiene descriptores y el validador $jsonSchema."""
    print("\n=== TEST 4: Contenido del schema ===")

    source = FakeSource()
    with tempfile.TemporaryDirectory() as tmp:
        staging = Path(tmp) / "data-files"
        schemas = Path(tmp) / "mongo-models"
        _stage(source, staging)
        SchemaGenerator(SchemaIntrospector(source), staging, schemas).generate_schemas()

        users = _read(schemas / "Users.json")
        assert users["model"] == users["collection"] == "Users"
        assert users["source_table"] == "users"
        assert users["fields"] == {
            "id": {"type": "int", "required": True},
            "email": {"type": "string", "required": False},
        }
        json_schema = users["validator"]["$jsonSchema"]
        assert json_schema["required"] == ["id"]
        assert json_schema["properties"]["email"] == {"bsonType": ["string", "null"]}

        items = _read(schemas / "Orderitems.json")
        assert items["fields"]["qty"] == {"type": "int", "required": True, "default": "1"}
        print("   ✅ Users y Orderitems correctos")


def test_previous_schemas_replaced():
    """Los schemas de ejecuciones anteriores se eliminan."""
    print("\n=== TEST 5: Reemplazo de schemas ===")

    source = FakeSource()
    with tempfile.TemporaryDirectory() as tmp:
        staging = Path(tmp) / "data-files"
        schemas = Path(tmp) / "mongo-models"
        schemas.mkdir()
        (schemas / "Obsolete.json").write_text("{}", encoding="utf-8")
        _stage(source, staging)

        SchemaGenerator(SchemaIntrospector(source), staging, schemas).generate_schemas()

        assert not (schemas / "Obsolete.json").exists()
        print("   ✅ Obsolete.json eliminado")


def test_name_collision_rejected():
    """'order_items' y 'orderitems' → NameCollisionError antes de escribir."""
    print("\n=== TEST 6: Colisión de nombres ===")

    tables = {
        "order_items": {"columns": [column("qty", "int")], "rows": []},
        "orderitems": {"columns": [column("qty", "int")], "rows": []},
    }
    source = FakeSource(tables)
    with tempfile.TemporaryDirectory() as tmp:
        staging = Path(tmp) / "data-files"
        schemas = Path(tmp) / "mongo-models"
        _stage(source, staging)

        try:
            SchemaGenerator(SchemaIntrospector(source), staging, schemas).generate_schemas()
            assert False, "Debería lanzar NameCollisionError"
        except NameCollisionError as e:
            assert e.context["collisions"] == {"Orderitems": ["order_items", "orderitems"]}
            print(f"   ✅ {e.message}")

        assert not schemas.exists()


def _unmapped_source():
    return FakeSource(
        {
            "places": {"columns": [column("geom", "geometry(Point,4326)")], "rows": []},
            "users": {"columns": [column("id", "int", nullable=False)], "rows": []},
        }
    )


def test_unmapped_type_aborts():
    """Policy 'abort': UnmappedTypeError con tabla y columna."""
    print("\n=== TEST 7: Tipo sin mapeo (abort) ===")

    source = _unmapped_source()
    with tempfile.TemporaryDirectory() as tmp:
        staging = Path(tmp) / "data-files"
        _stage(source, staging)
        generator = SchemaGenerator(
            SchemaIntrospector(source), staging, Path(tmp) / "mongo-models",
            unmapped_type_policy="abort",
        )
        try:
            generator.generate_schemas()
            assert False, "Debería lanzar UnmappedTypeError"
        except UnmappedTypeError as e:
            assert e.table == "places"
            assert e.context["column"] == "geom"
            print(f"   ✅ {e}")


def test_unmapped_type_skips_table():
    """Policy 'skip': la tabla se omite con advertencia, el resto se genera."""
    print("\n=== TEST 8: Tipo sin mapeo (skip) ===")

    source = _unmapped_source()
    with tempfile.TemporaryDirectory() as tmp:
        staging = Path(tmp) / "data-files"
        schemas = Path(tmp) / "mongo-models"
        _stage(source, staging)
        generator = SchemaGenerator(
            SchemaIntrospector(source), staging, schemas, unmapped_type_policy="skip"
        )
        mapping = generator.generate_schemas()

        assert mapping == {"users.json": "Users"}
        assert list(generator.skipped_tables) == ["places"]
        assert [p.name for p in schemas.iterdir()] == ["Users.json"]
        print(f"   ✅ Omitida: {list(generator.skipped_tables)}")


def test_snapshot_preferred_over_describe():
    """Con snapshot no se re-describe la tabla (sin drift)."""
    print("\n=== TEST 9: Snapshot de columnas ===")

    source = FakeSource()
    snapshot = {
        "users": [ColumnDefinition("created_at", "timestamp", False, "CURRENT_TIMESTAMP")],
        "order_items": [ColumnDefinition("qty", "int", False, "1")],
    }
    with tempfile.TemporaryDirectory() as tmp:
        staging = Path(tmp) / "data-files"
        schemas = Path(tmp) / "mongo-models"
        _stage(source, staging)
        source.calls.clear()

        SchemaGenerator(
            SchemaIntrospector(source), staging, schemas, column_snapshot=snapshot
        ).generate_schemas()

        assert not [call for call in source.calls if call[0] == "describe"]
        users = _read(schemas / "Users.json")
        assert users["fields"]["created_at"]["default"] == NOW_EXPRESSION
        print("   ✅ Sin consultas describe, CURRENT_TIMESTAMP → $$NOW")


def test_without_snapshot_tables_are_described():
    """Sin snapshot (otro proceso), las columnas se consultan al origen."""
    print("\n=== TEST 10: Re-describe sin snapshot ===")

    source = FakeSource()
    with tempfile.TemporaryDirectory() as tmp:
        staging = Path(tmp) / "data-files"
        _stage(source, staging)
        source.calls.clear()

        SchemaGenerator(
            SchemaIntrospector(source), staging, Path(tmp) / "mongo-models"
        ).generate_schemas()

        described = sorted(call[1] for call in source.calls if call[0] == "describe")
        assert described == ["order_items", "users"]
        print(f"   ✅ Descritas: {described}")


# === EJECUCIÓN ===

if __name__ == "__main__":
    tests = [
        test_empty_staging_fails_without_writing,
        test_missing_staging_dir,
        test_one_schema_per_artifact,
        test_schema_definition_contents,
        test_previous_schemas_replaced,
        test_name_collision_rejected,
        test_unmapped_type_aborts,
        test_unmapped_type_skips_table,
        test_snapshot_preferred_over_describe,
        test_without_snapshot_tables_are_described,
    ]
    success = run_test_functions("TESTS DE GENERACIÓN DE SCHEMAS", tests)
    sys.exit(0 if success else 1)
