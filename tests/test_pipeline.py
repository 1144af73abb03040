"""
Tests end-to-end del pipeline (pipeline/run.py) y de reset_target.py.

Escenario: origen con dos tablas base
    users        (id int NOT NULL, email varchar(255) NULL DEFAULT NULL)
    order_items  (qty int NOT NULL DEFAULT 1)
"""

import sys
import os
import json
import tempfile
from pathlib import Path

# === RESOLUCIÓN DE PATH ===
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pipeline import MigrationRun
from pipeline.errors import EmptyStagingError, PipelineStateError, StageError
from reset_target import reset_target
from tests.helpers import FakeSource, FakeTarget, column, run_test_functions


def _run(tmp, source=None, target=None, **kwargs):
    return MigrationRun(
        source or FakeSource(),
        target if target is not None else FakeTarget(),
        staging_dir=Path(tmp) / "data-files",
        schemas_dir=Path(tmp) / "mongo-models",
        **kwargs,
    )


def _read(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def test_end_to_end():
    """Pipeline completo: artefactos, schemas, descriptores y documentos."""
    print("\n=== TEST 1: Pipeline completo ===")

    with tempfile.TemporaryDirectory() as tmp:
        target = FakeTarget()
        run = _run(tmp, target=target)

        loaded = run.run_all()

        staging = sorted(p.name for p in run.staging_dir.iterdir())
        schemas = sorted(p.name for p in run.schemas_dir.iterdir())
        assert staging == ["order_items.json", "users.json"], staging
        assert schemas == ["Orderitems.json", "Users.json"], schemas
        assert run.model_mapping == {"order_items.json": "Orderitems", "users.json": "Users"}

        users = _read(run.schemas_dir / "Users.json")
        assert users["fields"]["email"]["required"] is False
        assert "default" not in users["fields"]["email"]

        items = _read(run.schemas_dir / "Orderitems.json")
        assert items["fields"]["qty"]["required"] is True
        assert items["fields"]["qty"]["default"] == "1"

        assert loaded == {"Orderitems": 2, "Users": 2}
        assert sorted(target.database) == ["Orderitems", "Users"]
        print(f"   ✅ {loaded}")


def test_current_timestamp_default_end_to_end():
    """Un campo DEFAULT CURRENT_TIMESTAMP ausente del registro recibe la hora de escritura."""
    print("\n=== TEST 2: CURRENT_TIMESTAMP ===")

    tables = {
        "events": {
            "columns": [
                column("id", "int", nullable=False),
                column("created_at", "timestamp", nullable=False, default="CURRENT_TIMESTAMP"),
            ],
            "rows": [{"id": 1}],
        }
    }
    with tempfile.TemporaryDirectory() as tmp:
        target = FakeTarget()
        run = _run(tmp, source=FakeSource(tables), target=target)
        run.run_all()

        events = _read(run.schemas_dir / "Events.json")
        assert events["fields"]["created_at"]["default"] == "$$NOW"

        (document,) = target.database["Events"]
        assert document["created_at"] is not None
        assert document["created_at"].tzinfo is not None
        print(f"   ✅ created_at = {document['created_at']}")


def test_stage_requires_discover():
    """stage() sin discover() lanza PipelineStateError."""
    print("\n=== TEST 3: Orden discover → stage ===")

    with tempfile.TemporaryDirectory() as tmp:
        try:
            _run(tmp).stage()
            assert False, "Debería lanzar PipelineStateError"
        except PipelineStateError:
            print("   ✅ PipelineStateError")


def test_stage_requires_tables():
    """Un origen sin tablas base no puede pasar a staging."""
    print("\n=== TEST 4: Origen sin tablas ===")

    with tempfile.TemporaryDirectory() as tmp:
        run = _run(tmp, source=FakeSource({}))
        assert run.discover() == ()
        try:
            run.stage()
            assert False, "Debería lanzar PipelineStateError"
        except PipelineStateError:
            print("   ✅ PipelineStateError")


def test_generate_requires_staging():
    """generate() sin staging lanza EmptyStagingError y no escribe schemas."""
    print("\n=== TEST 5: Orden stage → generate ===")

    with tempfile.TemporaryDirectory() as tmp:
        run = _run(tmp)
        run.discover()
        try:
            run.generate()
            assert False, "Debería lanzar EmptyStagingError"
        except EmptyStagingError:
            pass
        assert not run.schemas_dir.exists()
        print("   ✅ EmptyStagingError")


def test_load_requires_generate():
    """load() sin generate() lanza PipelineStateError."""
    print("\n=== TEST 6: Orden generate → load ===")

    with tempfile.TemporaryDirectory() as tmp:
        run = _run(tmp)
        run.discover()
        run.stage()
        try:
            run.load()
            assert False, "Debería lanzar PipelineStateError"
        except PipelineStateError:
            print("   ✅ PipelineStateError")


def test_generate_from_directory_only():
    """Una nueva ejecución puede generar a partir del staging en disco."""
    print("\n=== TEST 7: Staging como frontera entre procesos ===")

    with tempfile.TemporaryDirectory() as tmp:
        first = _run(tmp)
        first.discover()
        first.stage()

        second = _run(tmp)
        mapping = second.generate()
        assert mapping == {"order_items.json": "Orderitems", "users.json": "Users"}
        print(f"   ✅ {mapping}")


def test_stage_error_names_table():
    """Una falla de staging reporta la tabla y conserva el snapshot parcial."""
    print("\n=== TEST 8: StageError ===")

    source = FakeSource()
    source.failing_tables.add("users")
    with tempfile.TemporaryDirectory() as tmp:
        run = _run(tmp, source=source)
        run.discover()
        try:
            run.stage()
            assert False, "Debería lanzar StageError"
        except StageError as e:
            assert e.table == "users"
        assert "order_items" in run.column_snapshot
        print("   ✅ StageError en 'users'")


def test_reset_target():
    """reset_target elimina colecciones generadas y vacía los directorios."""
    print("\n=== TEST 9: reset_target ===")

    with tempfile.TemporaryDirectory() as tmp:
        target = FakeTarget()
        run = _run(tmp, target=target)
        run.run_all()

        dropped = reset_target(target, run.schemas_dir, run.staging_dir)

        assert dropped == ["Orderitems", "Users"]
        assert target.database == {}
        assert list(run.schemas_dir.iterdir()) == []
        assert list(run.staging_dir.iterdir()) == []
        print(f"   ✅ Eliminadas: {dropped}")


# === EJECUCIÓN ===

if __name__ == "__main__":
    tests = [
        test_end_to_end,
        test_current_timestamp_default_end_to_end,
        test_stage_requires_discover,
        test_stage_requires_tables,
        test_generate_requires_staging,
        test_load_requires_generate,
        test_generate_from_directory_only,
        test_stage_error_names_table,
        test_reset_target,
    ]
    success = run_test_functions("TESTS END-TO-END DEL PIPELINE", tests)
    sys.exit(0 if success else 1)
