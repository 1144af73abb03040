"""
Funciones helper compartidas para todos los tests.

Proporciona un origen y un destino en memoria (FakeSource, FakeTarget) que
implementan las interfaces del pipeline, datos de ejemplo y un runner
común para ejecutar cada módulo de tests como script.
"""

import sys
import os
import importlib

# Agregar directorio raíz al path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from pipeline.errors import QueryError, UnknownTableError
from pipeline.sources.base import BaseSource
from pipeline.targets.base import BaseTarget, BatchWriteError


def column(name, column_type, nullable=True, default=None):
    """Registro de columna con el formato de BaseSource.describe_table()."""
    return {
        "column_name": name,
        "column_type": column_type,
        "is_nullable": "YES" if nullable else "NO",
        "column_default": default,
    }


def sample_tables():
    """
    Origen de ejemplo con dos tablas base:

    - users: id int NOT NULL, email varchar(255) NULL DEFAULT NULL
    - order_items: qty int NOT NULL DEFAULT 1
    """
    return {
        "users": {
            "columns": [
                column("id", "int", nullable=False),
                column("email", "varchar(255)", nullable=True, default=None),
            ],
            "rows": [
                {"id": 1, "email": "ana@example.com"},
                {"id": 2, "email": None},
            ],
        },
        "order_items": {
            "columns": [column("qty", "int", nullable=False, default="1")],
            "rows": [{"qty": 3}, {"qty": 1}],
        },
    }


class FakeSource(BaseSource):
    """
    Origen en memoria.

    Attributes:
        tables: {tabla: {'columns': [...], 'rows': [...]}}
        failing_tables: Tablas cuya lectura de filas falla con QueryError
        calls: Registro de llamadas (operación, tabla)
    """

    def __init__(self, tables=None, schema="public"):
        super().__init__(connection=None, schema=schema)
        self.tables = tables if tables is not None else sample_tables()
        self.failing_tables = set()
        self.calls = []

    def list_tables(self):
        self.calls.append(("list", None))
        return sorted(self.tables)

    def describe_table(self, table):
        self.calls.append(("describe", table))
        if table not in self.tables:
            raise UnknownTableError(
                f"La tabla '{table}' no existe", context={"table": table}
            )
        return [dict(col) for col in self.tables[table]["columns"]]

    def fetch_rows(self, table):
        self.calls.append(("fetch", table))
        if table in self.failing_tables:
            raise QueryError("Lectura fallida", context={"table": table})
        if table not in self.tables:
            raise UnknownTableError(
                f"La tabla '{table}' no existe", context={"table": table}
            )
        return [dict(row) for row in self.tables[table]["rows"]]


class FakeTarget(BaseTarget):
    """
    Destino en memoria.

    Attributes:
        database: {colección: [documento, ...]}
        validators: {colección: validador registrado}
        reject: Función (colección, documento) → bool; True simula rechazo
    """

    def __init__(self, reject=None):
        super().__init__(database={})
        self.validators = {}
        self.reject = reject or (lambda collection, document: False)

    def register_schema(self, collection, validator):
        self.validators[collection] = validator
        self.database.setdefault(collection, [])

    def insert_documents(self, collection, documents):
        stored = self.database.setdefault(collection, [])
        for index, document in enumerate(documents):
            if self.reject(collection, document):
                raise BatchWriteError(index, "Documento rechazado por el validador")
            stored.append(dict(document))
        return len(documents)

    def drop_collection(self, collection):
        self.database.pop(collection, None)
        self.validators.pop(collection, None)


def get_backend_class(kind, backend=None):
    """
    Carga dinámicamente la clase de un backend según config.

    Raises:
        ImportError: Si no existe el módulo
        AttributeError: Si no existe la clase
    """
    module_name, class_name = config.get_backend_module(kind, backend)
    module = importlib.import_module(module_name)
    return getattr(module, class_name)


def run_test_functions(title, tests):
    """
    Ejecuta una lista de funciones de test y reporta resultados.

    Returns:
        bool: True si todos los tests pasaron
    """
    print("=" * 70)
    print(f"🧪 {title}")
    print("=" * 70)

    failed = 0

    for test_func in tests:
        try:
            test_func()
        except AssertionError as e:
            print(f"\n❌ FALLO: {test_func.__name__}")
            print(f"   {e}")
            failed += 1
        except Exception as e:
            print(f"\n❌ ERROR: {test_func.__name__}")
            print(f"   {type(e).__name__}: {e}")
            failed += 1

    print("\n" + "=" * 70)

    if failed == 0:
        print("✅ TODOS LOS TESTS PASARON")
    else:
        print(f"❌ {failed} TEST(S) FALLARON")
    print("=" * 70)

    return failed == 0
