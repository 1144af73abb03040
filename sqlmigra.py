r"""
Script principal de migración de tablas PostgreSQL a colecciones MongoDB.

Arquitectura con carga dinámica de backends:
- sqlmigra.py: Infraestructura genérica (conexiones, orden de etapas, reporte)
- pipeline/: Etapas del pipeline (discover, stage, generate, load)
- pipeline/sources/*.py, pipeline/targets/*.py: Backends (BaseSource, BaseTarget)
- config.py: Configuración centralizada

Flujo de ejecución:
1. Conexión a PostgreSQL (solo lectura) y a MongoDB
2. Carga dinámica de origen y destino configurados
3. discover: tablas base del schema origen
4. stage: STAGING_DIR/<tabla>.json (full refresh)
5. generate: SCHEMAS_DIR/<Modelo>.json (full refresh)
6. load: inserción en colecciones <Modelo>

Prerrequisitos:
- Variables de conexión en .env (ver config.py)
- Colecciones destino vacías (ejecutar reset_target.py si se re-carga)

Uso:
    python sqlmigra.py              # pipeline completo
    python sqlmigra.py --no-load    # solo discover, stage y generate
"""

from pathlib import Path
import sys
import time
import importlib
import psycopg2
from pymongo import MongoClient
from pymongo.errors import ConnectionFailure
from psycopg2 import OperationalError

# Asegurar que el directorio raíz esté en sys.path para imports dinámicos
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import config
from pipeline import MigrationRun
from pipeline.errors import MigrationError
from pipeline.sources.base import BaseSource
from pipeline.targets.base import BaseTarget


def connect_to_postgres():
    """
    Establece conexión de solo lectura a PostgreSQL (origen).

    Returns:
        connection: Conexión de psycopg2

    Raises:
        SystemExit: Si no puede conectar
    """
    try:
        print("🔌 Conectando a PostgreSQL...")
        conn = psycopg2.connect(**config.POSTGRES_CONFIG)
        conn.set_session(readonly=True, autocommit=True)
        print("✅ Conexión a PostgreSQL exitosa")
        return conn
    except OperationalError as e:
        print(f"❌ Error de conexión a PostgreSQL", file=sys.stderr)
        print(f"   Detalle: {e}", file=sys.stderr)
        sys.exit(1)


def connect_to_mongo():
    """
    Establece conexión a MongoDB (destino).

    Returns:
        tuple: (client, database) de pymongo

    Raises:
        SystemExit: Si no puede conectar
    """
    try:
        print("🔌 Conectando a MongoDB...")
        client = MongoClient(config.MONGO_URI, serverSelectionTimeoutMS=5000)
        client.admin.command("ping")
        db = client[config.MONGO_DATABASE_NAME]
        print("✅ Conexión a MongoDB exitosa")
        return client, db
    except ConnectionFailure as e:
        print(f"❌ Error de conexión a MongoDB", file=sys.stderr)
        print(f"   Detalle: {e}", file=sys.stderr)
        sys.exit(1)


def load_backend(kind, handle):
    """
    Carga dinámicamente e instancia el backend configurado.

    Convención de nombres (ver config.get_backend_module):
        source 'postgres' → pipeline.sources.postgres → PostgresSource
        target 'mongo'    → pipeline.targets.mongo    → MongoTarget

    Args:
        kind: 'source' o 'target'
        handle: Conexión (source) o base de datos (target) del driver

    Returns:
        BaseSource|BaseTarget: Instancia del backend

    Raises:
        SystemExit: Si no existe el módulo o la clase, o no hereda de la base
    """
    module_name, class_name = config.get_backend_module(kind)
    base_class = BaseSource if kind == "source" else BaseTarget

    try:
        module = importlib.import_module(module_name)
        backend_class = getattr(module, class_name)
    except ModuleNotFoundError:
        print(f"❌ No existe el backend '{module_name}'", file=sys.stderr)
        sys.exit(1)
    except AttributeError:
        print(
            f"❌ El módulo {module_name} no tiene la clase '{class_name}'",
            file=sys.stderr,
        )
        sys.exit(1)

    # Verificar que hereda de la interfaz (type safety en runtime)
    if not issubclass(backend_class, base_class):
        print(f"❌ {class_name} no hereda de {base_class.__name__}", file=sys.stderr)
        sys.exit(1)

    if kind == "source":
        return backend_class(handle, schema=config.POSTGRES_SCHEMA)
    return backend_class(handle)


def build_run(source, target):
    """Construye el contexto de ejecución con la configuración vigente."""
    return MigrationRun(
        source,
        target,
        staging_dir=config.STAGING_DIR,
        schemas_dir=config.SCHEMAS_DIR,
        unmapped_type_policy=config.get_policy("UNMAPPED_TYPE_POLICY"),
        load_error_policy=config.get_policy("LOAD_ERROR_POLICY"),
        batch_size=config.INSERT_BATCH_SIZE,
    )


def run_pipeline(run, load=True):
    """
    Ejecuta las etapas del pipeline en orden fijo.

    Args:
        run: MigrationRun
        load: Si es False, se detiene después de generate

    Returns:
        dict: {colección: documentos} si load=True, mapping de modelos si no
    """
    started = time.perf_counter()

    print("\n" + "=" * 70)
    print("🔍 ETAPA 1: DESCUBRIMIENTO DE TABLAS")
    print("=" * 70)
    run.discover()

    print("\n" + "=" * 70)
    print("📦 ETAPA 2: EXTRACCIÓN A STAGING")
    print("=" * 70)
    run.stage()

    print("\n" + "=" * 70)
    print("📐 ETAPA 3: GENERACIÓN DE SCHEMAS")
    print("=" * 70)
    mapping = run.generate()

    if not load:
        return mapping

    print("\n" + "=" * 70)
    print("📥 ETAPA 4: CARGA EN MONGODB")
    print("=" * 70)
    loaded = run.load()

    print(f"\n⏱️  Tiempo total: {time.perf_counter() - started:.2f}s")
    return loaded


def main(argv=None):
    """
    Función principal que coordina el flujo completo de migración.

    Exit Codes:
        0: Éxito
        1: Error de conexión, configuración o migración
    """
    argv = sys.argv[1:] if argv is None else argv
    load = "--no-load" not in argv

    print("=" * 70)
    print("🚀 SISTEMA DE MIGRACIÓN POSTGRESQL → MONGODB")
    print("=" * 70)
    print(f"📍 PostgreSQL: {config.POSTGRES_CONFIG['dbname']} (schema {config.POSTGRES_SCHEMA})")
    print(f"📍 MongoDB: {config.MONGO_DATABASE_NAME}")
    print(f"📂 Staging: {config.STAGING_DIR}")
    print(f"📂 Schemas: {config.SCHEMAS_DIR}")

    try:
        config.get_policy("UNMAPPED_TYPE_POLICY")
        config.get_policy("LOAD_ERROR_POLICY")
    except ValueError as e:
        print(f"❌ Configuración inválida: {e}", file=sys.stderr)
        sys.exit(1)

    pg_conn = connect_to_postgres()
    mongo_client, mongo_db = (None, None)
    if load:
        mongo_client, mongo_db = connect_to_mongo()

    try:
        source = load_backend("source", pg_conn)
        target = load_backend("target", mongo_db) if load else None

        run = build_run(source, target)
        run_pipeline(run, load=load)

        if run.skipped_tables:
            print(f"\n⚠️  Tablas omitidas: {', '.join(run.skipped_tables)}")

        print("\n" + "=" * 70)
        print("✅ PROCESO COMPLETADO EXITOSAMENTE")
        print("=" * 70)

    except MigrationError as e:
        print(f"\n❌ Error durante la migración: {e}", file=sys.stderr)
        sys.exit(1)

    finally:
        print("\n🔒 Cerrando conexiones...")
        pg_conn.close()
        if mongo_client is not None:
            mongo_client.close()
        print("✅ Conexiones cerradas correctamente")


if __name__ == "__main__":
    main()
