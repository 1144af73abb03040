"""
Configuración centralizada para el sistema de migración PostgreSQL → MongoDB.

ARQUITECTURA:
Pipeline secuencial de cuatro etapas, cada una con su directorio de trabajo:
- discover: Descubre tablas base del schema origen (excluye vistas)
- stage: Extrae cada tabla completa a STAGING_DIR/<tabla>.json
- generate: Genera un schema MongoDB por tabla en SCHEMAS_DIR/<Modelo>.json
- load: Inserta los registros en colecciones MongoDB usando los schemas

FLUJO DE MIGRACIÓN:
1. Ejecutar las etapas en orden (ver pipeline/run.py)
2. Cada ejecución REEMPLAZA por completo STAGING_DIR y SCHEMAS_DIR
3. La carga NO es idempotente: re-ejecutar duplica documentos
   (usar reset_target.py antes de re-cargar)

USO DE LAS FUNCIONES HELPER:
    # Validar política configurada
    policy = get_policy('UNMAPPED_TYPE_POLICY')  # 'abort' | 'skip'

    # Resolver módulo y clase de un backend
    module_name, class_name = get_backend_module('source')
    # ('pipeline.sources.postgres', 'PostgresSource')
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Carga las variables del archivo .env en las variables de entorno del sistema
load_dotenv(override=True)

PROJECT_ROOT = Path(__file__).resolve().parent

# --- Configuración de PostgreSQL (Origen) ---
POSTGRES_CONFIG = {
    "dbname": os.getenv("POSTGRES_DB") or "",
    "user": os.getenv("POSTGRES_USER") or "",
    "password": os.getenv("POSTGRES_PASSWORD") or "",
    "host": os.getenv("POSTGRES_HOST") or "localhost",
    "port": os.getenv("POSTGRES_PORT") or "5432",
}
# Schema de PostgreSQL cuyas tablas base se migran
POSTGRES_SCHEMA = os.getenv("POSTGRES_SCHEMA") or "public"

# --- Configuración de MongoDB (Destino) ---
MONGO_URI = os.getenv("MONGO_URI") or (
    f"mongodb://{os.getenv('MONGO_USER')}:{os.getenv('MONGO_PASSWORD')}"
    f"@{os.getenv('MONGO_HOST')}:{os.getenv('MONGO_PORT')}/"
    f"?authSource={os.getenv('MONGO_AUTH_SOURCE')}&readPreference=primary"
    f"&directConnection=true&ssl=false"
)
# Se conserva el nombre de la base de datos de origen
MONGO_DATABASE_NAME = os.getenv("MONGO_DB") or POSTGRES_CONFIG["dbname"] or "migrated"

# --- Directorios de trabajo ---
# Ambos se vacían y regeneran en cada ejecución
STAGING_DIR = Path(os.getenv("STAGING_DIR") or PROJECT_ROOT / "data-files")
SCHEMAS_DIR = Path(os.getenv("SCHEMAS_DIR") or PROJECT_ROOT / "mongo-models")

# --- Configuración de Migración ---
INSERT_BATCH_SIZE = int(os.getenv("INSERT_BATCH_SIZE") or 2000)  # Documentos por insert_many

# --- Políticas de error ---
# UNMAPPED_TYPE_POLICY: qué hacer con una columna de tipo sin mapeo
#   - abort: UnmappedTypeError, se detiene toda la generación
#   - skip: se omite la tabla con advertencia (no se genera schema ni se carga)
# LOAD_ERROR_POLICY: qué hacer cuando falla la escritura de un registro
#   - abort: LoadError en el primer fallo (tabla + índice de fila)
#   - skip: se registra el fallo y se continúa con el siguiente registro
POLICIES = {
    "UNMAPPED_TYPE_POLICY": ["abort", "skip"],
    "LOAD_ERROR_POLICY": ["abort", "skip"],
}

UNMAPPED_TYPE_POLICY = os.getenv("UNMAPPED_TYPE_POLICY") or "abort"
LOAD_ERROR_POLICY = os.getenv("LOAD_ERROR_POLICY") or "abort"

# --- Backends ---
# Convención de nombres: pipeline.<kind>s.<backend> → <Backend><Kind>
#   source 'postgres' → pipeline.sources.postgres.PostgresSource
#   target 'mongo'    → pipeline.targets.mongo.MongoTarget
SOURCE_BACKEND = os.getenv("SOURCE_BACKEND") or "postgres"
TARGET_BACKEND = os.getenv("TARGET_BACKEND") or "mongo"


# --- Funciones Helper ---


def get_policy(name: str) -> str:
    """
    Obtiene y valida el valor configurado de una política.

    Args:
        name: Nombre de la política (ej: 'UNMAPPED_TYPE_POLICY')

    Returns:
        str: Valor de la política ('abort' o 'skip')

    Raises:
        KeyError: Si la política no existe
        ValueError: Si el valor configurado no es una opción válida

    Ejemplo:
        >>> get_policy('LOAD_ERROR_POLICY')
        'abort'
    """
    if name not in POLICIES:
        available = ", ".join(POLICIES.keys())
        raise KeyError(
            f"Política '{name}' no existe.\n" f"Políticas disponibles: {available}"
        )

    value = globals()[name]
    return validate_policy(name, value)


def validate_policy(name: str, value: str) -> str:
    """
    Verifica que un valor sea una opción válida para la política.

    Args:
        name: Nombre de la política
        value: Valor a validar

    Returns:
        str: El mismo valor, normalizado a minúsculas

    Raises:
        ValueError: Si el valor no está entre las opciones de la política
    """
    options = POLICIES[name]
    normalized = str(value).strip().lower()
    if normalized not in options:
        raise ValueError(
            f"Valor '{value}' inválido para {name}.\n"
            f"Opciones disponibles: {', '.join(options)}"
        )
    return normalized


def get_backend_module(kind: str, backend: str = None) -> tuple:
    """
    Construye el módulo y la clase que implementan un backend.

    Convención de nombres:
        ('source', 'postgres') → ('pipeline.sources.postgres', 'PostgresSource')
        ('target', 'mongo')    → ('pipeline.targets.mongo', 'MongoTarget')

    Args:
        kind: 'source' o 'target'
        backend: Nombre del backend. Si es None se usa el configurado.

    Returns:
        tuple: (nombre_modulo, nombre_clase)

    Raises:
        ValueError: Si kind no es 'source' ni 'target'
    """
    if kind not in ("source", "target"):
        raise ValueError(f"Tipo de backend inválido: '{kind}' (usar 'source' o 'target')")

    if backend is None:
        backend = SOURCE_BACKEND if kind == "source" else TARGET_BACKEND

    module_name = f"pipeline.{kind}s.{backend}"
    class_name = "".join(word.capitalize() for word in backend.split("_")) + kind.capitalize()
    return module_name, class_name
