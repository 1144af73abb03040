# reset_target.py
"""
Script para limpiar el destino MongoDB antes de re-cargar.

La carga NO es idempotente: re-ejecutarla sobre colecciones ya cargadas
duplica documentos. Este script elimina las colecciones generadas por la
última ejecución (una por schema en SCHEMAS_DIR) y vacía STAGING_DIR y
SCHEMAS_DIR.

ADVERTENCIA: Esto destruye TODOS los datos migrados.
"""

import json
from pathlib import Path

from pymongo import MongoClient

import config
from pipeline.targets.mongo import MongoTarget


def generated_collections(schemas_dir):
    """
    Lista las colecciones declaradas en los schemas generados.

    Args:
        schemas_dir: Directorio de schemas (SCHEMAS_DIR)

    Returns:
        list: Nombres de colección, ordenados
    """
    schemas_dir = Path(schemas_dir)
    if not schemas_dir.is_dir():
        return []

    collections = []
    for path in sorted(schemas_dir.glob("*.json")):
        with open(path, "r", encoding="utf-8") as f:
            definition = json.load(f)
        collections.append(definition.get("collection", path.stem))
    return collections


def clear_directory(directory):
    """Elimina los archivos de un directorio. Retorna cuántos eliminó."""
    directory = Path(directory)
    if not directory.is_dir():
        return 0

    removed = 0
    for path in directory.iterdir():
        if path.is_file():
            path.unlink()
            removed += 1
    return removed


def reset_target(target, schemas_dir, staging_dir):
    """
    Elimina colecciones migradas y vacía los directorios de trabajo.

    Args:
        target: BaseTarget sobre el que se eliminan colecciones
        schemas_dir: Directorio de schemas generados
        staging_dir: Directorio de staging

    Returns:
        list: Colecciones eliminadas
    """
    print("=" * 70)
    print("🗑️  LIMPIEZA DEL DESTINO")
    print("=" * 70)

    collections = generated_collections(schemas_dir)
    for collection in collections:
        print(f"\n🗑️  Eliminando colección '{collection}'...")
        target.drop_collection(collection)
        print(f"   ✅ Colección '{collection}' eliminada")

    schemas_removed = clear_directory(schemas_dir)
    staged_removed = clear_directory(staging_dir)
    print(f"\n   ✅ {schemas_removed} schemas y {staged_removed} artefactos eliminados")

    print("\n" + "=" * 70)
    print("✅ LIMPIEZA COMPLETA FINALIZADA")
    print("=" * 70)
    print("\nAhora ejecutar:")
    print("  python sqlmigra.py (migrar datos)")

    return collections


if __name__ == "__main__":
    import sys

    # Seguridad: pedir confirmación
    print("\n⚠️  ADVERTENCIA: Esto eliminará TODOS los datos migrados.")
    response = input("¿Continuar? (escribir 'SI' en mayúsculas): ")

    if response != "SI":
        print("\n❌ Operación cancelada")
        sys.exit(0)

    client = MongoClient(config.MONGO_URI, serverSelectionTimeoutMS=5000)
    try:
        reset_target(
            MongoTarget(client[config.MONGO_DATABASE_NAME]),
            config.SCHEMAS_DIR,
            config.STAGING_DIR,
        )
    finally:
        client.close()
