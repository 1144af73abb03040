"""
Pipeline de migración de tablas relacionales a colecciones MongoDB.

Etapas (en orden fijo, ver run.MigrationRun):
    introspector.py: Descubre tablas base y describe columnas
    stager.py: Extrae cada tabla a STAGING_DIR/<tabla>.json
    schema_generator.py: Genera SCHEMAS_DIR/<Modelo>.json por tabla
    loader.py: Inserta los registros en la colección <Modelo>

Funciones puras:
    type_mapper.py: Tipo/nullable/default → FieldDescriptor
    naming.py: Tabla → nombre de modelo

Backends (cargados dinámicamente en sqlmigra.py):
    sources/: Orígenes relacionales (BaseSource)
    targets/: Destinos documentales (BaseTarget)
"""

from .run import MigrationRun

__all__ = ["MigrationRun"]
