"""
Etapa de staging: extracción completa de tablas a artefactos JSON.

Cada tabla se lee con un SELECT * (sin orden) y se serializa con
bson.json_util en STAGING_DIR/<tabla>.json. El formato es Extended JSON,
por lo que fechas, decimales y binarios conservan su tipo al releerlos.

DECISIONES DE DISEÑO:
- Full refresh: se eliminan TODOS los archivos previos del directorio
- Directorio inexistente: se crea (no es un error)
- Fail-fast: la primera tabla que falla detiene la etapa con StageError;
  los artefactos ya escritos NO se eliminan
- Las columnas de cada tabla se describen durante el staging y quedan en
  column_snapshot, para que la generación de schemas use exactamente la
  estructura con la que se extrajeron los datos
- Cada artefacto se escribe en un temporal y se renombra al final
"""

import os
import time
from pathlib import Path

from bson import json_util

from .errors import PipelineStateError, StageError
from .naming import artifact_name
from .type_mapper import to_bson_value


class Stager:
    """
    Extrae tablas del origen a artefactos en disco.

    Attributes:
        source (BaseSource): Origen de las filas
        introspector (SchemaIntrospector|None): Si existe, se toma snapshot
            de columnas de cada tabla extraída
        staging_dir (Path): Directorio de artefactos
        column_snapshot (dict): {tabla: [ColumnDefinition, ...]}
        row_counts (dict): {tabla: cantidad de filas extraídas}
    """

    def __init__(self, source, staging_dir, introspector=None):
        self.source = source
        self.introspector = introspector
        self.staging_dir = Path(staging_dir)
        self.column_snapshot = {}
        self.row_counts = {}

    def stage_all(self, tables) -> dict:
        """
        Extrae todas las tablas a artefactos, reemplazando los anteriores.

        Args:
            tables: Secuencia de nombres de tabla (no vacía)

        Returns:
            dict: {tabla: Path del artefacto} en el orden recibido

        Raises:
            PipelineStateError: Si no hay tablas para extraer
            StageError: Si falla la lectura o escritura de alguna tabla
        """
        if not tables:
            raise PipelineStateError(
                "No hay tablas para extraer: ejecutar discover() primero"
            )

        started = time.perf_counter()
        self.column_snapshot = {}
        self.row_counts = {}

        self.clear_staging_dir()

        staged = {}
        for table in tables:
            staged[table] = self.stage_table(table)

        elapsed = time.perf_counter() - started
        print(
            f"✅ {len(staged)} tablas extraídas a '{self.staging_dir}' en {elapsed:.2f}s"
        )
        return staged

    def clear_staging_dir(self):
        """Elimina todos los artefactos previos; crea el directorio si no existe."""
        if not self.staging_dir.exists():
            self.staging_dir.mkdir(parents=True)
            return

        removed = 0
        for path in self.staging_dir.iterdir():
            if path.is_file():
                path.unlink()
                removed += 1

        if removed:
            print(f"   🗑️  {removed} artefactos previos eliminados")

    def stage_table(self, table: str) -> Path:
        """
        Extrae una tabla completa y escribe su artefacto.

        Returns:
            Path: Ruta del artefacto escrito

        Raises:
            StageError: Con la tabla en el contexto y la causa encadenada
        """
        target = self.staging_dir / artifact_name(table)

        try:
            if self.introspector is not None:
                self.column_snapshot[table] = self.introspector.describe_table(table)

            rows = self.source.fetch_rows(table)
            documents = [
                {column: to_bson_value(value) for column, value in row.items()}
                for row in rows
            ]

            temporary = target.with_name(target.name + ".tmp")
            with open(temporary, "w", encoding="utf-8") as f:
                f.write(json_util.dumps(documents, indent=2, ensure_ascii=False))
            os.replace(temporary, target)
        except Exception as e:
            raise StageError(
                f"Falló la extracción de la tabla '{table}'",
                context={"table": table},
                original_exception=e,
            )

        self.row_counts[table] = len(documents)
        print(f"   📦 {table}: {len(documents):,} filas → {target.name}")
        return target
