"""
Contexto de una ejecución del pipeline.

MigrationRun reemplaza el estado global mutable (lista de modelos, mapping
de schemas) por un objeto explícito que el driver recorre en orden fijo:

    run = MigrationRun(source, target, staging_dir, schemas_dir)
    run.discover()   # → ('order_items', 'users')
    run.stage()      # → {'order_items': Path(...), 'users': Path(...)}
    run.generate()   # → {'order_items.json': 'Orderitems', 'users.json': 'Users'}
    run.load()       # → {'Orderitems': 1, 'Users': 2}

Cada etapa verifica explícitamente su precondición:
- stage() requiere discover() con al menos una tabla
- generate() lee el directorio de staging (no depende de memoria)
- load() requiere generate()

IMPORTANTE: Dos ejecuciones concurrentes sobre los mismos directorios
compiten al limpiar y repoblar. El llamador debe serializarlas.
"""

from pathlib import Path

from .errors import PipelineStateError
from .introspector import SchemaIntrospector
from .loader import Loader
from .schema_generator import SchemaGenerator
from .stager import Stager


class MigrationRun:
    """
    Estado de una ejecución: tablas, artefactos y mapping de modelos.

    Attributes:
        tables (tuple|None): Tablas descubiertas (None antes de discover)
        staged (dict): {tabla: Path} del último stage()
        column_snapshot (dict): {tabla: [ColumnDefinition]} tomado en stage()
        model_mapping (dict|None): {artefacto: modelo} del último generate()
        skipped_tables (dict): Tablas omitidas por tipo sin mapeo
        load_failures (list): Registros omitidos con LOAD_ERROR_POLICY='skip'
    """

    def __init__(
        self,
        source,
        target=None,
        staging_dir="data-files",
        schemas_dir="mongo-models",
        unmapped_type_policy="abort",
        load_error_policy="abort",
        batch_size=2000,
    ):
        self.source = source
        self.target = target
        self.staging_dir = Path(staging_dir)
        self.schemas_dir = Path(schemas_dir)
        self.unmapped_type_policy = unmapped_type_policy
        self.load_error_policy = load_error_policy
        self.batch_size = batch_size

        self.introspector = SchemaIntrospector(source)
        self.tables = None
        self.staged = {}
        self.column_snapshot = {}
        self.model_mapping = None
        self.skipped_tables = {}
        self.load_failures = []

    def discover(self) -> tuple:
        """Descubre las tablas base del origen."""
        self.tables = self.introspector.list_tables()
        print(f"🔍 {len(self.tables)} tablas encontradas: {', '.join(self.tables)}")
        return self.tables

    def stage(self) -> dict:
        """
        Extrae todas las tablas descubiertas a STAGING_DIR.

        Raises:
            PipelineStateError: Si discover() no se ejecutó o no encontró tablas
            StageError: Falla de extracción (fail-fast)
        """
        if self.tables is None:
            raise PipelineStateError("Ejecutar discover() antes de stage()")

        stager = Stager(self.source, self.staging_dir, introspector=self.introspector)
        try:
            self.staged = stager.stage_all(self.tables)
        finally:
            self.column_snapshot = dict(stager.column_snapshot)
        return self.staged

    def generate(self) -> dict:
        """
        Genera un schema por artefacto de STAGING_DIR.

        Raises:
            EmptyStagingError: Si staging está vacío
        """
        generator = SchemaGenerator(
            self.introspector,
            self.staging_dir,
            self.schemas_dir,
            column_snapshot=self.column_snapshot,
            unmapped_type_policy=self.unmapped_type_policy,
        )
        self.model_mapping = generator.generate_schemas()
        self.skipped_tables = dict(generator.skipped_tables)
        return self.model_mapping

    def load(self) -> dict:
        """
        Carga los artefactos en el destino usando los schemas generados.

        Raises:
            PipelineStateError: Si generate() no se ejecutó o no hay destino
            LoadError: Según LOAD_ERROR_POLICY
        """
        if self.model_mapping is None:
            raise PipelineStateError("Ejecutar generate() antes de load()")
        if self.target is None:
            raise PipelineStateError("No hay destino configurado para load()")

        loader = Loader(
            self.target,
            self.staging_dir,
            self.schemas_dir,
            load_error_policy=self.load_error_policy,
            batch_size=self.batch_size,
        )
        try:
            return loader.load_all(self.model_mapping)
        finally:
            self.load_failures = list(loader.load_failures)

    def run_all(self) -> dict:
        """Ejecuta las cuatro etapas en orden; retorna el resultado de load()."""
        self.discover()
        self.stage()
        self.generate()
        return self.load()
