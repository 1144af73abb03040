"""
Introspección del schema origen.

Traduce los metadatos crudos de un BaseSource a estructuras del pipeline:
- list_tables(): tuple inmutable de tablas base (sin vistas)
- describe_table(): lista de ColumnDefinition en orden ordinal

No se toman locks: una tabla puede desaparecer entre list_tables() y
describe_table(). En ese caso el origen lanza UnknownTableError y el error
se propaga con la tabla en el contexto.
"""

from .errors import MigrationError, QueryError
from .models import ColumnDefinition


class SchemaIntrospector:
    """
    Consulta tablas y columnas de un origen relacional.

    Attributes:
        source (BaseSource): Origen sobre el que se ejecutan las consultas
    """

    def __init__(self, source):
        self.source = source

    def list_tables(self) -> tuple:
        """
        Descubre las tablas base del origen.

        Returns:
            tuple: Nombres de tabla en el orden del origen, sin duplicados

        Raises:
            ConnectivityError: Conexión no disponible
            QueryError: Falló la consulta de metadatos
        """
        tables = self._call(self.source.list_tables)
        return tuple(dict.fromkeys(tables))

    def describe_table(self, table: str) -> list:
        """
        Obtiene las definiciones de columnas de una tabla.

        Args:
            table: Nombre de la tabla

        Returns:
            list: [ColumnDefinition, ...] en orden ordinal

        Raises:
            UnknownTableError: La tabla ya no existe
            ConnectivityError / QueryError: Falla del origen
        """
        rows = self._call(self.source.describe_table, table, table=table)
        return [self._to_column_definition(row) for row in rows]

    def _call(self, method, *args, table=None):
        """Ejecuta una consulta del origen envolviendo errores no tipados en QueryError."""
        try:
            return method(*args)
        except MigrationError:
            raise
        except Exception as e:
            context = {"table": table} if table is not None else {}
            raise QueryError(
                "Falló la consulta de metadatos", context=context, original_exception=e
            )

    @staticmethod
    def _to_column_definition(row: dict) -> ColumnDefinition:
        """
        Construye una ColumnDefinition desde un registro de describe_table().

        is_nullable acepta 'YES'/'NO' (information_schema, MySQL) o bool.
        """
        nullable = row["is_nullable"]
        if isinstance(nullable, str):
            nullable = nullable.strip().upper() == "YES"

        default = row.get("column_default")
        return ColumnDefinition(
            name=row["column_name"],
            raw_type=row["column_type"],
            nullable=bool(nullable),
            default=None if default is None else str(default),
        )
