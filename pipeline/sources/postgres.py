"""
Origen PostgreSQL implementado con psycopg2.

Consultas utilizadas:
- list_tables: information_schema.tables filtrando table_type = 'BASE TABLE'
- describe_table: pg_catalog (format_type conserva parámetros: varchar(255))
- fetch_rows: SELECT * con identificadores escapados vía psycopg2.sql

Traducción de errores del driver:
    OperationalError / InterfaceError → ConnectivityError
    errors.UndefinedTable             → UnknownTableError
    cualquier otro psycopg2.Error     → QueryError
"""

import psycopg2
from psycopg2 import errors as pg_errors, sql
from psycopg2.extras import RealDictCursor

from ..errors import ConnectivityError, QueryError, UnknownTableError
from .base import BaseSource

LIST_TABLES_QUERY = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = %s
      AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

DESCRIBE_TABLE_QUERY = """
    SELECT
        a.attname AS column_name,
        format_type(a.atttypid, a.atttypmod) AS column_type,
        CASE WHEN a.attnotnull THEN 'NO' ELSE 'YES' END AS is_nullable,
        pg_get_expr(d.adbin, d.adrelid) AS column_default
    FROM pg_catalog.pg_attribute a
    JOIN pg_catalog.pg_class c ON c.oid = a.attrelid
    JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
    LEFT JOIN pg_catalog.pg_attrdef d
        ON d.adrelid = a.attrelid AND d.adnum = a.attnum
    WHERE n.nspname = %s
      AND c.relname = %s
      AND a.attnum > 0
      AND NOT a.attisdropped
    ORDER BY a.attnum
"""

TABLE_EXISTS_QUERY = """
    SELECT 1
    FROM pg_catalog.pg_class c
    JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
    WHERE n.nspname = %s
      AND c.relname = %s
      AND c.relkind IN ('r', 'p')
"""


class PostgresSource(BaseSource):
    """
    Origen relacional sobre una conexión psycopg2.

    La conexión la abre y cierra el driver (sqlmigra.py). Todas las
    consultas usan RealDictCursor para obtener registros con nombre de campo.
    """

    def __init__(self, connection, schema="public"):
        super().__init__(connection, schema)

    # =========================================================================
    # MÉTODOS PÚBLICOS (INTERFAZ REQUERIDA)
    # =========================================================================

    def list_tables(self):
        rows = self._execute(LIST_TABLES_QUERY, (self.schema,))
        return [row["table_name"] for row in rows]

    def describe_table(self, table):
        rows = self._execute(DESCRIBE_TABLE_QUERY, (self.schema, table), table=table)
        if not rows and not self._execute(
            TABLE_EXISTS_QUERY, (self.schema, table), table=table
        ):
            raise UnknownTableError(
                f"La tabla '{table}' no existe en el schema '{self.schema}'",
                context={"table": table, "schema": self.schema},
            )
        return [dict(row) for row in rows]

    def fetch_rows(self, table):
        query = sql.SQL("SELECT * FROM {}.{}").format(
            sql.Identifier(self.schema), sql.Identifier(table)
        )
        return [dict(row) for row in self._execute(query, table=table)]

    # =========================================================================
    # MÉTODOS PRIVADOS
    # =========================================================================

    def _execute(self, query, params=None, table=None):
        """
        Ejecuta una consulta y retorna todas las filas como dicts.

        Raises:
            ConnectivityError: Conexión cerrada o caída
            UnknownTableError: La tabla consultada no existe
            QueryError: Cualquier otra falla del driver
        """
        context = {"schema": self.schema}
        if table is not None:
            context["table"] = table

        if self.connection is None or self.connection.closed:
            raise ConnectivityError("Conexión a PostgreSQL no disponible", context=context)

        try:
            with self.connection.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, params)
                return cursor.fetchall()
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            raise ConnectivityError(
                "Se perdió la conexión con PostgreSQL",
                context=context,
                original_exception=e,
            )
        except pg_errors.UndefinedTable as e:
            self.connection.rollback()
            raise UnknownTableError(
                f"La tabla '{table}' no existe",
                context=context,
                original_exception=e,
            )
        except psycopg2.Error as e:
            self.connection.rollback()
            raise QueryError(
                "Falló la consulta contra PostgreSQL",
                context=context,
                original_exception=e,
            )
