"""
Módulo base para orígenes relacionales.

Define la interfaz común (contrato) que todo origen debe implementar. El
resto del pipeline (Introspector, Stager) solo conoce esta interfaz, por lo
que cambiar de motor no requiere modificar las etapas.

Patrón de diseño: Strategy Pattern
- pipeline/run.py = Contexto (orquestador)
- BaseSource = Estrategia abstracta
- PostgresSource = Estrategia concreta (psycopg2)

Flujo de uso:
1. sqlmigra.py carga dinámicamente el origen configurado
2. SchemaIntrospector llama a list_tables() y describe_table()
3. Stager llama a fetch_rows() por cada tabla

Errores esperados (ver pipeline/errors.py):
- ConnectivityError: Conexión no disponible
- QueryError: Falla de consulta
- UnknownTableError: La tabla no existe al consultarla
"""

from abc import ABC, abstractmethod


class BaseSource(ABC):
    """
    Clase abstracta que define las consultas necesarias sobre el origen.

    Attributes:
        connection: Conexión del driver (ej: conexión psycopg2)
        schema (str): Schema/namespace de donde se leen las tablas
    """

    def __init__(self, connection, schema: str):
        """
        Constructor base que almacena conexión y schema origen.

        Args:
            connection: Conexión abierta del driver
            schema: Nombre del schema origen (ej: 'public')
        """
        self.connection = connection
        self.schema = schema

    @abstractmethod
    def list_tables(self) -> list:
        """
        Lista las tablas base del schema (SIN vistas).

        Returns:
            list: Nombres de tabla, ordenados
        """
        pass

    @abstractmethod
    def describe_table(self, table: str) -> list:
        """
        Describe las columnas de una tabla en orden ordinal.

        Args:
            table: Nombre de la tabla

        Returns:
            list: Un dict por columna con keys:
                {
                    'column_name': str,
                    'column_type': str,        # ej: 'character varying(255)'
                    'is_nullable': 'YES'|'NO',
                    'column_default': str|None
                }

        Raises:
            UnknownTableError: Si la tabla no existe
        """
        pass

    @abstractmethod
    def fetch_rows(self, table: str) -> list:
        """
        Lee TODAS las filas de una tabla (sin orden garantizado).

        Returns:
            list: Un dict por fila {columna: valor}
        """
        pass
