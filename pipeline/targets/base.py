"""
Módulo base para destinos documentales.

Define la interfaz común que el Loader utiliza para escribir documentos.
Permite probar el pipeline con un destino en memoria y mantener los
detalles de pymongo en un solo lugar.

Patrón de diseño: Strategy Pattern
- pipeline/loader.py = Contexto
- BaseTarget = Estrategia abstracta
- MongoTarget = Estrategia concreta (pymongo)
"""

from abc import ABC, abstractmethod


class BatchWriteError(Exception):
    """
    Falló la escritura de un documento dentro de un lote ordenado.

    Los documentos anteriores a 'index' quedaron escritos; los posteriores
    no se intentaron.

    Attributes:
        index: Posición del documento fallido dentro del lote
        cause: Error original del driver
    """

    def __init__(self, index: int, cause=None):
        self.index = index
        self.cause = cause
        super().__init__(f"Documento {index} del lote rechazado: {cause}")


class BaseTarget(ABC):
    """
    Clase abstracta que define las operaciones sobre el destino.

    Attributes:
        database: Handle de base de datos del driver (ej: pymongo Database)
    """

    def __init__(self, database):
        self.database = database

    @abstractmethod
    def register_schema(self, collection: str, validator: dict):
        """
        Registra el schema de validación de una colección.

        Crea la colección si no existe; si existe, reemplaza su validador.

        Args:
            collection: Nombre de la colección
            validator: Documento de validación ({'$jsonSchema': {...}})
        """
        pass

    @abstractmethod
    def insert_documents(self, collection: str, documents: list) -> int:
        """
        Inserta un lote de documentos en orden.

        Returns:
            int: Cantidad de documentos insertados

        Raises:
            BatchWriteError: Si un documento es rechazado (con su índice)
        """
        pass

    @abstractmethod
    def drop_collection(self, collection: str):
        """Elimina una colección (no falla si no existe)."""
        pass
