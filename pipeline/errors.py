"""
Excepciones del pipeline de migración con contexto estructurado.

Cada excepción lleva un dict de contexto (tabla, columna, índice de fila...)
para que el driver pueda reportar exactamente qué falló.

Jerarquía:
    MigrationError (base)
    ├── ConnectivityError     Conexión con el origen no disponible
    ├── QueryError            Falló una consulta de metadatos/datos
    ├── UnknownTableError     La tabla ya no existe al describirla
    ├── PipelineStateError    Etapa invocada fuera de orden
    ├── StageError            Falló la extracción de una tabla
    ├── EmptyStagingError     Generación sin artefactos en staging
    ├── UnmappedTypeError     Tipo de columna sin mapeo a BSON
    ├── NameCollisionError    Dos tablas normalizan al mismo modelo
    └── LoadError             Falló la escritura de un registro
"""

from typing import Optional, Dict, Any


class MigrationError(Exception):
    """
    Excepción base para todos los errores del pipeline.

    Attributes:
        message: Mensaje legible
        context: Información adicional (table, column, row_index, ...)
        original_exception: Excepción original capturada (si existe)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[BaseException] = None,
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception

        super().__init__(message)
        if original_exception is not None:
            self.__cause__ = original_exception

    @property
    def table(self) -> Optional[str]:
        """Tabla involucrada en el error (None si no aplica)."""
        return self.context.get("table")

    def __str__(self) -> str:
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Contexto: {context_str}"

        if self.original_exception is not None:
            base_msg += (
                f" | Causa: {type(self.original_exception).__name__}: "
                f"{self.original_exception}"
            )

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convierte la excepción a dict para reportes."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "original_error": (
                str(self.original_exception) if self.original_exception else None
            ),
        }


# ============================================================================
# Errores de introspección (origen)
# ============================================================================


class ConnectivityError(MigrationError):
    """La conexión con la base de datos origen no está disponible."""


class QueryError(MigrationError):
    """Falló una consulta contra la base de datos origen."""


class UnknownTableError(MigrationError):
    """
    La tabla no existe al momento de describirla.

    No se toman locks entre descubrimiento y descripción, por lo que una
    tabla eliminada en ese intervalo produce este error.
    """


# ============================================================================
# Errores de etapas
# ============================================================================


class PipelineStateError(MigrationError):
    """Se invocó una etapa sin haber completado la anterior."""


class StageError(MigrationError):
    """Falló la extracción o escritura del artefacto de una tabla."""


class EmptyStagingError(MigrationError):
    """El directorio de staging no contiene artefactos."""


class UnmappedTypeError(MigrationError):
    """
    El tipo base de una columna no tiene equivalente en MongoDB.

    Context:
        - table: Tabla de la columna (si se conoce)
        - column: Nombre de la columna (si se conoce)
        - raw_type: Tipo declarado en el origen (ej: 'geometry')
    """


class NameCollisionError(MigrationError):
    """
    Dos o más tablas distintas normalizan al mismo nombre de modelo.

    Ejemplo: 'order_items' y 'orderitems' → 'Orderitems'
    """


class LoadError(MigrationError):
    """
    Falló la escritura de un registro en el destino.

    Context:
        - table: Tabla origen del artefacto
        - collection: Colección destino
        - row_index: Índice del registro dentro del artefacto
    """
