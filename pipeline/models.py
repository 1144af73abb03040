"""
Estructuras de datos compartidas entre etapas del pipeline.

- ColumnDefinition: definición de una columna tal como la reporta el origen
- FieldDescriptor: definición del campo equivalente en el modelo MongoDB
"""

from dataclasses import dataclass
from typing import Optional

# Expresión de "hora actual al momento de escribir" en MongoDB.
# El Loader la reemplaza por datetime UTC al insertar cada documento.
NOW_EXPRESSION = "$$NOW"

# Extensión de artefactos de staging y de schemas generados
ARTIFACT_EXTENSION = ".json"


@dataclass(frozen=True)
class ColumnDefinition:
    """
    Columna de una tabla origen.

    Attributes:
        name: Nombre de la columna
        raw_type: Tipo declarado completo (ej: 'character varying(255)')
        nullable: True si la columna admite NULL
        default: Literal de default tal cual lo reporta el origen, o None
    """

    name: str
    raw_type: str
    nullable: bool
    default: Optional[str] = None


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Campo de un modelo MongoDB derivado de una ColumnDefinition.

    Attributes:
        type: Alias BSON del tipo (ej: 'string', 'int', 'date')
        required: True si la columna origen es NOT NULL
        default: Literal del origen, NOW_EXPRESSION o None (sin default)
    """

    type: str
    required: bool
    default: Optional[str] = None

    def to_dict(self) -> dict:
        """Representación serializable; omite 'default' si no existe."""
        data = {"type": self.type, "required": self.required}
        if self.default is not None:
            data["default"] = self.default
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "FieldDescriptor":
        return cls(
            type=data["type"],
            required=bool(data["required"]),
            default=data.get("default"),
        )
