"""
Mapeo de tipos relacionales a tipos BSON de MongoDB.

Funciones puras, sin acceso a base de datos:
- base_type(): 'character varying(255)' → 'character varying'
- map_column(): (tipo, nullable, default) → FieldDescriptor
- json_schema_property(): FieldDescriptor → propiedad de $jsonSchema
- to_bson_value(): valor leído con psycopg2 → valor serializable con bson
- resolve_default(): default del schema → valor concreto al escribir

DECISIONES DE DISEÑO:
- Los parámetros de tipo (longitud, precisión) se descartan: varchar(10)
  y varchar(255) producen el mismo tipo
- Los tags son los alias BSON que acepta $jsonSchema ('int', 'string'...)
- Se aceptan grafías de PostgreSQL y de MySQL
- Defaults de tipo CURRENT_TIMESTAMP → NOW_EXPRESSION ($$NOW)
- Un default NULL explícito equivale a no tener default
"""

import datetime
import decimal
import json
import re

from bson.decimal128 import Decimal128

from .errors import UnmappedTypeError
from .models import FieldDescriptor, NOW_EXPRESSION

# Tipo base (sin parámetros, en minúsculas) → alias BSON
TYPE_MAP = {
    # Enteros
    "smallint": "int",
    "integer": "int",
    "int": "int",
    "int2": "int",
    "int4": "int",
    "tinyint": "int",
    "mediumint": "int",
    "smallserial": "int",
    "serial": "int",
    "year": "int",
    "bigint": "long",
    "int8": "long",
    "bigserial": "long",
    # Punto flotante y decimales
    "real": "double",
    "float4": "double",
    "float8": "double",
    "double precision": "double",
    "double": "double",
    "float": "double",
    "numeric": "decimal",
    "decimal": "decimal",
    # Texto
    "character varying": "string",
    "varchar": "string",
    "character": "string",
    "char": "string",
    "bpchar": "string",
    "text": "string",
    "tinytext": "string",
    "mediumtext": "string",
    "longtext": "string",
    "citext": "string",
    "name": "string",
    "uuid": "string",
    "enum": "string",
    "set": "string",
    "money": "string",
    "inet": "string",
    "cidr": "string",
    "macaddr": "string",
    "xml": "string",
    "time": "string",
    "time without time zone": "string",
    "time with time zone": "string",
    "timetz": "string",
    "interval": "string",
    # Booleanos
    "boolean": "bool",
    "bool": "bool",
    # psycopg2 retorna bit(n) como str ('101')
    "bit": "string",
    "bit varying": "string",
    "varbit": "string",
    # Fechas
    "date": "date",
    "datetime": "date",
    "timestamp": "date",
    "timestamp without time zone": "date",
    "timestamp with time zone": "date",
    "timestamptz": "date",
    # Binarios
    "bytea": "binData",
    "blob": "binData",
    "tinyblob": "binData",
    "mediumblob": "binData",
    "longblob": "binData",
    "binary": "binData",
    "varbinary": "binData",
    # Documentos
    "json": "object",
    "jsonb": "object",
}

# Alias BSON aceptados por el validador para cada tag.
# pymongo guarda un int de Python como int32 o int64 según su magnitud.
VALIDATOR_TYPES = {
    "int": ["int", "long"],
    "long": ["int", "long"],
    "double": ["double", "int", "long"],
    # json/jsonb admiten también escalares en la raíz
    "object": ["object", "array", "string", "double", "int", "long", "bool"],
}

# Modificadores de MySQL que no alteran el tipo base
TYPE_MODIFIERS = ("unsigned", "zerofill")

PARAMETERS_PATTERN = re.compile(r"\([^)]*\)")
TIMESTAMP_DEFAULT_PATTERN = re.compile(
    r"^(current_timestamp|localtimestamp|current_date|now|transaction_timestamp"
    r"|statement_timestamp|clock_timestamp)\s*(\(\s*\d*\s*\))?$",
    re.IGNORECASE,
)
# Hora, fracción y zona horaria al final de un literal de timestamp
TIMESTAMP_CLOCK_PATTERN = re.compile(
    r"(\d{2}:\d{2}(?::\d{2})?)(?:\.(\d+))?\s*(?:([+-]\d{2})(?::?(\d{2}))?|(Z))?$",
    re.IGNORECASE,
)
NULL_DEFAULT_PATTERN = re.compile(r"^\(?null\)?(::[\w\s\"\[\]]+)?$", re.IGNORECASE)
CAST_PATTERN = re.compile(r"^(.*?)::[\w\s\"\[\].]+$", re.DOTALL)


def base_type(raw_type: str) -> str:
    """
    Normaliza un tipo declarado a su tipo base.

    Ejemplos:
        >>> base_type('varchar(255)')
        'varchar'
        >>> base_type('timestamp(3) without time zone')
        'timestamp without time zone'
        >>> base_type('INT(11) UNSIGNED')
        'int'
    """
    normalized = PARAMETERS_PATTERN.sub("", raw_type).lower()
    words = [word for word in normalized.split() if word not in TYPE_MODIFIERS]
    return " ".join(words)


def map_type(raw_type: str) -> str:
    """
    Obtiene el alias BSON para un tipo declarado.

    Los arrays de PostgreSQL ('integer[]') se mapean a 'array'.

    Raises:
        UnmappedTypeError: Si el tipo base no está en TYPE_MAP
    """
    name = base_type(raw_type)
    if name.endswith("[]"):
        return "array"

    try:
        return TYPE_MAP[name]
    except KeyError:
        raise UnmappedTypeError(
            f"Tipo '{raw_type}' sin equivalente en MongoDB",
            context={"raw_type": raw_type, "base_type": name},
        ) from None


def map_default(default):
    """
    Traduce el literal de default del origen.

    Returns:
        str|None: NOW_EXPRESSION para defaults de hora actual, None si no
                  hay default (o es NULL), el literal sin cambios en otro caso
    """
    if default is None:
        return None

    literal = str(default).strip()
    if not literal or NULL_DEFAULT_PATTERN.match(literal):
        return None
    if TIMESTAMP_DEFAULT_PATTERN.match(literal):
        return NOW_EXPRESSION
    return str(default)


def map_column(raw_type: str, nullable: bool, default=None) -> FieldDescriptor:
    """
    Deriva el FieldDescriptor de una columna.

    Args:
        raw_type: Tipo declarado (ej: 'varchar(255)')
        nullable: True si la columna admite NULL
        default: Literal de default del origen o None

    Returns:
        FieldDescriptor: (type, required, default)

    Raises:
        UnmappedTypeError: Si el tipo no tiene mapeo

    Ejemplo:
        >>> map_column('int', False, '1')
        FieldDescriptor(type='int', required=True, default='1')
    """
    return FieldDescriptor(
        type=map_type(raw_type),
        required=not nullable,
        default=map_default(default),
    )


def json_schema_property(descriptor: FieldDescriptor) -> dict:
    """
    Construye la propiedad $jsonSchema de un campo.

    Los campos opcionales aceptan además 'null'.
    """
    bson_types = list(VALIDATOR_TYPES.get(descriptor.type, [descriptor.type]))
    if not descriptor.required:
        bson_types.append("null")
    return {"bsonType": bson_types}


def to_bson_value(value):
    """
    Convierte un valor leído del origen a un tipo que bson puede codificar.

    - Decimal → Decimal128
    - date → datetime (medianoche)
    - time, timedelta, UUID y tipos desconocidos → str
    - memoryview/bytearray → bytes
    - dict y list se convierten recursivamente
    """
    if value is None or isinstance(value, (bool, int, float, str, bytes)):
        return value
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day)
    if isinstance(value, decimal.Decimal):
        return Decimal128(str(value))
    if isinstance(value, (memoryview, bytearray)):
        return bytes(value)
    if isinstance(value, dict):
        return {str(key): to_bson_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_bson_value(item) for item in value]
    return str(value)


def _strip_literal(literal: str) -> tuple:
    """
    Quita casts (::tipo), paréntesis externos y comillas de un literal.

    Returns:
        tuple: (texto, True si el literal era un string entre comillas)
    """
    text = literal.strip()
    while True:
        match = CAST_PATTERN.match(text)
        if not match:
            break
        text = match.group(1).strip()
    while text.startswith("(") and text.endswith(")"):
        text = text[1:-1].strip()
    if len(text) >= 2 and text.startswith("'") and text.endswith("'"):
        return text[1:-1].replace("''", "'"), True
    return text, False


def parse_timestamp(text: str) -> datetime.datetime:
    """
    Convierte un literal de fecha/timestamp de PostgreSQL a datetime.

    Antes de Python 3.11 datetime.fromisoformat no acepta offsets abreviados
    ('+00', '+0530'), el sufijo 'Z' ni fracciones de segundo que no tengan
    3 o 6 dígitos; se normalizan antes de convertir.

    Ejemplos:
        '2024-01-01 00:00:00+00'       → 2024-01-01 00:00:00+00:00
        '2024-01-01 10:15:00.5-0300'   → 2024-01-01 10:15:00.500000-03:00
        '2024-01-01'                   → 2024-01-01 00:00:00

    Raises:
        ValueError: Si el literal no es una fecha válida
    """
    text = text.strip()
    match = TIMESTAMP_CLOCK_PATTERN.search(text)
    if match:
        clock, fraction, hours, minutes, zulu = match.groups()
        if fraction:
            clock = f"{clock}.{fraction[:6].ljust(6, '0')}"
        if hours:
            clock = f"{clock}{hours}:{minutes or '00'}"
        elif zulu:
            clock = f"{clock}+00:00"
        text = text[: match.start()] + clock
    return datetime.datetime.fromisoformat(text)


def resolve_default(descriptor: FieldDescriptor, now: datetime.datetime):
    """
    Obtiene el valor concreto del default de un campo al escribir.

    Args:
        descriptor: Campo con default (literal o NOW_EXPRESSION)
        now: Momento de escritura

    Returns:
        Valor tipado según descriptor.type, o None si el campo no tiene
        default o es una expresión no evaluable (ej: nextval('seq'))
    """
    if descriptor.default is None:
        return None
    if descriptor.default == NOW_EXPRESSION:
        return now

    raw = descriptor.default.strip()
    text, quoted = _strip_literal(raw)

    # Llamadas a funciones del origen (nextval, gen_random_uuid...)
    if not quoted and "(" in text:
        return None

    try:
        if descriptor.type in ("int", "long"):
            return int(text)
        if descriptor.type == "double":
            return float(text)
        if descriptor.type == "decimal":
            return Decimal128(text)
        if descriptor.type == "bool":
            return text.lower() in ("true", "t", "1", "yes", "y", "on", "b'1'")
        if descriptor.type == "date":
            return parse_timestamp(text)
        if descriptor.type in ("object", "array"):
            return json.loads(text)
    except (ValueError, TypeError, decimal.InvalidOperation):
        return text
    return text
