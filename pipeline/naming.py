"""
Convención de nombres entre tablas, artefactos y modelos.

Tabla PostgreSQL        Artefacto staging        Modelo / colección MongoDB
----------------        -----------------        --------------------------
users               →   users.json           →   Users
order_items         →   order_items.json     →   Orderitems
user_profile        →   user_profile.json    →   Userprofile

La normalización concatena los segmentos separados por '_' y capitaliza
SOLO el primer carácter. No es inyectiva: 'order_items' y 'orderitems'
producen 'Orderitems' (ver find_collisions()).
"""

from collections import defaultdict
from pathlib import Path

from .models import ARTIFACT_EXTENSION


def normalize_model_name(table_name: str) -> str:
    """
    Deriva el nombre de modelo MongoDB para una tabla.

    Ejemplos:
        >>> normalize_model_name('order_items')
        'Orderitems'
        >>> normalize_model_name('orders')
        'Orders'
    """
    name = table_name.replace("_", "")
    return name[:1].upper() + name[1:]


def artifact_name(table_name: str) -> str:
    """Nombre del artefacto de staging para una tabla ('users' → 'users.json')."""
    return f"{table_name}{ARTIFACT_EXTENSION}"


def schema_file_name(model_name: str) -> str:
    """Nombre del archivo de schema para un modelo ('Users' → 'Users.json')."""
    return f"{model_name}{ARTIFACT_EXTENSION}"


def table_from_artifact(name) -> str:
    """Recupera el nombre de tabla desde el nombre de un artefacto."""
    return Path(name).name[: -len(ARTIFACT_EXTENSION)]


def find_collisions(table_names) -> dict:
    """
    Detecta tablas distintas que normalizan al mismo modelo.

    Args:
        table_names: Iterable de nombres de tabla

    Returns:
        dict: {modelo: [tabla1, tabla2, ...]} solo para modelos con más de
              una tabla. Dict vacío si no hay colisiones.
    """
    by_model = defaultdict(list)
    for table_name in table_names:
        by_model[normalize_model_name(table_name)].append(table_name)

    return {
        model: sorted(tables) for model, tables in by_model.items() if len(tables) > 1
    }
