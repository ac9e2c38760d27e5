"""
Serializacion de valores para la columna de texto del almacen.

Reglas:
- Texto plano se guarda tal cual.
- Listas y dicts se guardan como JSON.
- Un texto que ya parece JSON se vuelve a serializar (como JSON string)
  para que al leerlo no se confunda con una lista o dict.
- None y False se guardan como cadena vacia, True como "1".

La comparacion de igualdad se hace sobre valores des-serializados y
normalizados, nunca byte a byte.
"""
import json
from typing import Any


def _canonical_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def is_serialized(raw: Any) -> bool:
    """Indica si un texto guardado corresponde a un valor JSON serializado."""
    if not isinstance(raw, str):
        return False
    text = raw.strip()
    if not text or text[0] not in "[{\"":
        return False
    try:
        decoded = json.loads(text)
    except ValueError:
        return False
    if text[0] == "\"":
        return isinstance(decoded, str)
    return True


def serialize(value: Any) -> str:
    """Convierte un valor Python al texto que se persiste."""
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    if isinstance(value, (int, float)):
        return _canonical_number(value)
    if isinstance(value, str):
        # Doble serializacion para textos que parecen JSON
        return json.dumps(value) if is_serialized(value) else value
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def unserialize(raw: Any) -> Any:
    """Convierte el texto persistido de vuelta a un valor Python."""
    if raw is None:
        return None
    if is_serialized(raw):
        return json.loads(raw)
    return raw


def normalize(value: Any) -> Any:
    """
    Forma canonica de un valor para comparar igualdad semantica.

    5, 5.0 y "5" son iguales; None, False y "" tambien.
    """
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    if isinstance(value, (int, float)):
        return _canonical_number(value)
    if isinstance(value, (list, tuple)):
        return [normalize(v) for v in value]
    if isinstance(value, dict):
        return {str(k): normalize(v) for k, v in value.items()}
    return value if isinstance(value, str) else str(value)


def values_equal(desired: Any, existing: Any) -> bool:
    """Compara dos valores ya des-serializados."""
    return normalize(desired) == normalize(existing)
