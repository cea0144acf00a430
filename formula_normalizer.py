"""Normalización de la notación de calculadora a la gramática canónica.

La notación de la interfaz (``×``, ``÷``, ``^``, ``!``, ``π``, ``ANS``,
``sin(`` …) se reescribe, en un orden fijo, a la cadena canónica que el
evaluador acepta. Después, ``validate_characters`` acota qué caracteres
pueden llegar al parser.
"""

import logging
import math
import re
import string
from decimal import Decimal

from calculator_errors import InvalidCharacterError

logger = logging.getLogger(__name__)


FUNCTION_NAMES = {
    "sin": "SIN",
    "cos": "COS",
    "tan": "TAN",
    "asin": "ASIN",
    "acos": "ACOS",
    "atan": "ATAN",
    "ln": "LN",
    "log": "LOG",
    "abs": "ABS",
    "sqrt": "SQRT",
    "cbrt": "CBRT",
}

SUBNORMAL_SPLIT = -300

_ALLOWED_CHARS = re.compile(r"[0-9+\-*/().,\sA-Za-z_]*")
_EXPONENT_LITERAL = re.compile(r"(?<![0-9.])([0-9]+(?:\.[0-9]+)?)e([+-]?)([0-9]+)")
_FUNCTION_CALL = re.compile(r"[A-Za-z_]+(?=\()")
_NAME_CHARS = frozenset(string.ascii_letters + "_")


def normalize(expression: str, last_result: float = 0.0) -> str:
    """Reescribe ``expression`` a la gramática canónica.

    El orden importa: cada paso depende de la salida del anterior.
    ``last_result`` se sustituye como texto, por valor.
    """
    expr = expression

    # 1. Operadores de la interfaz
    expr = expr.replace("×", "*").replace("÷", "/").replace("−", "-")

    # 2. Literales exponenciales, constantes y ANS
    expr = _EXPONENT_LITERAL.sub(_expand_exponent, expr)
    expr = expr.replace("π", "PI")
    expr = expr.replace("e", "E")
    expr = expr.replace("ANS", register_text(last_result))

    # 3. Factorial postfijo
    expr = _replace_factorial(expr)

    # 4. Potencia
    expr = expr.replace("^", "**")

    # 5. Nombres de función
    expr = _FUNCTION_CALL.sub(lambda m: FUNCTION_NAMES.get(m.group(0), m.group(0)), expr)

    logger.debug("normalize %r -> %r", expression, expr)
    return expr


def validate_characters(normalized: str) -> None:
    """Rechaza cualquier carácter fuera del conjunto permitido.

    Raises:
        InvalidCharacterError: hay al menos un carácter no permitido.
    """
    if _ALLOWED_CHARS.fullmatch(normalized):
        return
    bad = next(c for c in normalized if not _ALLOWED_CHARS.fullmatch(c))
    raise InvalidCharacterError(f"Carácter no permitido: {bad!r}")


def register_text(value: float) -> str:
    """Texto entre paréntesis que reproduce ``value`` dentro de la gramática."""
    if math.isnan(value):
        return "(0/0)"
    if math.isinf(value):
        return "(1/0)" if value > 0 else "(-1/0)"
    return f"({format(Decimal(repr(float(value))), 'f')})"


def _expand_exponent(match: re.Match) -> str:
    mantissa, sign, exponent = match.groups()
    value = int(exponent)
    if sign == "-":
        value = -value
    if value < SUBNORMAL_SPLIT:
        # 10^-324 ya es 0 en doble precisión; se escala en dos pasos.
        return f"({mantissa}*10^({SUBNORMAL_SPLIT})*10^({value - SUBNORMAL_SPLIT}))"
    return f"({mantissa}*10^({value}))"


def _replace_factorial(expr: str) -> str:
    # Solo se captura el literal o el grupo entre paréntesis inmediatamente
    # anterior a '!'; "2+3!" es 2+fact(3).
    chars = list(expr)
    i = 0

    while i < len(chars):
        if chars[i] != "!":
            i += 1
            continue

        start = _operand_start(chars, i)
        if start is None:
            i += 1
            continue

        operand = "".join(chars[start:i])
        replacement = list(f"fact({operand})")
        chars[start : i + 1] = replacement
        i = start + len(replacement)

    return "".join(chars)


def _operand_start(chars: list, bang: int):
    j = bang - 1
    if j < 0:
        return None

    if chars[j] == ")":
        depth = 1
        j -= 1
        while j >= 0 and depth > 0:
            if chars[j] == ")":
                depth += 1
            elif chars[j] == "(":
                depth -= 1
            j -= 1
        if depth > 0:
            return None
        j += 1
        # El grupo es la llamada de una función: se incluye su nombre.
        while j > 0 and chars[j - 1] in _NAME_CHARS:
            j -= 1
        return j

    if chars[j] not in string.digits:
        return None

    start = j
    while start > 0 and chars[start - 1] in string.digits:
        start -= 1
    if start > 1 and chars[start - 1] == "." and chars[start - 2] in string.digits:
        start -= 1
        while start > 0 and chars[start - 1] in string.digits:
            start -= 1
    return start
