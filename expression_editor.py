"""Edición de la expresión cruda que escribe el usuario.

Estas funciones trabajan sobre el texto tal cual aparece en pantalla, sin
pasar por el parser; son comodidades de edición, no transformaciones
algebraicas.
"""

import re

OPERATORS = frozenset("+-×÷^")

# Literal numérico más a la derecha: después de él no hay ningún dígito.
_LAST_NUMBER = re.compile(r"(.*?)([0-9]+(?:\.[0-9]+)?)(?!.*[0-9])", re.DOTALL)
_UNARY_CONTEXT = "+×÷^("


def toggle_sign(s: str) -> str:
    """Cambia el signo del último número de ``s``.

    ``"12+34"`` pasa a ``"12+-34"`` y viceversa. Es una heurística de
    texto: con paréntesis anidados u operadores encadenados puede no
    equivaler a negar el valor de la expresión.
    """
    if not s:
        return s

    m = _LAST_NUMBER.match(s)
    if m is None:
        return s[1:] if s.startswith("-") else "-" + s

    before, num = m.group(1), m.group(2)
    after = s[m.end(2):]

    if before.endswith("+-"):
        return before[:-2] + "+" + num + after
    if before.endswith("-") and (len(before) == 1 or before[-2] in _UNARY_CONTEXT):
        return before[:-1] + num + after
    return before + "-" + num + after


def insert_text(expr: str, text: str) -> str:
    """Añade ``text``; un operador tras otro operador lo sustituye.

    La excepción es ``-`` detrás de un operador distinto, que se conserva
    como menos unario (``2×-3``).
    """
    last = expr[-1:]
    if last in OPERATORS and text in OPERATORS and not (text == "-" and last != "-"):
        return expr[:-1] + text
    return expr + text


def delete_last(expr: str) -> str:
    return expr[:-1]


def reciprocal(expr: str) -> str:
    return f"1/({expr or '0'})"


def raise_to(expr: str, exponent: int) -> str:
    if not expr:
        return expr
    return f"({expr})^{exponent}"


def append_factorial(expr: str) -> str:
    if not expr:
        return expr
    return insert_text(expr, "!")


def percent(expr: str) -> str:
    return insert_text(expr, "/100")


def scientific_exponent(expr: str) -> str:
    """Inserta ``*10^`` para escribir ``a EXP b`` como ``a*10^b``."""
    return insert_text(expr or "1", "*10^")
