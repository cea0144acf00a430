"""Parseo y evaluación de expresiones para la calculadora científica.

La expresión de la interfaz se normaliza (``formula_normalizer``), se
valida carácter a carácter y se convierte en tokens tipados. Un parser de
descenso recursivo construye un árbol que después se evalúa contra la
tabla fija de funciones del proveedor matemático. No se ejecuta código
dinámico en ningún punto.
"""

from __future__ import annotations

import math
import operator
import re
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from calculator_errors import (
    NegativeOperandError,
    NonFiniteOperandError,
    NonIntegerOperandError,
    ParseError,
)
from formula_normalizer import normalize, validate_characters


FACTORIAL_LIMIT = 170
MAX_NESTING = 100

FUNCTIONS = (
    "fact",
    "SIN",
    "COS",
    "TAN",
    "ASIN",
    "ACOS",
    "ATAN",
    "LN",
    "LOG",
    "ABS",
    "SQRT",
    "CBRT",
)


class AngleMode(str, Enum):
    DEGREES = "deg"
    RADIANS = "rad"


# ── Conversión angular ───────────────────────────────────────────

def to_radians(x: float, mode: AngleMode) -> float:
    return math.radians(x) if mode == AngleMode.DEGREES else x


def from_radians(x: float, mode: AngleMode) -> float:
    return math.degrees(x) if mode == AngleMode.DEGREES else x


# ── Factorial ────────────────────────────────────────────────────

def factorial(n: float) -> float:
    """Factorial de un entero no negativo representado como float.

    Devuelve ``inf`` por encima de 170, donde el resultado no cabe en un
    double.

    Raises:
        NonFiniteOperandError: ``n`` es infinito o NaN.
        NegativeOperandError: ``n`` es negativo.
        NonIntegerOperandError: ``n`` tiene parte fraccionaria.
    """
    if not math.isfinite(n):
        raise NonFiniteOperandError("factorial no admite infinito o NaN")
    if n < 0:
        raise NegativeOperandError("factorial no admite negativos")
    if n != math.floor(n):
        raise NonIntegerOperandError("factorial requiere un entero")
    if n > FACTORIAL_LIMIT:
        return math.inf
    return float(math.factorial(int(n)))


# ── Aritmética IEEE ──────────────────────────────────────────────

def _is_odd_integer(x) -> bool:
    return math.isfinite(x) and x == math.floor(x) and int(x) % 2 == 1


def ieee_divide(a: float, b: float) -> float:
    """División con semántica IEEE: x/0 es ±inf y 0/0 es NaN."""
    try:
        return a / b
    except ZeroDivisionError:
        if math.isnan(a) or a == 0:
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def ieee_power(a: float, b: float) -> float:
    """Potencia que desborda a ±inf y devuelve NaN en vez de complejos."""
    try:
        result = a ** b
    except ZeroDivisionError:
        return math.copysign(math.inf, a) if _is_odd_integer(b) else math.inf
    except OverflowError:
        return -math.inf if a < 0 and _is_odd_integer(b) else math.inf
    if isinstance(result, complex):
        return math.nan
    return result


class PythonMathProvider:
    """Provee funciones, constantes y operadores sobre floats de doble precisión."""

    def number(self, text: str) -> float:
        return float(text)

    def constants(self) -> dict:
        return {
            "PI": math.pi,
            "E": math.e,
            "Infinity": math.inf,
            "NaN": math.nan,
        }

    def binary_operators(self) -> dict:
        return {
            "+": operator.add,
            "-": operator.sub,
            "*": operator.mul,
            "/": ieee_divide,
            "**": ieee_power,
        }

    def negate(self, x):
        return -x

    def build_namespace(self, angle_mode: AngleMode) -> dict:
        mode = AngleMode(angle_mode)

        def _real(fn):
            def w(x):
                try:
                    return fn(x)
                except ValueError:
                    return math.nan

            return w

        def _trig(fn):
            return _real(lambda x: fn(to_radians(x, mode)))

        def _inv_trig(fn):
            return _real(lambda x: from_radians(fn(x), mode))

        def _log(fn):
            real = _real(fn)
            return lambda x: -math.inf if x == 0 else real(x)

        return {
            "fact": factorial,
            "SIN": _trig(math.sin),
            "COS": _trig(math.cos),
            "TAN": _trig(math.tan),
            "ASIN": _inv_trig(math.asin),
            "ACOS": _inv_trig(math.acos),
            "ATAN": _inv_trig(math.atan),
            "LN": _log(math.log),
            "LOG": _log(math.log10),
            "ABS": abs,
            "SQRT": _real(math.sqrt),
            "CBRT": math.cbrt,
        }


# ── Tokens ───────────────────────────────────────────────────────

class Token(NamedTuple):
    kind: str
    text: str
    pos: int


_TOKEN_RE = re.compile(
    r"(?P<NUMBER>[0-9]+(?:\.[0-9]+)?)"
    r"|(?P<NAME>[A-Za-z_]+)"
    r"|(?P<OP>\*\*|[-+*/])"
    r"|(?P<LPAREN>\()"
    r"|(?P<RPAREN>\))"
    r"|(?P<COMMA>,)"
    r"|(?P<SPACE>\s+)"
)


def tokenize(text: str) -> list[Token]:
    tokens = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ParseError(f"Símbolo inesperado en la posición {pos}: {text[pos]!r}")
        kind = match.lastgroup
        if kind != "SPACE":
            tokens.append(Token(kind, match.group(), pos))
        pos = match.end()
    return tokens


# ── Árbol de la expresión ────────────────────────────────────────

@dataclass(frozen=True)
class Number:
    text: str


@dataclass(frozen=True)
class Constant:
    name: str


@dataclass(frozen=True)
class Call:
    name: str
    argument: object


@dataclass(frozen=True)
class Negate:
    operand: object


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: object
    right: object


class _Parser:
    """Descenso recursivo; de menor a mayor precedencia:

    suma/resta (izq.) → producto/cociente (izq.) → potencia (der.)
    → menos unario → llamada a función → grupo.
    """

    def __init__(self, tokens: list[Token], constants):
        self._tokens = tokens
        self._pos = 0
        self._depth = 0
        self._constants = constants

    def parse(self):
        if not self._tokens:
            raise ParseError("Expresión vacía")
        node = self._sum()
        tok = self._peek()
        if tok is not None:
            if tok.kind == "RPAREN":
                raise ParseError("Paréntesis de cierre sin abrir")
            raise ParseError(f"Token inesperado: {tok.text!r}")
        return node

    def _peek(self) -> Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _accept(self, kind: str, text: str | None = None) -> Token | None:
        tok = self._peek()
        if tok is None or tok.kind != kind or (text is not None and tok.text != text):
            return None
        self._pos += 1
        return tok

    def _sum(self):
        node = self._product()
        while True:
            tok = self._accept("OP", "+") or self._accept("OP", "-")
            if tok is None:
                return node
            node = BinaryOp(tok.text, node, self._product())

    def _product(self):
        node = self._power()
        while True:
            tok = self._accept("OP", "*") or self._accept("OP", "/")
            if tok is None:
                return node
            node = BinaryOp(tok.text, node, self._power())

    def _power(self):
        operands = [self._unary()]
        while self._accept("OP", "**"):
            operands.append(self._unary())
        node = operands.pop()
        while operands:
            node = BinaryOp("**", operands.pop(), node)
        return node

    def _unary(self):
        negations = 0
        while self._accept("OP", "-"):
            negations += 1
        node = self._primary()
        for _ in range(negations):
            node = Negate(node)
        return node

    def _primary(self):
        tok = self._peek()
        if tok is None:
            raise ParseError("Falta un operando al final de la expresión")

        if tok.kind == "NUMBER":
            self._pos += 1
            return Number(tok.text)

        if tok.kind == "NAME":
            self._pos += 1
            if self._accept("LPAREN"):
                if tok.text not in FUNCTIONS:
                    raise ParseError(f"Función desconocida: {tok.text}")
                return Call(tok.text, self._group())
            if tok.text in FUNCTIONS:
                raise ParseError(f"Falta '(' después de {tok.text}")
            if tok.text not in self._constants:
                raise ParseError(f"Identificador desconocido: {tok.text}")
            return Constant(tok.text)

        if tok.kind == "LPAREN":
            self._pos += 1
            return self._group()

        raise ParseError(f"Falta un operando antes de {tok.text!r}")

    def _group(self):
        # Cada nivel de paréntesis cuesta varias llamadas recursivas.
        self._depth += 1
        if self._depth > MAX_NESTING:
            raise ParseError("Expresión demasiado anidada")
        node = self._sum()
        self._expect_close()
        self._depth -= 1
        return node

    def _expect_close(self):
        if self._accept("RPAREN"):
            return
        tok = self._peek()
        if tok is None:
            raise ParseError("Paréntesis sin cerrar")
        if tok.kind == "COMMA":
            raise ParseError("Las funciones admiten un solo argumento")
        raise ParseError(f"Se esperaba ')' y se encontró {tok.text!r}")


def parse(text: str, constants=("PI", "E", "Infinity", "NaN")):
    """Convierte una cadena canónica en el árbol de la expresión."""
    return _Parser(tokenize(text), constants).parse()


class FormulaEvaluator:
    """Transforma expresiones de UI y evalúa su valor numérico."""

    def __init__(self, provider=None):
        self._provider = provider if provider is not None else PythonMathProvider()

    @property
    def provider(self):
        return self._provider

    def evaluate(
        self,
        expression: str,
        last_result: float = 0.0,
        angle_mode: AngleMode = AngleMode.DEGREES,
    ):
        """Evalúa ``expression`` y devuelve el valor del proveedor.

        Raises:
            InvalidCharacterError: quedan caracteres no permitidos tras normalizar.
            ParseError: la expresión no respeta la gramática.
            FactorialDomainError: argumento inválido para ``fact``.
        """
        if not expression or not expression.strip():
            raise ParseError("Expresión vacía")

        processed = normalize(expression, last_result)
        validate_characters(processed)

        constants = self._provider.constants()
        tree = _Parser(tokenize(processed), constants).parse()

        namespace = self._provider.build_namespace(angle_mode)
        operators = self._provider.binary_operators()
        return self._evaluate(tree, namespace, constants, operators)

    def _evaluate(self, tree, namespace, constants, operators):
        # Postorden con pila explícita: "1+1+1+…" produce árboles tan
        # profundos como operadores tenga la expresión.
        values = []
        pending = [(tree, False)]
        while pending:
            node, children_done = pending.pop()
            if isinstance(node, Number):
                values.append(self._provider.number(node.text))
            elif isinstance(node, Constant):
                values.append(constants[node.name])
            elif not children_done:
                pending.append((node, True))
                if isinstance(node, BinaryOp):
                    pending.append((node.right, False))
                    pending.append((node.left, False))
                elif isinstance(node, Negate):
                    pending.append((node.operand, False))
                elif isinstance(node, Call):
                    pending.append((node.argument, False))
                else:
                    raise TypeError(f"Nodo desconocido: {node!r}")
            elif isinstance(node, BinaryOp):
                right = values.pop()
                left = values.pop()
                values.append(operators[node.op](left, right))
            elif isinstance(node, Negate):
                values.append(self._provider.negate(values.pop()))
            else:
                values.append(namespace[node.name](values.pop()))
        return values.pop()
