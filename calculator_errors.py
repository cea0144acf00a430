"""Jerarquía de errores del motor de cálculo.

Todas las excepciones derivan de ``ValueError`` para que los llamadores
que ya capturan ``ValueError`` (la interfaz, la consola) sigan funcionando.
"""


class EvalError(ValueError):
    """Error base de cualquier fallo al evaluar una expresión."""


class InvalidCharacterError(EvalError):
    """La expresión normalizada contiene caracteres no permitidos."""


InvalidExpression = InvalidCharacterError


class ParseError(EvalError):
    """Violación estructural de la gramática."""


class FactorialDomainError(EvalError):
    """Operando fuera del dominio del factorial."""


class NonFiniteOperandError(FactorialDomainError):
    pass


class NegativeOperandError(FactorialDomainError):
    pass


class NonIntegerOperandError(FactorialDomainError):
    pass
