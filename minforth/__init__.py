"""
A minimal interpreter for a Forth-like stack language.

    >>> from minforth import Forth
    >>> f = Forth()
    >>> f.eval(": square dup * ; 7 square")
    >>> f.stack()
    [49]
"""
from minforth.forth_datatypes import (
    ForthError, DivisionByZero, StackUnderflow, UnknownWord, InvalidWord,
    ForthSyntaxError, Token, Stack, Dictionary, WordDefinition,
)
from minforth.forth_runtime import Forth, ExecutionResult, Primitives
from minforth.forth_printer import Printer

__version__ = '0.1.0'
