# forth_runtime.py

import inspect
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional

from koine import Parser
from minforth.forth_transformer import ForthTransformer
from minforth.forth_interpreter import Evaluator
from minforth.forth_datatypes import (
    Token, Stack, Dictionary, ForthError, ForthSyntaxError, DivisionByZero,
)

# ===================================================================
# 1. Built-in operators
# ===================================================================


def primitive(name: str, arity: int):
    """A decorator that registers a method as a built-in operator.

    The stack is checked for `arity` values before the method runs, so a
    failing operator never leaves the stack half-popped.
    """
    def decorator(func):
        func._forth_word = name.upper()
        func._forth_arity = arity
        return func
    return decorator


def _truncating_div(b: int, a: int) -> int:
    q = abs(b) // abs(a)
    return q if (b < 0) == (a < 0) else -q


class Primitives:
    """The fixed set of built-in operators. Stack notation is `b a` with `a` on top."""

    @primitive('+', 2)
    def _add(self, stack: Stack):
        a = stack.pop(); b = stack.pop()
        stack.push(b + a)

    @primitive('-', 2)
    def _sub(self, stack: Stack):
        a = stack.pop(); b = stack.pop()
        stack.push(b - a)

    @primitive('*', 2)
    def _mul(self, stack: Stack):
        a = stack.pop(); b = stack.pop()
        stack.push(b * a)

    @primitive('/', 2)
    def _div(self, stack: Stack):
        if stack.peek() == 0:
            raise DivisionByZero(f"{stack.peek(1)} / 0")
        a = stack.pop(); b = stack.pop()
        stack.push(_truncating_div(b, a))

    @primitive('DUP', 1)
    def _dup(self, stack: Stack):
        stack.push(stack.peek())

    @primitive('DROP', 1)
    def _drop(self, stack: Stack):
        stack.pop()

    @primitive('SWAP', 2)
    def _swap(self, stack: Stack):
        a = stack.pop(); b = stack.pop()
        stack.push(a)
        stack.push(b)

    @primitive('OVER', 2)
    def _over(self, stack: Stack):
        stack.push(stack.peek(1))

    def operators(self) -> Dict[str, Callable[[Stack, Optional[Token]], None]]:
        """Collect the decorated methods into a name -> operator table."""
        table = {}
        for _, member in inspect.getmembers(self):
            word = getattr(member, '_forth_word', None)
            if word is None or not callable(member):
                continue
            table[word] = self._checked(member, member._forth_arity)
        return table

    def _checked(self, method, arity: int):
        def operator(stack: Stack, token: Optional[Token] = None):
            stack.require(arity, token)
            try:
                method(stack)
            except ForthError as e:
                if e.token is None:
                    e.token = token
                raise
        operator.__name__ = method.__name__
        operator.arity = arity
        return operator


# ===================================================================
# 2. Script Execution
# ===================================================================

ErrorToken = Dict[str, Any]


@dataclass
class ExecutionResult:
    """The structured result of evaluating one line of source."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_token: Optional[ErrorToken] = None
    error: Optional[ForthError] = None
    stacktrace: List[str] = field(default_factory=list)
    side_effects: List[Dict] = field(default_factory=list)

    def format_error(self) -> str:
        """Formats an error message with line and column if available."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")

        if self.error_token and self.error_token.get('line') is not None:
            line = self.error_token.get('line')
            col = self.error_token.get('col')
            col_info = f", col {col}" if col is not None else ""
            msg = f"Error on line {line}{col_info}: {msg}"
        if self.stacktrace:
            msg += "\nForth stacktrace: " + " ".join(f"({name})" for name in self.stacktrace)
        return msg


class Forth:
    """Tokenizes, evaluates and commits minforth source against one stack and dictionary."""

    _parser: Optional[Parser] = None
    _transformer: Optional[ForthTransformer] = None

    def __init__(self):
        if Forth._parser is None:
            grammar_path = Path(__file__).parent / "grammar" / "forth_grammar.yaml"
            Forth._parser = Parser.from_file(str(grammar_path))

        if Forth._transformer is None:
            Forth._transformer = ForthTransformer()

        self.parser = Forth._parser
        self.transformer = Forth._transformer

        self._stack = Stack()
        self.dictionary = Dictionary()
        self.primitives = Primitives()
        self.evaluator = Evaluator(self.dictionary, self.primitives.operators())

    def _dbg(self, *parts):
        if os.environ.get("MINFORTH_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def tokenize(self, source: str) -> List[Token]:
        parse_out = self.parser.parse(source)
        if parse_out.get('status') != 'success':
            raise ForthSyntaxError(parse_out.get('message') or "parse failed")
        return self.transformer.transform(parse_out.get('ast'))

    def stack(self) -> List[int]:
        return self._stack.as_slice()

    def words(self) -> List[str]:
        return self.dictionary.names()

    def eval(self, source: str):
        """Evaluate `source`, committing the new stack only if every token succeeds.

        The working stack starts from the current stack. On failure the
        working stack is discarded, definitions made by this call are removed,
        and the original exception propagates.
        """
        self.evaluator.call_stack.clear()
        self.evaluator.current_token = None
        tokens = self.tokenize(source)
        mark = len(self.dictionary)
        working = self._stack.copy()
        try:
            self.evaluator.run(tokens, working)
        except BaseException as e:
            self._dbg("rollback", type(e).__name__, f"dictionary {len(self.dictionary)} -> {mark}")
            self.dictionary.truncate(mark)
            raise
        self._stack = working
        self._dbg("commit", self._stack.as_slice())

    def handle_script(self, source: str) -> ExecutionResult:
        """Like `eval`, but reports failures in an ExecutionResult instead of raising."""
        try:
            self.eval(source)
        except ForthError as e:
            trace = [frame["name"] for frame in self.evaluator.call_stack]
            # Inside a word, point at the outermost call in this source rather
            # than at the body token, which sits where the word was defined.
            if self.evaluator.call_stack:
                err_token = self.evaluator.call_stack[0]["call_site"]
            else:
                token = e.token if e.token is not None else self.evaluator.current_token
                err_token = token.loc if isinstance(token, Token) else None
            result = ExecutionResult(
                status='error',
                value=self.stack(),
                error_message=str(e),
                error_token=err_token,
                error=e,
                stacktrace=trace,
            )
            result.side_effects.append({'topics': ['stderr'], 'message': result.format_error()})
            return result
        return ExecutionResult(status='success', value=self.stack())
