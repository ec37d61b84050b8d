"""
Defines the core data types for the minforth runtime.

This module provides the error hierarchy, the located `Token` string, the
integer `Stack`, and the append-only `Dictionary` of user word definitions,
together with the classification results produced for each token.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple, Iterator

# Values on the stack are signed 32-bit integers.
INT_BITS = 32
INT_MIN = -(1 << (INT_BITS - 1))
INT_MAX = (1 << (INT_BITS - 1)) - 1


def wrap_int(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 32-bit range."""
    value &= (1 << INT_BITS) - 1
    if value > INT_MAX:
        value -= 1 << INT_BITS
    return value


# =================================================================
# Errors
# =================================================================

class ForthError(Exception):
    """Base class for every error raised while evaluating Forth source.

    The class name is the error kind reported to users; `token` is the
    offending token when one is known.
    """
    def __init__(self, detail: str = "", token: Optional['Token'] = None):
        super().__init__(detail)
        self.detail = detail
        self.token = token

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self):
        return f"{self.kind}: {self.detail}" if self.detail else self.kind


class DivisionByZero(ForthError):
    pass


class StackUnderflow(ForthError):
    pass


class UnknownWord(ForthError):
    pass


class InvalidWord(ForthError):
    pass


class ForthSyntaxError(ForthError):
    """The source text could not be tokenized."""
    pass


# =================================================================
# Tokens
# =================================================================

class Token(str):
    """A source word that remembers where it came from.

    Behaves exactly like its text for comparison and hashing, so word bodies
    keep their tokens verbatim.
    """
    def __new__(cls, text: str, line: Optional[int] = None, col: Optional[int] = None):
        obj = super().__new__(cls, text)
        obj.line = line
        obj.col = col
        return obj

    @property
    def loc(self) -> dict:
        return {'line': self.line, 'col': self.col, 'text': str(self)}

    def __repr__(self):
        if self.line is None:
            return f"Token({str(self)!r})"
        return f"Token({str(self)!r}, line={self.line}, col={self.col})"


# =================================================================
# Stack
# =================================================================

class Stack:
    """The data stack. The top of the stack is the end of the list."""

    def __init__(self, values=()):
        self._values: List[int] = [wrap_int(v) for v in values]

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)

    def __eq__(self, other):
        if isinstance(other, Stack):
            return self._values == other._values
        if isinstance(other, (list, tuple)):
            return self._values == list(other)
        return NotImplemented

    def __repr__(self):
        return f"Stack({self._values!r})"

    def require(self, depth: int, token: Optional[Token] = None):
        """Fail with StackUnderflow unless at least `depth` values are present."""
        if len(self._values) < depth:
            raise StackUnderflow(
                f"need {depth} value{'s' if depth != 1 else ''}, have {len(self._values)}",
                token,
            )

    def push(self, value: int):
        self._values.append(wrap_int(value))

    def pop(self) -> int:
        self.require(1)
        return self._values.pop()

    def peek(self, depth: int = 0) -> int:
        """Return the value `depth` places below the top without removing it."""
        self.require(depth + 1)
        return self._values[-1 - depth]

    def as_slice(self) -> List[int]:
        return list(self._values)

    def copy(self) -> 'Stack':
        clone = Stack()
        clone._values = list(self._values)
        return clone


# =================================================================
# Dictionary
# =================================================================

@dataclass(frozen=True)
class WordDefinition:
    """A user word. Never mutated; redefinition appends a new entry."""
    name: str
    body: Tuple[Token, ...]
    snapshot_index: int

    def __repr__(self):
        body = " ".join(self.body)
        return f"<WordDefinition {self.name} [{body}] @{self.snapshot_index}>"


class Dictionary:
    """Append-only list of word definitions.

    Lookups scan from the newest entry backwards so that later definitions
    shadow earlier ones. A `bound` restricts a lookup to the entries that
    existed when a word was defined, i.e. the slice `[0, bound)`.
    """

    def __init__(self):
        self._entries: List[WordDefinition] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[WordDefinition]:
        return iter(self._entries)

    def __getitem__(self, index) -> WordDefinition:
        return self._entries[index]

    def append(self, name: str, body) -> WordDefinition:
        definition = WordDefinition(
            name=name.upper(),
            body=tuple(body),
            snapshot_index=len(self._entries),
        )
        self._entries.append(definition)
        return definition

    def lookup(self, name: str, bound: Optional[int] = None) -> Optional[WordDefinition]:
        key = name.upper()
        end = len(self._entries) if bound is None else min(bound, len(self._entries))
        for i in range(end - 1, -1, -1):
            if self._entries[i].name == key:
                return self._entries[i]
        return None

    def view(self, bound: Optional[int] = None) -> 'DictionaryView':
        return DictionaryView(self, bound)

    def truncate(self, length: int):
        """Drop every entry appended after the dictionary had `length` entries."""
        del self._entries[length:]

    def names(self, bound: Optional[int] = None) -> List[str]:
        end = len(self._entries) if bound is None else min(bound, len(self._entries))
        seen = []
        for entry in reversed(self._entries[:end]):
            if entry.name not in seen:
                seen.append(entry.name)
        return seen


class DictionaryView:
    """The part of a Dictionary visible to a word body."""

    def __init__(self, dictionary: Dictionary, bound: Optional[int] = None):
        self.dictionary = dictionary
        self.bound = bound

    def lookup(self, name: str) -> Optional[WordDefinition]:
        return self.dictionary.lookup(name, self.bound)

    def __len__(self) -> int:
        if self.bound is None:
            return len(self.dictionary)
        return min(self.bound, len(self.dictionary))

    def __repr__(self):
        return f"<DictionaryView bound={self.bound} of {len(self.dictionary)}>"


# =================================================================
# Classification results
# =================================================================

class DefinitionStart:
    """The `:` marker that opens a definition."""
    __slots__ = ()

    def __repr__(self):
        return "DefinitionStart"

    def __eq__(self, other):
        return isinstance(other, DefinitionStart)

    def __hash__(self):
        return hash(DefinitionStart)


@dataclass(frozen=True)
class NumberLiteral:
    value: int


@dataclass(frozen=True)
class OperatorRef:
    name: str


@dataclass(frozen=True)
class WordReference:
    definition: WordDefinition


@dataclass(frozen=True)
class Unknown:
    text: str
