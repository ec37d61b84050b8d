"""
The core minforth interpreter, containing the token classifier and the Evaluator.
"""
import os
import re
import sys
from typing import Any, Callable, Dict, List, Optional, Sequence

from minforth.forth_datatypes import (
    Token, Stack, Dictionary, DictionaryView,
    DefinitionStart, NumberLiteral, OperatorRef, WordReference, Unknown,
    UnknownWord, InvalidWord, INT_MIN, INT_MAX,
)

DEFINITION_START = ':'
DEFINITION_END = ';'

_NUMBER_RE = re.compile(r'[+-]?[0-9]+')


def parse_number(text: str) -> Optional[int]:
    """Parse a signed decimal literal in the 32-bit range, else None."""
    if not _NUMBER_RE.fullmatch(text):
        return None
    value = int(text)
    if value < INT_MIN or value > INT_MAX:
        return None
    return value


def classify(token: str, view: DictionaryView, operators) -> Any:
    """Resolve a raw token against the visible dictionary and the built-ins.

    User words are checked before built-ins so that they can shadow them;
    numbers are checked last.
    """
    if token == DEFINITION_START:
        return DefinitionStart()

    definition = view.lookup(token)
    if definition is not None:
        return WordReference(definition)

    name = token.upper()
    if name in operators:
        return OperatorRef(name)

    value = parse_number(token)
    if value is not None:
        return NumberLiteral(value)

    return Unknown(str(token))


class Evaluator:
    """The minforth execution engine.

    `run` walks a token sequence by index against a working stack. A word
    reference pushes a frame that walks the word's body with the word's
    snapshot index as the dictionary bound, so a body never sees words
    defined after it. Frames left on `call_stack` after a failure name the
    words that were active.
    """
    def __init__(self, dictionary: Dictionary, operators: Dict[str, Callable[[Stack, Optional[Token]], None]]):
        self.dictionary = dictionary
        self.operators = operators
        self.call_stack: List[Dict[str, Any]] = []
        self.current_token: Optional[Token] = None

    def _dbg(self, *parts):
        if os.environ.get("MINFORTH_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def _push_frame(self, definition, call_site: Optional[Token]):
        self.call_stack.append({
            'name': definition.name,
            'definition': definition,
            'call_site': getattr(call_site, 'loc', None),
            'tokens': definition.body,
            'index': 0,
            'bound': definition.snapshot_index,
        })

    def _pop_frame(self):
        if self.call_stack:
            self.call_stack.pop()

    def run(self, tokens: Sequence[Token], stack: Stack, bound: Optional[int] = None) -> Stack:
        # Word calls push a frame onto call_stack instead of recursing, so
        # nesting depth is limited only by the number of definitions.
        top = {'name': None, 'tokens': tokens, 'index': 0, 'bound': bound}
        base = len(self.call_stack)
        while True:
            frame = self.call_stack[-1] if len(self.call_stack) > base else top
            body = frame['tokens']
            i = frame['index']
            if i >= len(body):
                if frame is top:
                    return stack
                self._pop_frame()
                continue

            token = body[i]
            self.current_token = token
            frame['index'] = i + 1
            match classify(token, self.dictionary.view(frame['bound']), self.operators):
                case NumberLiteral(value=value):
                    stack.push(value)
                case OperatorRef(name=name):
                    self._dbg("op", name, stack.as_slice())
                    self.operators[name](stack, token)
                case DefinitionStart():
                    frame['index'] = self._define(body, i)
                case WordReference(definition=definition):
                    self._dbg("enter", definition.name, f"bound={definition.snapshot_index}")
                    self._push_frame(definition, token)
                case Unknown(text=text):
                    raise UnknownWord(text, token)

    def _define(self, tokens: Sequence[Token], start: int) -> int:
        """Parse `: name body... ;` at `start`, record it, and return the index after `;`."""
        marker = tokens[start]
        if start + 1 >= len(tokens) or tokens[start + 1] == DEFINITION_END:
            raise InvalidWord("definition has no name", marker)
        name = tokens[start + 1]

        end = None
        for j in range(start + 2, len(tokens)):
            if tokens[j] == DEFINITION_END:
                end = j
                break
        if end is None:
            raise InvalidWord(f"definition of {name} is missing ';'", name)

        body = tokens[start + 2:end]
        if not body:
            raise InvalidWord(f"definition of {name} has an empty body", name)
        if '0' <= name[0] <= '9':
            raise InvalidWord(f"word name {name} starts with a digit", name)

        definition = self.dictionary.append(name, body)
        self._dbg("define", definition.name, list(body), f"snapshot={definition.snapshot_index}")
        return end + 1
