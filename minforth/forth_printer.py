"""
A pretty-printer for minforth stacks and dictionaries.
"""
from minforth.forth_datatypes import Stack, Dictionary, WordDefinition


class Printer:
    """Formats runtime values the way a Forth prompt shows them."""

    def __init__(self, show_depth=True):
        self.show_depth = show_depth

    def pformat(self, obj):
        """Public entry point to format an object."""
        if isinstance(obj, (Stack, list, tuple)):
            return self._pformat_stack(list(obj))
        if isinstance(obj, WordDefinition):
            return self._pformat_definition(obj)
        if isinstance(obj, Dictionary):
            return "\n".join(self._pformat_definition(d) for d in obj)
        return repr(obj)

    def _pformat_stack(self, values):
        body = " ".join(str(v) for v in values)
        if not self.show_depth:
            return body
        return f"<{len(values)}> {body}".rstrip()

    def _pformat_definition(self, definition: WordDefinition):
        return f": {definition.name} {' '.join(definition.body)} ;"
