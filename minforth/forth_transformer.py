"""
Transforms the raw parser AST into the flat token sequence the evaluator walks.
"""
from typing import List

from minforth.forth_datatypes import Token


class ForthTransformer:
    def transform(self, node: object) -> List[Token]:
        # Lists: transform each item and flatten
        if isinstance(node, list):
            out: List[Token] = []
            for n in node:
                out.extend(self.transform(n))
            return out

        if not isinstance(node, dict):
            return []

        match node.get('tag'):
            case 'program':
                return self.transform(node.get('children', []))
            case 'word':
                return [Token(node['text'], node.get('line'), node.get('col'))]
            case _:
                return self.transform(node.get('children', []))
