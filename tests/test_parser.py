import pytest
import yaml
from pathlib import Path
from koine import Parser

# --- Test Setup and Fixtures ---

GRAMMAR_PATH = Path(__file__).resolve().parents[1] / "minforth" / "grammar" / "forth_grammar.yaml"

@pytest.fixture(scope="module")
def parser():
    """Loads the minforth grammar and returns a Parser instance."""
    with GRAMMAR_PATH.open() as f:
        grammar_def = yaml.safe_load(f)
    return Parser(grammar_def)

def words(result):
    """Reduce a parse result to (text, line, col) triples for each word."""
    assert result['status'] == 'success'
    ast = result['ast']
    assert ast['tag'] == 'program'
    return [(w['text'], w['line'], w['col']) for w in ast['children']]

# --- Test Cases ---

TEST_CASES = [
    ("empty_program", "", []),
    ("only_whitespace", "  \t \n ", []),
    ("single_number", "42", [("42", 1, 1)]),
    ("simple_expression", "1 2 +", [("1", 1, 1), ("2", 1, 3), ("+", 1, 5)]),
    ("leading_and_trailing_space", "  dup  ", [("dup", 1, 3)]),
    ("tabs_and_runs_of_spaces", "1\t\t2    swap", [("1", 1, 1), ("2", 1, 4), ("swap", 1, 9)]),
    ("newlines_are_whitespace", "1\n2 +", [("1", 1, 1), ("2", 2, 1), ("+", 2, 3)]),
    ("definition", ": sq dup * ;", [
        (":", 1, 1), ("sq", 1, 3), ("dup", 1, 6), ("*", 1, 10), (";", 1, 12),
    ]),
    ("punctuation_is_part_of_words", "foo-bar! -12 1foo", [
        ("foo-bar!", 1, 1), ("-12", 1, 10), ("1foo", 1, 14),
    ]),
]

@pytest.mark.parametrize("test_id, source_code, expected", TEST_CASES, ids=[c[0] for c in TEST_CASES])
def test_grammar_splits_on_whitespace(parser, test_id, source_code, expected):
    assert words(parser.parse(source_code)) == expected

def test_grammar_matches_str_split(parser):
    source = "  : a 1 2 ;\n a   a +  "
    assert [w[0] for w in words(parser.parse(source))] == source.split()

def test_grammar_loads_from_file():
    p = Parser.from_file(str(GRAMMAR_PATH))
    assert words(p.parse("DROP")) == [("DROP", 1, 1)]
