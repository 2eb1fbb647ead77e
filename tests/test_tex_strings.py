"""
Test Suite for Brace-Aware TeX String Tokenization

Covers the brace tree, the depth scanner, the depth-0 splitter and the word
abbreviator, including the documented edge cases:
- Stray closing braces are ordinary text
- Unterminated opening braces leave their group unclosed
- Separators at the edges of a string are ignored
- Control-sequence groups are reported as a single unit
"""

import re
import sys
from pathlib import Path
import pytest

# Add the parent directory to path to import bibnames
sys.path.insert(0, str(Path(__file__).parent.parent))

from bibnames.tex_strings import (
    BraceNestingError,
    BraceTree,
    Char,
    SpecialUnit,
    TexStringConfig,
    abbreviate,
    scan_tex_string,
    split_keep_separator,
    split_name_list,
    split_tex_string,
)


# Default separator: whitespace, ties and control spaces; empty parts dropped
DEFAULT_SPLIT_CASES = [
    ("", []),
    ("     ", []),
    ("a", ["a"]),
    ("on a", ["on", "a"]),
    ("Matsui      Fuuka", ["Matsui", "Fuuka"]),
    ("{Matsui      Fuuka}", ["{Matsui      Fuuka}"]),
    ("Matsui\\ Fuuka", ["Matsui", "Fuuka"]),
    ("{Matsui\\ Fuuka}", ["{Matsui\\ Fuuka}"]),
    ("Michail~Markovitch", ["Michail", "Markovitch"]),
    ("  Donald   E. Knuth  ", ["Donald", "E.", "Knuth"]),
    ("Vall{\\'e}e Poussin", ["Vall{\\'e}e", "Poussin"]),
    # a stray closing brace drops below depth 0 and suppresses further splits
    ("a}b c", ["a}b c"]),
]

NAME_LIST_CASES = [
    ("Johnson and Peterson", ["Johnson", "Peterson"]),
    ("Johnson AND Peterson", ["Johnson", "Peterson"]),
    ("Johnson AnD Peterson", ["Johnson", "Peterson"]),
    ("Armand and Peterson", ["Armand", "Peterson"]),
    ("Armand and anderssen", ["Armand", "anderssen"]),
    ("{Armand and Anderssen}", ["{Armand and Anderssen}"]),
    ("What a Strange{ }and Bizzare Name! and Peterson", ["What a Strange{ }and Bizzare Name!", "Peterson"]),
    ("What a Strange and{ }Bizzare Name! and Peterson", ["What a Strange and{ }Bizzare Name!", "Peterson"]),
    ("Knuth and Lamport and Patashnik", ["Knuth", "Lamport", "Patashnik"]),
]

ABBREVIATE_CASES = [
    ("Name", "N."),
    ("Some words", "S. w."),
    ("First-Second", "F.-S."),
    ("Jean-Paul Sartre", "J.-P. S."),
    ("E.", "E."),
    ("a  b", "a.  b."),
    ("", ""),
    ("{\\'E}mile", "{\\'E}mile"),
]


def test_default_separator_splits():
    """Test splitting with the default whitespace/tie/control-space separator."""
    failed = 0
    for text, expected in DEFAULT_SPLIT_CASES:
        result = split_tex_string(text)
        if result != expected:
            failed += 1
            print(f"FAILED: {text!r}: expected {expected}, got {result}")

    assert failed == 0, f"Default split tests: {failed} failures out of {len(DEFAULT_SPLIT_CASES)} tests"


def test_explicit_separator_splits():
    assert split_tex_string(".a.b.c.", r"\.") == [".a", "b", "c."]
    assert split_tex_string(".a.b.c.{d.}.", r"\.") == [".a", "b", "c", "{d.}."]
    assert split_tex_string("   ", " ", strip=False, filter_empty=False) == [" ", " "]
    assert split_tex_string("Dixit, Jr, Avinash K. ", ",") == ["Dixit", "Jr", "Avinash K."]
    assert split_tex_string("{Barnes and Noble, Inc.}", ",") == ["{Barnes and Noble, Inc.}"]


def test_explicit_separator_keeps_empty_tail():
    """The tail is always emitted, so an empty string still yields one part."""
    assert split_tex_string("", ",") == [""]
    assert split_tex_string("", ",", filter_empty=True) == []


def test_leading_and_trailing_separators_are_ignored():
    assert split_tex_string(",a,b,", ",") == [",a", "b,"]
    assert split_tex_string(" and Peterson", " and ") == ["and Peterson"]


def test_default_separator_forces_filter_empty():
    assert split_tex_string("a  b", filter_empty=False) == ["a", "b"]


def test_compiled_separator_is_accepted():
    assert split_tex_string("a;B;c", re.compile(";")) == ["a", "B", "c"]


def test_split_is_idempotent_on_split_tokens():
    """Splitting tokens that were already split gives each token back unchanged."""
    for text in ["Donald E. Knuth", "Charles Louis Xavier Joseph de la Vall{\\'e}e Poussin", "a b c"]:
        for token in split_tex_string(text):
            assert split_tex_string(token) == [token]


def test_split_name_list():
    failed = 0
    for text, expected in NAME_LIST_CASES:
        result = split_name_list(text)
        if result != expected:
            failed += 1
            print(f"FAILED: {text!r}: expected {expected}, got {result}")

    assert failed == 0, f"Name list tests: {failed} failures out of {len(NAME_LIST_CASES)} tests"


def test_brace_tree_structure():
    tree = BraceTree.parse("a{b}c")
    assert tree.level == 0
    assert tree.closed is False
    assert tree.contents == ["a", BraceTree(level=1, closed=True, contents=["b"]), "c"]


def test_brace_tree_round_trip():
    for text in ["{aaaa{bbbb{cccc{dddd}}}ffff}", "plain", "a}b", "{\\'e}tienne", "x{\\\"{O}}y", ""]:
        assert str(BraceTree.parse(text)) == text


def test_unterminated_brace_leaves_group_open():
    tree = BraceTree.parse("a{b{c}")
    outer = tree.contents[1]
    assert isinstance(outer, BraceTree)
    assert outer.closed is False
    assert outer.contents[1] == BraceTree(level=2, closed=True, contents=["c"])
    assert str(tree) == "a{b{c}"


def test_stray_closing_brace_is_literal():
    tree = BraceTree.parse("a}b")
    assert tree.contents == ["a", "}", "b"]


def test_nesting_limit():
    BraceTree.parse("{" * 100 + "x")
    with pytest.raises(BraceNestingError, match="too many nested braces"):
        BraceTree.parse("{" * 101 + "x")
    with pytest.raises(ValueError):
        BraceTree.parse("{{x}}", max_level=1)


def test_braced_root_stops_at_its_closing_brace():
    tree = BraceTree.parse("ab}cd", level=1)
    assert tree.closed is True
    assert tree.contents == ["a", "b"]


def _count_nested_nodes(tree: BraceTree) -> int:
    count = 0
    for child in tree.contents:
        if isinstance(child, BraceTree):
            assert child.level == tree.level + 1
            count += 1 + _count_nested_nodes(child)
    return count


def test_every_opening_brace_creates_one_nested_node():
    for text in ["{a{b}{c{d}}}", "x{y", "}{}{", "{\\'e}{\\\"{o}}", "no braces"]:
        assert _count_nested_nodes(BraceTree.parse(text)) == text.count("{")


def test_special_unit_detection():
    special = BraceTree.parse("{\\'e}").contents[0]
    assert isinstance(special, BraceTree)
    assert special.is_special_unit()
    assert special.inner_string() == "\\'e"

    plain = BraceTree.parse("{e}").contents[0]
    assert isinstance(plain, BraceTree)
    assert not plain.is_special_unit()

    nested = BraceTree.parse("{{\\'e}}").contents[0]
    assert isinstance(nested, BraceTree)
    inner = nested.contents[0]
    assert isinstance(inner, BraceTree)
    assert not inner.is_special_unit()


def test_inner_string_keeps_nested_braces():
    special = BraceTree.parse('{\\"{O}}').contents[0]
    assert isinstance(special, BraceTree)
    assert special.inner_string() == '\\"{O}'


def test_scan_yields_content_with_depth():
    assert list(scan_tex_string("a{b}c")) == [(Char("a"), 0), (Char("b"), 1), (Char("c"), 0)]
    assert list(scan_tex_string("{\\'e}t")) == [(SpecialUnit("\\'e"), 1), (Char("t"), 0)]
    assert list(scan_tex_string("{{\\'e}}")) == [(Char("\\"), 2), (Char("'"), 2), (Char("e"), 2)]
    assert list(scan_tex_string("a}")) == [(Char("a"), 0), (Char("}"), 0)]


def test_scan_with_braces():
    assert list(scan_tex_string("a{b}", include_braces=True)) == [
        (Char("a"), 0),
        (Char("{"), 1),
        (Char("b"), 1),
        (Char("}"), 0),
    ]
    assert list(scan_tex_string("{b", include_braces=True)) == [(Char("{"), 1), (Char("b"), 1)]
    assert list(scan_tex_string("{\\ss}", include_braces=True)) == [
        (Char("{"), 1),
        (SpecialUnit("\\ss"), 1),
        (Char("}"), 0),
    ]


def test_scan_nesting_limit():
    with pytest.raises(BraceNestingError):
        list(scan_tex_string("{" * 101))
    with pytest.raises(BraceNestingError):
        list(scan_tex_string("{{{x}}}", max_level=2))


def test_split_keep_separator():
    assert split_keep_separator("Some words-words") == ["Some", " ", "words", "-", "words"]
    assert split_keep_separator("a--b") == ["a", "-", "", "-", "b"]
    assert split_keep_separator("word") == ["word"]


def test_abbreviate():
    failed = 0
    for text, expected in ABBREVIATE_CASES:
        result = abbreviate(text)
        if result != expected:
            failed += 1
            print(f"FAILED: {text!r}: expected {expected!r}, got {result!r}")

    assert failed == 0, f"Abbreviation tests: {failed} failures out of {len(ABBREVIATE_CASES)} tests"


def test_abbreviate_leaves_delimiters_alone():
    # the delimiter itself is alphabetic but must not be abbreviated
    assert abbreviate("band", "n") == "b.nd."


def test_config_is_immutable():
    config = TexStringConfig.create_default()
    assert config.max_brace_depth == 100
    shallow = config.with_max_brace_depth(5)
    assert shallow.max_brace_depth == 5
    assert config.max_brace_depth == 100
    assert shallow.default_separator is config.default_separator
    with pytest.raises(Exception):
        config.max_brace_depth = 1  # type: ignore[misc]


def test_split_name_list_with_custom_separator():
    assert split_name_list("Knuth & Lamport", " & ") == ["Knuth", "Lamport"]
    assert split_name_list("{Knuth & Lamport}", re.compile(" & ")) == ["{Knuth & Lamport}"]
    assert split_name_list("Knuth & Lamport") == ["Knuth & Lamport"]
