"""
Brace-Aware TeX String Tokenization

Bibliography databases store names and titles as "TeX strings": plain text in which
`{...}` groups are opaque units and backslash control sequences such as `{\\'e}` stand
for a single logical character. This module provides the low-level pieces that every
name or word operation is built on.

## Overview

- **BraceTree**: Parses a string into a tree of brace groups; leaves are characters
- **scan_tex_string**: Flattens a tree into `(unit, depth)` pairs (the depth scanner)
- **split_tex_string**: Splits on a separator pattern, honouring only depth-0 matches
- **abbreviate**: Turns every purely alphabetic word into its initial plus a period

## Depth Units

The scanner yields tagged units instead of bare strings:

- `Char(value)`: a literal character at some brace depth
- `SpecialUnit(text)`: a depth-1 group starting with a backslash, e.g. `\\'e` from
  `{\\'e}`; it is reported once at depth 1 and never decomposed further

## Usage Examples

```python
from bibnames.tex_strings import split_tex_string, split_name_list, abbreviate

split_tex_string("Matsui      Fuuka")
# Returns: ['Matsui', 'Fuuka']

split_tex_string("{Matsui      Fuuka}")
# Returns: ['{Matsui      Fuuka}']

split_name_list("{Armand and Anderssen}")
# Returns: ['{Armand and Anderssen}']

abbreviate("First-Second")
# Returns: 'F.-S.'
```

## Error Handling

- `BraceNestingError`: nesting exceeds the configured maximum (100 by default)

A closing brace with no open group is ordinary text, never an error, and an
unterminated opening brace simply leaves its group unclosed.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field, replace
from typing import Callable, Iterator, List, Optional, Tuple, Union, cast

from bibnames.names_data import (
    ABBREVIATION_MARK,
    CONTROL_SEQUENCE_PREFIX,
    CONTROL_SPACE_SEPARATOR,
    MAX_BRACE_DEPTH,
    NAME_LIST_SEPARATOR,
    WORD_DELIMITER,
)


# ════════════════════════════════════════════════════════════════════════════════
# ERRORS
# ════════════════════════════════════════════════════════════════════════════════


class BraceNestingError(ValueError):
    """Raised when brace groups are nested deeper than the allowed maximum."""

    def __init__(self, max_level: int):
        super().__init__(f"too many nested braces (maximum depth is {max_level})")
        self.max_level = max_level


# ════════════════════════════════════════════════════════════════════════════════
# IMMUTABLE CONFIGURATION DATA
# ════════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class TexStringConfig:
    """Immutable tokenizer configuration."""

    max_brace_depth: int

    # Precompiled regex patterns (immutable)
    default_separator: re.Pattern[str]
    name_list_separator: re.Pattern[str]
    delimiter_pattern: re.Pattern[str]

    @classmethod
    def create_default(cls) -> "TexStringConfig":
        """Factory method for the standard BibTeX conventions."""
        return cls(
            max_brace_depth=MAX_BRACE_DEPTH,
            default_separator=re.compile(CONTROL_SPACE_SEPARATOR),
            name_list_separator=re.compile(NAME_LIST_SEPARATOR, re.IGNORECASE),
            delimiter_pattern=re.compile(WORD_DELIMITER),
        )

    def with_max_brace_depth(self, max_brace_depth: int) -> "TexStringConfig":
        """Immutable update method for the nesting limit."""
        return replace(self, max_brace_depth=max_brace_depth)


DEFAULT_CONFIG = TexStringConfig.create_default()


# ════════════════════════════════════════════════════════════════════════════════
# DEPTH UNITS
# ════════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Char:
    """A literal character."""

    value: str


@dataclass(frozen=True)
class SpecialUnit:
    """A control-sequence group such as `{\\'e}`; `text` keeps the backslash, drops the braces."""

    text: str


DepthUnit = Union[Char, SpecialUnit]


# ════════════════════════════════════════════════════════════════════════════════
# BRACE TREE
# ════════════════════════════════════════════════════════════════════════════════


@dataclass
class BraceTree:
    """
    A brace group and its contents.

    `level` is the nesting depth (0 for the unbraced top), `closed` records whether the
    matching `}` was consumed, and `contents` holds characters and nested groups in order.
    """

    level: int = 0
    closed: bool = False
    contents: List[Union[str, "BraceTree"]] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str, level: int = 0, max_level: int = MAX_BRACE_DEPTH) -> "BraceTree":
        """
        Build the tree for `text` in a single pass with an explicit stack.

        Args:
            text: Raw TeX string
            level: Depth of the returned root node
            max_level: Deepest allowed group

        Raises:
            BraceNestingError: if any group would be deeper than `max_level`
        """
        if level > max_level:
            raise BraceNestingError(max_level)

        root = cls(level=level)
        stack = [root]
        for char in text:
            node = stack[-1]
            if char == "{":
                if node.level + 1 > max_level:
                    raise BraceNestingError(max_level)
                child = cls(level=node.level + 1)
                node.contents.append(child)
                stack.append(child)
            elif char == "}" and node.level > 0:
                node.closed = True
                stack.pop()
                if not stack:
                    # a braced root has been closed, the rest is not ours
                    break
            else:
                node.contents.append(char)
        return root

    def is_special_unit(self) -> bool:
        """True for a depth-1 group whose first content item is a backslash."""
        return self.level == 1 and bool(self.contents) and self.contents[0] == CONTROL_SEQUENCE_PREFIX

    def inner_string(self) -> str:
        """Text of the contents, without this node's own braces."""
        return "".join(str(child) if isinstance(child, BraceTree) else child for child in self.contents)

    def traverse(
        self,
        on_char: Callable[[str, "BraceTree"], object],
        on_open: Optional[Callable[["BraceTree"], object]] = None,
        on_close: Optional[Callable[["BraceTree"], object]] = None,
    ) -> List[object]:
        """
        Depth-first, left-to-right walk collecting callback results.

        `on_char(item, node)` receives every plain character with the node that holds it,
        and every special unit once as its inner string with the special node itself.
        `on_open`/`on_close` are called around nested groups; closing is reported only
        for groups that were actually closed.
        """
        results: List[object] = []
        if on_open is not None and self.level > 0:
            results.append(on_open(self))

        for child in self.contents:
            if not isinstance(child, BraceTree):
                results.append(on_char(child, self))
            elif child.is_special_unit():
                if on_open is not None:
                    results.append(on_open(child))
                results.append(on_char(child.inner_string(), child))
                if on_close is not None and child.closed:
                    results.append(on_close(child))
            else:
                results.extend(child.traverse(on_char, on_open=on_open, on_close=on_close))

        if on_close is not None and self.level > 0 and self.closed:
            results.append(on_close(self))
        return results

    def __str__(self) -> str:
        return "".join(
            str(part)
            for part in self.traverse(
                lambda item, node: item,
                on_open=lambda node: "{",
                on_close=lambda node: "}",
            )
        )


# ════════════════════════════════════════════════════════════════════════════════
# DEPTH SCANNER
# ════════════════════════════════════════════════════════════════════════════════


def _depth_unit(item: str, node: BraceTree) -> Tuple[DepthUnit, int]:
    if node.is_special_unit():
        return SpecialUnit(item), node.level
    return Char(item), node.level


def scan_tex_string(
    text: str, include_braces: bool = False, max_level: int = MAX_BRACE_DEPTH
) -> Iterator[Tuple[DepthUnit, int]]:
    """
    Yield `(unit, depth)` pairs for `text`.

    Special units count as a single character. By default only content is
    yielded; with `include_braces=True` every `{` is reported at its group's
    depth and every matching `}` one level up.
    """
    tree = BraceTree.parse(text, max_level=max_level)
    if include_braces:
        pairs = tree.traverse(
            _depth_unit,
            on_open=lambda node: (Char("{"), node.level),
            on_close=lambda node: (Char("}"), node.level - 1),
        )
    else:
        pairs = tree.traverse(_depth_unit)
    yield from cast(List[Tuple[DepthUnit, int]], pairs)


# ════════════════════════════════════════════════════════════════════════════════
# SPLITTER
# ════════════════════════════════════════════════════════════════════════════════


def split_tex_string(
    text: str,
    sep: Union[str, re.Pattern[str], None] = None,
    strip: bool = True,
    filter_empty: bool = False,
) -> List[str]:
    """
    Split `text` on `sep`, ignoring everything at brace level > 0.

    Separators at the edges of the string are ignored: a match may not start at
    the first character, and a match that runs to the end of the string is left
    in place. Without `sep` the string is split on runs of whitespace, `~` and
    control spaces, and empty parts are always dropped.

    Examples:
        split_tex_string(".a.b.c.{d.}.", r"\\.")  ->  ['.a', 'b', 'c', '{d.}.']
        split_tex_string("Matsui\\ Fuuka")        ->  ['Matsui', 'Fuuka']
        split_tex_string("   ", " ", strip=False) ->  [' ', ' ']
    """
    if sep is None:
        sep_re = DEFAULT_CONFIG.default_separator
        filter_empty = True
    elif isinstance(sep, str):
        sep_re = re.compile(sep)
    else:
        sep_re = sep

    brace_level = 0
    name_start = 0
    result = []
    text_len = len(text)
    for pos, char in enumerate(text):
        if char == "{":
            brace_level += 1
        elif char == "}":
            brace_level -= 1
        elif brace_level == 0 and pos > 0:
            match = sep_re.match(text, pos)
            if match and match.end() < text_len:
                result.append(text[name_start:pos])
                name_start = match.end()
    result.append(text[name_start:])

    if strip:
        result = [part.strip() for part in result]
    if filter_empty:
        result = [part for part in result if part]
    return result


def split_name_list(text: str, sep: Union[str, re.Pattern[str], None] = None) -> List[str]:
    """
    Split a list of names separated by " and " (in any letter case), or by `sep` when given.

    Examples:
        split_name_list("Johnson AnD Peterson")    ->  ['Johnson', 'Peterson']
        split_name_list("{Armand and Anderssen}")  ->  ['{Armand and Anderssen}']
    """
    return split_tex_string(text, DEFAULT_CONFIG.name_list_separator if sep is None else sep)


# ════════════════════════════════════════════════════════════════════════════════
# WORD ABBREVIATOR
# ════════════════════════════════════════════════════════════════════════════════


def split_keep_separator(text: str, sep: Union[str, re.Pattern[str], None] = None) -> List[str]:
    """
    Split `text` keeping every separator as its own item.

    The result alternates content and separator, starting and ending with content:
    `split_keep_separator("Some words-words")` gives `['Some', ' ', 'words', '-', 'words']`.
    """
    if sep is None:
        sep_re = DEFAULT_CONFIG.delimiter_pattern
    elif isinstance(sep, str):
        sep_re = re.compile(sep)
    else:
        sep_re = sep

    output = []
    start = 0
    for match in sep_re.finditer(text):
        output.append(text[start : match.start()])
        output.append(match.group())
        start = match.end()
    output.append(text[start:])
    return output


def abbreviate(text: str, split_re: Union[str, re.Pattern[str], None] = None) -> str:
    """
    Abbreviate every purely alphabetic word to its first character and a period.

    Examples:
        abbreviate("Name")          ->  'N.'
        abbreviate("Some words")    ->  'S. w.'
        abbreviate("First-Second")  ->  'F.-S.'
    """
    parts = split_keep_separator(text, split_re)
    abbreviated = []
    for i, part in enumerate(parts):
        # even positions hold content, odd positions hold separators
        if i % 2 == 0 and part.isalpha():
            abbreviated.append(part[0] + ABBREVIATION_MARK)
        else:
            abbreviated.append(part)
    return "".join(abbreviated)
