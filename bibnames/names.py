"""
Personal Name Parsing Module

This module splits free-form personal-name strings, as found in the author and editor
fields of bibliography databases, into five ordered token sequences: first, middle,
prelast ("von"), last and lineage ("Jr").

## Overview

The core functionality is provided by the `NameParser` class, which chooses one of the
three BibTeX name grammars from the number of depth-0 commas in the string:

1. **First von Last**: `Ludwig van Beethoven`, `Donald E. Knuth`
2. **von Last, First**: `van Beethoven, Ludwig`
3. **von Last, Jr, First**: `Dixit, Jr, Avinash K.`

Commas and whitespace inside `{...}` groups never split a name, so `{Barnes and Noble, Inc.}`
is a single last-name token.

## Von Detection

A token is a von particle when its first letter at brace depth 0 is lowercase. Control
sequences such as `{\\'e}` count by the case of the letter they decorate, not by the case
of the command name, so `{\\'e}tienne` is lowercase while `{\\AE}sop` is not decisive.

## Usage Examples

```python
from bibnames.names import parse_name, parse_names

person = parse_name("Charles Louis Xavier Joseph de la Vall{\\'e}e Poussin")
person.first_names    # ['Charles']
person.middle_names   # ['Louis', 'Xavier', 'Joseph']
person.prelast_names  # ['de', 'la']
person.last_names     # ['Vall{\\'e}e', 'Poussin']
str(person)           # "de la Vall{\\'e}e Poussin, Charles Louis Xavier Joseph"

parse_names("Johnson and Peterson")
# Returns: [PersonName('Johnson'), PersonName('Peterson')]
```

## Error Handling

- `NameParseError`: the string holds no name at all (blank, or no last-name token)
- `InvalidNameStringError`: more than three comma-separated parts in strict mode
- `BraceNestingError`: the name string nests braces deeper than the configured limit

In the default tolerant mode a string with more than three parts is logged and its
extra parts are merged into the first-name part.
"""

from __future__ import annotations
import logging
import re
import time
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Sequence, Tuple, Union

from bibnames.names_data import (
    CONTROL_SEQUENCE_PREFIX,
    MAX_BRACE_DEPTH,
    MAX_NAME_PARTS,
    NAME_PART_ATTRIBUTES,
    NAME_PART_SEPARATOR,
)
from bibnames.tex_strings import (
    BraceTree,
    Char,
    TexStringConfig,
    abbreviate,
    scan_tex_string,
    split_name_list,
    split_tex_string,
)


# ════════════════════════════════════════════════════════════════════════════════
# ERRORS
# ════════════════════════════════════════════════════════════════════════════════


class NameParseError(ValueError):
    """Raised when a string cannot be parsed into a name with a last part."""


class InvalidNameStringError(NameParseError):
    """Raised in strict mode for strings with too many comma-separated parts."""

    def __init__(self, name: str):
        super().__init__(f"Too many commas in {name!r}")
        self.name = name


# ════════════════════════════════════════════════════════════════════════════════
# NAME ENTITY
# ════════════════════════════════════════════════════════════════════════════════


@dataclass
class PersonName:
    """
    A person or some other person-like entity.

    Equality is structural across all five token lists. Callers may append extra
    tokens to any list after parsing (see `from_string`).
    """

    first_names: List[str] = field(default_factory=list)
    middle_names: List[str] = field(default_factory=list)
    prelast_names: List[str] = field(default_factory=list)
    last_names: List[str] = field(default_factory=list)
    lineage_names: List[str] = field(default_factory=list)

    @classmethod
    def from_string(
        cls,
        text: str = "",
        first: str = "",
        middle: str = "",
        prelast: str = "",
        last: str = "",
        lineage: str = "",
    ) -> "PersonName":
        """
        Parse `text` (when it is not blank), then append explicitly given name parts.

        >>> PersonName.from_string("Knuth", first="Donald", middle="E.").bibtex_first_names
        ['Donald', 'E.']
        """
        person = _get_global_parser().parse(text) if text.strip() else cls()
        person.first_names.extend(split_tex_string(first))
        person.middle_names.extend(split_tex_string(middle))
        person.prelast_names.extend(split_tex_string(prelast))
        person.last_names.extend(split_tex_string(last))
        person.lineage_names.extend(split_tex_string(lineage))
        return person

    @property
    def bibtex_first_names(self) -> List[str]:
        """First and middle names together (BibTeX treats all middle names as first)."""
        return self.first_names + self.middle_names

    def get_part(
        self, part_type: str, abbr: bool = False, split_re: Union[str, re.Pattern[str], None] = None
    ) -> List[str]:
        """
        Get a list of name tokens by part type.

        Args:
            part_type: One of "first", "middle", "prelast", "last", "lineage"
            abbr: Abbreviate each token ("Donald" -> "D.")
            split_re: Word delimiters used when abbreviating (whitespace and hyphens by default)
        """
        try:
            names = getattr(self, NAME_PART_ATTRIBUTES[part_type])
        except KeyError:
            raise ValueError(f"unknown name part type: {part_type!r}") from None
        if abbr:
            return [abbreviate(name, split_re) for name in names]
        return list(names)

    def get_part_as_text(self, part_type: str) -> str:
        return " ".join(self.get_part(part_type))

    def __str__(self) -> str:
        # von Last, Jr, First
        von_last = " ".join(self.prelast_names + self.last_names)
        jr = " ".join(self.lineage_names)
        first = " ".join(self.first_names + self.middle_names)
        return ", ".join(part for part in (von_last, jr, first) if part)

    def __repr__(self) -> str:
        return f"PersonName({str(self)!r})"


# ════════════════════════════════════════════════════════════════════════════════
# RESULT TYPES
# ════════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ParseResult:
    """Result of a name parsing operation - success with a name, or an error message."""

    success: bool
    result: Union[PersonName, str]
    error_message: Optional[str] = None

    @classmethod
    def success_with_name(cls, person: PersonName) -> "ParseResult":
        return cls(success=True, result=person, error_message=None)

    @classmethod
    def failure(cls, error_message: str) -> "ParseResult":
        return cls(success=False, result="", error_message=error_message)

    def map(self, f: Callable[[PersonName], PersonName]) -> "ParseResult":
        """Transform a successful name, turning exceptions into failures."""
        if self.success:
            try:
                return ParseResult.success_with_name(f(self.result))  # type: ignore[arg-type]
            except Exception as e:
                return ParseResult.failure(str(e))
        return self

    def flat_map(self, f: Callable[[PersonName], "ParseResult"]) -> "ParseResult":
        """Chain another parsing step on a successful name."""
        if self.success:
            try:
                return f(self.result)  # type: ignore[arg-type]
            except Exception as e:
                return ParseResult.failure(str(e))
        return self


# ════════════════════════════════════════════════════════════════════════════════
# IMMUTABLE CONFIGURATION DATA
# ════════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class NameParserConfig:
    """Immutable parser configuration."""

    # Raise instead of coalescing strings with more than three comma parts
    strict: bool
    tex_config: TexStringConfig

    @classmethod
    def create_default(cls) -> "NameParserConfig":
        """Factory method for the tolerant BibTeX-compatible parser."""
        return cls(strict=False, tex_config=TexStringConfig.create_default())

    def with_strict(self, strict: bool = True) -> "NameParserConfig":
        """Immutable update method for strict mode."""
        return replace(self, strict=strict)

    def with_tex_config(self, tex_config: TexStringConfig) -> "NameParserConfig":
        return replace(self, tex_config=tex_config)


# ════════════════════════════════════════════════════════════════════════════════
# VON-NAME CLASSIFIER
# ════════════════════════════════════════════════════════════════════════════════


def special_unit_is_lower(special_char: str) -> bool:
    """
    Case of the letter a control sequence decorates.

    The backslash and the alphabetic command name that follows it are skipped; the first
    letter after the command decides. `\\'e` is lowercase, `\\"{O}` is not, and `\\ae`
    (a command name only) has no letter to decide with.
    """
    control_sequence = True
    for char in special_char[len(CONTROL_SEQUENCE_PREFIX) :]:
        if control_sequence:
            if not char.isalpha():
                control_sequence = False
        elif char.isalpha():
            return char.islower()
    return False


def is_von_name(token: str, max_level: int = MAX_BRACE_DEPTH) -> bool:
    """
    Check whether a name token is a von particle ("van", "de", "{\\'e}tienne").

    A leading uppercase character rules the token out. Otherwise the first decisive unit
    wins: a letter at brace depth 0 by its own case, a control-sequence group by the case
    of the letter it decorates. Tokens with no decisive unit are not von.
    """
    if not token or token[0].isupper():
        return False
    for unit, depth in scan_tex_string(token, max_level=max_level):
        if isinstance(unit, Char):
            if depth == 0 and unit.value.isalpha():
                return unit.value.islower()
        elif depth == 1:
            return special_unit_is_lower(unit.text)
    return False


def _find_pos(tokens: Sequence[str], pred: Callable[[str], bool]) -> int:
    for i, token in enumerate(tokens):
        if pred(token):
            return i
    return len(tokens)


def split_at(tokens: Sequence[str], pred: Callable[[str], bool]) -> Tuple[List[str], List[str]]:
    """Split before the first token matching `pred`."""
    pos = _find_pos(tokens, pred)
    return list(tokens[:pos]), list(tokens[pos:])


def rsplit_at(tokens: Sequence[str], pred: Callable[[str], bool]) -> Tuple[List[str], List[str]]:
    """Split after the last token matching `pred`; everything goes right if none does."""
    pos = len(tokens) - _find_pos(tokens[::-1], pred)
    return list(tokens[:pos]), list(tokens[pos:])


# ════════════════════════════════════════════════════════════════════════════════
# NAME PARSER
# ════════════════════════════════════════════════════════════════════════════════


class NameParser:
    """Parses name strings in the three BibTeX name grammars."""

    def __init__(self, config: Optional[NameParserConfig] = None):
        self._config = config or NameParserConfig.create_default()
        self._tex = self._config.tex_config

    @property
    def config(self) -> NameParserConfig:
        return self._config

    def split_tokens(self, text: str) -> List[str]:
        """Split on whitespace, ties and control spaces at brace depth 0."""
        return split_tex_string(text, self._tex.default_separator, filter_empty=True)

    def is_von_name(self, token: str) -> bool:
        return is_von_name(token, max_level=self._tex.max_brace_depth)

    def parse(self, name: str) -> PersonName:
        """
        Main API method: split a name string into its five parts.

        Raises:
            NameParseError: for blank strings and strings without a last name
            InvalidNameStringError: for more than three comma parts in strict mode
            BraceNestingError: for braces nested too deeply
        """
        if not name.strip():
            raise NameParseError("empty name string")
        # check nesting once for the whole string, whichever grammar slot a token lands in
        BraceTree.parse(name, max_level=self._tex.max_brace_depth)

        person = PersonName()

        parts = split_tex_string(name, NAME_PART_SEPARATOR)
        if len(parts) > MAX_NAME_PARTS:
            if self._config.strict:
                raise InvalidNameStringError(name)
            logging.warning(f"Too many commas in {name!r}, merging extra parts into the first name")
            parts = parts[:2] + [" ".join(parts[2:])]

        if len(parts) == 3:  # von Last, Jr, First
            self._process_von_last(person, self.split_tokens(parts[0]))
            person.lineage_names.extend(self.split_tokens(parts[1]))
            self._process_first_middle(person, self.split_tokens(parts[2]))
        elif len(parts) == 2:  # von Last, First
            self._process_von_last(person, self.split_tokens(parts[0]))
            self._process_first_middle(person, self.split_tokens(parts[1]))
        elif len(parts) == 1:  # First von Last
            tokens = self.split_tokens(name)
            first_middle, von_last = split_at(tokens, self.is_von_name)
            if not von_last and first_middle:
                von_last.append(first_middle.pop())
            self._process_first_middle(person, first_middle)
            self._process_von_last(person, von_last)
        else:
            raise NameParseError(f"cannot parse name string {name!r}: {len(parts)} parts")

        if not person.last_names:
            raise NameParseError(f"no last name in {name!r}")
        return person

    def try_parse(self, name: str) -> ParseResult:
        """Like `parse`, but reports failures as a ParseResult instead of raising."""
        try:
            return ParseResult.success_with_name(self.parse(name))
        except ValueError as e:
            return ParseResult.failure(str(e))

    def parse_list(self, names: str) -> List[PersonName]:
        """Parse every name of an " and "-separated name list."""
        return [self.parse(name) for name in split_name_list(names, self._tex.name_list_separator)]

    def abbreviate_part(self, person: PersonName, part_type: str) -> List[str]:
        """Initials of one name part, split on the configured word delimiters."""
        return person.get_part(part_type, abbr=True, split_re=self._tex.delimiter_pattern)

    def _process_first_middle(self, person: PersonName, tokens: List[str]) -> None:
        if tokens:
            person.first_names.append(tokens[0])
            person.middle_names.extend(tokens[1:])

    def _process_von_last(self, person: PersonName, tokens: List[str]) -> None:
        if not tokens:
            return
        # von cannot be the last name in the list
        *von_last, definitely_not_von = tokens
        if von_last:
            von, last = rsplit_at(von_last, self.is_von_name)
            person.prelast_names.extend(von)
            person.last_names.extend(last)
        person.last_names.append(definitely_not_von)


# ════════════════════════════════════════════════════════════════════════════════
# PERFORMANCE TESTING
# ════════════════════════════════════════════════════════════════════════════════


def run_performance_test(iterations: int = 2000) -> float:
    """Time the parser on a mix of grammars; returns microseconds per name."""
    parser = NameParser()
    names = [
        "Donald E. Knuth",
        "Ludwig van Beethoven",
        "Charles Louis Xavier Joseph de la Vall{\\'e}e Poussin",
        "Dixit, Jr, Avinash K.",
        "Viktorov, Michail~Markovitch",
        "{Barnes and Noble, Inc.}",
        "de la Fontaine, Jean",
        "{\\'E}mile Zola",
    ]

    start = time.perf_counter()
    for _ in range(iterations):
        for name in names:
            parser.parse(name)
    elapsed = time.perf_counter() - start

    total = iterations * len(names)
    time_per_name = (elapsed / total) * 1_000_000
    print(f"Parsed {total} names in {elapsed:.3f}s")
    print(f"Rate: {total / elapsed:.0f} names/second")
    print(f"Time per name: {time_per_name:.1f} microseconds")
    return time_per_name


# ════════════════════════════════════════════════════════════════════════════════
# MODULE-LEVEL CONVENIENCE FUNCTIONS
# ════════════════════════════════════════════════════════════════════════════════

# Global parser instance for module-level functions
_global_parser: Optional[NameParser] = None


def _get_global_parser() -> NameParser:
    """Get or create the global parser instance."""
    global _global_parser
    if _global_parser is None:
        _global_parser = NameParser()
    return _global_parser


def parse_name(name: str) -> PersonName:
    """Module-level convenience function for parsing a single name."""
    return _get_global_parser().parse(name)


def parse_names(names: str) -> List[PersonName]:
    """Module-level convenience function for parsing an " and "-separated name list."""
    return _get_global_parser().parse_list(names)


# CLI entry point
if __name__ == "__main__":
    run_performance_test()
