# ═════════════════════════════════════════════════════════════════════════════════
# TEX STRING AND NAME GRAMMAR CONSTANTS
# ═════════════════════════════════════════════════════════════════════════════════
#
# Static tables shared by the brace-aware tokenizer and the name parser:
# 1. BRACES: nesting limit for brace groups
# 2. SEPARATORS: patterns used to split names, name lists and words
# 3. NAME PARTS: the five token sequences of a parsed person name
# ═════════════════════════════════════════════════════════════════════════════════

from types import MappingProxyType

# Layer 1: BRACES
# Groups nested deeper than this abort tokenization of the string
MAX_BRACE_DEPTH = 100

# A node whose first content character is this opens a control sequence
CONTROL_SEQUENCE_PREFIX = "\\"

# Layer 2: SEPARATORS
# "\ " is a TeX control space (a space that is not to be ignored),
# "~" is a tie. Both separate name tokens just like plain whitespace.
CONTROL_SPACE_SEPARATOR = r"(\\ |[\s~])+"

# Name parts ("von Last, Jr, First")
NAME_PART_SEPARATOR = ","

# Names in a list ("Johnson and Peterson"), matched case-insensitively
NAME_LIST_SEPARATOR = " and "

# Word delimiters for abbreviation ("First-Second" -> "F.-S.")
WORD_DELIMITER = r"([\s\-])"

# Appended to the first character of an abbreviated word
ABBREVIATION_MARK = "."

# Layer 3: NAME PARTS
# Part type -> PersonName attribute holding its tokens, in display order
NAME_PART_ATTRIBUTES = MappingProxyType(
    {
        "first": "first_names",
        "middle": "middle_names",
        "prelast": "prelast_names",
        "last": "last_names",
        "lineage": "lineage_names",
    }
)

# Only these many comma-separated parts map onto a grammar:
#   1 -> First von Last
#   2 -> von Last, First
#   3 -> von Last, Jr, First
MAX_NAME_PARTS = 3
