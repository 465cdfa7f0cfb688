# Code Reuse Detector - Find reused code across a reference corpus
# Copyright (C) 2025  Jonathan Louis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Code normalizer - rewrites source text into a canonical token string.

Normalization is lexical: comments and imports are stripped, literals are
replaced with placeholders, identifiers are generalized and whitespace is
unified so that renamed or reformatted copies compare equal.

Every pass is applied on its own. If a pass fails on a particular input
the failure is logged and the text from before that pass is kept, so one
pathological regex match never throws away the whole normalization.
"""

import logging
import re
from typing import Optional, Pattern, Union, Callable

from .errors import ResourceLimitExceeded


logger = logging.getLogger(__name__)


# Largest text accepted for normalization (characters)
MAX_CODE_SIZE = 10 * 1024 * 1024

# Above these sizes the expensive passes fall back to coarse substitutions
VARIABLE_PASS_LIMIT = 10_000
METHOD_PASS_LIMIT = 5_000

IDENTIFIER = r"[a-zA-Z_$][a-zA-Z0-9_$]*"

PRIMITIVE_TYPES = (
    "int", "String", "boolean", "double", "float", "char", "byte", "short", "long", "final",
)

# Calls kept verbatim when generalizing call targets
PRESERVED_CALLS = (
    "main", "println", "print", "length", "size", "add", "remove", "get", "set",
    "toString", "equals", "hashCode", "compareTo",
)

# Keywords that take a parenthesized expression but are not calls
CONTROL_KEYWORDS = ("if", "for", "while", "switch", "catch", "synchronized", "return")

ACCESS_MODIFIERS = ("public", "private", "protected")

# Erased entirely by the algorithm normalizer
ALGORITHM_TYPE_KEYWORDS = PRIMITIVE_TYPES[:-1] + ("void",)
ALGORITHM_STRUCTURE_KEYWORDS = (
    "public", "private", "protected", "static", "final",
    "class", "interface", "extends", "implements",
)
# Kept by the algorithm normalizer so loop and branch shapes survive
ALGORITHM_KEPT_WORDS = ("for", "if", "while", "do", "else", "return", "switch", "case", "STR", "NUM")


def _words(words) -> str:
    return "|".join(words)


# --- Literal and comment patterns ---
BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
LINE_COMMENT = re.compile(r"//.*")
PACKAGE_DECL = re.compile(r"^\s*package\s+[^;]+;\s*", re.MULTILINE)
IMPORT_DECL = re.compile(r"^\s*import\s+[^;]+;\s*", re.MULTILINE)
STRING_LITERAL = re.compile(r'"[^"]*"')
NUMBER_LITERAL = re.compile(r"\b\d+\.?\d*\b")
CHAR_LITERAL = re.compile(r"'.'")
ANNOTATION = re.compile(r"@\w+")

# --- Identifier patterns ---
DECLARATION = re.compile(rf"\b({_words(PRIMITIVE_TYPES)})\s+{IDENTIFIER}\b")
ASSIGNMENT = re.compile(rf"\b{IDENTIFIER}\s*=\s*[^;]+?;")
CONDITION = re.compile(rf"\b{IDENTIFIER}\s*(?:>=|<=|==|!=|>|<)\s*{IDENTIFIER}\b")
SINGLE_ARGUMENT = re.compile(rf"\(\s*(?!ARGS\b){IDENTIFIER}\s*\)")
CALL_TARGET = re.compile(
    rf"\b(?!(?:{_words(PRESERVED_CALLS + CONTROL_KEYWORDS)})\b){IDENTIFIER}\s*\("
)
CALL_EXPRESSION = re.compile(
    rf"\b(?!(?:{_words(CONTROL_KEYWORDS)})\b){IDENTIFIER}\s*\([^)]*\)"
)

# --- Formatting patterns ---
WHITESPACE = re.compile(r"\s+")
PUNCTUATION = re.compile(r"\s*([{}()\[\];,.])\s*")
# Longest operators first so "==" is never split into "= ="
OPERATORS = re.compile(r"\s*(==|!=|>=|<=|&&|\|\||\+\+|--|[=><+\-*/%!])\s*")
ACCESS_MODIFIER = re.compile(rf"\b(?:{_words(ACCESS_MODIFIERS)})\s+")

# --- Algorithm / pattern normalizer patterns ---
ALGORITHM_TYPES = re.compile(rf"\b(?:{_words(ALGORITHM_TYPE_KEYWORDS)})\b")
ALGORITHM_STRUCTURE = re.compile(rf"\b(?:{_words(ALGORITHM_STRUCTURE_KEYWORDS)})\b")
ALGORITHM_IDENTIFIER = re.compile(rf"\b(?!(?:{_words(ALGORITHM_KEPT_WORDS)})\b){IDENTIFIER}\b")
PATTERN_IDENTIFIER = re.compile(rf"\b(?!(?:STR|NUM)\b){IDENTIFIER}\b")


Replacement = Union[str, Callable[["re.Match"], str]]


class Normalizer:
    """
    Lexical normalizer for C-family (Java-style) source text.

    Size limits are instance attributes so callers can tune them.
    """

    def __init__(
        self,
        max_code_size: int = MAX_CODE_SIZE,
        variable_pass_limit: int = VARIABLE_PASS_LIMIT,
        method_pass_limit: int = METHOD_PASS_LIMIT,
    ):
        self.max_code_size = max_code_size
        self.variable_pass_limit = variable_pass_limit
        self.method_pass_limit = method_pass_limit

    def normalize(self, text: Optional[str]) -> str:
        """
        Normalize source text into a canonical token string.

        Args:
            text: Raw source text (None is treated as empty)

        Returns:
            Normalized string, or "" for empty/blank input

        Raises:
            ResourceLimitExceeded: If the text exceeds max_code_size
        """
        if text is None:
            logger.debug("None passed for normalization")
            return ""

        self._check_size(text)

        result = text.strip()
        if not result:
            return ""

        logger.debug(f"Normalizing {len(result)} characters")

        result = self._strip_comments(result)
        result = self._strip_declarations(result)
        result = self._safe_sub(STRING_LITERAL, '"STRING"', result, "string literals")
        result = self._safe_sub(NUMBER_LITERAL, "NUMBER", result, "number literals")
        result = self._safe_sub(CHAR_LITERAL, "'CHAR'", result, "char literals")
        result = self._generalize_variables(result)
        result = self._generalize_calls(result)
        result = self._safe_sub(ANNOTATION, "", result, "annotations")
        result = self._unify_whitespace(result)
        result = self._safe_sub(ACCESS_MODIFIER, "", result, "access modifiers")

        return result.strip()

    def normalize_for_algorithm(self, text: Optional[str]) -> str:
        """
        Aggressive normalization used for the whole-file ALGORITHM fragment.

        Type and structural keywords are deleted outright and every other
        identifier becomes VAR, leaving only the control-flow skeleton.
        """
        if text is None or not text.strip():
            return ""

        self._check_size(text)

        result = self._strip_comments(text)
        result = self._safe_sub(ANNOTATION, "", result, "annotations")
        result = self._safe_sub(STRING_LITERAL, "STR", result, "string literals")
        result = self._safe_sub(NUMBER_LITERAL, "NUM", result, "number literals")
        result = self._safe_sub(ALGORITHM_TYPES, "", result, "type keywords")
        result = self._safe_sub(ALGORITHM_STRUCTURE, "", result, "structural keywords")
        result = self._safe_sub(ALGORITHM_IDENTIFIER, "VAR", result, "identifiers")
        result = self._unify_whitespace(result)

        return result.strip()

    def normalize_pattern_line(self, line: Optional[str]) -> str:
        """Light normalization for a single raw line matched as a structural pattern."""
        if line is None or not line.strip():
            return ""

        result = self._safe_sub(LINE_COMMENT, "", line, "line comment")
        result = self._safe_sub(STRING_LITERAL, "STR", result, "string literals")
        result = self._safe_sub(NUMBER_LITERAL, "NUM", result, "number literals")
        result = self._safe_sub(PATTERN_IDENTIFIER, "VAR", result, "identifiers")
        result = self._safe_sub(WHITESPACE, " ", result, "whitespace")

        return result.strip()

    def is_valid_code(self, text: Optional[str]) -> bool:
        """True if the text is non-blank and small enough to normalize."""
        if text is None or not text.strip():
            return False
        if len(text) > self.max_code_size:
            logger.warning(f"Code exceeds maximum size: {len(text)} characters")
            return False
        return True

    # --- passes ---

    def _check_size(self, text: str):
        if len(text) > self.max_code_size:
            raise ResourceLimitExceeded(
                f"Code too large: {len(text)} characters. "
                f"Maximum size: {self.max_code_size} characters",
                size=len(text),
                limit=self.max_code_size,
            )

    def _strip_comments(self, text: str) -> str:
        text = self._safe_sub(BLOCK_COMMENT, "", text, "block comments")
        return self._safe_sub(LINE_COMMENT, "", text, "line comments")

    def _strip_declarations(self, text: str) -> str:
        text = self._safe_sub(PACKAGE_DECL, "", text, "package declaration")
        return self._safe_sub(IMPORT_DECL, "", text, "imports")

    def _generalize_variables(self, text: str) -> str:
        declarations = self._safe_sub(DECLARATION, r"\1 VAR", text, "declarations")

        if len(text) > self.variable_pass_limit:
            logger.debug("Code too long for full variable normalization, declarations only")
            return declarations

        result = self._safe_sub(ASSIGNMENT, "VAR = EXPRESSION;", declarations, "assignments")
        result = self._safe_sub(CONDITION, "VAR OPERATOR VAR", result, "conditions")
        return self._safe_sub(SINGLE_ARGUMENT, "(VAR)", result, "arguments")

    def _generalize_calls(self, text: str) -> str:
        if len(text) > self.method_pass_limit:
            logger.debug("Using simplified call normalization for long code")
            return self._safe_sub(CALL_EXPRESSION, "METHOD(ARGS)", text, "call expressions")
        return self._safe_sub(CALL_TARGET, "METHOD(", text, "call targets")

    def _unify_whitespace(self, text: str) -> str:
        result = self._safe_sub(WHITESPACE, " ", text, "whitespace")
        result = self._safe_sub(PUNCTUATION, r" \1 ", result, "punctuation spacing")
        result = self._safe_sub(OPERATORS, r" \1 ", result, "operator spacing")
        return self._safe_sub(WHITESPACE, " ", result, "whitespace")

    def _safe_sub(
        self,
        pattern: Pattern,
        replacement: Replacement,
        text: str,
        step: str,
    ) -> str:
        """Apply one substitution, keeping the input if the regex engine fails."""
        try:
            return pattern.sub(replacement, text)
        except (re.error, RecursionError) as e:
            logger.warning(f"Normalization step '{step}' failed, keeping previous text: {e}")
            return text


_default = Normalizer()


def normalize(text: Optional[str]) -> str:
    """Normalize source text with the default limits."""
    return _default.normalize(text)


def normalize_for_algorithm(text: Optional[str]) -> str:
    """Algorithm normalization with the default limits."""
    return _default.normalize_for_algorithm(text)


def normalize_pattern_line(line: Optional[str]) -> str:
    """Structural pattern normalization for one raw line."""
    return _default.normalize_pattern_line(line)


def is_valid_code(text: Optional[str]) -> bool:
    return _default.is_valid_code(text)
