# src/activity_logger/application/services/error_category_normalizer.py
"""
Reduces compiler messages and exception class names to stable categories.

Raw diagnostics embed identifiers and types ("cannot find symbol ... variable
count"), which makes them useless for counting. Categories keep only the fixed
phrasing, so the same mistake made by different people in different files
lands in the same bucket.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Pattern, Tuple

from activity_logger.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

OTHER_CATEGORY = "other"

# Ordered: first match wins. A rule must come before any more general rule
# that would also match its messages.
COMPILE_ERROR_RULES: List[Tuple[str, str]] = [
    # references to something that does not exist
    (r"cannot find symbol.*variable", "cannot_find_symbol_variable"),
    (r"cannot find symbol.*method", "cannot_find_symbol_method"),
    (r"cannot find symbol.*class", "cannot_find_symbol_class"),
    (r"cannot find symbol", "cannot_find_symbol"),

    # missing punctuation
    (r"';' expected", "semicolon_expected"),
    (r"'\)' expected", "close_paren_expected"),
    (r"'\(' expected", "open_paren_expected"),
    (r"'\}' expected", "close_brace_expected"),
    (r"'\{' expected", "open_brace_expected"),
    (r"'\]' expected", "close_bracket_expected"),
    (r"'\[' expected", "open_bracket_expected"),
    (r"<identifier> expected", "identifier_expected"),
    (r"identifier expected", "identifier_expected"),
    (r"class, interface, or enum expected", "class_interface_expected"),
    (r"expected", "token_expected"),

    # types
    (r"possible loss of precision", "precision_loss"),
    (r"possible lossy conversion", "precision_loss"),
    (r"incompatible types", "incompatible_types"),
    (r"cannot be converted to", "incompatible_types"),
    (r"inconvertible types", "incompatible_types"),

    # expressions
    (r"illegal start of expression", "illegal_start_of_expression"),
    (r"illegal start of type", "illegal_start_of_type"),
    (r"not a statement", "not_a_statement"),

    # returns
    (r"missing return statement", "missing_return"),
    (r"missing return value", "missing_return"),
    (r"cannot return a value from method whose result type is void", "void_return_value"),
    (r"unreachable statement", "unreachable_statement"),

    # classes and files
    (r"class.*is public.*should be declared in a file named", "class_file_name_mismatch"),
    (r"reached end of file while parsing", "unclosed_block"),

    # control flow
    (r"'else' without 'if'", "else_without_if"),
    (r"break outside switch or loop", "break_outside_loop"),
    (r"continue outside of loop", "continue_outside_loop"),

    # variables
    (r"variable.*might not have been initialized", "uninitialized_variable"),
    (r"variable.*is already defined", "duplicate_variable"),
    (r".*is already defined in.*", "duplicate_definition"),

    # methods and constructors
    (r"constructor.*in class.*cannot be applied to given types", "constructor_arguments_mismatch"),
    (r"method.*in class.*cannot be applied to given types", "method_arguments_mismatch"),
    (r"cannot be applied to", "method_arguments_mismatch"),
    (r"non-static method.*cannot be referenced from a static context", "static_context_error"),
    (r"non-static variable.*cannot be referenced from a static context", "static_context_error"),

    # access
    (r".*has private access in.*", "private_access"),
    (r".*has protected access in.*", "protected_access"),

    # operators
    (r"bad operand type.*for unary operator", "bad_operand_unary"),
    (r"bad operand types for binary operator", "bad_operand_binary"),

    # arrays
    (r"array required, but.*found", "array_required"),

    (r".*no suitable constructor found", "no_suitable_constructor"),

    # checked exceptions
    (r"exception.*is never thrown", "exception_never_thrown"),
    (r"unreported exception.*must be caught or declared to be thrown", "unreported_exception"),
]


def _compile_rules(rules: List[Tuple[str, str]]) -> List[Tuple[Pattern, str]]:
    compiled = []
    for pattern, category in rules:
        try:
            compiled.append((re.compile(pattern, re.IGNORECASE), category))
        except re.error as e:
            raise ConfigurationError(f"Invalid normalizer pattern {pattern!r} for '{category}': {e}") from e
    return compiled


def _rules_from_config(config: Dict[str, Any]) -> List[Tuple[str, str]]:
    extra = (config.get('normalizer') or {}).get('extra_rules') or []
    rules = []
    for entry in extra:
        if not isinstance(entry, dict) or not entry.get('pattern') or not entry.get('category'):
            raise ConfigurationError(f"normalizer.extra_rules entries need 'pattern' and 'category', got: {entry!r}")
        rules.append((str(entry['pattern']), str(entry['category'])))
    return rules


class ErrorCategoryNormalizer:
    """Maps compiler messages and exception classes to categories."""

    def __init__(self, extra_rules: Optional[List[Tuple[str, str]]] = None):
        """
        Compiles the rule table.

        Args:
            extra_rules: Additional (pattern, category) rules. They are tried
                before the built-in table, in the given order.

        Raises:
            ConfigurationError: If a pattern is not a valid regular expression.
        """
        self.rules = _compile_rules(list(extra_rules or []) + COMPILE_ERROR_RULES)
        logger.debug("ErrorCategoryNormalizer initialized with %d rules (%d custom).",
                     len(self.rules), len(extra_rules or []))

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ErrorCategoryNormalizer":
        return cls(extra_rules=_rules_from_config(config))

    def normalize(self, raw_message: str) -> str:
        """
        Returns the category of the first rule matching the trimmed message.

        Args:
            raw_message: Compiler diagnostic text.

        Returns:
            The category label, or 'other' when no rule matches.
        """
        trimmed = (raw_message or "").strip()
        for pattern, category in self.rules:
            if pattern.search(trimmed):
                return category
        return OTHER_CATEGORY

    @staticmethod
    def normalize_exception(exception_class: str) -> str:
        """
        Strips the package from an exception class name.

        'java.lang.NullPointerException' becomes 'NullPointerException';
        names without a dot are returned unchanged.
        """
        return exception_class.rpartition(".")[2]
