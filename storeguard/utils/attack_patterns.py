"""Heuristic detection of SQL-injection and script-injection payloads.

Each classifier is a disjunction over an ordered list of regex rules: a
string is suspicious if any rule matches. This is a pattern matcher, not a
parser. The rule sets are deliberately biased towards false positives; in
particular the last SQL rule flags a wide punctuation set on its own, so
ordinary text containing quotes, commas or parentheses is rejected.

All functions here are pure and safe to call concurrently.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal, Sequence

Category = Literal["sql", "xss", "none"]

_I = re.IGNORECASE


@dataclass(frozen=True)
class PatternRule:
    """A named detection rule."""

    name: str
    pattern: re.Pattern[str]

    def matches(self, value: str) -> bool:
        return self.pattern.search(value) is not None


def _rule(name: str, pattern: str, flags: int = _I) -> PatternRule:
    # ASCII-only \b, \w and \d: an accented letter never glues onto a keyword
    return PatternRule(name=name, pattern=re.compile(pattern, flags | re.ASCII))


SQL_INJECTION_RULES: tuple[PatternRule, ...] = (
    _rule(
        "sql_keyword",
        r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|EXEC|UNION|SCRIPT|TRUNCATE)\b",
    ),
    _rule("breakout_character", r"[;'\"\\]"),
    _rule("comment_delimiter", r"(--|/\*|\*/|#)"),
    _rule("or_tautology", r"OR\s+['\"]?\d*['\"]?\s*=\s*['\"]?\d*['\"]?"),
    _rule("and_tautology", r"AND\s+['\"]?\d*['\"]?\s*=\s*['\"]?\d*['\"]?"),
    _rule("union_select", r"UNION\s+SELECT"),
    _rule("drop_table", r"DROP\s+TABLE"),
    _rule("delete_from", r"DELETE\s+FROM"),
    _rule("insert_into", r"INSERT\s+INTO"),
    _rule("update_set", r"UPDATE\s+SET"),
    _rule("alter_table", r"ALTER\s+TABLE"),
    _rule("create_table", r"CREATE\s+TABLE"),
    _rule("exec_call", r"EXEC\s*\("),
    _rule("block_comment", r"/\*.*?\*/"),
    _rule("line_comment", r"--.*$", re.MULTILINE),
    _rule("hash_comment", r"#.*$", re.MULTILINE),
    _rule("sleep_call", r"SLEEP\s*\("),
    _rule("waitfor_delay", r"WAITFOR\s+DELAY"),
    _rule("benchmark_call", r"BENCHMARK\s*\("),
    _rule("information_schema", r"INFORMATION_SCHEMA"),
    _rule("mysql_user_table", r"mysql\.user"),
    _rule("sys_databases", r"sys\.databases"),
    _rule("percent_encoded_breakout", r"%27|%22|%3D|%3B|%2D"),
    _rule("hex_literal", r"0x[0-9a-f]+"),
    _rule("ascii_call", r"ASCII\s*\("),
    _rule("substring_call", r"SUBSTRING\s*\("),
    _rule("length_call", r"LENGTH\s*\("),
    _rule("concat_call", r"CONCAT\s*\("),
    _rule(
        "nosql_operator",
        r"\$where|\$ne|\$gt|\$lt|\$regex|\$exists|\$in|\$nin|\$or|\$and",
    ),
    # Catch-all: any of these characters is enough. Intentionally over-broad.
    _rule("punctuation", r"[*()\\/+<>;,\"'=]", 0),
)

SCRIPT_INJECTION_RULES: tuple[PatternRule, ...] = (
    _rule("script_block", r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>"),
    _rule("script_tag_pair", r"<script[^>]*>.*?</script>"),
    _rule("iframe_block", r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>"),
    _rule("iframe_tag", r"<iframe[^>]*>"),
    _rule("object_block", r"<object\b[^<]*(?:(?!</object>)<[^<]*)*</object>"),
    _rule("embed_block", r"<embed\b[^<]*(?:(?!</embed>)<[^<]*)*</embed>"),
    _rule("link_tag", r"<link\b[^<]*>"),
    _rule("meta_tag", r"<meta\b[^<]*>"),
    _rule("javascript_uri", r"javascript:"),
    _rule("event_handler_attribute", r"on\w+\s*="),
    _rule("onload_attribute", r"onload\s*="),
    _rule("onerror_attribute", r"onerror\s*="),
    _rule("onfocus_attribute", r"onfocus\s*="),
    _rule("ontoggle_attribute", r"ontoggle\s*="),
    _rule("img_onerror", r"<img[^>]*onerror"),
    _rule("img_src_onerror", r"<img[^>]*src\s*=\s*[^>]*onerror"),
    _rule("svg_onload", r"<svg[^>]*onload"),
    _rule("svg_onerror", r"<svg[^>]*onerror"),
    _rule("body_onload", r"<body[^>]*onload"),
    _rule("input_onfocus", r"<input[^>]*onfocus"),
    _rule("select_onfocus", r"<select[^>]*onfocus"),
    _rule("textarea_onfocus", r"<textarea[^>]*onfocus"),
    _rule("keygen_onfocus", r"<keygen[^>]*onfocus"),
    _rule("video_onerror", r"<video[^>]*onerror"),
    _rule("audio_onerror", r"<audio[^>]*onerror"),
    _rule("source_onerror", r"<source[^>]*onerror"),
    _rule("details_ontoggle", r"<details[^>]*ontoggle"),
    _rule("alert_call", r"alert\s*\("),
    _rule("confirm_call", r"confirm\s*\("),
    _rule("prompt_call", r"prompt\s*\("),
    _rule("html_entity", r"&#x?[0-9a-f]+;"),
    _rule("double_quote_breakout", r"\"[^\"]*<script"),
    _rule("single_quote_breakout", r"'[^']*<script"),
    _rule("img_src_x_onerror", r"<img\s+src\s*=\s*x\s+onerror"),
    _rule("svg_onload_attr", r"<svg\s+onload"),
    _rule("iframe_javascript_src", r"<iframe\s+src\s*=\s*\"javascript:"),
    _rule("body_onload_attr", r"<body\s+onload"),
    _rule("input_autofocus", r"<input[^>]*onfocus[^>]*autofocus"),
    _rule("select_autofocus", r"<select[^>]*onfocus[^>]*autofocus"),
    _rule("textarea_autofocus", r"<textarea[^>]*onfocus[^>]*autofocus"),
    _rule("keygen_autofocus", r"<keygen[^>]*onfocus[^>]*autofocus"),
    _rule("video_source_onerror", r"<video[^>]*><source[^>]*onerror"),
    _rule("audio_src_x_onerror", r"<audio[^>]*src\s*=\s*x[^>]*onerror"),
    _rule("details_open_ontoggle", r"<details[^>]*open[^>]*ontoggle"),
)


@dataclass(frozen=True)
class DetectionVerdict:
    """Result of classifying one string.

    Attributes:
        is_suspicious: Whether any rule matched.
        category: "sql", "xss", or "none".
        rule: Name of the first rule that matched, if any.
    """

    is_suspicious: bool
    category: Category
    rule: str | None = None


CLEAN = DetectionVerdict(is_suspicious=False, category="none")


def first_matching_rule(value: Any, rules: Sequence[PatternRule]) -> str | None:
    """Return the name of the first rule matching value, or None.

    Empty and non-string values never match.
    """
    if not value or not isinstance(value, str):
        return None
    for rule in rules:
        if rule.matches(value):
            return rule.name
    return None


def looks_like_sql_injection(value: Any) -> bool:
    """Return True if value matches any SQL-injection rule.

    Examples:
        >>> looks_like_sql_injection("' OR 1=1 --")
        True
        >>> looks_like_sql_injection("Maria Silva")
        False
    """
    return first_matching_rule(value, SQL_INJECTION_RULES) is not None


def looks_like_script_injection(value: Any) -> bool:
    """Return True if value matches any script/markup-injection rule.

    Examples:
        >>> looks_like_script_injection("<script>alert(1)</script>")
        True
        >>> looks_like_script_injection("Great product, fast shipping!")
        False
    """
    return first_matching_rule(value, SCRIPT_INJECTION_RULES) is not None


def classify_input(value: Any) -> DetectionVerdict:
    """Classify a value, checking SQL rules before script rules."""
    rule = first_matching_rule(value, SQL_INJECTION_RULES)
    if rule is not None:
        return DetectionVerdict(is_suspicious=True, category="sql", rule=rule)

    rule = first_matching_rule(value, SCRIPT_INJECTION_RULES)
    if rule is not None:
        return DetectionVerdict(is_suspicious=True, category="xss", rule=rule)

    return CLEAN
