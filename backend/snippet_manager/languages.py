"""
CodeSnippet Manager Backend: Supported Languages
=================================================

What:  The fixed, ordered list of language identifiers exposed by
       GET /api/languages and used as the snippet language default.
How:   A str-valued Enum; declaration order is the published order.
       The list is static data and is never derived from stored snippets.
"""

from enum import Enum
from typing import Tuple


class Language(str, Enum):
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    JAVA = "java"
    CPP = "cpp"
    CSHARP = "csharp"
    RUBY = "ruby"
    GO = "go"
    RUST = "rust"
    PHP = "php"
    HTML = "html"
    CSS = "css"
    SQL = "sql"
    TYPESCRIPT = "typescript"
    KOTLIN = "kotlin"
    SWIFT = "swift"


DEFAULT_LANGUAGE: str = Language.JAVASCRIPT.value

SUPPORTED_LANGUAGES: Tuple[str, ...] = tuple(language.value for language in Language)
