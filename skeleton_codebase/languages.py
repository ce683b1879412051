"""
Grammar registry: maps file extensions to a tree-sitter grammar and the
structural query used to skeletonize files of that language family.

Query capture names:
    @simple      keep the whole node verbatim (imports, comments, types)
    @definition  a construct whose header is kept ...
    @body        ... up to the start of this block, which is elided
"""

import importlib
import logging
import os
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from tree_sitter import Language, Query

SIMPLE_CAPTURE = "simple"
DEFINITION_CAPTURE = "definition"
BODY_CAPTURE = "body"


class LanguageFamily(Enum):
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    TSX = "tsx"
    RUST = "rust"
    PYTHON = "python"
    CMAKE = "cmake"


# Shared by JavaScript, TypeScript and TSX.
_ECMASCRIPT_PATTERNS = """
(comment) @simple
(import_statement) @simple
(export_statement source: (_)) @simple
(export_statement (export_clause)) @simple

(export_statement
  declaration: [(function_declaration body: (_) @body)
                (generator_function_declaration body: (_) @body)
                (class_declaration body: (_) @body)]) @definition
(export_statement
  declaration: (lexical_declaration
    (variable_declarator value: (arrow_function body: (_) @body)))) @definition

(function_declaration body: (statement_block) @body) @definition
(generator_function_declaration body: (statement_block) @body) @definition
(class_declaration body: (class_body) @body) @definition
(method_definition body: (statement_block) @body) @definition
(lexical_declaration
  (variable_declarator value: (arrow_function body: (_) @body))) @definition
(variable_declaration
  (variable_declarator value: (arrow_function body: (_) @body))) @definition
"""

JAVASCRIPT_QUERY = _ECMASCRIPT_PATTERNS

TYPESCRIPT_QUERY = (
    _ECMASCRIPT_PATTERNS
    + """
(type_alias_declaration) @simple
(interface_declaration) @simple
(enum_declaration) @simple
(function_signature) @simple
(method_signature) @simple
(abstract_method_signature) @simple
(export_statement
  declaration: [(interface_declaration)
                (type_alias_declaration)
                (enum_declaration)]) @simple

(export_statement
  declaration: (abstract_class_declaration body: (_) @body)) @definition
(abstract_class_declaration body: (class_body) @body) @definition
(internal_module body: (statement_block) @body) @definition
(module body: (statement_block) @body) @definition
"""
)

RUST_QUERY = """
(line_comment) @simple
(block_comment) @simple
(use_declaration) @simple
(extern_crate_declaration) @simple
(struct_item) @simple
(enum_item) @simple
(union_item) @simple
(type_item) @simple
(const_item) @simple
(static_item) @simple
(macro_definition) @simple
(function_signature_item) @simple
(mod_item !body) @simple

(mod_item body: (declaration_list) @body) @definition
(function_item body: (block) @body) @definition
(trait_item body: (declaration_list) @body) @definition
(impl_item body: (declaration_list) @body) @definition
"""

PYTHON_QUERY = """
(comment) @simple
(import_statement) @simple
(import_from_statement) @simple
(future_import_statement) @simple

(decorated_definition
  definition: (function_definition body: (block) @body)) @definition
(decorated_definition
  definition: (class_definition body: (block) @body)) @definition
(function_definition body: (block) @body) @definition
(class_definition body: (block) @body) @definition
"""

CMAKE_QUERY = """
(line_comment) @simple
(bracket_comment) @simple
(source_file (normal_command) @simple)
(function_def (function_command) (body) @body) @definition
(macro_def (macro_command) (body) @body) @definition
"""


@dataclass(frozen=True)
class LanguageProfile:
    """Grammar identifier and structural query for one language family."""

    family: LanguageFamily
    grammar_module: str
    language_func: str
    query_source: str

    @property
    def grammar(self) -> str:
        return f"{self.grammar_module}.{self.language_func}"


PROFILES: Dict[LanguageFamily, LanguageProfile] = {
    LanguageFamily.JAVASCRIPT: LanguageProfile(
        LanguageFamily.JAVASCRIPT, "tree_sitter_javascript", "language", JAVASCRIPT_QUERY
    ),
    LanguageFamily.TYPESCRIPT: LanguageProfile(
        LanguageFamily.TYPESCRIPT,
        "tree_sitter_typescript",
        "language_typescript",
        TYPESCRIPT_QUERY,
    ),
    LanguageFamily.TSX: LanguageProfile(
        LanguageFamily.TSX, "tree_sitter_typescript", "language_tsx", TYPESCRIPT_QUERY
    ),
    LanguageFamily.RUST: LanguageProfile(
        LanguageFamily.RUST, "tree_sitter_rust", "language", RUST_QUERY
    ),
    LanguageFamily.PYTHON: LanguageProfile(
        LanguageFamily.PYTHON, "tree_sitter_python", "language", PYTHON_QUERY
    ),
    LanguageFamily.CMAKE: LanguageProfile(
        LanguageFamily.CMAKE, "tree_sitter_cmake", "language", CMAKE_QUERY
    ),
}

EXTENSION_MAP: Dict[str, LanguageFamily] = {
    "js": LanguageFamily.JAVASCRIPT,
    "jsx": LanguageFamily.JAVASCRIPT,
    "mjs": LanguageFamily.JAVASCRIPT,
    "cjs": LanguageFamily.JAVASCRIPT,
    "ts": LanguageFamily.TYPESCRIPT,
    "mts": LanguageFamily.TYPESCRIPT,
    "cts": LanguageFamily.TYPESCRIPT,
    "tsx": LanguageFamily.TSX,
    "rs": LanguageFamily.RUST,
    "py": LanguageFamily.PYTHON,
    "pyi": LanguageFamily.PYTHON,
    "cmake": LanguageFamily.CMAKE,
}

# Build files whose extension says nothing about their language.
FILENAME_MAP: Dict[str, LanguageFamily] = {
    "CMakeLists.txt": LanguageFamily.CMAKE,
}


def file_extension(path) -> str:
    """Extension without the dot, lowercased ('' if none)."""
    return os.path.splitext(os.fspath(path))[1].lstrip(".").lower()


def resolve_profile(path_or_extension) -> Optional[LanguageProfile]:
    """Return the profile for a path or bare extension, or None if unsupported."""
    value = os.fspath(path_or_extension)
    name = os.path.basename(value)
    if name in FILENAME_MAP:
        return PROFILES[FILENAME_MAP[name]]

    if os.path.splitext(value)[1]:
        ext = file_extension(value)
    else:
        ext = value.lstrip(".").lower()

    family = EXTENSION_MAP.get(ext)
    if family is None:
        return None
    return PROFILES[family]


def supported_extensions():
    return sorted(EXTENSION_MAP)


_loaded: Dict[LanguageFamily, Optional[Tuple[Language, Query]]] = {}
_load_lock = threading.Lock()


def load_grammar(profile: LanguageProfile) -> Optional[Tuple[Language, Query]]:
    """
    Load the grammar and compile the query for a profile, once per process.

    Returns None when the grammar package is missing or the query does not
    compile; every file of that family is then declined.
    """
    with _load_lock:
        if profile.family in _loaded:
            return _loaded[profile.family]

        try:
            module = importlib.import_module(profile.grammar_module)
            language = Language(getattr(module, profile.language_func)())
            query = Query(language, profile.query_source)
            _loaded[profile.family] = (language, query)
        except Exception as e:
            logging.error(
                f"Grammar {profile.grammar} unavailable for {profile.family.value}: {str(e)}"
            )
            _loaded[profile.family] = None

        return _loaded[profile.family]
