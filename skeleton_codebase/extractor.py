"""
Skeleton extraction using tree-sitter queries (py-tree-sitter 0.25 API).

The query of each language family marks nodes as @simple (kept verbatim) or
as a @definition/@body pair (kept from the definition start up to the body
start, so the signature survives and the implementation does not).
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from tree_sitter import Parser, QueryCursor

from .languages import (
    BODY_CAPTURE,
    DEFINITION_CAPTURE,
    SIMPLE_CAPTURE,
    LanguageProfile,
    load_grammar,
    resolve_profile,
)

# Unlikely to collide with real source text.
CHUNK_SEPARATOR = "\n⋮----\n"

ROLE_SIMPLE = "simple"
ROLE_DEFINITION = "definition"
ROLE_DEFINITION_BODY = "definition-body"

CAPTURE_ROLES = {
    SIMPLE_CAPTURE: ROLE_SIMPLE,
    DEFINITION_CAPTURE: ROLE_DEFINITION,
    BODY_CAPTURE: ROLE_DEFINITION_BODY,
}


@dataclass(frozen=True)
class Capture:
    """A captured node and the byte span of it that should be kept."""

    node: Any
    role: str
    start: int
    end: int


@dataclass(frozen=True)
class Chunk:
    text: str
    start: int
    end: int


def _char_boundary(data: bytes, offset: int) -> int:
    # UTF-8 continuation bytes look like 0b10xxxxxx
    while 0 < offset < len(data) and (data[offset] & 0xC0) == 0x80:
        offset -= 1
    return offset


def slice_text(data: bytes, start: int, end: int) -> Optional[str]:
    """
    Decode data[start:end] as UTF-8.

    Offsets that fall inside a multi-byte sequence are moved back to the
    character start. Returns None for an empty range or bytes that still
    do not decode.
    """
    start = _char_boundary(data, max(0, start))
    end = _char_boundary(data, min(len(data), end))
    if end <= start:
        return None
    try:
        return data[start:end].decode("utf-8")
    except UnicodeDecodeError as e:
        logging.debug(f"Dropping undecodable chunk at bytes {start}-{end}: {str(e)}")
        return None


def build_skeleton(captures: List[Capture], data: bytes) -> Optional[str]:
    """
    Turn captures into the skeleton text for one file.

    Definition-body captures are elided. The remaining chunks are trimmed,
    empties discarded, ordered by source offset and joined with
    CHUNK_SEPARATOR. A chunk that starts inside one already kept is dropped,
    so no text appears twice.
    """
    chunks = []
    for capture in captures:
        # bodies mark elided spans and never become text
        if capture.role == ROLE_DEFINITION_BODY:
            continue
        text = slice_text(data, capture.start, capture.end)
        if text is None:
            continue
        text = text.strip()
        if text:
            chunks.append(Chunk(text, capture.start, capture.end))

    chunks.sort(key=lambda c: (c.start, -c.end))

    kept = []
    covered_until = 0
    for chunk in chunks:
        if kept and chunk.start < covered_until:
            continue
        kept.append(chunk)
        covered_until = max(covered_until, chunk.end)

    if not kept:
        return None
    return CHUNK_SEPARATOR.join(chunk.text for chunk in kept)


class CodeExtractor:
    """Extracts code skeletons with tree-sitter structural queries."""

    def capture(self, data: bytes, profile: LanguageProfile) -> Optional[List[Capture]]:
        """
        Parse data and evaluate the profile's query once.

        Returns None when the grammar cannot be loaded or no tree is produced.
        """
        loaded = load_grammar(profile)
        if loaded is None:
            return None
        language, query = loaded

        parser = Parser(language)
        tree = parser.parse(data)
        if tree is None or tree.root_node is None:
            logging.debug(f"No syntax tree produced for {profile.family.value} source")
            return None

        cursor = QueryCursor(query)
        captures = []
        visited = set()

        for _pattern_idx, match in cursor.matches(tree.root_node):
            by_role = {
                CAPTURE_ROLES[name]: nodes
                for name, nodes in match.items()
                if name in CAPTURE_ROLES
            }
            definitions = by_role.get(ROLE_DEFINITION, [])
            bodies = by_role.get(ROLE_DEFINITION_BODY, [])

            if definitions and bodies:
                node, body = definitions[0], bodies[0]
                if node.id in visited:
                    continue
                visited.add(node.id)
                captures.append(
                    Capture(node, ROLE_DEFINITION, node.start_byte, body.start_byte)
                )
                captures.append(
                    Capture(body, ROLE_DEFINITION_BODY, body.start_byte, body.end_byte)
                )
                continue

            # A definition without a body is kept whole.
            for node in by_role.get(ROLE_SIMPLE, []) + definitions:
                if node.id in visited:
                    continue
                visited.add(node.id)
                captures.append(
                    Capture(node, ROLE_SIMPLE, node.start_byte, node.end_byte)
                )

        return captures

    def skeletonize(self, data: bytes, profile: LanguageProfile) -> Optional[str]:
        """Skeleton for UTF-8 encoded source, or None if nothing was extracted."""
        try:
            captures = self.capture(data, profile)
        except Exception as e:
            logging.warning(
                f"Tree-sitter extraction failed for {profile.family.value}: {str(e)}"
            )
            return None

        if not captures:
            return None
        return build_skeleton(captures, data)

    def extract_skeleton(self, file_path, content: str) -> Optional[str]:
        """Extract the skeleton of file content, choosing the grammar by path."""
        profile = resolve_profile(file_path)
        if profile is None:
            return None
        return self.skeletonize(content.encode("utf-8"), profile)
