"""
Serialize per-file skeletons into the single XML artifact.

Output is sorted by normalized path so that the artifact bytes depend only
on the input set, never on worker scheduling.
"""

import logging
import os
import re
import tempfile
from typing import List, Tuple
from xml.sax.saxutils import escape

from .errors import ArtifactWriteError

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
EMPTY_PLACEHOLDER = "<!-- No supported files found for skeletonization. -->"
CONTENT_INDENT = "    "

# Characters outside the XML 1.0 Char production, lone surrogates included.
_INVALID_XML_CHARS = re.compile(
    "[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]"
)
REPLACEMENT_CHAR = "\ufffd"


def _strip_invalid_chars(text: str) -> str:
    return _INVALID_XML_CHARS.sub(REPLACEMENT_CHAR, text)


def escape_xml_content(text: str) -> str:
    """Escape &, < and > for element content."""
    return escape(_strip_invalid_chars(text))


def escape_xml_attr(text: str) -> str:
    """Escape attribute values, quotes included."""
    return escape(_strip_invalid_chars(text), {'"': "&quot;", "'": "&apos;"})


def normalize_path(path) -> str:
    """
    Label of a path, used for the path attribute and for ordering.

    Windows separators become forward slashes. Undecodable bytes of POSIX
    file names (carried as lone surrogates) are spelled out as escapes so the
    label stays encodable and distinct.
    """
    label = os.fspath(path)
    if os.sep == "\\":
        label = label.replace("\\", "/")
    return label.encode("utf-8", "backslashreplace").decode("utf-8")


def sort_skeletons(skeletons) -> List[Tuple[str, str]]:
    """(label, skeleton) pairs in ascending path order."""
    if isinstance(skeletons, dict):
        skeletons = skeletons.items()
    labelled = [(normalize_path(path), skeleton) for path, skeleton in skeletons]
    return sorted(labelled, key=lambda item: item[0])


def render_artifact(skeletons) -> str:
    """
    Render the artifact text.

    Args:
        skeletons: mapping or iterable of (path, skeleton) pairs, any order.
    """
    lines = [XML_DECLARATION, "<files>"]

    ordered = sort_skeletons(skeletons)
    if not ordered:
        lines.append(f"  {EMPTY_PLACEHOLDER}")

    for label, skeleton in ordered:
        lines.append(f'  <file path="{escape_xml_attr(label)}">')
        for line in skeleton.splitlines():
            lines.append(CONTENT_INDENT + escape_xml_content(line))
        lines.append("  </file>")

    lines.append("</files>")
    return "\n".join(lines) + "\n"


def write_artifact(text: str, output_path) -> None:
    """
    Write the artifact, creating its directory if needed.

    The text goes to a temporary file beside the target which then replaces
    it, so a failed write never leaves a partial artifact behind.
    """
    output_path = os.fspath(output_path)
    parent = os.path.dirname(os.path.abspath(output_path))

    try:
        os.makedirs(parent, exist_ok=True)
    except OSError as e:
        logging.error(f"Cannot create output directory {parent}: {str(e)}")
        raise ArtifactWriteError(parent, f"cannot create output directory: {e}") from e

    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            prefix=".skeleton-", suffix=".tmp", dir=parent
        )
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        os.replace(tmp_path, output_path)
        tmp_path = None
    except (OSError, UnicodeError) as e:
        logging.error(f"Error writing artifact {output_path}: {str(e)}")
        raise ArtifactWriteError(output_path, f"cannot write artifact: {e}") from e
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)

    logging.info(f"Artifact written: {output_path}")
