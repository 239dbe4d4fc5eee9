"""Grammar-driven image reference extraction from raw file text.

The pattern follows the distribution reference grammar::

    reference                   := name [ ":" tag ] [ "@" digest ]
    name                        := [hostname '/'] component ['/' component]*
    hostname                    := hostcomponent ['.' hostcomponent]* [':' port-number]
    hostcomponent               := /([a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])/
    port-number                 := /[0-9]+/
    component                   := alpha-numeric [separator alpha-numeric]*
    alpha-numeric               := /[a-z0-9]+/
    separator                   := /[_.]|__|[-]*/
    tag                         := /[\\w][\\w.-]{0,127}/
    digest                      := digest-algorithm ":" digest-hex
    digest-algorithm            := digest-algorithm-component [ digest-algorithm-separator digest-algorithm-component ]
    digest-algorithm-separator  := /[+.-_]/
    digest-algorithm-component  := /[A-Za-z][A-Za-z0-9]*/
    digest-hex                  := /[0-9a-fA-F]{32,}/

The search requires a leading segment followed by ``/`` and a ``:tag``, so a
bare word never matches. It still matches URL fragments and other path-like
text; those candidates are weeded out by registry validation.

Matches start only at a token boundary: not after a letter, digit or ``.``,
not after a ``-`` that follows a letter, digit or ``-``, and not after a
``/`` that follows a letter or digit. A reference glued to a preceding word
(``x-quay.io/a:1``) is matched from the start of that word, and one after a
shell default (``${IMAGE:-quay.io/a:1}``) is still found. The scan stays
linear over long base64 or hex values.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from .reference_set import ReferenceSet

logger = logging.getLogger(__name__)

_HOST_COMPONENT = r"(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?)"
_HOSTNAME = rf"{_HOST_COMPONENT}(?:\.{_HOST_COMPONENT})*(?::[0-9]+)?"
# The grammar's empty separator is left out: it matches nothing a plain run does not.
_PATH_COMPONENT = r"[a-z0-9]+(?:(?:__|[_.]|-+)[a-z0-9]+)*"
_TAG = r"\w[\w.-]{0,127}"
_DIGEST = r"[A-Za-z][A-Za-z0-9]*(?:[+._-][A-Za-z][A-Za-z0-9]*)?:[0-9a-fA-F]{32,}"
# Matches start only at token boundaries; retrying every offset of a long token is quadratic.
_START = r"(?<![a-zA-Z0-9.])(?<![a-zA-Z0-9-]-)(?<![a-zA-Z0-9]/)"

IMAGE_REFERENCE_PATTERN: re.Pattern[str] = re.compile(
    rf"{_START}{_HOSTNAME}/{_PATH_COMPONENT}(?:/{_PATH_COMPONENT})*:{_TAG}(?:@{_DIGEST})?",
    re.ASCII,
)


def extract_references_from_text(text: str) -> list[str]:
    """Return every non-overlapping reference match in ``text``, verbatim."""
    return [match.group(0) for match in IMAGE_REFERENCE_PATTERN.finditer(text)]


def read_text(path: str, errors: str = "strict") -> str | None:
    """Read a manifest as UTF-8, logging and returning ``None`` on failure.

    Args:
        path: File to read.
        errors: Codec error handler; ``"replace"`` keeps the rest of a file
            that holds a few bytes which are not UTF-8.
    """
    try:
        with open(path, encoding="utf-8", errors=errors) as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Unable to read file ({path}): {e}")
        return None


def extract_file_by_pattern(reference_set: ReferenceSet, path: str) -> int:
    """Add every pattern match in ``path`` to ``reference_set``.

    Bytes that are not UTF-8 are replaced, so matches elsewhere in the file
    are still found.

    Returns:
        Number of references that were new to the set.
    """
    content = read_text(path, errors="replace")
    if content is None:
        return 0
    return reference_set.update(extract_references_from_text(content))


def extract_by_pattern(reference_set: ReferenceSet, yaml_files: Iterable[str]) -> None:
    for path in yaml_files:
        added = extract_file_by_pattern(reference_set, path)
        logger.debug(f"Pattern extraction found {added} new references in {path}")
