"""Annotation strings linking external graph objects back to local entities.

Format: ``ref:<kind>:<id>`` where ``<id>`` is the unpadded URL-safe base64 of
the UTF-8 local id. Decoding is strict: only the canonical encoding of a
known kind is accepted.
"""

from __future__ import annotations

import base64
import binascii
import re

from reabridge.domain.model import EntityKind

from .errors import ReferenceParseError

REFERENCE_PREFIX = "ref"

ANNOTATED_KINDS: frozenset[EntityKind] = frozenset(
    {
        EntityKind.USER,
        EntityKind.ORGANIZATION,
        EntityKind.SERVICE_TYPE,
        EntityKind.MEDIUM_OF_EXCHANGE,
        EntityKind.PROPOSAL,
    }
)

_KIND_BY_VALUE = {kind.value: kind for kind in ANNOTATED_KINDS}
_REFERENCE_RE = re.compile(
    rf"{REFERENCE_PREFIX}:({'|'.join(sorted(_KIND_BY_VALUE))}):([A-Za-z0-9_-]+)"
)


def encode(kind: EntityKind, local_id: str) -> str:
    """Return the annotation string for ``local_id`` of ``kind``."""

    if kind not in ANNOTATED_KINDS:
        raise ValueError(f"Entity kind {kind!r} cannot be used in references")
    if not local_id:
        raise ValueError("Cannot encode an empty local id")
    token = base64.urlsafe_b64encode(local_id.encode("utf-8")).rstrip(b"=").decode("ascii")
    return f"{REFERENCE_PREFIX}:{kind.value}:{token}"


def decode(reference: str) -> tuple[EntityKind, str]:
    """Parse ``reference`` into ``(kind, local_id)``.

    Raises:
        ReferenceParseError: unknown kind, foreign alphabet, non-canonical
            encoding, empty id or invalid UTF-8.
    """

    match = _REFERENCE_RE.fullmatch(reference)
    if match is None:
        raise ReferenceParseError(f"Not a reference: {reference!r}")
    kind_value, token = match.groups()
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise ReferenceParseError(f"Malformed reference payload: {reference!r}") from exc
    if not raw:
        raise ReferenceParseError(f"Reference has an empty id: {reference!r}")
    # Trailing bits must be zero; otherwise several tokens map to one id.
    if base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") != token:
        raise ReferenceParseError(f"Non-canonical reference encoding: {reference!r}")
    try:
        local_id = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ReferenceParseError(f"Reference id is not valid UTF-8: {reference!r}") from exc
    return _KIND_BY_VALUE[kind_value], local_id


def try_decode(reference: str | None) -> tuple[EntityKind, str] | None:
    """Like :func:`decode` but return ``None`` for anything that is not a reference."""

    if not reference:
        return None
    try:
        return decode(reference)
    except ReferenceParseError:
        return None
