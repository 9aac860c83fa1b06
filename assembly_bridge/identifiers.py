"""Identifier derivation and string escaping shared by both emitters."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Sequence, Union

from loguru import logger

from .core import CollisionPolicy, MemberDescriptor

GLOBAL_NAMESPACE = "Global"


def escape(text: str) -> str:
    """Escape a string for embedding between single quotes.

    Backslashes are doubled first, then single quotes are prefixed with a
    backslash. The order matters: swapping the steps would double the
    backslashes inserted in front of quotes.
    """
    return text.replace("\\", "\\\\").replace("'", "\\'")


def unescape(text: str) -> str:
    """Inverse of :func:`escape`."""
    chars: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text) and text[i + 1] in ("\\", "'"):
            chars.append(text[i + 1])
            i += 2
            continue
        chars.append(ch)
        i += 1
    return "".join(chars)


def _is_letter_or_digit(ch: str) -> bool:
    return ch.isalpha() or ch.isdecimal()


def derive_identifier(
    namespace_name: str,
    type_name: str,
    member_name: str,
    placeholder: str = GLOBAL_NAMESPACE,
) -> str:
    """
    Derive the export identifier for a member.

    An empty namespace is replaced by ``placeholder``; the three parts are
    joined with underscores and every character that is not a letter or digit
    becomes a single underscore, so the result has the same length as the
    joined string.

    Args:
        namespace_name: Declaring namespace, possibly empty
        type_name: Declaring type's simple name
        member_name: Member name
        placeholder: Token used for the global namespace

    Returns:
        The derived identifier, e.g. ``Demo_Calc_Add``
    """
    full = f"{namespace_name or placeholder}_{type_name}_{member_name}"
    return "".join(ch if _is_letter_or_digit(ch) else "_" for ch in full)


def identifier_for(member: MemberDescriptor, placeholder: str = GLOBAL_NAMESPACE) -> str:
    return derive_identifier(
        member.namespace_name, member.type_name, member.member_name, placeholder
    )


def find_collisions(
    members: Iterable[MemberDescriptor], placeholder: str = GLOBAL_NAMESPACE
) -> List[str]:
    """Return derived identifiers shared by more than one member, in first-seen order."""
    counts = Counter(identifier_for(m, placeholder) for m in members)
    return [name for name, count in counts.items() if count > 1]


class IdentifierAllocator:
    """
    Assigns identifiers to members in order of appearance.

    With ``CollisionPolicy.IGNORE`` colliding members keep the same identifier.
    With ``CollisionPolicy.ORDINAL`` the second and later members that derive
    an identifier already in use get ``_2``, ``_3``, ... appended, skipping any
    suffixed name that is itself taken.
    """

    def __init__(
        self,
        policy: Union[CollisionPolicy, str] = CollisionPolicy.IGNORE,
        placeholder: str = GLOBAL_NAMESPACE,
    ) -> None:
        if isinstance(policy, str):
            policy = CollisionPolicy.from_string(policy)
        self.policy = policy
        self.placeholder = placeholder
        self._used: set[str] = set()

    def allocate(self, member: MemberDescriptor) -> str:
        base = identifier_for(member, self.placeholder)
        if base not in self._used or self.policy is CollisionPolicy.IGNORE:
            self._used.add(base)
            return base

        ordinal = 2
        while f"{base}_{ordinal}" in self._used:
            ordinal += 1
        identifier = f"{base}_{ordinal}"
        logger.debug(f"Identifier {base} already taken, using {identifier}")
        self._used.add(identifier)
        return identifier


def assign_identifiers(
    members: Sequence[MemberDescriptor],
    policy: Union[CollisionPolicy, str] = CollisionPolicy.IGNORE,
    placeholder: str = GLOBAL_NAMESPACE,
) -> List[str]:
    """Allocate identifiers for ``members`` with a fresh allocator."""
    allocator = IdentifierAllocator(policy, placeholder)
    return [allocator.allocate(member) for member in members]
