"""Tests for identifier derivation, escaping and collision handling."""

import pytest

from assembly_bridge.core import CollisionPolicy, MemberDescriptor
from assembly_bridge.identifiers import (
    IdentifierAllocator,
    assign_identifiers,
    derive_identifier,
    escape,
    find_collisions,
    unescape,
)


def _member(namespace: str, type_name: str, member_name: str) -> MemberDescriptor:
    return MemberDescriptor(namespace, type_name, member_name, False, "System.Int32")


class TestDeriveIdentifier:
    """Tests for derive_identifier."""

    def test_basic_join(self):
        assert derive_identifier("Demo", "Calc", "Add") == "Demo_Calc_Add"

    def test_dotted_namespace(self):
        assert derive_identifier("My.Company.Tools", "Calc", "Add") == "My_Company_Tools_Calc_Add"

    def test_empty_namespace_uses_placeholder(self):
        assert derive_identifier("", "Calc", "Add") == "Global_Calc_Add"
        assert derive_identifier("", "Calc", "Add", placeholder="Root") == "Root_Calc_Add"

    def test_punctuation_replaced_one_for_one(self):
        """Every non letter-or-digit becomes exactly one underscore."""
        assert derive_identifier("Demo", "Calc", "Do-It!") == "Demo_Calc_Do_It_"
        assert derive_identifier("A", "Outer+Inner", "get`1") == "A_Outer_Inner_get_1"

    @pytest.mark.parametrize(
        "parts",
        [
            ("Demo", "Calc", "Add"),
            ("", "<>c", "<Main>b__0_0"),
            ("Ns", "Tÿpe", "Méthode"),
            ("a b", "c\td", "e\nf"),
        ],
    )
    def test_length_and_alphabet(self, parts):
        namespace, type_name, member_name = parts
        identifier = derive_identifier(namespace, type_name, member_name)
        expected_length = len(namespace or "Global") + len(type_name) + len(member_name) + 2
        assert len(identifier) == expected_length
        assert all(ch.isalpha() or ch.isdecimal() or ch == "_" for ch in identifier)

    def test_unicode_letters_are_kept(self):
        assert derive_identifier("Ns", "Tÿpe", "Méthode") == "Ns_Tÿpe_Méthode"

    def test_deterministic(self):
        assert derive_identifier("X", "Y", "Z!") == derive_identifier("X", "Y", "Z!")


class TestEscaping:
    """Tests for escape and unescape."""

    def test_backslash_doubled_before_quote_escaped(self):
        assert escape("C:\\lib\\it's.dll") == "C:\\\\lib\\\\it\\'s.dll"

    def test_quote_after_backslash(self):
        assert escape("\\'") == "\\\\\\'"

    def test_plain_text_unchanged(self):
        assert escape("Demo.Calc") == "Demo.Calc"

    @pytest.mark.parametrize(
        "text",
        ["", "plain", "it's", "C:\\path\\", "\\'", "''\\\\", "mixed \\ and ' and \\'"],
    )
    def test_round_trip(self, text):
        assert unescape(escape(text)) == text

    def test_escaped_form_has_no_bare_quote(self):
        escaped = escape("a'b'c")
        for position, ch in enumerate(escaped):
            if ch == "'":
                assert escaped[position - 1] == "\\"


class TestCollisions:
    """Tests for collision detection and the allocator policies."""

    def test_find_collisions(self):
        members = [_member("A", "B", "C_D"), _member("A", "B_C", "D"), _member("A", "B", "E")]
        assert find_collisions(members) == ["A_B_C_D"]

    def test_no_collisions(self):
        assert find_collisions([_member("A", "B", "C"), _member("A", "B", "D")]) == []

    def test_ignore_policy_keeps_duplicates(self):
        members = [_member("A", "B", "C_D"), _member("A", "B_C", "D")]
        assert assign_identifiers(members, CollisionPolicy.IGNORE) == ["A_B_C_D", "A_B_C_D"]

    def test_ordinal_policy_suffixes_later_members(self):
        members = [
            _member("A", "B", "C_D"),
            _member("A", "B_C", "D"),
            _member("A", "B.C", "D"),
        ]
        assert assign_identifiers(members, "ordinal") == ["A_B_C_D", "A_B_C_D_2", "A_B_C_D_3"]

    def test_ordinal_policy_skips_taken_suffix(self):
        members = [
            _member("A", "B", "C_2"),
            _member("A", "B", "C"),
            _member("A", "B", "C"),
        ]
        assert assign_identifiers(members, CollisionPolicy.ORDINAL) == ["A_B_C_2", "A_B_C", "A_B_C_3"]

    def test_allocator_accepts_string_policy(self):
        allocator = IdentifierAllocator("ordinal", placeholder="Root")
        assert allocator.policy is CollisionPolicy.ORDINAL
        assert allocator.allocate(_member("", "T", "M")) == "Root_T_M"

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError):
            IdentifierAllocator("rename")
