from __future__ import annotations

from pathlib import Path

import pytest

from assembly_bridge.core import ComponentDescriptor, MemberDescriptor
from tests._fixtures.assembly_builder import (
    INT32,
    METHOD_PUBLIC,
    METHOD_STATIC,
    METHOD_HIDE_BY_SIG,
    STRING,
    VOID,
    AssemblyBuilder,
    method_signature,
)


@pytest.fixture
def assembly_builder() -> AssemblyBuilder:
    """Provide an empty assembly builder."""
    return AssemblyBuilder()


@pytest.fixture
def demo_assembly(tmp_path: Path) -> Path:
    """Write Demo.dll declaring Demo.Calc with Add(int, int) and Log(string)."""
    builder = AssemblyBuilder()
    calc = builder.add_type("Demo", "Calc")
    static_public = METHOD_PUBLIC | METHOD_STATIC | METHOD_HIDE_BY_SIG
    builder.add_method(
        calc, "Add", method_signature(INT32, [INT32, INT32], static=True), flags=static_public
    )
    builder.add_method(
        calc, "Log", method_signature(VOID, [STRING], static=True), flags=static_public
    )
    return builder.write(tmp_path / "Demo.dll")


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Provide an empty, writable destination directory."""
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def add_member() -> MemberDescriptor:
    return MemberDescriptor(
        namespace_name="Demo",
        type_name="Calc",
        member_name="Add",
        is_static=True,
        return_type_name="System.Int32",
        parameter_type_names=("System.Int32", "System.Int32"),
    )


@pytest.fixture
def demo_component(add_member: MemberDescriptor) -> ComponentDescriptor:
    return ComponentDescriptor(source_path=Path("/opt/demo/Demo.dll"), members=(add_member,))
