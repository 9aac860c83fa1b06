"""Tests for the description provider and the provider factory."""

import json
from pathlib import Path

import pytest
import yaml

from assembly_bridge.core import ProviderKind, TypeKind
from assembly_bridge.exceptions import NotLoadableModuleError, PartialTypeLoadError
from assembly_bridge.providers import (
    ClrMetadataProvider,
    DescriptionProvider,
    ProviderFactory,
)


class TestDescriptionProvider:
    """Tests for DescriptionProvider."""

    DOCUMENT = {
        "component": "bin/Demo.dll",
        "types": [
            {
                "namespace": "Demo",
                "name": "Calc",
                "kind": "class",
                "members": [
                    {
                        "name": "Add",
                        "static": True,
                        "returns": "System.Int32",
                        "params": ["System.Int32", "System.Int32"],
                    },
                    {"name": "Log", "static": True, "returns": "void", "params": ["System.String"]},
                    {"name": "get_Value", "special": True, "returns": "System.Int32"},
                    {"name": "Secret", "visibility": "private", "returns": "System.Int32"},
                ],
            },
            {
                "namespace": "Demo",
                "name": "Point",
                "kind": "struct",
                "members": [{"name": "Length", "returns": "System.Double"}],
            },
        ],
    }

    def test_json_document(self, tmp_path: Path):
        path = tmp_path / "demo.json"
        path.write_text(json.dumps(self.DOCUMENT), encoding="utf-8")
        candidates = DescriptionProvider().load(path)

        assert [c.member_name for c in candidates] == ["Add", "Log", "get_Value", "Secret", "Length"]
        assert [c.member_name for c in candidates if c.is_invocable] == ["Add"]
        assert candidates[0].parameter_type_names == ("System.Int32", "System.Int32")
        assert candidates[4].type_kind is TypeKind.VALUE_TYPE

    def test_yaml_document(self, tmp_path: Path):
        path = tmp_path / "demo.yaml"
        path.write_text(yaml.safe_dump(self.DOCUMENT), encoding="utf-8")
        candidates = DescriptionProvider().load(path)
        assert [c.member_name for c in candidates if c.is_invocable] == ["Add"]

    def test_component_key_sets_source_path(self, tmp_path: Path):
        path = tmp_path / "demo.json"
        path.write_text(json.dumps(self.DOCUMENT), encoding="utf-8")
        assert DescriptionProvider().source_path(path) == (tmp_path / "bin" / "Demo.dll").resolve()

    def test_source_path_defaults_to_document(self, tmp_path: Path):
        path = tmp_path / "bare.json"
        path.write_text(json.dumps({"types": []}), encoding="utf-8")
        assert DescriptionProvider().source_path(path) == path.resolve()

    def test_invalid_json_is_not_loadable(self, tmp_path: Path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(NotLoadableModuleError):
            DescriptionProvider().load(path)

    def test_wrong_root_is_not_loadable(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(NotLoadableModuleError):
            DescriptionProvider().load(path)

    def test_malformed_entries_are_partial_load(self, tmp_path: Path):
        path = tmp_path / "partial.json"
        document = {
            "types": [
                {"name": "Ok", "members": [{"name": "Run", "returns": "System.Int32"}]},
                {"namespace": "Demo"},
                {"name": "Weird", "kind": "delegate", "members": []},
            ]
        }
        path.write_text(json.dumps(document), encoding="utf-8")
        with pytest.raises(PartialTypeLoadError) as exc_info:
            DescriptionProvider().load(path)
        assert len(exc_info.value.causes) == 2
        assert exc_info.value.causes[0].startswith("types[1]:")
        assert exc_info.value.causes[1].startswith("Weird:")

    def test_null_lists_are_empty(self, tmp_path: Path):
        path = tmp_path / "nulls.yaml"
        path.write_text(
            "types:\n"
            "  - name: Empty\n"
            "    members:\n"
            "  - name: Tool\n"
            "    members:\n"
            "      - name: Ping\n"
            "        returns: System.Boolean\n"
            "        params:\n",
            encoding="utf-8",
        )
        candidates = DescriptionProvider().load(path)
        assert [c.member_name for c in candidates] == ["Ping"]
        assert candidates[0].parameter_type_names == ()
        assert candidates[0].namespace_name == ""


class TestProviderFactory:
    """Tests for ProviderFactory."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Demo.dll", ProviderKind.CLR),
            ("Tool.EXE", ProviderKind.CLR),
            ("Api.winmd", ProviderKind.CLR),
            ("surface.json", ProviderKind.DESCRIPTION),
            ("surface.yml", ProviderKind.DESCRIPTION),
        ],
    )
    def test_detect_kind(self, tmp_path: Path, name, expected):
        assert ProviderFactory.detect_kind(tmp_path / name) is expected

    @pytest.mark.parametrize("name", ["module.py", "archive.zip"])
    def test_unsupported_file_is_not_loadable(self, tmp_path: Path, name):
        with pytest.raises(NotLoadableModuleError):
            ProviderFactory.detect_kind(tmp_path / name)

    def test_directory_is_not_loadable(self, tmp_path: Path):
        with pytest.raises(NotLoadableModuleError):
            ProviderFactory.detect_kind(tmp_path)

    def test_explicit_kind_wins(self, tmp_path: Path):
        provider = ProviderFactory.create_provider("clr", tmp_path / "surface.json")
        assert isinstance(provider, ClrMetadataProvider)

    def test_auto_kind(self, tmp_path: Path):
        assert isinstance(
            ProviderFactory.create_provider(ProviderKind.AUTO, tmp_path / "x.json"),
            DescriptionProvider,
        )

    @pytest.mark.parametrize("kind", ["java", "python"])
    def test_unknown_kind_rejected(self, tmp_path: Path, kind):
        with pytest.raises(ValueError):
            ProviderFactory.create_provider(kind, tmp_path / "x.jar")
