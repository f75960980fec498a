"""Tests for docinfo.library."""

from __future__ import annotations

import json
import logging

import pytest

from docinfo.errors import DuplicateDeclarationError
from docinfo.library import (
    assemble_library,
    find_duplicates,
    generate,
    generate_library,
    serialize_library,
    throw_on_duplicates,
    warn_on_duplicates,
)
from docinfo.models import (
    AliasOf,
    ComponentProp,
    Declaration,
    DeclarationKind,
    LibraryModel,
    Module,
    Parameter,
)
from docinfo.package import PackageMetadata
from docinfo.sources import collect_source_files
from tests._fixtures.project_builder import ProjectBuilder

PACKAGE = PackageMetadata(name="@demo/lib", version="1.2.3", description="Demo")


def test_empty_library_always_lists_modules() -> None:
    content = serialize_library(assemble_library(PACKAGE, []))

    assert json.loads(content) == {
        "name": "@demo/lib",
        "version": "1.2.3",
        "description": "Demo",
        "modules": [],
    }
    assert content.endswith("}\n")
    assert '\n\t"version"' in content


def test_serialization_is_ordered_and_compact() -> None:
    declaration = Declaration(
        name="add",
        kind=DeclarationKind.FUNCTION,
        source_line=3,
        parameters=[Parameter(name="a", type="number")],
        return_type="number",
        alias_of=AliasOf(module="math.ts", name="sum"),
    )
    library = assemble_library(
        PACKAGE,
        [
            Module(path="z.ts"),
            Module(path="math.ts", declarations=[declaration], dependencies=["z.ts"]),
        ],
    )

    data = json.loads(serialize_library(library))

    assert [module["path"] for module in data["modules"]] == ["math.ts", "z.ts"]
    assert data["modules"][1] == {"path": "z.ts"}
    assert data["modules"][0]["dependencies"] == ["z.ts"]
    serialized = data["modules"][0]["declarations"][0]
    assert list(serialized) == [
        "name",
        "kind",
        "source_line",
        "return_type",
        "parameters",
        "alias_of",
    ]
    assert serialized["parameters"] == [{"name": "a", "type": "number"}]
    assert serialized["alias_of"] == {"module": "math.ts", "name": "sum"}


def test_component_props_serialize_flags() -> None:
    component = Declaration(
        name="Button",
        kind=DeclarationKind.COMPONENT,
        source_line=1,
        props=[ComponentProp(name="value", type="number", optional=True, bindable=True)],
    )
    library = assemble_library(PACKAGE, [Module(path="Button.svelte", declarations=[component])])

    data = json.loads(serialize_library(library))

    assert data["modules"][0]["declarations"][0]["props"] == [
        {"name": "value", "type": "number", "optional": True, "bindable": True}
    ]


def test_generate_is_idempotent_and_renders_wrapper() -> None:
    library = assemble_library(PACKAGE, [Module(path="a.ts"), Module(path="b.ts")])

    first = generate(PACKAGE, library, json_filename="meta.json")
    second = generate(PACKAGE, library, json_filename="meta.json")

    assert first == second
    assert first.wrapper_source is not None
    assert "import json from './meta.json';" in first.wrapper_source
    assert "// @demo/lib@1.2.3: 2 modules" in first.wrapper_source
    assert "export const library_json: LibraryJson = json as unknown as LibraryJson;" in first.wrapper_source
    assert (
        'export type DeclarationKind = "value" | "function" | "class" | "type_alias" | '
        '"interface" | "enum" | "component";'
    ) in first.wrapper_source
    assert "\tkind: DeclarationKind;" in first.wrapper_source
    assert first.wrapper_source.endswith("export default library_json;\n")
    assert generate(PACKAGE, library, wrapper=False).wrapper_source is None


def test_generate_overrides_library_identity() -> None:
    library = LibraryModel(name="old", version="0.0.0", modules=[Module(path="b.ts"), Module(path="a.ts")])

    data = json.loads(generate(PACKAGE, library).json_content)

    assert (data["name"], data["version"]) == ("@demo/lib", "1.2.3")
    assert [module["path"] for module in data["modules"]] == ["a.ts", "b.ts"]


def _duplicated_library() -> LibraryModel:
    return assemble_library(
        PACKAGE,
        [
            Module(path="a.ts", declarations=[Declaration(name="Item", kind=DeclarationKind.CLASS, source_line=2)]),
            Module(path="b.ts", declarations=[Declaration(name="Item", kind=DeclarationKind.TYPE_ALIAS)]),
            Module(path="c.ts", declarations=[Declaration(name="unique", kind=DeclarationKind.VALUE)]),
        ],
    )


def test_find_duplicates_groups_by_name() -> None:
    library = _duplicated_library()

    duplicates = find_duplicates(library)

    assert list(duplicates) == ["Item"]
    assert [info.module for info in duplicates["Item"]] == ["a.ts", "b.ts"]
    assert library.duplicates() == duplicates


def test_duplicate_policies(caplog: pytest.LogCaptureFixture) -> None:
    duplicates = find_duplicates(_duplicated_library())

    with caplog.at_level(logging.WARNING, logger="docinfo"):
        warn_on_duplicates(duplicates)
    assert "Duplicate declaration names detected in flat namespace:" in caplog.text
    assert "- a.ts:2 (class)" in caplog.text
    assert "- b.ts (type_alias)" in caplog.text

    with pytest.raises(DuplicateDeclarationError) as excinfo:
        throw_on_duplicates(duplicates)
    assert excinfo.value.duplicates is duplicates
    assert "1 duplicate declaration name " in str(excinfo.value)

    throw_on_duplicates({})


def test_generate_library_end_to_end(project: ProjectBuilder) -> None:
    options = project.options()
    files = project.source_files(
        {
            "src/lib/index.ts": "export * from './math';\nexport { default as Button } from './Button.svelte';\n",
            "src/lib/math.ts": "/** Adds. */\nexport function add(a: number, b: number): number {\n  return a + b;\n}\n",
            "src/lib/Button.svelte": "<script lang=\"ts\">\n  let { label }: { label: string } = $props();\n</script>\n<button>{label}</button>\n",
            "src/lib/math.test.ts": "export const ignored = 1;\n",
        }
    )

    result = generate_library(collect_source_files(files, options), PACKAGE, options)

    assert [module.path for module in result.library.modules] == ["Button.svelte", "index.ts", "math.ts"]
    math = result.library.module("math.ts")
    assert math is not None
    assert math.declarations[0].also_exported_from == ["index.ts"]
    button = result.library.module("Button.svelte")
    assert button is not None
    assert button.declarations[0].props[0].name == "label"
    assert button.declarations[0].also_exported_from == ["index.ts"]
    assert result.link.unresolved == []
    assert result.duplicates == {}
    assert json.loads(result.json_content)["modules"][2]["declarations"][0]["comment"] == "Adds."


def test_generate_library_applies_duplicate_policy(project: ProjectBuilder) -> None:
    options = project.options()
    files = project.source_files(
        {
            "src/lib/a.ts": "export const shared = 1;\n",
            "src/lib/b.ts": "export const shared = 2;\n",
        }
    )

    with pytest.raises(DuplicateDeclarationError):
        generate_library(files, PACKAGE, options, on_duplicates=throw_on_duplicates)

    result = generate_library(files, PACKAGE, options, on_duplicates=warn_on_duplicates)
    assert list(result.duplicates) == ["shared"]


def test_rerunning_the_pipeline_is_byte_identical(project: ProjectBuilder) -> None:
    options = project.options()
    files = project.source_files(
        {
            "src/lib/b.ts": "export * from './a';\nexport const b = [1, 2];\n",
            "src/lib/a.ts": "/** The a value. */\nexport const a = 'a';\n",
        }
    )

    first = generate_library(collect_source_files(files, options), PACKAGE, options)
    second = generate_library(collect_source_files(reversed(files), options), PACKAGE, options)

    assert first.json_content == second.json_content
    assert first.wrapper_source == second.wrapper_source
