"""Tests for the Svelte component extractor."""

from __future__ import annotations

import pytest

from docinfo.analysis_context import SVELTE_PROP_FAILED
from docinfo.errors import ComponentParseError
from docinfo.models import DeclarationKind
from docinfo.analyzers.svelte import find_scripts, includes_undefined, markup_component_comment
from tests._fixtures.project_builder import ProjectBuilder

BUTTON = """
<script lang="ts">
  /**
   * @module
   * Button module docs.
   */

  import type { Snippet } from 'svelte';

  interface Props {
    /**
     * Visual size.
     * @default 'md'
     */
    size?: 'sm' | 'md';
    /** Label text. */
    label: string;
    value: number;
    hint: string | undefined;
    children?: Snippet;
  }

  /** A clickable button. */
  let { size = 'md', label, value = $bindable(0), hint, children }: Props = $props();
</script>

<button class={size} title={hint}>{label} {value}</button>
"""


def _props(declaration):
    return {prop.name: prop for prop in declaration.props}


def test_rune_props_from_interface(project: ProjectBuilder) -> None:
    modules, context = project.analyze({"src/lib/ui/Button.svelte": BUTTON})

    module = modules["ui/Button.svelte"]
    assert module.module_comment == "Button module docs."
    [component] = module.declarations
    assert component.name == "Button"
    assert component.kind is DeclarationKind.COMPONENT
    assert component.source_line == 1
    assert component.comment == "A clickable button."

    props = _props(component)
    assert list(props) == ["size", "label", "value", "hint", "children"]
    assert (props["size"].type, props["size"].optional, props["size"].default_value) == (
        "'sm' | 'md'",
        True,
        "'md'",
    )
    assert props["size"].description == "Visual size."
    assert props["label"].optional is False
    assert props["label"].description == "Label text."
    assert props["value"].bindable is True
    assert props["value"].default_value == "0"
    assert props["value"].optional is True
    assert props["hint"].optional is True
    assert props["children"].type == "Snippet"
    assert not context.by_kind(SVELTE_PROP_FAILED)


def test_defaults_do_not_imply_optional_when_disabled(project: ProjectBuilder) -> None:
    modules, _ = project.analyze(
        {"src/lib/ui/Button.svelte": BUTTON}, default_implies_optional=False
    )

    props = _props(modules["ui/Button.svelte"].declarations[0])
    assert props["value"].optional is False
    assert props["size"].optional is True


def test_inline_type_arguments(project: ProjectBuilder) -> None:
    modules, _ = project.analyze(
        {
            "src/lib/Tag.svelte": """
            <script lang="ts">
              let { text, color } = $props<{ text: string; color?: string }>();
            </script>

            <span style:color>{text}</span>
            """
        }
    )

    props = _props(modules["Tag.svelte"].declarations[0])
    assert [(p.name, p.type, p.optional) for p in props.values()] == [
        ("text", "string", False),
        ("color", "string", True),
    ]


def test_generics_attribute_with_angle_brackets(project: ProjectBuilder) -> None:
    modules, _ = project.analyze(
        {
            "src/lib/List.svelte": """
            <script lang="ts" generics="T extends Array<string>">
              let { items, label } = $props<{ items: T; label?: string }>();
            </script>

            <p>{label} {items.length}</p>
            """
        }
    )

    [component] = modules["List.svelte"].declarations
    props = _props(component)
    assert [(p.name, p.type, p.optional) for p in props.values()] == [
        ("items", "T", False),
        ("label", "string", True),
    ]


def test_find_scripts_reads_quoted_attributes_containing_angle_brackets() -> None:
    content = '<script lang="ts" generics="T extends Map<string, number>">let z: T;</script>\n<p>{1 > 0}</p>\n'

    [block] = find_scripts(content, "Generic.svelte")

    assert block.attributes == ' lang="ts" generics="T extends Map<string, number>"'
    assert block.content == "let z: T;"
    assert not block.is_module


def test_untyped_rune_props_fall_back_to_any(project: ProjectBuilder) -> None:
    modules, context = project.analyze(
        {
            "src/lib/Loose.svelte": """
            <script>
              let { a, b = 2 } = $props();
            </script>

            <p>{a}{b}</p>
            """
        }
    )

    props = _props(modules["Loose.svelte"].declarations[0])
    assert [(p.name, p.type, p.optional, p.default_value) for p in props.values()] == [
        ("a", "any", False, None),
        ("b", "any", True, "2"),
    ]
    assert [d.symbol for d in context.by_kind(SVELTE_PROP_FAILED)] == ["a", "b"]


def test_unresolvable_props_type_is_reported(project: ProjectBuilder) -> None:
    modules, context = project.analyze(
        {
            "src/lib/Remote.svelte": """
            <script lang="ts">
              import type { RemoteProps } from './types';
              let { id }: RemoteProps = $props();
            </script>
            """
        }
    )

    props = _props(modules["Remote.svelte"].declarations[0])
    assert props["id"].type == "any"
    messages = [d.message for d in context.by_kind(SVELTE_PROP_FAILED)]
    assert any("RemoteProps" in message for message in messages)


def test_legacy_export_let_props(project: ProjectBuilder) -> None:
    modules, context = project.analyze(
        {
            "src/lib/Card.svelte": """
            <script>
              /** The title. */
              export let title = 'Hello';
              export let count;
              export const VERSION = 1;
            </script>

            <!--
              @component
              A legacy card.
            -->
            <h1>{title} {count}</h1>
            """
        }
    )

    component = modules["Card.svelte"].declarations[0]
    assert component.comment == "A legacy card."
    props = _props(component)
    assert list(props) == ["title", "count"]
    assert (props["title"].type, props["title"].optional, props["title"].default_value) == (
        "string",
        True,
        "'Hello'",
    )
    assert props["title"].description == "The title."
    assert (props["count"].type, props["count"].optional) == ("any", False)
    assert [d.symbol for d in context.by_kind(SVELTE_PROP_FAILED)] == ["count"]


def test_markup_only_component(project: ProjectBuilder) -> None:
    modules, _ = project.analyze({"src/lib/Divider.svelte": "<hr />\n"})

    [component] = modules["Divider.svelte"].declarations
    assert component.name == "Divider"
    assert component.props == []
    assert component.comment is None
    assert modules["Divider.svelte"].module_comment is None


def test_unclosed_script_raises_with_location(project: ProjectBuilder) -> None:
    with pytest.raises(ComponentParseError) as excinfo:
        project.analyze({"src/lib/Bad.svelte": "<div></div>\n<script>\n  let a = 1;\n"})

    assert excinfo.value.line == 2
    assert excinfo.value.column == 1
    assert "Unclosed <script> tag" in str(excinfo.value)


def test_unterminated_expression_raises(project: ProjectBuilder) -> None:
    with pytest.raises(ComponentParseError) as excinfo:
        project.analyze({"src/lib/Bad.svelte": "<p>{name</p>\n"})

    assert (excinfo.value.line, excinfo.value.column) == (1, 4)


def test_script_syntax_error_raises(project: ProjectBuilder) -> None:
    with pytest.raises(ComponentParseError) as excinfo:
        project.analyze({"src/lib/Bad.svelte": "<script>\nconst = ;\n</script>\n"})

    assert excinfo.value.file.endswith("src/lib/Bad.svelte")
    assert excinfo.value.line == 2


def test_find_scripts_ignores_commented_markup() -> None:
    content = '<!-- <script> -->\n<script context="module">export const x = 1;</script>\n<script>let y;</script>\n'

    blocks = find_scripts(content, "Widget.svelte")

    assert [block.is_module for block in blocks] == [True, False]
    assert blocks[0].content == "export const x = 1;"
    assert blocks[1].content == "let y;"


def test_includes_undefined_only_checks_top_level_union() -> None:
    assert includes_undefined("string | undefined")
    assert not includes_undefined("Array<string | undefined>")
    assert not includes_undefined("string")


def test_markup_component_comment_dedents_body() -> None:
    content = "<!--\n  @component\n  Line one.\n    indented\n-->\n<div />\n"

    assert markup_component_comment(content) == "Line one.\n  indented"
    assert markup_component_comment("<div />") is None
