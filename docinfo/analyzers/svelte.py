"""Component metadata extraction for ``.svelte`` files.

The component's instance script is parsed with the TypeScript grammar; props
come from ``$props()`` destructuring (runes) or ``export let`` (legacy).
Anything that keeps the file from being parsed raises
:class:`~docinfo.errors.ComponentParseError` with a location.
"""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Set, Tuple

from tree_sitter import Node

from ..analysis_context import SVELTE_PROP_FAILED, AnalysisContext
from ..errors import ComponentParseError
from ..logging import get_logger
from ..models import ComponentProp, Declaration, DeclarationKind, FileKind
from ..sources import ModuleSourceOptions, component_name
from .base import ExtractedModule, ModuleExtractor
from .program import IndexedFile, ParsedScript, ProgramIndex, first_error, parse_script
from .typescript import (
    DeclarationReader,
    annotation_text,
    apply_doc,
    child_of_type,
    expression_type,
    find_module_comment,
    module_comment_text,
    unquote,
    unwrap_expression,
)

_LOGGER = get_logger("analyzers.svelte")

_SCRIPT_ATTRIBUTES = r"""((?:\s+[^\s=>]+(?:\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+))?)*)\s*"""
_SCRIPT_OPEN = re.compile(r"<script" + _SCRIPT_ATTRIBUTES + r">", re.IGNORECASE)
_SCRIPT_CLOSE = re.compile(r"</script\s*>", re.IGNORECASE)
_SCRIPT_BLOCK = re.compile(
    r"<script" + _SCRIPT_ATTRIBUTES + r">.*?</script\s*>", re.IGNORECASE | re.DOTALL
)
_STYLE_BLOCK = re.compile(r"<style(\s[^>]*)?>.*?</style\s*>", re.IGNORECASE | re.DOTALL)
_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_COMPONENT_COMMENT = re.compile(r"<!--\s*@component\b(.*?)-->", re.DOTALL)
_MODULE_ATTRIBUTE = re.compile(r"(?:^|\s)(?:module(?=\s|$|/)|context\s*=\s*[\"']?module\b)")

_VARIABLE_STATEMENTS = {"lexical_declaration", "variable_declaration"}


@dataclass
class ScriptBlock:
    """A ``<script>`` element: its attribute text and content offsets."""

    attributes: str
    content: str
    offset: int

    @property
    def is_module(self) -> bool:
        return bool(_MODULE_ATTRIBUTE.search(self.attributes))


@dataclass
class _TypedProp:
    name: str
    type: str
    optional: bool
    description: Optional[str]
    default_value: Optional[str]


def _position(text: str, offset: int) -> Tuple[int, int]:
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _blank(text: str, pattern: Pattern[str]) -> str:
    """Replace every match of *pattern* with spaces, keeping newlines and offsets."""
    return pattern.sub(lambda m: re.sub(r"[^\n]", " ", m.group(0)), text)


def find_scripts(content: str, file_id: str) -> List[ScriptBlock]:
    masked = _blank(content, _HTML_COMMENT)
    blocks: List[ScriptBlock] = []
    position = 0
    while True:
        opening = _SCRIPT_OPEN.search(masked, position)
        if opening is None:
            return blocks
        closing = _SCRIPT_CLOSE.search(masked, opening.end())
        if closing is None:
            line, column = _position(content, opening.start())
            raise ComponentParseError(file_id, "Unclosed <script> tag", line=line, column=column)
        blocks.append(
            ScriptBlock(
                attributes=opening.group(1) or "",
                content=content[opening.end() : closing.start()],
                offset=opening.end(),
            )
        )
        position = closing.end()


def _template_text(content: str) -> str:
    masked = _blank(content, _HTML_COMMENT)
    masked = _blank(masked, _STYLE_BLOCK)
    return _blank(masked, _SCRIPT_BLOCK)


def check_interpolations(content: str, file_id: str) -> None:
    """Raise when a ``{`` expression in the markup is never closed."""
    template = _template_text(content)
    depth = 0
    opened = 0
    quote: Optional[str] = None
    index = 0
    while index < len(template):
        char = template[index]
        if depth:
            if quote:
                if char == "\\":
                    index += 2
                    continue
                if char == quote:
                    quote = None
            elif char in "'\"`":
                quote = char
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
        elif char == "{":
            depth = 1
            opened = index
        index += 1
    if depth:
        line, column = _position(content, opened)
        raise ComponentParseError(file_id, "Unterminated expression in template", line=line, column=column)


def _split_union(type_text: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    current = ""
    for char in type_text:
        if char in "<([{":
            depth += 1
        elif char in ">)]}":
            depth -= 1
        if char == "|" and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += char
    parts.append(current.strip())
    return parts


def includes_undefined(type_text: str) -> bool:
    return "undefined" in _split_union(type_text)


def markup_component_comment(content: str) -> Optional[str]:
    match = _COMPONENT_COMMENT.search(content)
    if match is None:
        return None
    body = match.group(1)
    first, _, rest = body.partition("\n")
    text = (first.strip() + "\n" + textwrap.dedent(rest)).strip()
    return text or None


class _ComponentReader:
    def __init__(
        self,
        script: ParsedScript,
        file_id: str,
        name: str,
        options: ModuleSourceOptions,
        context: AnalysisContext,
    ) -> None:
        self.script = script
        self.file_id = file_id
        self.name = name
        self.options = options
        self.context = context
        self.module_comment = find_module_comment(script)
        self.reader = DeclarationReader(script, file_id, context, skip_comment=self.module_comment)
        self.statements = [n for n in script.root.named_children if n.type != "comment"]
        self.types: Dict[str, Node] = {}
        for statement in self.statements:
            node = statement
            if statement.type == "export_statement":
                node = statement.child_by_field_name("declaration") or statement
            if node.type in ("interface_declaration", "type_alias_declaration"):
                name_node = node.child_by_field_name("name")
                if name_node is not None:
                    self.types[script.text(name_node)] = node

    def warn(self, node: Node, message: str, symbol: Optional[str] = None) -> None:
        self.reader.warn(SVELTE_PROP_FAILED, node, message, symbol or self.name)

    def props_declaration(self) -> Optional[Tuple[Node, Node, Node]]:
        for statement in self.statements:
            if statement.type not in _VARIABLE_STATEMENTS:
                continue
            for declarator in statement.named_children:
                if declarator.type != "variable_declarator":
                    continue
                value = unwrap_expression(declarator.child_by_field_name("value"))
                if value is None or value.type != "call_expression":
                    continue
                if self.script.text(value.child_by_field_name("function")) == "$props":
                    return statement, declarator, value
        return None

    # -- prop types -------------------------------------------------------

    def typed_props(self, node: Optional[Node], seen: Set[str]) -> List[_TypedProp]:
        if node is None:
            return []
        if node.type in ("type_annotation", "type_arguments", "parenthesized_type"):
            inner = next(iter(node.named_children), None)
            return self.typed_props(inner, seen)
        if node.type in ("object_type", "interface_body"):
            return self._object_members(node)
        if node.type == "intersection_type":
            props: List[_TypedProp] = []
            for part in node.named_children:
                props.extend(self.typed_props(part, seen))
            return props
        if node.type in ("type_identifier", "generic_type"):
            name_node = node.child_by_field_name("name") if node.type == "generic_type" else node
            type_name = self.script.text(name_node or node)
            declaration = self.types.get(type_name)
            if declaration is None:
                self.warn(node, f'Cannot resolve props type "{type_name}" in {self.name}')
                return []
            if type_name in seen:
                return []
            seen = seen | {type_name}
            if declaration.type == "type_alias_declaration":
                return self.typed_props(declaration.child_by_field_name("value"), seen)
            props = []
            clause = child_of_type(declaration, "extends_type_clause")
            if clause is not None:
                for base in clause.named_children:
                    props.extend(self.typed_props(base, seen))
            props.extend(self.typed_props(declaration.child_by_field_name("body"), seen))
            return props
        self.warn(node, f'Unsupported props type "{self.script.text(node)}" in {self.name}')
        return []

    def _object_members(self, body: Node) -> List[_TypedProp]:
        props: List[_TypedProp] = []
        for member in body.named_children:
            if member.type not in ("property_signature", "method_signature"):
                continue
            name_node = member.child_by_field_name("name")
            if name_node is None:
                continue
            name = unquote(self.script.text(name_node))
            doc = self.reader.doc_for(member)
            if doc is not None and doc.nodocs:
                continue
            if member.type == "method_signature":
                holder = Declaration(name=name, kind=DeclarationKind.FUNCTION)
                self.reader.fill_function(holder, member, doc)
                type_text = holder.type_signature or "any"
            else:
                type_text = annotation_text(self.script, member.child_by_field_name("type"))
                if type_text is None:
                    self.warn(member, f'Prop "{name}" of {self.name} has no type; using "any"', name)
                    type_text = "any"
            props.append(
                _TypedProp(
                    name=name,
                    type=type_text,
                    optional=child_of_type(member, "?") is not None,
                    description=doc.text if doc is not None else None,
                    default_value=doc.default_value if doc is not None else None,
                )
            )
        return props

    # -- destructuring ----------------------------------------------------

    def destructured(self, pattern: Node) -> Dict[str, Tuple[Optional[str], bool]]:
        """Map destructured prop names to ``(default_value, bindable)``."""
        entries: Dict[str, Tuple[Optional[str], bool]] = {}
        for child in pattern.named_children:
            if child.type == "shorthand_property_identifier_pattern":
                entries[self.script.text(child)] = (None, False)
            elif child.type == "object_assignment_pattern":
                left = child.child_by_field_name("left")
                if left is not None:
                    entries[self.script.text(left)] = self._default(child.child_by_field_name("right"))
            elif child.type == "pair_pattern":
                key = child.child_by_field_name("key")
                value = child.child_by_field_name("value")
                if key is None:
                    continue
                right = value.child_by_field_name("right") if value is not None and value.type == "assignment_pattern" else None
                entries[unquote(self.script.text(key))] = self._default(right)
        return entries

    def _default(self, node: Optional[Node]) -> Tuple[Optional[str], bool]:
        value = unwrap_expression(node)
        if value is None:
            return None, False
        if value.type == "call_expression" and self.script.text(value.child_by_field_name("function")) == "$bindable":
            arguments = value.child_by_field_name("arguments")
            first = next(iter(arguments.named_children), None) if arguments is not None else None
            return (self.script.text(first) if first is not None else None), True
        return self.script.text(value), False

    def _prop(
        self,
        name: str,
        type_text: str,
        *,
        marked_optional: bool,
        default_value: Optional[str],
        description: Optional[str],
        bindable: bool,
    ) -> ComponentProp:
        optional = (
            marked_optional
            or includes_undefined(type_text)
            or (default_value is not None and self.options.default_implies_optional)
        )
        return ComponentProp(
            name=name,
            type=type_text,
            optional=optional,
            default_value=default_value,
            description=description,
            bindable=bindable,
        )

    def rune_props(self, declarator: Node, call: Node) -> List[ComponentProp]:
        type_node = declarator.child_by_field_name("type") or call.child_by_field_name("type_arguments")
        typed = self.typed_props(type_node, set())
        pattern = declarator.child_by_field_name("name")
        entries = self.destructured(pattern) if pattern is not None and pattern.type == "object_pattern" else {}

        props: List[ComponentProp] = []
        typed_names = set()
        for item in typed:
            if item.name in typed_names:
                continue
            typed_names.add(item.name)
            default_value, bindable = entries.get(item.name, (None, False))
            props.append(
                self._prop(
                    item.name,
                    item.type,
                    marked_optional=item.optional,
                    default_value=default_value if default_value is not None else item.default_value,
                    description=item.description,
                    bindable=bindable,
                )
            )
        for name, (default_value, bindable) in entries.items():
            if name in typed_names:
                continue
            self.warn(declarator, f'Prop "{name}" of {self.name} has no declared type; using "any"', name)
            props.append(
                self._prop(
                    name,
                    "any",
                    marked_optional=False,
                    default_value=default_value,
                    description=None,
                    bindable=bindable,
                )
            )
        return props

    def legacy_props(self) -> List[ComponentProp]:
        props: List[ComponentProp] = []
        for statement in self.statements:
            if statement.type != "export_statement":
                continue
            declaration = statement.child_by_field_name("declaration")
            if declaration is None or declaration.type not in _VARIABLE_STATEMENTS:
                continue
            if child_of_type(declaration, "const") is not None:
                continue
            doc = self.reader.doc_for(statement)
            if doc is not None and doc.nodocs:
                continue
            for declarator in declaration.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                if name_node is None or name_node.type != "identifier":
                    continue
                name = self.script.text(name_node)
                value = declarator.child_by_field_name("value")
                type_text = annotation_text(self.script, declarator.child_by_field_name("type")) or expression_type(
                    self.script, value
                )
                if type_text is None:
                    self.warn(declarator, f'Prop "{name}" of {self.name} has no type; using "any"', name)
                    type_text = "any"
                default_value = self.script.text(value) if value is not None else None
                if default_value is None and doc is not None:
                    default_value = doc.default_value
                props.append(
                    self._prop(
                        name,
                        type_text,
                        marked_optional=False,
                        default_value=default_value,
                        description=doc.text if doc is not None else None,
                        bindable=False,
                    )
                )
        return props


def _check_script(block: ScriptBlock, script: ParsedScript, content: str, file_id: str) -> None:
    error = first_error(script.root)
    if error is None:
        return
    base_line, base_column = _position(content, block.offset)
    row, column = error.start_point[0], error.start_point[1]
    line = base_line + row
    column = base_column + column if row == 0 else column + 1
    raise ComponentParseError(
        file_id,
        f"Failed to parse component script near {script.text(error)[:40]!r}",
        line=line,
        column=column,
    )


def analyze_component(
    content: str,
    file_id: str,
    module_path: str,
    options: ModuleSourceOptions,
    context: AnalysisContext,
    *,
    program: ProgramIndex | None = None,
) -> ExtractedModule:
    """Extract the component declaration and module comment of one ``.svelte`` file."""
    parser = program.parser if program is not None else None
    blocks = find_scripts(content, file_id)
    check_interpolations(content, file_id)

    instance: Optional[Tuple[ScriptBlock, ParsedScript]] = None
    for block in blocks:
        script = parse_script(block.content, parser)
        _check_script(block, script, content, file_id)
        if instance is None and not block.is_module:
            instance = (block, script)

    name = component_name(module_path)
    declaration = Declaration(name=name, kind=DeclarationKind.COMPONENT, source_line=1)
    result = ExtractedModule(declarations=[declaration])

    comment = markup_component_comment(content)
    if instance is not None:
        block, script = instance
        reader = _ComponentReader(script, file_id, name, options, context)
        if reader.module_comment is not None:
            result.module_comment = module_comment_text(script.text(reader.module_comment))

        found = reader.props_declaration()
        if found is not None:
            statement, declarator, call = found
            doc = reader.reader.doc_for(statement)
            if doc is not None:
                apply_doc(declaration, doc)
                comment = doc.text or comment
            declaration.props = reader.rune_props(declarator, call)
        else:
            declaration.props = reader.legacy_props()

    declaration.comment = comment
    _LOGGER.debug("Analyzed component %s with %d props", name, len(declaration.props))
    return result


class SvelteExtractor(ModuleExtractor):
    """Extracts the single component declaration of a ``.svelte`` module."""

    kind = FileKind.SVELTE

    def extract(
        self,
        indexed: IndexedFile,
        module_path: str,
        program: ProgramIndex,
        options: ModuleSourceOptions,
        context: AnalysisContext,
    ) -> ExtractedModule:
        return analyze_component(
            indexed.content, indexed.id, module_path, options, context, program=program
        )


__all__ = [
    "ScriptBlock",
    "SvelteExtractor",
    "analyze_component",
    "check_interpolations",
    "find_scripts",
    "includes_undefined",
    "markup_component_comment",
]
