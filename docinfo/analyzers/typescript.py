"""Declaration extraction for TypeScript and JavaScript modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from tree_sitter import Node

from ..analysis_context import (
    CLASS_MEMBER_FAILED,
    DUPLICATE_BINDING,
    SIGNATURE_ANALYSIS_FAILED,
    TYPE_EXTRACTION_FAILED,
    AnalysisContext,
)
from ..logging import get_logger
from ..models import (
    AliasOf,
    Declaration,
    DeclarationKind,
    FileKind,
    GenericParam,
    Parameter,
    ReExport,
)
from ..sources import ModuleSourceOptions, extract_path
from ..tsdoc import TsDoc, clean_comment, convert_links, is_doc_comment, parse_tsdoc, strip_module_tag
from .base import ExtractedModule, ModuleExtractor
from .program import IndexedFile, ParsedScript, ProgramIndex, first_error, parse_script

_LOGGER = get_logger("analyzers.typescript")

_FUNCTION_DECLARATIONS = {
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
}
_FUNCTION_VALUES = {"arrow_function", "function_expression", "function", "generator_function"}
_CLASS_NODES = {"class_declaration", "abstract_class_declaration", "class"}
_VARIABLE_STATEMENTS = {"lexical_declaration", "variable_declaration"}
_NAMED_DECLARATIONS = _FUNCTION_DECLARATIONS | _CLASS_NODES | {
    "type_alias_declaration",
    "interface_declaration",
    "enum_declaration",
}
_SCOPE_BOUNDARIES = _FUNCTION_VALUES | _FUNCTION_DECLARATIONS | _CLASS_NODES | {"method_definition"}
_MEMBER_KEYWORDS = {"static", "readonly", "abstract"}


def node_line(node: Node) -> int:
    return node.start_point[0] + 1


def node_column(node: Node) -> int:
    return node.start_point[1] + 1


def unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"`":
        return text[1:-1]
    return text


def child_of_type(node: Node, *types: str) -> Optional[Node]:
    for child in node.children:
        if child.type in types:
            return child
    return None


def annotation_text(script: ParsedScript, node: Optional[Node]) -> Optional[str]:
    """Return the type text of a ``type_annotation`` node without the leading colon."""
    if node is None:
        return None
    text = script.text(node).strip()
    if text.startswith(":"):
        text = text[1:].strip()
    return text or None


def _strip_keyword(text: str, keyword: str) -> str:
    text = text.strip()
    if text.startswith(keyword):
        text = text[len(keyword) :]
    return text.strip()


def unwrap_expression(node: Optional[Node]) -> Optional[Node]:
    while node is not None and node.type == "parenthesized_expression" and node.named_children:
        node = node.named_children[0]
    return node


_LITERAL_TYPES = {
    "number": "number",
    "string": "string",
    "template_string": "string",
    "true": "boolean",
    "false": "boolean",
    "null": "null",
    "undefined": "undefined",
    "regex": "RegExp",
}


def _const_literal(script: ParsedScript, node: Node) -> Optional[str]:
    node = unwrap_expression(node)
    if node is None:
        return None
    if node.type == "string":
        return f'"{unquote(script.text(node))}"'
    if node.type in ("number", "true", "false", "null"):
        return script.text(node)
    return None


def expression_type(script: ParsedScript, node: Optional[Node]) -> Optional[str]:
    """Infer the type text of an initializer, or ``None`` when it cannot be inferred."""
    node = unwrap_expression(node)
    if node is None:
        return None
    kind = node.type
    if kind in ("as_expression", "satisfies_expression") and node.named_children:
        if node.children[-1].type == "const":
            return _const_literal(script, node.named_children[0])
        if len(node.named_children) >= 2:
            return script.text(node.named_children[-1]).strip()
        return None
    if kind in _LITERAL_TYPES:
        return _LITERAL_TYPES[kind]
    if kind == "unary_expression":
        operator = script.text(node.child_by_field_name("operator"))
        argument = unwrap_expression(node.child_by_field_name("argument"))
        if operator == "!":
            return "boolean"
        if operator == "typeof":
            return "string"
        if operator == "void":
            return "undefined"
        if operator in ("-", "+", "~") and argument is not None and argument.type == "number":
            return "number"
        return None
    if kind == "new_expression":
        constructor = node.child_by_field_name("constructor")
        if constructor is None:
            return None
        return script.text(constructor) + script.text(node.child_by_field_name("type_arguments"))
    if kind == "array":
        element_types = {expression_type(script, child) for child in node.named_children}
        if len(element_types) == 1 and None not in element_types:
            return f"{element_types.pop()}[]"
    return None


def preceding_doc_comment(node: Node) -> Optional[Node]:
    """Return the ``/** */`` comment node immediately preceding *node*, if any."""
    previous = node.prev_sibling
    if previous is None or previous.type != "comment":
        return None
    if not is_doc_comment(previous.text.decode("utf-8", errors="replace")):
        return None
    return previous


def find_module_comment(script: ParsedScript) -> Optional[Node]:
    """Locate the module-level doc comment of a parsed script.

    Only comments ahead of the first statement qualify. The first ``/** */``
    block among them that carries ``@module`` or is followed by a blank line
    (or by nothing at all) wins.
    """
    children = script.root.children
    for index, node in enumerate(children):
        if node.type == "hash_bang_line":
            continue
        if node.type != "comment":
            return None
        raw = script.text(node)
        if not is_doc_comment(raw):
            continue
        doc = parse_tsdoc(raw)
        if doc is not None and doc.module:
            return node
        following = children[index + 1] if index + 1 < len(children) else None
        if following is None or following.start_point[0] > node.end_point[0] + 1:
            return node
    return None


def module_comment_text(raw: str) -> Optional[str]:
    cleaned = clean_comment(raw)
    if cleaned is None:
        return None
    return convert_links(strip_module_tag(cleaned)) or None


def extract_module_comment(script: ParsedScript) -> Optional[str]:
    node = find_module_comment(script)
    if node is None:
        return None
    return module_comment_text(script.text(node))


def signature_text(
    type_parameters: str, parameters: List[Parameter], return_type: str
) -> str:
    rendered = []
    for parameter in parameters:
        marker = "?" if parameter.optional and not parameter.name.startswith("...") else ""
        rendered.append(f"{parameter.name}{marker}: {parameter.type}")
    return f"{type_parameters}({', '.join(rendered)}) => {return_type}"


def apply_doc(declaration: Declaration, doc: Optional[TsDoc]) -> None:
    if doc is None:
        return
    declaration.comment = doc.text
    declaration.since = doc.since
    declaration.deprecated = doc.deprecated
    declaration.throws = list(doc.throws)
    declaration.examples = list(doc.examples)
    declaration.see_also = list(doc.see_also)


@dataclass
class _Binding:
    node: Node
    statement: Node


class DeclarationReader:
    """Builds :class:`Declaration` records from tree-sitter nodes of one script."""

    def __init__(
        self,
        script: ParsedScript,
        file_id: str,
        context: AnalysisContext,
        *,
        skip_comment: Optional[Node] = None,
    ) -> None:
        self.script = script
        self.file_id = file_id
        self.context = context
        self._skip_comment = skip_comment

    def text(self, node: Optional[Node]) -> str:
        return self.script.text(node)

    def doc_for(self, node: Node) -> Optional[TsDoc]:
        comment = preceding_doc_comment(node)
        if comment is None:
            return None
        if self._skip_comment is not None and comment.start_byte == self._skip_comment.start_byte:
            return None
        return parse_tsdoc(self.text(comment))

    def warn(self, kind: str, node: Node, message: str, symbol: Optional[str]) -> None:
        self.context.warn(
            kind,
            self.file_id,
            message,
            line=node_line(node),
            column=node_column(node),
            symbol=symbol,
        )

    def read(self, name: str, node: Node, statement: Node) -> Optional[Declaration]:
        """Analyze *node* as an export named *name*; ``None`` when marked ``@nodocs``."""
        doc = self.doc_for(statement)
        if doc is not None and doc.nodocs:
            return None

        declaration = Declaration(name=name, kind=DeclarationKind.VALUE, source_line=node_line(node))
        apply_doc(declaration, doc)

        kind = node.type
        if kind in _FUNCTION_DECLARATIONS or kind in _FUNCTION_VALUES:
            self.fill_function(declaration, node, doc)
        elif kind in _CLASS_NODES:
            self.fill_class(declaration, node)
        elif kind == "type_alias_declaration":
            declaration.kind = DeclarationKind.TYPE_ALIAS
            declaration.type_signature = self.text(node.child_by_field_name("value")).strip() or None
            declaration.generic_params = self.generic_params(node.child_by_field_name("type_parameters"))
        elif kind == "interface_declaration":
            self.fill_interface(declaration, node)
        elif kind == "enum_declaration":
            self.fill_enum(declaration, node)
        elif kind == "variable_declarator":
            self.fill_variable(declaration, node, doc)
        else:
            self.fill_value(declaration, node)
        return declaration

    def generic_params(self, node: Optional[Node]) -> List[GenericParam]:
        if node is None:
            return []
        params: List[GenericParam] = []
        for child in node.named_children:
            if child.type != "type_parameter":
                continue
            constraint = child.child_by_field_name("constraint")
            default = child.child_by_field_name("value")
            params.append(
                GenericParam(
                    name=self.text(child.child_by_field_name("name")),
                    constraint=_strip_keyword(self.text(constraint), "extends") if constraint else None,
                    default_type=_strip_keyword(self.text(default), "=") if default else None,
                )
            )
        return params

    def parameters(self, node: Node, doc: Optional[TsDoc], owner: str) -> List[Parameter]:
        descriptions = doc.params if doc is not None else {}
        single = node.child_by_field_name("parameter")
        if single is not None:
            name = self.text(single)
            return [Parameter(name=name, type="any", description=descriptions.get(name))]

        params_node = node.child_by_field_name("parameters")
        if params_node is None:
            return []

        result: List[Parameter] = []
        for child in params_node.named_children:
            if child.type not in ("required_parameter", "optional_parameter"):
                continue
            pattern = child.child_by_field_name("pattern")
            if pattern is None or child.has_error:
                self.warn(
                    SIGNATURE_ANALYSIS_FAILED,
                    child,
                    f'Failed to analyze parameter "{self.text(child).strip()}" of "{owner}"',
                    owner,
                )
                continue
            if pattern.type == "this":
                continue
            name = self.text(pattern)
            value = child.child_by_field_name("value")
            type_text = (
                annotation_text(self.script, child.child_by_field_name("type"))
                or expression_type(self.script, value)
                or "any"
            )
            result.append(
                Parameter(
                    name=name,
                    type=type_text,
                    optional=child.type == "optional_parameter" or value is not None,
                    default_value=self.text(value) if value is not None else None,
                    description=descriptions.get(name.lstrip(".")),
                )
            )
        return result

    def return_type(self, node: Node, owner: str) -> str:
        annotated = annotation_text(self.script, node.child_by_field_name("return_type"))
        if annotated:
            return annotated

        body = node.child_by_field_name("body")
        if body is None:
            return "any"
        if body.type != "statement_block":
            inferred = expression_type(self.script, body)
        elif _returns_value(body):
            inferred = None
        else:
            inferred = "void"
        if inferred is None:
            self.warn(
                TYPE_EXTRACTION_FAILED,
                node,
                f'Failed to infer return type of "{owner}"; add a return type annotation',
                owner,
            )
            inferred = "unknown"
        if child_of_type(node, "async") is not None:
            return f"Promise<{inferred}>"
        return inferred

    def fill_function(self, declaration: Declaration, node: Node, doc: Optional[TsDoc]) -> None:
        declaration.kind = DeclarationKind.FUNCTION
        type_parameters = node.child_by_field_name("type_parameters")
        declaration.generic_params = self.generic_params(type_parameters)
        declaration.parameters = self.parameters(node, doc, declaration.name)
        declaration.return_type = self.return_type(node, declaration.name)
        if doc is not None:
            declaration.return_description = doc.returns
        declaration.type_signature = signature_text(
            self.text(type_parameters), declaration.parameters, declaration.return_type
        )

    def fill_value(self, declaration: Declaration, value: Optional[Node]) -> None:
        declaration.kind = DeclarationKind.VALUE
        type_text = expression_type(self.script, value) if value is not None else None
        if type_text is None:
            self.warn(
                TYPE_EXTRACTION_FAILED,
                value if value is not None else self.script.root,
                f'Failed to extract type for "{declaration.name}"; add a type annotation',
                declaration.name,
            )
            type_text = "unknown"
        declaration.type_signature = type_text

    def fill_variable(self, declaration: Declaration, declarator: Node, doc: Optional[TsDoc]) -> None:
        value = unwrap_expression(declarator.child_by_field_name("value"))
        annotation = annotation_text(self.script, declarator.child_by_field_name("type"))
        if value is not None and value.type in _FUNCTION_VALUES:
            self.fill_function(declaration, value, doc)
            if annotation:
                declaration.type_signature = annotation
            return
        if value is not None and value.type in _CLASS_NODES:
            self.fill_class(declaration, value)
            return
        if annotation:
            declaration.kind = DeclarationKind.VALUE
            declaration.type_signature = annotation
            return
        self.fill_value(declaration, value)

    def fill_class(self, declaration: Declaration, node: Node) -> None:
        declaration.kind = DeclarationKind.CLASS
        if node.type == "abstract_class_declaration":
            declaration.modifiers = ["abstract"]
        declaration.generic_params = self.generic_params(node.child_by_field_name("type_parameters"))

        heritage = child_of_type(node, "class_heritage")
        if heritage is not None:
            for clause in heritage.named_children:
                if clause.type == "extends_clause":
                    declaration.extends.append(_strip_keyword(self.text(clause), "extends"))
                elif clause.type == "implements_clause":
                    declaration.implements.extend(self.text(t) for t in clause.named_children)

        body = node.child_by_field_name("body")
        if body is None:
            return
        for member in body.named_children:
            self._class_member(declaration, member)

    def _class_member(self, owner: Declaration, member: Node) -> None:
        if member.type not in (
            "method_definition",
            "public_field_definition",
            "abstract_method_signature",
            "method_signature",
        ):
            return
        name_node = member.child_by_field_name("name") or child_of_type(
            member, "property_identifier", "private_property_identifier"
        )
        if name_node is None or name_node.type == "private_property_identifier":
            return
        name = self.text(name_node)
        symbol = f"{owner.name}.{name}"

        doc = self.doc_for(member)
        if doc is not None and doc.nodocs:
            return
        if member.has_error:
            self.warn(CLASS_MEMBER_FAILED, member, f'Failed to analyze class member "{symbol}"', symbol)
            return

        declaration = Declaration(name=name, kind=DeclarationKind.VALUE, source_line=node_line(member))
        apply_doc(declaration, doc)
        declaration.modifiers = self._modifiers(member)

        if member.type == "public_field_definition":
            annotation = annotation_text(self.script, member.child_by_field_name("type"))
            value = unwrap_expression(member.child_by_field_name("value"))
            if annotation:
                declaration.type_signature = annotation
            elif value is not None and value.type in _FUNCTION_VALUES:
                self.fill_function(declaration, value, doc)
            else:
                inferred = expression_type(self.script, value)
                if inferred is None:
                    self.warn(TYPE_EXTRACTION_FAILED, member, f'Failed to extract type for "{symbol}"', symbol)
                    inferred = "unknown"
                declaration.type_signature = inferred
        elif child_of_type(member, "get") is not None:
            declaration.type_signature = self.return_type(member, symbol)
        elif child_of_type(member, "set") is not None:
            if any(existing.name == name for existing in owner.members):
                return
            parameters = self.parameters(member, doc, symbol)
            declaration.type_signature = parameters[0].type if parameters else "unknown"
        else:
            self.fill_function(declaration, member, doc)
        owner.members.append(declaration)

    def _modifiers(self, member: Node) -> List[str]:
        modifiers: List[str] = []
        for child in member.children:
            if child.type == "accessibility_modifier":
                modifiers.append(self.text(child))
            elif child.type in _MEMBER_KEYWORDS:
                modifiers.append(child.type)
        return modifiers

    def fill_interface(self, declaration: Declaration, node: Node) -> None:
        declaration.kind = DeclarationKind.INTERFACE
        declaration.generic_params = self.generic_params(node.child_by_field_name("type_parameters"))
        clause = child_of_type(node, "extends_type_clause")
        if clause is not None:
            declaration.extends = [self.text(t) for t in clause.named_children]
        body = node.child_by_field_name("body")
        if body is not None:
            declaration.properties = self.type_members(body)

    def type_members(self, body: Node) -> List[Declaration]:
        """Read property and method signatures of an interface body or object type."""
        members: List[Declaration] = []
        for member in body.named_children:
            if member.type not in ("property_signature", "method_signature"):
                continue
            name_node = member.child_by_field_name("name")
            if name_node is None:
                continue
            doc = self.doc_for(member)
            if doc is not None and doc.nodocs:
                continue
            prop = Declaration(
                name=unquote(self.text(name_node)),
                kind=DeclarationKind.VALUE,
                source_line=node_line(member),
            )
            apply_doc(prop, doc)
            if member.type == "method_signature":
                self.fill_function(prop, member, doc)
            else:
                prop.modifiers = ["readonly"] if child_of_type(member, "readonly") else []
                prop.type_signature = annotation_text(self.script, member.child_by_field_name("type"))
            members.append(prop)
        return members

    def fill_enum(self, declaration: Declaration, node: Node) -> None:
        declaration.kind = DeclarationKind.ENUM
        body = node.child_by_field_name("body")
        if body is None:
            return
        for child in body.named_children:
            if child.type in ("property_identifier", "string"):
                name, value = unquote(self.text(child)), None
            elif child.type == "enum_assignment":
                name = unquote(self.text(child.child_by_field_name("name")))
                value = child.child_by_field_name("value")
            else:
                continue
            member = Declaration(name=name, kind=DeclarationKind.VALUE, source_line=node_line(child))
            apply_doc(member, self.doc_for(child))
            if value is not None:
                member.type_signature = self.text(value)
            declaration.members.append(member)


def _returns_value(node: Node) -> bool:
    for child in node.named_children:
        if child.type in _SCOPE_BOUNDARIES:
            continue
        if child.type == "return_statement" and child.named_children:
            return True
        if _returns_value(child):
            return True
    return False


def _pattern_names(node: Node) -> Iterator[Node]:
    """Yield identifier nodes bound by a destructuring pattern."""
    if node.type in ("identifier", "shorthand_property_identifier_pattern"):
        yield node
    elif node.type == "pair_pattern":
        value = node.child_by_field_name("value")
        if value is not None:
            yield from _pattern_names(value)
    elif node.type in ("object_assignment_pattern", "assignment_pattern"):
        left = node.child_by_field_name("left")
        if left is not None:
            yield from _pattern_names(left)
    elif node.type in ("object_pattern", "array_pattern", "rest_pattern"):
        for child in node.named_children:
            yield from _pattern_names(child)


class _ModuleWalker:
    """Walks the top-level statements of one module and records its exports."""

    def __init__(
        self,
        indexed: IndexedFile,
        script: ParsedScript,
        module_path: str,
        program: ProgramIndex,
        options: ModuleSourceOptions,
        context: AnalysisContext,
    ) -> None:
        self.script = script
        self.file_id = indexed.id
        self.module_path = module_path
        self.program = program
        self.options = options
        self.context = context
        self.locals: Dict[str, _Binding] = {}
        self.imports: Dict[str, Tuple[str, str]] = {}
        self.result = ExtractedModule()
        self._seen: Dict[str, DeclarationKind | None] = {}
        module_comment = find_module_comment(self.script)
        if module_comment is not None:
            self.result.module_comment = module_comment_text(self.script.text(module_comment))
        self.reader = DeclarationReader(
            self.script, self.file_id, context, skip_comment=module_comment
        )

    def run(self) -> ExtractedModule:
        statements = [node for node in self.script.root.named_children if node.type != "comment"]
        for statement in statements:
            self._index_statement(statement)
        for statement in statements:
            if statement.type == "export_statement":
                self._visit_export(statement)
        return self.result

    # -- indexing -------------------------------------------------------

    def _index_statement(self, statement: Node) -> None:
        if statement.type == "import_statement":
            self._index_import(statement)
            return
        if statement.type == "export_statement":
            declaration = statement.child_by_field_name("declaration")
            if declaration is not None:
                self._index_declaration(declaration, statement)
            return
        self._index_declaration(statement, statement)

    def _index_declaration(self, node: Node, statement: Node) -> None:
        if node.type == "ambient_declaration":
            inner = next((c for c in node.named_children if c.type != "comment"), None)
            if inner is not None:
                self._index_declaration(inner, statement)
            return
        if node.type in _VARIABLE_STATEMENTS:
            for declarator in node.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                if name_node is not None and name_node.type == "identifier":
                    self.locals[self.script.text(name_node)] = _Binding(declarator, statement)
            return
        if node.type in _NAMED_DECLARATIONS:
            name_node = node.child_by_field_name("name")
            if name_node is None:
                return
            name = self.script.text(name_node)
            existing = self.locals.get(name)
            if existing is None or existing.node.type == "function_signature":
                self.locals[name] = _Binding(node, statement)

    def _index_import(self, statement: Node) -> None:
        source = statement.child_by_field_name("source")
        clause = child_of_type(statement, "import_clause")
        if source is None or clause is None:
            return
        specifier = unquote(self.script.text(source))
        for child in clause.named_children:
            if child.type == "identifier":
                self.imports[self.script.text(child)] = (specifier, "default")
            elif child.type == "named_imports":
                for item in child.named_children:
                    if item.type != "import_specifier":
                        continue
                    name = unquote(self.script.text(item.child_by_field_name("name")))
                    alias = item.child_by_field_name("alias")
                    local = self.script.text(alias) if alias is not None else name
                    self.imports[local] = (specifier, name)

    # -- exports --------------------------------------------------------

    def _visit_export(self, statement: Node) -> None:
        declaration = statement.child_by_field_name("declaration")
        source = statement.child_by_field_name("source")
        if declaration is not None:
            self._export_declaration(declaration, statement)
        elif source is not None:
            self._export_from(statement, unquote(self.script.text(source)))
        elif child_of_type(statement, "default") is not None:
            value = statement.child_by_field_name("value")
            if value is not None:
                self._export_default_value(value, statement)
        else:
            clause = child_of_type(statement, "export_clause")
            if clause is not None:
                self._export_local_clause(clause)

    def _export_declaration(self, node: Node, statement: Node) -> None:
        if node.type == "ambient_declaration":
            inner = next((c for c in node.named_children if c.type != "comment"), None)
            if inner is None:
                return
            node = inner
        if node.type in _VARIABLE_STATEMENTS:
            for declarator in node.named_children:
                if declarator.type == "variable_declarator":
                    self._export_declarator(declarator, statement)
            return
        if node.type not in _NAMED_DECLARATIONS:
            _LOGGER.debug("Skipping unsupported export %s in %s", node.type, self.file_id)
            return
        name_node = node.child_by_field_name("name")
        name = self.script.text(name_node) if name_node is not None else "default"
        self._add(self.reader.read(name, node, statement), statement)

    def _export_declarator(self, declarator: Node, statement: Node) -> None:
        name_node = declarator.child_by_field_name("name")
        if name_node is None:
            return
        if name_node.type == "identifier":
            self._add(self.reader.read(self.script.text(name_node), declarator, statement), statement)
            return
        # Destructured exports carry no recoverable per-name type.
        for identifier in _pattern_names(name_node):
            declaration = Declaration(
                name=self.script.text(identifier),
                kind=DeclarationKind.VALUE,
                source_line=node_line(identifier),
            )
            self.reader.fill_value(declaration, None)
            self._add(declaration, statement)

    def _export_from(self, statement: Node, specifier: str) -> None:
        target = self.program.resolve(specifier, self.file_id)
        if target is None:
            _LOGGER.debug("Dropping re-export of external module %r in %s", specifier, self.file_id)
            return
        target_path = extract_path(target, self.options)

        clause = child_of_type(statement, "export_clause")
        namespace = child_of_type(statement, "namespace_export")
        if clause is not None:
            for name, exported in self._specifiers(clause):
                self._add_re_export(ReExport(name, target_path, exported), statement)
        elif namespace is not None:
            alias = next(iter(namespace.named_children), None)
            if alias is None:
                return
            declaration = Declaration(
                name=unquote(self.script.text(alias)),
                kind=DeclarationKind.VALUE,
                source_line=node_line(statement),
                type_signature=f'typeof import("{specifier}")',
            )
            self._add(declaration, statement)
        elif target_path not in self.result.star_exports:
            self.result.star_exports.append(target_path)

    def _export_local_clause(self, clause: Node) -> None:
        for name, exported in self._specifiers(clause):
            if name in self.imports:
                self._re_export_import(name, exported, clause)
                continue
            binding = self.locals.get(name)
            if binding is None:
                _LOGGER.debug("Export of unknown binding %r in %s", name, self.file_id)
                continue
            declaration = self.reader.read(exported, binding.node, binding.statement)
            if declaration is not None and exported != name:
                declaration.alias_of = AliasOf(module=self.module_path, name=name)
            self._add(declaration, clause)

    def _export_default_value(self, value: Node, statement: Node) -> None:
        value = unwrap_expression(value) or value
        if value.type == "identifier":
            name = self.script.text(value)
            if name in self.imports:
                self._re_export_import(name, "default", statement)
                return
            binding = self.locals.get(name)
            if binding is not None:
                declaration = self.reader.read("default", binding.node, binding.statement)
                if declaration is not None:
                    declaration.alias_of = AliasOf(module=self.module_path, name=name)
                self._add(declaration, statement)
                return
        self._add(self.reader.read("default", value, statement), statement)

    def _re_export_import(self, local: str, exported: str, node: Node) -> None:
        specifier, imported = self.imports[local]
        target = self.program.resolve(specifier, self.file_id)
        if target is None:
            _LOGGER.debug("Dropping re-export of external binding %r in %s", local, self.file_id)
            return
        self._add_re_export(ReExport(imported, extract_path(target, self.options), exported), node)

    def _specifiers(self, clause: Node) -> Iterator[Tuple[str, str]]:
        for item in clause.named_children:
            if item.type != "export_specifier":
                continue
            name = unquote(self.script.text(item.child_by_field_name("name")))
            alias = item.child_by_field_name("alias")
            yield name, unquote(self.script.text(alias)) if alias is not None else name

    # -- bookkeeping ----------------------------------------------------

    def _claim(self, name: str, kind: DeclarationKind | None, node: Node) -> bool:
        if name not in self._seen:
            self._seen[name] = kind
            return True
        # Overload signatures share a name with their implementation.
        if kind is DeclarationKind.FUNCTION and self._seen[name] is DeclarationKind.FUNCTION:
            return False
        self.context.warn(
            DUPLICATE_BINDING,
            self.file_id,
            f'Duplicate export "{name}"; keeping the first binding',
            line=node_line(node),
            column=node_column(node),
            symbol=name,
        )
        return False

    def _add(self, declaration: Optional[Declaration], node: Node) -> None:
        if declaration is None:
            return
        if self._claim(declaration.name, declaration.kind, node):
            self.result.declarations.append(declaration)

    def _add_re_export(self, re_export: ReExport, node: Node) -> None:
        if self._claim(re_export.exported_name, None, node):
            self.result.re_exports.append(re_export)


class TypeScriptExtractor(ModuleExtractor):
    """Extracts exported declarations, re-exports and star exports of a code module."""

    kind = FileKind.TYPESCRIPT

    def extract(
        self,
        indexed: IndexedFile,
        module_path: str,
        program: ProgramIndex,
        options: ModuleSourceOptions,
        context: AnalysisContext,
    ) -> ExtractedModule:
        script = indexed.script
        if script is None:
            script = indexed.script = parse_script(indexed.content, program.parser)
        error = first_error(script.root)
        if error is not None:
            _LOGGER.warning(
                "Syntax error in %s at %d:%d; metadata may be incomplete",
                indexed.id,
                node_line(error),
                node_column(error),
            )
        return _ModuleWalker(indexed, script, module_path, program, options, context).run()


__all__ = [
    "DeclarationReader",
    "TypeScriptExtractor",
    "annotation_text",
    "expression_type",
    "extract_module_comment",
    "find_module_comment",
    "module_comment_text",
    "signature_text",
]
