"""Tests for the TypeScript module extractor."""

from __future__ import annotations

from docinfo.analysis_context import DUPLICATE_BINDING, TYPE_EXTRACTION_FAILED
from docinfo.models import AliasOf, DeclarationKind, GenericParam, ReExport
from tests._fixtures.project_builder import ProjectBuilder


def _by_name(module):
    return {declaration.name: declaration for declaration in module.declarations}


def test_functions_carry_signature_and_docs(project: ProjectBuilder) -> None:
    modules, context = project.analyze(
        {
            "src/lib/math.ts": """
            /**
             * @module
             * Math helpers.
             */

            /**
             * Adds two numbers.
             * @param a - first operand
             * @param b - second operand
             * @returns the sum
             * @since 1.0.0
             */
            export function add(a: number, b = 2): number {
              return a + b;
            }

            export const greet = async (name: string) => {
              console.log(name);
            };
            """
        }
    )

    module = modules["math.ts"]
    assert module.module_comment == "Math helpers."

    declarations = _by_name(module)
    add = declarations["add"]
    assert add.kind is DeclarationKind.FUNCTION
    assert add.comment == "Adds two numbers."
    assert add.source_line == 13
    assert add.since == "1.0.0"
    assert [(p.name, p.type, p.optional, p.default_value) for p in add.parameters] == [
        ("a", "number", False, None),
        ("b", "number", True, "2"),
    ]
    assert add.parameters[0].description == "first operand"
    assert add.return_type == "number"
    assert add.return_description == "the sum"
    assert add.type_signature == "(a: number, b?: number) => number"

    greet = declarations["greet"]
    assert greet.kind is DeclarationKind.FUNCTION
    assert greet.return_type == "Promise<void>"
    assert greet.type_signature == "(name: string) => Promise<void>"
    assert not context.has_warnings()


def test_doc_comments_after_the_first_statement_stay_with_their_declaration(
    project: ProjectBuilder,
) -> None:
    modules, _ = project.analyze(
        {
            "src/lib/values.ts": """
            export const a = 1;

            /** Docs for b. */

            export const b = 2;
            """,
            "src/lib/trailing.ts": """
            export const c = 1;

            /** TODO: remove later */
            """,
        }
    )

    values = modules["values.ts"]
    assert values.module_comment is None
    assert _by_name(values)["b"].comment == "Docs for b."
    assert modules["trailing.ts"].module_comment is None


def test_leading_comment_needs_module_tag_or_blank_line(project: ProjectBuilder) -> None:
    modules, _ = project.analyze(
        {
            "src/lib/tagged.ts": """
            /**
             * @module
             * Tagged module.
             */
            export const t = 1;
            """,
            "src/lib/spaced.ts": """
            /** Spaced module. */

            export const s = 1;
            """,
            "src/lib/attached.ts": """
            /** Docs for u. */
            export const u = 1;
            """,
        }
    )

    assert modules["tagged.ts"].module_comment == "Tagged module."
    assert _by_name(modules["tagged.ts"])["t"].comment is None
    assert modules["spaced.ts"].module_comment == "Spaced module."
    assert _by_name(modules["spaced.ts"])["s"].comment is None
    assert modules["attached.ts"].module_comment is None
    assert _by_name(modules["attached.ts"])["u"].comment == "Docs for u."


def test_generic_function_signature(project: ProjectBuilder) -> None:
    modules, _ = project.analyze(
        {
            "src/lib/identity.ts": """
            export function identity<T extends object = {}>(value: T): T {
              return value;
            }
            """
        }
    )

    identity = _by_name(modules["identity.ts"])["identity"]
    assert identity.generic_params == [GenericParam(name="T", constraint="object", default_type="{}")]
    assert identity.type_signature == "<T extends object = {}>(value: T) => T"


def test_value_types_are_inferred_or_reported(project: ProjectBuilder) -> None:
    modules, context = project.analyze(
        {
            "src/lib/values.ts": """
            export const count = 42;
            export const label = 'x';
            export const flags = [true, false];
            export const mode = 'dark' as const;
            export const store = new Map<string, number>();
            export const config: { debug: boolean } = load();
            export const mystery = compute();
            """
        }
    )

    declarations = _by_name(modules["values.ts"])
    assert {name: d.kind for name, d in declarations.items()} == {
        name: DeclarationKind.VALUE
        for name in ("count", "label", "flags", "mode", "store", "config", "mystery")
    }
    assert declarations["count"].type_signature == "number"
    assert declarations["label"].type_signature == "string"
    assert declarations["flags"].type_signature == "boolean[]"
    assert declarations["mode"].type_signature == '"dark"'
    assert declarations["store"].type_signature == "Map<string, number>"
    assert declarations["config"].type_signature == "{ debug: boolean }"
    assert declarations["mystery"].type_signature == "unknown"

    failures = context.by_kind(TYPE_EXTRACTION_FAILED)
    assert [d.symbol for d in failures] == ["mystery"]
    assert failures[0].line == 7


def test_unannotated_return_types(project: ProjectBuilder) -> None:
    modules, context = project.analyze(
        {
            "src/lib/compute.ts": """
            export function compute(x: number) {
              if (x > 1) {
                return x * 2;
              }
              return 0;
            }
            export const ready = () => true;
            export function log(message: string) {
              const inner = () => message;
              console.log(inner());
            }
            """
        }
    )

    declarations = _by_name(modules["compute.ts"])
    assert declarations["compute"].return_type == "unknown"
    assert declarations["ready"].return_type == "boolean"
    assert declarations["log"].return_type == "void"
    assert [d.symbol for d in context.by_kind(TYPE_EXTRACTION_FAILED)] == ["compute"]


def test_class_members(project: ProjectBuilder) -> None:
    modules, _ = project.analyze(
        {
            "src/lib/counter.ts": """
            /** A counter. */
            export class Counter extends Base implements Resettable {
              /** Current value. */
              public value: number = 0;
              static readonly max = 10;
              #secret = 1;

              constructor(start: number) {
                super();
              }

              /** Increment by step. */
              increment(step = 1): void {}

              get doubled(): number {
                return this.value * 2;
              }

              /** @nodocs */
              internal(): void {}
            }
            """
        }
    )

    counter = _by_name(modules["counter.ts"])["Counter"]
    assert counter.kind is DeclarationKind.CLASS
    assert counter.comment == "A counter."
    assert counter.extends == ["Base"]
    assert counter.implements == ["Resettable"]

    members = {member.name: member for member in counter.members}
    assert list(members) == ["value", "max", "constructor", "increment", "doubled"]
    assert members["value"].modifiers == ["public"]
    assert members["value"].type_signature == "number"
    assert members["value"].comment == "Current value."
    assert "static" in members["max"].modifiers
    assert "readonly" in members["max"].modifiers
    assert members["max"].type_signature == "number"
    assert members["increment"].kind is DeclarationKind.FUNCTION
    assert members["increment"].comment == "Increment by step."
    assert members["increment"].parameters[0].optional
    assert members["doubled"].type_signature == "number"


def test_interfaces_type_aliases_and_enums(project: ProjectBuilder) -> None:
    modules, _ = project.analyze(
        {
            "src/lib/types.ts": """
            export interface Options<T> extends Base {
              /** The name. */
              readonly name: string;
              size?: number;
              render(value: T): string;
            }

            export type Id = string | number;

            export enum Color {
              Red,
              Green = 'green',
            }
            """
        }
    )

    declarations = _by_name(modules["types.ts"])
    options = declarations["Options"]
    assert options.kind is DeclarationKind.INTERFACE
    assert options.extends == ["Base"]
    assert [g.name for g in options.generic_params] == ["T"]
    properties = {prop.name: prop for prop in options.properties}
    assert list(properties) == ["name", "size", "render"]
    assert properties["name"].modifiers == ["readonly"]
    assert properties["name"].type_signature == "string"
    assert properties["name"].comment == "The name."
    assert properties["render"].kind is DeclarationKind.FUNCTION
    assert properties["render"].type_signature == "(value: T) => string"

    identifier = declarations["Id"]
    assert identifier.kind is DeclarationKind.TYPE_ALIAS
    assert identifier.type_signature == "string | number"

    color = declarations["Color"]
    assert color.kind is DeclarationKind.ENUM
    assert [member.name for member in color.members] == ["Red", "Green"]
    assert color.members[1].type_signature == "'green'"


def test_nodocs_and_overloads(project: ProjectBuilder) -> None:
    modules, context = project.analyze(
        {
            "src/lib/parse.ts": """
            /** @nodocs */
            export const hidden = 1;
            export function parse(value: string): number;
            export function parse(value: number): number;
            export function parse(value: string | number): number {
              return Number(value);
            }
            """
        }
    )

    assert [d.name for d in modules["parse.ts"].declarations] == ["parse"]
    assert not context.by_kind(DUPLICATE_BINDING)


def test_re_exports_and_star_exports(project: ProjectBuilder) -> None:
    modules, _ = project.analyze(
        {
            "src/lib/index.ts": """
            export { add as plus, sub } from './math';
            export * from './strings';
            export * as colors from './colors';
            export { default as thing } from 'external-pkg';
            import { helper } from './util';
            export { helper };
            """,
            "src/lib/math.ts": """
            export function add(a: number, b: number): number {
              return a + b;
            }
            export function sub(a: number, b: number): number {
              return a - b;
            }
            """,
            "src/lib/strings.ts": "export const upper = 'A';\n",
            "src/lib/colors.ts": "export const red = 'red';\n",
            "src/lib/util.ts": "export function helper(): void {}\n",
        }
    )

    index = modules["index.ts"]
    assert index.re_exports == [
        ReExport("add", "math.ts", "plus"),
        ReExport("sub", "math.ts", "sub"),
        ReExport("helper", "util.ts", "helper"),
    ]
    assert index.star_exports == ["strings.ts"]
    assert [(d.name, d.type_signature) for d in index.declarations] == [
        ("colors", 'typeof import("./colors")')
    ]


def test_renamed_and_default_local_exports(project: ProjectBuilder) -> None:
    modules, _ = project.analyze(
        {
            "src/lib/local.ts": """
            const internal = 1;
            function run(): void {}
            export { internal as publicValue };
            export default run;
            """
        }
    )

    declarations = _by_name(modules["local.ts"])
    assert declarations["publicValue"].alias_of == AliasOf(module="local.ts", name="internal")
    assert declarations["publicValue"].type_signature == "number"
    assert declarations["default"].kind is DeclarationKind.FUNCTION
    assert declarations["default"].alias_of == AliasOf(module="local.ts", name="run")


def test_duplicate_export_keeps_first_binding(project: ProjectBuilder) -> None:
    modules, context = project.analyze(
        {
            "src/lib/dup.ts": """
            export const a = 1;
            const b = 'two';
            export { b as a };
            """
        }
    )

    declarations = modules["dup.ts"].declarations
    assert [(d.name, d.type_signature) for d in declarations] == [("a", "number")]
    assert [d.symbol for d in context.by_kind(DUPLICATE_BINDING)] == ["a"]


def test_syntax_errors_do_not_abort_analysis(project: ProjectBuilder) -> None:
    modules, _ = project.analyze(
        {
            "src/lib/broken.ts": """
            export const ok = 1;
            export function broken( {
            """
        }
    )

    assert "broken.ts" in modules
