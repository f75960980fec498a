"""Doc-comment normalization and TSDoc tag parsing.

Doc comments are a best-effort surface: nothing in this module raises on
malformed input. Cross-reference tags are rewritten to portable markup:

* ``{@link https://x.io|Label}`` -> ``[Label](https://x.io)``
* ``{@link https://x.io}`` -> ``https://x.io``
* ``{@link Foo<Bar>}`` -> ```Foo<Bar>```
* ``{@link Foo`` (unterminated) -> ```{@link Foo```
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

_LINK_TAG = re.compile(r"\{@(?:link|linkcode|linkplain|see)\b")
_URL = re.compile(r"^https?://\S+$")
_BLOCK_TAG = re.compile(r"^@([A-Za-z]+)\b\s?(.*)$")
_MODULE_TAG_LINE = re.compile(r"^\s*@module\b")
_PARAM_TYPE = re.compile(r"^\{[^}]*\}\s*")

_THROWS_TAGS = {"throws", "throw", "exception"}
_RETURNS_TAGS = {"returns", "return"}


@dataclass
class TsDoc:
    """A parsed doc comment: description text plus recognized block tags."""

    text: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)
    returns: Optional[str] = None
    throws: List[str] = field(default_factory=list)
    since: Optional[str] = None
    deprecated: Optional[str] = None
    examples: List[str] = field(default_factory=list)
    see_also: List[str] = field(default_factory=list)
    default_value: Optional[str] = None
    nodocs: bool = False
    module: bool = False


def is_url(value: str) -> bool:
    return bool(_URL.match(value))


def is_doc_comment(raw: str) -> bool:
    """True for ``/** ... */`` blocks (not ``/* */`` or ``/**/``)."""
    stripped = raw.lstrip()
    return stripped.startswith("/**") and not stripped.startswith("/**/")


def clean_comment(raw: Optional[str]) -> Optional[str]:
    """Strip comment delimiters and line markers, returning ``None`` when nothing remains."""
    if not raw or not raw.strip():
        return None

    text = raw.strip()
    if text.startswith("/**"):
        text = text[3:]
    elif text.startswith("/*"):
        text = text[2:]
    if text.endswith("*/"):
        text = text[:-2]

    lines: List[str] = []
    for line in text.split("\n"):
        stripped = line.lstrip()
        if stripped.startswith("*"):
            stripped = stripped[1:]
            if stripped.startswith(" "):
                stripped = stripped[1:]
            lines.append(stripped.rstrip())
        else:
            lines.append(line.strip())

    cleaned = "\n".join(lines).strip()
    return cleaned or None


def _render_reference(target: str, label: Optional[str]) -> str:
    if is_url(target):
        return f"[{label}]({target})" if label else target
    return f"`{label or target}`"


def _split_target(inner: str) -> tuple[str, Optional[str]]:
    if "|" in inner:
        target, label = inner.split("|", 1)
        return target.strip(), label.strip() or None
    parts = inner.split(None, 1)
    if len(parts) == 2:
        return parts[0], parts[1].strip() or None
    return inner, None


def convert_links(text: str) -> str:
    """Rewrite ``{@link}`` / ``{@see}`` tags in *text* to markdown-style markup."""
    if not text or not text.strip():
        return ""

    out: List[str] = []
    position = 0
    while True:
        match = _LINK_TAG.search(text, position)
        if match is None:
            out.append(text[position:])
            break
        out.append(text[position : match.start()])

        line_end = text.find("\n", match.end())
        if line_end == -1:
            line_end = len(text)
        close = text.find("}", match.end(), line_end)
        if close == -1:
            out.append(f"`{text[match.start():line_end].rstrip()}`")
            position = line_end
            continue

        inner = text[match.end() : close].strip()
        if not inner:
            out.append(f"`{text[match.start():close + 1]}`")
        else:
            target, label = _split_target(inner)
            out.append(_render_reference(target, label))
        position = close + 1
    return "".join(out)


def see_to_markup(content: str) -> str:
    """Convert the body of an ``@see`` tag to markup."""
    trimmed = content.strip()
    if not trimmed:
        return ""
    if _LINK_TAG.match(trimmed):
        return convert_links(trimmed)

    reference, _, description = trimmed.partition(" ")
    rendered = reference if is_url(reference) else f"`{reference}`"
    return rendered + (f" {convert_links(description)}" if description else "")


def strip_module_tag(text: str) -> str:
    """Remove lines starting with ``@module`` from a cleaned comment."""
    lines = [line for line in text.split("\n") if not _MODULE_TAG_LINE.match(line)]
    return "\n".join(lines).strip()


def _clean_text(value: str) -> Optional[str]:
    converted = convert_links(value.strip())
    return converted or None


def _parse_param(content: str) -> Optional[tuple[str, str]]:
    content = _PARAM_TYPE.sub("", content.strip())
    if not content:
        return None
    name, _, rest = content.partition(" ")
    if "\n" in name:
        name, _, more = name.partition("\n")
        rest = f"{more}\n{rest}".strip()
    name = name.strip("[]").split("=", 1)[0]
    description = rest.strip()
    if description.startswith("-"):
        description = description[1:].strip()
    return name, convert_links(description)


def parse_tsdoc(raw: Optional[str]) -> Optional[TsDoc]:
    """Parse a raw doc comment into description text and block tags."""
    cleaned = clean_comment(raw)
    if cleaned is None:
        return None

    description: List[str] = []
    blocks: List[tuple[str, List[str]]] = []
    in_fence = False
    for line in cleaned.split("\n"):
        tag_match = None if in_fence else _BLOCK_TAG.match(line)
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
        if tag_match:
            blocks.append((tag_match.group(1).lower(), [tag_match.group(2)]))
        elif blocks:
            blocks[-1][1].append(line)
        else:
            description.append(line)

    doc = TsDoc(text=_clean_text("\n".join(description)))
    for tag, lines in blocks:
        content = "\n".join(lines).strip()
        if tag == "param":
            parsed = _parse_param(content)
            if parsed:
                doc.params[parsed[0]] = parsed[1]
        elif tag in _RETURNS_TAGS:
            doc.returns = _clean_text(content)
        elif tag in _THROWS_TAGS:
            if content:
                doc.throws.append(convert_links(content))
        elif tag == "since":
            doc.since = content or None
        elif tag == "deprecated":
            doc.deprecated = convert_links(content) if content else ""
        elif tag == "example":
            if content:
                doc.examples.append(content)
        elif tag == "see":
            rendered = see_to_markup(content)
            if rendered:
                doc.see_also.append(rendered)
        elif tag == "default":
            doc.default_value = content or None
        elif tag == "nodocs":
            doc.nodocs = True
        elif tag == "module":
            doc.module = True
    return doc


__all__ = [
    "TsDoc",
    "clean_comment",
    "convert_links",
    "is_doc_comment",
    "is_url",
    "parse_tsdoc",
    "see_to_markup",
    "strip_module_tag",
]
