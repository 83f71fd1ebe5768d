"""Structure rules: pages derived from content rather than read from disk.

Rule files live in the structure directory (``*.yaml``, ``*.yml`` or
``*.json``) and are applied in sorted filename order. A file holds a single
rule, a list of rules, or a mapping with a ``rules`` list.

Rule types:
- mirror: one generated page per matched file (one-to-one).
- aggregate: one page listing every matched file (many-to-one).
- paginate: matched files split into fixed-size batches, one page per batch
  (one-to-many).

``group_by`` splits the matches into one collection per distinct metadata
value before aggregating or paginating, e.g. one listing per tag.

Example::

    - name: blog
      type: paginate
      match: "posts/**/*.html"
      sort_by: date
      reverse: true
      per_page: 10
      first_target: "blog/index.html"
      target: "blog/page/{{ currentPage }}.html"
      metadata:
        layout: blog-list.html
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

import yaml
from jinja2 import StrictUndefined, TemplateError
from jinja2.sandbox import ImmutableSandboxedEnvironment

from .collections import FileCollection, ItemView, matches_value
from .config import BuildConfig
from .errors import BuildError, ParseError, StructureError
from .templates import RenderHelpers
from .tree import FileTree, Metadata, VirtualFile, normalize_path

logger = logging.getLogger(__name__)

RULE_TYPES = ("mirror", "aggregate", "paginate")
RULE_FILE_SUFFIXES = (".yaml", ".yml", ".json")

_RULE_KEYS = {
    "name",
    "type",
    "match",
    "where",
    "group_by",
    "sort_by",
    "reverse",
    "per_page",
    "target",
    "first_target",
    "metadata",
    "contents",
}


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a path glob into a regex.

    ``*`` and ``?`` stay within one path segment; ``**`` spans segments and
    ``**/`` may match no directory at all.

    Examples:
        >>> bool(compile_glob("posts/**/*.html").match("posts/a.html"))
        True
        >>> bool(compile_glob("posts/*.html").match("posts/2024/a.html"))
        False
    """
    i = 0
    out = []
    while i < len(pattern):
        ch = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
            continue
        if pattern.startswith("**", i):
            out.append(".*")
            i += 2
            continue
        if ch == "*":
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("".join(out) + r"\Z")


@dataclass(frozen=True)
class StructureRule:
    """Declarative definition of derived pages.

    Attributes:
        name: Rule name, used in error messages.
        type: One of RULE_TYPES.
        target: Jinja2 template for the output path.
        match: Glob selecting source files from the tree.
        where: Metadata equality filter applied to matches.
        group_by: Metadata key splitting matches into collections.
        sort_by: Metadata key ordering matches; natural path order otherwise.
        reverse: Reverse the sort_by order.
        per_page: Batch size for paginate rules.
        first_target: Output path template for the first page of a paginate rule.
        metadata: Overrides merged over the generated page's metadata.
        contents: Body for aggregate and paginate pages.
        origin: File the rule was read from.
    """

    name: str
    type: str
    target: str
    match: str | None = None
    where: Mapping[str, Any] = field(default_factory=dict)
    group_by: str | None = None
    sort_by: str | None = None
    reverse: bool = False
    per_page: int | None = None
    first_target: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    contents: str = ""
    origin: str = ""

    @classmethod
    def from_mapping(cls, data: Any, origin: str, index: int = 0) -> StructureRule:
        """Validate and build a rule from parsed YAML/JSON.

        Raises:
            StructureError: If the definition is incomplete or inconsistent.
        """
        if not isinstance(data, dict):
            raise StructureError(f"Rule #{index + 1} must be a mapping", path=origin)
        name = str(data.get("name") or f"{PurePosixPath(origin).stem}#{index + 1}")

        def invalid(message: str) -> StructureError:
            return StructureError(f"Rule '{name}': {message}", path=origin)

        unknown = set(data) - _RULE_KEYS
        if unknown:
            raise invalid(f"unknown keys {', '.join(sorted(unknown))}")
        rule_type = data.get("type", "mirror")
        if rule_type not in RULE_TYPES:
            raise invalid(f"type must be one of {', '.join(RULE_TYPES)}, got {rule_type!r}")
        target = data.get("target")
        if not target or not isinstance(target, str):
            raise invalid("'target' is required")
        match = data.get("match")
        if match is None and rule_type != "aggregate":
            raise invalid(f"'match' is required for {rule_type} rules")

        per_page = data.get("per_page")
        if rule_type == "paginate":
            if isinstance(per_page, bool) or not isinstance(per_page, int) or per_page < 1:
                raise invalid("'per_page' must be a positive integer")
        elif per_page is not None:
            raise invalid("'per_page' only applies to paginate rules")
        if data.get("group_by") and rule_type == "mirror":
            raise invalid("'group_by' does not apply to mirror rules")

        for key in ("where", "metadata"):
            if not isinstance(data.get(key) or {}, dict):
                raise invalid(f"'{key}' must be a mapping")

        return cls(
            name=name,
            type=rule_type,
            target=target,
            match=match,
            where=dict(data.get("where") or {}),
            group_by=data.get("group_by"),
            sort_by=data.get("sort_by"),
            reverse=bool(data.get("reverse", False)),
            per_page=per_page,
            first_target=data.get("first_target"),
            metadata=dict(data.get("metadata") or {}),
            contents=str(data.get("contents") or ""),
            origin=origin,
        )

    def select(self, tree: FileTree) -> list[VirtualFile]:
        """Files matching this rule, in tree (path) order."""
        if self.match is None:
            return []
        pattern = compile_glob(self.match)
        return [
            file
            for file in tree.list()
            if pattern.match(file.path)
            and all(matches_value(file.metadata.get(k), v) for k, v in self.where.items())
        ]


def load_rules(structure_dir: Path) -> list[StructureRule]:
    """Read rule files from structure_dir in sorted filename order.

    A missing directory yields no rules.

    Raises:
        ParseError: If a rule file is not valid YAML/JSON.
        StructureError: If a rule definition is invalid.
    """
    rules: list[StructureRule] = []
    if not structure_dir.is_dir():
        return rules
    for path in sorted(structure_dir.iterdir()):
        if not path.is_file() or path.suffix.lower() not in RULE_FILE_SUFFIXES:
            continue
        origin = path.name
        try:
            with open(path, encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    payload = json.load(f)
                else:
                    payload = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise ParseError(f"Malformed structure file: {exc}", path=origin) from exc
        if payload is None:
            continue
        if isinstance(payload, dict) and "rules" in payload:
            payload = payload["rules"]
        if isinstance(payload, dict):
            payload = [payload]
        if not isinstance(payload, list):
            raise StructureError("Structure file must hold a rule or a list of rules", path=origin)
        rules.extend(
            StructureRule.from_mapping(item, origin, index) for index, item in enumerate(payload)
        )
    return rules


class StructureMergeStage:
    """Derives additional pages from structure rules.

    Attributes:
        rules: Explicit rules; when None they are loaded from the configured
            structure directory at run time.
        helpers: Helpers available as filters in target path templates.
    """

    name = "structure"

    def __init__(
        self,
        rules: list[StructureRule] | None = None,
        helpers: RenderHelpers | None = None,
    ):
        self.rules = rules
        self.helpers = helpers or RenderHelpers.default()
        self._paths = ImmutableSandboxedEnvironment(undefined=StrictUndefined, autoescape=False)
        self._paths.filters.update(self.helpers.filters())

    def run(self, tree: FileTree, config: BuildConfig) -> FileTree:
        rules = self.rules if self.rules is not None else load_rules(config.structure)
        origins = {
            file.path: f"source file {file.metadata.get('source', file.path)}"
            for file in tree.list()
        }
        for rule in rules:
            pages = self.expand(rule, tree)
            for page in pages:
                if page.path in tree:
                    raise StructureError(
                        f"Rule '{rule.name}' ({rule.origin}) generates {page.path}, "
                        f"which collides with {origins.get(page.path, 'an existing file')}",
                        path=page.path,
                    )
                tree.put(page)
                origins[page.path] = f"rule '{rule.name}' ({rule.origin})"
            logger.debug("Rule %s generated %d page(s)", rule.name, len(pages))
        return tree

    def expand(self, rule: StructureRule, tree: FileTree) -> list[VirtualFile]:
        """Synthesize the pages for one rule without touching the tree."""
        matches = rule.select(tree)
        by_path = {file.path: file for file in matches}
        items = FileCollection(ItemView.of(file) for file in matches)
        if rule.sort_by:
            items = items.sorted(rule.sort_by, reverse=rule.reverse)

        if rule.type == "mirror":
            return [self._mirror(rule, by_path[item.path]) for item in items]

        pages: list[VirtualFile] = []
        for group, collection in self._collections(rule, items):
            if rule.type == "aggregate":
                pages.append(self._aggregate(rule, group, collection))
            else:
                pages.extend(self._paginate(rule, group, collection))
        return pages

    def _collections(self, rule: StructureRule, items: FileCollection):
        if not rule.group_by:
            return [(None, items)]
        groups: dict[Any, list[ItemView]] = {}
        for item in items:
            value = item.get(rule.group_by)
            values = value if isinstance(value, (list, tuple)) else [value]
            for entry in values:
                if entry is None:
                    continue
                groups.setdefault(entry, []).append(item)
        return [(key, FileCollection(members)) for key, members in groups.items()]

    def _mirror(self, rule: StructureRule, source: VirtualFile) -> VirtualFile:
        pure = PurePosixPath(source.path)
        variables = {
            **source.metadata.as_dict(),
            "path": source.path,
            "name": pure.name,
            "stem": pure.stem,
            "dir": "" if str(pure.parent) == "." else pure.parent.as_posix(),
            "rule": rule.name,
        }
        path = self._target(rule, rule.target, variables)
        metadata = source.metadata.merged({"derivedFrom": source.path})
        metadata.update(rule.metadata)
        return VirtualFile(path, bytes(source.contents), metadata)

    def _aggregate(self, rule: StructureRule, group: Any, items: FileCollection) -> VirtualFile:
        values: dict[str, Any] = {"items": items, "rule": rule.name}
        if rule.group_by:
            values["group"] = group
        path = self._target(rule, rule.target, values)
        metadata = Metadata(values)
        metadata.update(rule.metadata)
        return VirtualFile(path, rule.contents.encode("utf-8"), metadata)

    def _paginate(self, rule: StructureRule, group: Any, items: FileCollection) -> list[VirtualFile]:
        per_page = rule.per_page or 1
        total = math.ceil(len(items) / per_page)
        batches = []
        for index in range(total):
            values: dict[str, Any] = {
                "items": items[index * per_page : (index + 1) * per_page],
                "currentPage": index + 1,
                "totalPages": total,
                "pageSize": per_page,
                "rule": rule.name,
            }
            if rule.group_by:
                values["group"] = group
            template = rule.first_target if index == 0 and rule.first_target else rule.target
            batches.append((self._target(rule, template, values), values))

        pages = []
        for index, (path, values) in enumerate(batches):
            values["previousPage"] = batches[index - 1][0] if index > 0 else None
            values["nextPage"] = batches[index + 1][0] if index + 1 < total else None
            metadata = Metadata(values)
            metadata.update(rule.metadata)
            pages.append(VirtualFile(path, rule.contents.encode("utf-8"), metadata))
        return pages

    def _target(self, rule: StructureRule, template: str, variables: Mapping[str, Any]) -> str:
        try:
            rendered = self._paths.from_string(template).render(variables)
        except TemplateError as exc:
            raise StructureError(
                f"Rule '{rule.name}': cannot render target {template!r}: {exc}", path=rule.origin
            ) from exc
        try:
            return normalize_path(rendered.strip().lstrip("/"))
        except BuildError as exc:
            raise StructureError(f"Rule '{rule.name}': {exc.message}", path=rule.origin) from exc
