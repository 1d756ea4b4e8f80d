"""RFC 6570 subset used to register parametric resources.

Supports the simple, reserved (``+``), fragment (``#``), dot (``.``), path
(``/``), query (``?``) and query-continuation (``&``) operators. Templates can be
expanded with a mapping of variables or matched against a concrete URI, in which
case the variables are extracted back out.
"""
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote, unquote

MAX_TEMPLATE_LENGTH = 1_000_000
MAX_VARIABLE_LENGTH = 1_000_000
MAX_TEMPLATE_EXPRESSIONS = 10_000
MAX_REGEX_LENGTH = 1_000_000

OPERATORS = ("+", "#", ".", "/", "?", "&")

# Characters left untouched by encodeURIComponent / encodeURI
_UNRESERVED = "-_.!~*'()"
_RESERVED = _UNRESERVED + ";,/?:@&=+$#"

_TEMPLATE_RE = re.compile(r"\{[^}\s]+\}")

Value = Union[str, int, float, List[Any]]


class UriTemplateError(ValueError):
    pass


class Expression:
    __slots__ = ("operator", "names", "exploded")

    def __init__(self, operator: str, names: List[str], exploded: bool):
        self.operator = operator
        self.names = names
        self.exploded = exploded

    @property
    def name(self) -> str:
        return self.names[0] if self.names else ""

    @property
    def is_query(self) -> bool:
        return self.operator in ("?", "&")


def _validate_length(value: str, maximum: int, context: str) -> None:
    if len(value) > maximum:
        raise UriTemplateError(
            f"{context} exceeds maximum length of {maximum} characters (got {len(value)})"
        )


class UriTemplate:
    def __init__(self, template: str):
        _validate_length(template, MAX_TEMPLATE_LENGTH, "Template")
        self.template = template
        self.parts: List[Union[str, Expression]] = self._parse(template)
        self._matcher: Optional[Tuple["re.Pattern[str]", List[Tuple[str, Optional[str]]]]] = None

    @staticmethod
    def is_template(value: str) -> bool:
        return bool(_TEMPLATE_RE.search(value))

    @property
    def variable_names(self) -> List[str]:
        names = []
        for part in self.parts:
            if isinstance(part, Expression):
                names.extend(part.names)
        return names

    def __str__(self) -> str:
        return self.template

    def __repr__(self) -> str:
        return f"UriTemplate({self.template!r})"

    def _parse(self, template: str) -> List[Union[str, Expression]]:
        parts: List[Union[str, Expression]] = []
        text = []
        expressions = 0
        i = 0
        while i < len(template):
            if template[i] != "{":
                text.append(template[i])
                i += 1
                continue

            if text:
                parts.append("".join(text))
                text = []

            end = template.find("}", i)
            if end == -1:
                raise UriTemplateError("Unclosed template expression")

            expressions += 1
            if expressions > MAX_TEMPLATE_EXPRESSIONS:
                raise UriTemplateError(
                    f"Template contains too many expressions (max {MAX_TEMPLATE_EXPRESSIONS})"
                )

            body = template[i + 1:end]
            operator = body[0] if body and body[0] in OPERATORS else ""
            names = [n.replace("*", "").strip() for n in body[len(operator):].split(",")]
            names = [n for n in names if n]
            for name in names:
                _validate_length(name, MAX_VARIABLE_LENGTH, "Variable name")
            parts.append(Expression(operator, names, "*" in body))
            i = end + 1

        if text:
            parts.append("".join(text))
        return parts

    # Expansion

    @staticmethod
    def _encode(value: Any, operator: str) -> str:
        value = str(value)
        _validate_length(value, MAX_VARIABLE_LENGTH, "Variable value")
        if operator in ("+", "#"):
            return quote(value, safe=_RESERVED)
        return quote(value, safe=_UNRESERVED)

    def _expand_query(self, expr: Expression, variables: Mapping[str, Value]) -> str:
        pairs = []
        for name in expr.names:
            value = variables.get(name)
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                encoded = ",".join(self._encode(v, expr.operator) for v in value)
            else:
                encoded = self._encode(value, expr.operator)
            pairs.append(f"{name}={encoded}")
        if not pairs:
            return ""
        return expr.operator + "&".join(pairs)

    def _expand_expression(self, expr: Expression, variables: Mapping[str, Value]) -> str:
        if expr.is_query:
            return self._expand_query(expr, variables)

        values: List[str] = []
        for name in expr.names:
            value = variables.get(name)
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                values.extend(self._encode(v, expr.operator) for v in value)
            else:
                values.append(self._encode(value, expr.operator))
        if not values:
            return ""

        if expr.operator == "#":
            return "#" + ",".join(values)
        if expr.operator == ".":
            return "." + ".".join(values)
        if expr.operator == "/":
            return "/" + "/".join(values)
        return ",".join(values)

    def expand(self, variables: Mapping[str, Value]) -> str:
        result = []
        has_query = False
        for part in self.parts:
            if isinstance(part, str):
                result.append(part)
                continue

            expanded = self._expand_expression(part, variables)
            if not expanded:
                continue
            if part.is_query and has_query and expanded.startswith("?"):
                expanded = "&" + expanded[1:]
            result.append(expanded)
            if part.is_query:
                has_query = True
        return "".join(result)

    # Matching

    @staticmethod
    def _expression_patterns(expr: Expression) -> List[Tuple[str, str]]:
        if expr.is_query:
            patterns = []
            for index, name in enumerate(expr.names):
                prefix = re.escape(expr.operator) if index == 0 else "&"
                patterns.append((prefix + re.escape(name) + "=([^&#]+)", name))
            return patterns

        value = r"([^/]+(?:,[^/]+)*)" if expr.exploded else r"([^/,]+)"
        if expr.exploded and expr.operator == "/":
            value = r"([^/?#]+(?:/[^/?#]+)*)"
        elif expr.operator in ("+", "#"):
            value = r"(.+)"

        prefix = {"#": "#", ".": r"\.", "/": "/"}.get(expr.operator, "")
        separator = {".": r"\.", "/": "/"}.get(expr.operator, ",")

        patterns = []
        for index, name in enumerate(expr.names):
            patterns.append(((prefix if index == 0 else separator) + value, name))
        return patterns

    def _compile(self) -> Tuple["re.Pattern[str]", List[Tuple[str, Optional[str]]]]:
        pattern = ["^"]
        # (name, separators an exploded value is split on)
        captures: List[Tuple[str, Optional[str]]] = []
        for part in self.parts:
            if isinstance(part, str):
                pattern.append(re.escape(part))
                continue
            split = None
            if part.exploded:
                split = "[/,]" if part.operator == "/" else ","
            for regex, name in self._expression_patterns(part):
                pattern.append(regex)
                captures.append((name, split))
        pattern.append("$")

        source = "".join(pattern)
        _validate_length(source, MAX_REGEX_LENGTH, "Generated regex pattern")
        return re.compile(source), captures

    def match(self, uri: str) -> Optional[Dict[str, Union[str, List[str]]]]:
        _validate_length(uri, MAX_TEMPLATE_LENGTH, "URI")
        if self._matcher is None:
            self._matcher = self._compile()
        regex, captures = self._matcher
        found = regex.match(uri)
        if not found:
            return None

        variables: Dict[str, Union[str, List[str]]] = {}
        for (name, split), value in zip(captures, found.groups()):
            items = re.split(split, value) if split else [value]
            if len(items) > 1:
                variables[name] = [unquote(v) for v in items]
            else:
                variables[name] = unquote(value)
        return variables


_compiled: Dict[str, UriTemplate] = {}


def compile_template(template: str) -> UriTemplate:
    cached = _compiled.get(template)
    if cached is None:
        cached = _compiled[template] = UriTemplate(template)
    return cached
