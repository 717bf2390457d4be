from __future__ import annotations

import re
from typing import Mapping, Protocol

# $name or [[name]]
_VARIABLE = re.compile(r"\$(\w+)|\[\[([\s\S]+?)\]\]")


class TemplateSrv(Protocol):
    def replace(self, target: str) -> str: ...


class VariableTemplateSrv:
    """Substitutes dashboard template variables into query strings.

    Unknown variables are left in place so the backend sees the literal text.
    """

    def __init__(self, variables: Mapping[str, str] | None = None) -> None:
        self.variables: dict[str, str] = dict(variables or {})

    def with_variables(self, extra: Mapping[str, str] | None) -> "VariableTemplateSrv":
        if not extra:
            return self
        return VariableTemplateSrv({**self.variables, **extra})

    def replace(self, target: str) -> str:
        if not target:
            return target

        def _sub(match: re.Match[str]) -> str:
            name = match.group(1) or match.group(2)
            if name in self.variables:
                return self.variables[name]
            return match.group(0)

        return _VARIABLE.sub(_sub, target)
