"""Registry of callable tools."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional

from .models import Tool
from .schema import ArgumentValidator, ObjectField, to_json_schema


Executor = Callable[[Dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class ToolSpec:
    """A named tool: description, argument schema and executor.

    ``execute`` receives arguments that already passed ``validator`` and
    either returns a JSON-serializable value or raises.
    """
    name: str
    description: str
    input_schema: ObjectField
    execute: Executor
    validator: ArgumentValidator = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "validator", ArgumentValidator(self.input_schema, f"{self.name}_arguments"))

    def definition(self) -> Tool:
        """Tool definition as listed by ``tools/list``."""
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=to_json_schema(self.input_schema),
        )


class ToolRegistry:
    """Immutable, ordered mapping of tool name to ``ToolSpec``."""

    def __init__(self, tools: Iterable[ToolSpec]):
        index: Dict[str, ToolSpec] = {}
        for tool in tools:
            if tool.name in index:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            index[tool.name] = tool
        self._tools = index

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
