"""Name-keyed registry of the tools available to the agent."""

from typing import Dict, Iterable, Iterator, List, Optional, Union

from src.tools.base import Tool, ToolName
from src.utils.logger import get_logger

log = get_logger(__name__)


class ToolRegistry:
    """Append-only while building, read-only once :meth:`freeze` is called."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: Dict[str, Tool] = {}
        self._frozen = False
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        if self._frozen:
            raise RuntimeError("Tool registry is frozen")
        name = tool.name.value
        if name in self._tools:
            raise ValueError(f"Duplicate tool name: {name}")
        self._tools[name] = tool
        log.debug("Registered tool %s", name)

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    def get(self, name: Union[str, ToolName]) -> Optional[Tool]:
        """Return the tool, or None for an unknown name."""
        key = name.value if isinstance(name, ToolName) else name
        return self._tools.get(key)

    def select(self, names: Optional[Iterable[Union[str, ToolName]]] = None) -> List[Tool]:
        """Tools for *names* in the given order (all tools when None).  Unknown names are skipped."""
        if names is None:
            return list(self._tools.values())
        selected = []
        for name in names:
            tool = self.get(name)
            if tool is not None:
                selected.append(tool)
        return selected

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        key = name.value if isinstance(name, ToolName) else name
        return key in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
