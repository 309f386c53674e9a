# registry.py
# Tool registry: a fixed, name-keyed lookup built once per agent run.
#
# The registry holds references to caller-owned tools. It never copies,
# wraps, or mutates tool behavior and holds no run state.

from typing import Callable, Iterable, Iterator, Optional

from model_bench.errors import ConfigurationError


class Tool:
    """A named capability: one text input in, one text output out (or raise)."""

    def __init__(self, name: str, description: str, execute: Callable[[str], str]) -> None:
        self.name = name
        self.description = description
        self.execute = execute

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r})"


def tool(name: str, description: str) -> Callable[[Callable[[str], str]], Tool]:
    """Decorator that turns a plain ``fn(input) -> str`` into a Tool."""

    def decorator(fn: Callable[[str], str]) -> Tool:
        return Tool(name, description, fn)

    return decorator


class ToolRegistry:
    """
    Ordered registry of tools available to one agent run.

    Duplicate names are a configuration error reported here, at setup,
    never at dispatch time.
    """

    def __init__(self, tools: Iterable[Tool]) -> None:
        self._tools: dict[str, Tool] = {}
        for item in tools:
            if item.name in self._tools:
                raise ConfigurationError(f"Duplicate tool name: {item.name!r}")
            self._tools[item.name] = item

    def lookup(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def describe(self) -> str:
        """One ``  name: description`` line per tool, for prompt injection."""
        return "\n".join(f"  {t.name}: {t.description}" for t in self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
