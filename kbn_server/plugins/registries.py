"""Server function registries shared by plugins."""

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class ServerFunction:
    """
    A function executable on the server.

    ``fn`` receives the piped-in context and the argument dict and may be
    sync or async.
    """

    name: str
    help: str
    fn: Callable[[Any, dict[str, Any]], Any]
    args: dict[str, dict[str, Any]] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)
    type: Optional[str] = None

    def to_definition(self) -> dict[str, Any]:
        """Serializable description, without the implementation."""
        return {
            "name": self.name,
            "help": self.help,
            "args": self.args,
            "context": self.context,
            "type": self.type,
        }

    async def __call__(self, context: Any, args: dict[str, Any]) -> Any:
        result = self.fn(context, args)
        if inspect.isawaitable(result):
            result = await result
        return result


class FunctionsRegistry:
    """Name-indexed server functions, in registration order."""

    def __init__(self):
        self._functions: dict[str, ServerFunction] = {}

    def register(self, function: ServerFunction) -> None:
        if function.name in self._functions:
            raise ValueError(f"Function '{function.name}' is already registered")
        self._functions[function.name] = function

    def get(self, name: str) -> Optional[ServerFunction]:
        return self._functions.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    def to_array(self) -> list[dict[str, Any]]:
        return [f.to_definition() for f in self._functions.values()]


FunctionProvider = Callable[[], Union[Iterable[ServerFunction], Awaitable[Iterable[ServerFunction]]]]


class ServerRegistries:
    """
    Registries populated from plugin contributions.

    Plugins queue providers with ``add_functions``; ``load`` drains the
    queue once, so anything depending on a complete registry awaits it.
    """

    def __init__(self):
        self.functions = FunctionsRegistry()
        self._providers: list[FunctionProvider] = []
        self._loaded = False
        self._lock = asyncio.Lock()

    def add_functions(self, provider: FunctionProvider) -> None:
        if self._loaded:
            raise RuntimeError("Server registries are already loaded")
        self._providers.append(provider)

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> "ServerRegistries":
        async with self._lock:
            if self._loaded:
                return self

            for provider in self._providers:
                functions = provider()
                if inspect.isawaitable(functions):
                    functions = await functions
                for function in functions:
                    self.functions.register(function)

            self._loaded = True
            logger.info("Server registries loaded", functions=len(self.functions))
            return self
