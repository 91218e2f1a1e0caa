"""Formatter protocol and the name -> formatter registry used by --format."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sql_workbench.core.models import QueryResult


@runtime_checkable
class Formatter(Protocol):
    """Renders a QueryResult as lines of text, without trailing newlines."""

    def format(self, result: QueryResult) -> Iterator[str]: ...


class FormatterRegistry:
    def __init__(self) -> None:
        self._factories: dict[str, type[Formatter]] = {}

    def register(self, name: str, formatter_class: type[Formatter]) -> None:
        self._factories[name] = formatter_class

    def get(self, name: str, **options: object) -> Formatter:
        """Instantiate the formatter registered as `name` with `options`.

        Raises KeyError naming the registered formats when `name` is unknown.
        """
        try:
            factory = self._factories[name]
        except KeyError:
            msg = f"Unknown format {name!r}. Available: {', '.join(self.available)}"
            raise KeyError(msg) from None
        return factory(**options)

    @property
    def available(self) -> list[str]:
        return sorted(self._factories)


registry = FormatterRegistry()
