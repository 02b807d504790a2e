"""Channel schema: the named slots of shared run state and their merge rules."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from graphchat.engine.errors import ChannelTypeError, GraphConfigurationError, UnknownChannelError

logger = logging.getLogger(__name__)

State = Mapping[str, Any]
ReducerFn = Callable[[Any, Any], Any]


def overwrite(previous: Any, incoming: Any) -> Any:
    """Last write wins."""
    return incoming


def append(previous: Any, incoming: Any) -> list[Any]:
    """Concatenate ``incoming`` after ``previous``, keeping order and duplicates."""
    if isinstance(incoming, (str, bytes)) or not isinstance(incoming, (list, tuple)):
        raise TypeError(
            f"append channels take a list or tuple of items, got {type(incoming).__name__}"
        )
    return [*previous, *incoming]


def shallow_union(previous: Any, incoming: Any) -> dict[Any, Any]:
    """Apply the keys of ``incoming`` on top of ``previous``."""
    if not isinstance(incoming, Mapping):
        raise TypeError(
            f"shallow-union channels take a mapping, got {type(incoming).__name__}"
        )
    return {**previous, **incoming}


class Reducer(str, Enum):
    """Built-in merge policies selectable per channel."""

    OVERWRITE = "overwrite"
    APPEND = "append"
    SHALLOW_UNION = "shallow_union"

    @property
    def fn(self) -> ReducerFn:
        return _BUILTIN_REDUCERS[self]


_BUILTIN_REDUCERS: dict[Reducer, ReducerFn] = {
    Reducer.OVERWRITE: overwrite,
    Reducer.APPEND: append,
    Reducer.SHALLOW_UNION: shallow_union,
}


@dataclass(frozen=True)
class Channel:
    """A named slot in the shared state.

    Attributes:
        name: Unique channel key
        reducer: Function combining the previous value with an incoming one
        default: Zero-argument factory producing the initial value
        value_type: Optional type every value of the channel must satisfy
    """

    name: str
    reducer: ReducerFn
    default: Callable[[], Any]
    value_type: type | None = None

    def check(self, value: Any) -> None:
        if self.value_type is not None and not isinstance(value, self.value_type):
            raise ChannelTypeError(self.name, self.value_type, value)


class ChannelSchema:
    """Ordered set of channels declared for one graph."""

    def __init__(self) -> None:
        self._channels: dict[str, Channel] = {}
        self._frozen = False

    def declare(
        self,
        name: str,
        reducer: Reducer | ReducerFn = Reducer.OVERWRITE,
        default: Callable[[], Any] = lambda: None,
        value_type: type | None = None,
    ) -> Channel:
        """Register a channel; duplicate or invalid declarations are configuration errors."""
        location = f"channel '{name}'"
        if self._frozen:
            raise GraphConfigurationError.single(
                location, "schema is frozen; declare channels before compiling"
            )
        if not isinstance(name, str) or not name:
            raise GraphConfigurationError.single(location, "name must be a non-empty string")
        if name in self._channels:
            raise GraphConfigurationError.single(location, "declared more than once")
        if not callable(default):
            raise GraphConfigurationError.single(location, "default must be a zero-argument factory")

        reducer_fn = reducer.fn if isinstance(reducer, Reducer) else reducer
        if not callable(reducer_fn):
            raise GraphConfigurationError.single(location, "reducer must be callable")

        channel = Channel(name=name, reducer=reducer_fn, default=default, value_type=value_type)
        try:
            channel.check(default())
        except ChannelTypeError as exc:
            raise GraphConfigurationError.single(location, str(exc)) from exc

        self._channels[name] = channel
        logger.debug("Declared channel %s", name)
        return channel

    def __contains__(self, name: object) -> bool:
        return name in self._channels

    def __iter__(self) -> Iterator[str]:
        return iter(self._channels)

    def __len__(self) -> int:
        return len(self._channels)

    def __getitem__(self, name: str) -> Channel:
        return self._channels[name]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._channels)

    def frozen(self) -> ChannelSchema:
        """Return a read-only copy that later ``declare`` calls on this schema cannot affect."""
        copy = ChannelSchema()
        copy._channels = dict(self._channels)
        copy._frozen = True
        return copy

    def initial_state(self) -> State:
        """Build a fresh state by calling every channel's default factory."""
        return MappingProxyType({name: ch.default() for name, ch in self._channels.items()})

    def merge(self, state: State, partial: Mapping[str, Any]) -> State:
        """Return a new state with ``partial`` folded in through each channel's reducer."""
        unknown = [key for key in partial if key not in self._channels]
        if unknown:
            raise UnknownChannelError(unknown)

        merged = dict(state)
        for key, incoming in partial.items():
            channel = self._channels[key]
            value = channel.reducer(merged[key], incoming)
            channel.check(value)
            merged[key] = value
        return MappingProxyType(merged)


def state_to_dict(state: State) -> dict[str, Any]:
    """Plain, mutable copy of a state snapshot."""
    return dict(state)
