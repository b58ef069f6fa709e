from __future__ import annotations

from typing import Any, Iterable, Iterator, List, Mapping, Tuple, Union

from webreq.core.errors import MissingParametersError, ParameterEncodingError

ParamsLike = Union["ParameterBag", Mapping[str, Any], Iterable[Tuple[str, Any]]]


def _to_text(name: str, value: Any) -> str:
    """Convert one parameter value to text.

    Security notes:
    - The value itself is never echoed into the error message.
    """

    if value is None:
        raise ParameterEncodingError(f"parameter {name!r} has no value")
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParameterEncodingError(f"parameter {name!r} is not valid UTF-8") from e
    try:
        return str(value)
    except Exception as e:
        raise ParameterEncodingError(f"parameter {name!r} cannot be converted to text") from e


class ParameterBag:
    """Ordered (name, value) pairs sent with a request.

    Values are converted to text when the bag is built, so a bad value fails
    before any I/O. Duplicate names are kept as separate pairs.
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: Iterable[Tuple[str, Any]] = ()):
        items: List[Tuple[str, str]] = []
        for pair in pairs:
            try:
                name, value = pair
            except (TypeError, ValueError) as e:
                raise ParameterEncodingError("parameters must be (name, value) pairs") from e
            if not isinstance(name, str) or not name:
                raise ParameterEncodingError(f"parameter name must be a non-empty string: {name!r}")
            items.append((name, _to_text(name, value)))
        self._pairs: Tuple[Tuple[str, str], ...] = tuple(items)

    @classmethod
    def from_value(cls, params: ParamsLike | None) -> "ParameterBag":
        """Build a bag from a mapping, an iterable of pairs or another bag.

        `None` is a programmer error; an empty mapping is a valid empty bag.
        """

        if params is None:
            raise MissingParametersError("parameters cannot be None")
        if isinstance(params, ParameterBag):
            return params
        if isinstance(params, Mapping):
            return cls(params.items())
        if isinstance(params, (str, bytes, bytearray)):
            raise ParameterEncodingError("parameters must be a mapping or (name, value) pairs")
        try:
            return cls(iter(params))
        except TypeError as e:
            raise ParameterEncodingError("parameters must be a mapping or (name, value) pairs") from e

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __bool__(self) -> bool:
        return bool(self._pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterBag):
            return NotImplemented
        return self._pairs == other._pairs

    def __hash__(self) -> int:
        return hash(self._pairs)

    def __repr__(self) -> str:
        # names only; values may be secrets
        return f"ParameterBag(names={[n for n, _ in self._pairs]!r})"

    def names(self) -> List[str]:
        return [n for n, _ in self._pairs]
