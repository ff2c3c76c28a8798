"""Typed attribute accumulator for spans, events and links."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from opentelemetry.util.types import AttributeValue

NIL_ERROR = "<nil>"


def _check(key: str, value: object, expected) -> None:
    if not isinstance(value, expected):
        raise TypeError(f"attribute {key!r}: unexpected value type {type(value).__name__}")


@dataclass
class SpanAttributes:
    """Attributes collected per value kind before they reach the SDK.

    Each kind keeps its own mapping, so the same key may be set once as a
    string and once as an int; both survive until ``parse``. Setters return
    the accumulator for chaining. Values are stored as given; a value of
    the wrong type raises TypeError:

        attrs = SpanAttributes().str_kv("route", "/x").int_kv("status", 200)
    """

    str_attrs: Dict[str, str] = field(default_factory=dict)
    bool_attrs: Dict[str, bool] = field(default_factory=dict)
    int_attrs: Dict[str, int] = field(default_factory=dict)
    float_attrs: Dict[str, float] = field(default_factory=dict)
    slice_attrs: Dict[str, List[str]] = field(default_factory=dict)

    def str_kv(self, key: str, value: str) -> "SpanAttributes":
        _check(key, value, str)
        self.str_attrs[key] = value
        return self

    def bool_kv(self, key: str, value: bool) -> "SpanAttributes":
        _check(key, value, bool)
        self.bool_attrs[key] = value
        return self

    def int_kv(self, key: str, value: int) -> "SpanAttributes":
        if isinstance(value, bool):
            raise TypeError(f"attribute {key!r}: expected int, got bool")
        _check(key, value, int)
        self.int_attrs[key] = value
        return self

    def float_kv(self, key: str, value: float) -> "SpanAttributes":
        """Store a float; ints are accepted and widened, bools are not."""
        if isinstance(value, bool):
            raise TypeError(f"attribute {key!r}: expected float, got bool")
        _check(key, value, (int, float))
        self.float_attrs[key] = float(value)
        return self

    def slice_kv(self, key: str, value: Sequence[str]) -> "SpanAttributes":
        if isinstance(value, str):
            raise TypeError(f"attribute {key!r}: expected a sequence of str, got str")
        items = list(value)
        for item in items:
            _check(key, item, str)
        self.slice_attrs[key] = items
        return self

    def error_kv(self, key: str, err: Optional[BaseException]) -> "SpanAttributes":
        """Store an error message as a string attribute, ``<nil>`` for None."""
        self.str_attrs[key] = NIL_ERROR if err is None else str(err)
        return self

    def parse(self) -> List[Tuple[str, AttributeValue]]:
        """Flatten every kind into a list of key/value pairs."""
        out: List[Tuple[str, AttributeValue]] = []
        out.extend(self.str_attrs.items())
        out.extend(self.bool_attrs.items())
        out.extend(self.int_attrs.items())
        out.extend(self.float_attrs.items())
        out.extend((k, list(v)) for k, v in self.slice_attrs.items())
        return out

    def __len__(self) -> int:
        return (
            len(self.str_attrs)
            + len(self.bool_attrs)
            + len(self.int_attrs)
            + len(self.float_attrs)
            + len(self.slice_attrs)
        )


def new_attrs() -> SpanAttributes:
    """Create an empty attribute accumulator."""
    return SpanAttributes()
