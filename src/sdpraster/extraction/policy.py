"""Extraction options: interpolation, spatial summaries, and temporal filters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Sequence

import numpy as np

from sdpraster.errors import UsageError
from sdpraster.temporal import TemporalSelection

INTERPOLATIONS = ("nearest", "bilinear")

Reducer = Callable[[np.ndarray], float]

BUILTIN_REDUCERS: dict[str, Reducer] = {
    "mean": np.mean,
    "min": np.min,
    "max": np.max,
    "sum": np.sum,
    "median": np.median,
}


@dataclass(frozen=True)
class Summary:
    """
    A reduction from the values of the cells covering a feature to one number.

    NaN cells are dropped before reducing; an all-NaN bag reduces to NaN.
    Caller-supplied functions must be total and side-effect free.
    """

    name: str
    func: Reducer = field(repr=False, compare=False)

    def __call__(self, values: Sequence[float]) -> float:
        array = np.asarray(values, dtype=float)
        array = array[~np.isnan(array)]
        if array.size == 0:
            return float("nan")
        return float(self.func(array))

    @classmethod
    def builtin(cls, name: str) -> "Summary":
        reducer = BUILTIN_REDUCERS.get(name)
        if reducer is None:
            raise UsageError(
                f"Unknown summary {name!r}; use one of {', '.join(BUILTIN_REDUCERS)}, a percentile, or a function"
            )
        return cls(name, reducer)

    @classmethod
    def percentile(cls, q: float) -> "Summary":
        if not 0 <= q <= 100:
            raise UsageError(f"Percentile must be between 0 and 100, got {q}")
        return cls(f"p{q:g}", lambda values: np.percentile(values, q))

    @classmethod
    def custom(cls, func: Reducer, name: str | None = None) -> "Summary":
        if not callable(func):
            raise UsageError("A custom summary must be callable")
        return cls(name or getattr(func, "__name__", "custom"), func)


def as_summary(value: Summary | str | Reducer | None) -> Summary | None:
    """Coerce ``None``, a built-in name, ``"pNN"``, or a callable into a :class:`Summary`."""

    if value is None or isinstance(value, Summary):
        return value
    if isinstance(value, str):
        name = value.strip().lower()
        if name in ("", "none"):
            return None
        if name.startswith("p") and name[1:].replace(".", "", 1).isdigit():
            return Summary.percentile(float(name[1:]))
        return Summary.builtin(name)
    if callable(value):
        return Summary.custom(value)
    raise UsageError(f"Unsupported summary: {value!r}")


@dataclass(frozen=True)
class ExtractionPolicy:
    """How values are pulled from a raster for a set of features."""

    interpolation: str = "nearest"
    summary: Summary | str | Reducer | None = None
    weight_by_coverage: bool = False
    temporal_filter: TemporalSelection | None = None
    bind: bool = False
    id_column: str | None = None

    def __post_init__(self) -> None:
        if self.interpolation not in INTERPOLATIONS:
            raise UsageError(f"interpolation must be one of {', '.join(INTERPOLATIONS)}")
        object.__setattr__(self, "summary", as_summary(self.summary))
