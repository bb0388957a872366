"""Immutable numpy-backed feature vectors for hypergraph nodes."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Sequence

import numpy as np


class FeatureVector:
    """
    Fixed-length real vector representing one domain entity.

    The backing array is read-only; every arithmetic operation returns a new
    FeatureVector.
    """

    __slots__ = ("_data",)

    def __init__(self, values: Iterable[float] | np.ndarray) -> None:
        data = np.array(values, dtype=np.float64).reshape(-1)
        if data.size == 0:
            raise ValueError("FeatureVector requires at least one component")
        if not np.all(np.isfinite(data)):
            raise ValueError("FeatureVector components must be finite")
        data.setflags(write=False)
        self._data = data

    @classmethod
    def zeros(cls, dimension: int) -> FeatureVector:
        return cls(np.zeros(dimension))

    @classmethod
    def weighted_sum(
        cls,
        vectors: Sequence[FeatureVector],
        weights: Sequence[float],
    ) -> FeatureVector:
        """Return Σ wᵢ·vᵢ (not normalized)."""
        if not vectors:
            raise ValueError("At least one vector required")
        if len(vectors) != len(weights):
            raise ValueError("vectors and weights must have equal length")
        stacked = np.stack([v.array for v in vectors])
        return cls(np.asarray(weights, dtype=np.float64) @ stacked)

    @property
    def array(self) -> np.ndarray:
        return self._data

    @property
    def dimension(self) -> int:
        return int(self._data.shape[0])

    def norm(self) -> float:
        return float(np.linalg.norm(self._data))

    def add(self, other: FeatureVector) -> FeatureVector:
        self._check_dimension(other)
        return FeatureVector(self._data + other.array)

    def scale(self, factor: float) -> FeatureVector:
        return FeatureVector(self._data * float(factor))

    def normalize(self) -> FeatureVector:
        """Unit-length copy; a zero vector stays zero."""
        norm = self.norm()
        if norm == 0.0:
            return FeatureVector(self._data)
        return FeatureVector(self._data / norm)

    def cosine_similarity(self, other: FeatureVector) -> float:
        self._check_dimension(other)
        norm = self.norm() * other.norm()
        if norm == 0.0:
            return 0.0
        return float(np.dot(self._data, other.array) / norm)

    def euclidean_distance(self, other: FeatureVector) -> float:
        self._check_dimension(other)
        return float(np.linalg.norm(self._data - other.array))

    def to_list(self) -> List[float]:
        return [float(x) for x in self._data]

    def _check_dimension(self, other: FeatureVector) -> None:
        if other.dimension != self.dimension:
            raise ValueError(
                f"Dimension mismatch: {self.dimension} vs {other.dimension}"
            )

    def __len__(self) -> int:
        return self.dimension

    def __iter__(self) -> Iterator[float]:
        return iter(self.to_list())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureVector):
            return NotImplemented
        return bool(np.array_equal(self._data, other.array))

    def __hash__(self) -> int:
        return hash(self._data.tobytes())

    def __repr__(self) -> str:
        head = ", ".join(f"{x:.3f}" for x in self._data[:4])
        more = ", ..." if self.dimension > 4 else ""
        return f"FeatureVector(dim={self.dimension}, [{head}{more}])"


__all__ = ["FeatureVector"]
