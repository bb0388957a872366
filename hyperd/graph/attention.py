"""
Multi-Head Attention Weighting over Hypergraph Neighbors

WHAT: Normalized relevance weights between a query vector and its neighbors
WHERE: hyperd/graph/attention.py - used by HyperGraphIndex.propagate
WHO: Propagation rounds folding newly discovered neighbors into an aggregate
TIME: O(H·N·D²) per call (projection dominates)

For each head h with projection matrix W_h:

    score_h(i) = (W_h·q) · (W_h·k_i) / √D
    weight(i)  = mean_h softmax(score_h)(i)

Projection matrices are static configuration. They are supplied by the caller
or drawn once from a seeded generator at construction; nothing here is ever
updated from observed outcomes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .features import FeatureVector


@dataclass(slots=True)
class AttentionConfig:
    """Static attention parameters."""

    dimension: int = 128
    num_heads: int = 4
    seed: int = 1337
    init_scale: float = 0.1  # Uniform draw in ±init_scale/2


def default_projections(config: AttentionConfig) -> np.ndarray:
    """Deterministic [H, D, D] projection stack from a seeded PRNG."""

    rng = np.random.default_rng(config.seed)
    half = config.init_scale / 2.0
    return rng.uniform(
        -half,
        half,
        size=(config.num_heads, config.dimension, config.dimension),
    )


def _softmax(scores: np.ndarray) -> np.ndarray:
    """Row-wise numerically stable softmax."""
    shifted = scores - scores.max(axis=-1, keepdims=True)
    exp = np.exp(shifted)
    return exp / exp.sum(axis=-1, keepdims=True)


class AttentionPropagator:
    """
    Deterministic multi-head attention weighting.

    Args:
        config: Dimension, head count and generator seed
        projections: Optional explicit projection matrices, one [D, D] matrix
            per head. When given, the head count is taken from them.
    """

    def __init__(
        self,
        config: Optional[AttentionConfig] = None,
        projections: Optional[Sequence[np.ndarray] | np.ndarray] = None,
    ) -> None:
        cfg = config or AttentionConfig()
        if projections is None:
            stack = default_projections(cfg)
        else:
            stack = np.array(projections, dtype=np.float64)
            if stack.ndim != 3 or stack.shape[1:] != (cfg.dimension, cfg.dimension):
                raise ValueError(
                    f"Projections must have shape [H, {cfg.dimension}, {cfg.dimension}], "
                    f"got {list(stack.shape)}"
                )
            if stack.shape[0] == 0:
                raise ValueError("At least one projection head required")
        stack.setflags(write=False)
        self._projections = stack
        self._dimension = cfg.dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def num_heads(self) -> int:
        return int(self._projections.shape[0])

    @property
    def projections(self) -> np.ndarray:
        return self._projections

    def compute_weights(
        self,
        query: FeatureVector,
        neighbors: Sequence[FeatureVector],
    ) -> List[float]:
        """Return one weight per neighbor; weights sum to 1."""

        if not neighbors:
            return []
        if len(neighbors) == 1:
            return [1.0]

        q = self._check(query)
        keys = np.stack([self._check(n) for n in neighbors])  # [N, D]

        projected_q = np.einsum("hij,j->hi", self._projections, q)  # [H, D]
        projected_k = np.einsum("hij,nj->hni", self._projections, keys)  # [H, N, D]
        scores = np.einsum("hi,hni->hn", projected_q, projected_k) / math.sqrt(self._dimension)

        per_head = _softmax(scores)  # [H, N]
        weights = per_head.mean(axis=0)
        return [float(w) for w in weights]

    def aggregate(
        self,
        query: FeatureVector,
        neighbors: Sequence[FeatureVector],
        self_weight: float = 0.5,
    ) -> FeatureVector:
        """
        Fold neighbors into the query vector and re-normalize to unit length.

        aggregate = normalize(s·q + (1−s)·Σ wᵢ·kᵢ) with wᵢ from compute_weights.
        """
        if not neighbors:
            return query.normalize()
        if not 0.0 <= self_weight <= 1.0:
            raise ValueError("self_weight must be within [0, 1]")

        weights = self.compute_weights(query, neighbors)
        combined = FeatureVector.weighted_sum(
            [query, *neighbors],
            [self_weight, *[(1.0 - self_weight) * w for w in weights]],
        )
        return combined.normalize()

    def _check(self, vector: FeatureVector) -> np.ndarray:
        if vector.dimension != self._dimension:
            raise ValueError(
                f"Expected dimension {self._dimension}, got {vector.dimension}"
            )
        return vector.array


__all__ = ["AttentionConfig", "AttentionPropagator", "default_projections"]
