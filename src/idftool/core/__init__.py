"""Core dataclasses and shared type aliases for idftool modules."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypeAlias

import numpy as np
import pandas as pd

ArrayLike: TypeAlias = np.ndarray | Sequence[float]
TableLike: TypeAlias = pd.DataFrame | np.ndarray | Sequence[Sequence[float]]


@dataclass(frozen=True, slots=True)
class FittedParameters:
    """Parameters of one distribution family fitted to one sample."""

    family: str
    values: Mapping[str, float]
    method: str | None = None
    diagnostics: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        frozen = MappingProxyType({str(k): float(v) for k, v in dict(self.values).items()})
        object.__setattr__(self, "values", frozen)
        object.__setattr__(self, "diagnostics", MappingProxyType(dict(self.diagnostics)))

    def __getitem__(self, name: str) -> float:
        return self.values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.values)

    def as_dict(self) -> dict[str, float]:
        return dict(self.values)


@dataclass(slots=True)
class GoodnessMetrics:
    """Regression-style goodness of fit for a fitted curve."""

    aic: float
    bic: float
    br2: float
    mse: float
    rmse: float

    @classmethod
    def empty(cls) -> GoodnessMetrics:
        nan = float("nan")
        return cls(aic=nan, bic=nan, br2=nan, mse=nan, rmse=nan)

    def to_dict(self) -> dict[str, float]:
        return {
            "aic": self.aic,
            "bic": self.bic,
            "br2": self.br2,
            "mse": self.mse,
            "rmse": self.rmse,
        }


@dataclass(slots=True)
class DistributionGoodness:
    """Goodness-of-fit statistics, p-values and information criteria of a PDF fit."""

    ks: float
    ks_pvalue: float
    ad: float
    ad_pvalue: float
    cvm: float
    cvm_pvalue: float
    aic: float
    bic: float
    log_likelihood: float = float("nan")
    rmse: float = float("nan")
    mse: float = float("nan")
    br2: float = float("nan")

    @classmethod
    def empty(cls) -> DistributionGoodness:
        nan = float("nan")
        return cls(
            ks=nan, ks_pvalue=nan, ad=nan, ad_pvalue=nan, cvm=nan, cvm_pvalue=nan, aic=nan, bic=nan
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "ks": self.ks,
            "ks_pvalue": self.ks_pvalue,
            "ad": self.ad,
            "ad_pvalue": self.ad_pvalue,
            "cvm": self.cvm,
            "cvm_pvalue": self.cvm_pvalue,
            "aic": self.aic,
            "bic": self.bic,
            "log_likelihood": self.log_likelihood,
            "rmse": self.rmse,
            "mse": self.mse,
            "br2": self.br2,
        }


@dataclass(slots=True)
class Band:
    """Lower/upper bounds keyed by return period or duration."""

    index: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    level: float
    index_name: str = "return_period"
    estimate: np.ndarray | None = None
    diagnostics: dict[str, Any] = field(default_factory=dict)

    def contains(self, values: ArrayLike) -> np.ndarray:
        """Return a boolean mask of ``values`` falling inside the band."""
        arr = np.asarray(values, dtype=float)
        return (arr >= self.lower) & (arr <= self.upper)

    def to_frame(self) -> pd.DataFrame:
        data: dict[str, np.ndarray] = {}
        if self.estimate is not None:
            data["estimate"] = np.asarray(self.estimate, dtype=float)
        data["lower"] = np.asarray(self.lower, dtype=float)
        data["upper"] = np.asarray(self.upper, dtype=float)
        return pd.DataFrame(data, index=pd.Index(self.index, name=self.index_name))


@dataclass(slots=True)
class ConfidenceBand(Band):
    """Uncertainty band on a fitted quantity (mean response or quantile)."""


@dataclass(slots=True)
class PredictionBand(Band):
    """Uncertainty band on a new observation."""


@dataclass(slots=True)
class DistributionFitResult:
    """Outputs of one (sample, family, method) distribution fit."""

    family: str
    method: str
    parameters: FittedParameters | None
    return_periods: np.ndarray
    quantiles: pd.Series | None = None
    confidence: ConfidenceBand | None = None
    goodness: DistributionGoodness | None = None
    diagnostics: dict[str, Any] = field(default_factory=dict)

    @property
    def info(self) -> tuple[str, str]:
        return self.family, self.method

    @property
    def fitted(self) -> bool:
        return self.parameters is not None

    def to_frame(self) -> pd.DataFrame:
        """Return quantiles (and bootstrap bounds when available) per return period."""
        index = pd.Index(self.return_periods, name="return_period")
        frame = pd.DataFrame(index=index)
        if self.quantiles is None:
            frame["intensity"] = np.nan
        else:
            frame["intensity"] = self.quantiles.to_numpy()
        if self.confidence is not None:
            bounds = self.confidence.to_frame()[["lower", "upper"]]
            frame = frame.join(bounds, how="left")
        return frame


__all__ = [
    "ArrayLike",
    "TableLike",
    "FittedParameters",
    "GoodnessMetrics",
    "DistributionGoodness",
    "Band",
    "ConfidenceBand",
    "PredictionBand",
    "DistributionFitResult",
]
