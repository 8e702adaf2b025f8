from dataclasses import dataclass, fields

import numpy as np
from scipy import stats


@dataclass
class DataSummary:
    """
    Descriptive statistics of one output series across trials. Measures
    that are undefined for the data (e.g. the harmonic mean of values that
    are not all positive) are nan.
    """

    count: int = 0
    sum: float = 0.0
    min: float = np.nan
    max: float = np.nan
    range: float = np.nan
    amean: float = np.nan
    hmean: float = np.nan
    gmean: float = np.nan
    tmean: float = np.nan
    median: float = np.nan
    variance: float = np.nan
    std: float = np.nan
    std_error: float = np.nan
    quartile_1st: float = np.nan
    quartile_3rd: float = np.nan
    skewness: float = np.nan
    kurtosis: float = np.nan
    ci95_level: float = np.nan

    @classmethod
    def from_values(cls, values, trim: float = 0.05) -> "DataSummary":
        values = np.asarray(values, dtype=np.float64).ravel()
        values = values[np.isfinite(values)]
        summary = cls(count=int(values.size))
        if values.size == 0:
            return summary
        summary.sum = float(values.sum())
        summary.min = float(values.min())
        summary.max = float(values.max())
        summary.range = summary.max - summary.min
        summary.amean = float(values.mean())
        if np.all(values > 0):
            summary.hmean = float(stats.hmean(values))
            summary.gmean = float(stats.gmean(values))
        summary.tmean = float(stats.trim_mean(values, trim / 2.0))
        summary.median = float(np.median(values))
        summary.quartile_1st, summary.quartile_3rd = (
            float(q) for q in np.percentile(values, [25, 75])
        )
        if values.size > 1:
            summary.variance = float(values.var(ddof=1))
            summary.std = float(np.sqrt(summary.variance))
            summary.std_error = float(stats.sem(values))
            summary.ci95_level = 1.96 * summary.std_error
        if values.size > 2 and summary.variance > 0:
            summary.skewness = float(stats.skew(values, bias=False))
        if values.size > 3 and summary.variance > 0:
            summary.kurtosis = float(stats.kurtosis(values, bias=False))
        return summary

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}
