from dataclasses import dataclass, fields
from typing import Any, Mapping


@dataclass(frozen=True)
class BisectorConfig:
    """
    Tunables of the bisector velocity computation.

    Parameters
    ----------
    fit_half_width : int, default=2
        Half-width of the parabolic line-core fit window (window has
        ``2*fit_half_width+1`` samples)
    verbose : bool, default=False
        Log every profile fit and bisector table at DEBUG level
    delay : float, default=0.0
        Seconds to sleep before each pixel (live inspection aid only)
    num_workers : int, default=1
        Number of threads used for the per-pixel extraction
    """
    fit_half_width: int = 2
    verbose: bool = False
    delay: float = 0.0
    num_workers: int = 1

    def __post_init__(self):
        if isinstance(self.fit_half_width, bool) or int(self.fit_half_width) != self.fit_half_width:
            raise ValueError(f"fit_half_width must be an integer. Got: {self.fit_half_width!r}")
        if self.fit_half_width < 1:
            raise ValueError(f"fit_half_width must be >= 1. Got: {self.fit_half_width}")
        if not self.delay >= 0:
            raise ValueError(f"delay must be a non-negative number. Got: {self.delay}")
        if int(self.num_workers) != self.num_workers or self.num_workers < 1:
            raise ValueError(f"num_workers must be a positive integer. Got: {self.num_workers!r}")
        object.__setattr__(self, "fit_half_width", int(self.fit_half_width))
        object.__setattr__(self, "num_workers", int(self.num_workers))
        object.__setattr__(self, "delay", float(self.delay))
        object.__setattr__(self, "verbose", bool(self.verbose))

    @property
    def fit_window(self) -> int:
        return 2 * self.fit_half_width + 1

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "BisectorConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(mapping) - known
        if unknown:
            raise ValueError(f"Unknown BisectorConfig keys: {sorted(unknown)}")
        return cls(**dict(mapping))
