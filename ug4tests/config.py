from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class GMGConfig:
    damping: float = 0.66          # Jacobi smoother
    cycle_type: str = "V"
    num_presmooth: int = 3
    num_postsmooth: int = 3
    base_level: int = 0


@dataclass(frozen=True)
class ConvCheckConfig:
    max_iterations: int = 100
    min_defect: float = 1e-12
    reduction: float = 1e-6
    verbose: bool = True


@dataclass(frozen=True)
class LaplaceConfig:
    function: str = "c"
    inner_subsets: str = "Inner"
    diffusion: float = 1.0
    reaction: float = 0.0
    boundary_values: Dict[str, float] = field(
        default_factory=lambda: {"bndNegative": -1.0, "bndPositive": 1.0})
    num_refinements: int = 4
    gmg: GMGConfig = field(default_factory=GMGConfig)
    conv_check: ConvCheckConfig = field(default_factory=ConvCheckConfig)
