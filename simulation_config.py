"""
Simulation Configuration Dataclass

Consolidates every simulation parameter (deployment, communication,
round scheduling, mobility, algorithm switches, output) into a single
configuration, with presets for the usual experiments.
"""

import warnings
from dataclasses import dataclass, field

from config import HierarchyConfig, discrete_sqrt


@dataclass
class SimulationConfig:
    """Complete configuration for a hierarchical collection simulation."""

    # =============================================================================
    # Experiment Metadata
    # =============================================================================
    experiment_name: str = "_playground"
    experiment_description: str = "Hierarchical collection on a moving line of devices"
    output_dir: str = "_results"
    seed: int = 0

    # =============================================================================
    # Network
    # =============================================================================
    n_devices: int = 100
    hierarchy_base: int = 2
    comm: float = 100.0          # Communication radius
    squared: bool = False        # Square deployment instead of a long strip
    height: float = 0.0          # Height of the deployment area
    dim: int = 3

    # =============================================================================
    # Rounds
    # =============================================================================
    end_time: int = 500
    synchronous: bool = True
    retain: float = 2.0          # Lifetime of received messages
    async_mean: float = 1.0      # Mean round period (async)
    async_std: float = 0.1       # Round period std (async)

    # =============================================================================
    # Mobility
    # =============================================================================
    speed: float = 0.0
    leader_jump: bool = True     # Device 0 jumps to the far end at half time

    # =============================================================================
    # Algorithms
    # =============================================================================
    run_bottom_up: bool = True
    run_top_down: bool = True
    run_baselines: bool = True
    store_hierarchy: str = "buh"  # Which instance writes level/leader storage

    # =============================================================================
    # Output
    # =============================================================================
    log_every: int = 50
    save_plots: bool = True
    verbose: bool = True

    # Derived
    xside: float = field(init=False)
    yside: float = field(init=False)
    hue_scale: float = field(init=False)

    def __post_init__(self):
        """Validate and compute derived parameters."""
        if self.n_devices < 1:
            raise ValueError(f"n_devices must be >= 1, got {self.n_devices}")
        if self.comm <= 0:
            raise ValueError(f"comm must be positive, got {self.comm}")
        if self.end_time < 1:
            raise ValueError(f"end_time must be >= 1, got {self.end_time}")
        if self.async_mean <= 0:
            raise ValueError(f"async_mean must be positive, got {self.async_mean}")
        if self.async_std < 0:
            raise ValueError(f"async_std must be non-negative, got {self.async_std}")
        if self.store_hierarchy not in ("buh", "bus", "tdh", "tds", "none"):
            raise ValueError(f"store_hierarchy must be 'buh' | 'bus' | 'tdh' | 'tds' | 'none', "
                             f"got {self.store_hierarchy}")

        self.xside = float(discrete_sqrt(self.n_devices * 3000) if self.squared else self.n_devices * 10)
        self.yside = self.xside if self.squared else float(self.comm)
        self.hue_scale = 360.0 / self.n_devices

        if self.comm > max(self.xside, self.yside):
            warnings.warn(f"comm={self.comm} exceeds the deployment area: the network is a clique")
        if self.hierarchy(True, False).max_level == 0:
            warnings.warn(f"n_devices={self.n_devices} gives a hierarchy of depth 0: every count is local")

    def hierarchy(self, bottom_up: bool, hysteresis: bool) -> HierarchyConfig:
        """HierarchyConfig for one algorithm instance."""
        return HierarchyConfig(
            devices=self.n_devices,
            hierarchy_base=self.hierarchy_base,
            bottom_up=bottom_up,
            hysteresis=hysteresis,
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary for serialization."""
        return {
            k: v for k, v in self.__dict__.items()
            if not k.startswith('_')
        }

    def save(self, filepath: str):
        """Save configuration to text file for reproducibility."""
        with open(filepath, 'w') as f:
            f.write("# Simulation Configuration\n")
            f.write(f"# {'='*60}\n\n")

            sections = {
                "Experiment": ["experiment_name", "experiment_description", "seed"],
                "Network": ["n_devices", "hierarchy_base", "comm", "squared",
                            "height", "dim", "xside", "yside"],
                "Rounds": ["end_time", "synchronous", "retain", "async_mean", "async_std"],
                "Mobility": ["speed", "leader_jump"],
                "Algorithms": ["run_bottom_up", "run_top_down", "run_baselines", "store_hierarchy"],
                "Output": ["log_every", "save_plots", "verbose"],
            }

            for section_name, keys in sections.items():
                f.write(f"[{section_name}]\n")
                for key in keys:
                    if hasattr(self, key):
                        value = getattr(self, key)
                        f.write(f"{key:<30} = {value}\n")
                f.write("\n")


# =============================================================================
# Preset Configurations
# =============================================================================

def default_config() -> SimulationConfig:
    """Default configuration: 100 devices on a strip, synchronous, static."""
    return SimulationConfig()


def line_config() -> SimulationConfig:
    """Moving devices on a long strip, leader jumping at half time."""
    return SimulationConfig(
        experiment_name="_line",
        experiment_description="Moving devices on a strip with a jumping leader",
        speed=4.0,
    )


def square_config() -> SimulationConfig:
    """Devices spread in a square area."""
    return SimulationConfig(
        experiment_name="_square",
        experiment_description="Square deployment",
        squared=True,
    )


def async_config() -> SimulationConfig:
    """Asynchronous rounds with Weibull-distributed periods."""
    return SimulationConfig(
        experiment_name="_async",
        experiment_description="Asynchronous rounds, moving devices",
        synchronous=False,
        speed=4.0,
    )


def small_config() -> SimulationConfig:
    """Small quick run, handy for smoke tests."""
    return SimulationConfig(
        experiment_name="_small",
        experiment_description="16 devices, short run",
        n_devices=16,
        end_time=60,
        log_every=20,
        save_plots=False,
    )
