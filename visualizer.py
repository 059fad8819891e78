"""
visualizer.py — Live Density Viewer
====================================
Renders the 2D density field as it evolves, using matplotlib FuncAnimation.
Each animation frame injects the configured inflow and advances the solver
by `steps_per_frame` steps.

Row 0 of the density array is drawn at the top, matching the exported PNGs.
"""

import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.colors import LinearSegmentedColormap

from macfluid import FluidSolver, SimulationConfig

# Smoke colormap: white background → grey → black smoke (same look as the PNGs)
SMOKE_COLORS = ["#ffffff", "#9a9a9a", "#000000"]
smoke_cmap = LinearSegmentedColormap.from_list("smoke", SMOKE_COLORS)


class FluidVisualizer:
    """
    Real-time viewer of the smoke simulation.

    Usage (standalone):
        from macfluid import SimulationConfig
        from visualizer import FluidVisualizer

        viz = FluidVisualizer(SimulationConfig(width=96, height=96))
        viz.run()  # Opens live window
    """

    def __init__(self, config: SimulationConfig = None, solver: FluidSolver = None):
        """
        Args:
            config : Run settings (inflow, timestep, steps per frame)
            solver : Existing solver to display. Built from config if None.
        """
        self.config = (config or SimulationConfig()).validate()
        c = self.config
        self.solver = solver or FluidSolver(c.width, c.height, c.density,
                                            relaxation=c.relaxation,
                                            iterations=c.pressure_iterations,
                                            tolerance=c.pressure_tolerance)
        self._setup_figure()

    def _setup_figure(self):
        """Initialize the matplotlib figure."""
        self.fig, self.ax = plt.subplots(figsize=(6, 6))
        self.ax.set_xticks([])
        self.ax.set_yticks([])

        self.img = self.ax.imshow(
            self.solver.density.values,
            cmap=smoke_cmap,
            vmin=0, vmax=1.0,
            interpolation='bilinear',
            origin='upper',
            aspect='equal'
        )
        self.title_text = self.ax.set_title(
            "Smoke — Frame 0 | t=0.000s",
            fontsize=10, fontfamily='monospace'
        )
        plt.tight_layout()

    def update(self, frame_num):
        """Called by FuncAnimation each frame. Steps sim and updates the plot."""
        c = self.config
        for _ in range(c.steps_per_frame):
            self.solver.add_inflow(*c.inflow)
            metrics = self.solver.step(c.timestep)

        self.img.set_data(self.solver.density.values)
        self.title_text.set_text(
            f"Smoke — Frame {metrics['frame']} | t={metrics['time']:.3f}s | "
            f"{metrics['total_ms']:.1f}ms/step | it={metrics['iterations']}"
        )
        return [self.img, self.title_text]

    def run(self, fps: int = 25, frames: int = None):
        """
        Start the live animation window.

        Args:
            fps    : Target animation frame rate
            frames : Total frames to render (None = until duration is reached)
        """
        if frames is None:
            frames = self._frames_for_duration()
        self.anim = animation.FuncAnimation(
            self.fig,
            self.update,
            frames=frames,
            interval=1000 // fps,
            blit=False,
            repeat=False
        )
        plt.show()

    def save_gif(self, path: str = "smoke.gif", fps: int = 25, frames: int = None):
        """Save animation as a GIF (for reports and demos)."""
        if frames is None:
            frames = self._frames_for_duration()
        self.anim = animation.FuncAnimation(
            self.fig, self.update, frames=frames, interval=1000 // fps, blit=False
        )
        writer = animation.PillowWriter(fps=fps)
        self.anim.save(path, writer=writer)
        return path

    def _frames_for_duration(self) -> int:
        c = self.config
        return max(1, int(round(c.duration / (c.timestep * c.steps_per_frame))))
