"""
Tests for the run configuration, the frame exporter, the live viewer and
the command line.
"""

import json

import pytest
import numpy as np
import sys
import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.image as mpimg
import matplotlib.pyplot as plt

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from macfluid import RELAX_JACOBI, SimulationConfig
from frame_pipeline import FrameRecorder
from visualizer import FluidVisualizer
import main


@pytest.fixture
def small_config():
    """16×16 run: 4 steps of 0.25s, a frame every 2 steps → 2 frames."""
    return SimulationConfig(width=16, height=16, timestep=0.25, duration=1.0,
                            steps_per_frame=2)


class TestSimulationConfig:

    def test_defaults_are_valid(self):
        config = SimulationConfig().validate()
        assert (config.width, config.height) == (128, 128)
        assert config.inflow == (0.45, 0.2, 0.15, 0.03, 1.0, 0.0, 3.0)

    @pytest.mark.parametrize("field, value", [
        ("width", 0),
        ("height", -4),
        ("density", 0.0),
        ("timestep", 0.0),
        ("duration", -1.0),
        ("steps_per_frame", 0),
        ("inflow_width", -0.1),
        ("pressure_iterations", 0),
        ("pressure_tolerance", 0.0),
        ("relaxation", "SOR"),
    ])
    def test_invalid_settings(self, field, value):
        config = SimulationConfig(**{field: value})
        with pytest.raises(ValueError):
            config.validate()

    def test_to_dict_is_json_ready(self):
        data = json.loads(json.dumps(SimulationConfig().to_dict()))
        assert data["relaxation"] == "GAUSS_SEIDEL"
        assert data["pressure_iterations"] == 600


class TestFrameRecorder:

    def test_writes_frames_and_metadata(self, tmp_path, small_config):
        rec = FrameRecorder(output_dir=tmp_path, config=small_config)
        meta = rec.run()

        assert meta["frames"] == 2
        assert meta["steps"] == 4
        assert (tmp_path / "Frame00000.png").exists()
        assert (tmp_path / "Frame00001.png").exists()
        assert not (tmp_path / "Frame00002.png").exists()

        saved = json.loads((tmp_path / "metadata.json").read_text())
        assert saved["frames"] == 2
        assert saved["config"]["width"] == 16

    def test_png_matches_density_image(self, tmp_path, small_config):
        rec = FrameRecorder(output_dir=tmp_path, config=small_config)
        rec.advance_frame()
        path = rec.write_frame()

        img = mpimg.imread(path)
        assert img.shape == (16, 16, 4)
        expected = rec.solver.to_image()[..., 0] / 255.0
        assert np.allclose(img[..., 0], expected, atol=1e-6)

    def test_save_fields(self, tmp_path, small_config):
        rec = FrameRecorder(output_dir=tmp_path, config=small_config, save_fields=True)
        rec.advance_frame()
        rec.write_frame()

        fields = tmp_path / "fields"
        assert np.array_equal(np.load(fields / "frame_00000_density.npy"),
                              rec.solver.density.values)
        assert np.array_equal(np.load(fields / "frame_00000_velocity_u.npy"),
                              rec.solver.u.values)
        assert np.array_equal(np.load(fields / "frame_00000_velocity_v.npy"),
                              rec.solver.v.values)
        assert np.array_equal(np.load(fields / "frame_00000_pressure.npy"),
                              rec.solver.pressure)
        assert np.load(fields / "frame_00000_divergence.npy").shape == (16, 16)

    def test_invalid_config_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            FrameRecorder(output_dir=tmp_path, config=SimulationConfig(width=0))


class TestVisualizer:

    def test_update_steps_solver(self, small_config):
        viz = FluidVisualizer(small_config)
        try:
            artists = viz.update(0)
            assert viz.solver.frame == small_config.steps_per_frame
            assert viz.img in artists
            assert np.array_equal(viz.img.get_array(), viz.solver.density.values)
        finally:
            plt.close(viz.fig)

    def test_frames_for_duration(self, small_config):
        viz = FluidVisualizer(small_config)
        try:
            assert viz._frames_for_duration() == 2
        finally:
            plt.close(viz.fig)


class TestCommandLine:

    def test_config_from_args(self):
        args = main.build_parser().parse_args(
            ["--width", "32", "--height", "48", "--relaxation", RELAX_JACOBI,
             "--iterations", "100", "--duration", "0.5"]
        )
        config = main.config_from_args(args)

        assert (config.width, config.height) == (32, 48)
        assert config.relaxation == RELAX_JACOBI
        assert config.pressure_iterations == 100
        assert config.duration == 0.5

    def test_headless_run(self, tmp_path, capsys):
        config = SimulationConfig(width=8, height=8, timestep=0.25, duration=0.5,
                                  steps_per_frame=1)
        main.run_headless(config, output=str(tmp_path))

        assert (tmp_path / "Frame00001.png").exists()
        assert "Frames:" in capsys.readouterr().out
