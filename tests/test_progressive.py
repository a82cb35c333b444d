"""Tests for the progressive renderer.

This module tests the ProgressiveRenderer class including:
- Initialization and setup
- Progressive sample accumulation
- Batch rendering
- Progress callbacks and generators
- Reset and resize
- Image output in various formats

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import logging

import numpy as np
import pytest


@pytest.fixture
def simple_scene(setup_test_camera):
    """Set up one diffuse sphere in front of the test camera."""
    from spheretracer.scene.manager import SceneManager

    scene = SceneManager()
    mat_id = scene.add_lambertian_material((0.5, 0.5, 0.5))
    scene.add_sphere((0.0, 0.0, -2.0), 1.0, mat_id)
    return scene


class TestProgressiveRendererInit:
    """Test ProgressiveRenderer initialization."""

    def test_init_creates_render_target(self):
        """Test that initialization creates a render target with correct dimensions."""
        from spheretracer.core.integrator import get_image_dimensions
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(128, 96, max_depth=7, seed=3)

        assert renderer.width == 128
        assert renderer.height == 96
        assert renderer.max_depth == 7
        assert renderer.seed == 3
        assert renderer.sample_count == 0
        assert get_image_dimensions() == (128, 96)

    def test_init_rejects_oversized_dimensions(self):
        """Test that initialization rejects dimensions exceeding max size."""
        from spheretracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="exceed maximum"):
            ProgressiveRenderer(4096, 100)

    def test_init_rejects_negative_depth(self):
        """Test that a negative depth budget is rejected."""
        from spheretracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="max_depth"):
            ProgressiveRenderer(16, 16, max_depth=-1)

    @pytest.mark.parametrize("seed", [-1, 2**31, 2**31 + 5])
    def test_init_rejects_out_of_range_seed(self, seed):
        """Test seeds that do not fit an i32 kernel argument are rejected."""
        from spheretracer.core.progressive import ProgressiveRenderer

        with pytest.raises(ValueError, match="seed"):
            ProgressiveRenderer(4, 4, seed=seed)


class TestProgressiveRendererReset:
    """Test reset and resize."""

    def test_reset_clears_samples(self, simple_scene):
        """Test that reset clears the samples and the image."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(3)
        assert renderer.sample_count == 3

        renderer.reset()
        assert renderer.sample_count == 0
        assert renderer.get_image_numpy().max() == 0.0

    def test_resize_changes_dimensions(self, simple_scene):
        """Test that resize changes the size and resets samples."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(2)

        renderer.resize(20, 10)
        assert (renderer.width, renderer.height) == (20, 10)
        assert renderer.sample_count == 0
        assert renderer.get_image_numpy().shape == (10, 20, 3)


class TestProgressiveRendererRender:
    """Test render functionality."""

    def test_render_accumulates_samples(self, simple_scene):
        """Test that render accumulates samples correctly."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(5)
        assert renderer.sample_count == 5

        renderer.render(10)
        assert renderer.sample_count == 15

    @pytest.mark.parametrize("num_samples", [0, -10])
    def test_render_non_positive_samples_does_nothing(self, simple_scene, num_samples):
        """Test that rendering zero or negative samples has no effect."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(5)
        renderer.render(num_samples)
        assert renderer.sample_count == 5

    def test_render_with_batch_size(self, simple_scene):
        """Test rendering with a batch size that does not divide the total."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)

        # 10 samples = 3 + 3 + 3 + 1
        renderer.render(10, batch_size=3)
        assert renderer.sample_count == 10

    def test_invalid_batch_size(self, simple_scene):
        """Test a non-positive batch size is rejected."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        with pytest.raises(ValueError, match="batch_size"):
            renderer.render(4, batch_size=0)

    def test_batch_size_does_not_change_image(self, simple_scene):
        """Test the image depends on the sample total, not the batching."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(12, 12, max_depth=5, seed=9)
        renderer.render(6, batch_size=6)
        single = renderer.get_image_numpy()

        renderer.reset()
        renderer.render(6, batch_size=4)
        batched = renderer.get_image_numpy()

        np.testing.assert_allclose(single, batched, rtol=1e-12, atol=1e-15)

    def test_render_logs_progress(self, simple_scene, caplog):
        """Test rendering reports start and finish through logging."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 8)
        with caplog.at_level(logging.INFO, logger="spheretracer.core.progressive"):
            renderer.render(2)

        assert "Rendering 2 spp" in caplog.text
        assert "Finished rendering" in caplog.text


class TestProgressiveRendererCallbacks:
    """Test progress reporting."""

    def test_callback_receives_progress(self, simple_scene):
        """Test the callback sees every batch."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        updates: list[tuple[int, int]] = []

        renderer.render(10, batch_size=4, callback=lambda c, t: updates.append((c, t)))

        assert updates == [(4, 10), (8, 10), (10, 10)]

    def test_callback_with_existing_samples(self, simple_scene):
        """Test progress counts include samples from earlier calls."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(5)

        updates: list[tuple[int, int]] = []
        renderer.render(4, batch_size=2, callback=lambda c, t: updates.append((c, t)))

        assert updates == [(7, 9), (9, 9)]

    def test_render_progressive_yields_progress(self, simple_scene):
        """Test the generator interface yields once per batch."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        progress = list(renderer.render_progressive(num_samples=6, batch_size=2))

        assert progress == [(2, 6), (4, 6), (6, 6)]

    def test_render_progressive_interruptible(self, simple_scene):
        """Test stopping the generator early keeps the finished batches."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(16, 16)
        for current, _ in renderer.render_progressive(num_samples=100, batch_size=5):
            if current >= 10:
                break

        assert renderer.sample_count == 10


class TestProgressiveRendererImageOutput:
    """Test image output."""

    def test_get_image_numpy(self, simple_scene):
        """Test the linear image shape and values."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(32, 24)
        renderer.render(2)

        image = renderer.get_image_numpy()
        assert image.shape == (24, 32, 3)
        assert image.dtype == np.float64
        assert np.all(image >= 0.0)

    def test_get_image_uint8(self, simple_scene):
        """Test the 8-bit image applies the byte conversion."""
        from spheretracer.core.progressive import ProgressiveRenderer
        from spheretracer.preview.export import image_to_uint8

        renderer = ProgressiveRenderer(16, 16)
        renderer.render(2)

        pixels = renderer.get_image_uint8()
        assert pixels.dtype == np.uint8
        np.testing.assert_array_equal(pixels, image_to_uint8(renderer.get_image_numpy()))

    def test_save_image(self, simple_scene, tmp_path):
        """Test saving to PPM and PNG."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(8, 4)
        renderer.render(1)

        renderer.save_image(tmp_path / "out.ppm")
        renderer.save_image(tmp_path / "out.png")

        assert (tmp_path / "out.ppm").read_text().startswith("P3\n8 4\n255\n")
        assert (tmp_path / "out.png").exists()


class TestProgressiveRendererRepr:
    """Test string representation."""

    def test_repr_shows_state(self, simple_scene):
        """Test that __repr__ shows renderer state."""
        from spheretracer.core.progressive import ProgressiveRenderer

        renderer = ProgressiveRenderer(64, 48)
        renderer.render(1)

        repr_str = repr(renderer)
        assert "width=64" in repr_str
        assert "height=48" in repr_str
        assert "samples=1" in repr_str
