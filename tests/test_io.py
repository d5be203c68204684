"""Tests for image loading and synthetic test images."""
import numpy as np
import pytest
from PIL import Image
from cvflow.io.image_io import load_image, synthetic_pair


class TestLoadImage:
    """Test loading images through Pillow."""

    def test_rgb(self, tmp_path):
        data = np.zeros((10, 12, 3), dtype=np.uint8)
        data[:, :, 1] = 255
        path = str(tmp_path / 'green.png')
        Image.fromarray(data).save(path)
        im = load_image(path)
        assert im.shape == (10, 12, 3)
        assert im.dtype == np.float64
        np.testing.assert_allclose(im[:, :, 1], 1.0)
        np.testing.assert_allclose(im[:, :, 0], 0.0)

    def test_gray(self, tmp_path):
        data = np.full((10, 12, 3), 51, dtype=np.uint8)
        path = str(tmp_path / 'gray.png')
        Image.fromarray(data).save(path)
        im = load_image(path, gray=True)
        assert im.shape == (10, 12)
        np.testing.assert_allclose(im, 0.2)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_image(str(tmp_path / 'missing.png'))


class TestSyntheticPair:
    """Test the translated texture pair."""

    def test_shape_and_range(self):
        im1, im2 = synthetic_pair(40, 50)
        assert im1.shape == im2.shape == (40, 50)
        assert im1.min() >= 0 and im1.max() <= 1

    def test_translation(self):
        im1, im2 = synthetic_pair(40, 50, shift=(3, 2))
        np.testing.assert_array_equal(im2[2:, 3:], im1[:-2, :-3])

    def test_deterministic(self):
        a, _ = synthetic_pair(20, 20, seed=5)
        b, _ = synthetic_pair(20, 20, seed=5)
        np.testing.assert_array_equal(a, b)
