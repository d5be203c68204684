"""Tests for image buffer conversions."""
import logging
import numpy as np
import pytest
from cvflow.utils.conversions import (
    first_channel, to_8u, to_32f, from_8u, to_bgr8u, from_bgr8u,
)
from cvflow.errors import ShapeMismatchError


class TestFirstChannel:
    """Test channel narrowing."""

    def test_gray_passes_through(self):
        img = np.random.rand(8, 9)
        assert first_channel(img) is img

    def test_color_keeps_first_channel(self, caplog):
        img = np.random.rand(8, 9, 3)
        with caplog.at_level(logging.WARNING):
            out = first_channel(img, 'test')
        np.testing.assert_array_equal(out, img[:, :, 0])
        assert 'first channel' in caplog.text

    def test_single_channel_no_warning(self, caplog):
        img = np.random.rand(8, 9, 1)
        with caplog.at_level(logging.WARNING):
            out = first_channel(img)
        assert out.shape == (8, 9)
        assert caplog.text == ''

    def test_bad_rank(self):
        with pytest.raises(ShapeMismatchError):
            first_channel(np.zeros((2, 3, 4, 5)))


class TestBufferConversions:
    """Test 8-bit and 32-bit conversions."""

    @pytest.mark.parametrize('shape', [(16, 20), (16, 20, 3)])
    def test_8u_error_bound(self, shape):
        img = np.random.rand(*shape)
        buf = to_8u(img)
        assert buf.dtype == np.uint8
        assert buf.shape == shape
        assert np.abs(from_8u(buf) - img).max() <= 1 / 255

    def test_8u_clips(self):
        buf = to_8u(np.array([[-0.5, 0.0, 0.5, 1.0, 2.0]]))
        np.testing.assert_array_equal(buf, [[0, 0, 128, 255, 255]])

    def test_8u_passthrough(self):
        buf = np.arange(12, dtype=np.uint8).reshape(3, 4)
        np.testing.assert_array_equal(to_8u(buf), buf)

    def test_32f_exact(self):
        img = np.random.rand(16, 20, 3).astype(np.float32)
        out = to_32f(img)
        assert out.dtype == np.float32
        np.testing.assert_array_equal(out, img)

    def test_32f_from_8u(self):
        out = to_32f(np.array([[0, 255]], dtype=np.uint8))
        np.testing.assert_allclose(out, [[0.0, 1.0]])

    def test_bgr_round_trip_keeps_rgb_order(self):
        img = np.zeros((4, 4, 3))
        img[:, :, 0] = 1.0  # red
        buf = to_bgr8u(img)
        assert buf[0, 0].tolist() == [0, 0, 255]
        out = from_bgr8u(buf, img)
        np.testing.assert_allclose(out, img)

    def test_bgr_from_gray(self):
        img = np.full((4, 5), 0.5)
        buf = to_bgr8u(img)
        assert buf.shape == (4, 5, 3)
        out = from_bgr8u(buf, img)
        assert out.shape == (4, 5, 3)
        np.testing.assert_allclose(out, 128 / 255)
