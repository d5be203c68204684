"""Tests for the optical flow backends and method dispatch."""
import cv2
import numpy as np
import pytest
from cvflow.methods import backends
from cvflow.methods.backends import block_grid_shape, compute_raw_flow, _dis_frame
from cvflow.methods.config import Method, load_flow_config
from cvflow.utils.conversions import to_8u
from cvflow.errors import BackendError, ShapeMismatchError, UnsupportedMethodError


@pytest.fixture
def pair_8u(synthetic_pair):
    im1, im2 = synthetic_pair
    return to_8u(im1), to_8u(im2)


class TestBlockGrid:
    """Test the size of the block-matching output."""

    def test_default_grid(self):
        assert block_grid_shape((120, 160), 9, 9, 4, 4) == (28, 38)

    def test_block_equals_image(self):
        assert block_grid_shape((9, 9), 9, 9, 4, 4) == (1, 1)

    def test_block_too_large(self):
        with pytest.raises(ShapeMismatchError):
            block_grid_shape((8, 100), 9, 9, 4, 4)


class TestDisFrame:
    """Test the padding applied before patch matching."""

    def test_regular_image_unchanged(self):
        assert _dis_frame((120, 160), 9) == ((120, 160), 1)

    @pytest.mark.parametrize('shape, expected', [
        ((16, 200), (36, 200)),
        ((12, 200), (36, 200)),
        ((200, 12), (200, 36)),
    ])
    def test_thin_image_padded(self, shape, expected):
        frame, finest = _dis_frame(shape, 9)
        assert frame == expected
        assert finest == 1

    def test_small_image_uses_full_resolution(self):
        assert _dis_frame((20, 20), 9) == ((20, 20), 0)


class TestDispatch:
    """Test method dispatch and error wrapping."""

    @pytest.mark.parametrize('method, name', [
        (Method.BM, 'block_matching_flow'),
        (Method.LK, 'lucas_kanade_flow'),
        (Method.HS, 'horn_schunck_flow'),
    ])
    def test_each_method_has_one_backend(self, monkeypatch, pair_8u, method, name):
        assert backends._BACKENDS[method] is getattr(backends, name)
        calls = []

        def fake(prev, nxt, config):
            calls.append(config.method)
            return np.zeros(prev.shape), np.zeros(prev.shape)

        monkeypatch.setitem(backends._BACKENDS, method, fake)
        compute_raw_flow(*pair_8u, load_flow_config(method))
        assert calls == [method]

    def test_missing_backend(self, monkeypatch, pair_8u):
        monkeypatch.delitem(backends._BACKENDS, Method.LK)
        with pytest.raises(UnsupportedMethodError):
            compute_raw_flow(*pair_8u, load_flow_config('LK'))

    def test_backend_error_is_wrapped(self, monkeypatch, pair_8u):
        def failing(prev, nxt, config):
            raise cv2.error('boom')

        monkeypatch.setitem(backends._BACKENDS, Method.HS, failing)
        with pytest.raises(BackendError) as excinfo:
            compute_raw_flow(*pair_8u, load_flow_config('HS'))
        assert isinstance(excinfo.value.__cause__, cv2.error)

    def test_pair_shape_mismatch(self, pair_8u):
        prev, nxt = pair_8u
        with pytest.raises(ShapeMismatchError):
            compute_raw_flow(prev, nxt[:-1], load_flow_config('BM'))


class TestBackends:
    """Run the real backends on a translated texture."""

    def test_block_matching_grid(self, pair_8u):
        flow_x, flow_y = compute_raw_flow(*pair_8u, load_flow_config('BM'))
        assert flow_x.shape == (28, 38)
        assert flow_y.shape == (28, 38)
        assert np.all(np.isfinite(flow_x))

    def test_block_matching_window_clip(self, pair_8u):
        config = load_flow_config('BM', {'window_w': 1, 'window_h': 1})
        flow_x, flow_y = compute_raw_flow(*pair_8u, config)
        assert np.abs(flow_x).max() <= 1
        assert np.abs(flow_y).max() <= 1

    def test_block_matching_reuse(self, pair_8u):
        previous = load_flow_config('BM')
        prev_x, prev_y = compute_raw_flow(*pair_8u, previous)
        config = load_flow_config('BM', {'reuse': True, 'flow_x': prev_x, 'flow_y': prev_y})
        flow_x, flow_y = compute_raw_flow(*pair_8u, config)
        assert flow_x.shape == prev_x.shape

    def test_lucas_kanade_full_resolution(self, pair_8u):
        flow_x, flow_y = compute_raw_flow(*pair_8u, load_flow_config('LK'))
        assert flow_x.shape == (120, 160)
        assert flow_y.shape == (120, 160)

    @pytest.mark.slow
    def test_lucas_kanade_direction(self, pair_8u):
        """The second image moves right and down."""
        flow_x, flow_y = compute_raw_flow(*pair_8u, load_flow_config('LK'))
        inner = (slice(15, -15), slice(15, -15))
        assert np.median(flow_x[inner]) > 1.0
        assert np.median(flow_y[inner]) > 0.5

    def test_horn_schunck_full_resolution(self, pair_8u):
        flow_x, flow_y = compute_raw_flow(*pair_8u, load_flow_config('HS'))
        assert flow_x.shape == (120, 160)
        assert np.all(np.isfinite(flow_x)) and np.all(np.isfinite(flow_y))

    def test_horn_schunck_reuse(self, pair_8u):
        config = load_flow_config('HS', {'reuse': True,
                                         'flow_x': np.full((30, 40), 2.0),
                                         'flow_y': np.full((30, 40), 1.0)})
        flow_x, flow_y = compute_raw_flow(*pair_8u, config)
        assert flow_x.shape == (120, 160)

    @pytest.mark.parametrize('shape, grid', [
        ((16, 200), (2, 48)),
        ((12, 200), (1, 48)),
        ((200, 16), (48, 2)),
    ])
    def test_block_matching_thin_images(self, shape, grid):
        rng = np.random.default_rng(3)
        prev = to_8u(rng.random(shape))
        nxt = to_8u(rng.random(shape))
        flow_x, flow_y = compute_raw_flow(prev, nxt, load_flow_config('BM'))
        assert flow_x.shape == grid
        assert flow_y.shape == grid
        assert np.all(np.isfinite(flow_x)) and np.all(np.isfinite(flow_y))
