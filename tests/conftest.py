"""Shared fixtures for cvflow tests."""
import numpy as np
import pytest


def pytest_configure(config):
    config.addinivalue_line('markers', 'slow: runs a full vision backend on larger images')


@pytest.fixture
def synthetic_pair():
    """Smooth texture pair, second image shifted by (dx, dy) = (2, 1)."""
    from cvflow.io.image_io import synthetic_pair
    return synthetic_pair(120, 160, shift=(2, 1), seed=42)


@pytest.fixture
def color_pair(synthetic_pair):
    """The synthetic pair as (H, W, 3) images."""
    im1, im2 = synthetic_pair
    return np.dstack([im1] * 3), np.dstack([im2] * 3)


@pytest.fixture
def checkerboard():
    """128x128 float checkerboard with 16-pixel squares."""
    idx = np.arange(128) // 16
    board = ((idx[:, None] + idx[None, :]) % 2).astype(np.float64)
    return board


@pytest.fixture
def random_flow():
    """Random flow field (fx, fy) of shape (12, 17)."""
    rng = np.random.default_rng(7)
    return rng.normal(size=(12, 17)) * 3, rng.normal(size=(12, 17)) * 3
