"""
Demonstration routines for the vision calls.

Each routine runs one call on an image (or image pair) and renders the
result with matplotlib. Figures are returned, and saved when an output
directory is given.

Usage:
    python -m cvflow.demo [IMG1 IMG2] [--out DIR]
"""
import argparse
import logging
import os

import numpy as np

from cvflow.interface import (
    calc_optical_flow, calc_optical_flow_pyr_lk, corner_harris,
    good_features_to_track,
)
from cvflow.io.image_io import load_image, synthetic_pair
from cvflow.methods.config import Method
from cvflow.utils.conversions import first_channel, to_8u, from_8u, to_32f
from cvflow.viz.flow_color import flow_to_hsl
from cvflow.viz.plot_flow import plot_images, plot_flow_fields
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def _save(fig, out_dir, name):
    if out_dir is not None:
        path = os.path.join(out_dir, name)
        fig.savefig(path)
        logger.info('wrote %s', path)
    return fig


def corner_harris_demo(img, out_dir=None):
    harris = corner_harris(img, 5, 3, 0.05)
    fig = plot_images([img, harris], legends=['Original image', 'Harris corners'])
    return [_save(fig, out_dir, 'corner_harris.png')]


def calc_optical_flow_demo(img1, img2, out_dir=None):
    """Run every flow method on a half-size copy of the pair."""
    from skimage.transform import rescale as downscale

    img1 = downscale(first_channel(img1), 0.5, anti_aliasing=True)
    img2 = downscale(first_channel(img2), 0.5, anti_aliasing=True)

    figs = []
    for method in (Method.LK, Method.HS, Method.BM):
        logger.info('calc_optical_flow, method = %s', method.value)
        norm, angle, flow_x, flow_y = calc_optical_flow((img1, img2), method=method)
        rgb = flow_to_hsl(norm, angle)
        fig = plot_images([img1, img2, rgb],
                          legends=['input 1', 'input 2', 'HSL-mapped flow'],
                          title=f'calc_optical_flow, method = {method.value}')
        figs.append(_save(fig, out_dir, f'flow_{method.value}_hsl.png'))
        fig = plot_flow_fields(norm, angle, flow_x, flow_y,
                               title=f'calc_optical_flow, method = {method.value}')
        figs.append(_save(fig, out_dir, f'flow_{method.value}_fields.png'))
    return figs


def good_features_demo(img, out_dir=None):
    points, img_out = good_features_to_track(img, count=125)
    logger.info('good_features_to_track: %d points', points.shape[1])
    fig = plot_images([img_out], legends=['Good features'])
    return [_save(fig, out_dir, 'good_features.png')]


def pyr_lk_demo(img1, img2, out_dir=None):
    norm, angle, flow_x, flow_y, points, img_out = calc_optical_flow_pyr_lk((img1, img2))
    logger.info('calc_optical_flow_pyr_lk: %d points tracked', len(points))
    fig = plot_images([img1, img_out],
                      legends=['previous image', 'current image with flow lines'],
                      title='Optical flow, pyramidal LK')
    return [_save(fig, out_dir, 'pyr_lk.png')]


def conversions_demo(img):
    """Check the 8-bit and 32-bit buffer conversions on img.

    Returns:
        errors: dict of conversion name -> max absolute error.
    """
    errors = {}
    gray = first_channel(img)
    for name, src in (('8U, 1 channel', gray), ('8U, 3 channels', img)):
        errors[name] = float(np.abs(from_8u(to_8u(src)) - src).max())
    for name, src in (('32F, 1 channel', gray), ('32F, 3 channels', img)):
        errors[name] = float(np.abs(to_32f(src) - src.astype(np.float32)).max())

    for name, err in errors.items():
        limit = 1 / 255 if name.startswith('8U') else 0
        if err > limit:
            logger.error('%s: ERROR %g', name, err)
        else:
            logger.info('%s: OK', name)
    return errors


def main(argv=None):
    parser = argparse.ArgumentParser(description='Run the cvflow demonstrations.')
    parser.add_argument('images', nargs='*', help='two image files (default: synthetic pair)')
    parser.add_argument('--out', default=None, help='directory to save figures in')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(levelname)s %(name)s: %(message)s')

    if len(args.images) == 2:
        img1, img2 = (load_image(p) for p in args.images)
    elif not args.images:
        img1, img2 = synthetic_pair(240, 320, shift=(3, 2))
    else:
        parser.error('give either no images or exactly two')

    if args.out is not None:
        os.makedirs(args.out, exist_ok=True)

    conversions_demo(img1)
    figs = corner_harris_demo(img1, args.out)
    figs += calc_optical_flow_demo(img1, img2, args.out)
    figs += good_features_demo(img1, args.out)
    figs += pyr_lk_demo(img1, img2, args.out)
    for fig in figs:
        plt.close(fig)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
