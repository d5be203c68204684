"""Flow visualization utilities."""
import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from cvflow.viz.flow_color import flow_to_hsl


def plot_flow(norm, angle, style='hsl', ax=None, flow=None, step=8):
    """Plot a derived flow field.

    Args:
        norm, angle: Flow magnitude and direction (H, W).
        style: 'hsl' (colour coded), 'magnitude', 'angle' or 'quiver'.
        ax: matplotlib axes. If None, creates new figure.
        flow: (flow_x, flow_y), required for 'quiver'.
        step: Step size for quiver plots.

    Returns:
        ax: The matplotlib axes used.
    """
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=(8, 6))

    if style == 'hsl':
        ax.imshow(flow_to_hsl(norm, angle))
        ax.set_title('Optical Flow (HSL)')
    elif style == 'magnitude':
        ax.imshow(norm, cmap='gray')
        ax.set_title('Flow Magnitude')
    elif style == 'angle':
        ax.imshow(angle, cmap='hsv', vmin=0, vmax=360)
        ax.set_title('Flow Direction')
    elif style == 'quiver':
        if flow is None:
            raise ValueError("quiver style needs flow=(flow_x, flow_y)")
        u, v = flow
        H, W = u.shape
        Y, X = np.mgrid[0:H:step, 0:W:step]
        ax.quiver(X, Y, u[::step, ::step], v[::step, ::step], angles='xy')
        ax.set_ylim(H, 0)
        ax.set_xlim(0, W)
        ax.set_aspect('equal')
        ax.set_title('Optical Flow (Quiver)')
    else:
        raise ValueError(f"Unknown style: {style}")

    ax.axis('off')
    return ax


def plot_images(images, legends=None, title=None):
    """Show images side by side in one figure.

    Args:
        images: List of (H, W) or (H, W, 3) arrays.
        legends: Optional per-image titles.
        title: Optional figure title.

    Returns:
        fig: The matplotlib figure.
    """
    fig, axes = plt.subplots(1, len(images), figsize=(4 * len(images), 4),
                             squeeze=False)
    legends = legends or [''] * len(images)
    for ax, img, legend in zip(axes[0], images, legends):
        ax.imshow(img, cmap='gray' if np.ndim(img) == 2 else None)
        ax.set_title(legend)
        ax.axis('off')
    if title:
        fig.suptitle(title)
    return fig


def plot_flow_fields(norm, angle, flow_x, flow_y, title=None):
    """Show the four outputs of calc_optical_flow in one figure."""
    return plot_images([norm, angle, flow_x, flow_y],
                       legends=['norm', 'angle', 'flow x', 'flow y'],
                       title=title)
