"""
Visualization utilities for segmentation results.

Renders the preprocessed and segmented images side by side together with a
bar chart of cluster percentages drawn in each cluster's palette color, and
a caption with the run's metrics.
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
import matplotlib.pyplot as plt

from ..report import decode_png


def _as_array(image: Union[bytes, np.ndarray]) -> np.ndarray:
    if isinstance(image, (bytes, bytearray)):
        return decode_png(bytes(image))
    return image


def plot_image_grid(
    images: List[Union[bytes, np.ndarray]],
    titles: List[str],
    figsize: Tuple[int, int] = (18, 6)
) -> plt.Figure:
    """
    Show several images side by side in one row.

    Args:
        images: PNG bytes or uint8 arrays (H, W, 3|4); sizes may differ
        titles: One title per image
        figsize: Figure size in inches

    Returns:
        fig: Matplotlib figure with axes hidden

    Raises:
        ValueError: If images and titles differ in length, or are empty
    """
    if len(images) != len(titles):
        raise ValueError(
            f"Number of images ({len(images)}) must match number of titles ({len(titles)})"
        )
    if not images:
        raise ValueError("At least one image is required")

    fig, axes = plt.subplots(1, len(images), figsize=figsize)
    axes = np.atleast_1d(axes)

    for ax, image, title in zip(axes, images, titles):
        ax.imshow(_as_array(image))
        ax.axis('off')
        ax.set_title(title, fontsize=14, pad=10)

    plt.tight_layout()
    return fig


def plot_cluster_images(result, max_columns: int = 5) -> plt.Figure:
    """
    Grid with one panel per cluster, titled C<id> and its percentage.

    Args:
        result: SegmentationResult
        max_columns: Panels per row

    Returns:
        fig: Matplotlib figure
    """
    n = max(len(result.cluster_images), 1)
    n_cols = min(n, max_columns)
    n_rows = int(np.ceil(n / n_cols))
    fig, axes = plt.subplots(n_rows, n_cols, figsize=(3.5 * n_cols, 3.5 * n_rows))
    axes = np.atleast_1d(axes).ravel()

    for ax in axes:
        ax.axis('off')
    for ax, stat, image in zip(axes, result.cluster_stats, result.cluster_images):
        ax.imshow(decode_png(image))
        ax.set_title(f'C{stat.cluster_id} - {stat.percentage:.1f}%', fontsize=11)

    plt.tight_layout()
    return fig


def plot_segmentation_summary(
    result,
    figsize: Tuple[int, int] = (18, 6)
) -> plt.Figure:
    """
    Summary panel of a segmentation run.

    - Column 1: Preprocessed image (the buffer that was clustered)
    - Column 2: Segmented image in palette colors
    - Column 3: Bar chart of cluster percentages in palette colors

    The figure title lists algorithm, cluster count, silhouette score and
    processing time; placeholder metrics are marked as such.

    Args:
        result: SegmentationResult
        figsize: Figure size in inches

    Returns:
        fig: Matplotlib figure

    Example:
        >>> result = segment(png_bytes, 'kmeans')
        >>> fig = plot_segmentation_summary(result)
        >>> fig.savefig('summary.png')
    """
    fig, (ax_input, ax_segmented, ax_colors) = plt.subplots(1, 3, figsize=figsize)

    ax_input.imshow(decode_png(result.preprocessed_image))
    ax_input.axis('off')
    ax_input.set_title('Preprocessed Image', fontsize=12, pad=10)

    ax_segmented.imshow(decode_png(result.segmented_image))
    ax_segmented.axis('off')
    ax_segmented.set_title(f'Segmented Result (K={result.n_clusters})', fontsize=12, pad=10)

    stats = result.cluster_stats
    percentages = [stat.percentage for stat in stats]
    colors = [np.array(stat.dominant_color) / 255.0 for stat in stats]
    x_pos = np.arange(len(stats))
    bars = ax_colors.bar(x_pos, percentages, color=colors, edgecolor='black', linewidth=1.5)

    ax_colors.set_xlabel('Cluster', fontsize=10)
    ax_colors.set_ylabel('Pixels (%)', fontsize=10)
    ax_colors.set_title('Color Palette', fontsize=12, pad=10)
    ax_colors.set_xticks(x_pos)
    ax_colors.set_xticklabels([f'C{stat.cluster_id}' for stat in stats])
    ax_colors.set_ylim(0, max(percentages + [1.0]) * 1.1)

    for bar, percentage in zip(bars, percentages):
        ax_colors.text(
            bar.get_x() + bar.get_width() / 2.,
            bar.get_height(),
            f'{percentage:.1f}%',
            ha='center',
            va='bottom',
            fontsize=8
        )

    silhouette = f'{result.silhouette_score:.3f}'
    if result.metrics.is_placeholder:
        silhouette += ' (placeholder)'
    fig.suptitle(
        f'Algorithm: {result.algorithm.upper()} | Clusters: {result.n_clusters} | '
        f'Silhouette Score: {silhouette} | Processing Time: {result.processing_time:.2f}s',
        fontsize=13
    )

    plt.tight_layout()
    return fig


def save_summary_image(
    result,
    path: Union[str, Path],
    dpi: Optional[int] = 100
) -> Path:
    """
    Render plot_segmentation_summary() to an image file and close the figure.

    Returns:
        path: The written path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig = plot_segmentation_summary(result)
    try:
        fig.savefig(path, dpi=dpi)
    finally:
        plt.close(fig)
    return path
