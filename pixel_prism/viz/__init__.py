"""
Visualization module for segmentation results.

Provides image grids and a summary panel (images, palette bar chart and
metrics) built with matplotlib.
"""

from .image_grid import plot_image_grid, plot_cluster_images, plot_segmentation_summary, save_summary_image

__all__ = ['plot_image_grid', 'plot_cluster_images', 'plot_segmentation_summary', 'save_summary_image']
