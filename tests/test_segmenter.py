"""End-to-end tests for segment()."""

from __future__ import annotations

import json

import numpy as np
import pytest

from pixel_prism import (
    ConfigurationError,
    DecodeError,
    ProcessingOptions,
    SegmentationAborted,
    UnsupportedInputError,
    segment
)
from pixel_prism.clustering import Algorithm, DBSCANConfig, KMeansConfig
from pixel_prism.report import decode_png, palette_color


class TestSegment:
    def test_solid_red_single_cluster(self, solid_red_png):
        result = segment(solid_red_png, 'kmeans', config=KMeansConfig(n_clusters=1))

        assert result.algorithm == 'kmeans'
        assert result.n_clusters == 1
        assert len(result.cluster_stats) == 1
        stat = result.cluster_stats[0]
        assert stat.pixel_count == 16
        assert stat.percentage == pytest.approx(100.0)
        assert (result.width, result.height) == (4, 4)
        assert result.total_pixels == 16

    def test_black_white_dbscan(self, black_white_png):
        result = segment(black_white_png, 'dbscan', config=DBSCANConfig(eps=100.0, min_pts=2))
        assert result.n_clusters == 2
        assert result.noise_count == 0
        assert [stat.percentage for stat in result.cluster_stats] == [50.0, 50.0]

    def test_black_white_dbscan_all_noise(self, black_white_png):
        result = segment(black_white_png, 'dbscan', config=DBSCANConfig(eps=100.0, min_pts=3))
        assert result.n_clusters == 0
        assert result.noise_count == 4
        segmented = decode_png(result.segmented_image)
        assert np.all(segmented[..., :3] == 0)
        assert np.all(segmented[..., 3] == 255)

    def test_red_blue_kmeans_images(self, red_blue_png):
        result = segment(red_blue_png, Algorithm.KMEANS, config=KMeansConfig(n_clusters=2))
        assert result.n_clusters == 2
        assert len(result.cluster_images) == 2

        segmented = decode_png(result.segmented_image)
        assert segmented.shape == (8, 8, 4)
        left = tuple(segmented[0, 0, :3])
        right = tuple(segmented[0, 7, :3])
        assert {left, right} == {palette_color(0), palette_color(1)}
        assert np.all(segmented[:, :4, :3] == left)
        assert np.all(segmented[:, 4:, :3] == right)

        for stat, image in zip(result.cluster_stats, result.cluster_images):
            decoded = decode_png(image)
            members = decoded[..., 3] == 255
            assert int(members.sum()) == stat.pixel_count
            assert np.all(decoded[members, :3] == stat.dominant_color)

    def test_mode_seeking_alias(self, red_blue_png):
        result = segment(red_blue_png, 'mode_seeking')
        assert result.algorithm == 'meanshift'
        assert result.n_clusters == 2

    def test_accepts_arrays(self, red_blue):
        result = segment(red_blue, 'kmeans', config=KMeansConfig(n_clusters=2))
        assert result.n_clusters == 2

    def test_resize(self, red_blue_png):
        options = ProcessingOptions(target_width=4, target_height=2)
        result = segment(red_blue_png, 'kmeans', options, config=KMeansConfig(n_clusters=2))
        assert (result.width, result.height) == (4, 2)
        assert sum(stat.pixel_count for stat in result.cluster_stats) == 8

    def test_placeholder_metrics_by_default(self, solid_red_png):
        result = segment(solid_red_png, config=KMeansConfig(n_clusters=1))
        assert result.metrics.is_placeholder
        assert result.silhouette_score == 0.75
        assert result.calinski_harabasz == 1500.0
        assert result.davies_bouldin == 0.5

    def test_computed_metrics(self, red_blue_png):
        options = ProcessingOptions(compute_metrics=True)
        result = segment(red_blue_png, 'kmeans', options, config=KMeansConfig(n_clusters=2))
        assert not result.metrics.is_placeholder
        assert result.silhouette_score > 0.5

    def test_edge_map_only_when_enabled(self, red_blue_png):
        plain = segment(red_blue_png, config=KMeansConfig(n_clusters=2))
        assert plain.edge_map is None

        options = ProcessingOptions(edge_detection=True)
        edged = segment(red_blue_png, options=options, config=KMeansConfig(n_clusters=2))
        assert edged.edge_map is not None
        assert edged.edge_map == edged.preprocessed_image

    def test_centers_shape(self, red_blue_png):
        result = segment(red_blue_png, config=KMeansConfig(n_clusters=3))
        assert result.centers.shape == (3, 3)

    def test_to_dict_is_json_serializable(self, black_white_png):
        result = segment(black_white_png, 'dbscan', config=DBSCANConfig(eps=100.0, min_pts=2))
        data = result.to_dict('bw.png')
        encoded = json.loads(json.dumps(data))

        assert encoded['filename'] == 'bw.png'
        assert encoded['algorithm'] == 'dbscan'
        assert encoded['size'] == {'width': 2, 'height': 2}
        assert encoded['metrics']['clusters'] == 2
        assert encoded['metrics']['isPlaceholder'] is True
        assert len(encoded['colorPalette']) == 2

    def test_save_json(self, solid_red_png, tmp_path):
        result = segment(solid_red_png, config=KMeansConfig(n_clusters=1))
        path = result.save_json(tmp_path / 'result.json')
        assert json.loads(path.read_text())['filename'] == 'segmented_image'

    def test_str(self, solid_red_png):
        result = segment(solid_red_png, config=KMeansConfig(n_clusters=1))
        assert 'kmeans' in str(result)
        assert '4x4' in str(result)


class TestSegmentErrors:
    def test_pdf_rejected(self):
        with pytest.raises(UnsupportedInputError):
            segment(b'%PDF-1.7\n%\xe2\xe3\xcf\xd3\n')

    def test_garbage_bytes(self):
        with pytest.raises(DecodeError):
            segment(b'definitely not an image')

    def test_unknown_algorithm(self, solid_red_png):
        with pytest.raises(ConfigurationError):
            segment(solid_red_png, 'spectral')

    def test_config_mismatch(self, solid_red_png):
        with pytest.raises(ConfigurationError):
            segment(solid_red_png, 'dbscan', config=KMeansConfig())

    def test_abort(self, red_blue_png):
        with pytest.raises(SegmentationAborted):
            segment(red_blue_png, 'meanshift', should_abort=lambda: True)
