"""Tests for the centroid-based variant."""

from __future__ import annotations

import numpy as np
import pytest

from pixel_prism.clustering import KMeans, KMeansConfig
from pixel_prism.errors import ConfigurationError, SegmentationAborted
from pixel_prism.preprocessing import extract_features


class TestKMeansConfig:
    @pytest.mark.parametrize("kwargs", [
        {'n_clusters': 0},
        {'max_iter': 0},
        {'spatial_weight': -0.1},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            KMeansConfig(**kwargs)


class TestKMeans:
    def test_single_cluster(self, solid_red):
        result = KMeans(KMeansConfig(n_clusters=1)).fit_predict(extract_features(solid_red))
        assert np.all(result.labels == 0)
        np.testing.assert_allclose(result.centers, [[255.0, 0.0, 0.0]])
        assert result.converged

    def test_separates_two_colors(self, red_blue):
        features = extract_features(red_blue)
        result = KMeans(KMeansConfig(n_clusters=2), rng=np.random.default_rng(0)).fit_predict(features)
        labels = result.reshape_labels((8, 8))
        assert len(np.unique(labels[:, :4])) == 1
        assert len(np.unique(labels[:, 4:])) == 1
        assert labels[0, 0] != labels[0, 7]
        centers = {tuple(np.round(c)) for c in result.centers}
        assert centers == {(255.0, 0.0, 0.0), (0.0, 0.0, 255.0)}

    def test_same_seed_same_labels(self, noisy_image):
        features = extract_features(noisy_image)
        first = KMeans(KMeansConfig(n_clusters=4), rng=np.random.default_rng(11)).fit_predict(features)
        second = KMeans(KMeansConfig(n_clusters=4), rng=np.random.default_rng(11)).fit_predict(features)
        np.testing.assert_array_equal(first.labels, second.labels)
        np.testing.assert_array_equal(first.centers, second.centers)

    def test_random_state_used_without_rng(self, noisy_image):
        features = extract_features(noisy_image)
        first = KMeans(KMeansConfig(n_clusters=3, random_state=5)).fit_predict(features)
        second = KMeans(KMeansConfig(n_clusters=3, random_state=5)).fit_predict(features)
        np.testing.assert_array_equal(first.labels, second.labels)

    def test_stops_within_iteration_cap(self, noisy_image):
        features = extract_features(noisy_image)
        result = KMeans(KMeansConfig(n_clusters=5, max_iter=3)).fit_predict(features)
        assert 1 <= result.n_iter <= 3
        assert result.labels.min() >= 0
        assert result.labels.max() < 5

    def test_iteration_stops_on_noise(self, noisy_image):
        features = extract_features(noisy_image)
        result = KMeans(KMeansConfig(n_clusters=5)).fit_predict(features)
        assert 1 <= result.n_iter <= 100
        assert len(result.labels) == len(features)

    def test_more_clusters_than_distinct_points(self):
        features = np.array([[0, 0, 0, 0, 0], [200, 200, 200, 0, 0]] * 3, dtype=np.float64)
        result = KMeans(KMeansConfig(n_clusters=4), rng=np.random.default_rng(2)).fit_predict(features)
        assert not np.any(np.isnan(result.centers))
        assert result.centers.shape == (4, 3)
        assert result.n_clusters == 2

    def test_init_centers_are_data_points(self, noisy_image):
        features = extract_features(noisy_image)
        kmeans = KMeans(KMeansConfig(n_clusters=5))
        centers = kmeans.init_centers(features, np.random.default_rng(4))
        for center in centers:
            assert np.any(np.all(features == center, axis=1))

    def test_abort_hook(self, noisy_image):
        with pytest.raises(SegmentationAborted):
            KMeans().fit_predict(extract_features(noisy_image), should_abort=lambda: True)

    def test_rejects_wrong_shape(self):
        with pytest.raises(ValueError):
            KMeans().fit_predict(np.zeros((4, 3)))
