"""Tests for the density-based variant."""

from __future__ import annotations

from collections import deque

import numpy as np
import pytest

from pixel_prism.clustering import NOISE_LABEL, DBSCAN, DBSCANConfig, combined_distance
from pixel_prism.clustering import dbscan as dbscan_module
from pixel_prism.errors import ConfigurationError, SegmentationAborted
from pixel_prism.preprocessing import extract_features
from tests.conftest import make_buffer


def reference_dbscan(features, eps, min_pts):
    """Quadratic-scan DBSCAN with the same expansion order."""
    n = len(features)
    labels = np.full(n, -2)
    cluster_id = -1

    def neighbors(i):
        return np.flatnonzero(combined_distance(features, features[i]) <= eps)

    for i in range(n):
        if labels[i] != -2:
            continue
        seed = neighbors(i)
        if len(seed) < min_pts:
            labels[i] = -1
            continue
        cluster_id += 1
        labels[i] = cluster_id
        queue = deque(seed)
        while queue:
            j = queue.popleft()
            if labels[j] == -1:
                labels[j] = cluster_id
                continue
            if labels[j] != -2:
                continue
            labels[j] = cluster_id
            expansion = neighbors(j)
            if len(expansion) >= min_pts:
                queue.extend(k for k in expansion if labels[k] in (-1, -2))
    return labels


class TestDBSCANConfig:
    def test_adaptive_parameters(self):
        eps, min_pts = DBSCANConfig().resolve(600 * 400)
        assert eps == pytest.approx(np.sqrt(240000) * 0.05)
        assert min_pts == 120

    def test_min_pts_floor(self):
        assert DBSCANConfig().resolve(100)[1] == 4

    def test_explicit_parameters_win(self):
        assert DBSCANConfig(eps=12.0, min_pts=2).resolve(10 ** 6) == (12.0, 2)

    def test_eps_grows_with_resolution(self):
        small, _ = DBSCANConfig().resolve(100 * 100)
        large, _ = DBSCANConfig().resolve(400 * 400)
        assert large == pytest.approx(small * 4)

    @pytest.mark.parametrize("kwargs", [
        {'eps': 0},
        {'min_pts': 0},
        {'eps_scale': -1},
        {'min_pts_floor': 0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            DBSCANConfig(**kwargs)


class TestDBSCAN:
    def test_black_white_two_clusters(self, black_white):
        features = extract_features(black_white)
        result = DBSCAN(DBSCANConfig(eps=100.0, min_pts=2)).fit_predict(features)
        assert result.n_clusters == 2
        assert result.labels[0] == result.labels[1]
        assert result.labels[2] == result.labels[3]
        assert result.labels[0] != result.labels[2]
        assert result.noise_count == 0

    def test_black_white_all_noise_when_min_pts_too_high(self, black_white):
        features = extract_features(black_white)
        result = DBSCAN(DBSCANConfig(eps=100.0, min_pts=3)).fit_predict(features)
        assert np.all(result.labels == NOISE_LABEL)
        assert result.n_clusters == 0
        assert result.centers.shape == (0, 3)

    def test_large_eps_merges_everything(self, black_white):
        features = extract_features(black_white)
        result = DBSCAN(DBSCANConfig(eps=1000.0, min_pts=1)).fit_predict(features)
        assert result.n_clusters == 1

    def test_centers_are_member_color_means(self, red_blue):
        features = extract_features(red_blue)
        result = DBSCAN(DBSCANConfig(eps=50.0, min_pts=3)).fit_predict(features)
        assert result.n_clusters == 2
        np.testing.assert_allclose(result.centers[result.labels[0]], [255, 0, 0])
        np.testing.assert_allclose(result.centers[result.labels[-1]], [0, 0, 255])

    def test_matches_quadratic_reference(self, noisy_image):
        features = extract_features(noisy_image)
        for eps, min_pts in ((60.0, 3), (90.0, 5), (140.0, 8)):
            result = DBSCAN(DBSCANConfig(eps=eps, min_pts=min_pts)).fit_predict(features)
            np.testing.assert_array_equal(result.labels, reference_dbscan(features, eps, min_pts))

    def test_every_point_labeled(self, noisy_image):
        features = extract_features(noisy_image)
        result = DBSCAN(DBSCANConfig(eps=80.0, min_pts=4)).fit_predict(features)
        assert len(result.labels) == len(features)
        assert result.labels.min() >= NOISE_LABEL

    def test_border_point_reclaimed_from_noise(self):
        # point 0 is visited first with a single neighbor (noise), then
        # absorbed by the dense group it borders
        features = np.array([
            [0, 0, 0, 0, 0],
            [8, 0, 0, 0, 0],
            [12, 0, 0, 0, 0],
            [14, 0, 0, 0, 0],
            [16, 0, 0, 0, 0],
        ], dtype=np.float64)
        result = DBSCAN(DBSCANConfig(eps=8.0, min_pts=4)).fit_predict(features)
        np.testing.assert_array_equal(result.labels, [0, 0, 0, 0, 0])

    def test_abort_hook(self, noisy_image):
        with pytest.raises(SegmentationAborted):
            DBSCAN(DBSCANConfig(eps=50.0, min_pts=2)).fit_predict(
                extract_features(noisy_image), should_abort=lambda: True
            )

    def test_not_iterative(self, black_white):
        result = DBSCAN(DBSCANConfig(eps=100.0, min_pts=2)).fit_predict(extract_features(black_white))
        assert result.n_iter == 0

    @pytest.mark.parametrize("size", [20, 40])
    def test_each_point_queued_once(self, monkeypatch, size):
        peaks = []

        class RecordingDeque(deque):
            def __init__(self, items=()):
                super().__init__(items)
                peaks.append(len(self))

            def extend(self, items):
                super().extend(items)
                peaks.append(len(self))

        monkeypatch.setattr(dbscan_module, 'deque', RecordingDeque)
        features = extract_features(make_buffer(size, size))
        result = DBSCAN().fit_predict(features)

        assert result.n_clusters == 1
        assert max(peaks) < len(features)
