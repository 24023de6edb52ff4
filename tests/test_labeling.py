"""Tests for contrastive cluster labeling."""

import numpy as np
import pandas as pd
import pytest

from docsim.errors import (
    DimensionMismatch,
    IndexOutOfRange,
    InvalidClusterCount,
    InvalidRequestSize,
    LabelingError,
)
from docsim.pipeline.labeling import (
    diff_vector,
    label_clusters,
    top_features,
    top_raw_features,
)


@pytest.fixture
def centers():
    return [[4, 0, 0, 0], [0, 4, 0, 0], [0, 0, 4, 4]]


class TestTopFeatures:
    def test_first_cluster_is_its_own_axis(self, centers):
        assert top_features(centers, 0, 1) == [0]

    def test_tie_broken_by_lower_index(self, centers):
        assert top_features(centers, 2, 2) == [2, 3]

    def test_diff_vector_values(self, centers):
        np.testing.assert_allclose(diff_vector(centers, 0), [4, -2, -2, -2])
        np.testing.assert_allclose(diff_vector(centers, 2), [-2, -2, 4, 4])

    def test_feature_names(self, centers):
        names = ["galaxy", "bread", "goal", "team"]
        assert top_features(centers, 2, 2, feature_names=names) == ["goal", "team"]

    def test_dataframe_columns_are_used(self, centers):
        df = pd.DataFrame(centers, columns=["galaxy", "bread", "goal", "team"])
        assert top_features(df, 1, 1) == ["bread"]

    def test_n_equals_feature_count_returns_everything(self, centers):
        assert top_features(centers, 0, 4) == [0, 1, 2, 3]
        assert top_features(centers, 2, 4) == [2, 3, 0, 1]

    def test_identical_centers_return_first_indices(self):
        same = np.ones((3, 5))
        for k in range(3):
            assert top_features(same, k, 3) == [0, 1, 2]

    @pytest.mark.parametrize("K", [3, 4, 7])
    def test_identical_fractional_centers_tie_exactly(self, K):
        same = np.array([[0.1, 0.7, 0.3, 0.2, 0.9, 0.6]] * K)
        for k in range(K):
            np.testing.assert_array_equal(diff_vector(same, k), 0.0)
            assert top_features(same, k, 6) == [0, 1, 2, 3, 4, 5]

    def test_order_matches_diff_vector_for_fractional_centers(self):
        rng = np.random.default_rng(1)
        values = np.array([0.1, 0.2, 0.3, 0.7])
        for _ in range(500):
            K = int(rng.integers(3, 8))
            centers = rng.choice(values, size=(K, 6))
            k = int(rng.integers(0, K))
            expected = np.argsort(-diff_vector(centers, k), kind="stable")
            assert top_features(centers, k, 6) == [int(i) for i in expected]

    def test_two_clusters_is_enough(self):
        assert top_features([[1.0, 0.0], [0.0, 1.0]], 1, 1) == [1]

    def test_accepts_numpy_integer_index(self, centers):
        assert top_features(np.array(centers), np.int64(1), np.int64(1)) == [1]

    def test_unweighted_mean_of_other_clusters(self):
        # cluster 0 vs mean([0, 10], [0, 0]) = [0, 5]
        centers = [[3.0, 6.0], [0.0, 10.0], [0.0, 0.0]]
        np.testing.assert_allclose(diff_vector(centers, 0), [3.0, 1.0])
        assert top_features(centers, 0, 2) == [0, 1]

    def test_random_centers_properties(self):
        rng = np.random.default_rng(0)
        for _ in range(20):
            K, F = rng.integers(2, 6), rng.integers(1, 12)
            # coarse values so ties actually happen
            centers = rng.integers(0, 3, size=(K, F)).astype(float)
            k = int(rng.integers(0, K))
            n = int(rng.integers(1, F + 1))
            result = top_features(centers, k, n)
            diff = diff_vector(centers, k)

            assert len(result) == n
            assert len(set(result)) == n
            assert all(0 <= f < F for f in result)
            for a, b in zip(result, result[1:]):
                assert diff[a] > diff[b] or (diff[a] == diff[b] and a < b)
            assert top_features(centers, k, n) == result

    def test_input_is_not_mutated(self, centers):
        arr = np.array(centers, dtype=float)
        before = arr.copy()
        top_features(arr, 0, 2)
        np.testing.assert_array_equal(arr, before)
        assert arr.flags.writeable


class TestValidation:
    def test_single_cluster(self):
        with pytest.raises(InvalidClusterCount):
            top_features([[1.0, 2.0]], 0, 1)
        with pytest.raises(InvalidClusterCount):
            top_features(np.ones((1, 3)), 0, 1)

    def test_empty_matrix(self):
        with pytest.raises(InvalidClusterCount):
            top_features([], 0, 1)

    @pytest.mark.parametrize("k", [-1, 3, 10, True, 1.0, "0"])
    def test_bad_cluster_index(self, centers, k):
        with pytest.raises(IndexOutOfRange):
            top_features(centers, k, 1)

    @pytest.mark.parametrize("n", [0, -1, 5])
    def test_bad_request_size(self, centers, n):
        with pytest.raises(InvalidRequestSize):
            top_features(centers, 0, n)

    def test_ragged_rows(self):
        with pytest.raises(DimensionMismatch):
            top_features([[1, 2, 3], [1, 2]], 0, 1)

    def test_ragged_object_array(self):
        ragged = np.empty(2, dtype=object)
        ragged[0], ragged[1] = [1.0, 2.0, 3.0], [1.0, 2.0]
        with pytest.raises(DimensionMismatch):
            top_features(ragged, 0, 1)

    def test_object_array_with_equal_rows(self):
        centers = np.array([[4, 0], [0, 4]], dtype=object)
        assert top_features(centers, 1, 1) == [1]

    def test_no_features(self):
        with pytest.raises(DimensionMismatch):
            top_features(np.zeros((3, 0)), 0, 1)

    def test_feature_names_length(self, centers):
        with pytest.raises(DimensionMismatch):
            top_features(centers, 0, 1, feature_names=["a", "b"])

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            top_features([[1.0]], 0, 1)
        assert issubclass(IndexOutOfRange, LabelingError)


def test_top_raw_features_differs_from_distinctive():
    # "the" is heavy everywhere; only the contrastive view drops it
    names = ["the", "galaxy", "bread"]
    centers = [[5.0, 2.0, 0.0], [5.0, 0.0, 2.0]]
    assert top_raw_features(centers, 0, 1, names) == ["the"]
    assert top_features(centers, 0, 1, names) == ["galaxy"]


def test_label_clusters_table():
    names = ["the", "galaxy", "bread", "goal"]
    centers = np.array(
        [[5.0, 2.0, 0.0, 0.0], [5.0, 0.0, 2.0, 0.0], [5.0, 0.0, 0.0, 2.0]]
    )
    table = label_clusters(centers, names, n=2, labels=[0, 0, 1, 2, 2, 2])

    assert list(table["cluster_id"]) == [0, 1, 2]
    assert list(table["size"]) == [2, 1, 3]
    assert table.loc[0, "label"] == "galaxy, the"
    assert table.loc[1, "top_terms"] == "bread, the"
    assert table.loc[2, "raw_terms"] == "the, goal"


def test_label_clusters_caps_n_at_feature_count():
    table = label_clusters([[1.0, 0.0], [0.0, 1.0]], ["a", "b"], n=8)
    assert table.loc[0, "top_terms"] == "a, b"
    assert "size" not in table.columns
