import numpy as np
import pandas as pd
import pytest

import alleletree.main as main_module
from alleletree import ClusteringConfig, DistanceMatrix, ProfileError
from alleletree.main import Stage, run_pipeline

EXAMPLE = {'A': ['1', '2', '3'], 'B': ['1', '2', '4'], 'C': ['5', '2', '3']}
QUIET = dict(verbose=False)


def test_example_pipeline():
    result = run_pipeline(EXAMPLE, ClusteringConfig(**QUIET))
    assert result.tree == '((A:0.50000,B:0.50000):0.25000,C:0.75000);'
    assert result.samples == ('A', 'B', 'C')
    assert np.array_equal(result.matrix, np.array([[0, 1, 1], [1, 0, 2], [1, 2, 0]]))


def test_capped_tree_becomes_polytomy():
    dm = DistanceMatrix.from_profiles(EXAMPLE, max_tree_height=1, **QUIET)
    assert dm.tree == '(A:0.50000,B:0.50000,C:0.50000);'
    assert dm.leaf_order == ('A', 'B', 'C')


def test_single_sample():
    result = DistanceMatrix.from_profiles({'only one': ['1', '2']}, **QUIET).run()
    assert result.tree == 'only_one;'
    assert result.samples == ('only_one',)
    assert result.matrix.shape == (1, 1)


def test_names_are_sanitised_in_tree():
    dm = DistanceMatrix.from_profiles({'s 1': ['1'], 's(2)': ['2']}, **QUIET)
    assert dm.tree == '(s_1:0.50000,s_2_:0.50000);'


def test_collision_is_fatal():
    with pytest.raises(ProfileError):
        DistanceMatrix.from_profiles({'a:b': ['1'], 'a;b': ['2']}, **QUIET)


def test_distmat_is_a_copy():
    dm = DistanceMatrix.from_profiles(EXAMPLE, **QUIET)
    m = dm.distmat
    m[0, 1] = 99
    assert dm.distmat[0, 1] == 1
    r = dm.reordered_distmat
    r[0, 1] = 99
    assert dm.reordered_distmat[0, 1] == 1


def test_stages_computed_once(monkeypatch):
    calls = []
    real = main_module.compute_distance_matrix

    def counting(*args, **kwargs):
        calls.append(1)
        return real(*args, **kwargs)

    monkeypatch.setattr(main_module, 'compute_distance_matrix', counting)
    dm = DistanceMatrix.from_profiles(EXAMPLE, **QUIET)
    assert dm._cache == {}
    dm.tree
    assert set(dm._cache) == {Stage.DISTANCES, Stage.TREE}
    dm.run()
    dm.distmat
    assert set(dm._cache) == set(Stage)
    assert len(calls) == 1


def test_from_distance_matrix_reorders_to_leaves():
    m = np.array([[0, 4, 1], [4, 0, 6], [1, 6, 0]], dtype=float)
    dm = DistanceMatrix.from_distance_matrix(['A', 'B', 'C'], m, **QUIET)
    result = dm.run()
    assert result.tree == '((A:0.50000,C:0.50000):2.00000,B:2.50000);'
    assert result.samples == ('A', 'C', 'B')
    assert np.array_equal(result.matrix, np.array([[0, 1, 4], [1, 0, 6], [4, 6, 0]]))
    # input order is still available
    assert np.array_equal(dm.distmat, m)


def test_from_distance_matrix_validates():
    with pytest.raises(ValueError):
        DistanceMatrix.from_distance_matrix(['A', 'B'], np.zeros((3, 3)), **QUIET)
    with pytest.raises(ProfileError):
        DistanceMatrix.from_distance_matrix(['a b', 'a_b'], np.zeros((2, 2)), **QUIET)


def test_config_and_kwargs_are_exclusive():
    with pytest.raises(TypeError):
        DistanceMatrix.from_profiles(EXAMPLE, config=ClusteringConfig(), max_tree_height=1)


def test_normalized_pipeline():
    profiles = {'A': ['1', '2', '3', '4'], 'B': ['1', '2', '3', '5'], 'C': ['9', '9', '9', '9']}
    result = run_pipeline(profiles, ClusteringConfig(distance='normalized', **QUIET))
    # D(A,B)=0.25, D(A,C)=D(B,C)=1, so C joins at (1+1)/2/2
    assert result.tree == '((A:0.12500,B:0.12500):0.37500,C:0.50000);'


def test_matrix_labels_when_leaf_order_is_a_cycle():
    samples = ['A', 'B', 'C', 'D']
    m = np.full((4, 4), 10.0)
    np.fill_diagonal(m, 0)
    m[0, 3] = m[3, 0] = 1
    m[1, 2] = m[2, 1] = 2
    result = DistanceMatrix.from_distance_matrix(samples, m, **QUIET).run()
    assert result.tree == '((A:0.50000,D:0.50000):4.50000,(B:1.00000,C:1.00000):4.00000);'
    assert result.leaf_order == ('A', 'D', 'B', 'C')
    # p = [0, 2, 3, 1] is a 3-cycle, so rows are not in leaf order
    assert result.samples == ('A', 'C', 'D', 'B')

    labelled = pd.DataFrame(result.matrix, index=result.samples, columns=result.samples)
    assert labelled.loc['A', 'D'] == 1
    assert labelled.loc['B', 'C'] == 2
    for i, a in enumerate(samples):
        for j, b in enumerate(samples):
            assert labelled.loc[a, b] == m[i, j]


def test_empty_sample_name_is_fatal():
    with pytest.raises(ProfileError, match='empty name'):
        DistanceMatrix.from_profiles({'': ['1'], 'B': ['2']}, **QUIET)
    with pytest.raises(ProfileError, match='empty name'):
        DistanceMatrix.from_distance_matrix(['A', ''], np.zeros((2, 2)), **QUIET)
