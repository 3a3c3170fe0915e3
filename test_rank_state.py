import numpy as np
import pytest

from errors import DegenerateGraphError, StateMismatchError
from graph_store import GraphStore
from rank_state import RankState


def test_initialize_uniform_over_valid_nodes():
    graph = GraphStore.from_edges([(0, 2), (2, 4), (4, 0), (4, 6)])
    state = RankState.initialize(graph)

    assert len(state) == 7
    assert state.used_nodes == 3
    np.testing.assert_allclose(state.rank, [1 / 3, 0, 1 / 3, 0, 1 / 3, 0, 0])
    assert state.out_degree[4] == 2
    assert state.total() == pytest.approx(1.0)
    assert state.iterations == 0


def test_initialize_rejects_graph_without_valid_nodes():
    with pytest.raises(DegenerateGraphError):
        RankState.initialize(GraphStore([], []))


def test_swap_zeroes_invalid_entries():
    graph = GraphStore.from_edges([(0, 2), (2, 0)])
    state = RankState.initialize(graph)
    state.swap(np.array([0.4, 0.2, 0.4]))

    assert state.rank.tolist() == [0.4, 0.0, 0.4]
    assert state.iterations == 1


def test_swap_leaves_caller_array_untouched():
    graph = GraphStore.from_edges([(0, 2), (2, 0)])
    state = RankState.initialize(graph)
    new_rank = np.array([0.4, 0.2, 0.4])
    state.swap(new_rank)

    assert new_rank.tolist() == [0.4, 0.2, 0.4]
    assert state.rank is not new_rank


def test_swap_rejects_wrong_length():
    state = RankState.initialize(GraphStore.from_edges([(0, 1), (1, 0)]))
    with pytest.raises(ValueError):
        state.swap(np.zeros(5))


def test_check_graph_detects_foreign_graph():
    edges = [(0, 1), (1, 0)]
    state = RankState.initialize(GraphStore.from_edges(edges))
    with pytest.raises(StateMismatchError):
        state.check_graph(GraphStore.from_edges(edges))
