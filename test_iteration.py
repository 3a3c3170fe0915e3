import numpy as np
import pytest

from errors import StateMismatchError
from graph_store import GraphStore
from iteration import iterate, step
from rank_state import RankState


def random_graph(nodes, out_degree, seed=0):
    """Every node links to ``out_degree`` random targets, so none is dangling."""
    rng = np.random.default_rng(seed)
    src = np.repeat(np.arange(nodes), out_degree)
    dst = rng.integers(0, nodes, size=src.size)
    return GraphStore(src, dst)


def test_symmetric_cycle_is_fixed_point():
    graph = GraphStore.from_edges([(0, 1), (1, 2), (2, 0)])
    state = RankState.initialize(graph)
    np.testing.assert_allclose(state.rank, [1 / 3] * 3)

    step(graph, state, 0.2)
    np.testing.assert_allclose(state.rank, [1 / 3] * 3)


def test_single_step_values():
    # 0 -> 1, 0 -> 2, 1 -> 2, 2 -> 0
    graph = GraphStore.from_edges([(0, 1), (0, 2), (1, 2), (2, 0)])
    state = RankState.initialize(graph)
    step(graph, state, 0.2)

    third = 1 / 3
    expected = [
        0.8 * third + 0.2 / 3,
        0.8 * third / 2 + 0.2 / 3,
        0.8 * (third / 2 + third) + 0.2 / 3,
    ]
    np.testing.assert_allclose(state.rank, expected)


def test_mass_conserved_every_iteration():
    graph = random_graph(500, 4, seed=1)
    state = RankState.initialize(graph)
    for _ in range(30):
        step(graph, state, 0.2)
        assert state.total() == pytest.approx(1.0, abs=1e-6)


def test_no_tax_preserves_mass_without_dangling_nodes():
    graph = random_graph(200, 3, seed=2)
    state = RankState.initialize(graph)
    for _ in range(10):
        step(graph, state, 0.0)
    assert state.total() == pytest.approx(1.0, abs=1e-12)


def test_no_tax_drops_dangling_share():
    # node 2 only ever appears as a destination, counted valid via include_sinks
    graph = GraphStore.from_edges([(0, 1), (0, 2), (1, 0)], include_sinks=True)
    state = RankState.initialize(graph)

    for _ in range(3):
        before = state.total()
        dangling_share = state.rank[2]
        step(graph, state, 0.0)
        assert state.total() == pytest.approx(before - dangling_share)
        assert state.total() < before


def test_redistribute_keeps_mass_with_dangling_nodes():
    graph = GraphStore.from_edges([(0, 1), (0, 2), (1, 0)], include_sinks=True)
    state = RankState.initialize(graph)
    for _ in range(20):
        step(graph, state, 0.2, dangling="redistribute")
        assert state.total() == pytest.approx(1.0)


def test_sink_only_node_is_not_ranked_by_default():
    graph = GraphStore.from_edges([(0, 1)])
    state = RankState.initialize(graph)
    assert state.used_nodes == 1

    step(graph, state, 0.2)
    # node 1 received 0.8 + 0.2 but is not a valid node, so its entry stays 0
    assert state.rank.tolist() == pytest.approx([0.2, 0.0])


def test_sink_only_node_ranked_with_include_sinks():
    graph = GraphStore.from_edges([(0, 1)], include_sinks=True)
    state = RankState.initialize(graph)
    assert state.used_nodes == 2

    step(graph, state, 0.2)
    assert state.rank.tolist() == pytest.approx([0.1, 0.5])


def test_invalid_indices_stay_zero():
    graph = GraphStore.from_edges([(0, 4), (4, 2), (2, 0), (2, 7)])
    state = RankState.initialize(graph)
    for _ in range(5):
        step(graph, state, 0.2)
    invalid = ~graph.valid
    assert np.all(state.rank[invalid] == 0.0)


def test_sharded_step_matches_serial():
    graph = random_graph(1000, 5, seed=4)
    serial = RankState.initialize(graph)
    sharded = RankState.initialize(graph)

    iterate(graph, serial, 0.2, 10)
    iterate(graph, sharded, 0.2, 10, workers=4)
    np.testing.assert_allclose(sharded.rank, serial.rank, rtol=1e-12)


def test_step_returns_l1_delta():
    graph = GraphStore.from_edges([(0, 1), (1, 1)])
    state = RankState.initialize(graph)
    old = state.rank.copy()
    delta = step(graph, state, 0.2)
    assert delta == pytest.approx(np.abs(state.rank - old).sum())
    assert delta > 0


def test_iterate_runs_fixed_budget_without_tol():
    graph = GraphStore.from_edges([(0, 1), (1, 2), (2, 0)])
    state = RankState.initialize(graph)
    seen = []
    done = iterate(graph, state, 0.2, 7, callback=lambda i, d: seen.append(i))
    assert done == 7
    assert seen == list(range(1, 8))
    assert state.iterations == 7


def test_iterate_stops_early_with_tol():
    graph = GraphStore.from_edges([(0, 1), (1, 2), (2, 0)])
    state = RankState.initialize(graph)
    assert iterate(graph, state, 0.2, 100, tol=1e-9) == 1


def test_step_rejects_bad_arguments():
    graph = GraphStore.from_edges([(0, 1), (1, 0)])
    state = RankState.initialize(graph)
    with pytest.raises(ValueError, match="tax rate"):
        step(graph, state, 1.5)
    with pytest.raises(ValueError, match="dangling"):
        step(graph, state, 0.2, dangling="spread")
    with pytest.raises(ValueError):
        iterate(graph, state, 0.2, -1)


def test_step_rejects_state_from_other_graph():
    edges = [(0, 1), (1, 0)]
    state = RankState.initialize(GraphStore.from_edges(edges))
    with pytest.raises(StateMismatchError):
        step(GraphStore.from_edges(edges), state, 0.2)


def test_scale_random_graph():
    graph = random_graph(10_000, 5, seed=42)
    state = RankState.initialize(graph)
    assert iterate(graph, state, 0.2, 100) == 100

    ranks = state.rank[graph.valid]
    assert ranks.size == 10_000
    assert np.all((ranks >= 0.0) & (ranks <= 1.0))
    assert ranks.sum() == pytest.approx(1.0, abs=1e-6)
