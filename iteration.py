from concurrent.futures import ThreadPoolExecutor

import numpy as np

DANGLING_POLICIES = ("drop", "redistribute")


def _check_args(tax_rate, dangling):
    if not 0.0 <= tax_rate <= 1.0:
        raise ValueError(f"tax rate must be within [0, 1], got {tax_rate}")
    if dangling not in DANGLING_POLICIES:
        raise ValueError(f"unknown dangling policy {dangling!r}, expected one of {DANGLING_POLICIES}")


def _accumulate(graph, rank, workers=1, executor=None):
    """Sparse multiply ``M @ rank`` into a fresh accumulator.

    With several workers each shard of source columns is multiplied on its
    own, and the partial accumulators are summed once all of them finish.
    """
    if workers <= 1:
        return graph.transition().dot(rank)

    shards = graph.transition_shards(workers)

    def run(shard):
        start, stop, block = shard
        return block.dot(rank[start:stop])

    if executor is None:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            partials = list(pool.map(run, shards))
    else:
        partials = list(executor.map(run, shards))

    acc = np.zeros(graph.size, dtype=np.float64)
    for part in partials:
        acc += part
    return acc


def step(graph, state, tax_rate, dangling="drop", workers=1, executor=None):
    """Advance ``state`` by one damped multiply-and-redistribute step.

    ``rank <- (1 - tax_rate) * M @ rank + tax_rate / used_nodes`` over the
    whole index range, after which the state zeroes invalid indices. With
    ``dangling="drop"`` the share of nodes without outgoing edges is lost;
    ``"redistribute"`` spreads it evenly over the valid nodes first.

    Returns the L1 distance between the old and new rank vectors.
    """
    state.check_graph(graph)
    _check_args(tax_rate, dangling)

    old = state.rank
    acc = _accumulate(graph, old, workers, executor)

    if dangling == "redistribute":
        dead = graph.valid & (state.out_degree == 0)
        dead_sum = old[dead].sum()
        if dead_sum:
            acc[graph.valid] += dead_sum / state.used_nodes

    new = (1.0 - tax_rate) * acc + tax_rate / state.used_nodes
    state.swap(new)
    return float(np.abs(state.rank - old).sum())


def iterate(graph, state, tax_rate, iterations, tol=None, dangling="drop", workers=1, callback=None):
    """Run up to ``iterations`` steps; returns how many were run.

    Without ``tol`` the full budget is always spent. With ``tol`` the loop
    stops early once the L1 change of a step drops below it.
    ``callback(i, delta)`` is called after every step.
    """
    if iterations < 0:
        raise ValueError(f"iteration count must be non-negative, got {iterations}")
    state.check_graph(graph)
    _check_args(tax_rate, dangling)

    executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
    try:
        for it in range(iterations):
            delta = step(graph, state, tax_rate, dangling, workers, executor)
            if callback is not None:
                callback(it + 1, delta)
            if tol is not None and delta < tol:
                return it + 1
    finally:
        if executor is not None:
            executor.shutdown()
    return iterations
