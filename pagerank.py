from graph_store import load_graph
from iteration import iterate, step
from ranking import full_report, top_k
from rank_state import RankState

BETA = 0.8
ITERATIONS = 100
TOPK = 10


class PageRankSession:
    """One PageRank computation: a graph, its rank state and the run settings.

    Nothing is shared between sessions, so several graphs can be ranked in
    the same process.
    """

    def __init__(self, graph, beta=BETA, dangling="drop", workers=1):
        if not 0.0 <= beta <= 1.0:
            raise ValueError(f"beta must be within [0, 1], got {beta}")
        self.graph = graph
        self.beta = beta
        self.tax_rate = 1.0 - beta
        self.dangling = dangling
        self.workers = workers
        self.state = RankState.initialize(graph)

    @property
    def iterations(self):
        return self.state.iterations

    def step(self):
        return step(self.graph, self.state, self.tax_rate, self.dangling, self.workers)

    def run(self, iterations=ITERATIONS, tol=None, callback=None):
        return iterate(
            self.graph,
            self.state,
            self.tax_rate,
            iterations,
            tol=tol,
            dangling=self.dangling,
            workers=self.workers,
            callback=callback,
        )

    def full_report(self):
        return full_report(self.graph, self.state)

    def top_k(self, k=TOPK):
        return top_k(self.graph, self.state, k)

    def total(self):
        return self.state.total()


def pagerank(filename, beta=BETA, iterations=ITERATIONS, tol=None, dangling="drop", include_sinks=False, workers=1):
    graph = load_graph(filename, include_sinks=include_sinks)
    session = PageRankSession(graph, beta=beta, dangling=dangling, workers=workers)
    session.run(iterations, tol=tol)
    return session
