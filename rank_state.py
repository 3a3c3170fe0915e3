import numpy as np

from errors import DegenerateGraphError, StateMismatchError


class RankState:
    """Live rank vector of one graph.

    ``rank`` always has ``graph.size`` entries and is exactly 0 at every
    invalid index.
    """

    def __init__(self, graph, rank, out_degree, used_nodes):
        self.graph = graph
        self.rank = rank
        self.out_degree = out_degree
        self.used_nodes = used_nodes
        self.iterations = 0

    @classmethod
    def initialize(cls, graph):
        used_nodes = graph.used_nodes
        if used_nodes == 0:
            raise DegenerateGraphError("graph has no valid nodes, nothing to rank")
        out_degree = graph.out_degree.copy()
        rank = np.zeros(graph.size, dtype=np.float64)
        rank[graph.valid] = 1.0 / used_nodes
        return cls(graph, rank, out_degree, used_nodes)

    def check_graph(self, graph):
        if graph is not self.graph:
            raise StateMismatchError("rank state was initialised from a different graph")

    def swap(self, new_rank):
        """Replace the rank vector with ``new_rank``, zeroing invalid indices."""
        new_rank = np.array(new_rank, dtype=np.float64)
        if new_rank.shape != self.rank.shape:
            raise ValueError(f"rank vector has shape {new_rank.shape}, expected {self.rank.shape}")
        new_rank[~self.graph.valid] = 0.0
        self.rank = new_rank
        self.iterations += 1

    def total(self):
        return float(self.rank[self.graph.valid].sum())

    def __len__(self):
        return self.rank.size
