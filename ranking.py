import numpy as np

from errors import RankRangeError


class FullReport:
    """``(node, rank)`` pairs for every valid node, ascending by node id.

    Iterating is lazy and can be repeated; each pass reads the state's
    current vector.
    """

    def __init__(self, graph, state):
        state.check_graph(graph)
        self.graph = graph
        self.state = state

    def __iter__(self):
        rank = self.state.rank
        for n in self.graph.valid_nodes():
            yield int(n), float(rank[n])

    def __len__(self):
        return self.graph.used_nodes


def full_report(graph, state):
    return FullReport(graph, state)


def top_k(graph, state, k):
    """The ``k`` best valid nodes as ``(position, node, rank)``, position from 1.

    Sorted by descending rank; equal ranks keep ascending node id order.
    """
    state.check_graph(graph)
    used = graph.used_nodes
    if k < 0 or k > used:
        raise RankRangeError(f"top-{k} requested but graph has {used} valid nodes")

    nodes = graph.valid_nodes()
    ranks = state.rank[nodes]
    order = np.argsort(-ranks, kind="stable")[:k]
    return [(i + 1, int(nodes[j]), float(ranks[j])) for i, j in enumerate(order)]
