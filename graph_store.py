import re

import numpy as np
import scipy.sparse as sp

from errors import FormatError, IngestionIOError

COMMENT = "#"
_NUMBER = re.compile(r"[0-9]+")
MAX_NODE_ID = int(np.iinfo(np.int64).max)


def parse_edge(line, lineno=0, path=None):
    """Parse one edge-list line into ``(src, dst)``.

    Blank lines and ``#`` comments give ``None``. Any run of non-digit
    characters separates the ids, so ``12 34``, ``12,34`` and ``12 -> 34`` are
    all the same edge. Extra numbers after the second are ignored. Only ASCII
    digits count, and ids above ``MAX_NODE_ID`` are rejected.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith(COMMENT):
        return None
    values = _NUMBER.findall(stripped)
    if len(values) < 2:
        raise FormatError(path, lineno, line.rstrip("\r\n"))
    src, dst = int(values[0]), int(values[1])
    if src > MAX_NODE_ID or dst > MAX_NODE_ID:
        raise FormatError(path, lineno, line.rstrip("\r\n"))
    return src, dst


def iter_edges(lines, path=None):
    for lineno, line in enumerate(lines, start=1):
        edge = parse_edge(line, lineno, path)
        if edge is not None:
            yield edge


class GraphStore:
    """Adjacency of a directed graph over the raw id range ``0..max_node``.

    Outgoing edges are kept CSR-style by source: the destinations of ``n`` are
    ``indices[indptr[n]:indptr[n + 1]]`` in the order they were read.
    ``valid[n]`` is set for every node seen as a source.
    """

    def __init__(self, src, dst, include_sinks=False):
        src = np.asarray(src, dtype=np.int64)
        dst = np.asarray(dst, dtype=np.int64)
        if src.shape != dst.shape or src.ndim != 1:
            raise ValueError("src and dst must be 1-d arrays of equal length")
        if src.size and min(src.min(), dst.min()) < 0:
            raise ValueError("node ids must be non-negative")

        self.max_node = int(max(src.max(), dst.max())) if src.size else -1
        n = self.max_node + 1

        # stable sort keeps file order inside each adjacency run
        order = np.argsort(src, kind="stable")
        self.indices = dst[order]
        self.out_degree = np.bincount(src, minlength=n).astype(np.int64)
        self.indptr = np.zeros(n + 1, dtype=np.int64)
        np.cumsum(self.out_degree, out=self.indptr[1:])

        self.valid = self.out_degree > 0
        if include_sinks:
            self.valid[dst] = True
        self.include_sinks = include_sinks
        self._transition = None
        self._shards = {}

    @classmethod
    def from_edges(cls, edges, include_sinks=False):
        src, dst = [], []
        for u, v in edges:
            src.append(u)
            dst.append(v)
        return cls(src, dst, include_sinks=include_sinks)

    @property
    def size(self):
        return self.max_node + 1

    @property
    def num_edges(self):
        return int(self.indices.size)

    @property
    def used_nodes(self):
        return int(np.count_nonzero(self.valid))

    def is_valid(self, n):
        return 0 <= n <= self.max_node and bool(self.valid[n])

    def valid_nodes(self):
        return np.flatnonzero(self.valid)

    def adjacency(self, n):
        if not 0 <= n <= self.max_node:
            raise IndexError(f"node {n} outside 0..{self.max_node}")
        return self.indices[self.indptr[n]:self.indptr[n + 1]]

    def transition(self) -> sp.csr_matrix:
        """Column-normalised transition matrix, ``M[d, n] = links(n->d) / out_degree[n]``.

        Columns of nodes without outgoing edges are empty. Built once and
        cached; the store is immutable after construction.
        """
        if self._transition is None:
            n = self.size
            src = np.repeat(np.arange(n, dtype=np.int64), self.out_degree)
            weights = 1.0 / self.out_degree[src]
            adj = sp.csr_matrix((weights, (self.indices, src)), shape=(n, n), dtype=np.float64)
            adj.sum_duplicates()
            self._transition = adj
        return self._transition

    def transition_shards(self, parts):
        """Split the transition matrix into ``parts`` disjoint source-column blocks.

        Returns ``(start, stop, block)`` triples where ``block`` holds columns
        ``start:stop``; ``block @ rank[start:stop]`` is that shard's share of
        the full product.
        """
        parts = max(1, min(int(parts), self.size))
        if parts not in self._shards:
            csc = self.transition().tocsc()
            bounds = np.linspace(0, self.size, parts + 1).astype(np.int64)
            self._shards[parts] = [
                (int(a), int(b), csc[:, a:b].tocsr())
                for a, b in zip(bounds[:-1], bounds[1:])
                if b > a
            ]
        return self._shards[parts]

    def summary(self):
        valid_from = "sources and destinations" if self.include_sinks else "sources only"
        return (
            f"Highest node # found is {self.max_node}, "
            f"{self.used_nodes} used nodes ({valid_from}), {self.num_edges} edges"
        )


def load_graph(filename, include_sinks=False, encoding="utf-8"):
    """Read an edge-list file into a :class:`GraphStore`.

    Raises :class:`IngestionIOError` if the file cannot be read and
    :class:`FormatError` on the first malformed line.
    """
    src, dst = [], []
    try:
        with open(filename, "r", encoding=encoding) as f:
            for u, v in iter_edges(f, path=filename):
                src.append(u)
                dst.append(v)
    except UnicodeDecodeError as e:
        raise IngestionIOError(filename, e) from e
    except OSError as e:
        raise IngestionIOError(filename, e.strerror or e) from e
    return GraphStore(src, dst, include_sinks=include_sinks)
