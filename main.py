import argparse
import sys
import time

from errors import PageRankError, RankRangeError
from graph_store import load_graph
from iteration import DANGLING_POLICIES
from monitor import MemoryMonitor
from pagerank import BETA, ITERATIONS, TOPK, PageRankSession
from report import TOP_HEADER, format_top_line, save_pagerank, save_topk

DATA_FILE = "Data.txt"
PAGERANK_FILE = "PageRank.txt"
TOP_FILE = "Top10PageRank.txt"


def build_parser():
    parser = argparse.ArgumentParser(description="Sparse PageRank by damped power iteration")
    parser.add_argument("--input", default=DATA_FILE, help="Edge list file, one 'SRC DST' per line")
    parser.add_argument("--output", default=PAGERANK_FILE, help="Full rank table output path")
    parser.add_argument("--top-output", default=TOP_FILE, help="Top-K report output path")
    parser.add_argument("--beta", type=float, default=BETA, help="Damping factor, tax rate is 1 - beta")
    parser.add_argument("--iterations", type=int, default=ITERATIONS, help="Number of power iterations")
    parser.add_argument("--topk", type=int, default=TOPK, help="Size of the top-K report")
    parser.add_argument("--tol", type=float, default=None, help="Stop early once the L1 change drops below this")
    parser.add_argument("--dangling", choices=DANGLING_POLICIES, default="drop", help="What to do with the rank of nodes without outgoing links")
    parser.add_argument("--include-sinks", action="store_true", help="Count destination-only nodes as valid nodes")
    parser.add_argument("--workers", type=int, default=1, help="Threads used for the sparse multiply")
    parser.add_argument("--no-validation", action="store_true", help="Skip the extra-iteration .validation file")
    parser.add_argument("--verbose", action="store_true", help="Print graph details and per-iteration deltas")
    return parser


def run(args):
    t_start = time.time()

    t_read = time.time()
    print("Reading file ...")
    graph = load_graph(args.input, include_sinks=args.include_sinks)
    print(f"Reading took {time.time() - t_read:.2f}s")
    if args.verbose:
        print(graph.summary())

    print(f"File read, now doing {args.iterations} iterations of sparse multiply")
    t_calc = time.time()
    session = PageRankSession(graph, beta=args.beta, dangling=args.dangling, workers=args.workers)
    if not 0 <= args.topk <= graph.used_nodes:
        raise RankRangeError(f"top-{args.topk} requested but graph has {graph.used_nodes} valid nodes")
    callback = None
    if args.verbose:
        callback = lambda i, delta: print(f"iteration {i}: delta={delta:.2e}")
    done = session.run(args.iterations, tol=args.tol, callback=callback)
    if done < args.iterations:
        print(f"Converged at {done} iterations")
    print(f"PageRank computed in {time.time() - t_calc:.2f}s")

    t_write = time.time()
    print(f"Done. writing {args.output}")
    save_pagerank(args.output, session.full_report())

    if not args.no_validation:
        # one more step so the two tables can be compared by hand
        session.step()
        save_pagerank(args.output + ".validation", session.full_report())

    print(f"Done. Finding top {args.topk}")
    rows = session.top_k(args.topk)
    print(TOP_HEADER)
    for row in rows:
        print(format_top_line(*row))
    save_topk(args.top_output, rows)
    print(f"Finished. Sorting and writing took {time.time() - t_write:.2f}s")
    print(f"Total elapsed time: {time.time() - t_start:.2f}s")
    return session


def main(argv=None):
    args = build_parser().parse_args(argv)
    with MemoryMonitor() as monitor:
        try:
            run(args)
        except (PageRankError, ValueError) as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
    print(f"Peak memory: {monitor.peak_mb:.2f} MB")
    return 0


if __name__ == "__main__":
    sys.exit(main())
