from errors import OutputIOError

TOP_HEADER = " i  node#   PageRank"
BUFFER_LINES = 1000


def format_rank_line(node, rank):
    return f"{node}  {rank:.8f}"


def format_top_line(pos, node, rank):
    return f"{pos:02d}  {node:06d} {rank:.8f}"


def _write_lines(filename, lines):
    """Write ``lines`` to ``filename`` in batches of ``BUFFER_LINES``."""
    try:
        with open(filename, "w", encoding="utf-8") as f:
            buffer = []
            for line in lines:
                buffer.append(line + "\n")
                if len(buffer) >= BUFFER_LINES:
                    f.writelines(buffer)
                    buffer = []
            if buffer:
                f.writelines(buffer)
    except OSError as e:
        raise OutputIOError(filename, e.strerror or e) from e


def save_pagerank(filename, rows):
    """Full rank table, one ``"<node>  <rank>"`` line per ``(node, rank)`` row."""
    _write_lines(filename, (format_rank_line(n, r) for n, r in rows))


def save_topk(filename, rows):
    """Top-K table with header, rows are ``(position, node, rank)``."""
    lines = [TOP_HEADER]
    lines.extend(format_top_line(i, n, r) for i, n, r in rows)
    _write_lines(filename, lines)
