class PageRankError(Exception):
    """Base class for every error raised by the PageRank pipeline."""


class IngestionIOError(PageRankError, OSError):
    """The edge-list file could not be opened or read."""

    def __init__(self, path, reason=None):
        self.path = str(path)
        self.reason = reason
        msg = f"cannot read edge list '{self.path}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class FormatError(PageRankError, ValueError):
    """A non-blank, non-comment line does not hold two node ids."""

    def __init__(self, path, lineno, line):
        self.path = str(path) if path is not None else "<edges>"
        self.lineno = lineno
        self.line = line
        super().__init__(f"{self.path}:{lineno}: expected 'SRC DST', got {line!r}")


class DegenerateGraphError(PageRankError, ValueError):
    """The graph has no valid node, so the rank vector is undefined."""


class StateMismatchError(PageRankError, ValueError):
    """A rank state was used with a graph it was not initialised from."""


class RankRangeError(PageRankError, IndexError):
    """More top-K entries were requested than there are valid nodes."""


class OutputIOError(PageRankError, OSError):
    """A report file could not be written."""

    def __init__(self, path, reason=None):
        self.path = str(path)
        self.reason = reason
        msg = f"cannot write report '{self.path}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
