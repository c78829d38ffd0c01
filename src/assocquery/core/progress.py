"""Progress display for long start-up reads.

The bar is drawn on stderr so it never mixes with JSON written to stdout
by ``assocquery query``.
"""

import sys
from collections.abc import Iterable, Iterator

import progressbar


def progress_iterator(iterable: Iterable, total: int, desc: str = "") -> Iterator:
    """Yield from ``iterable`` while a progressbar2 bar counts up to ``total``.

    The bar is finished even if the consumer stops early or raises.
    """
    label = [f"{desc}: "] if desc else []
    widgets = label + [
        progressbar.Counter(),
        f"/{total} ",
        progressbar.Bar(),
        " ",
        progressbar.ETA(),
    ]
    bar = progressbar.ProgressBar(max_value=total, widgets=widgets, fd=sys.stderr)
    bar.start()
    try:
        for done, item in enumerate(iterable, start=1):
            yield item
            bar.update(done)
    finally:
        bar.finish()
