import multiprocessing as mp
from typing import Any, Callable, List, Sequence, Tuple


def cpu_count_safe(default: int = 2) -> int:
    try:
        return max(1, mp.cpu_count())
    except NotImplementedError:
        return max(1, default)


def _worker(args: Tuple[Callable[[Any], Any], Any]) -> Any:
    """Unpack function and item for pool workers."""
    fn, item = args
    return fn(item)


def run_parallel(fn: Callable[[Any], Any], items: Sequence[Any], workers: int | None = None) -> List[Any]:
    """Order-preserving process pool map; ``workers`` of None or <= 1 runs serially.

    ``fn`` must be picklable (a module-level function or a ``functools.partial`` of one).
    """
    if workers is None or workers <= 1 or len(items) <= 1:
        return [fn(x) for x in items]
    workers = min(cpu_count_safe(), workers, len(items))
    with mp.Pool(processes=workers) as pool:
        return pool.map(_worker, [(fn, x) for x in items])
