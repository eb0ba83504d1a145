"""Run tasks in parallel on a single machine using multiple cores.
"""
import joblib

from rnaflow.log import logger

def run_multicore(fn, items, num_jobs, backend="multiprocessing"):
    """Run the function on the given items with at most num_jobs in flight.

    Each item is a tuple of arguments. Results come back in item order. There
    is no cancellation: every item runs, so functions report their own
    failures in the return value rather than raising.
    """
    items = [x for x in items if x is not None]
    if len(items) == 0:
        return []
    num_jobs = max(1, min(int(num_jobs), len(items)))
    logger.info("%s: %s on %s items with %s jobs" % (backend, fn.__name__, len(items), num_jobs))
    return list(joblib.Parallel(num_jobs, batch_size=1, backend=backend)(
        joblib.delayed(fn)(*x) for x in items))
