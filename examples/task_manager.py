"""Run a batch of jobs with a concurrency limit and watch their transitions.

Uses the real clock, so the run takes about a second.

    python examples/task_manager.py
"""

import random

from cofutures import (
    RejectionLog,
    RetryPolicy,
    TaskRecord,
    callback_api,
    configure_logging,
    get_scheduler,
    run_bounded,
    with_retry,
)


def legacy_job(name, duration, callback):
    """Old-style job API reporting completion through an error-first callback."""

    def done():
        if random.random() < 0.3:
            callback(RuntimeError(f"{name} crashed"), None)
        else:
            callback(None, f"{name} finished in {duration:.2f}s")

    get_scheduler().enqueue_deferred(done, duration)


def print_transition(record: TaskRecord) -> None:
    print(f"job {record.index}: {record.state.name.lower()}")


def main() -> None:
    configure_logging(level="debug")
    scheduler = get_scheduler()
    unhandled = RejectionLog()
    scheduler.add_rejection_hook(unhandled)

    run_job = callback_api(legacy_job)
    policy = RetryPolicy(max_attempts=3, delay=0.05, backoff="linear")
    jobs = [
        lambda name=f"job-{i}", duration=random.uniform(0.05, 0.3): with_retry(
            lambda: run_job(name, duration), policy
        )
        for i in range(8)
    ]

    outcomes = scheduler.run_until_settled(run_bounded(jobs, 3, on_transition=print_transition))

    for index, outcome in enumerate(outcomes):
        print(index, outcome.value if outcome.ok else repr(outcome.error))
    print(f"unhandled rejections: {len(unhandled.records)}")


if __name__ == "__main__":
    main()
