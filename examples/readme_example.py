from dataclasses import dataclass

from cofutures import (
    Future,
    RetryPolicy,
    Scheduler,
    VirtualClock,
    all_settled,
    delay,
    race,
    reject_after,
    with_retry,
)


@dataclass
class Quote:
    supplier: str
    price: float


def request_quote(supplier: str, latency: float, price: float) -> Future[Quote]:
    """Pretend network call answering after ``latency`` seconds."""
    return delay(latency, Quote(supplier, price))


def flaky_quote(supplier: str) -> Future[Quote]:
    """Supplier that drops the first two connections."""
    attempts = {"count": 0}

    def producer() -> Future[Quote]:
        attempts["count"] += 1
        print(f"{supplier}: attempt {attempts['count']}")
        if attempts["count"] < 3:
            return reject_after(0.05, ConnectionError(f"{supplier} reset the connection"))
        return request_quote(supplier, 0.05, 9.5)

    return with_retry(producer, RetryPolicy(max_attempts=3, delay=0.1, backoff="exponential"))


def main() -> None:
    scheduler = Scheduler(clock=VirtualClock())

    with scheduler.activate():
        quotes = all_settled(
            [
                request_quote("acme", 0.2, 12.0),
                flaky_quote("globex"),
                # Anything slower than one second is treated as a timeout
                race([request_quote("initech", 5.0, 8.0), reject_after(1.0, TimeoutError("initech"))]),
            ]
        )
        best = quotes.then(
            lambda outcomes: min((o.value for o in outcomes if o.ok), key=lambda q: q.price)
        )

    for outcome in scheduler.run_until_settled(quotes):
        print(outcome.to_dict())
    print(f"Best quote: {scheduler.run_until_settled(best)} at t={scheduler.now():.2f}s")


if __name__ == "__main__":
    main()
