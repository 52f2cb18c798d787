"""Prometheus metrics for ledger commands, amounts moved and request latency"""

from prometheus_client import Counter, Histogram

from hpg_ledger.domain.models import LogType

command_counter = Counter(
    "hpg_ledger_commands_total",
    "Ledger commands handled",
    ["command", "outcome"],  # outcome: committed | rejected
)

amount_counter = Counter(
    "hpg_ledger_amount_total",
    "Currency units recorded in the transaction log",
    ["entry_type"],
)

request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_command(command: str, committed: bool) -> None:
    outcome = "committed" if committed else "rejected"
    command_counter.labels(command=command, outcome=outcome).inc()


def record_amount(entry_type: LogType, amount: int) -> None:
    """Track money moved per log entry type"""
    if amount > 0:
        amount_counter.labels(entry_type=entry_type.value).inc(amount)
