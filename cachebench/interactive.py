"""Request/response loop for the interactive (custom) benchmark modes."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .descriptor import BenchmarkDescriptor, BenchmarkKind
from .errors import RecoverableOperationError
from .runner import BenchmarkRunner


@dataclass
class CustomRequest:
    """
    One interactive operation.

    ``item_id``/``name`` are used by custom writes, ``item_id`` by custom
    point reads and ``query_text`` by custom queries. ``use_cache`` switches
    the descriptor between the integrated cache and the backend before the
    operation runs; None keeps the current setting.
    """

    item_id: str = ""
    name: str = ""
    query_text: str = ""
    use_cache: Optional[bool] = None


@dataclass
class CustomOutcome:
    """Immediate result of one interactive operation."""

    success: bool
    message: str
    cost: Optional[float] = None
    record: Optional[Dict[str, Any]] = None
    item_count: Optional[int] = None


# Returns the next request for a descriptor, or None to stop the session
InputSource = Callable[[BenchmarkDescriptor], Optional[CustomRequest]]


def perform_custom(
    runner: BenchmarkRunner,
    descriptor: BenchmarkDescriptor,
    container: Any,
    request: CustomRequest,
) -> CustomOutcome:
    """
    Perform one interactive operation and report its cost.

    Failures are returned as unsuccessful outcomes instead of raised.
    """
    if not descriptor.kind.is_custom:
        raise ValueError(f"{descriptor.kind.label} is not an interactive benchmark")

    if request.use_cache is not None:
        descriptor.use_cache(request.use_cache)

    try:
        if descriptor.kind is BenchmarkKind.CUSTOM_WRITE:
            cost = runner.custom_write(descriptor, container, request.item_id, request.name)
            return CustomOutcome(
                success=True,
                cost=cost,
                message=f"Wrote item with id: {request.item_id}\nRequest charge: {cost} RUs",
            )

        if descriptor.kind is BenchmarkKind.CUSTOM_POINT_READ:
            response = runner.custom_point_read(descriptor, container, request.item_id)
            return CustomOutcome(
                success=True,
                cost=response.cost,
                record=response.record,
                message=(
                    f"Read item with id: {response.record.get('id')} and name: "
                    f"{response.record.get('name')}\nRequest charge: {response.cost} RU"
                ),
            )

        drained = runner.custom_query(descriptor, container, request.query_text)
        return CustomOutcome(
            success=True,
            cost=drained.cost,
            item_count=len(drained.items),
            message=f"{len(drained.items)} results\nRequest charge: {drained.cost} RUs",
        )
    except RecoverableOperationError as e:
        return CustomOutcome(success=False, message=str(e))


def run_custom_session(
    runner: BenchmarkRunner,
    descriptor: BenchmarkDescriptor,
    container: Any,
    input_source: InputSource,
    output: Callable[[str], None] = print,
) -> List[CustomOutcome]:
    """
    Drive an interactive benchmark until the input source returns None.

    Args:
        runner: Runner bound to the descriptor's client
        descriptor: Custom-kind descriptor
        container: Provisioned container handle
        input_source: Supplies one request per iteration
        output: Receives one message per outcome

    Returns:
        Outcomes in the order they were performed
    """
    outcomes = []
    while True:
        request = input_source(descriptor)
        if request is None:
            break
        outcome = perform_custom(runner, descriptor, container, request)
        output(f"\n{outcome.message}\n")
        outcomes.append(outcome)
    return outcomes


class ConsoleInputSource:
    """Prompts for custom requests on the console."""

    def __init__(self, prompt: Optional[Callable[[str], str]] = None):
        # Looked up per call so a replaced builtins.input is honoured
        self._prompt = prompt or (lambda question: input(question))

    def _ask_yes_no(self, question: str) -> bool:
        while True:
            answer = self._prompt(question).strip().lower()
            if answer in ("y", "n"):
                return answer == "y"

    def __call__(self, descriptor: BenchmarkDescriptor) -> Optional[CustomRequest]:
        try:
            return self._read_request(descriptor)
        except EOFError:
            # Closed stdin ends the session like 'n'
            return None

    def _read_request(self, descriptor: BenchmarkDescriptor) -> Optional[CustomRequest]:
        kind = descriptor.kind
        action = {
            BenchmarkKind.CUSTOM_WRITE: "Write new item",
            BenchmarkKind.CUSTOM_POINT_READ: "Perform a point read",
            BenchmarkKind.CUSTOM_QUERY: "Perform a query",
        }[kind]

        answer = self._prompt(f"\n{action}? Enter 'n' to stop or anything else to continue: ")
        if answer.strip().lower() == "n":
            return None

        if kind is BenchmarkKind.CUSTOM_WRITE:
            item_id = self._prompt("Enter item id: ").strip()
            name = self._prompt("Enter name value: ").strip()
            return CustomRequest(item_id=item_id, name=name)

        cache_name = "item cache" if kind is BenchmarkKind.CUSTOM_POINT_READ else "query cache"
        use_cache = self._ask_yes_no(
            f"Use the {cache_name}? 'y' for the cache, 'n' for the backend data: "
        )

        if kind is BenchmarkKind.CUSTOM_POINT_READ:
            item_id = self._prompt("Enter item id: ").strip()
            return CustomRequest(item_id=item_id, use_cache=use_cache)

        query_text = self._prompt("Enter query: ")
        return CustomRequest(query_text=query_text, use_cache=use_cache)
