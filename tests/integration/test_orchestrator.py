from pydantic import BaseModel, ConfigDict, Field

from rag_dispatch.agent.orchestrator import KNOWLEDGE_BASE_MISS, SERVICE_UNAVAILABLE, Orchestrator
from rag_dispatch.agent.rate_limit import RateLimiter
from rag_dispatch.agent.registry import ToolDefinition, ToolRegistry
from rag_dispatch.agent.router import DecisionRouter
from rag_dispatch.config import RateLimitConfig
from rag_dispatch.obs.tracing import TraceStore
from rag_dispatch.rag.engine import GroundedAnswerEngine
from rag_dispatch.store import InMemoryKeyValueStore
from rag_dispatch.types import Citation, RagResponse, RetrievedPassage

ORDER_CALL = '{"tool": "queryOrder", "params": {"orderId": "OP12345"}}'


class OrderInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    orderId: str = Field(min_length=1)


class CountingExecutor:
    def __init__(self, reply: str = "Order OP12345 is currently: shipped.") -> None:
        self.reply = reply
        self.calls: list[tuple[str, str, str]] = []

    def __call__(self, params: BaseModel, user_id: str, session_id: str) -> str:
        self.calls.append((params.orderId, user_id, session_id))
        return self.reply


class ScriptedGenerator:
    def __init__(self, output: str) -> None:
        self.output = output
        self.calls = 0

    def generate(self, prompt: str) -> str:
        self.calls += 1
        return self.output


class FakeRetriever:
    def __init__(self, passages: list[RetrievedPassage]) -> None:
        self.passages = passages
        self.calls = 0

    def retrieve(self, query: str, top_k: int) -> list[RetrievedPassage]:
        self.calls += 1
        return self.passages[:top_k]


class FailingRetriever:
    def retrieve(self, query: str, top_k: int) -> list[RetrievedPassage]:
        raise ConnectionError("vector store unreachable")


def _build(
    router_output: str,
    *,
    answer_output: str = "Annual leave is 10 days [1].",
    retriever=None,
    max_calls: int = 5,
    trace_store: TraceStore | None = None,
):
    executor = CountingExecutor()
    registry = ToolRegistry()
    registry.register(
        ToolDefinition(
            name="queryOrder",
            description="Look up an order",
            args_schema=OrderInput,
            executor=executor,
            required_permissions={"order:read"},
        )
    )
    store = InMemoryKeyValueStore()
    retriever = retriever or FakeRetriever(
        [RetrievedPassage(text="Annual leave is 10 days.", source="hr.pdf", page=2)]
    )
    orchestrator = Orchestrator(
        router=DecisionRouter(generator=ScriptedGenerator(router_output), tool_registry=registry),
        tool_registry=registry,
        rate_limiter=RateLimiter(store, RateLimitConfig(window_seconds=60, max_calls=max_calls)),
        engine=GroundedAnswerEngine(
            retriever=retriever,
            generator=ScriptedGenerator(answer_output),
            store=store,
        ),
        trace_store=trace_store,
    )
    return orchestrator, executor, retriever


def test_tool_path_returns_executor_output_verbatim() -> None:
    orchestrator, executor, retriever = _build(ORDER_CALL)

    reply = orchestrator.handle_message("Where is order OP12345?", "s1")

    assert reply == "Order OP12345 is currently: shipped."
    assert executor.calls == [("OP12345", "s1", "s1")]
    assert retriever.calls == 0


def test_sixth_call_returns_cooldown_without_executing() -> None:
    orchestrator, executor, _ = _build(ORDER_CALL, max_calls=5)

    replies = [orchestrator.handle_message("order OP12345", "s1") for _ in range(6)]

    assert len(executor.calls) == 5
    assert replies[-1] == "Too many requests. Please try again in 1 minute."


def test_empty_router_output_goes_to_knowledge_base() -> None:
    orchestrator, executor, retriever = _build("{}")

    reply = orchestrator.handle_message("How much annual leave do I get?", "s1")

    assert reply == "Annual leave is 10 days [hr.pdf, p.2]."
    assert executor.calls == []
    assert retriever.calls == 1


def test_unparsable_router_output_goes_to_knowledge_base() -> None:
    orchestrator, executor, _ = _build("Sure! Your leave is 10 days.")

    reply = orchestrator.handle_message("leave?", "s1")

    assert reply == "Annual leave is 10 days [hr.pdf, p.2]."
    assert executor.calls == []


def test_schema_failure_falls_back_to_knowledge_base() -> None:
    orchestrator, executor, _ = _build('{"tool": "queryOrder", "params": {"order": "OP12345"}}')

    reply = orchestrator.handle_message("order?", "s1")

    assert reply == "Annual leave is 10 days [hr.pdf, p.2]."
    assert executor.calls == []


def test_unknown_tool_falls_back_to_knowledge_base() -> None:
    orchestrator, executor, _ = _build('{"tool": "deleteAccount", "params": {}}')

    assert orchestrator.handle_message("delete me", "s1") == "Annual leave is 10 days [hr.pdf, p.2]."
    assert executor.calls == []


def test_collaborator_failure_becomes_apology() -> None:
    orchestrator, _, _ = _build("{}", retriever=FailingRetriever())

    assert orchestrator.handle_message("leave?", "s1") == SERVICE_UNAVAILABLE


def test_blank_answer_becomes_knowledge_base_miss() -> None:
    class BlankEngine:
        def answer(self, question: str, session_id: str) -> RagResponse:
            return RagResponse(answer="  ")

    orchestrator, _, _ = _build("{}")
    orchestrator.engine = BlankEngine()  # type: ignore[assignment]

    assert orchestrator.handle_message("leave?", "s1") == KNOWLEDGE_BASE_MISS


def test_structured_answer_exposes_citations() -> None:
    orchestrator, _, _ = _build("{}")

    response = orchestrator.answer("How much annual leave?", "s1")

    assert response.citations == [Citation("hr.pdf", 2)]


def test_traces_record_route_per_message() -> None:
    traces = TraceStore()
    orchestrator, _, _ = _build(ORDER_CALL, max_calls=1, trace_store=traces)

    orchestrator.handle_message("order OP12345", "s1")
    orchestrator.handle_message("order OP12345", "s1")

    records = traces.list_recent()
    assert [r.route for r in records] == ["tool", "rate_limited"]
    assert records[0].tool_name == "queryOrder"
    assert records[0].tool_traces[0].input_payload == {"orderId": "OP12345"}


def test_trace_store_failure_does_not_fail_the_message() -> None:
    class BrokenTraceStore(TraceStore):
        def create_record(self, **kwargs: object) -> None:  # type: ignore[override]
            raise RuntimeError("trace store full")

    orchestrator, executor, _ = _build(ORDER_CALL, trace_store=BrokenTraceStore())

    assert orchestrator.handle_message("order OP12345", "s1") == "Order OP12345 is currently: shipped."
    assert len(executor.calls) == 1
