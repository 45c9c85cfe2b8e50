"""
ERPChat Pipeline Orchestrator

LangGraph-based pipeline for one conversation turn:
- Demo mode:      InsightAgent (synthetic data over the demo schema)
- Connected mode: TableSelectorAgent → schema fan-out → QuerySynthesizerAgent
                  → query execution → InsightAgent (grounded on real rows)

Each node reports a status milestone through an optional async callback.
A failing node records the error in the state and the graph ends.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypedDict

from langgraph.graph import END, START, StateGraph

from erpchat.agents.insight import InsightAgent
from erpchat.agents.query_synthesizer import QuerySynthesizerAgent
from erpchat.agents.table_selector import TableSelectorAgent
from erpchat.config import get_settings
from erpchat.connectors.base import BaseDataGateway, GatewayError
from erpchat.database.catalog import SchemaDirectory
from erpchat.database.demo import DEMO_SCHEMA
from erpchat.models import (
    AgentError,
    ConversationContext,
    InsightInput,
    InsightResponse,
    NoRelevantTableError,
    QueryDescriptor,
    QuerySynthesizerInput,
    SchemaEntry,
    SchemaUnavailableError,
    SessionConfig,
    TableSelectorInput,
)

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], Awaitable[None]]


# ============================================================================
# Pipeline State Schema
# ============================================================================


class PipelineState(TypedDict, total=False):
    """State carried through one turn."""

    # Input
    query: str
    context: ConversationContext
    config: SessionConfig | None
    table_names: list[str]
    status_callback: StatusCallback | None

    # Selector output
    selected_tables: list[str]

    # Fan-out output
    schemas: list[SchemaEntry]
    failed_tables: list[str]

    # Synthesizer / execution output
    query_descriptor: QueryDescriptor | None
    rows: list[dict[str, Any]] | None

    # Insight output
    insight: InsightResponse | None

    # Pipeline metadata
    current_agent: str | None
    error: str | None
    error_type: str | None
    total_latency_ms: float
    agent_timings: dict[str, float]
    llm_calls: int


# ============================================================================
# Insight Pipeline
# ============================================================================


class InsightPipeline:
    """
    LangGraph-based pipeline answering one question.

    Usage:
        pipeline = InsightPipeline(gateway=FrappeGateway(), directory=SchemaDirectory.demo())
        state = await pipeline.run("Top 5 customers by revenue", config=session_config)
        if state["error"]:
            ...
        else:
            print(state["insight"].answer)
    """

    def __init__(
        self,
        gateway: BaseDataGateway,
        directory: SchemaDirectory,
        llm_provider=None,
    ):
        """
        Initialize pipeline with dependencies.

        Args:
            gateway: Data gateway used in connected mode
            directory: Schema directory providing table names
            llm_provider: Optional provider shared by all agents
        """
        self.gateway = gateway
        self.directory = directory
        self.config = get_settings()

        self.table_selector = TableSelectorAgent(llm_provider=llm_provider)
        self.query_synthesizer = QuerySynthesizerAgent(llm_provider=llm_provider)
        self.insight = InsightAgent(llm_provider=llm_provider)

        self.graph = self._build_graph()

        logger.info("InsightPipeline initialized")

    def _build_graph(self):
        workflow = StateGraph(PipelineState)

        workflow.add_node("select_tables", self._run_select_tables)
        workflow.add_node("load_schemas", self._run_load_schemas)
        workflow.add_node("synthesize_query", self._run_synthesize_query)
        workflow.add_node("execute_query", self._run_execute_query)
        workflow.add_node("insight", self._run_insight)

        workflow.add_conditional_edges(
            START,
            self._route_mode,
            {
                "demo": "insight",
                "connected": "select_tables",
            },
        )
        workflow.add_conditional_edges(
            "select_tables",
            self._continue_or_end,
            {"continue": "load_schemas", "end": END},
        )
        workflow.add_conditional_edges(
            "load_schemas",
            self._continue_or_end,
            {"continue": "synthesize_query", "end": END},
        )
        workflow.add_conditional_edges(
            "synthesize_query",
            self._continue_or_end,
            {"continue": "execute_query", "end": END},
        )
        workflow.add_conditional_edges(
            "execute_query",
            self._continue_or_end,
            {"continue": "insight", "end": END},
        )
        workflow.add_edge("insight", END)

        return workflow.compile()

    # ========================================================================
    # Routing
    # ========================================================================

    def _route_mode(self, state: PipelineState) -> str:
        return "connected" if state.get("config") is not None else "demo"

    def _continue_or_end(self, state: PipelineState) -> str:
        return "end" if state.get("error") else "continue"

    # ========================================================================
    # Nodes
    # ========================================================================

    async def _run_select_tables(self, state: PipelineState) -> PipelineState:
        """Run TableSelectorAgent over every known DocType name."""
        start_time = time.time()
        state["current_agent"] = "TableSelectorAgent"
        table_names = state.get("table_names") or []
        await self._emit(state, f"Scanning {len(table_names)} DocTypes...")

        try:
            output = await self.table_selector(
                TableSelectorInput(
                    query=state["query"],
                    context=state["context"],
                    table_names=table_names,
                    max_tables=self.config.pipeline.max_relevant_tables,
                )
            )
            state["llm_calls"] = state.get("llm_calls", 0) + output.metadata.llm_calls
            state["selected_tables"] = output.tables
            if not output.tables:
                raise NoRelevantTableError()
        except AgentError as e:
            self._record_error(state, e)

        self._record_timing(state, "select_tables", start_time)
        return state

    async def _run_load_schemas(self, state: PipelineState) -> PipelineState:
        """Fetch each selected schema in turn, skipping the ones that fail."""
        start_time = time.time()
        state["current_agent"] = "SchemaFanOut"
        selected = state.get("selected_tables") or []
        await self._emit(state, f"Loading schema for: {', '.join(selected)}...")

        schemas: list[SchemaEntry] = []
        failed: list[str] = []
        for name in selected:
            try:
                entry = await self.gateway.fetch_schema(state["config"], name)
            except GatewayError as e:
                failed.append(name)
                logger.warning(
                    f"Skipping DocType {name}: {e}",
                    extra={"doctype": name, "error_type": type(e).__name__},
                )
                continue
            schemas.append(entry)
            self.directory.record(entry)

        state["schemas"] = schemas
        state["failed_tables"] = failed
        if not schemas:
            self._record_error(state, SchemaUnavailableError(context={"failed": failed}))

        self._record_timing(state, "load_schemas", start_time)
        return state

    async def _run_synthesize_query(self, state: PipelineState) -> PipelineState:
        """Run QuerySynthesizerAgent."""
        start_time = time.time()
        state["current_agent"] = "QuerySynthesizerAgent"
        await self._emit(state, "Constructing database query...")

        try:
            output = await self.query_synthesizer(
                QuerySynthesizerInput(
                    query=state["query"],
                    context=state["context"],
                    schemas=state["schemas"],
                )
            )
            state["llm_calls"] = state.get("llm_calls", 0) + output.metadata.llm_calls
            state["query_descriptor"] = output.query_descriptor
        except AgentError as e:
            self._record_error(state, e)

        self._record_timing(state, "synthesize_query", start_time)
        return state

    async def _run_execute_query(self, state: PipelineState) -> PipelineState:
        """Execute the synthesized query through the gateway."""
        start_time = time.time()
        state["current_agent"] = "QueryExecution"
        descriptor = state["query_descriptor"]
        await self._emit(state, f"Executing query on {descriptor.doctype}...")

        limit = self._clamp_limit(descriptor.limit)
        try:
            rows = await self.gateway.execute_query(
                state["config"],
                descriptor.doctype,
                descriptor.fields,
                descriptor.filters,
                limit,
                descriptor.order_by,
            )
            state["rows"] = rows
            logger.info(
                f"Query on {descriptor.doctype} returned {len(rows)} rows",
                extra={"doctype": descriptor.doctype, "row_count": len(rows), "limit": limit},
            )
        except GatewayError as e:
            self._record_error(state, e)

        self._record_timing(state, "execute_query", start_time)
        return state

    async def _run_insight(self, state: PipelineState) -> PipelineState:
        """Run InsightAgent, grounded on rows in connected mode, synthetic in demo mode."""
        start_time = time.time()
        state["current_agent"] = "InsightAgent"
        grounded = state.get("config") is not None
        if grounded:
            await self._emit(state, "Analyzing results...")
            insight_input = InsightInput(
                query=state["query"],
                context=state["context"],
                schemas=state.get("schemas") or [],
                rows=state.get("rows") or [],
            )
        else:
            await self._emit(state, "Generating mock analysis...")
            insight_input = InsightInput(
                query=state["query"],
                context=state["context"],
                schemas=list(DEMO_SCHEMA),
                rows=None,
            )

        try:
            output = await self.insight(insight_input)
            state["llm_calls"] = state.get("llm_calls", 0) + output.metadata.llm_calls
            state["insight"] = output.insight
        except AgentError as e:
            self._record_error(state, e)

        self._record_timing(state, "insight", start_time)
        return state

    # ========================================================================
    # Helpers
    # ========================================================================

    def _clamp_limit(self, limit: int | None) -> int:
        settings = self.config.pipeline
        if limit is None:
            return settings.default_query_limit
        return max(1, min(limit, settings.max_query_limit))

    async def _emit(self, state: PipelineState, status: str) -> None:
        callback = state.get("status_callback")
        if callback is None:
            return
        try:
            await callback(status)
        except Exception as e:
            # status display must never change the outcome of the turn
            logger.warning(f"Status callback failed: {e}", extra={"status": status})

    def _record_error(self, state: PipelineState, error: Exception) -> None:
        message = error.message if isinstance(error, AgentError) else str(error)
        state["error"] = message
        state["error_type"] = type(error).__name__
        logger.error(
            f"{state.get('current_agent')} failed: {message}",
            extra={"agent": state.get("current_agent"), "error_type": type(error).__name__},
        )

    def _record_timing(self, state: PipelineState, step: str, start_time: float) -> None:
        elapsed = (time.time() - start_time) * 1000
        state.setdefault("agent_timings", {})[step] = elapsed
        state["total_latency_ms"] = state.get("total_latency_ms", 0) + elapsed

    async def run(
        self,
        query: str,
        context: ConversationContext | None = None,
        config: SessionConfig | None = None,
        status_callback: StatusCallback | None = None,
    ) -> PipelineState:
        """
        Run one turn and wait for completion.

        Args:
            query: User's question
            context: Memory and recent turns
            config: Frappe session, or None for demo mode
            status_callback: Async callable receiving status milestones

        Returns:
            Final pipeline state. ``error`` is set when the turn failed.
        """
        initial_state: PipelineState = {
            "query": query,
            "context": context or ConversationContext(),
            "config": config,
            "table_names": self.directory.table_names,
            "status_callback": status_callback,
            "selected_tables": [],
            "schemas": [],
            "failed_tables": [],
            "query_descriptor": None,
            "rows": None,
            "insight": None,
            "current_agent": None,
            "error": None,
            "error_type": None,
            "total_latency_ms": 0.0,
            "agent_timings": {},
            "llm_calls": 0,
        }

        logger.info(
            f"Starting pipeline for query: {query[:100]}",
            extra={"mode": "connected" if config else "demo"},
        )
        start_time = time.time()

        result = await self.graph.ainvoke(initial_state)

        total_time = (time.time() - start_time) * 1000
        logger.info(
            f"Pipeline complete in {total_time:.1f}ms ({result.get('llm_calls', 0)} LLM calls)",
            extra={"error": result.get("error"), "agent_timings": result.get("agent_timings")},
        )
        return result
