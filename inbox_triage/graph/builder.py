"""Graph builder — constructs the LangGraph triage topology.

Topology:

    START → match_keywords → analyze_velocity → detect_calendar
          → score_emails → cluster_emails → assemble_briefing → END

The graph is compiled once per engine bundle and can be invoked many times.
"""

from __future__ import annotations

from langgraph.graph import END, START, StateGraph

from inbox_triage.graph.engines import TriageEngines
from inbox_triage.graph.nodes import (
    assemble_briefing,
    make_analyze_velocity,
    make_cluster_emails,
    make_detect_calendar,
    make_match_keywords,
    make_score_emails,
)
from inbox_triage.graph.state import TriageState


def build_triage_graph(engines: TriageEngines):
    """Construct and compile the triage graph.

    Args:
        engines: The engines every node runs against.

    Returns:
        A compiled LangGraph application.
    """
    graph = StateGraph(TriageState)

    # ── Register nodes ───────────────────────────────────────────────────
    graph.add_node("match_keywords", make_match_keywords(engines))
    graph.add_node("analyze_velocity", make_analyze_velocity(engines))
    graph.add_node("detect_calendar", make_detect_calendar(engines))
    graph.add_node("score_emails", make_score_emails(engines))
    graph.add_node("cluster_emails", make_cluster_emails(engines))
    graph.add_node("assemble_briefing", assemble_briefing)

    # ── Edges ────────────────────────────────────────────────────────────
    graph.add_edge(START, "match_keywords")
    graph.add_edge("match_keywords", "analyze_velocity")
    graph.add_edge("analyze_velocity", "detect_calendar")
    graph.add_edge("detect_calendar", "score_emails")
    graph.add_edge("score_emails", "cluster_emails")
    graph.add_edge("cluster_emails", "assemble_briefing")
    graph.add_edge("assemble_briefing", END)

    return graph.compile()
