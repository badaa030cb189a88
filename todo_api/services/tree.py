"""
Forest operations using NetworkX.

Edges go parent -> child. The task forest is valid when this graph has no
cycle, i.e. no task is its own ancestor.
"""

from typing import Iterable, Mapping

import networkx as nx
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from todo_api.models import Todo


async def fetch_parent_links(session: AsyncSession) -> dict[int, int | None]:
    """Current ``id -> parent_id`` for every task."""
    result = await session.execute(select(Todo.id, Todo.parent_id))
    return {row.id: row.parent_id for row in result.all()}


def build_forest(parent_links: Mapping[int, int | None]) -> nx.DiGraph:
    """
    Build a DiGraph from ``id -> parent_id``.

    Every task is a node; root tasks have no incoming edge.
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(parent_links)
    graph.add_edges_from(
        (parent_id, todo_id)
        for todo_id, parent_id in parent_links.items()
        if parent_id is not None
    )
    return graph


def find_cycle(parent_links: Mapping[int, int | None]) -> list[int] | None:
    """
    Return the ids on a parent cycle, or None if the links form a forest.

    A task that is its own parent is reported as a one-element cycle.
    """
    graph = build_forest(parent_links)
    try:
        edges = nx.find_cycle(graph)
    except nx.NetworkXNoCycle:
        return None
    return [parent_id for parent_id, _child_id in edges]


def apply_moves(
    parent_links: Mapping[int, int | None],
    moves: Iterable[tuple[int, int | None]],
) -> dict[int, int | None]:
    """Replay ``(id, new_parent_id)`` moves in order; later moves win."""
    links = dict(parent_links)
    for todo_id, parent_id in moves:
        links[todo_id] = parent_id
    return links
