"""
Network views over edge-list datasets.

Responsibilities
- Build a networkx graph from an edge-list Dataset (extra columns become edge attributes).
- Compute node positions (spring, circular, Kamada-Kawai), node centrality
  (degree, betweenness, PageRank) and greedy-modularity communities.
- Flatten all of it into plain node/edge Datasets and compose a Plot:
  segments for edges, points sized by centrality and coloured by community,
  and node name labels.

Notes
- Layouts are seeded so the same graph always lands in the same place.
- Graph metrics run on networkx; the drawing goes through the regular builder.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping

import networkx as nx
import polars as pl
from networkx.algorithms import community as nx_community

from plotgram.core.errors import SpecError
from plotgram.io.dataset import Dataset

from .builder import Plot

__all__ = [
    "graph_from_edges",
    "layout_nodes",
    "centrality",
    "communities",
    "network_tables",
    "network_plot",
]

logger = logging.getLogger(__name__)

LAYOUTS = ("spring", "circular", "kamada_kawai")
CENTRALITY = ("degree", "betweenness", "pagerank")


def graph_from_edges(
    edges: Dataset,
    *,
    source_col: str = "from",
    target_col: str = "to",
    directed: bool = True,
) -> nx.Graph:
    """
    Build a graph from an edge list; non-endpoint columns become edge attributes.

    Raises:
        UnknownColumn: An endpoint column is missing.
    """
    edges.require(source_col, target_col)
    g: nx.Graph = nx.DiGraph() if directed else nx.Graph()
    attrs = [c for c in edges.columns if c not in (source_col, target_col)]
    for row in edges.frame.iter_rows(named=True):
        src, dst = row[source_col], row[target_col]
        if src is None or dst is None:
            continue
        g.add_edge(str(src), str(dst), **{a: row[a] for a in attrs})
    logger.debug("graph from %s: %d nodes, %d edges", edges.name, g.number_of_nodes(), g.number_of_edges())
    return g


def layout_nodes(graph: nx.Graph, layout: str = "spring", *, seed: int = 42) -> dict[Hashable, tuple[float, float]]:
    """
    Node positions for a layout.

    Raises:
        SpecError: Unknown layout name.
    """
    if layout == "spring":
        pos = nx.spring_layout(graph, seed=seed)
    elif layout == "circular":
        pos = nx.circular_layout(graph)
    elif layout == "kamada_kawai":
        pos = nx.kamada_kawai_layout(graph)
    else:
        raise SpecError(f"unknown layout {layout!r} (allowed: {list(LAYOUTS)!r})")
    return {n: (float(p[0]), float(p[1])) for n, p in pos.items()}


def centrality(graph: nx.Graph, measure: str = "degree") -> dict[Hashable, float]:
    if measure == "degree":
        return dict(nx.degree_centrality(graph))
    if measure == "betweenness":
        return dict(nx.betweenness_centrality(graph))
    if measure == "pagerank":
        return dict(nx.pagerank(graph))
    raise SpecError(f"unknown centrality measure {measure!r} (allowed: {list(CENTRALITY)!r})")


def communities(graph: nx.Graph) -> dict[Hashable, int]:
    """
    Greedy-modularity communities, numbered from 1 by decreasing size.

    Examples:
        >>> import networkx as nx
        >>> g = nx.Graph([("a", "b"), ("b", "c"), ("a", "c"), ("x", "y")])
        >>> c = communities(g)
        >>> c["a"] == c["b"] == c["c"] != c["x"]
        True
    """
    undirected = graph.to_undirected() if graph.is_directed() else graph
    if undirected.number_of_edges() == 0:
        return {n: i for i, n in enumerate(sorted(undirected.nodes, key=str), start=1)}
    found = nx_community.greedy_modularity_communities(undirected)
    ordered = sorted(found, key=lambda c: (-len(c), sorted(map(str, c))))
    return {n: i for i, members in enumerate(ordered, start=1) for n in members}


def network_tables(
    edges: Dataset,
    *,
    source_col: str = "from",
    target_col: str = "to",
    layout: str = "spring",
    measure: str = "degree",
    seed: int = 42,
) -> tuple[Dataset, Dataset]:
    """
    Flatten a graph into drawable tables.

    Returns:
        tuple[Dataset, Dataset]:
            nodes: name, x, y, centrality, community (categorical "1", "2", ...).
            edges: the input columns plus x, y, xend, yend.
    """
    g = graph_from_edges(edges, source_col=source_col, target_col=target_col)
    pos = layout_nodes(g, layout, seed=seed)
    cent = centrality(g, measure)
    comm = communities(g)
    names = sorted(g.nodes, key=str)
    nodes = pl.DataFrame(
        {
            "name": [str(n) for n in names],
            "x": [pos[n][0] for n in names],
            "y": [pos[n][1] for n in names],
            "centrality": [float(cent[n]) for n in names],
            "community": [str(comm[n]) for n in names],
        }
    )
    n_comm = max(comm.values(), default=0)
    node_ds = Dataset(
        nodes,
        name=f"{edges.name}_nodes",
        levels={"community": [str(i) for i in range(1, n_comm + 1)]},
    )

    coords: Mapping[str, tuple[float, float]] = {str(n): p for n, p in pos.items()}
    frame = edges.frame.drop_nulls([source_col, target_col])
    src = frame.get_column(source_col).cast(pl.String).to_list()
    dst = frame.get_column(target_col).cast(pl.String).to_list()
    frame = frame.with_columns(
        pl.Series("x", [coords[s][0] for s in src], dtype=pl.Float64),
        pl.Series("y", [coords[s][1] for s in src], dtype=pl.Float64),
        pl.Series("xend", [coords[d][0] for d in dst], dtype=pl.Float64),
        pl.Series("yend", [coords[d][1] for d in dst], dtype=pl.Float64),
    )
    return node_ds, edges.with_frame(frame, name=f"{edges.name}_edges")


def network_plot(
    edges: Dataset,
    *,
    source_col: str = "from",
    target_col: str = "to",
    layout: str = "spring",
    measure: str = "degree",
    edge_color: str | None = None,
    seed: int = 42,
) -> Plot:
    """
    Compose a network diagram: edges as segments, nodes as points, names as labels.

    Args:
        edges (Dataset): Edge list.
        source_col/target_col (str): Endpoint columns.
        layout (str): "spring" | "circular" | "kamada_kawai".
        measure (str): Centrality used for node size.
        edge_color (str | None): Categorical edge column to colour segments by.
        seed (int): Layout seed.
    """
    nodes, edge_ds = network_tables(
        edges, source_col=source_col, target_col=target_col, layout=layout, measure=measure, seed=seed
    )
    seg_map = {"x": "x", "y": "y", "xend": "xend", "yend": "yend"}
    seg_style: dict[str, object] = {"alpha": 0.6}
    if edge_color is not None:
        seg_map["color"] = edge_color
    else:
        seg_style["color"] = "#999999"
    return (
        Plot(nodes, x="x", y="y")
        .geom_segment(seg_map, data=edge_ds, inherit=False, **seg_style)
        .geom_point({"size": "centrality", "color": "community"})
        .geom_text({"label": "name"}, dy=-12)
        .scale("color", palette="Set2")
        .labs(x="", y="", size=measure)
        .theme("minimal", grid=False)
    )
