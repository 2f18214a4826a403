"""Pytest configuration and fixtures for GraphView CLI tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List
from unittest.mock import MagicMock

import pytest

from graphview_cli.events import GraphEventHandler, NeighbourResult
from graphview_cli.graph import Graph
from graphview_cli.mapper import map_nodes, map_relationships
from graphview_cli.storage import DatabaseManager, GraphStore
from graphview_cli.view import GraphView


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture(autouse=True)
def temp_home(temp_dir: Path, monkeypatch) -> Path:
    """Point every test at an isolated GRAPHVIEW_HOME."""
    home = temp_dir / "home"
    monkeypatch.setattr("graphview_cli.config.BASE_DIR", home)
    monkeypatch.setattr("graphview_cli.config.MEMORY_DIR", home / "memory")
    monkeypatch.setattr("graphview_cli.config.STATE_FILE", home / "state.json")
    monkeypatch.setattr("graphview_cli.config.CONFIG_FILE", home / "config.toml")
    return home


@pytest.fixture
def sample_payload_path() -> Path:
    return Path(__file__).parent / "fixtures" / "people.json"


@pytest.fixture
def sample_payload(sample_payload_path: Path) -> Dict[str, Any]:
    return json.loads(sample_payload_path.read_text(encoding="utf-8"))


@pytest.fixture
def sample_graph(sample_payload: Dict[str, Any]) -> Graph:
    """Graph holding the whole sample payload."""
    graph = Graph()
    graph.add_nodes(map_nodes(sample_payload["nodes"]))
    graph.add_relationships(map_relationships(sample_payload["relationships"], graph))
    return graph


@pytest.fixture
def temp_db_manager() -> DatabaseManager:
    return DatabaseManager()


@pytest.fixture
def temp_graph_store(temp_dir: Path) -> Generator[GraphStore, None, None]:
    db_dir = temp_dir / "test_db"
    db_dir.mkdir(parents=True, exist_ok=True)
    store = GraphStore(db_dir)
    yield store
    store.close()


@pytest.fixture
def sample_store(temp_graph_store: GraphStore, sample_payload: Dict[str, Any]) -> GraphStore:
    temp_graph_store.import_payload(sample_payload)
    return temp_graph_store


class FakeFetch:
    """Neighbour fetch that records calls and answers with a canned result."""

    def __init__(self, result: NeighbourResult = None, immediate: bool = True) -> None:
        self.result = result or NeighbourResult(nodes=[], relationships=[])
        self.immediate = immediate
        self.calls: List[tuple] = []

    def __call__(self, node, current_neighbour_ids, on_result) -> None:
        self.calls.append((node, list(current_neighbour_ids), on_result))
        if self.immediate:
            on_result(self.result)


@pytest.fixture
def fake_fetch() -> FakeFetch:
    return FakeFetch()


@pytest.fixture
def host() -> MagicMock:
    """Mock host exposing the three notification callbacks."""
    return MagicMock()


def make_handler(graph: Graph, fetch, host: MagicMock, **kwargs) -> GraphEventHandler:
    view = GraphView(graph)
    return GraphEventHandler(
        graph,
        view,
        fetch,
        on_item_mouse_over=host.on_item_mouse_over,
        on_item_selected=host.on_item_selected,
        on_graph_model_change=host.on_graph_model_change,
        **kwargs,
    )


@pytest.fixture
def handler(sample_graph: Graph, fake_fetch: FakeFetch, host: MagicMock) -> GraphEventHandler:
    return make_handler(sample_graph, fake_fetch, host)
