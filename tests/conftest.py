import pytest

from GeneratorComponents.BlockGraph import BlockGraph
from GeneratorComponents.Config import GeneratorOptions
from GeneratorComponents.GeneratorContext import GeneratorContext
from GeneratorComponents.Scopes import MAIN_SCOPE


@pytest.fixture
def graph():
    return BlockGraph()


@pytest.fixture
def make_context():
    """Context with the main scope open, as the assembler leaves it while emitting."""

    def make(graph, options=None):
        ctx = GeneratorContext.for_graph(graph, options or GeneratorOptions())
        ctx.scopes.open(MAIN_SCOPE)
        return ctx

    return make


@pytest.fixture
def number(graph):
    def make(value):
        return graph.create("number", fields={"NUM": value})

    return make
