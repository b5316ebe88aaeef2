import pytest

from GeneratorComponents.BlockGraph import GraphError, GraphEventType
from GeneratorComponents.BlockTypes import BlockKind


def test_create_fills_defaults_and_empty_slots(graph):
    node = graph.create(BlockKind.MOTOR_ON_WITH_POWER)
    assert node.fields == {"MOTOR": "OUT_A", "DIRECTION": "FWD"}
    assert list(node.value_slots) == ["POWER"]
    assert node.value_slots["POWER"].target is None
    assert node.value_slots["POWER"].default == "50"
    assert node.enabled


def test_handles_follow_creation_order(graph):
    first = graph.create(BlockKind.MOTOR_OFF)
    second = graph.create(BlockKind.PLAY_SOUND)
    assert first.handle < second.handle
    assert graph.top_blocks() == [first, second]


def test_unknown_kind_is_rejected(graph):
    with pytest.raises(GraphError):
        graph.create("teleport")


@pytest.mark.parametrize(
    "kind, fields",
    [
        (BlockKind.MOTOR_OFF, {"MOTOR": "OUT_D"}),
        (BlockKind.PERCENT, {"NUM": 150}),
        (BlockKind.NUMBER, {"NUM": "12"}),
        (BlockKind.VARIABLE_SET, {"VAR": "2fast"}),
        (BlockKind.MOTOR_OFF, {"SPEED": 3}),
    ],
)
def test_field_values_are_validated(graph, kind, fields):
    with pytest.raises(GraphError):
        graph.create(kind, fields=fields)


def test_identifier_fields_are_stripped(graph):
    node = graph.create(BlockKind.VARIABLE_SET, fields={"VAR": "  speed "})
    assert node.fields["VAR"] == "speed"


def test_named_task_accepts_an_empty_name(graph):
    node = graph.create(BlockKind.NAMED_TASK, fields={"NAME": ""})
    assert node.fields["NAME"] == ""


def test_value_slot_accepts_only_values(graph):
    wait = graph.create(BlockKind.WAIT_SECONDS)
    with pytest.raises(GraphError):
        graph.connect_value(wait, "SECONDS", graph.create(BlockKind.MOTOR_OFF))


def test_value_slot_checks_output_type(graph):
    wait_until = graph.create(BlockKind.WAIT_UNTIL)
    with pytest.raises(GraphError):
        graph.connect_value(wait_until, "CONDITION", graph.create(BlockKind.NUMBER))
    set_power = graph.create(BlockKind.SET_POWER)
    graph.connect_value(set_power, "POWER", graph.create(BlockKind.NUMBER))


def test_statement_slot_accepts_only_statements(graph):
    loop = graph.create(BlockKind.REPEAT_FOREVER)
    with pytest.raises(GraphError):
        graph.connect_statement(loop, "DO", graph.create(BlockKind.NUMBER))


def test_tasks_cannot_be_nested(graph):
    main = graph.create(BlockKind.MAIN_TASK)
    task = graph.create(BlockKind.NAMED_TASK)
    with pytest.raises(GraphError):
        graph.connect_statement(main, "STATEMENTS", task)
    with pytest.raises(GraphError):
        graph.connect_next(main, graph.create(BlockKind.MOTOR_OFF))


def test_cycles_are_rejected(graph):
    outer = graph.create(BlockKind.REPEAT_FOREVER)
    inner = graph.create(BlockKind.REPEAT_FOREVER)
    graph.connect_statement(outer, "DO", inner)
    with pytest.raises(GraphError):
        graph.connect_statement(inner, "DO", outer)

    group = graph.create(BlockKind.GROUP)
    arithmetic = graph.create(BlockKind.ARITHMETIC)
    graph.connect_value(group, "VALUE", arithmetic)
    with pytest.raises(GraphError):
        graph.connect_value(arithmetic, "A", group)


def test_occupied_value_slot_detaches_previous_occupant(graph):
    wait = graph.create(BlockKind.WAIT_SECONDS)
    old = graph.create(BlockKind.NUMBER, fields={"NUM": 1})
    new = graph.create(BlockKind.NUMBER, fields={"NUM": 2})
    graph.connect_value(wait, "SECONDS", old)
    graph.connect_value(wait, "SECONDS", new)
    assert graph.value_target(wait, "SECONDS") is new
    assert old.parent is None
    assert old in graph.top_blocks()


def test_chain_inserted_into_statement_slot_keeps_previous_chain(graph):
    loop = graph.create(BlockKind.REPEAT_FOREVER)
    existing = graph.create(BlockKind.MOTOR_OFF)
    graph.connect_statement(loop, "DO", existing)

    first = graph.create(BlockKind.PLAY_SOUND)
    second = graph.create(BlockKind.MOTOR_ON)
    graph.connect_next(first, second)
    graph.connect_statement(loop, "DO", first)

    body = graph.chain(graph.statement_target(loop, "DO"))
    assert body == [first, second, existing]
    assert existing.parent == second.handle


def test_connect_next_reattaches_follower_after_inserted_chain(graph):
    a = graph.create(BlockKind.MOTOR_OFF)
    c = graph.create(BlockKind.PLAY_SOUND)
    graph.connect_next(a, c)
    b = graph.create(BlockKind.MOTOR_ON)
    graph.connect_next(a, b)
    assert graph.chain(a) == [a, b, c]


def test_moving_a_block_within_its_own_chain(graph):
    a = graph.create(BlockKind.MOTOR_OFF)
    b = graph.create(BlockKind.MOTOR_ON)
    c = graph.create(BlockKind.PLAY_SOUND)
    graph.connect_next(a, b)
    graph.connect_next(b, c)
    graph.connect_next(a, c)
    assert graph.chain(a) == [a, c, b]
    assert b.parent == c.handle


def test_disconnect_makes_a_top_block(graph):
    main = graph.create(BlockKind.MAIN_TASK)
    body = graph.create(BlockKind.MOTOR_OFF)
    graph.connect_statement(main, "STATEMENTS", body)
    graph.disconnect(body)
    assert graph.statement_target(main, "STATEMENTS") is None
    assert graph.top_blocks() == [main, body]


def test_delete_removes_everything_below(graph):
    main = graph.create(BlockKind.MAIN_TASK)
    wait = graph.create(BlockKind.WAIT_SECONDS)
    number = graph.create(BlockKind.NUMBER)
    graph.connect_statement(main, "STATEMENTS", wait)
    graph.connect_value(wait, "SECONDS", number)
    graph.delete(main)
    assert len(graph) == 0


def test_descendants_are_depth_first(graph):
    loop = graph.create(BlockKind.REPEAT_TIMES)
    times = graph.create(BlockKind.NUMBER)
    body = graph.create(BlockKind.MOTOR_OFF)
    after = graph.create(BlockKind.PLAY_SOUND)
    graph.connect_value(loop, "TIMES", times)
    graph.connect_statement(loop, "DO", body)
    graph.connect_next(loop, after)
    assert graph.descendants(loop) == [loop, times, body, after]
    assert graph.root_of(body) is loop


def test_blocks_by_kind(graph):
    first = graph.create(BlockKind.MAIN_TASK)
    graph.create(BlockKind.MOTOR_OFF)
    second = graph.create(BlockKind.MAIN_TASK)
    assert graph.blocks_by_kind(BlockKind.MAIN_TASK) == [first, second]


def test_if_shape_follows_mutation(graph):
    node = graph.create(BlockKind.IF, mutation={"else_if_count": 2, "has_else": True})
    assert list(node.value_slots) == ["IF0", "IF1", "IF2"]
    assert list(node.statement_slots) == ["DO0", "DO1", "DO2", "ELSE"]
    with pytest.raises(GraphError):
        graph.create(BlockKind.IF, mutation={"else_if_count": -1})


def test_listeners_receive_events(graph):
    events = []
    graph.add_change_listener(events.append)
    node = graph.create(BlockKind.MOTOR_OFF)
    graph.set_field(node, "MOTOR", "OUT_B")
    graph.set_enabled(node, False)
    graph.delete(node)
    assert [e.type for e in events] == [
        GraphEventType.CREATE,
        GraphEventType.CHANGE,
        GraphEventType.CHANGE,
        GraphEventType.DELETE,
    ]
    assert events[1].name == "MOTOR"

    graph.remove_change_listener(events.append)
    graph.create(BlockKind.MOTOR_OFF)
    assert len(events) == 4


def test_set_flags_reports_changes_without_events(graph):
    node = graph.create(BlockKind.MAIN_TASK)
    events = []
    graph.add_change_listener(events.append)
    assert node.set_flags(False, "warned")
    assert not node.set_flags(False, "warned")
    assert events == []
