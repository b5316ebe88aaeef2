from GeneratorComponents.BlockTypes import BlockKind
from InterfaceComponents.BlockTree import block_label


def test_label_lists_kind_handle_and_fields(graph):
    node = graph.create(BlockKind.MOTOR_OFF, fields={"MOTOR": "OUT_B"})
    label = block_label(node)
    assert label.plain == f"motor_off #{node.handle} [MOTOR=OUT_B]"
    assert str(label.style) == "white"


def test_disabled_and_warned_blocks_stand_out(graph):
    node = graph.create(BlockKind.MAIN_TASK)
    node.set_flags(True, "careful")
    assert str(block_label(node).style) == "yellow"
    assert block_label(node).plain.endswith("! careful")
    node.set_flags(False, "careful")
    assert str(block_label(node).style) == "dim strike"
