import gc
import time

import pytest

from nestedstopwatch import InvalidNameError, TimingContext, TimingNode


def test_new_context_is_idle() -> None:
    ctx = TimingContext()

    assert ctx.idle
    assert ctx.depth == 0
    assert ctx.current_name is None
    assert ctx.last_stopped_name is None
    assert ctx.elapsed() == 0


def test_depth_follows_start_and_stop() -> None:
    ctx = TimingContext()

    ctx.start("a")
    ctx.start("b")
    ctx.start("c")
    assert ctx.depth == 3
    assert ctx.active_names() == ["a", "b", "c"]

    ctx.stop()
    assert ctx.depth == 2
    assert ctx.current_name == "b"
    assert ctx.last_stopped_name == "c"

    ctx.stop()
    ctx.stop()
    assert ctx.idle
    assert ctx.last_stopped_name == "a"

    assert ctx.stop() == 0
    assert ctx.last_stopped_name is None
    assert ctx.idle


def test_invalid_start_leaves_stack_unchanged() -> None:
    ctx = TimingContext()
    ctx.start("a")
    node = ctx.current

    with pytest.raises(InvalidNameError):
        ctx.start("  ")

    assert ctx.current is node
    assert node.children == {}


def test_children_are_registered_under_parent() -> None:
    ctx = TimingContext()

    outer = ctx.start("outer")
    inner = ctx.start("inner")

    assert ctx.root.children == {"outer": outer}
    assert outer.children == {"inner": inner}
    assert inner.parent is outer
    assert outer.parent is ctx.root
    assert ctx.root.parent is None


def test_later_child_replaces_earlier_child_of_same_name() -> None:
    ctx = TimingContext()
    ctx.start("outer")

    first = ctx.start("step")
    ctx.stop()
    second = ctx.start("step")
    ctx.stop()

    assert ctx.current.children["step"] is second
    assert second is not first


def test_parent_link_is_weak() -> None:
    parent = TimingNode("parent")
    child = parent.add_child("child")

    del parent
    gc.collect()

    assert child.parent is None


def test_node_stops_once() -> None:
    node = TimingNode("once")
    time.sleep(0.01)
    first = node.stop()
    end = node.end_ns
    time.sleep(0.01)

    assert node.stop() == first
    assert node.end_ns == end
    assert not node.running
    assert node.start_ns <= node.end_ns


def test_elapsed_while_running_grows() -> None:
    node = TimingNode("running")
    time.sleep(0.02)

    assert node.running
    assert node.elapsed() >= 20


def test_reset_drops_active_spans() -> None:
    ctx = TimingContext()
    old_root = ctx.root
    ctx.start("a")
    ctx.start("b")

    ctx.reset()

    assert ctx.idle
    assert ctx.root is not old_root
    assert ctx.root.children == {}
    assert ctx.stop() == 0
