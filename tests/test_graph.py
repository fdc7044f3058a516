import random
from collections import deque

import pytest

from ttt_graph.errors import InvariantViolation
from ttt_graph.game import Action, Mover, Position, ProgressKind, apply, legal_actions, progress
from ttt_graph.graph import Registry, explore
from ttt_graph.labels import Label
from ttt_graph.propagate import recompute_label, try_finalize, verify
from ttt_graph.solver import solve_all_reachable, solve_value

REACHABLE = 5478
TERMINAL = {"self": 626, "opponent": 316, "draw": 16}


@pytest.fixture(scope="module")
def registry():
    return explore(Position.initial())


def _labels(reg):
    return {pos: reg[pos].label for pos in reg}


def test_reachable_counts_snapshot(registry):
    assert len(registry) == REACHABLE
    term = {"self": 0, "opponent": 0, "draw": 0}
    for pos in registry:
        prog = progress(pos)
        if prog.kind is ProgressKind.WIN:
            term["self" if prog.winner is Mover.SELF else "opponent"] += 1
        elif prog.kind is ProgressKind.DRAW:
            term["draw"] += 1
    assert term == TERMINAL


def test_nodes_match_independent_enumeration(registry):
    seen = {Position.initial()}
    q = deque(seen)
    while q:
        s = q.popleft()
        for a in legal_actions(s):
            child = apply(s, a)
            if child not in seen:
                seen.add(child)
                q.append(child)
    assert set(registry) == seen
    assert len({node.position for node in registry.nodes}) == len(registry.nodes)


def test_every_node_labelled_and_verified(registry):
    assert all(node.label is not None for node in registry.nodes)
    verify(registry)


def test_initial_position_label(registry):
    # Tic-tac-toe is a draw under perfect play, but SELF can also blunder
    # into a loss and OPPONENT can always hold the draw: never win.
    assert registry[Position.initial()].label is Label.NEVER_WIN


def test_terminal_labels_follow_the_winner(registry):
    for pos in registry:
        prog = progress(pos)
        label = registry[pos].label
        if prog.kind is ProgressKind.WIN:
            # the player who just moved won; the player to move has lost
            assert prog.winner is pos.turn.opposite()
            assert label is (Label.FORCED_WIN if prog.winner is Mover.SELF else Label.FORCED_LOSE)
        elif prog.kind is ProgressKind.DRAW:
            assert label is Label.FORCED_DRAW


def test_forced_labels_agree_with_minimax(registry):
    values = solve_all_reachable()
    assert set(values) == set(registry)
    for pos, value in values.items():
        label = registry[pos].label
        assert (label is Label.FORCED_WIN) == (value == 1)
        assert (label is Label.FORCED_LOSE) == (value == -1)


def test_reachable_labels_stay_within_pure_outcomes(registry):
    used = {node.label for node in registry.nodes}
    assert used <= {Label.FORCED_WIN, Label.FORCED_DRAW, Label.FORCED_LOSE, Label.NEVER_WIN}


def test_parent_links_mirror_child_links(registry):
    incoming = sum(len(node.parents) for node in registry.nodes)
    assert incoming == registry.edge_count()
    for node in registry.nodes:
        assert len(node.children) == len(legal_actions(node.position))
        for action, child in registry.children(node):
            assert child.position == apply(node.position, action)
            assert node.index in child.parents
    assert registry[Position.initial()].parents == []


def test_shared_nodes_have_many_parents(registry):
    # X at (0,0) then (1,1) reached through either move order
    pos = Position.parse("100010200")
    assert len(registry[pos].parents) >= 2


def test_registry_iterates_in_position_order(registry):
    order = list(registry)
    assert order == sorted(order)
    assert order[0] == Position.initial()


def test_relabelling_a_node_is_rejected(registry):
    node = registry[Position.initial()]
    with pytest.raises(InvariantViolation):
        node.assign(Label.FORCED_WIN)
    assert node.label is Label.NEVER_WIN


def test_try_finalize_is_noop_on_labelled_graph(registry):
    for node in registry.nodes:
        assert try_finalize(registry, node) == 0


@pytest.mark.parametrize("order", [
    lambda acts: list(reversed(acts)),
    lambda acts: random.Random(7).sample(acts, len(acts)),
])
def test_labels_do_not_depend_on_action_order(registry, order):
    other = explore(Position.initial(), action_order=order)
    assert _labels(other) == _labels(registry)


def test_repeated_exploration_is_identical(registry):
    assert _labels(explore(Position.initial())) == _labels(registry)


def test_explore_is_idempotent():
    reg = explore(Position.parse("121201212"))
    before = (len(reg), reg.edge_count())
    assert explore(Position.parse("121201212"), reg) is reg
    assert (len(reg), reg.edge_count()) == before


def test_explore_last_move_draw():
    start = Position.parse("121201212")
    reg = explore(start)
    assert len(reg) == 2
    assert reg[start].label is Label.FORCED_DRAW
    child = apply(start, Action(1, 1))
    assert reg[child].label is Label.FORCED_DRAW
    assert reg[child].parents == [reg[start].index]


def test_explore_immediate_win_available():
    start = Position.parse("110220000")
    reg = explore(start)
    assert reg[start].label is Label.FORCED_WIN
    assert solve_value(start) == 1


def test_explore_opponent_threat_unanswerable():
    # OPPONENT to move and can complete the middle row
    start = Position.parse("110220100")
    assert start.turn is Mover.OPPONENT
    reg = explore(start)
    assert reg[start].label is Label.FORCED_LOSE


def test_explore_terminal_start():
    start = Position.parse("111220000")
    reg = explore(start)
    assert len(reg) == 1
    assert reg[start].label is Label.FORCED_WIN
    assert reg[start].children == {}


def test_explore_into_existing_registry_links_known_positions():
    reg = explore(Position.parse("121201212"))
    parent = Position.parse("101201212")
    explore(parent, reg)
    verify(reg)
    shared = reg[Position.parse("121201212")]
    assert reg[parent].index in shared.parents
    assert reg[parent].label is not None


def test_try_finalize_waits_for_children():
    reg = Registry()
    root = reg.add(Position.parse("121201212"))
    assert try_finalize(reg, root) == 0
    assert root.label is None
    child = reg.add(apply(root.position, Action(1, 1)))
    reg.link(root, Action(1, 1), child)
    # child exists but is not labelled yet
    assert recompute_label(reg, root) is None
    assert try_finalize(reg, root) == 0
    # labelling the leaf cascades to its parent
    assert try_finalize(reg, child) == 2
    assert root.label is Label.FORCED_DRAW


def test_registry_rejects_duplicate_positions():
    reg = Registry()
    reg.add(Position.initial())
    with pytest.raises(InvariantViolation):
        reg.add(Position.initial())


def test_verify_detects_tampered_label():
    reg = explore(Position.parse("110220000"))
    node = reg[Position.parse("110220000")]
    node.label = Label.FORCED_DRAW
    with pytest.raises(InvariantViolation):
        verify(reg)


def test_verify_detects_dangling_parent_link():
    reg = explore(Position.parse("121201212"))
    reg[Position.parse("121211212")].parents.append(99)
    with pytest.raises(InvariantViolation):
        verify(reg)
