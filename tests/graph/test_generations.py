"""Tests for generation assignment."""

from src.config import GenerationPolicy
from src.graph.family.generations import assign_generations, build_ancestry
from src.models import RelationType


def _chain(store, *names):
    """Members where each one is the parent of the next."""
    members = [store.add_member({"given_name": name}) for name in names]
    for parent, child in zip(members, members[1:]):
        store.add_relationship_edge(child.id, parent.id, RelationType.PARENT)
    return members


def _level(store, member):
    return store.get_member(member.id).generation


class TestFirstVisit:
    """Tests for the default breadth-first policy."""

    def test_empty_store(self, store):
        report = assign_generations(store)
        assert report.assigned == {}
        assert report.consistent

    def test_chain(self, store):
        grandpa, dad, kid = _chain(store, "Grandpa", "Dad", "Kid")
        report = assign_generations(store)

        assert [_level(store, m) for m in (grandpa, dad, kid)] == [1, 2, 3]
        assert report.consistent

    def test_root_level(self, store):
        top, bottom = _chain(store, "Top", "Bottom")
        assign_generations(store, root_level=0)
        assert (_level(store, top), _level(store, bottom)) == (0, 1)

    def test_married_in_parent_conflict_reported(self, store, family):
        """A parent without recorded ancestry pulls the child up; it is reported."""
        report = assign_generations(store, GenerationPolicy.FIRST_VISIT)

        assert _level(store, family["mother"]) == 1
        assert _level(store, family["father"]) == 2
        assert _level(store, family["self"]) == 2
        assert _level(store, family["cousin"]) == 3
        assert report.conflicts[family["self"].id] == [1, 2]
        assert family["cousin"].id not in report.conflicts

    def test_idempotent(self, store, family):
        first = assign_generations(store)
        levels = {m.id: m.generation for m in store.all_members()}
        second = assign_generations(store)

        assert first.assigned == second.assigned
        assert {m.id: m.generation for m in store.all_members()} == levels

    def test_cycle_keeps_previous_generation(self, store):
        """Members no root reaches keep what they had."""
        a = store.add_member({"given_name": "A", "generation": 7})
        b = store.add_member({"given_name": "B", "generation": 8})
        c = store.add_member({"given_name": "C", "generation": 9})
        store.add_relationship_edge(a.id, b.id, RelationType.PARENT)
        store.add_relationship_edge(b.id, c.id, RelationType.PARENT)
        store.add_relationship_edge(c.id, a.id, RelationType.PARENT)

        report = assign_generations(store)

        assert [_level(store, m) for m in (a, b, c)] == [7, 8, 9]
        assert set(report.unreachable) == {a.id, b.id, c.id}
        assert not report.consistent

    def test_does_not_touch_updated_at(self, store):
        top, bottom = _chain(store, "Top", "Bottom")
        stamp = store.get_member(bottom.id).updated_at
        assign_generations(store)
        assert store.get_member(bottom.id).updated_at == stamp


class TestDeepest:
    """Tests for the longest-route policy."""

    def test_child_follows_deeper_parent(self, store, family):
        """The married-in mother no longer pulls her children up."""
        report = assign_generations(store, GenerationPolicy.DEEPEST)

        assert _level(store, family["grandfather"]) == 1
        assert _level(store, family["father"]) == 2
        assert _level(store, family["self"]) == 3
        assert _level(store, family["sister"]) == 3
        assert _level(store, family["cousin"]) == 3
        # parents still disagree, so it is still reported
        assert report.conflicts[family["self"].id] == [1, 2]

    def test_matches_first_visit_on_single_line(self, store):
        _chain(store, "A", "B", "C", "D")
        first = assign_generations(store, GenerationPolicy.FIRST_VISIT).assigned
        deepest = assign_generations(store, GenerationPolicy.DEEPEST).assigned
        assert first == deepest


class TestAncestryMaps:
    """Tests for the adjacency built from edges."""

    def test_both_directions(self, store):
        dad, kid = _chain(store, "Dad", "Kid")
        child_to_parents, parent_to_children = build_ancestry(store.all_edges())
        assert child_to_parents[kid.id] == [dad.id]
        assert parent_to_children[dad.id] == [kid.id]

    def test_ignores_spouse_and_sibling(self, store):
        a = store.add_member({"given_name": "A"})
        b = store.add_member({"given_name": "B"})
        store.add_relationship_edge(a.id, b.id, RelationType.SPOUSE)
        child_to_parents, parent_to_children = build_ancestry(store.all_edges())
        assert not child_to_parents and not parent_to_children

    def test_parent_edges_only(self, store, family):
        """Parent edges alone give the same maps as the full edge set."""
        assert build_ancestry(store.iter_parent_edges()) == build_ancestry(store.all_edges())
