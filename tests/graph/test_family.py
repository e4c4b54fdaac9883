"""Test the async FamilyGraph facade."""

import asyncio

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.graph.errors import FamilyGraphError, NotFoundError, StorageError, ValidationError
from src.graph.family.graph import FamilyGraph
from src.graph.models import RelationLabel
from src.graph.storage import InMemoryStorage
from src.models import RelationType


class FailingStorage(InMemoryStorage):
    """Storage whose saves fail on demand."""

    def __init__(self):
        super().__init__()
        self.fail = False

    async def save_members(self, members):
        if self.fail:
            raise StorageError("disk full")
        await super().save_members(members)

    async def save_edges(self, edges):
        if self.fail:
            raise StorageError("disk full")
        await super().save_edges(edges)


class SlowEdgeStorage(InMemoryStorage):
    """Storage whose edge saves take a while."""

    async def save_edges(self, edges):
        await asyncio.sleep(0.2)
        await super().save_edges(edges)


class EdgeFailingStorage(InMemoryStorage):
    """Storage that saves members but never edges."""

    async def save_edges(self, edges):
        raise StorageError("edges unavailable")


def _ids(members):
    return {m.id for m in members}


class TestMemberOperations:
    """Tests for member operations."""

    @pytest.mark.asyncio
    async def test_add_and_get(self, graph):
        member = await graph.add_member(given_name="John", family_name="Doe", gender="male")
        fetched = await graph.get_member(member.id)
        assert fetched.full_name == "John Doe"
        assert len(await graph.get_all_members()) == 1

    @pytest.mark.asyncio
    async def test_update(self, graph):
        member = await graph.add_member({"given_name": "Test"})
        updated = await graph.update_member(member.id, nickname="T")
        assert updated.nickname == "T"

    @pytest.mark.asyncio
    async def test_returned_members_are_read_only(self, graph, storage):
        """Edits go through update_member and reach storage."""
        member = await graph.add_member(given_name="Asha")
        with pytest.raises(PydanticValidationError):
            member.family_name = "Rao"
        assert (await graph.get_member(member.id)).family_name is None

        await graph.update_member(member.id, family_name="Rao")
        assert [m.family_name for m in await storage.load_members()] == ["Rao"]

    @pytest.mark.asyncio
    async def test_errors_surface(self, graph):
        """NotFound and ValidationError reach the caller."""
        with pytest.raises(NotFoundError):
            await graph.get_member("missing")
        with pytest.raises(ValidationError):
            await graph.add_member(given_name="")
        with pytest.raises(NotFoundError):
            await graph.add_parent("missing", given_name="Parent")

    @pytest.mark.asyncio
    async def test_delete_removes_relationships(self, graph):
        await graph.seed_sample_family()
        [suresh] = await graph.search_members("suresh")

        await graph.delete_member(suresh.id)

        for member in await graph.get_all_members():
            bundle = await graph.get_relationship_bundle(member.id)
            related = bundle.parents + bundle.children + bundle.spouses + bundle.siblings
            assert suresh.id not in _ids(related)
        for edge in await graph.get_all_relationships():
            assert suresh.id not in (edge.source_member_id, edge.target_member_id)


class TestCascades:
    """Tests for cascades through the facade."""

    @pytest.mark.asyncio
    async def test_add_parent_generation(self, graph):
        """A at generation 3 gains parent B one generation above."""
        a = await graph.add_member(given_name="A", generation=3)
        b = await graph.add_parent(a.id, given_name="B")

        a = await graph.get_member(a.id)
        assert b.generation == a.generation - 1

    @pytest.mark.asyncio
    async def test_add_parent_below_existing_root(self, graph):
        """A new parent of a gen-3 member is a root; the split is reported."""
        grandpa = await graph.add_member(given_name="Grandpa")
        dad = await graph.add_child(grandpa.id, given_name="Dad")
        a = await graph.add_child(dad.id, given_name="A")
        assert a.generation == 3

        b = await graph.add_parent(a.id, given_name="B")
        report = await graph.recompute_generations()

        assert b.generation == 1
        assert (await graph.get_member(a.id)).generation == 2
        assert report.conflicts == {a.id: [1, 2]}

    @pytest.mark.asyncio
    async def test_add_child_links_spouse(self, graph):
        mom = await graph.add_member(given_name="Mom")
        dad = await graph.add_spouse(mom.id, given_name="Dad")
        baby = await graph.add_child(mom.id, given_name="Baby")

        assert baby.id in _ids((await graph.get_relationship_bundle(dad.id)).children)
        assert dad.born_into_family is False

    @pytest.mark.asyncio
    async def test_add_sibling_shares_parents(self, graph):
        await graph.seed_sample_family()
        [amit] = await graph.search_members("amit")

        kiran = await graph.add_sibling(amit.id, given_name="Kiran")

        assert _ids((await graph.get_relationship_bundle(kiran.id)).parents) == \
            _ids((await graph.get_relationship_bundle(amit.id)).parents)

    @pytest.mark.asyncio
    async def test_add_relative_returns_edges(self, graph):
        mom = await graph.add_member(given_name="Mom")
        await graph.add_spouse(mom.id, given_name="Dad")

        result = await graph.add_relative("child", mom.id, given_name="Baby")

        assert result.member.given_name == "Baby"
        assert len(result.edges) == 4


class TestRelationships:
    """Tests for direct relationship operations."""

    @pytest.mark.asyncio
    async def test_add_and_remove(self, graph):
        a = await graph.add_member(given_name="A")
        b = await graph.add_member(given_name="B")

        edges = await graph.add_relationship(a.id, b.id, RelationType.PARENT)
        assert len(edges) == 2
        assert (await graph.get_member(a.id)).generation == 2

        assert await graph.add_relationship(a.id, b.id, "parent") == []
        assert await graph.remove_relationship(a.id, b.id) is True
        assert await graph.get_all_relationships() == []
        assert (await graph.get_member(a.id)).generation == 1


class TestQueries:
    """Tests for query operations."""

    @pytest.mark.asyncio
    async def test_rooted_tree_and_path(self, graph):
        await graph.seed_sample_family()
        [amit] = await graph.search_members("amit")
        [rahul] = await graph.search_members("rahul")

        tree = await graph.get_rooted_tree(amit.id)
        assert _ids(tree.cousins) == {rahul.id}
        assert await graph.get_relationship_path(amit.id, rahul.id) is RelationLabel.COUSIN

    @pytest.mark.asyncio
    async def test_search(self, graph):
        """'raj' finds Rajesh but not Suresh."""
        await graph.seed_sample_family()
        names = [m.given_name for m in await graph.search_members("raj")]
        assert names == ["Rajesh"]

    @pytest.mark.asyncio
    async def test_seed_only_once(self, graph):
        assert len(await graph.seed_sample_family()) == 8
        assert await graph.seed_sample_family() == {}


class TestPersistence:
    """Tests for the flush boundary and lifecycle."""

    @pytest.mark.asyncio
    async def test_flush_per_mutation(self, graph, storage):
        member = await graph.add_member(given_name="Saved")
        assert [m.id for m in await storage.load_members()] == [member.id]

    @pytest.mark.asyncio
    async def test_reads_do_not_flush(self, graph, storage):
        member = await graph.add_member(given_name="Saved")
        count = storage.save_count
        await graph.get_rooted_tree(member.id)
        await graph.search_members("sav")
        assert storage.save_count == count

    @pytest.mark.asyncio
    async def test_reopen(self, storage, config):
        graph = await FamilyGraph.open(storage, config)
        await graph.seed_sample_family()
        await graph.close()

        reopened = await FamilyGraph.open(storage, config)
        assert len(await reopened.get_all_members()) == 8
        assert len(await reopened.get_all_relationships()) == 26

    @pytest.mark.asyncio
    async def test_failed_flush_rolls_back(self, config):
        """A failed save leaves memory as it was before the call."""
        storage = FailingStorage()
        graph = FamilyGraph(storage, config=config)
        mom = await graph.add_member(given_name="Mom")

        storage.fail = True
        with pytest.raises(StorageError):
            await graph.add_child(mom.id, given_name="Baby")

        assert [m.id for m in await graph.get_all_members()] == [mom.id]
        assert await graph.get_all_relationships() == []

    @pytest.mark.asyncio
    async def test_failed_edge_save_leaves_no_member(self, config):
        """Members written before an edge failure are taken back."""
        storage = EdgeFailingStorage()
        graph = FamilyGraph(storage, config=config)
        mom = await graph.add_member(given_name="Mom")

        with pytest.raises(StorageError):
            await graph.add_child(mom.id, given_name="Baby")

        assert [m.given_name for m in await graph.get_all_members()] == ["Mom"]
        assert [m.given_name for m in await storage.load_members()] == ["Mom"]
        assert graph.store.dirty_members and graph.store.dirty_edges

        reopened = await FamilyGraph.open(storage, config)
        assert [m.given_name for m in await reopened.get_all_members()] == ["Mom"]

    @pytest.mark.asyncio
    async def test_cancel_during_flush(self, config):
        """A cancelled cascade still finishes its write; memory matches storage."""
        storage = SlowEdgeStorage()
        graph = FamilyGraph(storage, config=config)
        mom = await graph.add_member(given_name="Mom")

        task = asyncio.create_task(graph.add_child(mom.id, given_name="Baby"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        in_memory = [m.given_name for m in await graph.get_all_members()]
        stored = [m.given_name for m in await storage.load_members()]
        assert in_memory == stored == ["Mom", "Baby"]
        assert len(await graph.get_all_relationships()) == len(await storage.load_edges()) == 2

    @pytest.mark.asyncio
    async def test_closed_graph(self, graph):
        await graph.close()
        with pytest.raises(FamilyGraphError):
            await graph.add_member(given_name="Late")

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, storage, config):
        async with await FamilyGraph.open(storage, config) as graph:
            await graph.add_member(given_name="Ctx")
        with pytest.raises(FamilyGraphError):
            await graph.get_all_members()


class TestConcurrency:
    """Concurrent cascades must not lose edges."""

    @pytest.mark.asyncio
    async def test_parallel_children(self, graph):
        mom = await graph.add_member(given_name="Mom")
        await graph.add_spouse(mom.id, given_name="Dad")

        await asyncio.gather(*(graph.add_child(mom.id, given_name=f"Kid{i}") for i in range(10)))

        bundle = await graph.get_relationship_bundle(mom.id)
        assert len(bundle.children) == 10
        assert len(await graph.get_all_relationships()) == 2 + 10 * 4
