"""Ego-centric views: a focus member and relatives up to two hops away."""

from typing import Iterable, Optional

from src.graph.family.store import RelationshipStore
from src.graph.models import RelationLabel, RootedTree
from src.models import Gender, Member


# Gendered words for each label: (male, female)
SPECIFIC_LABELS = {
    RelationLabel.PARENT: ("father", "mother"),
    RelationLabel.CHILD: ("son", "daughter"),
    RelationLabel.SPOUSE: ("husband", "wife"),
    RelationLabel.SIBLING: ("brother", "sister"),
    RelationLabel.GRANDPARENT: ("grandfather", "grandmother"),
    RelationLabel.AUNT_UNCLE: ("uncle", "aunt"),
}


def specific_label(label: RelationLabel, gender: Optional[Gender]) -> str:
    """Gendered word for a relation, falling back to the neutral label."""
    label = RelationLabel(label)
    words = SPECIFIC_LABELS.get(label)
    if words and gender == Gender.MALE:
        return words[0]
    if words and gender == Gender.FEMALE:
        return words[1]
    return label.value.lower()


def unique_members(members: Iterable[Member]) -> list[Member]:
    """Drop repeats by id, keeping first-seen order."""
    seen = {}
    for member in members:
        seen.setdefault(member.id, member)
    return list(seen.values())


class EgoTreeBuilder:
    """Derive grandparents, aunts/uncles and cousins around a focus member."""

    def __init__(self, store: RelationshipStore):
        self.store = store

    def get_rooted_tree(self, focus_id: str) -> RootedTree:
        """
        Direct relations of the focus plus derived two-hop sets.

        An unknown focus yields an empty tree with focus=None.
        """
        focus = self.store.find_member(focus_id)
        if focus is None:
            return RootedTree()

        bundle = self.store.get_relationship_bundle(focus_id)
        parent_bundles = [self.store.get_relationship_bundle(p.id) for p in bundle.parents]

        grandparents = unique_members(gp for b in parent_bundles for gp in b.parents)
        aunts_uncles = unique_members(au for b in parent_bundles for au in b.siblings)
        cousins = unique_members(
            child
            for au in aunts_uncles
            for child in self.store.get_relationship_bundle(au.id).children
        )

        return RootedTree(
            focus=focus,
            parents=bundle.parents,
            grandparents=grandparents,
            spouses=bundle.spouses,
            children=bundle.children,
            siblings=bundle.siblings,
            aunts_uncles=aunts_uncles,
            cousins=cousins,
        )

    def get_grandchildren(self, focus_id: str) -> list[Member]:
        """Children of the focus member's children."""
        if focus_id not in self.store:
            return []
        children = self.store.get_relationship_bundle(focus_id).children
        return unique_members(
            grandchild
            for child in children
            for grandchild in self.store.get_relationship_bundle(child.id).children
        )

    def get_relationship_path(self, from_id: str, to_id: str) -> Optional[RelationLabel]:
        """What to_id is to from_id, checked nearest relation first.

        Relations further than two hops are not resolved.
        """
        tree = self.get_rooted_tree(from_id)
        checks = (
            (RelationLabel.PARENT, tree.parents),
            (RelationLabel.CHILD, tree.children),
            (RelationLabel.SPOUSE, tree.spouses),
            (RelationLabel.SIBLING, tree.siblings),
            (RelationLabel.GRANDPARENT, tree.grandparents),
            (RelationLabel.AUNT_UNCLE, tree.aunts_uncles),
            (RelationLabel.COUSIN, tree.cousins),
        )
        for label, members in checks:
            if any(m.id == to_id for m in members):
                return label
        return None
