"""Sample household used to try out an empty family graph."""

import logging
from datetime import date

from src.graph.family.store import RelationshipStore
from src.models import Gender, Member, RelationType

logger = logging.getLogger(__name__)


# key: (given_name, gender, birth_date, generation, born_into_family)
SAMPLE_MEMBERS = {
    "grandfather": ("Ramesh", Gender.MALE, date(1945, 3, 15), 1, True),
    "grandmother": ("Kamla", Gender.FEMALE, date(1948, 7, 22), 1, False),
    "father": ("Suresh", Gender.MALE, date(1970, 5, 10), 2, True),
    "mother": ("Priya", Gender.FEMALE, date(1972, 9, 18), 2, False),
    "uncle": ("Rajesh", Gender.MALE, date(1968, 2, 25), 2, True),
    "self": ("Amit", Gender.MALE, date(1995, 11, 8), 3, True),
    "sister": ("Neha", Gender.FEMALE, date(1998, 4, 12), 3, True),
    "cousin": ("Rahul", Gender.MALE, date(1996, 8, 30), 3, True),
}

# (member, related, type): related is <type> of member
SAMPLE_LINKS = [
    ("grandfather", "grandmother", RelationType.SPOUSE),
    ("father", "grandfather", RelationType.PARENT),
    ("father", "grandmother", RelationType.PARENT),
    ("uncle", "grandfather", RelationType.PARENT),
    ("uncle", "grandmother", RelationType.PARENT),
    ("father", "uncle", RelationType.SIBLING),
    ("father", "mother", RelationType.SPOUSE),
    ("self", "father", RelationType.PARENT),
    ("self", "mother", RelationType.PARENT),
    ("sister", "father", RelationType.PARENT),
    ("sister", "mother", RelationType.PARENT),
    ("self", "sister", RelationType.SIBLING),
    ("cousin", "uncle", RelationType.PARENT),
]


def seed_sample_family(store: RelationshipStore, family_name: str = "Kumar") -> dict[str, Member]:
    """
    Load a three-generation sample family into an empty store.

    Generations are set as written rather than recomputed, since the
    married-in grandmother and mother have no recorded parents.

    Returns:
        Created members keyed by role, or {} if the store already had members.
    """
    if len(store):
        return {}

    with store.transaction():
        created = {}
        for role, (given, gender, born, generation, blood) in SAMPLE_MEMBERS.items():
            created[role] = store.add_member({
                "given_name": given,
                "family_name": family_name,
                "gender": gender,
                "birth_date": born,
                "generation": generation,
                "born_into_family": blood,
            })
        for member_role, related_role, rel_type in SAMPLE_LINKS:
            store.add_relationship_edge(created[member_role].id, created[related_role].id, rel_type)

    logger.info("Seeded sample family with %d members", len(created))
    return created
