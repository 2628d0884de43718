"""Tests for volunteer discovery filters and the hidden set."""

from uuid import uuid4

from oneclick.core.redis_client import HIDDEN_VOLUNTEERS_KEY, LocalStorage
from oneclick.schemas.volunteers import Skill, VolunteerProfile
from oneclick.services.discovery import (
    HiddenVolunteers,
    distinct_skills,
    filter_volunteers,
    matches_search,
)


def make_volunteer(name: str, bio: str = "", skills: tuple[str, ...] = ()) -> VolunteerProfile:
    return VolunteerProfile(
        id=uuid4(),
        user_id=f"uid_{name}",
        name=name,
        email=f"{name.lower()}@example.com",
        bio=bio,
        hourly_rate=400,
        skills=tuple(Skill(id=uuid4(), name=s) for s in skills),
    )


ANA = make_volunteer("Ana", "Loves gardening", ("Gardening",))
BEN = make_volunteer("Ben", "Python tutor", ("Tutoring", "Coding"))
CARA = make_volunteer("Cara", "", ("Cooking", "Tutoring"))
ALL = [ANA, BEN, CARA]


def test_search_matches_name_bio_and_skills_case_insensitively():
    assert matches_search(ANA, "ana")
    assert matches_search(BEN, "PYTHON")
    assert matches_search(CARA, "cook")
    assert not matches_search(ANA, "python")


def test_blank_search_matches_everything():
    assert filter_volunteers(ALL, set(), search="   ") == ALL


def test_hidden_volunteers_excluded_by_default():
    result = filter_volunteers(ALL, {str(BEN.id)})
    assert result == [ANA, CARA]


def test_archived_view_shows_only_hidden():
    result = filter_volunteers(ALL, {str(BEN.id)}, archived=True)
    assert result == [BEN]


def test_filters_apply_in_archived_view():
    hidden = {str(BEN.id), str(CARA.id)}
    assert filter_volunteers(ALL, hidden, archived=True, skill="Cooking") == [CARA]
    assert filter_volunteers(ALL, hidden, archived=True, search="python") == [BEN]


def test_skill_filter_is_exact():
    assert filter_volunteers(ALL, set(), skill="Tutoring") == [BEN, CARA]
    assert filter_volunteers(ALL, set(), skill="tutor") == []


def test_distinct_skills_first_seen_order():
    assert distinct_skills(ALL) == ["Gardening", "Tutoring", "Coding", "Cooking"]


def test_hide_is_idempotent(local_storage: LocalStorage):
    hidden = HiddenVolunteers(local_storage)
    hidden.hide("a")
    hidden.hide("b")
    assert hidden.hide("a") == ["a", "b"]
    assert local_storage.get_json(HIDDEN_VOLUNTEERS_KEY) == ["a", "b"]


def test_unhide(local_storage: LocalStorage):
    hidden = HiddenVolunteers(local_storage)
    hidden.hide("a")
    hidden.hide("b")
    assert hidden.unhide("a") == ["b"]
    assert hidden.unhide("missing") == ["b"]


def test_malformed_hidden_value_reads_as_empty(local_storage: LocalStorage):
    local_storage.set_item(HIDDEN_VOLUNTEERS_KEY, "{not json")
    assert HiddenVolunteers(local_storage).ids() == []


def test_search_and_category_combined():
    asha = make_volunteer("Asha", skills=("Yoga",))
    ben = make_volunteer("Ben", skills=("Coding",))
    volunteers = [asha, ben]

    assert filter_volunteers(volunteers, set(), search="yOgA") == [asha]
    assert filter_volunteers(volunteers, set(), skill="Coding") == [ben]
    assert filter_volunteers(volunteers, set(), search="knitting", skill="Coding") == []
