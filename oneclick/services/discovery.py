"""Volunteer discovery: hidden set, archived view, search and category filters."""

from collections.abc import Collection, Iterable

from oneclick.core.redis_client import HIDDEN_VOLUNTEERS_KEY, LocalStorage
from oneclick.schemas.volunteers import VolunteerProfile


def matches_search(volunteer: VolunteerProfile, term: str) -> bool:
    """Case-insensitive substring match on name, bio or any skill name."""
    needle = term.strip().lower()
    if not needle:
        return True
    return (
        needle in volunteer.name.lower()
        or needle in volunteer.bio.lower()
        or any(needle in skill.name.lower() for skill in volunteer.skills)
    )


def matches_skill(volunteer: VolunteerProfile, skill: str) -> bool:
    """Exact category match against one skill name; empty matches everything."""
    return not skill or any(s.name == skill for s in volunteer.skills)


def filter_volunteers(
    volunteers: Iterable[VolunteerProfile],
    hidden: Collection[str],
    archived: bool = False,
    search: str = "",
    skill: str = "",
) -> list[VolunteerProfile]:
    """
    Apply the dashboard filters in order.

    1. Hidden ids are excluded, or in archived mode only hidden ids are kept.
    2. Free-text search.
    3. Category (skill) filter.
    """
    results = []
    for volunteer in volunteers:
        is_hidden = str(volunteer.id) in hidden
        if is_hidden != archived:
            continue
        if matches_search(volunteer, search) and matches_skill(volunteer, skill):
            results.append(volunteer)
    return results


def distinct_skills(volunteers: Iterable[VolunteerProfile]) -> list[str]:
    """Skill names across all volunteers, deduplicated in first-seen order."""
    seen: dict[str, None] = {}
    for volunteer in volunteers:
        for skill in volunteer.skills:
            seen.setdefault(skill.name, None)
    return list(seen)


class HiddenVolunteers:
    """Volunteer ids a device has hidden from its default listing."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def ids(self) -> list[str]:
        """Hidden ids in the order they were hidden."""
        stored = self.storage.get_json(HIDDEN_VOLUNTEERS_KEY, default=[])
        return [str(v) for v in stored] if isinstance(stored, list) else []

    def hide(self, volunteer_id: str) -> list[str]:
        """Hide a volunteer; hiding twice is a no-op."""
        hidden = self.ids()
        if volunteer_id not in hidden:
            hidden.append(volunteer_id)
            self.storage.set_json(HIDDEN_VOLUNTEERS_KEY, hidden)
        return hidden

    def unhide(self, volunteer_id: str) -> list[str]:
        """Show a hidden volunteer again."""
        hidden = [v for v in self.ids() if v != volunteer_id]
        self.storage.set_json(HIDDEN_VOLUNTEERS_KEY, hidden)
        return hidden
