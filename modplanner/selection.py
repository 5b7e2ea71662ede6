"""Editing the priority list, character locks and saved targets.

All helpers are pure: they take the current `selected` tuple and/or the
character mapping and return new ones. Characters are frozen models, so the
returned mapping shares every character that did not change.
"""
from typing import Mapping, Optional, Sequence

from modplanner.models import Character, LockState, PriorityEntry, Target

Selected = tuple[PriorityEntry, ...]
Characters = dict[str, Character]


def _with_lock(character: Character, lock: LockState) -> Character:
    if character.settings.lock is lock:
        return character
    return character.with_settings(character.settings.with_lock(lock))


def _set_lock(characters: Mapping[str, Character], ids: set[str], lock: LockState) -> Characters:
    return {cid: _with_lock(c, lock) if cid in ids else c for cid, c in characters.items()}


def _replace(characters: Mapping[str, Character], character: Character) -> Characters:
    return {**characters, character.id: character}


def _repoint(selected: Selected, character_id: str, name: str, target: Target) -> Selected:
    """Point the character's entries that use target `name` at `target`."""
    return tuple(
        e.model_copy(update={"target": target})
        if e.character_id == character_id and e.target.name == name else e
        for e in selected
    )


# ---------------------------------------------------------------------------
# Priority list
# ---------------------------------------------------------------------------

def select_character(selected: Selected, character_id: str, target: Target,
                     prev_index: Optional[int] = None) -> Selected:
    """Add a character just below `prev_index`, or at the top when it is None."""
    if any(e.character_id == character_id for e in selected):
        raise ValueError(f"{character_id} is already selected")
    entry = PriorityEntry(character_id=character_id, target=target)
    if prev_index is None:
        return (entry,) + selected
    return selected[:prev_index + 1] + (entry,) + selected[prev_index + 1:]


def move_selected_character(selected: Selected, from_index: int,
                            to_index: Optional[int]) -> Selected:
    """Move an entry to just below the entry currently at `to_index` (top when None)."""
    if from_index == to_index:
        return selected
    entries = list(selected)
    moved = entries.pop(from_index)
    if to_index is None:
        entries.insert(0, moved)
    elif from_index < to_index:
        entries.insert(to_index, moved)
    else:
        entries.insert(to_index + 1, moved)
    return tuple(entries)


def unselect_character(selected: Selected, characters: Mapping[str, Character],
                       index: int) -> tuple[Selected, Characters]:
    """Remove the entry at `index`; an unselected character is also unlocked."""
    if index >= len(selected):
        return selected, dict(characters)
    removed = selected[index]
    remaining = selected[:index] + selected[index + 1:]
    return remaining, _set_lock(characters, {removed.character_id}, LockState.UNLOCKED)


def unselect_all_characters(characters: Mapping[str, Character]) -> tuple[Selected, Characters]:
    return (), _set_lock(characters, set(characters), LockState.UNLOCKED)


def change_character_target(selected: Selected, index: int, target: Target) -> Selected:
    if index >= len(selected):
        return selected
    entry = selected[index].model_copy(update={"target": target})
    return selected[:index] + (entry,) + selected[index + 1:]


# ---------------------------------------------------------------------------
# Locks
# ---------------------------------------------------------------------------

def lock_character(characters: Mapping[str, Character], character_id: str) -> Characters:
    if character_id not in characters:
        raise KeyError(character_id)
    return _set_lock(characters, {character_id}, LockState.LOCKED)


def unlock_character(characters: Mapping[str, Character], character_id: str) -> Characters:
    if character_id not in characters:
        raise KeyError(character_id)
    return _set_lock(characters, {character_id}, LockState.UNLOCKED)


def lock_selected_characters(selected: Selected,
                             characters: Mapping[str, Character]) -> Characters:
    return _set_lock(characters, {e.character_id for e in selected}, LockState.LOCKED)


def unlock_selected_characters(selected: Selected,
                               characters: Mapping[str, Character]) -> Characters:
    return _set_lock(characters, {e.character_id for e in selected}, LockState.UNLOCKED)


# ---------------------------------------------------------------------------
# Target editing
# ---------------------------------------------------------------------------

def finish_edit_character_target(selected: Selected, characters: Mapping[str, Character],
                                 index: int, target: Target) -> tuple[Selected, Characters]:
    """Apply an edited target to the entry at `index` and save it on the character."""
    if index >= len(selected):
        return selected, dict(characters)
    character = characters[selected[index].character_id]
    updated = character.with_settings(character.settings.with_target(target))
    return change_character_target(selected, index, target), _replace(characters, updated)


def delete_target(selected: Selected, characters: Mapping[str, Character],
                  character_id: str, name: str) -> tuple[Selected, Characters]:
    """Remove a target; entries using it fall back to the first remaining one."""
    character = characters[character_id]
    settings = character.settings.without_target(name)
    fallback = settings.targets[0] if settings.targets else Target(name="unnamed")
    return (_repoint(selected, character_id, name, fallback),
            _replace(characters, character.with_settings(settings)))


def reset_character_target(selected: Selected, characters: Mapping[str, Character],
                           character_id: str, name: str,
                           defaults: Mapping[str, Sequence[Target]]) -> tuple[Selected, Characters]:
    """Restore one of the character's default targets."""
    default = next((t for t in defaults.get(character_id, ()) if t.name == name), None)
    if default is None:
        raise KeyError(f"{name!r} is not a default target for {character_id}")
    character = characters[character_id]
    updated = character.with_settings(character.settings.with_target(default))
    return _repoint(selected, character_id, name, default), _replace(characters, updated)


def reset_all_character_targets(selected: Selected, characters: Mapping[str, Character],
                                defaults: Mapping[str, Sequence[Target]]
                                ) -> tuple[Selected, Characters]:
    """Restore every default target; targets with no default are kept."""
    new_characters = dict(characters)
    for character_id, targets in defaults.items():
        character = new_characters.get(character_id)
        if character is None:
            continue
        settings = character.settings
        for default in targets:
            settings = settings.with_target(default)
            selected = _repoint(selected, character_id, default.name, default)
        new_characters[character_id] = character.with_settings(settings)
    return selected, new_characters


def change_minimum_dots(characters: Mapping[str, Character], character_id: str,
                        dots: int) -> Characters:
    character = characters[character_id]
    return _replace(characters, character.with_settings(character.settings.with_minimum_dots(dots)))


def change_slice_mods(characters: Mapping[str, Character], character_id: str,
                      slice_mods: bool) -> Characters:
    character = characters[character_id]
    return _replace(characters, character.with_settings(character.settings.with_slice_mods(slice_mods)))
