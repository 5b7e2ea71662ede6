"""Target persistence (JSON CRUD)."""
import logging
import pathlib
from typing import Mapping, Optional, Sequence

import orjson
from pydantic import ValidationError

from modplanner.models import Target

logger = logging.getLogger(__name__)


class TargetStore:
    """Persists each character's named Targets to a JSON file.

    `defaults` are the built-in targets per character. A saved target with
    the same name as a default overrides it until reset; the defaults
    themselves are never written to disk.
    """

    CURRENT_VERSION = 1

    def __init__(self, base_dir: pathlib.Path,
                 defaults: Optional[Mapping[str, Sequence[Target]]] = None):
        self.file_path = base_dir / "optimizer_targets.json"
        self.defaults: dict[str, tuple[Target, ...]] = {
            cid: tuple(ts) for cid, ts in (defaults or {}).items()
        }
        self.targets: dict[str, dict[str, Target]] = {}
        self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if not self.file_path.exists():
            return
        try:
            raw = orjson.loads(self.file_path.read_bytes())
            for character_id, entries in raw.get("targets", {}).items():
                saved = [Target.model_validate(t) for t in entries]
                self.targets[character_id] = {t.name: t for t in saved}
        except (orjson.JSONDecodeError, ValidationError, AttributeError, TypeError) as e:
            logger.error("Error loading targets from %s: %s", self.file_path, e)
            self.targets = {}

    def save(self) -> None:
        data = {
            "version": self.CURRENT_VERSION,
            "targets": {
                cid: [t.model_dump(mode="json") for t in saved.values()]
                for cid, saved in self.targets.items() if saved
            },
        }
        self.file_path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def list_targets(self, character_id: str) -> list[Target]:
        """Defaults first (with any saved overrides), then the character's own targets."""
        saved = self.targets.get(character_id, {})
        defaults = self.defaults.get(character_id, ())
        default_names = {t.name for t in defaults}
        out = [saved.get(t.name, t) for t in defaults]
        out.extend(t for name, t in saved.items() if name not in default_names)
        return out

    def get(self, character_id: str, name: str) -> Optional[Target]:
        return next((t for t in self.list_targets(character_id) if t.name == name), None)

    def is_default(self, character_id: str, name: str) -> bool:
        return any(t.name == name for t in self.defaults.get(character_id, ()))

    def update(self, character_id: str, target: Target) -> None:
        """Insert or replace the target with the same name."""
        self.targets.setdefault(character_id, {})[target.name] = target
        self.save()

    def rename(self, character_id: str, old_name: str, new_name: str) -> None:
        """Renaming a default saves a renamed copy; the default itself stays listed."""
        target = self.get(character_id, old_name)
        if target is None or old_name == new_name:
            return
        if self.get(character_id, new_name) is not None:
            raise ValueError(f"{character_id} already has a target named {new_name!r}")
        saved = self.targets.setdefault(character_id, {})
        saved.pop(old_name, None)
        saved[new_name] = target.model_copy(update={"name": new_name})
        self.save()

    def delete(self, character_id: str, name: str) -> None:
        if self.is_default(character_id, name):
            raise ValueError(f"{name!r} is a default target for {character_id}; reset it instead")
        saved = self.targets.get(character_id, {})
        if name in saved:
            del saved[name]
            self.save()

    def reset_to_default(self, character_id: str, name: str) -> Optional[Target]:
        """Drop a saved override of a default target and return the default."""
        if not self.is_default(character_id, name):
            raise KeyError(f"{name!r} is not a default target for {character_id}")
        saved = self.targets.get(character_id, {})
        if name in saved:
            del saved[name]
            self.save()
        return self.get(character_id, name)

    def reset_all(self, character_id: Optional[str] = None) -> None:
        """Forget saved targets for one character, or for every character."""
        if character_id is None:
            self.targets = {}
        else:
            self.targets.pop(character_id, None)
        self.save()
