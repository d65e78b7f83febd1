from decimal import Decimal
from typing import Iterable, Sequence

from ordo.errors import ValidationError
from ordo.schemas.catalog import GroupOption, PersonalizationGroup
from ordo.schemas.orders import OptionSnapshot


class PersonalizationSelector:
    """
    Selection state for one product's option groups.

    Keeps group id -> selected options in the order they were picked.
    Cardinality violations reject the individual toggle rather than raising;
    only ``validate`` raises, and only for groups below their minimum.
    """

    def __init__(self, groups: Sequence[PersonalizationGroup]):
        self.groups = list(groups)
        self._selected: dict[str, list[GroupOption]] = {g.id: [] for g in self.groups}

    @classmethod
    def from_choices(cls, groups: Sequence[PersonalizationGroup], option_ids: Iterable[str]) -> "PersonalizationSelector":
        """Replay a sequence of picked option ids as toggles."""
        sel = cls(groups)
        index = {opt.id: g for g in sel.groups for opt in g.options}
        for option_id in option_ids:
            group = index.get(option_id)
            if group is None:
                raise ValidationError(f"option {option_id} is not offered for this product")
            sel.toggle(group, group.option(option_id))
        return sel

    def toggle(self, group: PersonalizationGroup, option: GroupOption) -> bool:
        """Returns True when the selection changed."""
        if not option.available:
            return False
        current = self._selected.setdefault(group.id, [])

        if group.is_exclusive:
            if [o.id for o in current] == [option.id]:
                return False
            self._selected[group.id] = [option]
            return True

        for i, picked in enumerate(current):
            if picked.id == option.id:
                del current[i]
                return True
        if group.max_selection is not None and len(current) >= group.max_selection:
            return False
        current.append(option)
        return True

    def selected(self, group_id: str) -> list[GroupOption]:
        return list(self._selected.get(group_id, []))

    def selections(self) -> dict[str, list[str]]:
        return {gid: [o.id for o in opts] for gid, opts in self._selected.items()}

    def selected_options(self) -> list[GroupOption]:
        out: list[GroupOption] = []
        for g in self.groups:
            out.extend(self._selected.get(g.id, []))
        return out

    def incremental_price(self) -> Decimal:
        return sum((o.price for o in self.selected_options()), Decimal("0"))

    def missing(self) -> list[str]:
        """Ids of groups still below their min_selection."""
        return [g.id for g in self.groups if len(self._selected.get(g.id, [])) < (g.min_selection or 0)]

    def validate(self) -> None:
        for g in self.groups:
            have = len(self._selected.get(g.id, []))
            if have < (g.min_selection or 0):
                raise ValidationError(f"group {g.id} requires at least {g.min_selection} selection(s)")

    def snapshot(self) -> list[OptionSnapshot]:
        return [OptionSnapshot(id=o.id, name=o.name, price=o.price) for o in self.selected_options()]
