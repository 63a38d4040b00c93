"""
Colour and badge mappings for event rendering

All mappings are plain values built once and handed to the presentation
layer. Nothing here depends on the order events happen to be rendered in.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from jira_calendar.calendar.models import StatusCategory

STATUS_COLORS: Mapping[str, str] = MappingProxyType(
    {
        "done": "#36B37E",
        "pending": "#FFAB00",
        "work in progress": "#FFAB00",
        "waiting for start": "#FFAB00",
        "cancelled": "#FF5630",
    }
)

CATEGORY_COLORS: Mapping[StatusCategory, str] = MappingProxyType(
    {
        StatusCategory.NEW: "#4C9AFF",
        StatusCategory.INDETERMINATE: "#FFAB00",
        StatusCategory.DONE: "#36B37E",
        StatusCategory.UNDEFINED: "#97A0AF",
    }
)

DEFAULT_CYCLE = (
    "#0052CC",
    "#00875A",
    "#FF8B00",
    "#6554C0",
    "#00A3BF",
    "#DE350B",
    "#5243AA",
    "#008DA6",
)

# (css class, keywords) checked in order
_STATUS_CLASSES = (
    ("status-done", ("done",)),
    ("status-in-progress", ("progress",)),
    ("status-waiting", ("waiting", "pending")),
    ("status-cancelled", ("cancel",)),
)


@dataclass(frozen=True)
class StatusPalette:
    """Fixed colour lookup for statuses, status categories and category values.

    ``value_colors`` assigns colours to an ordered list of category values
    (sites, visit types, ...); build it with ``StatusPalette.for_values``.
    """

    status_colors: Mapping[str, str] = field(
        default_factory=lambda: STATUS_COLORS
    )
    category_colors: Mapping[StatusCategory, str] = field(
        default_factory=lambda: CATEGORY_COLORS
    )
    value_colors: Mapping[str, str] = field(default_factory=dict)
    fallback: str = "#97A0AF"

    @classmethod
    def for_values(
        cls, values: Iterable[str], cycle: tuple[str, ...] = DEFAULT_CYCLE
    ) -> "StatusPalette":
        """Palette whose value colours cycle through ``cycle`` in value order"""
        distinct = list(dict.fromkeys(v for v in values if v))
        mapping = {value: cycle[i % len(cycle)] for i, value in enumerate(distinct)}
        return cls(value_colors=MappingProxyType(mapping))

    def status_color(self, status: str, category: StatusCategory | None = None) -> str:
        color = self.status_colors.get((status or "").lower())
        if color:
            return color
        if category is not None:
            return self.category_colors.get(category, self.fallback)
        return self.fallback

    def value_color(self, value: str) -> str:
        return self.value_colors.get(value, self.fallback)


def status_class(status: str) -> str:
    """CSS modifier class for a status name, ``""`` when none applies"""
    lowered = (status or "").lower()
    for css_class, keywords in _STATUS_CLASSES:
        if any(keyword in lowered for keyword in keywords):
            return css_class
    return ""


def visit_type_badge(visit_type: str) -> tuple[str, str] | None:
    """Two-letter badge and css class for a visit type"""
    if not visit_type:
        return None
    lowered = visit_type.lower()
    internal = "internal" in lowered
    external = "external" in lowered
    if "atnorth" in lowered:
        if internal:
            return "IA", "internal-atnorth"
        if external:
            return "EA", "external-atnorth"
    if "customer" in lowered:
        if internal:
            return "IC", "internal-customer"
        if external:
            return "EC", "external-customer"
    return "V", "internal-atnorth"
