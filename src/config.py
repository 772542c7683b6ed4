"""Chart geometry settings shared by the layout and connector stages."""

from dataclasses import dataclass, fields, replace


@dataclass(frozen=True)
class LayoutConfig:
    """
    Geometry profile for one chart.

    All lengths are in canvas units. The same instance is passed to
    layout_graph and build_connectors so cards, rows and connector ports agree.
    """

    card_width: float = 140
    card_height: float = 180
    row_height: float = 260
    cluster_gap: float = 60  # between clusters in a row
    spouse_gap: float = 30  # inside a married or unmarried pair
    divorced_gap: float = 70  # inside a divorced pair
    center_x: float = 0
    margin: float = 80
    port_offset: float = 8  # ports sit this far outside the card edge
    stem_length: float = 12  # bottom port down to the marriage bar
    rail_offset: float = 40  # rail sits this far above the child row
    corner_radius: float = 12
    rail_stagger: float = 4
    rail_stagger_steps: int = 3

    def __post_init__(self):
        for name in ("card_width", "card_height", "row_height"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in (
            "cluster_gap",
            "spouse_gap",
            "divorced_gap",
            "margin",
            "port_offset",
            "stem_length",
            "rail_offset",
            "corner_radius",
            "rail_stagger",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)}")
        if self.rail_stagger_steps < 1:
            raise ValueError("rail_stagger_steps must be at least 1")

        # The bar must stay above the highest staggered rail of the next row.
        row_gap = self.row_height - self.card_height
        bar_depth = self.port_offset + self.stem_length
        highest_rail = self.rail_offset + self.rail_stagger * self.rail_stagger_steps
        if bar_depth >= row_gap - highest_rail:
            raise ValueError(
                f"row_height {self.row_height} leaves no room between the marriage bar "
                f"and the child rail (card_height {self.card_height})"
            )
        if self.rail_offset - self.rail_stagger * self.rail_stagger_steps <= self.port_offset:
            raise ValueError("rail_offset must keep every staggered rail above the child ports")

    @property
    def bar_drop(self) -> float:
        """Distance from a card's top edge to its marriage bar."""
        return self.card_height + self.port_offset + self.stem_length

    @classmethod
    def from_mapping(cls, overrides: dict) -> "LayoutConfig":
        """Build a config from a dict of overrides, e.g. parsed from JSON."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown layout settings: {', '.join(unknown)}")
        return replace(DEFAULT_CONFIG, **overrides)


DEFAULT_CONFIG = LayoutConfig()
