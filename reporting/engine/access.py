"""
Category visibility rules.

The engine computes the same numbers for every caller; these rules are only
applied by the HTTP layer when shaping responses.
"""

from typing import Iterable, Optional

from pydantic import BaseModel, Field

from reporting.models.enums import ReportingCategory, UserRole

# Report body keys hidden when the matching category is not visible
CATEGORY_REPORT_FIELDS = {
    ReportingCategory.RELEASE_FACILITIES: ("release_facility_counts",),
    ReportingCategory.CALLS: ("call_metrics",),
    ReportingCategory.MENTORSHIP: ("mentorship_metrics",),
    ReportingCategory.BRIDGE_TEAM: ("bridge_team_metrics",),
    ReportingCategory.DONORS: ("donor_data",),
    ReportingCategory.FINANCIALS: ("financial_data",),
    ReportingCategory.SOCIAL_MEDIA: ("social_media_metrics",),
    ReportingCategory.WINS_CONCERNS: ("wins", "concerns"),
}

# Same mapping for aggregated summaries
CATEGORY_AGGREGATE_FIELDS = {
    ReportingCategory.RELEASE_FACILITIES: ("releasees",),
    ReportingCategory.CALLS: ("calls",),
    ReportingCategory.MENTORSHIP: ("mentorship",),
    ReportingCategory.BRIDGE_TEAM: ("bridge_team",),
    ReportingCategory.DONORS: ("donors",),
    ReportingCategory.FINANCIALS: ("financials",),
    ReportingCategory.SOCIAL_MEDIA: ("social_media",),
    ReportingCategory.WINS_CONCERNS: (),
}


class Viewer(BaseModel):
    """The authenticated caller, as far as reporting visibility is concerned."""

    user_id: str
    name: str = ""
    role: UserRole
    has_reporting_access: bool = False
    reporting_categories: list[ReportingCategory] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @property
    def is_board_member(self) -> bool:
        return self.role is UserRole.BOARD_MEMBER


def can_view_category(viewer: Optional[Viewer], category: ReportingCategory) -> bool:
    """
    Admins see everything; users without reporting access see nothing; users
    with access but no explicit categories see everything; otherwise only the
    listed categories are visible.
    """
    if viewer is None:
        return False
    if viewer.is_admin:
        return True
    if not viewer.has_reporting_access:
        return False
    if not viewer.reporting_categories:
        return True
    return category in viewer.reporting_categories


def visible_categories(viewer: Optional[Viewer]) -> list[ReportingCategory]:
    return [c for c in ReportingCategory if can_view_category(viewer, c)]


def filter_body(
    viewer: Optional[Viewer],
    body: dict,
    mapping: dict[ReportingCategory, Iterable[str]] = CATEGORY_REPORT_FIELDS,
) -> dict:
    """Drop the keys of every category the viewer may not see."""
    hidden = {
        key
        for category, keys in mapping.items()
        if not can_view_category(viewer, category)
        for key in keys
    }
    return {k: v for k, v in body.items() if k not in hidden}
