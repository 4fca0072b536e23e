"""Plan definitions: per-tier resource ceilings applied at account creation."""

from dataclasses import dataclass, replace

from digitalsite.models.enums import UserPlan


@dataclass(frozen=True)
class PlanLimits:
    """Resource ceilings for a subscription plan."""

    name: str
    display_name: str
    maximum_funnels: int
    maximum_custom_domains: int
    maximum_subdomains: int
    maximum_admins: int


PLANS: dict[UserPlan, PlanLimits] = {
    UserPlan.FREE: PlanLimits(
        name="FREE",
        display_name="Free Plan",
        maximum_funnels=3,
        maximum_custom_domains=1,
        maximum_subdomains=1,
        maximum_admins=1,
    ),
    UserPlan.BUSINESS: PlanLimits(
        name="BUSINESS",
        display_name="Business Plan",
        maximum_funnels=10,
        maximum_custom_domains=5,
        maximum_subdomains=5,
        maximum_admins=3,
    ),
    UserPlan.AGENCY: PlanLimits(
        name="AGENCY",
        display_name="Partner Plan",
        maximum_funnels=50,
        maximum_custom_domains=20,
        maximum_subdomains=20,
        maximum_admins=10,
    ),
}

# Conservative tier used for anything we do not recognise
BASIC_PLAN = PLANS[UserPlan.FREE]


def get_plan(plan: UserPlan | str) -> PlanLimits:
    """Get plan limits by plan type. Defaults to the basic tier if unknown."""
    try:
        return PLANS[UserPlan(plan)]
    except ValueError:
        return BASIC_PLAN


def calculate_final_limits(
    plan: UserPlan | str,
    maximum_funnels: int | None = None,
    maximum_custom_domains: int | None = None,
    maximum_subdomains: int | None = None,
    maximum_admins: int | None = None,
) -> PlanLimits:
    """Apply explicit per-purchase overrides on top of the plan's defaults."""
    overrides = {
        "maximum_funnels": maximum_funnels,
        "maximum_custom_domains": maximum_custom_domains,
        "maximum_subdomains": maximum_subdomains,
        "maximum_admins": maximum_admins,
    }
    return replace(get_plan(plan), **{k: v for k, v in overrides.items() if v is not None})
