"""Enumerations shared by the billing models."""

import enum


class UserPlan(str, enum.Enum):
    FREE = "FREE"
    BUSINESS = "BUSINESS"
    AGENCY = "AGENCY"


class SubscriptionStatus(str, enum.Enum):
    """ACTIVE -> CANCELLED is the only transition; CANCELLED is terminal."""

    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class IntervalUnit(str, enum.Enum):
    WEEK = "WEEK"
    MONTH = "MONTH"
    YEAR = "YEAR"


class ItemType(str, enum.Enum):
    PLAN = "PLAN"
    ADDON = "ADDON"


class PaymentType(str, enum.Enum):
    PLAN_PURCHASE = "PLAN_PURCHASE"
    ADDON_PURCHASE = "ADDON_PURCHASE"


class AddOnType(str, enum.Enum):
    EXTRA_ADMIN = "EXTRA_ADMIN"
    EXTRA_FUNNEL = "EXTRA_FUNNEL"
    EXTRA_PAGE = "EXTRA_PAGE"
    EXTRA_SUBDOMAIN = "EXTRA_SUBDOMAIN"
    EXTRA_CUSTOM_DOMAIN = "EXTRA_CUSTOM_DOMAIN"
    EXTRA_WORKSPACE = "EXTRA_WORKSPACE"


class AddOnStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
