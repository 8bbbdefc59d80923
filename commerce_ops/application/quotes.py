"""Advisory price suggestion for a structured project inquiry.

Pure and deterministic: the same project details always give the same
suggestion, and nothing here touches the database.
"""

from typing import Optional

# One-time base price per selected service category
BASE_PRICES = {
    "WEBSITE": 2500,
    "WEB_APP": 8000,
    "IOS_APP": 8000,
    "ANDROID_APP": 7500,
    "CROSS_PLATFORM": 12000,
}
MONTHLY_PRICES = {
    "AI_AUTOMATION": 799,
}
PER_FEATURE = 500
DESIGN_ASSISTANCE = 2000
NO_DESIGN_ANSWERS = {"No, need design help", "Just an idea"}

# Checked in order; the first bracket that matches wins
PAGE_BRACKETS = [("50+", 5000), ("20-50", 2000)]
SCREEN_BRACKETS = [("50+", 6000), ("25-50", 3000)]


def _bracket(value: Optional[str], brackets) -> int:
    if not value:
        return 0
    for marker, increment in brackets:
        if value.strip().startswith(marker):
            return increment
    return 0


def suggest_quote(project_details: Optional[dict]) -> dict:
    """Return ``{"amount", "monthly", "breakdown"}`` for ``attachments.projectDetails``."""
    details = project_details or {}
    amount = 0
    monthly = 0
    breakdown = []

    for service in details.get("services") or []:
        if service in BASE_PRICES:
            amount += BASE_PRICES[service]
            breakdown.append({"item": service, "amount": BASE_PRICES[service]})
        elif service in MONTHLY_PRICES:
            monthly += MONTHLY_PRICES[service]
            breakdown.append({"item": service, "amount": MONTHLY_PRICES[service], "monthly": True})

    features = details.get("features") or []
    if features:
        amount += PER_FEATURE * len(features)
        breakdown.append({"item": f"{len(features)} features", "amount": PER_FEATURE * len(features)})

    pages = _bracket(details.get("pages"), PAGE_BRACKETS)
    if pages:
        amount += pages
        breakdown.append({"item": f"pages {details['pages']}", "amount": pages})

    screens = _bracket(details.get("screens"), SCREEN_BRACKETS)
    if screens:
        amount += screens
        breakdown.append({"item": f"screens {details['screens']}", "amount": screens})

    if details.get("hasDesign") in NO_DESIGN_ANSWERS:
        amount += DESIGN_ASSISTANCE
        breakdown.append({"item": "design assistance", "amount": DESIGN_ASSISTANCE})

    return {"amount": amount, "monthly": monthly, "breakdown": breakdown}
