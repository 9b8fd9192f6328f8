"""
Campaign State Machine

This module is the SINGLE SOURCE OF TRUTH for all campaign status transitions.
All status changes must go through this module.

Unlike a plain status graph, every edge here is owned by a role: the same
Submitted -> Returned move is open to the approver and to shop-ops, while
commercial may only (re)submit its own drafts.
"""

from typing import Optional, List, Dict, Iterable
from datetime import date

from promodesk.core.exceptions import TransitionError, ValidationFailed
from promodesk.models.campaign import CampaignStatus
from promodesk.models.role import UserRole


# =============================================================================
# STATUS DEFINITIONS
# =============================================================================

ALL_STATUSES: List[CampaignStatus] = list(CampaignStatus)

# Statuses shop-ops works with; Draft and Returned stay with commercial
SHOP_OPS_VISIBLE_STATUSES = (
    CampaignStatus.SUBMITTED,
    CampaignStatus.VALIDATED,
    CampaignStatus.ACTIVE,
    CampaignStatus.COMPLETED,
)

EDITABLE_STATUSES = (CampaignStatus.DRAFT, CampaignStatus.RETURNED)


# =============================================================================
# TRANSITION RULES
# =============================================================================

# Format: role -> current_status -> [allowed next statuses]
CAMPAIGN_TRANSITIONS: Dict[UserRole, Dict[CampaignStatus, List[CampaignStatus]]] = {
    UserRole.COMMERCIAL: {
        CampaignStatus.DRAFT: [CampaignStatus.SUBMITTED],
        CampaignStatus.RETURNED: [CampaignStatus.SUBMITTED],  # Resubmit after revision
    },
    UserRole.COMMERCIAL_APPROVER: {
        CampaignStatus.SUBMITTED: [
            CampaignStatus.VALIDATED,  # Approve
            CampaignStatus.RETURNED,   # Send back for revision
        ],
    },
    UserRole.SHOP_OPS: {
        CampaignStatus.SUBMITTED: [CampaignStatus.RETURNED],
        CampaignStatus.VALIDATED: [
            CampaignStatus.ACTIVE,     # Campaign goes live
            CampaignStatus.RETURNED,
        ],
        CampaignStatus.ACTIVE: [CampaignStatus.COMPLETED],
    },
    UserRole.FINANCE: {},  # Read-only
}

# Human-readable action names for each transition
TRANSITION_ACTIONS: Dict[tuple, str] = {
    (CampaignStatus.DRAFT, CampaignStatus.SUBMITTED): "Submit for Approval",
    (CampaignStatus.RETURNED, CampaignStatus.SUBMITTED): "Resubmit",
    (CampaignStatus.SUBMITTED, CampaignStatus.VALIDATED): "Approve",
    (CampaignStatus.SUBMITTED, CampaignStatus.RETURNED): "Return for Revision",
    (CampaignStatus.VALIDATED, CampaignStatus.ACTIVE): "Activate",
    (CampaignStatus.VALIDATED, CampaignStatus.RETURNED): "Return for Revision",
    (CampaignStatus.ACTIVE, CampaignStatus.COMPLETED): "Mark Completed",
}

# Activity column shown next to the status badge
ACTIVITY_LABELS: Dict[CampaignStatus, str] = {
    CampaignStatus.SUBMITTED: "Submitted to Shop Ops",
    CampaignStatus.VALIDATED: "Configuring to Run Campaign",
    CampaignStatus.ACTIVE: "Running Campaign",
    CampaignStatus.COMPLETED: "Campaign Ended",
    CampaignStatus.RETURNED: "Needs Revision",
}

# Fields a campaign must carry before it can leave Draft/Returned
SUBMISSION_REQUIRED_FIELDS = (
    ("program_name", "Program name is required"),
    ("campaign_type", "Campaign type is required"),
    ("start_date", "Start date is required"),
    ("end_date", "End date is required"),
    ("objectives", "Objectives are required"),
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _role(role) -> Optional[UserRole]:
    try:
        return UserRole(role)
    except ValueError:
        return None


def get_allowed_transitions(role, current_status) -> List[CampaignStatus]:
    """Get statuses the role may move a campaign to from current_status."""
    role = _role(role)
    if role is None:
        return []
    return list(CAMPAIGN_TRANSITIONS.get(role, {}).get(CampaignStatus(current_status), []))


def can_transition(role, current_status, new_status) -> bool:
    """Check if a transition is allowed for the role."""
    return CampaignStatus(new_status) in get_allowed_transitions(role, current_status)


def get_transition_action(current_status, new_status) -> str:
    """Get human-readable action name for a transition."""
    current_status = CampaignStatus(current_status)
    new_status = CampaignStatus(new_status)
    return TRANSITION_ACTIONS.get(
        (current_status, new_status), f"{current_status.value} -> {new_status.value}"
    )


def requires_remarks(new_status) -> bool:
    """Returning a campaign must say why."""
    return CampaignStatus(new_status) == CampaignStatus.RETURNED


def validate_transition(role, current_status, new_status, remarks: Optional[str] = None) -> None:
    """
    Validate a status transition for the acting role.

    Raises TransitionError when the move is outside the table (same-status
    moves included) and ValidationFailed when a return has no remarks.
    """
    current_status = CampaignStatus(current_status)
    new_status = CampaignStatus(new_status)
    allowed = get_allowed_transitions(role, current_status)
    role_name = role.value if isinstance(role, UserRole) else str(role)

    if new_status not in allowed:
        allowed_values = [s.value for s in allowed]
        if current_status == new_status:
            message = f"Campaign is already '{current_status.value}'."
        elif not allowed:
            message = (
                f"Role '{role_name}' cannot change a campaign in "
                f"'{current_status.value}' status."
            )
        else:
            message = (
                f"Role '{role_name}' cannot change a campaign from "
                f"'{current_status.value}' to '{new_status.value}'. "
                f"Allowed transitions: {', '.join(allowed_values)}"
            )
        raise TransitionError(
            message,
            current_status=current_status.value,
            target_status=new_status.value,
            allowed=allowed_values,
        )

    if requires_remarks(new_status) and not (remarks or "").strip():
        raise ValidationFailed(
            "Remarks are required when returning a campaign.", field="remarks"
        )


def validate_submission(campaign) -> None:
    """Raise ValidationFailed naming every missing submission field."""
    missing = []
    for field_name, message in SUBMISSION_REQUIRED_FIELDS:
        value = getattr(campaign, field_name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append((field_name, message))

    if missing:
        raise ValidationFailed(
            missing[0][1],
            field=missing[0][0],
            details={"missing": [name for name, _ in missing]},
        )


# =============================================================================
# STATUS CHECK HELPERS
# =============================================================================

def can_edit(status) -> bool:
    """Can the owner still edit this campaign?"""
    return CampaignStatus(status) in EDITABLE_STATUSES


def can_submit(status) -> bool:
    """Can this campaign be (re)submitted for approval?"""
    return CampaignStatus(status) in EDITABLE_STATUSES


def is_terminal(status) -> bool:
    """Is this a terminal (final) state?"""
    return CampaignStatus(status) == CampaignStatus.COMPLETED


def get_activity_label(status) -> str:
    """Activity text for a status. Drafts read as 'Inactive'."""
    return ACTIVITY_LABELS.get(CampaignStatus(status), "Inactive")


# =============================================================================
# VISIBILITY
# =============================================================================

def is_visible(campaign, role, user: Optional[str]) -> bool:
    """Can the session (role, user) see this campaign at all?"""
    role = _role(role)
    if role == UserRole.COMMERCIAL:
        return campaign.created_by == user
    if role == UserRole.SHOP_OPS:
        return campaign.status in SHOP_OPS_VISIBLE_STATUSES
    return role in (UserRole.COMMERCIAL_APPROVER, UserRole.FINANCE)


def filter_visible(campaigns: Iterable, role, user: Optional[str]) -> list:
    return [c for c in campaigns if is_visible(c, role, user)]


# =============================================================================
# TRANSITION EXECUTOR
# =============================================================================

def transition_campaign(
    campaign,
    new_status,
    role,
    user: Optional[str] = None,
    remarks: Optional[str] = None,
    today: Optional[date] = None,
):
    """
    Return a copy of the campaign moved to new_status.

    This function:
    1. Validates the transition for the role (and remarks / submission fields)
    2. Applies the status and its side effects to a copy

    The input campaign is never modified, so a failed check leaves the
    caller's record untouched.

    Raises:
        TransitionError: If the transition is not allowed
        ValidationFailed: If remarks or submission fields are missing
    """
    new_status = CampaignStatus(new_status)
    validate_transition(role, campaign.status, new_status, remarks)
    if new_status == CampaignStatus.SUBMITTED:
        validate_submission(campaign)

    updates = {"status": new_status}

    if new_status == CampaignStatus.SUBMITTED:
        updates["remarks"] = None

    elif new_status == CampaignStatus.VALIDATED:
        updates["approved_by"] = user
        updates["date_approved"] = today or date.today()

    elif new_status == CampaignStatus.RETURNED:
        updates["remarks"] = remarks

    return campaign.model_copy(update=updates)


# =============================================================================
# VISUALIZATION (for debugging/documentation)
# =============================================================================

def print_state_diagram():
    """Print a text representation of the state machine per role."""
    print("\n=== Campaign State Machine ===\n")
    for role, edges in CAMPAIGN_TRANSITIONS.items():
        print(f"[{role.value}]")
        if not edges:
            print("  (read-only)\n")
            continue
        for status in ALL_STATUSES:
            for target in edges.get(status, []):
                action = get_transition_action(status, target)
                print(f"  {status.value} -> {target.value} ({action})")
        print()


if __name__ == "__main__":
    # Run this file directly to see the state diagram
    print_state_diagram()
