"""
Owner scoping guard shared by the services.
"""
from invoicer.exceptions import MissingOwnerError


def require_owner(owner_id):
    """Every core operation is scoped to an owner; no owner is a fatal precondition."""
    if owner_id is None or (isinstance(owner_id, str) and not owner_id.strip()):
        raise MissingOwnerError("No owner identity supplied")
    return owner_id
