import logging

logger = logging.getLogger(__name__)

PUBLIC_MEMBERS = ["allUsers", "allAuthenticatedUsers"]

MEMBER_TYPES = [
    "user",
    "serviceAccount",
    "group",
    "domain",
    "principal",
    "principalSet",
    "deleted",
]


def validate_member(member):
    """
    Checks that a member string is usable in a role binding.

    Expected form is "<type>:<id>", e.g. "user:member@example.com",
    or one of the public identifiers.
    """
    member = (member or "").strip()
    if member in PUBLIC_MEMBERS:
        return member

    member_type, sep, identity = member.partition(":")
    if not sep or not identity:
        raise ValueError(f"Invalid member '{member}'. Expected format: 'user:member@example.com'")
    if member_type not in MEMBER_TYPES:
        raise ValueError(f"Unknown member type: {member_type}")
    if member_type == "deleted":
        # deleted:<type>:<id>?uid=<numeric id>
        deleted_type, sep, deleted_id = identity.partition(":")
        if not sep or not deleted_id or deleted_type not in MEMBER_TYPES or deleted_type == "deleted":
            raise ValueError(f"Invalid deleted member '{member}'. Expected format: 'deleted:user:member@example.com?uid=123'")
    return member


def find_binding(policy, role):
    """Returns (index, binding) for the first binding of the role, or (None, None)."""
    for index, binding in enumerate(policy.bindings):
        if binding.role == role:
            return index, binding
    return None, None


def add_member(policy, role, member):
    """
    Adds the member to the role binding, creating the binding if it does not exist.

    Returns True if the policy was modified.
    """
    _, binding = find_binding(policy, role)

    if binding is None:
        policy.bindings.add(role=role, members=[member])
        logger.info(f"➕ Added new binding for role '{role}' with member '{member}'.")
        return True

    if member in binding.members:
        logger.info(f"Member '{member}' already exists in role '{role}'. Skipping.")
        return False

    binding.members.append(member)
    logger.info(f"➕ Added member '{member}' to existing role '{role}'.")
    return True


def remove_member(policy, role, member):
    """
    Removes the member from the role binding.

    Order doesn't matter for bindings or members, so removal moves the last
    item into the removed spot and shrinks the list. A binding left without
    members is removed from the policy.

    Returns True if the policy was modified.
    """
    binding_index, binding = find_binding(policy, role)
    if binding is None:
        logger.warning(f"No binding for role '{role}'. Nothing to remove.")
        return False
    if member not in binding.members:
        logger.warning(f"Member '{member}' does not have the '{role}' role. Nothing to remove.")
        return False

    if len(binding.members) == 1:
        last = len(policy.bindings) - 1
        if binding_index != last:
            policy.bindings[binding_index].CopyFrom(policy.bindings[last])
        del policy.bindings[last]
        logger.info(f"➖ Removed binding for role '{role}' (last member '{member}').")
    else:
        member_index = list(binding.members).index(member)
        last = len(binding.members) - 1
        binding.members[member_index] = binding.members[last]
        del binding.members[last]
        logger.info(f"➖ Removed member '{member}' from role '{role}'.")
    return True


def format_binding(binding):
    members = " ".join(f"[{m}]" for m in binding.members)
    return f"Role: {binding.role}\nMembers: {members}"
