import argparse
import json
import logging
import os
import sys

from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.protobuf import json_format

import crm_service
from policy_bindings import add_member, find_binding, format_binding, remove_member, validate_member

logger = logging.getLogger(__name__)

# The role to be granted
DEFAULT_ROLE = "roles/logging.logWriter"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Grants a member a role on a GCP project, prints the binding, then revokes it."
    )
    parser.add_argument("--project_id", default=os.getenv("GCP_PROJECT_ID"), help="Cloud Project ID")
    parser.add_argument(
        "--member_id",
        default=os.getenv("IAM_MEMBER_ID"),
        help="Your member ID, in the form 'user:member@example.com'",
    )
    parser.add_argument("--role", default=DEFAULT_ROLE, help=f"Role to grant (default: {DEFAULT_ROLE})")
    parser.add_argument(
        "--timeout",
        type=float,
        default=crm_service.DEFAULT_TIMEOUT,
        help="Deadline in seconds for each API call",
    )
    parser.add_argument("--dry_run", action="store_true", help="Show proposed policies without applying them")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    if not args.project_id or not args.project_id.strip():
        parser.error("--project_id is required (or set GCP_PROJECT_ID).")
    if args.timeout <= 0:
        parser.error("--timeout must be a positive number of seconds.")
    if not args.member_id:
        parser.error("--member_id is required (or set IAM_MEMBER_ID).")
    try:
        args.member_id = validate_member(args.member_id)
    except ValueError as e:
        parser.error(str(e))
    args.project_id = args.project_id.strip()
    return args


def show_proposed_policy(policy):
    logger.info("🧪 DRY-RUN mode enabled. Proposed IAM policy (not applied):")
    print(json.dumps(json_format.MessageToDict(policy), indent=2))


def add_binding(service, project_id, member, role, timeout=crm_service.DEFAULT_TIMEOUT, dry_run=False):
    """
    Adds the member to the project's IAM policy.

    Returns (policy, granted): the policy stored by the service, or the
    locally modified one in dry-run mode, and whether the grant changed it.
    """
    policy = crm_service.get_policy(service, project_id, timeout=timeout)

    if not add_member(policy, role, member):
        return policy, False
    if dry_run:
        show_proposed_policy(policy)
        return policy, True
    return crm_service.set_policy(service, project_id, policy, timeout=timeout), True


def remove_binding_member(
    service, project_id, member, role, timeout=crm_service.DEFAULT_TIMEOUT, dry_run=False, policy=None
):
    """
    Removes the member from the project's IAM policy.

    A policy can be passed in to work on it instead of fetching a fresh copy
    (used in dry-run mode, where the earlier grant was never applied).
    """
    if policy is None:
        policy = crm_service.get_policy(service, project_id, timeout=timeout)

    if not remove_member(policy, role, member):
        return policy
    if dry_run:
        show_proposed_policy(policy)
        return policy
    return crm_service.set_policy(service, project_id, policy, timeout=timeout)


def print_binding(policy, role):
    """Prints all members of the role binding. Returns False if the role has no binding."""
    _, binding = find_binding(policy, role)
    if binding is None:
        print(f"Role: {role}\nMembers: (none)")
        return False
    print(format_binding(binding))
    return True


def run(service, project_id, member, role, timeout=crm_service.DEFAULT_TIMEOUT, dry_run=False):
    logger.info(f"📦 Granting '{role}' to '{member}' on project '{project_id}' | Dry-run: {dry_run}")
    proposed, granted = add_binding(service, project_id, member, role, timeout=timeout, dry_run=dry_run)
    if not granted:
        logger.warning(
            f"⚠️ '{member}' already had '{role}' before this run. That existing grant will be revoked at the end."
        )

    # Gets the project's policy and prints all members with the role
    if dry_run:
        policy = proposed
    else:
        policy = crm_service.get_policy(service, project_id, timeout=timeout)
    print_binding(policy, role)

    logger.info(f"🗑️ Revoking '{role}' from '{member}' on project '{project_id}'")
    remove_binding_member(
        service,
        project_id,
        member,
        role,
        timeout=timeout,
        dry_run=dry_run,
        policy=proposed if dry_run else None,
    )
    logger.info("✅ Done.")


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s]: %(message)s',
    )

    try:
        service = crm_service.initialize_service()
    except auth_exceptions.DefaultCredentialsError as e:
        logger.error(f"❌ cloudresourcemanager client: {e}")
        logger.error("Run 'gcloud auth application-default login' or set GOOGLE_APPLICATION_CREDENTIALS.")
        sys.exit(1)

    try:
        run(service, args.project_id, args.member_id, args.role, timeout=args.timeout, dry_run=args.dry_run)
    except api_exceptions.GoogleAPICallError as e:
        logger.error(f"❌ IAM policy update failed: {e}")
        logger.error(
            "Ensure the caller has 'roles/resourcemanager.projectIamAdmin' or 'roles/iam.securityAdmin' on the project."
        )
        sys.exit(1)

    return 0


if __name__ == "__main__":
    main()
