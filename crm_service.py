import logging

from google.api_core import exceptions as api_exceptions
from google.cloud import resourcemanager_v3

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def initialize_service():
    """Initializes a Cloud Resource Manager projects client using Application Default Credentials."""
    return resourcemanager_v3.ProjectsClient()


def project_resource(project_id):
    """Builds the resource name ("projects/<id>") the IAM methods expect."""
    project_id = (project_id or "").strip()
    if not project_id:
        raise ValueError("Missing project ID.")
    return f"projects/{project_id}"


def get_policy(service, project_id, timeout=DEFAULT_TIMEOUT):
    """
    Gets the project's IAM policy.

    Args:
        service (resourcemanager_v3.ProjectsClient): The Cloud Resource Manager client.
        project_id (str): The GCP project ID.
        timeout (float, optional): Deadline for the call in seconds. Defaults to 10.

    Returns:
        google.iam.v1.policy_pb2.Policy: The current policy, including its etag.
    """
    resource = project_resource(project_id)
    logger.debug(f"Fetching IAM policy for {resource}")
    try:
        return service.get_iam_policy(request={"resource": resource}, timeout=timeout)
    except api_exceptions.GoogleAPICallError as e:
        logger.error(f"Projects.GetIamPolicy: {e}")
        raise


def set_policy(service, project_id, policy, timeout=DEFAULT_TIMEOUT):
    """
    Sets the project's IAM policy.

    The etag fetched with the policy is sent back unchanged, so the service
    rejects the write if the policy was modified in between.

    Returns:
        google.iam.v1.policy_pb2.Policy: The policy as stored by the service.
    """
    resource = project_resource(project_id)
    logger.debug(f"Writing IAM policy for {resource} ({len(policy.bindings)} bindings)")
    try:
        return service.set_iam_policy(
            request={"resource": resource, "policy": policy},
            timeout=timeout,
        )
    except api_exceptions.GoogleAPICallError as e:
        logger.error(f"Projects.SetIamPolicy: {e}")
        raise
