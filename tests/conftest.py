import pytest
from google.iam.v1 import policy_pb2


class FakeProjectsClient:
    """Stands in for resourcemanager_v3.ProjectsClient, keeping one policy in memory."""

    def __init__(self, policy):
        self.policy = policy
        self.get_requests = []
        self.set_requests = []

    def get_iam_policy(self, request=None, timeout=None):
        self.get_requests.append((request, timeout))
        fetched = policy_pb2.Policy()
        fetched.CopyFrom(self.policy)
        return fetched

    def set_iam_policy(self, request=None, timeout=None):
        self.set_requests.append((request, timeout))
        stored = policy_pb2.Policy()
        stored.CopyFrom(request["policy"])
        self.policy = stored
        returned = policy_pb2.Policy()
        returned.CopyFrom(stored)
        return returned


def make_policy(*bindings, etag=b"BwXyz"):
    """Builds a Policy from (role, [members]) pairs."""
    return policy_pb2.Policy(
        version=1,
        etag=etag,
        bindings=[policy_pb2.Binding(role=role, members=members) for role, members in bindings],
    )


@pytest.fixture
def fake_client():
    return FakeProjectsClient(
        make_policy(
            ("roles/owner", ["user:admin@example.com"]),
            ("roles/logging.logWriter", ["serviceAccount:writer@project.iam.gserviceaccount.com"]),
        )
    )
