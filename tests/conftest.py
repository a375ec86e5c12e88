# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Global pytest fixtures for DocumentDB Cluster API tests."""

import os
import pytest
from awslabs.docdb_cluster_api.context import ServiceContext
from awslabs.docdb_cluster_api.docdb import DocDBClient
from awslabs.docdb_cluster_api.orchestrator import DocDBOrchestrator
from awslabs.docdb_cluster_api.tagging import ResourceGroupsTaggingClient
from awslabs.docdb_cluster_api.tasks import BackgroundRunner, MemoryTaskTracker
from botocore.exceptions import ClientError
from unittest.mock import MagicMock


TEST_ORG = 'localdev'


@pytest.fixture(scope='session', autouse=True)
def tests_setup_and_teardown():
    """Mock environment and module variables for testing."""
    # Will be executed before the first test
    old_environ = dict(os.environ)
    os.environ.update(
        {
            'AWS_DEFAULT_REGION': 'us-east-1',  # pragma: allowlist secret
            'AWS_ACCESS_KEY_ID': 'mock_access_key',  # pragma: allowlist secret
            'AWS_SECRET_ACCESS_KEY': 'mock_secret_key',  # pragma: allowlist secret
        }
    )

    yield
    # Will be executed after the last test
    os.environ.clear()
    os.environ.update(old_environ)


@pytest.fixture(autouse=True)
def service_context():
    """Initialize the service context with test settings and reset it afterwards."""
    ServiceContext.initialize(
        org=TEST_ORG,
        role_name='SpinupDocDBRole',
        external_id='ext-id',
        convergence_attempts=3,
        convergence_delay=0,
    )
    yield ServiceContext
    ServiceContext.initialize()


@pytest.fixture
def client_error():
    """Return a builder of botocore ClientErrors with a given error code."""

    def build(code: str, message: str = 'upstream error', operation: str = 'Operation'):
        return ClientError(
            error_response={'Error': {'Code': code, 'Message': message}},
            operation_name=operation,
        )

    return build


@pytest.fixture
def mock_docdb_client():
    """Return a mock boto3 docdb client."""
    return MagicMock()


@pytest.fixture
def mock_tagging_client():
    """Return a mock boto3 resourcegroupstaggingapi client."""
    return MagicMock()


@pytest.fixture
def tracker():
    """Return an in-memory task tracker."""
    return MemoryTaskTracker(ttl=3600)


@pytest.fixture
def runner():
    """Return a background runner."""
    return BackgroundRunner()


@pytest.fixture
def orchestrator(mock_docdb_client, mock_tagging_client, tracker, runner):
    """Return an orchestrator for the test org over mock clients."""
    return DocDBOrchestrator(
        org=TEST_ORG,
        docdb=DocDBClient(mock_docdb_client),
        tagging=ResourceGroupsTaggingClient(mock_tagging_client),
        tracker=tracker,
        runner=runner,
        convergence_attempts=3,
        convergence_delay=0,
    )


@pytest.fixture
def org_tags():
    """Return upstream tags marking a cluster as owned by the test org."""
    return [
        {'Key': 'tenant-org', 'Value': TEST_ORG},
        {'Key': 'resource-type', 'Value': 'database'},
        {'Key': 'resource-flavor', 'Value': 'docdb'},
        {'Key': 'Project', 'Value': 'spinup'},
    ]


@pytest.fixture
def sample_db_cluster():
    """Return a sample DocumentDB cluster."""
    return {
        'DBClusterIdentifier': 'test-docdb',
        'DBClusterArn': 'arn:aws:rds:us-east-1:123456789012:cluster:test-docdb',
        'Status': 'available',
        'Engine': 'docdb',
        'EngineVersion': '5.0.0',
        'Endpoint': 'test-docdb.cluster-abc123.us-east-1.docdb.amazonaws.com',
        'ReaderEndpoint': 'test-docdb.cluster-ro-abc123.us-east-1.docdb.amazonaws.com',
        'Port': 27017,
        'MasterUsername': 'admin',
        'StorageEncrypted': True,
        'BackupRetentionPeriod': 7,
        'DBSubnetGroup': 'spinup-localdev-docdb-sg-abc',
        'DBClusterMembers': [
            {
                'DBInstanceIdentifier': 'test-docdb-1',
                'IsClusterWriter': True,
                'DBClusterParameterGroupStatus': 'in-sync',
                'PromotionTier': 1,
            },
            {
                'DBInstanceIdentifier': 'test-docdb-2',
                'IsClusterWriter': False,
                'DBClusterParameterGroupStatus': 'in-sync',
                'PromotionTier': 1,
            },
        ],
        'VpcSecurityGroups': [{'VpcSecurityGroupId': 'sg-12345678', 'Status': 'active'}],
    }


@pytest.fixture
def sample_db_instance():
    """Return a sample DocumentDB instance."""
    return {
        'DBInstanceIdentifier': 'test-docdb-1',
        'DBInstanceArn': 'arn:aws:rds:us-east-1:123456789012:db:test-docdb-1',
        'DBInstanceClass': 'db.r5.large',
        'DBInstanceStatus': 'available',
        'EngineVersion': '5.0.0',
        'AvailabilityZone': 'us-east-1a',
        'PromotionTier': 1,
        'DBClusterIdentifier': 'test-docdb',
        'Endpoint': {
            'Address': 'test-docdb-1.abc123.us-east-1.docdb.amazonaws.com',
            'Port': 27017,
            'HostedZoneId': 'Z2R2ITUGPM61AM',
        },
    }


@pytest.fixture
def create_body():
    """Return a valid create request body."""
    return {
        'DBClusterIdentifier': 'test-docdb',
        'InstanceCount': 2,
        'DBInstanceClass': 'db.r5.large',
        'EngineVersion': '5.0.0',
        'BackupRetentionPeriod': 7,
        'MasterUsername': 'admin',
        'MasterUserPassword': 'secret-password',  # pragma: allowlist secret
        'SubnetIds': ['subnet-b', 'subnet-a'],
        'VpcSecurityGroupIds': ['sg-12345678'],
        'Tags': [{'Key': 'Project', 'Value': 'spinup'}],
    }
