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

"""Constants for the DocumentDB Cluster API."""

# Error Messages
ERROR_INVALID_INPUT = 'invalid input'
ERROR_SUBNETS_REQUIRED = 'SubnetIds is a required field'
ERROR_SUBNETS_MINIMUM = 'At least {} SubnetIds are required'
ERROR_NOT_IN_ORG = 'cluster not found in our org'
ERROR_UNKNOWN_POWER_STATE = 'unknown power state {!r}'
ERROR_ASSUME_ROLE = 'failed to assume role {}'
ERROR_TASK_NOT_FOUND = 'task {} not found'

# Service-owned tags
TAG_ORG = 'tenant-org'
TAG_TYPE = 'resource-type'
TAG_FLAVOR = 'resource-flavor'
RESOURCE_TYPE = 'database'
RESOURCE_FLAVOR = 'docdb'
RESERVED_TAG_KEYS = (TAG_ORG, TAG_TYPE, TAG_FLAVOR)

# Upstream values
ENGINE_DOCDB = 'docdb'
STATUS_AVAILABLE = 'available'
CLUSTER_RESOURCE_TYPE = 'rds:cluster'
CLUSTER_RESOURCE_ID_PREFIX = 'cluster-'
FINAL_SNAPSHOT_PREFIX = 'final-'
MIN_SUBNET_COUNT = 2

# Power states
POWER_START = 'start'
POWER_STOP = 'stop'

# Managed policies attached to the assumed role per operation
POLICY_DOCDB_FULL_ACCESS = 'arn:aws:iam::aws:policy/AmazonDocDBFullAccess'
POLICY_DOCDB_READ_ONLY = 'arn:aws:iam::aws:policy/AmazonDocDBReadOnlyAccess'
POLICY_TAG_EDITOR_READ_ONLY = 'arn:aws:iam::aws:policy/ResourceGroupsandTagEditorReadOnlyAccess'

# Default config values
DEFAULT_REGION = 'us-east-1'
DEFAULT_PORT = 8080
DEFAULT_RESOURCE_PREFIX = 'spinup'
DEFAULT_CONVERGENCE_ATTEMPTS = 10
DEFAULT_CONVERGENCE_DELAY = 10.0
DEFAULT_TASK_TTL = 86400

# Response headers
HEADER_TASK_ID = 'X-Flywheel-Task'
HEADER_ITEMS = 'X-Items'
