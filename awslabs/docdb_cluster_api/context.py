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

"""Context management for the DocumentDB Cluster API."""

from .constants import (
    DEFAULT_CONVERGENCE_ATTEMPTS,
    DEFAULT_CONVERGENCE_DELAY,
    DEFAULT_REGION,
    DEFAULT_RESOURCE_PREFIX,
    DEFAULT_TASK_TTL,
)
from typing import Optional


class ServiceContext:
    """Process-wide settings for the DocumentDB Cluster API.

    Holds configuration only. AWS clients are never cached here, they are
    built per request from an assumed-role session.
    """

    _org = ''
    _role_name = ''
    _external_id: Optional[str] = None
    _region = DEFAULT_REGION
    _endpoint_url: Optional[str] = None
    _resource_prefix = DEFAULT_RESOURCE_PREFIX
    _convergence_attempts = DEFAULT_CONVERGENCE_ATTEMPTS
    _convergence_delay = DEFAULT_CONVERGENCE_DELAY
    _task_ttl = DEFAULT_TASK_TTL

    @classmethod
    def initialize(
        cls,
        org: str = '',
        role_name: str = '',
        external_id: Optional[str] = None,
        region: str = DEFAULT_REGION,
        endpoint_url: Optional[str] = None,
        resource_prefix: str = DEFAULT_RESOURCE_PREFIX,
        convergence_attempts: int = DEFAULT_CONVERGENCE_ATTEMPTS,
        convergence_delay: float = DEFAULT_CONVERGENCE_DELAY,
        task_ttl: int = DEFAULT_TASK_TTL,
    ):
        """Initialize the context.

        Args:
            org (str): The org (tenant) every resource is tagged with.
            role_name (str): Name of the role assumed in the target account.
            external_id (Optional[str]): External id presented when assuming the role.
            region (str): AWS region for DocumentDB operations. Defaults to us-east-1.
            endpoint_url (Optional[str]): Custom endpoint URL for AWS API calls.
            resource_prefix (str): Prefix for resources named by the service.
            convergence_attempts (int): Attempts made while waiting for a new cluster.
            convergence_delay (float): Seconds between convergence attempts.
            task_ttl (int): Seconds a finished task stays queryable.
        """
        cls._org = org
        cls._role_name = role_name
        cls._external_id = external_id
        cls._region = region
        cls._endpoint_url = endpoint_url
        cls._resource_prefix = resource_prefix
        cls._convergence_attempts = convergence_attempts
        cls._convergence_delay = convergence_delay
        cls._task_ttl = task_ttl

    @classmethod
    def org(cls) -> str:
        """Get the org resources are owned by."""
        return cls._org

    @classmethod
    def role_name(cls) -> str:
        """Get the name of the role assumed in tenant accounts."""
        return cls._role_name

    @classmethod
    def external_id(cls) -> Optional[str]:
        """Get the external id used when assuming roles."""
        return cls._external_id

    @classmethod
    def region(cls) -> str:
        """Get the AWS region."""
        return cls._region

    @classmethod
    def endpoint_url(cls) -> Optional[str]:
        """Get the custom endpoint URL for AWS API calls.

        Returns:
            The custom endpoint URL, or None if using default AWS endpoints
        """
        return cls._endpoint_url

    @classmethod
    def resource_prefix(cls) -> str:
        """Get the prefix used for service-named resources."""
        return cls._resource_prefix

    @classmethod
    def convergence_attempts(cls) -> int:
        """Get the number of convergence polling attempts."""
        return cls._convergence_attempts

    @classmethod
    def convergence_delay(cls) -> float:
        """Get the delay in seconds between convergence polling attempts."""
        return cls._convergence_delay

    @classmethod
    def task_ttl(cls) -> int:
        """Get the number of seconds a task is retained after its last update."""
        return cls._task_ttl
