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

"""Scoped AWS sessions for the DocumentDB Cluster API.

Every request works in the tenant's account through a role assumed with only
the managed policies the operation needs. Sessions and clients are built per
request and never shared through module state.
"""

import asyncio
import boto3
import os
from ..constants import ERROR_ASSUME_ROLE
from ..exceptions import ForbiddenError
from botocore.config import Config
from loguru import logger
from pydantic import BaseModel, Field
from typing import Any, List, Optional


ROLE_SESSION_NAME = 'docdb-cluster-api'


class SessionParams(BaseModel):
    """Everything needed to (re)assume a role for an orchestrator."""

    role: str = Field(description='ARN of the role to assume')
    policy_arns: List[str] = Field(
        default_factory=list, description='Managed policies scoping the session'
    )


def client_config(env_prefix: str = 'DOCDB') -> Config:
    """Build the botocore config shared by every client with retry capabilities.

    Args:
        env_prefix: Prefix of the environment variables overriding the defaults

    Returns:
        botocore.config.Config: client configuration
    """
    max_retries = int(os.environ.get(f'{env_prefix}_MAX_RETRIES', '3'))
    retry_mode = os.environ.get(f'{env_prefix}_RETRY_MODE', 'standard')
    connect_timeout = int(os.environ.get(f'{env_prefix}_CONNECT_TIMEOUT', '5'))
    read_timeout = int(os.environ.get(f'{env_prefix}_READ_TIMEOUT', '10'))

    return Config(
        retries={'max_attempts': max_retries, 'mode': retry_mode},
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        user_agent_extra='DocDBClusterAPI',
    )


class SessionFactory:
    """Assumes roles in tenant accounts and builds clients from the result."""

    def __init__(
        self,
        region: str,
        external_id: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        base_session: Optional[boto3.Session] = None,
    ):
        """Initialize the factory.

        Args:
            region: AWS region for all sessions
            external_id: External id presented when assuming roles
            endpoint_url: Custom endpoint URL for AWS API calls
            base_session: Session holding the service's own credentials
        """
        self.region = region
        self.external_id = external_id
        self.endpoint_url = endpoint_url
        self._base_session = base_session

    @property
    def base_session(self) -> boto3.Session:
        """Session holding the service's own credentials, created on first use."""
        if self._base_session is None:
            aws_profile = os.environ.get('AWS_PROFILE', '')
            if aws_profile:
                self._base_session = boto3.Session(
                    profile_name=aws_profile, region_name=self.region
                )
            else:
                self._base_session = boto3.Session(region_name=self.region)
        return self._base_session

    @staticmethod
    def role_arn(account: str, role_name: str) -> str:
        """Return the ARN of the role assumed in the given account."""
        return f'arn:aws:iam::{account}:role/{role_name}'

    async def assume_role(self, params: SessionParams) -> boto3.Session:
        """Assume the role described by params.

        Args:
            params: Role and managed policies for the session

        Returns:
            boto3.Session: session using the temporary credentials

        Raises:
            ForbiddenError: when the role cannot be assumed
        """
        logger.debug(f'assuming role {params.role} with policies {params.policy_arns}')

        request = {
            'RoleArn': params.role,
            'RoleSessionName': ROLE_SESSION_NAME,
        }
        if self.external_id:
            request['ExternalId'] = self.external_id
        if params.policy_arns:
            request['PolicyArns'] = [{'arn': arn} for arn in params.policy_arns]

        try:
            sts = self.client(self.base_session, 'sts')
            response = await asyncio.to_thread(sts.assume_role, **request)
        except Exception as e:
            logger.error(f'failed to assume role {params.role}: {e}')
            raise ForbiddenError(ERROR_ASSUME_ROLE.format(params.role), e) from e

        credentials = response['Credentials']
        return boto3.Session(
            aws_access_key_id=credentials['AccessKeyId'],
            aws_secret_access_key=credentials['SecretAccessKey'],
            aws_session_token=credentials['SessionToken'],
            region_name=self.region,
        )

    def client(self, session: boto3.Session, service_name: str) -> Any:
        """Create a client for service_name from session."""
        return session.client(
            service_name=service_name,
            config=client_config(),
            endpoint_url=self.endpoint_url,
        )
