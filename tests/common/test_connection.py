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

"""Tests for scoped AWS sessions."""

import os
import pytest
from awslabs.docdb_cluster_api.common.connection import (
    ROLE_SESSION_NAME,
    SessionFactory,
    SessionParams,
    client_config,
)
from awslabs.docdb_cluster_api.exceptions import ForbiddenError
from unittest.mock import MagicMock, patch


CREDENTIALS = {
    'Credentials': {
        'AccessKeyId': 'ASIAEXAMPLE',
        'SecretAccessKey': 'secret',  # pragma: allowlist secret
        'SessionToken': 'token',
    }
}


class TestSessionParams:
    """Tests for SessionParams."""

    def test_scoped_by_managed_policies_only(self):
        """Test that a session is described by its role and managed policies."""
        params = SessionParams(
            role='arn:aws:iam::1:role/r',
            policy_arns=['arn:aws:iam::aws:policy/AmazonDocDBFullAccess'],
        )

        assert params.model_dump() == {
            'role': 'arn:aws:iam::1:role/r',
            'policy_arns': ['arn:aws:iam::aws:policy/AmazonDocDBFullAccess'],
        }


class TestClientConfig:
    """Tests for client_config."""

    def test_default_config(self):
        """Test the default retry and timeout settings."""
        with patch.dict(os.environ, {}, clear=False):
            for name in (
                'DOCDB_MAX_RETRIES',
                'DOCDB_RETRY_MODE',
                'DOCDB_CONNECT_TIMEOUT',
                'DOCDB_READ_TIMEOUT',
            ):
                os.environ.pop(name, None)
            config = client_config()

        assert config.retries == {'max_attempts': 3, 'mode': 'standard'}
        assert config.connect_timeout == 5
        assert config.read_timeout == 10

    def test_config_from_environment(self):
        """Test that environment variables override the defaults."""
        env = {
            'DOCDB_MAX_RETRIES': '7',
            'DOCDB_RETRY_MODE': 'adaptive',
            'DOCDB_CONNECT_TIMEOUT': '2',
            'DOCDB_READ_TIMEOUT': '30',
        }
        with patch.dict(os.environ, env):
            config = client_config()

        assert config.retries == {'max_attempts': 7, 'mode': 'adaptive'}
        assert config.connect_timeout == 2
        assert config.read_timeout == 30


class TestSessionFactory:
    """Tests for SessionFactory."""

    def test_role_arn(self):
        """Test the role ARN format."""
        assert (
            SessionFactory.role_arn('123456789012', 'SpinupDocDBRole')
            == 'arn:aws:iam::123456789012:role/SpinupDocDBRole'
        )

    @pytest.mark.asyncio
    async def test_assume_role(self):
        """Test that the role is assumed with the external id and policies."""
        sts = MagicMock()
        sts.assume_role.return_value = CREDENTIALS
        base_session = MagicMock()
        base_session.client.return_value = sts

        factory = SessionFactory('us-east-1', external_id='ext-id', base_session=base_session)
        params = SessionParams(
            role='arn:aws:iam::123456789012:role/SpinupDocDBRole',
            policy_arns=['arn:aws:iam::aws:policy/AmazonDocDBReadOnlyAccess'],
        )

        with patch('boto3.Session') as mock_session:
            session = await factory.assume_role(params)

        sts.assume_role.assert_called_once_with(
            RoleArn='arn:aws:iam::123456789012:role/SpinupDocDBRole',
            RoleSessionName=ROLE_SESSION_NAME,
            ExternalId='ext-id',
            PolicyArns=[{'arn': 'arn:aws:iam::aws:policy/AmazonDocDBReadOnlyAccess'}],
        )
        mock_session.assert_called_once_with(
            aws_access_key_id='ASIAEXAMPLE',
            aws_secret_access_key='secret',  # pragma: allowlist secret
            aws_session_token='token',
            region_name='us-east-1',
        )
        assert session is mock_session.return_value

    @pytest.mark.asyncio
    async def test_assume_role_without_external_id(self):
        """Test that optional request fields are left out."""
        sts = MagicMock()
        sts.assume_role.return_value = CREDENTIALS
        base_session = MagicMock()
        base_session.client.return_value = sts

        factory = SessionFactory('us-east-1', base_session=base_session)

        with patch('boto3.Session'):
            await factory.assume_role(SessionParams(role='arn:aws:iam::1:role/r'))

        assert sts.assume_role.call_args[1] == {
            'RoleArn': 'arn:aws:iam::1:role/r',
            'RoleSessionName': ROLE_SESSION_NAME,
        }

    @pytest.mark.asyncio
    async def test_assume_role_failure(self, client_error):
        """Test that a failed role assumption is forbidden."""
        sts = MagicMock()
        sts.assume_role.side_effect = client_error('AccessDenied', 'not authorized', 'AssumeRole')
        base_session = MagicMock()
        base_session.client.return_value = sts

        factory = SessionFactory('us-east-1', base_session=base_session)

        with pytest.raises(ForbiddenError) as exc_info:
            await factory.assume_role(SessionParams(role='arn:aws:iam::1:role/r'))

        assert 'failed to assume role arn:aws:iam::1:role/r' in str(exc_info.value)

    def test_client_uses_endpoint_url(self):
        """Test that clients are built with the configured endpoint."""
        session = MagicMock()
        factory = SessionFactory('us-east-1', endpoint_url='http://localhost:4566')

        factory.client(session, 'docdb')

        call_kwargs = session.client.call_args[1]
        assert call_kwargs['service_name'] == 'docdb'
        assert call_kwargs['endpoint_url'] == 'http://localhost:4566'
        assert call_kwargs['config'] is not None

    def test_base_session_uses_profile(self):
        """Test that the base session honors AWS_PROFILE."""
        factory = SessionFactory('us-west-2')

        with patch.dict(os.environ, {'AWS_PROFILE': 'spinup'}):
            with patch('boto3.Session') as mock_session:
                factory.base_session

        mock_session.assert_called_once_with(profile_name='spinup', region_name='us-west-2')
