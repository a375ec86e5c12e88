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

"""Tests for main module."""

import os
import pytest
from awslabs.docdb_cluster_api.context import ServiceContext
from awslabs.docdb_cluster_api.main import main, parse_args
from unittest.mock import patch


class TestParseArgs:
    """Test cases for argument parsing."""

    def test_defaults(self):
        """Test the default settings."""
        with patch.dict(os.environ, {'AWS_REGION': 'us-east-1'}):
            args = parse_args([])

        assert args.port == 8080
        assert args.region == 'us-east-1'
        assert args.resource_prefix == 'spinup'
        assert args.convergence_attempts == 10
        assert args.convergence_delay == 10.0

    def test_environment_defaults(self):
        """Test that environment variables provide defaults."""
        env = {
            'DOCDB_API_ORG': 'localdev',
            'DOCDB_API_ROLE_NAME': 'SpinupDocDBRole',
            'DOCDB_API_PORT': '9090',
            'DOCDB_API_CONVERGENCE_ATTEMPTS': '20',
        }
        with patch.dict(os.environ, env):
            args = parse_args([])

        assert args.org == 'localdev'
        assert args.role_name == 'SpinupDocDBRole'
        assert args.port == 9090
        assert args.convergence_attempts == 20

    def test_flags_override_environment(self):
        """Test that flags win over environment variables."""
        with patch.dict(os.environ, {'DOCDB_API_ORG': 'localdev'}):
            args = parse_args(['--org', 'other'])

        assert args.org == 'other'


class TestMain:
    """Test cases for main function."""

    def test_main_success(self):
        """Test successful main function execution."""
        with patch('awslabs.docdb_cluster_api.main.uvicorn.run') as mock_run:
            main(
                [
                    '--org',
                    'localdev',
                    '--role-name',
                    'SpinupDocDBRole',
                    '--region',
                    'us-west-2',
                    '--port',
                    '9000',
                    '--convergence-delay',
                    '5',
                ]
            )

        mock_run.assert_called_once()
        assert mock_run.call_args[1]['port'] == 9000
        assert ServiceContext.org() == 'localdev'
        assert ServiceContext.role_name() == 'SpinupDocDBRole'
        assert ServiceContext.region() == 'us-west-2'
        assert ServiceContext.convergence_delay() == 5.0

    def test_main_with_profile(self):
        """Test that the profile is exported for boto3."""
        with patch('awslabs.docdb_cluster_api.main.uvicorn.run'):
            with patch.dict(os.environ, {}):
                main(['--profile', 'spinup'])
                assert os.environ['AWS_PROFILE'] == 'spinup'

    def test_main_exception_handling(self):
        """Test main function exception handling."""
        with patch('awslabs.docdb_cluster_api.main.uvicorn.run') as mock_run:
            mock_run.side_effect = Exception('Test exception')

            with pytest.raises(Exception, match='Test exception'):
                main([])
