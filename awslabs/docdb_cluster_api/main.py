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

"""awslabs DocumentDB Cluster API entry point."""

import argparse
import os
import sys
import uvicorn
from awslabs.docdb_cluster_api import __version__
from awslabs.docdb_cluster_api.constants import (
    DEFAULT_CONVERGENCE_ATTEMPTS,
    DEFAULT_CONVERGENCE_DELAY,
    DEFAULT_PORT,
    DEFAULT_REGION,
    DEFAULT_RESOURCE_PREFIX,
    DEFAULT_TASK_TTL,
)
from awslabs.docdb_cluster_api.context import ServiceContext
from awslabs.docdb_cluster_api.server import create_app
from loguru import logger


def parse_args(argv=None):
    """Parse command line arguments, falling back to environment variables."""
    parser = argparse.ArgumentParser(
        description='An AWS Labs REST API for managing Amazon DocumentDB clusters'
    )
    parser.add_argument(
        '--host',
        type=str,
        default=os.environ.get('DOCDB_API_HOST', '0.0.0.0'),
        help='Host to bind to',
    )
    parser.add_argument(
        '--port',
        type=int,
        default=int(os.environ.get('DOCDB_API_PORT', DEFAULT_PORT)),
        help='Port to run the server on',
    )
    parser.add_argument(
        '--region',
        type=str,
        default=os.environ.get('AWS_REGION', DEFAULT_REGION),
        help='AWS region for DocumentDB operations',
    )
    parser.add_argument(
        '--org',
        type=str,
        default=os.environ.get('DOCDB_API_ORG', ''),
        help='Org every cluster is tagged with and scoped to',
    )
    parser.add_argument(
        '--role-name',
        type=str,
        default=os.environ.get('DOCDB_API_ROLE_NAME', ''),
        help='Name of the role assumed in the target account',
    )
    parser.add_argument(
        '--external-id',
        type=str,
        default=os.environ.get('DOCDB_API_EXTERNAL_ID'),
        help='External id presented when assuming the role',
    )
    parser.add_argument(
        '--endpoint-url',
        type=str,
        default=os.environ.get('DOCDB_API_ENDPOINT_URL'),
        help='Custom endpoint URL for AWS API calls',
    )
    parser.add_argument(
        '--resource-prefix',
        type=str,
        default=os.environ.get('DOCDB_API_RESOURCE_PREFIX', DEFAULT_RESOURCE_PREFIX),
        help='Prefix of resources named by the service',
    )
    parser.add_argument(
        '--convergence-attempts',
        type=int,
        default=int(os.environ.get('DOCDB_API_CONVERGENCE_ATTEMPTS', DEFAULT_CONVERGENCE_ATTEMPTS)),
        help='Times a new cluster is checked before its creation is failed',
    )
    parser.add_argument(
        '--convergence-delay',
        type=float,
        default=float(os.environ.get('DOCDB_API_CONVERGENCE_DELAY', DEFAULT_CONVERGENCE_DELAY)),
        help='Seconds between two checks of a new cluster',
    )
    parser.add_argument(
        '--task-ttl',
        type=int,
        default=int(os.environ.get('DOCDB_API_TASK_TTL', DEFAULT_TASK_TTL)),
        help='Seconds a task stays queryable after its last update',
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default=os.environ.get('DOCDB_API_LOG_LEVEL', 'INFO'),
        help='Log level',
    )
    parser.add_argument('--profile', type=str, help='AWS profile to use for credentials')

    return parser.parse_args(argv)


def main(argv=None):
    """Run the REST API with CLI argument support."""
    args = parse_args(argv)
    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    # aws profile
    if args.profile:
        os.environ['AWS_PROFILE'] = args.profile

    ServiceContext.initialize(
        org=args.org,
        role_name=args.role_name,
        external_id=args.external_id,
        region=args.region,
        endpoint_url=args.endpoint_url,
        resource_prefix=args.resource_prefix,
        convergence_attempts=args.convergence_attempts,
        convergence_delay=args.convergence_delay,
        task_ttl=args.task_ttl,
    )

    logger.info(f'Starting DocumentDB Cluster API v{__version__}')
    logger.info(f'Region: {ServiceContext.region()}')
    logger.info(f'Org: {ServiceContext.org()}')
    if args.profile:
        logger.info(f'AWS Profile: {args.profile}')

    uvicorn.run(create_app(), host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == '__main__':
    main()
