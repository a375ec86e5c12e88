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

"""Thin async wrapper around the Amazon DocumentDB control API.

Every method runs the boto3 call in a worker thread and translates upstream
errors into the API error taxonomy, so nothing above this module handles
botocore exceptions.
"""

import asyncio
from .common.decorator import handle_exceptions
from .constants import ERROR_INVALID_INPUT
from .exceptions import BadRequestError, InternalError, NotFoundError
from loguru import logger
from typing import Any, Dict, List


class DocDBClient:
    """Wrapper around a boto3 docdb client."""

    def __init__(self, client: Any):
        """Initialize the wrapper.

        Args:
            client: boto3 docdb client
        """
        self.client = client

    @handle_exceptions('describing docdb subnet group')
    async def get_subnet_group(self, name: str) -> List[Dict[str, Any]]:
        """Return the subnet groups named name.

        Raises:
            NotFoundError: when no subnet group has that name
        """
        if not name:
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'searching for docdb subnet group {name}')
        response = await asyncio.to_thread(
            self.client.describe_db_subnet_groups, DBSubnetGroupName=name
        )
        logger.debug(f'search output for docdb subnet group: {response.get("DBSubnetGroups")}')

        return response.get('DBSubnetGroups', [])

    @handle_exceptions('creating docdb subnet group')
    async def create_subnet_group(
        self, name: str, subnet_ids: List[str], tags: List[Dict[str, str]]
    ) -> Dict[str, Any]:
        """Create a subnet group named name over subnet_ids."""
        if not name or not subnet_ids:
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'creating docdb subnet group {name} with subnets {subnet_ids}')
        response = await asyncio.to_thread(
            self.client.create_db_subnet_group,
            DBSubnetGroupName=name,
            DBSubnetGroupDescription=name,
            SubnetIds=subnet_ids,
            Tags=tags,
        )
        logger.success(f'created docdb subnet group {name}')

        return response.get('DBSubnetGroup', {})

    @handle_exceptions('getting docdb cluster details')
    async def get_cluster_details(self, name: str) -> Dict[str, Any]:
        """Return the cluster called name.

        Raises:
            NotFoundError: when the cluster does not exist
            InternalError: when more than one cluster matches
        """
        if not name:
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'getting docdb cluster {name}')
        response = await asyncio.to_thread(
            self.client.describe_db_clusters, DBClusterIdentifier=name
        )

        clusters = response.get('DBClusters', [])
        if not clusters:
            raise NotFoundError(f'docdb cluster {name} not found')
        if len(clusters) > 1:
            raise InternalError(
                f'unexpected number of docdb clusters found for {name} ({len(clusters)})'
            )

        logger.debug(f'got docdb cluster: {clusters[0]}')
        return clusters[0]

    @handle_exceptions('describing docdb instances')
    async def get_instances(self, cluster_name: str) -> List[Dict[str, Any]]:
        """Return the instances of the cluster called cluster_name."""
        if not cluster_name:
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'getting docdb instances for cluster {cluster_name}')
        response = await asyncio.to_thread(
            self.client.describe_db_instances,
            Filters=[{'Name': 'db-cluster-id', 'Values': [cluster_name]}],
        )

        return response.get('DBInstances', [])

    @handle_exceptions('listing docdb tags')
    async def get_tags(self, arn: str) -> List[Dict[str, str]]:
        """Return the tags of the resource identified by arn."""
        if not arn:
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'getting tags for {arn}')
        response = await asyncio.to_thread(self.client.list_tags_for_resource, ResourceName=arn)

        return response.get('TagList', [])

    @handle_exceptions('creating docdb cluster')
    async def create_db_cluster(self, **params: Any) -> Dict[str, Any]:
        """Create a cluster, params follow the CreateDBCluster API."""
        if not params.get('DBClusterIdentifier'):
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'creating docdb cluster {params["DBClusterIdentifier"]}')
        response = await asyncio.to_thread(self.client.create_db_cluster, **params)
        logger.success(f'created docdb cluster {params["DBClusterIdentifier"]}')
        logger.debug(f'created docdb cluster with output: {response.get("DBCluster")}')

        return response.get('DBCluster', {})

    @handle_exceptions('creating docdb instance')
    async def create_db_instance(self, **params: Any) -> Dict[str, Any]:
        """Create an instance, params follow the CreateDBInstance API."""
        if not params.get('DBInstanceIdentifier'):
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'creating docdb instance {params["DBInstanceIdentifier"]}')
        response = await asyncio.to_thread(self.client.create_db_instance, **params)
        logger.success(f'created docdb instance {params["DBInstanceIdentifier"]}')

        return response.get('DBInstance', {})

    @handle_exceptions('modifying docdb cluster')
    async def modify_db_cluster(self, **params: Any) -> Dict[str, Any]:
        """Modify a cluster, params follow the ModifyDBCluster API."""
        if not params.get('DBClusterIdentifier'):
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'modifying docdb cluster {params["DBClusterIdentifier"]}')
        response = await asyncio.to_thread(self.client.modify_db_cluster, **params)
        logger.success(f'modified docdb cluster {params["DBClusterIdentifier"]}')

        return response.get('DBCluster', {})

    @handle_exceptions('modifying docdb instance')
    async def modify_db_instance(self, **params: Any) -> Dict[str, Any]:
        """Modify an instance, params follow the ModifyDBInstance API."""
        if not params.get('DBInstanceIdentifier'):
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'modifying docdb instance {params["DBInstanceIdentifier"]}')
        response = await asyncio.to_thread(self.client.modify_db_instance, **params)
        logger.success(f'modified docdb instance {params["DBInstanceIdentifier"]}')

        return response.get('DBInstance', {})

    @handle_exceptions('deleting docdb cluster')
    async def delete_db_cluster(self, **params: Any) -> Dict[str, Any]:
        """Delete a cluster, params follow the DeleteDBCluster API."""
        if not params.get('DBClusterIdentifier'):
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'deleting docdb cluster {params["DBClusterIdentifier"]}')
        response = await asyncio.to_thread(self.client.delete_db_cluster, **params)
        logger.success(f'initiated deletion of docdb cluster {params["DBClusterIdentifier"]}')

        return response.get('DBCluster', {})

    @handle_exceptions('deleting docdb instance')
    async def delete_db_instance(self, name: str) -> Dict[str, Any]:
        """Delete the instance called name."""
        if not name:
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'deleting docdb instance {name}')
        response = await asyncio.to_thread(
            self.client.delete_db_instance, DBInstanceIdentifier=name
        )
        logger.success(f'initiated deletion of docdb instance {name}')

        return response.get('DBInstance', {})

    @handle_exceptions('starting docdb cluster')
    async def start_db_cluster(self, name: str) -> Dict[str, Any]:
        """Start the stopped cluster called name."""
        if not name:
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'starting docdb cluster {name}')
        response = await asyncio.to_thread(self.client.start_db_cluster, DBClusterIdentifier=name)
        logger.success(f'started docdb cluster {name}')

        return response.get('DBCluster', {})

    @handle_exceptions('stopping docdb cluster')
    async def stop_db_cluster(self, name: str) -> Dict[str, Any]:
        """Stop the running cluster called name."""
        if not name:
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'stopping docdb cluster {name}')
        response = await asyncio.to_thread(self.client.stop_db_cluster, DBClusterIdentifier=name)
        logger.success(f'stopped docdb cluster {name}')

        return response.get('DBCluster', {})
