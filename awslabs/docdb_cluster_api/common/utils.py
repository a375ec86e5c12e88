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

"""General utility functions for the DocumentDB Cluster API."""

import datetime
from ..models import (
    ClusterMember,
    ClusterModel,
    InstanceEndpoint,
    InstanceModel,
    VpcSecurityGroup,
)
from botocore.client import BaseClient
from typing import Any, Callable, Dict, List, Optional, TypeVar


T = TypeVar('T', bound=object)


def handle_paginated_aws_api_call(
    client: BaseClient,
    paginator_name: str,
    operation_parameters: Dict[str, Any],
    format_function: Callable[[Any], T],
    result_key: str,
) -> List[T]:
    """Fetch all results using AWS API pagination.

    Args:
        client: Boto3 client to use for the API call
        paginator_name: Name of the paginator to use (e.g. 'get_resources')
        operation_parameters: Parameters to pass to the paginator
        format_function: Function to format each item in the result
        result_key: Key in the response that contains the list of items

    Returns:
        List of formatted results
    """
    results = []
    paginator = client.get_paginator(paginator_name)
    page_iterator = paginator.paginate(**operation_parameters)
    for page in page_iterator:
        for item in page.get(result_key, []):
            results.append(format_function(item))

    return results


def convert_datetime_to_string(obj: Any) -> Any:
    """Recursively convert datetime objects to ISO format strings.

    Args:
        obj: Object to convert

    Returns:
        Object with datetime objects converted to strings
    """
    if isinstance(obj, datetime.datetime):
        return obj.isoformat()
    elif isinstance(obj, dict):
        return {k: convert_datetime_to_string(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [convert_datetime_to_string(item) for item in obj]
    return obj


def format_cluster_info(cluster: Optional[Dict[str, Any]]) -> Optional[ClusterModel]:
    """Format cluster information returned by DocumentDB.

    Args:
        cluster: Raw cluster data from AWS

    Returns:
        ClusterModel, or None when there is no cluster data
    """
    if not cluster:
        return None

    return ClusterModel(
        cluster_id=cluster.get('DBClusterIdentifier', ''),
        arn=cluster.get('DBClusterArn'),
        status=cluster.get('Status'),
        engine=cluster.get('Engine'),
        engine_version=cluster.get('EngineVersion'),
        endpoint=cluster.get('Endpoint'),
        reader_endpoint=cluster.get('ReaderEndpoint'),
        port=cluster.get('Port'),
        storage_encrypted=cluster.get('StorageEncrypted'),
        backup_retention=cluster.get('BackupRetentionPeriod'),
        subnet_group=cluster.get('DBSubnetGroup'),
        master_username=cluster.get('MasterUsername'),
        created_time=convert_datetime_to_string(cluster.get('ClusterCreateTime')),
        members=[
            ClusterMember(
                instance_id=member.get('DBInstanceIdentifier', ''),
                is_writer=member.get('IsClusterWriter', False),
                promotion_tier=member.get('PromotionTier'),
                status=member.get('DBClusterParameterGroupStatus'),
            )
            for member in cluster.get('DBClusterMembers', [])
        ],
        vpc_security_groups=[
            VpcSecurityGroup(id=sg.get('VpcSecurityGroupId'), status=sg.get('Status'))
            for sg in cluster.get('VpcSecurityGroups', [])
        ],
    )


def format_instance_info(instance: Dict[str, Any]) -> InstanceModel:
    """Format instance information returned by DocumentDB.

    Args:
        instance: Raw instance data from AWS

    Returns:
        InstanceModel
    """
    endpoint = InstanceEndpoint()
    if isinstance(instance.get('Endpoint'), dict):
        endpoint = InstanceEndpoint(
            address=instance['Endpoint'].get('Address'),
            port=instance['Endpoint'].get('Port'),
            hosted_zone_id=instance['Endpoint'].get('HostedZoneId'),
        )

    return InstanceModel(
        instance_id=instance.get('DBInstanceIdentifier', ''),
        arn=instance.get('DBInstanceArn'),
        status=instance.get('DBInstanceStatus'),
        instance_class=instance.get('DBInstanceClass'),
        engine_version=instance.get('EngineVersion'),
        availability_zone=instance.get('AvailabilityZone'),
        promotion_tier=instance.get('PromotionTier'),
        endpoint=endpoint,
        db_cluster=instance.get('DBClusterIdentifier'),
    )
