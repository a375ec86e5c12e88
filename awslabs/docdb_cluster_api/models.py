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

"""Model definitions for the DocumentDB Cluster API."""

from .tags import Tag
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class VpcSecurityGroup(BaseModel):
    """VPC security group model."""

    id: Optional[str] = Field(None, description='The VPC security group ID')
    status: Optional[str] = Field(None, description='The status of the VPC security group')


class ClusterMember(BaseModel):
    """DocumentDB cluster member model."""

    instance_id: str = Field(description='The instance identifier of the cluster member')
    is_writer: bool = Field(False, description='Whether the cluster member is the writer')
    promotion_tier: Optional[int] = Field(None, description='Failover priority of the member')
    status: Optional[str] = Field(
        None, description='The status of the cluster parameter group for this member'
    )


class ClusterModel(BaseModel):
    """DocumentDB cluster model."""

    cluster_id: str = Field(description='The cluster identifier')
    arn: Optional[str] = Field(None, description='The ARN of the cluster')
    status: Optional[str] = Field(None, description='The current status of the cluster')
    engine: Optional[str] = Field(None, description='The database engine')
    engine_version: Optional[str] = Field(None, description='The version of the database engine')
    endpoint: Optional[str] = Field(None, description='The writer endpoint')
    reader_endpoint: Optional[str] = Field(None, description='The reader endpoint')
    port: Optional[int] = Field(None, description='The port the cluster accepts connections on')
    storage_encrypted: Optional[bool] = Field(None, description='Whether storage is encrypted')
    backup_retention: Optional[int] = Field(
        None, description='The retention period for automated backups'
    )
    subnet_group: Optional[str] = Field(None, description='The subnet group of the cluster')
    master_username: Optional[str] = Field(None, description='The master user name')
    created_time: Optional[str] = Field(None, description='When the cluster was created')
    members: List[ClusterMember] = Field(
        default_factory=list, description='The instances belonging to the cluster'
    )
    vpc_security_groups: List[VpcSecurityGroup] = Field(
        default_factory=list, description='The VPC security groups of the cluster'
    )


class InstanceEndpoint(BaseModel):
    """DocumentDB instance endpoint model."""

    address: Optional[str] = Field(None, description='The DNS address of the instance')
    port: Optional[int] = Field(None, description='The port the instance listens on')
    hosted_zone_id: Optional[str] = Field(
        None, description='The ID of the Amazon Route 53 hosted zone'
    )


class InstanceModel(BaseModel):
    """DocumentDB instance model."""

    instance_id: str = Field(description='The instance identifier')
    arn: Optional[str] = Field(None, description='The ARN of the instance')
    status: Optional[str] = Field(None, description='The current status of the instance')
    instance_class: Optional[str] = Field(None, description='The compute class of the instance')
    engine_version: Optional[str] = Field(None, description='The version of the database engine')
    availability_zone: Optional[str] = Field(None, description='The Availability Zone')
    promotion_tier: Optional[int] = Field(None, description='Failover priority of the instance')
    endpoint: InstanceEndpoint = Field(
        default_factory=InstanceEndpoint, description='The connection endpoint'
    )
    db_cluster: Optional[str] = Field(None, description='The cluster the instance belongs to')


class DocDBCreateRequest(BaseModel):
    """Body of a create request."""

    model_config = ConfigDict(populate_by_name=True)

    db_cluster_identifier: str = Field(
        alias='DBClusterIdentifier', min_length=1, description='The identifier for the cluster'
    )
    instance_count: int = Field(
        1, alias='InstanceCount', ge=0, description='Number of instances to create'
    )
    db_instance_class: str = Field(alias='DBInstanceClass', description='Instance class')
    engine_version: Optional[str] = Field(None, alias='EngineVersion')
    backup_retention_period: Optional[int] = Field(None, alias='BackupRetentionPeriod', ge=1)
    master_username: str = Field(alias='MasterUsername')
    master_user_password: str = Field(alias='MasterUserPassword')
    subnet_ids: Optional[List[str]] = Field(None, alias='SubnetIds')
    vpc_security_group_ids: Optional[List[str]] = Field(None, alias='VpcSecurityGroupIds')
    tags: List[Tag] = Field(default_factory=list, alias='Tags')


class DocDBModifyRequest(BaseModel):
    """Body of a modify request. Fields left unset are not changed."""

    model_config = ConfigDict(populate_by_name=True)

    backup_retention_period: Optional[int] = Field(None, alias='BackupRetentionPeriod', ge=1)
    db_instance_class: Optional[str] = Field(None, alias='DBInstanceClass')
    engine_version: Optional[str] = Field(None, alias='EngineVersion')
    master_user_password: Optional[str] = Field(None, alias='MasterUserPassword')
    new_db_cluster_identifier: Optional[str] = Field(None, alias='NewDBClusterIdentifier')
    vpc_security_group_ids: Optional[List[str]] = Field(None, alias='VpcSecurityGroupIds')


class PowerStateRequest(BaseModel):
    """Body of a power state request."""

    state: Optional[str] = Field(None, description='Either "start" or "stop"')


class DocDBResponse(BaseModel):
    """Cluster, instances and tags returned by create, get and modify."""

    model_config = ConfigDict(populate_by_name=True)

    cluster: Optional[ClusterModel] = Field(None, alias='Cluster')
    instances: List[InstanceModel] = Field(default_factory=list, alias='Instances')
    tags: List[Tag] = Field(default_factory=list, alias='Tags')
