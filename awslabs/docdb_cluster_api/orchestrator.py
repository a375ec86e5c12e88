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

"""Orchestration of DocumentDB cluster lifecycle operations for one org.

An orchestrator is bound to the org it acts for and to clients built from a
role assumed in the org's account. Ownership of existing clusters is decided
by the org tag, clusters of other orgs are reported as not found.
"""

import hashlib
from .common.connection import SessionFactory, SessionParams
from .common.retry import NotReadyError, retry
from .common.utils import format_cluster_info, format_instance_info
from .constants import (
    CLUSTER_RESOURCE_ID_PREFIX,
    DEFAULT_RESOURCE_PREFIX,
    ENGINE_DOCDB,
    ERROR_INVALID_INPUT,
    ERROR_NOT_IN_ORG,
    ERROR_SUBNETS_MINIMUM,
    ERROR_SUBNETS_REQUIRED,
    ERROR_UNKNOWN_POWER_STATE,
    FINAL_SNAPSHOT_PREFIX,
    MIN_SUBNET_COUNT,
    POWER_START,
    POWER_STOP,
    RESOURCE_FLAVOR,
    RESOURCE_TYPE,
    STATUS_AVAILABLE,
)
from .context import ServiceContext
from .docdb import DocDBClient
from .exceptions import (
    BadRequestError,
    ConflictError,
    DocDBApiException,
    InternalError,
    NotFoundError,
)
from .models import DocDBCreateRequest, DocDBModifyRequest, DocDBResponse
from .tagging import ResourceGroupsTaggingClient
from .tags import Tag, belongs_to_org, from_docdb_tags, normalize, to_docdb_tags
from .tasks import BackgroundRunner, MemoryTaskTracker, Task, TaskReporter, TaskTracker
from botocore.utils import ArnParser, InvalidArnException
from loguru import logger
from typing import Any, Dict, Iterable, List, Optional, Tuple


def subnet_group_name(
    org: str, subnet_ids: Iterable[str], prefix: str = DEFAULT_RESOURCE_PREFIX
) -> str:
    """Return the name of the subnet group shared by org for subnet_ids.

    The name only depends on the org and the set of subnets, so every cluster
    of an org placed in the same subnets reuses one subnet group.
    """
    digest = hashlib.md5(
        ''.join(sorted(subnet_ids)).encode('utf-8'), usedforsecurity=False
    ).hexdigest()
    return f'{prefix}-{org}-docdb-sg-{digest}'


def validate_create_request(request: DocDBCreateRequest) -> None:
    """Reject create requests that cannot be placed in a subnet group.

    Raises:
        BadRequestError: when fewer than two subnets are given
    """
    if not request.subnet_ids:
        raise BadRequestError(ERROR_SUBNETS_REQUIRED)
    if len(request.subnet_ids) < MIN_SUBNET_COUNT:
        raise BadRequestError(ERROR_SUBNETS_MINIMUM.format(MIN_SUBNET_COUNT))


def parse_power_state(state: Optional[str]) -> str:
    """Return state lowercased if it is a known power state.

    Raises:
        BadRequestError: when state is neither start nor stop
    """
    wanted = (state or '').lower()
    if wanted not in (POWER_START, POWER_STOP):
        raise BadRequestError(ERROR_UNKNOWN_POWER_STATE.format(state or ''))
    return wanted


class DocDBOrchestrator:
    """Runs cluster lifecycle operations on behalf of one org."""

    def __init__(
        self,
        org: str,
        docdb: DocDBClient,
        tagging: Optional[ResourceGroupsTaggingClient] = None,
        tracker: Optional[TaskTracker] = None,
        runner: Optional[BackgroundRunner] = None,
        session_factory: Optional[SessionFactory] = None,
        session_params: Optional[SessionParams] = None,
        resource_prefix: Optional[str] = None,
        convergence_attempts: Optional[int] = None,
        convergence_delay: Optional[float] = None,
    ):
        """Initialize the orchestrator.

        Args:
            org: The org every resource is owned by
            docdb: DocumentDB client for the org's account
            tagging: Tagging API client for the org's account, needed for list
            tracker: Where create progress is recorded
            runner: Owner of the convergence work started by create
            session_factory: Used to re-assume the role while polling
            session_params: Role and policies to re-assume
            resource_prefix: Prefix of subnet group names
            convergence_attempts: Attempts made while waiting for a new cluster
            convergence_delay: Seconds between two attempts
        """
        self.org = org
        self.docdb = docdb
        self.tagging = tagging
        self.tracker = tracker or MemoryTaskTracker(ServiceContext.task_ttl())
        self.runner = runner or BackgroundRunner()
        self.session_factory = session_factory
        self.session_params = session_params
        self.resource_prefix = resource_prefix or ServiceContext.resource_prefix()
        self.convergence_attempts = (
            convergence_attempts
            if convergence_attempts is not None
            else ServiceContext.convergence_attempts()
        )
        self.convergence_delay = (
            convergence_delay if convergence_delay is not None else ServiceContext.convergence_delay()
        )

    @classmethod
    async def new(
        cls,
        org: str,
        session_factory: SessionFactory,
        session_params: SessionParams,
        tracker: Optional[TaskTracker] = None,
        runner: Optional[BackgroundRunner] = None,
    ) -> 'DocDBOrchestrator':
        """Assume the role in session_params and bind an orchestrator to it.

        Raises:
            ForbiddenError: when the role cannot be assumed
        """
        session = await session_factory.assume_role(session_params)
        return cls(
            org=org,
            docdb=DocDBClient(session_factory.client(session, 'docdb')),
            tagging=ResourceGroupsTaggingClient(
                session_factory.client(session, 'resourcegroupstaggingapi')
            ),
            tracker=tracker,
            runner=runner,
            session_factory=session_factory,
            session_params=session_params,
        )

    async def refresh_session(self) -> None:
        """Re-assume the role so long running work outlives the first credentials."""
        if self.session_factory is None or self.session_params is None:
            return

        logger.debug(f'refreshing session for role {self.session_params.role}')
        session = await self.session_factory.assume_role(self.session_params)
        self.docdb = DocDBClient(self.session_factory.client(session, 'docdb'))

    async def ensure_subnet_group(self, subnet_ids: List[str], tags: List[Tag]) -> str:
        """Return the org's subnet group for subnet_ids, creating it if needed.

        Raises:
            InternalError: when the lookup fails or finds more than one group
        """
        name = subnet_group_name(self.org, subnet_ids, self.resource_prefix)

        try:
            groups = await self.docdb.get_subnet_group(name)
        except NotFoundError:
            logger.debug(f'subnet group not found: {name}')
            groups = []
        except DocDBApiException as e:
            raise InternalError(f'failed to look up subnet group {name}', e) from e

        if len(groups) == 1:
            logger.info(f'subnet group {name} already exists, will use it for this docdb cluster')
            return name
        if len(groups) > 1:
            raise InternalError(f'unexpected number of subnet groups named {name} ({len(groups)})')

        try:
            await self.docdb.create_subnet_group(name, subnet_ids, to_docdb_tags(tags))
        except ConflictError:
            logger.info(f'subnet group {name} was created concurrently, will use it')

        return name

    async def create(self, request: DocDBCreateRequest) -> Tuple[DocDBResponse, Task]:
        """Create a cluster with its instances and start waiting for it.

        Args:
            request: The cluster to create

        Returns:
            The created resources and the task tracking their convergence
        """
        validate_create_request(request)

        cluster_id = request.db_cluster_identifier
        logger.info(
            f'creating docdb cluster {cluster_id} with {request.instance_count} instance(s)'
        )

        tags = normalize(self.org, request.tags)
        docdb_tags = to_docdb_tags(tags)
        subnet_group = await self.ensure_subnet_group(request.subnet_ids or [], tags)

        params: Dict[str, Any] = {
            'DBClusterIdentifier': cluster_id,
            'DBSubnetGroupName': subnet_group,
            'Engine': ENGINE_DOCDB,
            'MasterUsername': request.master_username,
            'MasterUserPassword': request.master_user_password,
            'StorageEncrypted': True,
            'Tags': docdb_tags,
        }
        if request.backup_retention_period is not None:
            params['BackupRetentionPeriod'] = request.backup_retention_period
        if request.engine_version:
            params['EngineVersion'] = request.engine_version
        if request.vpc_security_group_ids:
            params['VpcSecurityGroupIds'] = request.vpc_security_group_ids

        cluster = await self.docdb.create_db_cluster(**params)

        instances: List[Dict[str, Any]] = []
        for ordinal in range(1, request.instance_count + 1):
            instance_id = f'{cluster_id}-{ordinal}'
            try:
                instance = await self.docdb.create_db_instance(
                    AutoMinorVersionUpgrade=True,
                    DBClusterIdentifier=cluster_id,
                    DBInstanceClass=request.db_instance_class,
                    DBInstanceIdentifier=instance_id,
                    Engine=ENGINE_DOCDB,
                    Tags=docdb_tags,
                )
            except DocDBApiException as e:
                created = [i.get('DBInstanceIdentifier') for i in instances]
                raise type(e)(
                    f'docdb cluster {cluster_id} was created with instances {created} '
                    f'but creating instance {instance_id} failed: {e.message}',
                    e.cause,
                ) from e
            instances.append(instance)

        task = Task()
        self.runner.spawn(self._converge(cluster_id, task), name=f'converge-{cluster_id}')

        return (
            DocDBResponse(
                cluster=format_cluster_info(cluster),
                instances=[format_instance_info(i) for i in instances],
                tags=tags,
            ),
            task,
        )

    async def _converge(self, cluster_id: str, task: Task) -> None:
        async with TaskReporter(self.tracker, task) as reporter:
            reporter.progress(f'requested creation of docdb cluster {cluster_id}')

            async def check() -> None:
                try:
                    await self.refresh_session()
                except DocDBApiException as e:
                    reporter.progress(f'unable to refresh orchestrator session: {e}')
                    raise

                reporter.progress(
                    f'checking if docdb cluster {cluster_id} is available before continuing'
                )

                try:
                    cluster = await self.docdb.get_cluster_details(cluster_id)
                    instances = await self.docdb.get_instances(cluster_id)
                except DocDBApiException as e:
                    reporter.progress(f'failed to get status of docdb cluster {cluster_id}: {e}')
                    raise

                status = cluster.get('Status')
                if status != STATUS_AVAILABLE:
                    message = f'docdb cluster {cluster_id} is not yet available ({status})'
                elif not instances:
                    message = f"docdb cluster {cluster_id} doesn't have any instances"
                elif any(i.get('DBInstanceStatus') != STATUS_AVAILABLE for i in instances):
                    message = f'not all docdb instances in cluster {cluster_id} are available'
                else:
                    return

                reporter.progress(message)
                raise NotReadyError(message)

            try:
                await retry(self.convergence_attempts, self.convergence_delay, check)
            except Exception as e:
                raise InternalError(
                    f'failed to create docdb cluster {cluster_id}, '
                    f'timeout waiting to become available: {e}'
                ) from e

            reporter.progress(f'docdb cluster {cluster_id} is available')

    async def list(self) -> List[str]:
        """Return the names of the org's clusters."""
        if self.tagging is None:
            raise InternalError('no tagging client configured')

        arns = await self.tagging.get_resources_in_org(self.org, RESOURCE_TYPE, RESOURCE_FLAVOR)

        parser = ArnParser()
        names = []
        for arn in arns:
            try:
                resource = parser.parse_arn(arn)['resource']
            except InvalidArnException as e:
                raise InternalError(f'failed to parse ARN {arn}', e) from e

            parts = resource.split(':', 1)
            if len(parts) != 2 or not parts[1]:
                raise InternalError(f'failed to parse ARN {arn}')

            # every cluster also has an ARN named after its resource id, e.g. cluster-L3R4YRSBUYDP4GLMTJ2WF5GH5Q
            if parts[1].startswith(CLUSTER_RESOURCE_ID_PREFIX):
                continue
            names.append(parts[1])

        return names

    async def _owned_cluster(self, name: str) -> Tuple[Dict[str, Any], List[Tag]]:
        if not name:
            raise BadRequestError(ERROR_INVALID_INPUT)

        cluster = await self.docdb.get_cluster_details(name)
        tags = from_docdb_tags(await self.docdb.get_tags(cluster.get('DBClusterArn', '')))

        if not belongs_to_org(tags, self.org):
            raise NotFoundError(ERROR_NOT_IN_ORG)

        return cluster, tags

    async def details(self, name: str) -> DocDBResponse:
        """Return the cluster called name with its tags.

        Raises:
            NotFoundError: when the cluster is absent or owned by another org
        """
        cluster, tags = await self._owned_cluster(name)
        return DocDBResponse(cluster=format_cluster_info(cluster), tags=tags)

    async def modify(self, name: str, request: DocDBModifyRequest) -> DocDBResponse:
        """Apply request to the cluster called name and, for a class change, its instances."""
        cluster, tags = await self._owned_cluster(name)

        params: Dict[str, Any] = {'DBClusterIdentifier': name, 'ApplyImmediately': True}
        if request.backup_retention_period is not None:
            params['BackupRetentionPeriod'] = request.backup_retention_period
        if request.engine_version:
            params['EngineVersion'] = request.engine_version
        if request.master_user_password:
            params['MasterUserPassword'] = request.master_user_password
        if request.new_db_cluster_identifier:
            params['NewDBClusterIdentifier'] = request.new_db_cluster_identifier
        if request.vpc_security_group_ids is not None:
            params['VpcSecurityGroupIds'] = request.vpc_security_group_ids

        modified = await self.docdb.modify_db_cluster(**params)

        instances = []
        if request.db_instance_class:
            for member in cluster.get('DBClusterMembers', []):
                instance = await self.docdb.modify_db_instance(
                    ApplyImmediately=True,
                    DBInstanceClass=request.db_instance_class,
                    DBInstanceIdentifier=member.get('DBInstanceIdentifier'),
                )
                instances.append(instance)

        return DocDBResponse(
            cluster=format_cluster_info(modified),
            instances=[format_instance_info(i) for i in instances],
            tags=tags,
        )

    async def delete(self, name: str, snapshot: bool = False) -> None:
        """Delete the instances of the cluster called name, then the cluster.

        Args:
            name: The cluster to delete
            snapshot: Whether to take a final snapshot named final-<name>
        """
        cluster, _ = await self._owned_cluster(name)

        logger.info(f'deleting docdb cluster {name} (snapshot: {snapshot})')

        for member in cluster.get('DBClusterMembers', []):
            await self.docdb.delete_db_instance(member.get('DBInstanceIdentifier'))

        params: Dict[str, Any] = {'DBClusterIdentifier': name, 'SkipFinalSnapshot': True}
        if snapshot:
            params['SkipFinalSnapshot'] = False
            params['FinalDBSnapshotIdentifier'] = f'{FINAL_SNAPSHOT_PREFIX}{name}'

        await self.docdb.delete_db_cluster(**params)

    async def set_state(self, name: str, state: Optional[str]) -> None:
        """Start or stop the cluster called name.

        Raises:
            BadRequestError: when state is neither start nor stop
        """
        wanted = parse_power_state(state)

        await self._owned_cluster(name)

        if wanted == POWER_START:
            await self.docdb.start_db_cluster(name)
        else:
            await self.docdb.stop_db_cluster(name)
