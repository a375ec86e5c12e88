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

"""Translation of upstream AWS errors into the API error taxonomy."""

from ..exceptions import (
    BadRequestError,
    ConflictError,
    DocDBApiException,
    ForbiddenError,
    InternalError,
    LimitExceededError,
    NotFoundError,
    ServiceUnavailableError,
)
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)
from loguru import logger
from typing import Dict, Type


FORBIDDEN_CODES = (
    'Forbidden',
    'AccessDenied',
    'AccessDeniedException',
    'UnauthorizedOperation',
)

LIMIT_EXCEEDED_CODES = (
    'DBClusterQuotaExceededFault',
    'DBParameterGroupQuotaExceeded',
    'DBSubnetGroupQuotaExceeded',
    'DBSubnetQuotaExceededFault',
    'EventSubscriptionQuotaExceeded',
    'GlobalClusterQuotaExceededFault',
    'InstanceQuotaExceeded',
    'SharedSnapshotQuotaExceeded',
    'SnapshotQuotaExceeded',
    'StorageQuotaExceeded',
    'LimitExceeded',
    'Throttling',
    'ThrottlingException',
    'ThrottledException',
)

CONFLICT_CODES = (
    'DBClusterAlreadyExistsFault',
    'DBClusterSnapshotAlreadyExistsFault',
    'DBInstanceAlreadyExists',
    'DBParameterGroupAlreadyExists',
    'DBSnapshotAlreadyExists',
    'DBSubnetGroupAlreadyExists',
    'GlobalClusterAlreadyExistsFault',
    'SubnetAlreadyInUse',
    'SubscriptionAlreadyExist',
    'DBUpgradeDependencyFailure',
)

NOT_FOUND_CODES = (
    'DBClusterNotFoundFault',
    'DBClusterSnapshotNotFoundFault',
    'DBInstanceNotFound',
    'DBSnapshotNotFound',
    'DBSubnetGroupNotFoundFault',
    'GlobalClusterNotFoundFault',
    'ResourceNotFoundFault',
    'NotFound',
)

INTERNAL_ERROR_CODES = (
    'InsufficientDBClusterCapacityFault',
    'InsufficientDBInstanceCapacity',
    'InsufficientStorageClusterCapacity',
    'InvalidDBClusterSnapshotStateFault',
    'InvalidDBClusterStateFault',
    'InvalidDBInstanceState',
    'InvalidDBParameterGroupState',
    'InvalidDBSecurityGroupState',
    'InvalidDBSnapshotState',
    'InvalidDBSubnetGroupStateFault',
    'InvalidDBSubnetStateFault',
    'InvalidEventSubscriptionState',
    'InvalidGlobalClusterStateFault',
    'InvalidRestoreFault',
    'InvalidSubnet',
    'InvalidVPCNetworkStateFault',
)

SERVICE_UNAVAILABLE_CODES = (
    'ServiceUnavailable',
    'InternalServiceException',
)


def _build_code_map() -> Dict[str, Type[DocDBApiException]]:
    code_map: Dict[str, Type[DocDBApiException]] = {}
    for codes, error_class in (
        (FORBIDDEN_CODES, ForbiddenError),
        (LIMIT_EXCEEDED_CODES, LimitExceededError),
        (CONFLICT_CODES, ConflictError),
        (NOT_FOUND_CODES, NotFoundError),
        (INTERNAL_ERROR_CODES, InternalError),
        (SERVICE_UNAVAILABLE_CODES, ServiceUnavailableError),
    ):
        for code in codes:
            code_map[code] = error_class
    return code_map


ERROR_CODE_MAP = _build_code_map()


def map_client_error(message: str, error: Exception) -> DocDBApiException:
    """Map an exception raised by an AWS call into the API error taxonomy.

    Errors already in the taxonomy pass through untouched. Upstream error
    codes without a specific mapping are treated as bad requests, and anything
    that is not an upstream error at all becomes an internal error.

    Args:
        message: Description of the operation that failed
        error: The exception raised by boto3

    Returns:
        The equivalent DocDBApiException
    """
    if isinstance(error, DocDBApiException):
        return error

    if isinstance(error, ClientError):
        code = error.response.get('Error', {}).get('Code', '')
        error_class = ERROR_CODE_MAP.get(code, BadRequestError)
        return error_class(message, error)

    if isinstance(error, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
        return ServiceUnavailableError(message, error)

    logger.warning(f'uncaught error: {error}, returning Internal Server Error')
    return InternalError(message, error)
