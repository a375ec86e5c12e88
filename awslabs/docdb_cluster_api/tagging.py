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

"""Resource Groups Tagging API client used to find an org's clusters."""

import asyncio
from .common.decorator import handle_exceptions
from .common.utils import handle_paginated_aws_api_call
from .constants import (
    CLUSTER_RESOURCE_TYPE,
    ERROR_INVALID_INPUT,
    TAG_FLAVOR,
    TAG_ORG,
    TAG_TYPE,
)
from .exceptions import BadRequestError
from loguru import logger
from typing import Any, List


RESOURCES_PER_PAGE = 100


def _arn(resource: Any) -> str:
    return resource.get('ResourceARN', '')


class ResourceGroupsTaggingClient:
    """Wrapper around a boto3 resourcegroupstaggingapi client."""

    def __init__(self, client: Any):
        """Initialize the wrapper.

        Args:
            client: boto3 resourcegroupstaggingapi client
        """
        self.client = client

    @handle_exceptions('searching for tagged resources')
    async def get_resources_in_org(self, org: str, rtype: str, rflavor: str) -> List[str]:
        """Return the ARNs of every cluster tagged for org, type and flavor.

        Args:
            org: Value of the org tag
            rtype: Value of the resource type tag
            rflavor: Value of the resource flavor tag

        Returns:
            List of resource ARNs across all result pages
        """
        if not org:
            raise BadRequestError(ERROR_INVALID_INPUT)

        logger.info(f'listing {rflavor} resources of type {rtype} in org {org}')
        params = {
            'ResourcesPerPage': RESOURCES_PER_PAGE,
            'ResourceTypeFilters': [CLUSTER_RESOURCE_TYPE],
            'TagFilters': [
                {'Key': TAG_ORG, 'Values': [org]},
                {'Key': TAG_TYPE, 'Values': [rtype]},
                {'Key': TAG_FLAVOR, 'Values': [rflavor]},
            ],
        }

        arns = await asyncio.to_thread(
            handle_paginated_aws_api_call,
            client=self.client,
            paginator_name='get_resources',
            operation_parameters=params,
            format_function=_arn,
            result_key='ResourceTagMappingList',
        )
        logger.debug(f'found {len(arns)} resources in org {org}')

        return arns
