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

"""Resource tags and the org ownership convention built on them."""

from .constants import (
    RESERVED_TAG_KEYS,
    RESOURCE_FLAVOR,
    RESOURCE_TYPE,
    TAG_FLAVOR,
    TAG_ORG,
    TAG_TYPE,
)
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Iterable, List, Optional


class Tag(BaseModel):
    """A single resource tag."""

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(alias='Key', description='The tag key')
    value: str = Field('', alias='Value', description='The tag value')


def normalize(org: str, tags: Optional[Iterable[Tag]]) -> List[Tag]:
    """Return tags with the service-owned tags set for org.

    The org, type and flavor tags always come first with fixed values. Caller
    supplied tags using one of those keys are dropped, all others are kept in
    their original order.

    Args:
        org: The org owning the resource
        tags: Tags supplied by the caller

    Returns:
        The normalized tag list
    """
    normalized = [
        Tag(key=TAG_ORG, value=org),
        Tag(key=TAG_TYPE, value=RESOURCE_TYPE),
        Tag(key=TAG_FLAVOR, value=RESOURCE_FLAVOR),
    ]

    for tag in tags or []:
        if tag.key in RESERVED_TAG_KEYS:
            continue
        normalized.append(tag)

    return normalized


def belongs_to_org(tags: Optional[Iterable[Tag]], org: str) -> bool:
    """Return True if there is an org tag with exactly the value org."""
    for tag in tags or []:
        if tag.key == TAG_ORG and tag.value == org:
            return True
    return False


def to_docdb_tags(tags: Iterable[Tag]) -> List[Dict[str, str]]:
    """Convert API tags to the DocumentDB tag shape."""
    return [{'Key': tag.key, 'Value': tag.value} for tag in tags]


def from_docdb_tags(docdb_tags: Optional[Iterable[Dict[str, Any]]]) -> List[Tag]:
    """Convert DocumentDB tags to API tags."""
    return [
        Tag(key=tag.get('Key', ''), value=tag.get('Value') or '') for tag in docdb_tags or []
    ]
